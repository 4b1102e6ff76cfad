"""Tests for cvxpy_cflp.engine and cvxpy_cflp.config."""

from unittest import mock

from absl.testing import absltest
from absl.testing import parameterized
import numpy as np

import cvxpy as cp

from cvxpy_cflp import engine
from cvxpy_cflp.config import LinkingForm, SolverConfig
from cvxpy_cflp.exceptions import SolverUnavailableError
from cvxpy_cflp.instance import Instance
from cvxpy_cflp.io import FAILURE_MESSAGE, format_solution
from cvxpy_cflp.model import build_model
from cvxpy_cflp.solver import solve_instance


def _instance():
    return Instance.from_records([(1.0, 10, 0, 0), (2.0, 10, 5, 5)], [(3, 1, 1), (2, 4, 4)])


class SolverConfigTest(parameterized.TestCase):

    def test_defaults(self):
        config = SolverConfig()
        self.assertEqual(config.solver, "SCIPY")
        self.assertIsNone(config.time_limit)
        self.assertIs(config.linking, LinkingForm.INEQUALITY)
        self.assertEqual(config.solve_kwargs(), {"solver": "SCIPY", "verbose": False})

    def test_linking_from_string(self):
        self.assertIs(SolverConfig(linking="equality").linking, LinkingForm.EQUALITY)

    def test_solver_name_normalized(self):
        self.assertEqual(SolverConfig(solver="highs").solver, "HIGHS")

    @parameterized.parameters(
        ("SCIPY", {"scipy_options": {"time_limit": 30}}),
        ("HIGHS", {"time_limit": 30}),
        ("SCIP", {"scip_params": {"limits/time": 30}}),
        ("CBC", {"maximumSeconds": 30}),
        ("GUROBI", {"TimeLimit": 30}),
    )
    def test_time_limit_options(self, solver, expected):
        kwargs = SolverConfig(solver=solver, time_limit=30).solve_kwargs()
        for key, value in expected.items():
            self.assertEqual(kwargs[key], value)

    def test_time_limit_unsupported_solver(self):
        with self.assertRaises(ValueError):
            SolverConfig(solver="ECOS_BB", time_limit=5).solve_kwargs()

    def test_solver_options_merge(self):
        config = SolverConfig(
            time_limit=10, solver_options={"scipy_options": {"presolve": False}}
        )
        self.assertEqual(
            config.solve_kwargs()["scipy_options"], {"time_limit": 10, "presolve": False}
        )

    @parameterized.named_parameters(
        ("threshold_low", {"assignment_threshold": 0.0}),
        ("threshold_high", {"assignment_threshold": 1.0}),
        ("time_limit", {"time_limit": 0}),
        ("tolerance", {"cost_tolerance": -1.0}),
    )
    def test_invalid(self, kwargs):
        with self.assertRaises(ValueError):
            SolverConfig(**kwargs)


class EnsureSolverTest(absltest.TestCase):

    def test_default_solver_available(self):
        self.assertEqual(engine.ensure_solver("scipy"), "SCIPY")

    def test_missing_solver(self):
        with self.assertRaisesRegex(SolverUnavailableError, "NOT_A_SOLVER"):
            engine.ensure_solver("NOT_A_SOLVER")

    def test_checked_once(self):
        engine.ensure_solver.cache_clear()
        with mock.patch.object(cp, "installed_solvers", return_value=["SCIPY"]) as installed:
            engine.ensure_solver("SCIPY")
            engine.ensure_solver("SCIPY")
        installed.assert_called_once()
        engine.ensure_solver.cache_clear()

    def test_missing_solver_fails_solve(self):
        with self.assertRaises(SolverUnavailableError):
            solve_instance(_instance(), SolverConfig(solver="NOT_A_SOLVER"))


class SolveModelTest(absltest.TestCase):

    def test_optimal(self):
        model = build_model(_instance())
        self.assertEqual(engine.solve_model(model), cp.OPTIMAL)
        self.assertIsNotNone(model.assign.value)

    def test_time_limit_passed_through(self):
        model = build_model(_instance())
        self.assertEqual(engine.solve_model(model, SolverConfig(time_limit=60)), cp.OPTIMAL)

    def test_time_limit_reached_renders_failure(self):
        rng = np.random.default_rng(7)
        facilities = [
            (float(rng.uniform(50, 150)), int(rng.integers(40, 60)), *rng.uniform(0, 100, 2))
            for _ in range(20)
        ]
        customers = [(int(rng.integers(5, 15)), *rng.uniform(0, 100, 2)) for _ in range(80)]
        instance = Instance.from_records(facilities, customers)

        solution = solve_instance(instance, SolverConfig(time_limit=1e-6))
        self.assertFalse(solution.is_optimal)
        self.assertIn(
            solution.status, (engine.SOLVER_ERROR, cp.USER_LIMIT, cp.OPTIMAL_INACCURATE)
        )
        self.assertEqual(format_solution(solution), FAILURE_MESSAGE)

    def test_structural_status_skips_solver(self):
        model = build_model(Instance.from_records([], [(1, 0, 0)]))
        with mock.patch.object(cp.Problem, "solve") as solve:
            self.assertEqual(engine.solve_model(model), cp.INFEASIBLE)
        solve.assert_not_called()

    def test_solver_error_becomes_status(self):
        model = build_model(_instance())
        with mock.patch.object(
            cp.Problem, "solve", side_effect=cp.SolverError("boom")
        ), self.assertLogs("cvxpy_cflp.engine", level="WARNING"):
            self.assertEqual(engine.solve_model(model), engine.SOLVER_ERROR)

    def test_solver_error_renders_failure(self):
        with mock.patch.object(cp.Problem, "solve", side_effect=cp.SolverError("boom")):
            solution = solve_instance(_instance())
        self.assertEqual(solution.status, engine.SOLVER_ERROR)
        self.assertEqual(format_solution(solution), FAILURE_MESSAGE)


if __name__ == "__main__":
    absltest.main()
