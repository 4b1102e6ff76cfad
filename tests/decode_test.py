"""Tests for cvxpy_cflp.decode, driven by hand-written variable values."""

from absl.testing import absltest

import cvxpy as cp

from cvxpy_cflp.config import SolverConfig
from cvxpy_cflp.decode import (
    Solution,
    assignment_cost,
    decode_solution,
    decode_values,
    facility_loads,
)
from cvxpy_cflp.exceptions import DecodingError
from cvxpy_cflp.instance import Instance
from cvxpy_cflp.model import build_model


def _instance():
    # Customers at distance 0 and 1 from facility 0, 10 and 9 from facility 1.
    return Instance.from_records(
        [(2.0, 5, 0, 0), (3.0, 10, 10, 0)],
        [(4, 0, 0), (4, 1, 0)],
    )


class DecodeValuesTest(absltest.TestCase):

    def setUp(self):
        super().setUp()
        self.instance = _instance()
        self.model = build_model(self.instance)

    def test_noisy_binary_values(self):
        solution = decode_values(
            self.model,
            [0.9999999, 1.0000001],
            [0.9999998, 1e-9, -1e-9, 0.9999999],
        )
        self.assertTrue(solution.is_optimal)
        self.assertEqual(solution.assignment, (0, 1))
        self.assertEqual(solution.open_facilities, (0, 1))
        self.assertEqual(solution.fallback_customers, ())
        self.assertAlmostEqual(solution.total_cost, 2.0 + 3.0 + 0.0 + 9.0, places=5)

    def test_cost_is_recomputed_from_values(self):
        solution = decode_values(self.model, [1, 0], [1, 0, 1, 0], objective_value=3.0)
        self.assertEqual(solution.total_cost, 3.0)
        self.assertEqual(solution.objective_value, 3.0)
        self.assertEqual(solution.open_facilities, (0,))

    def test_cost_mismatch_is_logged(self):
        with self.assertLogs("cvxpy_cflp.decode", level="WARNING") as logs:
            solution = decode_values(self.model, [1, 0], [1, 0, 1, 0], objective_value=4.0)
        self.assertEqual(solution.total_cost, 3.0)
        self.assertIn("differs from solver objective", logs.output[0])

    def test_first_facility_above_threshold_wins(self):
        solution = decode_values(self.model, [1, 1], [0.6, 0.7, 0.2, 0.8])
        self.assertEqual(solution.assignment, (0, 1))

    def test_custom_threshold(self):
        config = SolverConfig(assignment_threshold=0.65)
        solution = decode_values(self.model, [1, 1], [0.6, 0.7, 0.2, 0.8], config=config)
        self.assertEqual(solution.assignment, (1, 1))

    def test_fallback_to_first_facility(self):
        with self.assertLogs("cvxpy_cflp.decode", level="WARNING") as logs:
            solution = decode_values(self.model, [0, 1], [0.0, 1.0, 0.4, 0.3])
        self.assertEqual(solution.assignment, (1, 0))
        self.assertEqual(solution.fallback_customers, (1,))
        self.assertIn("Customer 1 has no assignment value above 0.5", logs.output[0])

    def test_strict_decoding_raises(self):
        config = SolverConfig(strict_decoding=True)
        with self.assertRaisesRegex(DecodingError, "customer 1"):
            decode_values(self.model, [0, 1], [0.0, 1.0, 0.4, 0.3], config=config)

    def test_shape_mismatch_raises(self):
        with self.assertRaises(DecodingError):
            decode_values(self.model, [1, 0, 0], [1, 0, 1, 0])
        with self.assertRaises(DecodingError):
            decode_values(self.model, [1, 0], [1, 0, 1])

    def test_model_without_problem_raises(self):
        no_customers = build_model(Instance.from_records([(5.0, 1, 0, 0)], []))
        with self.assertRaisesRegex(DecodingError, "no variables to decode"):
            decode_values(no_customers, [0.0], [])
        no_facilities = build_model(Instance.from_records([], [(1, 0, 0)]))
        with self.assertRaisesRegex(DecodingError, "'infeasible'"):
            decode_values(no_facilities, [], [0.0])


class DecodeSolutionTest(absltest.TestCase):

    def test_non_optimal_status(self):
        model = build_model(_instance())
        for status in (cp.INFEASIBLE, cp.UNBOUNDED, cp.USER_LIMIT, cp.OPTIMAL_INACCURATE):
            solution = decode_solution(model, status)
            self.assertFalse(solution.is_optimal)
            self.assertEqual(solution, Solution.failed(status))
            self.assertIsNone(solution.total_cost)
            self.assertEqual(solution.assignment, ())

    def test_structurally_optimal_model(self):
        model = build_model(Instance.from_records([(5.0, 1, 0, 0)], []))
        solution = decode_solution(model, model.structural_status)
        self.assertTrue(solution.is_optimal)
        self.assertEqual(solution.total_cost, 0.0)
        self.assertEqual(solution.assignment, ())
        self.assertEqual(solution.open_facilities, ())


class VerificationHelpersTest(absltest.TestCase):

    def setUp(self):
        super().setUp()
        self.instance = _instance()

    def test_facility_loads(self):
        self.assertEqual(facility_loads(self.instance, (0, 1)), [4, 4])
        self.assertEqual(facility_loads(self.instance, (1, 1)), [0, 8])

    def test_assignment_cost_charges_used_facilities_once(self):
        self.assertEqual(assignment_cost(self.instance, (1, 1)), 3.0 + 10.0 + 9.0)
        self.assertEqual(assignment_cost(self.instance, (0, 1)), 2.0 + 3.0 + 0.0 + 9.0)

    def test_length_mismatch(self):
        with self.assertRaises(ValueError):
            assignment_cost(self.instance, (0,))
        with self.assertRaises(ValueError):
            facility_loads(self.instance, (0, 0, 0))


if __name__ == "__main__":
    absltest.main()
