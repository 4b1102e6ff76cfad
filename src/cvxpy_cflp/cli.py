"""Command line entry point.

Usage:
  cvxpy-cflp examples/data/fl_3_8.txt
  cvxpy-cflp --time_limit=60 --assignment_csv=out.csv examples/data/fl_3_8.txt
"""

from collections.abc import Sequence

from absl import app
from absl import flags
from absl import logging

from cvxpy_cflp.config import LinkingForm, SolverConfig
from cvxpy_cflp.io import format_solution, solution_to_dataframe
from cvxpy_cflp.solver import solve_file

_SOLVER = flags.DEFINE_string(
    "solver", "SCIPY", "CVXPY solver to use; must support boolean variables."
)
_TIME_LIMIT = flags.DEFINE_float(
    "time_limit", None, "Solve time limit in seconds. No limit if unset."
)
_LINKING = flags.DEFINE_enum_class(
    "linking",
    LinkingForm.INEQUALITY,
    LinkingForm,
    "Encoding of the assign <= open rows.",
)
_THRESHOLD = flags.DEFINE_float(
    "threshold", 0.5, "Assignment values above this count as 1."
)
_STRICT_DECODING = flags.DEFINE_bool(
    "strict_decoding",
    False,
    "Fail instead of falling back to facility 0 for unassigned customers.",
)
_VERBOSE_SOLVER = flags.DEFINE_bool("verbose_solver", False, "Print the solver log.")
_ASSIGNMENT_CSV = flags.DEFINE_string(
    "assignment_csv", None, "Write the customer assignment table to this CSV file."
)


def config_from_flags() -> SolverConfig:
    return SolverConfig(
        solver=_SOLVER.value,
        time_limit=_TIME_LIMIT.value,
        verbose=_VERBOSE_SOLVER.value,
        linking=_LINKING.value,
        assignment_threshold=_THRESHOLD.value,
        strict_decoding=_STRICT_DECODING.value,
    )


def main(argv: Sequence[str]) -> None:
    if len(argv) != 2:
        raise app.UsageError("Expected exactly one instance file.")

    instance, solution = solve_file(argv[1], config_from_flags())
    print(format_solution(solution))

    if _ASSIGNMENT_CSV.value and solution.is_optimal:
        solution_to_dataframe(instance, solution).to_csv(_ASSIGNMENT_CSV.value, index=False)
        logging.info("Wrote assignment to %s", _ASSIGNMENT_CSV.value)


def run() -> None:
    app.run(main)


if __name__ == "__main__":
    run()
