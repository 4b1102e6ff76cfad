"""One-shot pipeline: instance in, solution out."""

from __future__ import annotations

import os

from cvxpy_cflp.config import SolverConfig
from cvxpy_cflp.decode import Solution, decode_solution
from cvxpy_cflp.engine import solve_model
from cvxpy_cflp.instance import Instance
from cvxpy_cflp.io import format_solution, parse_instance, read_instance
from cvxpy_cflp.model import build_model


def solve_instance(instance: Instance, config: SolverConfig | None = None) -> Solution:
    """Build, solve and decode ``instance``.

    Returns a ``Solution`` whatever the solver status; check
    ``Solution.is_optimal``.
    """
    config = config or SolverConfig()
    model = build_model(instance, config)
    status = solve_model(model, config)
    return decode_solution(model, status, config)


def solve_it(input_data: str, config: SolverConfig | None = None) -> str:
    """Solve an instance given as text and return the text output."""
    return format_solution(solve_instance(parse_instance(input_data), config))


def solve_file(path: str | os.PathLike, config: SolverConfig | None = None) -> tuple[Instance, Solution]:
    """Read and solve an instance file."""
    instance = read_instance(path)
    return instance, solve_instance(instance, config)
