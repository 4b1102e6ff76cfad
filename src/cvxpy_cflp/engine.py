"""Running a built model through a CVXPY MILP solver."""

from __future__ import annotations

import functools
import logging
import time

import cvxpy as cp

from cvxpy_cflp.config import SolverConfig
from cvxpy_cflp.exceptions import SolverUnavailableError
from cvxpy_cflp.model import FacilityLocationModel

logger = logging.getLogger(__name__)

SOLVER_ERROR = "solver_error"


@functools.lru_cache(maxsize=None)
def ensure_solver(name: str) -> str:
    """Check once per process that ``name`` is usable by CVXPY.

    Raises
    ------
    SolverUnavailableError
        If the solver is not installed.
    """
    name = name.upper()
    installed = cp.installed_solvers()
    if name not in installed:
        raise SolverUnavailableError(
            f"Solver {name!r} is not available. Installed solvers: {', '.join(installed)}"
        )
    logger.info("Using MILP solver %s (cvxpy %s)", name, cp.__version__)
    return name


def solve_model(model: FacilityLocationModel, config: SolverConfig | None = None) -> str:
    """Solve ``model`` in place and return the CVXPY status string.

    Only ``cvxpy.OPTIMAL`` means success. Any other status, including
    ``"solver_error"`` when the backend raises, is returned rather than raised.
    """
    config = config or SolverConfig()
    if model.problem is None:
        return model.structural_status

    ensure_solver(config.solver)
    start = time.perf_counter()
    try:
        model.problem.solve(**config.solve_kwargs())
    except cp.SolverError as e:
        logger.warning("Solver %s failed: %s", config.solver, e)
        return SOLVER_ERROR
    status = model.problem.status
    logger.info(
        "Solve finished with status %s in %.3fs", status, time.perf_counter() - start
    )
    return status
