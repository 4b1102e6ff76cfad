"""Solver and decoding configuration."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


class LinkingForm(enum.Enum):
    """Encoding of the "no service unless open" rows.

    ``INEQUALITY`` is ``assign[c, f] - open[f] <= 0``. ``EQUALITY`` pins the
    same expression to 0, reproducing the legacy formulation: it forces an
    open facility to serve every customer, so at most one facility opens.
    """

    INEQUALITY = "inequality"
    EQUALITY = "equality"


# Option names each backend uses for a wall-clock limit in seconds.
_TIME_LIMIT_OPTIONS = {
    "SCIPY": lambda t: {"scipy_options": {"time_limit": t}},
    "HIGHS": lambda t: {"time_limit": t},
    "SCIP": lambda t: {"scip_params": {"limits/time": t}},
    "CBC": lambda t: {"maximumSeconds": t},
    "GUROBI": lambda t: {"TimeLimit": t},
}


@dataclass(frozen=True)
class SolverConfig:
    """Settings for one solve.

    Attributes
    ----------
    solver : str
        CVXPY solver name; must handle boolean variables.
    time_limit : float or None
        Wall-clock limit in seconds, or None for no limit.
    verbose : bool
        Forward the solver's own log.
    linking : LinkingForm
        Encoding of the linking rows.
    assignment_threshold : float
        A value above this counts as 1 when decoding.
    cost_tolerance : float
        Relative tolerance between the recomputed cost and the solver's
        objective before a warning is logged.
    strict_decoding : bool
        Raise instead of falling back to facility 0 when a customer has no
        assignment above the threshold.
    solver_options : dict
        Extra keyword arguments for ``Problem.solve``.
    """

    solver: str = "SCIPY"
    time_limit: float | None = None
    verbose: bool = False
    linking: LinkingForm = LinkingForm.INEQUALITY
    assignment_threshold: float = 0.5
    cost_tolerance: float = 1e-6
    strict_decoding: bool = False
    solver_options: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not 0.0 < self.assignment_threshold < 1.0:
            raise ValueError(
                f"assignment_threshold must be in (0, 1), got {self.assignment_threshold}"
            )
        if self.time_limit is not None and self.time_limit <= 0:
            raise ValueError(f"time_limit must be positive, got {self.time_limit}")
        if self.cost_tolerance < 0:
            raise ValueError(f"cost_tolerance must be non-negative, got {self.cost_tolerance}")
        if isinstance(self.linking, str):
            object.__setattr__(self, "linking", LinkingForm(self.linking))
        object.__setattr__(self, "solver", self.solver.upper())

    def solve_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``cvxpy.Problem.solve``."""
        kwargs: dict[str, Any] = {"solver": self.solver, "verbose": self.verbose}
        if self.time_limit is not None:
            if self.solver not in _TIME_LIMIT_OPTIONS:
                raise ValueError(f"time_limit is not supported for solver {self.solver}")
            kwargs.update(_TIME_LIMIT_OPTIONS[self.solver](self.time_limit))
        for key, value in self.solver_options.items():
            if isinstance(value, dict) and isinstance(kwargs.get(key), dict):
                kwargs[key] = {**kwargs[key], **value}
            else:
                kwargs[key] = value
        return kwargs
