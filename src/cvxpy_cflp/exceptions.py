"""Exception hierarchy for cvxpy-cflp.

Unsuccessful solves (infeasible, unbounded, time limit) are not errors: they
come back as a ``Solution`` whose status is not optimal.
"""

from __future__ import annotations


class CflpError(Exception):
    """Base class for cvxpy-cflp errors."""


class InstanceError(CflpError, ValueError):
    """An instance is internally inconsistent."""


class InstanceFormatError(InstanceError):
    """Instance text could not be parsed."""

    def __init__(self, message: str, line: int | None = None):
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class SolverUnavailableError(CflpError):
    """The configured MILP solver is not installed for CVXPY."""


class DecodingError(CflpError):
    """Solved values could not be turned into an assignment."""
