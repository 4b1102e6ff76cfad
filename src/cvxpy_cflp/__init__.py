"""cvxpy-cflp: exact capacitated facility location with CVXPY.

Facilities with opening costs and capacities serve customers with demands;
each customer goes to exactly one open facility, and the sum of opening costs
and Euclidean service distances is minimized. The problem is written as a
binary MILP over set-indexed CVXPY variables and solved with any MILP solver
CVXPY supports (SciPy's HiGHS by default).

Example
-------
>>> from cvxpy_cflp import parse_instance, solve_instance, format_solution
>>>
>>> instance = parse_instance('''
... 1 2
... 0 10 0 0
... 3 3 4
... 4 0 3
... ''')
>>> solution = solve_instance(instance)
>>> print(format_solution(solution))
8.0 1
0 0
"""

from cvxpy_cflp.config import LinkingForm, SolverConfig
from cvxpy_cflp.decode import Solution, assignment_cost, decode_solution, facility_loads
from cvxpy_cflp.engine import ensure_solver, solve_model
from cvxpy_cflp.exceptions import (
    CflpError,
    DecodingError,
    InstanceError,
    InstanceFormatError,
    SolverUnavailableError,
)
from cvxpy_cflp.instance import Customer, Facility, Instance, Point, distance
from cvxpy_cflp.io import FAILURE_MESSAGE, format_solution, parse_instance, read_instance
from cvxpy_cflp.model import FacilityLocationModel, build_model
from cvxpy_cflp.solver import solve_file, solve_instance, solve_it

__all__ = [
    "CflpError",
    "Customer",
    "DecodingError",
    "FAILURE_MESSAGE",
    "Facility",
    "FacilityLocationModel",
    "Instance",
    "InstanceError",
    "InstanceFormatError",
    "LinkingForm",
    "Point",
    "Solution",
    "SolverConfig",
    "SolverUnavailableError",
    "assignment_cost",
    "build_model",
    "decode_solution",
    "distance",
    "ensure_solver",
    "facility_loads",
    "format_solution",
    "parse_instance",
    "read_instance",
    "solve_file",
    "solve_instance",
    "solve_it",
    "solve_model",
]
__version__ = "0.1.0"
