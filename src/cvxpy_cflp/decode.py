"""Turning solved variable values into a customer -> facility assignment."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

import cvxpy as cp

from cvxpy_cflp.config import SolverConfig
from cvxpy_cflp.exceptions import DecodingError
from cvxpy_cflp.instance import Instance, distance
from cvxpy_cflp.model import FacilityLocationModel

logger = logging.getLogger(__name__)

FALLBACK_FACILITY = 0


@dataclass(frozen=True)
class Solution:
    """Outcome of one solve.

    Attributes
    ----------
    status : str
        CVXPY status string; only ``"optimal"`` carries a solution.
    total_cost : float or None
        Cost recomputed from the decoded values, None on failure.
    assignment : tuple of int
        Facility index serving each customer, in customer order.
    open_facilities : tuple of int
        Facilities whose ``open`` value is above the decoding threshold,
        ascending.
    objective_value : float or None
        The solver's own objective value, if any.
    fallback_customers : tuple of int
        Customers with no assignment value above the threshold, which were
        given facility 0.
    """

    status: str
    total_cost: float | None = None
    assignment: tuple[int, ...] = ()
    open_facilities: tuple[int, ...] = ()
    objective_value: float | None = None
    fallback_customers: tuple[int, ...] = ()

    @property
    def is_optimal(self) -> bool:
        return self.status == cp.OPTIMAL

    @classmethod
    def failed(cls, status: str) -> Solution:
        return cls(status=status)


def decode_solution(
    model: FacilityLocationModel, status: str, config: SolverConfig | None = None
) -> Solution:
    """Decode the values held by a solved model.

    ``status`` is what ``engine.solve_model`` returned for ``model``.
    """
    if status != cp.OPTIMAL:
        return Solution.failed(status)
    if model.problem is None:
        return Solution(status=status, total_cost=0.0, objective_value=0.0)
    return decode_values(
        model,
        model.open.value,
        model.assign.value,
        objective_value=model.problem.value,
        config=config,
    )


def decode_values(
    model: FacilityLocationModel,
    open_values: Sequence[float],
    assign_values: Sequence[float],
    objective_value: float | None = None,
    config: SolverConfig | None = None,
) -> Solution:
    """Decode raw variable values laid out in the model's index order.

    Parameters
    ----------
    model : FacilityLocationModel
        The model the values belong to.
    open_values : array_like
        One value per facility, ordered as ``model.facilities``.
    assign_values : array_like
        One value per pair, ordered as ``model.connections``.
    objective_value : float, optional
        The solver's objective, compared against the recomputed cost.
    config : SolverConfig, optional
        Threshold, tolerance and strictness settings.

    Raises
    ------
    DecodingError
        With ``config.strict_decoding`` when some customer has no value above
        the threshold, when the arrays do not match the model, or when the
        model was built without a problem (no customers or no facilities).
    """
    if model.problem is None:
        raise DecodingError(
            f"model has no variables to decode (structural status "
            f"{model.structural_status!r})"
        )
    config = config or SolverConfig()
    open_values = np.asarray(open_values, dtype=np.float64).ravel()
    assign_values = np.asarray(assign_values, dtype=np.float64).ravel()
    if open_values.shape != (len(model.facilities),):
        raise DecodingError(
            f"expected {len(model.facilities)} open values, got {open_values.size}"
        )
    if assign_values.shape != (len(model.connections),):
        raise DecodingError(
            f"expected {len(model.connections)} assign values, got {assign_values.size}"
        )

    total_cost = float(
        model.setup_cost.value @ open_values + model.distance.value @ assign_values
    )
    if objective_value is not None and not np.isclose(
        total_cost, objective_value, rtol=config.cost_tolerance, atol=config.cost_tolerance
    ):
        logger.warning(
            "Recomputed cost %r differs from solver objective %r", total_cost, objective_value
        )

    threshold = config.assignment_threshold
    assignment: list[int] = []
    fallback: list[int] = []
    for c in model.customers:
        for f in model.facilities:
            if assign_values[model.connections.position((c, f))] > threshold:
                assignment.append(f)
                break
        else:
            if config.strict_decoding:
                raise DecodingError(
                    f"customer {c} has no assignment value above {threshold}"
                )
            logger.warning(
                "Customer %d has no assignment value above %s; using facility %d",
                c,
                threshold,
                FALLBACK_FACILITY,
            )
            assignment.append(FALLBACK_FACILITY)
            fallback.append(c)

    open_facilities = tuple(
        f for f in model.facilities if open_values[model.facilities.position(f)] > threshold
    )
    return Solution(
        status=cp.OPTIMAL,
        total_cost=total_cost,
        assignment=tuple(assignment),
        open_facilities=open_facilities,
        objective_value=None if objective_value is None else float(objective_value),
        fallback_customers=tuple(fallback),
    )


def facility_loads(instance: Instance, assignment: Sequence[int]) -> list[int]:
    """Demand served by each facility under ``assignment``."""
    if len(assignment) != instance.customer_count:
        raise ValueError(
            f"assignment has {len(assignment)} entries for {instance.customer_count} customers"
        )
    loads = [0] * instance.facility_count
    for customer, f in zip(instance.customers, assignment):
        loads[f] += customer.demand
    return loads


def assignment_cost(instance: Instance, assignment: Sequence[int]) -> float:
    """Cost implied by an assignment alone.

    Opening costs are charged for the facilities serving at least one
    customer, plus the distance of every customer to its facility.
    """
    if len(assignment) != instance.customer_count:
        raise ValueError(
            f"assignment has {len(assignment)} entries for {instance.customer_count} customers"
        )
    used = sorted(set(assignment))
    cost = sum(instance.facilities[f].setup_cost for f in used)
    for customer, f in zip(instance.customers, assignment):
        cost += distance(customer.location, instance.facilities[f].location)
    return float(cost)
