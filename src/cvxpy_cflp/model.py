"""MILP formulation of the capacitated facility location problem.

Variables
---------
open[f]       1 if facility f is opened
assign[c, f]  1 if customer c is served by facility f

Model
-----
minimize    sum_f setup_cost[f] * open[f] + sum_{c,f} distance[c, f] * assign[c, f]
subject to  sum_f assign[c, f] == 1                        for every customer c
            assign[c, f] - open[f] <= 0                    for every pair (c, f)
            sum_c demand[c] * assign[c, f] <= capacity[f]  for every facility f
            open, assign binary
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import cvxpy as cp

from cvxpy_cflp.config import LinkingForm, SolverConfig
from cvxpy_cflp.instance import Instance
from cvxpy_cflp.sets import Parameter, Set, Variable, broadcast, sum_by

logger = logging.getLogger(__name__)


@dataclass
class FacilityLocationModel:
    """A built model together with the index sets and leaves it was built from.

    ``problem`` is None for degenerate instances (no customers, or customers
    but no facilities). Their outcome is known without solving and is held in
    ``structural_status``.
    """

    instance: Instance
    facilities: Set
    customers: Set
    connections: Set
    open: Variable | None = None
    assign: Variable | None = None
    setup_cost: Parameter | None = None
    capacity: Parameter | None = None
    demand: Parameter | None = None
    distance: Parameter | None = None
    constraints: dict[str, cp.Constraint] = field(default_factory=dict)
    problem: cp.Problem | None = None
    structural_status: str | None = None

    @property
    def variable_count(self) -> int:
        return sum(v.size for v in (self.open, self.assign) if v is not None)

    @property
    def row_count(self) -> int:
        return sum(c.size for c in self.constraints.values())


def build_model(instance: Instance, config: SolverConfig | None = None) -> FacilityLocationModel:
    """Build the MILP for ``instance``.

    Parameters
    ----------
    instance : Instance
        The problem data.
    config : SolverConfig, optional
        Only ``config.linking`` is used here.

    Returns
    -------
    FacilityLocationModel
        The model with a ``cp.Problem`` ready to solve, or a degenerate
        model whose ``structural_status`` is already set.
    """
    config = config or SolverConfig()

    facilities = Set(range(instance.facility_count), name="facility")
    customers = Set(range(instance.customer_count), name="customer")
    connections = Set.cross(customers, facilities, name="connections")
    model = FacilityLocationModel(instance, facilities, customers, connections)

    if instance.customer_count == 0:
        # Nothing to serve: keep every facility closed.
        model.structural_status = cp.OPTIMAL
        logger.info("Instance has no customers; optimal solution is empty")
        return model
    if instance.facility_count == 0:
        model.structural_status = cp.INFEASIBLE
        logger.info(
            "Instance has %d customers and no facilities; model is infeasible",
            instance.customer_count,
        )
        return model

    model.setup_cost = Parameter(
        facilities,
        data={f.index: f.setup_cost for f in instance.facilities},
        name="setup_cost",
    )
    model.capacity = Parameter(
        facilities,
        data={f.index: f.capacity for f in instance.facilities},
        name="capacity",
    )
    model.demand = Parameter(
        customers,
        data={c.index: c.demand for c in instance.customers},
        name="demand",
    )
    distances = instance.distance_matrix()
    model.distance = Parameter(
        connections,
        data={(c, f): distances[c, f] for c, f in connections},
        name="distance",
    )

    model.open = Variable(facilities, boolean=True, name="open")
    model.assign = Variable(connections, boolean=True, name="assign")

    objective = cp.Minimize(model.setup_cost @ model.open + model.distance @ model.assign)

    served = sum_by(model.assign, "customer", index=connections)
    model.constraints["assignment"] = served == 1

    link = model.assign - broadcast(model.open, "facility", index=connections)
    if config.linking is LinkingForm.EQUALITY:
        model.constraints["linking"] = link == 0
    else:
        model.constraints["linking"] = link <= 0

    load = sum_by(
        cp.multiply(model.demand.expand(connections, ["customer"]), model.assign),
        "facility",
        index=connections,
    )
    model.constraints["capacity"] = load <= model.capacity

    model.problem = cp.Problem(objective, list(model.constraints.values()))

    logger.info(
        "Built model for %r: %d variables, %d constraint rows (%s linking)",
        instance,
        model.variable_count,
        model.row_count,
        config.linking.value,
    )
    for name, constraint in model.constraints.items():
        logger.debug("  %s: %d rows", name, constraint.size)
    return model
