"""In-memory problem instance: points, facilities and customers.

Facility and customer indices double as positions in the instance sequences
and as keys of the model's index sets.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

import numpy as np

from cvxpy_cflp.exceptions import InstanceError


@dataclass(frozen=True)
class Point:
    x: float
    y: float


def distance(a: Point, b: Point) -> float:
    """Euclidean distance between two points."""
    return math.sqrt((a.x - b.x) ** 2 + (a.y - b.y) ** 2)


@dataclass(frozen=True)
class Facility:
    index: int
    setup_cost: float
    capacity: int
    location: Point

    def __post_init__(self):
        if self.setup_cost < 0:
            raise InstanceError(f"facility {self.index}: negative setup cost {self.setup_cost}")
        if self.capacity < 0:
            raise InstanceError(f"facility {self.index}: negative capacity {self.capacity}")


@dataclass(frozen=True)
class Customer:
    index: int
    demand: int
    location: Point

    def __post_init__(self):
        if self.demand < 0:
            raise InstanceError(f"customer {self.index}: negative demand {self.demand}")


@dataclass(frozen=True)
class Instance:
    """Facilities and customers of one CFLP instance.

    Parameters
    ----------
    facilities : Sequence[Facility]
        Candidate facilities; ``facilities[i].index`` must equal ``i``.
    customers : Sequence[Customer]
        Customers to serve; ``customers[i].index`` must equal ``i``.

    Total capacity is not compared with total demand here. An instance that
    cannot be served is reported as infeasible by the solver.
    """

    facilities: tuple[Facility, ...]
    customers: tuple[Customer, ...]

    def __post_init__(self):
        object.__setattr__(self, "facilities", tuple(self.facilities))
        object.__setattr__(self, "customers", tuple(self.customers))
        for kind, items in (("facility", self.facilities), ("customer", self.customers)):
            for position, item in enumerate(items):
                if item.index != position:
                    raise InstanceError(
                        f"{kind} at position {position} has index {item.index}"
                    )

    @classmethod
    def from_records(
        cls,
        facilities: Iterable[tuple[float, int, float, float]],
        customers: Iterable[tuple[int, float, float]],
    ) -> Instance:
        """Build from ``(setup_cost, capacity, x, y)`` and ``(demand, x, y)`` rows.

        Examples
        --------
        >>> Instance.from_records([(0.0, 10, 0, 0)], [(3, 3, 4), (4, 0, 3)])
        Instance(facilities=1, customers=2)
        """
        return cls(
            tuple(
                Facility(i, float(setup), int(cap), Point(float(x), float(y)))
                for i, (setup, cap, x, y) in enumerate(facilities)
            ),
            tuple(
                Customer(i, int(demand), Point(float(x), float(y)))
                for i, (demand, x, y) in enumerate(customers)
            ),
        )

    @property
    def facility_count(self) -> int:
        return len(self.facilities)

    @property
    def customer_count(self) -> int:
        return len(self.customers)

    @property
    def total_demand(self) -> int:
        return sum(c.demand for c in self.customers)

    @property
    def total_capacity(self) -> int:
        return sum(f.capacity for f in self.facilities)

    def distance_matrix(self) -> np.ndarray:
        """Distances as a (customer_count, facility_count) float64 array.

        Both the objective coefficients and the recomputed solution cost are
        taken from this matrix.
        """
        matrix = np.zeros((self.customer_count, self.facility_count), dtype=np.float64)
        for c in self.customers:
            for f in self.facilities:
                matrix[c.index, f.index] = distance(c.location, f.location)
        return matrix

    def __repr__(self) -> str:
        return (
            f"Instance(facilities={self.facility_count}, "
            f"customers={self.customer_count})"
        )
