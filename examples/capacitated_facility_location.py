#!/usr/bin/env python3
"""Capacitated Facility Location Problem using cvxpy-cflp.

Five candidate warehouses with opening costs and capacities serve eight
customers. Each customer must be served by exactly one open warehouse, and no
warehouse may ship more than its capacity. The cost of serving a customer is
the straight-line distance to its warehouse.
"""

from cvxpy_cflp import Customer, Facility, Instance, Point, SolverConfig
from cvxpy_cflp.decode import decode_solution, facility_loads
from cvxpy_cflp.engine import solve_model
from cvxpy_cflp.model import build_model

# =============================================================================
# INSTANCE
# =============================================================================

# (setup cost, capacity, x, y)
warehouse_data = [
    (300.0, 30, 10, 10),
    (250.0, 25, 60, 15),
    (400.0, 50, 35, 50),
    (200.0, 20, 80, 70),
    (350.0, 40, 15, 80),
]
facilities = [
    Facility(i, setup, cap, Point(x, y))
    for i, (setup, cap, x, y) in enumerate(warehouse_data)
]

# (demand, x, y)
customer_data = [
    (8, 5, 20), (12, 20, 5), (10, 55, 25), (7, 70, 10),
    (9, 40, 45), (6, 75, 80), (11, 20, 70), (5, 30, 90),
]
customers = [
    Customer(i, demand, Point(x, y))
    for i, (demand, x, y) in enumerate(customer_data)
]

instance = Instance(facilities, customers)

print(f"Candidate warehouses: {instance.facility_count}")
print(f"Customers: {instance.customer_count}")
print(f"Total demand: {instance.total_demand} / total capacity: {instance.total_capacity}")
print()

# =============================================================================
# MODEL
# =============================================================================

config = SolverConfig(time_limit=60)
model = build_model(instance, config)

print(f"Variables: {model.variable_count}")
for name, constraint in model.constraints.items():
    print(f"  {name:10}: {constraint.size} rows")
print()

# =============================================================================
# SOLVE
# =============================================================================

status = solve_model(model, config)
solution = decode_solution(model, status, config)

print(f"Status: {solution.status}")
if not solution.is_optimal:
    raise SystemExit(1)
print(f"Total cost: {solution.total_cost:.2f}")
print()

# =============================================================================
# RESULTS
# =============================================================================

loads = facility_loads(instance, solution.assignment)

print("=== Warehouse Decisions ===")
for f in instance.facilities:
    if f.index in solution.open_facilities:
        print(f"  W{f.index}: OPEN   load {loads[f.index]:3d}/{f.capacity:3d} (setup ${f.setup_cost:.0f})")
    else:
        print(f"  W{f.index}: CLOSED")

print()
print("=== Customer Assignment ===")
for c in instance.customers:
    f = solution.assignment[c.index]
    d = model.distance.get_value((c.index, f))
    print(f"  C{c.index} (demand {c.demand:2d}) -> W{f}  distance {d:6.2f}")
