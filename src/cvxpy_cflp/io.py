"""Reading instances and writing solutions.

Text format
-----------
::

    <facility_count> <customer_count>
    <setup_cost> <capacity> <x> <y>     one line per facility
    <demand> <x> <y>                    one line per customer

Solutions are written as ``<total_cost> 1`` followed by the facility of each
customer on one line, or as ``FAILURE_MESSAGE`` when no optimal solution was
found.

DataFrames
----------
``instance_to_dataframes``, ``instance_from_dataframes`` and
``solution_to_dataframe`` exchange the same data with pandas.
"""

from __future__ import annotations

import math
import os
from typing import TYPE_CHECKING

from cvxpy_cflp.exceptions import InstanceFormatError
from cvxpy_cflp.instance import Customer, Facility, Instance, Point, distance

if TYPE_CHECKING:
    import pandas as pd

    from cvxpy_cflp.decode import Solution

FAILURE_MESSAGE = "The problem does not have an optimal solution."


def _parse_int(token: str, what: str, line: int) -> int:
    try:
        return int(token)
    except ValueError:
        raise InstanceFormatError(f"{what} must be an integer, got {token!r}", line) from None


def _parse_float(token: str, what: str, line: int) -> float:
    try:
        value = float(token)
    except ValueError:
        raise InstanceFormatError(f"{what} must be a number, got {token!r}", line) from None
    if not math.isfinite(value):
        raise InstanceFormatError(f"{what} must be finite, got {token!r}", line)
    return value


def _fields(line_no: int, tokens: list[str], expected: int, what: str) -> list[str]:
    if len(tokens) != expected:
        raise InstanceFormatError(
            f"{what} line needs {expected} fields, got {len(tokens)}", line_no
        )
    return tokens


def parse_instance(text: str) -> Instance:
    """Parse an instance from the text format.

    Blank lines are skipped; every other line must match its role.

    Raises
    ------
    InstanceFormatError
        On a malformed header or record, a negative quantity, or a line count
        that does not match the header.
    """
    lines = [
        (number, line.split())
        for number, line in enumerate(text.splitlines(), start=1)
        if line.strip()
    ]
    if not lines:
        raise InstanceFormatError("empty instance")

    header_no, header = lines[0]
    _fields(header_no, header, 2, "header")
    facility_count = _parse_int(header[0], "facility count", header_no)
    customer_count = _parse_int(header[1], "customer count", header_no)
    if facility_count < 0 or customer_count < 0:
        raise InstanceFormatError("counts must be non-negative", header_no)

    records = lines[1:]
    expected = facility_count + customer_count
    if len(records) != expected:
        raise InstanceFormatError(
            f"header declares {facility_count} facilities and {customer_count} "
            f"customers ({expected} lines) but {len(records)} lines follow",
            header_no,
        )

    facilities = []
    for i, (line_no, tokens) in enumerate(records[:facility_count]):
        setup, cap, x, y = _fields(line_no, tokens, 4, "facility")
        setup_cost = _parse_float(setup, "setup cost", line_no)
        capacity = _parse_int(cap, "capacity", line_no)
        if setup_cost < 0 or capacity < 0:
            raise InstanceFormatError("setup cost and capacity must be non-negative", line_no)
        location = Point(_parse_float(x, "x", line_no), _parse_float(y, "y", line_no))
        facilities.append(Facility(i, setup_cost, capacity, location))

    customers = []
    for i, (line_no, tokens) in enumerate(records[facility_count:]):
        dem, x, y = _fields(line_no, tokens, 3, "customer")
        demand = _parse_int(dem, "demand", line_no)
        if demand < 0:
            raise InstanceFormatError("demand must be non-negative", line_no)
        location = Point(_parse_float(x, "x", line_no), _parse_float(y, "y", line_no))
        customers.append(Customer(i, demand, location))

    return Instance(facilities, customers)


def read_instance(path: str | os.PathLike) -> Instance:
    """Parse an instance file."""
    with open(path, encoding="utf-8") as f:
        return parse_instance(f.read())


def format_instance(instance: Instance) -> str:
    """Render an instance in the text format."""
    lines = [f"{instance.facility_count} {instance.customer_count}"]
    for f in instance.facilities:
        lines.append(f"{f.setup_cost!r} {f.capacity} {f.location.x!r} {f.location.y!r}")
    for c in instance.customers:
        lines.append(f"{c.demand} {c.location.x!r} {c.location.y!r}")
    return "\n".join(lines) + "\n"


def format_solution(solution: Solution) -> str:
    """Render a solution: two lines when optimal, ``FAILURE_MESSAGE`` otherwise."""
    if not solution.is_optimal:
        return FAILURE_MESSAGE
    head = f"{solution.total_cost!r} 1"
    return head + "\n" + " ".join(str(f) for f in solution.assignment)


def _check_pandas():
    """Check that pandas is available."""
    try:
        import pandas  # noqa: F401

        return True
    except ImportError:
        raise ImportError(
            "pandas is required for DataFrame I/O. "
            "Install it with: pip install 'cvxpy-cflp[pandas]'"
        )


FACILITY_COLUMNS = ["setup_cost", "capacity", "x", "y"]
CUSTOMER_COLUMNS = ["demand", "x", "y"]


def instance_to_dataframes(instance: Instance) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Facilities and customers as two DataFrames indexed by position.

    Examples
    --------
    >>> facilities, customers = instance_to_dataframes(instance)
    >>> facilities.columns.tolist()
    ['setup_cost', 'capacity', 'x', 'y']
    """
    _check_pandas()
    import pandas as pd

    facilities = pd.DataFrame(
        [[f.setup_cost, f.capacity, f.location.x, f.location.y] for f in instance.facilities],
        columns=FACILITY_COLUMNS,
    )
    customers = pd.DataFrame(
        [[c.demand, c.location.x, c.location.y] for c in instance.customers],
        columns=CUSTOMER_COLUMNS,
    )
    facilities.index.name = "facility"
    customers.index.name = "customer"
    return facilities, customers


def _cell_float(value, what: str, where: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InstanceFormatError(f"{where}: {what} must be a number, got {value!r}") from None
    if not math.isfinite(number):
        raise InstanceFormatError(f"{where}: {what} must be finite, got {value!r}")
    return number


def _cell_int(value, what: str, where: str) -> int:
    number = _cell_float(value, what, where)
    if not number.is_integer():
        raise InstanceFormatError(f"{where}: {what} must be an integer, got {value!r}")
    return int(number)


def instance_from_dataframes(facilities: pd.DataFrame, customers: pd.DataFrame) -> Instance:
    """Build an instance from DataFrames with the columns of
    ``instance_to_dataframes``. Row order defines the indices.

    Raises
    ------
    InstanceFormatError
        If a required column is missing, a capacity or demand is not
        integral, or a cost or coordinate is not a finite number.
    """
    _check_pandas()

    for frame, columns, what in (
        (facilities, FACILITY_COLUMNS, "facilities"),
        (customers, CUSTOMER_COLUMNS, "customers"),
    ):
        missing = [col for col in columns if col not in frame.columns]
        if missing:
            raise InstanceFormatError(f"{what} frame is missing columns {missing}")

    parsed_facilities = []
    for i, row in enumerate(facilities.itertuples(index=False)):
        where = f"facility row {i}"
        location = Point(_cell_float(row.x, "x", where), _cell_float(row.y, "y", where))
        parsed_facilities.append(
            Facility(
                i,
                _cell_float(row.setup_cost, "setup cost", where),
                _cell_int(row.capacity, "capacity", where),
                location,
            )
        )

    parsed_customers = []
    for i, row in enumerate(customers.itertuples(index=False)):
        where = f"customer row {i}"
        location = Point(_cell_float(row.x, "x", where), _cell_float(row.y, "y", where))
        parsed_customers.append(Customer(i, _cell_int(row.demand, "demand", where), location))

    return Instance(parsed_facilities, parsed_customers)


def solution_to_dataframe(instance: Instance, solution: Solution) -> pd.DataFrame:
    """One row per customer with its facility, demand and travel distance.

    Raises
    ------
    ValueError
        If the solution is not optimal.

    Examples
    --------
    >>> solution_to_dataframe(instance, solution).head()
       customer  facility  demand  distance
    0         0         1       3       5.0
    """
    _check_pandas()
    import pandas as pd

    if not solution.is_optimal:
        raise ValueError(f"Solution has status {solution.status!r}; nothing to export.")

    rows = []
    for customer, f in zip(instance.customers, solution.assignment):
        rows.append(
            [
                customer.index,
                f,
                customer.demand,
                distance(customer.location, instance.facilities[f].location),
            ]
        )
    return pd.DataFrame(rows, columns=["customer", "facility", "demand", "distance"])
