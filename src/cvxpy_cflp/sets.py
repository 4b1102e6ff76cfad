"""Set-based indexing for the facility location model.

Decision variables and data are stored as flat CVXPY leaves, but every access
goes through an index ``Set`` that maps keys (a facility index, a customer
index, or a ``(customer, facility)`` pair) to positions. Unknown keys raise
``KeyError`` instead of silently reading a neighbouring entry.

Example
-------
>>> from cvxpy_cflp.sets import Set, Variable, Parameter, sum_by, broadcast
>>>
>>> facilities = Set(range(2), name='facility')
>>> customers = Set(range(3), name='customer')
>>> pairs = Set.cross(customers, facilities, name='connections')
>>>
>>> assign = Variable(pairs, boolean=True, name='assign')
>>> open_ = Variable(facilities, boolean=True, name='open')
>>>
>>> served_once = sum_by(assign, 'customer', index=pairs) == 1
>>> linked = assign <= broadcast(open_, 'facility', index=pairs)
"""

from __future__ import annotations

from itertools import product as itertools_product
from typing import Hashable, Iterable, Sequence

import numpy as np
import scipy.sparse as sp

import cvxpy as cp


def sum_by(
    expr: cp.Expression,
    positions: int | str | list[int] | list[str],
    index: "Set",
) -> cp.Expression:
    """Sum an expression over a compound index, keeping some positions.

    Parameters
    ----------
    expr : cp.Expression
        Expression indexed by ``index``.
    positions : int, str, or list
        Position(s) to keep. The remaining positions are summed out.
    index : Set
        Compound Set indexing ``expr``.

    Returns
    -------
    cp.Expression
        Expression with one entry per distinct key, in order of first
        appearance in ``index``.

    Examples
    --------
    >>> sum_by(assign, 'customer', index=pairs)     # one row per customer
    >>> sum_by(load, 'facility', index=pairs)       # one row per facility
    """
    pos_indices = _positions(index, positions, "sum_by")
    return _build_aggregation_matrix(index, pos_indices) @ expr


def broadcast(
    expr: cp.Expression,
    positions: int | str | list[int] | list[str],
    index: "Set",
    source: "Set | None" = None,
) -> cp.Expression:
    """Repeat an expression over a larger compound index.

    The inverse direction of ``sum_by``: each element of ``index`` picks the
    entry of ``expr`` whose key is found at ``positions``.

    Parameters
    ----------
    expr : cp.Expression
        Expression indexed by ``source``.
    positions : int, str, or list
        Position(s) in ``index`` holding the key into ``source``.
    index : Set
        Compound target Set.
    source : Set, optional
        Set indexing ``expr``. Defaults to ``expr.index`` for a ``Variable``
        or ``Parameter``.

    Examples
    --------
    >>> broadcast(open_, 'facility', index=pairs)   # open[f] for every (c, f)
    """
    if source is None:
        source = getattr(expr, "index", None)
        if not isinstance(source, Set):
            raise ValueError(
                "source is required when broadcasting a plain expression"
            )
    pos_indices = _positions(index, positions, "broadcast")
    return _build_expansion_matrix(source, index, pos_indices) @ expr


class Set:
    """An ordered set of hashable keys.

    Parameters
    ----------
    elements : Iterable[Hashable]
        Keys of the set. Tuples make a compound set.
    name : str, optional
        Name used in error messages and as the default position name when
        the set is crossed with another.
    names : Sequence[str], optional
        Names of the positions of a compound set.

    Examples
    --------
    >>> customers = Set(range(3), name='customer')
    >>> facilities = Set(range(2), name='facility')
    >>> pairs = Set.cross(customers, facilities)
    >>> pairs.names
    ('customer', 'facility')
    >>> pairs.position((1, 0))
    2
    """

    def __init__(
        self,
        elements: Iterable[Hashable],
        name: str | None = None,
        names: Sequence[str] | None = None,
    ):
        self._elements = list(elements)
        self._name = name or f"Set_{id(self)}"
        self._pos = {e: i for i, e in enumerate(self._elements)}
        if len(self._pos) != len(self._elements):
            raise ValueError(f"Set '{self._name}' has duplicate elements")
        self._is_compound = (
            len(self._elements) > 0 and isinstance(self._elements[0], tuple)
        )
        self._names = tuple(names) if names else None

        if self._names and self._is_compound:
            arity = len(self._elements[0])
            if len(self._names) != arity:
                raise ValueError(
                    f"names has {len(self._names)} elements but index tuples "
                    f"have {arity} positions"
                )

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self):
        return iter(self._elements)

    def __contains__(self, elem: Hashable) -> bool:
        try:
            return elem in self._pos
        except TypeError:
            return False

    def __repr__(self) -> str:
        if len(self._elements) <= 5:
            elems = str(self._elements)
        else:
            elems = f"[{self._elements[0]!r}, ..., {self._elements[-1]!r}] ({len(self)} elements)"
        return f"Set({elems}, name={self._name!r})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def names(self) -> tuple[str, ...] | None:
        """Position names for compound sets."""
        return self._names

    @property
    def is_compound(self) -> bool:
        return self._is_compound

    def position(self, elem: Hashable) -> int:
        """Return the position of ``elem``.

        Raises
        ------
        KeyError
            If ``elem`` is not a key of this set.
        """
        if elem not in self:
            raise KeyError(f"Element {elem!r} not in index '{self._name}'")
        return self._pos[elem]

    def _resolve_position(self, key: int | str) -> int:
        if isinstance(key, int):
            return key
        if self._names and key in self._names:
            return self._names.index(key)
        raise KeyError(
            f"Unknown position name: {key!r}. "
            f"Available names: {self._names}"
        )

    @staticmethod
    def cross(
        *indices: Set,
        name: str | None = None,
        names: Sequence[str] | None = None,
    ) -> Set:
        """Cartesian product of sets, first set varying slowest.

        Position names default to the names of the source sets.
        """
        if len(indices) < 2:
            raise ValueError("cross() requires at least 2 indices")

        elements = list(itertools_product(*[idx._elements for idx in indices]))
        if names is None:
            names = tuple(idx._name for idx in indices)
        s = Set(elements, name=name, names=names)
        # An empty product still has a known arity.
        s._is_compound = True
        return s


class Variable(cp.Variable):
    """A CVXPY Variable indexed by a Set.

    Parameters
    ----------
    index : Set
        Keys of the variable entries.
    name : str, optional
        Name for the variable.
    **kwargs
        Passed to ``cp.Variable`` (``boolean=True``, ``nonneg=True``, ...).

    Examples
    --------
    >>> assign = Variable(pairs, boolean=True, name='assign')
    >>> assign[(2, 1)]               # scalar expression for key (2, 1)
    >>> assign.get_value((2, 1))     # solved value, None before solving
    """

    def __init__(self, index: Set, name: str | None = None, **kwargs):
        if len(index) == 0:
            raise ValueError(f"Cannot create a variable over empty index '{index.name}'")
        self._set_index = index
        super().__init__(len(index), name=name, **kwargs)

    @property
    def index(self) -> Set:
        """The Set indexing this variable."""
        return self._set_index

    def __getitem__(self, key):
        if key in self._set_index:
            return super().__getitem__(self._set_index.position(key))
        return super().__getitem__(key)

    def get_value(self, key: Hashable) -> float | None:
        """Solved value for ``key``, or None before a solve.

        Raises
        ------
        KeyError
            If ``key`` is not in the index.
        """
        pos = self._set_index.position(key)
        if self.value is None:
            return None
        return float(self.value[pos])

    def __repr__(self) -> str:
        return f"Variable(index={self._set_index.name!r}, shape={self.shape})"


class Parameter(cp.Parameter):
    """A CVXPY Parameter indexed by a Set.

    Parameters
    ----------
    index : Set
        Keys of the parameter entries.
    data : dict[Hashable, float], optional
        Initial values by key. Missing keys are zero.
    name : str, optional
        Name for the parameter.
    **kwargs
        Passed to ``cp.Parameter``.
    """

    def __init__(
        self,
        index: Set,
        data: dict[Hashable, float] | None = None,
        name: str | None = None,
        **kwargs,
    ):
        if len(index) == 0:
            raise ValueError(f"Cannot create a parameter over empty index '{index.name}'")
        self._set_index = index
        super().__init__(len(index), name=name, **kwargs)
        if data is not None:
            self.set_data(data)

    @property
    def index(self) -> Set:
        """The Set indexing this parameter."""
        return self._set_index

    def set_data(self, data: dict[Hashable, float]) -> None:
        """Set values from a dict keyed by index elements."""
        values = np.zeros(len(self._set_index))
        for elem, val in data.items():
            values[self._set_index.position(elem)] = val
        self.value = values

    def __getitem__(self, key):
        if key in self._set_index:
            return super().__getitem__(self._set_index.position(key))
        return super().__getitem__(key)

    def get_value(self, key: Hashable) -> float | None:
        """Value for ``key``, or None if no data has been set."""
        pos = self._set_index.position(key)
        if self.value is None:
            return None
        return float(self.value[pos])

    def expand(self, target_index: Set, positions: list[int] | list[str]) -> Parameter:
        """Copy this parameter onto a larger compound index.

        Each element of ``target_index`` takes the value stored under the key
        found at ``positions``.

        Examples
        --------
        >>> demand_by_pair = demand.expand(pairs, ['customer'])
        >>> demand_by_pair.get_value((2, 1)) == demand.get_value(2)
        True
        """
        pos_indices = _positions(target_index, positions, "expand")
        if self.value is None:
            raise ValueError(f"Parameter '{self.name()}' has no data to expand")

        result_values = np.zeros(len(target_index))
        for i, elem in enumerate(target_index):
            result_values[i] = self.value[self._set_index.position(_key(elem, pos_indices))]

        result = Parameter(target_index, name=f"{self.name()}_by_{target_index.name}")
        result.value = result_values
        return result

    def __repr__(self) -> str:
        return f"Parameter(index={self._set_index.name!r}, shape={self.shape})"


def _positions(index: Set, positions, caller: str) -> list[int]:
    if not index._is_compound:
        raise ValueError(
            f"{caller}() requires a compound index (tuples). "
            f"Set '{index.name}' contains simple elements."
        )
    if isinstance(positions, (int, str)):
        positions = [positions]
    return [index._resolve_position(p) for p in positions]


def _key(elem: tuple, pos_indices: list[int]) -> Hashable:
    if len(pos_indices) == 1:
        return elem[pos_indices[0]]
    return tuple(elem[i] for i in pos_indices)


def _build_aggregation_matrix(
    index: Set, pos_indices: list[int]
) -> sp.csr_matrix:
    """Sparse 0/1 matrix of shape (n_groups, len(index)) for sum_by."""
    key_to_row: dict[Hashable, int] = {}
    rows: list[int] = []
    for elem in index:
        rows.append(key_to_row.setdefault(_key(elem, pos_indices), len(key_to_row)))

    data = np.ones(len(rows))
    cols = np.arange(len(rows))
    return sp.csr_matrix((data, (rows, cols)), shape=(len(key_to_row), len(index)))


def _build_expansion_matrix(
    source: Set, target: Set, pos_indices: list[int]
) -> sp.csr_matrix:
    """Sparse 0/1 matrix of shape (len(target), len(source)) for broadcast."""
    cols = [source.position(_key(elem, pos_indices)) for elem in target]
    data = np.ones(len(cols))
    rows = np.arange(len(cols))
    return sp.csr_matrix((data, (rows, cols)), shape=(len(target), len(source)))
