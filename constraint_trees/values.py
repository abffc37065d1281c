# constraint_trees - Python library for hierarchical constraint systems.
# Copyright 2025 Mirko Hahn
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
'''
Base class for values and reduction helpers.
'''

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
import operator
from typing import Any, ClassVar, Self, TypeVar

import numpy
from numpy.typing import ArrayLike, NDArray

from .errors import IndexOutOfRange, RenumberingError
from .typing import JSONData, JSONSerializable, plain
from .util.sparse import MappingLike


__all__ = [
    'Value',
    'preduce',
    'psum',
]


T = TypeVar('T')

_EMPTY = object()


def preduce(op: Callable[[T, T], T], xs: Iterable[T], init: T) -> T:
    '''
    Reduce in the shape of a balanced binary merge tree.

    This is equivalent to `functools.reduce(op, xs, init)` for associative
    operations, but combines operands of similar size, as a merge sort
    would. When the reduced value grows with every item (as sparse values
    do when summed), this keeps the total cost around `O(n log n)` instead
    of `O(n^2)`. It also keeps floating-point sums reasonably accurate.

    The relative order of the items is preserved, so `op` does not need to
    be commutative.

    :param op: Associative binary operation.
    :param xs: Items to reduce.
    :param init: Left identity of `op`. Returned for empty `xs`.
    '''
    # Slot `k` holds the reduction of a run of `2**k` consecutive items;
    # higher slots hold earlier runs. Adding an item works like a binary
    # increment with carry.
    slots: list[Any] = []
    for item in xs:
        k = 0
        while k < len(slots) and slots[k] is not _EMPTY:
            item = op(slots[k], item)
            slots[k] = _EMPTY
            k += 1
        if k == len(slots):
            slots.append(item)
        else:
            slots[k] = item

    result = init
    for item in reversed(slots):
        if item is not _EMPTY:
            result = op(result, item)
    return result


def psum(xs: Iterable[Any], init: Any = 0.0) -> Any:
    '''
    Sum with :func:`preduce`.

    Much faster than the built-in `sum` for long sequences of values.
    '''
    return preduce(operator.add, xs, init)


def sink_function(sink: Any) -> Callable[[int], Any]:
    if callable(sink):
        return sink
    for name in ('append', 'add'):
        func = getattr(sink, name, None)
        if func is not None:
            return func
    raise TypeError(f'cannot push variable indexes into '
                    f'{type(sink).__name__}')


def assignment_lookup(y: ArrayLike, idxs: NDArray[numpy.int64]
                      ) -> NDArray[numpy.float64]:
    '''
    Read variable values for an index array from an assignment vector.

    Index 0 reads as `1.0` and is never looked up in `y`.

    :raise IndexOutOfRange: An index exceeds the assignment vector.
    '''
    vals = numpy.asarray(y, dtype=numpy.float64).reshape(-1)
    out = numpy.ones(idxs.shape, dtype=numpy.float64)
    mask = idxs != 0
    try:
        out[mask] = vals[idxs[mask]]
    except IndexError as exc:
        raise IndexOutOfRange(
            f'variable index {int(idxs.max())} out of range for an '
            f'assignment of length {len(vals)}'
        ) from exc
    return out


def assignment_item(y: Any, idx: int) -> Any:
    '''
    Read the entry of an arbitrary assignment for one variable index.

    :raise IndexOutOfRange: `y` is too short.
    '''
    try:
        return y[idx]
    except IndexError as exc:
        raise IndexOutOfRange(
            f'variable index {idx} out of range for an assignment of '
            f'length {len(y)}'
        ) from exc


class Value(ABC, JSONSerializable):
    '''
    Abstract base class for sparse affine combinations of variables.

    A value stores an index array and a weight array. Index 0 denotes the
    affine element, which always evaluates to 1. Both arrays are shared
    between values derived from each other and must not be modified.

    Subclasses that set the `kind` class attribute are registered under
    that name, which identifies them in the dictionary interchange format.
    '''
    kind: ClassVar[str]
    _kinds: ClassVar[dict[str, type['Value']]] = {}

    _idxs: NDArray[numpy.int64]
    _weights: NDArray[numpy.float64]

    # Make NumPy scalars defer to the reflected operators of values.
    __array_ufunc__ = None

    __hash__ = None                                         # type: ignore

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if 'kind' in cls.__dict__:
            Value._kinds[cls.kind] = cls

    @staticmethod
    def by_kind(kind: str) -> type['Value']:
        '''
        Look up a value class by its `kind`.

        :raise KeyError: No value class has that kind.
        '''
        return Value._kinds[kind]

    @classmethod
    def _wrap(cls, idxs: NDArray[numpy.int64],
              weights: NDArray[numpy.float64]) -> Self:
        '''Create a value from arrays known to satisfy all invariants.'''
        obj = object.__new__(cls)
        idxs.setflags(write=False)
        weights.setflags(write=False)
        obj._idxs = idxs
        obj._weights = weights
        return obj

    @property
    def idxs(self) -> NDArray[numpy.int64]:
        '''Variable indexes, in canonical order.'''
        return self._idxs

    @property
    def weights(self) -> NDArray[numpy.float64]:
        '''Weights of the entries in :attr:`idxs`.'''
        return self._weights

    @property
    @abstractmethod
    def variable_count(self) -> int:
        '''
        Largest variable index used by the value.

        This is the number of variables an assignment vector must provide
        (besides the affine element). Takes constant time.
        '''
        pass

    @abstractmethod
    def validate(self) -> None:
        '''
        Check the index invariants.

        :raise ValueError: Indexes are negative, out of order or
            duplicated.
        '''
        pass

    @abstractmethod
    def renumber(self, mapping: MappingLike) -> Self:
        '''
        Map all variable indexes through `mapping`.

        The mapping must be monotonically increasing and must map 0 to 0.
        This is not checked unless
        :attr:`~constraint_trees.options.Options.check_renumbering` is set.
        '''
        pass

    @abstractmethod
    def collect_variables(self, sink: Any) -> None:
        '''
        Push every variable index occurrence into `sink`.

        `sink` is either a function of one index or a container with an
        `append` or `add` method. Duplicates and index 0 are pushed too.
        '''
        pass

    @abstractmethod
    def evaluate(self, y: ArrayLike) -> float:
        '''
        Evaluate the value for a numeric variable assignment.

        `y[k]` holds the value of variable `k`; `y[0]` is ignored.

        :raise IndexOutOfRange: `y` is too short.
        '''
        pass

    @abstractmethod
    def substitute(self, y: Any) -> Any:
        '''
        Substitute arbitrary objects for the variables.

        Unlike :meth:`evaluate`, the entries of `y` may be anything that
        supports multiplication by a float and addition, e.g. other values
        or expressions of an external modeling library.

        :raise IndexOutOfRange: `y` is too short.
        '''
        pass

    def drop_zeros(self) -> Self:
        '''Remove entries whose weight is exactly zero.'''
        mask = self._weights != 0.0
        return type(self)._wrap(self._idxs[mask], self._weights[mask])

    def _check_renumbered(self, idxs: NDArray[numpy.int64],
                          ordered: bool) -> None:
        if not ordered or numpy.any(idxs[self._idxs == 0] != 0):
            raise RenumberingError(
                f'renumbering broke the index order of {self!r}'
            )

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return (
            numpy.array_equal(self._idxs, other._idxs)
            and numpy.array_equal(self._weights, other._weights)
        )

    def __repr__(self) -> str:
        return (f'{type(self).__name__}(idxs={self._idxs.tolist()!r}, '
                f'weights={self._weights.tolist()!r})')

    def toJSON(self) -> JSONData:
        return {'idxs': plain(self._idxs), 'weights': plain(self._weights)}

    @classmethod
    def fromJSON(cls, obj: JSONData) -> Self:
        '''
        Rebuild a value from a dictionary with `idxs` and `weights`.

        :raise ValueError: The data violates the index invariants.
        '''
        if not isinstance(obj, dict):
            raise ValueError(f'cannot read {cls.__name__} from {obj!r}')
        val = cls(obj['idxs'], obj['weights'])
        val.validate()
        return val
