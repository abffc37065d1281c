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
Sparse affine-linear combinations of variables.
'''

import logging
import numbers
from typing import Any, Self

import numpy
from numpy.typing import ArrayLike
import scipy.sparse

from .options import options
from .util.sparse import (
    MappingLike,
    add_linear,
    is_strictly_increasing,
    multiply_linear,
    remap,
)
from .values import (
    Value,
    assignment_item,
    assignment_lookup,
    psum,
    sink_function,
)


__all__ = ['LinearValue']


logger = logging.getLogger(__name__)


class LinearValue(Value):
    '''
    Affine-linear combination of variables.

    The value is `sum(w * x[i] for i, w in zip(idxs, weights))` where
    `x[0] == 1` denotes the affine element. Indexes are strictly
    increasing. Entries with zero weight are kept until :meth:`drop_zeros`
    is called.

    Linear values can be added to and subtracted from each other and from
    real numbers, scaled by real numbers and multiplied with each other,
    which gives a :class:`~constraint_trees.quadratic.QuadraticValue`.
    '''
    kind = 'linear'

    def __init__(self, idxs: ArrayLike = (), weights: ArrayLike = ()):
        idxs = numpy.array(idxs, dtype=numpy.int64).reshape(-1)
        weights = numpy.array(weights, dtype=numpy.float64).reshape(-1)
        if idxs.shape != weights.shape:
            raise ValueError(f'got {len(idxs)} indexes but {len(weights)} '
                             'weights')
        idxs.setflags(write=False)
        weights.setflags(write=False)
        self._idxs = idxs
        self._weights = weights
        if options.check_values:
            self.validate()

    @classmethod
    def zero(cls) -> Self:
        '''Value without any entries.'''
        return cls()

    @classmethod
    def constant(cls, c: float) -> Self:
        '''Constant value. Zero constants have no entries.'''
        if c == 0:
            return cls()
        return cls([0], [c])

    @classmethod
    def variable(cls, idx: int, weight: float = 1.0) -> Self:
        '''Single variable with a weight.'''
        return cls([idx], [weight])

    @classmethod
    def from_sparse(cls, vec: Any) -> Self:
        '''
        Create a value from a dense or sparse vector.

        Position `k` of the vector is the weight of variable `k`, so
        position 0 holds the constant term. Sparse matrices must have a
        single row or a single column. Explicitly stored zeros are kept;
        dense zeros are skipped.
        '''
        if scipy.sparse.issparse(vec):
            coo = scipy.sparse.coo_matrix(vec)
            if coo.shape[0] == 1:
                idxs = coo.col
            elif coo.shape[1] == 1:
                idxs = coo.row
            else:
                raise ValueError(f'expected a sparse vector, got shape '
                                 f'{coo.shape}')
            idxs = idxs.astype(numpy.int64)
            uniq, inv = numpy.unique(idxs, return_inverse=True)
            weights = numpy.bincount(inv.reshape(-1), weights=coo.data,
                                     minlength=len(uniq))
            return cls._wrap(uniq, weights.astype(numpy.float64))

        arr = numpy.asarray(vec, dtype=numpy.float64)
        if arr.ndim > 1 and sum(n > 1 for n in arr.shape) > 1:
            raise ValueError(f'expected a vector, got shape {arr.shape}')
        arr = arr.reshape(-1)
        idxs = numpy.flatnonzero(arr).astype(numpy.int64)
        return cls._wrap(idxs, arr[idxs])

    @property
    def variable_count(self) -> int:
        if len(self._idxs) == 0:
            return 0
        return int(self._idxs[-1])

    def validate(self) -> None:
        if numpy.any(self._idxs < 0):
            raise ValueError('variable indexes must be non-negative')
        if not is_strictly_increasing(self._idxs):
            raise ValueError('variable indexes must be strictly increasing')

    def renumber(self, mapping: MappingLike) -> Self:
        idxs = remap(self._idxs, mapping)
        if options.check_renumbering:
            logger.debug(f'checking renumbering of {len(idxs)} indexes')
            self._check_renumbered(idxs, is_strictly_increasing(idxs))
        return type(self)._wrap(idxs, self._weights)

    def collect_variables(self, sink: Any) -> None:
        push = sink_function(sink)
        for idx in self._idxs.tolist():
            push(idx)

    def evaluate(self, y: ArrayLike) -> float:
        return float(numpy.sum(self._weights
                               * assignment_lookup(y, self._idxs)))

    def substitute(self, y: Any) -> Any:
        def terms():
            for idx, w in zip(self._idxs.tolist(), self._weights.tolist()):
                yield w if idx == 0 else w * assignment_item(y, idx)
        return psum(terms())

    def __add__(self, other: Any) -> Any:
        if isinstance(other, LinearValue):
            return LinearValue._wrap(*add_linear(
                self._idxs, self._weights, other._idxs, other._weights
            ))
        if isinstance(other, numbers.Real):
            return self + LinearValue.constant(other)
        return NotImplemented

    __radd__ = __add__

    def __sub__(self, other: Any) -> Any:
        if isinstance(other, (LinearValue, numbers.Real)):
            return self + (-other)
        return NotImplemented

    def __rsub__(self, other: Any) -> Any:
        if isinstance(other, numbers.Real):
            return (-self) + other
        return NotImplemented

    def __neg__(self) -> Self:
        return type(self)._wrap(self._idxs, -self._weights)

    def __mul__(self, other: Any) -> Any:
        if isinstance(other, numbers.Real):
            return type(self)._wrap(self._idxs, self._weights * float(other))
        if isinstance(other, LinearValue):
            from .quadratic import QuadraticValue
            return QuadraticValue._wrap(*multiply_linear(
                self._idxs, self._weights, other._idxs, other._weights
            ))
        return NotImplemented

    def __rmul__(self, other: Any) -> Any:
        if isinstance(other, numbers.Real):
            return self * other
        return NotImplemented

    def __truediv__(self, other: Any) -> Any:
        if isinstance(other, numbers.Real):
            return type(self)._wrap(self._idxs, self._weights / float(other))
        return NotImplemented
