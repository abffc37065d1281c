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
Sparse affine-quadratic combinations of variables.
'''

import logging
import numbers
from typing import Any, Self

import numpy
from numpy.typing import ArrayLike
import scipy.sparse

from .linear import LinearValue
from .options import options
from .util.sparse import MappingLike, add_quadratic, is_colex_sorted, remap
from .values import (
    Value,
    assignment_item,
    assignment_lookup,
    psum,
    sink_function,
)


__all__ = ['QuadraticValue', 'squared']


logger = logging.getLogger(__name__)


class QuadraticValue(Value):
    '''
    Affine-quadratic combination of variables.

    Each entry of :attr:`idxs` is a pair `(i, j)` with `i <= j` which
    contributes `w * x[i] * x[j]`. As with linear values, `x[0] == 1`, so
    `(0, 0)` is the constant term and `(0, k)` the linear term of variable
    `k`. Pairs are unique and sorted co-lexicographically, i.e. by `j`
    first and by `i` second. The last pair therefore always holds the
    largest variable index.
    '''
    kind = 'quadratic'

    def __init__(self, idxs: ArrayLike = (), weights: ArrayLike = ()):
        idxs = numpy.array(idxs, dtype=numpy.int64).reshape(-1, 2)
        weights = numpy.array(weights, dtype=numpy.float64).reshape(-1)
        if len(idxs) != len(weights):
            raise ValueError(f'got {len(idxs)} index pairs but '
                             f'{len(weights)} weights')
        idxs.setflags(write=False)
        weights.setflags(write=False)
        self._idxs = idxs
        self._weights = weights
        if options.check_values:
            self.validate()

    @classmethod
    def zero(cls) -> Self:
        return cls()

    @classmethod
    def constant(cls, c: float) -> Self:
        if c == 0:
            return cls()
        return cls([(0, 0)], [c])

    @classmethod
    def from_linear(cls, val: LinearValue) -> Self:
        '''Pair every linear term with the affine element.'''
        idxs = numpy.stack(
            (numpy.zeros_like(val.idxs), val.idxs), axis=-1
        )
        return cls._wrap(idxs, val.weights)

    @classmethod
    def from_sparse(cls, mat: Any) -> Self:
        '''
        Create a value from a square dense or sparse matrix.

        The matrix is symmetrized as `M.T + M`, so entry `(i, j)` of the
        result holds `M[i, j] + M[j, i]` (and twice the diagonal). Row and
        column 0 refer to the affine element.
        '''
        coo = scipy.sparse.coo_matrix(mat)
        if coo.shape[0] != coo.shape[1]:
            raise ValueError(f'expected a square matrix, got shape '
                             f'{coo.shape}')
        sym = (coo + coo.T).tocoo()
        sym.sum_duplicates()
        rows = sym.row.astype(numpy.int64)
        cols = sym.col.astype(numpy.int64)
        upper = rows <= cols
        rows, cols, data = rows[upper], cols[upper], sym.data[upper]

        order = numpy.lexsort((rows, cols))
        idxs = numpy.stack((rows[order], cols[order]), axis=-1)
        return cls._wrap(idxs.reshape(-1, 2),
                         data[order].astype(numpy.float64))

    @property
    def variable_count(self) -> int:
        if len(self._idxs) == 0:
            return 0
        return int(self._idxs[-1, 1])

    def validate(self) -> None:
        if numpy.any(self._idxs < 0):
            raise ValueError('variable indexes must be non-negative')
        if not is_colex_sorted(self._idxs):
            raise ValueError('index pairs must satisfy i <= j and be unique '
                             'and sorted co-lexicographically')

    def renumber(self, mapping: MappingLike) -> Self:
        idxs = remap(self._idxs, mapping)
        if options.check_renumbering:
            logger.debug(f'checking renumbering of {len(idxs)} index pairs')
            self._check_renumbered(idxs, is_colex_sorted(idxs))
        return type(self)._wrap(idxs, self._weights)

    def collect_variables(self, sink: Any) -> None:
        push = sink_function(sink)
        for i, j in self._idxs.tolist():
            push(i)
            push(j)

    def evaluate(self, y: ArrayLike) -> float:
        vals = assignment_lookup(y, self._idxs)
        return float(numpy.sum(self._weights * vals[:, 0] * vals[:, 1]))

    def substitute(self, y: Any) -> Any:
        def terms():
            for (i, j), w in zip(self._idxs.tolist(), self._weights.tolist()):
                if i != 0:
                    w = w * assignment_item(y, i)
                if j != 0:
                    w = w * assignment_item(y, j)
                yield w
        return psum(terms())

    def __add__(self, other: Any) -> Any:
        if isinstance(other, LinearValue):
            other = QuadraticValue.from_linear(other)
        elif isinstance(other, numbers.Real):
            other = QuadraticValue.constant(other)
        if not isinstance(other, QuadraticValue):
            return NotImplemented
        return QuadraticValue._wrap(*add_quadratic(
            self._idxs, self._weights, other._idxs, other._weights
        ))

    __radd__ = __add__

    def __sub__(self, other: Any) -> Any:
        if isinstance(other, (QuadraticValue, LinearValue, numbers.Real)):
            return self + (-other)
        return NotImplemented

    def __rsub__(self, other: Any) -> Any:
        if isinstance(other, (LinearValue, numbers.Real)):
            return (-self) + other
        return NotImplemented

    def __neg__(self) -> Self:
        return type(self)._wrap(self._idxs, -self._weights)

    def __mul__(self, other: Any) -> Any:
        if isinstance(other, numbers.Real):
            return type(self)._wrap(self._idxs, self._weights * float(other))
        return NotImplemented

    def __rmul__(self, other: Any) -> Any:
        return self.__mul__(other)

    def __truediv__(self, other: Any) -> Any:
        if isinstance(other, numbers.Real):
            return type(self)._wrap(self._idxs, self._weights / float(other))
        return NotImplemented


def squared(val: LinearValue) -> QuadraticValue:
    '''
    Square a linear value.

    Shortcut for `val * val`, mostly used to build sums of squared errors.
    '''
    return val * val
