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
Kernels for sparse combinations with sorted index arrays.

Linear combinations are stored as a strictly increasing array of variable
indexes plus a weight array. Quadratic combinations store an `(n, 2)`
array of index pairs `(i, j)` with `i <= j`, sorted co-lexicographically
(by `j`, then by `i`). Sorting is never redone after construction; all
combination kernels below are merges of already sorted runs.
'''

from collections.abc import Callable, Mapping, Sequence
from typing import Union

import numpy
from numpy.typing import ArrayLike, NDArray
import sortednp


__all__ = [
    'IndexCompaction',
    'IndexMap',
    'IndexShift',
    'add_linear',
    'add_quadratic',
    'colex_keys',
    'is_colex_sorted',
    'is_strictly_increasing',
    'merge_sorted',
    'multiply_linear',
    'remap',
]


IndexArray = NDArray[numpy.int64]
WeightArray = NDArray[numpy.float64]

# Largest pair index for which co-lexicographic keys fit into int64.
# Larger indexes are merged with `numpy.lexsort` instead.
_MAX_COLEX_BASE = 2 ** 31


def merge_sorted(a: IndexArray, b: IndexArray
                 ) -> tuple[IndexArray, NDArray[numpy.intp],
                            NDArray[numpy.intp]]:
    '''
    Merge two strictly increasing key arrays.

    Returns:
        The merged key array without duplicates, followed by the positions
        of the entries of `a` and `b` in the merged array. Keys present in
        both inputs share one position.
    '''
    if len(a) == 0:
        return b.copy(), numpy.empty(0, dtype=numpy.intp), \
            numpy.arange(len(b), dtype=numpy.intp)
    if len(b) == 0:
        return a.copy(), numpy.arange(len(a), dtype=numpy.intp), \
            numpy.empty(0, dtype=numpy.intp)
    keys, (ia, ib) = sortednp.merge(
        numpy.ascontiguousarray(a), numpy.ascontiguousarray(b),
        indices=True, duplicates=sortednp.DROP
    )
    return keys, ia, ib


def add_linear(a_idxs: IndexArray, a_weights: WeightArray,
               b_idxs: IndexArray, b_weights: WeightArray
               ) -> tuple[IndexArray, WeightArray]:
    '''
    Add two sparse linear combinations.

    Weights of shared indexes are summed. Zero weights are kept.
    '''
    idxs, ia, ib = merge_sorted(a_idxs, b_idxs)
    weights = numpy.zeros(len(idxs), dtype=numpy.float64)
    weights[ia] += a_weights
    weights[ib] += b_weights
    return idxs, weights


def colex_keys(pairs: IndexArray, base: int) -> IndexArray:
    '''
    Encode index pairs as integers that sort co-lexicographically.

    `base` must exceed every index in `pairs`.
    '''
    if base > _MAX_COLEX_BASE:
        raise OverflowError('variable indexes too large for quadratic keys')
    return pairs[:, 1] * base + pairs[:, 0]


def _pair_base(*arrays: IndexArray) -> int:
    return 1 + max((int(a[:, 1].max()) for a in arrays if len(a) > 0),
                   default=0)


def add_quadratic(a_idxs: IndexArray, a_weights: WeightArray,
                  b_idxs: IndexArray, b_weights: WeightArray
                  ) -> tuple[IndexArray, WeightArray]:
    '''
    Add two sparse quadratic combinations.

    Works like :func:`add_linear`, with index pairs compared in
    co-lexicographic order.
    '''
    base = _pair_base(a_idxs, b_idxs)
    if base > _MAX_COLEX_BASE:
        return _add_quadratic_lexsort(a_idxs, a_weights, b_idxs, b_weights)
    keys, ia, ib = merge_sorted(colex_keys(a_idxs, base),
                                colex_keys(b_idxs, base))
    idxs = numpy.empty((len(keys), 2), dtype=numpy.int64)
    idxs[ia] = a_idxs
    idxs[ib] = b_idxs
    weights = numpy.zeros(len(keys), dtype=numpy.float64)
    weights[ia] += a_weights
    weights[ib] += b_weights
    return idxs, weights


def _add_quadratic_lexsort(a_idxs, a_weights, b_idxs, b_weights):
    pairs = numpy.concatenate((a_idxs, b_idxs)).astype(numpy.int64)
    weights = numpy.concatenate((a_weights, b_weights)).astype(numpy.float64)
    # lexsort is stable, so equal pairs keep the order `a` before `b`.
    order = numpy.lexsort((pairs[:, 0], pairs[:, 1]))
    pairs, weights = pairs[order], weights[order]
    first = numpy.ones(len(pairs), dtype=bool)
    first[1:] = numpy.any(pairs[1:] != pairs[:-1], axis=1)
    starts = numpy.flatnonzero(first)
    return pairs[starts], numpy.add.reduceat(weights, starts)


def multiply_linear(a_idxs: IndexArray, a_weights: WeightArray,
                    b_idxs: IndexArray, b_weights: WeightArray
                    ) -> tuple[IndexArray, WeightArray]:
    '''
    Multiply two sparse linear combinations into a quadratic one.

    The product splits into the terms with `a <= b`, which already come
    out in co-lexicographic order as pairs `(a, b)` when iterating over
    `b` first, and the terms with `b < a`, which do so as pairs `(b, a)`
    when iterating over `a` first. The two halves are then merged.
    '''
    prod = numpy.outer(b_weights, a_weights)

    # Half with a <= b. Rows follow `b`, columns follow `a`.
    col_a = numpy.broadcast_to(a_idxs[numpy.newaxis, :], prod.shape)
    row_b = numpy.broadcast_to(b_idxs[:, numpy.newaxis], prod.shape)
    mask = col_a <= row_b
    upper = numpy.stack((col_a[mask], row_b[mask]), axis=-1)
    upper_weights = prod[mask]

    # Half with b < a. Rows follow `a`, columns follow `b`.
    prod = prod.T
    col_b = numpy.broadcast_to(b_idxs[numpy.newaxis, :], prod.shape)
    row_a = numpy.broadcast_to(a_idxs[:, numpy.newaxis], prod.shape)
    mask = col_b < row_a
    lower = numpy.stack((col_b[mask], row_a[mask]), axis=-1)
    lower_weights = prod[mask]

    return add_quadratic(upper.reshape(-1, 2), upper_weights,
                         lower.reshape(-1, 2), lower_weights)


def is_strictly_increasing(keys: ArrayLike) -> bool:
    keys = numpy.asarray(keys)
    return bool(numpy.all(keys[1:] > keys[:-1]))


def is_colex_sorted(pairs: IndexArray) -> bool:
    '''Check pair ordering, uniqueness and `i <= j` for every pair.'''
    if len(pairs) == 0:
        return True
    if numpy.any(pairs[:, 0] > pairs[:, 1]):
        return False
    i, j = pairs[:, 0], pairs[:, 1]
    return bool(numpy.all(
        (j[1:] > j[:-1]) | ((j[1:] == j[:-1]) & (i[1:] > i[:-1]))
    ))


class IndexMap:
    '''
    Base class of index mappings that can be applied to whole arrays.

    Plain mappings passed to :func:`remap` are evaluated one index at a
    time. Subclasses override :meth:`apply` with a vectorized version.
    '''

    def __call__(self, idx: int) -> int:
        return int(self.apply(numpy.array([idx], dtype=numpy.int64))[0])

    def apply(self, idxs: IndexArray) -> IndexArray:
        raise NotImplementedError()


class IndexShift(IndexMap):
    '''Add a fixed offset to every nonzero index.'''

    def __init__(self, incr: int):
        self.incr = int(incr)

    def apply(self, idxs: IndexArray) -> IndexArray:
        return numpy.where(idxs == 0, idxs, idxs + self.incr)


class IndexCompaction(IndexMap):
    '''
    Map each index to its rank among a sorted set of used indexes.

    The used set must contain 0 and every index the mapping is applied to.
    '''

    def __init__(self, used: ArrayLike):
        self.used = numpy.asarray(used, dtype=numpy.int64)

    def apply(self, idxs: IndexArray) -> IndexArray:
        return numpy.searchsorted(self.used, idxs).astype(numpy.int64)


MappingLike = Union[
    IndexMap, Mapping[int, int], Sequence[int], NDArray[numpy.integer],
    Callable[[int], int],
]


def remap(idxs: IndexArray, mapping: MappingLike) -> IndexArray:
    '''
    Apply an index mapping to an index array of any shape.

    `mapping` may be an :class:`IndexMap`, anything indexable by the old
    index (an array, a list or a dictionary) or a function of one index.
    '''
    if isinstance(mapping, IndexMap):
        return mapping.apply(idxs)
    if isinstance(mapping, (numpy.ndarray, Sequence)):
        return numpy.asarray(mapping, dtype=numpy.int64)[idxs]

    if isinstance(mapping, Mapping):
        get = mapping.__getitem__
    elif callable(mapping):
        get = mapping
    else:
        raise TypeError(f'cannot use {type(mapping).__name__} as an index '
                        'mapping')
    return numpy.fromiter(
        (get(int(i)) for i in idxs.flat), dtype=numpy.int64, count=idxs.size
    ).reshape(idxs.shape)
