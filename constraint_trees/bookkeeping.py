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
Variable index bookkeeping.

Variables only exist as indexes inside values. The generic functions in
this module inspect and rewrite those indexes consistently throughout a
value, a constraint or a whole tree of them. They dispatch on the type of
their first argument with :func:`functools.singledispatch`, so support for
other leaf types can be registered from outside the package.
'''

from collections.abc import Sequence
import functools
import logging
from typing import Any

import numpy

from .constraint import Constraint
from .tree import Tree, imap, itraverse
from .util.sparse import IndexCompaction, IndexMap, IndexShift, MappingLike
from .values import Value


__all__ = [
    'collect_variables',
    'disjoint_sum',
    'drop_zeros',
    'increase_variable_index',
    'increase_variable_indexes',
    'prune_variables',
    'renumber_variables',
    'variable_count',
]


logger = logging.getLogger(__name__)


def _unsupported(name: str, x: Any):
    return TypeError(f'{name} does not support {type(x).__name__}')


@functools.singledispatch
def variable_count(x) -> int:
    '''
    Largest variable index used anywhere in `x`, or 0 if there is none.
    '''
    raise _unsupported('variable_count', x)


@variable_count.register(Value)
def _(x: Value) -> int:
    return x.variable_count


@variable_count.register(Constraint)
def _(x: Constraint) -> int:
    return variable_count(x.value)


@variable_count.register(Tree)
def _(x: Tree) -> int:
    return max((variable_count(v) for v in x.values()), default=0)


@functools.singledispatch
def renumber_variables(x, mapping: MappingLike):
    '''
    Map every variable index in `x` through `mapping`.

    The mapping must be monotonically increasing and keep index 0 in
    place; see :meth:`~constraint_trees.values.Value.renumber`.
    '''
    raise _unsupported('renumber_variables', x)


@renumber_variables.register(Value)
def _(x: Value, mapping: MappingLike) -> Value:
    return x.renumber(mapping)


@renumber_variables.register(Constraint)
def _(x: Constraint, mapping: MappingLike) -> Constraint:
    return Constraint(renumber_variables(x.value, mapping), x.bound)


@renumber_variables.register(Tree)
def _(x: Tree, mapping: MappingLike) -> Tree:
    # Convert lists once instead of once per value.
    if isinstance(mapping, Sequence) and not isinstance(mapping, IndexMap):
        mapping = numpy.asarray(mapping, dtype=numpy.int64)
    return imap(lambda _, v: renumber_variables(v, mapping), x)


@functools.singledispatch
def collect_variables(x, sink: Any) -> None:
    '''
    Push every variable index occurrence in `x` into `sink`.

    `sink` is a function of one index or a container with an `append` or
    `add` method. Occurrences are pushed with repetition, including those
    of index 0. Counting them gives the number of references to each
    variable::

        refs = []
        collect_variables(tree, refs)
        counts = collections.Counter(refs)
    '''
    raise _unsupported('collect_variables', x)


@collect_variables.register(Value)
def _(x: Value, sink: Any) -> None:
    x.collect_variables(sink)


@collect_variables.register(Constraint)
def _(x: Constraint, sink: Any) -> None:
    collect_variables(x.value, sink)


@collect_variables.register(Tree)
def _(x: Tree, sink: Any) -> None:
    itraverse(lambda _, v: collect_variables(v, sink), x)


@functools.singledispatch
def drop_zeros(x):
    '''
    Remove entries with zero weight from all values in `x`.

    Variables that are only referenced with zero weight are removed from
    the values this way, which lets :func:`prune_variables` drop them.
    '''
    raise _unsupported('drop_zeros', x)


@drop_zeros.register(Value)
def _(x: Value) -> Value:
    return x.drop_zeros()


@drop_zeros.register(Constraint)
def _(x: Constraint) -> Constraint:
    return Constraint(drop_zeros(x.value), x.bound)


@drop_zeros.register(Tree)
def _(x: Tree) -> Tree:
    return imap(lambda _, v: drop_zeros(v), x)


def increase_variable_index(idx: int, incr: int) -> int:
    '''Offset a single variable index. Index 0 stays in place.'''
    return idx if idx == 0 else idx + incr


def increase_variable_indexes(x: Any, incr: int) -> Any:
    '''Offset every variable index in `x` except 0 by `incr`.'''
    return renumber_variables(x, IndexShift(incr))


def prune_variables(x: Any) -> Any:
    '''
    Renumber the variables in `x` so that only used ones remain.

    The used indexes keep their relative order and are renumbered to
    `1, 2, ...`. Trees that shared variables with `x` do not share them
    with the result anymore. Apply :func:`drop_zeros` first to also remove
    variables that are referenced with zero weight only.
    '''
    used: list[int] = [0]
    collect_variables(x, used)
    keep = numpy.unique(numpy.array(used, dtype=numpy.int64))
    logger.debug(f'pruning variables: keeping {len(keep) - 1} of '
                 f'{variable_count(x)}')
    return renumber_variables(x, IndexCompaction(keep))


def disjoint_sum(a: Tree, b: Tree) -> Tree:
    '''
    Merge two trees without sharing variables.

    The variables of `b` are renumbered to follow those of `a`, then the
    trees are merged as by `a * b`. This is what `a + b` does.

    The result depends on grouping. In `(a + b) * c` the variables of `c`
    are shared with `a`, while in `a + (b * c)` they are shared with `b`.

    :raise StructuralMergeError: Both trees have a leaf at the same path.
    '''
    offset = variable_count(a)
    logger.debug(f'disjoint sum: offsetting right operand by {offset}')
    return a * increase_variable_indexes(b, offset)
