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
Trees of constraints: variable allocation and substitution.
'''

from collections.abc import Callable, Sequence
import functools
import itertools
import logging
import numbers
from typing import Any

import numpy
from numpy.typing import ArrayLike

from .bounds import as_bound
from .constraint import Constraint
from .linear import LinearValue
from .tree import Tree, imap
from .typing import Label, Path
from .values import Value


__all__ = [
    'ConstraintTree',
    'substitute',
    'substitute_values',
    'value_product',
    'variable',
    'variables',
    'variables_for',
    'variables_ifor',
]


logger = logging.getLogger(__name__)


#: Tree with :class:`~constraint_trees.constraint.Constraint` leaves. This is
#: a subscripted generic for annotations only; `isinstance` rejects it, so
#: check against :class:`~constraint_trees.tree.Tree` instead.
ConstraintTree = Tree[Constraint]


def variable(weight: float = 1.0, *, bound: Any = None,
             idx: int = 1) -> Constraint:
    '''Constraint on a single variable, by default the first one.'''
    return Constraint(LinearValue.variable(idx, weight), bound)


def variables(keys: Sequence[Label], bounds: Any = None,
              weight: float = 1.0) -> Tree:
    '''
    Allocate fresh variables `1, 2, ...` under the given labels.

    Parameters
    ----------
    keys : sequence of str
        Labels of the variables. Variable indexes follow this order, not
        the sorted order of the labels.
    bounds : optional
        Either a single bound (or bound shorthand, see
        :func:`~constraint_trees.bounds.as_bound`) that is used for all
        variables, or a list with one bound per key.
    weight : float
        Weight of the variables in their values.

    Raises
    ------
    ValueError
        `bounds` is a list whose length differs from that of `keys`.
    '''
    keys = list(keys)
    if isinstance(bounds, list):
        if len(bounds) != len(keys):
            raise ValueError(f'got {len(bounds)} bounds for {len(keys)} '
                             'variables')
        bound_list = [as_bound(b) for b in bounds]
    else:
        bound_list = [as_bound(bounds)] * len(keys)

    logger.debug(f'allocating {len(keys)} variables')
    return Tree(
        (key, variable(weight, bound=b, idx=i))
        for i, (key, b) in enumerate(
            zip(keys, bound_list), start=1
        )
    )


def variables_for(makebound: Callable[[Any], Any], tree: Tree,
                  weight: float = 1.0) -> Tree:
    '''
    Allocate one fresh variable per leaf of `tree`.

    Variables are numbered in traversal order. `makebound` computes the
    bound of each variable from the corresponding leaf.
    '''
    return variables_ifor(lambda _, x: makebound(x), tree, weight)


def variables_ifor(makebound: Callable[[Path, Any], Any], tree: Tree,
                   weight: float = 1.0) -> Tree:
    '''Like :func:`variables_for`, but `makebound` also gets the path.'''
    counter = itertools.count(1)
    return imap(
        lambda path, x: variable(weight, bound=makebound(path, x),
                                 idx=next(counter)),
        tree,
    )


def value_product(val: Value, y: Any) -> Any:
    '''
    Dot product of a value with an assignment of arbitrary objects.

    `y[k]` is used for variable `k`. The entries may be any objects that
    can be scaled by floats and summed, such as the affine expressions of
    an external modeling library.
    '''
    return val.substitute(y)


@functools.singledispatch
def substitute(x, y: Any):
    '''
    Substitute the assignment `y` into the values in `x`.

    Constraints keep their bounds, so substituting for some variables
    (with a :class:`~constraint_trees.linear.LinearValue` for each of the
    others) gives a smaller problem of the same shape. Combine this with
    :func:`~constraint_trees.bookkeeping.prune_variables` to drop the fixed
    variables afterwards.
    '''
    raise TypeError(f'substitute does not support {type(x).__name__}')


@substitute.register(Value)
def _(x: Value, y: Any) -> Any:
    return x.substitute(y)


@substitute.register(Constraint)
def _(x: Constraint, y: Any) -> Constraint:
    return x.substitute(y)


@substitute.register(Tree)
def _(x: Tree, y: Any) -> Tree:
    return imap(lambda _, c: substitute(c, y), x)


@functools.singledispatch
def substitute_values(x, y: ArrayLike):
    '''
    Evaluate all values in `x` for a numeric assignment `y`.

    A tree of constraints becomes a tree of floats with the same shape.
    `y[k]` is the value of variable `k`. `y[0]` is never read, so the
    solution vector `r` of a solver (which starts with variable 1) is
    passed as `[1.0, *r]`.

    :raise IndexOutOfRange: `y` is shorter than the variable count.
    '''
    raise TypeError(f'substitute_values does not support '
                    f'{type(x).__name__}')


@substitute_values.register(numbers.Real)
def _(x: numbers.Real, y: ArrayLike) -> float:
    return float(x)


@substitute_values.register(Value)
def _(x: Value, y: ArrayLike) -> float:
    return x.evaluate(y)


@substitute_values.register(Constraint)
def _(x: Constraint, y: ArrayLike) -> float:
    return x.value.evaluate(y)


@substitute_values.register(Tree)
def _(x: Tree, y: ArrayLike) -> Tree:
    y = numpy.asarray(y, dtype=numpy.float64)
    return imap(lambda _, c: substitute_values(c, y), x)
