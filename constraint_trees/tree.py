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
Labeled trees and functions that process them.

A :class:`Tree` maps string labels to children, each of which is either a
leaf or another tree. Children are always kept sorted by label, and every
function in this module visits them in that order, so results never
depend on insertion order.

Several functions here share their names with built-ins (`map`, `filter`,
`zip`) or with :mod:`functools` (`reduce`). They are not exported by
`from constraint_trees import *`; use them qualified, e.g.
`constraint_trees.map(f, tree)`.

The indexed variants (`imap`, `ifilter`, ...) pass the path to the current
node as an additional first argument. A path is a tuple of labels leading
from the root of the tree to the node.
'''

from collections.abc import Callable, Iterable, Iterator, Mapping
import numbers
from types import MappingProxyType
from typing import Any, Generic, Optional, TypeVar

from .errors import StructuralMergeError
from .typing import JSONData, Label, Path, plain
from .values import preduce


__all__ = [
    'MISSING',
    'Tree',
    'deflate',
    'filter',
    'filter_leaves',
    'ideflate',
    'ifilter',
    'ifilter_leaves',
    'imap',
    'imapreduce',
    'imerge',
    'ireduce',
    'itraverse',
    'izip',
    'map',
    'mapreduce',
    'merge',
    'reduce',
    'reinflate',
    'traverse',
    'zip',
]


L = TypeVar('L')
T = TypeVar('T')


class _Missing:
    '''Type of the :data:`MISSING` sentinel.'''
    _instance: Optional['_Missing'] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'MISSING'

    def __reduce__(self):
        return (_Missing, ())


#: Stands in for absent children in :func:`merge` and :func:`imerge`.
MISSING = _Missing()


def _check_label(label: Any) -> Label:
    if not isinstance(label, str):
        raise TypeError(f'tree labels must be strings, got '
                        f'{type(label).__name__}')
    return label


def _path_str(path: Path) -> str:
    return '/'.join(path) if path else '<root>'


class Tree(Mapping, Generic[L]):
    '''
    Persistent tree with labeled children.

    Trees are built by labeling (`'x' ^ leaf`), joined with `*` (children
    of both trees are merged, variables are shared) or `+` (variables of
    the right operand are renumbered so that they do not collide with the
    left one). Note that `^` binds weaker than `*` and `+` in Python, so
    labeled operands must be parenthesized, e.g. `('a' ^ x) * ('b' ^ y)`.

    The `+` operator renumbers strictly left to right. In `(a + b) * c`
    the variables of `c` are shared with `a` and with the renumbered `b`,
    which is rarely what is meant; write `a + (b * c)` or `(a * c) + b`
    depending on which variables `c` refers to.

    Children are returned by `tree['label']` and, for labels that do not
    collide with a method name, by `tree.label`.

    Combinators never copy subtrees; results share them with the operands.
    `tree[label] = x` and `del tree[label]` modify a tree in place and
    therefore every tree that shares it. Only use them on trees that were
    built locally.
    '''
    __slots__ = ('_elems',)

    _elems: dict[Label, Any]

    def __init__(self, elems: Mapping[Label, Any] | Iterable[tuple[Label, Any]]
                 = (), /, **kwargs: Any):
        items = dict(elems)
        items.update(kwargs)
        for label in items:
            _check_label(label)
        self._elems = dict(sorted(items.items()))

    @classmethod
    def _from_sorted(cls, elems: dict[Label, Any]) -> 'Tree':
        obj = object.__new__(cls)
        obj._elems = elems
        return obj

    @classmethod
    def labeled(cls, label: Label, x: Any) -> 'Tree':
        '''Tree whose only child is `x` under `label`.'''
        return cls._from_sorted({_check_label(label): x})

    @property
    def elems(self) -> Mapping[Label, Any]:
        '''Read-only view of the children.'''
        return MappingProxyType(self._elems)

    def __getitem__(self, label: Label) -> Any:
        return self._elems[label]

    def __iter__(self) -> Iterator[Label]:
        return iter(self._elems)

    def __len__(self) -> int:
        return len(self._elems)

    def __contains__(self, label: object) -> bool:
        return label in self._elems

    def __getattr__(self, name: str) -> Any:
        if name.startswith('_'):
            raise AttributeError(name)
        try:
            return self._elems[name]
        except KeyError:
            raise AttributeError(
                f'{type(self).__name__} has no child {name!r}'
            ) from None

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self._elems))

    def __setitem__(self, label: Label, x: Any) -> None:
        if label in self._elems:
            self._elems[label] = x
            return
        self._elems[_check_label(label)] = x
        self._elems = dict(sorted(self._elems.items()))

    def __delitem__(self, label: Label) -> None:
        del self._elems[label]

    def __rxor__(self, label: Any) -> 'Tree':
        if not isinstance(label, str):
            return NotImplemented
        return Tree.labeled(label, self)

    def __mul__(self, other: Any) -> Any:
        if isinstance(other, Tree):
            return _merge_shared(self, other, ())
        if isinstance(other, numbers.Real):
            return NotImplemented
        raise StructuralMergeError(
            f'unable to merge a tree with a {type(other).__name__}'
        )

    def __add__(self, other: Any) -> Any:
        if not isinstance(other, Tree):
            return NotImplemented
        from .bookkeeping import disjoint_sum
        return disjoint_sum(self, other)

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self._elems!r})'

    def toJSON(self) -> JSONData:
        '''
        Convert the tree into nested dictionaries.

        Each tree becomes `{'tree': {label: child, ...}}`. Leaves are
        converted with their own `toJSON` method if they have one.
        '''
        return {'tree': {
            label: x.toJSON() if hasattr(x, 'toJSON') else plain(x)
            for label, x in self._elems.items()
        }}

    @classmethod
    def fromJSON(cls, obj: JSONData, leaf: Any = None) -> 'Tree':
        '''
        Rebuild a tree from the output of :meth:`toJSON`.

        `leaf` converts leaf data. It is either a class with a `fromJSON`
        method or any function of one argument. Defaults to
        :class:`~constraint_trees.constraint.Constraint`.

        :raise ValueError: `obj` does not describe a tree.
        '''
        if leaf is None:
            from .constraint import Constraint
            leaf = Constraint
        read = getattr(leaf, 'fromJSON', leaf)

        def convert(data: JSONData) -> 'Tree':
            if not isinstance(data, dict) or not isinstance(
                data.get('tree'), dict
            ):
                raise ValueError(f'expected a tree, got {data!r}')
            return cls((label, convert(x) if _is_tree_data(x) else read(x))
                       for label, x in data['tree'].items())

        return convert(obj)


def _is_tree_data(data: Any) -> bool:
    return isinstance(data, dict) and len(data) == 1 and 'tree' in data


def _merge_shared(a: Tree, b: Tree, path: Path) -> Tree:
    out = dict(a._elems)
    for label, y in b._elems.items():
        if label not in out:
            out[label] = y
            continue
        x = out[label]
        if isinstance(x, Tree) and isinstance(y, Tree):
            out[label] = _merge_shared(x, y, path + (label,))
        elif isinstance(x, Tree) or isinstance(y, Tree):
            raise StructuralMergeError(
                f'unable to merge a tree with a leaf at '
                f'{_path_str(path + (label,))}'
            )
        else:
            raise StructuralMergeError(
                f'unable to merge two leaves at '
                f'{_path_str(path + (label,))}'
            )
    return Tree._from_sorted(dict(sorted(out.items())))


#
# Mapping
#

def map(f: Callable[[Any], T], x: Any) -> Any:
    '''
    Apply `f` to every leaf, keeping the tree structure.

    Applied to a leaf instead of a tree, this is just `f(x)`.
    '''
    return _imap(lambda _, v: f(v), x, ())


def imap(f: Callable[[Path, Any], T], x: Any) -> Any:
    '''Like :func:`map`, but `f` also receives the path to the leaf.'''
    return _imap(f, x, ())


def _imap(f, x, path):
    if not isinstance(x, Tree):
        return f(path, x)
    return Tree._from_sorted({
        label: _imap(f, v, path + (label,))
        for label, v in x._elems.items()
    })


def traverse(f: Callable[[Any], Any], x: Any) -> None:
    '''Call `f` on every leaf in label order, discarding the results.'''
    _itraverse(lambda _, v: f(v), x, ())


def itraverse(f: Callable[[Path, Any], Any], x: Any) -> None:
    '''Like :func:`traverse`, but `f` also receives the path to the leaf.'''
    _itraverse(f, x, ())


def _itraverse(f, x, path):
    if not isinstance(x, Tree):
        f(path, x)
        return
    for label, v in x._elems.items():
        _itraverse(f, v, path + (label,))


#
# Filtering
#

def filter(f: Callable[[Any], bool], x: Tree) -> Tree:
    '''
    Keep the children for which `f` is true.

    `f` is called on subtrees as well as on leaves. Subtrees for which it
    returns false are dropped without being visited; the others are
    filtered recursively. Subtrees that end up empty are dropped too.
    '''
    return _ifilter(lambda _, v: f(v), x, ())


def ifilter(f: Callable[[Path, Any], bool], x: Tree) -> Tree:
    '''Like :func:`filter`, but `f` also receives the path to the node.'''
    return _ifilter(f, x, ())


def _ifilter(f, x, path):
    out = {}
    for label, v in x._elems.items():
        p = path + (label,)
        if not f(p, v):
            continue
        if isinstance(v, Tree):
            v = _ifilter(f, v, p)
            if not v._elems:
                continue
        out[label] = v
    return Tree._from_sorted(out)


def filter_leaves(f: Callable[[Any], bool], x: Tree) -> Tree:
    '''
    Keep the leaves for which `f` is true.

    Unlike :func:`filter`, `f` is only called on leaves and all subtrees
    are kept, even if they end up empty.
    '''
    return _ifilter_leaves(lambda _, v: f(v), x, ())


def ifilter_leaves(f: Callable[[Path, Any], bool], x: Tree) -> Tree:
    '''Like :func:`filter_leaves`, but `f` also receives the leaf path.'''
    return _ifilter_leaves(f, x, ())


def _ifilter_leaves(f, x, path):
    out = {}
    for label, v in x._elems.items():
        p = path + (label,)
        if isinstance(v, Tree):
            out[label] = _ifilter_leaves(f, v, p)
        elif f(p, v):
            out[label] = v
    return Tree._from_sorted(out)


#
# Reduction
#

def reduce(op: Callable[[Any, Any], Any], x: Any, init: Any) -> Any:
    '''
    Combine all leaves with the associative operation `op`.

    Every subtree is reduced separately, starting from `init`, and the
    results are combined by its parent. `init` must thus be an identity
    of `op`. The order of the combinations within a subtree is
    unspecified.
    '''
    return _imapreduce(lambda _, v: v, lambda _, a, b: op(a, b), x, init, ())


def mapreduce(f: Callable[[Any], Any], op: Callable[[Any, Any], Any],
              x: Any, init: Any) -> Any:
    '''Like :func:`reduce`, but leaves are transformed by `f` first.'''
    return _imapreduce(lambda _, v: f(v), lambda _, a, b: op(a, b), x,
                       init, ())


def ireduce(op: Callable[[Path, Any, Any], Any], x: Any, init: Any) -> Any:
    '''
    Like :func:`reduce`, but `op` also receives the path of the subtree
    whose children it combines.
    '''
    return _imapreduce(lambda _, v: v, op, x, init, ())


def imapreduce(f: Callable[[Path, Any], Any],
               op: Callable[[Path, Any, Any], Any],
               x: Any, init: Any) -> Any:
    '''
    Like :func:`mapreduce`, but `f` receives the path of each leaf and
    `op` the path of each subtree.
    '''
    return _imapreduce(f, op, x, init, ())


def _imapreduce(f, op, x, init, path):
    if not isinstance(x, Tree):
        return f(path, x)
    return preduce(
        lambda a, b: op(path, a, b),
        (_imapreduce(f, op, v, init, path + (label,))
         for label, v in x._elems.items()),
        init,
    )


#
# Joins
#

def zip(f: Callable[..., Any], *xs: Tree) -> Tree:
    '''
    Combine leaves at the paths present in all trees.

    This is an inner join: children missing from any of the trees are
    left out of the result. A path is descended into while the nodes of
    all trees are subtrees; otherwise `f` is called on the nodes.
    '''
    return izip(lambda _, *vs: f(*vs), *xs)


def izip(f: Callable[..., Any], *xs: Tree) -> Tree:
    '''Like :func:`zip`, but `f` also receives the path as first argument.'''
    if len(xs) < 2:
        raise TypeError('izip needs at least two trees')
    return _izip(f, xs, ())


def _izip(f, xs, path):
    if not all(isinstance(x, Tree) for x in xs):
        return f(path, *xs)
    first, rest = xs[0], xs[1:]
    return Tree._from_sorted({
        label: _izip(f, (v,) + tuple(y._elems[label] for y in rest),
                     path + (label,))
        for label, v in first._elems.items()
        if all(label in y._elems for y in rest)
    })


def merge(f: Callable[..., Any], *xs: Tree) -> Tree:
    '''
    Combine leaves at the paths present in any of the trees.

    This is an outer join. Absent nodes are passed to `f` as
    :data:`MISSING`, and `f` may return :data:`MISSING` to leave the path
    out of the result. A path is descended into while all present nodes
    are subtrees.
    '''
    return imerge(lambda _, *vs: f(*vs), *xs)


def imerge(f: Callable[..., Any], *xs: Tree) -> Tree:
    '''Like :func:`merge`, but `f` also receives the path first.'''
    if len(xs) < 2:
        raise TypeError('imerge needs at least two trees')
    return _imerge(f, xs, ())


def _imerge(f, xs, path):
    present = [x for x in xs if x is not MISSING]
    if not all(isinstance(x, Tree) for x in present):
        return f(path, *xs)
    labels = sorted(set().union(*(x._elems for x in present)))
    out = {}
    for label in labels:
        v = _imerge(
            f,
            tuple(MISSING if x is MISSING else x._elems.get(label, MISSING)
                  for x in xs),
            path + (label,),
        )
        if v is not MISSING:
            out[label] = v
    return Tree._from_sorted(out)


#
# Flattening
#

def deflate(f: Callable[[Any], T], x: Tree) -> list[T]:
    '''
    List `f` of every leaf in traversal order.

    :func:`reinflate` turns such a list back into a tree.
    '''
    out: list[T] = []
    _itraverse(lambda _, v: out.append(f(v)), x, ())
    return out


def ideflate(f: Callable[[Path, Any], T], x: Tree) -> list[T]:
    '''Like :func:`deflate`, but `f` also receives the path to the leaf.'''
    out: list[T] = []
    _itraverse(lambda p, v: out.append(f(p, v)), x, ())
    return out


def reinflate(x: Tree, items: Iterable[Any]) -> Tree:
    '''
    Replace the leaves of `x` by `items`, in traversal order.

    :raise ValueError: The number of items differs from the number of
        leaves.
    '''
    it = iter(items)

    def take(path, _):
        try:
            return next(it)
        except StopIteration as exc:
            raise ValueError(
                f'ran out of items at {_path_str(path)}'
            ) from exc

    out = _imap(take, x, ())
    if next(it, MISSING) is not MISSING:
        raise ValueError('more items than leaves in the tree')
    return out
