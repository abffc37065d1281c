'''
Python library for hierarchical constraint systems.

Optimization problems are built from sparse linear and quadratic values
over anonymous, numbered variables. Values are constrained by bounds,
constraints are organized in labeled trees, and trees are composed with
`*` (shared variables) and `+` (disjoint variables).

The tree processing functions `map`, `filter`, `reduce`, `zip` and
`merge` are available as attributes of this package, but are not exported
by `from constraint_trees import *` because they shadow built-ins.
'''

from .bounds import (
    Between,
    Binary,
    BinaryBound,
    Bound,
    EqualTo,
    IntegerBound,
    Integers,
    as_bound,
)
from .constraint import Constraint, bound, value
from .constraint_tree import (
    ConstraintTree,
    substitute,
    substitute_values,
    value_product,
    variable,
    variables,
    variables_for,
    variables_ifor,
)
from .errors import (
    ConstraintAlgebraError,
    ConstraintTreesError,
    DomainError,
    IndexOutOfRange,
    RenumberingError,
    StructuralMergeError,
)
from .linear import LinearValue
from .options import Options, configure, options
from .quadratic import QuadraticValue, squared
from .tree import (
    MISSING,
    Tree,
    deflate,
    filter,
    filter_leaves,
    ideflate,
    ifilter,
    ifilter_leaves,
    imap,
    imapreduce,
    imerge,
    ireduce,
    itraverse,
    izip,
    map,
    mapreduce,
    merge,
    reduce,
    reinflate,
    traverse,
    zip,
)
from .values import Value, preduce, psum
from .bookkeeping import (
    collect_variables,
    disjoint_sum,
    drop_zeros,
    increase_variable_index,
    increase_variable_indexes,
    prune_variables,
    renumber_variables,
    variable_count,
)

__all__ = [
    'Between',
    'Binary',
    'BinaryBound',
    'Bound',
    'Constraint',
    'ConstraintAlgebraError',
    'ConstraintTree',
    'ConstraintTreesError',
    'DomainError',
    'EqualTo',
    'IndexOutOfRange',
    'IntegerBound',
    'Integers',
    'LinearValue',
    'MISSING',
    'Options',
    'QuadraticValue',
    'RenumberingError',
    'StructuralMergeError',
    'Tree',
    'Value',
    'as_bound',
    'bound',
    'collect_variables',
    'configure',
    'deflate',
    'disjoint_sum',
    'drop_zeros',
    'filter_leaves',
    'ideflate',
    'ifilter',
    'ifilter_leaves',
    'imap',
    'imapreduce',
    'imerge',
    'increase_variable_index',
    'increase_variable_indexes',
    'ireduce',
    'itraverse',
    'izip',
    'mapreduce',
    'options',
    'preduce',
    'prune_variables',
    'psum',
    'reinflate',
    'renumber_variables',
    'squared',
    'substitute',
    'substitute_values',
    'traverse',
    'value',
    'value_product',
    'variable',
    'variable_count',
    'variables',
    'variables_for',
    'variables_ifor',
]
