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
Single constraints.
'''

from dataclasses import dataclass
import numbers
from typing import Any, Optional, Self

from .bounds import Bound, as_bound
from .errors import ConstraintAlgebraError, StructuralMergeError
from .linear import LinearValue
from .tree import Tree
from .typing import JSONData, JSONSerializable
from .values import Value


__all__ = ['Constraint', 'bound', 'value']


@dataclass
class Constraint(JSONSerializable):
    '''
    A value together with the bound it has to satisfy.

    A constraint without a bound restricts nothing, but keeps its value
    addressable in a constraint tree so that it can be used to build
    further constraints or inspected in solutions.

    Constraints can be scaled by real numbers, which scales the value and
    the bound alike. They cannot be added, because there is no sound way
    to combine two bounds, and they cannot be merged into trees with `*`.

    Both attributes may be reassigned. Constraints are often shared
    between several trees, so this affects all of them.

    Attributes
    ----------
    value : Value
        The constrained value. Real numbers are converted to constant
        linear values. Anything else raises :class:`TypeError`.
    bound : Bound or None
        The bound. Shorthands accepted by
        :func:`~constraint_trees.bounds.as_bound` are converted.
    '''
    value: Value
    bound: Optional[Bound] = None

    def __post_init__(self):
        if isinstance(self.value, numbers.Real):
            self.value = LinearValue.constant(self.value)
        elif not isinstance(self.value, Value):
            raise TypeError(
                f'constraint value must be a Value or a real number, '
                f'not {type(self.value).__name__}'
            )
        self.bound = as_bound(self.bound)

    def scale(self, factor: float) -> 'Constraint':
        return Constraint(
            self.value * factor,
            None if self.bound is None else self.bound.scale(factor),
        )

    def substitute(self, y: Any) -> 'Constraint':
        '''
        Substitute variables in the value, keeping the bound.

        Numeric results are turned back into constant linear values.

        :raise TypeError: The result is neither a number nor a value.
        '''
        val = self.value.substitute(y)
        if isinstance(val, numbers.Real):
            val = LinearValue.constant(val)
        return Constraint(val, self.bound)

    def __mul__(self, other: Any) -> Any:
        if isinstance(other, numbers.Real):
            return self.scale(float(other))
        if isinstance(other, Constraint):
            raise StructuralMergeError('unable to merge two constraints')
        if isinstance(other, Tree):
            raise StructuralMergeError(
                'unable to merge a constraint with a constraint tree'
            )
        return NotImplemented

    def __rmul__(self, other: Any) -> Any:
        if isinstance(other, numbers.Real):
            return self.scale(float(other))
        return NotImplemented

    def __truediv__(self, other: Any) -> Any:
        if isinstance(other, numbers.Real):
            return self.scale(1.0 / float(other))
        return NotImplemented

    def __neg__(self) -> 'Constraint':
        return self.scale(-1.0)

    def __add__(self, other: Any) -> Any:
        raise ConstraintAlgebraError(
            'constraints cannot be added; add their values instead'
        )

    __radd__ = __add__
    __sub__ = __add__
    __rsub__ = __add__

    def __rxor__(self, label: Any) -> Tree:
        if not isinstance(label, str):
            return NotImplemented
        return Tree.labeled(label, self)

    def toJSON(self) -> JSONData:
        obj: dict[str, Any] = {
            'value_type': self.value.kind,
            'value': self.value.toJSON(),
        }
        if self.bound is not None:
            obj['bound_type'] = self.bound.kind
            obj['bound'] = self.bound.toJSON()
        return obj

    @classmethod
    def fromJSON(cls, obj: JSONData) -> Self:
        '''
        Rebuild a constraint from the output of :meth:`toJSON`.

        :raise KeyError: The value or bound kind is unknown.
        :raise ValueError: The value or bound data is malformed.
        '''
        if not isinstance(obj, dict):
            raise ValueError(f'cannot read {cls.__name__} from {obj!r}')
        val = Value.by_kind(obj['value_type']).fromJSON(obj['value'])
        bnd = None
        if 'bound_type' in obj:
            bnd = Bound.by_kind(obj['bound_type']).fromJSON(obj.get('bound'))
        return cls(val, bnd)


def value(x: Constraint) -> Value:
    '''Value of a constraint, usable as a function in tree maps.'''
    return x.value


def bound(x: Constraint) -> Optional[Bound]:
    '''Bound of a constraint, usable as a function in tree maps.'''
    return x.bound
