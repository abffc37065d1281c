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
Bounds that restrict the values of constraints.

A constraint without a bound is represented by a `None` bound. Everything
else derives from :class:`Bound`. Libraries that translate constraints
into solver models dispatch on the `kind` tag of the bound; new bound
types can be added by subclassing :class:`Bound` with a new tag.
'''

from abc import ABC, abstractmethod
from dataclasses import dataclass
import math
import numbers
from typing import Any, ClassVar, Optional, Self

from .errors import DomainError
from .typing import JSONData, JSONSerializable


__all__ = [
    'Between',
    'Binary',
    'BinaryBound',
    'Bound',
    'EqualTo',
    'IntegerBound',
    'Integers',
    'as_bound',
]


class Bound(ABC, JSONSerializable):
    '''
    Abstract base class for bounds.

    Subclasses implement :meth:`scale`, from which multiplication and
    division by real numbers and negation are derived, and set the `kind`
    class attribute. The tag names the bound in the dictionary interchange
    format and tells solver translators how to interpret it.
    '''
    kind: ClassVar[str]
    _kinds: ClassVar[dict[str, type['Bound']]] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if 'kind' in cls.__dict__:
            Bound._kinds[cls.kind] = cls

    @staticmethod
    def by_kind(kind: str) -> type['Bound']:
        '''
        Look up a bound class by its `kind`.

        :raise KeyError: No bound class has that kind.
        '''
        return Bound._kinds[kind]

    @abstractmethod
    def scale(self, factor: float) -> 'Bound':
        '''
        Bound that holds for `factor * x` whenever this one holds for `x`.

        :raise DomainError: The bound cannot be scaled by `factor`.
        '''
        pass

    def __mul__(self, other: Any) -> Any:
        if isinstance(other, numbers.Real):
            return self.scale(float(other))
        return NotImplemented

    def __rmul__(self, other: Any) -> Any:
        return self.__mul__(other)

    def __truediv__(self, other: Any) -> Any:
        if isinstance(other, numbers.Real):
            return self.scale(1.0 / float(other))
        return NotImplemented

    def __neg__(self) -> 'Bound':
        return self.scale(-1.0)


def _number(val: Any, name: str) -> float:
    val = float(val)
    if math.isnan(val):
        raise DomainError(f'{name} must not be NaN')
    return val


@dataclass
class EqualTo(Bound):
    '''Bound that fixes a value to a single number.'''
    kind = 'equal_to'

    equal_to: float

    def __post_init__(self):
        self.equal_to = _number(self.equal_to, 'equal_to')

    def scale(self, factor: float) -> 'EqualTo':
        return EqualTo(self.equal_to * factor)

    def toJSON(self) -> JSONData:
        return self.equal_to

    @classmethod
    def fromJSON(cls, obj: JSONData) -> Self:
        if not isinstance(obj, numbers.Real):
            raise ValueError(f'cannot read {cls.__name__} from {obj!r}')
        return cls(obj)


@dataclass
class Between(Bound):
    '''
    Interval bound.

    Endpoints may be infinite. Reversed endpoints are swapped, so that
    `lower <= upper` always holds. Scaling by a negative number swaps them
    as well.

    :raise DomainError: An endpoint is NaN.
    '''
    kind = 'between'

    lower: float
    upper: float

    def __post_init__(self):
        self.lower = _number(self.lower, 'lower')
        self.upper = _number(self.upper, 'upper')
        if self.lower > self.upper:
            self.lower, self.upper = self.upper, self.lower

    def scale(self, factor: float) -> 'Between':
        return Between(self.lower * factor, self.upper * factor)

    def toJSON(self) -> JSONData:
        return [self.lower, self.upper]

    @classmethod
    def fromJSON(cls, obj: JSONData) -> Self:
        if not isinstance(obj, (list, tuple)) or len(obj) != 2:
            raise ValueError(f'cannot read {cls.__name__} from {obj!r}')
        return cls(*obj)


class _Marker(Bound):
    '''Bound without parameters that only tags a variable domain.'''

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self)

    def __hash__(self) -> int:
        return hash(type(self))

    def __repr__(self) -> str:
        return f'{type(self).__name__}()'

    def toJSON(self) -> JSONData:
        return None

    @classmethod
    def fromJSON(cls, obj: JSONData) -> Self:
        if obj is not None:
            raise ValueError(f'cannot read {cls.__name__} from {obj!r}')
        return cls()


class IntegerBound(_Marker):
    '''
    Restricts a value to integers.

    Only scaling by non-zero integers keeps the restriction intact.
    '''
    kind = 'integer'

    def scale(self, factor: float) -> 'IntegerBound':
        if factor == 0 or not float(factor).is_integer():
            raise DomainError(f'cannot scale an integer bound by {factor}')
        return self


class BinaryBound(_Marker):
    '''
    Restricts a value to 0 or 1.

    The restriction only survives scaling by 1.
    '''
    kind = 'binary'

    def scale(self, factor: float) -> 'BinaryBound':
        if factor != 1:
            raise DomainError(f'cannot scale a binary bound by {factor}')
        return self


Integers = IntegerBound()
Binary = BinaryBound()


def as_bound(x: Any) -> Optional[Bound]:
    '''
    Convert a bound shorthand into a bound.

    `None` stays `None`, a number becomes :class:`EqualTo` and a pair of
    numbers becomes :class:`Between`. Bounds are returned as they are.

    :raise TypeError: `x` is none of these.
    '''
    if x is None or isinstance(x, Bound):
        return x
    if isinstance(x, numbers.Real):
        return EqualTo(x)
    if isinstance(x, tuple) and len(x) == 2:
        return Between(*x)
    raise TypeError(f'cannot use {type(x).__name__} as a bound')
