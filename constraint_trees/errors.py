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
Exception types.

All exceptions raised by the library derive from both
:class:`ConstraintTreesError` and the closest built-in exception, so
callers can catch them either way. None of them describe recoverable
conditions; they all indicate that an operation would have produced an
invalid constraint system.
'''

__all__ = [
    'ConstraintAlgebraError',
    'ConstraintTreesError',
    'DomainError',
    'IndexOutOfRange',
    'RenumberingError',
    'StructuralMergeError',
]


class ConstraintTreesError(Exception):
    '''Base class of all library errors.'''


class StructuralMergeError(ConstraintTreesError, TypeError):
    '''
    Two nodes cannot be merged by the sharing product.

    Raised when `*` meets a leaf on either side, e.g. when both operand
    trees contain a constraint under the same path, or when a tree is
    multiplied with a single constraint.
    '''


class ConstraintAlgebraError(ConstraintTreesError, TypeError):
    '''
    Constraints were combined additively.

    Bounds have no sound addition rule, so adding constraints is rejected.
    Add the values and wrap the result in a new constraint instead.
    '''


class IndexOutOfRange(ConstraintTreesError, IndexError):
    '''A value references a variable missing from the assignment vector.'''


class DomainError(ConstraintTreesError, ValueError):
    '''Bound parameters are invalid (e.g. NaN endpoints).'''


class RenumberingError(ConstraintTreesError, ValueError):
    '''
    A renumbering mapping is not monotonic or does not fix index 0.

    Only raised while :attr:`Options.check_renumbering` is enabled.
    '''
