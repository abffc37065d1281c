'''
Utility functions and types.
'''

from .sparse import (
    IndexCompaction,
    IndexMap,
    IndexShift,
    MappingLike,
    remap,
)

__all__ = [
    'IndexCompaction',
    'IndexMap',
    'IndexShift',
    'MappingLike',
    'remap',
]
