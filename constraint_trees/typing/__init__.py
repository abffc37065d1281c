'''
Static typing protocols and helpers.
'''

from .io import JSONData, JSONSerializable, plain

__all__ = [
    'JSONData',
    'JSONSerializable',
    'Label',
    'Path',
    'plain',
]


#: Label of a tree child.
Label = str

#: Sequence of labels leading from a tree root to one of its nodes.
Path = tuple[str, ...]
