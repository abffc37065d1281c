'''
Static typing protocols for the dictionary interchange format.
'''

import dataclasses
from typing import Any, Protocol, Self, cast

import numpy


__all__ = ['JSONData', 'JSONSerializable', 'plain']


#: Plain data accepted by JSON encoders.
JSONData = dict[str, Any] | list[Any] | float | int | str | bool | None


def plain(obj: Any) -> JSONData:
    '''
    Convert NumPy arrays and scalars into built-in lists and numbers.

    Containers are converted recursively. Anything else is returned
    unchanged.
    '''
    if isinstance(obj, (numpy.ndarray, numpy.generic)):
        return obj.tolist()
    if isinstance(obj, dict):
        return {str(k): plain(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [plain(v) for v in obj]
    return obj


class JSONSerializable(Protocol):
    def toJSON(self) -> JSONData:
        '''Convert the object into plain dictionaries, lists and numbers.'''
        if dataclasses.is_dataclass(self):
            return cast(JSONData, plain(dataclasses.asdict(self)))
        raise NotImplementedError()

    @classmethod
    def fromJSON(cls, obj: JSONData) -> Self:
        '''Reconstruct an object from the output of :meth:`toJSON`.'''
        if isinstance(obj, list):
            return cast(Self, cls(*obj))
        if isinstance(obj, dict):
            return cast(Self, cls(**obj))
        return cast(Self, cls(obj))
