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
Library-wide runtime options.
'''

import contextlib
from collections.abc import Iterator
from dataclasses import dataclass, fields, replace
import logging

from .typing import JSONSerializable


__all__ = ['Options', 'configure', 'options']


logger = logging.getLogger(__name__)


@dataclass
class Options(JSONSerializable):
    '''
    User specified consistency checks.

    Both checks are disabled by default because they add a full pass over
    every value they touch.

    Attributes
    ----------
    check_renumbering : bool
        Verify that renumbered values still have sorted, unique indexes
        and that index 0 maps to itself. Violations raise
        :class:`~constraint_trees.errors.RenumberingError`. Defaults to
        `False`.
    check_values : bool
        Verify the index invariants of values built through their
        explicit constructors. Violations raise :class:`ValueError`.
        Defaults to `False`.
    '''

    #: Validate results of variable renumbering.
    check_renumbering: bool = False

    #: Validate explicitly constructed values.
    check_values: bool = False

    def sanitize(self) -> None:
        '''
        Sanitizes options.
        '''
        self.check_renumbering = bool(self.check_renumbering)
        self.check_values = bool(self.check_values)


#: Options read by the library.
options = Options()


@contextlib.contextmanager
def configure(**overrides) -> Iterator[Options]:
    '''
    Temporarily override library options.

    Example::

        with configure(check_renumbering=True):
            pruned = prune_variables(tree)

    :raise TypeError: An override does not name an option.
    '''
    names = {f.name for f in fields(Options)}
    for name in overrides:
        if name not in names:
            raise TypeError(f'unknown option {name!r}')

    saved = replace(options)
    for name, val in overrides.items():
        setattr(options, name, val)
    options.sanitize()
    logger.debug(f'options overridden: {overrides}')
    try:
        yield options
    finally:
        for f in fields(Options):
            setattr(options, f.name, getattr(saved, f.name))
