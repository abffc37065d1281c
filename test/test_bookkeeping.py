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

import collections
import logging

import numpy
import pytest

import constraint_trees as ct
from constraint_trees import (
    Between,
    Constraint,
    EqualTo,
    IndexOutOfRange,
    RenumberingError,
    Tree,
    configure,
)


# RAW DATA
_keys = ['a', 'b', 'c', 'd', 'e']

_dropped = [
    (),
    ('b',),
    ('a', 'e'),
    ('b', 'c', 'd'),
    ('a', 'b', 'c', 'd', 'e'),
]


# FIXTURES
@pytest.fixture(scope='module')
def system():
    v = ct.variables(_keys, (0, 10))
    sums = Tree(
        ad=Constraint(v.a.value + v.d.value + 1, (0, 5)),
        be=Constraint(2 * v.b.value - v.e.value, 0),
        sq=Constraint(ct.squared(v.c.value - v.e.value)),
    )
    return ('vars' ^ v) * ('sums' ^ sums)


@pytest.fixture(scope='module', params=_dropped)
def dropped(request):
    return request.param


@pytest.fixture(scope='module')
def assignment():
    return numpy.array([1.0, 0.5, -1.0, 2.0, 3.0, -0.25])


# HELPERS
def used_variables(x):
    out = set()
    ct.collect_variables(x, out)
    return sorted(out | {0})


# TESTS
def test_variable_count(system):
    assert ct.variable_count(system) == 5
    assert ct.variable_count(system.sums) == 5
    assert ct.variable_count(system.sums.ad) == 4
    assert ct.variable_count(Tree()) == 0
    with pytest.raises(TypeError):
        ct.variable_count('x')


def test_allocator_export():
    from constraint_trees import constraint_tree

    assert ct.variables is constraint_tree.variables
    assert 'variables' in ct.__all__
    assert ct.bookkeeping.variable_count is ct.variable_count


def test_variables_allocation():
    v = ct.variables(['z', 'y', 'x'], [(0, 1), 2, None])
    assert list(v) == ['x', 'y', 'z']
    assert v.z.value.idxs.tolist() == [1]
    assert v.x.value.idxs.tolist() == [3]
    assert v.z.bound == Between(0.0, 1.0)
    assert v.y.bound == EqualTo(2.0)
    assert v.x.bound is None

    with pytest.raises(ValueError):
        ct.variables(['x', 'y'], [None])

    w = ct.variables(['p', 'q'], weight=2.0)
    assert w.q.value.weights.tolist() == [2.0]


def test_variables_ifor(system):
    v = ct.variables_ifor(
        lambda path, c: EqualTo(len(path)) if path[0] == 'sums' else None,
        system,
    )
    assert ct.variable_count(v) == 8
    assert v.sums.ad.bound == EqualTo(2.0)
    assert v.vars.a.bound is None
    assert v.sums.ad.value.idxs.tolist() == [1]


def test_collect_variables(system):
    refs = []
    ct.collect_variables(system, refs)
    counts = collections.Counter(refs)
    # `sq` holds the pairs (3, 3), (3, 5) and (5, 5)
    assert counts[3] == 1 + 3
    assert counts[5] == 1 + 1 + 3
    assert counts[0] == 1

    seen = []
    ct.collect_variables(system.vars, lambda i: seen.append(i))
    assert seen == [1, 2, 3, 4, 5]


def test_increase_variable_indexes(system):
    shifted = ct.increase_variable_indexes(system, 10)
    assert ct.variable_count(shifted) == 15
    assert shifted.sums.ad.value.idxs.tolist() == [0, 11, 14]
    assert shifted.sums.sq.value.idxs.tolist() == [[13, 13], [13, 15], [15, 15]]
    assert ct.increase_variable_index(0, 10) == 0
    assert ct.increase_variable_index(3, 10) == 13


def test_renumber_variables(system):
    mapping = [0, 2, 4, 6, 8, 10]
    renumbered = ct.renumber_variables(system, mapping)
    assert renumbered.vars.e.value.idxs.tolist() == [10]
    assert renumbered.sums.be.bound == system.sums.be.bound

    with configure(check_renumbering=True):
        ct.renumber_variables(system, mapping)
        with pytest.raises(RenumberingError):
            ct.renumber_variables(system, [0, 5, 4, 3, 2, 1])


def test_prune_round_trip(system, dropped, assignment):
    drop = {_keys.index(k) + 1 for k in dropped}
    filtered = ct.filter_leaves(
        lambda c: not drop.intersection(used_variables(c)), system
    )
    keep = used_variables(filtered)
    pruned = ct.prune_variables(filtered)

    assert ct.variable_count(pruned) <= ct.variable_count(filtered)
    assert ct.variable_count(pruned) == len(keep) - 1
    assert ct.substitute_values(pruned, assignment[keep]) \
        == ct.substitute_values(filtered, assignment)


def test_substitution_is_deterministic(system, assignment):
    first = ct.substitute_values(system, assignment)
    second = ct.substitute_values(system, assignment)
    assert first == second
    assert numpy.array(ct.deflate(float, first)).tobytes() \
        == numpy.array(ct.deflate(float, second)).tobytes()


def test_tree_assignment_out_of_range(system, assignment):
    with pytest.raises(IndexOutOfRange):
        ct.substitute_values(system, assignment[:3])
    with pytest.raises(IndexOutOfRange):
        ct.substitute(system, list(assignment[:3]))
    with pytest.raises(IndexOutOfRange):
        ct.substitute_values(system.sums.sq, assignment[:5])


def test_prune_quadratic():
    x = ct.variables(['p', 'q', 'r', 's'])
    qv = x.q.value * x.s.value
    pruned = ct.prune_variables(qv)
    assert ct.variable_count(pruned) == 2
    assert pruned == x.p.value * x.q.value


def test_drop_zeros(system):
    tree = ct.map(lambda c: c, system)
    tree.vars['b'] = Constraint(tree.vars.b.value - tree.vars.b.value
                                + tree.vars.a.value)
    tree['sums'] = ct.filter_leaves(lambda _: False, tree.sums)
    assert ct.variable_count(ct.prune_variables(tree)) == 5
    assert ct.variable_count(ct.prune_variables(ct.drop_zeros(tree))) == 4
    assert ct.drop_zeros(tree).vars.b.value.idxs.tolist() == [1]


def test_disjoint_sum_logs(system, caplog):
    with caplog.at_level(logging.DEBUG, logger='constraint_trees'):
        ct.disjoint_sum(system, 'extra' ^ ct.variable())
    assert 'offsetting right operand by 5' in caplog.text
