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

import operator

import pytest

import constraint_trees as ct
from constraint_trees import (
    MISSING,
    Between,
    Constraint,
    LinearValue,
    StructuralMergeError,
    Tree,
)


# FIXTURES
@pytest.fixture(scope='module')
def point():
    return 'point' ^ ct.variables(['x', 'y'], Between(0, 1))


@pytest.fixture(scope='module')
def solutions(point):
    s1 = ct.substitute_values(point, [1.0, 0.9, 0.8])
    s2 = ct.substitute_values(point, [1.0, 0.99, 0.78])
    return s1, s2


@pytest.fixture(scope='module')
def joined(solutions):
    s1, s2 = solutions
    t1 = ('x' ^ s1.point) * ('y' ^ s2.point)
    t2 = ('x' ^ s2.point) * ('z' ^ s1.point)
    t3 = 'y' ^ s2.point
    return t1, t2, t3


# HELPERS
def average(*xs):
    present = [x for x in xs if x is not MISSING]
    return sum(present) / len(present)


def labels(tree):
    '''Set of all paths in a tree, including those of subtrees.'''
    out = set()

    def walk(t, path):
        for label, x in t.items():
            out.add(path + (label,))
            if isinstance(x, Tree):
                walk(x, path + (label,))

    walk(tree, ())
    return out


# TESTS
def test_sorted_labels():
    t = Tree({'b': 1, 'c': 2}, a=3)
    assert list(t) == ['a', 'b', 'c']
    t['aa'] = 4
    assert list(t) == ['a', 'aa', 'b', 'c']
    del t['b']
    assert list(t) == ['a', 'aa', 'c']


def test_access(point):
    assert point['point']['x'] is point.point.x
    assert 'point' in point
    assert len(point.point) == 2
    assert dict(point.elems) == {'point': point.point}
    with pytest.raises(AttributeError):
        point.nothing
    with pytest.raises(TypeError):
        point.elems['other'] = 1
    with pytest.raises(TypeError):
        Tree({1: 'x'})


def test_labeling_any_leaf():
    t = Tree.labeled('v', 1.5)
    assert t.v == 1.5
    nested = 'a' ^ ('b' ^ t)
    assert nested.a.b.v == 1.5


def test_sharing_product():
    x = 'x' ^ ct.variable()
    z = 'z' ^ ct.variable()
    assert ct.variable_count(x * z) == 1
    assert list(x * z) == ['x', 'z']
    with pytest.raises(StructuralMergeError):
        x * x


def test_product_merges_subtrees():
    a = 'g' ^ ('x' ^ ct.variable())
    b = 'g' ^ ('y' ^ ct.variable(idx=2))
    merged = a * b
    assert list(merged.g) == ['x', 'y']
    assert merged.g.x is a.g.x

    with pytest.raises(StructuralMergeError, match='g/x'):
        a * ('g' ^ ('x' ^ ct.variable()))
    with pytest.raises(StructuralMergeError):
        a * ('g' ^ ct.variable())


def test_disjoint_sum():
    x = 'x' ^ ct.variable()
    y = 'y' ^ ct.variable()
    s = x + y
    assert ct.variable_count(s) == 2
    assert s.x.value.idxs.tolist() == [1]
    assert s.y.value.idxs.tolist() == [2]
    assert y.y.value.idxs.tolist() == [1]


def test_disjoint_sum_keeps_affine_element():
    x = 'x' ^ ct.variables(['a', 'b'])
    y = 'y' ^ Constraint(LinearValue([0, 1], [5.0, 1.0]))
    s = x + y
    assert s.y.value.idxs.tolist() == [0, 3]


def test_composition_order():
    a = 'a' ^ ct.variable()
    b = 'b' ^ ct.variable()
    c = 'c' ^ ct.variable()
    assert (a + b) * c == a * c + b
    assert ((a + b) * c).c.value.idxs.tolist() == [1]
    assert (a + (b * c)).c.value.idxs.tolist() == [2]


def test_map(point):
    x = ct.map(lambda c: Constraint(c.value, -2 * c.bound), point)
    assert x.point.x.bound.lower == -2.0
    assert ct.map(lambda v: v + 1, 1) == 2


def test_imap(point):
    x = ct.imap(
        lambda path, c: Constraint(c.value, 100 * c.bound)
        if path == ('point', 'x') else c,
        point,
    )
    assert x.point.x.bound.upper == 100
    assert x.point.y is point.point.y


def test_reduce(point):
    assert ct.mapreduce(lambda _: 1, operator.add, point, 0) == 2

    total = ct.reduce(
        lambda a, b: Constraint(a.value + b.value),
        point,
        Constraint(LinearValue.zero()),
    )
    assert total.value.idxs.tolist() == [1, 2]
    assert total.value.weights.tolist() == [1.0, 1.0]


def test_ireduce(point):
    seen = []

    def op(path, a, b):
        seen.append(path)
        return Constraint(a.value + b.value)

    total = ct.ireduce(op, point, Constraint(LinearValue.zero()))
    assert total.value.idxs.tolist() == [1, 2]
    assert set(seen) == {(), ('point',)}

    count = ct.imapreduce(
        lambda path, _: len(path),
        lambda path, a, b: a + b,
        point, 0,
    )
    assert count == 4


def test_zip(solutions):
    s1, s2 = solutions
    x = ct.zip(lambda a, b: (a - b) ** 2, s1, s2)
    assert x.point.x == pytest.approx(0.09 ** 2)

    x = ct.izip(
        lambda path, a, b: (10 if path == ('point', 'x') else 1)
        * (a - b) ** 2,
        s1, s2,
    )
    assert x.point.x == pytest.approx(10 * 0.09 ** 2)
    assert x.point.y == pytest.approx(0.02 ** 2)

    same = ct.izip(lambda _, a, b, c: a == c, s1, s2, s1)
    assert ct.reduce(operator.and_, same, True)


def test_zip_is_inner_join(joined):
    t1, t2, _ = joined
    z = ct.zip(lambda a, b: a - b, t1, t2)
    assert labels(z) == labels(t1) & labels(t2)
    assert list(z) == ['x']


def test_merge(joined):
    t1, t2, t3 = joined
    t = ct.merge(average, t1, t2)
    assert t.x.x == pytest.approx(0.945)
    assert t.x.y == pytest.approx(0.79)
    assert labels(t) == labels(t1) | labels(t2)

    def only_with_third(x, y, z):
        if z is MISSING:
            return MISSING
        return average(x, y)

    tz = ct.merge(only_with_third, t1, t2, t3)
    assert tz.y.x == pytest.approx(0.99)
    assert tz.y.y == pytest.approx(0.78)
    assert 'x' not in tz.x


def test_imerge(joined):
    t1, t2, t3 = joined

    def only_x(path, *xs):
        if path[-1] != 'x':
            return MISSING
        return average(*xs)

    tx = ct.imerge(only_x, t1, t2)
    assert tx.y.x == pytest.approx(0.99)
    assert 'y' not in tx.y

    tx = ct.imerge(only_x, t1, t2, t3)
    assert tx.y.x == pytest.approx(0.99)
    assert tx.x.x == pytest.approx(0.945)


def test_join_arity(solutions):
    s1, _ = solutions
    with pytest.raises(TypeError):
        ct.zip(lambda a: a, s1)
    with pytest.raises(TypeError):
        ct.merge(lambda a: a, s1)


def test_traverse_order():
    t = Tree(b=Tree(y=1, x=2), a=3, c=Tree(z=4))
    paths = []
    ct.itraverse(lambda path, _: paths.append(path), t)
    assert paths == [('a',), ('b', 'x'), ('b', 'y'), ('c', 'z')]

    leaves = []
    ct.traverse(leaves.append, t)
    assert leaves == [3, 2, 1, 4]


def test_filter(joined):
    t1, t2, _ = joined
    t = ct.merge(average, t1, t2)
    x = ct.variables_for(lambda a: Between(a - 1, a + 1), t)

    filtered = ct.ifilter(
        lambda path, c: isinstance(c, Tree) or path[-1] != 'y', x
    )
    assert 'y' not in filtered.x
    assert 'x' in filtered.x

    filtered = ct.filter(
        lambda c: isinstance(c, Tree) or c.value.idxs[0] >= 4, x
    )
    assert list(filtered) == ['y', 'z']

    filtered = ct.filter(lambda c: not isinstance(c, Tree), x)
    assert len(filtered) == 0


def test_filter_leaves(joined):
    t1, t2, _ = joined
    x = ct.variables_for(lambda a: Between(a - 1, a + 1),
                         ct.merge(average, t1, t2))

    filtered = ct.ifilter_leaves(lambda path, _: path[-1] != 'y', x)
    assert 'y' not in filtered.x

    filtered = ct.filter_leaves(lambda c: c.value.idxs[0] >= 4, x)
    assert list(filtered) == ['x', 'y', 'z']
    assert len(filtered.x) == 0
    assert ct.variable_count(filtered) == 6
    assert ct.variable_count(ct.prune_variables(filtered)) == 3


def test_deflate_reinflate(point):
    bounds = ct.deflate(lambda c: c.bound, point)
    assert bounds == [Between(0, 1), Between(0, 1)]

    rows = ct.ideflate(lambda path, c: ('/'.join(path), c.value), point)
    assert [name for name, _ in rows] == ['point/x', 'point/y']

    values = ct.reinflate(point, [1.0, 2.0])
    assert values.point.x == 1.0
    assert values.point.y == 2.0

    with pytest.raises(ValueError):
        ct.reinflate(point, [1.0])
    with pytest.raises(ValueError):
        ct.reinflate(point, [1.0, 2.0, 3.0])
