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

import pytest

from constraint_trees import (
    Between,
    Constraint,
    ConstraintAlgebraError,
    ConstraintTree,
    EqualTo,
    Integers,
    LinearValue,
    StructuralMergeError,
    Tree,
    bound,
    value,
    variable,
    variables,
)


# FIXTURES
@pytest.fixture
def con():
    return Constraint(LinearValue([0, 1, 2], [1.0, 2.0, -1.0]), (0, 4))


# TESTS
def test_coercion():
    c = Constraint(LinearValue.variable(1), 3)
    assert c.bound == EqualTo(3.0)
    c = Constraint(LinearValue.variable(1), (5, 1))
    assert c.bound == Between(1.0, 5.0)
    c = Constraint(2.5)
    assert c.value == LinearValue.constant(2.5)
    assert c.bound is None


def test_scaling(con):
    scaled = -2 * con
    assert scaled.value.weights.tolist() == [-2.0, -4.0, 2.0]
    assert scaled.bound == Between(-8.0, 0.0)
    assert con * -2 == scaled
    assert -con == con * -1
    assert (con / 2).bound == Between(0.0, 2.0)
    assert con.bound == Between(0.0, 4.0)


def test_scaling_without_bound():
    c = Constraint(LinearValue.variable(1)) * 3
    assert c.bound is None
    assert c.value.weights.tolist() == [3.0]


def test_scaling_markers():
    c = variable(bound=Integers)
    assert (c * 2).bound is Integers


def test_addition_fails(con):
    with pytest.raises(ConstraintAlgebraError):
        con + con
    with pytest.raises(ConstraintAlgebraError):
        con - con
    with pytest.raises(ConstraintAlgebraError):
        sum([con, con])
    with pytest.raises(TypeError):
        con + 1


def test_products_fail(con):
    with pytest.raises(StructuralMergeError):
        con * con
    tree = 'x' ^ con
    with pytest.raises(StructuralMergeError):
        con * tree
    with pytest.raises(StructuralMergeError):
        tree * con


def test_rejects_foreign_values():
    for val in ('abc', None, [1.0, 2.0], Between(0, 1)):
        with pytest.raises(TypeError):
            Constraint(val)
    con = Constraint(LinearValue.variable(1), 0)
    with pytest.raises(TypeError):
        con.substitute([None, 2j])


def test_constraint_tree_alias():
    tree = variables(['x', 'y'])
    assert isinstance(tree, Tree)
    with pytest.raises(TypeError):
        isinstance(tree, ConstraintTree)


def test_labeling(con):
    tree = 'x' ^ con
    assert isinstance(tree, Tree)
    assert list(tree) == ['x']
    assert tree.x is con


def test_accessors(con):
    assert value(con) is con.value
    assert bound(con) is con.bound


def test_substitute_keeps_bound(con):
    res = con.substitute([None, 1.0, 3.0])
    assert res.bound == con.bound
    assert res.value == LinearValue.constant(0.0)

    res = con.substitute([None, 2.0, LinearValue.variable(1)])
    assert res.value == LinearValue([0, 1], [5.0, -1.0])


def test_mutation(con):
    con.bound = Between(1, 2)
    assert con.bound == Between(1.0, 2.0)
    con.value = con.value + 1
    assert con.value.weights.tolist() == [2.0, 2.0, -1.0]
