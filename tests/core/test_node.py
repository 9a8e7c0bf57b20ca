"""
Tests for expression nodes.

Core claims:
    - make_operator normalizes signs: no double negation, no negated
      operand of * or /, no negated right operand of + or -
    - Rendering uses the fewest parentheses that still read back correctly
    - replace() redirects every holder and clears every stale cache above it
    - Parents are held weakly
    - serialize() -> deserialize() preserves the value
"""

import gc
from fractions import Fraction

import pytest

from alchemist.core.errors import ArithmeticDomainError, SerializationError
from alchemist.core.node import (
    NEGATE, Leaf, Operator, apply_operator, deserialize, make_leaf,
    make_operator, negate,
)


# ── Helpers ──────────────────────────────────────────────────────────────────

def L(numeral):
    return make_leaf(numeral)


def op(operator, *children):
    return make_operator(operator, *children)


# ── Construction ─────────────────────────────────────────────────────────────

class TestConstruction:
    def test_leaf(self):
        node = L("05")
        assert node.is_leaf
        assert node.body == Leaf("05")
        assert node.evaluate() == 5

    def test_operator(self):
        node = op("+", L("1"), L("2"))
        assert node.operator == "+"
        assert len(node.children) == 2
        assert isinstance(node.body, Operator)

    def test_unknown_operator(self):
        with pytest.raises(ValueError):
            op("?", L("1"), L("2"))

    def test_wrong_arity(self):
        with pytest.raises(ValueError):
            op("+", L("1"))
        with pytest.raises(ValueError):
            op(NEGATE, L("1"), L("2"))

    def test_children_know_their_parent(self):
        a, b = L("1"), L("2")
        node = op("+", a, b)
        assert node in a.parents
        assert node in b.parents


class TestNormalization:
    def test_double_negation_returns_same_handle(self):
        a = L("7")
        assert negate(negate(a)) is a

    def test_both_sides_negated_product(self):
        node = op("*", negate(L("2")), negate(L("3")))
        assert node.render() == "2*3"
        assert node.evaluate() == 6

    def test_one_side_negated_product_hoists(self):
        node = op("*", L("2"), negate(L("3")))
        assert node.is_negation
        assert node.render() == "-(2*3)"
        assert node.evaluate() == -6

    def test_negated_left_quotient_hoists(self):
        node = op("/", negate(L("6")), L("3"))
        assert node.is_negation
        assert node.evaluate() == -2

    def test_plus_negative_becomes_minus(self):
        node = op("+", L("1"), negate(L("2")))
        assert node.operator == "-"
        assert node.render() == "1-2"

    def test_minus_negative_becomes_plus(self):
        node = op("-", L("1"), negate(L("2")))
        assert node.operator == "+"
        assert node.render() == "1+2"

    def test_negated_left_of_sum_kept(self):
        node = op("+", negate(L("1")), L("2"))
        assert node.render() == "-1+2"
        assert node.evaluate() == 1


# ── Rendering ────────────────────────────────────────────────────────────────

class TestRender:
    def test_lower_precedence_child(self):
        assert op("*", op("+", L("1"), L("2")), L("3")).render() == "(1+2)*3"

    def test_higher_precedence_child(self):
        assert op("+", L("1"), op("*", L("2"), L("3"))).render() == "1+2*3"

    def test_associative_chain(self):
        assert op("+", L("1"), op("+", L("2"), L("3"))).render() == "1+2+3"
        assert op("*", op("*", L("1"), L("2")), L("3")).render() == "1*2*3"

    def test_subtraction_right_side(self):
        assert op("-", L("1"), op("-", L("2"), L("3"))).render() == "1-(2-3)"
        assert op("-", op("-", L("1"), L("2")), L("3")).render() == "1-2-3"

    def test_division_right_side(self):
        assert op("/", L("8"), op("/", L("4"), L("2"))).render() == "8/(4/2)"
        assert op("/", op("/", L("8"), L("4")), L("2")).render() == "8/4/2"

    def test_mixed_same_precedence(self):
        assert op("/", L("1"), op("*", L("2"), L("3"))).render() == "1/(2*3)"
        assert op("*", op("/", L("1"), L("2")), L("3")).render() == "(1/2)*3"

    def test_modulo_always_parenthesized(self):
        assert op("%", op("%", L("7"), L("4")), L("2")).render() == "(7%4)%2"

    def test_power_is_right_associative(self):
        assert op("^", L("2"), op("^", L("3"), L("2"))).render() == "2^3^2"
        assert op("^", op("^", L("2"), L("3")), L("2")).render() == "(2^3)^2"

    def test_negated_power_base(self):
        node = op("^", negate(L("2")), L("2"))
        assert node.render() == "(-2)^2"
        assert node.evaluate() == 4

    def test_negated_exponent(self):
        node = op("^", L("2"), negate(L("3")))
        assert node.render() == "2^-3"
        assert node.evaluate() == Fraction(1, 8)

    def test_negated_sum(self):
        assert negate(op("+", L("1"), L("2"))).render() == "-(1+2)"

    def test_negated_power(self):
        assert negate(op("^", L("2"), L("2"))).render() == "-(2^2)"

    def test_signed_leaf_parenthesized(self):
        assert op("+", L("-3"), L("1")).render() == "(-3)+1"

    def test_str_and_repr(self):
        node = op("+", L("1"), L("2"))
        assert str(node) == "1+2"
        assert repr(node) == "Node('1+2')"


# ── Evaluation ───────────────────────────────────────────────────────────────

class TestEvaluate:
    def test_exact(self):
        assert op("/", L("1"), L("3")).evaluate() == Fraction(1, 3)

    def test_undefined(self):
        with pytest.raises(ArithmeticDomainError):
            op("/", L("1"), L("0")).evaluate()

    def test_apply_operator_unknown(self):
        with pytest.raises(ArithmeticDomainError):
            apply_operator("&", Fraction(1), Fraction(2))

    def test_trace(self):
        trace = op("+", L("1"), L("2")).trace()
        assert trace.text == "(1) + (2) = 3"
        assert trace.value == 3

    def test_negation_trace(self):
        trace = negate(op("+", L("1"), L("2"))).trace()
        assert trace.text.startswith("-(")
        assert trace.value == -3


# ── Replacement ──────────────────────────────────────────────────────────────

class TestReplace:
    def test_holder_sees_replacement(self):
        inner = op("+", L("1"), L("2"))
        parent = op("*", inner, L("3"))
        assert parent.render() == "(1+2)*3"
        inner.replace(L("3"))
        assert inner.render() == "3"
        assert parent.render() == "3*3"
        assert parent.evaluate() == 9

    def test_grandparent_cache_cleared(self):
        inner = op("+", L("1"), L("2"))
        parent = op("*", inner, L("3"))
        top = op("-", parent, L("1"))
        assert top.render() == "(1+2)*3-1"
        inner.replace(L("3"))
        assert top.render() == "3*3-1"

    def test_parents_move_to_new_node(self):
        inner = op("+", L("1"), L("2"))
        parent = op("*", inner, L("3"))
        new = L("3")
        inner.replace(new)
        assert inner.resolve() is new
        assert parent in new.parents

    def test_replace_chain_resolves(self):
        a = op("+", L("1"), L("2"))
        b = op("*", L("1"), L("3"))
        c = L("3")
        a.replace(b)
        b.replace(c)
        assert a.resolve() is c
        assert a.render() == "3"

    def test_replace_with_self_is_noop(self):
        a = op("+", L("1"), L("2"))
        a.replace(a)
        assert a.render() == "1+2"


class TestWeakParents:
    def test_dead_parent_drops_out(self):
        child = L("1")
        parent = op("+", child, L("2"))
        assert len(child.parents) == 1
        del parent
        gc.collect()
        assert child.parents == []

    def test_unregister(self):
        child = L("1")
        parent = op("+", child, L("2"))
        child.unregister_parent(parent)
        assert parent not in child.parents


# ── Serialization ────────────────────────────────────────────────────────────

class TestSerialize:
    def test_leaf(self):
        assert L("12").serialize() == "12"

    def test_tree(self):
        node = op("+", L("1"), negate(L("2")))
        assert node.serialize() == {"operator": "-", "children": ["1", "2"]}

    def test_round_trip(self):
        node = op("^", negate(L("2")), op("%", L("7"), L("3")))
        copy = deserialize(node.serialize())
        assert copy.render() == node.render()
        assert copy.evaluate() == node.evaluate()

    @pytest.mark.parametrize("tree", [
        5,
        "x",
        {"operator": "?", "children": ["1", "2"]},
        {"operator": "+", "children": ["1"]},
        {"operator": "+", "children": "12"},
        {"operator": "+"},
    ])
    def test_malformed(self, tree):
        with pytest.raises(SerializationError):
            deserialize(tree)
