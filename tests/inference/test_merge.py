"""
Property-based and unit tests for dictionary merge.

Core claims:
    - Every merged entry evaluates exactly to its key (soundness)
    - Division only contributes integer quotients
    - Undefined candidates are skipped without aborting the merge
    - ^ is only tried on operands within the bound's digit count
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from alchemist.core.dictionary import add, base_add
from alchemist.core.node import make_leaf
from alchemist.core.value import to_value
from alchemist.inference.merge import _power_limit, merge_dictionaries


# ── Helpers ──────────────────────────────────────────────────────────────────

def literal_map(*numerals):
    mapping = {}
    for numeral in numerals:
        base_add(mapping, numeral, make_leaf(numeral))
    return mapping


@st.composite
def small_mapping(draw):
    mapping = {}
    for n in draw(st.lists(st.integers(0, 20), min_size=1, max_size=3)):
        add(mapping, n, make_leaf(str(n)))
    return mapping


# ── Unit tests ───────────────────────────────────────────────────────────────

class TestMerge:
    def test_basic_operators(self):
        result = merge_dictionaries(literal_map("2"), literal_map("3"), "2323")
        assert result["5"].render() == "2+3"
        assert result["-1"].render() == "2-3"
        assert result["1"].render() == "-(2-3)"
        assert result["6"].render() == "2*3"
        assert result["2"].render() == "2%3"
        assert result["8"].render() == "2^3"

    def test_negations_included(self):
        result = merge_dictionaries(literal_map("2"), literal_map("3"), "2323")
        for key in list(result):
            assert str(-to_value(key)) in result

    def test_exact_division_only(self):
        result = merge_dictionaries(literal_map("6"), literal_map("3"), "6363")
        assert result["2"].render() == "6/3"
        inexact = merge_dictionaries(literal_map("2"), literal_map("3"), "2323")
        assert "2/3" not in inexact

    def test_zero_divisor_skipped(self):
        result = merge_dictionaries(literal_map("6"), literal_map("0"), "60")
        assert result["6"].render() == "6+0"
        assert result["0"].render() == "6*0"
        assert not any("%" in node.render() or "/" in node.render()
                       for node in result.values())

    def test_power_limited_by_bound(self):
        result = merge_dictionaries(literal_map("2"), literal_map("3"), "1")
        assert "8" not in result

    def test_power_limit(self):
        assert _power_limit("123123") == 6
        assert _power_limit(12345) == 5

    def test_inputs_unchanged(self):
        first, second = literal_map("2"), literal_map("3")
        merge_dictionaries(first, second, "2323")
        assert list(first) == ["2"]
        assert first["2"].render() == "2"


# ── Property tests ───────────────────────────────────────────────────────────

class TestMergeProperties:
    @given(small_mapping(), small_mapping())
    @settings(max_examples=50, deadline=None)
    def test_sound(self, first, second):
        result = merge_dictionaries(first, second, "99")
        for key, node in result.items():
            assert node.evaluate() == to_value(key)

    @given(small_mapping(), small_mapping())
    @settings(max_examples=50, deadline=None)
    def test_closed_under_negation(self, first, second):
        result = merge_dictionaries(first, second, "99")
        for key in result:
            assert str(-to_value(key)) in result
