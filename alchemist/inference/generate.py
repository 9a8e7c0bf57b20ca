"""
Dictionary generation from a base digit string.

generate("123") splits the digits at every point, generates both halves
recursively and merges them:

    "1" | "23"   ->  merge(generate("1"), generate("23"))
    "12" | "3"   ->  merge(generate("12"), generate("3"))

Only the last split's merge is kept unless accumulate_splits is set, in
which case the merges of all splits are folded together. Either way the
literal numeral itself ("123") is added at the end, with its negation.
Results are memoized per digit substring for the generator's lifetime.
"""

import re

from ..core.dictionary import add, base_add, union
from ..core.node import make_leaf
from ..core.value import parse_value
from .merge import merge_dictionaries


def strip_digits(text) -> str:
    """Keep only the decimal digits of text; empty input is an error."""
    digits = re.sub(r"\D", "", str(text))
    if not digits:
        raise ValueError(f"no digits in base {text!r}")
    return digits


class DictionaryGenerator:
    """Memoized recursive digit-splitting, owned by one dictionary."""

    def __init__(self, bound: str, accumulate_splits: bool = False):
        self.bound = bound
        self.accumulate_splits = accumulate_splits
        self._cache = {}

    def __contains__(self, digits: str) -> bool:
        return digits in self._cache

    def generate(self, digits: str) -> dict:
        if digits in self._cache:
            return self._cache[digits]

        result = {}
        for i in range(1, len(digits)):
            merged = merge_dictionaries(
                self.generate(digits[:i]),
                self.generate(digits[i:]),
                self.bound,
            )
            if self.accumulate_splits:
                union(result, merged)
            else:
                result = merged

        add(result, parse_value(digits), make_leaf(digits))
        self._cache[digits] = result
        return result


def seed_mapping(digits: str, generator: DictionaryGenerator = None,
                 verbose: bool = False) -> dict:
    """
    The initial contents of an expression dictionary.

    generate(digits), unioned with the self-merge of the bare literal,
    then the whole thing merged with itself once more for one extra
    level of operator composition.
    """
    bound = digits * 2
    if generator is None:
        generator = DictionaryGenerator(bound)

    generated = generator.generate(digits)
    if verbose:
        print(f"  [generate] {digits}: {len(generated)} values")

    literal = {}
    base_add(literal, parse_value(digits), make_leaf(digits))
    mapping = union({}, merge_dictionaries(literal, literal, bound))
    union(mapping, generated)
    if verbose:
        print(f"  [seed] {len(mapping)} values")

    union(mapping, merge_dictionaries(mapping, mapping, bound))
    if verbose:
        print(f"  [self-merge] {len(mapping)} values")
    return mapping
