"""
Dictionary merge: every pairwise binary-operator result of two mappings.

For each (a -> A) in the first mapping and (b -> B) in the second:

    a+b, a-b, a*b       always
    a/b                 only when the quotient is an integer
    a%b                 unless undefined (b == 0)
    a^b                 unless |a| or |b| exceeds len(bound) digits,
                        or the power is undefined / inexact

Every skip is local to that one candidate.
"""

from fractions import Fraction

from ..core.dictionary import add
from ..core.errors import ArithmeticDomainError
from ..core.node import make_operator
from ..core.value import divide, format_value, is_integer, modulo, power, to_value


def _power_limit(bound) -> int:
    if isinstance(bound, str):
        return len(bound)
    return len(str(abs(to_value(bound)).numerator))


def _offer(result: dict, value: Fraction, operator: str, left, right, floor: int):
    # A new node renders at least `floor` characters, its negation at least
    # floor - 3. When both keys are already that cheap, building it cannot win.
    existing = result.get(format_value(value))
    if existing is not None and len(existing.render()) <= floor:
        opposite = result.get(format_value(-value))
        if opposite is not None and len(opposite.render()) <= floor - 3:
            return
    add(result, value, make_operator(operator, left, right))


def merge_dictionaries(first: dict, second: dict, bound) -> dict:
    """
    Cross product of two mappings under + - * / % ^.

    bound is conventionally the base digit string repeated twice; only
    its decimal length matters (it caps the operands of ^).
    """
    limit = _power_limit(bound)
    result = {}
    right_entries = [(to_value(key), node, len(node.render()))
                     for key, node in second.items()]

    for key_a, node_a in first.items():
        a = to_value(key_a)
        len_a = len(node_a.render())
        for b, node_b, len_b in right_entries:
            # sign normalization can shed up to 5 characters of the operands
            floor = len_a + len_b - 5
            _offer(result, a + b, "+", node_a, node_b, floor)
            _offer(result, a - b, "-", node_a, node_b, floor)
            _offer(result, a * b, "*", node_a, node_b, floor)
            try:
                _offer(result, modulo(a, b), "%", node_a, node_b, floor)
                quotient = divide(a, b)
                if is_integer(quotient):
                    _offer(result, quotient, "/", node_a, node_b, floor)
            except ArithmeticDomainError:
                pass
            if abs(a) > limit or abs(b) > limit:
                continue
            try:
                _offer(result, power(a, b), "^", node_a, node_b, floor)
            except ArithmeticDomainError:
                pass

    return result
