"""
Exact numeric values.

Values are fractions.Fraction everywhere: integers are Fractions with
denominator 1, so equality, ordering and the canonical string form are
exact. The helpers here add the one thing Fraction does not do on its
own: report "undefined" as ArithmeticDomainError instead of raising
ZeroDivisionError or silently returning a float.

Canonical strings:
    Fraction(12)     -> "12"
    Fraction(-7, 4)  -> "-7/4"
"""

from fractions import Fraction
from numbers import Rational

from .errors import ArithmeticDomainError


# Refuse to build powers larger than this; a single huge exponent would
# otherwise stall the whole search on one candidate.
MAX_EXPONENT = 10_000


def to_value(x) -> Fraction:
    """Coerce an int, Fraction or numeral string to a Fraction."""
    if isinstance(x, Fraction):
        return x
    if isinstance(x, str):
        return parse_value(x)
    if isinstance(x, Rational):
        return Fraction(x)
    raise TypeError(f"not an exact value: {x!r}")


def parse_value(text: str) -> Fraction:
    """Parse "12", "-3", "7/4" (surrounding whitespace allowed)."""
    try:
        return Fraction(text.strip())
    except (ValueError, ZeroDivisionError) as e:
        raise ValueError(f"not an exact value: {text!r}") from e


def format_value(value) -> str:
    return str(to_value(value))


def is_integer(value: Fraction) -> bool:
    return value.denominator == 1


def divide(a: Fraction, b: Fraction) -> Fraction:
    if b == 0:
        raise ArithmeticDomainError(f"division by zero: {a}/{b}")
    return Fraction(a) / b


def modulo(a: Fraction, b: Fraction) -> Fraction:
    """Floor modulo: the result takes the sign of b."""
    if b == 0:
        raise ArithmeticDomainError(f"modulo by zero: {a}%{b}")
    return Fraction(a) % b


def _integer_root(n: int, q: int) -> int:
    """Floor of the q-th root of n >= 0."""
    if n < 2:
        return n
    if q >= n.bit_length():
        return 1
    x = 1 << -(-n.bit_length() // q)
    while True:
        y = ((q - 1) * x + n // x ** (q - 1)) // q
        if y >= x:
            return x
        x = y


def exact_root(value: Fraction, q: int) -> Fraction:
    """The exact q-th root of value, or ArithmeticDomainError."""
    if value < 0:
        if q % 2 == 0:
            raise ArithmeticDomainError(f"even root of a negative: {value}")
        return -exact_root(-value, q)
    num = _integer_root(value.numerator, q)
    den = _integer_root(value.denominator, q)
    if num ** q != value.numerator or den ** q != value.denominator:
        raise ArithmeticDomainError(f"inexact root: {value}^(1/{q})")
    return Fraction(num, den)


def power(base: Fraction, exponent: Fraction) -> Fraction:
    """
    Exact power.

    Integer exponents are always exact (negative ones give reciprocals).
    A fractional exponent p/q is exact only when base is a perfect q-th
    power.
    """
    base, exponent = Fraction(base), Fraction(exponent)
    if not is_integer(exponent):
        return power(exact_root(base, exponent.denominator),
                     Fraction(exponent.numerator))
    e = exponent.numerator
    if base == 0 and e < 0:
        raise ArithmeticDomainError(f"zero to a negative power: {base}^{e}")
    if abs(e) > MAX_EXPONENT and abs(base) != 1 and base != 0:
        raise ArithmeticDomainError(f"exponent too large: {base}^{e}")
    return base ** e
