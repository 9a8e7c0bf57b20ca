"""
Evaluate rendered expression text.

The reader's side of Node.render: parses "1+2*3", "-(12/4)", "2^-3",
"(-2)^2", "05%3" and evaluates them exactly. Grammar, loosest first:

    sum      := product (("+" | "-") product)*
    product  := unary (("*" | "/" | "%") unary)*
    unary    := "-" unary | power
    power    := atom ("^" unary)?          right-associative
    atom     := DIGITS | "(" sum ")"

Leading zeros are allowed in numerals (digit substrings like "05"
appear as leaves), which is one reason this is not Python's eval.
"""

import re
from fractions import Fraction

from .errors import ExpressionSyntaxError
from .node import NEGATE, apply_operator


_TOKEN = re.compile(r"\s*(?:(\d+)|(.))")


def tokenize(text: str) -> list:
    tokens = []
    for match in _TOKEN.finditer(text):
        digits, symbol = match.groups()
        if digits is not None:
            tokens.append(digits)
        elif symbol is not None and not symbol.isspace():
            if symbol not in "+-*/%^()":
                raise ExpressionSyntaxError(f"unexpected character {symbol!r} in {text!r}")
            tokens.append(symbol)
    return tokens


class _Parser:
    def __init__(self, text: str):
        self.text = text
        self.tokens = tokenize(text)
        self.pos = 0

    def peek(self):
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def take(self):
        token = self.peek()
        if token is None:
            raise ExpressionSyntaxError(f"unexpected end of {self.text!r}")
        self.pos += 1
        return token

    def parse(self) -> Fraction:
        value = self.sum()
        if self.peek() is not None:
            raise ExpressionSyntaxError(f"unexpected {self.peek()!r} in {self.text!r}")
        return value

    def sum(self) -> Fraction:
        value = self.product()
        while self.peek() in ("+", "-"):
            op = self.take()
            value = apply_operator(op, value, self.product())
        return value

    def product(self) -> Fraction:
        value = self.unary()
        while self.peek() in ("*", "/", "%"):
            op = self.take()
            value = apply_operator(op, value, self.unary())
        return value

    def unary(self) -> Fraction:
        if self.peek() == "-":
            self.take()
            return apply_operator(NEGATE, self.unary())
        return self.power()

    def power(self) -> Fraction:
        base = self.atom()
        if self.peek() == "^":
            self.take()
            return apply_operator("^", base, self.unary())
        return base

    def atom(self) -> Fraction:
        token = self.take()
        if token == "(":
            value = self.sum()
            if self.take() != ")":
                raise ExpressionSyntaxError(f"unbalanced parentheses in {self.text!r}")
            return value
        if token.isdigit():
            return Fraction(int(token))
        raise ExpressionSyntaxError(f"unexpected {token!r} in {self.text!r}")


def evaluate_expression(text: str) -> Fraction:
    """
    Exact value of a rendered expression.

    Raises ExpressionSyntaxError for malformed text and
    ArithmeticDomainError for undefined operations (e.g. "1/0").
    """
    return _Parser(text).parse()
