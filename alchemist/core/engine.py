"""
The proof search.

An ExpressionDictionary is seeded from a base digit string and then
answers prove(target): return an expression over the dictionary that
evaluates exactly to target. Anything derived along the way is written
back into the dictionary, so later queries get cheaper and earlier
expressions get shorter.

One call, for an integer target t:

    1. t is a key                -> return its node
    2. depth budget used up      -> DepthExhausted
    3. t = a*b, a,b != +-1       -> prove a, b; record a*b
    4. passes over the keys, largest magnitude first; the first pass
       that succeeds ends the call:
         division        t = k^n * q
         multiplication  t = (t*k) / k        when t*k is already known
         modulo          t = k*q + r
         subtraction     t = k + (t-k)
         addition        t = (t+k) - k
    5. nothing worked            -> ProofNotFound

A non-integer target is proved as numerator / denominator.

After a success the division and modulo passes sometimes jump back to
a random earlier key and keep going, so repeated queries do not always
settle on the same shape.
"""

import asyncio
import bisect
import json
import math
import random
from dataclasses import dataclass
from fractions import Fraction
from typing import Callable, Optional

from .dictionary import add, deserialize_map, serialize_map
from .errors import (
    ArithmeticDomainError, DepthExhausted, ProofError, ProofMismatch,
    ProofNotFound, SerializationError,
)
from .expression import evaluate_expression
from .node import Node, make_operator
from .value import format_value, is_integer, to_value
from ..inference.factorize import factorize
from ..inference.generate import DictionaryGenerator, seed_mapping, strip_digits


DEFAULT_MAX_DEPTH = math.inf
VERIFY_DEPTH = 17

# Beyond this many nested searches the factor step is skipped: it peels
# one prime per level, the key passes a whole key.
FACTOR_NESTING_LIMIT = 64


def _magnitude_order(value):
    # descending magnitude, positive before negative
    return (-abs(value), -value)


@dataclass
class _Progress:
    key: str
    callback: Callable
    last: Optional[str] = None


class ExpressionDictionary:
    """
    Value -> cheapest known expression, for one base digit string.

    Args:
        base:                 digit string; non-digits are stripped
        mapping:              prebuilt contents (used by load); skips generation
        verbose:              print progress
        seed:                 seed for the diversification randomness
        continue_probability: chance to keep scanning after a success
        max_restarts:         jumps back allowed per pass
        accumulate_splits:    fold every digit split, not just the last
    """

    def __init__(
        self,
        base,
        *,
        mapping: Optional[dict] = None,
        verbose: bool = False,
        seed=None,
        continue_probability: float = 1 / 3,
        max_restarts: int = 3,
        accumulate_splits: bool = False,
    ):
        self.base = strip_digits(base)
        self.verbose = verbose
        self.continue_probability = continue_probability
        self.max_restarts = max_restarts
        self.rng = random.Random(seed)
        self.generator = DictionaryGenerator(self.base * 2, accumulate_splits)
        self.history = []

        if mapping is None:
            if verbose:
                print(f"Building dictionary for {self.base}")
            mapping = seed_mapping(self.base, self.generator, verbose)
        self.data = mapping
        self._keys = sorted((to_value(key) for key in self.data), key=_magnitude_order)
        self._progress = None
        self._failures = {}
        self._nesting = 0

    # ── Lookup ───────────────────────────────────────────────────────────────

    def __len__(self):
        return len(self.data)

    def __contains__(self, value):
        return format_value(value) in self.data

    def get_node(self, value) -> Optional[Node]:
        return self.data.get(format_value(value))

    def keys(self) -> list:
        """Every value in the dictionary, largest magnitude first."""
        return list(self._keys)

    def _keys_within(self, limit) -> list:
        """Keys with |key| <= limit, largest magnitude first."""
        start = bisect.bisect_left(self._keys, (-limit, -math.inf), key=_magnitude_order)
        return self._keys[start:]

    def _same_sign_keys(self, target: Fraction, limit) -> list:
        return [k for k in self._keys_within(limit)
                if is_integer(k) and k * target > 0]

    def _node_for(self, value) -> Node:
        return self.data[format_value(value)]

    # ── Recording ────────────────────────────────────────────────────────────

    def _record(self, target: Fraction, node: Node, strategy: str) -> Node:
        key = format_value(target)
        before = self.data.get(key)
        old_text = before.render() if before is not None else None

        for value in add(self.data, target, node):
            bisect.insort(self._keys, value, key=_magnitude_order)

        entry = self.data[key]
        text = entry.render()
        if text != old_text:
            self.history.append({
                "step": len(self.history) + 1,
                "value": key,
                "expression": text,
                "strategy": strategy,
            })
            if self.verbose:
                tag = "new" if before is None else "improved"
                print(f"  [{tag}] {key} = {text}  ({strategy})")
        self._report_progress()
        return entry

    def _report_progress(self):
        progress = self._progress
        if progress is None:
            return
        node = self.data.get(progress.key)
        if node is None:
            return
        text = node.render()
        if text != progress.last:
            progress.last = text
            progress.callback(node)

    # ── Search ───────────────────────────────────────────────────────────────

    def prove_ast(self, target, max_depth=DEFAULT_MAX_DEPTH,
                  on_progress: Optional[Callable] = None) -> Node:
        """
        An expression node evaluating exactly to target.

        on_progress(node) is called whenever the best known expression
        for target changes while the search is still running.
        Raises DepthExhausted or ProofNotFound.

        Within one call a value that failed at some depth is refused at
        once when asked for again at that depth or less, even if entries
        recorded since would now let it through, so ProofNotFound is
        possible where an exhaustive search would have succeeded.

        A search nested deeper than the interpreter allows is reported
        as ProofNotFound, with the RecursionError as its cause.
        """
        target = to_value(target)
        self._failures = {}
        self._nesting = 0
        if on_progress is not None:
            self._progress = _Progress(format_value(target), on_progress)
        try:
            return self._prove(target, max_depth)
        except RecursionError as e:
            raise ProofNotFound(target) from e
        finally:
            self._progress = None
            self._failures = {}
            self._nesting = 0

    def prove(self, target, max_depth=DEFAULT_MAX_DEPTH,
              on_progress: Optional[Callable] = None) -> str:
        """Like prove_ast, but renders: on_progress gets strings too."""
        callback = None
        if on_progress is not None:
            def callback(node):
                on_progress(node.render())
        return self.prove_ast(target, max_depth, callback).render()

    __call__ = prove

    def _prove(self, target: Fraction, depth) -> Node:
        if not is_integer(target):
            numerator = self._prove(Fraction(target.numerator), depth - 1)
            denominator = self._prove(Fraction(target.denominator), depth - 1)
            return make_operator("/", numerator, denominator)

        key = format_value(target)
        node = self.data.get(key)
        if node is not None:
            return node

        if depth <= 0:
            if self.verbose:
                print(f"  [depth] {key}")
            raise DepthExhausted(target)

        failed = self._failures.get(key)
        if failed is not None and failed[0] >= depth:
            raise failed[1](target)

        self._nesting += 1
        try:
            return self._search(target, depth)
        except ProofError as e:
            self._failures[key] = (depth, type(e))
            raise
        finally:
            self._nesting -= 1

    def _search(self, target: Fraction, depth) -> Node:
        t = target.numerator
        a, b = factorize(t)
        if (abs(a) != 1 and abs(b) != 1
                and self._nesting <= FACTOR_NESTING_LIMIT):
            try:
                left = self._prove(Fraction(a), depth - 1)
                right = self._prove(Fraction(b), depth - 1)
                self._record(target, make_operator("*", left, right), "factor")
            except (ArithmeticDomainError, ProofError):
                pass

        passes = (
            self._by_division,
            self._by_inverse_multiplication,
            self._by_modulo,
            self._by_subtraction,
            self._by_addition,
        )
        for attempt_pass in passes:
            if attempt_pass(target, depth):
                break

        node = self.data.get(format_value(target))
        if node is None:
            raise ProofNotFound(target)
        return node

    def _scan(self, keys: list, attempt: Callable, diversify: bool = False) -> bool:
        """
        Try attempt(key) over keys in order until one succeeds.

        A failing candidate (undefined arithmetic, or a sub-proof that
        could not be found) just moves on to the next key. With diversify,
        a success may send the scan back to a random earlier key.
        """
        succeeded = False
        restarts = 0
        index = 0
        while index < len(keys):
            key = keys[index]
            index += 1
            try:
                if not attempt(key):
                    continue
            except (ArithmeticDomainError, ProofError):
                continue
            succeeded = True
            if (diversify and restarts < self.max_restarts
                    and self.rng.random() < self.continue_probability):
                restarts += 1
                index = self.rng.randrange(index)
                continue
            break
        return succeeded

    def _by_division(self, target: Fraction, depth) -> bool:
        t = target.numerator

        def attempt(key):
            k = key.numerator
            product, times = t, 0
            while True:
                q, r = divmod(product, k)
                if r or abs(q) >= abs(product):
                    break
                product, times = q, times + 1
            if not times:
                return False
            factor = self._node_for(key)
            if times > 1:
                exponent = self._prove(Fraction(times), depth - 1)
                factor = make_operator("^", factor, exponent)
            rest = self._prove(Fraction(product), depth - 1)
            self._record(target, make_operator("*", factor, rest), "division")
            return True

        keys = [k for k in self._keys_within(abs(target))
                if is_integer(k) and abs(k) >= 2]
        return self._scan(keys, attempt, diversify=True)

    def _by_inverse_multiplication(self, target: Fraction, depth) -> bool:
        def attempt(key):
            product = self.data.get(format_value(target * key))
            if product is None:
                return False
            node = make_operator("/", product, self._node_for(key))
            self._record(target, node, "multiplication")
            return True

        keys = [k for k in self._keys if k != 0]
        return self._scan(keys, attempt)

    def _by_modulo(self, target: Fraction, depth) -> bool:
        t = target.numerator

        def attempt(key):
            q, r = divmod(t, key.numerator)
            if abs(r) >= abs(t) or abs(q) >= abs(t):
                return False
            if abs(q) == 1:
                return False  # k*1+r: the subtraction pass says it shorter
            quotient = self._prove(Fraction(q), depth - 1)
            remainder = self._prove(Fraction(r), depth - 1)
            node = make_operator(
                "+", make_operator("*", self._node_for(key), quotient), remainder)
            self._record(target, node, "modulo")
            return True

        # |k| <= |t| keeps the floored quotient and remainder below |t|
        keys = self._same_sign_keys(target, abs(target))
        return self._scan(keys, attempt, diversify=True)

    def _by_subtraction(self, target: Fraction, depth) -> bool:
        def attempt(key):
            difference = target - key
            if abs(difference) >= abs(target):
                return False
            rest = self._prove(difference, depth - 1)
            self._record(target, make_operator("+", self._node_for(key), rest), "subtraction")
            return True

        # |t-k| < |t| for every same-sign k with |k| < 2|t|
        keys = self._same_sign_keys(target, 2 * abs(target))
        return self._scan(keys, attempt)

    def _by_addition(self, target: Fraction, depth) -> bool:
        def attempt(key):
            total = target + key
            if format_value(total) not in self.data and abs(total) >= abs(target):
                return False
            rest = self._prove(total, depth - 1)
            self._record(target, make_operator("-", rest, self._node_for(key)), "addition")
            return True

        keys = [k for k in self._keys if is_integer(k) and k != 0]
        return self._scan(keys, attempt)

    # ── Checking and debugging ───────────────────────────────────────────────

    def verify(self, target, max_depth=VERIFY_DEPTH) -> str:
        """Prove target and re-evaluate the rendered text; ProofMismatch if off."""
        target = to_value(target)
        proof = self.prove(target, max_depth)
        result = evaluate_expression(proof)
        if result != target:
            node = self.get_node(target)
            steps = node.trace().text if node is not None else proof
            raise ProofMismatch(
                f"proof of {target} evaluates to {result}: {proof}\n{steps}", target)
        return proof

    def calculation_steps(self, node_or_target) -> str:
        node = node_or_target
        if not isinstance(node, Node):
            node = self.prove_ast(node_or_target)
        return node.trace().text

    async def aprove(self, target, max_depth=DEFAULT_MAX_DEPTH,
                     on_progress: Optional[Callable] = None) -> str:
        """prove(), then yield once to the event loop."""
        proof = self.prove(target, max_depth, on_progress)
        await asyncio.sleep(0)
        return proof

    # ── Persistence ──────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        return {
            "base": self.base,
            "entries": serialize_map(self.data),
            "history": self.history,
        }

    @classmethod
    def from_dict(cls, d, **kwargs) -> "ExpressionDictionary":
        if not isinstance(d, dict) or "base" not in d or "entries" not in d:
            raise SerializationError("expected {'base', 'entries'} document")
        book = cls(d["base"], mapping=deserialize_map(d["entries"]), **kwargs)
        book.history = list(d.get("history", []))
        return book

    def save(self, path="alchemist_dictionary.json"):
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path="alchemist_dictionary.json", **kwargs) -> "ExpressionDictionary":
        with open(path) as f:
            return cls.from_dict(json.load(f), **kwargs)

    def __repr__(self):
        return f"ExpressionDictionary({self.base!r}, {len(self.data)} values)"


def build_dictionary(base, **kwargs) -> ExpressionDictionary:
    return ExpressionDictionary(base, **kwargs)


async def abuild_dictionary(base, **kwargs) -> ExpressionDictionary:
    """build_dictionary, yielding to the event loop before and after."""
    await asyncio.sleep(0)
    book = ExpressionDictionary(base, **kwargs)
    await asyncio.sleep(0)
    return book
