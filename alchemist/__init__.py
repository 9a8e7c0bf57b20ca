"""
Alchemist: write any number using only the digits of another.

Given a base digit string ("123"), build a dictionary of expressions over
its digits with + - * / % ^ and unary minus, then prove targets against
it: find or derive an expression that evaluates exactly to the target.
Every derivation is written back, so the dictionary keeps improving.

Usage:
    python -m alchemist 123 0 -123 2024
    python -m alchemist 114514 1919810 --depth 17 --steps
    python -m alchemist 123 42 --save dictionary.json
    python -m alchemist --load dictionary.json 43
"""

from .core.errors import (
    AlchemistError, ArithmeticDomainError, ProofError, DepthExhausted,
    ProofNotFound, ProofMismatch, SerializationError, ExpressionSyntaxError,
)
from .core.node import Node, make_leaf, make_operator, negate, deserialize
from .core.expression import evaluate_expression
from .core.dictionary import add, serialize_map, deserialize_map
from .core.engine import ExpressionDictionary, build_dictionary, abuild_dictionary
from .core.proof import verify_proof, extract_steps, print_proof
from .inference.merge import merge_dictionaries
from .inference.generate import DictionaryGenerator, seed_mapping
from .inference.factorize import factorize

__all__ = [
    "AlchemistError", "ArithmeticDomainError", "ProofError", "DepthExhausted",
    "ProofNotFound", "ProofMismatch", "SerializationError", "ExpressionSyntaxError",
    "Node", "make_leaf", "make_operator", "negate", "deserialize",
    "evaluate_expression",
    "add", "serialize_map", "deserialize_map",
    "ExpressionDictionary", "build_dictionary", "abuild_dictionary",
    "verify_proof", "extract_steps", "print_proof",
    "merge_dictionaries", "DictionaryGenerator", "seed_mapping",
    "factorize",
]
