from .errors import (
    AlchemistError, ArithmeticDomainError, ProofError, DepthExhausted,
    ProofNotFound, ProofMismatch, SerializationError, ExpressionSyntaxError,
)
from .value import to_value, parse_value, format_value, is_integer, divide, modulo, power
from .node import (
    Node, Leaf, Operator, Trace, PRECEDENCE, NEGATE,
    make_leaf, make_operator, negate, deserialize,
)
from .expression import evaluate_expression
from .dictionary import base_add, add, union, serialize_map, deserialize_map
from .engine import ExpressionDictionary, build_dictionary, abuild_dictionary
from .proof import verify_proof, extract_steps, print_proof

__all__ = [
    "AlchemistError", "ArithmeticDomainError", "ProofError", "DepthExhausted",
    "ProofNotFound", "ProofMismatch", "SerializationError", "ExpressionSyntaxError",
    "to_value", "parse_value", "format_value", "is_integer", "divide", "modulo", "power",
    "Node", "Leaf", "Operator", "Trace", "PRECEDENCE", "NEGATE",
    "make_leaf", "make_operator", "negate", "deserialize",
    "evaluate_expression",
    "base_add", "add", "union", "serialize_map", "deserialize_map",
    "ExpressionDictionary", "build_dictionary", "abuild_dictionary",
    "verify_proof", "extract_steps", "print_proof",
]
