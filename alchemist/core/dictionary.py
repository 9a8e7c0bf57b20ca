"""
Mappings from canonical value string to the cheapest known Node.

"Cheapest" is the shortest rendering seen so far; ties keep the first.
A cheaper node for an existing key replaces the entry in place
(Node.replace), so every expression already built on top of that entry
picks up the shorter form.

A mapping is a plain dict: {"12": Node, "-12": Node, "1/2": Node, ...}
"""

from .errors import SerializationError
from .node import Node, deserialize, negate
from .value import format_value, to_value


def base_add(mapping: dict, value, node: Node) -> bool:
    """
    Insert one entry, cheapest wins.

    Returns True only when the key was not present before.
    """
    key = format_value(value)
    existing = mapping.get(key)
    if existing is None:
        mapping[key] = node
        return True
    if len(existing.render()) > len(node.render()):
        existing.replace(node)
    return False


def add(mapping: dict, value, node: Node) -> list:
    """
    Insert value and its negation (wrapped in unary minus).

    Returns the values whose keys were newly created.
    """
    value = to_value(value)
    created = []
    if base_add(mapping, value, node):
        created.append(value)
    if base_add(mapping, -value, negate(node)):
        created.append(-value)
    return created


def union(target: dict, source: dict) -> dict:
    """Fold source into target entry by entry, cheapest wins."""
    for key, node in source.items():
        base_add(target, key, node)
    return target


def serialize_map(mapping: dict) -> list:
    """[[value_string, serialized_node], ...] in insertion order."""
    return [[key, node.serialize()] for key, node in mapping.items()]


def deserialize_map(pairs) -> dict:
    if not isinstance(pairs, list):
        raise SerializationError(f"expected a list of pairs, got {type(pairs).__name__}")
    mapping = {}
    for pair in pairs:
        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            raise SerializationError(f"expected [value, node], got {pair!r}")
        key, tree = pair
        try:
            key = format_value(key)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"bad value key: {key!r}") from e
        mapping[key] = deserialize(tree)
    return mapping
