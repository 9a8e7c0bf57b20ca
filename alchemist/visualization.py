"""
Visualization and reporting utilities.
"""

from .core.engine import ExpressionDictionary
from .core.node import Node


def print_dictionary(book: ExpressionDictionary, limit: int = 20):
    """Print a summary of the dictionary: the smallest values first."""
    print(f"\n{'='*60}")
    print(f"Base: {book.base}")
    print(f"Values: {len(book)}")
    keys = sorted(book.keys(), key=lambda v: (abs(v), v < 0))
    for value in keys[:limit]:
        print(f"  {value} = {book.get_node(value).render()}")
    if len(keys) > limit:
        print(f"  ... ({len(keys) - limit} more)")
    print(f"{'='*60}")


def print_history(book: ExpressionDictionary):
    """Print every recorded derivation, oldest first."""
    print(f"\n{'='*60}")
    print("Derivation history:")
    print(f"{'='*60}")
    if not book.history:
        print("  (nothing derived yet)")
    for entry in book.history:
        print(f"  Step {entry['step']}: {entry['value']} = {entry['expression']}"
              f"  [{entry['strategy']}]")


def _dot_label(node: Node) -> str:
    body = node.body
    text = node.render() if node.is_leaf else body.operator
    return text.replace('"', '\\"')


def export_dot(node: Node, path="alchemist_graph.dot"):
    """
    Export an expression DAG as a DOT file for Graphviz visualization.

    Shared subexpressions are drawn once; edges point from operand to
    operator, so the proof's value sits at the top.
    """
    ids = {}

    def node_id(current):
        current = current.resolve()
        if id(current) not in ids:
            ids[id(current)] = f"n{len(ids)}"
        return ids[id(current)]

    with open(path, "w") as f:
        f.write("digraph alchemist {\n")
        f.write("  rankdir=BT;\n")
        f.write("  node [shape=box, style=rounded];\n")

        stack = [node.resolve()]
        seen = set()
        while stack:
            current = stack.pop()
            name = node_id(current)
            if name in seen:
                continue
            seen.add(name)
            color = "lightgray" if current.is_leaf else "lightblue"
            f.write(f'  {name} [label="{_dot_label(current)}", '
                    f'fillcolor={color}, style=filled];\n')
            for child in current.children:
                child = child.resolve()
                f.write(f"  {node_id(child)} -> {name};\n")
                stack.append(child)
        f.write("}\n")
    print(f"Graph exported to {path}")
