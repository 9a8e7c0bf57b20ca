"""
Proof display and checking.

A proof is just a node whose value is the target. These utilities walk
it bottom-up to list every intermediate result once, and re-check the
rendered text independently of the node's own evaluation.
"""

from .errors import ArithmeticDomainError, ExpressionSyntaxError
from .expression import evaluate_expression
from .node import Node
from .value import to_value


def verify_proof(text: str, target) -> bool:
    """Does the rendered proof text evaluate exactly to target?"""
    try:
        return evaluate_expression(text) == to_value(target)
    except (ArithmeticDomainError, ExpressionSyntaxError):
        return False


def extract_steps(node: Node) -> list:
    """
    Every operator subexpression of node, children before parents.
    Returns a list of (node, depth) pairs; shared subexpressions appear once.
    """
    steps = []
    visited = set()

    def walk(current, depth):
        current = current.resolve()
        if id(current) in visited or current.is_leaf:
            return
        visited.add(id(current))
        for child in current.children:
            walk(child, depth + 1)
        steps.append((current, depth))

    walk(node, 0)
    return steps


def print_proof(node: Node, target=None):
    """Pretty-print the proof, one intermediate value per line."""
    steps = extract_steps(node)
    value = node.evaluate()
    print(f"\n{'='*60}")
    print(f"PROOF: {value if target is None else target} = {node.render()}")
    print(f"{'='*60}")
    if not steps:
        print(f"  {node.render()} is a literal.")
    for i, (step, depth) in enumerate(steps):
        indent = "  " * depth
        print(f"  {i+1}. {indent}{step.render()} = {step.evaluate()}")
    print(f"{'='*60}")
    if target is not None and value != to_value(target):
        print(f"  MISMATCH: evaluates to {value}, not {target}.")
    else:
        print(f"  QED: {node.render()} = {value}.")
