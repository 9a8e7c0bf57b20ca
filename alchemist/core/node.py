"""
Expression nodes: Leaf, Operator, and the replaceable Node handle.

Everything outside this module holds Node handles, never bodies. A
handle resolves to a body:

    Leaf("123")                      -> 123
    Operator("*", (a, b))            -> a*b
    Operator("u-", (a,))             -> -a

Replacing a handle (see Node.replace) forwards it to a semantically
equal, shorter node. Every parent that held the old handle keeps
holding it, and simply renders the new node from then on. Parents are
tracked by weak references, only so their cached renderings can be
cleared; they are never kept alive by a child.

Normalization happens once, in make_operator:
    -(-A)       ->  A
    (-A)*(-B)   ->  A*B         (same for /)
    A*(-B)      ->  -(A*B)      (same for /, and for a negated left side)
    A+(-B)      ->  A-B
    A-(-B)      ->  A+B
"""

import weakref
from dataclasses import dataclass
from fractions import Fraction

from .errors import ArithmeticDomainError, SerializationError
from .value import divide, modulo, power, parse_value


NEGATE = "u-"

PRECEDENCE = {
    NEGATE: 4,
    "^": 3,
    "*": 2,
    "/": 2,
    "%": 2,
    "+": 1,
    "-": 1,
}

BINARY_OPERATORS = ("+", "-", "*", "/", "%", "^")


@dataclass(frozen=True)
class Leaf:
    """A literal numeral, rendered exactly as written."""
    numeral: str


@dataclass(frozen=True)
class Operator:
    """An operator tag and its 1 or 2 child handles."""
    operator: str
    children: tuple


@dataclass(frozen=True)
class Trace:
    """Human-readable evaluation steps and the final value."""
    text: str
    value: Fraction


def _needs_parens(body, enclosing: str, right: bool) -> bool:
    if isinstance(body, Leaf):
        # Only hand-built or deserialized leaves carry a sign or a slash.
        return not body.numeral.isdigit()
    op = body.operator
    # -2^2 reads as -(2^2); a negated base has to keep its parentheses.
    if enclosing == "^" and op == NEGATE and not right:
        return True
    if PRECEDENCE[op] > PRECEDENCE[enclosing]:
        return False
    if op == enclosing:
        if op in ("+", "*"):
            return False
        if op in ("-", "/"):
            return right
        if op == "^":
            return not right
    return True


class Node:
    """
    Indirection cell for an expression.

    _body is a Leaf, an Operator, or another Node this one has been
    forwarded to by replace(). Caches and the parent set live on the
    handle at the end of the forwarding chain.
    """

    def __init__(self, body):
        self._body = body
        self._cache = {}
        self._parents = None

    # ── Identity ─────────────────────────────────────────────────────────────

    def resolve(self) -> "Node":
        """The handle at the end of the forwarding chain."""
        node = self
        while isinstance(node._body, Node):
            node = node._body
        if self._body is not node and self is not node:
            self._body = node
        return node

    @property
    def body(self):
        return self.resolve()._body

    @property
    def is_leaf(self) -> bool:
        return isinstance(self.body, Leaf)

    @property
    def is_negation(self) -> bool:
        body = self.body
        return isinstance(body, Operator) and body.operator == NEGATE

    @property
    def operator(self):
        body = self.body
        return body.operator if isinstance(body, Operator) else None

    @property
    def children(self) -> tuple:
        body = self.body
        return body.children if isinstance(body, Operator) else ()

    @property
    def operand(self) -> "Node":
        """The single child of a unary-minus node."""
        return self.children[0]

    # ── Parents and replacement ──────────────────────────────────────────────

    def register_parent(self, parent: "Node"):
        node = self.resolve()
        if node._parents is None:
            node._parents = weakref.WeakSet()
        node._parents.add(parent)

    def unregister_parent(self, parent: "Node"):
        node = self.resolve()
        if node._parents is not None:
            node._parents.discard(parent)

    @property
    def parents(self) -> list:
        """Live parents; dead ones have already dropped out of the WeakSet."""
        parents = self.resolve()._parents
        return list(parents) if parents is not None else []

    def replace(self, other: "Node"):
        """
        Make every holder of this handle see other instead.

        The old node's parents move onto other's parent set, and every
        cache above them is cleared until an already-empty cache is met.
        """
        old, new = self.resolve(), other.resolve()
        if old is new:
            return
        parents = list(old._parents) if old._parents is not None else []
        old._body = new
        old._cache = {}
        old._parents = None
        for parent in parents:
            new.register_parent(parent)
        _clear_caches(parents)

    # ── Rendering ────────────────────────────────────────────────────────────

    def render(self, enclosing=None, right: bool = False) -> str:
        """
        Minimal-parenthesis string for this node, as it appears as the
        left (or right) operand of an enclosing operator.
        """
        node = self.resolve()
        key = ("render", enclosing, right)
        cache = node._cache
        if key not in cache:
            if enclosing is None:
                text = node._render_bare()
            else:
                text = node.render()
                if _needs_parens(node._body, enclosing, right):
                    text = f"({text})"
            cache[key] = text
        return cache[key]

    def _render_bare(self) -> str:
        body = self._body
        if isinstance(body, Leaf):
            return body.numeral
        if body.operator == NEGATE:
            return "-" + body.children[0].render(NEGATE)
        left, right = body.children
        return (left.render(body.operator)
                + body.operator
                + right.render(body.operator, right=True))

    def __str__(self):
        return self.render()

    def __repr__(self):
        return f"Node({self.render()!r})"

    # ── Evaluation ───────────────────────────────────────────────────────────

    def evaluate(self) -> Fraction:
        node = self.resolve()
        cache = node._cache
        if "value" not in cache:
            cache["value"] = node._evaluate_body()
        return cache["value"]

    def _evaluate_body(self) -> Fraction:
        body = self._body
        if isinstance(body, Leaf):
            return parse_value(body.numeral)
        values = [child.evaluate() for child in body.children]
        return apply_operator(body.operator, *values)

    def trace(self) -> Trace:
        """Step-by-step evaluation, for debugging a proof by hand."""
        node = self.resolve()
        cache = node._cache
        if "trace" not in cache:
            cache["trace"] = node._trace_body()
        return cache["trace"]

    def _trace_body(self) -> Trace:
        body = self._body
        if isinstance(body, Leaf):
            return Trace(body.numeral, self.evaluate())
        value = self.evaluate()
        if body.operator == NEGATE:
            inner = body.children[0].trace()
            return Trace(f"-({inner.text}) = {value}", value)
        left, right = (child.trace() for child in body.children)
        return Trace(f"({left.text}) {body.operator} ({right.text}) = {value}", value)

    # ── Serialization ────────────────────────────────────────────────────────

    def serialize(self):
        """A bare numeral for a leaf, {"operator", "children"} otherwise."""
        body = self.body
        if isinstance(body, Leaf):
            return body.numeral
        return {
            "operator": body.operator,
            "children": [child.serialize() for child in body.children],
        }


def _clear_caches(parents):
    stack = list(parents)
    while stack:
        node = stack.pop().resolve()
        if not node._cache:
            continue  # already clean, and so is everything above it
        node._cache = {}
        if node._parents is not None:
            stack.extend(node._parents)


def apply_operator(operator: str, *values) -> Fraction:
    """Evaluate one operator over already-evaluated operands."""
    if operator == NEGATE:
        (a,) = values
        return -a
    a, b = values
    if operator == "+":
        return a + b
    if operator == "-":
        return a - b
    if operator == "*":
        return a * b
    if operator == "/":
        return divide(a, b)
    if operator == "%":
        return modulo(a, b)
    if operator == "^":
        return power(a, b)
    raise ArithmeticDomainError(f"unknown operator: {operator}")


# ── Construction ─────────────────────────────────────────────────────────────

def make_leaf(numeral) -> Node:
    return Node(Leaf(str(numeral)))


def _strip_sign(node: Node) -> Node:
    return node.operand if node.is_negation else node


def make_operator(operator: str, *children: Node) -> Node:
    """
    Build an operator node, applying the sign normalization rules.

    May return a different shape than asked for: a unary-minus of a
    unary-minus returns the inner handle itself, and a product or
    quotient with one negated side comes back wrapped in unary-minus.
    """
    arity = 1 if operator == NEGATE else 2
    if operator not in PRECEDENCE:
        raise ValueError(f"unknown operator: {operator!r}")
    if len(children) != arity:
        raise ValueError(f"{operator!r} takes {arity} operand(s), got {len(children)}")

    if operator == NEGATE:
        (child,) = children
        if child.is_negation:
            return child.operand
    elif operator in ("*", "/"):
        left, right = children
        if left.is_negation and right.is_negation:
            children = (left.operand, right.operand)
        elif left.is_negation or right.is_negation:
            inner = make_operator(operator, _strip_sign(left), _strip_sign(right))
            return make_operator(NEGATE, inner)
    elif operator in ("+", "-") and children[1].is_negation:
        operator = "-" if operator == "+" else "+"
        children = (children[0], children[1].operand)

    node = Node(Operator(operator, tuple(children)))
    for child in children:
        child.register_parent(node)
    return node


def negate(node: Node) -> Node:
    return make_operator(NEGATE, node)


def deserialize(tree) -> Node:
    """Inverse of Node.serialize; normalization applies again."""
    if isinstance(tree, str):
        try:
            parse_value(tree)
        except ValueError as e:
            raise SerializationError(f"bad numeral: {tree!r}") from e
        return make_leaf(tree)
    if not isinstance(tree, dict) or set(tree) != {"operator", "children"}:
        raise SerializationError(f"unrecognized node: {tree!r}")
    operator, children = tree["operator"], tree["children"]
    if operator not in PRECEDENCE or not isinstance(children, list):
        raise SerializationError(f"unrecognized node: {tree!r}")
    arity = 1 if operator == NEGATE else 2
    if len(children) != arity:
        raise SerializationError(
            f"{operator!r} needs {arity} children, got {len(children)}")
    return make_operator(operator, *(deserialize(child) for child in children))
