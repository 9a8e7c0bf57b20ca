"""
Error kinds.

ArithmeticDomainError is local: the search catches it at the point of a
single candidate and moves on. ProofError (DepthExhausted, ProofNotFound)
is the one failure a caller of prove() ever sees.
"""


class AlchemistError(Exception):
    """Base class for everything raised by this package."""


class ArithmeticDomainError(AlchemistError, ArithmeticError):
    """An operation is undefined or not exact for its operands."""


class ProofError(AlchemistError):
    """No expression was found for a target value."""

    def __init__(self, message, target=None):
        super().__init__(message)
        self.target = target


class DepthExhausted(ProofError):
    """The search needed to descend below the depth budget."""

    def __init__(self, target):
        super().__init__(f"cannot prove {target} within the depth limit", target)


class ProofNotFound(ProofError):
    """Every strategy and key was tried at the current depth."""

    def __init__(self, target):
        super().__init__(f"cannot prove {target}", target)


class ProofMismatch(ProofError):
    """A rendered proof does not evaluate to its target."""


class SerializationError(AlchemistError, ValueError):
    """A serialized node tree or mapping has an unrecognized shape."""


class ExpressionSyntaxError(AlchemistError, ValueError):
    """Expression text could not be parsed."""
