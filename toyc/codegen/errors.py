"""
Semantic error handling for ToyC code generation.

Raised while translating an AST into backend instructions: names that do
not resolve, calls with the wrong number of arguments, operators with no
instruction behind them and conflicting function definitions.

Author: xwest
"""

from difflib import get_close_matches
from typing import Iterable, List, Optional

from ..errors import CompilerError
from ..lexer.tokens import SourceLocation
from ..parser.ast_nodes import SourceSpan


class SemanticError(CompilerError):
    """
    Exception raised when a well-formed AST cannot be translated.

    Contains detailed diagnostic information for error reporting.
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation],
        node=None,
        code: Optional[str] = None,
        help_text: Optional[str] = None,
        suggestions: Optional[List[str]] = None
    ):
        super().__init__(
            message,
            location=location,
            code=code,
            help_text=help_text,
            suggestions=suggestions
        )
        self.node = node


# Semantic error codes for categorization
SEMANTIC_ERROR_CODES = {
    # Symbol resolution errors
    "S010": "Unknown variable",
    "S011": "Function redefinition",
    "S012": "Unknown function",

    # Function errors
    "S050": "Arity mismatch",
    "S052": "Duplicate parameter name",
    "S055": "Redefinition with different arity",

    # Operator errors
    "S080": "Invalid binary operator",
}


def _start_of(node) -> Optional[SourceLocation]:
    span: Optional[SourceSpan] = getattr(node, "span", None)
    return span.start if span is not None else None


def _did_you_mean(name: str, candidates: Iterable[str]) -> List[str]:
    return [f"Did you mean '{match}'?" for match in get_close_matches(name, list(candidates), n=3)]


def create_unknown_variable_error(node, known_names: Iterable[str] = ()) -> SemanticError:
    """Create an error for a variable that is not a parameter of the enclosing function."""
    return SemanticError(
        message=f"unknown variable name '{node.name}'",
        location=_start_of(node),
        node=node,
        code="S010",
        help_text="Only the parameters of the enclosing function are in scope.",
        suggestions=_did_you_mean(node.name, known_names) or None
    )


def create_unknown_function_error(node) -> SemanticError:
    """Create an error for a call to a function that was never declared."""
    return SemanticError(
        message=f"unknown function referenced '{node.callee}'",
        location=_start_of(node),
        node=node,
        code="S012",
        help_text=f"Declare it first with 'extern {node.callee}(...)' or define it with 'def'."
    )


def create_arity_mismatch_error(node, expected: int) -> SemanticError:
    """Create an error for a call with the wrong number of arguments."""
    return SemanticError(
        message=(
            f"incorrect number of arguments passed to '{node.callee}': "
            f"expected {expected}, found {len(node.args)}"
        ),
        location=_start_of(node),
        node=node,
        code="S050"
    )


def create_invalid_operator_error(node) -> SemanticError:
    """Create an error for a binary operator with no instruction behind it."""
    return SemanticError(
        message=f"invalid binary operator '{node.operator}'",
        location=_start_of(node),
        node=node,
        code="S080"
    )


def create_redefinition_error(prototype) -> SemanticError:
    """Create an error for defining a function that already has a body."""
    return SemanticError(
        message=f"function cannot be redefined: '{prototype.name}'",
        location=_start_of(prototype),
        node=prototype,
        code="S011"
    )


def create_arity_redefinition_error(prototype, existing_arity: int) -> SemanticError:
    """Create an error for redeclaring a function with a different parameter count."""
    return SemanticError(
        message=(
            f"redefinition of function with different number of arguments: "
            f"'{prototype.name}' was declared with {existing_arity}, found {prototype.arity}"
        ),
        location=_start_of(prototype),
        node=prototype,
        code="S055"
    )


def create_duplicate_parameter_error(prototype, name: str) -> SemanticError:
    """Create an error for a prototype naming the same parameter twice."""
    return SemanticError(
        message=f"duplicate parameter name '{name}' in '{prototype.name}'",
        location=_start_of(prototype),
        node=prototype,
        code="S052",
        suggestions=["Give every parameter a distinct name"]
    )
