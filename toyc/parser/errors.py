"""
Error handling for the ToyC parser.

Syntax errors carry the offending token so the driver can point at it.
The parser raises ParseError internally and converts it into a recorded
failure at each top-level entry point.

Author: xwest
"""

from typing import Optional, List

from ..lexer.tokens import Token, TokenType, SourceLocation
from ..errors import CompilerError


class ParseError(CompilerError):
    """
    Exception raised when the parser encounters a malformed token sequence.

    Contains detailed diagnostic information for error reporting.
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation],
        token: Optional[Token] = None,
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
        self.token = token


# Common parser error codes for categorization
PARSER_ERROR_CODES = {
    "P001": "Unexpected token",
    "P002": "Expected token not found",
    "P005": "Invalid expression",
    "P008": "Malformed function signature",
    "P010": "Unexpected end of input",
    "P012": "Mismatched parentheses",
    "P013": "Invalid numeric literal",
}


def _describe(token: Token) -> str:
    return "end of input" if token.type == TokenType.EOF else str(token)


def create_unexpected_token_error(expected: str, found: Token) -> ParseError:
    """Create an error for a token that cannot appear here."""
    code = "P010" if found.type == TokenType.EOF else "P001"
    return ParseError(
        message=f"{expected}, found {_describe(found)}",
        location=found.location,
        token=found,
        code=code
    )


def create_invalid_expression_error(found: Token) -> ParseError:
    """Create an error for a token that cannot start an expression."""
    return ParseError(
        message=f"unexpected token when expecting an expression, found {_describe(found)}",
        location=found.location,
        token=found,
        code="P005",
        help_text="An expression starts with a number, an identifier or '('."
    )


def create_prototype_error(expected: str, found: Token) -> ParseError:
    """Create an error for a malformed function signature."""
    return ParseError(
        message=f"expected {expected} in prototype, found {_describe(found)}",
        location=found.location,
        token=found,
        code="P008",
        help_text="A prototype looks like: name(arg1 arg2 ...)"
    )


def create_unclosed_paren_error(found: Token, open_location: Optional[SourceLocation]) -> ParseError:
    """Create an error for a '(' that was never closed."""
    help_text = None
    if open_location is not None:
        help_text = f"The opening '(' at {open_location} was never closed."
    return ParseError(
        message=f"expected ')', found {_describe(found)}",
        location=found.location,
        token=found,
        code="P012",
        help_text=help_text,
        suggestions=["Add a closing parenthesis ')'"]
    )


def create_invalid_number_error(token: Token, reason: str) -> ParseError:
    """Create an error for a numeric literal the language cannot represent."""
    return ParseError(
        message=f"invalid numeric literal '{token.lexeme}': {reason}",
        location=token.location,
        token=token,
        code="P013",
        help_text="ToyC numbers are 32-bit signed integers."
    )
