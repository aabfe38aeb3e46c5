"""
Token definitions for the ToyC lexer.

ToyC has a deliberately tiny vocabulary:
- Keywords (def, extern)
- Identifiers
- Numeric literals
- Single-character punctuation (operators, parentheses, separators)

Author: xwest
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any


class TokenType(Enum):
    """Enumeration of all token types in ToyC."""

    EOF = auto()                    # End of input

    # Keywords
    DEF = auto()                    # def
    EXTERN = auto()                 # extern

    # Primaries
    IDENTIFIER = auto()             # foo, x1
    NUMBER = auto()                 # 42, 4.0

    # Anything else: a single character such as '(' or '+'
    CHAR = auto()


@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in the source code.

    Used for error reporting in every diagnostic.
    """
    filename: str
    line: int
    column: int
    offset: int  # Character offset from start of input

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"

    def __repr__(self) -> str:
        return f"SourceLocation({self.filename!r}, {self.line}, {self.column}, {self.offset})"


@dataclass(frozen=True)
class Token:
    """
    Represents a lexical token in the ToyC language.

    Contains the token type, lexeme (raw text), semantic value
    and source location.
    """
    type: TokenType
    lexeme: str                     # Raw text from source
    value: Any                      # Parsed value (float for NUMBER, name for IDENTIFIER)
    location: SourceLocation

    def __str__(self) -> str:
        if self.type == TokenType.EOF:
            return "end of input"
        if self.type == TokenType.CHAR:
            return repr(self.lexeme)
        return f"{self.type.name.lower()} {self.lexeme!r}"

    def __repr__(self) -> str:
        return (f"Token({self.type.name}, {self.lexeme!r}, "
                f"{self.value!r}, {self.location!r})")

    def is_char(self, char: str) -> bool:
        """Check if this is the punctuation token for ``char``."""
        return self.type == TokenType.CHAR and self.lexeme == char

    @property
    def starts_unit(self) -> bool:
        """True for tokens that can only begin a new top-level unit."""
        return self.type in (TokenType.DEF, TokenType.EXTERN, TokenType.EOF)


# Lookup tables used by the lexer and parser

KEYWORDS = {
    "def": TokenType.DEF,
    "extern": TokenType.EXTERN,
}

# Binding strength of each binary operator; higher binds tighter.
BINARY_PRECEDENCE = {
    "<": 10,
    "+": 20,
    "-": 20,
    "*": 40,
}

# Returned for tokens that are not binary operators.
NOT_AN_OPERATOR = -1


def token_precedence(token: Token) -> int:
    """Binding strength of ``token`` as a binary operator, or NOT_AN_OPERATOR."""
    if token.type != TokenType.CHAR:
        return NOT_AN_OPERATOR
    return BINARY_PRECEDENCE.get(token.lexeme, NOT_AN_OPERATOR)
