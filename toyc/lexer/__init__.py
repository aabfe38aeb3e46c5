"""
ToyC Lexer Package

Pull-model lexical analyzer: the parser asks for one token at a time and
the lexer reads just enough characters from the input stream to build it.

Author: xwest
"""

from .tokens import (
    Token, TokenType, SourceLocation, KEYWORDS, BINARY_PRECEDENCE,
    NOT_AN_OPERATOR, token_precedence
)
from .lexer import Lexer, tokenize_string

__all__ = [
    "Lexer",
    "Token",
    "TokenType",
    "SourceLocation",
    "KEYWORDS",
    "BINARY_PRECEDENCE",
    "NOT_AN_OPERATOR",
    "token_precedence",
    "tokenize_string",
]
