"""
ToyC Parser Package

Recursive descent parser with precedence climbing for binary operators.
Produces immutable ASTs with source spans for diagnostics.

Author: xwest
"""

from .ast_nodes import (
    SourceSpan, NumberLiteral, VariableRef, BinaryOp, Call, Expression,
    Prototype, FunctionDef, TopLevelUnit, ANONYMOUS_FUNCTION_PREFIX
)
from .parser import Parser, parse_string
from .errors import ParseError

__all__ = [
    # Core parser
    "Parser",
    "parse_string",

    # AST nodes
    "SourceSpan",
    "NumberLiteral", "VariableRef", "BinaryOp", "Call", "Expression",
    "Prototype", "FunctionDef", "TopLevelUnit",
    "ANONYMOUS_FUNCTION_PREFIX",

    # Error handling
    "ParseError",
]
