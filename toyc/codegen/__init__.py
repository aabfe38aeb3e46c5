"""
ToyC Code Generation Package

Translates ASTs into instructions for a Backend, one top-level unit at a
time.

Author: xwest
"""

from .code_generator import CodeGenerator, CompilerState
from .errors import SemanticError, SEMANTIC_ERROR_CODES

__all__ = [
    "CodeGenerator",
    "CompilerState",
    "SemanticError",
    "SEMANTIC_ERROR_CODES",
]
