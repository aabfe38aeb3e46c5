"""
ToyC Compiler Package

A small compiler front end for a tiny expression language: integer
arithmetic, function definitions and extern declarations, compiled through
llvmlite into a linkable object file.

Architecture:
    toyc/
    ├── lexer/           # Pull-model tokenization
    ├── parser/          # Recursive descent + precedence climbing, AST
    ├── codegen/         # AST -> backend instructions, scope table
    ├── backend/         # Backend interface and its llvmlite implementation
    ├── config.py        # CompilerOptions
    ├── driver.py        # Top-level unit loop and error recovery
    └── cli.py           # `toyc` command

Author: xwest
License: MIT
"""

__version__ = "0.1.0"
__author__ = "xwest"
__license__ = "MIT"

from .lexer import Lexer
from .parser import Parser
from .codegen import CodeGenerator
from .backend import Backend, LLVMBackend
from .config import CompilerOptions
from .driver import Driver, compile_source
from .errors import CompilerError, BackendError, Diagnostic

__all__ = [
    # Pipeline
    "Lexer",
    "Parser",
    "CodeGenerator",
    "Backend",
    "LLVMBackend",
    "Driver",
    "compile_source",

    # Configuration
    "CompilerOptions",

    # Error handling
    "CompilerError",
    "BackendError",
    "Diagnostic",

    # Version info
    "__version__",
]
