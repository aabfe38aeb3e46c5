"""
ToyC Backend Package

The abstract capability interface the code generator talks to, and its
llvmlite implementation.

Author: xwest
"""

from .base import Backend
from .llvm_backend import LLVMBackend, NUMERIC_TYPE, DEFAULT_MODULE_NAME

__all__ = [
    "Backend",
    "LLVMBackend",
    "NUMERIC_TYPE",
    "DEFAULT_MODULE_NAME",
]
