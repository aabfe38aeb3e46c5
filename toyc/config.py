"""
Compiler configuration for ToyC.

Author: xwest
"""

from dataclasses import dataclass
from typing import Optional

from .backend.llvm_backend import DEFAULT_MODULE_NAME


@dataclass
class CompilerOptions:
    """Options for one compilation session"""
    output_path: str = "output.o"
    module_name: str = DEFAULT_MODULE_NAME
    target_triple: Optional[str] = None  # None = host
    evaluate: bool = True  # JIT-run top-level expressions
    print_ir: bool = True
    emit_llvm: Optional[str] = None  # also write textual IR here
    interactive: bool = False  # show a prompt before each unit
    filename: str = "<stdin>"
