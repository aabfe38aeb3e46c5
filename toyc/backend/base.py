"""
Capability interface between the ToyC code generator and a backend.

The code generator only ever talks to this interface. Handles it receives
(values, functions, blocks) are opaque: it stores them in its scope table
and passes them back, nothing more.

Author: xwest
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence

ValueHandle = Any
FunctionHandle = Any
BlockHandle = Any


class Backend(ABC):
    """
    Instruction building, function bookkeeping and artifact emission.

    Failures that are not tied to an AST node (verification, JIT, emission)
    are recorded in ``self.errors`` as BackendError instances.
    """

    def __init__(self):
        self.errors = []

    # Values

    @abstractmethod
    def make_integer_constant(self, value: int) -> ValueHandle:
        """Constant of the language's single numeric type."""

    @abstractmethod
    def build_add(self, lhs: ValueHandle, rhs: ValueHandle) -> ValueHandle:
        pass

    @abstractmethod
    def build_sub(self, lhs: ValueHandle, rhs: ValueHandle) -> ValueHandle:
        pass

    @abstractmethod
    def build_mul(self, lhs: ValueHandle, rhs: ValueHandle) -> ValueHandle:
        pass

    @abstractmethod
    def build_unsigned_less(self, lhs: ValueHandle, rhs: ValueHandle) -> ValueHandle:
        """Boolean result of an unsigned ``lhs < rhs``."""

    @abstractmethod
    def widen_boolean_to_int(self, value: ValueHandle) -> ValueHandle:
        """Zero-extend a boolean to the numeric type."""

    @abstractmethod
    def build_call(self, callee: FunctionHandle, args: Sequence[ValueHandle]) -> ValueHandle:
        pass

    @abstractmethod
    def build_return(self, value: ValueHandle) -> None:
        pass

    # Functions

    @abstractmethod
    def lookup_function(self, name: str) -> Optional[FunctionHandle]:
        """Function declared or defined under ``name``, or None."""

    @abstractmethod
    def declare_function(self, name: str, arity: int) -> FunctionHandle:
        """Declare ``name`` taking ``arity`` numeric parameters and returning one."""

    @abstractmethod
    def function_arity(self, function: FunctionHandle) -> int:
        pass

    @abstractmethod
    def function_parameters(self, function: FunctionHandle) -> List[ValueHandle]:
        pass

    @abstractmethod
    def set_parameter_names(self, function: FunctionHandle, names: Sequence[str]) -> None:
        """Give the parameters readable names in the generated code."""

    @abstractmethod
    def has_body(self, function: FunctionHandle) -> bool:
        pass

    @abstractmethod
    def enter_function_body(self, function: FunctionHandle) -> BlockHandle:
        """Open the entry block of ``function`` and direct new instructions there."""

    @abstractmethod
    def verify_function(self, function: FunctionHandle) -> bool:
        pass

    @abstractmethod
    def erase_function(self, function: FunctionHandle) -> None:
        """Remove ``function`` from the module entirely."""

    @abstractmethod
    def clear_body(self, function: FunctionHandle) -> None:
        """Drop the body of ``function``, leaving its declaration."""

    # Output

    @abstractmethod
    def function_ir(self, function: FunctionHandle) -> str:
        """Human-readable listing of one function."""

    @abstractmethod
    def module_ir(self) -> str:
        """Human-readable listing of the whole module."""

    @abstractmethod
    def evaluate(self, function: FunctionHandle) -> Optional[int]:
        """Compile and run a zero-argument function; None if it cannot be run."""

    @abstractmethod
    def finalize_and_emit(self, output_path: str) -> bool:
        """Write the module as an object file; False on failure."""
