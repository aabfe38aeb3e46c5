"""
LLVM Backend for ToyC.

Implements the Backend capability interface on top of llvmlite:
llvmlite.ir builds the module, llvmlite.binding verifies it, runs
top-level expressions through MCJIT and emits the object file.

Every value is a 32-bit integer and every function has C linkage, so an
emitted ``def average(x y)`` links against ``int32_t average(int32_t, int32_t)``.

Author: xwest
"""

import ctypes
import logging
from typing import Iterator, List, Optional, Sequence, Set, Tuple

import llvmlite.binding as llvm
import llvmlite.ir as ll
from llvmlite.ir._utils import NameScope

from .base import Backend
from ..errors import (
    create_verification_error, create_emission_error,
    create_evaluation_error, create_target_error
)

logger = logging.getLogger(__name__)

# The language's single numeric type
NUMERIC_TYPE = ll.IntType(32)

DEFAULT_MODULE_NAME = "my cool jit"


# llvmlite.ir has no public way to forget a name once it is registered.
# These helpers are the only places that touch its private NameScope and
# reference cache; checked against llvmlite 0.40 through 0.50.

def _release_name(scope: NameScope, name: str) -> None:
    """Make ``name`` available to the next ``register`` call on ``scope``."""
    if name:
        scope._useset.discard(name)


def _fresh_scope(names: Sequence[str]) -> NameScope:
    scope = NameScope()
    for name in names:
        scope.register(name)
    return scope


def _rename(value: ll.NamedValue, name: str) -> None:
    value.name = name
    # get_reference() caches the name it first printed
    value.__dict__.pop("_StringReferenceCaching__cached_refstr", None)


class LLVMBackend(Backend):
    """
    llvmlite implementation of the ToyC backend.

    Owns one ll.Module for the whole session. Functions are handed to the
    code generator as ll.Function objects and values as ll instructions or
    constants.
    """

    def __init__(self, module_name: str = DEFAULT_MODULE_NAME,
                 target_triple: Optional[str] = None):
        """
        Initialize the backend for a target.

        Args:
            module_name: Name recorded in the generated module
            target_triple: Target to emit for; None means the host

        Raises:
            BackendError: If the target triple is not known to LLVM
        """
        super().__init__()
        llvm.initialize_native_target()
        llvm.initialize_native_asmprinter()

        self.host_triple = llvm.get_process_triple()
        self.target_triple = target_triple or self.host_triple
        if self.target_triple != self.host_triple:
            llvm.initialize_all_targets()
            llvm.initialize_all_asmprinters()

        try:
            self.target = llvm.Target.from_triple(self.target_triple)
        except RuntimeError as e:
            raise create_target_error(self.target_triple, str(e)) from e
        self.target_machine = self.target.create_target_machine(reloc="pic", codemodel="default")

        self.module = ll.Module(name=module_name)
        self.module.triple = self.target_triple
        self.module.data_layout = str(self.target_machine.target_data)

        self.builder: Optional[ll.IRBuilder] = None

        logger.debug("LLVM backend ready for %s", self.target_triple)

    @property
    def targets_host(self) -> bool:
        return self.target_triple == self.host_triple

    # Values

    def make_integer_constant(self, value: int) -> ll.Constant:
        return ll.Constant(NUMERIC_TYPE, value)

    def build_add(self, lhs, rhs):
        return self.builder.add(lhs, rhs, name="addtmp")

    def build_sub(self, lhs, rhs):
        return self.builder.sub(lhs, rhs, name="subtmp")

    def build_mul(self, lhs, rhs):
        return self.builder.mul(lhs, rhs, name="multmp")

    def build_unsigned_less(self, lhs, rhs):
        return self.builder.icmp_unsigned("<", lhs, rhs, name="cmptmp")

    def widen_boolean_to_int(self, value):
        return self.builder.zext(value, NUMERIC_TYPE, name="booltmp")

    def build_call(self, callee: ll.Function, args: Sequence):
        return self.builder.call(callee, list(args), name="calltmp")

    def build_return(self, value) -> None:
        self.builder.ret(value)

    # Functions

    def lookup_function(self, name: str) -> Optional[ll.Function]:
        value = self.module.globals.get(name)
        if isinstance(value, ll.Function):
            return value
        return None

    def declare_function(self, name: str, arity: int) -> ll.Function:
        function_type = ll.FunctionType(NUMERIC_TYPE, [NUMERIC_TYPE] * arity)
        function = ll.Function(self.module, function_type, name=name)
        logger.debug("declared %s/%d", name, arity)
        return function

    def function_arity(self, function: ll.Function) -> int:
        return len(function.args)

    def function_parameters(self, function: ll.Function) -> List:
        return list(function.args)

    def set_parameter_names(self, function: ll.Function, names: Sequence[str]) -> None:
        names = list(names)
        if [arg.name for arg in function.args] == names:
            return
        # Release every old name first so swapped names are not deduplicated
        for arg in function.args:
            _release_name(function.scope, arg.name)
        for arg, name in zip(function.args, names):
            _rename(arg, name)

    def has_body(self, function: ll.Function) -> bool:
        return not function.is_declaration

    def enter_function_body(self, function: ll.Function) -> ll.Block:
        block = function.append_basic_block(name="entry")
        self.builder = ll.IRBuilder(block)
        return block

    def verify_function(self, function: ll.Function) -> bool:
        """
        Check the module containing ``function`` with LLVM's verifier.

        A failure is recorded in ``self.errors``.
        """
        try:
            llvm.parse_assembly(str(self.module)).verify()
        except RuntimeError as e:
            logger.debug("verification of %s failed: %s", function.name, e)
            self.errors.append(create_verification_error(function.name, str(e)))
            return False
        return True

    def erase_function(self, function: ll.Function) -> None:
        name = function.name
        if self.module.globals.get(name) is function:
            del self.module.globals[name]
            _release_name(self.module.scope, name)
        if self.builder is not None and self.builder.function is function:
            self.builder = None
        logger.debug("erased %s", name)

    def clear_body(self, function: ll.Function) -> None:
        function.blocks.clear()

        # Fresh local names for the next body, keeping the parameter names
        function.scope = _fresh_scope([arg.name for arg in function.args if arg.name])

        if self.builder is not None and self.builder.function is function:
            self.builder = None
        logger.debug("cleared body of %s", function.name)

    # Output

    def function_ir(self, function: ll.Function) -> str:
        return str(function)

    def module_ir(self) -> str:
        return str(self.module)

    def evaluate(self, function: ll.Function) -> Optional[int]:
        """
        JIT-compile a zero-argument function and call it.

        Only ``function`` and the functions it reaches are compiled, so
        unrelated functions calling undefined externs do not get in the way.
        A fresh execution engine is built for every call and closed before
        returning. Returns None and records a BackendError when the function
        cannot be run.
        """
        name = function.name
        if not self.targets_host:
            self.errors.append(create_evaluation_error(
                name, f"code for '{self.target_triple}' cannot run on this host"
            ))
            return None

        reachable, missing, recursive = self._reachable_functions(function)
        if missing:
            self.errors.append(create_evaluation_error(
                name, f"calls functions with no body: {', '.join(sorted(missing))}"
            ))
            return None
        if recursive:
            # Without conditionals a cycle in the call graph never returns
            self.errors.append(create_evaluation_error(
                name, "calls itself recursively and cannot terminate"
            ))
            return None

        engine = None
        try:
            llvm_module = llvm.parse_assembly(self._assembly_for(reachable))
            llvm_module.verify()

            target_machine = self.target.create_target_machine(jit=True)
            engine = llvm.create_mcjit_compiler(llvm_module, target_machine)
            engine.finalize_object()

            address = engine.get_function_address(name)
            result = ctypes.CFUNCTYPE(ctypes.c_int32)(address)()
        except RuntimeError as e:
            self.errors.append(create_evaluation_error(name, str(e)))
            return None
        finally:
            if engine is not None:
                engine.close()

        logger.debug("%s evaluated to %d", name, result)
        return result

    def finalize_and_emit(self, output_path: str) -> bool:
        """
        Verify the whole module and write it as an object file.

        Args:
            output_path: Destination of the object file

        Returns:
            True if the file was written, False otherwise
        """
        try:
            llvm_module = llvm.parse_assembly(str(self.module))
            llvm_module.verify()
            object_code = self.target_machine.emit_object(llvm_module)
        except RuntimeError as e:
            self.errors.append(create_emission_error(output_path, str(e)))
            return False

        try:
            with open(output_path, "wb") as f:
                f.write(object_code)
        except OSError as e:
            self.errors.append(create_emission_error(output_path, str(e)))
            return False

        logger.debug("wrote %d bytes to %s", len(object_code), output_path)
        return True

    def _reachable_functions(self, function: ll.Function
                             ) -> Tuple[List[ll.Function], Set[str], bool]:
        """
        Depth-first walk of the call graph from ``function``.

        Returns:
            The defined functions reached (``function`` first), the names
            of reached functions that have no body, and whether any call
            leads back to a function still on the current path
        """
        reachable = [function]
        missing = set()
        recursive = False
        seen = {function.name}
        on_path = {function.name}
        stack = [(function, self._callees(function))]
        while stack:
            current, callees = stack[-1]
            callee = next(callees, None)
            if callee is None:
                stack.pop()
                on_path.discard(current.name)
                continue
            if callee.name in on_path:
                recursive = True
                continue
            if callee.name in seen:
                continue
            seen.add(callee.name)
            if callee.is_declaration:
                missing.add(callee.name)
                continue
            reachable.append(callee)
            on_path.add(callee.name)
            stack.append((callee, self._callees(callee)))
        return reachable, missing, recursive

    @staticmethod
    def _callees(function: ll.Function) -> Iterator[ll.Function]:
        for block in function.blocks:
            for instruction in block.instructions:
                if isinstance(instruction, ll.CallInstr):
                    yield instruction.callee

    def _assembly_for(self, functions: Sequence[ll.Function]) -> str:
        """Textual IR of a module holding just ``functions``."""
        lines = [
            f'; ModuleID = "{self.module.name}"',
            f'target triple = "{self.module.triple}"',
            f'target datalayout = "{self.module.data_layout}"',
            "",
        ]
        lines.extend(str(function) for function in functions)
        return "\n".join(lines)
