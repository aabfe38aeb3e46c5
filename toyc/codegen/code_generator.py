"""
Code Generator for ToyC.

Translates one top-level unit at a time into backend instructions. The
generator never inspects what the backend hands back; values and functions
are opaque handles that go into the scope table and come back out as
operands.

Author: xwest
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from ..backend.base import Backend, FunctionHandle, ValueHandle
from ..errors import CompilerError, create_verification_error
from ..parser.ast_nodes import (
    Expression, NumberLiteral, VariableRef, BinaryOp, Call,
    Prototype, FunctionDef
)
from .errors import (
    create_unknown_variable_error, create_unknown_function_error,
    create_arity_mismatch_error, create_invalid_operator_error,
    create_redefinition_error, create_arity_redefinition_error,
    create_duplicate_parameter_error
)

logger = logging.getLogger(__name__)


@dataclass
class CompilerState:
    """State shared by every code generation step."""
    backend: Backend
    scope: Dict[str, ValueHandle] = field(default_factory=dict)  # parameter name -> value
    current_function: Optional[FunctionHandle] = None

    def enter_function(self, function: FunctionHandle) -> None:
        self.scope.clear()
        self.current_function = function

    def leave_function(self) -> None:
        self.scope.clear()
        self.current_function = None


class CodeGenerator:
    """
    Generates backend instructions from ToyC ASTs.

    ``generate`` is the per-unit boundary: SemanticError and BackendError
    raised anywhere below it are recorded in ``self.errors`` and turned
    into a None result.
    """

    # Operators that map straight onto one arithmetic instruction
    ARITHMETIC_BUILDERS = {
        "+": "build_add",
        "-": "build_sub",
        "*": "build_mul",
    }

    def __init__(self, backend: Backend):
        self.backend = backend
        self.state = CompilerState(backend)
        self.errors: List[CompilerError] = []

    def generate(self, unit: Union[FunctionDef, Prototype]) -> Optional[FunctionHandle]:
        """
        Generate code for one top-level unit.

        Args:
            unit: A function definition or an extern prototype

        Returns:
            The backend function, or None if generation failed
        """
        try:
            if isinstance(unit, FunctionDef):
                return self._generate_function(unit)
            if isinstance(unit, Prototype):
                return self._generate_prototype(unit)
            raise TypeError(f"not a top-level unit: {unit!r}")
        except CompilerError as e:
            self.errors.append(e)
            logger.debug("codegen failed: %s", e.message)
            return None

    # Declarations

    def _generate_prototype(self, prototype: Prototype) -> FunctionHandle:
        """Reuse a declaration of the same name or declare a new one."""
        seen = set()
        for name in prototype.params:
            if name in seen:
                raise create_duplicate_parameter_error(prototype, name)
            seen.add(name)

        function = self.backend.lookup_function(prototype.name)
        if function is None:
            function = self.backend.declare_function(prototype.name, prototype.arity)
        else:
            existing_arity = self.backend.function_arity(function)
            if existing_arity != prototype.arity:
                raise create_arity_redefinition_error(prototype, existing_arity)

        # A defined function keeps the names its body was written with
        if not self.backend.has_body(function):
            self.backend.set_parameter_names(function, prototype.params)
        return function

    def _generate_function(self, definition: FunctionDef) -> FunctionHandle:
        prototype = definition.prototype
        existing = self.backend.lookup_function(prototype.name)
        if existing is not None and self.backend.has_body(existing):
            raise create_redefinition_error(prototype)

        function = self._generate_prototype(prototype)
        try:
            self._generate_body(function, definition)
        except CompilerError:
            # Leave the module exactly as it was before this definition
            if existing is not None:
                self.backend.clear_body(function)
            else:
                self.backend.erase_function(function)
            raise

        logger.debug("generated %s", prototype.name)
        return function

    def _generate_body(self, function: FunctionHandle, definition: FunctionDef) -> None:
        state = self.state
        state.enter_function(function)
        try:
            parameters = self.backend.function_parameters(function)
            for name, value in zip(definition.prototype.params, parameters):
                state.scope[name] = value

            self.backend.enter_function_body(function)
            result = self._generate_expression(definition.body)
            self.backend.build_return(result)

            if not self.backend.verify_function(function):
                if self.backend.errors:
                    raise self.backend.errors.pop()
                raise create_verification_error(definition.name, "")
        finally:
            state.leave_function()

    # Expressions

    def _generate_expression(self, expr: Expression) -> ValueHandle:
        """Generate code for an expression and return the result value."""
        if isinstance(expr, NumberLiteral):
            return self.backend.make_integer_constant(expr.value)
        elif isinstance(expr, VariableRef):
            return self._generate_variable(expr)
        elif isinstance(expr, BinaryOp):
            return self._generate_binary_op(expr)
        elif isinstance(expr, Call):
            return self._generate_call(expr)
        else:
            raise TypeError(f"unknown expression node: {expr!r}")

    def _generate_variable(self, ref: VariableRef) -> ValueHandle:
        value = self.state.scope.get(ref.name)
        if value is None:
            raise create_unknown_variable_error(ref, self.state.scope.keys())
        return value

    def _generate_binary_op(self, binary_op: BinaryOp) -> ValueHandle:
        lhs = self._generate_expression(binary_op.left)
        rhs = self._generate_expression(binary_op.right)

        operator = binary_op.operator
        if operator in self.ARITHMETIC_BUILDERS:
            build = getattr(self.backend, self.ARITHMETIC_BUILDERS[operator])
            return build(lhs, rhs)
        if operator == "<":
            comparison = self.backend.build_unsigned_less(lhs, rhs)
            return self.backend.widen_boolean_to_int(comparison)
        raise create_invalid_operator_error(binary_op)

    def _generate_call(self, call: Call) -> ValueHandle:
        callee = self.backend.lookup_function(call.callee)
        if callee is None:
            raise create_unknown_function_error(call)

        expected = self.backend.function_arity(callee)
        if expected != len(call.args):
            raise create_arity_mismatch_error(call, expected)

        args = [self._generate_expression(arg) for arg in call.args]
        return self.backend.build_call(callee, args)
