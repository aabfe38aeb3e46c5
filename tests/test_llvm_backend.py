"""
Tests for the llvmlite backend: function bookkeeping, JIT evaluation and
object file emission.

Author: xwest
"""

import os
import sys
import tempfile
import unittest

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from toyc.backend.llvm_backend import LLVMBackend, DEFAULT_MODULE_NAME
from toyc.codegen.code_generator import CodeGenerator
from toyc.errors import BackendError
from toyc.parser.parser import parse_string


class LLVMTestCase(unittest.TestCase):
    """Shared setup: a fresh module and generator per test."""

    def setUp(self):
        self.backend = LLVMBackend()
        self.generator = CodeGenerator(self.backend)

    def compile(self, source):
        """Generate every unit in ``source``; return the last function."""
        function = None
        for unit in parse_string(source):
            function = self.generator.generate(unit)
            self.assertIsNotNone(function, self.generator.errors)
        return function

    def evaluate(self, source):
        """Compile a single top-level expression, run it, then discard it."""
        function = self.compile(source)
        try:
            return self.backend.evaluate(function)
        finally:
            self.backend.erase_function(function)


class TestFunctionBookkeeping(LLVMTestCase):
    """Declarations, lookups and removal."""

    def test_module_setup(self):
        ir = self.backend.module_ir()

        self.assertIn(DEFAULT_MODULE_NAME, ir)
        self.assertIn(self.backend.target_triple, ir)
        self.assertTrue(self.backend.targets_host)

    def test_declare_and_lookup(self):
        function = self.backend.declare_function("foo", 3)

        self.assertIs(self.backend.lookup_function("foo"), function)
        self.assertEqual(self.backend.function_arity(function), 3)
        self.assertEqual(len(self.backend.function_parameters(function)), 3)
        self.assertFalse(self.backend.has_body(function))
        self.assertIsNone(self.backend.lookup_function("bar"))

    def test_parameter_names(self):
        function = self.backend.declare_function("foo", 2)
        self.backend.set_parameter_names(function, ["a", "b"])
        self.backend.set_parameter_names(function, ["a", "b"])

        self.assertEqual([arg.name for arg in function.args], ["a", "b"])

    def test_swapped_parameter_names(self):
        function = self.backend.declare_function("foo", 2)
        self.backend.set_parameter_names(function, ["a", "b"])
        self.backend.set_parameter_names(function, ["b", "a"])

        self.assertEqual([arg.name for arg in function.args], ["b", "a"])
        self.assertIn('declare i32 @"foo"(i32 %"b", i32 %"a")', self.backend.function_ir(function))

    def test_erase_releases_name(self):
        function = self.backend.declare_function("foo", 1)
        self.backend.erase_function(function)

        self.assertIsNone(self.backend.lookup_function("foo"))
        again = self.backend.declare_function("foo", 2)
        self.assertEqual(self.backend.function_arity(again), 2)

    def test_clear_body_keeps_declaration(self):
        function = self.compile("def f(x) x * 2")
        self.backend.clear_body(function)

        self.assertFalse(self.backend.has_body(function))
        self.assertIn('declare i32 @"f"(i32 %"x")', self.backend.module_ir())

    def test_verification_failure_is_recorded(self):
        function = self.backend.declare_function("broken", 0)
        # Entry block with no terminator
        self.backend.enter_function_body(function)

        self.assertFalse(self.backend.verify_function(function))
        self.assertEqual(len(self.backend.errors), 1)
        self.assertEqual(self.backend.errors[0].diagnostic.code, "B001")

    def test_unknown_target(self):
        with self.assertRaises(BackendError) as context:
            LLVMBackend(target_triple="not-a-real-target")

        self.assertEqual(context.exception.diagnostic.code, "B005")


class TestEvaluation(LLVMTestCase):
    """JIT evaluation of zero-argument functions."""

    def test_constant_arithmetic(self):
        self.assertEqual(self.evaluate("1 + 2 * 3"), 7)
        self.assertEqual(self.evaluate("(1 + 2) * 3"), 9)
        self.assertEqual(self.evaluate("10 - 3 - 2"), 5)

    def test_average(self):
        self.compile("def average(x y) (x + y) * 5")

        self.assertEqual(self.evaluate("average(10, 20)"), 150)

    def test_calls_between_functions(self):
        self.compile("def double(x) x * 2; def quad(x) double(double(x))")

        self.assertEqual(self.evaluate("quad(3)"), 12)

    def test_comparison_yields_one_or_zero(self):
        self.compile("def lt(a b) a < b")

        self.assertEqual(self.evaluate("lt(1, 2)"), 1)
        self.assertEqual(self.evaluate("lt(2, 1)"), 0)
        self.assertEqual(self.evaluate("lt(2, 2)"), 0)

    def test_comparison_is_unsigned(self):
        self.compile("def lt(a b) a < b")

        # 0 - 1 is 0xFFFFFFFF, the largest unsigned value
        self.assertEqual(self.evaluate("lt(0 - 1, 1)"), 0)

    def test_results_are_signed(self):
        self.assertEqual(self.evaluate("0 - 5"), -5)

    def test_wraps_on_overflow(self):
        self.assertEqual(self.evaluate("2147483647 + 1"), -2147483648)

    def test_refuses_calls_without_body(self):
        self.compile("extern foo(); def bar() foo() + 1")

        self.assertIsNone(self.evaluate("bar()"))
        error = self.backend.errors[-1]
        self.assertEqual(error.diagnostic.code, "B003")
        self.assertEqual(error.diagnostic.severity, "warning")
        self.assertIn("foo", error.diagnostic.help_text)

    def test_unrelated_undefined_extern_does_not_block(self):
        self.compile("extern foo(); def bar() foo()")

        self.assertEqual(self.evaluate("6 * 7"), 42)

    def test_refuses_direct_recursion(self):
        self.compile("def f(x) f(x)")

        self.assertIsNone(self.evaluate("f(1)"))
        error = self.backend.errors[-1]
        self.assertEqual(error.diagnostic.code, "B003")
        self.assertIn("recursively", error.diagnostic.help_text)

    def test_refuses_mutual_recursion(self):
        self.compile("extern odd(n); def even(n) odd(n - 1); def odd(n) even(n - 1)")

        self.assertIsNone(self.evaluate("1 + even(4)"))
        self.assertIn("recursively", self.backend.errors[-1].diagnostic.help_text)

    def test_shared_callee_is_not_recursion(self):
        self.compile("def double(x) x * 2; def both(x) double(x) + double(x + 1)")

        self.assertEqual(self.evaluate("both(1)"), 6)
        self.assertEqual(self.backend.errors, [])

    def test_evaluates_after_extern_is_defined(self):
        self.compile("extern foo(a); def bar(a) foo(a) + 1; def foo(a) a * 10")

        self.assertEqual(self.evaluate("bar(4)"), 41)


class TestObjectEmission(LLVMTestCase):
    """Writing the module as an object file."""

    def test_writes_non_empty_object(self):
        self.compile("def average(x y) (x + y) * 5")

        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "average.o")

            self.assertTrue(self.backend.finalize_and_emit(path))
            self.assertGreater(os.path.getsize(path), 0)

    def test_emits_empty_module(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "empty.o")

            self.assertTrue(self.backend.finalize_and_emit(path))
            self.assertTrue(os.path.exists(path))

    def test_unwritable_path(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "missing", "out.o")

            self.assertFalse(self.backend.finalize_and_emit(path))

        self.assertEqual(self.backend.errors[-1].diagnostic.code, "B002")


if __name__ == '__main__':
    unittest.main()
