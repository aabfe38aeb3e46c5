"""
Compilation driver for ToyC.

Runs the top-level loop: pick the kind of the next unit from the leading
token, parse it, generate code for it, report the result, and recover
when either step fails. Once the input is exhausted the backend writes
the object file.

Author: xwest
"""

import logging
import sys
from typing import Optional, TextIO, Union

from .backend.base import Backend
from .backend.llvm_backend import LLVMBackend
from .codegen.code_generator import CodeGenerator
from .config import CompilerOptions
from .errors import CompilerError, create_ir_write_error
from .lexer.lexer import Lexer
from .lexer.tokens import TokenType
from .parser.parser import Parser

logger = logging.getLogger(__name__)

PROMPT = "ready> "


class Driver:
    """
    ToyC compilation driver.

    One Driver owns one backend module; every unit read by ``run`` is
    compiled into it.
    """

    def __init__(self, backend: Optional[Backend] = None,
                 options: Optional[CompilerOptions] = None,
                 out: Optional[TextIO] = None, err: Optional[TextIO] = None):
        """
        Initialize the driver.

        Args:
            backend: Backend to compile into; an LLVMBackend built from
                ``options`` when omitted
            options: Compiler options; defaults when omitted
            out: Stream for unit summaries (stdout by default)
            err: Stream for diagnostics and the prompt (stderr by default)
        """
        self.options = options or CompilerOptions()
        if backend is None:
            backend = LLVMBackend(self.options.module_name, self.options.target_triple)
        self.backend = backend
        self.generator = CodeGenerator(backend)
        self.out = out if out is not None else sys.stdout
        self.err = err if err is not None else sys.stderr

        self.parser: Optional[Parser] = None
        self.failures = 0

    def run(self, source: Union[str, TextIO]) -> int:
        """
        Compile every unit in ``source`` and emit the object file.

        Returns:
            Exit status: 0 if every unit compiled and the object file was
            written, 1 otherwise
        """
        self.parser = Parser(Lexer(source, self.options.filename))
        self.main_loop()
        return self.finish()

    def main_loop(self) -> None:
        """
        Consume top-level units until end of input.

        top ::= definition | extern | expression | ';'
        """
        parser = self.parser
        while True:
            if self.options.interactive:
                self.err.write(PROMPT)
                self.err.flush()

            token = parser.current_token
            if token.type == TokenType.EOF:
                return
            if token.is_char(";"):
                parser.advance()  # ignore top-level semicolons
            elif token.type == TokenType.DEF:
                self.handle_definition()
            elif token.type == TokenType.EXTERN:
                self.handle_extern()
            else:
                self.handle_top_level_expression()

    # Unit handlers

    def handle_definition(self) -> None:
        definition = self.parser.parse_definition()
        if definition is None:
            self._fail(self.parser.errors[-1])
            return

        function = self.generator.generate(definition)
        if function is None:
            self._fail(self.generator.errors[-1])
            return

        logger.debug("compiled definition %s", definition.name)
        self._summarize("Read function definition:", function)

    def handle_extern(self) -> None:
        prototype = self.parser.parse_extern()
        if prototype is None:
            self._fail(self.parser.errors[-1])
            return

        function = self.generator.generate(prototype)
        if function is None:
            self._fail(self.generator.errors[-1])
            return

        logger.debug("compiled extern %s", prototype.name)
        self._summarize("Read extern:", function)

    def handle_top_level_expression(self) -> None:
        definition = self.parser.parse_top_level_expression()
        if definition is None:
            self._fail(self.parser.errors[-1])
            return

        function = self.generator.generate(definition)
        if function is None:
            self._fail(self.generator.errors[-1])
            return

        self._summarize("Read top-level expression:", function)
        if self.options.evaluate:
            self._evaluate(function)

        # Top-level expressions never outlive their report
        self.backend.erase_function(function)

    # Recovery

    def skip_token(self) -> None:
        """
        Recovery transition after a failed unit.

        Discards exactly one token so the loop always makes progress, unless
        that token already begins the next unit or ends the input.
        """
        if not self.parser.current_token.starts_unit:
            self.parser.advance()

    # Finalization

    def finish(self) -> int:
        """Write the requested artifacts and compute the exit status."""
        if self.options.emit_llvm:
            try:
                with open(self.options.emit_llvm, "w") as f:
                    f.write(self.backend.module_ir())
            except OSError as e:
                self._report(create_ir_write_error(self.options.emit_llvm, str(e)))
                self.failures += 1

        output_path = self.options.output_path
        emitted = self.backend.finalize_and_emit(output_path)
        if emitted:
            print(f"Wrote {output_path}", file=self.out)
        else:
            self._report(self.backend.errors[-1])

        logger.debug("finished with %d failed unit(s)", self.failures)
        return 0 if emitted and self.failures == 0 else 1

    # Utility methods

    def _evaluate(self, function) -> None:
        result = self.backend.evaluate(function)
        if result is None:
            self._report(self.backend.errors[-1])
        else:
            print(f"Evaluated to {result}", file=self.out)

    def _summarize(self, header: str, function) -> None:
        print(header, file=self.out)
        if self.options.print_ir:
            print(self.backend.function_ir(function), file=self.out)

    def _fail(self, error: CompilerError) -> None:
        self.failures += 1
        self._report(error)
        self.skip_token()

    def _report(self, error: CompilerError) -> None:
        self.err.write(str(error.diagnostic))
        self.err.flush()


def compile_source(source: Union[str, TextIO], options: Optional[CompilerOptions] = None,
                   out: Optional[TextIO] = None, err: Optional[TextIO] = None) -> int:
    """
    Convenience function to compile ``source`` with a fresh LLVM backend.

    Returns:
        The driver's exit status
    """
    return Driver(options=options, out=out, err=err).run(source)
