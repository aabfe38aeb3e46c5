"""
Shared diagnostics for the ToyC compiler.

Every component reports problems through a Diagnostic so the driver can
print parse, semantic and backend failures the same way.

Author: xwest
"""

from typing import Optional, List
from dataclasses import dataclass

from .lexer.tokens import SourceLocation


@dataclass
class Diagnostic:
    """A single compiler message (error, warning, info)."""
    message: str
    location: Optional[SourceLocation]
    severity: str  # "error", "warning", "info"
    code: Optional[str] = None
    help_text: Optional[str] = None
    suggestions: Optional[List[str]] = None

    def __str__(self) -> str:
        severity_prefix = self.severity.upper()
        result = f"{severity_prefix}: {self.message}"
        if self.code:
            result += f" [{self.code}]"
        result += "\n"
        if self.location is not None:
            result += f"  --> {self.location}\n"

        if self.help_text:
            result += f"  help: {self.help_text}\n"

        if self.suggestions:
            result += "  suggestions:\n"
            for suggestion in self.suggestions:
                result += f"    - {suggestion}\n"

        return result


class CompilerError(Exception):
    """
    Base class for errors raised inside a compiler component.

    Carries a Diagnostic; callers at a component boundary catch it and
    record it instead of letting it escape.
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        code: Optional[str] = None,
        help_text: Optional[str] = None,
        suggestions: Optional[List[str]] = None,
        severity: str = "error"
    ):
        super().__init__(message)
        self.message = message
        self.diagnostic = Diagnostic(
            message=message,
            location=location,
            severity=severity,
            code=code,
            help_text=help_text,
            suggestions=suggestions
        )

    @property
    def location(self) -> Optional[SourceLocation]:
        return self.diagnostic.location

    def __str__(self) -> str:
        return str(self.diagnostic)


class BackendError(CompilerError):
    """Target or capability failure not tied to a specific AST node."""
    pass


BACKEND_ERROR_CODES = {
    "B001": "Function verification failed",
    "B002": "Object emission failed",
    "B003": "JIT evaluation failed",
    "B004": "Textual IR could not be written",
    "B005": "Unsupported target",
}


def create_verification_error(function_name: str, detail: str) -> BackendError:
    """Create an error for a function the backend rejected."""
    return BackendError(
        message=f"generated code for '{function_name}' failed verification",
        code="B001",
        help_text=detail.strip() or None
    )


def create_emission_error(output_path: str, detail: str) -> BackendError:
    """Create an error for a failed artifact emission."""
    return BackendError(
        message=f"could not emit object file '{output_path}'",
        code="B002",
        help_text=detail.strip() or None
    )


def create_evaluation_error(function_name: str, detail: str) -> BackendError:
    """Create an error for a top-level expression that could not be run."""
    return BackendError(
        message=f"could not evaluate '{function_name}'",
        code="B003",
        help_text=detail.strip() or None,
        severity="warning"
    )


def create_target_error(target_triple: str, detail: str) -> BackendError:
    """Create an error for a target LLVM does not know how to generate code for."""
    return BackendError(
        message=f"unsupported target '{target_triple}'",
        code="B005",
        help_text=detail.strip() or None
    )


def create_ir_write_error(output_path: str, detail: str) -> BackendError:
    """Create an error for a textual IR dump that could not be written."""
    return BackendError(
        message=f"could not write textual IR to '{output_path}'",
        code="B004",
        help_text=detail.strip() or None
    )
