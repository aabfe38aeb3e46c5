"""
Abstract Syntax Tree node definitions for ToyC.

Expressions form a closed set of four node types. Nodes are frozen
dataclasses: once the parser builds a tree nothing can rewire it, and every
child belongs to exactly one parent. Source spans ride along for
diagnostics but take no part in equality, so tests can compare trees
structurally.

Author: xwest
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from ..lexer.tokens import SourceLocation


@dataclass(frozen=True)
class SourceSpan:
    """Represents a span of source code (start and end locations)."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename == self.end.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start}-{self.end}"


def _span_field():
    return field(default=None, compare=False, repr=False)


# ============================================================================
# Expressions
# ============================================================================

@dataclass(frozen=True)
class NumberLiteral:
    """Numeric literal, already narrowed to an integer."""
    value: int
    span: Optional[SourceSpan] = _span_field()

    def children(self) -> Tuple["Expression", ...]:
        return ()

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class VariableRef:
    """Reference to a function parameter."""
    name: str
    span: Optional[SourceSpan] = _span_field()

    def children(self) -> Tuple["Expression", ...]:
        return ()

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class BinaryOp:
    """Binary operation: left <operator> right."""
    operator: str
    left: "Expression"
    right: "Expression"
    span: Optional[SourceSpan] = _span_field()

    def children(self) -> Tuple["Expression", ...]:
        return (self.left, self.right)

    def __str__(self) -> str:
        return f"({self.operator} {self.left} {self.right})"


@dataclass(frozen=True)
class Call:
    """Call of a named function."""
    callee: str
    args: Tuple["Expression", ...] = ()
    span: Optional[SourceSpan] = _span_field()

    def __post_init__(self):
        # Accept any sequence but store an immutable tuple
        object.__setattr__(self, "args", tuple(self.args))

    def children(self) -> Tuple["Expression", ...]:
        return self.args

    def __str__(self) -> str:
        rendered = " ".join(str(arg) for arg in self.args)
        return f"(call {self.callee}{' ' + rendered if rendered else ''})"


Expression = Union[NumberLiteral, VariableRef, BinaryOp, Call]


# ============================================================================
# Declarations
# ============================================================================

@dataclass(frozen=True)
class Prototype:
    """Function signature: name plus ordered parameter names."""
    name: str
    params: Tuple[str, ...] = ()
    span: Optional[SourceSpan] = _span_field()

    def __post_init__(self):
        object.__setattr__(self, "params", tuple(self.params))

    @property
    def arity(self) -> int:
        return len(self.params)

    @property
    def is_anonymous(self) -> bool:
        return self.name.startswith(ANONYMOUS_FUNCTION_PREFIX)

    def __str__(self) -> str:
        return f"{self.name}({' '.join(self.params)})"


@dataclass(frozen=True)
class FunctionDef:
    """Function definition: a prototype with a body expression."""
    prototype: Prototype
    body: Expression
    span: Optional[SourceSpan] = _span_field()

    @property
    def name(self) -> str:
        return self.prototype.name

    def __str__(self) -> str:
        return f"def {self.prototype} {self.body}"


# A top-level unit is either a definition or a bare extern prototype
TopLevelUnit = Union[FunctionDef, Prototype]

# Reserved name prefix for wrapped top-level expressions; not a valid
# identifier, so it can never collide with a user function.
ANONYMOUS_FUNCTION_PREFIX = "__anon_expr"


def walk(node: Expression):
    """Yield ``node`` and all of its descendants, depth first."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children()))
