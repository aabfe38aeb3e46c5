"""
ToyC Parser

Recursive descent for primaries and prototypes, precedence climbing for
binary expressions. The parser pulls tokens from the lexer one at a time
and never looks more than one token ahead.

Each top-level entry point (parse_definition, parse_extern,
parse_top_level_expression) returns a node on success or None on failure.
On failure the ParseError is appended to ``self.errors`` and the token
stream is left where the problem was found; recovering from there is the
driver's job.

Author: xwest
"""

import logging
import math
from typing import List, Optional, Union, TextIO

from ..lexer.lexer import Lexer
from ..lexer.tokens import Token, TokenType, token_precedence
from .ast_nodes import (
    Expression, NumberLiteral, VariableRef, BinaryOp, Call,
    Prototype, FunctionDef, SourceSpan, ANONYMOUS_FUNCTION_PREFIX
)
from .errors import (
    ParseError, create_unexpected_token_error, create_invalid_expression_error,
    create_prototype_error, create_unclosed_paren_error, create_invalid_number_error
)

logger = logging.getLogger(__name__)

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1


class Parser:
    """
    ToyC parser.

    Builds one top-level unit per call from a token stream with a single
    token of lookahead.
    """

    def __init__(self, lexer: Lexer):
        """
        Initialize parser with a lexer to pull tokens from.

        Args:
            lexer: Token source; read lazily on first use
        """
        self.lexer = lexer
        self.errors: List[ParseError] = []
        self._current: Optional[Token] = None
        self._anonymous_count = 0

    @classmethod
    def from_source(cls, source: Union[str, TextIO], filename: str = "<string>") -> "Parser":
        return cls(Lexer(source, filename))

    @property
    def current_token(self) -> Token:
        """The lookahead token. Reading it the first time pulls from the lexer."""
        if self._current is None:
            self._current = self.lexer.next_token()
        return self._current

    def advance(self) -> Token:
        """Consume the lookahead token and return the new one."""
        self._current = self.lexer.next_token()
        return self._current

    # Top-level entry points

    def parse_definition(self) -> Optional[FunctionDef]:
        """definition ::= 'def' prototype expression"""
        return self._guarded(self._parse_definition)

    def parse_extern(self) -> Optional[Prototype]:
        """extern ::= 'extern' prototype"""
        return self._guarded(self._parse_extern)

    def parse_top_level_expression(self) -> Optional[FunctionDef]:
        """Wrap a bare expression in an anonymous zero-argument function."""
        return self._guarded(self._parse_top_level_expression)

    def _guarded(self, parse_unit):
        try:
            return parse_unit()
        except ParseError as e:
            self.errors.append(e)
            logger.debug("parse failed at %s: %s", e.location, e.message)
            return None

    def _parse_definition(self) -> FunctionDef:
        start = self._expect_type(TokenType.DEF, "expected 'def'")
        prototype = self.parse_prototype()
        body = self.parse_expression()
        return FunctionDef(prototype, body, self._span_from(start))

    def _parse_extern(self) -> Prototype:
        self._expect_type(TokenType.EXTERN, "expected 'extern'")
        return self.parse_prototype()

    def _parse_top_level_expression(self) -> FunctionDef:
        start = self.current_token
        body = self.parse_expression()

        name = f"{ANONYMOUS_FUNCTION_PREFIX}.{self._anonymous_count}"
        self._anonymous_count += 1

        span = self._span_from(start)
        return FunctionDef(Prototype(name, (), span), body, span)

    # Declarations

    def parse_prototype(self) -> Prototype:
        """prototype ::= IDENT '(' IDENT* ')'"""
        name_token = self.current_token
        if name_token.type != TokenType.IDENTIFIER:
            raise create_prototype_error("function name", name_token)
        self.advance()

        if not self.current_token.is_char("("):
            raise create_prototype_error("'('", self.current_token)

        params = []
        while self.advance().type == TokenType.IDENTIFIER:
            params.append(self.current_token.lexeme)

        if not self.current_token.is_char(")"):
            raise create_prototype_error("')'", self.current_token)
        self.advance()  # eat ')'

        return Prototype(name_token.lexeme, tuple(params), self._span_from(name_token))

    # Expressions

    def parse_expression(self) -> Expression:
        """expression ::= primary ( BINOP primary )*"""
        lhs = self.parse_primary()
        return self.parse_binary_rhs(0, lhs)

    def parse_binary_rhs(self, min_precedence: int, lhs: Expression) -> Expression:
        """
        Precedence climbing over binary operators.

        Keeps folding operators into ``lhs`` for as long as they bind at
        least as tightly as ``min_precedence``.
        """
        while True:
            precedence = token_precedence(self.current_token)
            if precedence < min_precedence:
                return lhs

            operator = self.current_token.lexeme
            self.advance()  # eat operator

            rhs = self.parse_primary()

            # If the next operator binds tighter, let it take rhs as its lhs
            next_precedence = token_precedence(self.current_token)
            if precedence < next_precedence:
                rhs = self.parse_binary_rhs(precedence + 1, rhs)

            lhs = BinaryOp(operator, lhs, rhs, self._join_spans(lhs, rhs))

    def parse_primary(self) -> Expression:
        """primary ::= NUMBER | identifier-expr | paren-expr"""
        token = self.current_token
        if token.type == TokenType.NUMBER:
            return self._parse_number()
        if token.type == TokenType.IDENTIFIER:
            return self._parse_identifier()
        if token.is_char("("):
            return self._parse_paren()
        raise create_invalid_expression_error(token)

    def _parse_number(self) -> NumberLiteral:
        token = self.current_token
        value = token.value
        if math.isinf(value):
            raise create_invalid_number_error(token, "value does not fit in 32 bits")
        if not value.is_integer():
            raise create_invalid_number_error(token, "fractional values are not supported")
        value = int(value)
        if not INT32_MIN <= value <= INT32_MAX:
            raise create_invalid_number_error(token, "value does not fit in 32 bits")

        self.advance()
        return NumberLiteral(value, SourceSpan(token.location, token.location))

    def _parse_identifier(self) -> Expression:
        """identifier-expr ::= IDENT | IDENT '(' (expression (',' expression)*)? ')'"""
        name_token = self.current_token
        self.advance()  # eat identifier

        if not self.current_token.is_char("("):
            span = SourceSpan(name_token.location, name_token.location)
            return VariableRef(name_token.lexeme, span)

        self.advance()  # eat '('
        args = []
        if not self.current_token.is_char(")"):
            while True:
                args.append(self.parse_expression())

                if self.current_token.is_char(")"):
                    break
                if not self.current_token.is_char(","):
                    raise create_unexpected_token_error(
                        "expected ')' or ',' in argument list", self.current_token
                    )
                self.advance()  # eat ','

        end = self.current_token
        self.advance()  # eat ')'
        return Call(name_token.lexeme, tuple(args), SourceSpan(name_token.location, end.location))

    def _parse_paren(self) -> Expression:
        """paren-expr ::= '(' expression ')'"""
        open_token = self.current_token
        self.advance()  # eat '('
        expr = self.parse_expression()

        if not self.current_token.is_char(")"):
            raise create_unclosed_paren_error(self.current_token, open_token.location)
        self.advance()  # eat ')'
        return expr

    # Utility methods

    def _expect_type(self, token_type: TokenType, message: str) -> Token:
        token = self.current_token
        if token.type != token_type:
            raise create_unexpected_token_error(message, token)
        self.advance()
        return token

    def _span_from(self, start: Token) -> SourceSpan:
        return SourceSpan(start.location, self.current_token.location)

    @staticmethod
    def _join_spans(left: Expression, right: Expression) -> Optional[SourceSpan]:
        if left.span is None or right.span is None:
            return None
        return SourceSpan(left.span.start, right.span.end)


def parse_string(source: str, filename: str = "<string>") -> List[Union[FunctionDef, Prototype]]:
    """
    Convenience function to parse every unit in a source string.

    Separators (';') are skipped. Stops at the first syntax error.

    Raises:
        ParseError: If parsing fails
    """
    parser = Parser.from_source(source, filename)
    units = []
    while True:
        token = parser.current_token
        if token.type == TokenType.EOF:
            return units
        if token.is_char(";"):
            parser.advance()
            continue

        if token.type == TokenType.DEF:
            unit = parser.parse_definition()
        elif token.type == TokenType.EXTERN:
            unit = parser.parse_extern()
        else:
            unit = parser.parse_top_level_expression()

        if unit is None:
            raise parser.errors[-1]
        units.append(unit)
