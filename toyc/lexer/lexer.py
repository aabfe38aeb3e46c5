"""
ToyC Lexer - turns a character stream into tokens on demand.

The parser pulls one token at a time, so the lexer never reads further
into the input than the token it is building. That keeps interactive
sessions responsive: a line typed at the prompt is tokenized as soon as
it arrives.

Author: xwest
"""

import io
from typing import List, Optional, TextIO, Union

from .tokens import Token, TokenType, SourceLocation, KEYWORDS


def _is_letter(char: str) -> bool:
    return char.isascii() and char.isalpha()


def _is_digit(char: str) -> bool:
    return "0" <= char <= "9" and len(char) == 1


class Lexer:
    """
    ToyC lexical analyzer.

    Never raises: characters it does not recognize come back as
    single-character CHAR tokens and it is up to the parser to reject them.
    """

    def __init__(self, source: Union[str, TextIO], filename: str = "<stdin>"):
        """
        Initialize the lexer.

        Args:
            source: Text stream to read from, or a string of source code
            filename: Name used in source locations
        """
        if isinstance(source, str):
            source = io.StringIO(source)
        self.stream = source
        self.filename = filename

        # Location of the lookahead character
        self.pos = 0
        self.line = 1
        self.column = 1

        # One character of lookahead. None until the first read so that
        # constructing a lexer never blocks on input; "" once exhausted.
        self._last_char: Optional[str] = None

    @property
    def at_end(self) -> bool:
        return self._last_char == ""

    def next_token(self) -> Token:
        """Read and return the next token from the stream."""
        if self._last_char is None:
            self._last_char = self.stream.read(1)

        self._skip_whitespace_and_comments()

        start = self._location()
        char = self._last_char

        if char == "":
            return Token(TokenType.EOF, "", None, start)

        if _is_letter(char):
            return self._tokenize_identifier_or_keyword(start)

        if _is_digit(char) or char == ".":
            return self._tokenize_number(start)

        self._advance()
        return Token(TokenType.CHAR, char, None, start)

    def tokenize(self) -> List[Token]:
        """
        Drain the stream.

        Returns:
            List of tokens ending with the EOF token
        """
        tokens = []
        while True:
            token = self.next_token()
            tokens.append(token)
            if token.type == TokenType.EOF:
                return tokens

    def _tokenize_identifier_or_keyword(self, start: SourceLocation) -> Token:
        """identifier: [a-zA-Z][a-zA-Z0-9]*"""
        chars = [self._last_char]
        self._advance()
        while _is_letter(self._last_char) or _is_digit(self._last_char):
            chars.append(self._last_char)
            self._advance()

        lexeme = "".join(chars)
        token_type = KEYWORDS.get(lexeme, TokenType.IDENTIFIER)
        value = lexeme if token_type == TokenType.IDENTIFIER else None
        return Token(token_type, lexeme, value, start)

    def _tokenize_number(self, start: SourceLocation) -> Token:
        """number: digits with at most one decimal point."""
        chars = []
        while _is_digit(self._last_char):
            chars.append(self._last_char)
            self._advance()

        if self._last_char == ".":
            chars.append(".")
            self._advance()
            while _is_digit(self._last_char):
                chars.append(self._last_char)
                self._advance()

        lexeme = "".join(chars)
        if lexeme == ".":
            # A dot with no digits on either side is plain punctuation
            return Token(TokenType.CHAR, ".", None, start)

        return Token(TokenType.NUMBER, lexeme, float(lexeme), start)

    def _skip_whitespace_and_comments(self):
        """Skip whitespace and '#' comments running to end of line."""
        while True:
            while self._last_char != "" and self._last_char.isspace():
                self._advance()

            if self._last_char != "#":
                return

            while self._last_char not in ("", "\n", "\r"):
                self._advance()

    def _advance(self):
        """Consume the lookahead character and read the next one."""
        if self._last_char == "":
            # Never read past the end; an interactive stream would block again
            return

        if self._last_char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.pos += 1

        self._last_char = self.stream.read(1)

    def _location(self) -> SourceLocation:
        return SourceLocation(self.filename, self.line, self.column, self.pos)


def tokenize_string(source: str, filename: str = "<string>") -> List[Token]:
    """
    Convenience function to tokenize a source string.

    Args:
        source: Source code string
        filename: Filename for error reporting

    Returns:
        List of tokens
    """
    return Lexer(source, filename).tokenize()
