import logging
import string
from collections.abc import Iterator
from typing import Optional

from pydantic import BaseModel, PrivateAttr

from jack.errors import LexicalError
from jack.token import KEYWORDS, SYMBOLS, Position, Token, TokenKind

logger = logging.getLogger(__name__)

_WORD_START = frozenset(string.ascii_letters + "_")
_DIGITS = frozenset(string.digits)
_WORD_CHARS = _WORD_START | _DIGITS


class Lexer(BaseModel, Iterator):
    """Produces the tokens of one source text, one per call to ``next``.

    Whitespace, comments and characters outside the language's alphabet are
    skipped. Lines count from 1 and columns from 0; a token's position is the
    position of its first character.
    """

    source: str
    source_name: str = "<input>"
    _token_start = PrivateAttr(0)
    _token_start_position: Position = PrivateAttr()
    _pos = PrivateAttr(0)
    _line = PrivateAttr(1)
    _column = PrivateAttr(0)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._token_start_position = Position(line=1, column=0)

    def __iter__(self) -> "Lexer":
        return self

    def _peek(self) -> Optional[str]:
        if self._pos >= len(self.source):
            return None
        return self.source[self._pos]

    def _advance(self) -> Optional[str]:
        c = self._peek()
        match c:
            case None:
                return c
            case "\n":
                self._line += 1
                self._column = 0
            case _:
                self._column += 1
        self._pos += 1
        return c

    def _mark(self) -> None:
        self._token_start = self._pos
        self._token_start_position = Position(line=self._line, column=self._column)

    def _text(self) -> str:
        return self.source[self._token_start : self._pos]

    def _add_token(self, kind: TokenKind, lexeme: Optional[str] = None) -> Token:
        return Token(
            kind=kind,
            lexeme=self._text() if lexeme is None else lexeme,
            position=self._token_start_position,
            source_name=self.source_name,
        )

    def _error(self, message: str, fragment: str) -> LexicalError:
        return LexicalError(
            self.source_name, self._token_start_position, message, fragment
        )

    def _skip_line_comment(self) -> None:
        while True:
            match self._peek():
                case None | "\n":
                    return
                case _:
                    self._advance()

    def _skip_block_comment(self) -> None:
        # the opening "/*" has been consumed
        while True:
            match self._advance():
                case None:
                    raise self._error("Unterminated multiline comment.", self._text())
                case "*" if self._peek() == "/":
                    self._advance()
                    return
                case _:
                    pass

    def _lex_string(self) -> Token:
        while True:
            match self._peek():
                case None | "\n":
                    raise self._error("Unterminated string literal.", self._text()[1:])
                case '"':
                    self._advance()
                    return self._add_token(
                        TokenKind.STRING_CONSTANT, self._text()[1:-1]
                    )
                case _:
                    self._advance()

    def _lex_word(self) -> Token:
        while True:
            match self._peek():
                case c if c is not None and c in _WORD_CHARS:
                    self._advance()
                case _:
                    break

        if self._text() in KEYWORDS:
            return self._add_token(TokenKind.KEYWORD)
        return self._add_token(TokenKind.IDENTIFIER)

    def _lex_integer(self) -> Token:
        while True:
            match self._peek():
                case c if c is not None and c in _DIGITS:
                    self._advance()
                case _:
                    break

        return self._add_token(TokenKind.INTEGER_CONSTANT)

    def __next__(self) -> Token:
        while True:
            self._mark()
            match self._advance():
                case None:
                    raise StopIteration
                case "/" if self._peek() == "/":
                    self._skip_line_comment()
                case "/" if self._peek() == "*":
                    self._advance()
                    self._skip_block_comment()
                case c if c in SYMBOLS:
                    return self._add_token(TokenKind.SYMBOL)
                case '"':
                    return self._lex_string()
                case c if c in _WORD_START:
                    return self._lex_word()
                case c if c in _DIGITS:
                    return self._lex_integer()
                case _:
                    pass


def tokenize(source: str, source_name: str = "<input>") -> list[Token]:
    tokens = list(Lexer(source=source, source_name=source_name))
    logger.debug("%s: %d tokens", source_name, len(tokens))
    return tokens
