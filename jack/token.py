from enum import Enum

from pydantic import BaseModel

KEYWORDS: frozenset[str] = frozenset(
    {
        "class",
        "constructor",
        "function",
        "method",
        "field",
        "static",
        "var",
        "int",
        "char",
        "boolean",
        "void",
        "true",
        "false",
        "null",
        "this",
        "let",
        "do",
        "if",
        "else",
        "while",
        "return",
    }
)

SYMBOLS: frozenset[str] = frozenset("{}()[].,;+-*/&|<>=~")


class Position(BaseModel):
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


class TokenKind(Enum):
    IDENTIFIER = "identifier"
    INTEGER_CONSTANT = "integerConstant"
    KEYWORD = "keyword"
    STRING_CONSTANT = "stringConstant"
    SYMBOL = "symbol"


class Token(BaseModel):
    kind: TokenKind
    lexeme: str
    position: Position
    source_name: str

    @property
    def text(self) -> str:
        """The token as it would be spelled in source."""
        if self.kind == TokenKind.STRING_CONSTANT:
            return f'"{self.lexeme}"'
        return self.lexeme
