from abc import ABC, abstractmethod
from typing import Optional

from jack.token import Position, Token


class JackError(Exception):
    """Base class for every diagnostic raised while analyzing a unit."""


class LexicalError(JackError):
    source_name: str
    position: Position
    message: str
    fragment: str

    def __init__(
        self, source_name: str, position: Position, message: str, fragment: str = ""
    ) -> None:
        self.source_name = source_name
        self.position = position
        self.message = message
        self.fragment = fragment
        super().__init__(
            f"<{source_name}:{position.line}:{position.column}>\tError: {message}"
        )


class SourceReadError(JackError):
    source_name: str

    def __init__(self, source_name: str, reason: str) -> None:
        self.source_name = source_name
        super().__init__(f"({source_name}): Error: cannot read source: {reason}")


class ParseError(JackError):
    pass


class JackSyntaxError(ParseError):
    source_name: str
    position: Position
    lexeme: str

    def __init__(self, token: Token) -> None:
        self.source_name = token.source_name
        self.position = token.position
        self.lexeme = token.lexeme
        super().__init__(
            f"({self.source_name}):[{self.position.line}:{self.position.column}]: "
            f"Syntax error: unexpected token '{self.lexeme}'"
        )


class NestingTooDeepError(ParseError):
    source_name: str
    position: Position

    def __init__(self, token: Token) -> None:
        self.source_name = token.source_name
        self.position = token.position
        super().__init__(
            f"({self.source_name}):[{self.position.line}:{self.position.column}]: "
            "Syntax error: nesting too deep"
        )


class UnexpectedEndOfInput(ParseError):
    source_name: str

    def __init__(self, source_name: str) -> None:
        self.source_name = source_name
        super().__init__(f"({source_name}): Syntax error: unexpected end of input")


class SymbolError(JackError, ABC):
    name: str
    source_name: Optional[str]
    position: Optional[Position]

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name
        self.source_name = None
        self.position = None

    @abstractmethod
    def describe(self) -> str:
        ...

    def locate(self, token: Token) -> "SymbolError":
        self.source_name = token.source_name
        self.position = token.position
        return self

    def __str__(self) -> str:
        if self.source_name is None or self.position is None:
            return self.describe()
        return (
            f"({self.source_name}):[{self.position.line}:{self.position.column}]: "
            f"{self.describe()}"
        )


class DuplicateDeclarationError(SymbolError):
    def describe(self) -> str:
        return f"SyntaxError: Identifier '{self.name}' has already been declared"


class UndefinedReferenceError(SymbolError):
    def describe(self) -> str:
        return f"ReferenceError: '{self.name}' is not defined."
