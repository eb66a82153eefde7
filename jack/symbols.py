from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from jack.ast import SubroutineKind, VarKind
from jack.errors import DuplicateDeclarationError, UndefinedReferenceError


class SymbolKind(Enum):
    STATIC = "static"
    FIELD = "field"
    ARGUMENT = "argument"
    VAR = "var"
    CONSTRUCTOR = "constructor"
    FUNCTION = "function"
    METHOD = "method"

    @staticmethod
    def of_var(kind: VarKind) -> "SymbolKind":
        match kind:
            case VarKind.FIELD:
                return SymbolKind.FIELD
            case VarKind.STATIC:
                return SymbolKind.STATIC
            case VarKind.VAR:
                return SymbolKind.VAR

    @staticmethod
    def of_subroutine(kind: SubroutineKind) -> "SymbolKind":
        match kind:
            case SubroutineKind.CONSTRUCTOR:
                return SymbolKind.CONSTRUCTOR
            case SubroutineKind.FUNCTION:
                return SymbolKind.FUNCTION
            case SubroutineKind.METHOD:
                return SymbolKind.METHOD


class Symbol(BaseModel):
    kind: SymbolKind
    type: str
    position: int


class SymbolTable(BaseModel):
    """One lexical scope.

    A table refers to the scope that encloses it but never to the scopes it
    encloses, so a child can be dropped as soon as its subroutine is parsed.
    Lookups fall through to the enclosing tables; declarations always land in
    this one.
    """

    enclosing: Optional["SymbolTable"] = Field(default=None, exclude=True)
    symbols: dict[str, Symbol] = {}

    def child(self) -> "SymbolTable":
        return SymbolTable(enclosing=self)

    def add(self, name: str, symbol: Symbol) -> None:
        if name in self.symbols:
            raise DuplicateDeclarationError(name)
        self.symbols[name] = symbol

    def define(self, name: str, kind: SymbolKind, type: str) -> Symbol:
        symbol = Symbol(kind=kind, type=type, position=self.count(kind))
        self.add(name, symbol)
        return symbol

    def count(self, kind: SymbolKind) -> int:
        return sum(1 for symbol in self.symbols.values() if symbol.kind == kind)

    def get(self, name: str) -> Symbol:
        table: Optional[SymbolTable] = self
        while table is not None:
            if name in table.symbols:
                return table.symbols[name]
            table = table.enclosing
        raise UndefinedReferenceError(name)

    def __contains__(self, name: str) -> bool:
        try:
            self.get(name)
        except UndefinedReferenceError:
            return False
        return True
