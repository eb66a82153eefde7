import pytest

from jack.errors import (
    DuplicateDeclarationError,
    SymbolError,
    UndefinedReferenceError,
)
from jack.symbols import Symbol, SymbolKind, SymbolTable


def test_define_assigns_positions_per_kind() -> None:
    table = SymbolTable()
    assert table.define("a", SymbolKind.FIELD, "int").position == 0
    assert table.define("s", SymbolKind.STATIC, "int").position == 0
    assert table.define("b", SymbolKind.FIELD, "Point").position == 1
    assert table.count(SymbolKind.FIELD) == 2
    assert table.count(SymbolKind.STATIC) == 1
    assert table.count(SymbolKind.VAR) == 0


def test_add_rejects_same_scope_duplicates() -> None:
    table = SymbolTable()
    table.add("x", Symbol(kind=SymbolKind.FIELD, type="int", position=0))
    with pytest.raises(DuplicateDeclarationError) as info:
        table.add("x", Symbol(kind=SymbolKind.STATIC, type="char", position=0))
    assert info.value.name == "x"
    assert str(info.value) == "SyntaxError: Identifier 'x' has already been declared"
    assert table.get("x").kind == SymbolKind.FIELD


def test_lookup_walks_outward() -> None:
    root = SymbolTable()
    root.define("x", SymbolKind.FIELD, "int")
    child = root.child()
    child.define("y", SymbolKind.VAR, "int")
    assert child.get("x") == Symbol(kind=SymbolKind.FIELD, type="int", position=0)
    assert child.get("y").kind == SymbolKind.VAR
    assert "y" not in root
    assert "x" in child


def test_child_may_shadow_parent() -> None:
    root = SymbolTable()
    root.define("x", SymbolKind.FIELD, "int")
    child = root.child()
    child.define("x", SymbolKind.ARGUMENT, "boolean")
    assert child.get("x").kind == SymbolKind.ARGUMENT
    assert root.get("x").kind == SymbolKind.FIELD


def test_children_do_not_see_each_other() -> None:
    root = SymbolTable()
    first = root.child()
    second = root.child()
    first.define("a", SymbolKind.VAR, "int")
    with pytest.raises(UndefinedReferenceError) as info:
        second.get("a")
    assert str(info.value) == "ReferenceError: 'a' is not defined."


def test_root_is_the_end_of_lookup() -> None:
    with pytest.raises(UndefinedReferenceError):
        SymbolTable().get("missing")


def test_child_keeps_parent_reference() -> None:
    root = SymbolTable()
    child = root.child()
    assert child.enclosing is root
    root.define("late", SymbolKind.STATIC, "int")
    assert child.get("late").kind == SymbolKind.STATIC
    assert "enclosing" not in child.model_dump()


def test_symbol_errors_describe_themselves() -> None:
    assert SymbolError.__abstractmethods__ == frozenset({"describe"})
    assert not DuplicateDeclarationError.__abstractmethods__
    assert not UndefinedReferenceError.__abstractmethods__
    assert str(UndefinedReferenceError("y")) == "ReferenceError: 'y' is not defined."
