import logging
from typing import Iterable, Optional, Union

from pydantic import BaseModel, PrivateAttr

from jack.ast import (
    BinaryExpr,
    BinaryOperator,
    BlockStmt,
    CallExpr,
    Class,
    DoStmt,
    Expr,
    Ident,
    IfStmt,
    IndexExpr,
    LetStmt,
    Literal,
    LiteralType,
    LogicalExpr,
    LogicalOperator,
    MemberExpr,
    Parameter,
    ParenExpr,
    ReturnStmt,
    Stmt,
    SubroutineBody,
    SubroutineDecl,
    SubroutineKind,
    UnaryExpr,
    UnaryOperator,
    VarDecl,
    VarKind,
    WhileStmt,
)
from jack.errors import (
    DuplicateDeclarationError,
    JackSyntaxError,
    NestingTooDeepError,
    UndefinedReferenceError,
    UnexpectedEndOfInput,
)
from jack.lexer import tokenize
from jack.symbols import SymbolKind, SymbolTable
from jack.token import Token, TokenKind

logger = logging.getLogger(__name__)

MAX_INTEGER = 32767

_OPERATORS = ("+", "-", "*", "/", "<", ">", "=", "&", "|")


class Parser(BaseModel):
    """Recursive-descent parser for a single Jack class.

    Each ``_parse_*`` routine handles one production of the grammar and
    consumes exactly the tokens of that production. Declarations are entered
    into the symbol table as they are parsed, and variable references are
    resolved against it, so the first duplicate or undefined name aborts the
    parse just like a syntax error does.
    """

    source_name: str = "<input>"
    _tokens: list[Token] = PrivateAttr(default_factory=list)
    _pos = PrivateAttr(0)
    _symbols: SymbolTable = PrivateAttr(default_factory=SymbolTable)
    _scope: SymbolTable = PrivateAttr()

    def __init__(
        self, tokens: Iterable[Token], source_name: Optional[str] = None, **kwargs
    ) -> None:
        tokens = list(tokens)
        if source_name is None:
            source_name = tokens[0].source_name if tokens else "<input>"
        super().__init__(source_name=source_name, **kwargs)
        self._tokens = tokens
        self._scope = self._symbols

    @classmethod
    def from_source(cls, source: str, source_name: str = "<input>") -> "Parser":
        return cls(tokenize(source, source_name), source_name)

    @property
    def symbols(self) -> SymbolTable:
        """The class scope; complete once ``parse`` has returned."""
        return self._symbols

    def _peek(self, distance: int = 0) -> Optional[Token]:
        index = self._pos + distance
        if index >= len(self._tokens):
            return None
        return self._tokens[index]

    def _peek_nonnull(self, distance: int = 0) -> Token:
        token = self._peek(distance)
        if token is None:
            raise UnexpectedEndOfInput(self.source_name)
        return token

    def _advance(self) -> Optional[Token]:
        token = self._peek()
        if token is not None:
            self._pos += 1
        return token

    def _advance_nonnull(self) -> Token:
        token = self._advance()
        if token is None:
            raise UnexpectedEndOfInput(self.source_name)
        return token

    def _assert_token(self, token: Token, kind: TokenKind, *lexemes: str) -> None:
        if token.kind != kind or (lexemes and token.lexeme not in lexemes):
            raise JackSyntaxError(token)

    def _expect(self, kind: TokenKind, *lexemes: str) -> Token:
        token = self._advance_nonnull()
        self._assert_token(token, kind, *lexemes)
        return token

    def _look(self, kind: TokenKind, *lexemes: str, distance: int = 0) -> bool:
        token = self._peek_nonnull(distance)
        return token.kind == kind and (not lexemes or token.lexeme in lexemes)

    def _match(self, kind: TokenKind, *lexemes: str) -> Optional[Token]:
        if self._look(kind, *lexemes):
            return self._advance()
        return None

    def _declare(self, name: Token, kind: SymbolKind, type: str) -> None:
        try:
            self._scope.define(name.lexeme, kind, type)
        except DuplicateDeclarationError as e:
            raise e.locate(name)

    def _resolve(self, name: Token) -> Ident:
        try:
            self._scope.get(name.lexeme)
        except UndefinedReferenceError as e:
            raise e.locate(name)
        return Ident(name=name.lexeme)

    def parse(self) -> Optional[Class]:
        assert self._pos == 0, "a Parser can only be used once"
        if not self._tokens:
            logger.debug("%s: empty unit", self.source_name)
            return None
        try:
            klass = self._parse_class()
        except RecursionError:
            # reported on the last token consumed before the stack ran out
            raise NestingTooDeepError(self._tokens[max(self._pos - 1, 0)]) from None
        trailing = self._advance()
        if trailing is not None:
            raise JackSyntaxError(trailing)
        logger.debug(
            "%s: parsed class %s (%d vars, %d subroutines)",
            self.source_name,
            klass.name,
            len(klass.vars),
            len(klass.subroutines),
        )
        return klass

    def _parse_class(self) -> Class:
        self._expect(TokenKind.KEYWORD, "class")
        name = self._expect(TokenKind.IDENTIFIER)
        self._expect(TokenKind.SYMBOL, "{")
        vars: list[VarDecl] = []
        while self._look(TokenKind.KEYWORD, "static", "field"):
            vars.extend(self._parse_class_var_dec())
        subroutines: list[SubroutineDecl] = []
        while self._look(TokenKind.KEYWORD, "constructor", "function", "method"):
            subroutines.append(self._parse_subroutine_dec())
        self._expect(TokenKind.SYMBOL, "}")
        return Class(name=name.lexeme, vars=vars, subroutines=subroutines)

    def _parse_type(self, allow_void: bool = False) -> str:
        token = self._advance_nonnull()
        match token:
            case Token(kind=TokenKind.IDENTIFIER) | Token(
                kind=TokenKind.KEYWORD, lexeme="int" | "char" | "boolean"
            ):
                return token.lexeme
            case Token(kind=TokenKind.KEYWORD, lexeme="void") if allow_void:
                return token.lexeme
            case _:
                raise JackSyntaxError(token)

    def _parse_var_names(self, kind: VarKind) -> list[VarDecl]:
        # type varName (',' varName)* ';'
        type = self._parse_type()
        decls: list[VarDecl] = []
        while True:
            name = self._expect(TokenKind.IDENTIFIER)
            self._declare(name, SymbolKind.of_var(kind), type)
            decls.append(VarDecl(name=name.lexeme, kind=kind, type=type))
            if not self._match(TokenKind.SYMBOL, ","):
                break
        self._expect(TokenKind.SYMBOL, ";")
        return decls

    def _parse_class_var_dec(self) -> list[VarDecl]:
        kind = VarKind.get(self._expect(TokenKind.KEYWORD, "static", "field"))
        assert kind is not None
        return self._parse_var_names(kind)

    def _parse_var_dec(self) -> list[VarDecl]:
        self._expect(TokenKind.KEYWORD, "var")
        return self._parse_var_names(VarKind.VAR)

    def _parse_subroutine_dec(self) -> SubroutineDecl:
        kind = SubroutineKind.get(
            self._expect(TokenKind.KEYWORD, "constructor", "function", "method")
        )
        assert kind is not None
        return_type = self._parse_type(allow_void=True)
        name = self._expect(TokenKind.IDENTIFIER)
        self._declare(name, SymbolKind.of_subroutine(kind), return_type)

        class_scope = self._scope
        self._scope = class_scope.child()
        try:
            self._expect(TokenKind.SYMBOL, "(")
            params = self._parse_parameter_list()
            self._expect(TokenKind.SYMBOL, ")")
            body = self._parse_subroutine_body()
        finally:
            self._scope = class_scope

        return SubroutineDecl(
            name=name.lexeme,
            kind=kind,
            return_type=return_type,
            params=params,
            body=body,
        )

    def _parse_parameter_list(self) -> list[Parameter]:
        params: list[Parameter] = []
        if self._look(TokenKind.SYMBOL, ")"):
            return params
        while True:
            type = self._parse_type()
            name = self._expect(TokenKind.IDENTIFIER)
            self._declare(name, SymbolKind.ARGUMENT, type)
            params.append(Parameter(name=name.lexeme, type=type))
            if not self._match(TokenKind.SYMBOL, ","):
                return params

    def _parse_subroutine_body(self) -> SubroutineBody:
        self._expect(TokenKind.SYMBOL, "{")
        vars: list[VarDecl] = []
        while self._look(TokenKind.KEYWORD, "var"):
            vars.extend(self._parse_var_dec())
        statements = self._parse_statements()
        self._expect(TokenKind.SYMBOL, "}")
        return SubroutineBody(vars=vars, statements=statements)

    def _parse_statements(self) -> list[Stmt]:
        statements: list[Stmt] = []
        while not self._look(TokenKind.SYMBOL, "}"):
            statements.append(self._parse_statement())
        return statements

    def _parse_statement(self) -> Stmt:
        token = self._peek_nonnull()
        match token:
            case Token(kind=TokenKind.KEYWORD, lexeme="do"):
                return self._parse_do_statement()
            case Token(kind=TokenKind.KEYWORD, lexeme="if"):
                return self._parse_if_statement()
            case Token(kind=TokenKind.KEYWORD, lexeme="let"):
                return self._parse_let_statement()
            case Token(kind=TokenKind.KEYWORD, lexeme="return"):
                return self._parse_return_statement()
            case Token(kind=TokenKind.KEYWORD, lexeme="while"):
                return self._parse_while_statement()
            case _:
                raise JackSyntaxError(token)

    def _parse_block(self) -> BlockStmt:
        self._expect(TokenKind.SYMBOL, "{")
        statements = self._parse_statements()
        self._expect(TokenKind.SYMBOL, "}")
        return BlockStmt(statements=statements)

    def _parse_do_statement(self) -> DoStmt:
        self._expect(TokenKind.KEYWORD, "do")
        call = self._parse_subroutine_call()
        self._expect(TokenKind.SYMBOL, ";")
        return DoStmt(call=call)

    def _parse_if_statement(self) -> IfStmt:
        self._expect(TokenKind.KEYWORD, "if")
        self._expect(TokenKind.SYMBOL, "(")
        condition = self._parse_expression()
        self._expect(TokenKind.SYMBOL, ")")
        then_block = self._parse_block()
        else_block: Optional[BlockStmt] = None
        if self._match(TokenKind.KEYWORD, "else"):
            else_block = self._parse_block()
        return IfStmt(condition=condition, then_block=then_block, else_block=else_block)

    def _parse_let_statement(self) -> LetStmt:
        self._expect(TokenKind.KEYWORD, "let")
        name = self._resolve(self._expect(TokenKind.IDENTIFIER))
        target: Union[Ident, IndexExpr] = name
        if self._match(TokenKind.SYMBOL, "["):
            target = IndexExpr(object=name, indexer=self._parse_expression())
            self._expect(TokenKind.SYMBOL, "]")
        self._expect(TokenKind.SYMBOL, "=")
        value = self._parse_expression()
        self._expect(TokenKind.SYMBOL, ";")
        return LetStmt(target=target, value=value)

    def _parse_return_statement(self) -> ReturnStmt:
        self._expect(TokenKind.KEYWORD, "return")
        value: Optional[Expr] = None
        if not self._look(TokenKind.SYMBOL, ";"):
            value = self._parse_expression()
        self._expect(TokenKind.SYMBOL, ";")
        return ReturnStmt(value=value)

    def _parse_while_statement(self) -> WhileStmt:
        self._expect(TokenKind.KEYWORD, "while")
        self._expect(TokenKind.SYMBOL, "(")
        condition = self._parse_expression()
        self._expect(TokenKind.SYMBOL, ")")
        body = self._parse_block()
        return WhileStmt(condition=condition, body=body)

    def _parse_subroutine_call(self) -> CallExpr:
        # The object of "x.f()" may be a variable or a class name, so neither
        # part of the callee is resolved.
        name = self._expect(TokenKind.IDENTIFIER)
        callee: Union[Ident, MemberExpr] = Ident(name=name.lexeme)
        if self._match(TokenKind.SYMBOL, "."):
            member = self._expect(TokenKind.IDENTIFIER)
            callee = MemberExpr(object=callee, property=Ident(name=member.lexeme))
        self._expect(TokenKind.SYMBOL, "(")
        arguments = self._parse_expression_list()
        self._expect(TokenKind.SYMBOL, ")")
        return CallExpr(callee=callee, arguments=arguments)

    def _parse_expression_list(self) -> list[Expr]:
        expressions: list[Expr] = []
        if self._look(TokenKind.SYMBOL, ")"):
            return expressions
        while True:
            expressions.append(self._parse_expression())
            if not self._match(TokenKind.SYMBOL, ","):
                return expressions

    def _parse_expression(self) -> Expr:
        # term (op term)*, folded left to right; Jack has no precedence
        exp = self._parse_term()
        while tok := self._match(TokenKind.SYMBOL, *_OPERATORS):
            if (logical_op := LogicalOperator.get(tok)) is not None:
                exp = LogicalExpr(op=logical_op, left=exp, right=self._parse_term())
                continue
            op = BinaryOperator.get(tok)
            assert op is not None
            exp = BinaryExpr(op=op, left=exp, right=self._parse_term())
        return exp

    def _parse_term(self) -> Expr:
        token = self._peek_nonnull()
        match token:
            case Token(kind=TokenKind.INTEGER_CONSTANT):
                self._advance()
                if int(token.lexeme) > MAX_INTEGER:
                    raise JackSyntaxError(token)
                return Literal(type=LiteralType.INTEGER, value=token.lexeme)
            case Token(kind=TokenKind.STRING_CONSTANT) | Token(
                kind=TokenKind.KEYWORD, lexeme="true" | "false" | "null" | "this"
            ):
                self._advance()
                literal_type = LiteralType.get(token)
                assert literal_type is not None
                return Literal(type=literal_type, value=token.lexeme)
            case Token(kind=TokenKind.IDENTIFIER):
                return self._parse_identifier_term()
            case Token(kind=TokenKind.SYMBOL, lexeme="("):
                self._advance()
                inner = self._parse_expression()
                self._expect(TokenKind.SYMBOL, ")")
                return ParenExpr(inner=inner)
            case Token(kind=TokenKind.SYMBOL, lexeme="-" | "~"):
                self._advance()
                op = UnaryOperator.get(token)
                assert op is not None
                return UnaryExpr(op=op, operand=self._parse_term())
            case _:
                raise JackSyntaxError(token)

    def _parse_identifier_term(self) -> Expr:
        if self._look(TokenKind.SYMBOL, "(", ".", distance=1):
            return self._parse_subroutine_call()
        ident = self._resolve(self._expect(TokenKind.IDENTIFIER))
        if self._match(TokenKind.SYMBOL, "["):
            indexer = self._parse_expression()
            self._expect(TokenKind.SYMBOL, "]")
            return IndexExpr(object=ident, indexer=indexer)
        return ident


def parse(
    tokens: Iterable[Token], source_name: Optional[str] = None
) -> Optional[Class]:
    return Parser(tokens, source_name).parse()
