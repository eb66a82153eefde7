from enum import Enum
from io import StringIO
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

from jack.token import Token, TokenKind


def _indent(text: str) -> str:
    return "\n".join(f"  {line}" if line else line for line in text.splitlines())


class Node(BaseModel):
    # union members are told apart by their field names when loaded from JSON
    model_config = ConfigDict(extra="forbid")


class VarKind(Enum):
    FIELD = "field"
    STATIC = "static"
    VAR = "var"

    @staticmethod
    def get(tok: Token) -> Optional["VarKind"]:
        if tok.kind != TokenKind.KEYWORD:
            return None
        match tok.lexeme:
            case "field":
                return VarKind.FIELD
            case "static":
                return VarKind.STATIC
            case "var":
                return VarKind.VAR
            case _:
                return None


class SubroutineKind(Enum):
    CONSTRUCTOR = "constructor"
    FUNCTION = "function"
    METHOD = "method"

    @staticmethod
    def get(tok: Token) -> Optional["SubroutineKind"]:
        if tok.kind != TokenKind.KEYWORD:
            return None
        match tok.lexeme:
            case "constructor":
                return SubroutineKind.CONSTRUCTOR
            case "function":
                return SubroutineKind.FUNCTION
            case "method":
                return SubroutineKind.METHOD
            case _:
                return None


class BinaryOperator(Enum):
    ADDITION = "+"
    SUBTRACTION = "-"
    MULTIPLICATION = "*"
    DIVISION = "/"
    LESS_THAN = "<"
    GREATER_THAN = ">"
    EQUALS = "="

    @staticmethod
    def get(tok: Token) -> Optional["BinaryOperator"]:
        if tok.kind != TokenKind.SYMBOL:
            return None
        match tok.lexeme:
            case "+":
                return BinaryOperator.ADDITION
            case "-":
                return BinaryOperator.SUBTRACTION
            case "*":
                return BinaryOperator.MULTIPLICATION
            case "/":
                return BinaryOperator.DIVISION
            case "<":
                return BinaryOperator.LESS_THAN
            case ">":
                return BinaryOperator.GREATER_THAN
            case "=":
                return BinaryOperator.EQUALS
            case _:
                return None


class LogicalOperator(Enum):
    AND = "&"
    OR = "|"

    @staticmethod
    def get(tok: Token) -> Optional["LogicalOperator"]:
        if tok.kind != TokenKind.SYMBOL:
            return None
        match tok.lexeme:
            case "&":
                return LogicalOperator.AND
            case "|":
                return LogicalOperator.OR
            case _:
                return None


class UnaryOperator(Enum):
    NEGATE = "-"
    NOT = "~"

    @staticmethod
    def get(tok: Token) -> Optional["UnaryOperator"]:
        if tok.kind != TokenKind.SYMBOL:
            return None
        match tok.lexeme:
            case "-":
                return UnaryOperator.NEGATE
            case "~":
                return UnaryOperator.NOT
            case _:
                return None


class LiteralType(Enum):
    BOOLEAN = "boolean"
    INTEGER = "integer"
    NULL = "null"
    STRING = "string"
    THIS = "this"

    @staticmethod
    def get(tok: Token) -> Optional["LiteralType"]:
        match tok.kind:
            case TokenKind.INTEGER_CONSTANT:
                return LiteralType.INTEGER
            case TokenKind.STRING_CONSTANT:
                return LiteralType.STRING
            case TokenKind.KEYWORD:
                match tok.lexeme:
                    case "true" | "false":
                        return LiteralType.BOOLEAN
                    case "null":
                        return LiteralType.NULL
                    case "this":
                        return LiteralType.THIS
        return None


class Ident(Node):
    name: str

    def __str__(self) -> str:
        return self.name


class Literal(Node):
    type: LiteralType
    value: str

    def __str__(self) -> str:
        if self.type == LiteralType.STRING:
            return f'"{self.value}"'
        return self.value


class BinaryExpr(Node):
    op: BinaryOperator
    left: "Expr"
    right: "Expr"

    def __str__(self) -> str:
        return f"({self.left} {self.op.value} {self.right})"


class LogicalExpr(Node):
    op: LogicalOperator
    left: "Expr"
    right: "Expr"

    def __str__(self) -> str:
        return f"({self.left} {self.op.value} {self.right})"


class UnaryExpr(Node):
    op: UnaryOperator
    operand: "Expr"

    def __str__(self) -> str:
        return f"{self.op.value}{self.operand}"


class ParenExpr(Node):
    inner: "Expr"

    def __str__(self) -> str:
        return f"({self.inner})"


class IndexExpr(Node):
    object: Ident
    indexer: "Expr"

    def __str__(self) -> str:
        return f"{self.object}[{self.indexer}]"


class MemberExpr(Node):
    object: Ident
    property: Ident

    def __str__(self) -> str:
        return f"{self.object}.{self.property}"


class CallExpr(Node):
    callee: Union[Ident, MemberExpr]
    arguments: list["Expr"] = []

    def __str__(self) -> str:
        args = ", ".join(str(arg) for arg in self.arguments)
        return f"{self.callee}({args})"


Expr = Union[
    Ident,
    Literal,
    BinaryExpr,
    LogicalExpr,
    UnaryExpr,
    ParenExpr,
    IndexExpr,
    MemberExpr,
    CallExpr,
]


class BlockStmt(Node):
    statements: list["Stmt"] = []

    def __str__(self) -> str:
        out = StringIO()
        print("{", file=out)
        for stmt in self.statements:
            print(_indent(str(stmt)), file=out)
        out.write("}")
        out.seek(0)
        return out.read()


class DoStmt(Node):
    call: CallExpr

    def __str__(self) -> str:
        return f"do {self.call};"


class IfStmt(Node):
    condition: Expr
    then_block: BlockStmt
    else_block: Optional[BlockStmt] = None

    def __str__(self) -> str:
        text = f"if ({self.condition}) {self.then_block}"
        if self.else_block is not None:
            text += f" else {self.else_block}"
        return text


class LetStmt(Node):
    target: Union[Ident, IndexExpr]
    value: Expr

    def __str__(self) -> str:
        return f"let {self.target} = {self.value};"


class ReturnStmt(Node):
    value: Optional[Expr] = None

    def __str__(self) -> str:
        if self.value is None:
            return "return;"
        return f"return {self.value};"


class WhileStmt(Node):
    condition: Expr
    body: BlockStmt

    def __str__(self) -> str:
        return f"while ({self.condition}) {self.body}"


Stmt = Union[BlockStmt, DoStmt, IfStmt, LetStmt, ReturnStmt, WhileStmt]


for _model in (
    BinaryExpr,
    LogicalExpr,
    UnaryExpr,
    ParenExpr,
    IndexExpr,
    CallExpr,
    BlockStmt,
    DoStmt,
    IfStmt,
    LetStmt,
    ReturnStmt,
    WhileStmt,
):
    _model.model_rebuild()


class VarDecl(Node):
    name: str
    kind: VarKind
    type: str

    def __str__(self) -> str:
        return f"{self.kind.value} {self.type} {self.name};"


class Parameter(Node):
    name: str
    type: str

    def __str__(self) -> str:
        return f"{self.type} {self.name}"


class SubroutineBody(Node):
    vars: list[VarDecl] = []
    statements: list[Stmt] = []

    def __str__(self) -> str:
        out = StringIO()
        print("{", file=out)
        for var in self.vars:
            print(_indent(str(var)), file=out)
        for stmt in self.statements:
            print(_indent(str(stmt)), file=out)
        out.write("}")
        out.seek(0)
        return out.read()


class SubroutineDecl(Node):
    name: str
    kind: SubroutineKind
    return_type: str
    params: list[Parameter] = []
    body: SubroutineBody

    def __str__(self) -> str:
        params = ", ".join(str(param) for param in self.params)
        return f"{self.kind.value} {self.return_type} {self.name}({params}) {self.body}"


class Class(Node):
    name: str
    vars: list[VarDecl] = []
    subroutines: list[SubroutineDecl] = []

    def __str__(self) -> str:
        out = StringIO()
        print(f"class {self.name} {{", file=out)
        for var in self.vars:
            print(_indent(str(var)), file=out)
        for subroutine in self.subroutines:
            print(_indent(str(subroutine)), file=out)
        out.write("}")
        out.seek(0)
        return out.read()
