"""
Defines the abstract syntax tree (AST) for the evy language.

The tree is a closed set of immutable node variants. Every node resolves its `Type` once,
when it is constructed, so a parsed tree is already fully type annotated.

Classes:
    Type:
        The four evy types: num, string, bool and none (the type of a whole program).

    ASTNode:
        Common base for every variant. Provides `kind`, the resolved `type` and `to_dict()`.

    Program, Declaration, Assignment:
        Program structure. Declarations own their `Variable`; assignments refer to it.

    Variable, NumLiteral, BoolLiteral, StringLiteral, BinaryExpr, UnaryExpr, GroupExpr:
        Expression variants.

    ASTDict:
        TypedDict shape produced by `ASTNode.to_dict()`, suitable for JSON output.

Rendering:
    `str(node)` gives the printable form: an indented block for `Program`, parenthesized
    infix for expressions and quoted text for string literals.

Example:
    >>> x = Variable("x", Type.NUM)
    >>> str(Assignment(x, BinaryExpr(NumLiteral(1.0), "PLUS", NumLiteral(2.0))))
    'ASSIGN x = (1 + 2)'
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, TypedDict, Union, cast

from evy.evy_constants import comparison_ops, operator_repr


class Type(Enum):
    NUM = "num"
    STRING = "string"
    BOOL = "bool"
    NONE = "none"

    def __str__(self) -> str:
        return self.value


class ASTDict(TypedDict, total=False):
    """
    Serialized shape of an ASTNode.

    Fields:
        kind (str): The node variant tag (e.g. "decl", "binary", "num").
        type (str): The resolved type name.
        name (str): Variable name ("var", and nested inside "decl"/"assign").
        value (Any): Literal value for "num", "bool" and "string".
        op (str): Operator spelling for "binary" and "unary".
        var (ASTDict): Declared variable for "decl".
        target (ASTDict): Assigned variable for "assign".
        left, right, operand, expr, value_expr (ASTDict): Child expressions.
        statements (list[ASTDict]): Program body.
    """

    kind: str
    type: str
    name: str
    value: Any
    op: str
    var: "ASTDict"
    target: "ASTDict"
    value_expr: "ASTDict"
    left: "ASTDict"
    right: "ASTDict"
    operand: "ASTDict"
    expr: "ASTDict"
    statements: list["ASTDict"]


@dataclass(frozen=True)
class ASTNode:
    """
    Base class for all evy AST nodes.

    Subclasses set `kind` and implement `resolve_type()`. The result is stored in `type`
    during construction and never recomputed.
    """

    kind: ClassVar[str] = "node"

    type: Type = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", self.resolve_type())

    def resolve_type(self) -> Type:
        raise NotImplementedError

    def to_dict(self) -> ASTDict:
        return {"kind": self.kind, "type": str(self.type)}


@dataclass(frozen=True)
class Variable(ASTNode):
    """A declared name and its type.

    The instance created by a declaration is the one every later read or assignment of the
    name refers to.
    """

    kind: ClassVar[str] = "var"

    name: str
    var_type: Type

    def resolve_type(self) -> Type:
        return self.var_type

    def __str__(self) -> str:
        return self.name

    def to_dict(self) -> ASTDict:
        d = super().to_dict()
        d["name"] = self.name
        return d


@dataclass(frozen=True)
class NumLiteral(ASTNode):
    kind: ClassVar[str] = "num"

    value: float

    def resolve_type(self) -> Type:
        return Type.NUM

    def __str__(self) -> str:
        return format_num(self.value)

    def to_dict(self) -> ASTDict:
        d = super().to_dict()
        d["value"] = self.value
        return d


@dataclass(frozen=True)
class BoolLiteral(ASTNode):
    kind: ClassVar[str] = "bool"

    value: bool

    def resolve_type(self) -> Type:
        return Type.BOOL

    def __str__(self) -> str:
        return "true" if self.value else "false"

    def to_dict(self) -> ASTDict:
        d = super().to_dict()
        d["value"] = self.value
        return d


@dataclass(frozen=True)
class StringLiteral(ASTNode):
    kind: ClassVar[str] = "string"

    value: str

    def resolve_type(self) -> Type:
        return Type.STRING

    def __str__(self) -> str:
        return json.dumps(self.value, ensure_ascii=False)

    def to_dict(self) -> ASTDict:
        d = super().to_dict()
        d["value"] = self.value
        return d


@dataclass(frozen=True)
class BinaryExpr(ASTNode):
    """`left op right`. Comparisons are bool, every other operator keeps the operand type."""

    kind: ClassVar[str] = "binary"

    left: Expression
    op: str
    right: Expression

    def resolve_type(self) -> Type:
        if self.op in comparison_ops:
            return Type.BOOL
        return self.left.type

    def __str__(self) -> str:
        return f"({self.left} {operator_repr[self.op]} {self.right})"

    def to_dict(self) -> ASTDict:
        d = super().to_dict()
        d["op"] = operator_repr[self.op]
        d["left"] = self.left.to_dict()
        d["right"] = self.right.to_dict()
        return d


@dataclass(frozen=True)
class UnaryExpr(ASTNode):
    kind: ClassVar[str] = "unary"

    op: str
    operand: Expression

    def resolve_type(self) -> Type:
        return self.operand.type

    def __str__(self) -> str:
        return f"({operator_repr[self.op]} {self.operand})"

    def to_dict(self) -> ASTDict:
        d = super().to_dict()
        d["op"] = operator_repr[self.op]
        d["operand"] = self.operand.to_dict()
        return d


@dataclass(frozen=True)
class GroupExpr(ASTNode):
    """A parenthesized expression. Same type and printed form as the expression it wraps."""

    kind: ClassVar[str] = "group"

    expr: Expression

    def resolve_type(self) -> Type:
        return self.expr.type

    def __str__(self) -> str:
        return str(self.expr)

    def to_dict(self) -> ASTDict:
        d = super().to_dict()
        d["expr"] = self.expr.to_dict()
        return d


@dataclass(frozen=True)
class Declaration(ASTNode):
    kind: ClassVar[str] = "decl"

    var: Variable

    def resolve_type(self) -> Type:
        return self.var.type

    def __str__(self) -> str:
        return f"DECL   {self.var.name}:{self.var.type}"

    def to_dict(self) -> ASTDict:
        d = super().to_dict()
        d["var"] = self.var.to_dict()
        return d


@dataclass(frozen=True)
class Assignment(ASTNode):
    kind: ClassVar[str] = "assign"

    target: Variable
    value: Expression

    def resolve_type(self) -> Type:
        return self.target.type

    def __str__(self) -> str:
        return f"ASSIGN {self.target} = {self.value}"

    def to_dict(self) -> ASTDict:
        d = super().to_dict()
        d["target"] = self.target.to_dict()
        d["value_expr"] = self.value.to_dict()
        return d


@dataclass(frozen=True)
class Program(ASTNode):
    kind: ClassVar[str] = "program"

    statements: tuple[Statement, ...] = ()

    def resolve_type(self) -> Type:
        return Type.NONE

    def __str__(self) -> str:
        body = "".join(f"\t{stmt}\n" for stmt in self.statements)
        return "PROG {\n" + body + "}"

    def to_dict(self) -> ASTDict:
        d = super().to_dict()
        d["statements"] = [stmt.to_dict() for stmt in self.statements]
        return d


Expression = Union[
    Variable, NumLiteral, BoolLiteral, StringLiteral, BinaryExpr, UnaryExpr, GroupExpr
]
Statement = Union[Declaration, Assignment]
Node = Union[Program, Statement, Expression]


def format_num(value: float) -> str:
    """Formats a number in its shortest form, switching to exponent notation for
    exponents below -4 or from 6 upwards (`1`, `2.5`, `123456`, `1e+06`, `1.5e-05`).
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    sign, digit_tuple, exp = Decimal(repr(value)).normalize().as_tuple()
    # finite values always carry an int exponent
    exponent = cast(int, exp)
    digits = "".join(str(d) for d in digit_tuple)
    exp10 = len(digits) + exponent - 1
    prefix = "-" if sign else ""
    if -4 <= exp10 < 6:
        return prefix + format(abs(Decimal(repr(value)).normalize()), "f")
    mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
    return f"{prefix}{mantissa}e{'-' if exp10 < 0 else '+'}{abs(exp10):02d}"


__all__ = [
    "ASTDict",
    "ASTNode",
    "Assignment",
    "BinaryExpr",
    "BoolLiteral",
    "Declaration",
    "Expression",
    "GroupExpr",
    "Node",
    "NumLiteral",
    "Program",
    "Statement",
    "StringLiteral",
    "Type",
    "UnaryExpr",
    "Variable",
    "format_num",
]
