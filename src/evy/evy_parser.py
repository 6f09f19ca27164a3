"""
evy Language Parser

Parses evy tokens into a type-checked abstract syntax tree.

This module turns the flat list of `Token` objects produced by the lexer into a `Program`
node. Type checking and name resolution happen while the tree is built: every node is
constructed with its final type, and every variable reference resolves to the `Variable`
created by its declaration.

Supported Constructs
--------------------
- Statements (one per line, comments end a line):
    * Declarations: `x:num`, `s:string`, `b:bool`
    * Assignments: `x = 1 + 2 * 3`
- Expressions:
    * Infix operators with precedence climbing:
      `or` < `and` < `==` `!=` < `<` `>` `<=` `>=` < `+` `-` < `*` `/` < unary `!` `-`
    * Left associative binary operators: `1 - 2 - 3` is `((1 - 2) - 3)`
    * Parenthesized groups
    * Literals: numbers, strings, `true`, `false`; identifiers

Parser Behavior
---------------
- The first error aborts the parse; there is no recovery.
- Errors carry the token at which parsing failed.
- A `Scope` holds the declared variables. Each parse owns its scope.

Entry Points
------------
- `parse_program()`: Parse a full token list into a `Program`.
- `Parser.parse_expression()`: Parse a single expression at a given precedence.

Raises
------
ParseError
    Structural errors: unexpected token, unparsable operand, unknown type name.
ScopeError
    Redeclaration of a name, or use of an undeclared name.
TypeCheckError
    Operand types that do not match each other or the operator.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator

from evy.evy_ast import (
    Assignment,
    BinaryExpr,
    BoolLiteral,
    Declaration,
    Expression,
    GroupExpr,
    NumLiteral,
    Program,
    Statement,
    StringLiteral,
    Type,
    UnaryExpr,
    Variable,
)
from evy.evy_constants import (
    AND,
    ASSIGN,
    COLON,
    COMMENT,
    EOF,
    FALSE,
    GT,
    GTE,
    IDENT,
    LPAREN,
    LT,
    LTE,
    MINUS,
    NL,
    NUM_LIT,
    OR,
    PLUS,
    RPAREN,
    SLASH,
    STAR,
    STRING_LIT,
    TRUE,
    Precedence,
    binary_ops,
    binding_power,
    statement_end,
    unary_ops,
)
from evy.evy_lexer import Token

logger = logging.getLogger(__name__)

type_names: dict[str, Type] = {
    "num": Type.NUM,
    "string": Type.STRING,
    "bool": Type.BOOL,
}


class ParseError(SyntaxError):
    """Raised when the token stream does not form a valid program.

    Attributes:
        message (str): What went wrong.
        token (Token): The token at which parsing failed.
    """

    def __init__(self, message: str, token: Token) -> None:
        super().__init__(message)
        self.message = message
        self.token = token

    def __str__(self) -> str:
        return f"{self.message}: token: {self.token}"


class ScopeError(ParseError):
    """A name was declared twice, or used before being declared."""


class TypeCheckError(ParseError):
    """Operand types do not match each other or the operator."""


class Scope:
    """Maps variable names to the `Variable` that declared them.

    Names are unique, and iteration yields them in declaration order.
    """

    def __init__(self) -> None:
        self._vars: dict[str, Variable] = {}

    def add(self, var: Variable, token: Token) -> None:
        """Declares `var`.

        Raises:
            ScopeError: If the name is already declared.
        """
        if var.name in self._vars:
            raise ScopeError(f"redeclaration {var.name}", token)
        self._vars[var.name] = var

    def get(self, name: str, token: Token) -> Variable:
        """Returns the declared variable for `name`.

        Raises:
            ScopeError: If the name has not been declared.
        """
        var = self._vars.get(name)
        if var is None:
            raise ScopeError(f"undeclared {name}", token)
        return var

    def __contains__(self, name: object) -> bool:
        return name in self._vars

    def __len__(self) -> int:
        return len(self._vars)

    def __iter__(self) -> Iterator[str]:
        return iter(self._vars)


class Parser:
    """
    evy Parser Class

    Walks the token list with a single cursor and one token of lookahead, building a
    type-annotated AST.

    Attributes
    ----------
    tokens : list[Token]
        The input token stream. A trailing EOF token is optional.
    position : int
        Current index into the token stream.
    scope : Scope
        Variables declared so far.

    Methods
    -------
    parse() -> Program
        Parse the whole token list.
    parse_statement() -> Statement
        Parse one declaration or assignment.
    parse_expression(precedence) -> Expression
        Parse an expression whose operators bind tighter than `precedence`.
    """

    def __init__(self, tokens: list[Token], scope: Scope | None = None) -> None:
        self.tokens: list[Token] = tokens
        self.position: int = 0
        self.scope: Scope = scope if scope is not None else Scope()

    def current(self) -> Token:
        return (
            self.tokens[self.position]
            if self.position < len(self.tokens)
            else Token(EOF)
        )

    def peek(self, offset: int = 1) -> Token:
        index = self.position + offset
        return self.tokens[index] if index < len(self.tokens) else Token(EOF)

    def advance(self) -> Token:
        tok = self.current()
        self.position += 1
        return tok

    def expect(self, kind: str) -> Token:
        tok = self.current()
        if tok.type != kind:
            raise ParseError(f"token: want: {kind}, got: {tok.type}", tok)
        return self.advance()

    def at_statement_end(self) -> bool:
        return self.current().type in statement_end

    def expect_statement_end(self) -> None:
        if not self.at_statement_end():
            raise ParseError("expected end of statement", self.current())

    def skip_separators(self) -> None:
        """Skips newlines and comments between statements."""
        while self.current().type in (NL, COMMENT):
            self.advance()

    def parse(self) -> Program:
        """Parse a full evy program.

        Returns:
            Program: The statements, in source order.
        """
        statements: list[Statement] = []
        self.skip_separators()
        while self.current().type != EOF:
            statements.append(self.parse_statement())
            self.skip_separators()
        logger.debug("Parsed %d statements", len(statements))
        return Program(tuple(statements))

    def parse_statement(self) -> Statement:
        """Parse a single statement.

        An identifier followed by `:` starts a declaration, an identifier followed by `=`
        starts an assignment. Nothing else can start a statement.
        """
        tok = self.current()
        if tok.type == IDENT:
            follow = self.peek().type
            if follow == COLON:
                return self.parse_declaration()
            if follow == ASSIGN:
                return self.parse_assignment()
        raise ParseError("bad statement", tok)

    def parse_declaration(self) -> Declaration:
        # ident ":" type
        ident = self.expect(IDENT)
        self.expect(COLON)
        var_type = self.parse_type()
        var = Variable(ident.value, var_type)
        self.scope.add(var, ident)
        logger.debug("Declared %s:%s", var.name, var.type)
        return Declaration(var)

    def parse_type(self) -> Type:
        tok = self.current()
        if tok.type != IDENT:
            raise ParseError("cannot parse type name", tok)
        self.advance()
        self.expect_statement_end()
        if tok.value not in type_names:
            raise ParseError(f"unknown type {tok.value}", tok)
        return type_names[tok.value]

    def parse_assignment(self) -> Assignment:
        # ident "=" expr
        ident = self.expect(IDENT)
        target = self.scope.get(ident.value, ident)
        self.expect(ASSIGN)
        value = self.parse_expression()
        self.expect_statement_end()
        if target.type != value.type:
            raise TypeCheckError(
                f"op: {ASSIGN}. types not equal: {target.type} != {value.type}", ident
            )
        return Assignment(target, value)

    def parse_expression(self, precedence: Precedence = Precedence.LOWEST) -> Expression:
        """Parse an expression by precedence climbing.

        Binary operators are folded into the running left operand for as long as they bind
        tighter than `precedence`; each right-hand side is parsed at the operator's own
        precedence, which makes operators of equal precedence left associative.

        Args:
            precedence (Precedence): Binding power of the operator to the left of this
                expression. Defaults to `Precedence.LOWEST`.

        Returns:
            Expression: The type-checked expression tree.
        """
        left = self.parse_left()
        while self.current().type in binary_ops:
            op_tok = self.current()
            op_precedence = binding_power[op_tok.type]
            if op_precedence <= precedence:
                break
            op = self.parse_binary_op()
            right = self.parse_expression(op_precedence)
            check_binary_types(left, op, right, op_tok)
            left = BinaryExpr(left, op, right)
        return left

    def parse_left(self) -> Expression:
        kind = self.current().type
        if kind in unary_ops:
            return self.parse_unary_expr()
        if kind == LPAREN:
            return self.parse_group_expr()
        return self.parse_operand()

    def parse_group_expr(self) -> GroupExpr:
        self.expect(LPAREN)
        expr = self.parse_expression(Precedence.LOWEST)
        self.expect(RPAREN)
        return GroupExpr(expr)

    def parse_unary_expr(self) -> UnaryExpr:
        op_tok = self.current()
        op = self.parse_unary_op()
        operand = self.parse_expression(Precedence.UNARY)
        check_unary_type(op, operand, op_tok)
        return UnaryExpr(op, operand)

    def parse_binary_op(self) -> str:
        tok = self.current()
        if tok.type not in binary_ops:
            raise ParseError(f"invalid binary operator {tok}", tok)
        self.advance()
        return tok.type

    def parse_unary_op(self) -> str:
        tok = self.current()
        if tok.type not in unary_ops:
            raise ParseError(f"invalid unary operator {tok}", tok)
        self.advance()
        return tok.type

    def parse_operand(self) -> Expression:
        tok = self.current()
        if tok.type == STRING_LIT:
            self.advance()
            return StringLiteral(tok.value)
        if tok.type == NUM_LIT:
            self.advance()
            return NumLiteral(parse_num(tok))
        if tok.type == IDENT:
            var = self.scope.get(tok.value, tok)
            self.advance()
            return var
        if tok.type == TRUE:
            self.advance()
            return BoolLiteral(True)
        if tok.type == FALSE:
            self.advance()
            return BoolLiteral(False)
        raise ParseError("cannot parse operand", tok)


def parse_num(tok: Token) -> float:
    """Converts NUM_LIT text to a float.

    Raises:
        ParseError: If the text is not a number or does not fit in a float.
    """
    try:
        value = float(tok.value)
    except ValueError:
        raise ParseError(f"invalid num: {tok.value}", tok) from None
    if math.isinf(value):
        raise ParseError(f"invalid num: {tok.value}", tok)
    return value


def check_binary_types(left: Expression, op: str, right: Expression, tok: Token) -> None:
    """Checks that `left op right` is well typed.

    Both sides must have the same type. On top of that:
        - `-` `*` `/` need num
        - `and` `or` need bool
        - `+` `<` `>` `<=` `>=` need num or string
        - `==` `!=` accept any type

    Raises:
        TypeCheckError: If a rule is violated.
    """
    left_t, right_t = left.type, right.type
    if left_t != right_t:
        raise TypeCheckError(f"op: {op}. types not equal: {left_t} != {right_t}", tok)
    if op in (MINUS, STAR, SLASH) and left_t != Type.NUM:
        raise TypeCheckError(f"want: num, got: {left_t} for {op} operator", tok)
    if op in (AND, OR) and left_t != Type.BOOL:
        raise TypeCheckError(f"want: bool, got: {left_t} for {op} operator", tok)
    if op in (PLUS, LT, GT, LTE, GTE) and left_t not in (Type.NUM, Type.STRING):
        raise TypeCheckError(
            f"want: num or string, got: {left_t} for {op} operator", tok
        )


def check_unary_type(op: str, operand: Expression, tok: Token) -> None:
    want = Type.NUM if op == MINUS else Type.BOOL
    if operand.type != want:
        raise TypeCheckError(f"want: {want}, got: {operand.type} for {op} operator", tok)


def parse_program(tokens: list[Token], scope: Scope | None = None) -> Program:
    """Parse a token list into a type-checked program.

    Args:
        tokens (list[Token]): Tokens from `evy_lexer.tokenize()`.
        scope (Scope | None): Variables to treat as already declared. A fresh scope is
            used when omitted.

    Returns:
        Program: The program AST.

    Raises:
        ParseError: On the first structural, scope or type error, or when groups and
            unary operators nest deeper than the interpreter stack allows.
    """
    logger.debug("Parsing %d tokens", len(tokens))
    parser = Parser(tokens, scope)
    try:
        return parser.parse()
    except RecursionError:
        raise ParseError("expression nested too deeply", parser.current()) from None


__all__ = [
    "ParseError",
    "Parser",
    "Scope",
    "ScopeError",
    "TypeCheckError",
    "parse_program",
]
