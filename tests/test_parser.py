import pytest
from hypothesis import given
from hypothesis import strategies as st

from evy.evy_ast import (
    Assignment,
    BinaryExpr,
    Declaration,
    Expression,
    GroupExpr,
    NumLiteral,
    Program,
    StringLiteral,
    Type,
    UnaryExpr,
    Variable,
)
from evy.evy_constants import EOF, IDENT, NL, NUM_LIT, PLUS, STAR
from evy.evy_lexer import Token, tokenize
from evy.evy_parser import (
    ParseError,
    Parser,
    Scope,
    ScopeError,
    TypeCheckError,
    parse_program,
)


def parse(source: str) -> Program:
    return parse_program(tokenize(source))


def parse_expr(source: str) -> Expression:
    return Parser(tokenize(source)).parse_expression()


END_TO_END = "x:num\nx=1+2*3\ny:bool\ny=x>5\n"


def test_end_to_end_program() -> None:
    prog = parse(END_TO_END)
    decl_x, assign_x, decl_y, assign_y = prog.statements

    assert isinstance(decl_x, Declaration)
    assert decl_x.var == Variable("x", Type.NUM)
    assert isinstance(assign_x, Assignment)
    assert str(assign_x.value) == "(1 + (2 * 3))"
    assert assign_x.type is Type.NUM
    assert isinstance(decl_y, Declaration)
    assert decl_y.var == Variable("y", Type.BOOL)
    assert isinstance(assign_y, Assignment)
    assert str(assign_y.value) == "(x > 5)"
    assert assign_y.type is Type.BOOL

    assert str(prog) == (
        "PROG {\n"
        "\tDECL   x:num\n"
        "\tASSIGN x = (1 + (2 * 3))\n"
        "\tDECL   y:bool\n"
        "\tASSIGN y = (x > 5)\n"
        "}"
    )


def test_references_share_the_declared_variable() -> None:
    prog = parse(END_TO_END)
    decl_x, assign_x, _, assign_y = prog.statements
    assert isinstance(decl_x, Declaration)
    assert isinstance(assign_x, Assignment)
    assert isinstance(assign_y, Assignment)
    assert assign_x.target is decl_x.var
    assert isinstance(assign_y.value, BinaryExpr)
    assert assign_y.value.left is decl_x.var


@pytest.mark.parametrize(
    "source,expected",
    [
        ("1+2*3", "(1 + (2 * 3))"),
        ("1*2+3", "((1 * 2) + 3)"),
        ("1-2-3", "((1 - 2) - 3)"),
        ("1/2/3", "((1 / 2) / 3)"),
        ("1-2+3", "((1 - 2) + 3)"),
        ("(1+2)*3", "((1 + 2) * 3)"),
        ("1*(2+3)", "(1 * (2 + 3))"),
        ("-1+2", "((- 1) + 2)"),
        ("- -1", "(- (- 1))"),
        ("-(1+2)*3", "((- (1 + 2)) * 3)"),
        ("1 + 2 < 3 * 4", "((1 + 2) < (3 * 4))"),
        ("1 < 2 == true", "((1 < 2) == true)"),
        ("true or false and true", "(true or (false and true))"),
        ("true and false or true", "((true and false) or true)"),
        ("!true and false", "((! true) and false)"),
        ("1 == 1 and 2 != 3", "((1 == 1) and (2 != 3))"),
        ('"a" + "b" + "c"', '(("a" + "b") + "c")'),
        ("((1))", "1"),
    ],
)
def test_precedence_and_associativity(source: str, expected: str) -> None:
    assert str(parse_expr(source)) == expected


def test_precedence_tree_shape() -> None:
    expr = parse_expr("1+2*3")
    assert isinstance(expr, BinaryExpr)
    assert expr.op == PLUS
    assert expr.left == NumLiteral(1.0)
    assert isinstance(expr.right, BinaryExpr)
    assert expr.right.op == STAR


def test_group_is_kept_in_tree() -> None:
    expr = parse_expr("(1+2)*3")
    assert isinstance(expr, BinaryExpr)
    assert isinstance(expr.left, GroupExpr)
    assert expr.left.type is Type.NUM


def test_unary_binds_tighter_than_binary() -> None:
    expr = parse_expr("-2*3")
    assert isinstance(expr, BinaryExpr)
    assert isinstance(expr.left, UnaryExpr)


@pytest.mark.parametrize(
    "source,type_",
    [
        ("1 + 2", Type.NUM),
        ('"a" + "b"', Type.STRING),
        ('"a" < "b"', Type.BOOL),
        ("1 >= 2", Type.BOOL),
        ("1 == 1", Type.BOOL),
        ('"a" != "b"', Type.BOOL),
        ("true == false", Type.BOOL),
        ("true and false", Type.BOOL),
        ("-3", Type.NUM),
        ("!false", Type.BOOL),
        ('("s")', Type.STRING),
    ],
)
def test_expression_types(source: str, type_: Type) -> None:
    assert parse_expr(source).type is type_


@pytest.mark.parametrize(
    "source,message",
    [
        ("1 + true", "types not equal: num != bool"),
        ('"a" == 1', "types not equal: string != num"),
        ("true + true", "want: num or string, got: bool"),
        ("true < false", "want: num or string, got: bool"),
        ('"a" - "b"', "want: num, got: string"),
        ('"a" * "b"', "want: num, got: string"),
        ("1 and 2", "want: bool, got: num"),
        ('"a" or "b"', "want: bool, got: string"),
        ("-true", "want: num, got: bool"),
        ("!1", "want: bool, got: num"),
    ],
)
def test_expression_type_errors(source: str, message: str) -> None:
    with pytest.raises(TypeCheckError, match=message):
        parse_expr(source)


def test_type_error_names_operator() -> None:
    with pytest.raises(TypeCheckError) as exc:
        parse_expr("1 + true")
    assert exc.value.message == "op: PLUS. types not equal: num != bool"
    assert exc.value.token == Token(PLUS)


def test_assignment_type_mismatch() -> None:
    with pytest.raises(TypeCheckError, match="types not equal: bool != num"):
        parse("x:bool\nx=1")


def test_assignment_bool_expression() -> None:
    prog = parse("x:bool\nx=true and false")
    assign = prog.statements[1]
    assert isinstance(assign, Assignment)
    assert assign.type is Type.BOOL
    assert str(assign) == "ASSIGN x = (true and false)"


def test_string_assignment() -> None:
    prog = parse('s:string\ns = "hello" + " world"')
    assert str(prog.statements[1]) == 'ASSIGN s = ("hello" + " world")'


def test_redeclaration() -> None:
    with pytest.raises(ScopeError, match="redeclaration x") as exc:
        parse("x:num\nx:num")
    assert exc.value.token == Token(IDENT, "x")


def test_redeclaration_with_other_type() -> None:
    with pytest.raises(ScopeError, match="redeclaration x"):
        parse("x:num\nx:bool")


def test_undeclared_assignment_target() -> None:
    with pytest.raises(ScopeError, match="undeclared y") as exc:
        parse("y = 1")
    assert exc.value.token == Token(IDENT, "y")


def test_undeclared_operand() -> None:
    with pytest.raises(ScopeError, match="undeclared y"):
        parse("x:num\nx = y")


def test_use_before_declaration() -> None:
    with pytest.raises(ScopeError, match="undeclared y"):
        parse("x:num\nx = y\ny:num")


def test_unknown_type() -> None:
    with pytest.raises(ParseError, match="unknown type foo"):
        parse("x:foo")


@pytest.mark.parametrize(
    "source,message",
    [
        ("x: 1", "cannot parse type name"),
        ("x:num y", "expected end of statement"),
        ("x:num\nx = 1 2", "expected end of statement"),
        ("x:num\nx = 1)", "expected end of statement"),
        ("x:num\nx = (1 + 2", "want: RPAREN, got: EOF"),
        ("x:num\nx = (1 + 2\n", "want: RPAREN, got: NL"),
        ("x:num\nx =", "cannot parse operand"),
        ("x:num\nx = 1 +", "cannot parse operand"),
        ("x:num\nx = )", "cannot parse operand"),
        ("x:num\nx = :", "cannot parse operand"),
        ("if true", "bad statement"),
        ("while true", "bad statement"),
        ("end", "bad statement"),
        ("x", "bad statement"),
        ("x 1", "bad statement"),
        ("1 = 2", "bad statement"),
        ("= 2", "bad statement"),
    ],
)
def test_structural_errors(source: str, message: str) -> None:
    with pytest.raises(ParseError, match=message):
        parse(source)


def test_error_carries_eof_token() -> None:
    with pytest.raises(ParseError) as exc:
        parse("x:num\nx = (1")
    assert exc.value.token == Token(EOF)
    assert str(exc.value) == "token: want: RPAREN, got: EOF: token: EOF"


def test_error_str_includes_token() -> None:
    with pytest.raises(ScopeError) as exc:
        parse("y = 1")
    assert str(exc.value) == "undeclared y: token: IDENT y"


def test_error_hierarchy() -> None:
    assert issubclass(ScopeError, ParseError)
    assert issubclass(TypeCheckError, ParseError)
    assert issubclass(ParseError, SyntaxError)


def test_number_too_large_for_float() -> None:
    with pytest.raises(ParseError, match="invalid num"):
        parse_expr("1" * 400)


@pytest.mark.parametrize(
    "expr",
    ["(" * 5000 + "1" + ")" * 5000, "- " * 5000 + "1", "! " * 5000 + "true"],
    ids=["group", "minus", "bang"],
)
def test_deep_nesting_is_parse_error(expr: str) -> None:
    with pytest.raises(ParseError, match="expression nested too deeply"):
        parse(f"x:num\nx = {expr}")


def test_invalid_operator_position() -> None:
    parser = Parser([Token(NUM_LIT, "1")])
    with pytest.raises(ParseError, match="invalid binary operator"):
        parser.parse_binary_op()
    with pytest.raises(ParseError, match="invalid unary operator"):
        parser.parse_unary_op()


def test_empty_program() -> None:
    assert parse("") == Program()
    assert parse("\n// only a comment\n\n") == Program()


def test_separators_absorbed() -> None:
    source = "// header\n\nx:num // trailing\n\n\nx = 1 // set\n// end"
    prog = parse(source)
    assert [s.kind for s in prog.statements] == ["decl", "assign"]


def test_blank_lines_do_not_change_program() -> None:
    assert parse("a:num\n\n\na=1") == parse("a:num\na=1")


def test_explicit_eof_token_accepted() -> None:
    tokens = tokenize("x:num") + [Token(EOF)]
    assert len(parse_program(tokens).statements) == 1


def test_parse_from_hand_built_tokens() -> None:
    tokens = [Token(IDENT, "n"), Token("COLON"), Token(IDENT, "num"), Token(NL)]
    prog = parse_program(tokens)
    assert prog.statements == (Declaration(Variable("n", Type.NUM)),)


def test_seeded_scope() -> None:
    scope = Scope()
    z = Variable("z", Type.NUM)
    scope.add(z, Token(IDENT, "z"))
    prog = parse_program(tokenize("z = 3\nw:bool"), scope)
    assign = prog.statements[0]
    assert isinstance(assign, Assignment)
    assert assign.target is z
    assert "w" in scope
    assert len(scope) == 2
    assert list(scope) == ["z", "w"]


def test_each_parse_gets_fresh_scope() -> None:
    parse("x:num")
    assert len(parse("x:num").statements) == 1


def test_scope_lookup() -> None:
    scope = Scope()
    v = Variable("a", Type.STRING)
    scope.add(v, Token(IDENT, "a"))
    assert scope.get("a", Token(IDENT, "a")) is v
    assert "b" not in scope
    with pytest.raises(ScopeError, match="undeclared b"):
        scope.get("b", Token(IDENT, "b"))
    with pytest.raises(ScopeError, match="redeclaration a"):
        scope.add(Variable("a", Type.NUM), Token(IDENT, "a"))


def test_literal_values() -> None:
    expr = parse_expr('"text"')
    assert expr == StringLiteral("text")
    assert parse_expr("42") == NumLiteral(42.0)


ops = st.sampled_from(["+", "-", "*", "/"])
nums = st.integers(min_value=0, max_value=99999)


@given(nums, st.lists(st.tuples(ops, nums), min_size=1, max_size=8))  # type: ignore[misc]
def test_printed_form_reparses_to_same_tree(first: int, rest: list[tuple[str, int]]) -> None:
    source = str(first) + "".join(f" {op} {n}" for op, n in rest)
    expr = parse_expr(source)
    assert expr.type is Type.NUM
    printed = str(expr)
    assert str(parse_expr(printed)) == printed


@given(st.lists(nums, min_size=2, max_size=8))  # type: ignore[misc]
def test_subtraction_is_left_associative(values: list[int]) -> None:
    expr = parse_expr(" - ".join(str(v) for v in values))
    expected = str(values[0])
    for v in values[1:]:
        expected = f"({expected} - {v})"
    assert str(expr) == expected


@given(st.sampled_from(["==", "!=", "<", ">", "<=", ">="]), nums, nums)  # type: ignore[misc]
def test_comparisons_are_bool(op: str, a: int, b: int) -> None:
    assert parse_expr(f"{a} {op} {b}").type is Type.BOOL
