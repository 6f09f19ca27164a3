"""
Token tables for the evy language.

This module is the single source of truth for the closed set of token kinds the
lexer can produce and the parser can consume.

Tables:
    TOKEN_KINDS: Every valid token kind name.
    token_hashmap: Maps operator and delimiter spellings to their token kind.
    keywords: Maps reserved words to their keyword token kind.
    operator_repr: Maps operator kinds back to their printable spelling.
    binding_power: Maps binary operator kinds to their precedence level.

Precedence levels (lowest to highest):
    LOWEST < OR < AND < EQUALITY < RELATIONAL < SUM < PRODUCT < UNARY
"""

from enum import IntEnum

# Special
EOF = "EOF"
NL = "NL"
COMMENT = "COMMENT"

# Delimiters
COLON = "COLON"
ASSIGN = "ASSIGN"
LPAREN = "LPAREN"
RPAREN = "RPAREN"

# Operators
PLUS = "PLUS"
MINUS = "MINUS"
STAR = "STAR"
SLASH = "SLASH"
EQ = "EQ"
NEQ = "NEQ"
LT = "LT"
GT = "GT"
LTE = "LTE"
GTE = "GTE"
BANG = "BANG"

# Literals
STRING_LIT = "STRING_LIT"
NUM_LIT = "NUM_LIT"
IDENT = "IDENT"

# Keywords
IF = "IF"
WHILE = "WHILE"
END = "END"
TRUE = "TRUE"
FALSE = "FALSE"
AND = "AND"
OR = "OR"

TOKEN_KINDS: frozenset[str] = frozenset(
    {
        EOF,
        NL,
        COMMENT,
        COLON,
        ASSIGN,
        LPAREN,
        RPAREN,
        PLUS,
        MINUS,
        STAR,
        SLASH,
        EQ,
        NEQ,
        LT,
        GT,
        LTE,
        GTE,
        BANG,
        STRING_LIT,
        NUM_LIT,
        IDENT,
        IF,
        WHILE,
        END,
        TRUE,
        FALSE,
        AND,
        OR,
    }
)

# Longest spelling wins: "<=" is tried before "<".
token_hashmap: dict[str, str] = {
    "\n": NL,
    ":": COLON,
    "=": ASSIGN,
    "(": LPAREN,
    ")": RPAREN,
    "+": PLUS,
    "-": MINUS,
    "*": STAR,
    "/": SLASH,
    "==": EQ,
    "!=": NEQ,
    "<": LT,
    ">": GT,
    "<=": LTE,
    ">=": GTE,
    "!": BANG,
}

keywords: dict[str, str] = {
    "if": IF,
    "while": WHILE,
    "end": END,
    "true": TRUE,
    "false": FALSE,
    "and": AND,
    "or": OR,
}

operator_repr: dict[str, str] = {
    **{kind: spelling for spelling, kind in token_hashmap.items() if kind != NL},
    **{kind: word for word, kind in keywords.items()},
}

comparison_ops: frozenset[str] = frozenset({EQ, NEQ, LT, GT, LTE, GTE})
arith_ops: frozenset[str] = frozenset({PLUS, MINUS, STAR, SLASH})
bool_ops: frozenset[str] = frozenset({AND, OR})
binary_ops: frozenset[str] = arith_ops | bool_ops | comparison_ops
unary_ops: frozenset[str] = frozenset({BANG, MINUS})

# Tokens that end a statement.
statement_end: frozenset[str] = frozenset({NL, COMMENT, EOF})


class Precedence(IntEnum):
    LOWEST = 0
    OR = 1
    AND = 2
    EQUALITY = 3
    RELATIONAL = 4
    SUM = 5
    PRODUCT = 6
    UNARY = 7


binding_power: dict[str, Precedence] = {
    OR: Precedence.OR,
    AND: Precedence.AND,
    EQ: Precedence.EQUALITY,
    NEQ: Precedence.EQUALITY,
    LT: Precedence.RELATIONAL,
    GT: Precedence.RELATIONAL,
    LTE: Precedence.RELATIONAL,
    GTE: Precedence.RELATIONAL,
    PLUS: Precedence.SUM,
    MINUS: Precedence.SUM,
    STAR: Precedence.PRODUCT,
    SLASH: Precedence.PRODUCT,
}
