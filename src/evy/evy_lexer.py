"""
Lexical analyzer for the evy language.

This module converts raw source text into a flat sequence of tokens:

Classes:
    CharacterStream: Stream abstraction for reading characters one at a time.
    Token: A single token, identified by its kind and literal text.
    Lexer: Converts a CharacterStream into a sequence of tokens.
    LexError: Raised on the two fatal lexical conditions.

Features:
    - Skips spaces, tabs and carriage returns; newlines are tokens (statement separators)
    - `//` comments become COMMENT tokens holding the text after the slashes
    - Longest-match recognition of one and two character operators
    - Recognizes:
        * Identifiers and keywords
        * Numbers (runs of decimal digits)
        * Strings (double quoted, single line, no escapes)

Raises:
    LexError: On an unterminated string literal or an unrecognized character.

Example:
    >>> tokenize("x = 1 + 2")
    [Token(IDENT, x), Token(ASSIGN, ), Token(NUM_LIT, 1), Token(PLUS, ), Token(NUM_LIT, 2)]

Exports:
    - CharacterStream
    - Token
    - Lexer
    - LexError
    - tokenize
"""

import logging
from typing import Any

from evy.evy_constants import (
    COMMENT,
    EOF,
    IDENT,
    NUM_LIT,
    STRING_LIT,
    keywords,
    token_hashmap,
)

logger = logging.getLogger(__name__)

_DIGITS = frozenset("0123456789")
_MAX_OPERATOR_LEN = max(len(spelling) for spelling in token_hashmap)


class LexError(SyntaxError):
    """Raised when the source contains text that cannot be tokenized.

    Attributes:
        position (int): Index into the source where the offending text starts.
    """

    def __init__(self, message: str, position: int) -> None:
        super().__init__(message)
        self.position = position


class CharacterStream:
    """Cursor over evy source text, consumed by the Lexer one character at a time.

    The position is what LexError reports, so it always indexes the first character
    not yet handed to the Lexer.

    Attributes:
        source (str): The evy program text.
        position (int): Index of the next unread character.
    """

    def __init__(self, source: str, position: int = 0):
        self.source = source
        self.position = position

    def next(self) -> str:
        """Hands the character under the cursor to the Lexer and moves past it.

        Raises:
            EOFError: If the whole program has already been read.
        """
        if self.position >= len(self.source):
            raise EOFError(
                f"Attempted to read past end of source at position=<{self.position}>"
            )
        char = self.source[self.position]
        self.position += 1
        return char

    def peek(self, offset: int = 0) -> str:
        """Looks ahead without consuming, e.g. `peek(1)` for the second `/` of a comment.

        Returns:
            str: The character `offset` places past the cursor, or "" past the end.
        """
        index = self.position + offset
        if index < 0 or index >= len(self.source):
            return ""
        return self.source[index]

    def end_of_file(self) -> bool:
        return self.position >= len(self.source)


class Token:
    """Represents a single lexical token in the evy language.

    Tokens carry no source location; two tokens are equal when kind and literal match.

    Attributes:
        type (str): The token kind, one of `evy_constants.TOKEN_KINDS`.
        value (str): Literal text for identifiers, numbers, strings and comments,
            empty for every other kind.
    """

    __slots__ = ("type", "value")

    type: str
    value: str

    def __init__(self, type_: str, value: str = ""):
        object.__setattr__(self, "type", type_)
        object.__setattr__(self, "value", value)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Token is immutable")

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value})"

    def __str__(self) -> str:
        """Renders the token the way lexer-only output prints it, e.g. `IDENT x` or `NL`."""
        return f"{self.type} {self.value}" if self.value else self.type

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Token)
            and self.type == other.type
            and self.value == other.value
        )

    def __hash__(self) -> int:
        return hash((self.type, self.value))


class Lexer:
    """Lexical analyzer for the evy language.

    The Lexer takes a CharacterStream and produces Token objects one at a time via
    `next_token()`. Once the stream is exhausted every call returns an EOF token.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
    """

    def __init__(self, stream: CharacterStream) -> None:
        self.stream = stream

    def peek(self, offset: int = 0) -> str:
        return self.stream.peek(offset)

    def advance(self) -> str:
        return self.stream.next()

    def skip_whitespace(self) -> None:
        """Skips horizontal whitespace. Newlines are left in place, they are tokens."""
        while not self.stream.end_of_file() and self.peek() in " \t\r":
            self.advance()

    def read_comment(self) -> Token:
        """Consumes `//` and the rest of the line, excluding the newline."""
        self.advance()
        self.advance()
        text = ""
        while not self.stream.end_of_file() and self.peek() != "\n":
            text += self.advance()
        return Token(COMMENT, text)

    def read_number(self) -> Token:
        num = ""
        while self.peek() in _DIGITS:
            num += self.advance()
        return Token(NUM_LIT, num)

    def read_string(self) -> Token:
        """Consumes a double quoted string literal on a single line.

        Raises:
            LexError: If a newline or the end of input comes before the closing quote.
        """
        start = self.stream.position
        self.advance()  # opening quote
        val = ""
        while not self.stream.end_of_file() and self.peek() not in ('"', "\n"):
            val += self.advance()
        if self.peek() != '"':
            raise LexError(f'unterminated string "{val}', start)
        self.advance()  # closing quote
        return Token(STRING_LIT, val)

    def read_word(self) -> Token:
        word = ""
        while not self.stream.end_of_file() and (
            self.peek().isalpha() or self.peek() in _DIGITS or self.peek() == "_"
        ):
            word += self.advance()
        if word in keywords:
            return Token(keywords[word])
        return Token(IDENT, word)

    def match_operator(self) -> Token | None:
        """Attempts to match the longest operator or delimiter at the current position.

        Returns:
            Token | None: A Token if a match is found, otherwise None.
        """
        max_token = None
        candidate = ""

        for i in range(_MAX_OPERATOR_LEN):
            ch = self.peek(i)
            if ch == "":
                break
            candidate += ch
            if candidate in token_hashmap:
                max_token = candidate

        if max_token is None:
            return None
        for _ in max_token:
            self.advance()
        return Token(token_hashmap[max_token])

    def next_token(self) -> Token:
        """Consumes and returns the next Token from the stream.

        Returns:
            Token: The next token, or an EOF token at the end of input.

        Raises:
            LexError: On an unterminated string or an unrecognized character.
        """
        self.skip_whitespace()

        if self.stream.end_of_file():
            return Token(EOF)

        ch = self.peek()

        # 1. Comment
        if ch == "/" and self.peek(1) == "/":
            return self.read_comment()

        # 2. Number
        if ch in _DIGITS:
            return self.read_number()

        # 3. Identifier or keyword
        if ch.isalpha() or ch == "_":
            return self.read_word()

        # 4. String
        if ch == '"':
            return self.read_string()

        # 5. Operator, delimiter or newline
        token = self.match_operator()
        if token is not None:
            return token

        raise LexError(f"unknown character {ch!r}", self.stream.position)


def tokenize(source: str) -> list[Token]:
    """Tokenizes a complete source text.

    The trailing EOF token is not included in the result.

    Args:
        source (str): The evy source text.

    Returns:
        list[Token]: The tokens in source order.

    Raises:
        LexError: On an unterminated string or an unrecognized character.
    """
    lexer = Lexer(CharacterStream(source))
    tokens = []
    while True:
        tok = lexer.next_token()
        if tok.type == EOF:
            break
        tokens.append(tok)
    logger.debug("Tokenized %d characters into %d tokens", len(source), len(tokens))
    return tokens


__all__ = ["CharacterStream", "LexError", "Lexer", "Token", "tokenize"]
