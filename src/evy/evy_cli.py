"""
evy CLI Entrypoint.

This module provides the command-line interface for the evy front end.
It tokenizes a source file (or standard input) and either prints the tokens or parses and
type checks them and prints the resulting program.

Features:
    - Read source from a file, from standard input, or from an inline string.
    - Lexer-only mode: print one token per line.
    - Parse mode: print the program tree, or its JSON form.
    - Lexical and parse errors are printed to stderr and exit with status 1.

Example usage:
    evy prog.evy
    evy -l prog.evy
    echo "x:num" | evy
    evy -s "x:num" --json

Functions:
    run_evy(source: str | None, is_string: bool = False, lex_only: bool = False,
            as_json: bool = False) -> None:
        Runs the evy pipeline (lex → parse → print).

    main(argv: list[str] | None = None) -> int:
        Parses CLI arguments, runs the pipeline and returns the exit status.
"""

import argparse
import json
import logging
import sys

from evy.evy_lexer import LexError, tokenize
from evy.evy_parser import ParseError, parse_program

logger = logging.getLogger(__name__)


def read_source(source: str | None, is_string: bool = False) -> str:
    """Returns the program text for `source`.

    Args:
        source (str | None): A file path, inline source (with `is_string`), or None / "-"
            for standard input.
        is_string (bool): If True, `source` is the program text itself.
    """
    if is_string:
        return source or ""
    if source is None or source == "-":
        return sys.stdin.read()
    with open(source, encoding="utf-8") as f:
        return f.read()


def run_evy(
    source: str | None,
    is_string: bool = False,
    lex_only: bool = False,
    as_json: bool = False,
) -> None:
    """
    Run the evy front end and print the result to stdout.

    Args:
        source (str | None): The evy source code, a source file path, or None / "-" for stdin.
        is_string (bool): If True, treats `source` as raw code instead of a file path.
        lex_only (bool): If True, print tokens one per line instead of parsing.
        as_json (bool): If True, print the parsed program as indented JSON.

    Raises:
        LexError: If the source cannot be tokenized.
        ParseError: If the tokens do not form a valid, well-typed program.
    """
    text = read_source(source, is_string)
    tokens = tokenize(text)

    if lex_only:
        for tok in tokens:
            print(tok)
        return

    prog = parse_program(tokens)
    logger.debug("Program has %d statements", len(prog.statements))
    if as_json:
        print(json.dumps(prog.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(prog)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="evy", description="Tokenize, parse and type check evy source."
    )
    parser.add_argument(
        "source", nargs="?", help="Source file, or raw source with -s (default: stdin)"
    )
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    parser.add_argument(
        "-l", "--lex", dest="lex_only", action="store_true", help="Lexer output only"
    )
    parser.add_argument(
        "-j", "--json", dest="as_json", action="store_true", help="Print the AST as JSON"
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging to stderr")
    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Entry point for the evy CLI.

    Supported flags:
        - `-s`, `--string`: Interpret source as a raw string instead of a file path.
        - `-l`, `--lex`: Print tokens only.
        - `-j`, `--json`: Print the parsed program as JSON.
        - `--verbose`: Enable debug logging.

    Returns:
        int: 0 on success, 1 on a lexical or parse error.
    """
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if args.string and args.source is None:
        print("evy: -s requires source text", file=sys.stderr)
        return 2

    try:
        run_evy(
            source=args.source,
            is_string=args.string,
            lex_only=args.lex_only,
            as_json=args.as_json,
        )
    except (LexError, ParseError) as e:
        print(e, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
