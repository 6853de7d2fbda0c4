"""CLI entry point for the Quill interpreter.

Usage:
    python -m quill [-v|-vv|-vvv] [program_file]
    python -m quill [-v...] --parse [program_file]
    python -m quill --tokens [program_file]

Options:
  -v            Increase debug verbosity (can be repeated)
  --parse       Print the canonical form of the parsed program instead of running it
  --tokens      Print the token stream instead of running the program
  --prompt      Prompt shown by the interactive session (default ">> ")

Without a program file an interactive session starts: every line is run
through the whole pipeline and its result printed, with bindings kept
between lines. An empty line or end of input ends the session.

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero.
"""

import argparse
import sys
from pathlib import Path
from typing import List

from .environment import Environment
from .interpreter import Interpreter
from .lexer import Lexer
from .parser import parse
from .types import is_error


def print_parser_errors(errors: List[str]) -> None:
    print("parser errors:", file=sys.stderr)
    for msg in errors:
        print(f"\t{msg}", file=sys.stderr)


def execute(source: str, args: argparse.Namespace, interpreter: Interpreter, env: Environment) -> bool:
    """Run one piece of source through the pipeline. Returns False on failure."""
    if args.tokens:
        for token in Lexer(source):
            print(f"{token.type.name} {token.literal!r}")
        return True
    program, errors = parse(Lexer(source))
    if errors:
        print_parser_errors(errors)
        return False
    if args.parse:
        print(str(program))
        return True
    try:
        result = interpreter.run(program, env)
    except RecursionError as e:
        print(f"Runtime error: {e}", file=sys.stderr)
        return False
    if result is not None:
        print(result.inspect())
    return not is_error(result)


def repl(args: argparse.Namespace, interpreter: Interpreter) -> None:
    env = Environment()
    while True:
        try:
            line = input(args.prompt)
        except EOFError:
            print()
            return
        if not line:
            return
        execute(line, args, interpreter, env)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Quill language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--parse', action='store_true', help='print the parsed program instead of running it')
    group.add_argument('--tokens', action='store_true', help='print the token stream instead of running it')
    parser.add_argument('--prompt', default='>> ', help='prompt for the interactive session')
    parser.add_argument('program', nargs='?', help='Quill program file to execute')
    args = parser.parse_args(argv)

    interpreter = Interpreter(debug_level=args.v)
    try:
        if not args.program:
            repl(args, interpreter)
            return
        program_file = Path(args.program)
        if not program_file.exists():
            print(f"Error: file {program_file} not found", file=sys.stderr)
            sys.exit(1)
        with open(program_file, 'r', encoding='utf-8') as f:
            source = f.read()
        if not execute(source, args, interpreter, Environment()):
            sys.exit(1)
    finally:
        interpreter.close()


if __name__ == '__main__':
    main()
