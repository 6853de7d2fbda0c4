# Quill language package
# This package provides the lexer, Pratt parser and tree-walking interpreter for Quill.
from .lexer import Lexer, scan
from .parser import Parser, parse, parse_program
from .environment import Environment
from .interpreter import Interpreter, evaluate, run_program
from .errors import QuillError, ParserError

__all__ = [
    'Lexer',
    'scan',
    'Parser',
    'parse',
    'parse_program',
    'Environment',
    'Interpreter',
    'evaluate',
    'run_program',
    'QuillError',
    'ParserError',
]
