"""Lexer for the Quill language.

Scanning is delegated to a lark basic lexer whose terminals are generated
from the tables in `quill.token`. Terminals are tried longest first, so
`==` and `!=` win over `=` and `!`. A lowest-priority catch-all terminal
turns any other character into an ILLEGAL token, which means malformed
input never raises: it shows up in-band for the parser to report.

The `Lexer` wraps lark's lazy token stream behind a pull interface,
`next_token()`, and keeps returning EOF once the input is exhausted.
"""

from __future__ import annotations

from typing import Iterator, List

from lark import Lark
from lark import Token as LarkToken

from .token import SYMBOLS, Token, TokenType, lookup_ident


def build_grammar() -> str:
    """Build the lark grammar text for the scanner terminals."""
    names: List[str] = [kind.name for kind in SYMBOLS.values()]
    names += ['IDENT', 'INT', 'ILLEGAL']
    lines = [
        'start: token*',
        'token: ' + ' | '.join(names),
    ]
    for text, kind in SYMBOLS.items():
        lines.append(f'{kind.name}: "{text}"')
    lines += [
        r'IDENT: /[a-zA-Z_]+/',
        r'INT: /[0-9]+/',
        r'ILLEGAL.-1: /./',
        r'WS: /[ \t\r\n]+/',
        r'%ignore WS',
    ]
    return '\n'.join(lines) + '\n'


QUILL_LEXER = Lark(
    build_grammar(),
    parser='lalr',
    lexer='basic',
)


def convert_token(tok: LarkToken) -> Token:
    if tok.type == 'IDENT':
        return Token(lookup_ident(tok.value), tok.value)
    return Token(TokenType[tok.type], tok.value)


class Lexer:
    """Pull-based token stream over a source string.

    A lexer cannot be rewound; build a new one to scan the text again.
    """

    def __init__(self, source: str):
        self.source = source
        self._stream: Iterator[LarkToken] = iter(QUILL_LEXER.lex(source))
        self._done = False

    def next_token(self) -> Token:
        if self._done:
            return Token(TokenType.EOF, '')
        tok = next(self._stream, None)
        if tok is None:
            self._done = True
            return Token(TokenType.EOF, '')
        return convert_token(tok)

    def __iter__(self) -> Iterator[Token]:
        # Yields up to and including the first EOF.
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                return


def scan(source: str) -> Lexer:
    return Lexer(source)
