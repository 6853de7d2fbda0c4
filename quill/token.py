"""Token definitions for the Quill language.

A token is the smallest lexical unit produced by the lexer: a kind taken
from the closed `TokenType` enumeration plus the literal source text it was
scanned from. The tables in this module (keywords and symbol spellings) are
the single source the lexer builds its terminals from.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict


class TokenType(enum.Enum):
    """Kinds of tokens. The value is the form shown in parser diagnostics."""
    ILLEGAL = 'ILLEGAL'
    EOF = 'EOF'

    IDENT = 'IDENT'
    INT = 'INT'

    ASSIGN = '='
    PLUS = '+'
    MINUS = '-'
    BANG = '!'
    ASTERISK = '*'
    SLASH = '/'

    LT = '<'
    GT = '>'
    EQ = '=='
    NOT_EQ = '!='

    COMMA = ','
    SEMICOLON = 'SEMICOLON'

    LPAREN = '('
    RPAREN = ')'
    LBRACE = '{'
    RBRACE = '}'

    FUNCTION = 'FUNCTION'
    LET = 'LET'
    TRUE = 'TRUE'
    FALSE = 'FALSE'
    IF = 'IF'
    ELSE = 'ELSE'
    RETURN = 'RETURN'

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Token:
    type: TokenType
    literal: str


KEYWORDS: Dict[str, TokenType] = {
    'fn': TokenType.FUNCTION,
    'let': TokenType.LET,
    'true': TokenType.TRUE,
    'false': TokenType.FALSE,
    'if': TokenType.IF,
    'else': TokenType.ELSE,
    'return': TokenType.RETURN,
}

# Operator and delimiter spellings.
SYMBOLS: Dict[str, TokenType] = {
    '==': TokenType.EQ,
    '!=': TokenType.NOT_EQ,
    '=': TokenType.ASSIGN,
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '!': TokenType.BANG,
    '*': TokenType.ASTERISK,
    '/': TokenType.SLASH,
    '<': TokenType.LT,
    '>': TokenType.GT,
    ',': TokenType.COMMA,
    ';': TokenType.SEMICOLON,
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    '{': TokenType.LBRACE,
    '}': TokenType.RBRACE,
}


def lookup_ident(ident: str) -> TokenType:
    """Return the keyword kind for `ident`, or IDENT if it is not a keyword."""
    return KEYWORDS.get(ident, TokenType.IDENT)
