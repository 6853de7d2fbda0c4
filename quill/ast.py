"""Abstract Syntax Tree (AST) definitions for the Quill language.

The AST classes defined in this module represent the syntactic structure
of parsed Quill programs. They are produced by the parser and walked by
the interpreter. Nodes are immutable; child sequences are tuples.

Every node keeps the token it was built from so that `token_literal()`
can report the source text, and renders a canonical string form through
`str()`. Expressions render fully parenthesized, which is what the parser
tests use to check operator precedence.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .token import Token


@dataclass(frozen=True)
class Node:
    """Base class for all AST nodes."""
    token: Token

    def token_literal(self) -> str:
        return self.token.literal


class Statement(Node):
    pass


class Expression(Node):
    pass


@dataclass(frozen=True)
class Identifier(Expression):
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class IntegerLiteral(Expression):
    value: int

    def __str__(self) -> str:
        return self.token.literal


@dataclass(frozen=True)
class BooleanLiteral(Expression):
    value: bool

    def __str__(self) -> str:
        return self.token.literal


@dataclass(frozen=True)
class PrefixExpression(Expression):
    operator: str
    right: Expression

    def __str__(self) -> str:
        return f"({self.operator}{self.right})"


@dataclass(frozen=True)
class InfixExpression(Expression):
    left: Expression
    operator: str
    right: Expression

    def __str__(self) -> str:
        return f"({self.left} {self.operator} {self.right})"


@dataclass(frozen=True)
class BlockStatement(Statement):
    statements: Tuple[Statement, ...]

    def __str__(self) -> str:
        return ''.join(str(s) for s in self.statements)


@dataclass(frozen=True)
class IfExpression(Expression):
    condition: Expression
    consequence: BlockStatement
    alternative: Optional[BlockStatement] = None

    def __str__(self) -> str:
        out = f"if {self.condition} {self.consequence}"
        if self.alternative is not None:
            out += f" else {self.alternative}"
        return out


@dataclass(frozen=True)
class FunctionLiteral(Expression):
    parameters: Tuple[Identifier, ...]
    body: BlockStatement

    def __str__(self) -> str:
        params = ', '.join(str(p) for p in self.parameters)
        return f"{self.token_literal()}({params}) {self.body}"


@dataclass(frozen=True)
class CallExpression(Expression):
    function: Expression  # Identifier or FunctionLiteral
    arguments: Tuple[Expression, ...]

    def __str__(self) -> str:
        args = ', '.join(str(a) for a in self.arguments)
        return f"{self.function}({args})"


@dataclass(frozen=True)
class LetStatement(Statement):
    name: Identifier
    value: Expression

    def __str__(self) -> str:
        return f"{self.token_literal()} {self.name} = {self.value};"


@dataclass(frozen=True)
class ReturnStatement(Statement):
    return_value: Optional[Expression] = None

    def __str__(self) -> str:
        if self.return_value is None:
            return f"{self.token_literal()};"
        return f"{self.token_literal()} {self.return_value};"


@dataclass(frozen=True)
class ExpressionStatement(Statement):
    expression: Expression

    def __str__(self) -> str:
        return str(self.expression)


@dataclass(frozen=True)
class Program:
    statements: Tuple[Statement, ...]

    def token_literal(self) -> str:
        if self.statements:
            return self.statements[0].token_literal()
        return ''

    def __str__(self) -> str:
        return ''.join(str(s) for s in self.statements)
