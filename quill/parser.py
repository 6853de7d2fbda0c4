"""Parser for the Quill language.

This module implements an operator-precedence ("Pratt") parser:

1. **Dispatch tables**: every token kind may own one *prefix* parse
   function (the token starts an expression: literals, identifiers, unary
   operators, grouping, `if`, `fn`) and one *infix* parse function (the
   token continues an expression that is already parsed on its left:
   binary operators and the `(` of a call). The tables are plain dicts
   filled once per parser in `__init__`, so supporting a new operator
   means registering one more entry.

2. **Precedence climbing**: `parse_expression(precedence)` runs the prefix
   function of the current token and then keeps folding the left
   expression into infix functions for as long as the next token binds
   tighter than `precedence`.

The parser looks at two tokens at a time (`cur_token` and `peek_token`).
It never raises on bad input: a mismatch is appended to `errors`, the
statement being parsed is dropped, and parsing carries on with the next
statement. Whether a program with diagnostics may run is decided by the
caller (see `parse_program`).
"""

from __future__ import annotations

import enum
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from .ast import (
    Program, Statement, Expression, LetStatement, ReturnStatement,
    ExpressionStatement, BlockStatement, Identifier, IntegerLiteral,
    BooleanLiteral, PrefixExpression, InfixExpression, IfExpression,
    FunctionLiteral, CallExpression,
)
from .errors import ParserError
from .lexer import Lexer
from .token import Token, TokenType

PrefixParseFn = Callable[[], Optional[Expression]]
InfixParseFn = Callable[[Expression], Optional[Expression]]

INT64_MAX = 2 ** 63 - 1


class Precedence(enum.IntEnum):
    LOWEST = 1
    EQUALS = 2       # ==
    LESSGREATER = 3  # > or <
    SUM = 4          # +
    PRODUCT = 5      # *
    PREFIX = 6       # -x or !x
    CALL = 7         # f(x)


PRECEDENCES: Mapping[TokenType, Precedence] = MappingProxyType({
    TokenType.EQ: Precedence.EQUALS,
    TokenType.NOT_EQ: Precedence.EQUALS,
    TokenType.LT: Precedence.LESSGREATER,
    TokenType.GT: Precedence.LESSGREATER,
    TokenType.PLUS: Precedence.SUM,
    TokenType.MINUS: Precedence.SUM,
    TokenType.SLASH: Precedence.PRODUCT,
    TokenType.ASTERISK: Precedence.PRODUCT,
    TokenType.LPAREN: Precedence.CALL,
})


class Parser:
    def __init__(self, lexer: Lexer):
        self.lexer = lexer
        self.errors: List[str] = []

        self.prefix_parse_fns: Dict[TokenType, PrefixParseFn] = {}
        self.register_prefix(TokenType.IDENT, self.parse_identifier)
        self.register_prefix(TokenType.INT, self.parse_integer_literal)
        self.register_prefix(TokenType.BANG, self.parse_prefix_expression)
        self.register_prefix(TokenType.MINUS, self.parse_prefix_expression)
        self.register_prefix(TokenType.TRUE, self.parse_boolean)
        self.register_prefix(TokenType.FALSE, self.parse_boolean)
        self.register_prefix(TokenType.LPAREN, self.parse_grouped_expression)
        self.register_prefix(TokenType.IF, self.parse_if_expression)
        self.register_prefix(TokenType.FUNCTION, self.parse_function_literal)

        self.infix_parse_fns: Dict[TokenType, InfixParseFn] = {}
        for kind in (
            TokenType.PLUS, TokenType.MINUS, TokenType.SLASH, TokenType.ASTERISK,
            TokenType.EQ, TokenType.NOT_EQ, TokenType.LT, TokenType.GT,
        ):
            self.register_infix(kind, self.parse_infix_expression)
        self.register_infix(TokenType.LPAREN, self.parse_call_expression)

        # Fill cur_token and peek_token.
        self.cur_token = Token(TokenType.EOF, '')
        self.peek_token = Token(TokenType.EOF, '')
        self.next_token()
        self.next_token()

    def register_prefix(self, kind: TokenType, fn: PrefixParseFn) -> None:
        self.prefix_parse_fns[kind] = fn

    def register_infix(self, kind: TokenType, fn: InfixParseFn) -> None:
        self.infix_parse_fns[kind] = fn

    # Token window

    def next_token(self) -> None:
        self.cur_token = self.peek_token
        self.peek_token = self.lexer.next_token()

    def cur_token_is(self, kind: TokenType) -> bool:
        return self.cur_token.type == kind

    def peek_token_is(self, kind: TokenType) -> bool:
        return self.peek_token.type == kind

    def expect_peek(self, kind: TokenType) -> bool:
        """Advance if the next token has the expected kind, else record an error."""
        if self.peek_token_is(kind):
            self.next_token()
            return True
        self.peek_error(kind)
        return False

    def peek_error(self, kind: TokenType) -> None:
        self.errors.append(
            f"expected next token to be {kind}, but got {self.peek_token.type} instead"
        )

    def no_prefix_parse_fn_error(self, kind: TokenType) -> None:
        self.errors.append(f"no prefix parse function for {kind} found")

    def peek_precedence(self) -> Precedence:
        return PRECEDENCES.get(self.peek_token.type, Precedence.LOWEST)

    def cur_precedence(self) -> Precedence:
        return PRECEDENCES.get(self.cur_token.type, Precedence.LOWEST)

    # Statements

    def parse_program(self) -> Program:
        statements: List[Statement] = []
        while not self.cur_token_is(TokenType.EOF):
            stmt = self.parse_statement()
            if stmt is not None:
                statements.append(stmt)
            self.next_token()
        return Program(tuple(statements))

    def parse_statement(self) -> Optional[Statement]:
        if self.cur_token_is(TokenType.LET):
            return self.parse_let_statement()
        if self.cur_token_is(TokenType.RETURN):
            return self.parse_return_statement()
        return self.parse_expression_statement()

    def parse_let_statement(self) -> Optional[LetStatement]:
        token = self.cur_token
        if not self.expect_peek(TokenType.IDENT):
            return None
        name = Identifier(self.cur_token, self.cur_token.literal)
        if not self.expect_peek(TokenType.ASSIGN):
            return None
        self.next_token()
        value = self.parse_expression(Precedence.LOWEST)
        if self.peek_token_is(TokenType.SEMICOLON):
            self.next_token()
        if value is None:
            return None
        return LetStatement(token, name, value)

    def parse_return_statement(self) -> Optional[ReturnStatement]:
        token = self.cur_token
        # A bare `return` has no operand.
        if self.peek_token.type in (TokenType.SEMICOLON, TokenType.RBRACE, TokenType.EOF):
            if self.peek_token_is(TokenType.SEMICOLON):
                self.next_token()
            return ReturnStatement(token)
        self.next_token()
        value = self.parse_expression(Precedence.LOWEST)
        if self.peek_token_is(TokenType.SEMICOLON):
            self.next_token()
        if value is None:
            return None
        return ReturnStatement(token, value)

    def parse_expression_statement(self) -> Optional[ExpressionStatement]:
        token = self.cur_token
        expression = self.parse_expression(Precedence.LOWEST)
        if self.peek_token_is(TokenType.SEMICOLON):
            self.next_token()
        if expression is None:
            return None
        return ExpressionStatement(token, expression)

    def parse_block_statement(self) -> BlockStatement:
        token = self.cur_token
        statements: List[Statement] = []
        self.next_token()
        while not self.cur_token_is(TokenType.RBRACE) and not self.cur_token_is(TokenType.EOF):
            stmt = self.parse_statement()
            if stmt is not None:
                statements.append(stmt)
            self.next_token()
        return BlockStatement(token, tuple(statements))

    # Expressions

    def parse_expression(self, precedence: Precedence) -> Optional[Expression]:
        prefix = self.prefix_parse_fns.get(self.cur_token.type)
        if prefix is None:
            self.no_prefix_parse_fn_error(self.cur_token.type)
            return None
        left = prefix()
        while (
            left is not None
            and not self.peek_token_is(TokenType.SEMICOLON)
            and precedence < self.peek_precedence()
        ):
            infix = self.infix_parse_fns.get(self.peek_token.type)
            if infix is None:
                return left
            self.next_token()
            left = infix(left)
        return left

    def parse_identifier(self) -> Expression:
        return Identifier(self.cur_token, self.cur_token.literal)

    def parse_integer_literal(self) -> Optional[Expression]:
        value = int(self.cur_token.literal)
        if value > INT64_MAX:
            self.errors.append(f"could not parse {self.cur_token.literal} as integer")
            return None
        return IntegerLiteral(self.cur_token, value)

    def parse_boolean(self) -> Expression:
        return BooleanLiteral(self.cur_token, self.cur_token_is(TokenType.TRUE))

    def parse_prefix_expression(self) -> Optional[Expression]:
        token = self.cur_token
        self.next_token()
        right = self.parse_expression(Precedence.PREFIX)
        if right is None:
            return None
        return PrefixExpression(token, token.literal, right)

    def parse_infix_expression(self, left: Expression) -> Optional[Expression]:
        token = self.cur_token
        precedence = self.cur_precedence()
        self.next_token()
        right = self.parse_expression(precedence)
        if right is None:
            return None
        return InfixExpression(token, left, token.literal, right)

    def parse_grouped_expression(self) -> Optional[Expression]:
        self.next_token()
        expr = self.parse_expression(Precedence.LOWEST)
        if expr is None or not self.expect_peek(TokenType.RPAREN):
            return None
        return expr

    def parse_if_expression(self) -> Optional[Expression]:
        token = self.cur_token
        if not self.expect_peek(TokenType.LPAREN):
            return None
        self.next_token()
        condition = self.parse_expression(Precedence.LOWEST)
        if condition is None:
            return None
        if not self.expect_peek(TokenType.RPAREN):
            return None
        if not self.expect_peek(TokenType.LBRACE):
            return None
        consequence = self.parse_block_statement()

        alternative = None
        if self.peek_token_is(TokenType.ELSE):
            self.next_token()
            if not self.expect_peek(TokenType.LBRACE):
                return None
            alternative = self.parse_block_statement()
        return IfExpression(token, condition, consequence, alternative)

    def parse_function_literal(self) -> Optional[Expression]:
        token = self.cur_token
        if not self.expect_peek(TokenType.LPAREN):
            return None
        parameters = self.parse_function_parameters()
        if parameters is None:
            return None
        if not self.expect_peek(TokenType.LBRACE):
            return None
        body = self.parse_block_statement()
        return FunctionLiteral(token, parameters, body)

    def parse_function_parameters(self) -> Optional[Tuple[Identifier, ...]]:
        identifiers: List[Identifier] = []
        if self.peek_token_is(TokenType.RPAREN):
            self.next_token()
            return ()
        if not self.expect_peek(TokenType.IDENT):
            return None
        identifiers.append(Identifier(self.cur_token, self.cur_token.literal))
        while self.peek_token_is(TokenType.COMMA):
            self.next_token()
            if not self.expect_peek(TokenType.IDENT):
                return None
            identifiers.append(Identifier(self.cur_token, self.cur_token.literal))
        if not self.expect_peek(TokenType.RPAREN):
            return None
        return tuple(identifiers)

    def parse_call_expression(self, function: Expression) -> Optional[Expression]:
        token = self.cur_token
        arguments = self.parse_expression_list(TokenType.RPAREN)
        if arguments is None:
            return None
        return CallExpression(token, function, arguments)

    def parse_expression_list(self, end: TokenType) -> Optional[Tuple[Expression, ...]]:
        args: List[Expression] = []
        if self.peek_token_is(end):
            self.next_token()
            return ()
        self.next_token()
        arg = self.parse_expression(Precedence.LOWEST)
        if arg is None:
            return None
        args.append(arg)
        while self.peek_token_is(TokenType.COMMA):
            self.next_token()
            self.next_token()
            arg = self.parse_expression(Precedence.LOWEST)
            if arg is None:
                return None
            args.append(arg)
        if not self.expect_peek(end):
            return None
        return tuple(args)


def parse(tokens: Lexer) -> Tuple[Program, List[str]]:
    """Parse a token stream, returning the program and its diagnostics."""
    parser = Parser(tokens)
    program = parser.parse_program()
    return program, parser.errors


def parse_program(source: str) -> Program:
    """Parse Quill source code into a Program AST.

    Raises `ParserError` carrying every diagnostic if the source does not
    parse cleanly, so that an incomplete AST is never evaluated.
    """
    program, errors = parse(Lexer(source))
    if errors:
        raise ParserError(errors)
    return program
