"""Tree-walking interpreter for the Quill language.

The interpreter evaluates an AST node against an `Environment` and returns
a runtime value, or `None` for statements that produce no value (`let`).

Control flow is carried in-band rather than with exceptions:

* an explicit `return` produces a `ReturnValue` wrapper that blocks pass
  up untouched until a function call (or the program) unwraps it;
* runtime failures produce an `Error` value.

Every composite step checks its operands and hands either kind straight
back to its caller, so a `return` inside an `if` used as an operand still
leaves the enclosing function.

Integers are signed 64-bit: arithmetic wraps around on overflow.

Evaluation is plain recursion, so a deeply recursive Quill program is
limited by Python's recursion limit and ends in `RecursionError`.
"""

from __future__ import annotations

from typing import IO, List, Optional, Sequence

from .ast import (
    Node, Program, LetStatement, ReturnStatement, ExpressionStatement,
    BlockStatement, Identifier, IntegerLiteral, BooleanLiteral,
    PrefixExpression, InfixExpression, IfExpression, FunctionLiteral,
    CallExpression, Expression,
)
from .environment import Environment
from .errors import ParserError
from .lexer import Lexer
from .parser import parse
from .types import (
    Value, Integer, Boolean, Error, Function, ReturnValue,
    NULL, native_bool_to_boolean, is_truthy, interrupts, wrap_int64, type_name,
)


class Interpreter:
    """Core interpreter that evaluates Quill ASTs.

    `debug_level` turns on tracing: 1 traces function calls and their
    results, 2 adds `let` bindings and every runtime error produced, 3 adds
    each `if` condition. Traces go to `debug_file`, or to stdout when
    `debug_file` is None.
    """
    def __init__(self, debug_level: int = 0, debug_file: Optional[str] = 'debug.txt'):
        self.debug_level = debug_level
        self.debug_fp: Optional[IO[str]] = (
            open(debug_file, 'w', encoding='utf-8')
            if debug_level > 0 and debug_file is not None else None
        )
        self.depth = 0

    def debug(self, msg: str):
        if self.debug_level > 0:
            line = '  ' * self.depth + msg
            if self.debug_fp:
                self.debug_fp.write(line + '\n')
                self.debug_fp.flush()
            else:
                print(line)

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    def error(self, message: str) -> Error:
        if self.debug_level >= 2:
            self.debug(f"error: {message}")
        return Error(message)

    # Public API
    def run(self, program: Program, env: Optional[Environment] = None) -> Optional[Value]:
        if env is None:
            env = Environment()
        return self.evaluate(program, env)

    def evaluate(self, node: Node, env: Environment) -> Optional[Value]:
        # Statements
        if isinstance(node, Program):
            return self.eval_program(node.statements, env)
        if isinstance(node, ExpressionStatement):
            return self.evaluate(node.expression, env)
        if isinstance(node, BlockStatement):
            return self.eval_block(node.statements, env)
        if isinstance(node, LetStatement):
            value = self.evaluate(node.value, env)
            if interrupts(value):
                return value
            env.set(node.name.value, value)
            if self.debug_level >= 2:
                self.debug(f"let {node.name.value} = {value.inspect()}")
            return None
        if isinstance(node, ReturnStatement):
            if node.return_value is None:
                return ReturnValue(NULL)
            value = self.evaluate(node.return_value, env)
            if interrupts(value):
                return value
            return ReturnValue(value)

        # Expressions
        if isinstance(node, IntegerLiteral):
            return Integer(node.value)
        if isinstance(node, BooleanLiteral):
            return native_bool_to_boolean(node.value)
        if isinstance(node, Identifier):
            return self.eval_identifier(node, env)
        if isinstance(node, PrefixExpression):
            right = self.evaluate(node.right, env)
            if interrupts(right):
                return right
            return self.eval_prefix_expression(node.operator, right)
        if isinstance(node, InfixExpression):
            left = self.evaluate(node.left, env)
            if interrupts(left):
                return left
            right = self.evaluate(node.right, env)
            if interrupts(right):
                return right
            return self.eval_infix_expression(node.operator, left, right)
        if isinstance(node, IfExpression):
            return self.eval_if_expression(node, env)
        if isinstance(node, FunctionLiteral):
            return Function(node.parameters, node.body, env)
        if isinstance(node, CallExpression):
            function = self.evaluate(node.function, env)
            if interrupts(function):
                return function
            args = self.eval_expressions(node.arguments, env)
            if len(args) == 1 and interrupts(args[0]):
                return args[0]
            return self.apply_function(function, args)
        raise NotImplementedError(f"evaluate: unexpected node type {type(node)}")

    def eval_program(self, statements: Sequence[Node], env: Environment) -> Optional[Value]:
        result: Optional[Value] = None
        for stmt in statements:
            result = self.evaluate(stmt, env)
            if isinstance(result, ReturnValue):
                return result.value
            if isinstance(result, Error):
                return result
        return result

    def eval_block(self, statements: Sequence[Node], env: Environment) -> Optional[Value]:
        result: Optional[Value] = None
        for stmt in statements:
            result = self.evaluate(stmt, env)
            # the wrapper stays on so the enclosing call sees an explicit return
            if isinstance(result, (ReturnValue, Error)):
                return result
        return result

    def eval_identifier(self, node: Identifier, env: Environment) -> Value:
        value = env.get(node.value)
        if value is None:
            return self.error(f"identifier not found: {node.value}")
        return value

    def eval_expressions(self, exprs: Sequence[Expression], env: Environment) -> List[Value]:
        """Evaluate left to right; on the first error or `return` hand back just that."""
        result: List[Value] = []
        for expr in exprs:
            evaluated = self.evaluate(expr, env)
            if interrupts(evaluated):
                return [evaluated]
            result.append(evaluated)
        return result

    def eval_if_expression(self, node: IfExpression, env: Environment) -> Optional[Value]:
        condition = self.evaluate(node.condition, env)
        if interrupts(condition):
            return condition
        truthy = is_truthy(condition)
        if self.debug_level >= 3:
            self.debug(f"if {node.condition} -> {condition.inspect()} ({'truthy' if truthy else 'falsy'})")
        result: Optional[Value] = NULL
        if truthy:
            result = self.evaluate(node.consequence, env)
        elif node.alternative is not None:
            result = self.evaluate(node.alternative, env)
        # an empty branch still gives the expression a value
        return NULL if result is None else result

    def eval_prefix_expression(self, operator: str, right: Value) -> Value:
        if operator == '!':
            return native_bool_to_boolean(not is_truthy(right))
        if operator == '-':
            if not isinstance(right, Integer):
                return self.error(f"unknown operator: -{type_name(right)}")
            return Integer(wrap_int64(-right.value))
        return self.error(f"unknown operator: {operator}{type_name(right)}")

    def eval_infix_expression(self, operator: str, left: Value, right: Value) -> Value:
        if isinstance(left, Integer) and isinstance(right, Integer):
            return self.eval_integer_infix_expression(operator, left, right)
        if type(left) is not type(right):
            return self.error(f"type mismatch: {type_name(left)} {operator} {type_name(right)}")
        if isinstance(left, Boolean) and isinstance(right, Boolean):
            # compare by value, never by identity
            if operator == '==':
                return native_bool_to_boolean(left.value == right.value)
            if operator == '!=':
                return native_bool_to_boolean(left.value != right.value)
        return self.error(f"unknown operator: {type_name(left)} {operator} {type_name(right)}")

    def eval_integer_infix_expression(self, operator: str, left: Integer, right: Integer) -> Value:
        a, b = left.value, right.value
        if operator == '+':
            return Integer(wrap_int64(a + b))
        if operator == '-':
            return Integer(wrap_int64(a - b))
        if operator == '*':
            return Integer(wrap_int64(a * b))
        if operator == '/':
            if b == 0:
                return self.error(f"division by zero: {type_name(left)} / {type_name(right)}")
            # floor division: -7 / 2 is -4
            return Integer(wrap_int64(a // b))
        if operator == '<':
            return native_bool_to_boolean(a < b)
        if operator == '>':
            return native_bool_to_boolean(a > b)
        if operator == '==':
            return native_bool_to_boolean(a == b)
        if operator == '!=':
            return native_bool_to_boolean(a != b)
        return self.error(f"unknown operator: {type_name(left)} {operator} {type_name(right)}")

    def apply_function(self, function: Value, args: List[Value]) -> Value:
        if not isinstance(function, Function):
            return self.error(f"not a function: {type_name(function)}")
        call_env = self.extend_function_env(function, args)
        if self.debug_level >= 1:
            shown = ', '.join(a.inspect() for a in args)
            self.debug(f"call fn({', '.join(p.value for p in function.parameters)}) with ({shown})")
        self.depth += 1
        try:
            evaluated = self.evaluate(function.body, call_env)
        finally:
            self.depth -= 1
        if isinstance(evaluated, ReturnValue):
            evaluated = evaluated.value
        if evaluated is None:
            # empty body, or a body ending in `let`
            evaluated = NULL
        if self.debug_level >= 1:
            self.debug(f"return {evaluated.inspect()}")
        return evaluated

    def extend_function_env(self, function: Function, args: List[Value]) -> Environment:
        # Arity is not checked: missing arguments are null, extra ones are ignored.
        env = Environment.enclosed(function.env)
        for i, param in enumerate(function.parameters):
            env.set(param.value, args[i] if i < len(args) else NULL)
        return env


_DEFAULT_INTERPRETER = Interpreter()


def evaluate(node: Node, env: Environment) -> Optional[Value]:
    """Evaluate `node` in `env` with a non-tracing interpreter."""
    return _DEFAULT_INTERPRETER.evaluate(node, env)


def run_program(source: str, env: Optional[Environment] = None, debug_level: int = 0) -> Optional[Value]:
    """Convenience function to parse and evaluate a Quill program from source.

    Raises `ParserError` if the source has parser diagnostics. Pass the same
    `env` to successive calls to keep bindings between them.
    """
    program, errors = parse(Lexer(source))
    if errors:
        raise ParserError(errors)
    interpreter = Interpreter(debug_level=debug_level, debug_file=None)
    try:
        return interpreter.run(program, env)
    finally:
        interpreter.close()
