"""Runtime values for Quill.

This module defines the closed set of values the interpreter produces:
integers, booleans, null, first-class errors, functions (closures) and the
internal `ReturnValue` wrapper that carries an explicit `return` out of
nested blocks up to the enclosing call or program.

Every value reports its `ValueType` through `type()` and renders itself for
display through `inspect()`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Tuple

from .ast import BlockStatement, Identifier

if TYPE_CHECKING:
    from .environment import Environment


class ValueType(enum.Enum):
    INTEGER = 'INTEGER'
    BOOLEAN = 'BOOLEAN'
    NULL = 'NULL'
    RETURN_VALUE = 'RETURN_VALUE'
    ERROR = 'ERROR'
    FUNCTION = 'FUNCTION'

    def __str__(self) -> str:
        return self.value


class Value:
    """Base class for runtime values."""

    def type(self) -> ValueType:
        raise NotImplementedError

    def inspect(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class Integer(Value):
    value: int

    def type(self) -> ValueType:
        return ValueType.INTEGER

    def inspect(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Boolean(Value):
    """A boolean value.

    Two canonical instances exist (`TRUE` and `FALSE`), but comparison is
    always done on `value`, never on identity.
    """
    value: bool

    def type(self) -> ValueType:
        return ValueType.BOOLEAN

    def inspect(self) -> str:
        return 'true' if self.value else 'false'


@dataclass(frozen=True)
class Null(Value):

    def type(self) -> ValueType:
        return ValueType.NULL

    def inspect(self) -> str:
        return 'null'


@dataclass(frozen=True)
class ReturnValue(Value):
    value: Value

    def type(self) -> ValueType:
        return ValueType.RETURN_VALUE

    def inspect(self) -> str:
        return self.value.inspect()


@dataclass(frozen=True)
class Error(Value):
    message: str

    def type(self) -> ValueType:
        return ValueType.ERROR

    def inspect(self) -> str:
        return f"ERROR: {self.message}"


@dataclass(eq=False)
class Function(Value):
    """A closure: parameters and body of a function literal plus the
    environment that was active where the literal was evaluated.

    The environment is held by reference. Every call of this function, and
    every other closure created in the same scope, sees the same bindings.
    """
    parameters: Tuple[Identifier, ...]
    body: BlockStatement
    env: 'Environment' = field(repr=False)

    def type(self) -> ValueType:
        return ValueType.FUNCTION

    def inspect(self) -> str:
        params = ', '.join(str(p) for p in self.parameters)
        return f"fn({params}) {{\n{self.body}\n}}"


TRUE = Boolean(True)
FALSE = Boolean(False)
NULL = Null()


def native_bool_to_boolean(value: bool) -> Boolean:
    return TRUE if value else FALSE


def is_truthy(value: Value) -> bool:
    """Null and false are falsy; every other value, including 0, is truthy."""
    if isinstance(value, Null):
        return False
    if isinstance(value, Boolean):
        return value.value
    return True


def is_error(value: object) -> bool:
    return isinstance(value, Error)


def interrupts(value: object) -> bool:
    """True for values that stop evaluation and travel up unexamined: an
    `Error`, or the `ReturnValue` of an explicit `return`."""
    return isinstance(value, (Error, ReturnValue))


def wrap_int64(value: int) -> int:
    """Reduce `value` to the signed 64-bit range, two's complement style."""
    return (value + 2 ** 63) % 2 ** 64 - 2 ** 63


def type_name(value: object) -> str:
    """Return the type name used in runtime error messages."""
    if isinstance(value, Value):
        return str(value.type())
    return type(value).__name__
