from typing import Dict, Optional

from quill.types import Value


class Environment:
    """A scope mapping identifiers to values, chained to an enclosing scope.

    The outer scope is only referenced, never copied: closures and calls
    that share an environment see each other's bindings.
    """
    def __init__(self, outer: Optional['Environment'] = None):
        self.outer = outer
        self.store: Dict[str, Value] = {}

    @classmethod
    def enclosed(cls, outer: 'Environment') -> 'Environment':
        return cls(outer=outer)

    def get(self, name: str) -> Optional[Value]:
        # Absence is reported as None; the interpreter turns it into an Error value.
        if name in self.store:
            return self.store[name]
        if self.outer is not None:
            return self.outer.get(name)
        return None

    def set(self, name: str, value: Value) -> Value:
        self.store[name] = value
        return value

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None
