from typing import Any, Dict, Optional

from .errors import CoxRuntimeError
from .tokens import Token

# ==================== ENVIRONMENT ====================

class Environment:
    """One frame of name -> value bindings with a link to its enclosing frame.

    Frames are shared, never copied: every closure that captured a frame
    sees the writes made through any other.
    """

    def __init__(self, enclosing: Optional['Environment'] = None):
        self.values: Dict[str, Any] = {}
        self.enclosing = enclosing

    def define(self, name: str, value: Any):
        # Redefinition overwrites; same-scope duplicates are rejected statically.
        self.values[name] = value

    def get(self, name: Token) -> Any:
        env: Optional[Environment] = self
        while env is not None:
            if name.lexeme in env.values:
                return env.values[name.lexeme]
            env = env.enclosing
        raise CoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def assign(self, name: Token, value: Any):
        env: Optional[Environment] = self
        while env is not None:
            if name.lexeme in env.values:
                env.values[name.lexeme] = value
                return
            env = env.enclosing
        raise CoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def ancestor(self, distance: int) -> 'Environment':
        env = self
        for _ in range(distance):
            env = env.enclosing
        return env

    def get_at(self, distance: int, name: str) -> Any:
        return self.ancestor(distance).values[name]

    def assign_at(self, distance: int, name: Token, value: Any):
        self.ancestor(distance).values[name.lexeme] = value

    def __repr__(self):
        return f"Environment({self.values!r})"
