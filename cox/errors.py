from abc import ABC
from dataclasses import dataclass
from typing import Callable, List, Optional

from .tokens import Token, TokenType

# ==================== STATIC ERRORS ====================

@dataclass(frozen=True)
class StaticError:
    """A lexical, syntax or resolution error."""
    line: int
    message: str
    where: str = ""

    def __str__(self) -> str:
        return f"[line {self.line}] Error{self.where}: {self.message}"


ErrorCallback = Callable[[StaticError], None]


def token_location(token: Token) -> str:
    if token.type == TokenType.EOF:
        return " at end"
    return f" at '{token.lexeme}'"


class ErrorReporter(ABC):
    """Base class for the pipeline stages that report static errors.

    Errors are collected on ``self.errors`` and, when a callback is given,
    passed to it as soon as they are found.
    """

    def __init__(self, on_error: Optional[ErrorCallback] = None):
        self.on_error = on_error
        self.errors: List[StaticError] = []

    def report(self, line: int, message: str, where: str = "") -> StaticError:
        error = StaticError(line, message, where)
        self.errors.append(error)
        if self.on_error is not None:
            self.on_error(error)
        return error

    def report_at(self, token: Token, message: str) -> StaticError:
        return self.report(token.line, message, token_location(token))

    @property
    def had_error(self) -> bool:
        return bool(self.errors)

# ==================== EXCEPTION CLASSES ====================

class ParseError(Exception):
    """Raised inside the parser to unwind to the nearest synchronization point."""
    pass


class CoxRuntimeError(Exception):
    """Runtime error carrying the offending token for line attribution."""

    def __init__(self, token: Token, message: str):
        super().__init__(message)
        self.token = token
        self.message = message

    def __str__(self) -> str:
        return f"{self.message}\n[line {self.token.line}]"
