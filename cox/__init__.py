import logging

from .driver import Cox, RunResult, main
from .errors import CoxRuntimeError, StaticError
from .interpreter import Interpreter
from .parser import Parser
from .printer import to_source
from .resolver import Resolver
from .scanner import Scanner

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Cox", "RunResult", "main",
    "CoxRuntimeError", "StaticError",
    "Scanner", "Parser", "Resolver", "Interpreter",
    "to_source",
]
