import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from .environment import Environment
from .errors import CoxRuntimeError
from .nodes import Function
from .tokens import Token

if TYPE_CHECKING:
    from .interpreter import Interpreter

# ==================== PLATFORM RUNTIME ====================

def create_runtime_std() -> Dict[str, Callable[[str], None]]:
    """Define the platform runtime handlers here."""
    return {
        'println': lambda s: print(s),
    }

# ==================== COMPLETION SIGNALS ====================
#
# Executing a statement yields None for normal completion, a ReturnSignal
# or BREAK. Blocks stop at the first non-None signal and hand it upward;
# loops consume BREAK, calls consume ReturnSignal.

@dataclass(frozen=True)
class ReturnSignal:
    value: Any


class _BreakSignal:
    def __repr__(self):
        return "BREAK"


BREAK = _BreakSignal()

# ==================== VALUES ====================

class CoxCallable(ABC):
    """Contract shared by functions and classes."""

    @abstractmethod
    def arity(self) -> int:
        """Number of arguments a call must supply at least."""

    @abstractmethod
    def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
        pass


class CoxFunction(CoxCallable):
    def __init__(self, declaration: Function, closure: Environment, is_initializer: bool = False):
        self.declaration = declaration
        self.closure = closure
        self.is_initializer = is_initializer

    def bind(self, instance: 'CoxInstance') -> 'CoxFunction':
        environment = Environment(self.closure)
        environment.define("this", instance)
        return CoxFunction(self.declaration, environment, self.is_initializer)

    def arity(self) -> int:
        return len(self.declaration.params)

    def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
        environment = Environment(self.closure)
        # Extra arguments are ignored.
        for param, argument in zip(self.declaration.params, arguments):
            environment.define(param.lexeme, argument)

        signal = interpreter.execute_block(self.declaration.body, environment)

        if self.is_initializer:
            return self.closure.get_at(0, "this")
        if isinstance(signal, ReturnSignal):
            return signal.value
        return None

    def __str__(self):
        return f"<fn {self.declaration.name.lexeme}>"


class CoxClass(CoxCallable):
    def __init__(self, name: str, superclass: Optional['CoxClass'], methods: Dict[str, CoxFunction]):
        self.name = name
        self.superclass = superclass
        self.methods = methods

    def lookup(self, name: str) -> Optional[CoxFunction]:
        klass: Optional[CoxClass] = self
        while klass is not None:
            if name in klass.methods:
                return klass.methods[name]
            klass = klass.superclass
        return None

    def find_method(self, instance: 'CoxInstance', name: str) -> Optional[CoxFunction]:
        method = self.lookup(name)
        if method is None:
            return None
        return method.bind(instance)

    def arity(self) -> int:
        initializer = self.lookup("init")
        if initializer is None:
            return 0
        return initializer.arity()

    def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
        instance = CoxInstance(self)
        initializer = self.lookup("init")
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def __str__(self):
        return self.name


class CoxInstance:
    def __init__(self, klass: CoxClass):
        self.klass = klass
        self.fields: Dict[str, Any] = {}

    def get(self, name: Token) -> Any:
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]

        method = self.klass.find_method(self, name.lexeme)
        if method is not None:
            return method

        raise CoxRuntimeError(name, f"Undefined property '{name.lexeme}'.")

    def set(self, name: Token, value: Any):
        self.fields[name.lexeme] = value

    def __str__(self):
        return f"{self.klass.name} instance"

# ==================== STRINGIFY ====================

def stringify(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format_number(value)
    return str(value)


def format_number(value: float) -> str:
    """Positional notation, without a trailing ".0"; the scanner has no exponent syntax."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer():
        return str(int(value))
    return format(Decimal(repr(value)), 'f')
