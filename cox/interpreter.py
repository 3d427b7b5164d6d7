import logging
import math
from typing import Any, Callable, Dict, List, Optional, Union

from .environment import Environment
from .errors import CoxRuntimeError
from .nodes import (
    Assign, Binary, Block, Break, Call, Class, Conditional, Expr, Expression,
    Function, Get, Grouping, If, Interpolation, Literal, Logical, Print,
    Return, Set, Stmt, StringFormat, Super, This, Unary, Var, Variable, While,
)
from .runtime import (
    BREAK, CoxCallable, CoxClass, CoxFunction, CoxInstance, ReturnSignal,
    _BreakSignal, create_runtime_std, stringify,
)
from .tokens import Token, TokenType

logger = logging.getLogger(__name__)

Signal = Union[None, ReturnSignal, _BreakSignal]

# ==================== EXECUTION ====================

class Interpreter:
    """Tree-walking evaluator.

    The global frame persists across ``interpret`` calls so an interactive
    session keeps its definitions.
    """

    def __init__(self, runtime: Optional[Dict[str, Callable[[str], None]]] = None):
        self.runtime = runtime if runtime is not None else create_runtime_std()
        self.globals = Environment()
        self.environment = self.globals
        self.locals: Dict[Expr, int] = {}

    def interpret(self, statements: List[Stmt], locals_: Dict[Expr, int]) -> Optional[CoxRuntimeError]:
        """Execute ``statements``; return the first runtime error, if any."""
        # Functions from earlier runs keep their entries; keys are node objects.
        self.locals.update(locals_)
        try:
            for stmt in statements:
                self.execute(stmt)
        except CoxRuntimeError as error:
            logger.debug("runtime error at line %d: %s", error.token.line, error.message)
            self.environment = self.globals
            return error
        return None

    # --- Statements ---

    def execute(self, stmt: Stmt) -> Signal:
        if isinstance(stmt, Expression):
            self.evaluate(stmt.expression)
            return None

        if isinstance(stmt, Print):
            value = self.evaluate(stmt.expression)
            self.runtime['println'](stringify(value))
            return None

        if isinstance(stmt, Var):
            value = None
            if stmt.initializer is not None:
                value = self.evaluate(stmt.initializer)
            self.environment.define(stmt.name.lexeme, value)
            return None

        if isinstance(stmt, Block):
            return self.execute_block(stmt.statements, Environment(self.environment))

        if isinstance(stmt, If):
            if is_truthy(self.evaluate(stmt.condition)):
                return self.execute(stmt.then_branch)
            if stmt.else_branch is not None:
                return self.execute(stmt.else_branch)
            return None

        if isinstance(stmt, While):
            while is_truthy(self.evaluate(stmt.condition)):
                signal = self.execute(stmt.body)
                if signal is BREAK:
                    break
                if signal is not None:
                    return signal
            return None

        if isinstance(stmt, Break):
            return BREAK

        if isinstance(stmt, Return):
            value = None
            if stmt.value is not None:
                value = self.evaluate(stmt.value)
            return ReturnSignal(value)

        if isinstance(stmt, Function):
            function = CoxFunction(stmt, self.environment, False)
            self.environment.define(stmt.name.lexeme, function)
            return None

        if isinstance(stmt, Class):
            self.execute_class(stmt)
            return None

        raise TypeError(f"Unsupported statement: {type(stmt).__name__}")

    def execute_block(self, statements: List[Stmt], environment: Environment) -> Signal:
        previous = self.environment
        try:
            self.environment = environment
            for stmt in statements:
                signal = self.execute(stmt)
                if signal is not None:
                    return signal
            return None
        finally:
            self.environment = previous

    def execute_class(self, stmt: Class):
        self.environment.define(stmt.name.lexeme, None)

        superclass = None
        if stmt.superclass is not None:
            superclass = self.evaluate(stmt.superclass)
            if not isinstance(superclass, CoxClass):
                raise CoxRuntimeError(stmt.superclass.name, "Superclass must be a class.")
            self.environment = Environment(self.environment)
            self.environment.define("super", superclass)

        methods: Dict[str, CoxFunction] = {}
        for method in stmt.methods:
            is_initializer = method.name.lexeme == "init"
            methods[method.name.lexeme] = CoxFunction(method, self.environment, is_initializer)

        klass = CoxClass(stmt.name.lexeme, superclass, methods)

        if superclass is not None:
            self.environment = self.environment.enclosing

        self.environment.assign(stmt.name, klass)

    # --- Expressions ---

    def evaluate(self, expr: Expr) -> Any:
        if isinstance(expr, Literal):
            return expr.value

        if isinstance(expr, Grouping):
            return self.evaluate(expr.expression)

        if isinstance(expr, Variable):
            return self.look_up_variable(expr.name, expr)

        if isinstance(expr, Assign):
            value = self.evaluate(expr.value)
            self.assign_variable(expr.name, expr, value)
            return value

        if isinstance(expr, Binary):
            return self.evaluate_binary(expr)

        if isinstance(expr, Logical):
            left = self.evaluate(expr.left)
            if expr.operator.type == TokenType.OR:
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self.evaluate(expr.right)

        if isinstance(expr, Conditional):
            if is_truthy(self.evaluate(expr.condition)):
                return self.evaluate(expr.then_branch)
            return self.evaluate(expr.else_branch)

        if isinstance(expr, Unary):
            return self.evaluate_unary(expr)

        if isinstance(expr, Call):
            return self.evaluate_call(expr)

        if isinstance(expr, Get):
            obj = self.evaluate(expr.obj)
            if isinstance(obj, CoxInstance):
                return obj.get(expr.name)
            raise CoxRuntimeError(expr.name, "Only instances have properties.")

        if isinstance(expr, Set):
            value = self.evaluate(expr.value)
            obj = self.evaluate(expr.obj)
            if not isinstance(obj, CoxInstance):
                raise CoxRuntimeError(expr.name, "Only instances have fields.")
            obj.set(expr.name, value)
            return value

        if isinstance(expr, This):
            return self.look_up_variable(expr.keyword, expr)

        if isinstance(expr, Super):
            distance = self.locals[expr]
            superclass: CoxClass = self.environment.get_at(distance, "super")
            # "this" is always one frame nearer than "super".
            receiver: CoxInstance = self.environment.get_at(distance - 1, "this")
            method = superclass.find_method(receiver, expr.method.lexeme)
            if method is None:
                raise CoxRuntimeError(expr.method, f"Undefined property '{expr.method.lexeme}'.")
            return method

        if isinstance(expr, Interpolation):
            return ''.join(stringify(self.evaluate(part)) for part in expr.parts)

        if isinstance(expr, StringFormat):
            return self.evaluate_format(expr)

        raise TypeError(f"Unsupported expression: {type(expr).__name__}")

    def evaluate_binary(self, expr: Binary) -> Any:
        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)
        op = expr.operator
        kind = op.type

        if kind == TokenType.COMMA:
            return right

        if kind == TokenType.EQUAL_EQUAL:
            return is_equal(left, right)
        if kind == TokenType.BANG_EQUAL:
            return not is_equal(left, right)

        if kind == TokenType.PLUS:
            if is_number(left) and is_number(right):
                return left + right
            if isinstance(left, str) and isinstance(right, str):
                return left + right
            raise CoxRuntimeError(op, "Operands must be two numbers or two strings.")

        check_number_operands(op, left, right)

        if kind == TokenType.MINUS:
            return left - right
        if kind == TokenType.STAR:
            return left * right
        if kind == TokenType.SLASH:
            if right == 0:
                return divide_by_zero(left, right)
            return left / right

        if kind == TokenType.GREATER:
            return left > right
        if kind == TokenType.GREATER_EQUAL:
            return left >= right
        if kind == TokenType.LESS:
            return left < right
        if kind == TokenType.LESS_EQUAL:
            return left <= right

        a, b = to_integer(op, left), to_integer(op, right)
        if kind == TokenType.BIT_AND:
            return float(a & b)
        if kind == TokenType.BIT_OR:
            return float(a | b)
        if kind == TokenType.BIT_XOR:
            return float(a ^ b)
        if kind in (TokenType.SHIFT_LEFT, TokenType.SHIFT_RIGHT):
            if b < 0:
                raise CoxRuntimeError(op, "Shift count must not be negative.")
            return float(a << b if kind == TokenType.SHIFT_LEFT else a >> b)

        raise CoxRuntimeError(op, f"Unknown binary operator '{op.lexeme}'.")

    def evaluate_unary(self, expr: Unary) -> Any:
        op = expr.operator
        if op.type in (TokenType.PLUS_PLUS, TokenType.MINUS_MINUS):
            return self.evaluate_increment(expr)

        operand = self.evaluate(expr.operand)

        if op.type == TokenType.BANG:
            return not is_truthy(operand)

        check_number_operand(op, operand)

        if op.type == TokenType.MINUS:
            return -operand
        if op.type == TokenType.BIT_NOT:
            return float(~to_integer(op, operand))

        return operand

    def evaluate_increment(self, expr: Unary) -> Any:
        """Prefix yields the updated value, postfix the previous one."""
        op = expr.operator
        target = expr.operand
        step = 1 if op.type == TokenType.PLUS_PLUS else -1

        if isinstance(target, Get):
            obj = self.evaluate(target.obj)
            if not isinstance(obj, CoxInstance):
                raise CoxRuntimeError(target.name, "Only instances have properties.")
            current = obj.get(target.name)
            check_number_operand(op, current)
            obj.set(target.name, current + step)
        elif isinstance(target, Variable):
            current = self.look_up_variable(target.name, target)
            check_number_operand(op, current)
            self.assign_variable(target.name, target, current + step)
        else:
            # Not a storage location: only the value is computed.
            current = self.evaluate(target)
            check_number_operand(op, current)

        return current if expr.postfix else current + step

    def evaluate_call(self, expr: Call) -> Any:
        callee = self.evaluate(expr.callee)
        arguments = [self.evaluate(argument) for argument in expr.arguments]

        if not isinstance(callee, CoxCallable):
            raise CoxRuntimeError(expr.paren, "Can only call functions and classes.")
        if len(arguments) < callee.arity():
            raise CoxRuntimeError(expr.paren, "Not enough arguments.")

        try:
            return callee.call(self, arguments)
        except RecursionError:
            raise CoxRuntimeError(expr.paren, "Stack overflow.") from None

    def evaluate_format(self, expr: StringFormat) -> str:
        value = self.evaluate(expr.value)
        pad = 0
        if expr.alignment is not None:
            alignment = self.evaluate(expr.alignment)
            if not is_number(alignment):
                raise CoxRuntimeError(expr.brace, "Alignment must be a number.")
            pad = to_integer(expr.brace, alignment)

        # TODO: apply the format code once numeric formatting rules are defined.
        text = stringify(value)

        if pad < 0:
            return text.ljust(-pad)
        return text.rjust(pad)

    # --- Variables ---

    def look_up_variable(self, name: Token, expr: Expr) -> Any:
        distance = self.locals.get(expr)
        if distance is not None:
            return self.environment.get_at(distance, name.lexeme)
        return self.globals.get(name)

    def assign_variable(self, name: Token, expr: Expr, value: Any):
        distance = self.locals.get(expr)
        if distance is not None:
            self.environment.assign_at(distance, name, value)
        else:
            self.globals.assign(name, value)

# ==================== VALUE HELPERS ====================

def is_truthy(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(a: Any, b: Any) -> bool:
    # null is only equal to null.
    if a is None and b is None:
        return True
    if a is None or b is None:
        return False
    if type(a) is not type(b):
        return False
    return a == b


def is_number(value: Any) -> bool:
    return isinstance(value, float)


def to_integer(op: Token, value: float) -> int:
    if math.isinf(value) or math.isnan(value):
        raise CoxRuntimeError(op, "Operand must be a finite number.")
    return int(round(value))


def divide_by_zero(left: float, right: float) -> float:
    # IEEE 754 semantics, sign of zero included.
    if left == 0 or math.isnan(left):
        return math.nan
    return math.copysign(math.inf, left) * math.copysign(1.0, right)


def check_number_operand(op: Token, operand: Any):
    if is_number(operand):
        return
    raise CoxRuntimeError(op, "Operand must be a number.")


def check_number_operands(op: Token, left: Any, right: Any):
    if is_number(left) and is_number(right):
        return
    raise CoxRuntimeError(op, "Operands must be numbers.")

