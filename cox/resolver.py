import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, List, Optional

from .errors import ErrorCallback, ErrorReporter, StaticError
from .nodes import (
    Assign, Binary, Block, Break, Call, Class, Conditional, Expr, Expression,
    Function, Get, Grouping, If, Interpolation, Literal, Logical, Print,
    Return, Set, Stmt, StringFormat, Super, This, Unary, Var, Variable, While,
)
from .tokens import Token

logger = logging.getLogger(__name__)

# ==================== RESOLUTION ====================

class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()
    METHOD = auto()
    INITIALIZER = auto()


class ClassType(Enum):
    NONE = auto()
    CLASS = auto()
    SUBCLASS = auto()


@dataclass
class Resolution:
    # Expression node -> number of frames between its use and its declaration.
    # Globals are deliberately absent.
    locals: Dict[Expr, int]
    errors: List[StaticError]


class Resolver(ErrorReporter):
    """Static scope pass over the AST.

    Computes the hop distance of every local variable reference and checks
    the scoping rules that do not need a running program: self-referencing
    initializers, duplicate declarations in one scope, misplaced ``return``,
    ``this`` and ``super``.

    The scopes it pushes must match the frames the interpreter creates:
    one per block, one per call (parameters and body together), one
    binding ``this`` per bound method and one binding ``super`` per
    subclass.
    """

    def __init__(self, on_error: Optional[ErrorCallback] = None):
        super().__init__(on_error)
        # Innermost scope last; False while a name's initializer is resolved.
        self.scopes: List[Dict[str, bool]] = []
        self.locals: Dict[Expr, int] = {}
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE

    def resolve(self, statements: List[Stmt]) -> Resolution:
        self.scopes = []
        self.locals = {}
        self.errors = []
        self.resolve_statements(statements)
        logger.debug("resolved %d local references, %d errors", len(self.locals), len(self.errors))
        return Resolution(self.locals, list(self.errors))

    def resolve_statements(self, statements: List[Stmt]):
        for stmt in statements:
            self.resolve_stmt(stmt)

    # --- Statements ---

    def resolve_stmt(self, stmt: Stmt):
        if isinstance(stmt, Block):
            self.begin_scope()
            self.resolve_statements(stmt.statements)
            self.end_scope()
            return

        if isinstance(stmt, Var):
            self.declare(stmt.name)
            if stmt.initializer is not None:
                self.resolve_expr(stmt.initializer)
            self.define(stmt.name)
            return

        if isinstance(stmt, Function):
            self.declare(stmt.name)
            self.define(stmt.name)
            self.resolve_function(stmt, FunctionType.FUNCTION)
            return

        if isinstance(stmt, Class):
            self.resolve_class(stmt)
            return

        if isinstance(stmt, Expression):
            self.resolve_expr(stmt.expression)
            return

        if isinstance(stmt, If):
            self.resolve_expr(stmt.condition)
            self.resolve_stmt(stmt.then_branch)
            if stmt.else_branch is not None:
                self.resolve_stmt(stmt.else_branch)
            return

        if isinstance(stmt, Print):
            self.resolve_expr(stmt.expression)
            return

        if isinstance(stmt, Return):
            if self.current_function == FunctionType.NONE:
                self.report_at(stmt.keyword, "Cannot return from top-level code.")
            if stmt.value is not None:
                if self.current_function == FunctionType.INITIALIZER:
                    self.report_at(stmt.keyword, "Cannot return a value from an initializer.")
                self.resolve_expr(stmt.value)
            return

        if isinstance(stmt, While):
            self.resolve_expr(stmt.condition)
            self.resolve_stmt(stmt.body)
            return

        if isinstance(stmt, Break):
            return

        raise TypeError(f"Unsupported statement: {type(stmt).__name__}")

    def resolve_class(self, stmt: Class):
        self.declare(stmt.name)
        self.define(stmt.name)

        enclosing_class = self.current_class
        self.current_class = ClassType.CLASS

        if stmt.superclass is not None:
            if stmt.superclass.name.lexeme == stmt.name.lexeme:
                self.report_at(stmt.superclass.name, "A class cannot inherit from itself.")
            self.current_class = ClassType.SUBCLASS
            self.resolve_expr(stmt.superclass)
            self.begin_scope()
            self.scopes[-1]["super"] = True

        for method in stmt.methods:
            self.begin_scope()
            self.scopes[-1]["this"] = True
            declaration = FunctionType.METHOD
            if method.name.lexeme == "init":
                declaration = FunctionType.INITIALIZER
            self.resolve_function(method, declaration)
            self.end_scope()

        if stmt.superclass is not None:
            self.end_scope()

        self.current_class = enclosing_class

    def resolve_function(self, function: Function, type_: FunctionType):
        enclosing_function = self.current_function
        self.current_function = type_

        self.begin_scope()
        for param in function.params:
            self.declare(param)
            self.define(param)
        self.resolve_statements(function.body)
        self.end_scope()

        self.current_function = enclosing_function

    # --- Expressions ---

    def resolve_expr(self, expr: Optional[Expr]):
        if expr is None:
            return

        if isinstance(expr, Variable):
            if self.scopes and self.scopes[-1].get(expr.name.lexeme) is False:
                self.report_at(expr.name, "Cannot read local variable in its own initializer.")
            self.resolve_local(expr, expr.name)
            return

        if isinstance(expr, Assign):
            self.resolve_expr(expr.value)
            self.resolve_local(expr, expr.name)
            return

        if isinstance(expr, (Binary, Logical)):
            self.resolve_expr(expr.left)
            self.resolve_expr(expr.right)
            return

        if isinstance(expr, Call):
            self.resolve_expr(expr.callee)
            for argument in expr.arguments:
                self.resolve_expr(argument)
            return

        if isinstance(expr, Conditional):
            self.resolve_expr(expr.condition)
            self.resolve_expr(expr.then_branch)
            self.resolve_expr(expr.else_branch)
            return

        if isinstance(expr, Get):
            self.resolve_expr(expr.obj)
            return

        if isinstance(expr, Set):
            self.resolve_expr(expr.value)
            self.resolve_expr(expr.obj)
            return

        if isinstance(expr, Grouping):
            self.resolve_expr(expr.expression)
            return

        if isinstance(expr, Unary):
            self.resolve_expr(expr.operand)
            return

        if isinstance(expr, This):
            if self.current_class == ClassType.NONE:
                self.report_at(expr.keyword, "Cannot use 'this' outside of a class.")
            else:
                self.resolve_local(expr, expr.keyword)
            return

        if isinstance(expr, Super):
            if self.current_class == ClassType.NONE:
                self.report_at(expr.keyword, "Cannot use 'super' outside of a class.")
            elif self.current_class != ClassType.SUBCLASS:
                self.report_at(expr.keyword, "Cannot use 'super' in a class with no superclass.")
            else:
                self.resolve_local(expr, expr.keyword)
            return

        if isinstance(expr, Interpolation):
            for part in expr.parts:
                self.resolve_expr(part)
            return

        if isinstance(expr, StringFormat):
            self.resolve_expr(expr.value)
            self.resolve_expr(expr.alignment)
            return

        if isinstance(expr, Literal):
            return

        raise TypeError(f"Unsupported expression: {type(expr).__name__}")

    # --- Scopes ---

    def begin_scope(self):
        self.scopes.append({})

    def end_scope(self):
        self.scopes.pop()

    def declare(self, name: Token):
        # Globals are not tracked.
        if not self.scopes:
            return
        scope = self.scopes[-1]
        if name.lexeme in scope:
            self.report_at(name, "Variable with this name already declared in this scope.")
        scope[name.lexeme] = False

    def define(self, name: Token):
        if not self.scopes:
            return
        self.scopes[-1][name.lexeme] = True

    def resolve_local(self, expr: Expr, name: Token):
        for hops, scope in enumerate(reversed(self.scopes)):
            if name.lexeme in scope:
                self.locals[expr] = hops
                return
        # Not found: assumed global.
