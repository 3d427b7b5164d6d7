from typing import List

from .nodes import (
    Assign, Binary, Block, Break, Call, Class, Conditional, Expr, Expression,
    Function, Get, Grouping, If, Interpolation, Literal, Logical, Print,
    Return, Set, Stmt, StringFormat, Super, This, Unary, Var, Variable, While,
)
from .runtime import format_number

INDENT = "    "

# ==================== SOURCE PRINTER ====================
#
# Every compound expression is printed inside its own parentheses, so the
# output never depends on operator precedence. Reading the output back
# yields Grouping nodes around those expressions; a Grouping whose inner
# expression is already parenthesized prints nothing extra, which makes
# printing stable after one round trip.

class SourcePrinter:
    """Turns a parsed program back into Cox source text."""

    def __init__(self):
        self.depth = 0

    def program(self, statements: List[Stmt]) -> str:
        self.depth = 0
        return ''.join(self.stmt(stmt) for stmt in statements)

    # --- Statements ---

    def line(self, text: str) -> str:
        return f"{INDENT * self.depth}{text}\n"

    def stmt(self, stmt: Stmt) -> str:
        if isinstance(stmt, Expression):
            return self.line(f"{self.expr(stmt.expression)};")

        if isinstance(stmt, Print):
            return self.line(f"print {self.expr(stmt.expression)};")

        if isinstance(stmt, Var):
            if stmt.initializer is None:
                return self.line(f"var {stmt.name.lexeme};")
            return self.line(f"var {stmt.name.lexeme} = {self.expr(stmt.initializer)};")

        if isinstance(stmt, Block):
            return self.line("{") + self.body(stmt.statements) + self.line("}")

        if isinstance(stmt, If):
            then_branch = stmt.then_branch
            if stmt.else_branch is not None and isinstance(then_branch, If) and then_branch.else_branch is None:
                # Keep the else attached to this if, not the inner one.
                then_branch = Block([then_branch])
            text = self.line(f"if ({self.expr(stmt.condition)})") + self.nested(then_branch)
            if stmt.else_branch is not None:
                text += self.line("else") + self.nested(stmt.else_branch)
            return text

        if isinstance(stmt, While):
            return self.line(f"while ({self.expr(stmt.condition)})") + self.nested(stmt.body)

        if isinstance(stmt, Break):
            return self.line("break;")

        if isinstance(stmt, Return):
            if stmt.value is None:
                return self.line("return;")
            return self.line(f"return {self.expr(stmt.value)};")

        if isinstance(stmt, Function):
            return self.function(stmt, "func ")

        if isinstance(stmt, Class):
            header = f"class {stmt.name.lexeme}"
            if stmt.superclass is not None:
                header += f" < {stmt.superclass.name.lexeme}"
            text = self.line(header + " {")
            self.depth += 1
            for method in stmt.methods:
                text += self.function(method, "")
            self.depth -= 1
            return text + self.line("}")

        raise TypeError(f"Unsupported statement: {type(stmt).__name__}")

    def function(self, stmt: Function, prefix: str) -> str:
        params = ', '.join(param.lexeme for param in stmt.params)
        text = self.line(f"{prefix}{stmt.name.lexeme}({params}) {{")
        return text + self.body(stmt.body) + self.line("}")

    def body(self, statements: List[Stmt]) -> str:
        self.depth += 1
        text = ''.join(self.stmt(stmt) for stmt in statements)
        self.depth -= 1
        return text

    def nested(self, stmt: Stmt) -> str:
        if isinstance(stmt, Block):
            return self.stmt(stmt)
        self.depth += 1
        text = self.stmt(stmt)
        self.depth -= 1
        return text

    # --- Expressions ---

    def expr(self, expr: Expr) -> str:
        if isinstance(expr, Literal):
            return literal_source(expr.value)

        if isinstance(expr, Grouping):
            inner = self.expr(expr.expression)
            if is_parenthesized(expr.expression):
                return inner
            return f"({inner})"

        if isinstance(expr, Variable):
            return expr.name.lexeme

        if isinstance(expr, Assign):
            return f"({expr.name.lexeme} = {self.expr(expr.value)})"

        if isinstance(expr, Binary):
            if expr.operator.lexeme == ",":
                return f"({self.expr(expr.left)}, {self.expr(expr.right)})"
            return f"({self.expr(expr.left)} {expr.operator.lexeme} {self.expr(expr.right)})"

        if isinstance(expr, Logical):
            return f"({self.expr(expr.left)} {expr.operator.lexeme} {self.expr(expr.right)})"

        if isinstance(expr, Conditional):
            return (f"({self.expr(expr.condition)} ? {self.expr(expr.then_branch)}"
                    f" : {self.expr(expr.else_branch)})")

        if isinstance(expr, Unary):
            if expr.postfix:
                return f"({self.expr(expr.operand)}{expr.operator.lexeme})"
            return f"({expr.operator.lexeme}{self.expr(expr.operand)})"

        if isinstance(expr, Call):
            arguments = ', '.join(self.expr(argument) for argument in expr.arguments)
            return f"{self.expr(expr.callee)}({arguments})"

        if isinstance(expr, Get):
            return f"{self.expr(expr.obj)}.{expr.name.lexeme}"

        if isinstance(expr, Set):
            return f"({self.expr(expr.obj)}.{expr.name.lexeme} = {self.expr(expr.value)})"

        if isinstance(expr, This):
            return "this"

        if isinstance(expr, Super):
            return f"super.{expr.method.lexeme}"

        if isinstance(expr, Interpolation):
            return '$"' + ''.join(self.interpolation_part(part) for part in expr.parts) + '"'

        raise TypeError(f"Unsupported expression: {type(expr).__name__}")

    def interpolation_part(self, part: Expr) -> str:
        if isinstance(part, StringFormat):
            text = self.expr(part.value)
            if part.alignment is not None:
                text += f", {self.expr(part.alignment)}"
            if part.format is not None:
                text += f":{part.format.lexeme}"
            return "{" + text + "}"
        if isinstance(part, Literal) and isinstance(part.value, str):
            return part.value.replace("{", "{{").replace("}", "}}")
        return "{" + self.expr(part) + "}"


def is_parenthesized(expr: Expr) -> bool:
    """True when ``SourcePrinter.expr`` already wraps ``expr`` in parentheses."""
    return isinstance(expr, (Assign, Binary, Logical, Conditional, Unary, Set))


def literal_source(value) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format_number(value)
    return f'"{value}"'


def to_source(statements: List[Stmt]) -> str:
    return SourcePrinter().program(statements)
