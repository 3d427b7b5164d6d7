import copy
import logging
from dataclasses import dataclass
from typing import List, Optional

from .errors import ErrorCallback, ErrorReporter, ParseError, StaticError
from .nodes import (
    Assign, Binary, Block, Break, Call, Class, Conditional, Expr, Expression,
    Function, Get, Grouping, If, Interpolation, Literal, Logical, Print,
    Return, Set, Stmt, StringFormat, Super, This, Unary, Var, Variable, While,
)
from .tokens import COMPOUND_OPERATORS, STATEMENT_KEYWORDS, Token, TokenType

logger = logging.getLogger(__name__)

MAX_PARAMETERS = 8
MAX_ARGUMENTS = 8

# ==================== PARSING ====================
#
#  expression  -> comma
#  comma       -> assignment ( "," assignment )*
#  assignment  -> conditional ( ( "=" | "+=" | "-=" | "*=" | "/=" ) assignment )?
#  conditional -> logic_or ( "?" expression ":" conditional )?
#  logic_or    -> logic_and ( "||" logic_and )*
#  logic_and   -> equality ( "&&" equality )*
#  equality    -> comparison ( ( "!=" | "==" ) comparison )*
#  comparison  -> bitwise ( ( ">" | ">=" | "<" | "<=" ) bitwise )*
#  bitwise     -> term ( ( "&" | "|" | "^" | "<<" | ">>" ) term )*
#  term        -> factor ( ( "-" | "+" ) factor )*
#  factor      -> unary ( ( "/" | "*" ) unary )*
#  unary       -> ( "!" | "-" | "~" | "++" | "--" ) unary | postfix
#  postfix     -> call ( "++" | "--" )?
#  call        -> primary ( "(" arguments? ")" | "." IDENTIFIER )*
#  primary     -> NUMBER | STRING | "true" | "false" | "null" | "this"
#              | IDENTIFIER | "super" "." IDENTIFIER | "(" expression ")"
#              | interpolation

@dataclass
class ParseResult:
    statements: List[Stmt]
    errors: List[StaticError]


class Parser(ErrorReporter):
    """Recursive-descent parser turning tokens into statements."""

    def __init__(self, on_error: Optional[ErrorCallback] = None):
        super().__init__(on_error)
        self.tokens: List[Token] = []
        self.i = 0
        self.loop_depth = 0

    def parse(self, tokens: List[Token]) -> ParseResult:
        self.tokens = tokens
        self.i = 0
        self.loop_depth = 0
        self.errors = []

        statements = []
        while not self.is_at_end():
            stmt = self.declaration()
            if stmt is not None:
                statements.append(stmt)

        logger.debug("parsed %d statements, %d errors", len(statements), len(self.errors))
        return ParseResult(statements, list(self.errors))

    # --- Declarations ---

    def declaration(self) -> Optional[Stmt]:
        try:
            if self.match(TokenType.CLASS):
                return self.class_declaration()
            if self.match(TokenType.FUNC):
                return self.function("function")
            if self.match(TokenType.VAR):
                return self.var_declaration()
            return self.statement()
        except ParseError:
            self.synchronize()
            return None

    def class_declaration(self) -> Class:
        name = self.expect(TokenType.IDENTIFIER, "Expect class name.")

        superclass = None
        if self.match(TokenType.LESS):
            self.expect(TokenType.IDENTIFIER, "Expect superclass name.")
            superclass = Variable(self.previous())

        self.expect(TokenType.LEFT_BRACE, "Expect '{' before class body.")
        methods = []
        while not self.check(TokenType.RIGHT_BRACE) and not self.is_at_end():
            methods.append(self.function("method"))
        self.expect(TokenType.RIGHT_BRACE, "Expect '}' after class body.")

        return Class(name, superclass, methods)

    def function(self, kind: str) -> Function:
        name = self.expect(TokenType.IDENTIFIER, f"Expect {kind} name.")
        self.expect(TokenType.LEFT_PAREN, f"Expect '(' after {kind} name.")
        params: List[Token] = []
        if not self.check(TokenType.RIGHT_PAREN):
            while True:
                if len(params) >= MAX_PARAMETERS:
                    self.error(self.peek(), f"Cannot have more than {MAX_PARAMETERS} parameters.")
                params.append(self.expect(TokenType.IDENTIFIER, "Expect parameter name."))
                if not self.match(TokenType.COMMA):
                    break
        self.expect(TokenType.RIGHT_PAREN, "Expect ')' after parameters.")

        # A function body starts outside of any loop.
        enclosing_depth, self.loop_depth = self.loop_depth, 0
        try:
            body = self.block()
        finally:
            self.loop_depth = enclosing_depth
        return Function(name, params, body)

    def var_declaration(self) -> Var:
        name = self.expect(TokenType.IDENTIFIER, "Expect variable name.")
        initializer = None
        if self.match(TokenType.EQUAL):
            initializer = self.expression()
        self.expect(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return Var(name, initializer)

    # --- Statements ---

    def statement(self) -> Stmt:
        if self.match(TokenType.BREAK):
            return self.break_statement()
        if self.match(TokenType.FOR):
            return self.for_statement()
        if self.match(TokenType.IF):
            return self.if_statement()
        if self.match(TokenType.PRINT):
            return self.print_statement()
        if self.match(TokenType.RETURN):
            return self.return_statement()
        if self.match(TokenType.WHILE):
            return self.while_statement()
        if self.check(TokenType.LEFT_BRACE):
            return Block(self.block())
        return self.expression_statement()

    def break_statement(self) -> Break:
        keyword = self.previous()
        if self.loop_depth == 0:
            self.error(keyword, "Must be inside a loop to use 'break'.")
        self.expect(TokenType.SEMICOLON, "Expect ';' after 'break'.")
        return Break(keyword)

    def for_statement(self) -> Stmt:
        self.expect(TokenType.LEFT_PAREN, "Expect '(' after 'for'.")

        if self.match(TokenType.SEMICOLON):
            initializer = None
        elif self.match(TokenType.VAR):
            initializer = self.var_declaration()
        else:
            initializer = self.expression_statement()

        condition = None
        if not self.check(TokenType.SEMICOLON):
            condition = self.expression()
        self.expect(TokenType.SEMICOLON, "Expect ';' after loop condition.")

        increment = None
        if not self.check(TokenType.RIGHT_PAREN):
            increment = self.expression()
        self.expect(TokenType.RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self.loop_body()

        # Desugar into a while loop.
        if increment is not None:
            body = Block([body, Expression(increment)])
        if condition is None:
            condition = Literal(True)
        body = While(condition, body)
        if initializer is not None:
            body = Block([initializer, body])
        return body

    def if_statement(self) -> If:
        self.expect(TokenType.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self.expression()
        self.expect(TokenType.RIGHT_PAREN, "Expect ')' after if condition.")

        then_branch = self.statement()
        else_branch = None
        if self.match(TokenType.ELSE):
            else_branch = self.statement()
        return If(condition, then_branch, else_branch)

    def print_statement(self) -> Print:
        value = self.expression()
        self.expect(TokenType.SEMICOLON, "Expect ';' after value.")
        return Print(value)

    def return_statement(self) -> Return:
        keyword = self.previous()
        value = None
        if not self.check(TokenType.SEMICOLON):
            value = self.expression()
        self.expect(TokenType.SEMICOLON, "Expect ';' after return value.")
        return Return(keyword, value)

    def while_statement(self) -> While:
        self.expect(TokenType.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self.expression()
        self.expect(TokenType.RIGHT_PAREN, "Expect ')' after condition.")
        return While(condition, self.loop_body())

    def loop_body(self) -> Stmt:
        self.loop_depth += 1
        try:
            return self.statement()
        finally:
            self.loop_depth -= 1

    def block(self) -> List[Stmt]:
        self.expect(TokenType.LEFT_BRACE, "Expect '{' before block.")
        statements = []
        while not self.check(TokenType.RIGHT_BRACE) and not self.is_at_end():
            stmt = self.declaration()
            if stmt is not None:
                statements.append(stmt)
        self.expect(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    def expression_statement(self) -> Expression:
        expr = self.expression()
        self.expect(TokenType.SEMICOLON, "Expect ';' after expression.")
        return Expression(expr)

    # --- Expressions ---

    def expression(self) -> Expr:
        return self.comma()

    def comma(self) -> Expr:
        expr = self.assignment()
        while self.match(TokenType.COMMA):
            operator = self.previous()
            right = self.assignment()
            expr = Binary(expr, operator, right)
        return expr

    def assignment(self) -> Expr:
        expr = self.conditional()

        if self.match(TokenType.EQUAL):
            equals = self.previous()
            value = self.assignment()
            return self.assignment_target(expr, equals, value)

        if self.match(*COMPOUND_OPERATORS):
            equals = self.previous()
            value = self.assignment()
            operator = Token(COMPOUND_OPERATORS[equals.type], equals.lexeme[:-1], None, equals.line)
            # The target is read again on the right; copy it so the tree stays strict.
            return self.assignment_target(expr, equals, Binary(copy.deepcopy(expr), operator, value))

        return expr

    def assignment_target(self, target: Expr, equals: Token, value: Expr) -> Expr:
        if isinstance(target, Variable):
            return Assign(target.name, value)
        if isinstance(target, Get):
            return Set(target.obj, target.name, value)
        self.error(equals, "Invalid assignment target.")
        return target

    def conditional(self) -> Expr:
        expr = self.logic_or()
        if self.match(TokenType.QUESTION):
            then_branch = self.expression()
            self.expect(TokenType.COLON, "Expect ':' after then branch of conditional expression.")
            else_branch = self.conditional()
            expr = Conditional(expr, then_branch, else_branch)
        return expr

    def logic_or(self) -> Expr:
        expr = self.logic_and()
        while self.match(TokenType.OR):
            operator = self.previous()
            expr = Logical(expr, operator, self.logic_and())
        return expr

    def logic_and(self) -> Expr:
        expr = self.equality()
        while self.match(TokenType.AND):
            operator = self.previous()
            expr = Logical(expr, operator, self.equality())
        return expr

    def equality(self) -> Expr:
        return self.binary(self.comparison, TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL)

    def comparison(self) -> Expr:
        return self.binary(self.bitwise, TokenType.GREATER, TokenType.GREATER_EQUAL,
                           TokenType.LESS, TokenType.LESS_EQUAL)

    def bitwise(self) -> Expr:
        return self.binary(self.term, TokenType.BIT_AND, TokenType.BIT_OR, TokenType.BIT_XOR,
                           TokenType.SHIFT_LEFT, TokenType.SHIFT_RIGHT)

    def term(self) -> Expr:
        return self.binary(self.factor, TokenType.MINUS, TokenType.PLUS)

    def factor(self) -> Expr:
        return self.binary(self.unary, TokenType.SLASH, TokenType.STAR)

    def binary(self, operand, *operators: TokenType) -> Expr:
        """Left-associative chain of ``operand`` joined by any of ``operators``."""
        expr = operand()
        while self.match(*operators):
            operator = self.previous()
            expr = Binary(expr, operator, operand())
        return expr

    def unary(self) -> Expr:
        if self.match(TokenType.BANG, TokenType.MINUS, TokenType.BIT_NOT,
                      TokenType.PLUS_PLUS, TokenType.MINUS_MINUS):
            operator = self.previous()
            return Unary(operator, self.unary())
        if self.match(TokenType.PLUS):
            raise self.error(self.previous(), "Unary '+' not supported.")
        return self.postfix()

    def postfix(self) -> Expr:
        expr = self.call()
        if self.match(TokenType.PLUS_PLUS, TokenType.MINUS_MINUS):
            expr = Unary(self.previous(), expr, postfix=True)
        return expr

    def call(self) -> Expr:
        expr = self.primary()
        while True:
            if self.match(TokenType.LEFT_PAREN):
                expr = self.finish_call(expr)
            elif self.match(TokenType.DOT):
                name = self.expect(TokenType.IDENTIFIER, "Expect property name after '.'.")
                expr = Get(expr, name)
            else:
                break
        return expr

    def finish_call(self, callee: Expr) -> Call:
        arguments: List[Expr] = []
        if not self.check(TokenType.RIGHT_PAREN):
            while True:
                if len(arguments) >= MAX_ARGUMENTS:
                    self.error(self.peek(), f"Cannot have more than {MAX_ARGUMENTS} arguments.")
                arguments.append(self.assignment())
                if not self.match(TokenType.COMMA):
                    break
        paren = self.expect(TokenType.RIGHT_PAREN, "Expect ')' after arguments.")
        return Call(callee, paren, arguments)

    def primary(self) -> Expr:
        if self.match(TokenType.FALSE):
            return Literal(False)
        if self.match(TokenType.TRUE):
            return Literal(True)
        if self.match(TokenType.NULL):
            return Literal(None)
        if self.match(TokenType.NUMBER, TokenType.STRING):
            return Literal(self.previous().literal)

        if self.match(TokenType.SUPER):
            keyword = self.previous()
            self.expect(TokenType.DOT, "Expect '.' after 'super'.")
            method = self.expect(TokenType.IDENTIFIER, "Expect superclass method name.")
            return Super(keyword, method)

        if self.match(TokenType.THIS):
            return This(self.previous())

        if self.match(TokenType.IDENTIFIER):
            return Variable(self.previous())

        if self.match(TokenType.INTERPOLATION_START):
            return self.interpolation()

        if self.match(TokenType.LEFT_PAREN):
            expr = self.expression()
            self.expect(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(expr)

        raise self.error(self.peek(), "Expect expression.")

    def interpolation(self) -> Interpolation:
        parts: List[Expr] = []
        while not self.check(TokenType.INTERPOLATION_END) and not self.is_at_end():
            if self.match(TokenType.STRING):
                parts.append(Literal(self.previous().literal))
                continue

            brace = self.expect(TokenType.LEFT_BRACE, "Expect '{' or text in interpolated string.")
            value = self.assignment()
            alignment = None
            if self.match(TokenType.COMMA):
                alignment = self.assignment()
            format_code = None
            if self.match(TokenType.COLON):
                format_code = self.expect(TokenType.IDENTIFIER, "Expect format specifier after ':'.")
            self.expect(TokenType.RIGHT_BRACE, "Expect '}' after interpolation segment.")
            parts.append(StringFormat(brace, value, alignment, format_code))

        self.expect(TokenType.INTERPOLATION_END, "Unterminated interpolated string.")
        return Interpolation(parts)

    # --- Token helpers ---

    def match(self, *types: TokenType) -> bool:
        for type_ in types:
            if self.check(type_):
                self.advance()
                return True
        return False

    def check(self, type_: TokenType) -> bool:
        if self.is_at_end():
            return False
        return self.peek().type == type_

    def advance(self) -> Token:
        if not self.is_at_end():
            self.i += 1
        return self.previous()

    def is_at_end(self) -> bool:
        return self.peek().type == TokenType.EOF

    def peek(self) -> Token:
        return self.tokens[self.i]

    def previous(self) -> Token:
        return self.tokens[self.i - 1]

    def expect(self, type_: TokenType, message: str) -> Token:
        if self.check(type_):
            return self.advance()
        raise self.error(self.peek(), message)

    def error(self, token: Token, message: str) -> ParseError:
        """Report an error; the caller decides whether to raise the result."""
        self.report_at(token, message)
        return ParseError(message)

    def synchronize(self):
        """Discard tokens until a likely statement boundary."""
        self.advance()
        while not self.is_at_end():
            if self.previous().type == TokenType.SEMICOLON:
                return
            if self.peek().type in STATEMENT_KEYWORDS:
                return
            self.advance()
