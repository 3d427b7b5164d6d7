from abc import ABC
from dataclasses import dataclass
from typing import Any, List, Optional

from .tokens import Token

# ==================== ABSTRACT SYNTAX TREE ====================
#
# Nodes compare and hash by identity: the resolver keys its distance table
# on the node object itself.

class Expr(ABC):
    """Base class for expression nodes."""
    pass


class Stmt(ABC):
    """Base class for statement nodes."""
    pass

# --- Expressions ---

@dataclass(eq=False)
class Assign(Expr):
    name: Token
    value: Expr

@dataclass(eq=False)
class Binary(Expr):
    left: Expr
    operator: Token
    right: Expr

@dataclass(eq=False)
class Call(Expr):
    callee: Expr
    paren: Token
    arguments: List[Expr]

@dataclass(eq=False)
class Conditional(Expr):
    condition: Expr
    then_branch: Expr
    else_branch: Expr

@dataclass(eq=False)
class Get(Expr):
    obj: Expr
    name: Token

@dataclass(eq=False)
class Grouping(Expr):
    expression: Expr

@dataclass(eq=False)
class Literal(Expr):
    value: Any

@dataclass(eq=False)
class Logical(Expr):
    left: Expr
    operator: Token
    right: Expr

@dataclass(eq=False)
class Set(Expr):
    obj: Expr
    name: Token
    value: Expr

@dataclass(eq=False)
class Super(Expr):
    keyword: Token
    method: Token

@dataclass(eq=False)
class This(Expr):
    keyword: Token

@dataclass(eq=False)
class Unary(Expr):
    operator: Token
    operand: Expr
    postfix: bool = False

@dataclass(eq=False)
class Variable(Expr):
    name: Token

@dataclass(eq=False)
class Interpolation(Expr):
    parts: List[Expr]

@dataclass(eq=False)
class StringFormat(Expr):
    brace: Token
    value: Expr
    alignment: Optional[Expr] = None
    format: Optional[Token] = None

# --- Statements ---

@dataclass(eq=False)
class Block(Stmt):
    statements: List[Stmt]

@dataclass(eq=False)
class Break(Stmt):
    keyword: Token

@dataclass(eq=False)
class Function(Stmt):
    name: Token
    params: List[Token]
    body: List[Stmt]

@dataclass(eq=False)
class Class(Stmt):
    name: Token
    superclass: Optional[Variable]
    methods: List[Function]

@dataclass(eq=False)
class Expression(Stmt):
    expression: Expr

@dataclass(eq=False)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt] = None

@dataclass(eq=False)
class Print(Stmt):
    expression: Expr

@dataclass(eq=False)
class Return(Stmt):
    keyword: Token
    value: Optional[Expr] = None

@dataclass(eq=False)
class Var(Stmt):
    name: Token
    initializer: Optional[Expr] = None

@dataclass(eq=False)
class While(Stmt):
    condition: Expr
    body: Stmt
