from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, Optional, Union

# ==================== TOKEN TYPES ====================

class TokenType(Enum):
    # Single-character tokens
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    LEFT_PAREN = auto()
    RIGHT_PAREN = auto()
    LEFT_BRACE = auto()
    RIGHT_BRACE = auto()
    LEFT_BRACKET = auto()
    RIGHT_BRACKET = auto()
    DOT = auto()
    COMMA = auto()
    SEMICOLON = auto()
    COLON = auto()
    QUESTION = auto()

    # One or two character tokens
    BANG = auto()
    BANG_EQUAL = auto()
    EQUAL = auto()
    EQUAL_EQUAL = auto()
    GREATER = auto()
    GREATER_EQUAL = auto()
    LESS = auto()
    LESS_EQUAL = auto()
    PLUS_PLUS = auto()
    MINUS_MINUS = auto()
    PLUS_EQUAL = auto()
    MINUS_EQUAL = auto()
    STAR_EQUAL = auto()
    SLASH_EQUAL = auto()
    OR = auto()
    AND = auto()

    # Bitwise
    BIT_AND = auto()
    BIT_OR = auto()
    BIT_XOR = auto()
    BIT_NOT = auto()
    SHIFT_LEFT = auto()
    SHIFT_RIGHT = auto()

    # Literals
    IDENTIFIER = auto()
    STRING = auto()
    NUMBER = auto()

    INTERPOLATION_START = auto()
    INTERPOLATION_END = auto()

    # Keywords
    TRUE = auto()
    FALSE = auto()
    NULL = auto()
    IF = auto()
    ELSE = auto()
    FOR = auto()
    WHILE = auto()
    BREAK = auto()
    RETURN = auto()
    CLASS = auto()
    SUPER = auto()
    THIS = auto()
    VAR = auto()
    FUNC = auto()
    PRINT = auto()

    EOF = auto()


# Compound assignment operator -> the binary operator it applies.
COMPOUND_OPERATORS: Dict[TokenType, TokenType] = {
    TokenType.PLUS_EQUAL:  TokenType.PLUS,
    TokenType.MINUS_EQUAL: TokenType.MINUS,
    TokenType.STAR_EQUAL:  TokenType.STAR,
    TokenType.SLASH_EQUAL: TokenType.SLASH,
}

# ==================== TOKENS ====================

Literal = Union[float, str, None]

@dataclass(frozen=True)
class Token:
    type: TokenType
    lexeme: str
    literal: Literal
    line: int

    def __str__(self) -> str:
        return f"{self.type.name} {self.lexeme} {self.literal}"

# ==================== KEYWORDS ====================

@dataclass(frozen=True)
class Keyword:
    type: TokenType
    # Statement keywords are the points where the parser resynchronizes.
    starts_statement: bool


KEYWORDS: Dict[str, Keyword] = {
    'else':   Keyword(TokenType.ELSE, False),
    'false':  Keyword(TokenType.FALSE, False),
    'true':   Keyword(TokenType.TRUE, False),
    'null':   Keyword(TokenType.NULL, False),
    'class':  Keyword(TokenType.CLASS, True),
    'for':    Keyword(TokenType.FOR, True),
    'func':   Keyword(TokenType.FUNC, True),
    'if':     Keyword(TokenType.IF, True),
    'print':  Keyword(TokenType.PRINT, True),
    'return': Keyword(TokenType.RETURN, True),
    'super':  Keyword(TokenType.SUPER, True),
    'this':   Keyword(TokenType.THIS, True),
    'var':    Keyword(TokenType.VAR, True),
    'while':  Keyword(TokenType.WHILE, True),
    'break':  Keyword(TokenType.BREAK, True),
}

STATEMENT_KEYWORDS = frozenset(k.type for k in KEYWORDS.values() if k.starts_statement)


def keyword_type(text: str) -> Optional[TokenType]:
    """Return the keyword token type for ``text``, or None for a plain identifier."""
    keyword = KEYWORDS.get(text)
    return keyword.type if keyword else None
