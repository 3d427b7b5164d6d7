import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

from .errors import ErrorCallback, ErrorReporter, StaticError
from .tokens import Token, TokenType, keyword_type

logger = logging.getLogger(__name__)

# ==================== TOKEN SPECIFICATION ====================

OPERATORS = {
    '(': TokenType.LEFT_PAREN,
    ')': TokenType.RIGHT_PAREN,
    '{': TokenType.LEFT_BRACE,
    '}': TokenType.RIGHT_BRACE,
    '[': TokenType.LEFT_BRACKET,
    ']': TokenType.RIGHT_BRACKET,
    ',': TokenType.COMMA,
    '.': TokenType.DOT,
    ';': TokenType.SEMICOLON,
    ':': TokenType.COLON,
    '?': TokenType.QUESTION,
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '*': TokenType.STAR,
    '/': TokenType.SLASH,
    '!': TokenType.BANG,
    '=': TokenType.EQUAL,
    '<': TokenType.LESS,
    '>': TokenType.GREATER,
    '&': TokenType.BIT_AND,
    '|': TokenType.BIT_OR,
    '^': TokenType.BIT_XOR,
    '~': TokenType.BIT_NOT,
    '++': TokenType.PLUS_PLUS,
    '--': TokenType.MINUS_MINUS,
    '+=': TokenType.PLUS_EQUAL,
    '-=': TokenType.MINUS_EQUAL,
    '*=': TokenType.STAR_EQUAL,
    '/=': TokenType.SLASH_EQUAL,
    '!=': TokenType.BANG_EQUAL,
    '==': TokenType.EQUAL_EQUAL,
    '<=': TokenType.LESS_EQUAL,
    '>=': TokenType.GREATER_EQUAL,
    '<<': TokenType.SHIFT_LEFT,
    '>>': TokenType.SHIFT_RIGHT,
    '&&': TokenType.AND,
    '||': TokenType.OR,
}


class TokenSpec:
    """Ordered token patterns; earlier entries win on equal starting position."""

    def __init__(self):
        two_char = [op for op in OPERATORS if len(op) == 2]
        one_char = ''.join(op for op in OPERATORS if len(op) == 1)
        self.specs: List[Tuple[str, str]] = [
            ('NEWLINE',            r'\n'),
            ('WS',                 r'[ \t\r]+'),

            # Comments
            ('LINE_COMMENT',       r'//[^\n]*'),
            ('BLOCK_COMMENT',      r'/\*(?s:.*?)\*/'),
            ('OPEN_COMMENT',       r'/\*(?s:.*)'),

            # Literals
            ('INTERPOLATION',      r'\$"(?:\\(?s:.)|[^"\\])*"'),
            ('OPEN_INTERPOLATION', r'\$"(?s:.*)'),
            ('DOLLAR',             r'\$'),
            ('STRING',             r'"(?:\\(?s:.)|[^"\\])*"'),
            ('OPEN_STRING',        r'"(?s:.*)'),
            ('NUMBER',             r'[0-9]+(?:\.[0-9]+)?'),

            # Identifiers and keywords
            ('IDENT',              r'[A-Za-z_][A-Za-z0-9_]*'),

            # Operators, longest first
            ('OPERATOR',           '|'.join(map(re.escape, two_char)) + f'|[{re.escape(one_char)}]'),

            ('MISMATCH',           r'.'),
        ]

    def get_regex(self) -> Pattern:
        """Compile the token specification into a regex pattern."""
        return re.compile('|'.join(f'(?P<{k}>{p})' for k, p in self.specs))


_TOKEN_REGEX = TokenSpec().get_regex()

# ==================== SCANNER ====================

@dataclass
class ScanResult:
    tokens: List[Token]
    errors: List[StaticError]


class Scanner(ErrorReporter):
    """Converts source text into a flat list of tokens ending with EOF."""

    def __init__(self, on_error: Optional[ErrorCallback] = None):
        super().__init__(on_error)

    def scan(self, source: str) -> ScanResult:
        self.errors = []
        tokens, line = self.tokenize(source, 1)
        tokens.append(Token(TokenType.EOF, "", None, line))
        logger.debug("scanned %d tokens, %d errors", len(tokens), len(self.errors))
        return ScanResult(tokens, list(self.errors))

    def tokenize(self, source: str, line: int) -> Tuple[List[Token], int]:
        """Scan ``source`` starting at ``line``.

        Returns the tokens (without EOF) and the line the scan ended on.
        """
        tokens: List[Token] = []

        for m in _TOKEN_REGEX.finditer(source):
            kind = m.lastgroup
            value = m.group()

            if kind == 'NEWLINE':
                line += 1
                continue

            if kind in ('WS', 'LINE_COMMENT'):
                continue

            if kind == 'BLOCK_COMMENT':
                line += value.count('\n')
                continue

            if kind == 'OPEN_COMMENT':
                line += value.count('\n')
                self.report(line, "End-of-File found, '*/' expected")
                continue

            if kind in ('OPEN_STRING', 'OPEN_INTERPOLATION'):
                line += value.count('\n')
                self.report(line, "Unterminated string.")
                continue

            if kind == 'DOLLAR':
                self.report(line, "Expected '\"' after '$'.")
                continue

            if kind == 'MISMATCH':
                self.report(line, f"Unexpected character '{value}'.")
                continue

            if kind == 'STRING':
                tokens.append(Token(TokenType.STRING, value, value[1:-1], line))
                line += value.count('\n')
                continue

            if kind == 'INTERPOLATION':
                tokens.extend(InterpolationScanner(self).scan(value[2:-1], line))
                line += value.count('\n')
                continue

            if kind == 'NUMBER':
                tokens.append(Token(TokenType.NUMBER, value, float(value), line))
                continue

            if kind == 'IDENT':
                tokens.append(Token(keyword_type(value) or TokenType.IDENTIFIER, value, None, line))
                continue

            tokens.append(Token(OPERATORS[value], value, None, line))

        return tokens, line

# ==================== STRING INTERPOLATION ====================

class InterpolationScanner:
    """Splits the body of ``$"..."`` into literal runs and ``{...}`` segments.

    Literal runs become STRING tokens. Each segment, braces included, is
    re-scanned by the owning scanner so the parser sees ordinary tokens.
    ``{{`` and ``}}`` stand for literal braces.
    """

    def __init__(self, scanner: Scanner):
        self.scanner = scanner
        self.tokens: List[Token] = []
        self.text: List[str] = []
        self.text_line = 0

    def scan(self, body: str, line: int) -> List[Token]:
        self.tokens = [Token(TokenType.INTERPOLATION_START, '$"', None, line)]
        self.text = []
        i = 0

        while i < len(body):
            c = body[i]

            if c in '{}' and body[i + 1:i + 2] == c:
                self._add_text(c, line)
                i += 2
                continue

            if c == '{':
                self._flush_text()
                end = self._segment_end(body, i)
                if end is None:
                    self.scanner.report(line, "Unterminated interpolation segment.")
                    break
                segment, _ = self.scanner.tokenize(body[i:end], line)
                self.tokens.extend(segment)
                line += body.count('\n', i, end)
                i = end
                continue

            # Escapes are kept verbatim, the same as in plain strings.
            size = 2 if c == '\\' and i + 1 < len(body) else 1
            chunk = body[i:i + size]
            self._add_text(chunk, line)
            line += chunk.count('\n')
            i += size

        self._flush_text()
        self.tokens.append(Token(TokenType.INTERPOLATION_END, '"', None, line))
        return self.tokens

    def _add_text(self, chunk: str, line: int):
        if not self.text:
            self.text_line = line
        self.text.append(chunk)

    def _flush_text(self):
        if self.text:
            literal = ''.join(self.text)
            self.tokens.append(Token(TokenType.STRING, literal, literal, self.text_line))
            self.text = []

    @staticmethod
    def _segment_end(body: str, start: int) -> Optional[int]:
        """Index just past the ``}`` that closes the segment opened at ``start``."""
        depth = 0
        for i in range(start, len(body)):
            if body[i] == '{':
                depth += 1
            elif body[i] == '}':
                depth -= 1
                if depth == 0:
                    return i + 1
        return None
