"""
Lexer for attribute annotations.

Tokenizes attribute source text into a flat stream of tokens. Token values
keep the raw source text so that parsed payloads can be printed back
exactly as written.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import List


class TokenType(Enum):
    # Words and literals
    IDENT = auto()
    LIFETIME = auto()    # 'a
    INT = auto()
    FLOAT = auto()
    STR = auto()
    BYTE_STR = auto()    # b"..."
    CHAR = auto()
    BYTE = auto()        # b'x'

    # Delimiters
    LPAREN = auto()      # (
    RPAREN = auto()      # )
    LBRACKET = auto()    # [
    RBRACKET = auto()    # ]
    LBRACE = auto()      # {
    RBRACE = auto()      # }

    # Punctuation
    LANGLE = auto()      # <
    RANGLE = auto()      # >
    EQUALS = auto()      # =
    COMMA = auto()       # ,
    DOT = auto()         # .
    DOTDOT = auto()      # ..
    COLON = auto()       # :
    PATHSEP = auto()     # ::
    SEMI = auto()        # ;
    ARROW = auto()       # ->
    FATARROW = auto()    # =>
    POUND = auto()       # #
    QUESTION = auto()    # ?
    AT = auto()          # @

    # Comparison operators
    EQ = auto()          # ==
    NEQ = auto()         # !=
    LTE = auto()         # <=
    GTE = auto()         # >=

    # Arithmetic and bitwise operators
    PLUS = auto()        # +
    MINUS = auto()       # -
    STAR = auto()        # *
    SLASH = auto()       # /
    PERCENT = auto()     # %
    CARET = auto()       # ^
    AMP = auto()         # &
    PIPE = auto()        # |
    BANG = auto()        # !
    SHL = auto()         # <<
    ANDAND = auto()      # &&
    OROR = auto()        # ||

    # Special
    EOF = auto()


# Human readable names used in error messages
TOKEN_DESCRIPTIONS = {
    TokenType.IDENT: "identifier",
    TokenType.LIFETIME: "lifetime",
    TokenType.INT: "integer literal",
    TokenType.FLOAT: "float literal",
    TokenType.STR: "string literal",
    TokenType.BYTE_STR: "byte string literal",
    TokenType.CHAR: "character literal",
    TokenType.BYTE: "byte literal",
    TokenType.EOF: "end of input",
}

PUNCTUATION = {
    '::': TokenType.PATHSEP,
    '->': TokenType.ARROW,
    '=>': TokenType.FATARROW,
    '==': TokenType.EQ,
    '!=': TokenType.NEQ,
    '<=': TokenType.LTE,
    '>=': TokenType.GTE,
    '<<': TokenType.SHL,
    '&&': TokenType.ANDAND,
    '||': TokenType.OROR,
    '..': TokenType.DOTDOT,
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    '[': TokenType.LBRACKET,
    ']': TokenType.RBRACKET,
    '{': TokenType.LBRACE,
    '}': TokenType.RBRACE,
    '<': TokenType.LANGLE,
    '>': TokenType.RANGLE,
    '=': TokenType.EQUALS,
    ',': TokenType.COMMA,
    '.': TokenType.DOT,
    ':': TokenType.COLON,
    ';': TokenType.SEMI,
    '#': TokenType.POUND,
    '?': TokenType.QUESTION,
    '@': TokenType.AT,
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '*': TokenType.STAR,
    '/': TokenType.SLASH,
    '%': TokenType.PERCENT,
    '^': TokenType.CARET,
    '&': TokenType.AMP,
    '|': TokenType.PIPE,
    '!': TokenType.BANG,
}

for _text, _type in PUNCTUATION.items():
    TOKEN_DESCRIPTIONS.setdefault(_type, f"`{_text}`")


def describe(token_type: TokenType) -> str:
    return TOKEN_DESCRIPTIONS[token_type]


@dataclass(frozen=True)
class Position:
    """Source position of a token, 1-based."""
    line: int
    column: int

    def __str__(self):
        return f"{self.line}:{self.column}"


@dataclass
class Token:
    type: TokenType
    value: str
    line: int
    column: int
    joint: bool = False  # no whitespace before the next punctuation

    @property
    def position(self) -> Position:
        return Position(self.line, self.column)

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


class LexerError(Exception):
    """Raised when lexer encounters invalid input."""
    def __init__(self, message: str, line: int, column: int):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(f"Line {line}, column {column}: {message}")


class Lexer:
    """Tokenizer for attribute annotations."""

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Token] = []

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source and return list of tokens."""
        while not self._at_end():
            self._scan_token()

        self.tokens.append(Token(TokenType.EOF, '', self.line, self.column))
        return self.tokens

    def _at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        pos = self.pos + offset
        if pos >= len(self.source):
            return '\0'
        return self.source[pos]

    def _advance(self) -> str:
        char = self.source[self.pos]
        self.pos += 1
        if char == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return char

    def _add_token(self, token_type: TokenType, value: str, line: int, column: int):
        self.tokens.append(Token(token_type, value, line, column))

    def _skip_whitespace(self):
        while not self._at_end():
            if self._peek() in ' \t\r\n':
                self._advance()
            elif self._peek() == '/' and self._peek(1) == '/':
                while not self._at_end() and self._peek() != '\n':
                    self._advance()
            else:
                break

    def _scan_token(self):
        self._skip_whitespace()

        if self._at_end():
            return

        start_line = self.line
        start_column = self.column
        char = self._peek()

        # Byte strings and byte literals
        if char == 'b' and self._peek(1) in '"\'':
            self._advance()
            quote = self._advance()
            if quote == '"':
                text = self._scan_quoted('"', start_line, start_column)
                self._add_token(TokenType.BYTE_STR, 'b' + text, start_line, start_column)
            else:
                text = self._scan_quoted("'", start_line, start_column)
                self._add_token(TokenType.BYTE, 'b' + text, start_line, start_column)
            return

        if char.isalpha() or char == '_':
            self._scan_identifier(start_line, start_column)
            return

        if char.isdigit():
            self._scan_number(start_line, start_column)
            return

        if char == '"':
            self._advance()
            text = self._scan_quoted('"', start_line, start_column)
            self._add_token(TokenType.STR, text, start_line, start_column)
            return

        if char == "'":
            self._scan_char_or_lifetime(start_line, start_column)
            return

        two = char + self._peek(1)
        if two in PUNCTUATION:
            self._advance()
            self._advance()
            self._add_token(PUNCTUATION[two], two, start_line, start_column)
            return

        if char in PUNCTUATION:
            self._advance()
            self._add_token(PUNCTUATION[char], char, start_line, start_column)
            # `>>` stays two tokens so nested generics can close one at a time
            if char == '>' and self._peek() == '>':
                self.tokens[-1].joint = True
            return

        raise LexerError(f"Unexpected character: {char!r}", start_line, start_column)

    def _scan_quoted(self, quote: str, start_line: int, start_column: int) -> str:
        """Scan up to the closing quote; the opening quote was consumed."""
        text = quote
        while not self._at_end() and self._peek() != quote:
            if self._peek() == '\\':
                text += self._advance()
                if self._at_end():
                    break
            text += self._advance()

        if self._at_end():
            kind = "string" if quote == '"' else "character literal"
            raise LexerError(f"Unterminated {kind}", start_line, start_column)

        return text + self._advance()

    def _scan_char_or_lifetime(self, start_line: int, start_column: int):
        self._advance()  # Opening '
        if self._peek() == '\\' or self._peek(1) == "'":
            text = self._scan_quoted("'", start_line, start_column)
            self._add_token(TokenType.CHAR, text, start_line, start_column)
            return

        if not (self._peek().isalpha() or self._peek() == '_'):
            raise LexerError("Invalid character literal", start_line, start_column)

        value = "'"
        while not self._at_end() and (self._peek().isalnum() or self._peek() == '_'):
            value += self._advance()
        self._add_token(TokenType.LIFETIME, value, start_line, start_column)

    def _scan_number(self, start_line: int, start_column: int):
        value = self._advance()
        token_type = TokenType.INT

        if value == '0' and self._peek() in 'xob':
            value += self._advance()
            digits = '0123456789abcdefABCDEF_' if value[-1] == 'x' else '0123456789_'
            while not self._at_end() and self._peek() in digits:
                value += self._advance()
        else:
            while not self._at_end() and (self._peek().isdigit() or self._peek() == '_'):
                value += self._advance()
            # A dot only makes a float when a digit follows (`1..2`, `x.0.1`)
            if self._peek() == '.' and self._peek(1).isdigit():
                token_type = TokenType.FLOAT
                value += self._advance()
                while not self._at_end() and (self._peek().isdigit() or self._peek() == '_'):
                    value += self._advance()
            if self._peek() in 'eE' and (self._peek(1).isdigit() or self._peek(1) in '+-'):
                token_type = TokenType.FLOAT
                value += self._advance()
                if self._peek() in '+-':
                    value += self._advance()
                while not self._at_end() and self._peek().isdigit():
                    value += self._advance()

        # Type suffix such as u8 or f32
        while not self._at_end() and (self._peek().isalnum() or self._peek() == '_'):
            value += self._advance()

        if value.endswith(('f32', 'f64')) and not value.startswith('0x'):
            token_type = TokenType.FLOAT

        self._add_token(token_type, value, start_line, start_column)

    def _scan_identifier(self, start_line: int, start_column: int):
        value = ''
        while not self._at_end() and (self._peek().isalnum() or self._peek() == '_'):
            value += self._advance()

        self._add_token(TokenType.IDENT, value, start_line, start_column)


def tokenize(source: str) -> List[Token]:
    """Convenience function to tokenize source code."""
    lexer = Lexer(source)
    return lexer.tokenize()
