"""
Payload grammars: identifiers, literals, types and expressions.

Each payload records the token trees it was parsed from, so it can be
spliced back into a token stream unchanged.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from .meta_ast import (
    Literal, LitKind, TypeExpr, PathType, PathSegment, ReferenceType, PointerType,
    ArrayType, SliceType, TupleType, InferType, LifetimeArg, GenericArg,
)
from .meta_ast import Expr as ExprNode
from .meta_cursor import ErrorKind, ParseStream, describe_tree
from .meta_expr import LITERAL_TYPES, decode_literal, parse_expr
from .meta_lexer import Position, Token, TokenType
from .meta_tokens import Delimiter, TokenStream


# Words that cannot be used as a plain identifier
RESERVED_WORDS = {
    'as', 'break', 'const', 'continue', 'crate', 'else', 'enum', 'extern',
    'false', 'fn', 'for', 'if', 'impl', 'in', 'let', 'loop', 'match', 'mod',
    'move', 'mut', 'pub', 'ref', 'return', 'self', 'Self', 'static', 'struct',
    'super', 'trait', 'true', 'type', 'unsafe', 'use', 'where', 'while',
}


def _ends_operand(tree) -> bool:
    if tree is None:
        return False
    if not isinstance(tree, Token):
        return True
    return tree.type in LITERAL_TYPES or tree.type in (TokenType.IDENT, TokenType.QUESTION)


def _is_literal(tree) -> bool:
    if not isinstance(tree, Token):
        return False
    if tree.type in LITERAL_TYPES:
        return True
    return tree.type == TokenType.IDENT and tree.value in ('true', 'false')


# =============================================================================
# Identifiers
# =============================================================================

@dataclass(frozen=True)
class Ident:
    name: str
    position: Position = field(default=Position(0, 0), compare=False)

    @classmethod
    def parse(cls, input: ParseStream) -> 'Ident':
        tree = input.current()
        if not input.peek(TokenType.IDENT) or tree.value in RESERVED_WORDS:
            raise input.error(f"expected identifier, found {describe_tree(tree)}",
                              ErrorKind.MALFORMED_ITEM)
        token = input.advance()
        return cls(token.value, token.position)

    def to_tokens(self, tokens: TokenStream):
        tokens.append(Token(TokenType.IDENT, self.name, self.position.line, self.position.column))

    def __str__(self):
        return self.name


# =============================================================================
# Literals
# =============================================================================

@dataclass(frozen=True)
class Lit:
    """A literal such as ``3u8``, ``b"TEST"`` or ``true``."""
    kind: LitKind
    value: Any
    suffix: str = ""
    token: Optional[Token] = field(default=None, compare=False, repr=False)

    @classmethod
    def parse(cls, input: ParseStream) -> 'Lit':
        if not _is_literal(input.current()):
            raise input.error(f"expected literal, found {describe_tree(input.current())}",
                              ErrorKind.MALFORMED_ITEM)
        token = input.advance()
        literal = decode_literal(token)
        return cls(literal.kind, literal.value, literal.suffix, token)

    @property
    def position(self) -> Position:
        return self.token.position if self.token else Position(0, 0)

    def to_literal(self) -> Literal:
        return Literal(self.kind, self.value, self.suffix, self.position.line, self.position.column)

    def to_tokens(self, tokens: TokenStream):
        tokens.append(self.token or Token(_LIT_TOKEN_TYPES[self.kind], self._text(), 0, 0))

    def _text(self) -> str:
        if self.kind == LitKind.BOOL:
            return 'true' if self.value else 'false'
        if self.kind in (LitKind.INT, LitKind.FLOAT):
            return f"{self.value}{self.suffix}"
        if self.kind == LitKind.BYTE_STR:
            return 'b"' + ''.join(_escape_char(chr(b)) for b in self.value) + '"'
        if self.kind == LitKind.BYTE:
            return "b'" + _escape_char(chr(self.value)) + "'"
        if self.kind == LitKind.CHAR:
            return "'" + _escape_char(self.value) + "'"
        return '"' + ''.join(_escape_char(c) for c in self.value) + '"'


_LIT_TOKEN_TYPES = {
    LitKind.INT: TokenType.INT,
    LitKind.FLOAT: TokenType.FLOAT,
    LitKind.STR: TokenType.STR,
    LitKind.BYTE_STR: TokenType.BYTE_STR,
    LitKind.CHAR: TokenType.CHAR,
    LitKind.BYTE: TokenType.BYTE,
    LitKind.BOOL: TokenType.IDENT,
}


def _escape_char(char: str) -> str:
    escapes = {'\n': '\\n', '\t': '\\t', '\r': '\\r', '\0': '\\0',
               '\\': '\\\\', '"': '\\"', "'": "\\'"}
    if char in escapes:
        return escapes[char]
    if not char.isprintable():
        return f"\\x{ord(char):02x}"
    return char


# =============================================================================
# Types
# =============================================================================

def _eat_word(input: ParseStream, word: str) -> bool:
    tree = input.current()
    if input.peek(TokenType.IDENT) and tree.value == word:
        input.advance()
        return True
    return False


def _parse_type(input: ParseStream) -> TypeExpr:
    """Parse a type: reference, pointer, tuple, array, slice, _ or path."""
    tree = input.current()

    if input.peek(TokenType.AMP):
        amp = input.advance()
        lifetime = input.advance().value if input.peek(TokenType.LIFETIME) else None
        mutable = _eat_word(input, 'mut')
        return ReferenceType(_parse_type(input), mutable, lifetime, amp.line, amp.column)

    if input.peek(TokenType.STAR):
        star = input.advance()
        if _eat_word(input, 'mut'):
            mutable = True
        elif _eat_word(input, 'const'):
            mutable = False
        else:
            raise input.error(f"expected `const` or `mut` after `*`, found {describe_tree(input.current())}",
                              ErrorKind.MALFORMED_ITEM)
        return PointerType(_parse_type(input), mutable, star.line, star.column)

    if input.peek(Delimiter.PAREN):
        content = input.parenthesized()
        elems = []
        trailing_comma = False
        while not content.is_empty():
            elems.append(_parse_type(content))
            trailing_comma = False
            if content.is_empty():
                break
            content.expect(TokenType.COMMA, " in tuple type", ErrorKind.MALFORMED_ITEM)
            trailing_comma = True
        # `(T)` is just T in parentheses
        if len(elems) == 1 and not trailing_comma:
            return elems[0]
        return TupleType(elems, tree.line, tree.column)

    if input.peek(Delimiter.BRACKET):
        content = input.bracketed()
        elem = _parse_type(content)
        if content.peek(TokenType.SEMI):
            content.advance()
            length = Expr.parse(content)
            content.expect_end()
            return ArrayType(elem, length.node, tree.line, tree.column)
        content.expect_end()
        return SliceType(elem, tree.line, tree.column)

    if input.peek(TokenType.IDENT) and tree.value == '_':
        input.advance()
        return InferType(tree.line, tree.column)

    if (input.peek(TokenType.IDENT) and tree.value not in RESERVED_WORDS - {'Self', 'self', 'crate', 'super'}) \
            or input.peek(TokenType.PATHSEP):
        return _parse_path_type(input)

    raise input.error(f"expected type, found {describe_tree(tree)}", ErrorKind.MALFORMED_ITEM)


def _parse_path_type(input: ParseStream) -> PathType:
    """Parse a path type: NAME or a::b::NAME<ARGS>"""
    start = input.position()
    leading_colon = False
    if input.peek(TokenType.PATHSEP):
        input.advance()
        leading_colon = True

    segments = []
    while True:
        name = input.expect(TokenType.IDENT, " in type path", ErrorKind.MALFORMED_ITEM)
        args: List[GenericArg] = []
        if input.peek(TokenType.LANGLE):
            input.advance()
            args = _parse_generic_args(input)
        segments.append(PathSegment(name.value, args))
        if not input.peek(TokenType.PATHSEP):
            break
        input.advance()

    return PathType(segments, leading_colon, start.line, start.column)


def _parse_generic_args(input: ParseStream) -> List[GenericArg]:
    """Parse generic arguments up to and including the closing `>`."""
    args: List[GenericArg] = []
    while not input.peek(TokenType.RANGLE):
        if input.peek(TokenType.LIFETIME):
            args.append(LifetimeArg(input.advance().value))
        elif _is_literal(input.current()):
            args.append(decode_literal(input.advance()))
        else:
            args.append(_parse_type(input))
        if not input.peek(TokenType.COMMA):
            break
        input.advance()

    input.expect(TokenType.RANGLE, " to close generic arguments", ErrorKind.MALFORMED_ITEM)
    return args


@dataclass(frozen=True)
class Type:
    """A type such as ``u8``, ``[T; 3]`` or ``&'a Vec<u8>``."""
    node: TypeExpr
    tokens: TokenStream = field(default_factory=TokenStream, compare=False, repr=False)

    @classmethod
    def parse(cls, input: ParseStream) -> 'Type':
        mark = input.mark()
        node = _parse_type(input)
        return cls(node, input.consumed_since(mark))

    @property
    def position(self) -> Position:
        return Position(self.node.line, self.node.column)

    def to_tokens(self, tokens: TokenStream):
        tokens.extend(self.tokens)

    def __str__(self):
        return str(self.tokens)


# =============================================================================
# Expressions
# =============================================================================

@dataclass(frozen=True)
class Expr:
    """An expression such as ``count * 2`` or ``|x| x.into()``."""
    node: ExprNode
    tokens: TokenStream = field(default_factory=TokenStream, compare=False, repr=False)

    @classmethod
    def parse(cls, input: ParseStream) -> 'Expr':
        """Parse the trees up to the next top-level comma as one expression."""
        mark = input.mark()
        last = None
        while not input.is_empty() and not input.peek(TokenType.COMMA):
            # A `|` that does not follow an operand opens closure parameters,
            # whose commas do not end the expression
            if input.peek(TokenType.PIPE) and not _ends_operand(last):
                input.advance()
                while not input.is_empty() and not input.peek(TokenType.PIPE):
                    input.advance()
                if input.is_empty():
                    break
            last = input.advance()

        tokens = input.consumed_since(mark)
        if tokens.is_empty():
            raise input.error(f"expected expression, found {describe_tree(input.current())}",
                              ErrorKind.MALFORMED_ITEM)
        return cls(parse_expr(tokens, input.position()), tokens)

    @property
    def position(self) -> Position:
        return Position(self.node.line, self.node.column)

    def to_tokens(self, tokens: TokenStream):
        tokens.extend(self.tokens)

    def __str__(self):
        return str(self.tokens)
