"""
Expression payloads parsed with Lark.

Uses the grammar in meta_expr.lark. Tokens from our own lexer are fed to
Lark's interactive LALR parser one by one, so positions in errors and AST
nodes are positions in the attribute source.
"""

from pathlib import Path
from typing import Iterator, List, Optional

from lark import Lark, Transformer, v_args
from lark import Token as LarkToken
from lark.exceptions import UnexpectedInput, VisitError

from .meta_ast import (
    Literal, LitKind, PathExpr, BinaryExpr, UnaryExpr, CallExpr, MethodCallExpr,
    FieldAccessExpr, IndexAccessExpr, TryExpr, CastExpr, TupleExpr, ArrayExpr,
    RepeatExpr, ClosureExpr, ClosureParam, MacroExpr, BinaryOperator, UnaryOperator,
    PathSegment, PathType, Expr,
)
from .meta_cursor import ErrorKind, ParseError
from .meta_lexer import Position, Token, TokenType, describe
from .meta_tokens import TokenStream


# Load grammar from file
GRAMMAR_PATH = Path(__file__).parent / "meta_expr.lark"

INT_SUFFIXES = {
    'u8', 'u16', 'u32', 'u64', 'u128', 'usize',
    'i8', 'i16', 'i32', 'i64', 'i128', 'isize',
}
FLOAT_SUFFIXES = {'f32', 'f64'}

_RADIX_PREFIXES = {'0x': (16, 2), '0o': (8, 2), '0b': (2, 2)}
_RADIX_DIGITS = {
    16: '0123456789abcdefABCDEF_',
    10: '0123456789_',
    8: '01234567_',
    2: '01_',
}

_ESCAPES = {'n': '\n', 't': '\t', 'r': '\r', '0': '\0', '\\': '\\', '"': '"', "'": "'"}


# =============================================================================
# Literal decoding
# =============================================================================

def _malformed(message: str, token: Token) -> ParseError:
    return ParseError(message, token.position, ErrorKind.MALFORMED_ITEM)


def _unescape(body: str, token: Token) -> str:
    out = []
    i = 0
    while i < len(body):
        char = body[i]
        if char != '\\':
            out.append(char)
            i += 1
            continue
        code = body[i + 1:i + 2]
        if code in _ESCAPES:
            out.append(_ESCAPES[code])
            i += 2
            continue
        if code == 'x':
            digits = body[i + 2:i + 4]
            i += 4
        elif code == 'u' and body[i + 2:i + 3] == '{':
            end = body.find('}', i)
            if end < 0:
                raise _malformed("unterminated unicode escape", token)
            digits = body[i + 3:end].replace('_', '')
            i = end + 1
        else:
            raise _malformed(f"unknown character escape `\\{code}`", token)
        try:
            out.append(chr(int(digits, 16)))
        except (ValueError, OverflowError):
            raise _malformed(f"invalid escape `\\{code}{digits}` in `{token.value}`", token) from None
    return ''.join(out)


def _split_int(text: str):
    """Split an integer literal into (digits, base, suffix)."""
    base, start = _RADIX_PREFIXES.get(text[:2], (10, 0))
    allowed = _RADIX_DIGITS[base]
    i = start
    while i < len(text) and text[i] in allowed:
        i += 1
    return text[:i], base, text[i:]


def _to_bytes(text: str, token: Token) -> bytes:
    try:
        return text.encode('latin-1')
    except UnicodeEncodeError:
        raise _malformed(f"non-byte character in byte literal `{token.value}`", token) from None


def decode_literal(token: Token) -> Literal:
    """Build a Literal from a literal token or a `true`/`false` identifier.

    Raises ParseError(MALFORMED_ITEM) for any literal that does not decode.
    """
    text = token.value
    line, column = token.line, token.column

    if token.type == TokenType.IDENT and text in ('true', 'false'):
        return Literal(LitKind.BOOL, text == 'true', '', line, column)

    if token.type == TokenType.INT:
        digits, base, suffix = _split_int(text)
        if suffix and suffix not in INT_SUFFIXES | FLOAT_SUFFIXES:
            raise _malformed(f"invalid suffix `{suffix}` for number literal", token)
        if base != 10:
            digits = digits[2:]
        try:
            value = int(digits.replace('_', ''), base)
        except ValueError:
            raise _malformed(f"invalid integer literal `{text}`", token) from None
        if suffix in FLOAT_SUFFIXES:
            return Literal(LitKind.FLOAT, float(value), suffix, line, column)
        return Literal(LitKind.INT, value, suffix, line, column)

    if token.type == TokenType.FLOAT:
        suffix = text[-3:] if text[-3:] in FLOAT_SUFFIXES else ''
        number = text[:len(text) - len(suffix)]
        try:
            value = float(number.replace('_', ''))
        except ValueError:
            raise _malformed(f"invalid float literal `{text}`", token) from None
        return Literal(LitKind.FLOAT, value, suffix, line, column)

    if token.type == TokenType.STR:
        return Literal(LitKind.STR, _unescape(text[1:-1], token), '', line, column)

    if token.type == TokenType.BYTE_STR:
        value = _to_bytes(_unescape(text[2:-1], token), token)
        return Literal(LitKind.BYTE_STR, value, '', line, column)

    if token.type in (TokenType.CHAR, TokenType.BYTE):
        start = 2 if token.type == TokenType.BYTE else 1
        value = _unescape(text[start:-1], token)
        if len(value) != 1:
            raise _malformed(f"character literal may only contain one codepoint: `{text}`", token)
        if token.type == TokenType.BYTE:
            return Literal(LitKind.BYTE, _to_bytes(value, token)[0], '', line, column)
        return Literal(LitKind.CHAR, value, '', line, column)

    raise _malformed(f"expected literal, found `{text}`", token)


# =============================================================================
# Token feeding
# =============================================================================

LITERAL_TYPES = {
    TokenType.INT, TokenType.FLOAT, TokenType.STR,
    TokenType.BYTE_STR, TokenType.CHAR, TokenType.BYTE,
}


def _terminal_name(token: Token) -> str:
    if token.type == TokenType.IDENT:
        if token.value == 'as':
            return '_AS'
        if token.value in ('true', 'false'):
            return 'BOOL'
        return 'IDENT'
    if token.type in LITERAL_TYPES or token.type == TokenType.LIFETIME:
        return token.type.name
    return '_' + token.type.name


def _lark_tokens(stream: TokenStream) -> Iterator[LarkToken]:
    tokens = list(stream.flatten())
    i = 0
    while i < len(tokens):
        token = tokens[i]
        # Two joint `>` are a shift in expression position
        if (token.type == TokenType.RANGLE and token.joint
                and i + 1 < len(tokens) and tokens[i + 1].type == TokenType.RANGLE):
            yield LarkToken('_SHR', '>>', line=token.line, column=token.column)
            i += 2
            continue
        yield LarkToken(_terminal_name(token), token.value, line=token.line, column=token.column)
        i += 1


def _describe_terminal(name: str) -> str:
    if name == 'BOOL':
        return "`true` or `false`"
    if name == '_AS':
        return "`as`"
    if name == '_SHR':
        return "`>>`"
    try:
        return describe(TokenType[name.lstrip('_')])
    except KeyError:
        return name


# =============================================================================
# Tree transformer
# =============================================================================

def _at(token) -> dict:
    return {'line': getattr(token, 'line', 0) or 0, 'column': getattr(token, 'column', 0) or 0}


def _binary(op: BinaryOperator):
    def build(self, left, right):
        return BinaryExpr(left, op, right, **_at(left))
    return build


def _unary(op: UnaryOperator):
    def build(self, operand):
        return UnaryExpr(op, operand, **_at(operand))
    return build


@v_args(inline=True)
class ExprTransformer(Transformer):
    """Transform Lark parse tree into expression AST nodes."""

    logical_or = _binary(BinaryOperator.OR)
    logical_and = _binary(BinaryOperator.AND)
    eq = _binary(BinaryOperator.EQ)
    ne = _binary(BinaryOperator.NEQ)
    lt = _binary(BinaryOperator.LT)
    gt = _binary(BinaryOperator.GT)
    le = _binary(BinaryOperator.LTE)
    ge = _binary(BinaryOperator.GTE)
    bit_or = _binary(BinaryOperator.BIT_OR)
    bit_xor = _binary(BinaryOperator.BIT_XOR)
    bit_and = _binary(BinaryOperator.BIT_AND)
    shl = _binary(BinaryOperator.SHL)
    shr = _binary(BinaryOperator.SHR)
    add = _binary(BinaryOperator.ADD)
    sub = _binary(BinaryOperator.SUB)
    mul = _binary(BinaryOperator.MUL)
    div = _binary(BinaryOperator.DIV)
    rem = _binary(BinaryOperator.REM)

    neg = _unary(UnaryOperator.NEG)
    not_ = _unary(UnaryOperator.NOT)
    deref = _unary(UnaryOperator.DEREF)
    ref = _unary(UnaryOperator.REF)

    # =========================================================================
    # Closures
    # =========================================================================

    def closure(self, params, body):
        params = params or []
        return ClosureExpr(params, body, **_at(body))

    def empty_closure(self, body):
        return ClosureExpr([], body, **_at(body))

    def closure_params(self, *params):
        return list(params)

    def closure_param(self, name, type_path=None):
        return ClosureParam(str(name), type_path)

    # =========================================================================
    # Postfix
    # =========================================================================

    def cast(self, operand, type_path):
        return CastExpr(operand, type_path, **_at(operand))

    def field(self, obj, name):
        return FieldAccessExpr(obj, str(name), **_at(obj))

    def tuple_field(self, obj, index):
        return FieldAccessExpr(obj, str(index), **_at(obj))

    def call(self, func, args=None):
        args = args or []
        if isinstance(func, FieldAccessExpr) and not func.field.isdigit():
            return MethodCallExpr(func.object, func.field, args, **_at(func))
        return CallExpr(func, args, **_at(func))

    def index(self, obj, index):
        return IndexAccessExpr(obj, index, **_at(obj))

    def try_(self, operand):
        return TryExpr(operand, **_at(operand))

    # =========================================================================
    # Primaries
    # =========================================================================

    def unit(self):
        return TupleExpr([])

    def tuple(self, first, rest=None):
        return TupleExpr([first] + (rest or []), **_at(first))

    def array(self, args=None):
        return ArrayExpr(args or [])

    def repeat(self, value, count):
        return RepeatExpr(value, count, **_at(value))

    def macro(self, path, args=None):
        return MacroExpr(path, args or [], **_at(path))

    def args(self, *exprs):
        return list(exprs)

    def path(self, *names):
        return PathExpr([str(n) for n in names], **_at(names[0]))

    def type_path(self, *names):
        return PathType([PathSegment(str(n)) for n in names], **_at(names[0]))

    def literal(self, token):
        tok_type = TokenType.IDENT if token.type == 'BOOL' else TokenType[token.type]
        return decode_literal(Token(tok_type, str(token), token.line, token.column))


# Create parser instance
_parser = None


def get_parser() -> Lark:
    """Get or create the Lark parser instance."""
    global _parser
    if _parser is None:
        with open(GRAMMAR_PATH) as f:
            grammar = f.read()
        _parser = Lark(
            grammar,
            parser='lalr',
            lexer='basic',
            maybe_placeholders=True,
        )
    return _parser


def parse_expr(stream: TokenStream, end_position: Position) -> Expr:
    """Parse a complete token stream as one expression.

    ``end_position`` is reported when the expression stops early.
    """
    if stream.is_empty():
        raise ParseError("expected expression, found end of input", end_position,
                         ErrorKind.MALFORMED_ITEM)

    interactive = get_parser().parse_interactive('')
    last: Optional[LarkToken] = None
    try:
        for token in _lark_tokens(stream):
            interactive.feed_token(token)
            last = token
        tree = interactive.feed_eof(last)
    except UnexpectedInput as e:
        raise _convert_error(e, end_position) from None

    try:
        return ExprTransformer().transform(tree)
    except VisitError as e:
        # Literal decoding errors surface from inside the transformer
        if isinstance(e.orig_exc, ParseError):
            raise e.orig_exc from None
        raise


def _convert_error(error: UnexpectedInput, end_position: Position) -> ParseError:
    token = getattr(error, 'token', None)
    expected: List[str] = sorted(_describe_terminal(n) for n in getattr(error, 'expected', ()) or ())
    hint = ""
    if 0 < len(expected) <= 2:
        hint = ", expected " + " or ".join(expected)
    elif 2 < len(expected) <= 6:
        hint = ", expected one of: " + ", ".join(expected)

    if token is None or token.type == '$END':
        return ParseError(f"unexpected end of expression{hint}", end_position, ErrorKind.MALFORMED_ITEM)
    position = Position(token.line, token.column)
    return ParseError(f"unexpected token `{token}` in expression{hint}", position,
                      ErrorKind.MALFORMED_ITEM)
