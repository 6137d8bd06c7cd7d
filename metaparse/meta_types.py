"""
Generic attribute grammar nodes.

Every node is generic over its keyword and payload grammars and is
specialised by subscription::

    Magic = MetaLit[kw.magic]                                # magic = b"AB"
    Count = MetaValue[kw.count, Expr]                        # count(n * 2)
    Assert = MetaList[kw.assert_, Expr]                      # assert(x, "msg")
    Imports = MetaEnclosedList[kw.import_, IdentPatType, IdentTypeMaybeDefault]

Parsing a value node consumes ``keyword``, then ``( value )`` or ``= value``.
Re-emitting it produces only the value tokens; the keyword and delimiters
are dropped on purpose so the payload can be spliced into generated code.
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional, Tuple

from .meta_cursor import ErrorKind, ParseStream, describe_tree, is_absent
from .meta_keywords import Keyword
from .meta_lexer import Position, Token, TokenType
from .meta_payloads import Expr, Ident, Lit, Type
from .meta_tokens import Delimiter, TokenStream, into_token_stream


_specializations: Dict[tuple, type] = {}


def _name_of(param) -> str:
    return getattr(param, '__name__', None) or repr(param)


def _specialize(cls, **params) -> type:
    """Create (once) the subclass of ``cls`` bound to ``params``."""
    key = (cls,) + tuple(params.items())
    if key not in _specializations:
        name = f"{cls.__name__}[{', '.join(_name_of(p) for p in params.values())}]"
        attrs = dict(params)
        attrs['__qualname__'] = name
        _specializations[key] = type(name, (cls,), attrs)
    return _specializations[key]


def _require_specialized(cls, attr: str):
    if getattr(cls, attr) is None:
        raise TypeError(f"{cls.__name__} must be specialised before parsing, "
                        f"e.g. {cls.__name__}[kw.name, ...]")


def _payload_error(input: ParseStream, expected: str, keyword) -> Exception:
    found = input.current()
    kind = ErrorKind.MISSING_PAYLOAD if is_absent(found) else ErrorKind.WRONG_DELIMITER
    return input.error(
        f"expected {expected} after {keyword.display()}, found {describe_tree(found)}",
        kind
    )


# =============================================================================
# Keyword with a value
# =============================================================================

@dataclass(frozen=True)
class MetaValue:
    """``keyword(value)`` or ``keyword = value``; both spellings are equal."""
    ident: Keyword
    value: Any

    keyword: ClassVar[Optional[type]] = None
    value_type: ClassVar[Any] = None

    def __class_getitem__(cls, params):
        keyword, value_type = params
        return _specialize(cls, keyword=keyword, value_type=value_type)

    @classmethod
    def parse(cls, input: ParseStream) -> 'MetaValue':
        _require_specialized(cls, 'keyword')
        ident = input.parse(cls.keyword)
        if input.peek(Delimiter.PAREN):
            content = input.parenthesized()
            value = content.parse(cls.value_type)
            content.expect_end()
        elif input.peek(TokenType.EQUALS):
            input.advance()
            value = input.parse(cls.value_type)
        else:
            raise _payload_error(input, "`=` or parentheses", cls.keyword)
        return cls(ident, value)

    def keyword_position(self) -> Position:
        return self.ident.position

    def to_tokens(self, tokens: TokenStream):
        self.value.to_tokens(tokens)

    def into_token_stream(self) -> TokenStream:
        return into_token_stream(self)


class MetaExpr:
    """``MetaValue`` whose payload is an expression."""

    def __class_getitem__(cls, keyword):
        return MetaValue[keyword, Expr]


class MetaType:
    """``MetaValue`` whose payload is a type."""

    def __class_getitem__(cls, keyword):
        return MetaValue[keyword, Type]


class MetaLit:
    """``MetaValue`` whose payload is a literal."""

    def __class_getitem__(cls, keyword):
        return MetaValue[keyword, Lit]


# =============================================================================
# Bare keyword
# =============================================================================

@dataclass(frozen=True)
class MetaVoid:
    """A keyword on its own, such as ``big`` or ``temp``."""
    ident: Keyword

    keyword: ClassVar[Optional[type]] = None

    def __class_getitem__(cls, keyword):
        return _specialize(cls, keyword=keyword)

    @classmethod
    def parse(cls, input: ParseStream) -> 'MetaVoid':
        _require_specialized(cls, 'keyword')
        return cls(input.parse(cls.keyword))

    def keyword_position(self) -> Position:
        return self.ident.position

    def into_unit(self) -> None:
        return None


# =============================================================================
# Keyword with a list
# =============================================================================

@dataclass(frozen=True)
class MetaList:
    """``keyword(item, item, ...)``; empty and trailing-comma lists allowed."""
    ident: Keyword
    fields: Tuple[Any, ...]

    keyword: ClassVar[Optional[type]] = None
    item: ClassVar[Any] = None

    def __class_getitem__(cls, params):
        keyword, item = params
        return _specialize(cls, keyword=keyword, item=item)

    @classmethod
    def parse(cls, input: ParseStream) -> 'MetaList':
        _require_specialized(cls, 'keyword')
        ident = input.parse(cls.keyword)
        if not input.peek(Delimiter.PAREN):
            raise _payload_error(input, "parentheses", cls.keyword)
        content = input.parenthesized()
        return cls(ident, content.parse_terminated(cls.item))

    def keyword_position(self) -> Position:
        return self.ident.position

    def __iter__(self):
        return iter(self.fields)

    def __len__(self):
        return len(self.fields)


# =============================================================================
# Keyword with a list in either bracket kind
# =============================================================================

@dataclass(frozen=True)
class Enclosure:
    """Items of an enclosed list, tagged with the bracket kind that held them."""
    fields: Tuple[Any, ...]

    delimiter: ClassVar[Optional[Delimiter]] = None

    def __iter__(self):
        return iter(self.fields)

    def __len__(self):
        return len(self.fields)


class Paren(Enclosure):
    delimiter = Delimiter.PAREN


class Brace(Enclosure):
    delimiter = Delimiter.BRACE


Enclosure.Paren = Paren
Enclosure.Brace = Brace


@dataclass(frozen=True)
class MetaEnclosedList:
    """``keyword(paren_item, ...)`` or ``keyword { brace_item, ... }``."""
    ident: Keyword
    list: Enclosure

    keyword: ClassVar[Optional[type]] = None
    paren_item: ClassVar[Any] = None
    brace_item: ClassVar[Any] = None

    def __class_getitem__(cls, params):
        keyword, paren_item, brace_item = params
        return _specialize(cls, keyword=keyword, paren_item=paren_item, brace_item=brace_item)

    @classmethod
    def parse(cls, input: ParseStream) -> 'MetaEnclosedList':
        _require_specialized(cls, 'keyword')
        ident = input.parse(cls.keyword)
        lookahead = input.lookahead()
        if lookahead.peek(Delimiter.PAREN):
            content = input.parenthesized()
            return cls(ident, Paren(content.parse_terminated(cls.paren_item)))
        if lookahead.peek(Delimiter.BRACE):
            content = input.braced()
            return cls(ident, Brace(content.parse_terminated(cls.brace_item)))
        raise lookahead.error()

    def keyword_position(self) -> Position:
        return self.ident.position


# =============================================================================
# Typed names
# =============================================================================

# Like a pattern with a type annotation, except that only a plain
# identifier is allowed on the left of the colon.
@dataclass(frozen=True)
class IdentPatType:
    """``name: Type``"""
    ident: Ident
    ty: Type

    @classmethod
    def parse(cls, input: ParseStream) -> 'IdentPatType':
        ident = input.parse(Ident)
        input.expect(TokenType.COLON, f" after `{ident}`", ErrorKind.MALFORMED_ITEM)
        ty = input.parse(Type)
        return cls(ident, ty)

    def to_tokens(self, tokens: TokenStream):
        self.ident.to_tokens(tokens)
        tokens.append(Token(TokenType.COLON, ':', self.ident.position.line, self.ident.position.column))
        self.ty.to_tokens(tokens)


@dataclass(frozen=True)
class IdentTypeMaybeDefault:
    """``name: Type`` or ``name: Type = default``"""
    ident: Ident
    ty: Type
    default: Optional[Expr] = None

    @classmethod
    def parse(cls, input: ParseStream) -> 'IdentTypeMaybeDefault':
        ident = input.parse(Ident)
        input.expect(TokenType.COLON, f" after `{ident}`", ErrorKind.MALFORMED_ITEM)
        ty = input.parse(Type)
        default = None
        if input.peek(TokenType.EQUALS):
            input.advance()
            default = input.parse(Expr)
        return cls(ident, ty, default)


# =============================================================================
# Attribute list without keyword
# =============================================================================

@dataclass(frozen=True)
class MetaAttrList:
    """``(item, item, ...)`` where the keyword was already consumed."""
    fields: Tuple[Any, ...]

    item: ClassVar[Any] = None

    def __class_getitem__(cls, item):
        return _specialize(cls, item=item)

    @classmethod
    def parse(cls, input: ParseStream) -> 'MetaAttrList':
        _require_specialized(cls, 'item')
        content = input.parenthesized()
        return cls(content.parse_terminated(cls.item))

    def into_iter(self):
        return iter(self.fields)

    def __iter__(self):
        return iter(self.fields)

    def __len__(self):
        return len(self.fields)
