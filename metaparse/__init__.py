"""
metaparse: combinators for declarative attribute grammars.

    from metaparse import MetaList, Expr, custom_keyword, parse_source

    Assert = MetaList[custom_keyword('assert'), Expr]
    node = parse_source(Assert, 'assert(x > 0, "x must be positive")')
"""

from .meta_lexer import LexerError, Position, Token, TokenType, tokenize
from .meta_tokens import Delimiter, Group, TokenStream, TokenTreeError, into_token_stream, parse_token_stream
from .meta_cursor import ErrorKind, ParseError, ParseStream, parse_source, parse_terminated, parse_tokens
from .meta_keywords import Keyword, KeywordToken, custom_keyword
from .meta_payloads import Expr, Ident, Lit, Type
from .meta_types import (
    Enclosure, IdentPatType, IdentTypeMaybeDefault, MetaAttrList, MetaEnclosedList,
    MetaExpr, MetaList, MetaLit, MetaType, MetaValue, MetaVoid,
)
from .meta_attrs import FIELD_ATTRS, STRUCT_ATTRS, AttrSet, FieldValue, kw, parse_attr_list, parse_attributes
from .meta_config import ConfigError, load_attr_set, resolve_attr_set

__version__ = "0.1.0"
