"""
Binary layout attribute vocabulary.

Names every attribute a struct or field declaration may carry, with the
grammar shape of each, and dispatches an attribute list to the right node
by looking at the leading keyword.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .meta_cursor import ErrorKind, ParseStream, describe_tree, parse_source, parse_terminated
from .meta_keywords import custom_keyword
from .meta_lexer import Position, TokenType
from .meta_payloads import Expr, Ident
from .meta_types import (
    MetaAttrList, MetaEnclosedList, MetaExpr, MetaList, MetaLit, MetaType,
    MetaValue, MetaVoid, IdentPatType, IdentTypeMaybeDefault,
)


class kw:
    """Attribute keywords. Python keywords get a trailing underscore."""
    big = custom_keyword('big')
    little = custom_keyword('little')
    is_big = custom_keyword('is_big')
    is_little = custom_keyword('is_little')
    magic = custom_keyword('magic')
    assert_ = custom_keyword('assert')
    pre_assert = custom_keyword('pre_assert')
    import_ = custom_keyword('import')
    import_raw = custom_keyword('import_raw')
    args = custom_keyword('args')
    args_raw = custom_keyword('args_raw')
    map = custom_keyword('map')
    try_map = custom_keyword('try_map')
    parse_with = custom_keyword('parse_with')
    count = custom_keyword('count')
    if_ = custom_keyword('if')
    default = custom_keyword('default')
    ignore = custom_keyword('ignore')
    calc = custom_keyword('calc')
    temp = custom_keyword('temp')
    restore_position = custom_keyword('restore_position')
    pad_before = custom_keyword('pad_before')
    pad_after = custom_keyword('pad_after')
    align_before = custom_keyword('align_before')
    align_after = custom_keyword('align_after')
    seek_before = custom_keyword('seek_before')
    pad_size_to = custom_keyword('pad_size_to')
    offset = custom_keyword('offset')
    repr = custom_keyword('repr')
    return_all_errors = custom_keyword('return_all_errors')
    return_unexpected_error = custom_keyword('return_unexpected_error')


@dataclass(frozen=True)
class FieldValue:
    """Named argument ``name: expr``, or the shorthand ``name``."""
    ident: Ident
    value: Optional[Expr] = None

    @classmethod
    def parse(cls, input: ParseStream) -> 'FieldValue':
        ident = input.parse(Ident)
        value = None
        if input.peek(TokenType.COLON):
            input.advance()
            value = input.parse(Expr)
        return cls(ident, value)


# =============================================================================
# Attribute shapes
# =============================================================================

Big = MetaVoid[kw.big]
Little = MetaVoid[kw.little]
IsBig = MetaExpr[kw.is_big]
IsLittle = MetaExpr[kw.is_little]
Magic = MetaLit[kw.magic]
Assert = MetaList[kw.assert_, Expr]
PreAssert = MetaList[kw.pre_assert, Expr]
Imports = MetaEnclosedList[kw.import_, IdentPatType, IdentTypeMaybeDefault]
ImportRaw = MetaValue[kw.import_raw, IdentPatType]
Args = MetaEnclosedList[kw.args, Expr, FieldValue]
ArgsRaw = MetaExpr[kw.args_raw]
Map = MetaExpr[kw.map]
TryMap = MetaExpr[kw.try_map]
ParseWith = MetaExpr[kw.parse_with]
Count = MetaExpr[kw.count]
If = MetaList[kw.if_, Expr]
Default = MetaVoid[kw.default]
Ignore = MetaVoid[kw.ignore]
Calc = MetaExpr[kw.calc]
Temp = MetaVoid[kw.temp]
RestorePosition = MetaVoid[kw.restore_position]
PadBefore = MetaExpr[kw.pad_before]
PadAfter = MetaExpr[kw.pad_after]
AlignBefore = MetaExpr[kw.align_before]
AlignAfter = MetaExpr[kw.align_after]
SeekBefore = MetaExpr[kw.seek_before]
PadSizeTo = MetaExpr[kw.pad_size_to]
Offset = MetaExpr[kw.offset]
Repr = MetaType[kw.repr]
ReturnAllErrors = MetaVoid[kw.return_all_errors]
ReturnUnexpectedError = MetaVoid[kw.return_unexpected_error]


class AttrSet:
    """A set of attribute nodes, selected by their leading keyword."""

    def __init__(self, name: str, nodes: Iterable[type]):
        self.name = name
        self.nodes: Dict[str, type] = {}
        for node in nodes:
            ident = node.keyword.ident
            if ident in self.nodes:
                raise ValueError(f"duplicate attribute keyword `{ident}` in {name} attributes")
            self.nodes[ident] = node

    def keywords(self) -> List[str]:
        return list(self.nodes)

    def parse(self, input: ParseStream):
        tree = input.current()
        node = self.nodes.get(tree.value) if input.peek(TokenType.IDENT) else None
        if node is None:
            expected = ", ".join(f"`{k}`" for k in self.nodes)
            raise input.error(
                f"unknown {self.name} attribute {describe_tree(tree)}, expected one of: {expected}",
                ErrorKind.KEYWORD_MISMATCH
            )
        return node.parse(input)

    def extend(self, name: str, nodes: Iterable[type]) -> 'AttrSet':
        """A new set with ``nodes`` added to (or replacing) these."""
        merged = dict(self.nodes)
        for node in nodes:
            merged[node.keyword.ident] = node
        return AttrSet(name, merged.values())

    def __contains__(self, ident: str) -> bool:
        return ident in self.nodes

    def __len__(self):
        return len(self.nodes)

    def __repr__(self):
        return f"AttrSet({self.name!r})"


STRUCT_ATTRS = AttrSet('struct', [
    Big, Little, Magic, Assert, PreAssert, Imports, ImportRaw,
    Map, TryMap, Repr, ReturnAllErrors, ReturnUnexpectedError,
])

FIELD_ATTRS = AttrSet('field', [
    Big, Little, IsBig, IsLittle, Magic, Assert, Args, ArgsRaw,
    Map, TryMap, ParseWith, Count, If, Default, Ignore, Calc, Temp,
    RestorePosition, PadBefore, PadAfter, AlignBefore, AlignAfter,
    SeekBefore, PadSizeTo, Offset,
])


def parse_attributes(source: str, attrs: AttrSet = FIELD_ATTRS) -> Tuple:
    """Parse ``attr, attr = value, attr(items)`` into nodes, in source order.

    Repeated attributes are all returned; which one wins is up to the caller.
    """
    return parse_source(lambda input: parse_terminated(input, attrs), source)


def parse_attr_list(source: str, attrs: AttrSet = FIELD_ATTRS) -> MetaAttrList:
    """Parse a parenthesised attribute list such as ``(big, count(4))``."""
    return parse_source(MetaAttrList[attrs], source)


def keyword_positions(nodes: Iterable) -> Dict[str, List[Position]]:
    """Where each attribute keyword appears, for duplicate diagnostics."""
    positions: Dict[str, List[Position]] = {}
    for node in nodes:
        positions.setdefault(node.keyword.ident, []).append(node.keyword_position())
    return positions
