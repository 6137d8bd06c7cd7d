"""
Tests for the generic attribute grammar nodes.
"""

import pytest

from metaparse.meta_ast import BinaryExpr, Literal, LitKind, PathSegment, PathType
from metaparse.meta_cursor import ErrorKind, ParseError, parse_source
from metaparse.meta_keywords import Keyword, custom_keyword
from metaparse.meta_lexer import Position
from metaparse.meta_payloads import Expr, Ident, Lit, Type
from metaparse.meta_tokens import Delimiter, into_token_stream
from metaparse.meta_types import (
    Enclosure, IdentPatType, IdentTypeMaybeDefault, MetaAttrList, MetaEnclosedList,
    MetaExpr, MetaList, MetaLit, MetaType, MetaValue, MetaVoid,
)


kw_test = custom_keyword('test')
kw_test_list = custom_keyword('test_list')

ValueNode = MetaValue[kw_test, Lit]
ListNode = MetaList[kw_test_list, Lit]
EnclosedNode = MetaEnclosedList[kw_test, Lit, IdentTypeMaybeDefault]


def u8(value):
    return Lit(LitKind.INT, value, "u8")


def parse_error(grammar, source) -> ParseError:
    with pytest.raises(ParseError) as exc:
        parse_source(grammar, source)
    return exc.value


class TestKeywords:
    """Keyword classes and specialisation."""

    def test_custom_keyword_cached(self):
        assert custom_keyword('test') is kw_test
        assert issubclass(kw_test, Keyword)
        assert kw_test.ident == 'test'

    def test_keywords_do_not_match_each_other(self):
        error = parse_error(MetaVoid[custom_keyword('other')], "test")
        assert error.kind == ErrorKind.KEYWORD_MISMATCH
        assert error.message == "expected `other`, found `test`"

    def test_keyword_position(self):
        assert parse_source(kw_test, "  test").keyword_position() == Position(1, 3)

    def test_specialisation_cached(self):
        assert MetaValue[kw_test, Lit] is ValueNode
        assert MetaLit[kw_test] is ValueNode
        assert MetaExpr[kw_test] is MetaValue[kw_test, Expr]
        assert MetaType[kw_test] is MetaValue[kw_test, Type]
        assert MetaList[kw_test, Lit] is not MetaList[kw_test, Expr]

    def test_unspecialised_rejected(self):
        with pytest.raises(TypeError):
            parse_source(MetaValue, "test = 1")


class TestMetaValue:
    """keyword = value and keyword(value)."""

    def test_assign(self):
        node = parse_source(ValueNode, "test = 3u8")
        assert isinstance(node.ident, kw_test)
        assert node.value == u8(3)

    def test_paren(self):
        node = parse_source(ValueNode, "test(3u8)")
        assert node.value == u8(3)

    def test_syntax_equivalence(self):
        assert parse_source(ValueNode, "test = 3u8") == parse_source(ValueNode, "test(3u8)")

    def test_missing_keyword(self):
        error = parse_error(ValueNode, "= 3u8")
        assert error.kind == ErrorKind.KEYWORD_MISMATCH
        assert error.message == "expected `test`, found `=`"

    def test_missing_value(self):
        error = parse_error(ValueNode, "test")
        assert error.kind == ErrorKind.MISSING_PAYLOAD
        assert error.message == "expected `=` or parentheses after `test`, found end of input"
        assert error.position == Position(1, 5)

    def test_missing_value_after_equals(self):
        error = parse_error(ValueNode, "test =")
        assert error.kind == ErrorKind.MALFORMED_ITEM

    def test_empty_parens(self):
        error = parse_error(ValueNode, "test()")
        assert error.message == "expected literal, found end of input"
        assert error.position == Position(1, 6)

    def test_wrong_keyword(self):
        error = parse_error(ValueNode, "wrong = 3u8")
        assert error.kind == ErrorKind.KEYWORD_MISMATCH

    def test_wrong_value_type(self):
        error = parse_error(ValueNode, "test = u8")
        assert error.kind == ErrorKind.MALFORMED_ITEM
        assert error.position == Position(1, 8)

    def test_confused_as_list(self):
        error = parse_error(ValueNode, "test(3u8, 3u8)")
        assert error.kind == ErrorKind.UNEXPECTED_TOKEN
        assert error.message == "unexpected token `,`"
        assert error.position == Position(1, 9)

    def test_wrong_delimiter(self):
        error = parse_error(ValueNode, "test[3u8]")
        assert error.kind == ErrorKind.WRONG_DELIMITER

    def test_into_token_stream(self):
        node = parse_source(ValueNode, "test = 3u8")
        assert str(node.into_token_stream()) == "3u8"
        assert str(node.into_token_stream()) == str(parse_source(ValueNode, "test(3u8)").into_token_stream())

    def test_expr_payload_tokens(self):
        node = parse_source(MetaExpr[kw_test], "test(a + b)")
        assert isinstance(node.value.node, BinaryExpr)
        assert str(node.into_token_stream()) == "a + b"

    def test_type_payload(self):
        node = parse_source(MetaType[kw_test], "test = u16")
        assert node.value.node == PathType([PathSegment("u16")])

    def test_nodes_are_hashable(self):
        seen = {
            parse_source(MetaType[kw_test], "test = Vec<u8>"),
            parse_source(MetaType[kw_test], "test(Vec<u8>)"),
            parse_source(MetaExpr[kw_test], "test = f(a, 1)"),
        }
        assert len(seen) == 2

    def test_keyword_position(self):
        assert parse_source(ValueNode, "test = 3u8").keyword_position() == Position(1, 1)
        assert parse_source(ValueNode, "  test(3u8)").keyword_position() == Position(1, 3)

    def test_equal_modulo_span(self):
        assert parse_source(ValueNode, "test = 3u8") == parse_source(ValueNode, "   test   =   3u8")


class TestMetaVoid:

    def test_void(self):
        node = parse_source(MetaVoid[kw_test], "test")
        assert node.into_unit() is None
        assert node.keyword_position() == Position(1, 1)

    def test_void_rejects_payload(self):
        error = parse_error(MetaVoid[kw_test], "test = 1")
        assert error.kind == ErrorKind.UNEXPECTED_TOKEN
        assert error.message == "unexpected token `=`"


class TestMetaList:
    """keyword(item, ...)."""

    def test_list(self):
        node = parse_source(ListNode, "test_list(3u8, 3u8)")
        assert node.fields == (u8(3), u8(3))
        assert list(node) == [u8(3), u8(3)]
        assert len(node) == 2

    def test_concrete_scenario(self):
        node = parse_source(ListNode, "test_list(3, 3)")
        assert [lit.value for lit in node] == [3, 3]
        assert node.keyword_position() == Position(1, 1)

    def test_empty(self):
        assert len(parse_source(ListNode, "test_list()")) == 0

    def test_trailing_comma(self):
        assert len(parse_source(ListNode, "test_list(3u8, 3u8,)")) == 2

    def test_duplicates_kept(self):
        node = parse_source(ListNode, "test_list(1, 1, 2)")
        assert [lit.value for lit in node] == [1, 1, 2]

    def test_missing_keyword(self):
        error = parse_error(ListNode, "(3u8)")
        assert error.kind == ErrorKind.KEYWORD_MISMATCH

    def test_missing_value(self):
        error = parse_error(ListNode, "test_list")
        assert error.kind == ErrorKind.MISSING_PAYLOAD

    def test_wrong_delimiter(self):
        error = parse_error(ListNode, "test_list = (3u8, 3u8)")
        assert error.kind == ErrorKind.WRONG_DELIMITER
        assert error.message == "expected parentheses after `test_list`, found `=`"

    def test_wrong_keyword(self):
        error = parse_error(ListNode, "wrong(3u8)")
        assert error.kind == ErrorKind.KEYWORD_MISMATCH

    def test_wrong_item_type(self):
        error = parse_error(ListNode, "test_list(i32)")
        assert error.kind == ErrorKind.MALFORMED_ITEM
        assert error.position == Position(1, 11)

    def test_missing_separator(self):
        error = parse_error(ListNode, "test_list(3u8 3u8)")
        assert error.message == "expected `,` between items, found `3u8`"


class TestMetaEnclosedList:
    """keyword(...) or keyword { ... }."""

    def test_paren(self):
        node = parse_source(EnclosedNode, "test(1, 2)")
        assert isinstance(node.list, Enclosure.Paren)
        assert node.list.delimiter == Delimiter.PAREN
        assert [lit.value for lit in node.list] == [1, 2]

    def test_brace(self):
        node = parse_source(EnclosedNode, "test { a: u8, b: u16 = 4 }")
        assert isinstance(node.list, Enclosure.Brace)
        assert node.list.delimiter == Delimiter.BRACE
        assert len(node.list) == 2
        assert node.list.fields[0].default is None
        assert node.list.fields[1].default.node == Literal(LitKind.INT, 4)

    def test_empty(self):
        assert len(parse_source(EnclosedNode, "test()").list) == 0
        assert len(parse_source(EnclosedNode, "test{}").list) == 0

    def test_square_brackets_rejected(self):
        error = parse_error(EnclosedNode, "test[1]")
        assert error.kind == ErrorKind.AMBIGUOUS_BRACKET
        assert error.message == "expected parentheses or curly braces, found `[`"

    def test_equals_rejected(self):
        error = parse_error(EnclosedNode, "test = 1")
        assert error.kind == ErrorKind.AMBIGUOUS_BRACKET

    def test_missing_list(self):
        error = parse_error(EnclosedNode, "test")
        assert error.kind == ErrorKind.MISSING_PAYLOAD

    def test_wrong_item_in_brace(self):
        error = parse_error(EnclosedNode, "test{1}")
        assert error.kind == ErrorKind.MALFORMED_ITEM
        assert error.message == "expected identifier, found `1`"

    def test_wrong_item_in_paren(self):
        error = parse_error(EnclosedNode, "test(a: u8)")
        assert error.kind == ErrorKind.MALFORMED_ITEM

    def test_keyword_position(self):
        assert parse_source(EnclosedNode, " test()").keyword_position() == Position(1, 2)


class TestIdentTypeMaybeDefault:

    def test_without_default(self):
        node = parse_source(IdentTypeMaybeDefault, "foo: u8")
        assert node.ident == Ident("foo")
        assert node.ty.node == PathType([PathSegment("u8")])
        assert node.default is None

    def test_with_default(self):
        node = parse_source(IdentTypeMaybeDefault, "foo: u8 = 3")
        assert node.default.node == Literal(LitKind.INT, 3)

    def test_default_expression_stops_at_comma(self):
        result = parse_source(lambda input: input.parse_terminated(IdentTypeMaybeDefault),
                              "a: u8 = x + 1, b: u16")
        assert len(result) == 2
        assert str(result[0].default) == "x + 1"

    def test_dangling_equals(self):
        error = parse_error(IdentTypeMaybeDefault, "foo: u8 =")
        assert error.message == "expected expression, found end of input"

    def test_missing_colon(self):
        error = parse_error(IdentTypeMaybeDefault, "foo u8")
        assert error.kind == ErrorKind.MALFORMED_ITEM
        assert error.message == "expected `:` after `foo`, found `u8`"

    def test_missing_type(self):
        error = parse_error(IdentTypeMaybeDefault, "foo:")
        assert error.message == "expected type, found end of input"

    def test_missing_ident(self):
        error = parse_error(IdentTypeMaybeDefault, ": u8")
        assert error.message == "expected identifier, found `:`"


class TestIdentPatType:

    def test_ident_pat_type(self):
        node = parse_source(IdentPatType, "foo: Vec<u8>")
        assert node.ident.name == "foo"
        assert node.ty.node.name == "Vec"

    def test_to_tokens(self):
        node = parse_source(IdentPatType, "foo: u8")
        assert str(into_token_stream(node)) == "foo : u8"

    def test_wrong_type(self):
        error = parse_error(IdentPatType, "foo: 3u8")
        assert error.kind == ErrorKind.MALFORMED_ITEM
        assert error.message == "expected type, found `3u8`"

    def test_pattern_rejected(self):
        error = parse_error(IdentPatType, "(a, b): (u8, u8)")
        assert error.message == "expected identifier, found `(`"

    def test_default_not_allowed(self):
        error = parse_error(IdentPatType, "foo: u8 = 1")
        assert error.kind == ErrorKind.UNEXPECTED_TOKEN


class TestMetaAttrList:
    """(item, ...) without a keyword."""

    def test_list(self):
        node = parse_source(MetaAttrList[Lit], "(1u8, 2u8)")
        assert list(node.into_iter()) == [u8(1), u8(2)]
        assert len(node) == 2

    def test_empty(self):
        assert len(parse_source(MetaAttrList[Lit], "()")) == 0

    def test_wrong_item_type(self):
        error = parse_error(MetaAttrList[Lit], "(i32)")
        assert error.kind == ErrorKind.MALFORMED_ITEM

    def test_confused_as_list(self):
        error = parse_error(MetaAttrList[Lit], "wrong(i32)")
        assert error.kind == ErrorKind.WRONG_DELIMITER
        assert error.message == "expected parentheses, found `wrong`"

    def test_nested_attrs(self):
        node = parse_source(MetaAttrList[MetaVoid[kw_test]], "(test, test)")
        assert [attr.keyword_position() for attr in node] == [Position(1, 2), Position(1, 8)]
