"""
Tests for token trees and token stream printing.
"""

import pytest

from metaparse.meta_lexer import Position, Token, TokenType, tokenize
from metaparse.meta_tokens import (
    Delimiter, Group, TokenStream, TokenTreeError, build_token_tree,
    into_token_stream, parse_token_stream,
)


class TestTokenTrees:
    """Grouping flat tokens into trees."""

    def test_groups(self):
        stream = parse_token_stream("a(b, c)[d]")
        trees = list(stream)
        assert len(trees) == 3
        assert isinstance(trees[0], Token)
        assert isinstance(trees[1], Group)
        assert trees[1].delimiter == Delimiter.PAREN
        assert len(trees[1].stream) == 3
        assert trees[2].delimiter == Delimiter.BRACKET

    def test_nested_groups(self):
        stream = parse_token_stream("import { a: (u8, u16) }")
        brace = stream.trees[1]
        assert brace.delimiter == Delimiter.BRACE
        inner = brace.stream.trees[2]
        assert inner.delimiter == Delimiter.PAREN

    def test_group_positions(self):
        group = parse_token_stream("count( 4 )").trees[1]
        assert group.position == Position(1, 6)
        assert group.close_position == Position(1, 10)

    def test_eof_dropped(self):
        stream = build_token_tree(tokenize("big"))
        assert len(stream) == 1

    def test_flatten_restores_tokens(self):
        source = "args { a: [u8; 2] }"
        flat = [t.value for t in parse_token_stream(source).flatten()]
        assert flat == [t.value for t in tokenize(source)[:-1]]


class TestTokenTreeErrors:
    """Unbalanced brackets are reported before parsing."""

    def test_unclosed(self):
        with pytest.raises(TokenTreeError) as exc:
            parse_token_stream("count(4")
        assert (exc.value.line, exc.value.column) == (1, 6)

    def test_mismatched(self):
        with pytest.raises(TokenTreeError, match="Mismatched"):
            parse_token_stream("(a]")

    def test_unexpected_close(self):
        with pytest.raises(TokenTreeError, match="Unexpected closing"):
            parse_token_stream("a)")


class TestTokenStreamPrinting:
    """Printing token streams."""

    def test_spaces_between_trees(self):
        assert str(parse_token_stream("a+b")) == "a + b"

    def test_groups_print_delimiters(self):
        assert str(parse_token_stream("f(x,y)")) == "f (x , y)"

    def test_joint_angles(self):
        assert str(parse_token_stream("Vec<Vec<u8>>")) == "Vec < Vec < u8 >>"

    def test_empty(self):
        assert str(TokenStream()) == ""
        assert TokenStream().is_empty()

    def test_into_token_stream(self):
        class Answer:
            def to_tokens(self, tokens):
                tokens.append(Token(TokenType.INT, "42", 1, 1))

        stream = into_token_stream(Answer())
        assert str(stream) == "42"
        assert len(stream) == 1
