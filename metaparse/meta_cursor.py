"""
Cursor over token trees.

A ``ParseStream`` walks one level of a token tree. Opening a group yields a
new, bounded ``ParseStream`` over the group's contents. Grammars are anything
with a ``parse(input)`` callable; they advance the stream on success and
raise ``ParseError`` on failure.
"""

from enum import Enum, auto
from typing import Any, Callable, List, Optional, Tuple

from .meta_lexer import Position, Token, TokenType, describe, tokenize
from .meta_tokens import Delimiter, Group, TokenStream, TokenTree, build_token_tree


class ErrorKind(Enum):
    KEYWORD_MISMATCH = auto()
    MISSING_PAYLOAD = auto()
    WRONG_DELIMITER = auto()
    MALFORMED_ITEM = auto()
    AMBIGUOUS_BRACKET = auto()
    UNEXPECTED_TOKEN = auto()


class ParseError(Exception):
    """Raised when a grammar does not match the token stream."""
    def __init__(self, message: str, position: Position,
                 kind: ErrorKind = ErrorKind.UNEXPECTED_TOKEN):
        self.message = message
        self.position = position
        self.kind = kind
        super().__init__(f"Line {position.line}, column {position.column}: {message}")

    @property
    def line(self) -> int:
        return self.position.line

    @property
    def column(self) -> int:
        return self.position.column


def describe_tree(tree: Optional[TokenTree]) -> str:
    """Describe a token tree for 'found ...' messages."""
    if tree is None:
        return "end of input"
    if isinstance(tree, Group):
        return f"`{tree.delimiter.open}`"
    return f"`{tree.value}`"


def is_absent(tree: Optional[TokenTree]) -> bool:
    """True at the end of a stream or at a list separator."""
    return tree is None or (isinstance(tree, Token) and tree.type == TokenType.COMMA)


def describe_kind(kind) -> str:
    if isinstance(kind, TokenType):
        return describe(kind)
    if isinstance(kind, Delimiter):
        return kind.description
    return kind.display()


def _parser_for(grammar) -> Callable[['ParseStream'], Any]:
    parse = getattr(grammar, 'parse', None)
    if callable(parse):
        return parse
    if callable(grammar):
        return grammar
    raise TypeError(f"{grammar!r} is not a grammar")


class ParseStream:
    """Cursor over one level of a token tree."""

    def __init__(self, stream: TokenStream, end_position: Position):
        self._trees: List[TokenTree] = list(stream)
        self._index = 0
        self.end_position = end_position

    # =========================================================================
    # Inspection
    # =========================================================================

    def is_empty(self) -> bool:
        return self._index >= len(self._trees)

    def current(self, offset: int = 0) -> Optional[TokenTree]:
        pos = self._index + offset
        if pos >= len(self._trees):
            return None
        return self._trees[pos]

    def position(self) -> Position:
        """Position of the next tree, or of the end of this stream."""
        tree = self.current()
        if tree is None:
            return self.end_position
        return tree.position

    def peek(self, kind, offset: int = 0) -> bool:
        """Check the next tree without consuming it.

        ``kind`` is a TokenType, a Delimiter or a keyword class.
        """
        tree = self.current(offset)
        if tree is None:
            return False
        if isinstance(kind, TokenType):
            return isinstance(tree, Token) and tree.type == kind
        if isinstance(kind, Delimiter):
            return isinstance(tree, Group) and tree.delimiter == kind
        return kind.matches(tree)

    def lookahead(self) -> 'Lookahead':
        return Lookahead(self)

    # =========================================================================
    # Consumption
    # =========================================================================

    def advance(self) -> TokenTree:
        tree = self.current()
        if tree is None:
            raise self.error("unexpected end of input", ErrorKind.MISSING_PAYLOAD)
        self._index += 1
        return tree

    def expect(self, token_type: TokenType, context: str = "",
               kind: ErrorKind = ErrorKind.UNEXPECTED_TOKEN) -> Token:
        if self.peek(token_type):
            return self.advance()
        raise self.error(
            f"expected {describe(token_type)}{context}, found {describe_tree(self.current())}",
            kind
        )

    def parse(self, grammar) -> Any:
        return _parser_for(grammar)(self)

    def parse_terminated(self, item) -> tuple:
        return parse_terminated(self, item)

    def open_group(self, delimiter: Delimiter, context: str = "") -> 'ParseStream':
        """Consume a group and return a cursor over its contents."""
        if self.peek(delimiter):
            group = self.advance()
            return ParseStream(group.stream, group.close_position)
        found = self.current()
        kind = ErrorKind.MISSING_PAYLOAD if is_absent(found) else ErrorKind.WRONG_DELIMITER
        raise self.error(
            f"expected {delimiter.description}{context}, found {describe_tree(found)}",
            kind
        )

    def parenthesized(self, context: str = "") -> 'ParseStream':
        return self.open_group(Delimiter.PAREN, context)

    def braced(self, context: str = "") -> 'ParseStream':
        return self.open_group(Delimiter.BRACE, context)

    def bracketed(self, context: str = "") -> 'ParseStream':
        return self.open_group(Delimiter.BRACKET, context)

    def mark(self) -> int:
        return self._index

    def consumed_since(self, mark: int) -> TokenStream:
        """Token trees consumed since ``mark`` was taken."""
        return TokenStream(self._trees[mark:self._index])

    def expect_end(self):
        if not self.is_empty():
            raise self.error(f"unexpected token {describe_tree(self.current())}")

    def error(self, message: str, kind: ErrorKind = ErrorKind.UNEXPECTED_TOKEN) -> ParseError:
        return ParseError(message, self.position(), kind)


class Lookahead:
    """One-token lookahead that remembers what was asked for."""

    def __init__(self, input: ParseStream):
        self.input = input
        self.expected: List[str] = []

    def peek(self, kind) -> bool:
        self.expected.append(describe_kind(kind))
        return self.input.peek(kind)

    def error(self, kind: ErrorKind = ErrorKind.AMBIGUOUS_BRACKET) -> ParseError:
        found = self.input.current()
        if is_absent(found):
            kind = ErrorKind.MISSING_PAYLOAD
        if len(self.expected) <= 2:
            wanted = " or ".join(self.expected)
        else:
            wanted = "one of: " + ", ".join(self.expected)
        return self.input.error(f"expected {wanted}, found {describe_tree(found)}", kind)


def parse_terminated(input: ParseStream, item) -> Tuple[Any, ...]:
    """Parse ``item (, item)* ,?`` up to the end of ``input``.

    The list may be empty. Item errors propagate unchanged.
    """
    parse = _parser_for(item)
    fields = []
    while not input.is_empty():
        fields.append(parse(input))
        if input.is_empty():
            break
        input.expect(TokenType.COMMA, " between items")
    return tuple(fields)


def _stream_end(stream: TokenStream) -> Position:
    if stream.is_empty():
        return Position(1, 1)
    last = stream.trees[-1]
    if isinstance(last, Group):
        return Position(last.close_line, last.close_column + 1)
    return Position(last.line, last.column + len(last.value))


def parse_tokens(grammar, stream: TokenStream, end_position: Optional[Position] = None) -> Any:
    """Parse a whole token stream with ``grammar``; leftovers are an error."""
    input = ParseStream(stream, end_position or _stream_end(stream))
    result = input.parse(grammar)
    input.expect_end()
    return result


def parse_source(grammar, source: str) -> Any:
    """Tokenize ``source`` and parse all of it with ``grammar``."""
    tokens = tokenize(source)
    eof = tokens[-1]
    return parse_tokens(grammar, build_token_tree(tokens), eof.position)
