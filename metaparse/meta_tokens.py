"""
Token trees.

The cursor works on token trees rather than flat tokens: every bracketed
region becomes a single ``Group`` holding its own ``TokenStream``. Unbalanced
brackets are therefore reported once, before any grammar runs.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Protocol, Union

from .meta_lexer import LexerError, Position, Token, TokenType, tokenize


class Delimiter(Enum):
    PAREN = ('(', ')')
    BRACE = ('{', '}')
    BRACKET = ('[', ']')

    @property
    def open(self) -> str:
        return self.value[0]

    @property
    def close(self) -> str:
        return self.value[1]

    @property
    def description(self) -> str:
        return _DELIMITER_DESCRIPTIONS[self]


_DELIMITER_DESCRIPTIONS = {
    Delimiter.PAREN: "parentheses",
    Delimiter.BRACE: "curly braces",
    Delimiter.BRACKET: "square brackets",
}

_OPENERS = {
    TokenType.LPAREN: Delimiter.PAREN,
    TokenType.LBRACE: Delimiter.BRACE,
    TokenType.LBRACKET: Delimiter.BRACKET,
}

_CLOSERS = {
    TokenType.RPAREN: Delimiter.PAREN,
    TokenType.RBRACE: Delimiter.BRACE,
    TokenType.RBRACKET: Delimiter.BRACKET,
}

_OPEN_TYPES = {delim: tt for tt, delim in _OPENERS.items()}
_CLOSE_TYPES = {delim: tt for tt, delim in _CLOSERS.items()}


class TokenTreeError(LexerError):
    """Raised when brackets do not balance."""


@dataclass
class Group:
    """A delimited group: ``( ... )``, ``{ ... }`` or ``[ ... ]``."""
    delimiter: Delimiter
    stream: 'TokenStream'
    line: int
    column: int
    close_line: int = 0
    close_column: int = 0

    @property
    def position(self) -> Position:
        return Position(self.line, self.column)

    @property
    def close_position(self) -> Position:
        return Position(self.close_line, self.close_column)

    def flatten(self) -> Iterator[Token]:
        """Yield the group as flat tokens, delimiters included."""
        yield Token(_OPEN_TYPES[self.delimiter], self.delimiter.open, self.line, self.column)
        yield from self.stream.flatten()
        yield Token(_CLOSE_TYPES[self.delimiter], self.delimiter.close,
                    self.close_line, self.close_column)

    def __str__(self):
        return f"{self.delimiter.open}{self.stream}{self.delimiter.close}"


TokenTree = Union[Token, Group]


class TokenStream:
    """An ordered sequence of token trees."""

    def __init__(self, trees: Optional[Iterable[TokenTree]] = None):
        self.trees: List[TokenTree] = list(trees or [])

    def append(self, tree: TokenTree):
        self.trees.append(tree)

    def extend(self, trees: Iterable[TokenTree]):
        self.trees.extend(trees)

    def is_empty(self) -> bool:
        return not self.trees

    def flatten(self) -> Iterator[Token]:
        for tree in self.trees:
            if isinstance(tree, Group):
                yield from tree.flatten()
            else:
                yield tree

    def __iter__(self):
        return iter(self.trees)

    def __len__(self):
        return len(self.trees)

    def __str__(self):
        parts = []
        for i, tree in enumerate(self.trees):
            parts.append(str(tree) if isinstance(tree, Group) else tree.value)
            joint = isinstance(tree, Token) and tree.joint
            if i + 1 < len(self.trees) and not joint:
                parts.append(' ')
        return ''.join(parts)

    def __repr__(self):
        return f"TokenStream({str(self)!r})"


class ToTokens(Protocol):
    """Anything that can append itself to a token stream."""

    def to_tokens(self, tokens: TokenStream) -> None:
        ...


def into_token_stream(value: ToTokens) -> TokenStream:
    tokens = TokenStream()
    value.to_tokens(tokens)
    return tokens


@dataclass
class _Frame:
    delimiter: Optional[Delimiter]
    open_token: Optional[Token]
    trees: List[TokenTree] = field(default_factory=list)


def build_token_tree(tokens: List[Token]) -> TokenStream:
    """Group a flat token list into token trees.

    Returns the top-level stream. The EOF token is dropped.
    """
    stack = [_Frame(None, None)]

    for token in tokens:
        if token.type == TokenType.EOF:
            break
        if token.type in _OPENERS:
            stack.append(_Frame(_OPENERS[token.type], token))
        elif token.type in _CLOSERS:
            frame = stack[-1]
            if frame.delimiter is None:
                raise TokenTreeError(f"Unexpected closing {token.value!r}", token.line, token.column)
            if frame.delimiter != _CLOSERS[token.type]:
                raise TokenTreeError(
                    f"Mismatched closing {token.value!r}, expected {frame.delimiter.close!r}",
                    token.line, token.column
                )
            stack.pop()
            opener = frame.open_token
            stack[-1].trees.append(Group(
                delimiter=frame.delimiter,
                stream=TokenStream(frame.trees),
                line=opener.line,
                column=opener.column,
                close_line=token.line,
                close_column=token.column,
            ))
        else:
            stack[-1].trees.append(token)

    if len(stack) > 1:
        opener = stack[-1].open_token
        raise TokenTreeError(f"Unclosed {opener.value!r}", opener.line, opener.column)

    return TokenStream(stack[0].trees)


def parse_token_stream(source: str) -> TokenStream:
    """Tokenize source text and group it into token trees."""
    return build_token_tree(tokenize(source))
