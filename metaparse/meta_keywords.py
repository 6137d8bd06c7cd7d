"""
Keyword tokens.

Each attribute keyword is its own class, so a grammar built for ``magic``
can never accept ``assert`` even though both are plain identifiers.
"""

from dataclasses import dataclass, field
from typing import Dict, Protocol, Type

from .meta_cursor import ErrorKind, ParseStream, describe_tree
from .meta_lexer import Position, Token, TokenType
from .meta_tokens import TokenStream


class KeywordToken(Protocol):
    """Implemented by every node that starts with a keyword."""

    def keyword_position(self) -> Position:
        ...


@dataclass(frozen=True)
class Keyword:
    """Base class for custom keywords. Subclasses set ``ident``."""
    position: Position = field(default=Position(0, 0), compare=False)

    ident = ""

    @classmethod
    def display(cls) -> str:
        return f"`{cls.ident}`"

    @classmethod
    def matches(cls, tree) -> bool:
        return isinstance(tree, Token) and tree.type == TokenType.IDENT and tree.value == cls.ident

    @classmethod
    def parse(cls, input: ParseStream) -> 'Keyword':
        if not input.peek(cls):
            raise input.error(
                f"expected {cls.display()}, found {describe_tree(input.current())}",
                ErrorKind.KEYWORD_MISMATCH
            )
        token = input.advance()
        return cls(token.position)

    def keyword_position(self) -> Position:
        return self.position

    def to_tokens(self, tokens: TokenStream):
        tokens.append(Token(TokenType.IDENT, self.ident, self.position.line, self.position.column))

    def __repr__(self):
        return f"kw.{self.ident}"


_keywords: Dict[str, Type[Keyword]] = {}


def custom_keyword(ident: str) -> Type[Keyword]:
    """Return the keyword class for ``ident``, creating it on first use."""
    if ident not in _keywords:
        class_name = f"kw_{ident}"
        _keywords[ident] = type(class_name, (Keyword,), {"ident": ident})
    return _keywords[ident]
