"""
AST node definitions for attribute payloads.

Nodes are immutable once parsed; child lists are stored as tuples. Line and
column are kept for diagnostics but do not take part in equality, so two
payloads spelled alike in different places compare equal.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Optional, Tuple, Union
from enum import Enum, auto


def _pos() -> Any:
    return field(default=0, compare=False)


class _Node:
    """Base for AST nodes."""

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, list):
                object.__setattr__(self, f.name, tuple(value))


# =============================================================================
# Literals
# =============================================================================

class LitKind(Enum):
    INT = auto()
    FLOAT = auto()
    STR = auto()
    BYTE_STR = auto()
    CHAR = auto()
    BYTE = auto()
    BOOL = auto()


@dataclass(frozen=True)
class Literal(_Node):
    """Literal value with its optional type suffix (``3u8``)."""
    kind: LitKind
    value: Any
    suffix: str = ""
    line: int = _pos()
    column: int = _pos()


# =============================================================================
# Expression AST nodes
# =============================================================================

class BinaryOperator(Enum):
    """Binary operators."""
    # Arithmetic
    ADD = '+'
    SUB = '-'
    MUL = '*'
    DIV = '/'
    REM = '%'
    # Bitwise
    BIT_AND = '&'
    BIT_OR = '|'
    BIT_XOR = '^'
    SHL = '<<'
    SHR = '>>'
    # Comparison
    EQ = '=='
    NEQ = '!='
    LT = '<'
    GT = '>'
    LTE = '<='
    GTE = '>='
    # Boolean
    AND = '&&'
    OR = '||'


class UnaryOperator(Enum):
    """Unary operators."""
    NOT = '!'
    NEG = '-'
    DEREF = '*'
    REF = '&'


@dataclass(frozen=True)
class PathExpr(_Node):
    """Variable or path reference: ``x``, ``Self::MAX``."""
    segments: Tuple[str, ...]
    line: int = _pos()
    column: int = _pos()

    @property
    def name(self) -> str:
        return "::".join(self.segments)


@dataclass(frozen=True)
class BinaryExpr(_Node):
    """Binary operation: left op right."""
    left: 'Expr'
    op: BinaryOperator
    right: 'Expr'
    line: int = _pos()
    column: int = _pos()


@dataclass(frozen=True)
class UnaryExpr(_Node):
    """Unary operation: op operand."""
    op: UnaryOperator
    operand: 'Expr'
    line: int = _pos()
    column: int = _pos()


@dataclass(frozen=True)
class CallExpr(_Node):
    """Call: func(arg1, arg2, ...)."""
    func: 'Expr'
    args: Tuple['Expr', ...] = ()
    line: int = _pos()
    column: int = _pos()


@dataclass(frozen=True)
class MethodCallExpr(_Node):
    """Method call: receiver.method(args)."""
    receiver: 'Expr'
    method: str
    args: Tuple['Expr', ...] = ()
    line: int = _pos()
    column: int = _pos()


@dataclass(frozen=True)
class FieldAccessExpr(_Node):
    """Field access: object.field or tuple.0."""
    object: 'Expr'
    field: str
    line: int = _pos()
    column: int = _pos()


@dataclass(frozen=True)
class IndexAccessExpr(_Node):
    """Index access: object[index]."""
    object: 'Expr'
    index: 'Expr'
    line: int = _pos()
    column: int = _pos()


@dataclass(frozen=True)
class TryExpr(_Node):
    """Error propagation: expr?."""
    operand: 'Expr'
    line: int = _pos()
    column: int = _pos()


@dataclass(frozen=True)
class CastExpr(_Node):
    """Cast: expr as Type."""
    operand: 'Expr'
    type: 'PathType'
    line: int = _pos()
    column: int = _pos()


@dataclass(frozen=True)
class TupleExpr(_Node):
    """Tuple literal: (a, b) or ()."""
    elements: Tuple['Expr', ...] = ()
    line: int = _pos()
    column: int = _pos()


@dataclass(frozen=True)
class ArrayExpr(_Node):
    """Array literal: [a, b, c]."""
    elements: Tuple['Expr', ...] = ()
    line: int = _pos()
    column: int = _pos()


@dataclass(frozen=True)
class RepeatExpr(_Node):
    """Array repeat: [value; count]."""
    value: 'Expr'
    count: 'Expr'
    line: int = _pos()
    column: int = _pos()


@dataclass(frozen=True)
class ClosureParam(_Node):
    name: str
    type: Optional['PathType'] = None


@dataclass(frozen=True)
class ClosureExpr(_Node):
    """Closure: |a, b: u8| body."""
    params: Tuple[ClosureParam, ...]
    body: 'Expr'
    line: int = _pos()
    column: int = _pos()


@dataclass(frozen=True)
class MacroExpr(_Node):
    """Macro invocation: name!(args) or name![args]."""
    path: PathExpr
    args: Tuple['Expr', ...] = ()
    line: int = _pos()
    column: int = _pos()


# Union type for all expressions
Expr = Union[
    Literal, PathExpr, BinaryExpr, UnaryExpr, CallExpr, MethodCallExpr,
    FieldAccessExpr, IndexAccessExpr, TryExpr, CastExpr, TupleExpr,
    ArrayExpr, RepeatExpr, ClosureExpr, MacroExpr
]


# =============================================================================
# Type AST nodes
# =============================================================================

@dataclass(frozen=True)
class PathSegment(_Node):
    name: str
    args: Tuple['GenericArg', ...] = ()


@dataclass(frozen=True)
class PathType(_Node):
    """Path type: u8, Vec<u8>, std::io::Result<T>."""
    segments: Tuple[PathSegment, ...]
    leading_colon: bool = False
    line: int = _pos()
    column: int = _pos()

    @property
    def name(self) -> str:
        return "::".join(s.name for s in self.segments)


@dataclass(frozen=True)
class ReferenceType(_Node):
    """Reference type: &'a mut T."""
    elem: 'TypeExpr'
    mutable: bool = False
    lifetime: Optional[str] = None
    line: int = _pos()
    column: int = _pos()


@dataclass(frozen=True)
class PointerType(_Node):
    """Raw pointer: *const T or *mut T."""
    elem: 'TypeExpr'
    mutable: bool = False
    line: int = _pos()
    column: int = _pos()


@dataclass(frozen=True)
class ArrayType(_Node):
    """Fixed-size array: [T; N]."""
    elem: 'TypeExpr'
    length: Expr
    line: int = _pos()
    column: int = _pos()


@dataclass(frozen=True)
class SliceType(_Node):
    """Slice: [T]."""
    elem: 'TypeExpr'
    line: int = _pos()
    column: int = _pos()


@dataclass(frozen=True)
class TupleType(_Node):
    """Tuple type: (A, B); the unit type has no elements."""
    elems: Tuple['TypeExpr', ...] = ()
    line: int = _pos()
    column: int = _pos()


@dataclass(frozen=True)
class InferType(_Node):
    """Placeholder type: _."""
    line: int = _pos()
    column: int = _pos()


@dataclass(frozen=True)
class LifetimeArg(_Node):
    name: str


# Union type for all types
TypeExpr = Union[PathType, ReferenceType, PointerType, ArrayType, SliceType, TupleType, InferType]

GenericArg = Union[TypeExpr, LifetimeArg, Literal]
