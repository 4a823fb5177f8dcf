"""
Relocation Expressions
======================

Patch records carry an expression that tells the linker how to compute
the value written at the patch location. Expressions are stored as
prefix trees: every node begins with a tag byte, leaves carry a single
operand, and binary operators are followed by their left and then their
right operand.

Node Tags
---------
**Leaves:**
- $00 constant (u32)
- $02 address of symbol number n, printed ``[n]``
- $04 ``sectbase(n)``   $06 ``bank(n)``       $08 ``sectof(n)``
- $0A ``offs(n)``       $0C ``sectstart(n)``  $0E ``groupstart(n)``
- $10 ``groupof(n)``    $12 ``seg(n)``        $14 ``grouporg(n)``
- $16 ``sectend(n)``

**Binary operators:**
- Comparison: $20 ``=``, $22 ``<>``, $24 ``<=``, $26 ``<``, $28 ``>=``, $2A ``>``
- Arithmetic: $2C ``+``, $2E ``-``, $30 ``*``, $32 ``/``, $3E ``%%``
- Bitwise: $34 ``&``, $36 ``!`` (or), $38 ``^``, $3A ``<<``, $3C ``>>``
- Vendor: $40 ``---``
- SH-2 only: $42 ``-revword-``, $44 ``-check0-``, $46 ``-check1-``,
  $48 ``-bitrange-``, $4A ``-arshift_chk-``

Operand order matters: ``(a-b)`` is encoded as $2E, a, b and always
evaluates to ``a - b``. Decoding and encoding never reorder operands.

The representation is processor agnostic: SH-2 operators decode and
encode in any module. Rejecting them for other targets is a separate
policy step, see check_operators().

Example
-------
>>> from psyq_sdk.binary import ByteReader
>>> expr = decode_expression(ByteReader(bytes.fromhex("2e0c01000401 00".replace(" ", ""))))
>>> str(expr)
'(sectstart(1)-sectbase(1))'
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterator, Optional

from psyq_sdk.binary import ByteReader, ByteWriter
from psyq_sdk.errors import (
    EvaluationError,
    ExpressionDepthError,
    UnknownExpressionError,
    UnsupportedOperatorError,
)
from psyq_sdk.obj.cpu import CpuType


# Nesting limit for decoding; real files stay in single digits
MAX_EXPRESSION_DEPTH = 256

MASK_32 = 0xFFFFFFFF


# =============================================================================
# Tags
# =============================================================================

class ExpressionTag(IntEnum):
    """Expression node tag bytes."""
    CONSTANT = 0x00
    SYMBOL_ADDRESS = 0x02
    SECTION_BASE = 0x04
    BANK = 0x06
    SECTION_OF = 0x08
    OFFSET = 0x0A
    SECTION_START = 0x0C
    GROUP_START = 0x0E
    GROUP_OF = 0x10
    SEGMENT = 0x12
    GROUP_ORG = 0x14
    SECTION_END = 0x16

    EQUALS = 0x20
    NOT_EQUALS = 0x22
    LESS_EQUAL = 0x24
    LESS_THAN = 0x26
    GREATER_EQUAL = 0x28
    GREATER_THAN = 0x2A
    ADD = 0x2C
    SUBTRACT = 0x2E
    MULTIPLY = 0x30
    DIVIDE = 0x32
    AND = 0x34
    OR = 0x36
    XOR = 0x38
    LEFT_SHIFT = 0x3A
    RIGHT_SHIFT = 0x3C
    MODULO = 0x3E
    DASHES = 0x40
    REVWORD = 0x42
    CHECK0 = 0x44
    CHECK1 = 0x46
    BIT_RANGE = 0x48
    ARSHIFT_CHK = 0x4A


# Leaf tags that take a 16-bit index, with their printed form
REFERENCE_FORMATS: dict[int, str] = {
    ExpressionTag.SYMBOL_ADDRESS: "[{:x}]",
    ExpressionTag.SECTION_BASE: "sectbase({:x})",
    ExpressionTag.BANK: "bank({:x})",
    ExpressionTag.SECTION_OF: "sectof({:x})",
    ExpressionTag.OFFSET: "offs({:x})",
    ExpressionTag.SECTION_START: "sectstart({:x})",
    ExpressionTag.GROUP_START: "groupstart({:x})",
    ExpressionTag.GROUP_OF: "groupof({:x})",
    ExpressionTag.SEGMENT: "seg({:x})",
    ExpressionTag.GROUP_ORG: "grouporg({:x})",
    ExpressionTag.SECTION_END: "sectend({:x})",
}

# Leaf tags whose operand is a section id
SECTION_REFERENCES = frozenset({
    ExpressionTag.SECTION_BASE,
    ExpressionTag.SECTION_START,
    ExpressionTag.SECTION_END,
})

OPERATOR_SYMBOLS: dict[int, str] = {
    ExpressionTag.EQUALS: "=",
    ExpressionTag.NOT_EQUALS: "<>",
    ExpressionTag.LESS_EQUAL: "<=",
    ExpressionTag.LESS_THAN: "<",
    ExpressionTag.GREATER_EQUAL: ">=",
    ExpressionTag.GREATER_THAN: ">",
    ExpressionTag.ADD: "+",
    ExpressionTag.SUBTRACT: "-",
    ExpressionTag.MULTIPLY: "*",
    ExpressionTag.DIVIDE: "/",
    ExpressionTag.AND: "&",
    ExpressionTag.OR: "!",
    ExpressionTag.XOR: "^",
    ExpressionTag.LEFT_SHIFT: "<<",
    ExpressionTag.RIGHT_SHIFT: ">>",
    ExpressionTag.MODULO: "%%",
    ExpressionTag.DASHES: "---",
    ExpressionTag.REVWORD: "-revword-",
    ExpressionTag.CHECK0: "-check0-",
    ExpressionTag.CHECK1: "-check1-",
    ExpressionTag.BIT_RANGE: "-bitrange-",
    ExpressionTag.ARSHIFT_CHK: "-arshift_chk-",
}

# Operators only understood by the SH-2 toolchain
SH2_OPERATORS = frozenset({
    ExpressionTag.REVWORD,
    ExpressionTag.CHECK0,
    ExpressionTag.CHECK1,
    ExpressionTag.BIT_RANGE,
    ExpressionTag.ARSHIFT_CHK,
})


# =============================================================================
# Expression Nodes
# =============================================================================

class Expression:
    """Base class for expression tree nodes."""

    tag: int

    def encode(self, writer: ByteWriter) -> None:
        raise NotImplementedError("Subclasses must implement encode()")

    def to_bytes(self) -> bytes:
        writer = ByteWriter()
        self.encode(writer)
        return writer.getvalue()

    def walk(self) -> Iterator["Expression"]:
        """Yield every node, parents before children, left before right."""
        yield self


@dataclass
class Constant(Expression):
    """A 32-bit constant, printed as ``$hex``."""
    value: int
    tag: int = field(default=ExpressionTag.CONSTANT, init=False, repr=False)

    def encode(self, writer: ByteWriter) -> None:
        writer.u8(self.tag).u32(self.value)

    def __str__(self) -> str:
        return f"${self.value:x}"


@dataclass
class Reference(Expression):
    """A leaf naming a symbol number, section id or group number."""
    tag: int
    index: int

    def __post_init__(self) -> None:
        if self.tag not in REFERENCE_FORMATS:
            raise ValueError(f"not a reference tag: {self.tag}")

    def encode(self, writer: ByteWriter) -> None:
        writer.u8(self.tag).u16(self.index)

    def __str__(self) -> str:
        return REFERENCE_FORMATS[self.tag].format(self.index)


@dataclass
class BinaryOp(Expression):
    """An operator applied to a left and a right operand."""
    tag: int
    left: Expression
    right: Expression

    def __post_init__(self) -> None:
        if self.tag not in OPERATOR_SYMBOLS:
            raise ValueError(f"not an operator tag: {self.tag}")

    @property
    def symbol(self) -> str:
        return OPERATOR_SYMBOLS[self.tag]

    def encode(self, writer: ByteWriter) -> None:
        writer.u8(self.tag)
        self.left.encode(writer)
        self.right.encode(writer)

    def walk(self) -> Iterator[Expression]:
        yield self
        yield from self.left.walk()
        yield from self.right.walk()

    def __str__(self) -> str:
        return f"({self.left}{self.symbol}{self.right})"


# Shorthand for the references most patches use

def symbol(number: int) -> Reference:
    return Reference(ExpressionTag.SYMBOL_ADDRESS, number)


def sectbase(section_id: int) -> Reference:
    return Reference(ExpressionTag.SECTION_BASE, section_id)


def sectstart(section_id: int) -> Reference:
    return Reference(ExpressionTag.SECTION_START, section_id)


def sectend(section_id: int) -> Reference:
    return Reference(ExpressionTag.SECTION_END, section_id)


# =============================================================================
# Codec
# =============================================================================

def decode_expression(reader: ByteReader, depth: int = 0) -> Expression:
    """
    Decode one expression tree from the reader.

    Args:
        reader: Positioned at the first tag byte of the expression
        depth: Current nesting depth (internal)

    Returns:
        The decoded expression

    Raises:
        UnknownExpressionError: For a tag outside the known set
        ExpressionDepthError: For trees nested deeper than MAX_EXPRESSION_DEPTH
        TruncatedDataError: If the buffer ends inside the expression
    """
    if depth > MAX_EXPRESSION_DEPTH:
        raise ExpressionDepthError(
            f"expression nested deeper than {MAX_EXPRESSION_DEPTH}",
            offset=reader.offset,
            tag=reader.tag,
        )

    start = reader.offset
    tag = reader.u8()

    if tag == ExpressionTag.CONSTANT:
        return Constant(reader.u32())
    if tag in REFERENCE_FORMATS:
        return Reference(ExpressionTag(tag), reader.u16())
    if tag in OPERATOR_SYMBOLS:
        left = decode_expression(reader, depth + 1)
        right = decode_expression(reader, depth + 1)
        return BinaryOp(ExpressionTag(tag), left, right)

    raise UnknownExpressionError(tag, start)


def encode_expression(expression: Expression) -> bytes:
    """Encode an expression tree to its prefix byte form."""
    return expression.to_bytes()


# =============================================================================
# Evaluation
# =============================================================================

@dataclass
class Resolver:
    """
    Supplies values for the references in an expression.

    Attributes:
        symbols: Symbol number -> address
        section_bases: Section id -> base address (``sectbase``)
        section_starts: Section id -> start address (``sectstart``)
        section_ends: Section id -> end address (``sectend``)
        others: (tag, index) -> value for the remaining reference kinds
    """
    symbols: dict[int, int] = field(default_factory=dict)
    section_bases: dict[int, int] = field(default_factory=dict)
    section_starts: dict[int, int] = field(default_factory=dict)
    section_ends: dict[int, int] = field(default_factory=dict)
    others: dict[tuple[int, int], int] = field(default_factory=dict)

    def resolve(self, reference: Reference) -> int:
        """Return the value of a reference or raise EvaluationError."""
        tables = {
            ExpressionTag.SYMBOL_ADDRESS: self.symbols,
            ExpressionTag.SECTION_BASE: self.section_bases,
            ExpressionTag.SECTION_START: self.section_starts,
            ExpressionTag.SECTION_END: self.section_ends,
        }
        table = tables.get(reference.tag)
        if table is not None:
            value = table.get(reference.index)
        else:
            value = self.others.get((int(reference.tag), reference.index))
        if value is None:
            raise EvaluationError(f"cannot resolve {reference}")
        return value


def _divide(left: int, right: int) -> int:
    if right == 0:
        raise EvaluationError("division by zero")
    return left // right


def _modulo(left: int, right: int) -> int:
    if right == 0:
        raise EvaluationError("modulo by zero")
    return left % right


_EVALUATORS = {
    ExpressionTag.EQUALS: lambda a, b: int(a == b),
    ExpressionTag.NOT_EQUALS: lambda a, b: int(a != b),
    ExpressionTag.LESS_EQUAL: lambda a, b: int(a <= b),
    ExpressionTag.LESS_THAN: lambda a, b: int(a < b),
    ExpressionTag.GREATER_EQUAL: lambda a, b: int(a >= b),
    ExpressionTag.GREATER_THAN: lambda a, b: int(a > b),
    ExpressionTag.ADD: lambda a, b: a + b,
    ExpressionTag.SUBTRACT: lambda a, b: a - b,
    ExpressionTag.MULTIPLY: lambda a, b: a * b,
    ExpressionTag.DIVIDE: _divide,
    ExpressionTag.AND: lambda a, b: a & b,
    ExpressionTag.OR: lambda a, b: a | b,
    ExpressionTag.XOR: lambda a, b: a ^ b,
    ExpressionTag.LEFT_SHIFT: lambda a, b: a << b if b < 32 else 0,
    ExpressionTag.RIGHT_SHIFT: lambda a, b: a >> b if b < 32 else 0,
    ExpressionTag.MODULO: _modulo,
}


def evaluate(expression: Expression, resolver: Resolver) -> int:
    """
    Evaluate an expression with 32-bit unsigned arithmetic.

    Operands are evaluated left then right and combined in that order,
    so ``(a-b)`` yields ``a - b``. Comparisons produce 1 or 0.

    Raises:
        EvaluationError: Unresolvable reference or division by zero
        UnsupportedOperatorError: Vendor operators with no defined value
    """
    if isinstance(expression, Constant):
        return expression.value & MASK_32
    if isinstance(expression, Reference):
        return resolver.resolve(expression) & MASK_32
    if isinstance(expression, BinaryOp):
        operation = _EVALUATORS.get(expression.tag)
        if operation is None:
            raise UnsupportedOperatorError(expression.symbol, "cannot be evaluated")
        left = evaluate(expression.left, resolver)
        right = evaluate(expression.right, resolver)
        return operation(left, right) & MASK_32
    raise TypeError(f"not an expression: {expression!r}")


# =============================================================================
# Processor Policy
# =============================================================================

def check_operators(expression: Expression, cpu: Optional[int]) -> None:
    """
    Reject operators the target processor's toolchain does not define.

    Args:
        expression: The expression to check
        cpu: Processor type byte from the module's CPU record, or None
             when unknown (unknown targets accept every operator)

    Raises:
        UnsupportedOperatorError: For an SH-2 operator in a non-SH-2 module
    """
    if cpu is None or cpu == CpuType.HITACHI_SH2:
        return
    for node in expression.walk():
        if isinstance(node, BinaryOp) and node.tag in SH2_OPERATORS:
            raise UnsupportedOperatorError(
                node.symbol, f"is not available for {CpuType.get_name(cpu)}"
            )
