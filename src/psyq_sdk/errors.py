"""
PSY-Q SDK Error Hierarchy
=========================

This module defines the exception hierarchy for the whole package.
All exceptions inherit from PsyqError, allowing callers to catch every
codec or archive failure with a single except clause if desired.

Exception Hierarchy
-------------------
PsyqError (base)
├── DecodeError - malformed bytes (carries offset and tag)
│   ├── TruncatedDataError - declared length runs past the buffer
│   ├── BadMagicError - missing "LNK" / "LIB" signature
│   ├── UnknownRecordError - record tag this codec does not know
│   ├── UnknownExpressionError - expression tag this codec does not know
│   ├── ExpressionDepthError - expression nested too deeply
│   └── TrailingDataError - bytes after the end-of-module record
├── ModuleError - structurally invalid module (carries record index)
│   ├── RecordOrderError - record appears where the format forbids it
│   ├── SectionReferenceError - section id never declared
│   ├── SymbolReferenceError - symbol number never declared
│   └── MissingEndError - record list without a final End record
├── ExpressionError - expression cannot be evaluated
│   ├── EvaluationError - unresolved reference, division by zero
│   └── UnsupportedOperatorError - operator not valid for the request
├── ArchiveError - malformed LIB container (carries offset, entry index)
│   └── ArchiveRangeError - payload locator outside the buffer
└── MembershipError - archive mutation precondition failed
    ├── NotFoundError - no module with that name
    └── DuplicateNameError - module name already present

Design Philosophy
-----------------
Every decode path reports failures by raising one of these classes; no
malformed input may escape as IndexError or struct.error. Each exception
keeps its context (byte offset, record index, module name) as attributes
so callers can build their own diagnostics, and formats a readable message:

    error at offset 0x1c (tag 0x2a): record needs 4 bytes, 2 available

Conditions the legacy toolchain may have tolerated (duplicate exported
names, duplicate module names) are not exceptions at all: they are
reported as FormatViolation values and the caller decides the policy.
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class PsyqError(Exception):
    """
    Base exception for all PSY-Q SDK errors.

        try:
            archive = parse_library(data)
        except PsyqError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Decode Exceptions
# =============================================================================

class DecodeError(PsyqError):
    """
    Malformed OBJ bytes.

    Attributes:
        message: The error description
        offset: Byte offset in the decoded buffer where the problem was found
        tag: The record or expression tag being decoded (optional)
    """

    def __init__(
        self,
        message: str,
        offset: Optional[int] = None,
        tag: Optional[int] = None,
    ):
        self.message = message
        self.offset = offset
        self.tag = tag
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.offset is None:
            return self.message
        where = f"offset 0x{self.offset:x}"
        if self.tag is not None:
            where += f" (tag 0x{self.tag:02x})"
        return f"error at {where}: {self.message}"


class TruncatedDataError(DecodeError):
    """
    A field or payload extends past the end of the buffer.

    Raised before any slice or allocation proportional to the declared
    length is made.
    """

    def __init__(
        self,
        needed: int,
        available: int,
        offset: Optional[int] = None,
        tag: Optional[int] = None,
    ):
        self.needed = needed
        self.available = available
        super().__init__(
            f"need {needed} bytes, {available} available",
            offset=offset,
            tag=tag,
        )


class BadMagicError(DecodeError):
    """The buffer does not start with the expected signature."""

    def __init__(self, expected: bytes, actual: bytes):
        self.expected = expected
        self.actual = actual
        super().__init__(f"bad magic {actual!r}, expected {expected!r}", offset=0)


class UnknownRecordError(DecodeError):
    """
    A record tag this codec does not decode.

    Recoverable in the sense that the caller may decide to report the
    module as opaque and carry on; the codec itself never skips it.
    """

    def __init__(self, tag: int, offset: int):
        super().__init__(f"unknown record tag {tag}", offset=offset, tag=tag)


class UnknownExpressionError(DecodeError):
    """An expression node tag this codec does not decode."""

    def __init__(self, tag: int, offset: int):
        super().__init__(f"unknown expression tag {tag}", offset=offset, tag=tag)


class ExpressionDepthError(DecodeError):
    """Expression nesting exceeds the supported depth."""
    pass


class TrailingDataError(DecodeError):
    """Bytes remain after the end-of-module record."""

    def __init__(self, remaining: int, offset: int):
        self.remaining = remaining
        super().__init__(f"{remaining} trailing bytes after end of module", offset=offset)


# =============================================================================
# Module Exceptions
# =============================================================================

class ModuleError(PsyqError):
    """
    A record stream that decodes but does not form a valid module.

    Attributes:
        message: The error description
        record_index: Position of the offending record in the stream
        offset: Byte offset of that record, when known
    """

    def __init__(
        self,
        message: str,
        record_index: Optional[int] = None,
        offset: Optional[int] = None,
    ):
        self.message = message
        self.record_index = record_index
        self.offset = offset
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = []
        if self.record_index is not None:
            parts.append(f"record {self.record_index}")
        if self.offset is not None:
            parts.append(f"offset 0x{self.offset:x}")
        if parts:
            return f"{', '.join(parts)}: {self.message}"
        return self.message


class RecordOrderError(ModuleError):
    """
    Record appears where the format does not allow it.

    Examples:
        - Code or relocation before any section has been selected
        - End record in the middle of a record list
    """
    pass


class SectionReferenceError(ModuleError):
    """A section id referenced by the module is never declared."""

    def __init__(
        self,
        section_id: int,
        record_index: Optional[int] = None,
        offset: Optional[int] = None,
    ):
        self.section_id = section_id
        super().__init__(
            f"undeclared section {section_id:x}",
            record_index=record_index,
            offset=offset,
        )


class SymbolReferenceError(ModuleError):
    """A symbol number referenced by an expression is never declared."""

    def __init__(
        self,
        symbol_number: int,
        record_index: Optional[int] = None,
        offset: Optional[int] = None,
    ):
        self.symbol_number = symbol_number
        super().__init__(
            f"undeclared symbol number {symbol_number:x}",
            record_index=record_index,
            offset=offset,
        )


class MissingEndError(ModuleError):
    """The record list does not finish with an End record."""
    pass


# =============================================================================
# Expression Exceptions
# =============================================================================

class ExpressionError(PsyqError):
    """Base exception for expression evaluation and policy failures."""
    pass


class EvaluationError(ExpressionError):
    """
    Expression cannot be evaluated.

    Raised when:
    - A symbol or section cannot be resolved by the resolver
    - Division or modulo by zero
    """
    pass


class UnsupportedOperatorError(ExpressionError):
    """
    Operator not available for the requested operation.

    Raised when evaluating an operator whose semantics are vendor
    specific, or when a target processor does not accept an operator.
    """

    def __init__(self, operator: str, reason: str):
        self.operator = operator
        self.reason = reason
        super().__init__(f"operator '{operator}' {reason}")


# =============================================================================
# Archive Exceptions
# =============================================================================

class ArchiveError(PsyqError):
    """
    Malformed LIB container.

    Attributes:
        message: The error description
        offset: Byte offset in the LIB buffer
        entry_index: Index of the directory entry being decoded
    """

    def __init__(
        self,
        message: str,
        offset: Optional[int] = None,
        entry_index: Optional[int] = None,
    ):
        self.message = message
        self.offset = offset
        self.entry_index = entry_index
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = []
        if self.entry_index is not None:
            parts.append(f"entry {self.entry_index}")
        if self.offset is not None:
            parts.append(f"offset 0x{self.offset:x}")
        if parts:
            return f"{', '.join(parts)}: {self.message}"
        return self.message


class ArchiveRangeError(ArchiveError):
    """A payload locator points outside the archive or inside its own header."""
    pass


# =============================================================================
# Membership Exceptions
# =============================================================================

class MembershipError(PsyqError):
    """Base exception for add/update/delete/extract preconditions."""

    def __init__(self, name: str, message: str):
        self.name = name
        super().__init__(message)


class NotFoundError(MembershipError):
    """No module with the given name exists in the archive."""

    def __init__(self, name: str):
        super().__init__(name, f"module '{name}' not found")


class DuplicateNameError(MembershipError):
    """A module with the given name already exists in the archive."""

    def __init__(self, name: str):
        super().__init__(name, f"module '{name}' already exists")


# =============================================================================
# Violation Reports
# =============================================================================

@dataclass(frozen=True)
class FormatViolation:
    """
    A suspicious but decodable condition.

    The legacy toolchain is known to have produced archives that break
    the intended invariants, so these are reported rather than raised.

    Attributes:
        kind: Short machine-readable identifier, e.g. "duplicate-export"
        subject: The offending name
        message: Human-readable description
    """
    kind: str
    subject: str
    message: str

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"
