"""
Object Module Model
===================

Folds a decoded OBJ record stream into a structured Module: sections,
symbols, relocations and data blocks, each bound to the section it
belongs to.

Usage
-----
    module = parse_module(data)
    print(module.name, module.exported_symbol_names())
    assert serialize_module(module) == data

Folding Rules
-------------
- SectionHeader declares a section; sections are keyed by their 16-bit
  id and numbered in declaration order (``Section.index``).
- SectionSwitch selects the current section. Code, Uninitialised and
  Patch records before the first switch are a RecordOrderError.
- Every section keeps its own cursor. Code appends at the cursor and
  advances it, Uninitialised reserves space and advances it, and
  RunAtOffset moves the cursor of the section it names.
- A Patch offset is relative to the start of the most recent Code block
  of the current section.
- Sections may be referenced before they are declared. A reference
  still unresolved at the End record is a SectionReferenceError.
  Section id 0 on a symbol marks an absolute symbol unless a section 0
  is declared.
- Symbol numbers used in patch expressions must be declared by an
  XDEF, XREF or XBSS record (SymbolReferenceError).
- Duplicate exported names are reported in ``Module.violations``.

The module keeps its record list, so serialization reproduces the input
byte for byte.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PureWindowsPath
from typing import Iterable, Optional

from psyq_sdk.binary import ByteReader
from psyq_sdk.errors import (
    BadMagicError,
    DecodeError,
    FormatViolation,
    MissingEndError,
    RecordOrderError,
    SectionReferenceError,
    SymbolReferenceError,
)
from psyq_sdk.obj.codec import decode_record, decode_records, encode_records
from psyq_sdk.obj.expressions import (
    Expression,
    ExpressionTag,
    Reference,
    SECTION_REFERENCES,
    check_operators,
)
from psyq_sdk.obj.records import (
    Code,
    Cpu,
    End,
    Filename,
    LocalSymbol,
    Patch,
    Record,
    RunAtOffset,
    SectionHeader,
    SectionSwitch,
    Uninitialised,
    XBss,
    XDef,
    XRef,
    starred_name,
)

logger = logging.getLogger(__name__)


OBJ_MAGIC = b"LNK"
OBJ_VERSION = 2

# Magic plus version byte
OBJ_HEADER_SIZE = 4


# =============================================================================
# Structured Types
# =============================================================================

class SymbolKind(Enum):
    """How a symbol is introduced."""
    EXTERNAL_DEFINITION = "xdef"
    EXTERNAL_REFERENCE = "xref"
    EXTERNAL_BSS = "xbss"
    LOCAL = "local"


@dataclass
class Section:
    """
    A section declared by a SectionHeader record.

    Attributes:
        id: 16-bit section id used by symbols and switches
        index: Declaration ordinal within the module
        group: Group number the section belongs to
        alignment: Alignment byte from the header
        type_name: Section type (e.g. ".text", ".bss") as raw bytes
        size: Highest cursor position reached in the section
    """
    id: int
    index: int
    group: int
    alignment: int
    type_name: bytes
    size: int = 0

    @property
    def type_text(self) -> str:
        return self.type_name.decode("utf-8", errors="replace")


@dataclass
class Symbol:
    """
    A symbol introduced by an XDEF, XREF, XBSS or LocalSymbol record.

    ``section`` is None for references and for absolute symbols.
    """
    name: bytes
    kind: SymbolKind
    number: Optional[int] = None
    section: Optional[int] = None
    offset: Optional[int] = None
    size: Optional[int] = None

    @property
    def display_name(self) -> str:
        return starred_name(self.name)

    @property
    def is_absolute(self) -> bool:
        return self.kind is not SymbolKind.EXTERNAL_REFERENCE and self.section is None


@dataclass
class Relocation:
    """A patch bound to a position in a section."""
    section: int
    offset: int
    patch_type: int
    expression: Expression
    record_index: int


@dataclass
class DataBlock:
    """
    Content placed in a section: bytes for Code records, or a reserved
    range (``data`` is None) for Uninitialised records.
    """
    section: int
    offset: int
    size: int
    data: Optional[bytes] = None

    @property
    def is_reserved(self) -> bool:
        return self.data is None


# =============================================================================
# Module
# =============================================================================

@dataclass
class Module:
    """
    A structured OBJ module.

    ``records`` is the authoritative content. Sections, symbols,
    relocations, data and files are derived from it when the module is
    built and are not written back by ``serialize_module``; to change a
    module, edit the records and build a new one with ``from_records``.

    Attributes:
        name: Module name (caller supplied, or derived from the first
              Filename record)
        version: Version byte following the LNK magic
        records: The record stream, End included
        record_offsets: Byte offset of each record in the source file,
                        empty when the module was not parsed from bytes
        sections: Declared sections in declaration order
        symbols: Symbols in record order
        relocations: Patches with their resolved section positions
        data: Code and reserved blocks in record order
        files: File number -> file name from Filename records
        cpu: Processor type byte, or None without a CPU record
        created_timestamp: Packed creation stamp when taken from a LIB
        violations: Tolerated format violations found while folding
    """
    name: str = ""
    version: int = OBJ_VERSION
    records: list[Record] = field(default_factory=list)
    record_offsets: list[int] = field(default_factory=list)
    sections: list[Section] = field(default_factory=list)
    symbols: list[Symbol] = field(default_factory=list)
    relocations: list[Relocation] = field(default_factory=list)
    data: list[DataBlock] = field(default_factory=list)
    files: dict[int, str] = field(default_factory=dict)
    cpu: Optional[int] = None
    created_timestamp: Optional[int] = None
    violations: list[FormatViolation] = field(default_factory=list)

    @classmethod
    def from_records(
        cls,
        records: Iterable[Record],
        name: Optional[str] = None,
        version: int = OBJ_VERSION,
        offsets: Optional[Iterable[int]] = None,
    ) -> "Module":
        """
        Build a module by folding a record stream.

        `offsets`, when known, are the byte offsets of the records and are
        carried into any error raised.

        Raises:
            MissingEndError: If the stream does not finish with End
            RecordOrderError: For misplaced records
            SectionReferenceError: For sections never declared
            SymbolReferenceError: For undeclared symbol numbers in patches
        """
        module = cls(version=version, records=list(records),
                     record_offsets=list(offsets or ()))
        _ModuleBuilder(module).fold()
        if name is not None:
            module.name = name
        else:
            module.name = _name_from_files(module)
        return module

    def section(self, section_id: int) -> Optional[Section]:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    def exported_symbols(self) -> list[Symbol]:
        return [
            s for s in self.symbols
            if s.kind in (SymbolKind.EXTERNAL_DEFINITION, SymbolKind.EXTERNAL_BSS)
        ]

    def exported_symbol_names(self) -> list[str]:
        """XDEF and XBSS names in record order."""
        return [s.display_name for s in self.exported_symbols()]

    def exported_symbol_raw_names(self) -> list[bytes]:
        return [s.name for s in self.exported_symbols()]

    def check_operators(self) -> None:
        """Reject relocation operators the module's processor cannot use."""
        for relocation in self.relocations:
            check_operators(relocation.expression, self.cpu)

    def to_bytes(self) -> bytes:
        return serialize_module(self)


def _name_from_files(module: Module) -> str:
    if not module.files:
        return ""
    first = next(iter(module.files.values()))
    return PureWindowsPath(first).stem.upper()


class _ModuleBuilder:
    """Single-pass fold of a record list into a Module."""

    def __init__(self, module: Module):
        self.module = module
        self.declared: dict[int, Section] = {}
        self.cursors: dict[int, int] = {}
        self.extents: dict[int, int] = {}
        self.code_starts: dict[int, int] = {}
        self.current: Optional[int] = None
        self.symbol_numbers: set[int] = set()
        # (section id, record index) checked once all headers are seen
        self.section_refs: list[tuple[int, int]] = []
        self.absolute_symbols: list[Symbol] = []
        self.symbol_refs: list[tuple[int, int]] = []

    def fold(self) -> None:
        records = self.module.records
        if not records or not isinstance(records[-1], End):
            raise MissingEndError("record list does not end with an End record",
                                  record_index=len(records))

        for index, record in enumerate(records):
            if isinstance(record, End) and index != len(records) - 1:
                raise RecordOrderError("End record before the end of the module",
                                       record_index=index,
                                       offset=self._offset(index))
            self._apply(index, record)

        self._resolve()

    def _offset(self, index: int) -> Optional[int]:
        offsets = self.module.record_offsets
        return offsets[index] if index < len(offsets) else None

    def _advance(self, section_id: int, size: int) -> int:
        start = self.cursors.get(section_id, 0)
        end = start + size
        self.cursors[section_id] = end
        self.extents[section_id] = max(self.extents.get(section_id, 0), end)
        return start

    def _require_section(self, index: int, record: Record) -> int:
        if self.current is None:
            raise RecordOrderError(
                f"{type(record).__name__} record before any section switch",
                record_index=index,
                offset=self._offset(index),
            )
        return self.current

    def _apply(self, index: int, record: Record) -> None:
        module = self.module

        if isinstance(record, SectionHeader):
            section = Section(record.section, len(module.sections), record.group,
                              record.alignment, record.type_name)
            module.sections.append(section)
            self.declared[record.section] = section

        elif isinstance(record, SectionSwitch):
            self.current = record.section
            self.section_refs.append((record.section, index))

        elif isinstance(record, Code):
            section_id = self._require_section(index, record)
            start = self._advance(section_id, len(record.code))
            self.code_starts[section_id] = start
            module.data.append(DataBlock(section_id, start, len(record.code), record.code))

        elif isinstance(record, Uninitialised):
            section_id = self._require_section(index, record)
            start = self._advance(section_id, record.size)
            module.data.append(DataBlock(section_id, start, record.size))

        elif isinstance(record, RunAtOffset):
            self.cursors[record.section] = record.offset
            self.section_refs.append((record.section, index))

        elif isinstance(record, Patch):
            section_id = self._require_section(index, record)
            base = self.code_starts.get(section_id, 0)
            module.relocations.append(Relocation(
                section_id, base + record.offset, record.patch_type,
                record.expression, index,
            ))
            self._collect_expression_refs(record.expression, index)

        elif isinstance(record, (XDef, XBss)):
            kind = (SymbolKind.EXTERNAL_DEFINITION if isinstance(record, XDef)
                    else SymbolKind.EXTERNAL_BSS)
            symbol = Symbol(record.name, kind, number=record.number,
                            section=record.section)
            if isinstance(record, XDef):
                symbol.offset = record.offset
            else:
                symbol.size = record.size
            self._add_defined(symbol, index)
            self.symbol_numbers.add(record.number)

        elif isinstance(record, XRef):
            module.symbols.append(Symbol(record.name, SymbolKind.EXTERNAL_REFERENCE,
                                         number=record.number))
            self.symbol_numbers.add(record.number)

        elif isinstance(record, LocalSymbol):
            symbol = Symbol(record.name, SymbolKind.LOCAL, section=record.section,
                            offset=record.offset)
            self._add_defined(symbol, index)

        elif isinstance(record, Filename):
            module.files.setdefault(record.number, record.name_text)

        elif isinstance(record, Cpu):
            module.cpu = record.cpu

    def _add_defined(self, symbol: Symbol, index: int) -> None:
        self.module.symbols.append(symbol)
        if symbol.section == 0:
            self.absolute_symbols.append(symbol)
        else:
            self.section_refs.append((symbol.section, index))

    def _collect_expression_refs(self, expression: Expression, index: int) -> None:
        for node in expression.walk():
            if not isinstance(node, Reference):
                continue
            if node.tag == ExpressionTag.SYMBOL_ADDRESS:
                self.symbol_refs.append((node.index, index))
            elif node.tag in SECTION_REFERENCES:
                self.section_refs.append((node.index, index))

    def _resolve(self) -> None:
        module = self.module

        for section_id, index in self.section_refs:
            if section_id not in self.declared:
                raise SectionReferenceError(section_id, record_index=index,
                                            offset=self._offset(index))

        if 0 not in self.declared:
            for symbol in self.absolute_symbols:
                symbol.section = None

        for number, index in self.symbol_refs:
            if number not in self.symbol_numbers:
                raise SymbolReferenceError(number, record_index=index,
                                           offset=self._offset(index))

        for section in module.sections:
            section.size = self.extents.get(section.id, 0)

        seen: set[bytes] = set()
        for symbol in module.exported_symbols():
            if symbol.name in seen:
                violation = FormatViolation(
                    "duplicate-export",
                    symbol.display_name,
                    f"symbol '{symbol.display_name}' is defined more than once",
                )
                module.violations.append(violation)
                logger.warning(f"{violation}")
            seen.add(symbol.name)


# =============================================================================
# Parse / Serialize
# =============================================================================

def parse_module(data: bytes, name: Optional[str] = None) -> Module:
    """
    Parse an OBJ file.

    Args:
        data: Complete OBJ bytes, starting with the LNK magic
        name: Module name; derived from the first Filename record if None

    Returns:
        The structured module

    Raises:
        DecodeError: For bad magic, truncated or unknown records
        ModuleError: For structurally invalid record streams
    """
    reader = ByteReader(data)
    magic = reader.bytes(len(OBJ_MAGIC)) if len(data) >= len(OBJ_MAGIC) else bytes(data)
    if magic != OBJ_MAGIC:
        raise BadMagicError(OBJ_MAGIC, magic)
    version = reader.u8()
    if version != OBJ_VERSION:
        logger.debug(f"Unexpected OBJ version {version}")

    offsets: list[int] = []
    records = decode_records(data, OBJ_HEADER_SIZE, offsets)
    module = Module.from_records(records, name=name, version=version, offsets=offsets)
    logger.debug(
        f"Parsed module '{module.name}': {len(module.sections)} sections, "
        f"{len(module.symbols)} symbols, {len(module.relocations)} relocations"
    )
    return module


def scan_exports(data: bytes) -> tuple[list[bytes], Optional[DecodeError]]:
    """
    Collect XDEF and XBSS names record by record without building a module.

    Scanning stops at the first record that cannot be decoded, so an OBJ
    using record kinds this package does not know still yields the names
    declared before that point.

    Returns:
        The names found, and the error that ended the scan early (None
        when the End record was reached)

    Raises:
        BadMagicError: If the data does not start with the LNK magic
    """
    if not is_obj(data):
        raise BadMagicError(OBJ_MAGIC, bytes(data[:len(OBJ_MAGIC)]))
    reader = ByteReader(data, OBJ_HEADER_SIZE)
    names: list[bytes] = []
    while True:
        try:
            record = decode_record(reader)
        except DecodeError as e:
            return names, e
        if isinstance(record, (XDef, XBss)):
            names.append(record.name)
        if isinstance(record, End):
            return names, None


def serialize_module(module: Module) -> bytes:
    """Encode a module back to OBJ bytes."""
    if not module.records or not isinstance(module.records[-1], End):
        raise MissingEndError("record list does not end with an End record",
                              record_index=len(module.records))
    return OBJ_MAGIC + bytes([module.version]) + encode_records(module.records)


def is_obj(data: bytes) -> bool:
    return data[:len(OBJ_MAGIC)] == OBJ_MAGIC
