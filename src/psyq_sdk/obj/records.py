"""
OBJ Record Type Definitions
===========================

This module defines the data structures for the records that make up a
PSY-Q object module (OBJ file). These records are the fundamental building
blocks of every module, and of every module stored inside a LIB archive.

Module Structure Overview
-------------------------
An OBJ file contains:
1. Header (4 bytes): Magic "LNK" + version byte (always 2)
2. Records (variable): one tag byte followed by a tag-specific body
3. End record: tag $00

All multi-byte integers are little-endian. Names are stored as a length
byte followed by that many bytes ("pstr") and are kept as raw bytes so
that re-encoding is lossless even for names that are not valid text.

Record Types
------------
**Structure:**
- $00 End of module
- $02 Code: u16 size + bytes
- $04 Run at offset: u16 section, u16 offset
- $06 Section switch: u16 section
- $08 Uninitialised data: u32 size
- $0A Patch: u8 type, u16 offset, expression
- $10 Section header: u16 section, u16 group, u8 alignment, pstr type

**Symbols:**
- $0C XDEF: u16 number, u16 section, u32 offset, pstr name
- $0E XREF: u16 number, pstr name
- $12 Local symbol: u16 section, u32 offset, pstr name
- $14 Group symbol: u16 number, u8 type, pstr name
- $30 XBSS: u16 number, u16 section, u32 size, pstr name

**Metadata:**
- $1C Filename: u16 number, pstr name
- $2C Set MX info: u16 offset, u8 value
- $2E CPU: u8 processor type

**Source line debugging:**
- $32 Inc SLD line number: u16 offset
- $34 Inc SLD line number by byte: u16 offset, u8 increment
- $36 Inc SLD line number by word: u16 offset, u16 increment
- $38 Set SLD line number: u16 offset, u32 line
- $3A Set SLD line number with file: u16 offset, u32 line, u16 file
- $3C End SLD info: u16 offset

**Function and symbol debugging:**
- $4A Function start, $4C Function end
- $4E Block start, $50 Block end
- $52 Def, $54 Def2

Each record class implements:
- ``encode_body(writer)``: write the body (the tag is written by encode())
- ``decode_body(reader)``: class method reading the body
- ``describe(options)``: the line printed by the dump tool

Reference
---------
- PSY-Q DUMPOBJ.EXE output, reproduced by describe()
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import ClassVar, Optional

from psyq_sdk.binary import ByteReader, ByteWriter
from psyq_sdk.config import CodeFormat, DisplayOptions
from psyq_sdk.obj.cpu import CpuType
from psyq_sdk.obj.disassembly import disassemble
from psyq_sdk.obj.expressions import Expression, decode_expression


# =============================================================================
# Enumeration Types
# =============================================================================

class RecordKind(IntEnum):
    """Record tag bytes."""
    END = 0
    CODE = 2
    RUN_AT_OFFSET = 4
    SECTION_SWITCH = 6
    UNINITIALISED = 8
    PATCH = 10
    XDEF = 12
    XREF = 14
    SECTION_HEADER = 16
    LOCAL_SYMBOL = 18
    GROUP_SYMBOL = 20
    FILENAME = 28
    SET_MX_INFO = 44
    CPU = 46
    XBSS = 48
    INC_SLD_LINENUM = 50
    INC_SLD_LINENUM_BYTE = 52
    INC_SLD_LINENUM_WORD = 54
    SET_SLD_LINENUM = 56
    SET_SLD_LINENUM_FILE = 58
    END_SLD_INFO = 60
    FUNCTION_START = 74
    FUNCTION_END = 76
    BLOCK_START = 78
    BLOCK_END = 80
    DEF = 82
    DEF2 = 84

    @classmethod
    def get_name(cls, tag: int) -> str:
        """Get a human-readable name for a tag byte."""
        try:
            return cls(tag).name.replace("_", " ").title()
        except ValueError:
            return f"Unknown ({tag})"


def _text(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def starred_name(raw: bytes) -> str:
    """Render a symbol name, showing a leading NUL byte as '*'."""
    if raw[:1] == b"\x00":
        return "*" + _text(raw[1:])
    return _text(raw)


_DEFAULT_OPTIONS = DisplayOptions()


# =============================================================================
# Base Record
# =============================================================================

@dataclass
class Record:
    """
    Base class for all OBJ records.

    Subclasses set KIND and override the body methods; records without
    a body (End) use the defaults.
    """
    KIND: ClassVar[RecordKind]

    def encode(self, writer: ByteWriter) -> None:
        writer.u8(self.KIND)
        self.encode_body(writer)

    def encode_body(self, writer: ByteWriter) -> None:
        pass

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "Record":
        return cls()

    def to_bytes(self) -> bytes:
        writer = ByteWriter()
        self.encode(writer)
        return writer.getvalue()

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        raise NotImplementedError("Subclasses must implement describe()")

    def __str__(self) -> str:
        return self.describe()


# =============================================================================
# Structure Records
# =============================================================================

@dataclass
class End(Record):
    """End of module marker."""
    KIND: ClassVar[RecordKind] = RecordKind.END

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        return "0 : End of file"


@dataclass
class Code(Record):
    """Bytes placed at the cursor of the current section."""
    KIND: ClassVar[RecordKind] = RecordKind.CODE
    code: bytes = b""

    def encode_body(self, writer: ByteWriter) -> None:
        if len(self.code) > 0xFFFF:
            raise ValueError(f"code block too large: {len(self.code)} bytes")
        writer.u16(len(self.code)).raw(self.code)

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "Code":
        size = reader.u16()
        return cls(reader.bytes(size))

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        options = options or _DEFAULT_OPTIONS
        text = f"2 : Code {len(self.code)} bytes"
        if options.code_format is CodeFormat.HEX:
            text += "\n\n" + hex_dump(self.code)
        elif options.code_format is CodeFormat.DISASSEMBLY:
            text += "\n\n" + disassemble(self.code)
        return text


def hex_dump(data: bytes) -> str:
    """Format bytes as 16 per line, prefixed with a 4-digit hex offset."""
    lines = []
    for start in range(0, len(data), 16):
        chunk = data[start:start + 16]
        lines.append(f"{start:04x}:" + "".join(f" {b:02x}" for b in chunk) + "\n")
    return "".join(lines)


@dataclass
class RunAtOffset(Record):
    """Moves the cursor of a section to an explicit offset."""
    KIND: ClassVar[RecordKind] = RecordKind.RUN_AT_OFFSET
    section: int = 0
    offset: int = 0

    def encode_body(self, writer: ByteWriter) -> None:
        writer.u16(self.section).u16(self.offset)

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "RunAtOffset":
        return cls(reader.u16(), reader.u16())

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        return f"4 : Run at offset {self.offset:x} in section {self.section:x}"


@dataclass
class SectionSwitch(Record):
    """Selects the section that following data records apply to."""
    KIND: ClassVar[RecordKind] = RecordKind.SECTION_SWITCH
    section: int = 0

    def encode_body(self, writer: ByteWriter) -> None:
        writer.u16(self.section)

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "SectionSwitch":
        return cls(reader.u16())

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        return f"6 : Switch to section {self.section:x}"


@dataclass
class Uninitialised(Record):
    """Reserves space at the cursor without providing bytes."""
    KIND: ClassVar[RecordKind] = RecordKind.UNINITIALISED
    size: int = 0

    def encode_body(self, writer: ByteWriter) -> None:
        writer.u32(self.size)

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "Uninitialised":
        return cls(reader.u32())

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        options = options or _DEFAULT_OPTIONS
        return f"8 : {options.uninitialised} data, {self.size} bytes"


@dataclass
class Patch(Record):
    """
    A relocation: the linker writes the value of ``expression`` at
    ``offset`` bytes into the last code block of the current section.
    ``patch_type`` selects the width and encoding of the written value.
    """
    KIND: ClassVar[RecordKind] = RecordKind.PATCH
    patch_type: int = 0
    offset: int = 0
    expression: Optional[Expression] = None

    def encode_body(self, writer: ByteWriter) -> None:
        if self.expression is None:
            raise ValueError("patch without an expression")
        writer.u8(self.patch_type).u16(self.offset)
        self.expression.encode(writer)

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "Patch":
        patch_type = reader.u8()
        offset = reader.u16()
        return cls(patch_type, offset, decode_expression(reader))

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        return (
            f"10 : Patch type {self.patch_type} at offset {self.offset:x} "
            f"with {self.expression}"
        )


@dataclass
class SectionHeader(Record):
    """Declares a section: its id, group, alignment and type name."""
    KIND: ClassVar[RecordKind] = RecordKind.SECTION_HEADER
    section: int = 0
    group: int = 0
    alignment: int = 0
    type_name: bytes = b""

    def encode_body(self, writer: ByteWriter) -> None:
        writer.u16(self.section).u16(self.group).u8(self.alignment).pstr(self.type_name)

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "SectionHeader":
        return cls(reader.u16(), reader.u16(), reader.u8(), reader.pstr())

    @property
    def type_text(self) -> str:
        return _text(self.type_name)

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        return (
            f"16 : Section symbol number {self.section:x} '{self.type_text}' "
            f"in group {self.group} alignment {self.alignment}"
        )


# =============================================================================
# Symbol Records
# =============================================================================

@dataclass
class XDef(Record):
    """An exported symbol defined in this module."""
    KIND: ClassVar[RecordKind] = RecordKind.XDEF
    number: int = 0
    section: int = 0
    offset: int = 0
    name: bytes = b""

    def encode_body(self, writer: ByteWriter) -> None:
        writer.u16(self.number).u16(self.section).u32(self.offset).pstr(self.name)

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "XDef":
        return cls(reader.u16(), reader.u16(), reader.u32(), reader.pstr())

    @property
    def name_text(self) -> str:
        return _text(self.name)

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        return (
            f"12 : XDEF symbol number {self.number:x} '{self.name_text}' "
            f"at offset {self.offset:x} in section {self.section:x}"
        )


@dataclass
class XRef(Record):
    """A symbol this module uses but does not define."""
    KIND: ClassVar[RecordKind] = RecordKind.XREF
    number: int = 0
    name: bytes = b""

    def encode_body(self, writer: ByteWriter) -> None:
        writer.u16(self.number).pstr(self.name)

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "XRef":
        return cls(reader.u16(), reader.pstr())

    @property
    def name_text(self) -> str:
        return _text(self.name)

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        return f"14 : XREF symbol number {self.number:x} '{self.name_text}'"


@dataclass
class LocalSymbol(Record):
    KIND: ClassVar[RecordKind] = RecordKind.LOCAL_SYMBOL
    section: int = 0
    offset: int = 0
    name: bytes = b""

    def encode_body(self, writer: ByteWriter) -> None:
        writer.u16(self.section).u32(self.offset).pstr(self.name)

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "LocalSymbol":
        return cls(reader.u16(), reader.u32(), reader.pstr())

    @property
    def name_text(self) -> str:
        return _text(self.name)

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        return (
            f"18 : Local symbol '{self.name_text}' at offset {self.offset:x} "
            f"in section {self.section:x}"
        )


@dataclass
class GroupSymbol(Record):
    KIND: ClassVar[RecordKind] = RecordKind.GROUP_SYMBOL
    number: int = 0
    group_type: int = 0
    name: bytes = b""

    def encode_body(self, writer: ByteWriter) -> None:
        writer.u16(self.number).u8(self.group_type).pstr(self.name)

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "GroupSymbol":
        return cls(reader.u16(), reader.u8(), reader.pstr())

    @property
    def name_text(self) -> str:
        return _text(self.name)

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        return (
            f"20 : Group symbol number {self.number:x} `{self.name_text}` "
            f"type {self.group_type}"
        )


@dataclass
class XBss(Record):
    """An exported symbol backed by uninitialised storage of ``size`` bytes."""
    KIND: ClassVar[RecordKind] = RecordKind.XBSS
    number: int = 0
    section: int = 0
    size: int = 0
    name: bytes = b""

    def encode_body(self, writer: ByteWriter) -> None:
        writer.u16(self.number).u16(self.section).u32(self.size).pstr(self.name)

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "XBss":
        return cls(reader.u16(), reader.u16(), reader.u32(), reader.pstr())

    @property
    def name_text(self) -> str:
        return _text(self.name)

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        return (
            f"48 : XBSS symbol number {self.number:x} '{self.name_text}' "
            f"size {self.size:x} in section {self.section:x}"
        )


# =============================================================================
# Metadata Records
# =============================================================================

@dataclass
class Filename(Record):
    """Associates a file number with a source file path."""
    KIND: ClassVar[RecordKind] = RecordKind.FILENAME
    number: int = 0
    name: bytes = b""

    def encode_body(self, writer: ByteWriter) -> None:
        writer.u16(self.number).pstr(self.name)

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "Filename":
        return cls(reader.u16(), reader.pstr())

    @property
    def name_text(self) -> str:
        return _text(self.name)

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        return f'28 : Define file number {self.number:x} as "{self.name_text}"'


@dataclass
class SetMXInfo(Record):
    KIND: ClassVar[RecordKind] = RecordKind.SET_MX_INFO
    offset: int = 0
    value: int = 0

    def encode_body(self, writer: ByteWriter) -> None:
        writer.u16(self.offset).u8(self.value)

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "SetMXInfo":
        return cls(reader.u16(), reader.u8())

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        return f"44 : Set MX info at offset {self.offset:x} to {self.value:x}"


@dataclass
class Cpu(Record):
    """Processor the module was assembled for, see CpuType."""
    KIND: ClassVar[RecordKind] = RecordKind.CPU
    cpu: int = CpuType.MIPS_R3000_GTE

    def encode_body(self, writer: ByteWriter) -> None:
        writer.u8(self.cpu)

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "Cpu":
        return cls(reader.u8())

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        return f"46 : Processor type {int(self.cpu)}"


# =============================================================================
# Source Line Debugging Records
# =============================================================================

@dataclass
class IncSLDLineNum(Record):
    KIND: ClassVar[RecordKind] = RecordKind.INC_SLD_LINENUM
    offset: int = 0

    def encode_body(self, writer: ByteWriter) -> None:
        writer.u16(self.offset)

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "IncSLDLineNum":
        return cls(reader.u16())

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        return f"50 : Inc SLD linenum at offset {self.offset:x}"


@dataclass
class IncSLDLineNumByte(Record):
    KIND: ClassVar[RecordKind] = RecordKind.INC_SLD_LINENUM_BYTE
    offset: int = 0
    increment: int = 0

    def encode_body(self, writer: ByteWriter) -> None:
        writer.u16(self.offset).u8(self.increment)

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "IncSLDLineNumByte":
        return cls(reader.u16(), reader.u8())

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        return f"52 : Inc SLD linenum by byte {self.increment} at offset {self.offset:x}"


@dataclass
class IncSLDLineNumWord(Record):
    KIND: ClassVar[RecordKind] = RecordKind.INC_SLD_LINENUM_WORD
    offset: int = 0
    increment: int = 0

    def encode_body(self, writer: ByteWriter) -> None:
        writer.u16(self.offset).u16(self.increment)

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "IncSLDLineNumWord":
        return cls(reader.u16(), reader.u16())

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        return f"54 : Inc SLD linenum by word {self.increment} at offset {self.offset:x}"


@dataclass
class SetSLDLineNum(Record):
    KIND: ClassVar[RecordKind] = RecordKind.SET_SLD_LINENUM
    offset: int = 0
    line: int = 0

    def encode_body(self, writer: ByteWriter) -> None:
        writer.u16(self.offset).u32(self.line)

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "SetSLDLineNum":
        return cls(reader.u16(), reader.u32())

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        return f"56 : Set SLD linenum to {self.line} at offset {self.offset:x}"


@dataclass
class SetSLDLineNumFile(Record):
    KIND: ClassVar[RecordKind] = RecordKind.SET_SLD_LINENUM_FILE
    offset: int = 0
    line: int = 0
    file: int = 0

    def encode_body(self, writer: ByteWriter) -> None:
        writer.u16(self.offset).u32(self.line).u16(self.file)

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "SetSLDLineNumFile":
        return cls(reader.u16(), reader.u32(), reader.u16())

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        return (
            f"58 : Set SLD linenum to {self.line} at offset {self.offset:x} "
            f"in file {self.file:x}"
        )


@dataclass
class EndSLDInfo(Record):
    KIND: ClassVar[RecordKind] = RecordKind.END_SLD_INFO
    offset: int = 0

    def encode_body(self, writer: ByteWriter) -> None:
        writer.u16(self.offset)

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "EndSLDInfo":
        return cls(reader.u16())

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        return f"60 : End SLD info at offset {self.offset:x}"


# =============================================================================
# Function and Symbol Debugging Records
# =============================================================================

@dataclass
class FunctionStart(Record):
    """Debugger information for the start of a function."""
    KIND: ClassVar[RecordKind] = RecordKind.FUNCTION_START
    section: int = 0
    offset: int = 0
    file: int = 0
    line: int = 0
    frame_register: int = 0
    frame_size: int = 0
    return_pc_register: int = 0
    mask: int = 0
    mask_offset: int = 0
    name: bytes = b""

    def encode_body(self, writer: ByteWriter) -> None:
        (writer.u16(self.section).u32(self.offset).u16(self.file).u32(self.line)
            .u16(self.frame_register).u32(self.frame_size)
            .u16(self.return_pc_register).u32(self.mask).i32(self.mask_offset)
            .pstr(self.name))

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "FunctionStart":
        return cls(
            section=reader.u16(),
            offset=reader.u32(),
            file=reader.u16(),
            line=reader.u32(),
            frame_register=reader.u16(),
            frame_size=reader.u32(),
            return_pc_register=reader.u16(),
            mask=reader.u32(),
            mask_offset=reader.i32(),
            name=reader.pstr(),
        )

    @property
    def name_text(self) -> str:
        return _text(self.name)

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        return (
            "74 : Function start :\n"
            f"  section {self.section:04x}\n"
            f"  offset ${self.offset:08x}\n"
            f"  file {self.file:04x}\n"
            f"  start line {self.line}\n"
            f"  frame reg {self.frame_register}\n"
            f"  frame size {self.frame_size}\n"
            f"  return pc reg {self.return_pc_register}\n"
            f"  mask ${self.mask:08x}\n"
            f"  mask offset {self.mask_offset}\n"
            f"  name {self.name_text}"
        )


@dataclass
class _LineMarker(Record):
    """Shared layout of the function end and block start/end records."""
    section: int = 0
    offset: int = 0
    line: int = 0

    def encode_body(self, writer: ByteWriter) -> None:
        writer.u16(self.section).u32(self.offset).u32(self.line)

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "_LineMarker":
        return cls(reader.u16(), reader.u32(), reader.u32())


@dataclass
class FunctionEnd(_LineMarker):
    KIND: ClassVar[RecordKind] = RecordKind.FUNCTION_END

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        return (
            "76 : Function end :\n"
            f"  section {self.section:04x}\n"
            f"  offset ${self.offset:08x}\n"
            f"  end line {self.line}"
        )


@dataclass
class BlockStart(_LineMarker):
    KIND: ClassVar[RecordKind] = RecordKind.BLOCK_START

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        # DUMPOBJ prints no newline after the colon here
        return (
            "78 : Block start :"
            f"  section {self.section:04x}\n"
            f"  offset ${self.offset:08x}\n"
            f"  start line {self.line}"
        )


@dataclass
class BlockEnd(_LineMarker):
    KIND: ClassVar[RecordKind] = RecordKind.BLOCK_END

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        return (
            "80 : Block end\n"
            f"  section {self.section:04x}\n"
            f"  offset ${self.offset:08x}\n"
            f"  end line {self.line}"
        )


@dataclass
class Def(Record):
    """Debugger definition of a variable or type."""
    KIND: ClassVar[RecordKind] = RecordKind.DEF
    section: int = 0
    value: int = 0
    def_class: int = 0
    def_type: int = 0
    size: int = 0
    name: bytes = b""

    def encode_body(self, writer: ByteWriter) -> None:
        (writer.u16(self.section).u32(self.value).u16(self.def_class)
            .u16(self.def_type).u32(self.size).pstr(self.name))

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "Def":
        return cls(
            section=reader.u16(),
            value=reader.u32(),
            def_class=reader.u16(),
            def_type=reader.u16(),
            size=reader.u32(),
            name=reader.pstr(),
        )

    @property
    def name_text(self) -> str:
        return _text(self.name)

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        return (
            "82 : Def :\n"
            f"  section {self.section:04x}\n"
            f"  value ${self.value:08x}\n"
            f"  class {self.def_class}\n"
            f"  type {self.def_type}\n"
            f"  size {self.size}\n"
            f"  name : {self.name_text}"
        )


@dataclass
class Def2(Record):
    """Debugger definition with array dimensions and a tag name."""
    KIND: ClassVar[RecordKind] = RecordKind.DEF2
    section: int = 0
    value: int = 0
    def_class: int = 0
    def_type: int = 0
    size: int = 0
    dims: list[int] = field(default_factory=list)
    tag: bytes = b""
    name: bytes = b""

    def encode_body(self, writer: ByteWriter) -> None:
        (writer.u16(self.section).u32(self.value).u16(self.def_class)
            .u16(self.def_type).u32(self.size).u16(len(self.dims)))
        for dim in self.dims:
            writer.u32(dim)
        writer.pstr(self.tag).pstr(self.name)

    @classmethod
    def decode_body(cls, reader: ByteReader) -> "Def2":
        section = reader.u16()
        value = reader.u32()
        def_class = reader.u16()
        def_type = reader.u16()
        size = reader.u32()
        count = reader.u16()
        reader.require(count * 4)
        dims = [reader.u32() for _ in range(count)]
        return cls(section, value, def_class, def_type, size, dims,
                   reader.pstr(), reader.pstr())

    @property
    def tag_text(self) -> str:
        return _text(self.tag)

    @property
    def name_text(self) -> str:
        return _text(self.name)

    def describe(self, options: Optional[DisplayOptions] = None) -> str:
        dims = str(len(self.dims)) + "".join(f" {d}" for d in self.dims)
        return (
            "84 : Def2 :\n"
            f"  section {self.section:04x}\n"
            f"  value ${self.value:08x}\n"
            f"  class {self.def_class}\n"
            f"  type {self.def_type}\n"
            f"  size {self.size}\n"
            f"  dims {dims} \n"
            f"  tag {self.tag_text}\n"
            f"{self.name_text}"
        )


# =============================================================================
# Registry
# =============================================================================

RECORD_TYPES: dict[int, type[Record]] = {
    cls.KIND: cls
    for cls in (
        End, Code, RunAtOffset, SectionSwitch, Uninitialised, Patch,
        XDef, XRef, SectionHeader, LocalSymbol, GroupSymbol, Filename,
        SetMXInfo, Cpu, XBss, IncSLDLineNum, IncSLDLineNumByte,
        IncSLDLineNumWord, SetSLDLineNum, SetSLDLineNumFile, EndSLDInfo,
        FunctionStart, FunctionEnd, BlockStart, BlockEnd, Def, Def2,
    )
}
