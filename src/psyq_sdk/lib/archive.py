"""
LIB Archive Model
=================

A LIB file is a flat container of OBJ modules, each preceded by a small
directory header listing the symbols it exports. The vendor linker scans
these export tables to decide which modules to pull in.

File Layout
-----------
    "LIB" + version byte (1)
    entry 0
    entry 1
    ...

Each entry:

    Offset  Size  Field
    0       8     module name, upper case, space padded
    8       4     created (packed timestamp, see timestamp.py)
    12      4     offset of the OBJ payload from the entry start
    16      4     size: offset of the end of the payload from the entry start
    20      ...   exports: length-prefixed names, ended by a zero length
    offset  ...   OBJ payload (size - offset bytes)

Entries follow each other until the end of the file.

Editing Model
-------------
Payloads are kept as opaque bytes. Structured access through
``ArchiveEntry.module()`` parses on demand and caches the result; the
cache is dropped whenever the payload is replaced. Mutations never patch
bytes in place: serialization rebuilds every entry and recomputes its
offsets, so untouched payloads are reproduced exactly.

Failed add/update/delete calls leave the archive unchanged.

Usage
-----
    archive = parse_library(Path("LIBCARD.LIB").read_bytes())
    for info in archive.list_entries():
        print(info.name, info.date, info.time, info.exports)
    obj = archive.extract("A74")
    archive.update("A74", new_obj)
    Path("LIBCARD.LIB").write_bytes(serialize_library(archive))
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from psyq_sdk.binary import ByteReader, ByteWriter
from psyq_sdk.errors import (
    ArchiveError,
    ArchiveRangeError,
    DecodeError,
    DuplicateNameError,
    FormatViolation,
    ModuleError,
    NotFoundError,
    TruncatedDataError,
)
from psyq_sdk.lib.timestamp import PackedTimestamp
from psyq_sdk.obj.module import Module, is_obj, parse_module, scan_exports
from psyq_sdk.obj.records import starred_name

logger = logging.getLogger(__name__)


LIB_MAGIC = b"LIB"
LIB_VERSION = 1

# Magic plus version byte
LIB_HEADER_SIZE = 4

MODULE_NAME_SIZE = 8

# name + created + offset + size
ENTRY_HEADER_SIZE = MODULE_NAME_SIZE + 12

LISTING_HEADER = "Module     Date     Time   Externals defined"

Timestamp = Union[PackedTimestamp, int]


# =============================================================================
# Module Names
# =============================================================================

def normalize_module_name(name: str) -> str:
    """
    Upper-case a module name and cut it to 8 bytes of UTF-8.

    Multi-byte characters are never split; a character that does not fit
    entirely is dropped.

    Raises:
        ValueError: If the name is empty
    """
    encoded = b""
    for char in name.strip().upper():
        char_bytes = char.encode("utf-8")
        if len(encoded) + len(char_bytes) > MODULE_NAME_SIZE:
            break
        encoded += char_bytes
    if not encoded:
        raise ValueError(f"invalid module name: {name!r}")
    return encoded.decode("utf-8")


def encode_module_name(name: str) -> bytes:
    """The 8-byte, space-padded directory field for a module name."""
    return normalize_module_name(name).encode("utf-8").ljust(MODULE_NAME_SIZE, b" ")


def _packed(created: Optional[Timestamp]) -> int:
    if created is None:
        return PackedTimestamp.now().value
    if isinstance(created, PackedTimestamp):
        return created.value
    return PackedTimestamp(created).value


# =============================================================================
# Entries
# =============================================================================

@dataclass
class EntryInfo:
    """One line of an archive listing."""
    name: str
    date: str
    time: str
    created: PackedTimestamp
    exports: list[str]

    def format(self) -> str:
        """Render in the vendor ``psylib /l`` layout."""
        exports = "".join(f"{name} " for name in self.exports)
        return f"{self.name:<8} {self.created.format()} {exports}"


@dataclass
class ArchiveEntry:
    """
    A module stored in a LIB archive.

    Attributes:
        raw_name: The 8-byte name field as stored
        created: Packed creation timestamp
        exports: Export table names as raw bytes, terminator excluded
        payload: The OBJ bytes
        gap: Bytes found between the export table and the payload
        violations: Problems found while deriving the export table
    """
    raw_name: bytes
    created: int
    exports: list[bytes]
    payload: bytes
    gap: bytes = b""
    _module: Optional[Module] = field(default=None, compare=False, repr=False)
    violations: list[FormatViolation] = field(default_factory=list, compare=False,
                                              repr=False)

    @property
    def name(self) -> str:
        return self.raw_name.rstrip(b" \x00").decode("utf-8", errors="replace")

    @property
    def timestamp(self) -> PackedTimestamp:
        return PackedTimestamp(self.created)

    @property
    def payload_offset(self) -> int:
        """Offset of the payload from the start of the entry."""
        table = sum(1 + len(name) for name in self.exports) + 1
        return ENTRY_HEADER_SIZE + table + len(self.gap)

    @property
    def size(self) -> int:
        return self.payload_offset + len(self.payload)

    def export_names(self) -> list[str]:
        return [starred_name(name) for name in self.exports]

    def module(self) -> Module:
        """
        Parse the payload, caching the result.

        Raises:
            DecodeError: If the payload is not a decodable OBJ
            ModuleError: If the records do not form a valid module
        """
        if self._module is None:
            module = parse_module(self.payload, name=self.name)
            module.created_timestamp = self.created
            self._module = module
        return self._module

    def info(self) -> EntryInfo:
        stamp = self.timestamp
        return EntryInfo(self.name, stamp.format_date(), stamp.format_time(),
                         stamp, self.export_names())

    def encode(self, writer: ByteWriter) -> None:
        writer.raw(self.raw_name.ljust(MODULE_NAME_SIZE, b" ")[:MODULE_NAME_SIZE])
        writer.u32(self.created).u32(self.payload_offset).u32(self.size)
        for name in self.exports:
            writer.pstr(name)
        writer.u8(0)
        writer.raw(self.gap)
        writer.raw(self.payload)

    @classmethod
    def build(
        cls,
        name: str,
        payload: bytes,
        created: Optional[Timestamp] = None,
        exports: Optional[Iterable[Union[str, bytes]]] = None,
    ) -> "ArchiveEntry":
        """
        Create an entry for an OBJ payload.

        Without an explicit export list the payload is parsed and its
        XDEF/XBSS names are used. A payload that starts like an OBJ but
        does not parse completely is still stored as-is; its exports are
        the names readable before the first undecodable record, and the
        problem is kept in ``violations``.

        Raises:
            BadMagicError: If exports must be derived and the payload is
                           not an OBJ file
            ValueError: For an unusable module or export name
        """
        raw_name = encode_module_name(name)
        module_name = normalize_module_name(name)
        module = None
        violations = []
        if exports is None:
            try:
                module = parse_module(payload, name=module_name)
                export_list = module.exported_symbol_raw_names()
            except (DecodeError, ModuleError) as e:
                if not is_obj(payload):
                    raise
                export_list, _ = scan_exports(payload)
                violation = FormatViolation(
                    "undecoded-module",
                    module_name,
                    f"module '{module_name}' stored without full decoding: {e}",
                )
                logger.warning(f"{violation}")
                violations.append(violation)
        else:
            export_list = [e.encode("utf-8") if isinstance(e, str) else bytes(e)
                           for e in exports]
        for export in export_list:
            if not export or len(export) > 0xFF:
                raise ValueError(f"invalid export name: {export!r}")
        entry = cls(raw_name, _packed(created), export_list, bytes(payload),
                    violations=violations)
        if module is not None:
            module.created_timestamp = entry.created
            entry._module = module
        return entry


# =============================================================================
# Archive
# =============================================================================

@dataclass
class LibraryArchive:
    """
    An in-memory LIB archive.

    Attributes:
        version: Version byte following the LIB magic
        entries: Modules in directory order
    """
    version: int = LIB_VERSION
    entries: list[ArchiveEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def index_of(self, name: str) -> Optional[int]:
        try:
            wanted = normalize_module_name(name)
        except ValueError:
            # A blank name never matches
            return None
        for index, entry in enumerate(self.entries):
            if entry.name.upper() == wanted:
                return index
        return None

    def find(self, name: str) -> Optional[ArchiveEntry]:
        index = self.index_of(name)
        return None if index is None else self.entries[index]

    def __contains__(self, name: str) -> bool:
        return self.index_of(name) is not None

    def names(self) -> list[str]:
        return [entry.name for entry in self.entries]

    def list_entries(self) -> list[EntryInfo]:
        return [entry.info() for entry in self.entries]

    def extract(self, name: str) -> bytes:
        """
        Return the OBJ bytes of a module without parsing them.

        Raises:
            NotFoundError: If no module has that name
        """
        entry = self.find(name)
        if entry is None:
            raise NotFoundError(name)
        return entry.payload

    def add(
        self,
        name: str,
        payload: bytes,
        created: Optional[Timestamp] = None,
        exports: Optional[Iterable[Union[str, bytes]]] = None,
    ) -> ArchiveEntry:
        """
        Append a module after the existing entries.

        Raises:
            DuplicateNameError: If a module with that name exists
        """
        if name in self:
            raise DuplicateNameError(normalize_module_name(name))
        entry = ArchiveEntry.build(name, payload, created, exports)
        self.entries.append(entry)
        logger.debug(f"Added module '{entry.name}' ({len(payload)} bytes)")
        return entry

    def update(
        self,
        name: str,
        payload: bytes,
        created: Optional[Timestamp] = None,
        exports: Optional[Iterable[Union[str, bytes]]] = None,
    ) -> ArchiveEntry:
        """
        Replace a module's payload, export table and timestamp in place.

        Raises:
            NotFoundError: If no module has that name
        """
        index = self.index_of(name)
        if index is None:
            raise NotFoundError(name)
        entry = ArchiveEntry.build(name, payload, created, exports)
        # Keep the stored name bytes so the directory is unchanged
        entry.raw_name = self.entries[index].raw_name
        self.entries[index] = entry
        logger.debug(f"Updated module '{entry.name}' ({len(payload)} bytes)")
        return entry

    def delete(self, name: str) -> ArchiveEntry:
        """
        Remove a module.

        Raises:
            NotFoundError: If no module has that name
        """
        index = self.index_of(name)
        if index is None:
            raise NotFoundError(name)
        entry = self.entries.pop(index)
        logger.debug(f"Deleted module '{entry.name}'")
        return entry

    def violations(self) -> list[FormatViolation]:
        """Report modules sharing a name and modules stored undecoded."""
        found = []
        seen: set[str] = set()
        for entry in self.entries:
            found.extend(entry.violations)
            if entry.name in seen:
                found.append(FormatViolation(
                    "duplicate-module",
                    entry.name,
                    f"module '{entry.name}' appears more than once",
                ))
            seen.add(entry.name)
        return found

    def to_bytes(self) -> bytes:
        return serialize_library(self)


# =============================================================================
# Parse / Serialize
# =============================================================================

def _parse_entry(data: bytes, start: int, index: int) -> tuple[ArchiveEntry, int]:
    reader = ByteReader(data, start)
    try:
        raw_name = reader.bytes(MODULE_NAME_SIZE)
        created = reader.u32()
        offset = reader.u32()
        size = reader.u32()
        exports = []
        while True:
            name = reader.pstr()
            if not name:
                break
            exports.append(name)
    except TruncatedDataError as e:
        raise ArchiveError(f"truncated entry header: {e.message}",
                           offset=e.offset, entry_index=index) from e

    table_end = reader.offset - start
    if offset < table_end:
        raise ArchiveRangeError(
            f"payload offset {offset} inside the entry header ({table_end} bytes)",
            offset=start, entry_index=index,
        )
    if size < offset:
        raise ArchiveRangeError(f"entry size {size} smaller than payload offset {offset}",
                                offset=start, entry_index=index)
    if start + size > len(data):
        raise ArchiveRangeError(
            f"payload ends at 0x{start + size:x}, past the end of the archive "
            f"(0x{len(data):x})",
            offset=start, entry_index=index,
        )

    gap = bytes(data[start + table_end:start + offset])
    payload = bytes(data[start + offset:start + size])
    return ArchiveEntry(raw_name, created, exports, payload, gap), start + size


def parse_library(data: bytes) -> LibraryArchive:
    """
    Parse a LIB file.

    Payloads are not parsed; use ArchiveEntry.module() for that.

    Raises:
        ArchiveError: For a bad header or malformed directory entry
    """
    if len(data) < LIB_HEADER_SIZE or data[:len(LIB_MAGIC)] != LIB_MAGIC:
        raise ArchiveError(f"bad magic {bytes(data[:len(LIB_MAGIC)])!r}, expected {LIB_MAGIC!r}",
                           offset=0)
    archive = LibraryArchive(version=data[len(LIB_MAGIC)])

    position = LIB_HEADER_SIZE
    while position < len(data):
        entry, position = _parse_entry(data, position, len(archive.entries))
        archive.entries.append(entry)

    logger.debug(f"Parsed library with {len(archive.entries)} modules")
    for violation in archive.violations():
        logger.warning(f"{violation}")
    return archive


def serialize_library(archive: LibraryArchive) -> bytes:
    """Encode an archive, recomputing every entry's offsets."""
    writer = ByteWriter()
    writer.raw(LIB_MAGIC).u8(archive.version)
    for entry in archive.entries:
        entry.encode(writer)
    return writer.getvalue()


def is_lib(data: bytes) -> bool:
    return data[:len(LIB_MAGIC)] == LIB_MAGIC


# =============================================================================
# Operations
# =============================================================================

def list_entries(archive: LibraryArchive) -> list[EntryInfo]:
    return archive.list_entries()


def extract(archive: LibraryArchive, name: str) -> bytes:
    return archive.extract(name)


def create(
    modules: Iterable[tuple[str, bytes]],
    created: Optional[Timestamp] = None,
) -> LibraryArchive:
    """
    Build a new archive from (name, OBJ bytes) pairs, in order.

    Raises:
        DuplicateNameError: If two modules share a name
    """
    archive = LibraryArchive()
    for name, payload in modules:
        archive.add(name, payload, created=created)
    return archive


def add(archive: LibraryArchive, name: str, payload: bytes, **kwargs) -> ArchiveEntry:
    return archive.add(name, payload, **kwargs)


def update(archive: LibraryArchive, name: str, payload: bytes, **kwargs) -> ArchiveEntry:
    return archive.update(name, payload, **kwargs)


def delete(archive: LibraryArchive, name: str) -> ArchiveEntry:
    return archive.delete(name)


def render_listing(archive: LibraryArchive) -> str:
    """The full ``psylib /l`` listing, one line per module."""
    lines = [LISTING_HEADER, ""]
    lines.extend(info.format() for info in archive.list_entries())
    return "\n".join(lines) + "\n"
