"""
PSY-Q LIB Archives
==================

LIB files bundle OBJ modules with a directory of exported symbols so the
linker can pick only the modules a program needs.

This package provides:
- **LibraryArchive**: parse, list, extract, add, update, delete
- **PackedTimestamp**: the bit-packed creation date/time of each module

Quick Start
-----------
    >>> from psyq_sdk.lib import parse_library, serialize_library
    >>> archive = parse_library(open("LIBCARD.LIB", "rb").read())
    >>> [info.name for info in archive.list_entries()]
    ['C112', 'A74', 'CARD']
    >>> archive.delete("CARD")
    >>> data = serialize_library(archive)
"""

from psyq_sdk.lib.timestamp import PackedTimestamp

from psyq_sdk.lib.archive import (
    LIB_MAGIC,
    LIB_VERSION,
    LISTING_HEADER,
    EntryInfo,
    ArchiveEntry,
    LibraryArchive,
    normalize_module_name,
    encode_module_name,
    parse_library,
    serialize_library,
    is_lib,
    list_entries,
    extract,
    create,
    add,
    update,
    delete,
    render_listing,
)

__all__ = [
    "PackedTimestamp",
    "LIB_MAGIC",
    "LIB_VERSION",
    "LISTING_HEADER",
    "EntryInfo",
    "ArchiveEntry",
    "LibraryArchive",
    "normalize_module_name",
    "encode_module_name",
    "parse_library",
    "serialize_library",
    "is_lib",
    "list_entries",
    "extract",
    "create",
    "add",
    "update",
    "delete",
    "render_listing",
]
