"""
PSY-Q SDK - Object and Library Tools for PSY-Q Toolchains
=========================================================

This package reads, writes and edits the object modules (OBJ) and
libraries (LIB) produced by the PSY-Q development kits for the Sony
PlayStation, Sega Saturn and Sega Genesis/Mega Drive.

Main Components
---------------
- **obj**: OBJ record codec, relocation expressions and module model
    Decodes every record type, keeps byte-exact round trips

- **lib**: LIB archive handling (psylib)
    Lists, extracts, adds, updates and deletes modules

- **display**: DUMPOBJ-style dumps and psylib-style listings (dumpobj)

Quick Start
-----------
Dump an object file:
    >>> from psyq_sdk import parse_module, format_module
    >>> print(format_module(parse_module(open("a74.obj", "rb").read())))

Edit a library:
    >>> from psyq_sdk import parse_library, serialize_library
    >>> archive = parse_library(open("LIBCARD.LIB", "rb").read())
    >>> archive.update("A74", open("a74.obj", "rb").read())
    >>> open("LIBCARD.LIB", "wb").write(serialize_library(archive))

Or use the command-line tools:
    $ psylib list LIBCARD.LIB
    $ psylib extract LIBCARD.LIB A74
    $ dumpobj a74.obj --code

Version History
---------------
1.0.0 - Initial release with OBJ codec, LIB archive editing and CLI tools
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from psyq_sdk.errors import (
    PsyqError,
    DecodeError,
    TruncatedDataError,
    BadMagicError,
    UnknownRecordError,
    UnknownExpressionError,
    ExpressionDepthError,
    TrailingDataError,
    ModuleError,
    RecordOrderError,
    SectionReferenceError,
    SymbolReferenceError,
    MissingEndError,
    ExpressionError,
    EvaluationError,
    UnsupportedOperatorError,
    ArchiveError,
    ArchiveRangeError,
    MembershipError,
    NotFoundError,
    DuplicateNameError,
    FormatViolation,
)

from psyq_sdk.config import CodeFormat, DisplayOptions

from psyq_sdk.obj import (
    CpuType,
    RecordKind,
    Module,
    decode_records,
    encode_records,
    decode_expression,
    encode_expression,
    evaluate,
    check_operators,
    parse_module,
    serialize_module,
)

from psyq_sdk.lib import (
    PackedTimestamp,
    LibraryArchive,
    parse_library,
    serialize_library,
    list_entries,
    extract,
    create,
    add,
    update,
    delete,
)

from psyq_sdk.display import format_module, format_library

__all__ = [
    "__version__",
    # Exception hierarchy
    "PsyqError",
    "DecodeError",
    "TruncatedDataError",
    "BadMagicError",
    "UnknownRecordError",
    "UnknownExpressionError",
    "ExpressionDepthError",
    "TrailingDataError",
    "ModuleError",
    "RecordOrderError",
    "SectionReferenceError",
    "SymbolReferenceError",
    "MissingEndError",
    "ExpressionError",
    "EvaluationError",
    "UnsupportedOperatorError",
    "ArchiveError",
    "ArchiveRangeError",
    "MembershipError",
    "NotFoundError",
    "DuplicateNameError",
    "FormatViolation",
    # Configuration
    "CodeFormat",
    "DisplayOptions",
    # OBJ
    "CpuType",
    "RecordKind",
    "Module",
    "decode_records",
    "encode_records",
    "decode_expression",
    "encode_expression",
    "evaluate",
    "check_operators",
    "parse_module",
    "serialize_module",
    # LIB
    "PackedTimestamp",
    "LibraryArchive",
    "parse_library",
    "serialize_library",
    "list_entries",
    "extract",
    "create",
    "add",
    "update",
    "delete",
    # Display
    "format_module",
    "format_library",
]
