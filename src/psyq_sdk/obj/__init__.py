"""
PSY-Q OBJ Object Modules
========================

Reading and writing of the relocatable object modules produced by the
PSY-Q assemblers and compilers for the PlayStation, Saturn and
Genesis/Mega Drive.

Overview
--------
- **records**: one dataclass per record type, with byte layouts
- **codec**: record stream decoding and encoding
- **expressions**: relocation expression trees, evaluation and
  per-processor operator checks
- **module**: folding records into sections, symbols, relocations and
  data blocks

Quick Start
-----------
    >>> from psyq_sdk.obj import parse_module, serialize_module
    >>> module = parse_module(open("a74.obj", "rb").read())
    >>> module.exported_symbol_names()
    ['InitCARD']
    >>> serialize_module(module) == open("a74.obj", "rb").read()
    True
"""

from psyq_sdk.obj.cpu import CpuType

from psyq_sdk.obj.expressions import (
    MAX_EXPRESSION_DEPTH,
    ExpressionTag,
    Expression,
    Constant,
    Reference,
    BinaryOp,
    Resolver,
    decode_expression,
    encode_expression,
    evaluate,
    check_operators,
    symbol,
    sectbase,
    sectstart,
    sectend,
)

from psyq_sdk.obj.records import (
    RecordKind,
    Record,
    End,
    Code,
    RunAtOffset,
    SectionSwitch,
    Uninitialised,
    Patch,
    XDef,
    XRef,
    SectionHeader,
    LocalSymbol,
    GroupSymbol,
    Filename,
    SetMXInfo,
    Cpu,
    XBss,
    IncSLDLineNum,
    IncSLDLineNumByte,
    IncSLDLineNumWord,
    SetSLDLineNum,
    SetSLDLineNumFile,
    EndSLDInfo,
    FunctionStart,
    FunctionEnd,
    BlockStart,
    BlockEnd,
    Def,
    Def2,
    RECORD_TYPES,
)

from psyq_sdk.obj.codec import decode_record, decode_records, encode_records

from psyq_sdk.obj.module import (
    OBJ_MAGIC,
    OBJ_VERSION,
    SymbolKind,
    Section,
    Symbol,
    Relocation,
    DataBlock,
    Module,
    parse_module,
    serialize_module,
    scan_exports,
    is_obj,
)

__all__ = [
    "CpuType",
    # Expressions
    "MAX_EXPRESSION_DEPTH",
    "ExpressionTag",
    "Expression",
    "Constant",
    "Reference",
    "BinaryOp",
    "Resolver",
    "decode_expression",
    "encode_expression",
    "evaluate",
    "check_operators",
    "symbol",
    "sectbase",
    "sectstart",
    "sectend",
    # Records
    "RecordKind",
    "Record",
    "End",
    "Code",
    "RunAtOffset",
    "SectionSwitch",
    "Uninitialised",
    "Patch",
    "XDef",
    "XRef",
    "SectionHeader",
    "LocalSymbol",
    "GroupSymbol",
    "Filename",
    "SetMXInfo",
    "Cpu",
    "XBss",
    "IncSLDLineNum",
    "IncSLDLineNumByte",
    "IncSLDLineNumWord",
    "SetSLDLineNum",
    "SetSLDLineNumFile",
    "EndSLDInfo",
    "FunctionStart",
    "FunctionEnd",
    "BlockStart",
    "BlockEnd",
    "Def",
    "Def2",
    "RECORD_TYPES",
    # Codec
    "decode_record",
    "decode_records",
    "encode_records",
    # Module
    "OBJ_MAGIC",
    "OBJ_VERSION",
    "SymbolKind",
    "Section",
    "Symbol",
    "Relocation",
    "DataBlock",
    "Module",
    "parse_module",
    "serialize_module",
    "scan_exports",
    "is_obj",
]
