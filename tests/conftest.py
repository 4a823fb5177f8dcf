"""
PSY-Q SDK Test Configuration
============================

Shared fixtures for the OBJ and LIB tests.

The byte fixtures are real files produced by the PSY-Q toolchains:
- A56: a one-module PlayStation library exporting ``exit``
- 2MBYTE: the PlayStation startup module (relocations against sections
  and external symbols)
- a Sega Saturn module using the SH-2 CPU record

The builder fixtures create small synthetic modules with the record API.
"""

import pytest

from psyq_sdk.obj import (
    Code,
    Cpu,
    CpuType,
    End,
    Filename,
    Patch,
    SectionHeader,
    SectionSwitch,
    Uninitialised,
    XBss,
    XDef,
    XRef,
    Module,
    serialize_module,
    symbol,
)


# =============================================================================
# Real Toolchain Output
# =============================================================================

A56_LIB = (
    b"\x4C\x49\x42\x01\x41\x35\x36\x20\x20\x20\x20\x20\xAF\x20\x2C\x81"
    b"\x1A\x00\x00\x00\x8E\x00\x00\x00\x04\x65\x78\x69\x74\x00\x4C\x4E"
    b"\x4B\x02\x2E\x07\x10\x04\xF0\x00\x00\x08\x06\x2E\x72\x64\x61\x74"
    b"\x61\x10\x00\xF0\x00\x00\x08\x05\x2E\x74\x65\x78\x74\x10\x01\xF0"
    b"\x00\x00\x08\x05\x2E\x64\x61\x74\x61\x10\x03\xF0\x00\x00\x08\x06"
    b"\x2E\x73\x64\x61\x74\x61\x10\x05\xF0\x00\x00\x08\x04\x2E\x62\x73"
    b"\x73\x10\x02\xF0\x00\x00\x08\x05\x2E\x73\x62\x73\x73\x0C\x01\x00"
    b"\x00\xF0\x00\x00\x00\x00\x04\x65\x78\x69\x74\x06\x00\xF0\x02\x10"
    b"\x00\xB0\x00\x0A\x24\x08\x00\x40\x01\x38\x00\x09\x24\x00\x00\x00"
    b"\x00\x00"
)

STARTUP_OBJ = (
    b"\x4C\x4E\x4B\x02\x2E\x07\x10\x08\x28\x00\x00\x08\x06\x2E\x72\x64"
    b"\x61\x74\x61\x10\x09\x28\x00\x00\x08\x05\x2E\x74\x65\x78\x74\x10"
    b"\x0A\x28\x00\x00\x08\x05\x2E\x64\x61\x74\x61\x10\x0B\x28\x00\x00"
    b"\x08\x06\x2E\x73\x64\x61\x74\x61\x10\x0C\x28\x00\x00\x08\x05\x2E"
    b"\x73\x62\x73\x73\x10\x0D\x28\x00\x00\x08\x04\x2E\x62\x73\x73\x06"
    b"\x08\x28\x06\x09\x28\x06\x0A\x28\x06\x0B\x28\x06\x0C\x28\x06\x0D"
    b"\x28\x06\x09\x28\x02\xC4\x00\x08\x00\xE0\x03\x00\x00\x00\x00\x00"
    b"\x00\x02\x3C\x00\x00\x42\x24\x00\x00\x03\x3C\x00\x00\x63\x24\x00"
    b"\x00\x40\xAC\x04\x00\x42\x24\x2B\x08\x43\x00\xFC\xFF\x20\x14\x00"
    b"\x00\x00\x00\x04\x00\x02\x24\x00\x00\x00\x00\x00\x00\x00\x00\x00"
    b"\x00\x00\x00\x00\x00\x00\x00\x00\x00\x04\x3C\x00\x00\x84\x24\x21"
    b"\x20\x82\x00\x00\x00\x82\x8C\x00\x80\x08\x3C\x25\xE8\x48\x00\x00"
    b"\x00\x04\x3C\x00\x00\x84\x24\xC0\x20\x04\x00\xC2\x20\x04\x00\x00"
    b"\x00\x03\x3C\x00\x00\x63\x8C\x00\x00\x00\x00\x23\x28\x43\x00\x23"
    b"\x28\xA4\x00\x25\x20\x88\x00\x00\x00\x01\x3C\x00\x00\x3F\xAC\x00"
    b"\x00\x1C\x3C\x00\x00\x9C\x27\x21\xF0\xA0\x03\x00\x00\x00\x0C\x04"
    b"\x00\x84\x20\x00\x00\x1F\x3C\x00\x00\xFF\x8F\x00\x00\x00\x00\x00"
    b"\x00\x00\x0C\x00\x00\x00\x00\x4D\x00\x00\x00\x00\x00\x20\x00\x00"
    b"\x00\x20\x00\x00\x00\x20\x00\x00\x00\x20\x00\x0A\x52\x08\x00\x0C"
    b"\x0C\x28\x0A\x54\x0C\x00\x0C\x0C\x28\x0A\x52\x10\x00\x16\x0D\x28"
    b"\x0A\x54\x14\x00\x16\x0D\x28\x0A\x52\x40\x00\x2C\x04\x09\x28\x00"
    b"\xB4\x00\x00\x00\x0A\x54\x44\x00\x2C\x04\x09\x28\x00\xB4\x00\x00"
    b"\x00\x0A\x52\x58\x00\x16\x0D\x28\x0A\x54\x5C\x00\x16\x0D\x28\x0A"
    b"\x52\x68\x00\x02\x17\x28\x0A\x54\x6C\x00\x02\x17\x28\x0A\x52\x80"
    b"\x00\x2C\x04\x0C\x28\x00\x00\x00\x00\x00\x0A\x54\x84\x00\x2C\x04"
    b"\x0C\x28\x00\x00\x00\x00\x00\x0A\x52\x88\x00\x0C\x0B\x28\x0A\x54"
    b"\x8C\x00\x0C\x0B\x28\x0A\x4A\x94\x00\x02\x14\x28\x0A\x52\x9C\x00"
    b"\x2C\x04\x0C\x28\x00\x00\x00\x00\x00\x0A\x54\xA0\x00\x2C\x04\x0C"
    b"\x28\x00\x00\x00\x00\x00\x0A\x4A\xA8\x00\x02\x16\x28\x06\x0C\x28"
    b"\x08\x04\x00\x00\x00\x0E\x14\x28\x08\x49\x6E\x69\x74\x48\x65\x61"
    b"\x70\x0E\x17\x28\x0A\x5F\x73\x74\x61\x63\x6B\x73\x69\x7A\x65\x0C"
    b"\x0F\x28\x09\x28\x08\x00\x00\x00\x10\x5F\x5F\x53\x4E\x5F\x45\x4E"
    b"\x54\x52\x59\x5F\x50\x4F\x49\x4E\x54\x0C\x0E\x28\x09\x28\x00\x00"
    b"\x00\x00\x06\x5F\x5F\x6D\x61\x69\x6E\x0E\x16\x28\x04\x6D\x61\x69"
    b"\x6E\x0C\x11\x28\x09\x28\xA8\x00\x00\x00\x05\x73\x74\x75\x70\x30"
    b"\x0C\x12\x28\x09\x28\x2C\x00\x00\x00\x05\x73\x74\x75\x70\x31\x0C"
    b"\x13\x28\x09\x28\x08\x00\x00\x00\x05\x73\x74\x75\x70\x32\x00"
)

SATURN_OBJ = (
    b"\x4C\x4E\x4B\x02\x2E\x08\x14\x0B\x33\x80\x03\x62\x73\x73\x10\x0C"
    b"\x33\x0B\x33\x08\x06\x62\x73\x73\x65\x6E\x64\x06\x0C\x33\x0C\x0A"
    b"\x33\x0C\x33\x00\x00\x00\x00\x03\x65\x6E\x64\x00"
)


@pytest.fixture
def a56_lib() -> bytes:
    """One-module PlayStation LIB: A56, exporting ``exit``."""
    return A56_LIB


@pytest.fixture
def a56_obj() -> bytes:
    """The OBJ payload of the A56 library entry."""
    return A56_LIB[30:]


@pytest.fixture
def startup_obj() -> bytes:
    """PlayStation startup module with section and symbol relocations."""
    return STARTUP_OBJ


@pytest.fixture
def saturn_obj() -> bytes:
    """Sega Saturn module declaring a .bssend section and ``end``."""
    return SATURN_OBJ


# =============================================================================
# Synthetic Modules
# =============================================================================

def make_module(name: str, exports: list[str], code: bytes = b"\x00" * 8) -> bytes:
    """
    Build a small PlayStation OBJ.

    The module has one .text section holding `code`, one external
    reference patched into the first word, and an XDEF for each export.
    """
    records = [
        Cpu(CpuType.MIPS_R3000_GTE),
        Filename(1, f"C:\\PSX\\SRC\\{name}.C".encode()),
        SectionHeader(1, 0, 8, b".text"),
        SectionHeader(2, 0, 8, b".bss"),
        SectionSwitch(1),
        Code(code),
        Patch(0x52, 0, symbol(0x10)),
        SectionSwitch(2),
        Uninitialised(4),
        XRef(0x10, b"CardBase"),
    ]
    for number, export in enumerate(exports, start=0x20):
        records.append(XDef(number, 1, 0, export.encode()))
    records.append(End())
    return serialize_module(Module.from_records(records))


@pytest.fixture
def module_factory():
    """Factory for synthetic OBJ bytes: module_factory(name, exports)."""
    return make_module


@pytest.fixture
def card_objs() -> dict[str, bytes]:
    """Three modules as found in LIBCARD.LIB."""
    return {
        "C112": make_module("C112", ["_card_info"]),
        "A74": make_module("A74", ["InitCARD"]),
        "CARD": make_module("CARD", ["StartCARD", "StopCARD", "_card_read"]),
    }


@pytest.fixture
def bss_module() -> bytes:
    """Module exporting an XBSS symbol next to an XDEF."""
    records = [
        SectionHeader(1, 0, 8, b".text"),
        SectionHeader(2, 0, 8, b".bss"),
        SectionSwitch(1),
        Code(b"\x08\x00\xe0\x03"),
        XDef(1, 1, 0, b"main"),
        XBss(2, 2, 0x100, b"buffer"),
        End(),
    ]
    return serialize_module(Module.from_records(records))
