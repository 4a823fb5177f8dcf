"""
Tests for OBJ module parsing, folding and serialization.

Test Categories:
- Real modules: parse, inspect, byte-exact re-encode
- Section cursors and relocation positions
- Structural errors (ordering, undeclared sections and symbols)
- Malformed files
"""

import pytest

from psyq_sdk.errors import (
    BadMagicError,
    MissingEndError,
    RecordOrderError,
    SectionReferenceError,
    SymbolReferenceError,
    TrailingDataError,
    TruncatedDataError,
    UnsupportedOperatorError,
)
from psyq_sdk.obj import (
    BinaryOp,
    Code,
    Constant,
    Cpu,
    CpuType,
    End,
    ExpressionTag,
    Filename,
    Module,
    Patch,
    RunAtOffset,
    SectionHeader,
    SectionSwitch,
    SymbolKind,
    Uninitialised,
    XDef,
    XRef,
    is_obj,
    parse_module,
    sectbase,
    serialize_module,
    symbol,
)


def text_module(*records):
    """Module with a .text section (id 1) plus the given records and End."""
    return Module.from_records([SectionHeader(1, 0, 8, b".text"), *records, End()])


# =============================================================================
# Real Modules
# =============================================================================

class TestRealModules:
    """Tests against modules produced by the PSY-Q toolchains."""

    def test_a56(self, a56_obj):
        module = parse_module(a56_obj)

        assert module.version == 2
        assert module.cpu == CpuType.MIPS_R3000_GTE
        assert [s.id for s in module.sections] == [
            0xF004, 0xF000, 0xF001, 0xF003, 0xF005, 0xF002,
        ]
        assert [s.type_text for s in module.sections] == [
            ".rdata", ".text", ".data", ".sdata", ".bss", ".sbss",
        ]
        assert module.exported_symbol_names() == ["exit"]
        exit_symbol = module.symbols[0]
        assert exit_symbol.kind is SymbolKind.EXTERNAL_DEFINITION
        assert exit_symbol.number == 1
        assert exit_symbol.section == 0xF000
        assert exit_symbol.offset == 0

        assert len(module.data) == 1
        assert module.data[0].section == 0xF000
        assert module.data[0].size == 16
        assert module.section(0xF000).size == 16
        assert module.section(0xF004).size == 0
        assert module.violations == []

    def test_a56_round_trip(self, a56_obj):
        assert serialize_module(parse_module(a56_obj)) == a56_obj

    def test_startup(self, startup_obj):
        module = parse_module(startup_obj)

        assert [s.id for s in module.sections] == list(range(0x2808, 0x280E))
        assert module.section(0x2809).size == 0xC4
        assert module.section(0x280C).size == 4
        assert module.exported_symbol_names() == [
            "__SN_ENTRY_POINT", "__main", "stup0", "stup1", "stup2",
        ]
        references = [s.display_name for s in module.symbols
                      if s.kind is SymbolKind.EXTERNAL_REFERENCE]
        assert references == ["InitHeap", "_stacksize", "main"]
        assert len(module.relocations) == 18
        assert all(r.section == 0x2809 for r in module.relocations)
        assert module.relocations[0].offset == 8
        assert str(module.relocations[0].expression) == "sectstart(280c)"
        assert module.relocations[-1].offset == 0xA8
        assert str(module.relocations[-1].expression) == "[2816]"

    def test_startup_round_trip(self, startup_obj):
        assert parse_module(startup_obj).to_bytes() == startup_obj

    def test_saturn(self, saturn_obj):
        module = parse_module(saturn_obj)

        assert module.cpu == CpuType.HITACHI_SH2
        assert module.sections[0].group == 0x330B
        assert module.sections[0].type_text == "bssend"
        assert module.exported_symbol_names() == ["end"]
        assert serialize_module(module) == saturn_obj

    def test_explicit_name(self, a56_obj):
        assert parse_module(a56_obj, name="A56").name == "A56"


# =============================================================================
# Folding
# =============================================================================

class TestFolding:
    """Tests for section cursors, sizes and relocation positions."""

    def test_cursor_advances(self):
        module = text_module(
            SectionSwitch(1),
            Code(b"\x00" * 8),
            Uninitialised(4),
            Code(b"\x00" * 4),
        )
        assert [(b.offset, b.size) for b in module.data] == [(0, 8), (8, 4), (12, 4)]
        assert module.data[1].is_reserved
        assert not module.data[0].is_reserved
        assert module.section(1).size == 16

    def test_cursors_are_per_section(self):
        module = text_module(
            SectionHeader(2, 0, 8, b".data"),
            SectionSwitch(1),
            Code(b"\x00" * 8),
            SectionSwitch(2),
            Code(b"\x00" * 2),
            SectionSwitch(1),
            Code(b"\x00" * 4),
        )
        assert [(b.section, b.offset) for b in module.data] == [(1, 0), (2, 0), (1, 8)]
        assert module.section(1).size == 12
        assert module.section(2).size == 2

    def test_patch_relative_to_last_code_block(self):
        """Patch offsets count from the start of the preceding Code record."""
        module = text_module(
            SectionSwitch(1),
            Code(b"\x00" * 8),
            Code(b"\x00" * 8),
            Patch(0x10, 4, sectbase(1)),
        )
        assert module.relocations[0].section == 1
        assert module.relocations[0].offset == 12
        assert module.relocations[0].record_index == 4

    def test_run_at_offset(self):
        module = text_module(
            SectionSwitch(1),
            RunAtOffset(1, 0x100),
            Code(b"\x00" * 4),
        )
        assert module.data[0].offset == 0x100
        assert module.section(1).size == 0x104

    def test_forward_section_reference(self):
        """A section may be used before its header appears."""
        module = Module.from_records([
            SectionSwitch(1),
            Code(b"\x00" * 4),
            SectionHeader(1, 0, 8, b".text"),
            End(),
        ])
        assert module.section(1).size == 4

    def test_forward_symbol_reference(self):
        module = text_module(
            SectionSwitch(1),
            Code(b"\x00" * 4),
            Patch(0x52, 0, symbol(5)),
            XRef(5, b"printf"),
        )
        assert module.relocations[0].expression == symbol(5)

    def test_absolute_symbol(self):
        """Section 0 means absolute unless a section 0 is declared."""
        module = text_module(XDef(1, 0, 0x1F800000, b"scratch"))
        assert module.symbols[0].section is None
        assert module.symbols[0].is_absolute

        module = Module.from_records([
            SectionHeader(0, 0, 8, b".text"),
            XDef(1, 0, 0x10, b"start"),
            End(),
        ])
        assert module.symbols[0].section == 0
        assert not module.symbols[0].is_absolute

    def test_name_from_filename(self):
        module = text_module(Filename(1, b"C:\\PSX\\SRC\\a74.c"))
        assert module.name == "A74"
        assert module.files == {1: "C:\\PSX\\SRC\\a74.c"}

    def test_duplicate_export_reported(self):
        module = text_module(
            XDef(1, 1, 0, b"InitCARD"),
            XDef(2, 1, 4, b"InitCARD"),
        )
        assert [v.kind for v in module.violations] == ["duplicate-export"]
        assert module.violations[0].subject == "InitCARD"

    def test_records_drive_serialization(self, a56_obj):
        """Derived views are not written back; records are."""
        module = parse_module(a56_obj)
        module.sections.clear()
        module.symbols.clear()
        assert serialize_module(module) == a56_obj

        module.records.insert(-1, XDef(0x30, 0xF000, 0, b"atexit"))
        rebuilt = Module.from_records(module.records, name=module.name)
        assert rebuilt.exported_symbol_names() == ["exit", "atexit"]
        assert is_obj(serialize_module(rebuilt))


# =============================================================================
# Structural Errors
# =============================================================================

class TestStructuralErrors:
    """Tests for record streams that decode but do not form a module."""

    def test_code_before_switch(self):
        with pytest.raises(RecordOrderError) as exc_info:
            text_module(Code(b"\x00" * 4))
        assert exc_info.value.record_index == 1

    def test_patch_before_switch(self):
        with pytest.raises(RecordOrderError):
            text_module(Patch(0x10, 0, sectbase(1)))

    def test_end_in_the_middle(self):
        with pytest.raises(RecordOrderError):
            Module.from_records([End(), SectionHeader(1, 0, 8, b".text"), End()])

    def test_missing_end(self):
        with pytest.raises(MissingEndError):
            Module.from_records([SectionHeader(1, 0, 8, b".text")])

    def test_undeclared_section(self):
        with pytest.raises(SectionReferenceError) as exc_info:
            text_module(SectionSwitch(7))
        assert exc_info.value.section_id == 7

    def test_undeclared_section_in_expression(self):
        with pytest.raises(SectionReferenceError):
            text_module(SectionSwitch(1), Code(b"\x00" * 4), Patch(0x10, 0, sectbase(9)))

    def test_undeclared_symbol_in_expression(self):
        with pytest.raises(SymbolReferenceError) as exc_info:
            text_module(SectionSwitch(1), Code(b"\x00" * 4), Patch(0x52, 0, symbol(5)))
        assert exc_info.value.symbol_number == 5
        assert exc_info.value.record_index == 3

    def test_undeclared_symbol_offset(self):
        records = [SectionHeader(1, 0, 8, b".text"), SectionSwitch(1),
                   Code(b"\x00" * 4), Patch(0x52, 0, symbol(5)), End()]
        data = serialize_module(Module(records=records))
        with pytest.raises(SymbolReferenceError) as exc_info:
            parse_module(data)
        # header 4 + section header 12 + switch 3 + code 7
        assert exc_info.value.offset == 26

    def test_parsed_errors_carry_offset(self):
        """Errors from parsed bytes point at the offending record in the file."""
        header = SectionHeader(1, 0, 8, b".text")
        data = serialize_module(Module(records=[header, Code(b"\x00" * 4), End()]))
        with pytest.raises(RecordOrderError) as exc_info:
            parse_module(data)
        assert exc_info.value.record_index == 1
        assert exc_info.value.offset == 16
        assert "offset 0x10" in str(exc_info.value)

        data = serialize_module(Module(records=[header, SectionSwitch(7), End()]))
        with pytest.raises(SectionReferenceError) as exc_info:
            parse_module(data)
        assert exc_info.value.offset == 16

    def test_record_offsets(self, a56_obj):
        module = parse_module(a56_obj)
        assert len(module.record_offsets) == len(module.records)
        assert module.record_offsets[0] == 4
        assert module.record_offsets[-1] == len(a56_obj) - 1

    def test_built_errors_have_no_offset(self):
        with pytest.raises(RecordOrderError) as exc_info:
            text_module(Code(b"\x00" * 4))
        assert exc_info.value.offset is None

    def test_serialize_without_end(self):
        with pytest.raises(MissingEndError):
            serialize_module(Module())

    def test_check_operators(self, saturn_obj):
        parse_module(saturn_obj).check_operators()

        module = text_module(
            Cpu(CpuType.MIPS_R3000_GTE),
            SectionSwitch(1),
            Code(b"\x00" * 4),
            Patch(10, 0, BinaryOp(ExpressionTag.ARSHIFT_CHK, Constant(2), sectbase(1))),
        )
        with pytest.raises(UnsupportedOperatorError):
            module.check_operators()


# =============================================================================
# Malformed Files
# =============================================================================

class TestMalformedFiles:
    """Tests for damaged OBJ bytes."""

    def test_bad_magic(self, a56_lib):
        with pytest.raises(BadMagicError):
            parse_module(a56_lib)

    def test_short_file(self):
        with pytest.raises(BadMagicError):
            parse_module(b"LN")

    def test_truncated(self, startup_obj):
        """Truncation is reported with the failing offset."""
        with pytest.raises(TruncatedDataError) as exc_info:
            parse_module(startup_obj[:100])
        assert exc_info.value.offset is not None
        assert exc_info.value.offset <= 100

    def test_trailing_bytes(self, a56_obj):
        with pytest.raises(TrailingDataError):
            parse_module(a56_obj + b"\x00")

    def test_is_obj(self, a56_obj, a56_lib):
        assert is_obj(a56_obj)
        assert not is_obj(a56_lib)
