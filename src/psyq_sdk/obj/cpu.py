"""
Processor Type Identifiers
==========================

The CPU record (tag 46) names the processor a module was assembled for.
The same OBJ format served several consoles, and a few expression
operators only exist in the Hitachi SH-2 (Sega Saturn) variant.
"""

from enum import IntEnum


class CpuType(IntEnum):
    """Processor type byte carried by the CPU record."""
    MOTOROLA_68000 = 0      # Sega Genesis / Mega Drive / Sega CD / Mega CD
    MIPS_R3000_GTE = 7      # PlayStation
    HITACHI_SH2 = 8         # Sega Saturn

    @classmethod
    def get_name(cls, value: int) -> str:
        """Get a human-readable name for a processor type byte."""
        names = {
            cls.MOTOROLA_68000: "Motorola 68000",
            cls.MIPS_R3000_GTE: "MIPS R3000 (GTE)",
            cls.HITACHI_SH2: "Hitachi SH-2",
        }
        return names.get(value, f"Unknown ({value})")
