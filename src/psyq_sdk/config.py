"""
Display Configuration
=====================

Options controlling how modules and archives are rendered as text.

The vendor tools followed the user's locale when spelling "Uninitialised"
and could dump code blocks as hex; dumps can also show code as MIPS
disassembly. These choices are captured in DisplayOptions, which can
be built explicitly or read from the environment:

    options = DisplayOptions.from_env()

Environment Variables
---------------------
- ``LC_ALL`` / ``LANG``: a value starting with ``en_GB`` selects British
  spelling (``LC_ALL`` wins when both are set)
- ``PSYQ_DUMP``: ``CODE`` (case insensitive) turns on hex code dumps and
  ``DISASSEMBLE`` shows code as MIPS instructions
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional


class CodeFormat(Enum):
    """How the bytes of Code records are rendered."""
    NONE = "none"
    HEX = "hex"
    DISASSEMBLY = "disassembly"


# PSYQ_DUMP values
_DUMP_FORMATS = {
    "CODE": CodeFormat.HEX,
    "DISASSEMBLE": CodeFormat.DISASSEMBLY,
}


@dataclass
class DisplayOptions:
    """
    Rendering options for dump output.

    Attributes:
        british_spelling: Spell "Uninitialised" instead of "Uninitialized"
        code_format: How code bytes are shown after Code records
        recursive: Dump every module when rendering a LIB
    """
    british_spelling: bool = False
    code_format: CodeFormat = CodeFormat.NONE
    recursive: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DisplayOptions":
        """Build options from LC_ALL/LANG and PSYQ_DUMP."""
        env = os.environ if environ is None else environ
        lang = env.get("LC_ALL") or env.get("LANG") or ""
        dump = env.get("PSYQ_DUMP", "").strip().upper()
        return cls(
            british_spelling=lang.startswith("en_GB"),
            code_format=_DUMP_FORMATS.get(dump, CodeFormat.NONE),
        )

    @property
    def uninitialised(self) -> str:
        return "Uninitialised" if self.british_spelling else "Uninitialized"
