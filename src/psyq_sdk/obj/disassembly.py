"""
Code Disassembly
================

Renders the bytes of Code records as MIPS instructions for dumps, using
rabbitizer. Each little-endian word becomes one line:

    /* 240a00b0 */   addiu       $t2, $zero, 0xB0

Every word is decoded as an R3000 CPU instruction at the same address,
0x80000000, so branch targets are relative to that base.
A block whose length is not a multiple of four ends with a ``.byte``
line for the leftover bytes.
"""

import rabbitizer

# KSEG0 base of PlayStation programs
DEFAULT_VRAM = 0x80000000


def disassemble_words(code: bytes, vram: int = DEFAULT_VRAM) -> list[str]:
    lines = []
    whole = len(code) - len(code) % 4
    for start in range(0, whole, 4):
        word = int.from_bytes(code[start:start + 4], "little")
        instruction = rabbitizer.Instruction(word, vram,
                                             rabbitizer.InstrCategory.CPU)
        lines.append(f"    /* {word:08x} */   {instruction.disassemble()}")
    if whole < len(code):
        tail = code[whole:]
        values = ", ".join(f"0x{b:02x}" for b in tail)
        lines.append(f"    /* {tail.hex():<8} */   .byte {values}")
    return lines


def disassemble(code: bytes, vram: int = DEFAULT_VRAM) -> str:
    """Disassembly of a code block, one newline-terminated line per word."""
    return "".join(line + "\n" for line in disassemble_words(code, vram))
