"""Tokens produced by the parser and consumed by the assembler."""

from __future__ import annotations

from dataclasses import dataclass

from .opcodes import OpCode, instruction_size


@dataclass
class Token:
    """An instruction, a label definition or a block of raw data."""

    opcode: OpCode
    operand: int | None = 0
    operand_label: str | None = None
    label_definition: str | None = None
    line: int = 0
    data_bytes: bytes = b""

    def is_label(self) -> bool:
        """True if this token only defines a label."""
        return self.opcode is OpCode.INVALID and self.label_definition is not None

    def size(self) -> int:
        """Number of bytes this token contributes to the assembled output."""
        if self.is_label():
            return 0
        if self.data_bytes:
            return len(self.data_bytes)
        return instruction_size(self.opcode)