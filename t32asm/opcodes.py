"""Instruction set of the t32 virtual machine."""

from __future__ import annotations

from enum import IntEnum


class OpCode(IntEnum):
    """One-byte operation codes understood by the virtual machine."""

    LDA = 0x00
    STA = 0x01
    LDI = 0x02
    LDP = 0x03
    JSR = 0x04
    RET = 0x05
    ADD = 0x06
    SUB = 0x07
    CMP = 0x08
    PSH = 0x09
    POP = 0x0A
    JMP = 0x0B
    JEQ = 0x0C
    JNG = 0x0D
    PRT = 0x0E
    RTR = 0x0F
    HLT = 0x10
    IDP = 0x11
    DDP = 0x12
    AND = 0x13
    ORR = 0x14
    XOR = 0x15
    SHL = 0x16
    SHR = 0x17
    LDL = 0x18
    LDH = 0x19
    SDL = 0x1A
    SDH = 0x1B
    ADI = 0x1C
    SBI = 0x1D
    CMI = 0x1E
    NOP = 0x1F

    INVALID = 0xFF

    @classmethod
    def from_mnemonic(cls, word: str) -> OpCode:
        """Return the opcode for an upper-case mnemonic, or INVALID if unknown."""
        opcode = cls.__members__.get(word)
        if opcode is None:
            return cls.INVALID
        return opcode


_BYTE_OPERAND = frozenset({OpCode.LDI, OpCode.ADI, OpCode.SBI, OpCode.CMI})
_WORD_OPERAND = frozenset({OpCode.LDP, OpCode.JMP, OpCode.JEQ, OpCode.JNG, OpCode.JSR})


def instruction_size(opcode: OpCode) -> int:
    """Number of bytes an instruction occupies, opcode included."""
    if opcode in _BYTE_OPERAND:
        return 2
    if opcode in _WORD_OPERAND:
        return 3
    return 1