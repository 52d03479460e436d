"""The t32 virtual machine: one accumulator, a data pointer and 64 KiB of RAM."""

from __future__ import annotations

import sys
from enum import Enum, auto
from typing import Callable, Optional

from .opcodes import OpCode

MEMORY_SIZE = 0x10000

InputProvider = Callable[[], Optional[int]]
OutputConsumer = Callable[[int], None]


class RunResult(Enum):
    """Why the machine stopped running."""

    HALTED = auto()
    WAITING_FOR_INPUT = auto()


class VMError(RuntimeError):
    """Raised when the machine meets an instruction it cannot execute."""


def _read_stdin() -> int:
    stream = sys.stdin
    buffer = getattr(stream, "buffer", None)
    if buffer is not None:
        data = buffer.read(1)
        return data[0] if data else 0
    char = stream.read(1)
    return ord(char) & 0xFF if char else 0


def _write_stdout(value: int) -> None:
    stream = sys.stdout
    buffer = getattr(stream, "buffer", None)
    if buffer is None:
        stream.write(chr(value))
        return
    stream.flush()
    buffer.write(bytes((value,)))
    buffer.flush()


class VirtualMachine:
    """Executes t32 machine code loaded at address zero."""

    def __init__(
        self,
        rom: bytes,
        input_provider: InputProvider | None = None,
        output_consumer: OutputConsumer | None = None,
    ) -> None:
        self.input_provider = input_provider if input_provider is not None else _read_stdin
        self.output_consumer = output_consumer if output_consumer is not None else _write_stdout

        data = bytes(rom)[:MEMORY_SIZE]
        self.ram = bytearray(MEMORY_SIZE)
        self.ram[: len(data)] = data

        self.reg_a = 0
        self.dp = 0
        self.sp = MEMORY_SIZE - 1
        self.ip = 0
        self.flag_zero = True
        self.flag_neg = False

        self._handlers: dict[int, Callable[[], Optional[RunResult]]] = {
            OpCode.LDA: self._lda,
            OpCode.STA: self._sta,
            OpCode.LDI: self._ldi,
            OpCode.LDP: self._ldp,
            OpCode.JSR: self._jsr,
            OpCode.RET: self._ret,
            OpCode.ADD: self._add,
            OpCode.SUB: self._sub,
            OpCode.CMP: self._cmp,
            OpCode.PSH: self._psh,
            OpCode.POP: self._pop,
            OpCode.JMP: self._jmp,
            OpCode.JEQ: self._jeq,
            OpCode.JNG: self._jng,
            OpCode.PRT: self._prt,
            OpCode.RTR: self._rtr,
            OpCode.HLT: self._hlt,
            OpCode.IDP: self._idp,
            OpCode.DDP: self._ddp,
            OpCode.AND: self._and,
            OpCode.ORR: self._orr,
            OpCode.XOR: self._xor,
            OpCode.SHL: self._shl,
            OpCode.SHR: self._shr,
            OpCode.LDL: self._ldl,
            OpCode.LDH: self._ldh,
            OpCode.SDL: self._sdl,
            OpCode.SDH: self._sdh,
            OpCode.ADI: self._adi,
            OpCode.SBI: self._sbi,
            OpCode.CMI: self._cmi,
            OpCode.NOP: self._nop,
        }

    def run(self) -> RunResult:
        """Execute until the program halts, runs off memory, or needs input."""
        while self.ip < MEMORY_SIZE:
            op = self._fetch()
            handler = self._handlers.get(op)
            if handler is None:
                raise VMError(
                    f"Invalid instruction encountered: ${op:02x}"
                    f" at offset ${self.ip & 0xFFFF:04x}"
                )
            result = handler()
            if result is not None:
                return result
        return RunResult.HALTED

    # -- helpers -----------------------------------------------------------

    def _fetch(self) -> int:
        value = self.ram[self.ip]
        self.ip += 1
        return value

    def _fetch_word(self) -> int:
        lo = self._fetch()
        hi = self._fetch()
        return lo | (hi << 8)

    def _require(self, count: int) -> None:
        if self.ip + count > MEMORY_SIZE:
            raise VMError("Unexpected EOF")

    def _set_flags(self) -> None:
        self.flag_neg = False
        self.flag_zero = self.reg_a == 0

    def _push(self, value: int) -> None:
        self.ram[self.sp] = value & 0xFF
        self.sp = (self.sp - 1) & 0xFFFF

    def _pull(self) -> int:
        self.sp = (self.sp + 1) & 0xFFFF
        return self.ram[self.sp]

    @property
    def _memory(self) -> int:
        return self.ram[self.dp]

    # -- instructions ------------------------------------------------------

    def _lda(self) -> None:
        self.reg_a = self._memory
        self._set_flags()

    def _sta(self) -> None:
        self.ram[self.dp] = self.reg_a

    def _ldi(self) -> None:
        self._require(1)
        self.reg_a = self._fetch()
        self._set_flags()

    def _ldp(self) -> None:
        self._require(2)
        self.dp = self._fetch_word()

    def _add(self) -> None:
        self.reg_a = (self.reg_a + self._memory) & 0xFF
        self._set_flags()

    def _sub(self) -> None:
        value = self._memory
        self.reg_a = (self.reg_a - value) & 0xFF
        self.flag_neg = self.reg_a < value
        self.flag_zero = self.reg_a == 0

    def _cmp(self) -> None:
        value = self._memory
        self.flag_neg = self.reg_a < value
        self.flag_zero = ((self.reg_a - value) & 0xFF) == 0

    def _psh(self) -> None:
        self._push(self.reg_a)

    def _pop(self) -> None:
        self.reg_a = self._pull()
        self._set_flags()

    def _jmp(self) -> None:
        self._require(2)
        self.ip = self._fetch_word()

    def _jeq(self) -> None:
        self._require(2)
        address = self._fetch_word()
        if self.flag_zero:
            self.ip = address

    def _jng(self) -> None:
        self._require(2)
        address = self._fetch_word()
        if self.flag_neg:
            self.ip = address

    def _jsr(self) -> None:
        self._require(2)
        address = self._fetch_word()
        ret = self.ip & 0xFFFF
        self._push(ret & 0xFF)
        self._push(ret >> 8)
        self.ip = address

    def _ret(self) -> None:
        hi = self._pull()
        lo = self._pull()
        self.ip = (hi << 8) | lo

    def _prt(self) -> None:
        self.output_consumer(self.reg_a)

    def _rtr(self) -> RunResult | None:
        value = self.input_provider()
        if value is None:
            self.ip -= 1  # retry once input is available
            return RunResult.WAITING_FOR_INPUT
        self.reg_a = value & 0xFF
        self._set_flags()
        return None

    def _hlt(self) -> RunResult:
        return RunResult.HALTED

    def _idp(self) -> None:
        self.dp = (self.dp + 1) & 0xFFFF

    def _ddp(self) -> None:
        self.dp = (self.dp - 1) & 0xFFFF

    def _and(self) -> None:
        self.reg_a &= self._memory
        self._set_flags()

    def _orr(self) -> None:
        self.reg_a |= self._memory
        self._set_flags()

    def _xor(self) -> None:
        self.reg_a ^= self._memory
        self._set_flags()

    def _shl(self) -> None:
        self.reg_a = (self.reg_a << 1) & 0xFF
        self._set_flags()

    def _shr(self) -> None:
        self.reg_a >>= 1
        self._set_flags()

    def _ldl(self) -> None:
        self.dp = (self.dp & 0xFF00) | self.reg_a

    def _ldh(self) -> None:
        self.dp = (self.dp & 0x00FF) | (self.reg_a << 8)

    def _sdl(self) -> None:
        self.reg_a = self.dp & 0xFF

    def _sdh(self) -> None:
        self.reg_a = (self.dp >> 8) & 0xFF

    def _adi(self) -> None:
        self._require(1)
        self.reg_a = (self.reg_a + self._fetch()) & 0xFF
        self._set_flags()

    def _sbi(self) -> None:
        self._require(1)
        self.reg_a = (self.reg_a - self._fetch()) & 0xFF
        self._set_flags()

    def _cmi(self) -> None:
        self._require(1)
        value = self._fetch()
        self.flag_neg = self.reg_a < value
        self.flag_zero = self.reg_a == value

    def _nop(self) -> None:
        return None