import pytest

from t32asm.assembler import Assembler
from t32asm.opcodes import OpCode
from t32asm.parser import parse
from t32asm.vm import MEMORY_SIZE, RunResult, VirtualMachine, VMError


def _compile(source):
    return Assembler().assemble(parse(source))


def _run_rom(rom, input_bytes=b""):
    output = bytearray()
    pending = list(input_bytes)

    def provide():
        return pending.pop(0) if pending else None

    vm = VirtualMachine(rom, provide, output.append)
    result = vm.run()
    if result is not RunResult.HALTED:
        raise RuntimeError("Program requested more input than supplied.")
    return output.decode("latin-1")


def _machine(source):
    vm = VirtualMachine(_compile(source), lambda: None, lambda value: None)
    return vm, vm.run()


HELLO = """
start:
    LDP msg
@loop:
    LDA
    JEQ @done
    PRT
    IDP
    JMP @loop
@done:
    HLT
msg:
    .ascii "Hello World!"
    .data 0
"""

PRINT_DEC = """
print_dec:
    LDP pd_val
    STA
    LDI 0
    LDP pd_started
    STA
    LDI 100
    LDP pd_div
    STA
    JSR pd_digit
    LDI 10
    LDP pd_div
    STA
    JSR pd_digit
    LDI 1
    LDP pd_started
    STA
    LDI 1
    LDP pd_div
    STA
    JSR pd_digit
    RET
pd_digit:
    LDI 0
    LDP pd_cnt
    STA
@loop:
    LDP pd_val
    LDA
    LDP pd_div
    CMP
    JNG @print
    SUB
    LDP pd_val
    STA
    LDP pd_cnt
    LDA
    ADI 1
    STA
    JMP @loop
@print:
    LDP pd_cnt
    LDA
    JEQ @zero
    ADI 48
    PRT
    LDI 1
    LDP pd_started
    STA
    RET
@zero:
    LDP pd_started
    LDA
    JEQ @skip
    LDI 48
    PRT
@skip:
    RET
pd_val: .data 0
pd_div: .data 0
pd_cnt: .data 0
pd_started: .data 0
"""

FIBO = """
main:
    LDI 0
    LDP fa
    STA
    LDI 1
    LDP fb
    STA
@loop:
    LDP fa
    LDA
    LDP fb
    ADD
    PSH
    LDA
    LDP fa
    STA
    POP
    LDP fb
    STA
    JSR print_dec
    LDI 10
    PRT
    LDP fb
    LDA
    CMI 233
    JEQ @done
    JMP @loop
@done:
    HLT
fa: .data 0
fb: .data 0
""" + PRINT_DEC

INT2DEC = """
main:
    RTR
    JSR print_dec
    HLT
""" + PRINT_DEC

INT2HEX = """
main:
    RTR
    LDP hx_val
    STA
    SHR
    SHR
    SHR
    SHR
    JSR hex_digit
    LDP hx_val
    LDA
    LDP hx_mask
    AND
    JSR hex_digit
    HLT
hex_digit:
    CMI 10
    JNG @num
    ADI 55
    PRT
    RET
@num:
    ADI 48
    PRT
    RET
hx_val: .data 0
hx_mask: .data $0F
"""


def test_e2e_hello():
    assert _run_rom(_compile(HELLO)) == "Hello World!"


def test_e2e_fibo():
    expected = "1\n2\n3\n5\n8\n13\n21\n34\n55\n89\n144\n233\n"
    assert _run_rom(_compile(FIBO)) == expected


@pytest.mark.parametrize(
    ("value", "expected"), [(0, "0"), (9, "9"), (42, "42"), (255, "255")]
)
def test_e2e_int2dec(value, expected):
    assert _run_rom(_compile(INT2DEC), bytes([value])) == expected


@pytest.mark.parametrize(
    ("value", "expected"), [(0, "00"), (15, "0F"), (42, "2A"), (255, "FF")]
)
def test_e2e_int2hex(value, expected):
    assert _run_rom(_compile(INT2HEX), bytes([value])) == expected


def test_program_without_enough_input_reports_waiting():
    with pytest.raises(RuntimeError, match="more input"):
        _run_rom(_compile(INT2DEC))


def test_waiting_for_input_resumes_at_same_instruction():
    supply = [None, ord("x")]
    output = []
    vm = VirtualMachine(_compile("RTR\nPRT\nHLT"), lambda: supply.pop(0), output.append)
    assert vm.run() is RunResult.WAITING_FOR_INPUT
    assert vm.ip == 0
    assert vm.run() is RunResult.HALTED
    assert output == [ord("x")]


def test_invalid_instruction_raises_with_offset():
    vm = VirtualMachine(bytes([OpCode.NOP, 0x20]))
    with pytest.raises(VMError, match=r"Invalid instruction encountered: \$20 at offset \$0002"):
        vm.run()


def test_operand_past_end_of_memory_raises():
    rom = bytearray(MEMORY_SIZE)
    rom[0:3] = bytes([OpCode.JMP, 0xFF, 0xFF])
    rom[0xFFFF] = OpCode.LDI
    with pytest.raises(VMError, match="Unexpected EOF"):
        VirtualMachine(bytes(rom)).run()


def test_empty_rom_runs_off_memory_and_halts():
    vm = VirtualMachine(b"")
    assert vm.run() is RunResult.HALTED
    assert len(vm.ram) == MEMORY_SIZE
    assert vm.ip == MEMORY_SIZE


def test_oversized_rom_is_truncated():
    vm = VirtualMachine(bytes([OpCode.HLT]) * (MEMORY_SIZE + 10))
    assert len(vm.ram) == MEMORY_SIZE


def test_cmp_sets_negative_flag_without_changing_register():
    vm, result = _machine("LDI 3\nLDP val\nCMP\nHLT\nval: .data 5")
    assert result is RunResult.HALTED
    assert vm.reg_a == 3
    assert vm.flag_neg is True
    assert vm.flag_zero is False


def test_cmi_equal_sets_zero_flag():
    vm, _ = _machine("LDI 7\nCMI 7\nHLT")
    assert vm.flag_zero is True
    assert vm.flag_neg is False


def test_adi_wraps_and_sets_zero():
    vm, _ = _machine("LDI 255\nADI 1\nHLT")
    assert vm.reg_a == 0
    assert vm.flag_zero is True


def test_sbi_wraps_around():
    vm, _ = _machine("LDI 0\nSBI 1\nHLT")
    assert vm.reg_a == 255
    assert vm.flag_neg is False


def test_data_pointer_byte_transfers():
    vm, _ = _machine("LDI $12\nLDH\nLDI $34\nLDL\nSDH\nHLT")
    assert vm.dp == 0x1234
    assert vm.reg_a == 0x12


def test_ddp_wraps_below_zero():
    vm, _ = _machine("DDP\nSDL\nHLT")
    assert vm.dp == 0xFFFF
    assert vm.reg_a == 0xFF


def test_store_and_load_memory():
    vm, _ = _machine("LDP $4000\nLDI 9\nSTA\nLDI 0\nLDA\nHLT")
    assert vm.ram[0x4000] == 9
    assert vm.reg_a == 9


def test_push_pop_restores_value_and_stack_pointer():
    vm, _ = _machine("LDI 42\nPSH\nLDI 0\nPOP\nHLT")
    assert vm.reg_a == 42
    assert vm.sp == MEMORY_SIZE - 1


def test_subroutine_call_returns_and_balances_stack():
    vm, _ = _machine("JSR sub\nHLT\nsub:\nLDI 5\nRET")
    assert vm.reg_a == 5
    assert vm.sp == MEMORY_SIZE - 1
    assert vm.ram[vm.ip - 1] == OpCode.HLT


def test_bitwise_operations():
    vm, _ = _machine("LDI $F0\nLDP mask\nXOR\nSHL\nHLT\nmask: .data $FF")
    assert vm.reg_a == 0x1E


def test_default_output_writes_to_stdout(capsys):
    VirtualMachine(_compile("LDI 65\nPRT\nHLT")).run()
    assert capsys.readouterr().out == "A"