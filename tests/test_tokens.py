from t32asm.opcodes import OpCode, instruction_size
from t32asm.tokens import Token


def test_default_operand_is_zero():
    token = Token(OpCode.LDI)
    assert token.operand == 0
    assert token.operand_label is None
    assert token.label_definition is None
    assert token.data_bytes == b""


def test_label_definition_is_label():
    token = Token(OpCode.INVALID, None, None, "START", 1)
    assert token.is_label()
    assert token.size() == 0


def test_instruction_is_not_label():
    token = Token(OpCode.JMP, None, "START", None, 2)
    assert not token.is_label()


def test_label_definition_with_real_opcode_is_not_label():
    token = Token(OpCode.HLT, None, None, "X", 1)
    assert not token.is_label()
    assert token.size() == instruction_size(OpCode.HLT)


def test_data_size_is_byte_count():
    payload = b"Hello"
    token = Token(OpCode.INVALID, None, None, None, 3, payload)
    assert not token.is_label()
    assert token.size() == len(payload)


def test_instruction_size_matches_opcode_table():
    for op in (OpCode.JMP, OpCode.LDI, OpCode.HLT):
        assert Token(op, None).size() == instruction_size(op)


def test_tokens_compare_by_value():
    assert Token(OpCode.LDI, 5, line=1) == Token(OpCode.LDI, 5, None, None, 1)
    assert Token(OpCode.LDI, 5) != Token(OpCode.LDI, 6)