import io

import pytest

from y86kit.isa import (
    BPL,
    DEFAULT_CC,
    AddressError,
    AluOp,
    ArgKind,
    Cond,
    IType,
    LoadError,
    Memory,
    Register,
    RegisterFile,
    Status,
    bad_instr,
    cc_name,
    compute_alu,
    compute_cc,
    cond_holds,
    find_instr,
    find_register,
    hpack,
    iname,
    op_name,
    reg_name,
    reg_valid,
    stat_name,
)

TMAX = (1 << 31) - 1
TMIN = -(1 << 31)


def test_hpack_packs_nibbles():
    packed = hpack(IType.IRMOVL, Register.NONE)
    assert packed >> 4 == IType.IRMOVL
    assert packed & 0xF == Register.NONE


def test_find_register_and_name_round_trip():
    for reg in list(Register)[:8]:
        assert find_register(reg_name(reg)) == reg
    assert find_register("%esp") == Register.ESP
    assert find_register("%rax") == Register.ERR


def test_reg_name_of_non_registers():
    assert reg_name(Register.NONE) == "----"
    assert reg_name(9) == "----"
    assert reg_name(Register.EAX) == "%eax"


def test_reg_valid():
    assert reg_valid(Register.EDI)
    assert not reg_valid(Register.NONE)
    assert not reg_valid(8)
    assert not reg_valid(-1)


def test_find_instr_codes_and_sizes():
    irmovl = find_instr("irmovl")
    assert irmovl.code == hpack(IType.IRMOVL, 0)
    assert irmovl.size == 6
    assert irmovl.arg1 == ArgKind.IMM
    assert find_instr("jle").code == hpack(IType.JMP, Cond.LE)
    assert find_instr("bogus") is None


def test_iname_round_trips_and_bad():
    for name in ("nop", "addl", "subl", "jmp", "call", "ret", "pushl", "iaddl"):
        assert iname(find_instr(name).code) == name
    assert iname(0x00) == "halt"
    assert iname(0xFF) == "<bad>"


def test_bad_instr():
    instr = bad_instr()
    assert instr.name == "XXX"
    assert instr.size == 0


def test_op_name():
    assert [op_name(op) for op in (AluOp.ADD, AluOp.SUB, AluOp.AND, AluOp.XOR)] == [
        "+", "-", "&", "^"]
    assert op_name(AluOp.NONE) == "?"


def test_compute_alu():
    assert compute_alu(AluOp.SUB, 3, 10) == 7
    assert compute_alu(AluOp.ADD, TMAX, 1) == TMIN
    assert compute_alu(AluOp.AND, 12, 10) == 12 & 10
    assert compute_alu(AluOp.XOR, 12, 10) == 12 ^ 10
    assert compute_alu(AluOp.NONE, 5, 6) == 0


def test_compute_cc_names():
    assert cc_name(compute_cc(AluOp.ADD, TMAX, 1)) == "Z=0 S=1 O=1"
    assert cc_name(compute_cc(AluOp.SUB, 5, 5)) == "Z=1 S=0 O=0"
    assert cc_name(compute_cc(AluOp.XOR, -1, 0)) == "Z=0 S=1 O=0"
    assert cc_name(DEFAULT_CC) == "Z=1 S=0 O=0"


def test_cc_name_out_of_range():
    assert cc_name(8) == "???????????"
    assert cc_name(-1) == "???????????"


def test_stat_name():
    assert stat_name(Status.AOK) == "AOK"
    assert stat_name(Status.HLT) == "HLT"
    assert stat_name(6) == "Invalid Status"


@pytest.mark.parametrize("cc", range(8))
def test_cond_holds_relations(cc):
    assert cond_holds(cc, Cond.YES)
    assert cond_holds(cc, Cond.LE) == (cond_holds(cc, Cond.L) or cond_holds(cc, Cond.E))
    assert cond_holds(cc, Cond.G) == (not cond_holds(cc, Cond.LE))
    assert cond_holds(cc, Cond.GE) == (not cond_holds(cc, Cond.L))
    assert cond_holds(cc, Cond.NE) == (not cond_holds(cc, Cond.E))


def test_cond_holds_after_compare():
    cc = compute_cc(AluOp.SUB, 7, 3)  # 3 - 7
    assert cond_holds(cc, Cond.L)
    assert not cond_holds(cc, Cond.E)


def test_memory_size_rounds_to_blocks():
    assert len(Memory(1)) == BPL
    assert len(Memory(64)) == 64
    assert len(Memory(100)) % BPL == 0


def test_memory_word_round_trip_little_endian():
    mem = Memory(64)
    mem.set_word(8, 0x12345678)
    assert mem.get_word(8) == 0x12345678
    assert mem.get_byte(8) == 0x78
    assert mem.get_byte(11) == 0x12
    mem.set_word(12, -5)
    assert mem.get_word(12) == -5


def test_memory_byte_round_trip():
    mem = Memory(32)
    mem.set_byte(31, 0xAB)
    assert mem.get_byte(31) == 0xAB


def test_memory_bounds():
    mem = Memory(32)
    with pytest.raises(AddressError):
        mem.get_byte(32)
    with pytest.raises(AddressError):
        mem.get_word(29)
    with pytest.raises(AddressError):
        mem.set_word(-1, 0)
    with pytest.raises(AddressError):
        mem.set_byte(40, 1)


def test_memory_copy_clear_and_diff():
    mem = Memory(64)
    mem.set_word(4, 99)
    copy = mem.copy()
    assert copy == mem
    assert not mem.diff(copy)
    copy.set_word(8, 5)
    assert mem.diff(copy)
    out = io.StringIO()
    assert mem.diff(copy, out)
    lines = out.getvalue().splitlines()
    assert len(lines) == 1
    assert lines[0].startswith("0x0008:")
    copy.clear()
    assert copy.contents == bytes(64)


def test_memory_dump_prints_whole_blocks():
    mem = Memory(64)
    mem.set_word(36, -1)
    out = io.StringIO()
    mem.dump(out, 36, 4)
    text = out.getvalue()
    assert text.startswith("0x0020:")
    assert text.split()[1:] == ["00000000", "ffffffff"] + ["00000000"] * 6


def test_memory_load():
    listing = [
        "                      | # comment\n",
        "  0x000: 30f404000000 | irmovl $4,%esp\n",
        "  0x006: 00           | halt\n",
    ]
    mem = Memory(64)
    count = mem.load(listing)
    code = bytes.fromhex("30f40400000000")
    assert count == len(code)
    assert bytes(mem.contents[:len(code)]) == code


def test_memory_load_missing_colon():
    with pytest.raises(LoadError):
        Memory(32).load(["0x000 10\n"])


def test_memory_load_bad_address():
    with pytest.raises(LoadError):
        Memory(32).load(["0x01f: 1010\n"])


def test_register_file_get_set():
    regs = RegisterFile()
    regs.set(Register.ESP, 0x100)
    assert regs.get(Register.ESP) == 0x100
    regs.set(Register.EAX, 0xFFFFFFFF)
    assert regs.get(Register.EAX) == -1
    regs.set(Register.NONE, 7)
    assert regs.get(Register.NONE) == 0


def test_register_file_copy_and_diff():
    regs = RegisterFile()
    other = regs.copy()
    assert not regs.diff(other)
    other.set(Register.ESP, 0x10)
    assert regs.values[Register.ESP] == 0
    out = io.StringIO()
    assert regs.diff(other, out)
    assert out.getvalue() == "%esp:\t0x00000000\t0x00000010\n"


def test_register_file_dump():
    regs = RegisterFile()
    regs.set(Register.EBX, 255)
    out = io.StringIO()
    regs.dump(out)
    names, values = out.getvalue().splitlines()
    assert names.split() == [reg_name(r) for r in range(8)]
    assert values.split()[Register.EBX] == "ff"
    assert len(values.split()) == 8