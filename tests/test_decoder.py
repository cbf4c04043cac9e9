import pytest

from rvpipe.decoder import MainDecoder, AluDecoder, MAIN_DECODE
from rvpipe.isa import Opcode, AluOp, AluFunc, ImmSrc, ResultSrc

from conftest import simulate

FIELDS = ['reg_write', 'imm_src', 'alu_src', 'mem_write', 'result_src',
          'branch', 'alu_op', 'jump']

# (opcode, reg_write, imm_src, alu_src, mem_write, result_src, branch, alu_op, jump)
EXPECTED = [
    (Opcode.LOAD,    1, ImmSrc.I, 1, 0, ResultSrc.MEM, 0, AluOp.ADD,  0),
    (Opcode.STORE,   0, ImmSrc.S, 1, 1, ResultSrc.ALU, 0, AluOp.ADD,  0),
    (Opcode.OP,      1, ImmSrc.I, 0, 0, ResultSrc.ALU, 0, AluOp.BASE, 0),
    (Opcode.BRANCH,  0, ImmSrc.B, 0, 0, ResultSrc.ALU, 1, AluOp.SUB,  0),
    (Opcode.OP_IMM,  1, ImmSrc.I, 1, 0, ResultSrc.ALU, 0, AluOp.BASE, 0),
    (Opcode.JAL,     1, ImmSrc.J, 0, 0, ResultSrc.PC4, 0, AluOp.ADD,  1),
    (Opcode.CUSTOM0, 1, ImmSrc.I, 0, 0, ResultSrc.ALU, 0, AluOp.EXT,  0),
    (Opcode.NOP,     0, ImmSrc.I, 0, 0, ResultSrc.ALU, 0, AluOp.ADD,  0),
]

def as_int(x):
    return x.value if hasattr(x, 'value') else x

def decode_main(op):
    dut = MainDecoder()
    out = {}

    async def bench(ctx):
        ctx.set(dut.op, op)
        for name in FIELDS:
            out[name] = ctx.get(getattr(dut.control, name))
        out['illegal'] = ctx.get(dut.illegal)

    simulate(dut, bench, clock = False)
    return out

@pytest.mark.parametrize("row", EXPECTED, ids = lambda row: row[0].name)
def test_main_decoder_table(row):
    out = decode_main(row[0].value)
    assert out['illegal'] == 0
    for name, value in zip(FIELDS, row[1:]):
        assert out[name] == as_int(value), name

def test_table_covers_every_opcode():
    assert set(MAIN_DECODE) == set(Opcode)

# LUI, AUIPC, JALR, SYSTEM, all-ones, and a NOP opcode with the low bit set.
@pytest.mark.parametrize("op", [0b0110111, 0b0010111, 0b1100111, 0b1110011,
                                0b1111111, 0b0000001])
def test_main_decoder_illegal(op):
    out = decode_main(op)
    assert out['illegal'] == 1
    for name in FIELDS:
        assert out[name] == 0, name

def decode_alu(alu_op, funct3 = 0, *, op5 = 0, funct7 = 0):
    dut = AluDecoder()
    out = {}

    async def bench(ctx):
        ctx.set(dut.alu_op, alu_op.value)
        ctx.set(dut.op5, op5)
        ctx.set(dut.funct3, funct3)
        ctx.set(dut.funct7b5, (funct7 >> 5) & 1)
        ctx.set(dut.funct7_hi, (funct7 >> 5) & 0b11)
        out['func'] = ctx.get(dut.alu_control)
        out['illegal'] = ctx.get(dut.illegal)

    simulate(dut, bench, clock = False)
    return out['func'], out['illegal']

ALU_CASES = [
    # Loads/stores and branches ignore the funct fields.
    (AluOp.ADD, 0b111, 1, 0b0100000, AluFunc.ADD),
    (AluOp.SUB, 0b101, 0, 0b0000000, AluFunc.SUB),
    # Base ops
    (AluOp.BASE, 0b000, 1, 0b0000000, AluFunc.ADD),
    (AluOp.BASE, 0b000, 1, 0b0100000, AluFunc.SUB),
    # ADDI with immediate bit 10 set (instruction bit 30) is still ADD.
    (AluOp.BASE, 0b000, 0, 0b0100000, AluFunc.ADD),
    (AluOp.BASE, 0b010, 1, 0b0000000, AluFunc.SLT),
    (AluOp.BASE, 0b110, 0, 0b0000000, AluFunc.OR),
    (AluOp.BASE, 0b111, 1, 0b0000000, AluFunc.AND),
    # Extension
    (AluOp.EXT, 0b000, 0, 0b0000000, AluFunc.ANDN),
    (AluOp.EXT, 0b001, 0, 0b0000000, AluFunc.ORN),
    (AluOp.EXT, 0b010, 0, 0b0000000, AluFunc.XNOR),
    (AluOp.EXT, 0b000, 0, 0b0100000, AluFunc.MIN),
    (AluOp.EXT, 0b001, 0, 0b0100000, AluFunc.MAX),
    (AluOp.EXT, 0b010, 0, 0b0100000, AluFunc.MINU),
    (AluOp.EXT, 0b011, 0, 0b0100000, AluFunc.MAXU),
    (AluOp.EXT, 0b000, 0, 0b1000000, AluFunc.ROL),
    (AluOp.EXT, 0b001, 0, 0b1000000, AluFunc.ROR),
    (AluOp.EXT, 0b010, 0, 0b1000000, AluFunc.ABS),
    # Low funct7 bits don't matter.
    (AluOp.EXT, 0b001, 0, 0b1011111, AluFunc.ROR),
]

@pytest.mark.parametrize("alu_op,funct3,op5,funct7,expected", ALU_CASES)
def test_alu_decoder(alu_op, funct3, op5, funct7, expected):
    func, illegal = decode_alu(alu_op, funct3, op5 = op5, funct7 = funct7)
    assert illegal == 0
    assert func == expected.value

@pytest.mark.parametrize("alu_op,funct3,funct7", [
    (AluOp.BASE, 0b001, 0b0000000),
    (AluOp.BASE, 0b011, 0b0000000),
    (AluOp.BASE, 0b100, 0b0000000),
    (AluOp.BASE, 0b101, 0b0100000),
    (AluOp.EXT, 0b011, 0b0000000),
    (AluOp.EXT, 0b100, 0b0100000),
    (AluOp.EXT, 0b011, 0b1000000),
    (AluOp.EXT, 0b000, 0b1100000),
])
def test_alu_decoder_unmapped(alu_op, funct3, funct7):
    func, illegal = decode_alu(alu_op, funct3, op5 = 1, funct7 = funct7)
    assert illegal == 1
    assert func == AluFunc.ADD.value
