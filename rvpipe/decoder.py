# Combinational decode logic.
#
# Both decoders are driven from plain lookup tables below; the elaborate
# methods just turn each table row into a Case. Rows are matched in order,
# so a more specific pattern must come before a more general one.

from amaranth import *
from amaranth.lib.wiring import *

from rvpipe.isa import Opcode, AluOp, AluFunc, ImmSrc, ResultSrc
from rvpipe.layout import MainControl

# Control signals for each legal opcode. Fields that aren't listed are zero,
# including the ones that are don't-cares for that instruction.
MAIN_DECODE = {
    Opcode.LOAD: {
        'reg_write': 1,
        'imm_src': ImmSrc.I,
        'alu_src': 1,
        'result_src': ResultSrc.MEM,
        'alu_op': AluOp.ADD,
    },
    Opcode.STORE: {
        'imm_src': ImmSrc.S,
        'alu_src': 1,
        'mem_write': 1,
        'alu_op': AluOp.ADD,
    },
    Opcode.OP: {
        'reg_write': 1,
        'alu_op': AluOp.BASE,
    },
    Opcode.BRANCH: {
        'imm_src': ImmSrc.B,
        'branch': 1,
        'alu_op': AluOp.SUB,
    },
    Opcode.OP_IMM: {
        'reg_write': 1,
        'imm_src': ImmSrc.I,
        'alu_src': 1,
        'alu_op': AluOp.BASE,
    },
    Opcode.JAL: {
        'reg_write': 1,
        'imm_src': ImmSrc.J,
        'result_src': ResultSrc.PC4,
        'jump': 1,
    },
    Opcode.CUSTOM0: {
        'reg_write': 1,
        'alu_op': AluOp.EXT,
    },
    # Bubble: everything off.
    Opcode.NOP: {},
}

# ALU sub-decoder rows. Patterns are matched against
#
#   alu_op[1:0]  funct7[6:5]  funct3[2:0]  opcode[5]  funct7[5]
#
# most significant first, with '-' as don't-care.
ALU_DECODE = [
    ("00 -- --- - -", AluFunc.ADD),
    ("01 -- --- - -", AluFunc.SUB),

    # Base R-type and I-type. Only register-register forms (opcode bit 5)
    # can subtract; ADDI with bit 30 of its immediate set is still an add.
    ("10 -- 000 1 1", AluFunc.SUB),
    ("10 -- 000 - -", AluFunc.ADD),
    ("10 -- 010 - -", AluFunc.SLT),
    ("10 -- 110 - -", AluFunc.OR),
    ("10 -- 111 - -", AluFunc.AND),

    # Custom-0 extension: funct7[6:5] picks a group, funct3 the operation.
    ("11 00 000 - -", AluFunc.ANDN),
    ("11 00 001 - -", AluFunc.ORN),
    ("11 00 010 - -", AluFunc.XNOR),
    ("11 01 000 - -", AluFunc.MIN),
    ("11 01 001 - -", AluFunc.MAX),
    ("11 01 010 - -", AluFunc.MINU),
    ("11 01 011 - -", AluFunc.MAXU),
    ("11 10 000 - -", AluFunc.ROL),
    ("11 10 001 - -", AluFunc.ROR),
    ("11 10 010 - -", AluFunc.ABS),
]

class MainDecoder(Component):
    """Maps an opcode to the pipeline's control signals.

    Attributes
    ----------
    op (input): instruction bits [6:0].
    control (output): MainControl bundle; all zero for the NOP word and for
        illegal opcodes.
    illegal (output): raised for any opcode not in MAIN_DECODE.
    """
    op: In(7)
    control: Out(MainControl)
    illegal: Out(1)

    def elaborate(self, platform):
        m = Module()

        with m.Switch(self.op):
            for opcode, fields in MAIN_DECODE.items():
                with m.Case(opcode):
                    for name, value in fields.items():
                        m.d.comb += getattr(self.control, name).eq(value)
            with m.Default():
                m.d.comb += self.illegal.eq(1)

        return m

class AluDecoder(Component):
    """Refines the main decoder's AluOp into a specific AluFunc.

    Attributes
    ----------
    alu_op (input): AluOp from the main decoder.
    op5 (input): opcode bit 5, set for register-register forms.
    funct3 (input): instruction bits [14:12].
    funct7b5 (input): instruction bit 30.
    funct7_hi (input): instruction bits [31:30].
    alu_control (output): AluFunc code, ADD when illegal.
    illegal (output): raised when no row of ALU_DECODE matches.
    """
    alu_op: In(2)
    op5: In(1)
    funct3: In(3)
    funct7b5: In(1)
    funct7_hi: In(2)
    alu_control: Out(4)
    illegal: Out(1)

    def elaborate(self, platform):
        m = Module()

        key = Signal(9)
        m.d.comb += key.eq(Cat(
            self.funct7b5,
            self.op5,
            self.funct3,
            self.funct7_hi,
            self.alu_op,
        ))

        with m.Switch(key):
            for pattern, func in ALU_DECODE:
                with m.Case(pattern):
                    m.d.comb += self.alu_control.eq(func)
            with m.Default():
                m.d.comb += [
                    self.alu_control.eq(AluFunc.ADD),
                    self.illegal.eq(1),
                ]

        return m
