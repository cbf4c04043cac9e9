from amaranth import *
from amaranth.lib.wiring import *

from rvpipe.isa import ImmSrc

class ImmediateGenerator(Component):
    """Extracts and sign-extends the immediate of an instruction.

    Only bits [31:7] of the instruction are looked at; the opcode bits are
    accepted on the port for convenience and ignored.

    Attributes
    ----------
    inst (input): instruction word.
    imm_src (input): ImmSrc format selector.
    imm (output): 32-bit sign-extended immediate.
    """
    inst: In(32)
    imm_src: In(2)
    imm: Out(32)

    def elaborate(self, platform):
        m = Module()

        inst = self.inst
        sign = inst[31]

        with m.Switch(self.imm_src):
            with m.Case(ImmSrc.I):
                m.d.comb += self.imm.eq(Cat(inst[20:32], sign.replicate(20)))
            with m.Case(ImmSrc.S):
                m.d.comb += self.imm.eq(Cat(inst[7:12], inst[25:32],
                                            sign.replicate(20)))
            with m.Case(ImmSrc.B):
                m.d.comb += self.imm.eq(Cat(Const(0, 1), inst[8:12], inst[25:31], inst[7],
                                            sign.replicate(20)))
            with m.Case(ImmSrc.J):
                m.d.comb += self.imm.eq(Cat(Const(0, 1), inst[21:31], inst[20],
                                            inst[12:20], sign.replicate(12)))

        return m
