from amaranth import *
from amaranth.lib.wiring import *

from rvpipe.isa import ForwardSel

class ForwardingUnit(Component):
    """Chooses where each Execute-stage operand comes from.

    An operand is taken from the Memory stage if the instruction there is
    about to write the same (nonzero) register, otherwise from the Writeback
    stage under the same condition, otherwise from the value read out of the
    register file during Decode. Checking Memory first means the more recent
    of two pending writes wins.

    Attributes
    ----------
    rs1_e, rs2_e (input): source registers of the Execute-stage instruction.
    rd_m, reg_write_m (input): destination and write enable in Memory.
    rd_w, reg_write_w (input): destination and write enable in Writeback.
    forward_a, forward_b (output): ForwardSel for each operand.
    """
    rs1_e: In(5)
    rs2_e: In(5)
    rd_m: In(5)
    reg_write_m: In(1)
    rd_w: In(5)
    reg_write_w: In(1)
    forward_a: Out(2)
    forward_b: Out(2)

    def elaborate(self, platform):
        m = Module()

        for rs, forward in ((self.rs1_e, self.forward_a),
                            (self.rs2_e, self.forward_b)):
            with m.If((rs == self.rd_m) & self.reg_write_m & (rs != 0)):
                m.d.comb += forward.eq(ForwardSel.MEM)
            with m.Elif((rs == self.rd_w) & self.reg_write_w & (rs != 0)):
                m.d.comb += forward.eq(ForwardSel.WB)
            with m.Else():
                m.d.comb += forward.eq(ForwardSel.REG)

        return m
