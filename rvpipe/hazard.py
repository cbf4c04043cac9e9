from amaranth import *
from amaranth.lib.wiring import *

from rvpipe.isa import ResultSrc

HazardSignals = Signature({
    'stall_f': Out(1),
    'stall_d': Out(1),
    'flush_d': Out(1),
    'flush_e': Out(1),
})

class HazardUnit(Component):
    """Stall and flush generation. Purely combinational.

    Two conditions are detected:

    - Load-use: the Execute-stage instruction is a load whose destination is
      a source of the Decode-stage instruction. Fetch and Decode hold for a
      cycle and a bubble goes into Execute. The source fields are compared
      as raw instruction bits, whatever the format.
    - Control hazard: a taken branch or a jump is resolving in Execute. The
      two younger instructions in Decode and Fetch are on the wrong path and
      get flushed. This two-instruction penalty applies to every taken
      branch and jump.

    Attributes
    ----------
    rs1_d, rs2_d (input): source fields of the Decode-stage instruction.
    rd_e (input): destination of the Execute-stage instruction.
    result_src_e (input): ResultSrc of the Execute-stage instruction.
    pc_src_e (input): branch taken or jump in Execute.
    out (output): HazardSignals.
    """
    rs1_d: In(5)
    rs2_d: In(5)
    rd_e: In(5)
    result_src_e: In(2)
    pc_src_e: In(1)
    out: Out(HazardSignals)

    def elaborate(self, platform):
        m = Module()

        load_use = Signal(1)
        m.d.comb += load_use.eq(
            (self.result_src_e == ResultSrc.MEM)
            & ((self.rs1_d == self.rd_e) | (self.rs2_d == self.rd_e))
        )

        m.d.comb += [
            self.out.stall_f.eq(load_use),
            self.out.stall_d.eq(load_use),
            self.out.flush_d.eq(self.pc_src_e),
            self.out.flush_e.eq(load_use | self.pc_src_e),
        ]

        return m
