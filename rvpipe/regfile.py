# 32-bit x 32 register file with two combinational read ports.

from amaranth import *
from amaranth.lib.wiring import *

from rvpipe import AlwaysReady, mux

def RegWrite(addrbits = 5):
    return Signature({
        'reg': Out(addrbits),
        'value': Out(32),
    })

ReadPort = Signature({
    'addr': Out(5),
    'data': In(32),
})

class RegFile(Component):
    """General purpose registers x0..x31.

    Reads are combinational. The single write port commits at the clock
    edge, so the storage itself never shows a read the value written in the
    same cycle. x0 is never written and always reads as zero.

    Parameters
    ----------
    transparent (boolean): if True (the default), a read of the register
        being written this cycle returns the incoming write value instead of
        the stored one. The pipeline relies on this for a consumer three
        instructions behind its producer, which reads its operands in Decode
        while the producer is in Writeback. If False, reads see only what has
        been committed.

    Attributes
    ----------
    read1, read2 (port): read ports; put a register number on addr, get its
        value on data in the same cycle.
    write_cmd (input): write port; valid is the write enable.
    regs (list of Signal): storage, exposed for testbenches.
    """
    read1: In(ReadPort)
    read2: In(ReadPort)
    write_cmd: In(AlwaysReady(RegWrite()))

    def __init__(self, *, transparent = True):
        super().__init__()

        self.transparent = transparent
        self.regs = [Signal(32, name = f"x{n}") for n in range(32)]

    def elaborate(self, platform):
        m = Module()

        # Writes to x0 are dropped here, and x0's storage is never driven.
        for n in range(1, 32):
            with m.If(self.write_cmd.valid & (self.write_cmd.payload.reg == n)):
                m.d.sync += self.regs[n].eq(self.write_cmd.payload.value)

        for port in (self.read1, self.read2):
            stored = Signal(32)
            with m.Switch(port.addr):
                for n in range(1, 32):
                    with m.Case(n):
                        m.d.comb += stored.eq(self.regs[n])
                # Case 0 leaves stored at zero.

            if self.transparent:
                bypass = (
                    self.write_cmd.valid
                    & (self.write_cmd.payload.reg == port.addr)
                    & (port.addr != 0)
                )
                m.d.comb += port.data.eq(mux(
                    bypass,
                    self.write_cmd.payload.value,
                    stored,
                ))
            else:
                m.d.comb += port.data.eq(stored)

        return m
