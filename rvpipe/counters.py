from amaranth import *
from amaranth.lib.wiring import *

from rvpipe.cpu import RetireSignals

class PerfCounters(Component):
    """Free-running cycle and retirement counters.

    cycle_count goes up by one every cycle. instr_retired goes up by one in
    any cycle where Writeback writes a register, Memory writes memory, or a
    branch or jump is taken in Execute. Taken branches are counted when they
    resolve rather than when they reach Writeback, and a cycle with several
    of these events still only counts once.

    Both counters are 32 bits and wrap.

    Attributes
    ----------
    retire (input): events from the core.
    cycle_count (output)
    instr_retired (output)
    """
    retire: In(RetireSignals)
    cycle_count: Out(32)
    instr_retired: Out(32)

    def elaborate(self, platform):
        m = Module()

        cycles = Signal(32)
        retired = Signal(32)

        m.d.sync += cycles.eq(cycles + 1)
        with m.If(self.retire.reg_write_w
                  | self.retire.mem_write_m
                  | self.retire.pc_src_e):
            m.d.sync += retired.eq(retired + 1)

        m.d.comb += [
            self.cycle_count.eq(cycles),
            self.instr_retired.eq(retired),
        ]

        return m
