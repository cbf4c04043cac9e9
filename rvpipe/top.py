# Top-level wiring: core, memories and counters.

from amaranth import *
from amaranth.lib.wiring import *

from rvpipe.cpu import Cpu, FaultReport
from rvpipe.mem import InstructionMemory, DataMemory
from rvpipe.counters import PerfCounters

class Top(Component):
    """A core with its program and data memories and performance counters.

    Parameters
    ----------
    program (list of integer): instruction words, loaded at address 0.
    data (list of integer): initial data memory words, from address 0.
    imem_depth (integer): instruction memory size in words; defaults to the
        smallest power of two that fits the program.
    dmem_depth (integer): data memory size in words, 1024 by default.
    halt_on_fault, transparent_regfile: passed through to Cpu.

    Attributes
    ----------
    mem_addr, mem_wdata, mem_we (output): the Memory stage's data bus, which
        is enough for a harness to see each store as it happens.
    cycle_count, instr_retired (output): performance counters.
    halted (output), fault (output): from the core.
    cpu, imem, dmem, counters: the submodules, for testbenches.
    """
    mem_addr: Out(32)
    mem_wdata: Out(32)
    mem_we: Out(1)
    cycle_count: Out(32)
    instr_retired: Out(32)
    halted: Out(1)
    fault: Out(FaultReport)

    def __init__(self, program, *,
                 data = (),
                 imem_depth = None,
                 dmem_depth = 1024,
                 halt_on_fault = True,
                 transparent_regfile = True):
        super().__init__()

        self.cpu = Cpu(
            halt_on_fault = halt_on_fault,
            transparent_regfile = transparent_regfile,
        )
        self.imem = InstructionMemory(contents = program, depth = imem_depth)
        self.dmem = DataMemory(depth = dmem_depth, contents = data)
        self.counters = PerfCounters()

    def elaborate(self, platform):
        m = Module()

        m.submodules.cpu = cpu = self.cpu
        m.submodules.imem = imem = self.imem
        m.submodules.dmem = dmem = self.dmem
        m.submodules.counters = counters = self.counters

        connect(m, cpu.imem, imem.bus)
        connect(m, cpu.dmem, dmem.bus)
        connect(m, cpu.retire, counters.retire)

        m.d.comb += [
            self.mem_addr.eq(cpu.dmem.addr),
            self.mem_wdata.eq(cpu.dmem.wdata),
            self.mem_we.eq(cpu.dmem.we),

            self.cycle_count.eq(counters.cycle_count),
            self.instr_retired.eq(counters.instr_retired),

            self.halted.eq(cpu.halted),
            self.fault.valid.eq(cpu.fault.valid),
            self.fault.kind.eq(cpu.fault.kind),
            self.fault.pc.eq(cpu.fault.pc),
            self.fault.inst.eq(cpu.fault.inst),
        ]

        return m
