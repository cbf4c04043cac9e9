# Simulation harness: runs a program on Top under the Amaranth simulator and
# reports what happened.

from dataclasses import dataclass, field

from amaranth.sim import Simulator

from rvpipe.top import Top
from rvpipe.asm import SELF_LOOP
from rvpipe.errors import SimulationTimeout, fault_for

@dataclass
class Store:
    cycle: int
    addr: int
    data: int

@dataclass
class RunResult:
    """State collected at the end of a run.

    `cycles` is the number of clock edges simulated. `stall_cycles` and
    `flush_cycles` count cycles in which stall_f / flush_d were asserted.
    `faults` has one Fault per faulting instruction that reached Execute,
    in order, whichever fault policy the core runs; `fault` is the one the
    core halted on, if any.
    """
    regs: list
    memory: list
    cycles: int
    cycle_count: int
    instr_retired: int
    pc: int
    stores: list = field(default_factory = list)
    stall_cycles: int = 0
    flush_cycles: int = 0
    fault: object = None
    faults: list = field(default_factory = list)

class Harness:
    """Builds a Top around a program and runs it.

    A run ends when the core halts on a fault, when the program parks on a
    `jal x0, 0` and everything ahead of it has drained, or after max_cycles.

    Parameters
    ----------
    program (list of integer): instruction words.
    **top_kwargs: passed to Top (data, imem_depth, dmem_depth,
        halt_on_fault, transparent_regfile).
    """

    # Cycles to keep going once the parking jump resolves, so the
    # instructions in Memory and Writeback commit.
    DRAIN_CYCLES = 2

    def __init__(self, program, **top_kwargs):
        self.program = list(program)
        self.top_kwargs = top_kwargs

    def traces(self, top):
        cpu = top.cpu
        return [
            cpu.pc_f,
            cpu.fd.as_value(),
            cpu.de.as_value(),
            cpu.de_ctl.as_value(),
            cpu.em.as_value(),
            cpu.mw.as_value(),
            top.mem_addr,
            top.mem_wdata,
            top.mem_we,
            cpu.hazard.stall_f,
            cpu.hazard.flush_d,
            cpu.hazard.flush_e,
            top.cycle_count,
            top.instr_retired,
        ]

    def run(self, max_cycles = 10_000, *,
            stop_when_parked = True,
            raise_on_fault = True,
            vcd_file = None,
            gtkw_file = None):
        """Simulates the program.

        Raises IllegalInstruction or UndefinedOperation if the core halts on
        a fault (unless raise_on_fault is False, in which case the fault is
        put in the result), and SimulationTimeout if stop_when_parked is set
        and the program hasn't parked within max_cycles.
        """
        top = Top(self.program, **self.top_kwargs)
        cpu = top.cpu
        outcome = {}

        async def bench(ctx):
            stores = []
            stall_cycles = 0
            flush_cycles = 0
            drain = None
            fault = None
            faults = []
            cycle = 0

            while cycle < max_cycles:
                if ctx.get(top.mem_we):
                    stores.append(Store(
                        cycle = cycle,
                        addr = ctx.get(top.mem_addr),
                        data = ctx.get(top.mem_wdata),
                    ))
                stall_cycles += ctx.get(cpu.hazard.stall_f)
                flush_cycles += ctx.get(cpu.hazard.flush_d)

                # The report stays up once halted; only count it the first time.
                if ctx.get(top.fault.valid) and not ctx.get(top.halted):
                    faults.append(fault_for(
                        ctx.get(top.fault.kind),
                        ctx.get(top.fault.pc),
                        ctx.get(top.fault.inst),
                    ))

                if ctx.get(top.halted) and fault is None:
                    fault = faults[-1]
                    drain = self.DRAIN_CYCLES

                if (drain is None and stop_when_parked
                        and ctx.get(cpu.de.inst) == SELF_LOOP
                        and ctx.get(cpu.retire.pc_src_e)):
                    drain = self.DRAIN_CYCLES

                if drain is not None:
                    if drain == 0:
                        break
                    drain -= 1

                await ctx.tick()
                cycle += 1

            outcome['result'] = RunResult(
                regs = [ctx.get(r) for r in cpu.regfile.regs],
                memory = [ctx.get(top.dmem.data[i])
                          for i in range(top.dmem.depth)],
                cycles = cycle,
                cycle_count = ctx.get(top.cycle_count),
                instr_retired = ctx.get(top.instr_retired),
                pc = ctx.get(cpu.pc),
                stores = stores,
                stall_cycles = stall_cycles,
                flush_cycles = flush_cycles,
                fault = fault,
                faults = faults,
            )
            outcome['finished'] = drain == 0

        sim = Simulator(top)
        sim.add_clock(1e-6)
        sim.add_testbench(bench)

        if vcd_file is not None:
            with sim.write_vcd(vcd_file = vcd_file, gtkw_file = gtkw_file,
                               traces = self.traces(top)):
                sim.run()
        else:
            sim.run()

        result = outcome['result']
        if result.fault is not None and raise_on_fault:
            raise result.fault
        if stop_when_parked and not outcome['finished']:
            raise SimulationTimeout(
                f"program did not finish within {max_cycles} cycles "
                f"(pc 0x{result.pc:08x})")
        return result

def run_program(program, max_cycles = 10_000, **top_kwargs):
    """Shorthand for Harness(program, **top_kwargs).run(max_cycles)."""
    return Harness(program, **top_kwargs).run(max_cycles)
