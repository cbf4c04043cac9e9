from types import SimpleNamespace

from amaranth.sim import Simulator

from rvpipe.top import Top

def simulate(dut, bench, *, clock = True):
    """Runs one testbench coroutine against dut."""
    sim = Simulator(dut)
    if clock:
        sim.add_clock(1e-6)
    sim.add_testbench(bench)
    sim.run()

def trace_program(program, cycles, **top_kwargs):
    """Runs program on a Top for a fixed number of cycles.

    Returns a list with one snapshot of the interesting signals per cycle
    (taken before that cycle's clock edge), and the final register values.
    """
    top = Top(program, **top_kwargs)
    cpu = top.cpu
    trace = []
    final = {}

    async def bench(ctx):
        for cycle in range(cycles):
            trace.append(SimpleNamespace(
                cycle = cycle,
                pc = ctx.get(cpu.pc),
                inst_d = ctx.get(cpu.fd.inst),
                pc_d = ctx.get(cpu.fd.pc),
                inst_e = ctx.get(cpu.de.inst),
                pc_e = ctx.get(cpu.de.pc),
                stall_f = ctx.get(cpu.hazard.stall_f),
                stall_d = ctx.get(cpu.hazard.stall_d),
                flush_d = ctx.get(cpu.hazard.flush_d),
                flush_e = ctx.get(cpu.hazard.flush_e),
                pc_src_e = ctx.get(cpu.retire.pc_src_e),
                mem_we = ctx.get(top.mem_we),
                mem_addr = ctx.get(top.mem_addr),
                mem_wdata = ctx.get(top.mem_wdata),
                cycle_count = ctx.get(top.cycle_count),
                instr_retired = ctx.get(top.instr_retired),
                fault = ctx.get(top.fault.valid),
                halted = ctx.get(top.halted),
            ))
            await ctx.tick()
        final['regs'] = [ctx.get(r) for r in cpu.regfile.regs]

    simulate(top, bench)
    return trace, final['regs']
