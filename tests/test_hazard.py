from rvpipe.hazard import HazardUnit
from rvpipe.isa import ResultSrc

from conftest import simulate

def hazards(*, rs1_d = 0, rs2_d = 0, rd_e = 0, result_src_e = ResultSrc.ALU,
            pc_src_e = 0):
    dut = HazardUnit()
    out = {}

    async def bench(ctx):
        ctx.set(dut.rs1_d, rs1_d)
        ctx.set(dut.rs2_d, rs2_d)
        ctx.set(dut.rd_e, rd_e)
        ctx.set(dut.result_src_e, result_src_e.value)
        ctx.set(dut.pc_src_e, pc_src_e)
        for name in ('stall_f', 'stall_d', 'flush_d', 'flush_e'):
            out[name] = ctx.get(getattr(dut.out, name))

    simulate(dut, bench, clock = False)
    return out

def test_quiet():
    assert hazards(rs1_d = 1, rs2_d = 2, rd_e = 3) == dict(
        stall_f = 0, stall_d = 0, flush_d = 0, flush_e = 0)

def test_load_use_on_rs1():
    assert hazards(rs1_d = 2, rs2_d = 7, rd_e = 2,
                   result_src_e = ResultSrc.MEM) == dict(
        stall_f = 1, stall_d = 1, flush_d = 0, flush_e = 1)

def test_load_use_on_rs2():
    assert hazards(rs1_d = 7, rs2_d = 2, rd_e = 2,
                   result_src_e = ResultSrc.MEM)['stall_f'] == 1

def test_dependency_on_non_load_does_not_stall():
    assert hazards(rs1_d = 2, rs2_d = 2, rd_e = 2,
                   result_src_e = ResultSrc.ALU)['stall_f'] == 0
    assert hazards(rs1_d = 2, rs2_d = 2, rd_e = 2,
                   result_src_e = ResultSrc.PC4)['stall_f'] == 0

def test_control_hazard_flushes_two():
    assert hazards(pc_src_e = 1) == dict(
        stall_f = 0, stall_d = 0, flush_d = 1, flush_e = 1)
