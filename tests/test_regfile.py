from rvpipe.regfile import RegFile

from conftest import simulate

def write(ctx, rf, reg, value, valid = 1):
    ctx.set(rf.write_cmd.valid, valid)
    ctx.set(rf.write_cmd.payload.reg, reg)
    ctx.set(rf.write_cmd.payload.value, value)

def test_write_then_read_both_ports():
    rf = RegFile()

    async def bench(ctx):
        write(ctx, rf, 5, 0x1234_5678)
        await ctx.tick()
        write(ctx, rf, 6, 0xCAFE_F00D)
        await ctx.tick()
        write(ctx, rf, 0, 0, valid = 0)
        ctx.set(rf.read1.addr, 5)
        ctx.set(rf.read2.addr, 6)
        assert ctx.get(rf.read1.data) == 0x1234_5678
        assert ctx.get(rf.read2.data) == 0xCAFE_F00D

    simulate(rf, bench)

def test_x0_ignores_writes():
    rf = RegFile()

    async def bench(ctx):
        write(ctx, rf, 0, 0xFFFF_FFFF)
        ctx.set(rf.read1.addr, 0)
        # Not even the write-through path exposes a write to x0.
        assert ctx.get(rf.read1.data) == 0
        await ctx.tick()
        assert ctx.get(rf.read1.data) == 0
        assert ctx.get(rf.regs[0]) == 0

    simulate(rf, bench)

def test_disabled_write_has_no_effect():
    rf = RegFile()

    async def bench(ctx):
        write(ctx, rf, 9, 77, valid = 0)
        await ctx.tick()
        ctx.set(rf.read1.addr, 9)
        assert ctx.get(rf.read1.data) == 0

    simulate(rf, bench)

def test_transparent_read_sees_same_cycle_write():
    rf = RegFile(transparent = True)

    async def bench(ctx):
        write(ctx, rf, 7, 42)
        ctx.set(rf.read1.addr, 7)
        ctx.set(rf.read2.addr, 8)
        assert ctx.get(rf.read1.data) == 42
        assert ctx.get(rf.read2.data) == 0
        # The array itself hasn't been written yet.
        assert ctx.get(rf.regs[7]) == 0
        await ctx.tick()
        assert ctx.get(rf.regs[7]) == 42

    simulate(rf, bench)

def test_strict_read_does_not_see_same_cycle_write():
    rf = RegFile(transparent = False)

    async def bench(ctx):
        write(ctx, rf, 7, 42)
        ctx.set(rf.read1.addr, 7)
        assert ctx.get(rf.read1.data) == 0
        await ctx.tick()
        write(ctx, rf, 7, 0, valid = 0)
        assert ctx.get(rf.read1.data) == 42

    simulate(rf, bench)
