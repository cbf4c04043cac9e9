import argparse

from rvpipe.mem import load_image
from rvpipe.sim import Harness
from rvpipe.errors import Fault, SimulationTimeout

ABI_NAMES = [
    "zero", "ra", "sp", "gp", "tp", "t0", "t1", "t2",
    "s0", "s1", "a0", "a1", "a2", "a3", "a4", "a5",
    "a6", "a7", "s2", "s3", "s4", "s5", "s6", "s7",
    "s8", "s9", "s10", "s11", "t3", "t4", "t5", "t6",
]

def print_registers(regs):
    for row in range(0, 32, 4):
        print("  ".join(
            f"x{r:<2} {ABI_NAMES[r]:>4} = 0x{regs[r]:08x}"
            for r in range(row, row + 4)
        ))

if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        prog = "sim-rvpipe",
        description = "Run a flat binary image on the five-stage pipeline.",
    )
    parser.add_argument("image", help = "little-endian binary, loaded at 0")
    parser.add_argument("--data", help = "initial data memory image")
    parser.add_argument("--cycles", type = int, default = 100_000,
                        help = "cycle budget (default: %(default)s)")
    parser.add_argument("--dmem-depth", type = int, default = 1024,
                        help = "data memory size in words (default: %(default)s)")
    parser.add_argument("--continue-on-fault", action = "store_true",
                        help = "treat illegal instructions as no-ops")
    parser.add_argument("--strict-regfile", action = "store_true",
                        help = "disable register file write-through")
    parser.add_argument("--vcd", help = "write a waveform to this file")
    parser.add_argument("--stores", action = "store_true",
                        help = "list every store as it happened")
    args = parser.parse_args()

    program = load_image(args.image)
    data = load_image(args.data) if args.data else ()
    print(f"loaded {len(program)} words from {args.image}")

    harness = Harness(
        program,
        data = data,
        dmem_depth = args.dmem_depth,
        halt_on_fault = not args.continue_on_fault,
        transparent_regfile = not args.strict_regfile,
    )

    try:
        result = harness.run(
            args.cycles,
            raise_on_fault = False,
            vcd_file = args.vcd,
            gtkw_file = args.vcd and args.vcd.rsplit(".", 1)[0] + ".gtkw",
        )
    except SimulationTimeout as e:
        print(f"TIMEOUT: {e}")
        raise SystemExit(2)

    if args.stores:
        for store in result.stores:
            print(f"cycle {store.cycle:6}: M[0x{store.addr:08x}] <- 0x{store.data:08x}")

    print_registers(result.regs)
    print(f"pc            = 0x{result.pc:08x}")
    print(f"cycles        = {result.cycle_count}")
    print(f"instr_retired = {result.instr_retired}")
    print(f"stall cycles  = {result.stall_cycles}")
    print(f"flush cycles  = {result.flush_cycles}")

    for fault in result.faults:
        print(f"FAULT: {fault}")
    if isinstance(result.fault, Fault):
        print("halted")
        raise SystemExit(1)
