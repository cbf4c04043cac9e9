# The five-stage pipeline.

from amaranth import *
from amaranth.lib.wiring import *

from rvpipe import oneof, mux
from rvpipe.isa import FaultKind, ForwardSel, ResultSrc
from rvpipe.layout import (
    FetchDecode, DecodeExecute, ExecuteControl, ExecuteMemory, MemoryControl,
    MemoryWriteback, WritebackControl,
)
from rvpipe.regfile import RegFile
from rvpipe.immgen import ImmediateGenerator
from rvpipe.alu import Alu
from rvpipe.decoder import MainDecoder, AluDecoder
from rvpipe.forward import ForwardingUnit
from rvpipe.hazard import HazardUnit, HazardSignals

# Note: the memory port signals are directional from the perspective of the
# CPU.
InstructionPort = Signature({
    # Byte address of the instruction to fetch. Bits 1:0 are not meaningful.
    'addr': Out(32),
    # Instruction word at addr, combinationally.
    'data': In(32),
})

DataPort = Signature({
    # Byte address. Bits 1:0 are dropped by the memory; misaligned accesses
    # are not detected.
    'addr': Out(32),
    'wdata': Out(32),
    # Write strobe; the memory commits wdata at the end of the cycle.
    'we': Out(1),
    # Word at addr, combinationally.
    'rdata': In(32),
})

# Events the performance counters care about, all from the current cycle.
RetireSignals = Signature({
    'reg_write_w': Out(1),
    'mem_write_m': Out(1),
    'pc_src_e': Out(1),
})

FaultReport = Signature({
    'valid': Out(1),
    'kind': Out(2),
    'pc': Out(32),
    'inst': Out(32),
})

class Cpu(Component):
    """A classic five-stage RV32I-subset pipeline with a custom ALU extension.

    Fetch, Decode, Execute, Memory and Writeback each hold one instruction.
    Every register in here is in the sync domain, so each clock edge computes
    all next-state values from the current snapshot and commits them
    together; stages only see each other's in-flight results through the
    forwarding paths.

    Branches and jumps resolve in Execute. Loads have a one-cycle load-use
    stall; all other dependencies are covered by forwarding from Memory and
    Writeback, plus the register file's write-through for the instruction
    three behind a producer.

    Parameters
    ----------
    halt_on_fault (boolean): what to do when an illegal instruction reaches
        Execute. If True (the default), stop fetching, let the instructions
        ahead of it drain, and stay halted with the fault reported until
        reset. If False, the instruction acts as a no-op, the fault is
        reported for that one cycle, and execution carries on.
    transparent_regfile (boolean): passed to the RegFile as `transparent`.

    Attributes
    ----------
    imem (port): instruction fetch port.
    dmem (port): data memory port, driven from the Memory stage.
    retire (output): per-cycle retirement events for the counters.
    hazard (output): effective stall and flush signals this cycle.
    fault (output): fault report.
    halted (output): 1 once the core has stopped on a fault.
    pc (output): fetch PC.
    writeback (output): the register write committing this cycle.
    """
    imem: Out(InstructionPort)
    dmem: Out(DataPort)
    retire: Out(RetireSignals)
    hazard: Out(HazardSignals)
    fault: Out(FaultReport)
    halted: Out(1)
    pc: Out(32)
    writeback: Out(Signature({
        'valid': Out(1),
        'rd': Out(5),
        'value': Out(32),
    }))

    def __init__(self, *,
                 halt_on_fault = True,
                 transparent_regfile = True):
        super().__init__()

        self.halt_on_fault = halt_on_fault

        self.regfile = RegFile(transparent = transparent_regfile)

        # Pipeline state. These are the only registers in the core outside
        # the register file; reset clears all of them to zero.
        self.pc_f = Signal(32)
        self.fd = Signal(FetchDecode)
        self.de = Signal(DecodeExecute)
        self.de_ctl = Signal(ExecuteControl)
        self.em = Signal(ExecuteMemory)
        self.em_ctl = Signal(MemoryControl)
        self.mw = Signal(MemoryWriteback)
        self.mw_ctl = Signal(WritebackControl)

        # Sticky fault state, only used when halting on faults.
        self.stopped = Signal(1)
        self.fault_kind = Signal(2)
        self.fault_pc = Signal(32)
        self.fault_inst = Signal(32)

    def elaborate(self, platform):
        m = Module()

        m.submodules.regfile = rf = self.regfile
        m.submodules.immgen = immgen = ImmediateGenerator()
        m.submodules.main_decoder = main = MainDecoder()
        m.submodules.alu_decoder = alu_dec = AluDecoder()
        m.submodules.alu = alu = Alu()
        m.submodules.forwarding = fwd = ForwardingUnit()
        m.submodules.hazard_unit = hz = HazardUnit()

        # Effective hazard controls, after the fault policy is folded in.
        stall_f = Signal(1)
        stall_d = Signal(1)
        flush_d = Signal(1)
        flush_e = Signal(1)

        # Results that travel backwards, declared up front.
        pc_src_e = Signal(1)
        pc_target_e = Signal(32)
        result_w = Signal(32)

        # ------------------------------------------------------------------
        # Fetch

        pc_plus4_f = Signal(32)
        m.d.comb += [
            pc_plus4_f.eq(self.pc_f + 4),
            self.imem.addr.eq(self.pc_f),
            self.pc.eq(self.pc_f),
        ]

        with m.If(~stall_f):
            m.d.sync += self.pc_f.eq(mux(pc_src_e, pc_target_e, pc_plus4_f))

        # A flush wins over a stall: the wrong-path instruction is replaced
        # by the all-zero word, which decodes as a no-op, and its PC fields
        # are cleared along with it.
        with m.If(flush_d):
            m.d.sync += self.fd.eq(0)
        with m.Elif(~stall_d):
            m.d.sync += [
                self.fd.inst.eq(self.imem.data),
                self.fd.pc.eq(self.pc_f),
                self.fd.pc_plus4.eq(pc_plus4_f),
            ]

        # ------------------------------------------------------------------
        # Decode

        inst_d = self.fd.inst
        rs1_d = inst_d[15:20]
        rs2_d = inst_d[20:25]
        rd_d = inst_d[7:12]

        m.d.comb += [
            main.op.eq(inst_d[0:7]),

            alu_dec.alu_op.eq(main.control.alu_op),
            alu_dec.op5.eq(inst_d[5]),
            alu_dec.funct3.eq(inst_d[12:15]),
            alu_dec.funct7b5.eq(inst_d[30]),
            alu_dec.funct7_hi.eq(inst_d[30:32]),

            immgen.inst.eq(inst_d),
            immgen.imm_src.eq(main.control.imm_src),

            rf.read1.addr.eq(rs1_d),
            rf.read2.addr.eq(rs2_d),
        ]

        # An instruction that fails to decode carries its fault kind down the
        # pipe with every other control bit cleared, so it can't do anything
        # on the way. It's only acted on in Execute, which means a faulting
        # instruction that gets flushed as wrong-path never faults.
        fault_d = Signal(2)
        m.d.comb += fault_d.eq(oneof([
            (main.illegal, FaultKind.ILLEGAL_INSTRUCTION),
            (~main.illegal & alu_dec.illegal, FaultKind.UNDEFINED_OPERATION),
        ], default = FaultKind.NONE))
        valid_d = fault_d == FaultKind.NONE

        with m.If(flush_e):
            m.d.sync += [
                self.de.eq(0),
                self.de_ctl.eq(0),
            ]
        with m.Else():
            m.d.sync += [
                self.de.pc.eq(self.fd.pc),
                self.de.pc_plus4.eq(self.fd.pc_plus4),
                self.de.rd1.eq(rf.read1.data),
                self.de.rd2.eq(rf.read2.data),
                self.de.rs1.eq(rs1_d),
                self.de.rs2.eq(rs2_d),
                self.de.rd.eq(rd_d),
                self.de.imm.eq(immgen.imm),
                self.de.inst.eq(inst_d),

                self.de_ctl.reg_write.eq(main.control.reg_write & valid_d),
                self.de_ctl.result_src.eq(
                    main.control.result_src & valid_d.replicate(2)),
                self.de_ctl.mem_write.eq(main.control.mem_write & valid_d),
                self.de_ctl.jump.eq(main.control.jump & valid_d),
                self.de_ctl.branch.eq(main.control.branch & valid_d),
                self.de_ctl.alu_control.eq(
                    alu_dec.alu_control & valid_d.replicate(4)),
                self.de_ctl.alu_src.eq(main.control.alu_src & valid_d),
                self.de_ctl.fault.eq(fault_d),
            ]

        # ------------------------------------------------------------------
        # Execute

        m.d.comb += [
            fwd.rs1_e.eq(self.de.rs1),
            fwd.rs2_e.eq(self.de.rs2),
            fwd.rd_m.eq(self.em.rd),
            fwd.reg_write_m.eq(self.em_ctl.reg_write),
            fwd.rd_w.eq(self.mw.rd),
            fwd.reg_write_w.eq(self.mw_ctl.reg_write),
        ]

        def forwarded(select, from_regfile):
            return oneof([
                (select == ForwardSel.MEM, self.em.alu_result),
                (select == ForwardSel.WB, result_w),
            ], default = from_regfile)

        src_a_e = Signal(32)
        write_data_e = Signal(32)
        src_b_e = Signal(32)
        m.d.comb += [
            src_a_e.eq(forwarded(fwd.forward_a, self.de.rd1)),
            write_data_e.eq(forwarded(fwd.forward_b, self.de.rd2)),
            src_b_e.eq(mux(self.de_ctl.alu_src, self.de.imm, write_data_e)),

            alu.a.eq(src_a_e),
            alu.b.eq(src_b_e),
            alu.op.eq(self.de_ctl.alu_control),

            pc_target_e.eq(self.de.pc + self.de.imm),
            pc_src_e.eq((self.de_ctl.branch & alu.zero) | self.de_ctl.jump),
        ]

        m.d.sync += [
            self.em.alu_result.eq(alu.result),
            self.em.write_data.eq(write_data_e),
            self.em.rd.eq(self.de.rd),
            self.em.pc_plus4.eq(self.de.pc_plus4),

            self.em_ctl.reg_write.eq(self.de_ctl.reg_write),
            self.em_ctl.result_src.eq(self.de_ctl.result_src),
            self.em_ctl.mem_write.eq(self.de_ctl.mem_write),
        ]

        # ------------------------------------------------------------------
        # Memory

        m.d.comb += [
            self.dmem.addr.eq(self.em.alu_result),
            self.dmem.wdata.eq(self.em.write_data),
            self.dmem.we.eq(self.em_ctl.mem_write),
        ]

        m.d.sync += [
            self.mw.alu_result.eq(self.em.alu_result),
            self.mw.read_data.eq(self.dmem.rdata),
            self.mw.rd.eq(self.em.rd),
            self.mw.pc_plus4.eq(self.em.pc_plus4),

            self.mw_ctl.reg_write.eq(self.em_ctl.reg_write),
            self.mw_ctl.result_src.eq(self.em_ctl.result_src),
        ]

        # ------------------------------------------------------------------
        # Writeback

        # ResultSrc 0b11 is never decoded and selects zero.
        m.d.comb += result_w.eq(oneof([
            (self.mw_ctl.result_src == ResultSrc.ALU, self.mw.alu_result),
            (self.mw_ctl.result_src == ResultSrc.MEM, self.mw.read_data),
            (self.mw_ctl.result_src == ResultSrc.PC4, self.mw.pc_plus4),
        ]))

        m.d.comb += [
            rf.write_cmd.valid.eq(self.mw_ctl.reg_write),
            rf.write_cmd.payload.reg.eq(self.mw.rd),
            rf.write_cmd.payload.value.eq(result_w),

            self.writeback.valid.eq(self.mw_ctl.reg_write & (self.mw.rd != 0)),
            self.writeback.rd.eq(self.mw.rd),
            self.writeback.value.eq(result_w),
        ]

        # ------------------------------------------------------------------
        # Hazards and faults

        m.d.comb += [
            hz.rs1_d.eq(rs1_d),
            hz.rs2_d.eq(rs2_d),
            hz.rd_e.eq(self.de.rd),
            hz.result_src_e.eq(self.de_ctl.result_src),
            hz.pc_src_e.eq(pc_src_e),
        ]

        fault_e = Signal(1)
        m.d.comb += fault_e.eq(self.de_ctl.fault != FaultKind.NONE)

        if self.halt_on_fault:
            # Halting looks like a control hazard that never ends: PC frozen,
            # Decode and Execute flushed each cycle. Memory and Writeback are
            # not affected, so the older instructions still retire.
            halting = Signal(1)
            m.d.comb += halting.eq(fault_e | self.stopped)

            with m.If(fault_e & ~self.stopped):
                m.d.sync += [
                    self.stopped.eq(1),
                    self.fault_kind.eq(self.de_ctl.fault),
                    self.fault_pc.eq(self.de.pc),
                    self.fault_inst.eq(self.de.inst),
                ]
        else:
            halting = Const(0, 1)

        m.d.comb += [
            stall_f.eq(hz.out.stall_f | halting),
            stall_d.eq(hz.out.stall_d | halting),
            flush_d.eq(hz.out.flush_d | halting),
            flush_e.eq(hz.out.flush_e | halting),

            self.hazard.stall_f.eq(stall_f),
            self.hazard.stall_d.eq(stall_d),
            self.hazard.flush_d.eq(flush_d),
            self.hazard.flush_e.eq(flush_e),

            self.halted.eq(self.stopped),
        ]

        with m.If(self.stopped):
            m.d.comb += [
                self.fault.valid.eq(1),
                self.fault.kind.eq(self.fault_kind),
                self.fault.pc.eq(self.fault_pc),
                self.fault.inst.eq(self.fault_inst),
            ]
        with m.Else():
            m.d.comb += [
                self.fault.valid.eq(fault_e),
                self.fault.kind.eq(self.de_ctl.fault),
                self.fault.pc.eq(self.de.pc),
                self.fault.inst.eq(self.de.inst),
            ]

        # ------------------------------------------------------------------
        # Retirement events

        m.d.comb += [
            self.retire.reg_write_w.eq(self.mw_ctl.reg_write),
            self.retire.mem_write_m.eq(self.em_ctl.mem_write),
            self.retire.pc_src_e.eq(pc_src_e),
        ]

        return m
