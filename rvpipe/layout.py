# Pipeline register layouts.
#
# Each stage boundary has two registers: a data record and a control record.
# The control records form a shadow pipeline that drops fields as they stop
# being needed, so that by Writeback only the write enable and result select
# remain. Zeroing a control record turns whatever instruction it belongs to
# into a no-op, which is how flushes squash side effects.

from amaranth.lib.data import Struct
from amaranth import unsigned

class MainControl(Struct):
    """Outputs of the main decoder."""
    reg_write: unsigned(1)
    imm_src: unsigned(2)
    alu_src: unsigned(1)
    mem_write: unsigned(1)
    result_src: unsigned(2)
    branch: unsigned(1)
    alu_op: unsigned(2)
    jump: unsigned(1)

class FetchDecode(Struct):
    inst: unsigned(32)
    pc: unsigned(32)
    pc_plus4: unsigned(32)

class DecodeExecute(Struct):
    pc: unsigned(32)
    pc_plus4: unsigned(32)
    rd1: unsigned(32)
    rd2: unsigned(32)
    rs1: unsigned(5)
    rs2: unsigned(5)
    rd: unsigned(5)
    imm: unsigned(32)
    # Raw instruction word, kept for fault reports.
    inst: unsigned(32)

class ExecuteControl(Struct):
    reg_write: unsigned(1)
    result_src: unsigned(2)
    mem_write: unsigned(1)
    jump: unsigned(1)
    branch: unsigned(1)
    alu_control: unsigned(4)
    alu_src: unsigned(1)
    # FaultKind of the instruction; nonzero only when every other field is
    # zero.
    fault: unsigned(2)

class ExecuteMemory(Struct):
    alu_result: unsigned(32)
    write_data: unsigned(32)
    rd: unsigned(5)
    pc_plus4: unsigned(32)

class MemoryControl(Struct):
    reg_write: unsigned(1)
    result_src: unsigned(2)
    mem_write: unsigned(1)

class MemoryWriteback(Struct):
    alu_result: unsigned(32)
    read_data: unsigned(32)
    rd: unsigned(5)
    pc_plus4: unsigned(32)

class WritebackControl(Struct):
    reg_write: unsigned(1)
    result_src: unsigned(2)
