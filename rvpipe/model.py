# A non-pipelined interpreter with the same architectural behavior as the
# core. It executes one whole instruction per step and exists to check the
# pipeline against.

from rvpipe.isa import Opcode, AluFunc, MASK32, field, sext
from rvpipe.errors import IllegalInstruction, UndefinedOperation
from rvpipe.mem import memory_depth

def _signed(x):
    return sext(x, 32)

def _rotl(x, n):
    n &= 31
    return ((x << n) | (x >> (32 - n))) & MASK32 if n else x

def alu(func, a, b):
    """Evaluates one AluFunc on 32-bit unsigned operands."""
    a &= MASK32
    b &= MASK32
    if func is AluFunc.ADD:
        return (a + b) & MASK32
    if func is AluFunc.SUB:
        return (a - b) & MASK32
    if func is AluFunc.AND:
        return a & b
    if func is AluFunc.OR:
        return a | b
    if func is AluFunc.XOR:
        return a ^ b
    if func is AluFunc.SLT:
        return int(_signed(a) < _signed(b))
    if func is AluFunc.ANDN:
        return a & ~b & MASK32
    if func is AluFunc.ORN:
        return (a | ~b) & MASK32
    if func is AluFunc.XNOR:
        return ~(a ^ b) & MASK32
    if func is AluFunc.MIN:
        return a if _signed(a) < _signed(b) else b
    if func is AluFunc.MAX:
        return b if _signed(a) < _signed(b) else a
    if func is AluFunc.MINU:
        return min(a, b)
    if func is AluFunc.MAXU:
        return max(a, b)
    if func is AluFunc.ROL:
        return _rotl(a, b)
    if func is AluFunc.ROR:
        return _rotl(a, 32 - (b & 31))
    if func is AluFunc.ABS:
        return (-_signed(a)) & MASK32 if a >> 31 else a
    raise ValueError(f"not an ALU function: {func!r}")

_BASE_FUNCT3 = {
    0b010: AluFunc.SLT,
    0b110: AluFunc.OR,
    0b111: AluFunc.AND,
}

_EXT = {
    (0b00, 0b000): AluFunc.ANDN,
    (0b00, 0b001): AluFunc.ORN,
    (0b00, 0b010): AluFunc.XNOR,
    (0b01, 0b000): AluFunc.MIN,
    (0b01, 0b001): AluFunc.MAX,
    (0b01, 0b010): AluFunc.MINU,
    (0b01, 0b011): AluFunc.MAXU,
    (0b10, 0b000): AluFunc.ROL,
    (0b10, 0b001): AluFunc.ROR,
    (0b10, 0b010): AluFunc.ABS,
}

class ReferenceModel:
    """Executes a program one instruction at a time.

    Memory sizing and address wrapping follow Top, so a program behaves the
    same here as on the core, including running past its end.

    Parameters
    ----------
    program (list of integer): instruction words at address 0.
    data (list of integer): initial data memory.
    imem_depth, dmem_depth (integer): as for Top.
    """

    def __init__(self, program, *, data = (), imem_depth = None,
                 dmem_depth = 1024):
        program = list(program)
        self.imem_depth = imem_depth or memory_depth(len(program))
        self.imem = program + [0] * (self.imem_depth - len(program))
        self.dmem_depth = dmem_depth
        self.dmem = list(data) + [0] * (dmem_depth - len(data))
        self.regs = [0] * 32
        self.pc = 0
        self.retired = 0

    def _write(self, rd, value):
        if rd != 0:
            self.regs[rd] = value & MASK32

    def _alu_func(self, inst):
        opcode = field(inst, 0, 7)
        funct3 = field(inst, 12, 3)
        if opcode == Opcode.CUSTOM0.value:
            func = _EXT.get((field(inst, 30, 2), funct3))
        elif funct3 == 0b000:
            sub = opcode == Opcode.OP.value and field(inst, 30, 1)
            func = AluFunc.SUB if sub else AluFunc.ADD
        else:
            func = _BASE_FUNCT3.get(funct3)
        if func is None:
            raise UndefinedOperation(self.pc, inst)
        return func

    def step(self):
        """Executes the instruction at pc. Returns the new pc."""
        inst = self.imem[(self.pc >> 2) % self.imem_depth]
        opcode = field(inst, 0, 7)
        rd = field(inst, 7, 5)
        rs1 = self.regs[field(inst, 15, 5)]
        rs2 = self.regs[field(inst, 20, 5)]
        imm_i = sext(field(inst, 20, 12), 12)
        next_pc = (self.pc + 4) & MASK32

        if opcode == Opcode.NOP.value:
            pass
        elif opcode == Opcode.LOAD.value:
            addr = (rs1 + imm_i) & MASK32
            self._write(rd, self.dmem[(addr >> 2) % self.dmem_depth])
        elif opcode == Opcode.STORE.value:
            imm_s = sext((field(inst, 25, 7) << 5) | field(inst, 7, 5), 12)
            addr = (rs1 + imm_s) & MASK32
            self.dmem[(addr >> 2) % self.dmem_depth] = rs2
        elif opcode in (Opcode.OP.value, Opcode.CUSTOM0.value):
            self._write(rd, alu(self._alu_func(inst), rs1, rs2))
        elif opcode == Opcode.OP_IMM.value:
            self._write(rd, alu(self._alu_func(inst), rs1, imm_i))
        elif opcode == Opcode.BRANCH.value:
            imm_b = sext(
                (field(inst, 31, 1) << 12)
                | (field(inst, 7, 1) << 11)
                | (field(inst, 25, 6) << 5)
                | (field(inst, 8, 4) << 1),
                13)
            if rs1 == rs2:
                next_pc = (self.pc + imm_b) & MASK32
        elif opcode == Opcode.JAL.value:
            imm_j = sext(
                (field(inst, 31, 1) << 20)
                | (field(inst, 12, 8) << 12)
                | (field(inst, 20, 1) << 11)
                | (field(inst, 21, 10) << 1),
                21)
            self._write(rd, next_pc)
            next_pc = (self.pc + imm_j) & MASK32
        else:
            raise IllegalInstruction(self.pc, inst)

        self.retired += 1
        self.pc = next_pc
        return next_pc

    def run(self, max_steps = 10_000):
        """Steps until the pc stops moving (a jump to itself) or max_steps.

        Returns the number of instructions executed.
        """
        for n in range(max_steps):
            pc = self.pc
            if self.step() == pc:
                return n + 1
        return max_steps
