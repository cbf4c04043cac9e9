"""Instruction encoders for the instruction set the core implements.

Each function returns one 32-bit instruction word. Registers are given as
plain integers (5 means x5). Branch and jump offsets are byte offsets
relative to the instruction's own address, as in assembly source.

    >>> hex(addi(5, 0, 25))
    '0x1900293'
"""

from rvpipe.isa import Opcode, MASK32

# jal x0, 0 -- an instruction that jumps to itself. Programs end with this
# so the core parks instead of running off the end of memory.
SELF_LOOP = 0x0000_006F

def _reg(r):
    if not 0 <= r < 32:
        raise ValueError(f"no such register: x{r}")
    return r

def _imm(value, bits, *, align = 1):
    lo = -(1 << (bits - 1))
    hi = (1 << (bits - 1)) - 1
    if not lo <= value <= hi:
        raise ValueError(f"immediate {value} does not fit in {bits} signed bits")
    if value % align:
        raise ValueError(f"immediate {value} is not a multiple of {align}")
    return value & ((1 << bits) - 1)

def r_type(opcode, funct3, funct7, rd, rs1, rs2):
    return (
        (funct7 << 25)
        | (_reg(rs2) << 20)
        | (_reg(rs1) << 15)
        | (funct3 << 12)
        | (_reg(rd) << 7)
        | opcode.value
    )

def i_type(opcode, funct3, rd, rs1, imm):
    return (
        (_imm(imm, 12) << 20)
        | (_reg(rs1) << 15)
        | (funct3 << 12)
        | (_reg(rd) << 7)
        | opcode.value
    )

def s_type(opcode, funct3, rs1, rs2, imm):
    imm = _imm(imm, 12)
    return (
        ((imm >> 5) << 25)
        | (_reg(rs2) << 20)
        | (_reg(rs1) << 15)
        | (funct3 << 12)
        | ((imm & 0x1F) << 7)
        | opcode.value
    )

def b_type(opcode, funct3, rs1, rs2, offset):
    imm = _imm(offset, 13, align = 2)
    return (
        (((imm >> 12) & 1) << 31)
        | (((imm >> 5) & 0x3F) << 25)
        | (_reg(rs2) << 20)
        | (_reg(rs1) << 15)
        | (funct3 << 12)
        | (((imm >> 1) & 0xF) << 8)
        | (((imm >> 11) & 1) << 7)
        | opcode.value
    )

def j_type(opcode, rd, offset):
    imm = _imm(offset, 21, align = 2)
    return (
        (((imm >> 20) & 1) << 31)
        | (((imm >> 1) & 0x3FF) << 21)
        | (((imm >> 11) & 1) << 20)
        | (((imm >> 12) & 0xFF) << 12)
        | (_reg(rd) << 7)
        | opcode.value
    )

# Base instructions

def lw(rd, offset, rs1):
    return i_type(Opcode.LOAD, 0b010, rd, rs1, offset)

def sw(rs2, offset, rs1):
    return s_type(Opcode.STORE, 0b010, rs1, rs2, offset)

def add(rd, rs1, rs2):
    return r_type(Opcode.OP, 0b000, 0b0000000, rd, rs1, rs2)

def sub(rd, rs1, rs2):
    return r_type(Opcode.OP, 0b000, 0b0100000, rd, rs1, rs2)

def slt(rd, rs1, rs2):
    return r_type(Opcode.OP, 0b010, 0b0000000, rd, rs1, rs2)

def or_(rd, rs1, rs2):
    return r_type(Opcode.OP, 0b110, 0b0000000, rd, rs1, rs2)

def and_(rd, rs1, rs2):
    return r_type(Opcode.OP, 0b111, 0b0000000, rd, rs1, rs2)

def addi(rd, rs1, imm):
    return i_type(Opcode.OP_IMM, 0b000, rd, rs1, imm)

def slti(rd, rs1, imm):
    return i_type(Opcode.OP_IMM, 0b010, rd, rs1, imm)

def ori(rd, rs1, imm):
    return i_type(Opcode.OP_IMM, 0b110, rd, rs1, imm)

def andi(rd, rs1, imm):
    return i_type(Opcode.OP_IMM, 0b111, rd, rs1, imm)

def beq(rs1, rs2, offset):
    return b_type(Opcode.BRANCH, 0b000, rs1, rs2, offset)

def jal(rd, offset):
    return j_type(Opcode.JAL, rd, offset)

def nop():
    return addi(0, 0, 0)

# Custom-0 extension. funct7[6:5] selects the group, funct3 the operation.

def _ext(group, funct3):
    def encode(rd, rs1, rs2 = 0):
        return r_type(Opcode.CUSTOM0, funct3, group << 5, rd, rs1, rs2)
    return encode

andn = _ext(0b00, 0b000)
orn = _ext(0b00, 0b001)
xnor = _ext(0b00, 0b010)
min_ = _ext(0b01, 0b000)
max_ = _ext(0b01, 0b001)
minu = _ext(0b01, 0b010)
maxu = _ext(0b01, 0b011)
rol = _ext(0b10, 0b000)
ror = _ext(0b10, 0b001)
abs_ = _ext(0b10, 0b010)

def li(rd, value):
    """Loads a 12-bit signed constant. There's no LUI, so that's the limit."""
    return addi(rd, 0, value)

def words(*instructions):
    """Flattens nested instruction lists into a program image."""
    out = []
    for inst in instructions:
        if isinstance(inst, (list, tuple)):
            out.extend(words(*inst))
        else:
            out.append(inst & MASK32)
    return out
