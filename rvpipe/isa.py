# Encodings shared by the decoders, the datapath, and the Python-side tools.

from amaranth.lib.enum import Enum

class Opcode(Enum, shape = 7):
    # The all-zeroes word is what a flushed or reset Fetch->Decode register
    # holds. It decodes as "do nothing" rather than as an illegal opcode.
    NOP     = 0b0000000
    LOAD    = 0b0000011
    CUSTOM0 = 0b0001011
    OP_IMM  = 0b0010011
    STORE   = 0b0100011
    OP      = 0b0110011
    BRANCH  = 0b1100011
    JAL     = 0b1101111

class AluOp(Enum, shape = 2):
    """Coarse ALU class produced by the main decoder."""
    ADD  = 0b00
    SUB  = 0b01
    BASE = 0b10
    EXT  = 0b11

class AluFunc(Enum, shape = 4):
    """The sixteen operations the ALU can perform."""
    ADD  = 0b0000
    SUB  = 0b0001
    AND  = 0b0010
    OR   = 0b0011
    XOR  = 0b0100
    SLT  = 0b0101
    ANDN = 0b0110
    ORN  = 0b0111
    XNOR = 0b1000
    MIN  = 0b1001
    MAX  = 0b1010
    MINU = 0b1011
    MAXU = 0b1100
    ROL  = 0b1101
    ROR  = 0b1110
    ABS  = 0b1111

class ImmSrc(Enum, shape = 2):
    I = 0b00
    S = 0b01
    B = 0b10
    J = 0b11

class ResultSrc(Enum, shape = 2):
    ALU = 0b00
    MEM = 0b01
    PC4 = 0b10

class ForwardSel(Enum, shape = 2):
    REG = 0b00
    WB  = 0b01
    MEM = 0b10

class FaultKind(Enum, shape = 2):
    NONE                = 0
    ILLEGAL_INSTRUCTION = 1
    UNDEFINED_OPERATION = 2

MASK32 = 0xFFFF_FFFF

def field(word, lo, width):
    """Extracts an unsigned bit field from an integer instruction word."""
    return (word >> lo) & ((1 << width) - 1)

def sext(value, bits):
    """Sign-extends the low `bits` of `value` to a Python int."""
    value &= (1 << bits) - 1
    if value >> (bits - 1):
        value -= 1 << bits
    return value
