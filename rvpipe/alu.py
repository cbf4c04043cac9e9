from amaranth import *
from amaranth.lib.wiring import *

from rvpipe.isa import AluFunc

class Alu(Component):
    """The Arithmetic Logic Unit.

    Computes one of the sixteen AluFunc operations on two 32-bit operands. All
    sixteen codes are defined, so there is no "unknown operation" output.

    Attributes
    ----------
    a, b (input): operands.
    op (input): AluFunc code.
    result (output): 32-bit result.
    zero (output): 1 iff result is zero. The pipeline uses this to resolve
        BEQ, which runs the operands through SUB.
    """
    a: In(32)
    b: In(32)
    op: In(4)
    result: Out(32)
    zero: Out(1)

    def elaborate(self, platform):
        m = Module()

        a = self.a
        b = self.b

        # The Adder
        #
        # ADD, SUB and SLT share one adder. op[0] selects subtraction (it is
        # set for SUB and SLT and clear for ADD), implemented as a + ~b + 1.
        is_add_sub = Signal(1)
        negate = Signal(1)
        total = Signal(32)
        overflow = Signal(1)
        m.d.comb += [
            is_add_sub.eq(
                (self.op == AluFunc.ADD)
                | (self.op == AluFunc.SUB)
                | (self.op == AluFunc.SLT)
            ),
            negate.eq(is_add_sub & self.op[0]),
            total.eq(a + (b ^ negate.replicate(32)) + negate),
            # Signed overflow: operands (after negation) agree in sign and the
            # sum does not.
            overflow.eq(
                ~(self.op[0] ^ a[31] ^ b[31])
                & (a[31] ^ total[31])
                & is_add_sub
            ),
        ]
        signed_less_than = total[31] ^ overflow

        # Comparators for MIN/MAX.
        lt_signed = Signal(1)
        lt_unsigned = Signal(1)
        m.d.comb += [
            lt_signed.eq(a.as_signed() < b.as_signed()),
            lt_unsigned.eq(a < b),
        ]

        # Rotates. Doubling the operand turns a rotate into a shift of the
        # pair, with the amount taken mod 32.
        amount = b[:5]
        doubled = Cat(a, a)
        rotated_left = (doubled << amount)[32:64]
        rotated_right = (doubled >> amount)[:32]

        with m.Switch(self.op):
            with m.Case(AluFunc.ADD, AluFunc.SUB):
                m.d.comb += self.result.eq(total)
            with m.Case(AluFunc.AND):
                m.d.comb += self.result.eq(a & b)
            with m.Case(AluFunc.OR):
                m.d.comb += self.result.eq(a | b)
            with m.Case(AluFunc.XOR):
                m.d.comb += self.result.eq(a ^ b)
            with m.Case(AluFunc.SLT):
                m.d.comb += self.result.eq(signed_less_than)
            with m.Case(AluFunc.ANDN):
                m.d.comb += self.result.eq(a & ~b)
            with m.Case(AluFunc.ORN):
                m.d.comb += self.result.eq(a | ~b)
            with m.Case(AluFunc.XNOR):
                m.d.comb += self.result.eq(~(a ^ b))
            with m.Case(AluFunc.MIN):
                m.d.comb += self.result.eq(Mux(lt_signed, a, b))
            with m.Case(AluFunc.MAX):
                m.d.comb += self.result.eq(Mux(lt_signed, b, a))
            with m.Case(AluFunc.MINU):
                m.d.comb += self.result.eq(Mux(lt_unsigned, a, b))
            with m.Case(AluFunc.MAXU):
                m.d.comb += self.result.eq(Mux(lt_unsigned, b, a))
            with m.Case(AluFunc.ROL):
                m.d.comb += self.result.eq(rotated_left)
            with m.Case(AluFunc.ROR):
                m.d.comb += self.result.eq(rotated_right)
            with m.Case(AluFunc.ABS):
                m.d.comb += self.result.eq(Mux(a[31], (~a + 1)[:32], a))

        m.d.comb += self.zero.eq(self.result == 0)

        return m
