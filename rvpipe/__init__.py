from amaranth import *
from amaranth.lib import wiring
from amaranth.lib.enum import Enum
from amaranth.lib.wiring import Out

from functools import reduce

class AlwaysReady(wiring.Signature):
    def __init__(self, payload_shape):
        super().__init__({
            'payload': Out(payload_shape),
            'valid': Out(1),
        })

def _as_value(x):
    if isinstance(x, Enum):
        x = x.value
    if isinstance(x, int):
        x = Const(x)
    return x

# Builds a mux but out of AND and OR, which keeps the pipeline selects flat
# instead of producing a priority chain.
def mux(select, one, zero):
    one = _as_value(one)
    zero = _as_value(zero)
    n = max(one.shape().width, zero.shape().width)
    select = select.any() # force to 1 bit
    return (
        (select.replicate(n) & one) | (~select.replicate(n) & zero)
    )

# Selects among (condition, value) pairs by ANDing each value with its
# condition and ORing the lot together. The conditions must be mutually
# exclusive; if two fire at once the output is the OR of both values.
#
# `default` is produced when no condition fires, and is zero if not given.
def oneof(options, default = None):
    assert len(options) > 0
    output = []
    matches = []
    for (condition, result) in options:
        condition = _as_value(condition)
        result = _as_value(result)

        matches.append(condition.any())

        case = condition.any().replicate(result.shape().width) & result

        output.append(case)

    if default is not None:
        default = _as_value(default)
        no_match = ~reduce(lambda a, b: a|b, matches)
        output.append(no_match.replicate(default.shape().width) & default)

    return reduce(lambda a, b: a|b, output)
