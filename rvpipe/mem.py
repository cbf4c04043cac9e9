# Word-wide memories for the core's instruction and data ports.

import struct

from amaranth import *
from amaranth.hdl import MemoryData
from amaranth.lib.memory import Memory
from amaranth.lib.wiring import *

from rvpipe.cpu import InstructionPort, DataPort

def memory_depth(words):
    """Smallest power-of-two depth that holds `words` words (at least 2)."""
    depth = 2
    while depth < words:
        depth <<= 1
    return depth

def _check_depth(depth, contents):
    if depth <= 0 or depth & (depth - 1):
        raise ValueError(f"memory depth must be a power of two, not {depth}")
    if len(contents) > depth:
        raise ValueError(
            f"{len(contents)} words of contents don't fit in {depth} words")

def load_image(path):
    """Reads a flat little-endian binary into a list of 32-bit words.

    A trailing partial word is zero-padded.
    """
    with open(path, "rb") as f:
        image = f.read()
    if len(image) % 4:
        image += bytes(4 - len(image) % 4)
    return list(struct.unpack(f"<{len(image) // 4}I", image))

class InstructionMemory(Component):
    """Read-only program memory with a combinational read port.

    Addresses are byte addresses; bits 1:0 are ignored, and bits above the
    memory's size wrap around.

    Parameters
    ----------
    contents (list of integer): program words, starting at address 0.
    depth (integer): number of words. If omitted, the smallest power of two
        that holds contents is used.

    Attributes
    ----------
    bus (port): fetch port, to be connected to Cpu.imem.
    data (MemoryData): the contents, for testbenches.
    """
    bus: In(InstructionPort)

    def __init__(self, *, contents, depth = None):
        super().__init__()

        contents = list(contents)
        if depth is None:
            depth = memory_depth(len(contents))
        _check_depth(depth, contents)

        self.depth = depth
        self.data = MemoryData(shape = 32, depth = depth, init = contents)
        self.mem = Memory(data = self.data)
        self._rp = self.mem.read_port(domain = "comb")

    def elaborate(self, platform):
        m = Module()

        m.submodules.mem = self.mem

        m.d.comb += [
            self._rp.addr.eq(self.bus.addr[2:]),
            self.bus.data.eq(self._rp.data),
        ]

        return m

class DataMemory(Component):
    """Read/write data memory.

    Reads are combinational; a write is committed at the clock edge when the
    write strobe is high. Addressing works as in InstructionMemory: no
    alignment or bounds checking, bits 1:0 dropped, high bits wrapped.

    Parameters
    ----------
    depth (integer): number of 32-bit words, a power of two.
    contents (list of integer): initial contents, zero-filled to depth.

    Attributes
    ----------
    bus (port): to be connected to Cpu.dmem.
    data (MemoryData): the contents, for testbenches.
    """
    bus: In(DataPort)

    def __init__(self, *, depth, contents = ()):
        super().__init__()

        contents = list(contents)
        _check_depth(depth, contents)

        self.depth = depth
        self.data = MemoryData(shape = 32, depth = depth, init = contents)
        self.mem = Memory(data = self.data)
        self._rp = self.mem.read_port(domain = "comb")
        self._wp = self.mem.write_port()

    def elaborate(self, platform):
        m = Module()

        m.submodules.mem = self.mem

        word = self.bus.addr[2:]
        m.d.comb += [
            self._rp.addr.eq(word),
            self.bus.rdata.eq(self._rp.data),

            self._wp.addr.eq(word),
            self._wp.data.eq(self.bus.wdata),
            self._wp.en.eq(self.bus.we),
        ]

        return m
