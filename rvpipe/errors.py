# Faults and failures surfaced to Python code driving a simulation.

from rvpipe.isa import FaultKind

class Fault(Exception):
    """An instruction the core refused to execute.

    Attributes
    ----------
    pc (int): address of the offending instruction.
    inst (int): raw instruction word.
    """
    kind = None
    description = "fault"

    def __init__(self, pc, inst):
        super().__init__(f"{self.description} at pc 0x{pc:08x} (inst 0x{inst:08x})")
        self.pc = pc
        self.inst = inst

class IllegalInstruction(Fault):
    kind = FaultKind.ILLEGAL_INSTRUCTION
    description = "illegal instruction"

class UndefinedOperation(Fault):
    kind = FaultKind.UNDEFINED_OPERATION
    description = "undefined operation"

class SimulationTimeout(Exception):
    pass

def fault_for(kind, pc, inst):
    """Builds the exception matching a hardware fault kind code."""
    for cls in (IllegalInstruction, UndefinedOperation):
        if cls.kind.value == kind:
            return cls(pc, inst)
    raise ValueError(f"not a fault kind: {kind}")
