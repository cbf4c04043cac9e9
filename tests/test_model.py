from rvpipe import asm
from rvpipe.asm import SELF_LOOP, addi, add, beq, jal, lw, sw
from rvpipe.model import ReferenceModel

def test_straight_line():
    model = ReferenceModel([
        addi(1, 0, 5),
        addi(2, 1, -7),
        add(3, 1, 2),
        SELF_LOOP,
    ])
    assert model.run() == 4
    assert model.regs[1] == 5
    assert model.regs[2] == 0xFFFF_FFFE
    assert model.regs[3] == 3
    assert model.pc == 12
    assert model.retired == 4

def test_memory_and_link():
    model = ReferenceModel([
        lw(1, 4, 0),
        sw(1, 8, 0),
        jal(5, 8),
        addi(6, 0, 1),
        SELF_LOOP,
    ], data = [0, 0xABCD])
    model.run()
    assert model.dmem[2] == 0xABCD
    assert model.regs[5] == 12
    assert model.regs[6] == 0

def test_branch_taken_and_not():
    model = ReferenceModel([
        addi(1, 0, 1),
        beq(1, 0, 8),           # not taken
        beq(0, 0, 8),           # taken
        addi(2, 0, 2),
        SELF_LOOP,
    ])
    model.run()
    assert model.regs[2] == 0
    assert model.pc == 16

def test_x0_stays_zero():
    model = ReferenceModel([addi(0, 0, 9), asm.abs_(0, 0), SELF_LOOP])
    model.run()
    assert model.regs[0] == 0

def test_addresses_wrap_like_hardware():
    # Word 1024 of a 1024-word memory is word 0.
    model = ReferenceModel([
        addi(1, 0, 2047),
        addi(1, 1, 2047),       # 4094
        addi(1, 1, 2),          # 4096
        addi(2, 0, 77),
        sw(2, 0, 1),
        SELF_LOOP,
    ])
    model.run()
    assert model.dmem[0] == 77

def test_runs_off_the_end_into_nops():
    model = ReferenceModel([addi(1, 0, 1)])
    # Two words of memory: the addi, then a zero word that does nothing,
    # then back around to the addi. The pc itself keeps counting up.
    assert model.run(max_steps = 5) == 5
    assert model.regs[1] == 1
    assert model.pc == 20
