import pytest

from rvpipe import asm

@pytest.mark.parametrize("word,expected", [
    (asm.add(5, 3, 4), 0x0041_82B3),
    (asm.sub(1, 2, 3), 0x4031_00B3),
    (asm.lw(2, 0, 1), 0x0000_A103),
    (asm.sw(5, 0, 6), 0x0053_2023),
    (asm.addi(5, 0, 25), 0x0190_0293),
    (asm.addi(1, 1, -1), 0xFFF0_8093),
    (asm.beq(0, 0, 12), 0x0000_0663),
    (asm.jal(0, 0), asm.SELF_LOOP),
    (asm.jal(1, -4), 0xFFDF_F0EF),
    (asm.nop(), 0x0000_0013),
    (asm.rol(3, 1, 2), 0x8020_818B),
    (asm.abs_(3, 1), 0x8000_A18B),
])
def test_encodings(word, expected):
    assert word == expected

def test_range_checks():
    with pytest.raises(ValueError):
        asm.addi(1, 0, 2048)
    with pytest.raises(ValueError):
        asm.sw(1, -2049, 0)
    with pytest.raises(ValueError):
        asm.beq(0, 0, 3)
    with pytest.raises(ValueError):
        asm.beq(0, 0, 4096)
    with pytest.raises(ValueError):
        asm.jal(0, 1 << 20)
    with pytest.raises(ValueError):
        asm.add(32, 0, 0)

def test_words_flattens():
    assert asm.words(1, [2, (3, 4)], -1) == [1, 2, 3, 4, 0xFFFF_FFFF]
