from pygba.ppu import PPU


def test_memory_sizes_and_zero_fill():
    ppu = PPU()
    assert len(ppu.pram) == 1024
    assert len(ppu.vram) == 96 * 1024
    assert len(ppu.oam) == 1024
    assert not any(ppu.pram) and not any(ppu.vram) and not any(ppu.oam)


def test_memories_are_writable():
    ppu = PPU()
    ppu.vram[-1] = 0x5A
    ppu.oam[0] = 0x11
    assert ppu.vram[len(ppu.vram) - 1] == 0x5A
    assert ppu.oam[0] == 0x11


def test_instances_do_not_share_memory():
    first = PPU()
    second = PPU()
    first.pram[3] = 9
    assert second.pram[3] == 0