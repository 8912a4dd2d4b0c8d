"""System bus routing CPU memory accesses to the right device."""

from .gamepak import GamePak
from .ioreg import IORegisters
from .ppu import PPU

BIOS_SIZE = 16 * 1024
EWRAM_SIZE = 256 * 1024
IWRAM_SIZE = 32 * 1024

_MASK32 = 0xFFFF_FFFF
_IO_START = 0x4000000
_IO_END = 0x40003FE


class Bus:
    """Little-endian memory map; unmapped reads return 0xFF."""

    def __init__(self, gamepak: GamePak, ppu: PPU, io: IORegisters) -> None:
        self.rom = bytearray(BIOS_SIZE)
        self.ewram = bytearray(EWRAM_SIZE)
        self.iwram = bytearray(IWRAM_SIZE)
        self.gamepak = gamepak
        self.ppu = ppu
        self.io = io
        self._regions = (
            (0x0000000, 0x0004000, self.rom),
            (0x2000000, 0x2040000, self.ewram),
            (0x3000000, 0x3008000, self.iwram),
            (0x5000000, 0x5000400, ppu.pram),
            (0x6000000, 0x6018000, ppu.vram),
            (0x7000000, 0x7000400, ppu.oam),
            (0x8000000, 0xE000000, gamepak.rom),
            (0xE000000, 0xE010000, gamepak.sram),
        )

    def _locate(self, addr: int) -> tuple[bytearray, int] | None:
        for start, end, memory in self._regions:
            if start <= addr < end:
                return memory, addr - start
        return None

    def _store(self, addr: int, val: int) -> None:
        addr &= _MASK32
        if _IO_START <= addr < _IO_END:
            self.io.write8(addr - _IO_START, val & 0xFF)
            return
        found = self._locate(addr)
        if found is not None:
            memory, offset = found
            memory[offset] = val & 0xFF

    def read8(self, addr: int) -> int:
        addr &= _MASK32
        if _IO_START <= addr < _IO_END:
            return self.io.read8(addr - _IO_START)
        found = self._locate(addr)
        if found is None:
            return 0xFF
        memory, offset = found
        return memory[offset]

    def write8(self, addr: int, val: int) -> None:
        self._store(addr, val)
        self.io.commit()

    def read16(self, addr: int) -> int:
        return self.read8(addr) | (self.read8(addr + 1) << 8)

    def write16(self, addr: int, val: int) -> None:
        for i in range(2):
            self._store(addr + i, val >> (8 * i))
        self.io.commit()

    def read32(self, addr: int) -> int:
        return self.read16(addr) | (self.read16(addr + 2) << 16)

    def write32(self, addr: int, val: int) -> None:
        for i in range(4):
            self._store(addr + i, val >> (8 * i))
        self.io.commit()