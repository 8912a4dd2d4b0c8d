"""The whole console: CPU, bus and devices wired together."""

from .bus import Bus
from .cpu import CPU
from .gamepak import GamePak
from .interrupt import InterruptController
from .ioreg import IORegisters
from .ppu import PPU

CYCLES_PER_FRAME = 280896


class GBA:
    """A complete machine that runs one video frame per update()."""

    def __init__(self) -> None:
        gamepak = GamePak()
        interrupt = InterruptController()
        self.ppu = PPU()
        io = IORegisters(interrupt)
        self.bus = Bus(gamepak, self.ppu, io)
        self.cpu = CPU(self.bus, interrupt)
        self.running = False

    def update(self) -> int:
        """Run one frame's worth of CPU cycles if running; return cycles executed."""
        if not self.running:
            return 0
        cycles = 0
        while cycles < CYCLES_PER_FRAME:
            cycles += self.cpu.step()
        return cycles