"""Picture processing unit memories."""

from dataclasses import dataclass, field

PRAM_SIZE = 1024
VRAM_SIZE = 96 * 1024
OAM_SIZE = 1024


@dataclass
class PPU:
    """Palette RAM, video RAM and object attribute memory."""

    pram: bytearray = field(default_factory=lambda: bytearray(PRAM_SIZE), repr=False)
    vram: bytearray = field(default_factory=lambda: bytearray(VRAM_SIZE), repr=False)
    oam: bytearray = field(default_factory=lambda: bytearray(OAM_SIZE), repr=False)