"""Cartridge storage: ROM and battery-backed SRAM."""

from dataclasses import dataclass, field

ROM_SIZE = 96 * 1024 * 1024
SRAM_SIZE = 64 * 1024


@dataclass
class GamePak:
    """A game cartridge with zero-filled ROM and SRAM."""

    rom: bytearray = field(default_factory=lambda: bytearray(ROM_SIZE), repr=False)
    sram: bytearray = field(default_factory=lambda: bytearray(SRAM_SIZE), repr=False)