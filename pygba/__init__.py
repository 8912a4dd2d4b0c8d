"""Game Boy Advance emulator core: ARM/THUMB interpreter, memory bus, interrupts and a pygame window."""

__version__ = "0.1.0"