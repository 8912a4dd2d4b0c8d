"""Memory-mapped I/O registers with buffered writes."""

from .interrupt import InterruptController

IO_SIZE = 0x400

_IE = 0x200
_IF = 0x202
_IME = 0x208


class IORegisters:
    """I/O register block; writes are buffered and applied on commit()."""

    def __init__(self, interrupt: InterruptController) -> None:
        self.interrupt = interrupt
        self._buffer = bytearray(IO_SIZE)
        self._changed: set[int] = set()

    def read8(self, addr: int) -> int:
        """Read one byte of the register block; unknown registers read 0xFF."""
        ic = self.interrupt
        if _IE <= addr < _IE + 2:
            return (ic.ie >> ((addr - _IE) * 8)) & 0xFF
        if _IF <= addr < _IF + 2:
            return (ic.if_ >> ((addr - _IF) * 8)) & 0xFF
        if _IME <= addr < _IME + 4:
            return (ic.ime >> ((addr - _IME) * 8)) & 0xFF
        return 0xFF

    def write8(self, addr: int, val: int) -> None:
        if not 0 <= addr < IO_SIZE:
            raise IndexError(f"I/O register offset out of range: {addr:#x}")
        self._buffer[addr] = val & 0xFF
        self._changed.add(addr)

    def write16(self, addr: int, val: int) -> None:
        self.write8(addr, val & 0xFF)
        self.write8(addr + 1, (val >> 8) & 0xFF)

    def write32(self, addr: int, val: int) -> None:
        self.write16(addr, val & 0xFFFF)
        self.write16(addr + 2, (val >> 16) & 0xFFFF)

    def _mask(self, addr: int, width: int) -> int:
        return sum(0xFF << (8 * i) for i in range(width) if addr + i in self._changed)

    def _value(self, addr: int, width: int) -> int:
        return int.from_bytes(self._buffer[addr:addr + width], "little")

    def commit(self) -> None:
        """Apply buffered writes to the interrupt controller."""
        if not self._changed:
            return
        ic = self.interrupt
        mask = self._mask(_IE, 2)
        if mask:
            ic.ie = self._value(_IE, 2) & mask
        mask = self._mask(_IF, 2)
        if mask:
            # Writing 1 to an IF bit acknowledges (clears) that request.
            ic.if_ &= ~(self._value(_IF, 2) & mask)
        mask = self._mask(_IME, 4)
        if mask:
            ic.ime = self._value(_IME, 4) & mask
        self._changed.clear()