"""Register file, status registers and instruction pipeline of the CPU."""

from .alu import (
    BIT_C,
    BIT_I,
    BIT_M,
    BIT_N,
    BIT_T,
    BIT_V,
    BIT_Z,
    MASK32,
    ExceptionKind,
    Mode,
)

_FLAGS_MASK = BIT_N | BIT_Z | BIT_C | BIT_V
_PC = 15
_LR = 14

# Index into the banked register and SPSR tables for each privileged mode.
_BANK = {Mode.FIQ: 0, Mode.IRQ: 1, Mode.SVC: 2, Mode.ABT: 3, Mode.UND: 4}

_VECTORS = {
    ExceptionKind.RESET: (Mode.SVC, 0x00),
    ExceptionKind.UNDEFINED: (Mode.UND, 0x04),
    ExceptionKind.SOFTWARE_INTERRUPT: (Mode.SVC, 0x08),
    ExceptionKind.PREFETCH_ABORT: (Mode.ABT, 0x0C),
    ExceptionKind.DATA_ABORT: (Mode.ABT, 0x10),
    ExceptionKind.ADDRESS_EXCEEDS_26BIT: (Mode.SVC, 0x14),
    ExceptionKind.NORMAL_INTERRUPT: (Mode.IRQ, 0x18),
    ExceptionKind.FAST_INTERRUPT: (Mode.FIQ, 0x1C),
}


class CPUState:
    """Registers with mode banking, CPSR/SPSR and the two-stage fetch pipeline."""

    def __init__(self, bus, interrupt) -> None:
        self.bus = bus
        self.interrupt = interrupt
        self.regs = [0] * 16
        self._banked = [[0] * 16 for _ in _BANK]
        self.cpsr = 0
        self.spsr = [0] * len(_BANK)
        self.pipeline = [0, 0]
        self.should_reset_pipeline = False

    def _bank_for(self, index: int) -> list[int] | None:
        """Return the register list holding `index` in the current mode."""
        mode = self.mode()
        if index < 8 or index == _PC:
            return self.regs
        if index < 13:
            return self._banked[0] if mode == Mode.FIQ else self.regs
        if mode in (Mode.USR, Mode.SYS):
            return self.regs
        bank = _BANK.get(mode)
        return None if bank is None else self._banked[bank]

    def read_reg(self, index: int) -> int:
        """Read a register as seen from the current mode."""
        regs = self._bank_for(index)
        return MASK32 if regs is None else regs[index]

    def write_reg(self, index: int, val: int) -> None:
        """Write a register as seen from the current mode; writing PC flushes the pipeline."""
        regs = self._bank_for(index)
        if regs is None:
            return
        regs[index] = val & MASK32
        if index == _PC:
            self.should_reset_pipeline = True

    def read_user_reg(self, index: int) -> int:
        return self.regs[index]

    def write_user_reg(self, index: int, val: int) -> None:
        self.regs[index] = val & MASK32

    def read_spsr(self, mode: int) -> int:
        """Saved PSR of `mode`; modes without one yield the CPSR."""
        bank = _BANK.get(mode)
        return self.cpsr if bank is None else self.spsr[bank]

    def write_spsr(self, mode: int, val: int) -> None:
        """Set the saved PSR of `mode`; ignored for modes without one."""
        bank = _BANK.get(mode)
        if bank is not None:
            self.spsr[bank] = val & MASK32

    def is_thumb(self) -> bool:
        return bool(self.cpsr & BIT_T)

    def mode(self) -> int:
        return self.cpsr & BIT_M

    def set_flags(self, n: bool, z: bool, c: bool, v: bool) -> None:
        flags = (
            (BIT_N if n else 0)
            | (BIT_Z if z else 0)
            | (BIT_C if c else 0)
            | (BIT_V if v else 0)
        )
        self.cpsr = (self.cpsr & ~_FLAGS_MASK & MASK32) | flags

    def get_flags(self) -> tuple[bool, bool, bool, bool]:
        """Return the (N, Z, C, V) condition flags."""
        cpsr = self.cpsr
        return (
            bool(cpsr & BIT_N),
            bool(cpsr & BIT_Z),
            bool(cpsr & BIT_C),
            bool(cpsr & BIT_V),
        )

    def update_arithmetic_flags(self, result: int, carry: bool, overflow: bool) -> None:
        """Set N, Z, C and V from an arithmetic result."""
        result &= MASK32
        self.set_flags(bool(result & BIT_N), result == 0, carry, overflow)

    def update_logical_flags(self, result: int, carry: bool) -> None:
        """Set N, Z and C from a logical result, leaving V untouched."""
        result &= MASK32
        flags = (
            (BIT_N if result & BIT_N else 0)
            | (BIT_Z if result == 0 else 0)
            | (BIT_C if carry else 0)
        )
        self.cpsr = (self.cpsr & ~(BIT_N | BIT_Z | BIT_C) & MASK32) | flags

    def handle_exception(self, kind: int) -> None:
        """Enter the mode and vector for exception `kind`."""
        mode, addr = _VECTORS[ExceptionKind(kind)]
        pc = self.read_reg(_PC)
        old_cpsr = self.cpsr
        cpsr = (old_cpsr & ~BIT_M & MASK32) | mode
        cpsr &= ~BIT_T & MASK32
        cpsr |= BIT_I
        self.cpsr = cpsr
        self.write_spsr(mode, old_cpsr)
        self.write_reg(_LR, pc)
        self.write_reg(_PC, addr)

    def reset_pipeline(self) -> None:
        """Refill the pipeline from the current PC."""
        pc = self.regs[_PC]
        if self.is_thumb():
            self.pipeline[0] = self.bus.read16((pc + 2) & MASK32)
            self.pipeline[1] = self.bus.read16(pc)
            self.regs[_PC] = (pc + 4) & MASK32
        else:
            self.pipeline[0] = self.bus.read32((pc + 4) & MASK32)
            self.pipeline[1] = self.bus.read32(pc)
            self.regs[_PC] = (pc + 8) & MASK32

    def advance_pipeline(self) -> None:
        """Shift the pipeline by one instruction and fetch the next."""
        pc = self.regs[_PC]
        self.pipeline[1] = self.pipeline[0]
        if self.is_thumb():
            self.pipeline[0] = self.bus.read16(pc)
            self.regs[_PC] = (pc + 2) & MASK32
        else:
            self.pipeline[0] = self.bus.read32(pc)
            self.regs[_PC] = (pc + 4) & MASK32