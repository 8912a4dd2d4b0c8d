"""CPU constants and barrel-shifter / flag helpers."""

from enum import IntEnum

MASK32 = 0xFFFF_FFFF

BIT_N = 1 << 31
BIT_Z = 1 << 30
BIT_C = 1 << 29
BIT_V = 1 << 28
BIT_I = 1 << 7
BIT_F = 1 << 6
BIT_T = 1 << 5
BIT_M = 0x1F

_LSL, _LSR, _ASR, _ROR = range(4)


class Mode(IntEnum):
    """Processor modes as encoded in the CPSR mode bits."""

    USR = 0x10
    FIQ = 0x11
    IRQ = 0x12
    SVC = 0x13
    ABT = 0x17
    UND = 0x1B
    SYS = 0x1F


class ExceptionKind(IntEnum):
    """Exceptions in vector-table order."""

    RESET = 0
    UNDEFINED = 1
    SOFTWARE_INTERRUPT = 2
    PREFETCH_ABORT = 3
    DATA_ABORT = 4
    ADDRESS_EXCEEDS_26BIT = 5
    NORMAL_INTERRUPT = 6
    FAST_INTERRUPT = 7


def ror(val: int, amount: int) -> int:
    """Rotate a 32-bit value right by amount bits."""
    val &= MASK32
    high = (val << (32 - amount)) & MASK32 if amount <= 32 else 0
    return (val >> amount) | high


def shift(
    value: int, op: int, amount: int, old_carry: bool, is_register_shift: bool
) -> tuple[int, bool]:
    """Apply a barrel-shifter operation; return (result, carry out)."""
    value &= MASK32
    if is_register_shift and amount == 0:
        return value, old_carry
    if op == _LSL:
        if amount == 0:
            return value, old_carry
        carry = amount <= 32 and bool((value >> (32 - amount)) & 1)
        return (value << amount) & MASK32, carry
    if op == _LSR:
        if amount == 0:
            return 0, bool(value >> 31)
        if amount < 32:
            return value >> amount, bool((value >> (amount - 1)) & 1)
        return 0, False
    if op == _ASR:
        if amount == 0:
            return (MASK32, True) if value & 0x80000000 else (0, False)
        signed = value - (1 << 32) if value & 0x80000000 else value
        return (signed >> amount) & MASK32, bool((value >> (amount - 1)) & 1)
    if op == _ROR:
        if amount == 0:
            result = (value >> 1) | (0x80000000 if old_carry else 0)
            return result, bool(value & 1)
        return ror(value, amount), bool((value >> (amount - 1)) & 1)
    return 0, False


def calculate_overflow(op1: int, op2: int, result: int, is_subtraction: bool) -> bool:
    """Signed overflow of op1 + op2 (or op1 - op2) giving result."""
    sign1 = (op1 >> 31) & 1
    sign2 = (op2 >> 31) & 1
    sign_res = (result >> 31) & 1
    if is_subtraction:
        return sign1 != sign2 and sign1 != sign_res
    return sign1 == sign2 and sign1 != sign_res