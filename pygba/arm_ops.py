"""ARM-state data processing, multiply, halfword transfer and PSR transfer instructions."""

from typing import Callable

from .alu import BIT_C, BIT_N, BIT_Z, MASK32, calculate_overflow, ror, shift

_MASK64 = (1 << 64) - 1
_PC = 15

_MUL, _MLA = 0x0, 0x1
_UMULL, _UMLAL, _SMULL, _SMLAL = 0x4, 0x5, 0x6, 0x7

_LDRH, _LDRSB, _LDRSH = 0x1, 0x2, 0x3

_TST, _TEQ, _CMP, _CMN = 0x8, 0x9, 0xA, 0xB
_COMPARISONS = frozenset({_TST, _TEQ, _CMP, _CMN})

_LOGICAL: dict[int, Callable[[int, int], int]] = {
    0x0: lambda a, b: a & b,  # AND
    0x1: lambda a, b: a ^ b,  # EOR
    _TST: lambda a, b: a & b,
    _TEQ: lambda a, b: a ^ b,
    0xC: lambda a, b: a | b,  # ORR
    0xD: lambda a, b: b,  # MOV
    0xE: lambda a, b: a & ~b,  # BIC
    0xF: lambda a, b: ~b,  # MVN
}


def _bit(opcode: int, n: int) -> bool:
    return bool((opcode >> n) & 1)


def _signed32(val: int) -> int:
    val &= MASK32
    return val - (1 << 32) if val & 0x80000000 else val


def _add(a: int, b: int, carry_in: int) -> tuple[int, bool, bool]:
    total = a + b + carry_in
    result = total & MASK32
    return result, total > MASK32, calculate_overflow(a, b, result, False)


def _sub(a: int, b: int, borrow: int) -> tuple[int, bool, bool]:
    result = (a - b - borrow) & MASK32
    return result, a >= b + borrow, calculate_overflow(a, b, result, True)


def _arithmetic(op: int, op1: int, op2: int, carry: bool) -> tuple[int, bool, bool]:
    borrow = 0 if carry else 1
    if op == 0x2:  # SUB
        return _sub(op1, op2, 0)
    if op == 0x3:  # RSB
        return _sub(op2, op1, 0)
    if op == 0x4:  # ADD
        return _add(op1, op2, 0)
    if op == 0x5:  # ADC
        return _add(op1, op2, int(carry))
    if op == 0x6:  # SBC
        return _sub(op1, op2, borrow)
    if op == 0x7:  # RSC
        return _sub(op2, op1, borrow)
    if op == _CMP:
        return _sub(op1, op2, 0)
    return _add(op1, op2, 0)  # CMN


def execute_multiply(cpu, opcode: int) -> int:
    """Execute MUL/MLA/UMULL/UMLAL/SMULL/SMLAL; return the cycle count."""
    op = (opcode >> 21) & 0xF
    set_flags = _bit(opcode, 20)
    rd = (opcode >> 16) & 0xF  # RdHi for long forms
    rn = (opcode >> 12) & 0xF  # RdLo for long forms
    rs = (opcode >> 8) & 0xF
    rm = opcode & 0xF

    flags = 0
    cycles = 5  # 1S + 4I

    if op in (_MUL, _MLA):
        result = cpu.read_reg(rm) * cpu.read_reg(rs)
        if op == _MLA:
            result += cpu.read_reg(rn)
            cycles += 1
        result &= MASK32
        cpu.write_reg(rd, result)
        if result & BIT_N:
            flags |= BIT_N
        if result == 0:
            flags |= BIT_Z
    elif op in (_UMULL, _UMLAL, _SMULL, _SMLAL):
        acc = 0
        if op in (_UMLAL, _SMLAL):
            acc = (cpu.read_reg(rd) << 32) | cpu.read_reg(rn)
            cycles += 2
        else:
            cycles += 1
        rm_val = cpu.read_reg(rm)
        rs_val = cpu.read_reg(rs)
        if op in (_SMULL, _SMLAL):
            product = _signed32(rm_val) * _signed32(rs_val)
        else:
            product = rm_val * rs_val
        result = (product + acc) & _MASK64
        hi = result >> 32
        lo = result & MASK32
        cpu.write_reg(rd, hi)
        cpu.write_reg(rn, lo)
        if hi & BIT_N:
            flags |= BIT_N
        if result == 0:
            flags |= BIT_Z

    if set_flags:
        mask = BIT_N | BIT_Z
        cpu.cpsr = (cpu.cpsr & ~mask & MASK32) | (flags & mask)
    return cycles


def execute_halfword_transfer(cpu, opcode: int) -> int:
    """Execute LDRH/STRH/LDRSB/LDRSH; return the cycle count."""
    pre = _bit(opcode, 24)
    up = _bit(opcode, 23)
    immediate = _bit(opcode, 22)
    writeback = _bit(opcode, 21)
    load = _bit(opcode, 20)
    rn = (opcode >> 16) & 0xF
    rd = (opcode >> 12) & 0xF
    op = (opcode >> 5) & 0x3

    if immediate:
        offset = (((opcode >> 8) & 0xF) << 4) | (opcode & 0xF)
    else:
        offset = cpu.read_reg(opcode & 0xF)

    base = cpu.read_reg(rn)
    addr = base
    if pre:
        addr = (base + offset if up else base - offset) & MASK32

    if load:
        val = 0
        if op == _LDRH:
            val = cpu.bus.read16(addr)
        elif op == _LDRSB:
            val = cpu.bus.read8(addr)
            if val & 0x80:
                val |= 0xFFFFFF00
        elif op == _LDRSH:
            val = cpu.bus.read16(addr)
            if val & 0x8000:
                val |= 0xFFFF0000
        cpu.write_reg(rd, val)
    else:
        cpu.bus.write16(addr, cpu.read_reg(rd) & 0xFFFF)

    if writeback or not pre:
        # The updated base is written to the destination register.
        cpu.write_reg(rd, (base + offset if up else base - offset) & MASK32)

    if load:
        return 5 if rd == _PC else 3
    return 2


def execute_mrs(cpu, opcode: int) -> int:
    """Copy the CPSR or the current mode's SPSR into a register."""
    rd = (opcode >> 12) & 0xF
    psr = cpu.read_spsr(cpu.mode()) if _bit(opcode, 22) else cpu.cpsr
    cpu.write_reg(rd, psr)
    return 1


def execute_msr(cpu, opcode: int) -> int:
    """Write selected fields of the CPSR or the current mode's SPSR."""
    mask = 0
    for bit, field_mask in ((19, 0xFF000000), (18, 0x00FF0000), (17, 0x0000FF00), (16, 0x000000FF)):
        if _bit(opcode, bit):
            mask |= field_mask

    if _bit(opcode, 25):
        val = ror(opcode & 0xFF, ((opcode >> 8) & 0xF) * 2)
    else:
        val = cpu.read_reg(opcode & 0xF)

    inverse = ~mask & MASK32
    if _bit(opcode, 22):
        mode = cpu.mode()
        cpu.write_spsr(mode, (cpu.read_spsr(mode) & inverse) | (val & mask))
    else:
        cpu.cpsr = (cpu.cpsr & inverse) | (val & mask)
    return 1


def execute_data_processing(cpu, opcode: int) -> int:
    """Execute an ALU data-processing instruction; return the cycle count."""
    op = (opcode >> 21) & 0xF
    set_flags = _bit(opcode, 20)
    rn = (opcode >> 16) & 0xF
    rd = (opcode >> 12) & 0xF

    cycles = 1
    op1 = cpu.read_reg(rn)
    shift_carry = False
    if _bit(opcode, 25):
        op2 = ror(opcode & 0xFF, ((opcode >> 8) & 0xF) * 2)
    else:
        shift_type = (opcode >> 5) & 0x3
        by_register = _bit(opcode, 4)
        rm_val = cpu.read_reg(opcode & 0xF)
        if by_register:
            amount = cpu.read_reg((opcode >> 8) & 0xF) & 0x1F
            cycles += 1
        else:
            amount = (opcode >> 7) & 0x1F
        op2, shift_carry = shift(rm_val, shift_type, amount, bool(cpu.cpsr & BIT_C), by_register)

    is_comparison = op in _COMPARISONS
    logical = _LOGICAL.get(op)
    if logical is not None:
        result = logical(op1, op2) & MASK32
        if not is_comparison:
            cpu.write_reg(rd, result)
        if set_flags or is_comparison:
            cpu.update_logical_flags(result, shift_carry)
    else:
        result, carry, overflow = _arithmetic(op, op1, op2, bool(cpu.cpsr & BIT_C))
        if not is_comparison:
            cpu.write_reg(rd, result)
        if set_flags or is_comparison:
            cpu.update_arithmetic_flags(result, carry, overflow)

    if not is_comparison and rd == _PC:
        cycles += 2
    return cycles