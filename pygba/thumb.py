"""THUMB-state instruction decoding and execution."""

from typing import Callable

from .alu import (
    BIT_C,
    BIT_N,
    BIT_T,
    BIT_V,
    BIT_Z,
    MASK32,
    ExceptionKind,
    calculate_overflow,
    shift,
)

_SP = 13
_LR = 14
_PC = 15


def _bit(opcode: int, n: int) -> bool:
    return bool((opcode >> n) & 1)


def _sign_extend(value: int, bits: int) -> int:
    sign = 1 << (bits - 1)
    return ((value & ((1 << bits) - 1)) ^ sign) - sign


def _signed32(value: int) -> int:
    return _sign_extend(value, 32)


def _shl(value: int, amount: int) -> int:
    amount &= MASK32
    return (value << amount) & MASK32 if amount < 32 else 0


def _shr(value: int, amount: int) -> int:
    amount &= MASK32
    return value >> amount if amount < 32 else 0


def _test_bit(value: int, index: int) -> bool:
    index &= MASK32
    return index < 32 and bool((value >> index) & 1)


def _add(a: int, b: int, carry_in: int) -> tuple[int, bool, bool]:
    total = a + b + carry_in
    result = total & MASK32
    return result, total > MASK32, calculate_overflow(a, b, result, False)


def _sub(a: int, b: int, borrow: int) -> tuple[int, bool, bool]:
    result = (a - b - borrow) & MASK32
    return result, a >= b + borrow, calculate_overflow(a, b, result, True)


def _condition_holds(cpu, cond: int) -> bool:
    n = bool(cpu.cpsr & BIT_N)
    z = bool(cpu.cpsr & BIT_Z)
    c = bool(cpu.cpsr & BIT_C)
    v = bool(cpu.cpsr & BIT_V)
    conditions = (
        z,  # BEQ
        not z,  # BNE
        c,  # BCS
        not c,  # BCC
        n,  # BMI
        not n,  # BPL
        v,  # BVS
        not v,  # BVC
        c and not z,  # BHI
        not c or z,  # BLS
        n == v,  # BGE
        n != v,  # BLT
        not z and n == v,  # BGT
        z or n != v,  # BLE
        False,
        False,
    )
    return conditions[cond]


def _software_interrupt(cpu, opcode: int) -> int:
    cpu.handle_exception(ExceptionKind.SOFTWARE_INTERRUPT)
    return 3


def _unconditional_branch(cpu, opcode: int) -> int:
    offset = _sign_extend(opcode & 0x7FF, 11)
    cpu.write_reg(_PC, (cpu.read_reg(_PC) + offset) & MASK32)
    return 3


def _conditional_branch(cpu, opcode: int) -> int:
    cond = (opcode >> 8) & 0xF
    if not _condition_holds(cpu, cond):
        return 1
    offset = _sign_extend(opcode & 0xFF, 8) << 1
    cpu.write_reg(_PC, (cpu.read_reg(_PC) + offset) & MASK32)
    return 3


def _multiple_load_store(cpu, opcode: int) -> int:
    load = _bit(opcode, 11)
    rb = (opcode >> 8) & 0x7
    rlist = opcode & 0xFF
    addr = cpu.read_reg(rb)
    cycles = 2 if load else 1
    for i in (r for r in range(8) if rlist & (1 << r)):
        if load:
            cpu.write_reg(i, cpu.bus.read32(addr))
        else:
            cpu.bus.write32(addr, cpu.read_reg(i))
        addr = (addr + 4) & MASK32
        cycles += 1
    cpu.write_reg(rb, addr)
    return cycles


def _long_branch_with_link(cpu, opcode: int) -> int:
    offset = opcode & 0x7FF
    if not _bit(opcode, 11):
        high = _sign_extend(offset, 11) << 12
        cpu.write_reg(_LR, (cpu.read_reg(_PC) + high) & MASK32)
        return 1
    return_addr = ((cpu.read_reg(_PC) - 2) & MASK32) | 1
    cpu.write_reg(_PC, (cpu.read_reg(_LR) + (offset << 1)) & MASK32)
    cpu.write_reg(_LR, return_addr)
    return 3


def _add_offset_to_sp(cpu, opcode: int) -> int:
    nn = (opcode & 0x7F) << 2
    sp = cpu.read_reg(_SP)
    cpu.write_reg(_SP, (sp - nn if _bit(opcode, 7) else sp + nn) & MASK32)
    return 1


def _push_pop(cpu, opcode: int) -> int:
    pop = _bit(opcode, 11)
    with_pc_lr = _bit(opcode, 8)
    rlist = opcode & 0xFF
    sp = cpu.read_reg(_SP)

    if pop:
        cycles = 2
        for i in (r for r in range(8) if rlist & (1 << r)):
            cpu.write_reg(i, cpu.bus.read32(sp))
            sp = (sp + 4) & MASK32
            cycles += 1
        if with_pc_lr:
            cpu.write_reg(_PC, cpu.bus.read32(sp))
            sp = (sp + 4) & MASK32
            cycles += 3
    else:
        cycles = 1
        if with_pc_lr:
            sp = (sp - 4) & MASK32
            cpu.bus.write32(sp, cpu.read_reg(_LR))
            cycles += 1
        for i in (r for r in reversed(range(8)) if rlist & (1 << r)):
            sp = (sp - 4) & MASK32
            cpu.bus.write32(sp, cpu.read_reg(i))
            cycles += 1

    cpu.write_reg(_SP, sp)
    return cycles


def _load_store_halfword(cpu, opcode: int) -> int:
    nn = ((opcode >> 6) & 0x1F) << 1
    rb = (opcode >> 3) & 0x7
    rd = opcode & 0x7
    addr = (cpu.read_reg(rb) + nn) & MASK32
    if _bit(opcode, 11):
        cpu.write_reg(rd, cpu.bus.read16(addr))
        return 3
    cpu.bus.write16(addr, cpu.read_reg(rd) & 0xFFFF)
    return 2


def _sp_relative_load_store(cpu, opcode: int) -> int:
    rd = (opcode >> 8) & 0x7
    addr = (cpu.read_reg(_SP) + ((opcode & 0xFF) << 2)) & MASK32
    if _bit(opcode, 11):
        cpu.write_reg(rd, cpu.bus.read32(addr))
        return 3
    cpu.bus.write32(addr, cpu.read_reg(rd))
    return 2


def _load_address(cpu, opcode: int) -> int:
    rd = (opcode >> 8) & 0x7
    nn = (opcode & 0xFF) << 2
    if _bit(opcode, 11):
        base = cpu.read_reg(_SP)
    else:
        base = cpu.read_reg(_PC) & 0xFFFFFFFD
    cpu.write_reg(rd, (base + nn) & MASK32)
    return 1


def _load_store_immediate_offset(cpu, opcode: int) -> int:
    op = (opcode >> 11) & 0x3
    nn = (opcode >> 6) & 0x1F
    rb = (opcode >> 3) & 0x7
    rd = opcode & 0x7
    base = cpu.read_reg(rb)
    if op == 0x0:  # STR
        cpu.bus.write32((base + (nn << 2)) & MASK32, cpu.read_reg(rd))
        return 2
    if op == 0x1:  # LDR
        cpu.write_reg(rd, cpu.bus.read32((base + (nn << 2)) & MASK32))
        return 3
    if op == 0x2:  # STRB
        cpu.bus.write8((base + nn) & MASK32, cpu.read_reg(rd) & 0xFF)
        return 2
    cpu.write_reg(rd, cpu.bus.read8((base + nn) & MASK32))  # LDRB
    return 3


def _register_offset_operands(cpu, opcode: int) -> tuple[int, int, int]:
    op = (opcode >> 10) & 0x3
    ro = (opcode >> 6) & 0x7
    rb = (opcode >> 3) & 0x7
    rd = opcode & 0x7
    addr = (cpu.read_reg(rb) + cpu.read_reg(ro)) & MASK32
    return op, rd, addr


def _load_store_register_offset(cpu, opcode: int) -> int:
    op, rd, addr = _register_offset_operands(cpu, opcode)
    if op == 0x0:  # STR
        cpu.bus.write32(addr, cpu.read_reg(rd))
        return 2
    if op == 0x1:  # STRB
        cpu.bus.write8(addr, cpu.read_reg(rd) & 0xFF)
        return 2
    if op == 0x2:  # LDR
        cpu.write_reg(rd, cpu.bus.read32(addr))
        return 3
    cpu.write_reg(rd, cpu.bus.read8(addr))  # LDRB
    return 3


def _load_store_sign_extended(cpu, opcode: int) -> int:
    op, rd, addr = _register_offset_operands(cpu, opcode)
    if op == 0x0:  # STRH
        cpu.bus.write16(addr, cpu.read_reg(rd) & 0xFFFF)
        return 2
    if op == 0x1:  # LDRSB
        cpu.write_reg(rd, _sign_extend(cpu.bus.read8(addr), 8) & MASK32)
    elif op == 0x2:  # LDRH
        cpu.write_reg(rd, cpu.bus.read16(addr))
    else:  # LDRSH
        cpu.write_reg(rd, _sign_extend(cpu.bus.read16(addr), 16) & MASK32)
    return 3


def _pc_relative_load(cpu, opcode: int) -> int:
    rd = (opcode >> 8) & 0x7
    nn = (opcode & 0xFF) << 2
    pc = cpu.read_reg(_PC) & 0xFFFFFFFD
    cpu.write_reg(rd, cpu.bus.read32((pc + nn) & MASK32))
    return 3


def _hi_register_operations(cpu, opcode: int) -> int:
    op = (opcode >> 8) & 0x3
    rs = ((opcode >> 3) & 0x7) | (0x8 if _bit(opcode, 6) else 0)
    rd = (opcode & 0x7) | (0x8 if _bit(opcode, 7) else 0)
    rs_val = cpu.read_reg(rs)
    rd_val = cpu.read_reg(rd)

    if op == 0x0:  # ADD
        cpu.write_reg(rd, (rd_val + rs_val) & MASK32)
    elif op == 0x1:  # CMP
        result, carry, overflow = _sub(rd_val, rs_val, 0)
        cpu.set_flags(bool(result & BIT_N), result == 0, carry, overflow)
    elif op == 0x2:  # MOV
        cpu.write_reg(rd, rs_val)
    else:  # BX
        if rs_val & 1:
            cpu.cpsr |= BIT_T
            cpu.write_reg(_PC, rs_val & 0xFFFFFFFE)
        else:
            cpu.cpsr &= ~BIT_T & MASK32
            cpu.write_reg(_PC, rs_val & 0xFFFFFFFC)
        return 3
    return 1


_ALU_TST = 0x8
_ALU_MUL = 0xD

_ALU_LOGICAL: dict[int, Callable[[int, int], int]] = {
    0x0: lambda d, s: d & s,  # AND
    0x1: lambda d, s: d ^ s,  # EOR
    _ALU_TST: lambda d, s: d & s,
    0xC: lambda d, s: d | s,  # ORR
    _ALU_MUL: lambda d, s: d * s,
    0xE: lambda d, s: d & ~s,  # BIC
    0xF: lambda d, s: ~d,  # MVN
}


def _alu_shift(cpu, op: int, rd_val: int, rs_val: int) -> int:
    """Register-specified shifts; only the flags are updated."""
    amount = rs_val & 0xFF
    if op == 0x2:  # LSL
        result = _shl(rd_val, amount)
        carry = _test_bit(rd_val, 32 - rs_val)
    elif op == 0x3:  # LSR
        result = _shr(rd_val, amount)
        carry = _test_bit(rd_val, rs_val - 1)
    elif op == 0x4:  # ASR
        result = (_signed32(rd_val) >> amount) & MASK32
        carry = _test_bit(rd_val, rs_val - 1)
    else:  # ROR
        result = _shr(rd_val, rs_val) | _shl(rd_val, 32 - rs_val)
        carry = _test_bit(rd_val, rs_val - 1)

    flags = (BIT_N if result & BIT_N else 0) | (BIT_Z if result == 0 else 0)
    mask = BIT_N | BIT_Z
    if rs_val > 0:
        flags |= BIT_C if carry else 0
        mask |= BIT_C
    cpu.cpsr = (cpu.cpsr & ~mask & MASK32) | (flags & mask)
    return 2


def _alu_operations(cpu, opcode: int) -> int:
    op = (opcode >> 6) & 0xF
    rs = (opcode >> 3) & 0x7
    rd = opcode & 0x7
    rs_val = cpu.read_reg(rs)
    rd_val = cpu.read_reg(rd)

    logical = _ALU_LOGICAL.get(op)
    if logical is not None:
        result = logical(rd_val, rs_val) & MASK32
        if op != _ALU_TST:
            cpu.write_reg(rd, result)
        cpu.update_logical_flags(result, False)
        return 5 if op == _ALU_MUL else 1

    if op in (0x2, 0x3, 0x4, 0x7):
        return _alu_shift(cpu, op, rd_val, rs_val)

    carry_flag = bool(cpu.cpsr & BIT_C)
    if op == 0x5:  # ADC
        result, carry, overflow = _add(rd_val, rs_val, int(carry_flag))
        cpu.write_reg(rd, result)
    elif op == 0x6:  # SBC
        result, carry, overflow = _sub(rd_val, rs_val, 0 if carry_flag else 1)
        cpu.write_reg(rd, result)
    elif op == 0x9:  # NEG
        result = -rs_val & MASK32
        carry = rs_val == 0
        overflow = calculate_overflow(0, rs_val, result, True)
        cpu.write_reg(rd, result)
    elif op == 0xA:  # CMP
        result, carry, overflow = _sub(rd_val, rs_val, 0)
    else:  # CMN
        result, carry, overflow = _add(rd_val, rs_val, 0)
    cpu.update_arithmetic_flags(result, carry, overflow)
    return 1


def _move_compare_add_subtract_immediate(cpu, opcode: int) -> int:
    op = (opcode >> 11) & 0x3
    rd = (opcode >> 8) & 0x7
    nn = opcode & 0xFF
    rd_val = cpu.read_reg(rd)

    if op == 0x0:  # MOV
        cpu.write_reg(rd, nn)
        cpu.update_logical_flags(nn, False)
        return 1
    if op == 0x2:  # ADD
        result, carry, overflow = _add(rd_val, nn, 0)
    else:  # CMP / SUB
        result, carry, overflow = _sub(rd_val, nn, 0)
    if op != 0x1:
        cpu.write_reg(rd, result)
    cpu.update_arithmetic_flags(result, carry, overflow)
    return 1


def _add_subtract(cpu, opcode: int) -> int:
    immediate = _bit(opcode, 10)
    subtract = _bit(opcode, 9)
    field = (opcode >> 6) & 0x7
    rs = (opcode >> 3) & 0x7
    rd = opcode & 0x7
    rs_val = cpu.read_reg(rs)
    operand = field if immediate else cpu.read_reg(field)

    if subtract:
        result, carry, overflow = _sub(rs_val, operand, 0)
    else:
        result, carry, overflow = _add(rs_val, operand, 0)
    cpu.write_reg(rd, result)
    cpu.update_arithmetic_flags(result, carry, overflow)
    return 1


def _move_shifted_register(cpu, opcode: int) -> int:
    op = (opcode >> 11) & 0x3
    amount = (opcode >> 6) & 0x1F
    rs = (opcode >> 3) & 0x7
    rd = opcode & 0x7
    result, carry = shift(cpu.read_reg(rs), op, amount, False, True)
    cpu.write_reg(rd, result)
    cpu.update_logical_flags(result, carry)
    return 1


# (mask, pattern, handler) in decoding priority order.
_FORMATS: tuple[tuple[int, int, Callable[..., int]], ...] = (
    (0xFF00, 0xDF00, _software_interrupt),
    (0xF800, 0xE000, _unconditional_branch),
    (0xF000, 0xD000, _conditional_branch),
    (0xF000, 0xC000, _multiple_load_store),
    (0xF000, 0xF000, _long_branch_with_link),
    (0xFF00, 0xB000, _add_offset_to_sp),
    (0xF600, 0xB400, _push_pop),
    (0xF000, 0x8000, _load_store_halfword),
    (0xF000, 0x9000, _sp_relative_load_store),
    (0xF000, 0xA000, _load_address),
    (0xE000, 0x6000, _load_store_immediate_offset),
    (0xF200, 0x5000, _load_store_register_offset),
    (0xF200, 0x5200, _load_store_sign_extended),
    (0xF800, 0x4800, _pc_relative_load),
    (0xFC00, 0x4400, _hi_register_operations),
    (0xFC00, 0x4000, _alu_operations),
    (0xE000, 0x2000, _move_compare_add_subtract_immediate),
    (0xF800, 0x1800, _add_subtract),
    (0xE000, 0x0000, _move_shifted_register),
)


def execute_thumb(cpu, opcode: int) -> int:
    """Execute one THUMB instruction and return its cycle count."""
    opcode &= 0xFFFF
    for mask, pattern, handler in _FORMATS:
        if opcode & mask == pattern:
            return handler(cpu, opcode)
    return 1