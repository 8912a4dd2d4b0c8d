"""ARM-state instruction decoding, condition checks and dispatch."""

from .alu import BIT_C, BIT_N, BIT_T, BIT_V, BIT_Z, MASK32, ExceptionKind, shift
from .arm_ops import (
    execute_data_processing,
    execute_halfword_transfer,
    execute_mrs,
    execute_msr,
    execute_multiply,
)

_PC = 15
_LR = 14


def _matches(opcode: int, mask: int, pattern: int) -> bool:
    return (opcode & mask) == pattern


def _bit(opcode: int, n: int) -> bool:
    return bool((opcode >> n) & 1)


def is_branch_exchange(opcode: int) -> bool:
    return _matches(opcode, 0x0FFFFFF0, 0x012FFF10)


def is_block_data_transfer(opcode: int) -> bool:
    return _matches(opcode, 0x0E000000, 0x08000000)


def is_branch(opcode: int) -> bool:
    return _matches(opcode, 0x0E000000, 0x0A000000)


def is_software_interrupt(opcode: int) -> bool:
    return _matches(opcode, 0x0F000000, 0x0F000000)


def is_undefined(opcode: int) -> bool:
    return _matches(opcode, 0x0E000010, 0x06000010)


def is_single_data_transfer(opcode: int) -> bool:
    return _matches(opcode, 0x0C000000, 0x04000000)


def is_single_data_swap(opcode: int) -> bool:
    return _matches(opcode, 0x0F800FF0, 0x01000090)


def is_multiply(opcode: int) -> bool:
    return _matches(opcode, 0x0FC000F0, 0x00000090)


def is_multiply_long(opcode: int) -> bool:
    return _matches(opcode, 0x0F8000F0, 0x00800090)


def is_halfword_transfer_register(opcode: int) -> bool:
    return _matches(opcode, 0x0E400F90, 0x00000090)


def is_halfword_transfer_immediate(opcode: int) -> bool:
    return _matches(opcode, 0x0E400090, 0x00400090)


def is_mrs(opcode: int) -> bool:
    return _matches(opcode, 0x0FBF0000, 0x010F0000)


def is_msr(opcode: int) -> bool:
    return _matches(opcode, 0x0DB0F000, 0x0120F000)


def is_data_processing(opcode: int) -> bool:
    return _matches(opcode, 0x0C000000, 0x00000000)


def check_condition(cpu, opcode: int) -> bool:
    """Evaluate the condition field of an ARM opcode against the CPSR flags."""
    cond = (opcode >> 28) & 0xF
    n = bool(cpu.cpsr & BIT_N)
    z = bool(cpu.cpsr & BIT_Z)
    c = bool(cpu.cpsr & BIT_C)
    v = bool(cpu.cpsr & BIT_V)
    conditions = (
        z,  # EQ
        not z,  # NE
        c,  # CS
        not c,  # CC
        n,  # MI
        not n,  # PL
        v,  # VS
        not v,  # VC
        c and not z,  # HI
        not c or z,  # LS
        n == v,  # GE
        n != v,  # LT
        not z and n == v,  # GT
        z or n != v,  # LE
        True,  # AL
        False,  # NV
    )
    return conditions[cond]


def _branch_exchange(cpu, opcode: int) -> int:
    val = cpu.read_reg(opcode & 0xF)
    if val & 1:
        cpu.cpsr |= BIT_T
        cpu.write_reg(_PC, val & 0xFFFFFFFE)
    else:
        cpu.cpsr &= ~BIT_T & MASK32
        cpu.write_reg(_PC, val)
    return 3


def _block_data_transfer(cpu, opcode: int) -> int:
    pre = _bit(opcode, 24)
    up = _bit(opcode, 23)
    user_bank = _bit(opcode, 22)
    writeback = _bit(opcode, 21)
    load = _bit(opcode, 20)
    rn = (opcode >> 16) & 0xF
    rlist = opcode & 0xFFFF

    count = bin(rlist).count("1")
    base = cpu.read_reg(rn)
    addr = base
    if pre:
        addr = (base + 4) if up else (base - 4 * count)
    addr &= MASK32

    for i in (r for r in range(16) if rlist & (1 << r)):
        if load:
            val = cpu.bus.read32(addr)
            if user_bank:
                cpu.write_user_reg(i, val)
                if i == _PC:
                    cpu.cpsr = cpu.read_spsr(cpu.mode())
            else:
                cpu.write_reg(i, val)
        else:
            val = cpu.read_user_reg(i) if user_bank else cpu.read_reg(i)
            cpu.bus.write32(addr, val)
        addr = (addr + 4) & MASK32

    if writeback:
        new_base = base + 4 * count if up else base - 4 * count
        cpu.write_reg(rn, new_base & MASK32)

    if load:
        return count + 4 if rlist & (1 << _PC) else count + 2
    return count + 1


def _branch(cpu, opcode: int) -> int:
    pc = cpu.read_reg(_PC)
    offset = opcode & 0xFFFFFF
    if offset & 0x800000:
        offset -= 1 << 24
    offset <<= 2
    if _bit(opcode, 24):
        cpu.write_reg(_LR, (pc - 4) & MASK32)
    cpu.write_reg(_PC, (pc + offset) & MASK32)
    return 3


def _software_interrupt(cpu) -> int:
    cpu.handle_exception(ExceptionKind.SOFTWARE_INTERRUPT)
    return 3


def _undefined(cpu) -> int:
    cpu.handle_exception(ExceptionKind.UNDEFINED)
    return 4


def _single_data_transfer(cpu, opcode: int) -> int:
    register_offset = _bit(opcode, 25)
    pre = _bit(opcode, 24)
    up = _bit(opcode, 23)
    byte = _bit(opcode, 22)
    writeback = _bit(opcode, 21)
    load = _bit(opcode, 20)
    rn = (opcode >> 16) & 0xF
    rd = (opcode >> 12) & 0xF

    if register_offset:
        amount = (opcode >> 7) & 0x1F
        shift_type = (opcode >> 5) & 0x3
        offset, _ = shift(cpu.read_reg(opcode & 0xF), shift_type, amount, False, True)
    else:
        offset = opcode & 0xFFF

    base = cpu.read_reg(rn)
    addr = base
    if pre:
        addr = (base + offset if up else base - offset) & MASK32

    if load:
        val = cpu.bus.read8(addr) if byte else cpu.bus.read32(addr)
        cpu.write_reg(rd, val)
    elif byte:
        cpu.bus.write8(addr, cpu.read_reg(rd) & 0xFF)
    else:
        cpu.bus.write32(addr, cpu.read_reg(rd))

    if writeback or not pre:
        cpu.write_reg(rn, (base + offset if up else base - offset) & MASK32)

    if load:
        return 5 if rd == _PC else 3
    return 2


def _single_data_swap(cpu, opcode: int) -> int:
    byte = _bit(opcode, 22)
    rn = (opcode >> 16) & 0xF
    rd = (opcode >> 12) & 0xF
    rm = opcode & 0xF
    addr = cpu.read_reg(rn)
    rm_val = cpu.read_reg(rm)
    if byte:
        mem_val = cpu.bus.read8(addr)
        cpu.bus.write8(addr, rm_val & 0xFF)
    else:
        mem_val = cpu.bus.read32(addr)
        cpu.bus.write32(addr, rm_val)
    cpu.write_reg(rd, mem_val)
    return 4


def execute_arm(cpu, opcode: int) -> int:
    """Execute one ARM instruction and return its cycle count."""
    opcode &= MASK32
    if not check_condition(cpu, opcode):
        return 1
    if is_branch_exchange(opcode):
        return _branch_exchange(cpu, opcode)
    if is_block_data_transfer(opcode):
        return _block_data_transfer(cpu, opcode)
    if is_branch(opcode):
        return _branch(cpu, opcode)
    if is_software_interrupt(opcode):
        return _software_interrupt(cpu)
    if is_undefined(opcode):
        return _undefined(cpu)
    if is_single_data_transfer(opcode):
        return _single_data_transfer(cpu, opcode)
    if is_single_data_swap(opcode):
        return _single_data_swap(cpu, opcode)
    if is_multiply(opcode) or is_multiply_long(opcode):
        return execute_multiply(cpu, opcode)
    if is_halfword_transfer_register(opcode) or is_halfword_transfer_immediate(opcode):
        return execute_halfword_transfer(cpu, opcode)
    if is_mrs(opcode):
        return execute_mrs(cpu, opcode)
    if is_msr(opcode):
        return execute_msr(cpu, opcode)
    if is_data_processing(opcode):
        return execute_data_processing(cpu, opcode)
    return 1