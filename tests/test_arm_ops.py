import pytest

from pygba.alu import BIT_C, BIT_N, BIT_V, BIT_Z, MASK32, Mode
from pygba.arm_ops import (
    execute_data_processing,
    execute_halfword_transfer,
    execute_msr,
    execute_mrs,
    execute_multiply,
)
from pygba.bus import Bus
from pygba.gamepak import GamePak
from pygba.interrupt import InterruptController
from pygba.ioreg import IORegisters
from pygba.ppu import PPU
from pygba.state import CPUState

AL = 0xE0000000
IWRAM = 0x03000000


@pytest.fixture
def cpu():
    interrupt = InterruptController()
    bus = Bus(GamePak(), PPU(), IORegisters(interrupt))
    state = CPUState(bus, interrupt)
    state.cpsr = int(Mode.SYS)
    return state


def dp(op, rd, rn=0, operand=0, s=False, imm=False):
    return AL | (int(imm) << 25) | (op << 21) | (int(s) << 20) | (rn << 16) | (rd << 12) | operand


def mul(op, rd, rn, rs, rm, s=False):
    return AL | (op << 21) | (int(s) << 20) | (rd << 16) | (rn << 12) | (rs << 8) | 0x90 | rm


def half(op, rd, rn, offset=0, p=True, u=True, imm=True, w=False, load=True):
    return (
        AL
        | (int(p) << 24)
        | (int(u) << 23)
        | (int(imm) << 22)
        | (int(w) << 21)
        | (int(load) << 20)
        | (rn << 16)
        | (rd << 12)
        | (((offset >> 4) & 0xF) << 8)
        | 0x90
        | (op << 5)
        | (offset & 0xF)
    )


# Data processing

def test_add_registers(cpu):
    cpu.write_reg(0, 5)
    cpu.write_reg(1, 7)
    assert execute_data_processing(cpu, dp(0x4, rd=2, rn=0, operand=1)) == 1
    assert cpu.read_reg(2) == 5 + 7


def test_adds_wraps_and_sets_carry_zero(cpu):
    cpu.write_reg(0, MASK32)
    cpu.write_reg(1, 1)
    execute_data_processing(cpu, dp(0x4, rd=2, rn=0, operand=1, s=True))
    assert cpu.read_reg(2) == 0
    n, z, c, v = cpu.get_flags()
    assert (n, z, c, v) == (False, True, True, False)


def test_add_without_s_leaves_flags(cpu):
    cpu.write_reg(0, MASK32)
    cpu.write_reg(1, 1)
    execute_data_processing(cpu, dp(0x4, rd=2, rn=0, operand=1))
    assert cpu.get_flags() == (False, False, False, False)


def test_subs_equal_sets_zero_and_carry(cpu):
    cpu.write_reg(0, 9)
    cpu.write_reg(1, 9)
    execute_data_processing(cpu, dp(0x2, rd=2, rn=0, operand=1, s=True))
    assert cpu.read_reg(2) == 0
    assert cpu.cpsr & BIT_Z
    assert cpu.cpsr & BIT_C


def test_rsb_reverses_operands(cpu):
    cpu.write_reg(0, 3)
    cpu.write_reg(1, 10)
    execute_data_processing(cpu, dp(0x3, rd=2, rn=0, operand=1))
    assert cpu.read_reg(2) == 10 - 3


def test_sub_signed_overflow(cpu):
    cpu.write_reg(0, 0x80000000)
    cpu.write_reg(1, 1)
    execute_data_processing(cpu, dp(0x2, rd=2, rn=0, operand=1, s=True))
    assert cpu.read_reg(2) == 0x7FFFFFFF
    assert cpu.cpsr & BIT_V
    assert not cpu.cpsr & BIT_N


def test_adc_uses_carry(cpu):
    cpu.cpsr |= BIT_C
    cpu.write_reg(0, 1)
    cpu.write_reg(1, 1)
    execute_data_processing(cpu, dp(0x5, rd=2, rn=0, operand=1))
    assert cpu.read_reg(2) == 1 + 1 + 1


def test_sbc_without_carry_borrows(cpu):
    cpu.write_reg(0, 5)
    cpu.write_reg(1, 3)
    execute_data_processing(cpu, dp(0x6, rd=2, rn=0, operand=1))
    assert cpu.read_reg(2) == 5 - 3 - 1


def test_cmp_sets_flags_without_s_and_keeps_rd(cpu):
    cpu.write_reg(0, 1)
    cpu.write_reg(1, 2)
    cpu.write_reg(2, 0x1234)
    execute_data_processing(cpu, dp(0xA, rd=2, rn=0, operand=1))
    assert cpu.read_reg(2) == 0x1234
    assert cpu.cpsr & BIT_N
    assert not cpu.cpsr & BIT_C


def test_tst_zero_result(cpu):
    cpu.write_reg(0, 0xF0)
    cpu.write_reg(1, 0x0F)
    execute_data_processing(cpu, dp(0x8, rd=0, rn=0, operand=1))
    assert cpu.cpsr & BIT_Z
    assert cpu.read_reg(0) == 0xF0


def test_mov_immediate_rotated(cpu):
    # imm 0xFF rotated right by 8 (rotate field 4)
    execute_data_processing(cpu, dp(0xD, rd=3, operand=(4 << 8) | 0xFF, imm=True))
    assert cpu.read_reg(3) == 0xFF000000


def test_mvn_zero_gives_all_ones(cpu):
    cpu.write_reg(1, 0)
    execute_data_processing(cpu, dp(0xF, rd=0, operand=1, s=True))
    assert cpu.read_reg(0) == MASK32
    assert cpu.cpsr & BIT_N


def test_bic_and_orr_round_trip(cpu):
    cpu.write_reg(0, 0xAAAA5555)
    cpu.write_reg(1, 0x0000FFFF)
    execute_data_processing(cpu, dp(0xE, rd=2, rn=0, operand=1))
    cpu.write_reg(3, 0xAAAA5555 & 0x0000FFFF)
    execute_data_processing(cpu, dp(0xC, rd=4, rn=2, operand=3))
    assert cpu.read_reg(4) == 0xAAAA5555


def test_logical_shift_left_register_shift_cycles(cpu):
    cpu.write_reg(1, 1)
    cpu.write_reg(2, 4)
    # MOV r0, r1, LSL r2
    opcode = dp(0xD, rd=0, operand=(2 << 8) | (0 << 5) | (1 << 4) | 1)
    assert execute_data_processing(cpu, opcode) == 2
    assert cpu.read_reg(0) == 1 << 4


def test_movs_shift_carry_out(cpu):
    cpu.write_reg(1, 0x80000001)
    # MOVS r0, r1, LSL #1
    execute_data_processing(cpu, dp(0xD, rd=0, operand=(1 << 7) | 1, s=True))
    assert cpu.read_reg(0) == 2
    assert cpu.cpsr & BIT_C


def test_write_pc_costs_extra_and_flushes(cpu):
    cpu.write_reg(1, IWRAM)
    cpu.should_reset_pipeline = False
    assert execute_data_processing(cpu, dp(0xD, rd=15, operand=1)) == 3
    assert cpu.read_reg(15) == IWRAM
    assert cpu.should_reset_pipeline


# Multiply

def test_mul_and_cycles(cpu):
    cpu.write_reg(1, 6)
    cpu.write_reg(2, 7)
    assert execute_multiply(cpu, mul(0x0, rd=0, rn=0, rs=2, rm=1)) == 5
    assert cpu.read_reg(0) == 6 * 7


def test_mla_accumulates(cpu):
    cpu.write_reg(1, 6)
    cpu.write_reg(2, 7)
    cpu.write_reg(3, 100)
    assert execute_multiply(cpu, mul(0x1, rd=0, rn=3, rs=2, rm=1)) == 6
    assert cpu.read_reg(0) == 6 * 7 + 100


def test_muls_zero_flag(cpu):
    cpu.cpsr |= BIT_N
    cpu.write_reg(0, 0x1234)
    cpu.write_reg(1, 0)
    cpu.write_reg(2, 7)
    assert execute_multiply(cpu, mul(0x0, rd=0, rn=0, rs=2, rm=1, s=True)) == 5
    assert cpu.read_reg(0) == 0
    assert cpu.cpsr & BIT_Z
    assert not cpu.cpsr & BIT_N


def test_umull_full_product(cpu):
    cpu.write_reg(1, MASK32)
    cpu.write_reg(2, MASK32)
    assert execute_multiply(cpu, mul(0x4, rd=4, rn=3, rs=2, rm=1)) == 6
    assert (cpu.read_reg(4) << 32) | cpu.read_reg(3) == MASK32 * MASK32


def test_smull_negative_product(cpu):
    cpu.write_reg(1, MASK32)  # -1
    cpu.write_reg(2, 2)
    execute_multiply(cpu, mul(0x6, rd=4, rn=3, rs=2, rm=1, s=True))
    assert cpu.read_reg(4) == MASK32
    assert cpu.read_reg(3) == (-2) & MASK32
    assert cpu.cpsr & BIT_N


def test_umlal_accumulates_and_cycles(cpu):
    cpu.write_reg(1, 3)
    cpu.write_reg(2, 4)
    cpu.write_reg(4, 1)
    cpu.write_reg(3, 5)
    assert execute_multiply(cpu, mul(0x5, rd=4, rn=3, rs=2, rm=1)) == 7
    assert cpu.read_reg(4) == 1
    assert cpu.read_reg(3) == 5 + 3 * 4


def test_smlal_adds_signed_product(cpu):
    cpu.write_reg(1, MASK32)  # -1
    cpu.write_reg(2, 1)
    cpu.write_reg(4, 0)
    cpu.write_reg(3, 1)
    execute_multiply(cpu, mul(0x7, rd=4, rn=3, rs=2, rm=1, s=True))
    assert cpu.read_reg(4) == 0
    assert cpu.read_reg(3) == 0
    assert cpu.cpsr & BIT_Z


# Halfword transfers

def test_strh_then_ldrh_round_trip(cpu):
    cpu.write_reg(0, IWRAM)
    cpu.write_reg(1, 0xABCD1234)
    assert execute_halfword_transfer(cpu, half(0x1, rd=1, rn=0, offset=4, load=False)) == 2
    assert cpu.bus.read16(IWRAM + 4) == 0x1234
    assert execute_halfword_transfer(cpu, half(0x1, rd=2, rn=0, offset=4)) == 3
    assert cpu.read_reg(2) == 0x1234


def test_ldrsb_sign_extends(cpu):
    cpu.bus.write8(IWRAM, 0x80)
    cpu.write_reg(0, IWRAM)
    execute_halfword_transfer(cpu, half(0x2, rd=1, rn=0))
    assert cpu.read_reg(1) == 0xFFFFFF80


def test_ldrsh_sign_extends(cpu):
    cpu.bus.write16(IWRAM + 2, 0x8001)
    cpu.write_reg(0, IWRAM)
    cpu.write_reg(5, 2)
    execute_halfword_transfer(cpu, half(0x3, rd=1, rn=0, offset=5, imm=False))
    assert cpu.read_reg(1) == 0xFFFF8001


def test_pre_indexed_down(cpu):
    cpu.bus.write16(IWRAM, 0x7FFF)
    cpu.write_reg(0, IWRAM + 8)
    execute_halfword_transfer(cpu, half(0x3, rd=1, rn=0, offset=8, u=False))
    assert cpu.read_reg(1) == 0x7FFF
    assert cpu.read_reg(0) == IWRAM + 8


def test_post_indexed_writes_updated_base_to_rd(cpu):
    cpu.bus.write16(IWRAM, 0x5555)
    cpu.write_reg(0, IWRAM)
    execute_halfword_transfer(cpu, half(0x1, rd=1, rn=0, offset=2, p=False))
    assert cpu.read_reg(1) == IWRAM + 2
    assert cpu.read_reg(0) == IWRAM


# PSR transfers

def test_mrs_reads_cpsr(cpu):
    cpu.set_flags(True, False, True, False)
    assert execute_mrs(cpu, AL | 0x010F0000 | (3 << 12)) == 1
    assert cpu.read_reg(3) == cpu.cpsr


def test_mrs_reads_spsr_of_current_mode(cpu):
    cpu.cpsr = int(Mode.IRQ)
    cpu.write_spsr(Mode.IRQ, 0x6000001F)
    execute_mrs(cpu, AL | 0x010F0000 | (1 << 22) | (2 << 12))
    assert cpu.read_reg(2) == 0x6000001F


def test_msr_flags_field_only(cpu):
    cpu.write_reg(0, MASK32)
    # MSR CPSR_f, r0
    assert execute_msr(cpu, AL | 0x0120F000 | (1 << 19) | 0) == 1
    assert cpu.cpsr == 0xFF000000 | int(Mode.SYS)


def test_msr_immediate_control_field_changes_mode(cpu):
    # MSR CPSR_c, #0x12
    execute_msr(cpu, AL | (1 << 25) | 0x0120F000 | (1 << 16) | int(Mode.IRQ))
    assert cpu.mode() == Mode.IRQ


def test_msr_then_mrs_spsr_round_trip(cpu):
    cpu.cpsr = int(Mode.SVC)
    cpu.write_reg(0, 0x90000010)
    execute_msr(cpu, AL | 0x0120F000 | (1 << 22) | (0xF << 16) | 0)
    execute_mrs(cpu, AL | 0x010F0000 | (1 << 22) | (1 << 12))
    assert cpu.read_reg(1) == 0x90000010
    assert cpu.cpsr == int(Mode.SVC)