# pygba

An early-stage Game Boy Advance emulator core. It contains an ARM7TDMI-style
interpreter for both the ARM and THUMB instruction sets, a little-endian
memory bus, an interrupt controller driven through buffered I/O registers,
and a small pygame window front end.

## Installing

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Running

```
pygba
```

This opens a 240×160 window scaled three times, titled "GBA Emulator". Each
frame it calls the emulator's `update()` and draws the text
"GBA Emulator - Under Development". Close the window to quit. The command
takes no options other than `--help`.

## Using the core

```python
from pygba.alu import Mode
from pygba.emulator import GBA

gba = GBA()
cpu = gba.cpu
cpu.cpsr = Mode.SYS                      # the CPSR starts at zero; pick a mode
gba.bus.write32(0x08000000, 0xE3A00001)  # MOV R0, #1 at the start of the game pak
cpu.write_reg(15, 0x08000000)            # writing PC refills the pipeline on the next step
cycles = cpu.step()                      # executes the MOV and returns 1
assert cpu.read_reg(0) == 1
```

`GBA.update()` does nothing and returns 0 until `gba.running` is set to
`True`; after that each call steps the CPU until at least 280,896 cycles (one
frame) have run and returns the number of cycles executed.

### Modules

- `pygba.emulator` — `GBA` wires together the CPU, bus, PPU memories, game pak
  and interrupt controller (`gba.cpu`, `gba.bus`, `gba.ppu`).
- `pygba.cpu` — `CPU` with `step()`, `execute_arm(opcode)` and
  `execute_thumb(opcode)`. Before each instruction, `step()` enters the IRQ
  exception if IRQs are enabled in the CPSR, IME bit 0 is set and `IF & IE` is
  non-zero.
- `pygba.state` — `CPUState`: the register file with FIQ/IRQ/SVC/ABT/UND
  banking (`read_reg`, `write_reg`, `read_user_reg`, `write_user_reg`), the
  CPSR and SPSRs (`read_spsr`, `write_spsr`, `get_flags`, `set_flags`,
  `update_arithmetic_flags`, `update_logical_flags`), `handle_exception` and
  the two-stage fetch pipeline (`reset_pipeline`, `advance_pipeline`).
- `pygba.arm` — ARM instruction format predicates (`is_branch`,
  `is_data_processing`, …), `check_condition` and `execute_arm`.
- `pygba.arm_ops` — ARM data processing, multiply (including long forms),
  halfword/signed transfers, MRS and MSR.
- `pygba.thumb` — `execute_thumb` for all THUMB instruction formats.
- `pygba.alu` — the barrel shifter (`shift`, `ror`), `calculate_overflow`,
  CPSR bit constants and the `Mode` and `ExceptionKind` enums.
- `pygba.bus` — `Bus` with `read8`/`read16`/`read32` and
  `write8`/`write16`/`write32`. It maps the 16 KiB BIOS area, EWRAM, IWRAM,
  I/O registers, palette RAM, VRAM, OAM, game pak ROM and SRAM; unmapped reads
  return `0xFF`. Every write ends with a commit of the I/O registers.
- `pygba.ioreg` — `IORegisters` buffers writes and applies them to IE, IF
  (write 1 to acknowledge) and IME on `commit()`; other registers read `0xFF`.
- `pygba.interrupt` — `InterruptController` holding `ime`, `ie` and `if_`.
- `pygba.gamepak` and `pygba.ppu` — the zero-filled memories of the cartridge
  and the picture unit.
- `pygba.app` — the window front end (`Game`, `main`).

## What it does not do

- There is no way to load a ROM file or BIOS image from the command line; the
  memories start zero-filled and can only be filled through the `Bus` or the
  `bytearray` attributes.
- Nothing is rendered from VRAM, palette RAM or OAM; the window only shows the
  status message.
- There is no keypad input, timers, DMA or sound, and no I/O registers other
  than IE, IF and IME.