"""The CPU: fetch/decode/execute loop over ARM and THUMB instruction sets."""

from .alu import BIT_I, ExceptionKind
from .arm import execute_arm
from .state import CPUState
from .thumb import execute_thumb


class CPU(CPUState):
    """ARM7TDMI-style core executing from a two-stage pipeline."""

    def step(self) -> int:
        """Run one instruction, servicing a pending IRQ first; return its cycles."""
        ic = self.interrupt
        if not self.cpsr & BIT_I and ic.ime & 1 and ic.if_ & ic.ie:
            self.handle_exception(ExceptionKind.NORMAL_INTERRUPT)
        if self.should_reset_pipeline:
            self.should_reset_pipeline = False
            self.reset_pipeline()
        opcode = self.pipeline[1]
        if self.is_thumb():
            cycles = self.execute_thumb(opcode)
        else:
            cycles = self.execute_arm(opcode)
        self.advance_pipeline()
        return cycles

    def execute_arm(self, opcode: int) -> int:
        """Execute one ARM instruction and return its cycle count."""
        return execute_arm(self, opcode)

    def execute_thumb(self, opcode: int) -> int:
        """Execute one THUMB instruction and return its cycle count."""
        return execute_thumb(self, opcode)