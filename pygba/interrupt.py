"""Interrupt controller state shared by the CPU and the I/O registers."""

from dataclasses import dataclass


@dataclass
class InterruptController:
    """Holds the IME, IE and IF interrupt registers."""

    ime: int = 0
    ie: int = 0
    if_: int = 0