"""Step outcomes and the host-side exception hierarchy.

Engine functions never raise: they report an :class:`Outcome` code as a
``uint8`` array so they stay traceable under ``jax.jit`` and ``jax.vmap``.
Hosts that prefer exceptions convert a code with :func:`raise_for_outcome`.
"""

from enum import IntEnum
from typing import Optional

import jax.numpy as jnp


class Outcome(IntEnum):
    """Result of a single ``step`` or ``execute`` call."""
    OK = 0
    UNKNOWN_INSTRUCTION = 1
    STACK_OVERFLOW = 2
    STACK_UNDERFLOW = 3
    MEMORY_OUT_OF_BOUNDS = 4
    PC_OUT_OF_RANGE = 5


def status(kind: Outcome) -> jnp.ndarray:
    """Outcome as a traceable uint8 scalar."""
    return jnp.asarray(int(kind), dtype=jnp.uint8)


def fault_if(condition, kind: Outcome) -> jnp.ndarray:
    """Return ``kind`` where ``condition`` holds, ``OK`` otherwise."""
    return jnp.where(condition, status(kind), status(Outcome.OK))


class ChipVMError(Exception):
    """Base class for every error raised by chipvm."""


class RomLoadError(ChipVMError):
    """Program image could not be read."""


class RomTooLargeError(RomLoadError):
    """Program image does not fit between PROGRAM_START and the end of memory."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"Program is {size} bytes, at most {limit} bytes fit in memory")


class EmulationFault(ChipVMError):
    """A step stopped without changing the machine state."""
    outcome = None

    def __init__(self, opcode: Optional[int] = None, pc: Optional[int] = None):
        self.opcode = opcode
        self.pc = pc
        super().__init__(self._describe())

    def _describe(self) -> str:
        name = self.outcome.name.lower().replace("_", " ") if self.outcome is not None else "fault"
        details = []
        if self.opcode is not None:
            details.append(f"opcode 0x{self.opcode:04X}")
        if self.pc is not None:
            details.append(f"pc 0x{self.pc:03X}")
        return f"{name} ({', '.join(details)})" if details else name


class UnknownInstructionError(EmulationFault):
    """Instruction word with no defined meaning."""
    outcome = Outcome.UNKNOWN_INSTRUCTION


class StackOverflowError(EmulationFault):
    """2NNN with all sixteen stack levels in use."""
    outcome = Outcome.STACK_OVERFLOW


class StackUnderflowError(EmulationFault):
    """00EE with an empty stack."""
    outcome = Outcome.STACK_UNDERFLOW


class MemoryAccessError(EmulationFault):
    """Memory range driven by I reaches past the end of memory."""
    outcome = Outcome.MEMORY_OUT_OF_BOUNDS


class ProgramCounterError(EmulationFault):
    """Program counter too high to fetch a full instruction word."""
    outcome = Outcome.PC_OUT_OF_RANGE


FAULT_EXCEPTIONS = {
    Outcome.UNKNOWN_INSTRUCTION: UnknownInstructionError,
    Outcome.STACK_OVERFLOW: StackOverflowError,
    Outcome.STACK_UNDERFLOW: StackUnderflowError,
    Outcome.MEMORY_OUT_OF_BOUNDS: MemoryAccessError,
    Outcome.PC_OUT_OF_RANGE: ProgramCounterError,
}


def raise_for_outcome(outcome, state=None) -> None:
    """Raise the exception matching ``outcome``; do nothing for ``OK``.

    Args:
        outcome: Outcome code returned by ``step``/``execute`` (int or scalar array)
        state: State the faulting step was applied to. Its pc and the word at pc
            are attached to the exception when given.
    """
    outcome = Outcome(int(outcome))
    if outcome == Outcome.OK:
        return

    opcode = pc = None
    if state is not None:
        pc = int(state.pc)
        if pc + 1 < state.memory.shape[0]:
            opcode = (int(state.memory[pc]) << 8) | int(state.memory[pc + 1])
    raise FAULT_EXCEPTIONS[outcome](opcode=opcode, pc=pc)
