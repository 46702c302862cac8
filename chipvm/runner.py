"""Jitted batch execution helpers.

The host stays in charge of pacing: every function takes the number of
instructions to run per frame explicitly.
"""

from functools import partial

import jax
import jax.numpy as jnp

from chipvm.state import EmulatorState
from chipvm.emulator import step
from chipvm.errors import Outcome, status
from chipvm.timers import tick
from chipvm.logging import scan_with_progress


def run_instruction(carry, _):
    """Scan body: step once unless an earlier step faulted."""
    state, outcome, executed = carry

    def advance(carry):
        state, _, executed = carry
        state, outcome = step(state)
        return state, outcome, executed + jnp.astype(outcome == Outcome.OK, jnp.int32)

    carry = jax.lax.cond(outcome == Outcome.OK, advance, lambda c: c, carry)
    return carry, None


def _run(state: EmulatorState, num_instructions: int):
    carry = (state, status(Outcome.OK), jnp.zeros((), dtype=jnp.int32))
    carry, _ = jax.lax.scan(run_instruction, carry, length=num_instructions)
    return carry


@partial(jax.jit, static_argnums=1)
def run(state: EmulatorState, num_instructions: int):
    """Execute up to ``num_instructions`` steps, halting at the first fault.

    Returns:
        Tuple of (state, outcome, executed) where outcome is the fault that
        stopped the run (``OK`` if none) and executed counts completed steps.
        The state is the one the faulting step was applied to.
    """
    return _run(state, num_instructions)


def _run_frame(state: EmulatorState, instructions_per_frame: int):
    state, outcome, executed = _run(state, instructions_per_frame)
    return tick(state), outcome, executed


@partial(jax.jit, static_argnums=1)
def run_frame(state: EmulatorState, instructions_per_frame: int):
    """Run one 60 Hz frame: a burst of instructions followed by one timer tick."""
    return _run_frame(state, instructions_per_frame)


@partial(jax.jit, static_argnums=(1, 2, 3))
def run_frames(
    state: EmulatorState,
    num_frames: int,
    instructions_per_frame: int,
    progress: bool = False,
):
    """Run ``num_frames`` frames. No frame starts after one that faulted.

    Args:
        state: Initial state
        num_frames: Number of 60 Hz frames to emulate
        instructions_per_frame: Instructions executed between two timer ticks
        progress: Show a tqdm progress bar while the jitted loop runs

    Returns:
        Tuple of (state, outcome, executed, frames) with the total number of
        completed steps and of fully completed frames.
    """
    def frame(carry, _):
        state, outcome, executed, frames = carry

        def advance(carry):
            state, _, executed, frames = carry
            state, outcome, frame_executed = _run_frame(state, instructions_per_frame)
            completed = jnp.astype(outcome == Outcome.OK, jnp.int32)
            return state, outcome, executed + frame_executed, frames + completed

        carry = jax.lax.cond(outcome == Outcome.OK, advance, lambda c: c, carry)
        return carry, None

    if progress:
        frame = scan_with_progress(num_frames)(frame)

    carry = (state, status(Outcome.OK), jnp.zeros((), dtype=jnp.int32), jnp.zeros((), dtype=jnp.int32))
    carry, _ = jax.lax.scan(frame, carry, jnp.arange(num_frames))
    return carry
