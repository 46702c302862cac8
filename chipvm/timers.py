"""CHIP-8 delay and sound timers."""

import jax.numpy as jnp
from chipvm.state import EmulatorState


def _count_down(timer: jnp.ndarray) -> jnp.ndarray:
    return jnp.where(timer > 0, timer - 1, timer).astype(jnp.uint8)


def tick(state: EmulatorState) -> EmulatorState:
    """Advance both timers by one 60 Hz period.

    The sound flag latches when the sound timer runs out (1 -> 0); the host
    clears it with ``clear_sound_flag`` once the tone has been triggered.
    """
    sound_expired = state.sound_timer == 1
    return state.replace(
        delay_timer=_count_down(state.delay_timer),
        sound_timer=_count_down(state.sound_timer),
        sound_flag=state.sound_flag | sound_expired,
    )
