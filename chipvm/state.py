"""CHIP-8 emulator state structures."""

import time
from typing import Iterable, Optional

import jax
import jax.numpy as jnp
from flax.struct import dataclass, PyTreeNode, field

from chipvm.constants import (
    PROGRAM_START, FONT_START, FONT_DATA, MEMORY_SIZE, NUM_KEYS, NUM_REGISTERS,
    SCREEN_WIDTH, SCREEN_HEIGHT, STACK_SIZE
)


@dataclass(frozen=True)
class StackState:
    """Stack state for subroutine calls."""
    data: jnp.ndarray = field(default_factory=lambda: jnp.zeros(STACK_SIZE, dtype=jnp.uint16))
    pointer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))


def _scalar(dtype, value=0):
    return field(default_factory=lambda: jnp.asarray(value, dtype=dtype))


class EmulatorState(PyTreeNode):
    """Main CHIP-8 emulator state.

    ``display`` is indexed ``[x, y]``. ``V[0xF]`` doubles as the flag register.
    ``wrap_sprites`` is a static policy: sprite pixels past the screen edge are
    clipped when False and wrapped around when True.
    """
    rng: jax.random.PRNGKey
    memory: jnp.ndarray = field(default_factory=lambda: jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8))
    pc: jnp.ndarray = _scalar(jnp.uint16, PROGRAM_START)
    opcode: jnp.ndarray = _scalar(jnp.uint16)
    display: jnp.ndarray = field(
        default_factory=lambda: jnp.zeros((SCREEN_WIDTH, SCREEN_HEIGHT), dtype=jnp.bool_)
    )
    draw_flag: jnp.ndarray = _scalar(jnp.bool_)
    stack: StackState = field(default_factory=StackState)
    delay_timer: jnp.ndarray = _scalar(jnp.uint8)
    sound_timer: jnp.ndarray = _scalar(jnp.uint8)
    sound_flag: jnp.ndarray = _scalar(jnp.bool_)
    keypad: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_KEYS, dtype=jnp.bool_))
    V: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8))
    I: jnp.ndarray = _scalar(jnp.uint16)
    wrap_sprites: bool = field(pytree_node=False, default=False)


def create_state(
    rng: Optional[jax.random.PRNGKey] = None,
    *,
    seed: Optional[int] = None,
    wrap_sprites: bool = False,
) -> EmulatorState:
    """Create initial emulator state with font data loaded.

    Args:
        rng: PRNG key backing CXNN. Takes precedence over ``seed``.
        seed: Integer seed used when no key is given. Defaults to the wall clock.
        wrap_sprites: Wrap sprite pixels around the screen instead of clipping them.
    """
    if rng is None:
        if seed is None:
            seed = time.time_ns() & 0x7FFFFFFF
        rng = jax.random.PRNGKey(seed)
    state = EmulatorState(rng, wrap_sprites=wrap_sprites)
    return state.replace(memory=state.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(FONT_DATA))


def next_random_byte(state: EmulatorState) -> tuple[EmulatorState, jnp.ndarray]:
    """Draw one random byte and advance the PRNG."""
    key, subkey = jax.random.split(state.rng)
    value = jax.random.randint(subkey, shape=(), minval=0, maxval=256, dtype=jnp.int32)
    return state.replace(rng=key), value.astype(jnp.uint8)


def _check_key(key: int) -> int:
    if not 0 <= key < NUM_KEYS:
        raise ValueError(f"Key index must be in [0x0, 0xF], got {key!r}")
    return key


def press_key(state: EmulatorState, key: int) -> EmulatorState:
    """Mark ``key`` as held down."""
    return state.replace(keypad=state.keypad.at[_check_key(key)].set(True))


def release_key(state: EmulatorState, key: int) -> EmulatorState:
    """Mark ``key`` as released."""
    return state.replace(keypad=state.keypad.at[_check_key(key)].set(False))


def set_keypad(state: EmulatorState, pressed: Iterable[int]) -> EmulatorState:
    """Replace the whole keypad: keys in ``pressed`` are down, the rest are up."""
    keypad = jnp.zeros(NUM_KEYS, dtype=jnp.bool_)
    for key in pressed:
        keypad = keypad.at[_check_key(key)].set(True)
    return state.replace(keypad=keypad)


def clear_draw_flag(state: EmulatorState) -> EmulatorState:
    """Acknowledge a repaint."""
    return state.replace(draw_flag=jnp.zeros((), dtype=jnp.bool_))


def clear_sound_flag(state: EmulatorState) -> EmulatorState:
    """Acknowledge the end-of-tone signal."""
    return state.replace(sound_flag=jnp.zeros((), dtype=jnp.bool_))
