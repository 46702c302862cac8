"""CHIP-8 display operations."""

import jax.numpy as jnp
from chipvm.state import EmulatorState
from chipvm.decode import DecodedInstruction
from chipvm.constants import (
    FLAG_REGISTER, MEMORY_SIZE, SCREEN_WIDTH, SCREEN_HEIGHT, SPRITE_WIDTH
)
from chipvm.errors import Outcome, fault_if

# Pre-computed coordinate grids for display operations
xx, yy = jnp.meshgrid(jnp.arange(SCREEN_WIDTH), jnp.arange(SCREEN_HEIGHT), indexing='ij')


def sprite_mask(state: EmulatorState, instruction: DecodedInstruction) -> jnp.ndarray:
    """Boolean (64, 32) mask of the display cells the sprite bits set.

    Offsets are measured from the sprite origin (VX, VY). Off-screen pixels are
    simply absent from the grid (clipping) unless ``wrap_sprites`` folds the
    offsets modulo the screen size.
    """
    sprite_x = jnp.astype(state.V[instruction.x], jnp.int32)
    sprite_y = jnp.astype(state.V[instruction.y], jnp.int32)
    height = jnp.astype(instruction.n, jnp.int32)

    col_offset = xx - sprite_x
    row_offset = yy - sprite_y
    if state.wrap_sprites:
        col_offset = col_offset % SCREEN_WIDTH
        row_offset = row_offset % SCREEN_HEIGHT

    covered = (col_offset >= 0) & (col_offset < SPRITE_WIDTH) & (row_offset >= 0) & (row_offset < height)

    rows = jnp.clip(row_offset, 0, 15)
    cols = jnp.clip(col_offset, 0, SPRITE_WIDTH - 1)
    sprite_bytes = jnp.astype(state.memory[jnp.astype(state.I, jnp.int32) + rows], jnp.int32)
    bits = (sprite_bytes >> (SPRITE_WIDTH - 1 - cols)) & 1
    return (bits == 1) & covered


def execute_display(state: EmulatorState, instruction: DecodedInstruction):
    """DXYN - Draw sprite at (VX, VY) with height N."""
    out_of_bounds = jnp.astype(state.I, jnp.int32) + instruction.n > MEMORY_SIZE
    sprite = sprite_mask(state, instruction)
    collision = jnp.any(state.display & sprite)

    return state.replace(
        display=state.display ^ sprite,
        V=state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8)),
        draw_flag=jnp.ones((), dtype=jnp.bool_),
    ), fault_if(out_of_bounds, Outcome.MEMORY_OUT_OF_BOUNDS)
