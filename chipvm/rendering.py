"""Conversion of the display buffer to images."""

from typing import Dict, Tuple

import jax.numpy as jnp
import numpy as np
from PIL import Image

from chipvm.constants import SCREEN_WIDTH, SCREEN_HEIGHT

Color = Tuple[int, int, int]

# name -> (on_color, off_color)
COLOR_SCHEMES: Dict[str, Tuple[Color, Color]] = {
    "classic": ((0, 255, 0), (0, 0, 0)),
    "amber": ((255, 176, 0), (0, 0, 0)),
    "white": ((255, 255, 255), (0, 0, 0)),
    "blue": ((0, 255, 255), (0, 0, 64)),
    "retro": ((255, 255, 0), (64, 0, 64)),
}


def create_color_scheme(scheme: str = "classic") -> Tuple[Color, Color]:
    """Return ``(on_color, off_color)`` for a named scheme."""
    try:
        return COLOR_SCHEMES[scheme]
    except KeyError:
        raise ValueError(
            f"Unknown color scheme '{scheme}'. Available: {list(COLOR_SCHEMES)}"
        ) from None


def display_to_rgb(
    display: jnp.ndarray,
    scale: int = 8,
    on_color: Color = COLOR_SCHEMES["classic"][0],
    off_color: Color = COLOR_SCHEMES["classic"][1],
) -> np.ndarray:
    """Convert the ``[x, y]`` display buffer to an image array.

    Args:
        display: Boolean array of shape (64, 32)
        scale: Size in image pixels of one display pixel
        on_color: RGB color for lit pixels
        off_color: RGB color for dark pixels

    Returns:
        uint8 array of shape (32 * scale, 64 * scale, 3), rows are y
    """
    if scale < 1:
        raise ValueError(f"scale must be a positive integer, got {scale}")

    pixels = np.asarray(display, dtype=np.bool_)
    if pixels.shape != (SCREEN_WIDTH, SCREEN_HEIGHT):
        raise ValueError(f"Expected display shape ({SCREEN_WIDTH}, {SCREEN_HEIGHT}), got {pixels.shape}")

    palette = np.array([off_color, on_color], dtype=np.uint8)
    frame = palette[pixels.T.astype(np.intp)]
    return frame.repeat(scale, axis=0).repeat(scale, axis=1)


def save_frame(
    display: jnp.ndarray,
    filename: str,
    scale: int = 8,
    color_scheme: str = "classic",
) -> None:
    """Save a single display buffer as an image (format chosen from the extension)."""
    on_color, off_color = create_color_scheme(color_scheme)
    frame = display_to_rgb(display, scale=scale, on_color=on_color, off_color=off_color)
    Image.fromarray(frame).save(filename)
