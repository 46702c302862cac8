"""Run configuration for headless sessions."""

import dataclasses
from typing import Any, Dict, Optional

from chipvm.constants import TIMER_FREQUENCY
from chipvm.rendering import create_color_scheme


@dataclasses.dataclass
class RunConfig:
    """Settings for one headless emulation session.

    Attributes:
        rom_path: Path to the CHIP-8 program image
        instruction_frequency: Instructions per second the program expects (typically 700)
        timer_frequency: Timer tick rate in Hz
        frames: Number of timer periods to emulate
        wrap_sprites: Wrap sprite pixels around the screen instead of clipping them
        seed: PRNG seed for CXNN, wall clock when None
        log_level: Minimum level printed by the console loggers
        progress: Show a progress bar while running
        screenshot: Save the final display to this image file
        scale: Upscaling factor for the screenshot
        color_scheme: Color scheme for the screenshot
    """
    rom_path: str
    instruction_frequency: int = 700
    timer_frequency: int = TIMER_FREQUENCY
    frames: int = 600
    wrap_sprites: bool = False
    seed: Optional[int] = None
    log_level: str = "INFO"
    progress: bool = False
    screenshot: Optional[str] = None
    scale: int = 8
    color_scheme: str = "classic"

    def __post_init__(self):
        if self.instruction_frequency <= 0:
            raise ValueError(f"instruction_frequency must be positive, got {self.instruction_frequency}")
        if self.timer_frequency <= 0:
            raise ValueError(f"timer_frequency must be positive, got {self.timer_frequency}")
        if self.frames < 0:
            raise ValueError(f"frames must be non-negative, got {self.frames}")
        if self.scale < 1:
            raise ValueError(f"scale must be a positive integer, got {self.scale}")
        create_color_scheme(self.color_scheme)

    @property
    def instructions_per_frame(self) -> int:
        """Number of instructions executed between two timer ticks (at least one)."""
        return max(1, self.instruction_frequency // self.timer_frequency)

    def from_seconds(self, seconds: float) -> "RunConfig":
        """Set session length from emulated wall-clock time."""
        if seconds < 0:
            raise ValueError(f"seconds must be non-negative, got {seconds}")
        self.frames = int(seconds * self.timer_frequency)
        return self

    def to_dict(self) -> Dict[str, Any]:
        config = dataclasses.asdict(self)
        config["instructions_per_frame"] = self.instructions_per_frame
        return config
