"""CHIP-8 virtual machine package."""

from chipvm.state import (
    EmulatorState, StackState, create_state, next_random_byte,
    press_key, release_key, set_keypad, clear_draw_flag, clear_sound_flag
)
from chipvm.emulator import execute, fetch, step, load_program, load_rom
from chipvm.decode import DecodedInstruction, decode
from chipvm.timers import tick
from chipvm.errors import (
    Outcome, raise_for_outcome, ChipVMError, RomLoadError, RomTooLargeError,
    EmulationFault, UnknownInstructionError, StackOverflowError, StackUnderflowError,
    MemoryAccessError, ProgramCounterError
)
from chipvm.constants import *
from chipvm.runner import run, run_frame, run_frames
from chipvm.rendering import display_to_rgb, create_color_scheme, save_frame

__all__ = [
    "EmulatorState",
    "StackState",
    "create_state",
    "next_random_byte",
    "press_key",
    "release_key",
    "set_keypad",
    "clear_draw_flag",
    "clear_sound_flag",
    "fetch",
    "execute",
    "step",
    "tick",
    "load_program",
    "load_rom",
    "DecodedInstruction",
    "decode",
    "Outcome",
    "raise_for_outcome",
    "ChipVMError",
    "RomLoadError",
    "RomTooLargeError",
    "EmulationFault",
    "UnknownInstructionError",
    "StackOverflowError",
    "StackUnderflowError",
    "MemoryAccessError",
    "ProgramCounterError",
    "run",
    "run_frame",
    "run_frames",
    "PROGRAM_START",
    "FONT_START",
    "MEMORY_SIZE",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "display_to_rgb",
    "create_color_scheme",
    "save_frame",
]
