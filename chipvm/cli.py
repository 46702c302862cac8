"""Headless command line runner."""

import argparse
import time
from typing import List, Optional

from chipvm.config import RunConfig
from chipvm.errors import Outcome, RomLoadError
from chipvm.emulator import load_rom
from chipvm.logging import EmulatorLogger, set_log_level
from chipvm.rendering import save_frame
from chipvm.runner import run_frames
from chipvm.state import create_state

EXIT_OK = 0
EXIT_FAULT = 1
EXIT_LOAD_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chipvm",
        description="Run a CHIP-8 program headless and report how the session ended",
    )
    parser.add_argument("rom", type=str, help="Path to the CHIP-8 program image")
    parser.add_argument(
        "--frames",
        type=int,
        default=600,
        help="Number of 60 Hz frames to emulate (default: 600)",
    )
    parser.add_argument(
        "--seconds",
        type=float,
        default=None,
        help="Emulated duration in seconds, overrides --frames",
    )
    parser.add_argument(
        "--ips",
        type=int,
        default=700,
        help="Instructions per second (default: 700)",
    )
    parser.add_argument(
        "--wrap-sprites",
        action="store_true",
        help="Wrap sprites around the screen edges instead of clipping them",
    )
    parser.add_argument("--seed", type=int, default=None, help="PRNG seed (default: wall clock)")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar")
    parser.add_argument(
        "--screenshot",
        type=str,
        default=None,
        help="Save the final display to this image file",
    )
    parser.add_argument("--scale", type=int, default=8, help="Screenshot upscaling factor (default: 8)")
    parser.add_argument(
        "--color-scheme",
        type=str,
        default="classic",
        help="Screenshot color scheme (default: classic)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Console log level (default: INFO)",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> RunConfig:
    config = RunConfig(
        rom_path=args.rom,
        instruction_frequency=args.ips,
        frames=args.frames,
        wrap_sprites=args.wrap_sprites,
        seed=args.seed,
        log_level=args.log_level,
        progress=args.progress,
        screenshot=args.screenshot,
        scale=args.scale,
        color_scheme=args.color_scheme,
    )
    if args.seconds is not None:
        config.from_seconds(args.seconds)
    return config


def run_session(config: RunConfig) -> int:
    """Load, run and report one session. Returns the process exit code."""
    set_log_level(config.log_level)
    logger = EmulatorLogger(log_level=config.log_level)
    logger.log_session_start(config.to_dict())

    state = create_state(seed=config.seed, wrap_sprites=config.wrap_sprites)
    try:
        state = load_rom(state, config.rom_path)
    except RomLoadError as e:
        logger.critical(str(e))
        return EXIT_LOAD_ERROR

    start = time.time()
    state, outcome, executed, frames = run_frames(
        state, config.frames, config.instructions_per_frame, config.progress
    )
    elapsed = time.time() - start

    exit_code = EXIT_OK
    if int(outcome) != Outcome.OK:
        logger.log_fault(outcome, state)
        exit_code = EXIT_FAULT

    if config.screenshot:
        save_frame(state.display, config.screenshot, scale=config.scale, color_scheme=config.color_scheme)
        logger.info(f"Saved final frame to {config.screenshot}")

    logger.log_session_end({
        "frames": int(frames),
        "instructions": int(executed),
        "outcome": Outcome(int(outcome)).name,
        "instructions_per_second": int(executed) / elapsed if elapsed > 0 else 0.0,
    })
    return exit_code


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = config_from_args(args)
    except ValueError as e:
        build_parser().error(str(e))
    return run_session(config)
