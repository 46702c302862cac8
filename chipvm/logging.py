"""Console logging utilities for chipvm sessions.

This module provides a small levelled console logger, a session logger that
reports faults and run statistics, and real-time progress bars for JAX scans
using io_callback.
"""

import time
import sys
from typing import Any, Dict, Optional, Callable, Tuple

import jax
from jax.experimental import io_callback

from tqdm import tqdm

from chipvm.errors import Outcome

LEVEL_ORDER = {
    "DEBUG": 0,
    "INFO": 1,
    "WARNING": 2,
    "ERROR": 3,
    "CRITICAL": 4,
}


def check_level(log_level: str) -> str:
    """Return the upper-cased level name, or raise ValueError if it is unknown."""
    level = log_level.upper()
    if level not in LEVEL_ORDER:
        raise ValueError(f"Unknown log level '{log_level}'. Available: {list(LEVEL_ORDER)}")
    return level


class ConsoleLogger:
    """Flexible console logger with levels, timestamps and colors."""

    def __init__(
        self,
        name: str = "chipvm",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
    ):
        self.name = name
        self.log_level = check_level(log_level)
        self.use_colors = (
            use_colors and hasattr(sys.stdout, "isatty") and sys.stdout.isatty()
        )
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

        self.colors = (
            {
                "DEBUG": "\033[36m",
                "INFO": "\033[32m",
                "WARNING": "\033[33m",
                "ERROR": "\033[31m",
                "CRITICAL": "\033[35m",
                "RESET": "\033[0m"
            }
            if self.use_colors
            else {
                k: ""
                for k in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "RESET"]
            }
        )

        self.level_order = LEVEL_ORDER

    def set_level(self, log_level: str):
        """Change the minimum level that gets printed."""
        self.log_level = check_level(log_level)

    def _should_log(self, level: str) -> bool:
        """Check if message should be logged based on current log level."""
        return self.level_order.get(level.upper(), 1) >= self.level_order.get(
            self.log_level, 1
        )

    def _format_message(self, level: str, message: str) -> str:
        """Format log message with timestamp, level, and colors."""
        timestamp = (
            f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        )
        level_str = f"[{level:>8s}]"
        name_str = f"[{self.name}]"

        if self.use_colors:
            color = self.colors.get(level.upper(), "")
            reset = self.colors["RESET"]
            level_str = f"{color}{level_str}{reset}"

        return f"{timestamp}{level_str}{name_str} {message}"

    def log(self, level: str, message: str):
        """Log a message at the specified level."""
        if self._should_log(level):
            formatted = self._format_message(level, message)
            print(formatted, flush=True)

    def debug(self, message: str):
        """Log debug message."""
        self.log("DEBUG", message)

    def info(self, message: str):
        """Log info message."""
        self.log("INFO", message)

    def warning(self, message: str):
        """Log warning message."""
        self.log("WARNING", message)

    def error(self, message: str):
        """Log error message."""
        self.log("ERROR", message)

    def critical(self, message: str):
        """Log critical message."""
        self.log("CRITICAL", message)


class EmulatorLogger(ConsoleLogger):
    """Session logger reporting configuration, faults and run statistics."""

    def __init__(self, name: str = "Session", **kwargs):
        super().__init__(name, **kwargs)
        self.faults = []

    def log_session_start(self, config: Dict[str, Any]):
        """Log session configuration and start message."""
        self.info("=" * 60)
        self.info("Starting session with configuration:")
        for key, value in config.items():
            self.info(f"  {key}: {value}")
        self.info("=" * 60)

    def log_fault(self, outcome, state):
        """Log a step that stopped on a fault.

        ``state`` is the unchanged state the faulting step was applied to, so its
        program counter still points at the offending instruction.
        """
        outcome = Outcome(int(outcome))
        pc = int(state.pc)
        if pc + 1 < state.memory.shape[0]:
            word = f"0x{(int(state.memory[pc]) << 8) | int(state.memory[pc + 1]):04X}"
        else:
            word = "----"
        self.faults.append({"outcome": outcome, "pc": pc})
        self.error(f"{outcome.name} at pc=0x{pc:03X} (opcode {word})")

    def log_session_end(self, stats: Dict[str, Any]):
        """Log session completion with final statistics."""
        elapsed = time.time() - self.start_time
        self.info("=" * 60)
        self.info(f"Session finished in {elapsed:.2f}s")
        for key, value in stats.items():
            if isinstance(value, float):
                self.info(f"  {key}: {value:.4f}")
            else:
                self.info(f"  {key}: {value}")
        self.info("=" * 60)


_LOGGERS: Dict[str, ConsoleLogger] = {}
_DEFAULT_LEVEL = "WARNING"


def get_logger(name: str) -> ConsoleLogger:
    """Shared logger for ``name``. Library loggers stay quiet below WARNING."""
    if name not in _LOGGERS:
        _LOGGERS[name] = ConsoleLogger(name, log_level=_DEFAULT_LEVEL)
    return _LOGGERS[name]


def set_log_level(log_level: str):
    """Set the level of every shared logger, including ones created later."""
    global _DEFAULT_LEVEL
    level = check_level(log_level)
    _DEFAULT_LEVEL = level
    for logger in _LOGGERS.values():
        logger.set_level(level)


def build_tqdm_progress_bar(
    n: int,
    print_rate: Optional[int] = None,
    desc: str = None,
    **kwargs,
) -> Tuple[Callable, Callable]:
    """Build real-time tqdm progress bar for JAX computations."""
    if desc is None:
        desc = f"Running ({n:,} frames)"

    for kwarg in ("total", "mininterval", "maxinterval", "miniters"):
        kwargs.pop(kwarg, None)

    tqdm_bars = {}

    if print_rate is None:
        print_rate = max(1, min(n // 20, 50))
    else:
        print_rate = max(1, min(print_rate, n))

    # Frames still unreported when the last iteration closes the bar
    remainder = n - print_rate * ((n - 1) // print_rate)

    def _define_tqdm():
        tqdm_bars[0] = tqdm(total=n, desc=desc, unit="frame", **kwargs)

    def _update_tqdm(steps):
        if 0 in tqdm_bars:
            tqdm_bars[0].update(int(steps))

    def _close_tqdm():
        if 0 in tqdm_bars:
            tqdm_bars[0].close()

    def _update_progress_bar(iter_num):
        _ = jax.lax.cond(
            iter_num == 0,
            lambda _: io_callback(_define_tqdm, None, ordered=True),
            lambda _: None,
            operand=None,
        )

        _ = jax.lax.cond(
            (iter_num % print_rate == 0) & (iter_num > 0),
            lambda _: io_callback(_update_tqdm, None, print_rate, ordered=True),
            lambda _: None,
            operand=None,
        )

    def _finish_tqdm():
        _update_tqdm(remainder)
        _close_tqdm()

    def close_progress_bar(result, iter_num):
        _ = jax.lax.cond(
            iter_num == n - 1,
            lambda _: io_callback(_finish_tqdm, None, ordered=True),
            lambda _: None,
            operand=None,
        )
        return result

    return _update_progress_bar, close_progress_bar


def scan_with_progress(
    n: int,
    print_rate: Optional[int] = None,
    desc: str = None,
    **tqdm_kwargs,
) -> Callable:
    """Decorator to add real-time progress bar to JAX scan operations.

    The scanned sequence must start with the iteration number.
    """
    _update_progress_bar, close_progress_bar = build_tqdm_progress_bar(
        n, print_rate, desc, **tqdm_kwargs
    )

    def _scan_progress_decorator(func):
        def wrapper_with_progress(carry, x):
            if isinstance(x, tuple):
                iter_num = x[0]
            else:
                iter_num = x

            _update_progress_bar(iter_num)

            result = func(carry, x)

            return close_progress_bar(result, iter_num)

        return wrapper_with_progress

    return _scan_progress_decorator
