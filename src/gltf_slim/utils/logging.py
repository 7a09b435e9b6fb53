"""Colored logging and timing utilities for gltf-slim."""

import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass


# ANSI color codes
class Colors:
    """ANSI escape codes for terminal colors."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    CYAN = "\033[36m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_CYAN = "\033[96m"


def _supports_color() -> bool:
    """Check if terminal supports color output."""
    if not hasattr(sys.stdout, "isatty"):
        return False
    return sys.stdout.isatty()


_USE_COLOR = _supports_color()
_QUIET = False
_DEBUG = False


def set_quiet(quiet: bool) -> None:
    """Suppress informational output (warnings and errors still print)."""
    global _QUIET
    _QUIET = quiet


def set_debug(debug: bool) -> None:
    """Enable debug output."""
    global _DEBUG
    _DEBUG = debug


def is_quiet() -> bool:
    return _QUIET


def _c(color: str, text: str) -> str:
    """Apply color to text if supported."""
    if not _USE_COLOR:
        return text
    return f"{color}{text}{Colors.RESET}"


def bold(text: str) -> str:
    return _c(Colors.BOLD, text)


def dim(text: str) -> str:
    return _c(Colors.DIM, text)


def cyan(text: str) -> str:
    return _c(Colors.CYAN, text)


def bright_green(text: str) -> str:
    return _c(Colors.BRIGHT_GREEN, text)


def bright_yellow(text: str) -> str:
    return _c(Colors.BRIGHT_YELLOW, text)


def bright_red(text: str) -> str:
    return _c(Colors.BRIGHT_RED, text)


def bright_cyan(text: str) -> str:
    return _c(Colors.BRIGHT_CYAN, text)


# Log level formatting
def log_info(msg: str) -> None:
    """Print info message."""
    if not _QUIET:
        print(f"  {cyan('INFO')}  {msg}")


def log_ok(msg: str) -> None:
    """Print success message."""
    if not _QUIET:
        print(f"    {bright_green('OK')}  {msg}")


def log_warn(msg: str) -> None:
    """Print warning message."""
    print(f"  {bright_yellow('WARN')}  {msg}")


def log_debug(msg: str) -> None:
    """Print debug message (dimmed), only when debug output is enabled."""
    if _DEBUG:
        print(f" {dim('DEBUG')}  {dim(msg)}")


def log_step(current: int, total: int, msg: str) -> None:
    """Print step progress message."""
    if not _QUIET:
        step_str = f"[{current}/{total}]"
        print(f"\n{cyan(step_str)} {msg}")


def log_detail(msg: str, indent: int = 6) -> None:
    """Print indented detail message."""
    if not _QUIET:
        print(f"{' ' * indent}{msg}")


def log_timing(msg: str, seconds: float) -> None:
    """Print timing message with formatted duration."""
    if not _QUIET:
        time_str = format_duration(seconds)
        print(f"  {dim('TIME')}  {msg}: {bright_cyan(time_str)}")


def print_header(title: str, char: str = "=", width: int = 60) -> None:
    """Print a header with decorative borders."""
    if _QUIET:
        return
    border = char * width
    print(f"\n{cyan(border)}")
    print(f"  {bold(title)}")
    print(f"{cyan(border)}")


def print_section(title: str, char: str = "-", width: int = 60) -> None:
    """Print a section header."""
    if _QUIET:
        return
    border = char * width
    print(f"\n{dim(border)}")
    print(f"  {title}")
    print(f"{dim(border)}")


# Timing utilities
def format_duration(seconds: float) -> str:
    """Format seconds into human-readable duration."""
    if seconds < 0.001:
        return f"{seconds * 1000000:.0f}μs"
    elif seconds < 1:
        return f"{seconds * 1000:.1f}ms"
    elif seconds < 60:
        return f"{seconds:.2f}s"
    else:
        mins = int(seconds // 60)
        secs = seconds % 60
        return f"{mins}m {secs:.1f}s"


@dataclass
class TimingResult:
    """Result from a timed operation."""

    elapsed: float
    message: str


@contextmanager
def timed(description: str, print_on_exit: bool = True) -> Iterator[TimingResult]:
    """Context manager for timing operations.

    Usage:
        with timed("Pruning graph") as t:
            remove_all_unused(gltf)

        with timed("Encoding", print_on_exit=False) as t:
            write_glb(gltf)
        print(f"Took {t.elapsed}s")
    """
    result = TimingResult(elapsed=0.0, message=description)
    start = time.perf_counter()
    try:
        yield result
    finally:
        result.elapsed = time.perf_counter() - start
        if print_on_exit:
            log_timing(description, result.elapsed)


class StepTimer:
    """Track timing for multiple steps in a pipeline."""

    def __init__(self, total_steps: int) -> None:
        self.total = total_steps
        self.current = 0
        self.timings: list[tuple[str, float]] = []
        self._step_start: float = 0.0
        self._total_start: float = time.perf_counter()

    def step(self, message: str) -> None:
        """Start a new step, recording timing for previous step."""
        now = time.perf_counter()

        if self.current > 0 and self._step_start > 0 and self.timings:
            prev_name = self.timings[-1][0]
            self.timings[-1] = (prev_name, now - self._step_start)

        self.current += 1
        self._step_start = now
        self.timings.append((message, 0.0))
        log_step(self.current, self.total, message)

    def finish(self) -> None:
        """Finish timing and record final step."""
        now = time.perf_counter()
        if self._step_start > 0 and self.timings:
            prev_name = self.timings[-1][0]
            self.timings[-1] = (prev_name, now - self._step_start)

    def total_elapsed(self) -> float:
        """Get total elapsed time since timer started."""
        return time.perf_counter() - self._total_start

    def print_summary(self) -> None:
        """Print timing summary for all steps."""
        if _QUIET:
            return
        print_section("Timing Summary", char="-", width=50)
        for name, elapsed in self.timings:
            padding = 40 - len(name)
            print(f"  {name}{' ' * max(1, padding)}{bright_cyan(format_duration(elapsed))}")
        print(f"{dim('-' * 50)}")
        total = self.total_elapsed()
        print(f"  {bold('Total')}{' ' * 33}{bright_green(format_duration(total))}")


# Result formatting
def format_count(count: int, singular: str, plural: str | None = None) -> str:
    """Format count with proper singular/plural form."""
    if plural is None:
        plural = singular + "s"
    word = singular if count == 1 else plural
    return f"{count:,} {word}"


def format_bytes(size: int) -> str:
    """Format byte size in human-readable form."""
    if size < 1024:
        return f"{size} B"
    elif size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    elif size < 1024 * 1024 * 1024:
        return f"{size / 1024 / 1024:.2f} MB"
    else:
        return f"{size / 1024 / 1024 / 1024:.2f} GB"


def format_delta(before: int, after: int, unit: str = "") -> str:
    """Format a before/after change with color."""
    diff = after - before
    if diff == 0:
        return dim("no change")
    elif diff < 0:
        return bright_green(f"-{abs(diff):,}{unit}")
    else:
        return bright_red(f"+{diff:,}{unit}")
