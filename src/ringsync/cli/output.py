"""Terminal output helpers."""

import sys

GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
RED = "\033[31m"
RESET = "\033[0m"
CHECK = "✓"
BULLET = "•"
CROSS = "✗"
WARN = "!"


def _supports_color() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _colorize(text: str, color: str) -> str:
    if _supports_color():
        return f"{color}{text}{RESET}"
    return text


def success(message: str) -> None:
    """Print a line with a green check mark."""
    print(f"{_colorize(CHECK, GREEN)} {message}")


def info(message: str) -> None:
    """Print a line with a yellow bullet."""
    print(f"{_colorize(BULLET, YELLOW)} {message}")


def warning(message: str) -> None:
    """Print a line with a yellow exclamation mark."""
    print(f"{_colorize(WARN, YELLOW)} {message}")


def header(message: str) -> None:
    print(_colorize(message, BLUE))


def error(message: str) -> None:
    """Print a line with a red cross to stderr."""
    print(f"{_colorize(CROSS, RED)} {message}", file=sys.stderr)
