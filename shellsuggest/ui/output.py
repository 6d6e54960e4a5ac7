"""
UI output management with color-coded terminal output.

Color is only emitted when the target stream is a terminal, so output piped
into scripts (or captured by the shell widget) stays plain.
"""

import sys
from typing import Optional, TextIO


TEXT_COLOR_MAPPING = {
    "blue": "36;1",
    "yellow": "33;1",
    "green": "32;1",
    "red": "31;1",
}


def get_colored_text(text: str, color: str) -> str:
    """
    Get colored text.

    Raises:
        ValueError: If the specified color is not supported
    """
    if color not in TEXT_COLOR_MAPPING:
        raise ValueError(
            f"Unsupported color: {color}. Available colors: {', '.join(TEXT_COLOR_MAPPING.keys())}"
        )

    color_str = TEXT_COLOR_MAPPING[color]
    return f"\u001b[{color_str}m{text}\u001b[0m"


class UIManager:
    """Manages colored status output for shellsuggest."""

    def __init__(self, file: Optional[TextIO] = None, color: Optional[bool] = None):
        """
        Args:
            file: Stream to write to (default: sys.stdout at call time)
            color: Force color on/off (default: only when file is a tty)
        """
        self.file = file
        self.color = color

    def success(self, message: str) -> None:
        """Print success message in green."""
        self._print_colored(message, "green")

    def error(self, message: str) -> None:
        """Print error message in red."""
        self._print_colored(message, "red")

    def warning(self, message: str) -> None:
        """Print warning message in yellow."""
        self._print_colored(message, "yellow")

    def info(self, message: str) -> None:
        """Print info message in blue."""
        self._print_colored(message, "blue")

    def _print_colored(self, text: str, color: str, end: str = "\n") -> None:
        file = self.file or sys.stdout
        use_color = self.color if self.color is not None else file.isatty()
        if use_color:
            text = get_colored_text(text, color)
        print(text, end=end, file=file)
        file.flush()
