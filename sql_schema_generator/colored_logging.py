"""
Colored console logging for SQL Schema Generator.

The CLI installs a ColoredFormatter on the root logger. Library modules only
use `logging.getLogger(__name__)` and never configure handlers themselves.
"""

import logging
import sys
from typing import Optional


class ColoredFormatter(logging.Formatter):
    """
    Logging formatter that adds ANSI color codes to console output.

    Records logged through `log_success`, `log_progress` and `log_section`
    carry a `style` attribute that takes precedence over the level color.
    """

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '',
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }

    STYLES = {
        'success': '\033[92m\033[1m',   # Bold bright green
        'progress': '\033[94m',         # Bright blue
        'section': '\033[1m\033[96m',   # Bold bright cyan
    }

    RESET = '\033[0m'

    def __init__(self, fmt: Optional[str] = None, use_colors: bool = True, stream=None):
        """
        Initialize the colored formatter.

        Args:
            fmt: Log format string (uses default if None)
            use_colors: Whether to use colors at all
            stream: Stream the handler writes to; colors are only used on a TTY
        """
        if fmt is None:
            fmt = "%(levelname)s: %(message)s"
        super().__init__(fmt)

        stream = stream if stream is not None else sys.stderr
        self.use_colors = use_colors and hasattr(stream, 'isatty') and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with colors."""
        formatted_message = super().format(record)
        if not self.use_colors:
            return formatted_message

        # Errors and warnings keep their level color whatever the style
        if record.levelno >= logging.WARNING:
            color = self.COLORS.get(record.levelname, '')
        else:
            color = self.STYLES.get(getattr(record, 'style', None), '') or self.COLORS.get(record.levelname, '')

        if not color:
            return formatted_message
        return f"{color}{formatted_message}{self.RESET}"


def setup_colored_logging(level: int = logging.INFO, use_colors: bool = True) -> None:
    """
    Set up colored logging on the root logger.

    Args:
        level: Logging level (default: INFO)
        use_colors: Whether to use colors (default: True)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers to avoid duplication
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(ColoredFormatter(use_colors=use_colors, stream=sys.stderr))
    console_handler.setLevel(level)

    root_logger.addHandler(console_handler)
    root_logger.setLevel(level)


def log_success(logger: logging.Logger, message: str) -> None:
    """Log a success message."""
    logger.info(f"✓ {message}", extra={'style': 'success'})


def log_progress(logger: logging.Logger, message: str) -> None:
    """Log a progress message."""
    logger.info(f"→ {message}", extra={'style': 'progress'})


def log_section(logger: logging.Logger, section_name: str) -> None:
    """Log a section header."""
    separator = "=" * 60
    logger.info(separator, extra={'style': 'section'})
    logger.info(f"  {section_name.upper()}", extra={'style': 'section'})
    logger.info(separator, extra={'style': 'section'})
