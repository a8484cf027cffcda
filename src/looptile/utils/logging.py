"""Logging utilities for looptile.

The library only emits records through module loggers; applications call
``setup_logging`` to route them. IR dumps and access tables are logged as
multi-line messages, which ``MultilineFormatter`` keeps readable.
"""

import logging
import sys

__all__ = ["setup_logging", "MultilineFormatter"]


class MultilineFormatter(logging.Formatter):
    """Formatter that pads the first line to a fixed width and indents the rest.

    Attributes:
        msg_width: Width the first line is padded to before the metadata.
        show_metadata: Whether to append timestamp/level/name metadata.
        indent: Number of spaces prefixed to every continuation line.
    """

    def __init__(self, msg_width: int, show_metadata: bool, indent: int = 0) -> None:
        """Initialize the formatter.

        Args:
            msg_width: Width the first line is padded to before the metadata.
            show_metadata: Whether to append timestamp/level/name metadata.
            indent: Number of spaces prefixed to every continuation line.
        """
        super().__init__(datefmt="%Y-%m-%d %H:%M:%S")
        self.msg_width = msg_width
        self.show_metadata = show_metadata
        self.indent = indent

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record, keeping continuation lines under the message.

        Args:
            record: The log record to format.

        Returns:
            Formatted log message string.
        """
        first_line, *rest = record.getMessage().split("\n")
        if self.show_metadata:
            metadata = f"{self.formatTime(record)} - {record.levelname} - {record.name}"
            first_line = f"{first_line:<{self.msg_width}}{metadata}"
        pad = " " * self.indent
        return "\n".join([first_line, *(pad + line for line in rest)])


def setup_logging(
    log_file: str | None, level: int = logging.DEBUG, msg_width: int = 100, show_metadata: bool = False, indent: int = 0
) -> logging.Handler:
    """Route looptile logging through a multiline-aligned handler.

    Args:
        log_file: Path to the log file, or None to log to stderr.
        level: Logging level for the ``looptile`` logger.
        msg_width: Width for message alignment.
        show_metadata: Whether to append timestamp/level/name metadata to log lines.
        indent: Indentation of continuation lines.

    Returns:
        The installed handler, so callers can remove it again.
    """
    handler: logging.Handler
    if log_file is None:
        handler = logging.StreamHandler(sys.stderr)
    else:
        handler = logging.FileHandler(log_file, mode="w")
    handler.setFormatter(MultilineFormatter(msg_width=msg_width, show_metadata=show_metadata, indent=indent))
    package_logger = logging.getLogger("looptile")
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    return handler
