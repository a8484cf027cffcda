"""Utility modules for looptile.

Provides logging configuration.
"""

from looptile.utils.logging import MultilineFormatter, setup_logging

__all__ = ["setup_logging", "MultilineFormatter"]
