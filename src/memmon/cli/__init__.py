"""
Command-line interface for memmon.
"""

from .main import main, main_cli

__all__ = ["main", "main_cli"]
