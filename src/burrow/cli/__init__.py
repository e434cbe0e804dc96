"""
Command-line interface for burrow.
"""

from .main import main_cli, run_session

__all__ = ["main_cli", "run_session"]
