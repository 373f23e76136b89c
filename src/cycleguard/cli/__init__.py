"""
Command line interface for cycleguard.
"""

from cycleguard.cli.main import cli, main

__all__ = ["cli", "main"]
