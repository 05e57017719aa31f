# nrtk_sync/__init__.py
"""
nrtk-sync package initializer.
Defines package version and exposes CLI.
"""
__version__ = "0.1.0"

# Expose CLI entry point
from nrtk_sync.cli import cli  # noqa: E402
