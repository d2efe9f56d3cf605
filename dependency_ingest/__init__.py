"""
Dependency Ingest

Extract per-version runtime and development dependencies from package
registry metadata into flat CSV files.
"""

__version__ = "0.1.0"

from .cli import main

__all__ = ["main"]
