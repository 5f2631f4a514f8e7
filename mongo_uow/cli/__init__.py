"""
Command-line interface for MONGO_UOW.
"""

from .main import cli

__all__ = ["cli"]
