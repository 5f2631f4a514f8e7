"""
CLI commands.
"""

from .config import config
from .demo import demo
from .ping import ping

__all__ = ["config", "demo", "ping"]
