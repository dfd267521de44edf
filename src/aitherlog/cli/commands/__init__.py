"""
CLI commands module for aitherlog
"""

from . import config, logs

__all__ = ["config", "logs"]
