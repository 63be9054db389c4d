"""
Utilities module for the PR deployment bot.
"""

from .logger import setup_logging, get_logger
from .exceptions import DeployBotError, ConfigError, TransportError

__all__ = [
    "setup_logging",
    "get_logger",
    "DeployBotError",
    "ConfigError",
    "TransportError",
]
