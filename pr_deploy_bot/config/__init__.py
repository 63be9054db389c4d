"""
Configuration package for the PR deployment bot.
"""

from .settings import (
    Settings,
    DEFAULT_COMMENT_MESSAGE,
    DEFAULT_DEPLOYMENT_CONTEXT,
    DEFAULT_DEPLOYMENT_DOMAIN,
)

__all__ = [
    "Settings",
    "DEFAULT_COMMENT_MESSAGE",
    "DEFAULT_DEPLOYMENT_CONTEXT",
    "DEFAULT_DEPLOYMENT_DOMAIN",
]
