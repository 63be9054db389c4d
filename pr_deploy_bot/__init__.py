"""
PR deployment bot.

Cleans up preview deployments that no open pull request references and
keeps a single "deployment ready" comment on each pull request.
"""

__version__ = "1.0.0"

from .comment_sync import DeploymentCommentMatcher, sync_comment
from .config.settings import Settings
from .models import CommentPostResult, DeletionResult
from .reconciler import reconcile
from .utils.exceptions import ConfigError, DeployBotError, TransportError

__all__ = [
    "__version__",
    "Settings",
    "reconcile",
    "sync_comment",
    "DeploymentCommentMatcher",
    "DeletionResult",
    "CommentPostResult",
    "DeployBotError",
    "ConfigError",
    "TransportError",
]
