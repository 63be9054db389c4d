"""
Keeps exactly one "deployment ready" comment on a pull request.

Earlier notification comments are recognised by their text: the
configured message, a space, then a deployment url. They are deleted
and a fresh comment with the new deployment url is posted.
"""

from typing import Iterator, List, Optional

from .config.settings import Settings
from .github_client import AsyncGitHubClient
from .models import Comment, CommentPostResult
from .utils.exceptions import ConfigError
from .utils.logger import get_logger

logger = get_logger(__name__)

URL_SCHEME = "https://"

# Punctuation that may follow a url in prose without being part of it
TRAILING_PUNCTUATION = ".,;:!?)]>'\""


class DeploymentCommentMatcher:
    """
    Recognises deployment notification comments.

    The message is matched as a literal string, so characters such as
    ``.`` or ``?`` in it carry no special meaning. The url following the
    message must use https and its host must end with the deployment
    domain; an optional path or trailing slash is allowed.
    """

    def __init__(self, message: str, deployment_domain: str):
        self.message = message
        self.deployment_domain = deployment_domain
        self.needle = f"{message} {URL_SCHEME}"

    def is_deployment_host(self, host: str) -> bool:
        return len(host) > len(self.deployment_domain) and host.endswith(self.deployment_domain)

    def find_urls(self, body: str) -> Iterator[str]:
        """Yield every deployment url announced in ``body``."""
        start = body.find(self.needle)
        while start != -1:
            url_start = start + len(self.needle) - len(URL_SCHEME)
            url_end = url_start
            while url_end < len(body) and not body[url_end].isspace():
                url_end += 1

            url = body[url_start:url_end].rstrip(TRAILING_PUNCTUATION)
            host = url[len(URL_SCHEME):].split("/", 1)[0]
            if self.is_deployment_host(host):
                yield url

            start = body.find(self.needle, start + 1)

    def matches(self, body: Optional[str]) -> bool:
        if not body:
            return False
        return next(self.find_urls(body), None) is not None


def parse_pull_request_number(pr_url: str, prefix: str) -> int:
    """
    Extract the pull request number from its browser url.

    Args:
        pr_url: e.g. ``https://github.com/acme/web/pull/42``
        prefix: e.g. ``https://github.com/acme/web/pull/``

    Raises:
        ConfigError: If the url does not belong to the repository
    """
    if not pr_url.startswith(prefix):
        raise ConfigError(
            f"Pull request url {pr_url} does not start with {prefix}",
            config_key="pr_url"
        )

    number = pr_url[len(prefix):].strip("/")
    if not number.isdigit():
        raise ConfigError(
            f"Pull request url {pr_url} does not end with a pull request number",
            config_key="pr_url"
        )
    return int(number)


def format_comment(message: str, deployment_url: str) -> str:
    return f"{message} {deployment_url}"


async def sync_comment(
    settings: Settings,
    github_client: Optional[AsyncGitHubClient] = None
) -> CommentPostResult:
    """
    Replace earlier deployment comments on a pull request with a new one.

    Args:
        settings: Configuration; comment options must be present
        github_client: GitHub client (created from settings if omitted)

    Returns:
        The posted comment and the urls of the comments it replaced

    Raises:
        ConfigError: If a required option is missing or the PR url is invalid
        TransportError: If listing, fetching or posting fails
    """
    settings.validate_for_comment()
    issue_number = parse_pull_request_number(settings.pr_url, settings.pull_request_url_prefix)
    matcher = DeploymentCommentMatcher(settings.comment_message, settings.deployment_domain)
    body = format_comment(settings.comment_message, settings.deployment_url)
    if not matcher.matches(body):
        logger.warning(
            "Posted comment will not be replaced by later runs; the deployment url "
            "must use https on a host under the deployment domain",
            extra={
                "deployment_url": settings.deployment_url,
                "deployment_domain": settings.deployment_domain
            }
        )

    github = github_client or AsyncGitHubClient(settings)

    async with github:
        listed = await github.list_issue_comments(issue_number)
        comments: List[Comment] = await github.gather(github.get_comment(c.url) for c in listed)

        stale = [comment for comment in comments if matcher.matches(comment.body)]
        confirmed = await github.gather(github.delete_comment(comment.url) for comment in stale)

        logger.info(
            "Removed previous deployment comments",
            extra={
                "issue_number": issue_number,
                "comments_count": len(comments),
                "matched_count": len(stale),
                "deleted_count": sum(confirmed)
            }
        )

        posted = await github.post_issue_comment(issue_number, body)

    return CommentPostResult(
        comment=posted,
        deleted_comment_urls=[comment.url for comment, ok in zip(stale, confirmed) if ok]
    )
