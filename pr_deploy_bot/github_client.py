"""
Async GitHub API client for the PR deployment bot.

Covers the calls the bot needs: open pull requests, their commit
statuses, and issue comments (list, fetch, delete, create). List
endpoints are followed across pages via the ``Link`` header.
"""

from typing import Any, Dict, List, Optional

import httpx

from .api_client import AsyncAPIClient
from .config.settings import Settings
from .models import Comment, PullRequest, StatusEntry
from .utils.exceptions import TransportError

PAGE_SIZE = 100


class AsyncGitHubClient(AsyncAPIClient):
    """
    Async client for the GitHub REST API.

    Authenticates with basic credentials (username and token).
    """

    service_name = "github"

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(
            base_url=settings.github_api_url,
            headers=settings.get_github_headers(),
            timeout=settings.timeout_seconds,
            max_parallel_requests=settings.max_parallel_requests,
            transport=transport
        )
        self.owner = settings.repo_owner
        self.repo = settings.repo_name

    def repo_url(self, path: str) -> str:
        return self.url(f"repos/{self.owner}/{self.repo}/{path.lstrip('/')}")

    async def get_paginated(self, url: str, params: Optional[Dict[str, Any]] = None) -> List[Any]:
        """
        Fetch every page of a list endpoint.

        Args:
            url: First page url
            params: Query parameters for the first page

        Returns:
            Concatenated items of all pages

        Raises:
            TransportError: If any page fails
        """
        items: List[Any] = []
        query = {"per_page": PAGE_SIZE, **(params or {})}
        next_url: Optional[str] = url
        pages = 0

        while next_url:
            response = await self.request("GET", next_url, params=query)
            payload = self.decode(response)
            if not isinstance(payload, list):
                raise TransportError(f"Expected a list from {self.service_name}", endpoint=next_url)
            items.extend(payload)
            pages += 1

            next_url = response.links.get("next", {}).get("url")
            # the next link already carries the query string
            query = None

        self.logger.debug(f"Fetched {len(items)} items from {url} in {pages} page(s)")
        return items

    async def list_open_pull_requests(self) -> List[PullRequest]:
        """
        Raises:
            TransportError: If the pull request listing fails
        """
        url = self.repo_url("pulls")
        payload = await self.get_paginated(url, {"state": "open"})
        pull_requests = self.parse_list(PullRequest, payload, url)

        self.logger.info(
            "Retrieved open pull requests",
            extra={"repository": f"{self.owner}/{self.repo}", "pull_requests_count": len(pull_requests)}
        )
        return pull_requests

    async def get_statuses(self, statuses_url: str) -> List[StatusEntry]:
        """
        Fetch the status collection of one pull request.

        Args:
            statuses_url: ``_links.statuses.href`` of the pull request

        Raises:
            TransportError: If the statuses cannot be retrieved
        """
        payload = await self.get_paginated(statuses_url)
        return self.parse_list(StatusEntry, payload, statuses_url)

    def comments_url(self, issue_number: int) -> str:
        return self.repo_url(f"issues/{issue_number}/comments")

    async def list_issue_comments(self, issue_number: int) -> List[Comment]:
        """
        Raises:
            TransportError: If the comment listing fails
        """
        url = self.comments_url(issue_number)
        payload = await self.get_paginated(url)
        comments = self.parse_list(Comment, payload, url)

        self.logger.info(
            "Retrieved pull request comments",
            extra={"issue_number": issue_number, "comments_count": len(comments)}
        )
        return comments

    async def get_comment(self, comment_url: str) -> Comment:
        """
        Re-fetch a single comment to read its full body.

        Raises:
            TransportError: If the comment cannot be retrieved
        """
        response = await self.request("GET", comment_url)
        return self.parse(Comment, self.decode(response), comment_url)

    async def delete_comment(self, comment_url: str) -> bool:
        """
        Delete a comment, best effort.

        A rejected deletion (for example a comment already removed by a
        concurrent run) is logged and reported as ``False``.

        Returns:
            True if the host confirmed the deletion

        Raises:
            TransportError: If the request could not be sent at all
        """
        response = await self.request("DELETE", comment_url, check_status=False)
        if response.is_success:
            self.logger.debug(f"Deleted comment {comment_url}")
            return True

        self.logger.warning(
            "Comment deletion was not confirmed",
            extra={"comment_url": comment_url, "status_code": response.status_code}
        )
        return False

    async def post_issue_comment(self, issue_number: int, body: str) -> Comment:
        """
        Post a new comment on a pull request.

        Raises:
            TransportError: If the comment cannot be created
        """
        url = self.comments_url(issue_number)
        response = await self.request("POST", url, json={"body": body})
        comment = self.parse(Comment, self.decode(response), url)

        self.logger.info(
            "Successfully posted comment",
            extra={"issue_number": issue_number, "comment_id": comment.id, "body_length": len(body)}
        )
        return comment
