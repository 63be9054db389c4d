"""
Shared fixtures: settings and in-memory fakes of both platforms.

The fakes are served through ``httpx.MockTransport`` so the real clients
run unchanged against them.
"""
import json
import re
from typing import Any, Dict, List, Optional

import httpx
import pytest

from pr_deploy_bot.config.settings import Settings
from pr_deploy_bot.github_client import AsyncGitHubClient
from pr_deploy_bot.now_client import AsyncNowClient

GITHUB_API = "https://api.github.com"


class FakeNowAPI:
    """Deployment host holding deployments and aliases in memory."""

    def __init__(self):
        self.deployments: List[Dict[str, Any]] = []
        self.aliases: List[Dict[str, Any]] = []
        self.requests: List[httpx.Request] = []
        self.fail_deletes: Dict[str, int] = {}

    def add_deployment(self, uid: str, url: Optional[str], name: str = "web", **extra) -> None:
        deployment = {"uid": uid, "name": name, "state": "READY" if url else "BUILDING", **extra}
        if url is not None:
            deployment["url"] = url
        self.deployments.append(deployment)

    def add_alias(self, alias: str, deployment_url: str) -> None:
        self.aliases.append({"alias": alias, "deployment": {"url": deployment_url}})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "GET" and path == "/now/deployments":
            return httpx.Response(200, json={"deployments": self.deployments, "aliases": self.aliases})

        match = re.fullmatch(r"/now/deployments/([^/]+)", path)
        if request.method == "DELETE" and match:
            uid = match.group(1)
            if uid in self.fail_deletes:
                return httpx.Response(self.fail_deletes[uid], json={"error": {"code": "forbidden"}})
            before = len(self.deployments)
            self.deployments = [d for d in self.deployments if d["uid"] != uid]
            if len(self.deployments) == before:
                return httpx.Response(404, json={"error": {"code": "not_found"}})
            return httpx.Response(200, json={"uid": uid, "state": "DELETED"})

        return httpx.Response(404, json={"message": "Not Found"})

    def calls(self, method: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method]


class FakeGitHubAPI:
    """GitHub holding open pull requests, statuses and comments in memory."""

    def __init__(self, owner: str = "acme", repo: str = "web"):
        self.owner = owner
        self.repo = repo
        self.pulls: List[Dict[str, Any]] = []
        self.statuses: Dict[str, List[Dict[str, Any]]] = {}
        self.comments: Dict[int, Dict[str, Any]] = {}
        self.requests: List[httpx.Request] = []
        self.failing_paths: Dict[str, int] = {}
        self.failing_deletes: Dict[str, int] = {}
        self._next_comment_id = 1000

    @property
    def repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def add_pull(self, number: int, statuses: List[Dict[str, Any]]) -> str:
        href = f"{GITHUB_API}{self.repo_path}/statuses/sha{number}"
        self.pulls.append({
            "number": number,
            "state": "open",
            "_links": {"statuses": {"href": href}}
        })
        self.statuses[href] = statuses
        return href

    def add_comment(self, issue_number: int, body: str, login: str = "deploy-bot") -> str:
        comment_id = self._next_comment_id
        self._next_comment_id += 1
        url = f"{GITHUB_API}{self.repo_path}/issues/comments/{comment_id}"
        self.comments[comment_id] = {
            "id": comment_id,
            "url": url,
            "html_url": f"https://github.com/{self.owner}/{self.repo}/pull/{issue_number}#issuecomment-{comment_id}",
            "issue_number": issue_number,
            "body": body,
            "user": {"login": login},
        }
        return url

    def comments_on(self, issue_number: int) -> List[Dict[str, Any]]:
        return [c for c in self.comments.values() if c["issue_number"] == issue_number]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        path = request.url.path

        if path in self.failing_paths:
            return httpx.Response(self.failing_paths[path], json={"message": "Server Error"})

        if request.method == "GET" and path == f"{self.repo_path}/pulls":
            assert request.url.params.get("state") == "open"
            return httpx.Response(200, json=self.pulls)

        if request.method == "GET" and url in self.statuses:
            return httpx.Response(200, json=self.statuses[url])

        match = re.fullmatch(rf"{self.repo_path}/issues/(\d+)/comments", path)
        if match:
            issue_number = int(match.group(1))
            if request.method == "GET":
                # listing only carries references, bodies are truncated
                return httpx.Response(200, json=[
                    {"id": c["id"], "url": c["url"], "body": ""} for c in self.comments_on(issue_number)
                ])
            if request.method == "POST":
                body = json.loads(request.content)["body"]
                created_url = self.add_comment(issue_number, body)
                created = self.comments[int(created_url.rsplit("/", 1)[1])]
                return httpx.Response(201, json=created)

        match = re.fullmatch(rf"{self.repo_path}/issues/comments/(\d+)", path)
        if match:
            comment_id = int(match.group(1))
            if request.method == "DELETE" and url in self.failing_deletes:
                return httpx.Response(self.failing_deletes[url], json={"message": "Forbidden"})
            if comment_id not in self.comments:
                return httpx.Response(404, json={"message": "Not Found"})
            if request.method == "GET":
                return httpx.Response(200, json=self.comments[comment_id])
            if request.method == "DELETE":
                del self.comments[comment_id]
                return httpx.Response(204)

        return httpx.Response(404, json={"message": "Not Found"})

    def calls(self, method: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method]


@pytest.fixture
def settings():
    """Settings with every option both operations need"""
    return Settings(
        now_token="now-secret-token",
        github_username="deploy-bot",
        github_token="gh-secret-token",
        repo_owner="acme",
        repo_name="web",
        pr_url="https://github.com/acme/web/pull/7",
        deployment_url="https://new.now.sh",
    )


@pytest.fixture
def now_api():
    return FakeNowAPI()


@pytest.fixture
def github_api():
    return FakeGitHubAPI()


@pytest.fixture
def now_client(settings, now_api):
    return AsyncNowClient(settings, transport=httpx.MockTransport(now_api.handler))


@pytest.fixture
def github_client(settings, github_api):
    return AsyncGitHubClient(settings, transport=httpx.MockTransport(github_api.handler))
