"""
Configuration management for the PR deployment bot.

Every recognised option is an explicit field with its type and default.
Values come from keyword arguments, the process environment, or a
``.env`` file loaded with python-dotenv. Completeness is checked per
operation before any request is made.
"""

import base64
import os
from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional

from dotenv import find_dotenv, load_dotenv

from ..utils.exceptions import ConfigError


DEFAULT_DEPLOYMENT_CONTEXT = "pr-deployment/deployment"
DEFAULT_COMMENT_MESSAGE = "Beep boop. Your code has been deployed!"
DEFAULT_DEPLOYMENT_DOMAIN = ".now.sh"

# Required fields per operation
CLEANUP_REQUIRED = ("now_token", "github_username", "github_token", "repo_owner", "repo_name")
COMMENT_REQUIRED = ("pr_url", "github_username", "github_token", "repo_owner", "repo_name", "deployment_url")

ENV_MAPPING = {
    "NOW_TOKEN": "now_token",
    "GH_AUTH_USERNAME": "github_username",
    "GH_AUTH_TOKEN": "github_token",
    "REPO_OWNER": "repo_owner",
    "REPO_NAME": "repo_name",
    "DEPLOYMENT_CONTEXT": "deployment_context",
    "COMMENT_MESSAGE": "comment_message",
    "PR_URL": "pr_url",
    "DEPLOYMENT_URL": "deployment_url",
    "DEPLOYMENT_DOMAIN": "deployment_domain",
    "NOW_API_URL": "now_api_url",
    "GITHUB_API_URL": "github_api_url",
    "GITHUB_WEB_URL": "github_web_url",
    "TIMEOUT_SECONDS": "timeout_seconds",
    "MAX_PARALLEL_REQUESTS": "max_parallel_requests",
    "LOG_LEVEL": "log_level",
    "LOG_FORMAT": "log_format",
    "LOG_FILE": "log_file",
}


@dataclass
class Settings:
    """
    Options recognised by the cleanup and comment operations.

    Credentials and identifiers default to empty strings and are only
    required by the operations that use them.
    """

    # Deployment host
    now_token: str = ""
    now_api_url: str = "https://api.zeit.co/now"
    deployment_domain: str = DEFAULT_DEPLOYMENT_DOMAIN

    # Code host
    github_username: str = ""
    github_token: str = ""
    github_api_url: str = "https://api.github.com"
    github_web_url: str = "https://github.com"
    repo_owner: str = ""
    repo_name: str = ""

    # Cleanup
    deployment_context: str = DEFAULT_DEPLOYMENT_CONTEXT

    # Comment
    comment_message: str = DEFAULT_COMMENT_MESSAGE
    pr_url: str = ""
    deployment_url: str = ""

    # Transport
    timeout_seconds: float = field(default=30.0)
    max_parallel_requests: int = field(default=5)

    # Logging
    log_level: str = field(default="INFO")
    log_format: str = field(default="text")
    log_file: Optional[str] = field(default=None)

    def __post_init__(self):
        """Validate value ranges; presence is checked per operation."""
        try:
            self.timeout_seconds = float(self.timeout_seconds)
        except (TypeError, ValueError) as e:
            raise ConfigError(
                f"timeout_seconds must be a number, got {self.timeout_seconds!r}",
                config_key="timeout_seconds"
            ) from e
        try:
            self.max_parallel_requests = int(self.max_parallel_requests)
        except (TypeError, ValueError) as e:
            raise ConfigError(
                f"max_parallel_requests must be an integer, got {self.max_parallel_requests!r}",
                config_key="max_parallel_requests"
            ) from e
        self.log_level = self.log_level.upper()
        self.log_format = self.log_format.lower()

        if self.timeout_seconds <= 0:
            raise ConfigError("timeout_seconds must be positive", config_key="timeout_seconds")
        if self.max_parallel_requests < 1:
            raise ConfigError("max_parallel_requests must be at least 1", config_key="max_parallel_requests")
        if self.log_level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ConfigError("log_level must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL", config_key="log_level")
        if self.log_format not in ["json", "text"]:
            raise ConfigError("log_format must be one of: json, text", config_key="log_format")
        if not self.deployment_domain:
            raise ConfigError("deployment_domain cannot be empty", config_key="deployment_domain")

        self.now_api_url = self.now_api_url.rstrip("/")
        self.github_api_url = self.github_api_url.rstrip("/")
        self.github_web_url = self.github_web_url.rstrip("/")

    def missing(self, required: tuple) -> List[str]:
        return [name for name in required if not getattr(self, name)]

    def validate_for_cleanup(self) -> None:
        """
        Raises:
            ConfigError: If any option the cleanup needs is missing
        """
        missing = self.missing(CLEANUP_REQUIRED)
        if missing:
            raise ConfigError(
                f"All required input parameters for cleanup were not provided: {', '.join(missing)}",
                missing=missing
            )

    def validate_for_comment(self) -> None:
        """
        Raises:
            ConfigError: If any option the comment sync needs is missing
        """
        missing = self.missing(COMMENT_REQUIRED)
        if missing:
            raise ConfigError(
                f"All required input parameters for comment were not provided: {', '.join(missing)}",
                missing=missing
            )

    @property
    def repository(self) -> str:
        return f"{self.repo_owner}/{self.repo_name}"

    @property
    def pull_request_url_prefix(self) -> str:
        return f"{self.github_web_url}/{self.repo_owner}/{self.repo_name}/pull/"

    def get_now_headers(self) -> Dict[str, str]:
        """Get headers for deployment host requests."""
        return {"Authorization": f"Bearer {self.now_token}"}

    def get_github_headers(self) -> Dict[str, str]:
        """Get headers for GitHub API requests."""
        credentials = f"{self.github_username}:{self.github_token}".encode("utf-8")
        return {
            "Content-Type": "application/json; charset=utf-8",
            "X-GitHub-Media-Type": "github.v3",
            "Authorization": f"Basic {base64.b64encode(credentials).decode('ascii')}",
        }

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, **overrides) -> "Settings":
        """
        Create Settings from environment variables with optional overrides.

        Overrides whose value is None are ignored so CLI options that were
        not given fall through to the environment.
        """
        # search from the working directory, not from this installed module
        load_dotenv(env_file or find_dotenv(usecwd=True))

        values = {}
        for env_var, field_name in ENV_MAPPING.items():
            if os.environ.get(env_var):
                values[field_name] = os.environ[env_var]

        known = {f.name for f in fields(cls)}
        for key, value in overrides.items():
            if key not in known:
                raise ConfigError(f"Unknown configuration option: {key}", config_key=key)
            if value is not None:
                values[key] = value

        return cls(**values)
