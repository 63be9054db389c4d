"""
Pydantic models for deployment host and GitHub API payloads.

Only the fields the bot reads are declared; everything else the APIs
return is kept as extra data so results can be reported verbatim.

Deployment host documentation:
https://zeit.co/docs/api#endpoints/deployments

GitHub REST documentation:
https://docs.github.com/en/rest
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Deployment(BaseModel):
    """
    A live deployment on the hosting platform.

    ``url`` stays unset until the build has finished.
    """

    uid: str = Field(..., description="Deployment ID")
    name: str = Field("", description="Project name, matches the repository name")
    url: Optional[str] = Field(None, description="Deployment hostname without scheme")
    state: Optional[str] = Field(None, description="Build state")

    model_config = ConfigDict(extra="allow")

    @property
    def is_ready(self) -> bool:
        return bool(self.url)


class AliasTarget(BaseModel):
    """Deployment an alias currently points at."""

    url: Optional[str] = Field(None, description="Aliased deployment hostname")

    model_config = ConfigDict(extra="allow")


class AliasRecord(BaseModel):
    """
    A stable hostname pointed at a deployment.

    Deployments referenced by an alias are never cleaned up.
    """

    alias: Optional[str] = Field(None, description="Alias hostname")
    deployment: Optional[AliasTarget] = Field(None, description="Aliased deployment")

    model_config = ConfigDict(extra="allow")

    @property
    def deployment_url(self) -> Optional[str]:
        return self.deployment.url if self.deployment else None


class DeploymentListing(BaseModel):
    """Response of ``GET /deployments``."""

    deployments: List[Deployment] = Field(default_factory=list)
    aliases: List[AliasRecord] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")

    @field_validator("deployments", "aliases", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class DeletionResult(BaseModel):
    """
    Deployment host deletion response, augmented with the deployment url.
    """

    uid: str = Field(..., description="Deleted deployment ID")
    state: Optional[str] = Field(None, description="State reported by the host")
    url: Optional[str] = Field(None, description="Url of the deleted deployment")

    model_config = ConfigDict(extra="allow")


class Link(BaseModel):
    href: str


class PullRequestLinks(BaseModel):
    statuses: Link

    model_config = ConfigDict(extra="allow")


class PullRequest(BaseModel):
    """An open pull request and the link to its status collection."""

    number: int = Field(..., description="Pull request number")
    state: str = Field("open", description="open or closed")
    links: PullRequestLinks = Field(..., alias="_links")

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @property
    def statuses_url(self) -> str:
        return self.links.statuses.href


class StatusEntry(BaseModel):
    """A commit status attached to a pull request's head."""

    context: Optional[str] = Field(None, description="Status context label")
    target_url: Optional[str] = Field(None, description="Link reported by the status")
    state: Optional[str] = Field(None, description="pending, success, error or failure")

    model_config = ConfigDict(extra="allow")


class GitHubUser(BaseModel):
    login: str = ""

    model_config = ConfigDict(extra="allow")


class Comment(BaseModel):
    """An issue comment on a pull request."""

    id: Optional[int] = Field(None, description="Comment ID")
    url: str = Field(..., description="API url of the comment")
    body: str = Field("", description="Comment text")
    user: Optional[GitHubUser] = Field(None, description="Comment author")
    html_url: Optional[str] = Field(None, description="Browser url of the comment")

    model_config = ConfigDict(extra="allow")

    @field_validator("body", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def author(self) -> Optional[str]:
        return self.user.login if self.user else None


class CommentPostResult(BaseModel):
    """Outcome of a comment synchronization pass."""

    comment: Comment
    deleted_comment_urls: List[str] = Field(default_factory=list)
