"""
Reconciles live preview deployments against open pull requests.

A deployment is deleted when it belongs to the repository, has finished
building, is not aliased, and no open pull request carries a deployment
status pointing at it. Each run re-reads both platforms; nothing is kept
between runs.
"""

from typing import Dict, Iterable, List, Optional, Set
from urllib.parse import urlsplit

from .config.settings import Settings
from .github_client import AsyncGitHubClient
from .models import AliasRecord, DeletionResult, Deployment, StatusEntry
from .now_client import AsyncNowClient
from .utils.logger import get_logger

logger = get_logger(__name__)

PLANNED_STATE = "PLANNED"


def alias_exempt_urls(aliases: Iterable[AliasRecord]) -> Set[str]:
    """Urls of every deployment an alias points at."""
    return {alias.deployment_url for alias in aliases if alias.deployment_url}


def candidate_deployments(
    deployments: Iterable[Deployment],
    repo_name: str,
    exempt_urls: Set[str]
) -> Dict[str, Deployment]:
    """
    Deployments of the repository that are built and not aliased.

    Returns:
        Candidates keyed by uid
    """
    return {
        deployment.uid: deployment
        for deployment in deployments
        if deployment.name == repo_name
        and deployment.is_ready
        and deployment.url not in exempt_urls
    }


def normalize_deployment_url(url: Optional[str], deployment_domain: str) -> Optional[str]:
    """
    Reduce a status target url to a bare deployment hostname.

    ``https://foo.now.sh`` and ``https://foo.now.sh/`` both become
    ``foo.now.sh``. Urls on other domains, urls with a path, and urls
    without an http(s) scheme yield None.
    """
    if not url:
        return None

    parts = urlsplit(url.strip())
    if parts.scheme not in ("http", "https") or parts.path not in ("", "/"):
        return None

    host = parts.netloc
    if len(host) <= len(deployment_domain) or not host.endswith(deployment_domain):
        return None
    return host


def referenced_urls(
    statuses: Iterable[StatusEntry],
    deployment_context: str,
    deployment_domain: str
) -> Set[str]:
    """Deployment hostnames referenced by statuses with the deployment context."""
    urls = set()
    for status in statuses:
        if status.context != deployment_context:
            continue
        normalized = normalize_deployment_url(status.target_url, deployment_domain)
        if normalized:
            urls.add(normalized)
    return urls


def select_for_deletion(candidates: Dict[str, Deployment], referenced: Set[str]) -> List[Deployment]:
    return [deployment for deployment in candidates.values() if deployment.url not in referenced]


async def collect_open_pr_statuses(github: AsyncGitHubClient) -> List[StatusEntry]:
    """
    Fetch the statuses of every open pull request.

    Raises:
        TransportError: If the listing or any single status fetch fails
    """
    pull_requests = await github.list_open_pull_requests()
    per_pr = await github.gather(github.get_statuses(pr.statuses_url) for pr in pull_requests)
    return [status for statuses in per_pr for status in statuses]


async def reconcile(
    settings: Settings,
    now_client: Optional[AsyncNowClient] = None,
    github_client: Optional[AsyncGitHubClient] = None,
    dry_run: bool = False
) -> List[DeletionResult]:
    """
    Delete deployments that no open pull request references.

    Args:
        settings: Configuration; cleanup options must be present
        now_client: Deployment host client (created from settings if omitted)
        github_client: GitHub client (created from settings if omitted)
        dry_run: Compute the deletion set without deleting anything

    Returns:
        One result per deleted (or, for a dry run, planned) deployment

    Raises:
        ConfigError: If a required option is missing
        TransportError: If any request fails; the run stops at that point
    """
    settings.validate_for_cleanup()

    now = now_client or AsyncNowClient(settings)
    github = github_client or AsyncGitHubClient(settings)

    async with now, github:
        aliases = await now.list_aliases()
        deployments = await now.list_deployments()

        exempt = alias_exempt_urls(aliases)
        candidates = candidate_deployments(deployments, settings.repo_name, exempt)

        statuses = await collect_open_pr_statuses(github)
        referenced = referenced_urls(statuses, settings.deployment_context, settings.deployment_domain)

        doomed = select_for_deletion(candidates, referenced)
        logger.info(
            "Computed deletion set",
            extra={
                "deployments_count": len(deployments),
                "aliased_count": len(exempt),
                "candidates_count": len(candidates),
                "referenced_count": len(referenced),
                "deletion_count": len(doomed),
                "dry_run": dry_run
            }
        )

        if dry_run:
            return [
                DeletionResult(uid=deployment.uid, state=PLANNED_STATE, url=deployment.url)
                for deployment in doomed
            ]

        responses = await now.gather(now.delete_deployment(deployment.uid) for deployment in doomed)

    results = []
    for response in responses:
        deployment = candidates.get(response["uid"])
        results.append(DeletionResult.model_validate({
            **response,
            "url": deployment.url if deployment else None
        }))
    return results
