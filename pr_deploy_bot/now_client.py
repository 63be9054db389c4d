"""
Async client for the deployment host (Now) API.

Lists live deployments together with the aliases pointing at them, and
deletes deployments by ID.
"""

from typing import List, Optional

import httpx

from .api_client import AsyncAPIClient
from .config.settings import Settings
from .models import AliasRecord, Deployment, DeploymentListing


class AsyncNowClient(AsyncAPIClient):
    """
    Async client for the deployment host.

    Authenticates with a bearer token.
    """

    service_name = "now"

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(
            base_url=settings.now_api_url,
            headers=settings.get_now_headers(),
            timeout=settings.timeout_seconds,
            max_parallel_requests=settings.max_parallel_requests,
            transport=transport
        )

    async def get_deployment_listing(self) -> DeploymentListing:
        """
        Fetch ``GET /deployments``.

        Returns:
            Deployments and aliases as reported by the host

        Raises:
            TransportError: If the listing cannot be retrieved
        """
        url = self.url("deployments")
        response = await self.request("GET", url)
        listing = self.parse(DeploymentListing, self.decode(response), url)

        self.logger.info(
            "Retrieved deployment listing",
            extra={
                "deployments_count": len(listing.deployments),
                "aliases_count": len(listing.aliases)
            }
        )
        return listing

    async def list_aliases(self) -> List[AliasRecord]:
        return (await self.get_deployment_listing()).aliases

    async def list_deployments(self) -> List[Deployment]:
        return (await self.get_deployment_listing()).deployments

    async def delete_deployment(self, uid: str) -> dict:
        """
        Delete one deployment.

        Args:
            uid: Deployment ID

        Returns:
            The host's deletion confirmation

        Raises:
            TransportError: If the host rejects the deletion
        """
        url = self.url(f"deployments/{uid}")
        response = await self.request("DELETE", url)
        payload = self.decode(response) if response.content else {}
        if not isinstance(payload, dict):
            payload = {}
        payload.setdefault("uid", uid)

        self.logger.info(
            "Deleted deployment",
            extra={"uid": uid, "state": payload.get("state")}
        )
        return payload
