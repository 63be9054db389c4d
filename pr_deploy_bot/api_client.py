"""
Shared async HTTP plumbing for the deployment host and GitHub clients.

Wraps a single ``httpx.AsyncClient`` per client instance, translates
httpx failures into ``TransportError`` and provides the bounded,
all-or-nothing fan-out used by every pipeline stage.
"""

import asyncio
from typing import Any, Awaitable, Dict, Iterable, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from .utils.exceptions import TransportError
from .utils.logger import get_logger

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


class AsyncAPIClient:
    """
    Base class for the async API clients.

    Use as an async context manager; the underlying connection pool is
    opened on entry and closed on exit.
    """

    service_name = "api"

    def __init__(
        self,
        base_url: str,
        headers: Dict[str, str],
        timeout: float = 30.0,
        max_parallel_requests: int = 5,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Args:
            base_url: API root, without trailing slash
            headers: Headers sent with every request
            timeout: Request timeout in seconds
            max_parallel_requests: Upper bound for concurrent fan-out requests
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.logger = get_logger(f"pr_deploy_bot.{self.service_name}")
        self.base_url = base_url.rstrip("/")
        self.headers = headers
        self.timeout = timeout
        self.max_parallel_requests = max_parallel_requests
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            headers=self.headers,
            transport=self.transport
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        url: str,
        check_status: bool = True,
        **kwargs: Any
    ) -> httpx.Response:
        """
        Send one request.

        Args:
            method: HTTP method
            url: Absolute url
            check_status: Raise on non-2xx responses
            **kwargs: Passed through to ``httpx.AsyncClient.request``

        Returns:
            The httpx response

        Raises:
            TransportError: On connection failure, or on a non-2xx status
                when ``check_status`` is set
        """
        if self._client is None:
            raise RuntimeError(f"{type(self).__name__} must be used as an async context manager")

        self.logger.debug(f"{method} {url}")
        try:
            response = await self._client.request(method, url, **kwargs)
            if check_status:
                response.raise_for_status()
            return response

        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            error_msg = f"{self.service_name} {method} {url} failed with status {status_code}"
            self.logger.error(
                error_msg,
                extra={
                    "url": url,
                    "error_type": type(e).__name__,
                    "status_code": status_code
                }
            )
            raise TransportError(
                error_msg,
                status_code=status_code,
                endpoint=url,
                response_body=e.response.text[:500]
            ) from e
        except httpx.RequestError as e:
            error_msg = f"{self.service_name} {method} {url} failed: {e}"
            self.logger.error(
                error_msg,
                extra={
                    "url": url,
                    "error_type": type(e).__name__
                }
            )
            raise TransportError(error_msg, endpoint=url) from e

    def decode(self, response: httpx.Response) -> Any:
        """
        Raises:
            TransportError: If the body is not JSON
        """
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"{self.service_name} returned a non-JSON body",
                status_code=response.status_code,
                endpoint=str(response.request.url)
            ) from e

    def parse(self, model: Type[M], payload: Any, endpoint: str) -> M:
        """
        Raises:
            TransportError: If the payload does not fit the model
        """
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise TransportError(
                f"Unexpected {model.__name__} payload from {self.service_name}: {e.error_count()} errors",
                endpoint=endpoint
            ) from e

    def parse_list(self, model: Type[M], payload: Any, endpoint: str) -> List[M]:
        if not isinstance(payload, list):
            raise TransportError(
                f"Expected a list of {model.__name__} from {self.service_name}",
                endpoint=endpoint
            )
        return [self.parse(model, item, endpoint) for item in payload]

    async def gather(self, calls: Iterable[Awaitable[T]]) -> List[T]:
        """
        Await every call with bounded concurrency.

        The first failure propagates; there is no partial result. Calls
        still pending at that point are cancelled and awaited before the
        error is re-raised.
        """
        semaphore = asyncio.Semaphore(self.max_parallel_requests)

        async def run(call: Awaitable[T]) -> T:
            try:
                async with semaphore:
                    return await call
            finally:
                # a call cancelled while queued on the semaphore never started
                if asyncio.iscoroutine(call):
                    call.close()

        tasks = [asyncio.ensure_future(run(call)) for call in calls]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            if pending:
                self.logger.warning(
                    f"Cancelled {len(pending)} pending {self.service_name} requests after a failure",
                    extra={"service": self.service_name, "cancelled_count": len(pending)}
                )
            raise
