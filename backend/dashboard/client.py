"""
Product API Client

Fetches the full product catalog from GET /api/products.
Transport errors and 5xx responses are retried with exponential backoff;
anything still failing is raised as ProductFetchError.
"""

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from core.config import get_settings
from inventory.records import ProductRecord

logger = structlog.get_logger()

_catalog_adapter = TypeAdapter(list[ProductRecord])


class ProductFetchError(RuntimeError):
    """The catalog could not be fetched or parsed."""


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return False


class ProductClient:
    """Client for the product catalog endpoint."""

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        max_attempts: int | None = None,
        backoff_min: float | None = None,
        backoff_max: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.url = url or settings.products_api_url
        self.timeout = timeout if timeout is not None else settings.fetch_timeout_seconds
        self.max_attempts = max_attempts or settings.fetch_max_attempts
        self.backoff_min = backoff_min if backoff_min is not None else settings.fetch_backoff_min_seconds
        self.backoff_max = backoff_max if backoff_max is not None else settings.fetch_backoff_max_seconds
        self._transport = transport

    async def _get_json(self):
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(min=self.backoff_min, max=self.backoff_max),
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        ):
            with attempt:
                async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                    response = await client.get(self.url, headers={"Accept": "application/json"})
                    response.raise_for_status()
                    return response.json()

    async def fetch_products(self) -> list[ProductRecord]:
        """Fetch and parse the whole catalog in one request."""
        try:
            payload = await self._get_json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("client.fetch_failed", url=self.url, error=str(e))
            raise ProductFetchError(f"Could not fetch products from {self.url}: {e}") from e

        try:
            products = _catalog_adapter.validate_python(payload)
        except ValidationError as e:
            logger.error("client.invalid_payload", url=self.url, errors=e.error_count())
            raise ProductFetchError(f"Unexpected product payload from {self.url}") from e

        logger.info("client.fetched", url=self.url, products=len(products))
        return products
