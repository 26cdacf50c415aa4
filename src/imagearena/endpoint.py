"""
Client for the external image-generation endpoint.

The endpoint accepts ``{prompt, provider, modelId}`` and answers either
``{"image": <reference>}`` on success or a non-2xx status with an ``error``
field. Provider-specific translation happens behind it.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import httpx

from .exceptions import EndpointError
from .logging import get_logger
from .models import GenerationRequest
from .providers import ProviderRegistry

logger = get_logger(__name__)


@runtime_checkable
class ImageEndpoint(Protocol):
    """Anything that can turn a generation request into an image reference."""

    async def generate(self, request: GenerationRequest) -> str | None:
        """Return the image reference, or raise on failure."""
        ...


class HttpImageEndpoint:
    """ImageEndpoint backed by an HTTP ``POST``."""

    def __init__(
        self,
        url: str,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
        registry: ProviderRegistry | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url
        self.registry = registry
        self._headers = {"Content-Type": "application/json", **(headers or {})}
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def url_for(self, provider: str) -> str:
        """Per-provider endpoint override from the registry, if any."""
        if self.registry is not None:
            descriptor = self.registry.get(provider)
            if descriptor is not None and descriptor.endpoint:
                return descriptor.endpoint
        return self.url

    async def generate(self, request: GenerationRequest) -> str | None:
        url = self.url_for(request.provider)
        response = await self._client.post(url, json=request.to_payload(), headers=self._headers)

        data = _json_or_none(response)
        if not response.is_success:
            message = None
            if isinstance(data, dict):
                message = data.get("error")
            raise EndpointError(
                message or f"Server error: {response.status_code}",
                status_code=response.status_code,
            )

        if not isinstance(data, dict):
            raise EndpointError("Endpoint returned a non-object response", response.status_code)
        image = data.get("image")
        if image is not None and not isinstance(image, str):
            raise EndpointError(
                f"Endpoint returned an unsupported image reference: {type(image).__name__}",
                status_code=response.status_code,
            )
        return image

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpImageEndpoint:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        logger.debug(
            "Endpoint response is not JSON",
            status_code=response.status_code,
            body=response.text[:200],
        )
        return None
