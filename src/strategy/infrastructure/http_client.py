"""Base HTTP client for the collections backend REST API.

Wraps an httpx.AsyncClient, unwraps the backend's response envelope and maps
transport and HTTP failures onto the engine's exception hierarchy.
"""

from typing import Any, TypeVar

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from src.strategy.domain.exceptions import (
    BackendError,
    BackendUnavailableError,
    MalformedResponseError,
    ResourceNotFoundError,
)

SUCCESS_STATUS = "success"

M = TypeVar("M", bound=BaseModel)


def create_http_client(
    base_url: str,
    api_token: str | None = None,
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    Create the shared AsyncClient for all backend collaborators.

    Args:
        base_url: Backend API base URL, e.g. http://host:8080/api/v1
        api_token: Optional bearer token
        timeout: Timeout per request in seconds
        transport: Optional transport (tests use httpx.MockTransport)
    """
    headers = {"Accept": "application/json"}
    if api_token:
        headers["Authorization"] = f"Bearer {api_token}"

    return httpx.AsyncClient(
        base_url=base_url.rstrip("/"),
        headers=headers,
        timeout=timeout,
        transport=transport,
    )


def unwrap_envelope(body: Any, status_code: int | None = None) -> Any:
    """
    Return the payload of a backend envelope.

    Envelopes look like {"status": "success"|"failure", "message": ..., "payload": ...}
    with "data" accepted in place of "payload". Bodies without a status are returned as-is.

    Raises:
        BackendError: If the envelope reports a failure
    """
    if not isinstance(body, dict) or "status" not in body:
        return body

    if str(body.get("status", "")).lower() != SUCCESS_STATUS:
        raise BackendError(body.get("message") or "Backend reported a failure", status_code=status_code)

    if body.get("payload") is not None:
        return body["payload"]
    return body.get("data")


class BackendClient:
    """Base client for backend communication."""

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    async def _request(self, method: str, endpoint: str, **kwargs) -> Any:
        """
        Send a request and return the unwrapped payload.

        Raises:
            BackendUnavailableError: On timeouts and connection failures
            ResourceNotFoundError: On HTTP 404
            BackendError: On any other HTTP error or failure envelope
        """
        try:
            response = await self._client.request(method, endpoint, **kwargs)
        except httpx.TransportError as e:
            raise BackendUnavailableError(f"{method} {endpoint} failed: {e}", original_error=e) from e

        body = self._decode(response)

        if response.status_code == 404:
            raise ResourceNotFoundError(self._message(body, f"{endpoint} not found"), status_code=404)
        if response.is_error:
            logger.debug(f"{method} {endpoint} → HTTP {response.status_code}")
            raise BackendError(
                self._message(body, f"{method} {endpoint} failed with HTTP {response.status_code}"),
                status_code=response.status_code,
            )

        return unwrap_envelope(body, response.status_code)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            if response.is_error:
                return response.text
            raise BackendError(
                f"Backend returned a non-JSON body for {response.request.url}", status_code=response.status_code
            ) from None

    @staticmethod
    def _parse(model: type[M], data: Any) -> M:
        """
        Validate a payload into a model.

        Raises:
            MalformedResponseError: If the payload is missing or does not fit the model
        """
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise MalformedResponseError(
                f"Malformed {model.__name__} in backend response ({e.error_count()} errors)",
                details={"errors": [error["msg"] for error in e.errors()]},
            ) from e

    @staticmethod
    def _message(body: Any, default: str) -> str:
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return default

    async def _get(self, endpoint: str, params: dict | None = None) -> Any:
        return await self._request("GET", endpoint, params=params)

    async def _post(self, endpoint: str, data: Any = None, params: dict | None = None) -> Any:
        return await self._request("POST", endpoint, json=data, params=params)

    async def _post_multipart(self, endpoint: str, files: dict, data: dict | None = None) -> Any:
        """Make a multipart POST request (for file uploads)."""
        return await self._request("POST", endpoint, files=files, data=data)

    async def _put(self, endpoint: str, data: Any) -> Any:
        return await self._request("PUT", endpoint, json=data)

    async def _patch(self, endpoint: str, params: dict | None = None) -> Any:
        return await self._request("PATCH", endpoint, params=params)

    async def _delete(self, endpoint: str) -> Any:
        return await self._request("DELETE", endpoint)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
