"""HTTP client for the Vault secret store."""
import json
import logging
from typing import Optional

import httpx

from .errors import (
    ForbiddenError,
    InvalidUrlError,
    SecretNotFoundError,
    ServerError,
    ServerUnavailableError,
    ServerUnreachableError,
    UnspecifiedError,
)
from .models import PathData, RunConfig

logger = logging.getLogger(__name__)

SECRET_PREFIX = "/v1/secret/"
TOKEN_HEADER = "x-vault-token"


def parse_success_response(body: bytes) -> PathData:
    """
    Extract the string members of the top-level ``data`` object.

    Non-string members are dropped. A body that is not JSON, or has no
    ``data`` object, yields an empty mapping.
    """
    try:
        payload = json.loads(body)
    except ValueError as e:
        logger.warning(f"Vault returned a body that is not valid JSON: {e}")
        return {}

    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, dict):
        return {}

    return {key: value for key, value in data.items() if isinstance(value, str)}


def parse_response(secret_path: str, status_code: int, body: bytes) -> PathData:
    """
    Turn one Vault response into secret data or a classified error.

    Args:
        secret_path: Path that was requested
        status_code: HTTP status of the response
        body: Raw response body

    Returns:
        Decoded key/value data for a 200 response

    Raises:
        VaultError: Matching the status code for any other response
    """
    if status_code == 200:
        return parse_success_response(body)

    text = body.decode("utf-8", errors="replace")
    if status_code == 403:
        raise ForbiddenError()
    if status_code == 404:
        raise SecretNotFoundError(secret_path)
    if status_code == 500:
        raise ServerError(text)
    if status_code == 503:
        raise ServerUnavailableError(text)
    raise UnspecifiedError(status_code, text)


class VaultClient:
    """Wrapper around an httpx.AsyncClient bound to one RunConfig."""

    def __init__(self, config: RunConfig, http_client: Optional[httpx.AsyncClient] = None):
        self._config = config
        self._client = http_client
        self._owns_client = http_client is None

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-initialize client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._config.timeout),
            )
        return self._client

    def secret_url(self, secret_path: str) -> httpx.URL:
        """Build the URL for a secret path, raising InvalidUrlError if it cannot be built."""
        try:
            return httpx.URL(
                scheme=self._config.scheme,
                host=self._config.host,
                port=self._config.port,
                path=SECRET_PREFIX + secret_path,
            )
        except httpx.InvalidURL as e:
            logger.debug(f"Cannot build URL for {secret_path}: {e}")
            raise InvalidUrlError(secret_path) from e

    async def read_secret(self, secret_path: str) -> PathData:
        """
        Fetch all key/value data stored under one path.

        Args:
            secret_path: Vault path, without the /v1/secret/ prefix

        Returns:
            String-valued data stored at the path

        Raises:
            VaultError: On any transport failure or non-200 response
        """
        url = self.secret_url(secret_path)
        logger.debug(f"GET {url}")

        try:
            response = await self.client.get(url, headers={TOKEN_HEADER: self._config.token})
        except httpx.InvalidURL as e:
            raise InvalidUrlError(secret_path) from e
        except httpx.RequestError as e:
            raise ServerUnreachableError(e) from e

        return parse_response(secret_path, response.status_code, response.content)

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "VaultClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

