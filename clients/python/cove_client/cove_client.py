#!/usr/bin/env python3
"""
Cove Secrets Python Client

A Python client for the Cove secrets service over HTTP.
Supports reading, listing, creating, updating and deleting secret values,
and fetching the unauthenticated bootstrap secret used during provisioning.
"""

import asyncio
import json
import logging
import os
import urllib.parse
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from .models import OperationResponse, SecretEntry, SecretValue, WritePayload


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
BOOTSTRAP_PATH = "/bootstrap/lighthouse"


class CoveClientError(Exception):
    """Base exception for Cove client errors."""
    pass


class CoveClientConfigError(CoveClientError):
    """Configuration error, raised before any request is sent."""
    pass


class CoveClientConnectionError(CoveClientError):
    """Connection error."""

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation}: {message}")
        self.operation = operation


class CoveClientStatusError(CoveClientError):
    """The server answered with a status other than the expected one."""

    def __init__(self, operation: str, status: int, body: str, include_body: bool = False):
        message = f"{operation}: unexpected status {status}"
        if include_body:
            message = f"{message}: {body}"
        super().__init__(message)
        self.operation = operation
        self.status = status
        self.body = body


class CoveClientAuthError(CoveClientStatusError):
    """Authentication/authorization error (401 or 403)."""
    pass


class CoveClientDecodeError(CoveClientError):
    """Response body could not be decoded after a success status."""

    def __init__(self, operation: str, message: str, body: str):
        super().__init__(f"{operation}: invalid response body: {message}")
        self.operation = operation
        self.body = body


class CoveClient:
    """
    Python client for the Cove secrets service.

    This client provides methods to:
    - Get a single secret value
    - List the metadata of every stored secret
    - Create, update and delete secrets
    - Fetch the bootstrap secret without a credential

    Each method performs exactly one HTTP exchange. There are no retries and
    no caching; every failure is raised to the caller.
    """

    def __init__(
        self,
        base_url: str,
        credential: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the Cove client.

        Args:
            base_url: Root URL of the Cove service
            credential: Bearer token sent with every authenticated request
            timeout: Request timeout in seconds, used only for a session the
                client creates itself
            session: Optional caller-owned aiohttp session. The client uses it
                as its transport and never closes it.

        Raises:
            CoveClientConfigError: If base_url is not an absolute http(s) URL
        """
        self._base_url = _normalize_base_url(base_url)
        self._credential = credential
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.session: Optional[aiohttp.ClientSession] = session
        self._owns_session = session is None
        self._closed = False

    @classmethod
    def from_env(cls, session: Optional[aiohttp.ClientSession] = None) -> "CoveClient":
        """
        Build a client from COVE_BASE_URL, COVE_CLIENT_SECRET and COVE_TIMEOUT.

        Raises:
            CoveClientConfigError: If COVE_BASE_URL is unset or COVE_TIMEOUT
                is not a number
        """
        base_url = os.getenv("COVE_BASE_URL")
        if not base_url:
            raise CoveClientConfigError("COVE_BASE_URL is not set")

        raw_timeout = os.getenv("COVE_TIMEOUT", str(DEFAULT_TIMEOUT))
        try:
            timeout = float(raw_timeout)
        except ValueError:
            raise CoveClientConfigError(f"COVE_TIMEOUT must be a number, got {raw_timeout!r}")

        return cls(
            base_url=base_url,
            credential=os.getenv("COVE_CLIENT_SECRET", ""),
            timeout=timeout,
            session=session,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def credential(self) -> str:
        return self._credential

    def __repr__(self) -> str:
        return f"CoveClient(base_url={self._base_url!r}, credential='***')"

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def connect(self):
        """
        Create HTTP session.

        Raises:
            CoveClientError: If the client has already been closed
        """
        if self._closed:
            raise CoveClientError("Client is closed; create a new CoveClient")
        if self.session is None:
            self.session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True

    async def close(self):
        """
        Close HTTP session, unless it was supplied by the caller.

        The client cannot be used after it is closed.
        """
        self._closed = True
        if self.session and self._owns_session:
            await self.session.close()
        self.session = None

    def _get_headers(self, authenticated: bool = True, has_body: bool = False) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if has_body:
            headers["Content-Type"] = "application/json"
        if authenticated:
            headers["Authorization"] = f"Bearer {self._credential}"
        return headers

    def _secret_path(self, secret_id: str) -> str:
        if not isinstance(secret_id, str) or not secret_id:
            raise CoveClientConfigError(f"Invalid secret id: {secret_id!r}")
        return f"/secrets/{urllib.parse.quote(secret_id, safe='')}"

    async def _send(
        self,
        operation: str,
        method: str,
        path: str,
        payload: Optional[WritePayload] = None,
        authenticated: bool = True,
    ) -> Tuple[int, bytes]:
        """
        Send one request and return its status and fully-read raw body.

        Raises:
            CoveClientConnectionError: If the exchange fails at transport level
        """
        await self.connect()

        url = f"{self._base_url}{path}"
        data = None
        if payload is not None:
            data = json.dumps(payload.to_dict(), separators=(",", ":"))

        logger.debug("%s: %s %s", operation, method, url)
        try:
            async with self.session.request(
                method,
                url,
                data=data,
                headers=self._get_headers(authenticated, payload is not None),
            ) as response:
                raw = await response.read()
                return response.status, raw
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("%s: request to %s failed: %r", operation, url, e)
            raise CoveClientConnectionError(operation, f"Failed to connect to server: {e}") from e

    def _check_status(
        self,
        operation: str,
        status: int,
        body: str,
        expected: int,
        include_body: bool = False,
    ) -> None:
        """
        Raise if status is not the single expected success code.

        Raises:
            CoveClientAuthError: For 401 and 403
            CoveClientStatusError: For any other unexpected status
        """
        if status == expected:
            return

        logger.warning("%s: expected status %d, got %d", operation, expected, status)
        if status in (401, 403):
            raise CoveClientAuthError(operation, status, body, include_body)
        raise CoveClientStatusError(operation, status, body, include_body)

    def _decode_json(self, operation: str, raw: bytes) -> Any:
        # JSON bodies must be UTF-8; anything else is a decode failure
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("%s: response is not valid JSON: %s", operation, e)
            raise CoveClientDecodeError(operation, str(e), _body_text(raw)) from e

    def _decode(self, operation: str, raw: bytes, model):
        data = self._decode_json(operation, raw)
        try:
            return model.from_dict(data)
        except ValueError as e:
            logger.warning("%s: unexpected response shape: %s", operation, e)
            raise CoveClientDecodeError(operation, str(e), _body_text(raw)) from e

    async def get_secret(self, secret_id: str) -> str:
        """
        Get a secret value from the server.

        Args:
            secret_id: Identifier of the secret to retrieve

        Returns:
            The secret value

        Raises:
            CoveClientConfigError: If secret_id is empty
            CoveClientStatusError: If the server does not answer 200
            CoveClientDecodeError: If the 200 body is not {"secret": str}
            CoveClientConnectionError: If server is unreachable
        """
        path = self._secret_path(secret_id)
        status, raw = await self._send("get_secret", "GET", path)
        self._check_status("get_secret", status, _body_text(raw), expected=200)
        return self._decode("get_secret", raw, SecretValue).secret

    async def list_secrets(self) -> List[SecretEntry]:
        """
        List the metadata of every stored secret, in server order.

        Returns:
            One SecretEntry per element of the server's JSON array

        Raises:
            CoveClientStatusError: If the server does not answer 200
            CoveClientDecodeError: If the 200 body is not a JSON array of entries
            CoveClientConnectionError: If server is unreachable
        """
        status, raw = await self._send("list_secrets", "GET", "/secrets")
        self._check_status("list_secrets", status, _body_text(raw), expected=200)

        data = self._decode_json("list_secrets", raw)
        if not isinstance(data, list):
            message = f"expected a JSON array, got {type(data).__name__}"
            logger.warning("list_secrets: %s", message)
            raise CoveClientDecodeError("list_secrets", message, _body_text(raw))

        entries = []
        for index, item in enumerate(data):
            try:
                entries.append(SecretEntry.from_dict(item))
            except ValueError as e:
                logger.warning("list_secrets: entry %d has unexpected shape: %s", index, e)
                raise CoveClientDecodeError("list_secrets", f"entry {index}: {e}", _body_text(raw)) from e
        return entries

    async def add_secret(self, secret_id: str, secret_value: str) -> str:
        """
        Create a new secret.

        Args:
            secret_id: Identifier of the secret to create
            secret_value: Value of the secret

        Returns:
            The server's confirmation message

        Raises:
            CoveClientStatusError: If the server does not answer 200; the
                message includes the response body
            CoveClientDecodeError: If the 200 body is not {"message": str}
            CoveClientConnectionError: If server is unreachable
        """
        path = self._secret_path(secret_id)
        payload = WritePayload(secret_id=secret_id, secret_value=secret_value)
        status, raw = await self._send("add_secret", "POST", path, payload)
        self._check_status("add_secret", status, _body_text(raw), expected=200, include_body=True)
        return self._decode("add_secret", raw, OperationResponse).message

    async def update_secret(self, secret_id: str, secret_value: str) -> None:
        """
        Update an existing secret. Succeeds only on 204 No Content.

        Raises:
            CoveClientStatusError: If the server does not answer 204; the
                message includes the response body
            CoveClientConnectionError: If server is unreachable
        """
        path = self._secret_path(secret_id)
        payload = WritePayload(secret_id=secret_id, secret_value=secret_value)
        status, raw = await self._send("update_secret", "PATCH", path, payload)
        self._check_status("update_secret", status, _body_text(raw), expected=204, include_body=True)

    async def delete_secret(self, secret_id: str) -> None:
        """
        Delete a secret. Succeeds only on 204 No Content.

        The server expects the write payload shape here too, so an empty
        secretValue is always sent.

        Raises:
            CoveClientStatusError: If the server does not answer 204; the
                message includes the response body
            CoveClientConnectionError: If server is unreachable
        """
        path = self._secret_path(secret_id)
        payload = WritePayload(secret_id=secret_id, secret_value="")
        status, raw = await self._send("delete_secret", "DELETE", path, payload)
        self._check_status("delete_secret", status, _body_text(raw), expected=204, include_body=True)

    async def bootstrap(self) -> str:
        """
        Fetch the bootstrap secret. This request carries no Authorization header.

        Returns:
            The bootstrap secret

        Raises:
            CoveClientStatusError: If the server does not answer 200
            CoveClientDecodeError: If the 200 body is not {"secret": str}
            CoveClientConnectionError: If server is unreachable
        """
        status, raw = await self._send("bootstrap", "GET", BOOTSTRAP_PATH, authenticated=False)
        self._check_status("bootstrap", status, _body_text(raw), expected=200)
        return self._decode("bootstrap", raw, SecretValue).secret


def _body_text(raw: bytes) -> str:
    """Response body as text for error reporting; undecodable bytes become U+FFFD."""
    return raw.decode("utf-8", errors="replace")


def _normalize_base_url(base_url: str) -> str:
    if not isinstance(base_url, str):
        raise CoveClientConfigError(f"Invalid base URL: {base_url!r}")
    try:
        parts = urllib.parse.urlsplit(base_url)
    except ValueError as e:
        raise CoveClientConfigError(f"Invalid base URL {base_url!r}: {e}") from e
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise CoveClientConfigError(f"Base URL must be an absolute http(s) URL, got {base_url!r}")
    return base_url.rstrip('/')


# Convenience functions for common operations
async def get_secret(base_url: str, credential: str, secret_id: str) -> str:
    """
    Convenience function to get a secret.

    Args:
        base_url: Root URL of the Cove service
        credential: Bearer token
        secret_id: Identifier of the secret to retrieve

    Returns:
        The secret value
    """
    async with CoveClient(base_url=base_url, credential=credential) as client:
        return await client.get_secret(secret_id)


async def list_secrets(base_url: str, credential: str) -> List[SecretEntry]:
    """Convenience function to list secret metadata."""
    async with CoveClient(base_url=base_url, credential=credential) as client:
        return await client.list_secrets()


async def bootstrap(base_url: str) -> str:
    """
    Convenience function to fetch the bootstrap secret.

    No credential is needed, so the client is built with an empty one.
    """
    async with CoveClient(base_url=base_url, credential="") as client:
        return await client.bootstrap()
