"""
Cove Secrets Python Client Package

A Python client for connecting to the Cove secrets service via HTTP.
"""

from .cove_client import (
    CoveClient,
    CoveClientError,
    CoveClientConfigError,
    CoveClientConnectionError,
    CoveClientStatusError,
    CoveClientAuthError,
    CoveClientDecodeError,
    get_secret,
    list_secrets,
    bootstrap,
)
from .models import (
    SecretValue,
    SecretEntry,
    WritePayload,
    OperationResponse,
)

__version__ = "1.0.0"
__all__ = [
    "CoveClient",
    "CoveClientError",
    "CoveClientConfigError",
    "CoveClientConnectionError",
    "CoveClientStatusError",
    "CoveClientAuthError",
    "CoveClientDecodeError",
    "get_secret",
    "list_secrets",
    "bootstrap",
    "SecretValue",
    "SecretEntry",
    "WritePayload",
    "OperationResponse",
]
