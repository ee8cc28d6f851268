"""
Data-transfer records for the Cove secrets API.

Every record is a frozen dataclass. Inbound records are built with
``from_dict`` which validates the decoded JSON shape and raises ``ValueError``
when the server sends something unexpected; outbound records serialise with
``to_dict``.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


def _require_str(data: Dict[str, Any], field: str) -> str:
    if field not in data:
        raise ValueError(f"missing field '{field}'")
    value = data[field]
    if not isinstance(value, str):
        raise ValueError(f"field '{field}' must be a string, got {type(value).__name__}")
    return value


def _optional_int(data: Dict[str, Any], field: str) -> Optional[int]:
    value = data.get(field)
    if value is None:
        return None
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"field '{field}' must be an integer, got {type(value).__name__}")
    return value


def _require_object(data: Any, name: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ValueError(f"{name} must be a JSON object, got {type(data).__name__}")
    return data


# Python < 3.11 only accepts 3 or 6 fractional digits; servers may send 1-9
_FRACTION = re.compile(r"\.(\d+)")


def _parse_timestamp(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    value = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value, count=1)
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class SecretValue:
    """A single decoded secret, as returned by ``GET /secrets/{id}``."""
    secret: str

    @classmethod
    def from_dict(cls, data: Any) -> "SecretValue":
        data = _require_object(data, "secret response")
        return cls(secret=_require_str(data, "secret"))

    def to_dict(self) -> Dict[str, Any]:
        return {"secret": self.secret}


@dataclass(frozen=True)
class SecretEntry:
    """
    Metadata for one stored secret in the vault listing.

    ``version`` and ``times_pulled`` are only sent by the richer listing
    variant and are ``None`` otherwise. Timestamps are kept exactly as the
    server sent them.
    """
    key: str
    date_added: str
    last_modified: str
    version: Optional[int] = None
    times_pulled: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Any) -> "SecretEntry":
        data = _require_object(data, "secret entry")
        return cls(
            key=_require_str(data, "key"),
            date_added=_require_str(data, "dateAdded"),
            last_modified=_require_str(data, "lastModified"),
            version=_optional_int(data, "version"),
            times_pulled=_optional_int(data, "timesPulled"),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "key": self.key,
            "dateAdded": self.date_added,
            "lastModified": self.last_modified,
        }
        if self.version is not None:
            result["version"] = self.version
        if self.times_pulled is not None:
            result["timesPulled"] = self.times_pulled
        return result

    @property
    def date_added_at(self) -> datetime:
        """``date_added`` parsed as an ISO-8601 timestamp."""
        return _parse_timestamp(self.date_added)

    @property
    def last_modified_at(self) -> datetime:
        """``last_modified`` parsed as an ISO-8601 timestamp."""
        return _parse_timestamp(self.last_modified)


@dataclass(frozen=True)
class WritePayload:
    """Request body for create, update and delete."""
    secret_id: str
    secret_value: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"secretID": self.secret_id, "secretValue": self.secret_value}


@dataclass(frozen=True)
class OperationResponse:
    message: str

    @classmethod
    def from_dict(cls, data: Any) -> "OperationResponse":
        data = _require_object(data, "operation response")
        return cls(message=_require_str(data, "message"))

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message}
