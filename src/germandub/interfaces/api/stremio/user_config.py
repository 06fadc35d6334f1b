"""Per-request addon configuration carried in the URL path.

Stremio installs configured addons from URLs such as
``/<config>/manifest.json``; the segment is either URL-encoded JSON or
base64url-encoded JSON, e.g. ``{"rdApiKey": "..."}``.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any
from urllib.parse import unquote

import structlog
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

log = structlog.get_logger(__name__)


class UserConfig(BaseModel):
    """Settings a user supplies when installing the addon."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    rd_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("rdApiKey", "rd_api_key", "apiKey"),
    )

    def to_segment(self) -> str:
        """Encode as a base64url path segment (without padding)."""
        payload = json.dumps({"rdApiKey": self.rd_api_key}, separators=(",", ":"))
        return base64.urlsafe_b64encode(payload.encode()).decode().rstrip("=")


def _json_object(text: str) -> dict[str, Any] | None:
    try:
        data = json.loads(text)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def _from_base64(segment: str) -> dict[str, Any] | None:
    padded = segment + "=" * (-len(segment) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        return _json_object(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError):
        return None


def decode_user_config(segment: str) -> UserConfig | None:
    """Decode a config path segment; None when it cannot be decoded."""
    segment = segment.strip()
    if not segment:
        return None

    data = _json_object(unquote(segment))
    if data is None:
        data = _from_base64(segment)
    if data is None:
        log.warning("user_config_undecodable", length=len(segment))
        return None

    try:
        config = UserConfig.model_validate(data)
    except ValidationError:
        log.warning("user_config_invalid", keys=sorted(data), exc_info=True)
        return None

    if config.rd_api_key is not None:
        config = config.model_copy(
            update={"rd_api_key": config.rd_api_key.strip() or None}
        )
    return config
