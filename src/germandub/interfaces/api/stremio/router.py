"""Stremio addon API endpoints (manifest, stream)."""

from __future__ import annotations

from typing import Any, cast

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from germandub.domain.entities.stremio import (
    InvalidContentIdError,
    StremioContentType,
    parse_content_id,
)
from germandub.interfaces.api.stremio.user_config import decode_user_config
from germandub.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["stremio"])

ADDON_ID = "org.stremio.germandub"
ADDON_VERSION = "1.0.0"

_CONTENT_TYPES: tuple[str, ...] = ("movie", "series")
_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "*",
}


def build_manifest() -> dict[str, Any]:
    """Build the Stremio addon manifest."""
    return {
        "id": ADDON_ID,
        "version": ADDON_VERSION,
        "name": "German Dub (s.to)",
        "description": "German dubbed streams from s.to with Real-Debrid integration",
        "logo": "https://s.to/favicon.ico",
        "resources": ["stream"],
        "types": list(_CONTENT_TYPES),
        "idPrefixes": ["tt"],
        "catalogs": [],
        "behaviorHints": {
            "configurable": True,
        },
    }


def _empty_streams() -> JSONResponse:
    return JSONResponse(content={"streams": []}, headers=_CORS_HEADERS)


def _resolve_api_key(state: AppState, user_config: str | None) -> str | None:
    """Per-request key if the config segment carries one, else the default."""
    if user_config:
        decoded = decode_user_config(user_config)
        if decoded is not None and decoded.rd_api_key:
            return decoded.rd_api_key
    return state.config.debrid.rd_api_key


async def _stream_response(
    request: Request,
    content_type: str,
    stream_id: str,
    user_config: str | None = None,
) -> JSONResponse:
    state = cast(AppState, request.app.state)

    if content_type not in _CONTENT_TYPES:
        log.info("stremio_unsupported_type", content_type=content_type)
        return _empty_streams()

    try:
        ref = parse_content_id(stream_id)
    except InvalidContentIdError as exc:
        log.warning("stremio_invalid_id", stream_id=stream_id, error=str(exc))
        return _empty_streams()

    log.info(
        "stremio_stream_request",
        external_id=ref.external_id,
        content_type=content_type,
        season=ref.season,
        episode=ref.episode,
        configured=user_config is not None,
    )

    try:
        streams = await state.stremio_stream_uc.execute(
            cast(StremioContentType, content_type),
            ref,
            api_key=_resolve_api_key(state, user_config),
        )
    except Exception:
        log.error(
            "stremio_stream_failed",
            external_id=ref.external_id,
            exc_info=True,
        )
        return _empty_streams()

    return JSONResponse(
        content={"streams": [s.to_dict() for s in streams]},
        headers=_CORS_HEADERS,
    )


@router.get("/manifest.json")
async def stremio_manifest() -> JSONResponse:
    """Return the addon manifest for Stremio."""
    return JSONResponse(content=build_manifest(), headers=_CORS_HEADERS)


@router.get("/stream/{content_type}/{stream_id}.json")
async def stremio_stream(
    request: Request,
    content_type: str,
    stream_id: str,
) -> JSONResponse:
    """Resolve streams using the server's default Real-Debrid key."""
    return await _stream_response(request, content_type, stream_id)


@router.get("/{user_config}/manifest.json")
async def stremio_configured_manifest(user_config: str) -> JSONResponse:
    """Manifest for an addon installed with a configuration segment."""
    return JSONResponse(content=build_manifest(), headers=_CORS_HEADERS)


@router.get("/{user_config}/stream/{content_type}/{stream_id}.json")
async def stremio_configured_stream(
    request: Request,
    user_config: str,
    content_type: str,
    stream_id: str,
) -> JSONResponse:
    """Resolve streams with the key from the configuration segment."""
    return await _stream_response(request, content_type, stream_id, user_config)
