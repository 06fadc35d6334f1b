"""Cinemeta client for Stremio's public metadata addon, no API key needed."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from germandub.domain.entities.stremio import MetaInfo, StremioContentType

log = structlog.get_logger(__name__)

_DEFAULT_URL = "https://v3-cinemeta.strem.io"


class CinemetaClient:
    """Title resolver using ``/meta/{type}/{id}.json``.

    Implements ``MetadataProviderPort``; used as the fallback provider.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        base_url: str = _DEFAULT_URL,
        timeout: float = 10.0,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "cinemeta"

    async def _fetch_meta(
        self, external_id: str, kind: StremioContentType
    ) -> dict[str, Any] | None:
        url = f"{self._base_url}/meta/{kind}/{external_id}.json"
        try:
            resp = await self._http.get(url, timeout=self._timeout)
            if resp.status_code == 404:
                log.debug("cinemeta_not_found", external_id=external_id, kind=kind)
                return None
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError):
            log.warning(
                "cinemeta_request_failed", external_id=external_id, exc_info=True
            )
            return None

        meta = data.get("meta") if isinstance(data, dict) else None
        return meta if isinstance(meta, dict) and meta else None

    async def lookup(
        self, external_id: str, kind: StremioContentType = "movie"
    ) -> MetaInfo | None:
        meta = await self._fetch_meta(external_id, kind)
        if meta is None:
            return None

        title = str(meta.get("name") or "").strip()
        if not title:
            return None

        year = meta.get("year") or meta.get("releaseInfo") or ""
        meta_type = meta.get("type")
        return MetaInfo(
            title=title,
            year=str(year),
            kind=meta_type if meta_type in ("movie", "series") else kind,
        )
