"""Real-Debrid REST client (``/unrestrict/link`` only)."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from germandub.domain.entities.stremio import UnrestrictResult

log = structlog.get_logger(__name__)

_DEFAULT_API_URL = "https://api.real-debrid.com/rest/1.0"


def _parse_filesize(raw: Any) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if raw > 0 else None
    if isinstance(raw, str) and raw.isdigit():
        return int(raw) or None
    return None


class RealDebridClient:
    """Async Real-Debrid client using httpx.

    The API key is passed per call so a single client can serve requests
    carrying different user credentials.

    Implements ``DebridClientPort`` from domain.ports.debrid.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        api_url: str = _DEFAULT_API_URL,
        timeout: float = 15.0,
    ) -> None:
        self._http = http_client
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout

    async def _post(
        self, path: str, data: dict[str, str], api_key: str
    ) -> dict[str, Any] | None:
        """POST a form and return the parsed JSON object, or None on failure."""
        try:
            resp = await self._http.post(
                f"{self._api_url}{path}",
                data=data,
                headers={"Authorization": f"Bearer {api_key}"},
                timeout=self._timeout,
            )
        except httpx.HTTPError:
            log.warning("realdebrid_network_error", path=path, exc_info=True)
            return None

        if resp.status_code == 401:
            log.error("realdebrid_api_key_invalid", status=401)
            return None

        try:
            payload = resp.json()
        except ValueError:
            log.warning(
                "realdebrid_invalid_json", path=path, status=resp.status_code
            )
            return None
        if not isinstance(payload, dict):
            return None

        if resp.is_error or "error" in payload:
            log.warning(
                "realdebrid_error",
                path=path,
                status=resp.status_code,
                error=payload.get("error"),
                error_code=payload.get("error_code"),
            )
            return None
        return payload

    async def unrestrict(self, link: str, api_key: str) -> UnrestrictResult | None:
        """Unrestrict a hoster link into a direct download URL."""
        payload = await self._post("/unrestrict/link", {"link": link}, api_key)
        if payload is None:
            return None

        download = payload.get("download")
        if not isinstance(download, str) or not download:
            log.info("realdebrid_no_download", link=link)
            return None

        result = UnrestrictResult(
            direct_url=download,
            filename=payload.get("filename") or None,
            filesize_bytes=_parse_filesize(payload.get("filesize")),
            host_name=payload.get("host") or None,
        )
        log.debug(
            "realdebrid_unrestricted",
            link=link,
            host=result.host_name,
            filesize=result.filesize_bytes,
        )
        return result
