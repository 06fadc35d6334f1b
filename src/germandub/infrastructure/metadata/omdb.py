"""OMDb API client, the primary metadata provider."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from germandub.domain.entities.stremio import MetaInfo, StremioContentType

log = structlog.get_logger(__name__)

_DEFAULT_URL = "https://www.omdbapi.com/"


class OmdbClient:
    """Async OMDb client using httpx.

    Implements ``MetadataProviderPort`` from domain.ports.metadata.
    """

    def __init__(
        self,
        *,
        api_key: str,
        http_client: httpx.AsyncClient,
        base_url: str = _DEFAULT_URL,
        timeout: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._http = http_client
        self._base_url = base_url
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "omdb"

    async def _get(self, external_id: str) -> dict[str, Any] | None:
        """GET request with error handling. Returns parsed JSON or None."""
        try:
            resp = await self._http.get(
                self._base_url,
                params={"i": external_id, "apikey": self._api_key},
                timeout=self._timeout,
            )
            if resp.status_code == 401:
                log.error("omdb_api_key_invalid", status=401)
                return None
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError:
            log.warning("omdb_http_error", external_id=external_id, exc_info=True)
            return None
        except httpx.HTTPError:
            log.warning("omdb_network_error", external_id=external_id, exc_info=True)
            return None
        except ValueError:
            log.warning("omdb_invalid_json", external_id=external_id)
            return None
        return data if isinstance(data, dict) else None

    async def lookup(
        self, external_id: str, kind: StremioContentType = "movie"
    ) -> MetaInfo | None:
        """Lookup by IMDb ID. *kind* is ignored; OMDb reports its own type."""
        data = await self._get(external_id)
        if data is None or data.get("Response") != "True":
            log.debug(
                "omdb_not_found",
                external_id=external_id,
                error=(data or {}).get("Error"),
            )
            return None

        title = str(data.get("Title") or "").strip()
        if not title:
            return None

        return MetaInfo(
            title=title,
            year=str(data.get("Year") or ""),
            kind="movie" if data.get("Type") == "movie" else "series",
        )
