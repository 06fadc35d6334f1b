"""End-to-end tests for the addon HTTP API.

Tests the full request-response cycle through:
    HTTP Request -> FastAPI Router -> Use Case -> real adapters -> JSON Response

The app is built with create_app() and its lifespan wires the real
adapters onto a real httpx.AsyncClient; upstream services (Cinemeta, OMDb,
s.to, Real-Debrid) are mocked with respx.

Endpoints covered:
    GET /
    GET /configure
    GET /healthz
    GET /manifest.json
    GET /stream/{type}/{id}.json
    GET /{config}/stream/{type}/{id}.json
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from germandub.infrastructure.config import AppConfig
from germandub.interfaces.api.stremio.user_config import UserConfig
from germandub.interfaces.app import create_app

_CINEMETA = "https://v3-cinemeta.strem.io"
_OMDB = "https://www.omdbapi.com/"
_STO = "https://s.to"
_RD = "https://api.real-debrid.com/rest/1.0/unrestrict/link"
_SHOW = f"{_STO}/serie/stream/test-show"
_HOSTER = "https://voe.sx/e/abc123"
_DIRECT = "https://download.real-debrid.com/d/XYZ/Test.Show.S01E02.mkv"

_EPISODE_HTML = """\
<html><body>
<div class="hosterSiteVideo">
  <ul class="row">
    <li data-lang-key="1" data-link-id="111" data-link-target="/redirect/111">
      <div class="generateInlinePlayer">
        <a class="watchEpisode" href="/redirect/111"><h4>VOE</h4></a>
      </div>
    </li>
    <li data-lang-key="1" data-link-id="222" data-link-target="/redirect/222">
      <div class="generateInlinePlayer">
        <a class="watchEpisode" href="/redirect/222"><h4>Streamtape</h4></a>
      </div>
    </li>
    <li data-lang-key="2" data-link-id="333" data-link-target="/redirect/333">
      <div class="generateInlinePlayer">
        <a class="watchEpisode" href="/redirect/333"><h4>Vidoza</h4></a>
      </div>
    </li>
  </ul>
</div>
</body></html>
"""


def _config(**overrides: Any) -> AppConfig:
    data: dict[str, Any] = {"environment": "test", "debrid": {"rd_api_key": "rd-key"}}
    data.update(overrides)
    return AppConfig.model_validate(data)


@pytest.fixture()
def upstream() -> Iterator[respx.MockRouter]:
    """Mock every upstream service for the tt1234567:1:2 scenario."""
    with respx.mock(assert_all_called=False) as router:
        router.get(f"{_CINEMETA}/meta/series/tt1234567.json", name="cinemeta").mock(
            return_value=httpx.Response(
                200,
                json={"meta": {"name": "Test Show", "year": "2020", "type": "series"}},
            )
        )
        router.post(f"{_STO}/ajax/search", name="search").mock(
            return_value=httpx.Response(
                200,
                json=[
                    {"title": "Test <em>Show</em>", "link": "/serie/stream/test-show"}
                ],
            )
        )
        router.get(f"{_SHOW}/staffel-1/episode-2", name="episode").mock(
            return_value=httpx.Response(200, text=_EPISODE_HTML)
        )
        router.get(f"{_STO}/redirect/111", name="redirect_ok").mock(
            return_value=httpx.Response(302, headers={"Location": _HOSTER})
        )
        router.get(_HOSTER, name="hoster").mock(
            return_value=httpx.Response(200, text="player")
        )
        router.get(f"{_STO}/redirect/222", name="redirect_dead").mock(
            return_value=httpx.Response(200, text="<p>captcha</p>")
        )
        router.post(_RD, name="unrestrict").mock(
            return_value=httpx.Response(
                200,
                json={
                    "download": _DIRECT,
                    "filename": "Test.Show.S01E02.mkv",
                    "filesize": 1536,
                    "host": "voe.sx",
                },
            )
        )
        yield router


class TestStreamPipeline:
    def test_episode_yields_single_stream(self, upstream: respx.MockRouter) -> None:
        with TestClient(create_app(_config())) as client:
            resp = client.get("/stream/series/tt1234567:1:2.json")

        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"
        assert resp.json() == {
            "streams": [
                {
                    "name": "German Dub",
                    "title": "🇩🇪 VOE (RD)\n1.50 KB",
                    "url": _DIRECT,
                    "behaviorHints": {
                        "bingeGroup": "germandub-tt1234567",
                        "notWebReady": False,
                    },
                }
            ]
        }

        assert upstream["search"].calls.last.request.content == b"keyword=Test+Show"
        assert upstream["unrestrict"].call_count == 1
        unrestrict = upstream["unrestrict"].calls.last.request
        assert unrestrict.headers["Authorization"] == "Bearer rd-key"
        # foreign-language hoster never followed
        assert not any("/redirect/333" in str(c.request.url) for c in upstream.calls)

    def test_configured_key_is_used(self, upstream: respx.MockRouter) -> None:
        segment = UserConfig(rd_api_key="user-key").to_segment()

        with TestClient(create_app(_config())) as client:
            resp = client.get(f"/{segment}/stream/series/tt1234567:1:2.json")

        assert len(resp.json()["streams"]) == 1
        unrestrict = upstream["unrestrict"].calls.last.request
        assert unrestrict.headers["Authorization"] == "Bearer user-key"

    def test_missing_credential_makes_no_outbound_calls(
        self, upstream: respx.MockRouter
    ) -> None:
        config = _config(debrid={"rd_api_key": None})

        with TestClient(create_app(config)) as client:
            resp = client.get("/stream/series/tt1234567:1:2.json")

        assert resp.status_code == 200
        assert resp.json() == {"streams": []}
        assert upstream.calls.call_count == 0

    def test_metadata_not_found(self, upstream: respx.MockRouter) -> None:
        upstream["cinemeta"].mock(return_value=httpx.Response(404))

        with TestClient(create_app(_config())) as client:
            resp = client.get("/stream/series/tt1234567:1:2.json")

        assert resp.json() == {"streams": []}
        assert not upstream["search"].called

    def test_omdb_primary_miss_falls_back_to_cinemeta(
        self, upstream: respx.MockRouter
    ) -> None:
        omdb = upstream.get(_OMDB).mock(
            return_value=httpx.Response(
                200, json={"Response": "False", "Error": "Incorrect IMDb ID."}
            )
        )
        config = _config(metadata={"omdb_api_key": "omdb-key"})

        with TestClient(create_app(config)) as client:
            resp = client.get("/stream/series/tt1234567:1:2.json")

        assert omdb.called
        assert upstream["cinemeta"].called
        assert len(resp.json()["streams"]) == 1

    def test_search_fallback_query(self, upstream: respx.MockRouter) -> None:
        upstream["cinemeta"].mock(
            return_value=httpx.Response(
                200,
                json={"meta": {"name": "Test Show: Reloaded", "type": "series"}},
            )
        )

        def _search(request: httpx.Request) -> httpx.Response:
            if request.content == b"keyword=Test+Show":
                hit = {"title": "Test Show", "link": "/serie/stream/test-show"}
                return httpx.Response(200, json=[hit])
            return httpx.Response(200, json=[])

        upstream["search"].mock(side_effect=_search)

        with TestClient(create_app(_config())) as client:
            resp = client.get("/stream/series/tt1234567:1:2.json")

        assert len(resp.json()["streams"]) == 1
        assert [c.request.content for c in upstream["search"].calls] == [
            b"keyword=Test+Show%3A+Reloaded",
            b"keyword=Test+Show",
        ]

    def test_malformed_id_returns_empty(self, upstream: respx.MockRouter) -> None:
        with TestClient(create_app(_config())) as client:
            resp = client.get("/stream/series/tt1234567:0:2.json")

        assert resp.status_code == 200
        assert resp.json() == {"streams": []}
        assert upstream.calls.call_count == 0


class TestServiceEndpoints:
    def test_healthz(self) -> None:
        with TestClient(create_app(_config())) as client:
            resp = client.get("/healthz")
        assert resp.json() == {"status": "ok"}

    def test_manifest(self) -> None:
        with TestClient(create_app(_config())) as client:
            resp = client.get("/manifest.json")
        assert resp.json()["id"] == "org.stremio.germandub"

    @pytest.mark.parametrize("path", ["/", "/configure"])
    def test_landing_page(self, path: str) -> None:
        with TestClient(create_app(_config())) as client:
            resp = client.get(path)

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        assert "Real-Debrid API key configured: yes" in resp.text
        assert "http://testserver/manifest.json" in resp.text

    def test_landing_page_without_key(self) -> None:
        config = _config(debrid={"rd_api_key": None})
        with TestClient(create_app(config)) as client:
            resp = client.get("/")
        assert "Real-Debrid API key configured: no" in resp.text
