"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from germandub.application.use_cases.stremio_stream import (
    HIT_SELECTORS,
    StremioStreamUseCase,
)
from germandub.domain.ports.metadata import MetadataProviderPort
from germandub.infrastructure.config.schema import AppConfig
from germandub.infrastructure.debrid import RealDebridClient
from germandub.infrastructure.metadata import (
    CinemetaClient,
    FallbackMetadataResolver,
    OmdbClient,
)
from germandub.infrastructure.sto import (
    StoHosterExtractor,
    StoRedirectResolver,
    StoSearchClient,
)
from germandub.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def build_metadata_resolver(
    config: AppConfig, http_client: httpx.AsyncClient
) -> FallbackMetadataResolver:
    """OMDb first (only with an API key), Cinemeta as fallback."""
    meta_cfg = config.metadata
    providers: list[MetadataProviderPort] = []
    if meta_cfg.omdb_api_key:
        providers.append(
            OmdbClient(
                api_key=meta_cfg.omdb_api_key,
                http_client=http_client,
                base_url=meta_cfg.omdb_url,
                timeout=meta_cfg.timeout_seconds,
            )
        )
    else:
        log.info("omdb_disabled", reason="no API key, using Cinemeta only")
    providers.append(
        CinemetaClient(
            http_client=http_client,
            base_url=meta_cfg.cinemeta_url,
            timeout=meta_cfg.timeout_seconds,
        )
    )
    return FallbackMetadataResolver(providers)


def build_stremio_stream_use_case(
    config: AppConfig, http_client: httpx.AsyncClient
) -> StremioStreamUseCase:
    """Wire all adapters of the stream pipeline onto one HTTP client."""
    site = config.site
    return StremioStreamUseCase(
        metadata=build_metadata_resolver(config, http_client),
        search=StoSearchClient(
            http_client=http_client,
            base_url=site.base_url,
            search_path=site.search_path,
            user_agent=config.http_user_agent,
            timeout=site.search_timeout_seconds,
            fallback_queries=config.search.fallback_queries,
        ),
        hosters=StoHosterExtractor(
            http_client=http_client,
            base_url=site.base_url,
            redirect_path=site.redirect_path,
            accepted_languages=site.accepted_languages,
            display_name_max_length=site.display_name_max_length,
            user_agent=config.http_user_agent,
            timeout=config.http_timeout_seconds,
        ),
        redirects=StoRedirectResolver(
            http_client=http_client,
            base_url=site.base_url,
            max_redirects=site.max_redirects,
            user_agent=config.http_user_agent,
            timeout=config.http_timeout_seconds,
        ),
        debrid=RealDebridClient(
            http_client=http_client,
            api_url=config.debrid.api_url,
            timeout=config.debrid.timeout_seconds,
        ),
        select_hit=HIT_SELECTORS[config.search.hit_selection],
    )


def build_http_client(config: AppConfig) -> httpx.AsyncClient:
    """Shared client for all adapters. Cookies are refused so no request sees
    state left behind by another one.
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        cookies=CookieJar(policy=DefaultCookiePolicy(allowed_domains=[])),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create shared resources on startup and release them on shutdown."""
    state = cast(AppState, app.state)
    config: AppConfig = state.config

    log.info("app_startup", app_name=config.app_name, environment=config.environment)

    # 1) Shared HTTP client, every call passes its own timeout
    state.http_client = build_http_client(config)
    log.info("http_client_initialized", timeout=config.http_timeout_seconds)

    # 2) Stream pipeline
    state.stremio_stream_uc = build_stremio_stream_use_case(config, state.http_client)
    log.info(
        "stremio_stream_uc_initialized",
        site=config.site.base_url,
        debrid_key_configured=bool(config.debrid.rd_api_key),
        hit_selection=config.search.hit_selection,
    )

    log.info("app_startup_complete")

    try:
        yield
    finally:
        await state.http_client.aclose()
        log.info("http_client_closed")

        log.info("app_shutdown_complete")
