"""Pydantic configuration models with validation."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from germandub.domain.entities.stremio import HosterLanguage

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
HitSelection = Literal["first", "exact_title"]


class SiteConfig(BaseModel):
    """Scraped site (s.to) endpoints and extraction policy."""

    base_url: str = Field(
        default="https://s.to",
        description="Base URL of the scraped streaming site.",
    )
    search_path: str = Field(
        default="/ajax/search",
        description="Path of the keyword search endpoint (POST).",
    )
    redirect_path: str = Field(
        default="/redirect/{link_id}",
        description="Redirect path template; {link_id} is replaced per hoster.",
    )
    accepted_languages: list[HosterLanguage] = Field(
        default=[
            HosterLanguage.GERMAN_DUB,
            HosterLanguage.GERMAN_SUB,
            HosterLanguage.GERMAN_UNSPECIFIED,
        ],
        description="Hoster language tags offered as streams.",
    )
    display_name_max_length: int = Field(
        default=40,
        description="Maximum length of a hoster display name.",
    )
    search_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for search requests (seconds).",
    )
    max_redirects: int = Field(
        default=5,
        description="Max HTTP redirects followed when resolving a hoster link.",
    )

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("redirect_path")
    @classmethod
    def _validate_redirect_path(cls, v: str) -> str:
        if "{link_id}" not in v:
            raise ValueError("redirect_path must contain '{link_id}'")
        return v

    @field_validator("display_name_max_length", "max_redirects")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("value must be > 0")
        return v


class SearchConfig(BaseModel):
    """Title search behaviour."""

    fallback_queries: bool = Field(
        default=True,
        description="Retry with simplified queries when the title finds nothing.",
    )
    hit_selection: HitSelection = Field(
        default="first",
        description="How to pick among several hits: 'first' or 'exact_title'.",
    )


class MetadataConfig(BaseModel):
    """Metadata providers (OMDb primary, Cinemeta fallback)."""

    omdb_api_key: str | None = Field(
        default=None,
        description="OMDb API key. Without it only Cinemeta is queried.",
    )
    omdb_url: str = Field(default="https://www.omdbapi.com/")
    cinemeta_url: str = Field(default="https://v3-cinemeta.strem.io")
    timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for metadata requests (seconds).",
    )


class DebridConfig(BaseModel):
    """Real-Debrid settings."""

    rd_api_key: str | None = Field(
        default=None,
        description="Default Real-Debrid API token (per-request config overrides it).",
    )
    api_url: str = Field(default="https://api.real-debrid.com/rest/1.0")
    timeout_seconds: float = Field(
        default=15.0,
        description="Timeout for unrestrict requests (seconds).",
    )


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/debrid/metadata/site/search).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="germandub", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=15.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Timeout in seconds for page and redirect fetches.",
    )
    http_user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/120.0.0.0 Safari/537.36"
        ),
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing HTTP requests.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    debrid: DebridConfig = Field(default_factory=DebridConfig)
    metadata: MetadataConfig = Field(default_factory=MetadataConfig)
    site: SiteConfig = Field(default_factory=SiteConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.

        Secrets are masked.
        """
        debrid = self.debrid.model_dump()
        metadata = self.metadata.model_dump()
        if debrid["rd_api_key"]:
            debrid["rd_api_key"] = "***"
        if metadata["omdb_api_key"]:
            metadata["omdb_api_key"] = "***"
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "debrid": debrid,
            "metadata": metadata,
            "site": self.site.model_dump(mode="json"),
            "search": self.search.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read GERMANDUB_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - GERMANDUB_LOG_LEVEL
    - GERMANDUB_SITE_BASE_URL
    - RD_API_KEY (or GERMANDUB_RD_API_KEY)
    - OMDB_API_KEY (or GERMANDUB_OMDB_API_KEY)
    """

    model_config = SettingsConfigDict(
        env_prefix="GERMANDUB_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    rd_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GERMANDUB_RD_API_KEY", "RD_API_KEY"),
    )
    omdb_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GERMANDUB_OMDB_API_KEY", "OMDB_API_KEY"),
    )

    site_base_url: Optional[str] = None
    search_fallback_queries: Optional[bool] = None
    search_hit_selection: Optional[HitSelection] = None

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
