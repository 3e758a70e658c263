"""Layered configuration for roomscout.

Values are resolved from, lowest to highest precedence:

* ``config/settings.default.toml``
* ``config/settings.<ROOMSCOUT_ENV>.toml`` (``dev``, ``ci`` ...)
* ``config/settings.local.toml`` (untracked, per machine)
* ``ROOMSCOUT_<SECTION>__<KEY>`` environment variables
* keyword arguments passed to ``Settings(...)`` and CLI flags
"""

from __future__ import annotations

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(os.getenv("ROOMSCOUT_PROJECT_ROOT", Path(__file__).resolve().parents[3]))
CONFIG_DIR = PROJECT_ROOT / "config"

ENV_VAR_NAME = "ROOMSCOUT_ENV"
DEFAULT_ENV = "local"


def _active_env(explicit: Any = None) -> str:
    return str(explicit or os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()


def _read_layer(name: str) -> dict[str, Any]:
    path = CONFIG_DIR / name
    if not path.is_file():
        return {}
    return tomllib.loads(path.read_text(encoding="utf-8"))


def _overlay(base: dict[str, Any], layer: dict[str, Any]) -> dict[str, Any]:
    """Merge *layer* onto *base* one table deep; sections merge key by key."""
    merged = dict(base)
    for key, value in layer.items():
        current = merged.get(key)
        merged[key] = {**current, **value} if isinstance(value, dict) and isinstance(current, dict) else value
    return merged


class BrowserSettings(BaseSettings):
    """Chromium launch and default navigation timeout."""

    model_config = SettingsConfigDict(env_prefix="ROOMSCOUT_BROWSER__")

    headless: bool = True
    timeout_ms: int = 30_000
    user_agent: str = ""
    proxy: str = ""
    locale: str = ""


class StealthSettings(BaseSettings):
    """Proxy rotation and fingerprint randomization."""

    model_config = SettingsConfigDict(env_prefix="ROOMSCOUT_STEALTH__")

    proxy_urls: list[str] = Field(default_factory=list)
    rotation_strategy: Literal["round_robin", "random"] = "round_robin"
    randomize_fingerprint: bool = True
    apply_stealth_scripts: bool = True


class SiteSettings(BaseSettings):
    """Target site locations."""

    model_config = SettingsConfigDict(env_prefix="ROOMSCOUT_SITE__")

    base_url: str = "https://www.airbnb.com"
    results_url_pattern: str = r"/s/"
    wait_until: Literal["commit", "domcontentloaded", "load", "networkidle"] = "domcontentloaded"


class SelectorSettings(BaseSettings):
    """Selector resolution retry policy."""

    model_config = SettingsConfigDict(env_prefix="ROOMSCOUT_SELECTORS__")

    max_retries: int = Field(default=3, ge=1)
    retry_delay_ms: int = Field(default=1_000, ge=0)


class PopupSettings(BaseSettings):
    """Popup dismissal budget and probe timings."""

    model_config = SettingsConfigDict(env_prefix="ROOMSCOUT_POPUPS__")

    dismiss_timeout_ms: int = 5_000
    probe_timeout_ms: int = 300
    click_timeout_ms: int = 1_000
    settle_ms: int = 300


class SearchSettings(BaseSettings):
    """Timeouts for the search/extraction flow."""

    model_config = SettingsConfigDict(env_prefix="ROOMSCOUT_SEARCH__")

    ready_timeout_ms: int = 15_000
    results_url_timeout_ms: int = 30_000
    results_signal_timeout_ms: int = 20_000
    network_idle_timeout_ms: int = 10_000
    widget_timeout_ms: int = 5_000
    suggestions_timeout_ms: int = 10_000
    action_timeout_ms: int = 10_000
    field_timeout_ms: int = 1_000
    max_results: int = Field(default=10, ge=1)


class LoggingSettings(BaseSettings):
    """Log output configuration."""

    model_config = SettingsConfigDict(env_prefix="ROOMSCOUT_LOGGING__")

    level: str = "INFO"
    json_logs: bool = False



class Settings(BaseSettings):
    """All roomscout settings, one nested model per section."""

    model_config = SettingsConfigDict(
        env_prefix="ROOMSCOUT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    env: str = Field(default_factory=_active_env)
    project_root: Path = Field(default=PROJECT_ROOT)
    debug: bool = False

    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    stealth: StealthSettings = Field(default_factory=StealthSettings)
    site: SiteSettings = Field(default_factory=SiteSettings)
    selectors: SelectorSettings = Field(default_factory=SelectorSettings)
    popups: PopupSettings = Field(default_factory=PopupSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @model_validator(mode="before")
    @classmethod
    def _apply_config_files(cls, values: dict[str, Any]) -> dict[str, Any]:
        env = _active_env(values.get("env"))
        resolved: dict[str, Any] = {}
        for name in ("settings.default.toml", f"settings.{env}.toml", "settings.local.toml"):
            resolved = _overlay(resolved, _read_layer(name))
        return _overlay(resolved, values)

    @model_validator(mode="after")
    def _normalize_site(self) -> "Settings":
        # Paths such as "/s/Rome/homes" are appended to base_url verbatim
        self.site.base_url = self.site.base_url.rstrip("/")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, loaded on first use."""
    return Settings()
