"""
pokespeare/utils/settings.py

Runtime configuration for the Pokespeare API.

Values come from two places, later ones winning:

    parameters/parameters.yaml     checked-in defaults
    POKESPEARE_<FIELD> env vars    per-deployment overrides

`get_settings()` builds the Settings object once per process. It refuses to
start without both upstream base URLs, since no request can succeed then.

`load_yaml(path)` is the one YAML reader in the project; the endpoint
templates in parameters/config.yaml go through it as well.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
import yaml
from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(__name__)

PARAMETERS_PATH = Path(__file__).resolve().parents[2] / "parameters" / "parameters.yaml"


class Settings(BaseSettings):
    """Every tunable of the service. Build it through get_settings(), not directly."""

    model_config = SettingsConfigDict(
        env_prefix="POKESPEARE_",
        extra="ignore",
    )

    # Service metadata
    service_name: str = "pokespeare"
    environment: str = "local"
    log_level: str = "INFO"

    # Inbound server
    api_host: str = "0.0.0.0"
    api_port: int = 5000

    # Upstream services. None here so an env-only Settings() can load;
    # get_settings() rejects a merged result without them.
    lookup_api_base_url: Optional[AnyHttpUrl] = None
    rewrite_api_base_url: Optional[AnyHttpUrl] = None

    # Outbound calls rely on this single timeout; there is no other cancellation.
    http_timeout_seconds: float = 30.0

    # Description selection
    description_language: str = "en"
    preferred_version: str = "ruby"

    # Cache behavior
    coalesce_inflight_requests: bool = Field(
        default=False,
        description=(
            "If true, concurrent cache misses for the same key share one upstream "
            "computation instead of each calling the upstream service."
        ),
    )


_UPSTREAM_URL_FIELDS = ("lookup_api_base_url", "rewrite_api_base_url")


@lru_cache(maxsize=None)
def load_yaml(path: Path) -> Dict[str, Any]:
    """
    Read a YAML mapping from `path`, once per path.

    A missing file yields an empty mapping. A file that is not valid YAML, or
    whose top level is not a mapping, is a RuntimeError. Callers must not
    mutate the returned dict.
    """
    if not path.is_file():
        logger.warning("yaml_file_missing", path=str(path))
        return {}

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise RuntimeError(f"cannot read {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise RuntimeError(f"{path} must hold a mapping, got {type(data).__name__}")

    logger.info("yaml_file_loaded", path=str(path), keys=sorted(data))
    return data


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide Settings: YAML defaults overlaid with POKESPEARE_* env vars."""
    # Settings() reads only the environment here; exclude_unset keeps the
    # fields the environment actually set, so they override the YAML.
    overrides = Settings().model_dump(exclude_unset=True)
    settings = Settings.model_validate({**load_yaml(PARAMETERS_PATH), **overrides})

    unset = [field for field in _UPSTREAM_URL_FIELDS if getattr(settings, field) is None]
    if unset:
        env_names = ", ".join(f"POKESPEARE_{field.upper()}" for field in unset)
        logger.error("settings_upstream_url_unset", fields=unset)
        raise RuntimeError(f"no upstream base URL configured: set {env_names} or add it to {PARAMETERS_PATH}")

    logger.info(
        "settings_ready",
        environment=settings.environment,
        overridden=sorted(overrides),
        lookup_api_base_url=str(settings.lookup_api_base_url),
        rewrite_api_base_url=str(settings.rewrite_api_base_url),
        coalesce_inflight_requests=settings.coalesce_inflight_requests,
    )
    return settings
