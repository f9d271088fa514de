"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults (screen roster)
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — see ``_apply_env_overrides``

Entry point: ``load_config(config_path=None) -> AppConfig``

Both pipeline stages and all CLI commands receive an ``AppConfig`` instance —
never raw dicts or individual env var lookups scattered through the codebase.

Secrets (``.env``, gitignored)::

  BROADSIGN_BASE=https://direct.broadsign.com
  BROADSIGN_EMAIL=ops@example.com
  BROADSIGN_PASSWORD=...
  SOURCE_URL_PRIMARY=https://example.github.io/fillrate/fillrate-next30.json
  SOURCE_URL_FALLBACK_1=...
  SOURCE_URL_FALLBACK_2=...
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, SecretStr, field_validator

SOURCE_URL_ENV_VARS = (
    "SOURCE_URL_PRIMARY",
    "SOURCE_URL_FALLBACK_1",
    "SOURCE_URL_FALLBACK_2",
)


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing.

    Always raised before any network activity so a misconfigured scheduled
    job fails fast with a readable message.
    """


# ── Sub-config models ─────────────────────────────────────────────────────────


class SourcesConfig(BaseModel):
    """Published feed locations consumed by the archiver, in fallback order."""

    model_config = ConfigDict(frozen=True)

    urls: list[str] = []
    timeout_seconds: float = 30.0

    @field_validator("urls")
    @classmethod
    def drop_blank_urls(cls, v: list[str]) -> list[str]:
        return [u.strip() for u in v if u and u.strip()]

    def require_urls(self) -> None:
        if not self.urls:
            raise ConfigurationError(
                "No source URLs configured. Set "
                + ", ".join(SOURCE_URL_ENV_VARS)
                + " or [sources].urls in config/default.toml."
            )


class VendorConfig(BaseModel):
    """Broadsign Direct reporting API connection settings."""

    model_config = ConfigDict(frozen=True)

    base_url: str = ""
    email: str = ""
    password: SecretStr = SecretStr("")
    fill_rate_path: str = "/api/v1/reporting/fill_rate_breakdown"
    timeout_seconds: float = 60.0

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

    def require_credentials(self) -> None:
        """Raise ``ConfigurationError`` naming every missing credential."""
        missing = []
        if not self.base_url:
            missing.append("BROADSIGN_BASE")
        if not self.email:
            missing.append("BROADSIGN_EMAIL")
        if not self.password.get_secret_value():
            missing.append("BROADSIGN_PASSWORD")
        if missing:
            raise ConfigurationError(
                f"Missing environment variables: {', '.join(missing)}."
            )


class ScreenConfig(BaseModel):
    """One display unit in the roster (vendor ID + human-readable name)."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Screen name must not be blank.")
        return v


class ForecastConfig(BaseModel):
    """Forecast generator settings."""

    model_config = ConfigDict(frozen=True)

    output_path: str = "public/fillrate-next30.json"
    horizon_days: int = 30

    @field_validator("horizon_days")
    @classmethod
    def validate_horizon(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"horizon_days must be >= 1, got {v}.")
        return v


class ArchiveConfig(BaseModel):
    """Daily archive settings."""

    model_config = ConfigDict(frozen=True)

    logs_dir: str = "logs"
    sold_out_threshold: float = 0.934

    @field_validator("sold_out_threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        if not 0.0 < v <= 1.0:
            raise ValueError(f"sold_out_threshold must be in (0.0, 1.0], got {v}.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env + environment.
    """

    model_config = ConfigDict(frozen=True)

    sources: SourcesConfig = SourcesConfig()
    vendor: VendorConfig = VendorConfig()
    screens: list[ScreenConfig] = []
    forecast: ForecastConfig = ForecastConfig()
    archive: ArchiveConfig = ArchiveConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False

    def require_screens(self) -> None:
        if not self.screens:
            raise ConfigurationError(
                "Screen roster is empty. Add [[screens]] entries to config/default.toml."
            )


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variables to the raw config dict.

    Supported overrides:
      SOURCE_URL_PRIMARY, SOURCE_URL_FALLBACK_1, SOURCE_URL_FALLBACK_2
                                → raw["sources"]["urls"] (replaces the list)
      BROADSIGN_BASE            → raw["vendor"]["base_url"]
      BROADSIGN_EMAIL           → raw["vendor"]["email"]
      BROADSIGN_PASSWORD        → raw["vendor"]["password"]
      FILLRATE_ARCHIVE_DIR      → raw["archive"]["logs_dir"]
      FILLRATE_FORECAST_OUTPUT  → raw["forecast"]["output_path"]
      FILLRATE_LOG_LEVEL        → raw["logging"]["level"]
      FILLRATE_DEBUG            → raw["debug"]
    """
    env_urls = [os.environ.get(name, "") for name in SOURCE_URL_ENV_VARS]
    env_urls = [u for u in env_urls if u.strip()]
    if env_urls:
        raw.setdefault("sources", {})["urls"] = env_urls

    vendor_env = {
        "base_url": "BROADSIGN_BASE",
        "email": "BROADSIGN_EMAIL",
        "password": "BROADSIGN_PASSWORD",
    }
    for key, env_name in vendor_env.items():
        if value := os.environ.get(env_name):
            raw.setdefault("vendor", {})[key] = value

    if logs_dir := os.environ.get("FILLRATE_ARCHIVE_DIR"):
        raw.setdefault("archive", {})["logs_dir"] = logs_dir

    if output := os.environ.get("FILLRATE_FORECAST_OUTPUT"):
        raw.setdefault("forecast", {})["output_path"] = output

    if log_level := os.environ.get("FILLRATE_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("FILLRATE_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    return AppConfig(
        sources=SourcesConfig(**raw.get("sources", {})),
        vendor=VendorConfig(**raw.get("vendor", {})),
        screens=[ScreenConfig(**s) for s in raw.get("screens", [])],
        forecast=ForecastConfig(**raw.get("forecast", {})),
        archive=ArchiveConfig(**raw.get("archive", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", False),
    )
