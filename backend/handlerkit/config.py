"""handlerkit configuration.

Loads settings from a single YAML file, ``handlerkit.settings.yaml``.
The path can be given explicitly or through the ``HANDLERKIT_SETTINGS``
environment variable; a missing file yields the defaults below.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field

from handlerkit.files.schemas import DEFAULT_MAX_UPLOAD_BYTES, UploadPolicy
from handlerkit.jsonio.schemas import DEFAULT_MAX_JSON_BYTES

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SETTINGS_FILE = Path("handlerkit.settings.yaml")
SETTINGS_ENV_VAR = "HANDLERKIT_SETTINGS"


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning("Config file not found: %s", path)
        return {}
    with path.open(encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


# ---------------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------------


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000


class LoggingSettings(BaseModel):
    level: str = "info"


class UploadSettings(BaseModel):
    """Defaults for the upload endpoints."""
    upload_dir:            str       = "./uploads"
    max_total_bytes:       int       = Field(default=DEFAULT_MAX_UPLOAD_BYTES, gt=0)
    allowed_content_types: List[str] = Field(default_factory=list)
    rename:                bool      = True

    def to_policy(self) -> UploadPolicy:
        return UploadPolicy(
            max_total_bytes=self.max_total_bytes,
            allowed_content_types=frozenset(self.allowed_content_types),
        )


class JSONSettings(BaseModel):
    max_bytes:            int  = Field(default=DEFAULT_MAX_JSON_BYTES, gt=0)
    allow_unknown_fields: bool = False


class ToolkitConfig(BaseModel):
    server:  ServerSettings  = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    uploads: UploadSettings  = Field(default_factory=UploadSettings)
    json_io: JSONSettings    = Field(default_factory=JSONSettings, alias="json")

    model_config = {"populate_by_name": True}


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------


def _resolve_settings_path(settings_path: Optional[Path]) -> Path:
    if settings_path is not None:
        return Path(settings_path)
    env_path = os.environ.get(SETTINGS_ENV_VAR)
    if env_path:
        return Path(env_path)
    return SETTINGS_FILE


def load_config(settings_path: Optional[Path] = None) -> ToolkitConfig:
    """Load the settings file into a *ToolkitConfig*.

    A relative ``uploads.upload_dir`` is resolved against the directory that
    holds the settings file.
    """
    path = _resolve_settings_path(settings_path)
    data = _load_yaml(path)
    config = ToolkitConfig(**data)

    upload_dir = Path(config.uploads.upload_dir)
    if not upload_dir.is_absolute():
        config.uploads.upload_dir = str((path.parent / upload_dir).resolve())

    logger.info(
        "Settings loaded (upload_dir=%s, max_total_bytes=%s, allowed_types=%s)",
        config.uploads.upload_dir,
        config.uploads.max_total_bytes,
        config.uploads.allowed_content_types or "*",
    )
    return config


_config: Optional[ToolkitConfig] = None


def get_config() -> ToolkitConfig:
    """Return the process-wide config, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: ToolkitConfig) -> None:
    global _config
    _config = config


def reset_config() -> None:
    """Drop the cached config (for testing)."""
    global _config
    _config = None
