"""
Loading and validation of the SiteIngest configuration.
Pydantic describes the schema and checks the data.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator


class DevModeConfig(BaseModel):
    """Authentication bypass for local development."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    enabled: bool = Field(False, description="Explicit opt-in to the dev workspace.")
    workspace_id: Optional[str] = Field(None, description="Workspace used while dev mode is active.")
    user_id: str = Field("dev-user", min_length=1)
    email: str = Field("dev@localhost")


class ApiToken(BaseModel):
    """A bearer token accepted by the HTTP API."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    user_id: str = Field(..., min_length=1)
    workspaces: List[str] = Field(default_factory=list, description="Workspaces the user belongs to.")


class IngestConfig(BaseModel):
    """Configuration of the crawler, its storage and the HTTP API."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    db_path: Path = Field(Path("site_ingest.db"), description="SQLite database file.")
    max_pages: int = Field(10, ge=1, description="Page budget of one crawl.")
    timeout: float = Field(10.0, gt=0, description="Timeout of one page request (seconds).")
    user_agent: str = Field("SiteIngestBot/1.0", min_length=1, description="User-Agent header.")
    continue_on_store_error: bool = Field(
        False, description="Log and skip a page whose write fails instead of aborting the crawl."
    )

    environment: str = Field("development", description="'production' always disables dev mode.")
    dev_mode: DevModeConfig = Field(default_factory=DevModeConfig)
    api_tokens: Dict[str, ApiToken] = Field(default_factory=dict)

    host: str = Field("127.0.0.1")
    port: int = Field(8080, ge=1, le=65535)

    @model_validator(mode="after")
    def _check_dev_workspace(self) -> IngestConfig:
        if self.dev_mode.enabled and self.dev_mode.workspace_id == "":
            raise ValueError("dev_mode.workspace_id must not be empty")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    @property
    def dev_mode_active(self) -> bool:
        """Dev mode needs an explicit opt-in and a workspace, and never runs in production."""
        if self.is_production:
            return False
        return self.dev_mode.enabled and bool(self.dev_mode.workspace_id)


def dev_mode_status(cfg: IngestConfig) -> str:
    """Human-readable dev mode state, logged when the API starts."""
    if cfg.is_production:
        return "Production mode - dev mode disabled"
    if not cfg.dev_mode.enabled:
        return "Dev mode not enabled - set dev_mode.enabled: true"
    if not cfg.dev_mode.workspace_id:
        return "Dev workspace not configured - set dev_mode.workspace_id"
    return "Dev mode active"


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> IngestConfig:
    """
    Read YAML or JSON and return a validated IngestConfig.
    A missing config file raises FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Unsupported config format: {suffix}")

    return IngestConfig(**data)


__all__ = [
    "ApiToken",
    "DevModeConfig",
    "IngestConfig",
    "ValidationError",
    "dev_mode_status",
    "load_config",
]
