"""Application settings loaded from YAML with environment variable overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from salesagg.errors import ConfigurationError

# ---------------------------------------------------------------------------
# Settings sections
# ---------------------------------------------------------------------------


class SourceSettings(BaseModel):
    backend: str = "gdrive"
    location_a: str | None = None
    location_b: str | None = None
    pattern_a: str = r"^INV-\d{3,}-\d{4,}"
    pattern_b: str = r"^IPEC Invoice \d{3,}-\d{4,}"
    page_size: int = Field(default=1000, gt=0)
    service_account_email: str | None = None
    service_account_key: str | None = None  # full service-account JSON


class StateSettings(BaseModel):
    backend: str = "file"
    path: str = "local_data/state"
    bucket: str | None = None
    prefix: str = ""
    region: str | None = None
    folder_id: str | None = None  # Drive cache folder for the gdrive backend


class ReferenceSettings(BaseModel):
    suppliers_path: str = "data/suppliers-codes.xlsx"
    categories_path: str | None = "data/categories-descriptions.xlsx"


class PipelineSettings(BaseModel):
    chunk_size: int = Field(default=25, gt=0)
    top_clients: int = Field(default=50, gt=0)


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseModel):
    source: SourceSettings = Field(default_factory=SourceSettings)
    state: StateSettings = Field(default_factory=StateSettings)
    reference: ReferenceSettings = Field(default_factory=ReferenceSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)

    def require_source(self) -> SourceSettings:
        """Return source settings, raising if anything the backend needs is missing."""
        src = self.source
        missing = [
            name
            for name, value in (("location_a", src.location_a), ("location_b", src.location_b))
            if not value
        ]
        if src.backend == "gdrive" and not src.service_account_key:
            missing.append("service_account_key")
        if missing:
            raise ConfigurationError(
                f"Missing source settings for backend '{src.backend}': {', '.join(missing)}"
            )
        return src


# Environment variable -> (section, field)
_ENV_OVERRIDES: list[tuple[str, str, str]] = [
    ("FOLDER_INV_A", "source", "location_a"),
    ("FOLDER_INV_B", "source", "location_b"),
    ("GDRIVE_SA_EMAIL", "source", "service_account_email"),
    ("GDRIVE_SA_KEY", "source", "service_account_key"),
    ("SALESAGG_SOURCE_BACKEND", "source", "backend"),
    ("SALESAGG_STATE_BACKEND", "state", "backend"),
    ("SALESAGG_STATE_PATH", "state", "path"),
    ("SALESAGG_STATE_BUCKET", "state", "bucket"),
    ("SALESAGG_STATE_PREFIX", "state", "prefix"),
    ("GDRIVE_CACHE_FOLDER_ID", "state", "folder_id"),
    ("SALESAGG_SUPPLIERS_PATH", "reference", "suppliers_path"),
    ("SALESAGG_CATEGORIES_PATH", "reference", "categories_path"),
    ("SALESAGG_CHUNK_SIZE", "pipeline", "chunk_size"),
]


def _find_settings_file() -> Path | None:
    """Walk up from cwd looking for settings.yaml."""
    profile = os.getenv("SALESAGG_PROFILE", "")
    names = [f"settings-{profile}.yaml", "settings.yaml"] if profile else ["settings.yaml"]

    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        for name in names:
            candidate = parent / name
            if candidate.exists():
                return candidate
    return None


def _apply_env_overrides(raw: dict) -> dict:
    for env_name, section, key in _ENV_OVERRIDES:
        value = os.getenv(env_name)
        if value:
            raw.setdefault(section, {})[key] = value
    return raw


def load_settings() -> Settings:
    """Load settings from YAML file, falling back to defaults."""
    path = _find_settings_file()
    raw: dict = {}
    if path is not None:
        with open(path, encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}

    try:
        return Settings(**_apply_env_overrides(raw))
    except ValidationError as exc:
        raise ConfigurationError("Invalid settings", detail=str(exc)) from exc
