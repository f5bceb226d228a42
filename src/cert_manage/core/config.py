"""Configuration loading — reads optional TOML config file."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATHS = [
    Path.home() / ".config" / "cert-manage" / "config.toml",
    Path("cert-manage.toml"),
]

DEFAULT_BACKUP_DIR = Path.home() / ".local" / "share" / "cert-manage" / "backups"


class LinuxSettings(BaseModel):
    cert_dir: Path | None = None


class NssSettings(BaseModel):
    db_dir: Path | None = None


class JavaSettings(BaseModel):
    keystore: Path | None = None
    storepass: str = "changeit"


class DarwinSettings(BaseModel):
    keychain: Path = Path("/Library/Keychains/System.keychain")


class WindowsSettings(BaseModel):
    store_name: str = "Root"


class Settings(BaseModel):
    """Validated runtime settings shared by every trust store."""

    backup_dir: Path = DEFAULT_BACKUP_DIR
    tool_timeout: float = Field(default=120.0, gt=0)
    linux: LinuxSettings = Field(default_factory=LinuxSettings)
    nss: NssSettings = Field(default_factory=NssSettings)
    java: JavaSettings = Field(default_factory=JavaSettings)
    darwin: DarwinSettings = Field(default_factory=DarwinSettings)
    windows: WindowsSettings = Field(default_factory=WindowsSettings)


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration from a TOML file.

    Searches default paths if no explicit path is given.
    Returns an empty dict if no config file is found.
    """
    paths = [path] if path is not None else DEFAULT_CONFIG_PATHS

    for p in paths:
        if p.exists():
            with open(p, "rb") as f:
                return tomllib.load(f)

    return {}


def get_backup_dir(config: dict[str, Any] | None = None) -> Path:
    """Get the backup root: CERT_MANAGE_BACKUP_DIR env var → config.toml → default."""
    env = os.environ.get("CERT_MANAGE_BACKUP_DIR")
    if env:
        return Path(env).expanduser()
    if config is None:
        config = load_config()
    value = config.get("backup_dir")
    if value:
        return Path(value).expanduser()
    return DEFAULT_BACKUP_DIR


def load_settings(path: Path | None = None) -> Settings:
    """Build validated Settings from the TOML config and environment overrides."""
    config = load_config(path)
    data = dict(config)
    data["backup_dir"] = get_backup_dir(config)
    return Settings.model_validate(data)
