# addonhub/core/storage/paths.py
from __future__ import annotations
from pathlib import Path
import os

# Environment variable overriding the data directory
HOME_ENV = "ADDONHUB_HOME"


def addonhub_home(data_dir: str | None = None) -> Path:
    """Data root: explicit data_dir, then $ADDONHUB_HOME, then ~/.addonhub"""
    if data_dir:
        return Path(data_dir).expanduser()
    env = os.environ.get(HOME_ENV)
    if env:
        return Path(env).expanduser()
    return Path.home() / ".addonhub"


def settings_path(data_dir: str | None = None) -> Path:
    return addonhub_home(data_dir) / "settings.json"


def records_db_path(data_dir: str | None = None) -> Path:
    """Installed-record database (one namespace per catalog service)"""
    return addonhub_home(data_dir) / "store" / "records.sqlite"


def archive_cache_dir(data_dir: str | None = None) -> Path:
    """Per-addon archive cache used by the archive handler"""
    return addonhub_home(data_dir) / "cache" / "archives"
