"""Configuration for the SQLite Manager MCP Server."""
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

# data.sqlite lives next to the installed package directory
_INSTALL_DIR = Path(__file__).resolve().parent.parent


def _default_desktop_config_path() -> str:
    home = Path.home()
    if sys.platform == "darwin":
        base = home / "Library" / "Application Support" / "Claude"
    elif sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", home / "AppData" / "Roaming")) / "Claude"
    else:
        base = home / ".config" / "Claude"
    return str(base / "claude_desktop_config.json")


@dataclass
class SqliteManagerConfig:
    """Server configuration loaded from environment variables."""

    server_name: str = "sqlite-manager"
    server_version: str = "0.1.0"

    database_path: str = field(
        default_factory=lambda: os.environ.get(
            "SQLITE_MANAGER_DB_PATH", str(_INSTALL_DIR / "data.sqlite")
        )
    )
    log_level: str = field(
        default_factory=lambda: os.environ.get("SQLITE_MANAGER_LOG_LEVEL", "INFO").upper()
    )

    # Desktop host registration (see sqlite_manager/install.py)
    desktop_config_path: str = field(
        default_factory=lambda: os.environ.get(
            "SQLITE_MANAGER_DESKTOP_CONFIG", _default_desktop_config_path()
        )
    )


config = SqliteManagerConfig()
