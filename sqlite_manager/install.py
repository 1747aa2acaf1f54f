"""Register the SQLite Manager server in the Claude desktop app's MCP config."""
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from sqlite_manager.config import config

logger = logging.getLogger(__name__)

SERVER_KEY = "sqlite-manager"


def load_desktop_config(path: Path) -> dict:
    try:
        return json.loads(path.read_text())
    except (OSError, ValueError):
        # Missing or unreadable config starts from an empty one
        return {"mcpServers": {}}


def register_server(desktop_config: dict, python_path: str) -> dict:
    """Return a copy of desktop_config with this server's entry added or replaced."""
    updated = dict(desktop_config)
    servers = dict(updated.get("mcpServers") or {})
    servers[SERVER_KEY] = {
        "command": python_path,
        "args": ["-m", "sqlite_manager.main"],
    }
    updated["mcpServers"] = servers
    return updated


def install(config_path: Optional[str] = None, python_path: Optional[str] = None) -> Path:
    path = Path(config_path or config.desktop_config_path)
    updated = register_server(load_desktop_config(path), python_path or sys.executable)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(updated, indent=2))
    logger.info(f"Registered {SERVER_KEY} in {path}")
    return path


def main():
    path = install()
    home = str(Path.home())
    print(f"Added {SERVER_KEY} server to Claude MCP config")
    print(str(path).replace(home, "~", 1))


if __name__ == "__main__":
    main()
