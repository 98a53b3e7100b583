"""VfsConfig: deployment config for the virtual filesystem.

Default layout (relative to the directory holding vfs.toml):

    vfs.toml              # config (optional)
    .env                  # optional: VFS_DB_PATH, VFS_SESSION_ID, ... overrides
    .vfs/
        vfs.db            # SQLite node store

vfs.toml example:

    [database]
    path = ".vfs/vfs.db"
    isolation = false     # bind each connection to its namespace, enforce in SQL
    auto_init = true      # create tables on startup
    timeout = 5.0         # seconds to wait on a locked database

    [session]
    id = ""               # empty = random UUID per server process

    [logging]
    level = "INFO"

Precedence: process environment > .env > vfs.toml > defaults.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

_CONFIG_FILENAME = "vfs.toml"
_DEFAULT_DB_PATH = ".vfs/vfs.db"
_TRUE = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class DatabaseConfig:
    """Everything the storage backend gets to know. Immutable once built."""

    path: Path
    isolation: bool = False
    auto_init: bool = True
    timeout: float = 5.0


@dataclass
class SessionConfig:
    id: str = ""    # empty → generated per process


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class VfsConfig:
    """Resolved configuration for one deployment."""

    root: Path                      # directory that contains vfs.toml
    database: DatabaseConfig = field(default_factory=lambda: DatabaseConfig(path=Path(_DEFAULT_DB_PATH)))
    session: SessionConfig = field(default_factory=SessionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _load_env(root: Path) -> dict[str, str]:
    """Parse a simple KEY=VALUE .env file."""
    env_file = root / ".env"
    if not env_file.exists():
        return {}
    env: dict[str, str] = {}
    for line in env_file.read_text().splitlines():
        line = line.strip()
        if line and not line.startswith("#") and "=" in line:
            k, _, v = line.partition("=")
            env[k.strip()] = v.strip().strip('"').strip("'")
    return env


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE


def load_config(root: Path | str | None = None, environ: dict[str, str] | None = None) -> VfsConfig:
    """Load vfs.toml from root (or search upward from cwd if root is None)."""
    root_path = _find_root(Path(root) if root else Path.cwd())
    config_path = root_path / _CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_path.exists():
        with config_path.open("rb") as f:
            raw = tomllib.load(f)

    env = {**_load_env(root_path), **(os.environ if environ is None else environ)}

    db_section = raw.get("database", {})
    session_section = raw.get("session", {})
    log_section = raw.get("logging", {})

    db_path = Path(env.get("VFS_DB_PATH") or db_section.get("path", _DEFAULT_DB_PATH))
    if not db_path.is_absolute():
        db_path = root_path / db_path

    isolation = env.get("VFS_ENABLE_ISOLATION", db_section.get("isolation", False))
    auto_init = env.get("VFS_AUTO_INIT", db_section.get("auto_init", True))

    return VfsConfig(
        root=root_path,
        database=DatabaseConfig(
            path=db_path,
            isolation=_as_bool(isolation),
            auto_init=_as_bool(auto_init),
            timeout=float(db_section.get("timeout", 5.0)),
        ),
        session=SessionConfig(
            id=env.get("VFS_SESSION_ID") or str(session_section.get("id", "")),
        ),
        logging=LoggingConfig(
            level=(env.get("VFS_LOG_LEVEL") or str(log_section.get("level", "INFO"))).upper(),
        ),
    )


def _find_root(start: Path) -> Path:
    """Walk upward from start looking for vfs.toml."""
    for directory in (start, *start.parents):
        if (directory / _CONFIG_FILENAME).exists():
            return directory
    return start


def init_config(root: Path, isolation: bool = False) -> Path:
    """Write a default vfs.toml at root. Raises if already exists."""
    config_path = root / _CONFIG_FILENAME
    if config_path.exists():
        msg = f"vfs.toml already exists at {config_path}"
        raise FileExistsError(msg)

    content = f"""\
[database]
path = "{_DEFAULT_DB_PATH}"
isolation = {"true" if isolation else "false"}   # or set VFS_ENABLE_ISOLATION in .env
# auto_init = true   # create tables on startup
# timeout = 5.0      # seconds to wait on a locked database

[session]
# id = ""            # fixed session id; or set VFS_SESSION_ID (default: random per process)

[logging]
# level = "INFO"
"""
    config_path.write_text(content)
    return config_path
