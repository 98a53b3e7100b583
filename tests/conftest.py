from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from mvfs.config import DatabaseConfig
from mvfs.storage import SQLiteBackend, create_backend
from mvfs.vfs import VirtualFS

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture
def db_cfg(tmp_path: Path) -> DatabaseConfig:
    return DatabaseConfig(path=tmp_path / "vfs.db")


@pytest.fixture
def backend(db_cfg: DatabaseConfig) -> Iterator[SQLiteBackend]:
    b = create_backend(db_cfg)
    yield b
    b.close()


@pytest.fixture
def fs(backend: SQLiteBackend) -> VirtualFS:
    return VirtualFS(backend)


@pytest.fixture
def isolated_cfg(tmp_path: Path) -> DatabaseConfig:
    return DatabaseConfig(path=tmp_path / "isolated.db", isolation=True)


@pytest.fixture
def isolated_fs(isolated_cfg: DatabaseConfig) -> Iterator[VirtualFS]:
    b = create_backend(isolated_cfg)
    yield VirtualFS(b)
    b.close()
