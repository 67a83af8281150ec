from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, BinaryIO, Callable

import pytest

from adapters.memory_filesystem import InMemoryFileSystem
from core.path_registry import PathRegistry
from core.services.archive_builder import build_zip_from_memory


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep project/user `.env` files and SITEPULL_* vars out of the tests."""

    for key in list(os.environ):
        if key.startswith("SITEPULL_"):
            monkeypatch.delenv(key)
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)


@pytest.fixture()
def memory_fs() -> InMemoryFileSystem:
    return InMemoryFileSystem()


@pytest.fixture()
def registry() -> PathRegistry:
    return PathRegistry()


@pytest.fixture()
def make_zip() -> Callable[..., BinaryIO]:
    """Build an in-memory ZIP from (name, body) pairs; dict bodies become JSON."""

    def _make(*entries: tuple[str, Any]) -> BinaryIO:
        files = []
        for name, body in entries:
            if isinstance(body, (dict, list)):
                body = json.dumps(body)
            files.append((name, body))
        return build_zip_from_memory(files)

    return _make
