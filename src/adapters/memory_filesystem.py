"""Filesystem en memoria (fake) para tests de extracción.

Por qué en `adapters/` y no en `tests/`:
- Es una implementación más del contrato `FileSystem`; sirve también para
  inspeccionar un ZIP sin escribir a disco.
"""

from __future__ import annotations

import os
from typing import BinaryIO

from core.errors import FilesystemError


class InMemoryFileSystem:
    """Guarda ficheros y directorios en diccionarios indexados por ruta."""

    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}
        self.directories: dict[str, int] = {}

    @staticmethod
    def _key(path: str) -> str:
        return os.path.normpath(path)

    def create_file(self, stream: BinaryIO, path: str) -> None:
        key = self._key(path)
        if key in self.directories:
            raise FilesystemError(f"cannot write file {path}: is a directory")
        self.files[key] = stream.read()

    def create_directory(self, path: str, mode: int) -> None:
        key = self._key(path)
        if key in self.files:
            raise FilesystemError(f"cannot create directory {path}: file exists")
        self.directories.setdefault(key, mode)

    def read_file(self, path: str) -> bytes:
        key = self._key(path)
        try:
            return self.files[key]
        except KeyError as exc:
            raise FilesystemError(f"cannot read file {path}: not found") from exc

    def text(self, path: str) -> str:
        return self.files[self._key(path)].decode("utf-8")
