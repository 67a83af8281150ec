"""Implementación en disco de `core.interfaces.filesystem.FileSystem`."""

from __future__ import annotations

import logging
import os
import shutil
from typing import BinaryIO

from core.errors import FilesystemError

logger = logging.getLogger(__name__)

_FILE_MODE = 0o644


class LocalFileSystem:
    """Escribe/lee en el filesystem local.

    Los `OSError` se traducen a `FilesystemError` para que la CLI los reporte
    como fallo de escritura y no como fallo genérico.
    """

    def create_file(self, stream: BinaryIO, path: str) -> None:
        try:
            fd = os.open(path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, _FILE_MODE)
            with os.fdopen(fd, "wb") as target:
                shutil.copyfileobj(stream, target)
        except OSError as exc:
            raise FilesystemError(f"cannot write file {path}: {exc}") from exc

    def create_directory(self, path: str, mode: int) -> None:
        if os.path.isdir(path):
            return
        logger.debug("Creating intermediate directory: %s", path)
        try:
            os.makedirs(path, mode=mode, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(f"cannot create directory {path}: {exc}") from exc

    def read_file(self, path: str) -> bytes:
        try:
            with open(path, "rb") as fh:
                return fh.read()
        except OSError as exc:
            raise FilesystemError(f"cannot read file {path}: {exc}") from exc
