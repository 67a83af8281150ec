"""Registro de rutas escritas durante una recuperación.

Vive lo que dura una invocación de `retrieve`: el orquestador crea uno nuevo
por ejecución y lo pasa explícitamente a cada extracción.
"""

from __future__ import annotations

import os
from typing import Iterator


class PathRegistry:
    """Conjunto de rutas destino ya escritas en esta ejecución."""

    def __init__(self) -> None:
        self._paths: set[str] = set()

    @staticmethod
    def _normalize(path: str | os.PathLike[str]) -> str:
        return os.path.normpath(os.fspath(path))

    def register(self, path: str | os.PathLike[str]) -> bool:
        """Registra `path` y devuelve si ya estaba registrado."""

        key = self._normalize(path)
        if key in self._paths:
            return True
        self._paths.add(key)
        return False

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, os.PathLike)):
            return False
        return self._normalize(path) in self._paths

    def __len__(self) -> int:
        return len(self._paths)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._paths))
