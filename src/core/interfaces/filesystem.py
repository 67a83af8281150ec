"""Contrato de acceso al filesystem para la extracción.

Por qué Protocol:
- El extractor no abre ficheros directamente; recibe un objeto con
  `create_file` / `create_directory` / `read_file`.
- Permite testear la extracción con un filesystem en memoria sin tocar disco.
"""

from __future__ import annotations

from typing import BinaryIO, Protocol, runtime_checkable


@runtime_checkable
class FileSystem(Protocol):
    """Capacidades mínimas que necesita el extractor de ZIPs.

    Reglas de diseño:
    - Los fallos de I/O se elevan como `core.errors.FilesystemError`.
    - `create_file` trunca el fichero si ya existe.
    """

    def create_file(self, stream: BinaryIO, path: str) -> None:
        """Escribe el contenido de `stream` en `path` (truncando)."""

        ...

    def create_directory(self, path: str, mode: int) -> None:
        """Crea `path` y sus padres si no existe; no falla si ya existe."""

        ...

    def read_file(self, path: str) -> bytes:
        """Lee el contenido completo de un fichero existente."""

        ...
