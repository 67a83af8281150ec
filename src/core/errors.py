"""Taxonomía de errores del Core.

Por qué una jerarquía propia:
- La CLI necesita distinguir la etapa que falló (transporte, ZIP, merge, disco)
  sin inspeccionar excepciones de librerías (httpx, zipfile, json).
- Todos heredan de `SitepullError`, así un único `except` en el borde basta.
"""

from __future__ import annotations


class SitepullError(Exception):
    """Base de todos los errores de recuperación."""


class TransportError(SitepullError):
    """Fallo obteniendo un plan o un payload (red, auth, HTTP no-2xx)."""


class ArchiveOpenError(SitepullError):
    """El stream recibido no es un contenedor ZIP válido."""


class MergeError(SitepullError):
    """Alguno de los lados del merge no es JSON válido o no es un objeto."""


class FilesystemError(SitepullError):
    """Fallo creando/escribiendo/leyendo en disco (permisos, disco lleno...)."""


class ArchiveWriteError(SitepullError):
    """Fallo de I/O construyendo un ZIP a partir de un directorio."""
