"""Extracción de un ZIP de metadata sobre el directorio destino.

Este módulo recrea la estructura de carpetas de cada archivo y decide, por
entrada, si escribir el fichero tal cual o fusionarlo (JSON Merge Patch) con
lo que otro ZIP de la misma ejecución ya escribió en esa ruta.

Notas:
- Los ficheros en la raíz del ZIP (sin carpeta) se ignoran: la recuperación
  nunca escribe ficheros directamente en el directorio destino. Un marcador
  de carpeta de primer nivel (`pages/`) sí se crea, con su modo.
- No es transaccional: si una entrada falla, lo ya escrito se queda en disco.
"""

from __future__ import annotations

import io
import logging
import os
import stat
import zipfile
import zlib
from typing import BinaryIO

from core.domain.models import ExtractStats
from core.errors import ArchiveOpenError, FilesystemError
from core.interfaces.filesystem import FileSystem
from core.json_merge import merge_json
from core.path_registry import PathRegistry

logger = logging.getLogger(__name__)

DEFAULT_DIR_MODE = 0o755


def _entry_parts(info: zipfile.ZipInfo) -> list[str]:
    name = info.filename
    if name.startswith("/") or name.startswith("\\"):
        raise FilesystemError(f"refusing absolute archive entry: {name!r}")
    parts = [part for part in name.split("/") if part and part != "."]
    if any(part == ".." for part in parts):
        raise FilesystemError(f"refusing archive entry outside target: {name!r}")
    if parts and os.path.splitdrive(parts[0])[0]:
        raise FilesystemError(f"refusing archive entry with drive: {name!r}")
    return parts


def _entry_mode(info: zipfile.ZipInfo) -> int:
    mode = stat.S_IMODE(info.external_attr >> 16)
    return mode or DEFAULT_DIR_MODE


def _open_zip(archive: str | os.PathLike[str] | BinaryIO) -> zipfile.ZipFile:
    try:
        return zipfile.ZipFile(archive, "r")
    except (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError) as exc:
        raise ArchiveOpenError(f"not a valid ZIP archive: {exc}") from exc
    except OSError as exc:
        raise FilesystemError(f"cannot open archive: {exc}") from exc


def _write_entry(
    zf: zipfile.ZipFile,
    info: zipfile.ZipInfo,
    destination: str,
    *,
    already_written: bool,
    filesystem: FileSystem,
) -> bool:
    """Escribe una entrada de fichero; devuelve True si hubo merge."""

    try:
        with zf.open(info) as source:
            if not already_written:
                logger.debug("Creating file: %s", info.filename)
                filesystem.create_file(source, destination)
                return False

            logger.debug("Augmenting existing file with more data: %s", info.filename)
            existing = filesystem.read_file(destination)
            merged = merge_json(existing, source.read())
    except (zipfile.BadZipFile, zlib.error, EOFError, RuntimeError) as exc:
        # RuntimeError cubre entradas cifradas; NotImplementedError, compresión no soportada.
        raise ArchiveOpenError(f"corrupt archive entry {info.filename!r}: {exc}") from exc
    except OSError as exc:
        raise FilesystemError(f"cannot read archive entry {info.filename!r}: {exc}") from exc

    filesystem.create_file(io.BytesIO(merged), destination)
    return True


def extract_archive(
    archive: str | os.PathLike[str] | BinaryIO,
    target_root: str,
    registry: PathRegistry,
    filesystem: FileSystem,
) -> ExtractStats:
    """Extrae `archive` bajo `target_root` usando `registry` para decidir merges.

    Raises:
        ArchiveOpenError: el input no es un ZIP válido.
        MergeError: una ruta repetida no contiene JSON fusionable.
        FilesystemError: fallo de escritura/lectura en destino.
    """

    stats = ExtractStats()
    with _open_zip(archive) as zf:
        if target_root:
            filesystem.create_directory(target_root, DEFAULT_DIR_MODE)

        for info in zf.infolist():
            parts = _entry_parts(info)
            if not parts:
                stats.skipped += 1
                continue

            destination = os.path.join(target_root, *parts)
            already_written = registry.register(destination)

            if len(parts) < 2 and not info.is_dir():
                logger.debug("Skipping root-level archive entry: %s", info.filename)
                stats.skipped += 1
                continue
            if len(parts) > 1:
                filesystem.create_directory(os.path.join(target_root, *parts[:-1]), DEFAULT_DIR_MODE)

            if info.is_dir():
                filesystem.create_directory(destination, _entry_mode(info))
                continue

            merged = _write_entry(
                zf,
                info,
                destination,
                already_written=already_written,
                filesystem=filesystem,
            )
            if merged:
                stats.merged += 1
            else:
                stats.written += 1

    return stats
