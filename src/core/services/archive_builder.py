"""Construcción de ZIPs (operación inversa a la extracción).

Por qué existe:
- Genera fixtures en memoria para tests de extracción/merge.
- Empaqueta un directorio recuperado (comando `pack`).

Decisión ante fallos parciales: el ZIP siempre se finaliza (se escribe el
directorio central) para que lo ya escrito sea legible, y después se eleva
`ArchiveWriteError`. El llamador decide si descarta la salida.
"""

from __future__ import annotations

import io
import logging
import os
import zipfile
from typing import BinaryIO, Iterable

from core.domain.models import ArchiveFile
from core.errors import ArchiveWriteError

logger = logging.getLogger(__name__)


def _iter_source_files(source_path: str) -> Iterable[str]:
    if os.path.isfile(source_path):
        yield source_path
        return
    if not os.path.isdir(source_path):
        raise FileNotFoundError(f"no such file or directory: {source_path}")
    for dirpath, dirnames, filenames in os.walk(source_path):
        dirnames.sort()
        for filename in sorted(filenames):
            yield os.path.join(dirpath, filename)


def archive_directory(source_path: str | os.PathLike[str], writer: BinaryIO) -> int:
    """Comprime `source_path` en `writer` y devuelve el número de entradas.

    Los nombres son relativos al padre de `source_path`: el ZIP contiene la
    carpeta como único elemento raíz (`pages/...`, no `...`). Si la ruta
    termina en separador (`pages/`), la base es la propia carpeta y su
    contenido queda en la raíz del ZIP.

    Raises:
        ArchiveWriteError: fallo leyendo el origen o escribiendo el ZIP.
    """

    raw = os.fspath(source_path)
    source = os.path.normpath(raw)
    if raw.endswith((os.sep, os.altsep or os.sep)):
        base_path = source
    else:
        base_path = os.path.dirname(source)
    count = 0

    try:
        zf = zipfile.ZipFile(writer, "w", compression=zipfile.ZIP_DEFLATED)
    except (OSError, ValueError) as exc:
        raise ArchiveWriteError(f"cannot open archive writer: {exc}") from exc

    failure: Exception | None = None
    try:
        for file_path in _iter_source_files(source):
            archive_name = os.path.relpath(file_path, base_path).replace(os.sep, "/")
            logger.debug("Adding to archive: %s", archive_name)
            zf.write(file_path, archive_name)
            count += 1
    except OSError as exc:
        failure = exc
    finally:
        try:
            zf.close()
        except OSError as exc:
            failure = failure or exc

    if failure is not None:
        raise ArchiveWriteError(f"cannot archive {source}: {failure}") from failure
    return count


def build_zip_from_memory(files: Iterable[ArchiveFile | tuple[str, str]]) -> BinaryIO:
    """Crea un ZIP en memoria a partir de `(name, body)` y lo devuelve rebobinado."""

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for item in files:
            entry = item if isinstance(item, ArchiveFile) else ArchiveFile(name=item[0], body=item[1])
            zf.writestr(entry.name, entry.body.encode("utf-8"))
    buffer.seek(0)
    return buffer
