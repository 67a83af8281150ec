"""Retrieve orchestration utilities.

This module drives a whole retrieve run: it clears the tracked metadata
directories, then extracts every archive payload into one shared target
tree. A single `PathRegistry` is shared by all archives of the run, which is
what lets a later archive merge its JSON onto a file an earlier archive
already wrote.

Execution is strictly sequential; the first error aborts the run and files
already written stay on disk.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from typing import BinaryIO, Iterable, Mapping, Sequence

from adapters.local_filesystem import LocalFileSystem
from adapters.platform_api import PlatformSession, execute_retrieve_plan
from core.domain.metadata_types import MetadataType
from core.domain.models import RetrievePayload, RetrievePlan, RetrieveResult
from core.errors import FilesystemError
from core.interfaces.filesystem import FileSystem
from core.path_registry import PathRegistry
from core.services.archive_extractor import extract_archive

logger = logging.getLogger(__name__)

_TEMP_PREFIX = "sitepull"
_COPY_CHUNK = 1024 * 1024


def clear_metadata_dirs(target_dir: str, dir_names: Sequence[str]) -> list[str]:
    """Borra los directorios de metadata conocidos bajo `target_dir`."""

    cleared: list[str] = []
    for dir_name in dir_names:
        dir_path = os.path.join(target_dir, dir_name)
        logger.debug("Deleting directory: %s", dir_path)
        shutil.rmtree(dir_path, ignore_errors=True)
        cleared.append(dir_path)
    return cleared


def spool_to_temp_file(stream: BinaryIO) -> str:
    """Copia `stream` a un fichero temporal y lo cierra; devuelve la ruta."""

    with stream:
        try:
            tmp = tempfile.NamedTemporaryFile(prefix=_TEMP_PREFIX, delete=False)
        except OSError as exc:
            raise FilesystemError(f"cannot create temporary file: {exc}") from exc
        try:
            with tmp:
                shutil.copyfileobj(stream, tmp, _COPY_CHUNK)
        except OSError as exc:
            _remove_quietly(tmp.name)
            raise FilesystemError(f"cannot spool archive to {tmp.name}: {exc}") from exc
        except BaseException:
            _remove_quietly(tmp.name)
            raise
    return tmp.name


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


def write_results_to_disk(
    payloads: Iterable[RetrievePayload | BinaryIO],
    target_dir: str,
    filesystem: FileSystem | None = None,
    metadata_dirs: Sequence[str] | None = None,
) -> RetrieveResult:
    """Extrae cada payload bajo `target_dir` compartiendo un `PathRegistry`.

    Raises:
        SitepullError: el primer error de cualquier archivo; los siguientes no
            se procesan.
    """

    filesystem = filesystem or LocalFileSystem()
    dir_names = MetadataType.dir_names() if metadata_dirs is None else list(metadata_dirs)

    result = RetrieveResult(target_dir=target_dir)
    result.cleared_dirs = clear_metadata_dirs(target_dir, dir_names)

    registry = PathRegistry()
    for payload in payloads:
        if isinstance(payload, RetrievePayload):
            label, stream = payload.plan_key, payload.stream
        else:
            label, stream = f"archive-{result.archives + 1}", payload

        tmp_path = spool_to_temp_file(stream)
        try:
            stats = extract_archive(tmp_path, target_dir, registry, filesystem)
        finally:
            _remove_quietly(tmp_path)

        result.archives += 1
        result.files_written += stats.written
        result.files_merged += stats.merged
        logger.info(
            "Extracted %s: %d written, %d merged, %d skipped",
            label,
            stats.written,
            stats.merged,
            stats.skipped,
        )

    return result


def retrieve_all(
    session: PlatformSession,
    plans: Mapping[str, RetrievePlan],
    target_dir: str,
    filesystem: FileSystem | None = None,
) -> RetrieveResult:
    """Ejecuta todos los planes y escribe sus resultados en `target_dir`.

    Los payloads se obtienen todos antes de tocar el disco: un fallo de
    transporte no deja el directorio destino a medio limpiar.
    """

    payloads = execute_retrieve_plan(session, plans)
    try:
        return write_results_to_disk(payloads, target_dir, filesystem=filesystem)
    finally:
        for payload in payloads:
            payload.stream.close()
