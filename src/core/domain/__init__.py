"""Modelos y entidades del dominio.

Por qué:
- Estructuras de datos puras (Pydantic v2 / dataclasses): planes, payloads,
  resultados y tipos de metadata.
- El dominio no conoce HTTP, CLI ni zipfile.
"""

from core.domain.metadata_types import MetadataType
from core.domain.models import (
    ArchiveFile,
    ExtractStats,
    RetrievePayload,
    RetrievePlan,
    RetrieveResult,
)

__all__ = [
    "ArchiveFile",
    "ExtractStats",
    "MetadataType",
    "RetrievePayload",
    "RetrievePlan",
    "RetrieveResult",
]
