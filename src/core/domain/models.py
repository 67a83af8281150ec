"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Validación estricta del plan que devuelve el servidor sin acoplar el Core
  a httpx.
- `metadata` es opaco: se reenvía tal cual en la petición de ejecución.

Nota:
- Estos modelos describen *qué* se recupera, no *cómo* se obtiene.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, BinaryIO

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class RetrievePlan(BaseModel):
    """Una unidad de trabajo de recuperación descrita por el servidor.

    Reglas:
    - `host` vacío: la petición va por la conexión por defecto de la API.
    - `host` presente: se usa `host:port` con autenticación JWT.
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    url: str = Field(
        ...,
        min_length=1,
        description="Ruta (o URL) destino de la petición de recuperación.",
    )
    host: str = Field(
        default="",
        description="Host alternativo; vacío para usar la API por defecto.",
    )
    port: str = Field(
        default="",
        description="Puerto del host alternativo.",
    )
    type: str = Field(
        default="",
        description="Etiqueta del tipo de plan (p.ej. 'metadataService').",
    )
    metadata: Any = Field(
        default=None,
        description="Carga JSON opaca; se reenvía sin modificar.",
    )

    @property
    def is_host_routed(self) -> bool:
        return bool(self.host)


class ArchiveFile(BaseModel):
    """Un fichero en memoria para construir un ZIP (fixtures/uploads)."""

    name: str = Field(..., min_length=1, description="Nombre dentro del ZIP (con '/').")
    body: str = Field(default="", description="Contenido UTF-8 del fichero.")


@dataclass
class RetrievePayload:
    """Cuerpo HTTP (un ZIP) producido al ejecutar un plan."""

    plan_key: str
    stream: BinaryIO


@dataclass
class ExtractStats:
    written: int = 0
    merged: int = 0
    skipped: int = 0


@dataclass
class RetrieveResult:
    """Resumen de una recuperación completa."""

    target_dir: str
    archives: int = 0
    files_written: int = 0
    files_merged: int = 0
    cleared_dirs: list[str] = field(default_factory=list)
