"""Contrato de ejecución de un plan de recuperación.

Por qué Protocol y no herencia:
- Hay dos modos de transporte (API por defecto vs host alternativo con JWT)
  que se eligen en runtime según `plan.host`.
- El pipeline solo necesita "un stream que representa un ZIP".
"""

from __future__ import annotations

from typing import BinaryIO, Protocol, runtime_checkable

from core.domain.models import RetrievePlan


@runtime_checkable
class RequestExecutor(Protocol):
    """Ejecuta un `RetrievePlan` y devuelve el cuerpo de la respuesta."""

    def describe_url(self, plan: RetrievePlan) -> str:
        """URL final a la que se enviará la petición (para logging)."""

        ...

    def execute(self, plan: RetrievePlan) -> BinaryIO:
        """Hace el POST del plan y devuelve el ZIP como stream rebobinado.

        Raises:
            TransportError: fallo de red, auth o status no-2xx.
        """

        ...
