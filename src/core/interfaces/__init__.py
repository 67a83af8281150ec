"""Interfaces/abstracciones del Core.

Por qué:
- Contratos (Protocol) para filesystem y ejecución de planes.
- El Core depende de estas abstracciones; `adapters/` aporta las implementaciones.
"""

from core.interfaces.filesystem import FileSystem
from core.interfaces.request_executor import RequestExecutor

__all__ = ["FileSystem", "RequestExecutor"]
