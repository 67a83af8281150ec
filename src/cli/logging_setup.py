"""Configuración de logging para la CLI (Rich)."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Instala un `RichHandler` en el root logger.

    - `verbose`: DEBUG (cada fichero creado/fusionado, cada directorio borrado).
    - normal: solo WARNING y superiores; la CLI imprime su propio resumen.
    """

    level = logging.DEBUG if verbose else logging.WARNING
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
        markup=False,
    )
    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=[handler], force=True)

    # Ruido de dependencias HTTP.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
