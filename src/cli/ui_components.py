"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

import time
from typing import Mapping

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import RetrievePlan, RetrieveResult


def print_command_header(console: Console, title: str) -> None:
    """Imprime la cabecera del comando en ejecución."""

    body = Text.assemble(Text("sitepull", style="bold cyan"), " • ", Text(title, style="bold"))
    console.print(Panel(body, border_style="cyan", expand=False))


def pretty_error(message: str, exc: BaseException) -> Text:
    text = Text()
    text.append(f"{message}:\n", style="bold red")
    text.append(str(exc) or type(exc).__name__, style="red")
    return text


def success_with_time(message: str, started: float) -> Text:
    """Mensaje de éxito con el tiempo transcurrido desde `started` (perf_counter)."""

    elapsed = time.perf_counter() - started
    return Text.assemble(Text(message, style="bold green"), Text(f" ({elapsed:.2f}s)", style="dim"))


def build_plans_table(plans: Mapping[str, RetrievePlan]) -> Table:
    table = Table(title="Retrieve Plan")
    table.add_column("Plan", style="cyan", no_wrap=True)
    table.add_column("Type", style="white")
    table.add_column("Route", style="magenta")
    table.add_column("URL", style="green")
    for key, plan in sorted(plans.items()):
        route = f"{plan.host}:{plan.port}" if plan.is_host_routed else "default"
        table.add_row(key, plan.type or "-", route, plan.url)
    return table


def build_result_table(result: RetrieveResult) -> Table:
    table = Table(title="Retrieve Results")
    table.add_column("Archives", style="cyan")
    table.add_column("Files written", style="green")
    table.add_column("Files merged", style="yellow")
    table.add_row(str(result.archives), str(result.files_written), str(result.files_merged))
    return table
