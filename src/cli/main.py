"""CLI principal (Typer).

Comandos:
- `retrieve`: login -> plan -> ejecución -> escritura en disco.
- `pack`: empaqueta un directorio en un ZIP.
- `doctor`: diagnóstico de configuración/conectividad.

La CLI es el único sitio que imprime errores y decide el exit code; el Core
y los adapters solo elevan excepciones.
"""

from __future__ import annotations

import os
import time
from pathlib import Path

import typer
from rich.console import Console

from adapters.platform_api import get_retrieve_plan, login
from cli import doctor
from cli.logging_setup import setup_logging
from cli.ui_components import (
    build_plans_table,
    build_result_table,
    pretty_error,
    print_command_header,
    success_with_time,
)
from core.config import AppSettings
from core.errors import SitepullError, TransportError
from core.services.archive_builder import archive_directory
from core.services.retrieve_pipeline import retrieve_all

app = typer.Typer(no_args_is_help=True, help="Retrieve site metadata into a local directory.")
app.add_typer(doctor.app, name="doctor")

_console = Console()


def get_friendly_path(target_dir: str) -> str:
    """Ruta absoluta para mostrar; vacío = directorio actual."""

    return str(Path(target_dir or os.curdir).resolve())


def _settings_with_overrides(**overrides: object) -> AppSettings:
    settings = AppSettings()
    update = {key: value for key, value in overrides.items() if value is not None}
    return settings.model_copy(update=update)


def _fail(message: str, exc: BaseException) -> typer.Exit:
    _console.print(pretty_error(message, exc))
    return typer.Exit(code=1)


@app.command()
def retrieve(
    host: str | None = typer.Option(None, "--host", help="Site base URL."),
    username: str | None = typer.Option(None, "--username", "-u", help="Site username."),
    password: str | None = typer.Option(None, "--password", "-p", help="Site password."),
    api_version: str | None = typer.Option(None, "--api-version", help="Metadata API version."),
    target_dir: str | None = typer.Option(None, "--dir", "-d", help="Directory to write results to."),
    metadata_proxy: str | None = typer.Option(None, "--metadata-proxy", help="Proxy for metadata requests."),
    data_proxy: str | None = typer.Option(None, "--data-proxy", help="Proxy for host-routed requests."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed progress."),
) -> None:
    """Retrieve metadata from a site and write it into a local directory."""

    settings = _settings_with_overrides(
        host=host,
        username=username,
        password=password,
        api_version=api_version,
        target_dir=target_dir,
        metadata_service_proxy=metadata_proxy,
        data_service_proxy=data_proxy,
        verbose=verbose or None,
    )
    setup_logging(settings.verbose)
    print_command_header(_console, "Retrieve Metadata")

    try:
        session = login(settings)
    except SitepullError as exc:
        raise _fail("Error logging in to site", exc) from exc

    started = time.perf_counter()
    with session:
        try:
            plans = get_retrieve_plan(session)
        except SitepullError as exc:
            raise _fail("Error getting retrieve plan", exc) from exc

        if settings.verbose:
            _console.print(build_plans_table(plans))

        friendly = get_friendly_path(settings.target_dir)
        try:
            result = retrieve_all(session, plans, settings.target_dir)
        except TransportError as exc:
            # La ejecución de planes solo falla con errores de transporte.
            raise _fail("Error executing retrieve plan", exc) from exc
        except SitepullError as exc:
            raise _fail("Error writing results to disk", exc) from exc

    _console.print(f"Results written to {friendly}")
    message = "Successfully retrieved metadata from site"
    if settings.verbose:
        _console.print(build_result_table(result))
        _console.print(success_with_time(message, started))
    else:
        _console.print(f"[green]{message}.[/green]")


@app.command()
def pack(
    source: str = typer.Argument(
        ..., help="Directory (or file) to archive; a trailing separator archives its contents."
    ),
    output: Path = typer.Argument(..., help="ZIP file to create."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show every archived file."),
) -> None:
    """Pack a directory into a ZIP archive."""

    setup_logging(verbose)
    output.parent.mkdir(parents=True, exist_ok=True)
    try:
        with output.open("wb") as fh:
            count = archive_directory(source, fh)
    except SitepullError as exc:
        output.unlink(missing_ok=True)
        raise _fail("Error building archive", exc) from exc

    _console.print(f"[green]Packed {count} files into {output}[/green]")


def run() -> None:
    app()
