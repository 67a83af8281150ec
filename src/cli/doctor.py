"""Doctor command for environment diagnostics."""

from __future__ import annotations

import tempfile
import zipfile

import httpx
import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_client
from core.config import AppSettings, get_user_env_file, write_user_env_vars
from core.domain.models import ArchiveFile
from core.services.archive_builder import build_zip_from_memory

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


def _check_http(settings: AppSettings) -> tuple[bool, str]:
    if not settings.host:
        return False, "No host configured"
    try:
        with build_client(settings, proxy=settings.metadata_service_proxy) as client:
            response = client.get(settings.host)
        return True, f"HTTP {response.status_code}"
    except httpx.HTTPError as exc:
        return False, str(exc)


def _check_temp_dir() -> tuple[bool, str]:
    """Spool a tiny archive to the temp dir, the same way retrieve does."""

    try:
        payload = build_zip_from_memory([ArchiveFile(name="doctor/check.json", body="{}")])
        with tempfile.TemporaryFile(prefix="sitepull") as tmp:
            tmp.write(payload.read())
            tmp.seek(0)
            with zipfile.ZipFile(tmp) as zf:
                names = zf.namelist()
        return True, f"{tempfile.gettempdir()} ({len(names)} entry)"
    except (OSError, zipfile.BadZipFile) as exc:
        return False, str(exc)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="sitepull Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    table.add_row("Host", "OK" if settings.host else "MISSING", settings.host or "Set SITEPULL_HOST or run setup-site")
    table.add_row("Username", "OK" if settings.username else "MISSING", settings.username or "-")
    table.add_row("Password", "OK" if settings.password else "MISSING", "set" if settings.password else "-")
    table.add_row("API version", "OK", settings.api_version)
    table.add_row("User config", "OK" if get_user_env_file().exists() else "OPTIONAL", str(get_user_env_file()))

    # Connectivity (best-effort)
    ok_http, detail_http = _check_http(settings)
    table.add_row("HTTP connectivity", "OK" if ok_http else "FAIL", detail_http)

    ok_tmp, detail_tmp = _check_temp_dir()
    table.add_row("Temp spooling", "OK" if ok_tmp else "FAIL", detail_tmp)

    _console.print(table)

    if not ok_tmp:
        _console.print(
            "\n[yellow]Note:[/yellow] retrieve spools every archive to the temp dir; set TMPDIR to a writable path."
        )


@app.command(name="setup-site")
def setup_site() -> None:
    """Interactive site setup (stores config in the user config .env)."""

    settings = AppSettings()

    host = typer.prompt("Site host", default=settings.host, show_default=True).strip()
    username = typer.prompt("Username", default=settings.username, show_default=True).strip()
    password = typer.prompt("Password", hide_input=True, confirmation_prompt=False).strip()
    api_version = typer.prompt("API version", default=settings.api_version, show_default=True).strip()

    if not host or not username:
        raise typer.BadParameter("host and username are required")

    env_path = write_user_env_vars(
        {
            "SITEPULL_HOST": host,
            "SITEPULL_USERNAME": username,
            "SITEPULL_PASSWORD": password,
            "SITEPULL_API_VERSION": api_version or None,
        }
    )

    _console.print(f"[green]Saved site config to:[/green] {env_path}")
