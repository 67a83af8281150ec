"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (HTTP/filesystem) lean config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "sitepull"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "sitepull"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "sitepull"
    return Path.home() / ".config" / "sitepull"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str | None]) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# sitepull user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="SITEPULL_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    host: str = Field(
        default="",
        description="URL base del sitio remoto (p.ej. https://example.site.com).",
    )
    username: str = Field(
        default="",
        description="Usuario para el login OAuth (password grant).",
    )
    password: str = Field(
        default="",
        description="Password del usuario.",
    )
    api_version: str = Field(
        default="2",
        min_length=1,
        description="Versión de la API de metadata (`/api/v<version>`).",
    )
    target_dir: str = Field(
        default="",
        description="Directorio destino de la recuperación (vacío = cwd).",
    )

    metadata_service_proxy: str | None = Field(
        default=None,
        description="Proxy HTTP(S) para el servicio de metadata.",
    )
    data_service_proxy: str | None = Field(
        default=None,
        description="Proxy HTTP(S) para peticiones enrutadas a otro host.",
    )

    http_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default="sitepull/0.1",
        min_length=1,
        description="User-Agent para las peticiones al sitio.",
    )
    verbose: bool = Field(
        default=False,
        description="Salida detallada (logging DEBUG).",
    )

    @property
    def api_base_url(self) -> str:
        return f"{self.host.rstrip('/')}/api/v{self.api_version}"
