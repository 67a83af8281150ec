"""Cliente del API del sitio: login, plan de recuperación y ejecución.

Por qué está en adapters:
- Todo lo que habla HTTP vive aquí; el Core solo recibe el mapping de planes
  ya decodificado y un stream por cada ZIP.

Dos modos de transporte por plan:
- `host` vacío: POST a la API por defecto con el access token OAuth.
- `host` presente: POST a `host:port/api/v2<url>` con el JWT del sitio.
"""

from __future__ import annotations

import json
import logging
import tempfile
import time
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Mapping

import httpx
from pydantic import TypeAdapter, ValidationError

from adapters.http_client import build_client
from core.config import AppSettings
from core.domain.models import RetrievePayload, RetrievePlan
from core.errors import TransportError
from core.interfaces.request_executor import RequestExecutor

logger = logging.getLogger(__name__)

OAUTH_TOKEN_PATH = "/auth/oauth/token"
JWT_TOKEN_PATH = "/api/v1/auth/token"
RETRIEVE_PLAN_PATH = "/metadata/retrieve/plan"
HOST_ROUTED_API_PREFIX = "/api/v2"

# Por encima de este tamaño el cuerpo del ZIP pasa de memoria a disco.
SPOOL_MAX_BYTES = 8 * 1024 * 1024

_PLANS_ADAPTER = TypeAdapter(dict[str, RetrievePlan])


@dataclass
class PlatformSession:
    """Sesión autenticada contra el sitio."""

    settings: AppSettings
    client: httpx.Client
    access_token: str
    jwt: str = ""
    data_client: httpx.Client | None = None
    _owned: list[httpx.Client] = field(default_factory=list, repr=False)

    @property
    def api_base_url(self) -> str:
        return self.settings.api_base_url

    @property
    def routed_client(self) -> httpx.Client:
        return self.data_client or self.client

    def close(self) -> None:
        for client in self._owned:
            client.close()
        self._owned.clear()

    def __enter__(self) -> PlatformSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _check_response(response: httpx.Response, action: str) -> None:
    if response.is_success:
        return
    detail = response.text.strip()[:500]
    raise TransportError(f"{action} failed: HTTP {response.status_code} {detail}".rstrip())


def _json_body(response: httpx.Response, action: str) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise TransportError(f"{action} returned invalid JSON: {exc}") from exc


def _json_object(response: httpx.Response, action: str) -> dict[str, Any]:
    body = _json_body(response, action)
    if not isinstance(body, dict):
        raise TransportError(f"{action} returned {type(body).__name__}, expected an object")
    return body


def login(
    settings: AppSettings,
    *,
    client: httpx.Client | None = None,
    data_client: httpx.Client | None = None,
) -> PlatformSession:
    """Autentica (OAuth password grant) y obtiene el JWT del sitio.

    Raises:
        TransportError: credenciales inválidas o fallo de red.
    """

    if not settings.host:
        raise TransportError("no site host configured (set --host or SITEPULL_HOST)")

    owned: list[httpx.Client] = []
    if client is None:
        client = build_client(settings, proxy=settings.metadata_service_proxy)
        owned.append(client)
    if data_client is None and settings.data_service_proxy:
        data_client = build_client(settings, proxy=settings.data_service_proxy)
        owned.append(data_client)

    host = settings.host.rstrip("/")
    try:
        response = client.post(
            f"{host}{OAUTH_TOKEN_PATH}",
            data={
                "grant_type": "password",
                "username": settings.username,
                "password": settings.password,
            },
        )
        _check_response(response, "login")
        access_token = _json_object(response, "login").get("access_token")
        if not access_token:
            raise TransportError("login response did not include an access token")

        response = client.get(
            f"{host}{JWT_TOKEN_PATH}",
            headers={"Authorization": f"Bearer {access_token}"},
        )
        _check_response(response, "site token request")
        jwt = _json_object(response, "site token request").get("token") or ""
    except BaseException as exc:
        for owned_client in owned:
            owned_client.close()
        if isinstance(exc, httpx.HTTPError):
            raise TransportError(f"login request failed: {exc}") from exc
        raise

    logger.debug("Logged in to %s", host)
    return PlatformSession(
        settings=settings,
        client=client,
        access_token=access_token,
        jwt=jwt,
        data_client=data_client,
        _owned=owned,
    )


def get_retrieve_plan(session: PlatformSession) -> dict[str, RetrievePlan]:
    """Pide al sitio el plan de recuperación (mapping id -> plan)."""

    started = time.perf_counter()
    try:
        response = session.client.post(
            f"{session.api_base_url}{RETRIEVE_PLAN_PATH}",
            headers={
                "Authorization": f"Bearer {session.access_token}",
                "Content-Type": "application/json",
            },
        )
    except httpx.HTTPError as exc:
        raise TransportError(f"retrieve plan request failed: {exc}") from exc

    _check_response(response, "retrieve plan request")
    try:
        plans = _PLANS_ADAPTER.validate_python(_json_body(response, "retrieve plan request"))
    except ValidationError as exc:
        raise TransportError(f"retrieve plan response is malformed: {exc}") from exc

    logger.info(
        "Got retrieve plan with %d entries in %.2fs",
        len(plans),
        time.perf_counter() - started,
    )
    return plans


def _post_to_spool(client: httpx.Client, url: str, token: str, plan: RetrievePlan) -> BinaryIO:
    body = json.dumps(plan.metadata).encode("utf-8")
    spool = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_BYTES, prefix="sitepull")
    try:
        with client.stream(
            "POST",
            url,
            content=body,
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
        ) as response:
            if not response.is_success:
                response.read()
                _check_response(response, f"retrieve request to {url}")
            for chunk in response.iter_bytes():
                spool.write(chunk)
    except httpx.HTTPError as exc:
        spool.close()
        raise TransportError(f"retrieve request to {url} failed: {exc}") from exc
    except BaseException:
        spool.close()
        raise
    spool.seek(0)
    return spool


class DefaultApiExecutor:
    """Planes sin `host`: van por la API por defecto con el access token."""

    def __init__(self, session: PlatformSession) -> None:
        self._session = session

    def describe_url(self, plan: RetrievePlan) -> str:
        if plan.url.startswith(("http://", "https://")):
            return plan.url
        return f"{self._session.api_base_url}{plan.url}"

    def execute(self, plan: RetrievePlan) -> BinaryIO:
        return _post_to_spool(
            self._session.client,
            self.describe_url(plan),
            self._session.access_token,
            plan,
        )


class HostRoutedExecutor:
    """Planes con `host`: van a `host:port/api/v2<url>` autenticados con JWT."""

    def __init__(self, session: PlatformSession) -> None:
        self._session = session

    def describe_url(self, plan: RetrievePlan) -> str:
        host = plan.host.rstrip("/")
        if plan.port:
            host = f"{host}:{plan.port}"
        return f"{host}{HOST_ROUTED_API_PREFIX}{plan.url}"

    def execute(self, plan: RetrievePlan) -> BinaryIO:
        if not self._session.jwt:
            raise TransportError(f"plan for host {plan.host} requires a site token, none was issued")
        return _post_to_spool(
            self._session.routed_client,
            self.describe_url(plan),
            self._session.jwt,
            plan,
        )


def select_executor(session: PlatformSession, plan: RetrievePlan) -> RequestExecutor:
    if plan.is_host_routed:
        return HostRoutedExecutor(session)
    return DefaultApiExecutor(session)


def execute_retrieve_plan(
    session: PlatformSession,
    plans: Mapping[str, RetrievePlan],
) -> list[RetrievePayload]:
    """Ejecuta cada plan (orden por clave) y devuelve un payload ZIP por plan.

    Si un plan falla se cierran los payloads ya obtenidos y se eleva el error.
    """

    payloads: list[RetrievePayload] = []
    try:
        for plan_key, plan in sorted(plans.items(), key=lambda item: item[0]):
            executor = select_executor(session, plan)
            started = time.perf_counter()
            logger.info(
                "Making Retrieve Request: URL: [%s] Type: [%s]",
                executor.describe_url(plan),
                plan.type,
            )
            stream = executor.execute(plan)
            payloads.append(RetrievePayload(plan_key=plan_key, stream=stream))
            logger.debug(
                "Success Retrieving from Source in %.2fs",
                time.perf_counter() - started,
            )
    except BaseException:
        for payload in payloads:
            payload.stream.close()
        raise
    return payloads
