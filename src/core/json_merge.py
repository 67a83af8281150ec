"""Motor de merge JSON (JSON Merge Patch, RFC 7386) con orden de claves estable.

Por qué existe:
- Un mismo fichero (p.ej. `pages/Foo.xml.json`) puede llegar en varios ZIPs
  de una misma recuperación; el segundo se fusiona sobre el primero.
- El resultado debe ser byte-idéntico entre ejecuciones con los mismos datos
  para que el directorio recuperado sea amigable con git.

Reglas de orden:
- En cada objeto, la clave `name` (si existe) va primero; el resto en orden
  lexicográfico ascendente. Se aplica a todos los niveles, incluidos los
  valores copiados sin fusionar y los objetos dentro de arrays.
"""

from __future__ import annotations

import json
from typing import Any

from core.errors import MergeError

NAME_KEY = "name"


def _key_order(key: str) -> tuple[bool, str]:
    return (key != NAME_KEY, key)


def order_keys(value: Any) -> Any:
    """Devuelve una copia de `value` con el orden de claves `name`-primero."""

    if isinstance(value, dict):
        return {k: order_keys(value[k]) for k in sorted(value, key=_key_order)}
    if isinstance(value, list):
        return [order_keys(item) for item in value]
    return value


def merge_documents(existing: Any, patch: Any) -> Any:
    """Aplica `patch` sobre `existing` y devuelve un valor nuevo ya ordenado.

    - Campos del patch sobrescriben; `None` (null) elimina el campo.
    - Objetos anidados se fusionan recursivamente.
    - Arrays y escalares reemplazan el valor completo.
    """

    if not isinstance(patch, dict):
        return order_keys(patch)

    target = existing if isinstance(existing, dict) else {}
    merged: dict[str, Any] = dict(target)
    for key, value in patch.items():
        if value is None:
            merged.pop(key, None)
        else:
            merged[key] = merge_documents(merged.get(key), value)
    return order_keys(merged)


def _reject_constant(token: str) -> Any:
    raise ValueError(f"non-standard JSON constant {token}")


def _load_object(raw: bytes, label: str) -> dict[str, Any]:
    try:
        value = json.loads(raw, parse_constant=_reject_constant)
    except (ValueError, UnicodeDecodeError) as exc:
        raise MergeError(f"{label} document is not valid JSON: {exc}") from exc
    if not isinstance(value, dict):
        raise MergeError(
            f"{label} document must be a JSON object, got {type(value).__name__}"
        )
    return value


def dumps_document(value: Any) -> bytes:
    """Serializa con un tab por nivel y sin escapar no-ASCII.

    Raises:
        MergeError: el valor no tiene representación JSON estricta en UTF-8
            (NaN/Infinity, surrogates sueltos).
    """

    try:
        return json.dumps(value, ensure_ascii=False, indent="\t", allow_nan=False).encode("utf-8")
    except (ValueError, UnicodeEncodeError) as exc:
        raise MergeError(f"merged document cannot be written as JSON: {exc}") from exc


def merge_json(existing: bytes, incoming: bytes) -> bytes:
    """Fusiona `incoming` sobre `existing` y devuelve el documento serializado.

    Raises:
        MergeError: si alguno no es JSON válido o su raíz no es un objeto.
    """

    existing_doc = _load_object(existing, "existing")
    incoming_doc = _load_object(incoming, "incoming")
    return dumps_document(merge_documents(existing_doc, incoming_doc))
