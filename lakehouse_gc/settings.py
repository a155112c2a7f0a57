"""Client configuration for the storage backends (properties-first, env fallback)."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

MAX_DELETE_BATCH_SIZE = 1000

S3_ENDPOINT = "s3.endpoint"
S3_ACCESS_KEY_ID = "s3.access-key-id"
S3_SECRET_ACCESS_KEY = "s3.secret-access-key"
S3_SESSION_TOKEN = "s3.session-token"
S3_PATH_STYLE_ACCESS = "s3.path-style-access"
S3_USE_SSL = "s3.use-ssl"
S3_DELETE_BATCH_SIZE = "s3.delete.batch-size"
CLIENT_REGION = "client.region"
S3_REGION = "s3.region"


@dataclass(frozen=True)
class S3Settings:
    endpoint_url: str | None
    access_key: str | None
    secret_key: str | None
    region: str
    url_style: str
    use_ssl: bool
    session_token: str | None = None
    delete_batch_size: int = MAX_DELETE_BATCH_SIZE


def _parse_bool(value: str | None, *, default: bool | None = None) -> bool | None:
    if value is None:
        return default
    text = value.strip().lower()
    if text in {"1", "true", "yes", "y"}:
        return True
    if text in {"0", "false", "no", "n"}:
        return False
    return default


def _first(*values: str | None) -> str | None:
    for value in values:
        if value is not None and value.strip():
            return value.strip()
    return None


def _parse_batch_size(raw: str | None) -> int:
    if raw is None:
        return MAX_DELETE_BATCH_SIZE
    try:
        size = int(raw)
    except ValueError as exc:
        raise ValueError(f"{S3_DELETE_BATCH_SIZE} must be an integer: {raw!r}") from exc
    if not 1 <= size <= MAX_DELETE_BATCH_SIZE:
        raise ValueError(
            f"{S3_DELETE_BATCH_SIZE} must be between 1 and {MAX_DELETE_BATCH_SIZE}: {size}"
        )
    return size


def resolve_s3_settings(
    properties: Mapping[str, str],
    env: Mapping[str, str] | None = None,
) -> S3Settings:
    """Resolve S3 client settings.

    Priority: explicit properties (Iceberg-style names), then ``S3_*``/``AWS_*``
    environment variables.
    """

    env = dict(os.environ) if env is None else env

    endpoint_url = _first(properties.get(S3_ENDPOINT), env.get("S3_ENDPOINT_URL"))
    access_key = _first(
        properties.get(S3_ACCESS_KEY_ID),
        env.get("S3_ACCESS_KEY_ID"),
        env.get("AWS_ACCESS_KEY_ID"),
    )
    secret_key = _first(
        properties.get(S3_SECRET_ACCESS_KEY),
        env.get("S3_SECRET_ACCESS_KEY"),
        env.get("AWS_SECRET_ACCESS_KEY"),
    )
    if bool(access_key) != bool(secret_key):
        raise ValueError(
            f"{S3_ACCESS_KEY_ID} and {S3_SECRET_ACCESS_KEY} must be set together"
        )

    session_token = _first(properties.get(S3_SESSION_TOKEN), env.get("AWS_SESSION_TOKEN"))
    region = (
        _first(properties.get(CLIENT_REGION), properties.get(S3_REGION), env.get("S3_REGION"))
        or "us-east-1"
    )

    path_style = _parse_bool(properties.get(S3_PATH_STYLE_ACCESS))
    if path_style is None:
        url_style = _first(env.get("S3_URL_STYLE")) or "path"
    else:
        url_style = "path" if path_style else "virtual"

    use_ssl = _parse_bool(_first(properties.get(S3_USE_SSL), env.get("S3_USE_SSL")))
    if use_ssl is None:
        use_ssl = not endpoint_url or endpoint_url.lower().startswith("https://")

    return S3Settings(
        endpoint_url=endpoint_url,
        access_key=access_key,
        secret_key=secret_key,
        region=region,
        url_style=url_style,
        use_ssl=use_ssl,
        session_token=session_token,
        delete_batch_size=_parse_batch_size(_first(properties.get(S3_DELETE_BATCH_SIZE))),
    )


def load_properties_file(path: str | Path) -> dict[str, str]:
    """Load a flat YAML mapping of client properties."""

    with open(path, encoding="utf-8") as handle:
        data: Any = yaml.safe_load(handle)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid properties file (expected a mapping): {path}")
    out: dict[str, str] = {}
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, bool):
            out[str(key)] = "true" if value else "false"
        else:
            out[str(key)] = str(value)
    return out
