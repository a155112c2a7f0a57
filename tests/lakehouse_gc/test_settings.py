from __future__ import annotations

from pathlib import Path

import pytest

from lakehouse_gc.settings import load_properties_file, resolve_s3_settings


def test_resolve_s3_settings_from_properties() -> None:
    properties = {
        "s3.endpoint": "https://minio.example.local:9000",
        "s3.access-key-id": "access",
        "s3.secret-access-key": "secret",
        "s3.session-token": "token",
        "client.region": "eu-west-1",
        "s3.path-style-access": "false",
        "s3.delete.batch-size": "250",
    }

    settings = resolve_s3_settings(properties, env={})

    assert settings.endpoint_url == "https://minio.example.local:9000"
    assert settings.access_key == "access"
    assert settings.secret_key == "secret"
    assert settings.session_token == "token"
    assert settings.region == "eu-west-1"
    assert settings.url_style == "virtual"
    assert settings.use_ssl is True
    assert settings.delete_batch_size == 250


def test_resolve_s3_settings_falls_back_to_env() -> None:
    env = {
        "S3_ENDPOINT_URL": "http://minio:9000",
        "AWS_ACCESS_KEY_ID": "minio",
        "AWS_SECRET_ACCESS_KEY": "minio123",
        "S3_REGION": "us-west-2",
    }

    settings = resolve_s3_settings({}, env=env)

    assert settings.endpoint_url == "http://minio:9000"
    assert settings.access_key == "minio"
    assert settings.secret_key == "minio123"
    assert settings.region == "us-west-2"
    assert settings.url_style == "path"
    assert settings.use_ssl is False
    assert settings.delete_batch_size == 1000


def test_properties_take_priority_over_env() -> None:
    settings = resolve_s3_settings(
        {"s3.endpoint": "http://props:9000"},
        env={"S3_ENDPOINT_URL": "http://env:9000"},
    )
    assert settings.endpoint_url == "http://props:9000"


def test_defaults_without_endpoint_use_ssl() -> None:
    settings = resolve_s3_settings({}, env={})
    assert settings.endpoint_url is None
    assert settings.access_key is None
    assert settings.region == "us-east-1"
    assert settings.use_ssl is True


def test_access_key_without_secret_is_rejected() -> None:
    with pytest.raises(ValueError, match="must be set together"):
        resolve_s3_settings({"s3.access-key-id": "access"}, env={})


@pytest.mark.parametrize("raw", ["0", "1001", "many"])
def test_invalid_delete_batch_size(raw: str) -> None:
    with pytest.raises(ValueError, match="s3.delete.batch-size"):
        resolve_s3_settings({"s3.delete.batch-size": raw}, env={})


def test_load_properties_file_stringifies_values(tmp_path: Path) -> None:
    path = tmp_path / "gc.yaml"
    path.write_text(
        "s3.endpoint: http://minio:9000\n"
        "s3.path-style-access: true\n"
        "s3.delete.batch-size: 500\n"
        "s3.session-token:\n",
        encoding="utf-8",
    )

    assert load_properties_file(path) == {
        "s3.endpoint": "http://minio:9000",
        "s3.path-style-access": "true",
        "s3.delete.batch-size": "500",
    }


def test_load_properties_file_rejects_lists(tmp_path: Path) -> None:
    path = tmp_path / "gc.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError, match="expected a mapping"):
        load_properties_file(path)
