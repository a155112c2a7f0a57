from __future__ import annotations

import logging
from collections.abc import Generator, Iterable
from datetime import datetime
from typing import Any

from lakehouse_gc.errors import StorageIOError
from lakehouse_gc.files import DeleteResult, DeleteSummary, FileReference
from lakehouse_gc.io.uri import parse_s3_uri
from lakehouse_gc.observability import log_event
from lakehouse_gc.settings import MAX_DELETE_BATCH_SIZE, S3Settings
from lakehouse_gc.store.backend import FileListing

logger = logging.getLogger(__name__)


def build_s3_client(settings: S3Settings, client_kwargs: dict[str, Any] | None = None) -> Any:
    """Create a boto3 S3 client for AWS S3 or an S3-compatible endpoint (MinIO etc.)."""

    try:
        import boto3
        from botocore.config import Config
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError("boto3 is required for S3FilesBackend") from exc

    config = Config(s3={"addressing_style": settings.url_style})
    kwargs: dict[str, Any] = dict(client_kwargs or {})
    kwargs.update(
        dict(
            service_name="s3",
            endpoint_url=settings.endpoint_url,
            region_name=settings.region,
            use_ssl=settings.use_ssl,
            aws_access_key_id=settings.access_key,
            aws_secret_access_key=settings.secret_key,
            aws_session_token=settings.session_token,
            config=config,
        )
    )
    return boto3.client(**kwargs)


def _to_millis(value: Any) -> int:
    if isinstance(value, datetime):
        return int(value.timestamp() * 1000)
    if value is None:
        return 0
    return int(value)


class S3FilesBackend:
    """Lists and deletes objects through the S3 API, using bulk ``DeleteObjects``."""

    def __init__(self, settings: S3Settings, *, client: Any | None = None) -> None:
        self._settings = settings
        self._client = client if client is not None else build_s3_client(settings)

    @property
    def settings(self) -> S3Settings:
        return self._settings

    def list_recursively(self, base_uri: str) -> FileListing:
        try:
            bucket, prefix = parse_s3_uri(base_uri, allow_empty_key=True)
        except ValueError as exc:
            raise StorageIOError(f"Cannot list {base_uri}") from exc
        return FileListing(self._iter_objects(base_uri, bucket, prefix))

    def _iter_objects(
        self, base_uri: str, bucket: str, prefix: str
    ) -> Generator[FileReference, None, None]:
        paginator = self._client.get_paginator("list_objects_v2")
        pages = iter(paginator.paginate(Bucket=bucket, Prefix=prefix))
        while True:
            try:
                page = next(pages)
            except StopIteration:
                return
            except Exception as exc:  # noqa: BLE001
                raise StorageIOError(f"Failed to list {base_uri}") from exc

            for obj in page.get("Contents", []) or []:
                key = obj.get("Key")
                if not key or not key.startswith(prefix):
                    continue
                relative_path = key[len(prefix) :]
                if not relative_path:
                    continue
                yield FileReference(
                    relative_path=relative_path,
                    base_path=base_uri,
                    modification_time_millis=_to_millis(obj.get("LastModified")),
                )

    def delete_single(self, uri: str) -> DeleteResult:
        try:
            bucket, key = parse_s3_uri(uri)
            self._client.delete_object(Bucket=bucket, Key=key)
            return DeleteResult.SUCCESS
        except Exception:  # noqa: BLE001
            logger.debug("Failed to delete %s", uri, exc_info=True)
            return DeleteResult.FAILURE

    def delete_multiple(self, uris: Iterable[str]) -> DeleteSummary:
        by_bucket: dict[str, list[str]] = {}
        summary = DeleteSummary.EMPTY
        for uri in uris:
            try:
                bucket, key = parse_s3_uri(uri)
            except ValueError:
                logger.debug("Cannot delete %s: not an S3 object URI", uri, exc_info=True)
                summary = summary.add(DeleteResult.FAILURE)
                continue
            by_bucket.setdefault(bucket, []).append(key)

        batch_size = min(self._settings.delete_batch_size, MAX_DELETE_BATCH_SIZE)
        for bucket, keys in by_bucket.items():
            for i in range(0, len(keys), batch_size):
                summary = summary.add(self._delete_batch(bucket, keys[i : i + batch_size]))
        return summary

    def _delete_batch(self, bucket: str, keys: list[str]) -> DeleteSummary:
        try:
            response = self._client.delete_objects(
                Bucket=bucket,
                Delete={"Objects": [{"Key": key} for key in keys], "Quiet": True},
            )
        except Exception:  # noqa: BLE001
            logger.debug(
                "Bulk delete of %d objects in bucket %s failed", len(keys), bucket, exc_info=True
            )
            return DeleteSummary(deleted=0, failures=len(keys))

        # Only the number of errors is trusted; keys in the error list are not reconciled.
        failed = min(len((response or {}).get("Errors") or []), len(keys))
        if failed:
            logger.debug(
                "Failed to delete %d of %d objects in bucket %s (no further details available)",
                failed,
                len(keys),
                bucket,
            )
        return DeleteSummary(deleted=len(keys) - failed, failures=failed)

    def close(self) -> None:
        self._client.close()
        log_event(logger, "gc.backend.closed", level=logging.DEBUG, backend="s3")
