"""Scheme-routing facade over the object-store and tree-walk backends."""

from __future__ import annotations

import enum
import logging
import os
import threading
from collections.abc import Callable, Iterable, Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any, Generic, TypeVar

from lakehouse_gc.errors import StorageIOError
from lakehouse_gc.files import DeleteResult, DeleteSummary, FileReference
from lakehouse_gc.io.uri import ensure_trailing_slash, is_object_store_uri, normalize_location
from lakehouse_gc.observability import log_event
from lakehouse_gc.settings import S3Settings, load_properties_file, resolve_s3_settings
from lakehouse_gc.store.backend import FileListing
from lakehouse_gc.store.s3_backend import S3FilesBackend, build_s3_client
from lakehouse_gc.store.tree_backend import FileSystemFactory, TreeWalkFilesBackend

logger = logging.getLogger(__name__)

B = TypeVar("B", S3FilesBackend, TreeWalkFilesBackend)


class SlotState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    CLOSED = "closed"


class _BackendSlot(Generic[B]):
    """Owns one lazily created backend: created at most once, closed at most once."""

    def __init__(self, name: str, factory: Callable[[], B]) -> None:
        self.name = name
        self._factory = factory
        self._backend: B | None = None
        self._state = SlotState.UNINITIALIZED
        self._lock = threading.Lock()

    @property
    def state(self) -> SlotState:
        return self._state

    def get(self) -> B:
        with self._lock:
            if self._state is SlotState.CLOSED:
                raise StorageIOError(f"The {self.name} backend has already been closed")
            if self._backend is None:
                try:
                    backend = self._factory()
                except Exception as exc:  # noqa: BLE001
                    raise StorageIOError(f"Cannot create the {self.name} backend") from exc
                self._backend = backend
                self._state = SlotState.INITIALIZED
                log_event(logger, "gc.backend.initialized", level=logging.DEBUG, backend=self.name)
            return self._backend

    def close(self) -> None:
        with self._lock:
            backend, self._backend = self._backend, None
            self._state = SlotState.CLOSED
        if backend is not None:
            backend.close()


class LakehouseFiles:
    """Lists and deletes files below a base location.

    ``s3://`` and ``s3a://`` locations go through the S3 API (with bulk deletes);
    everything else goes through a directory walk on a filesystem resolved by
    scheme (``file://`` and bare absolute paths out of the box).

    Backends are only instantiated when a call needs them, and ``close()`` only
    touches the backends that were instantiated.
    """

    def __init__(
        self,
        properties: Mapping[str, str] | None = None,
        *,
        filesystem_options: Mapping[str, Any] | None = None,
        filesystems: Mapping[str, FileSystemFactory] | None = None,
        env: Mapping[str, str] | None = None,
        s3_client_factory: Callable[[S3Settings], Any] | None = None,
    ) -> None:
        self._properties = MappingProxyType(dict(properties or {}))
        self._filesystem_options = MappingProxyType(dict(filesystem_options or {}))
        self._filesystems = dict(filesystems or {})
        self._env = dict(os.environ) if env is None else dict(env)
        self._s3_client_factory = s3_client_factory or build_s3_client
        self._s3 = _BackendSlot("s3", self._create_s3_backend)
        self._tree = _BackendSlot("tree", self._create_tree_backend)

    @classmethod
    def from_properties_file(cls, path: str | Path, **kwargs: Any) -> LakehouseFiles:
        return cls(load_properties_file(path), **kwargs)

    @property
    def properties(self) -> Mapping[str, str]:
        return self._properties

    @property
    def s3_state(self) -> SlotState:
        return self._s3.state

    @property
    def tree_state(self) -> SlotState:
        return self._tree.state

    def _create_s3_backend(self) -> S3FilesBackend:
        settings = resolve_s3_settings(self._properties, env=self._env)
        return S3FilesBackend(settings, client=self._s3_client_factory(settings))

    def _create_tree_backend(self) -> TreeWalkFilesBackend:
        return TreeWalkFilesBackend(self._filesystem_options, filesystems=self._filesystems)

    def _backend_for(self, uri: str) -> S3FilesBackend | TreeWalkFilesBackend:
        if is_object_store_uri(uri):
            return self._s3.get()
        return self._tree.get()

    def list_recursively(self, location: str) -> FileListing:
        """Return a lazy listing of every file below ``location``.

        The listing holds backend resources until it is exhausted or closed, so
        callers should use it as a context manager.
        """

        try:
            base_uri = ensure_trailing_slash(normalize_location(location))
        except ValueError as exc:
            raise StorageIOError(f"Invalid location: {location!r}") from exc
        return self._backend_for(base_uri).list_recursively(base_uri)

    def delete(self, file_reference: FileReference) -> DeleteResult:
        absolute_path = file_reference.absolute_path
        return self._backend_for(absolute_path).delete_single(absolute_path)

    def delete_multiple(
        self, base_location: str, file_references: Iterable[FileReference]
    ) -> DeleteSummary:
        try:
            base_uri = normalize_location(base_location)
        except ValueError as exc:
            raise StorageIOError(f"Invalid location: {base_location!r}") from exc

        if is_object_store_uri(base_uri):
            backend_name = "s3"
            summary = self._s3.get().delete_multiple(files_as_strings(file_references))
        else:
            backend_name = "tree"
            tree = self._tree.get()
            # Fail before the first delete when the scheme has no filesystem.
            tree.filesystem(base_uri)
            summary = tree.delete_multiple(files_as_strings(file_references))
        log_event(
            logger,
            "gc.delete_multiple",
            base=base_uri,
            backend=backend_name,
            deleted=summary.deleted,
            failures=summary.failures,
        )
        return summary

    def close(self) -> None:
        slots = (self._s3, self._tree)
        initialized = [slot.name for slot in slots if slot.state is SlotState.INITIALIZED]
        if initialized:
            log_event(logger, "gc.router.closed", backends=",".join(initialized))

        first_error: Exception | None = None
        for slot in slots:
            try:
                slot.close()
            except Exception as exc:  # noqa: BLE001
                if first_error is None:
                    first_error = exc
                else:
                    logger.warning("Failed to close the %s backend", slot.name, exc_info=True)
        if first_error is not None:
            raise first_error

    def __enter__(self) -> LakehouseFiles:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def files_as_strings(file_references: Iterable[FileReference]) -> Iterator[str]:
    return (ref.absolute_path for ref in file_references)
