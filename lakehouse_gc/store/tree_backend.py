from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable, Generator, Iterable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from lakehouse_gc.errors import StorageIOError
from lakehouse_gc.files import DeleteResult, DeleteSummary, FileReference, summarize
from lakehouse_gc.io.uri import file_uri_to_path, normalize_location, uri_scheme
from lakehouse_gc.observability import log_event
from lakehouse_gc.store.backend import FileListing, empty_listing

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileStatus:
    path: str
    is_dir: bool
    is_file: bool
    modification_time_millis: int


class FileSystem(Protocol):
    """Minimal hierarchical filesystem API walked by ``TreeWalkFilesBackend``."""

    def path_from_uri(self, uri: str) -> str:
        """Translate a URI of this filesystem's scheme into a native path."""

    def exists(self, path: str) -> bool:
        """Return True when path exists."""

    def iter_dir(self, path: str) -> Iterator[FileStatus]:
        """Yield the direct children of a directory; raise OSError when it cannot be read."""

    def delete(self, path: str) -> None:
        """Delete a single file; raise on failure."""

    def close(self) -> None:
        """Release any handles held by the filesystem."""


FileSystemFactory = Callable[[Mapping[str, Any]], FileSystem]


class LocalFileSystem:
    """Local disk access for ``file://`` URIs.

    Options:
        follow_symlinks: descend into symlinked directories and report symlinked
            files. Defaults to False.
    """

    def __init__(self, options: Mapping[str, Any] | None = None) -> None:
        options = options or {}
        raw = options.get("follow_symlinks", False)
        if isinstance(raw, str):
            raw = raw.strip().lower() in {"1", "true", "yes", "y"}
        self.follow_symlinks = bool(raw)

    def path_from_uri(self, uri: str) -> str:
        return str(file_uri_to_path(uri))

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def iter_dir(self, path: str) -> Iterator[FileStatus]:
        with os.scandir(path) as entries:
            for entry in entries:
                try:
                    is_dir = entry.is_dir(follow_symlinks=self.follow_symlinks)
                    is_file = entry.is_file(follow_symlinks=self.follow_symlinks)
                    mtime = entry.stat(follow_symlinks=self.follow_symlinks).st_mtime_ns
                except OSError:
                    # Vanished or unreadable entry; the directory itself is still fine.
                    logger.debug("Skipping %s", entry.path, exc_info=True)
                    continue
                yield FileStatus(
                    path=entry.path,
                    is_dir=is_dir,
                    is_file=is_file,
                    modification_time_millis=mtime // 1_000_000,
                )

    def delete(self, path: str) -> None:
        os.unlink(path)

    def close(self) -> None:
        return None


DEFAULT_FILESYSTEMS: Mapping[str, FileSystemFactory] = {"file": LocalFileSystem}


class TreeWalkFilesBackend:
    """Lists files with a depth-first directory walk and deletes them one by one."""

    def __init__(
        self,
        options: Mapping[str, Any] | None = None,
        *,
        filesystems: Mapping[str, FileSystemFactory] | None = None,
    ) -> None:
        self._options = dict(options or {})
        self._factories: dict[str, FileSystemFactory] = dict(DEFAULT_FILESYSTEMS)
        self._factories.update(filesystems or {})
        self._resolved: dict[str, FileSystem] = {}
        self._lock = threading.Lock()

    def filesystem(self, uri: str) -> FileSystem:
        """Return the (cached) filesystem handling ``uri``'s scheme."""

        scheme = uri_scheme(uri) or "file"
        with self._lock:
            fs = self._resolved.get(scheme)
            if fs is not None:
                return fs
            factory = self._factories.get(scheme)
            if factory is None:
                raise StorageIOError(f"No filesystem registered for scheme '{scheme}': {uri}")
            try:
                fs = factory(self._options)
            except Exception as exc:  # noqa: BLE001
                raise StorageIOError(f"Cannot create filesystem for scheme '{scheme}'") from exc
            self._resolved[scheme] = fs
            log_event(logger, "gc.filesystem.resolved", level=logging.DEBUG, scheme=scheme)
            return fs

    def list_recursively(self, base_uri: str) -> FileListing:
        fs = self.filesystem(base_uri)
        try:
            root = fs.path_from_uri(normalize_location(base_uri))
        except ValueError as exc:
            raise StorageIOError(f"Cannot list {base_uri}") from exc
        if not fs.exists(root):
            return empty_listing()
        return FileListing(self._walk(fs, root, base_uri))

    def _walk(
        self, fs: FileSystem, root: str, base_uri: str
    ) -> Generator[FileReference, None, None]:
        stack: list[tuple[str, Iterator[FileStatus]]] = []
        try:
            stack.append((root, _open_dir(fs, root)))
            while stack:
                directory, children = stack[-1]
                try:
                    status = next(children, None)
                except OSError as exc:
                    raise StorageIOError(f"Failed to list directory {directory}") from exc

                if status is None:
                    stack.pop()
                    _close_iterator(children)
                    continue
                if status.is_dir:
                    stack.append((status.path, _open_dir(fs, status.path)))
                elif status.is_file:
                    relative_path = Path(status.path).relative_to(root).as_posix()
                    yield FileReference(
                        relative_path=relative_path,
                        base_path=base_uri,
                        modification_time_millis=status.modification_time_millis,
                    )
        finally:
            for _, children in reversed(stack):
                _close_iterator(children)

    def delete_single(self, uri: str) -> DeleteResult:
        fs = self.filesystem(uri)
        try:
            fs.delete(fs.path_from_uri(normalize_location(uri)))
            return DeleteResult.SUCCESS
        except Exception:  # noqa: BLE001
            logger.debug("Failed to delete %s", uri, exc_info=True)
            return DeleteResult.FAILURE

    def delete_multiple(self, uris: Iterable[str]) -> DeleteSummary:
        return summarize(self._delete_item(uri) for uri in uris)

    def _delete_item(self, uri: str) -> DeleteResult:
        # Within a batch an unresolvable scheme is one failed item, not an abort.
        try:
            return self.delete_single(uri)
        except StorageIOError:
            logger.debug("Cannot delete %s", uri, exc_info=True)
            return DeleteResult.FAILURE

    def close(self) -> None:
        with self._lock:
            resolved = list(self._resolved.items())
            self._resolved.clear()
        first_error: Exception | None = None
        for scheme, fs in resolved:
            try:
                fs.close()
            except Exception as exc:  # noqa: BLE001
                if first_error is None:
                    first_error = exc
                else:
                    logger.warning(
                        "Failed to close filesystem for scheme %s", scheme, exc_info=True
                    )
        log_event(logger, "gc.backend.closed", level=logging.DEBUG, backend="tree")
        if first_error is not None:
            raise first_error


def _close_iterator(children: Iterator[FileStatus]) -> None:
    close = getattr(children, "close", None)
    if close is not None:
        close()


def _open_dir(fs: FileSystem, directory: str) -> Iterator[FileStatus]:
    try:
        return fs.iter_dir(directory)
    except OSError as exc:
        raise StorageIOError(f"Failed to list directory {directory}") from exc
