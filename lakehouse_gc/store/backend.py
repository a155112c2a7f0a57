from __future__ import annotations

from collections.abc import Generator, Iterable, Iterator
from typing import Protocol

from lakehouse_gc.files import DeleteResult, DeleteSummary, FileReference


class FilesBackend(Protocol):
    """Capabilities every storage backend provides.

    All methods accept absolute URIs. ``base_uri`` arguments already end with ``/``.
    """

    def list_recursively(self, base_uri: str) -> FileListing:
        """Return a lazy listing of all files below base_uri."""

    def delete_single(self, uri: str) -> DeleteResult:
        """Delete one object; ordinary failures are reported as FAILURE."""

    def delete_multiple(self, uris: Iterable[str]) -> DeleteSummary:
        """Delete many objects and report the deleted/failed counts."""

    def close(self) -> None:
        """Release the backend's client/filesystem handles."""


class FileListing(Iterator[FileReference]):
    """Single-pass, lazily evaluated listing that must be closed after use.

    Use as a context manager::

        with files.list_recursively("s3://bucket/warehouse/") as listing:
            for ref in listing:
                ...
    """

    def __init__(self, source: Generator[FileReference, None, None]) -> None:
        self._source = source
        self._closed = False

    def __iter__(self) -> FileListing:
        return self

    def __next__(self) -> FileReference:
        if self._closed:
            raise StopIteration
        return next(self._source)

    def __enter__(self) -> FileListing:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._source.close()


def empty_listing() -> FileListing:
    def _nothing() -> Generator[FileReference, None, None]:
        yield from ()

    return FileListing(_nothing())
