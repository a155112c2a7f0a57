"""Value types exchanged between the GC driver and the storage backends."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from functools import reduce
from typing import ClassVar

from lakehouse_gc.io.uri import ensure_trailing_slash, quote_path


@dataclass(frozen=True)
class FileReference:
    """One object, named relative to the base location it was listed from.

    ``base_path`` is a URI ending with ``/``. ``relative_path`` is the raw name
    below it (an object key suffix or a file path, never starting with ``/``)
    and is percent-encoded when ``absolute_path`` appends it to the base.
    """

    relative_path: str
    base_path: str
    modification_time_millis: int

    def __post_init__(self) -> None:
        if not self.base_path.endswith("/"):
            raise ValueError(f"base_path must end with '/': {self.base_path}")
        if not self.relative_path:
            raise ValueError("relative_path is required")
        if self.relative_path.startswith("/"):
            raise ValueError(f"relative_path must not start with '/': {self.relative_path}")

    @classmethod
    def of(
        cls, relative_path: str, base_path: str, modification_time_millis: int
    ) -> FileReference:
        return cls(
            relative_path=relative_path,
            base_path=ensure_trailing_slash(base_path),
            modification_time_millis=int(modification_time_millis),
        )

    @property
    def absolute_path(self) -> str:
        return self.base_path + quote_path(self.relative_path)


class DeleteResult(Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class DeleteSummary:
    deleted: int = 0
    failures: int = 0

    EMPTY: ClassVar[DeleteSummary]

    def __post_init__(self) -> None:
        if self.deleted < 0 or self.failures < 0:
            raise ValueError(f"counts must be non-negative: {self}")

    def add(self, other: DeleteSummary | DeleteResult) -> DeleteSummary:
        if isinstance(other, DeleteResult):
            if other is DeleteResult.SUCCESS:
                return DeleteSummary(self.deleted + 1, self.failures)
            return DeleteSummary(self.deleted, self.failures + 1)
        return DeleteSummary(self.deleted + other.deleted, self.failures + other.failures)

    __add__ = add


DeleteSummary.EMPTY = DeleteSummary(0, 0)


def summarize(results: Iterable[DeleteResult | DeleteSummary]) -> DeleteSummary:
    """Fold per-item results (or partial summaries) into one summary."""

    return reduce(DeleteSummary.add, results, DeleteSummary.EMPTY)
