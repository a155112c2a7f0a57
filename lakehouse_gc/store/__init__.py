"""Storage backends and the scheme-routing facade."""

from lakehouse_gc.store.backend import FileListing, FilesBackend
from lakehouse_gc.store.router import LakehouseFiles, SlotState, files_as_strings
from lakehouse_gc.store.s3_backend import S3FilesBackend
from lakehouse_gc.store.tree_backend import (
    FileStatus,
    FileSystem,
    LocalFileSystem,
    TreeWalkFilesBackend,
)

__all__ = [
    "FileListing",
    "FileStatus",
    "FileSystem",
    "FilesBackend",
    "LakehouseFiles",
    "LocalFileSystem",
    "S3FilesBackend",
    "SlotState",
    "TreeWalkFilesBackend",
    "files_as_strings",
]
