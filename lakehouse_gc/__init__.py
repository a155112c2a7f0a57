"""Stable public imports for `lakehouse_gc`.

GC drivers decide which files are unreachable; this package lists candidate
files below a base location and deletes them, on S3 or on a filesystem.
"""

from lakehouse_gc.errors import LakehouseGcError, StorageIOError
from lakehouse_gc.files import DeleteResult, DeleteSummary, FileReference, summarize
from lakehouse_gc.settings import S3Settings, load_properties_file, resolve_s3_settings
from lakehouse_gc.store import (
    FileListing,
    FilesBackend,
    LakehouseFiles,
    LocalFileSystem,
    S3FilesBackend,
    TreeWalkFilesBackend,
)

__all__ = [
    "DeleteResult",
    "DeleteSummary",
    "FileListing",
    "FileReference",
    "FilesBackend",
    "LakehouseFiles",
    "LakehouseGcError",
    "LocalFileSystem",
    "S3FilesBackend",
    "S3Settings",
    "StorageIOError",
    "TreeWalkFilesBackend",
    "load_properties_file",
    "resolve_s3_settings",
    "summarize",
]
