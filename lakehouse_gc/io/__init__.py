"""URI helpers shared by the storage backends."""

from lakehouse_gc.io.uri import (
    OBJECT_STORE_SCHEMES,
    ParsedUri,
    ensure_trailing_slash,
    file_uri_to_path,
    is_object_store_uri,
    normalize_location,
    parse_s3_uri,
    parse_uri,
    quote_path,
    uri_scheme,
)

__all__ = [
    "OBJECT_STORE_SCHEMES",
    "ParsedUri",
    "ensure_trailing_slash",
    "file_uri_to_path",
    "is_object_store_uri",
    "normalize_location",
    "parse_s3_uri",
    "parse_uri",
    "quote_path",
    "uri_scheme",
]
