"""URI helpers shared by both backends.

Locations are URIs: the path component is percent-encoded. Object keys and
file names are raw strings. ``quote_path`` goes from raw to URI form and
``parse_uri``/``file_uri_to_path`` decode exactly once on the way back.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from urllib.parse import SplitResult, quote, unquote, urlsplit
from urllib.request import url2pathname

OBJECT_STORE_SCHEMES = frozenset({"s3", "s3a"})


@dataclass(frozen=True)
class ParsedUri:
    """Scheme, authority and the decoded path (without its leading ``/``)."""

    scheme: str
    authority: str
    path: str


def _split(uri: str) -> SplitResult:
    parts = urlsplit(uri)
    if parts.query or parts.fragment or uri.endswith(("?", "#")):
        # A raw '?' or '#' in a name must arrive percent-encoded.
        raise ValueError(f"URI must not carry a query or fragment: {uri}")
    return parts


def parse_uri(uri: str) -> ParsedUri:
    if not uri:
        raise ValueError("uri is required")
    parts = _split(uri)
    if not parts.scheme:
        raise ValueError(f"URI missing scheme: {uri}")
    return ParsedUri(
        scheme=parts.scheme.lower(),
        authority=parts.netloc,
        path=unquote(parts.path).lstrip("/"),
    )


def quote_path(raw: str) -> str:
    """Percent-encode a raw relative name so it can be appended to a URI."""

    return quote(raw, safe="/")


def uri_scheme(uri: str) -> str:
    """Return the lower-cased scheme of ``uri`` (empty for bare paths)."""

    return urlsplit(uri).scheme.lower()


def is_object_store_uri(uri: str) -> bool:
    return uri_scheme(uri) in OBJECT_STORE_SCHEMES


def parse_s3_uri(uri: str, *, allow_empty_key: bool = False) -> tuple[str, str]:
    """Split an ``s3://`` or ``s3a://`` URI into bucket and decoded key."""

    parsed = parse_uri(uri)
    if parsed.scheme not in OBJECT_STORE_SCHEMES:
        raise ValueError(f"Invalid S3 URI: {uri}")
    if not parsed.authority:
        raise ValueError(f"S3 URI missing bucket: {uri}")
    if not parsed.path and not allow_empty_key:
        raise ValueError(f"S3 URI missing key: {uri}")
    return parsed.authority, parsed.path


def normalize_location(location: str) -> str:
    """Turn bare absolute filesystem paths into ``file://`` URIs.

    URIs that already carry a scheme are returned unchanged.
    """

    value = (location or "").strip()
    if not value:
        raise ValueError("location is required")
    # Single-letter schemes are Windows drive letters.
    if len(urlsplit(value).scheme) > 1:
        return value
    path = Path(value)
    if not path.is_absolute():
        raise ValueError(f"location must be an absolute path or a URI: {location}")
    return path.as_uri()


def ensure_trailing_slash(uri: str) -> str:
    if urlsplit(uri).path.endswith("/"):
        return uri
    return uri + "/"


def file_uri_to_path(uri: str) -> Path:
    """Map a ``file://`` URI to a local path. ``url2pathname`` does the only decode."""

    parts = _split(uri)
    if parts.scheme.lower() != "file":
        raise ValueError(f"Invalid file URI: {uri}")
    path = Path(url2pathname(parts.path))
    if not path.is_absolute():
        raise ValueError(f"file URI must be absolute: {uri}")
    return path
