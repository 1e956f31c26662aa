"""
Document location handling.

Editors identify documents by URI (`file:///home/me/a.mykt`,
`file:///c%3A/work/a.mykt`) while imports are resolved on the filesystem.
"""

import os
import re
from urllib.parse import unquote, urlparse


FILE_SCHEME = "file:"

# A '%' that does not start a two-digit hex escape.
_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")

# "/C:/..." or "\C:\..." as produced by URIs of Windows paths.
_LEADING_SEP_BEFORE_DRIVE = re.compile(r"^[\\/](?![\\/])[A-Za-z]:")


class LocationDecodeError(ValueError):
    """A document location whose percent-encoding cannot be decoded."""


def resolve_document_path(location: str) -> str:
    """
    Turn a document location into a filesystem path.

    Args:
        location: A `file:` URI or a plain path

    Returns:
        The decoded path for URIs, an absolute path for relative paths,
        and absolute paths unchanged.

    Raises:
        LocationDecodeError: If the URI contains malformed percent-encoding
    """
    if location.startswith(FILE_SCHEME):
        return _file_uri_to_path(location)
    if not os.path.isabs(location):
        return os.path.abspath(location)
    return location


def compute_base_path(location: str) -> str:
    """Directory part of a location, ending with a separator, or ""."""
    path = resolve_document_path(location)
    last_sep = path.rfind(os.sep)
    if last_sep < 0:
        return ""
    return path[: last_sep + 1]


def _file_uri_to_path(uri: str) -> str:
    match = _MALFORMED_ESCAPE.search(uri)
    if match:
        raise LocationDecodeError(
            f"Malformed percent-encoding at offset {match.start()} in {uri}"
        )

    parsed = urlparse(uri)
    try:
        path = unquote(parsed.path, errors="strict")
    except UnicodeDecodeError as e:
        raise LocationDecodeError(f"Cannot decode document location {uri}: {e}") from e

    # file://server/share/a.mykt names a UNC path
    if parsed.netloc and parsed.netloc != "localhost":
        path = f"//{parsed.netloc}{path}"

    if _LEADING_SEP_BEFORE_DRIVE.match(path):
        path = path[1:]

    if os.sep != "/":
        path = path.replace("/", os.sep)
    return path
