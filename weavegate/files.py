"""
Data and file helpers for upload/retrieval operations.
"""

import math

from weavegate.config import DEFAULT_GATEWAY


SIZE_UNITS = ["Bytes", "KB", "MB", "GB", "TB"]

CONTENT_TYPES = {
    "json": "application/json",
    "txt": "text/plain",
    "html": "text/html",
    "htm": "text/html",
    "css": "text/css",
    "js": "application/javascript",
    "xml": "application/xml",
    "pdf": "application/pdf",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "webp": "image/webp",
    "mp3": "audio/mpeg",
    "mp4": "video/mp4",
    "zip": "application/zip",
    "csv": "text/csv",
    "md": "text/markdown",
}
OCTET_STREAM = "application/octet-stream"


def calculate_data_size(data: bytes | str) -> int:
    """Size in bytes; text is measured as UTF-8."""
    if isinstance(data, str):
        return len(data.encode("utf-8"))
    return len(data)


def format_file_size(size: int) -> str:
    """
    Human-readable size in 1024-based units.

    Examples: 0 -> "0 Bytes", 500 -> "500 Bytes", 2048 -> "2 KB", 1536 -> "1.5 KB".
    """
    if size <= 0:
        return "0 Bytes"
    exponent = min(int(math.log(size, 1024)), len(SIZE_UNITS) - 1)
    # log() can land just below an exact power of 1024
    if exponent + 1 < len(SIZE_UNITS) and size >= 1024 ** (exponent + 1):
        exponent += 1
    value = round(size / 1024 ** exponent, 2)
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[exponent]}"


def content_type_from_extension(filename: str) -> str:
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return CONTENT_TYPES.get(ext, OCTET_STREAM)


def create_arweave_url(tx_id: str, gateway: str = DEFAULT_GATEWAY) -> str:
    return f"{gateway.rstrip('/')}/{tx_id}"
