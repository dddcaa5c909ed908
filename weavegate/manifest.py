"""
Arweave path manifests.

A path manifest maps relative paths to transaction ids so a gateway can
serve a whole site from one manifest id:

    {"manifest": "arweave/paths", "version": "0.1.0",
     "index": {"path": "index.html"},
     "paths": {"index.html": {"id": "<tx id>"}},
     "fallback": {"id": "<tx id>"}}
"""

import json
from typing import Iterable, Mapping

from weavegate.codec import Tag
from weavegate.errors import ValidationError
from weavegate.validation import is_valid_transaction_id


MANIFEST_TYPE = "arweave/paths"
MANIFEST_VERSION = "0.1.0"
MANIFEST_CONTENT_TYPE = "application/x.arweave-manifest+json"
DEFAULT_INDEX_PATH = "index.html"


def _entries(paths: Mapping[str, str] | Iterable[Mapping[str, str]]) -> list[tuple[str, str]]:
    if isinstance(paths, Mapping):
        return [(str(p), str(i)) for p, i in paths.items()]
    entries = []
    for entry in paths:
        if not isinstance(entry, Mapping):
            raise ValidationError(f"Path entry must be a mapping, got {entry!r}")
        entries.append((str(entry.get("path") or ""), str(entry.get("id") or "")))
    return entries


def build_manifest(
    paths: Mapping[str, str] | Iterable[Mapping[str, str]],
    index_path: str = DEFAULT_INDEX_PATH,
    fallback_path: str = "",
) -> dict:
    """
    Build a path manifest.

    Args:
        paths: {path: tx_id}, or a list of {"path": ..., "id": ...} entries.
            A repeated path keeps its last id.
        index_path: Path served for the manifest root.
        fallback_path: Path whose id is served for unknown paths. Ignored
            unless it is one of `paths`.

    Raises:
        ValidationError: No entries, an entry without path or id, or an
            invalid transaction id.
    """
    entries = _entries(paths)
    if not entries:
        raise ValidationError("At least one path entry is required")

    manifest_paths = {}
    for path, tx_id in entries:
        if not path or not tx_id:
            raise ValidationError("Each path entry must have both path and id")
        if not is_valid_transaction_id(tx_id):
            raise ValidationError(f'Invalid transaction ID for path "{path}": {tx_id}')
        manifest_paths[path] = {"id": tx_id}

    manifest = {
        "manifest": MANIFEST_TYPE,
        "version": MANIFEST_VERSION,
        "index": {"path": index_path},
        "paths": manifest_paths,
    }
    if fallback_path and fallback_path in manifest_paths:
        manifest["fallback"] = {"id": manifest_paths[fallback_path]["id"]}
    return manifest


def index_id(manifest: Mapping) -> str:
    """Id served at the manifest root: the index path's, else the first path's."""
    paths = manifest.get("paths") or {}
    index = (manifest.get("index") or {}).get("path")
    if index in paths:
        return paths[index]["id"]
    return next(iter(paths.values()), {}).get("id", "")


def manifest_json(manifest: Mapping, indent: int | None = None) -> str:
    if indent is None:
        return json.dumps(manifest, separators=(",", ":"))
    return json.dumps(manifest, indent=indent)


def manifest_tags(app_name: str = "weavegate") -> list[Tag]:
    return [Tag("Content-Type", MANIFEST_CONTENT_TYPE), Tag("App-Name", app_name)]


def parse_manifest(data: bytes | str) -> dict:
    """Parse manifest JSON fetched from the gateway."""
    try:
        manifest = json.loads(data)
    except ValueError as e:
        raise ValidationError("Failed to parse manifest JSON") from e
    if not isinstance(manifest, dict) or not isinstance(manifest.get("paths", {}), dict):
        raise ValidationError("Transaction data is not a path manifest")
    for entry in manifest.get("paths", {}).values():
        if not isinstance(entry, dict) or not isinstance(entry.get("id"), str):
            raise ValidationError("Manifest path entries must carry an id")
    return manifest


def resolve_path(manifest: Mapping, path: str) -> tuple[str, str]:
    """
    Resolve a request path against a manifest.

    A leading "/" is ignored. The empty path resolves through the index,
    unknown paths through the fallback.

    Returns:
        (resolved_path, tx_id); resolved_path is "fallback" when the
        fallback answered.

    Raises:
        ValidationError: Nothing in the manifest answers the path.
    """
    clean = path[1:] if path.startswith("/") else path
    paths = manifest.get("paths") or {}

    if clean in paths:
        return clean, paths[clean]["id"]
    if clean == "" and manifest.get("index"):
        index = manifest["index"].get("path", "")
        if index in paths:
            return index, paths[index]["id"]
    elif (manifest.get("fallback") or {}).get("id"):
        return "fallback", manifest["fallback"]["id"]
    raise ValidationError(f'Path "{clean}" not found in manifest')
