"""
Base64URL codec.
The network's wire format carries ids, owners, signatures and tag payloads
as Base64URL: standard Base64 with `-`/`_` in place of `+`/`/` and no `=`
padding.

Text is always transcoded as UTF-8 bytes, so multi-byte characters
survive the round trip.
"""

import base64
import binascii
from dataclasses import dataclass
from typing import Iterable, Mapping

from weavegate.errors import EncodingError


def buffer_to_base64url(data: bytes) -> str:
    """Encode raw bytes as unpadded Base64URL."""
    return base64.urlsafe_b64encode(bytes(data)).decode("ascii").rstrip("=")


def base64url_to_buffer(encoded: str) -> bytes:
    """
    Decode Base64URL to raw bytes.

    Padding is restored before decoding. Characters outside the alphabet
    are discarded rather than rejected.

    Raises:
        EncodingError: If the remaining data has an impossible length.
    """
    if not encoded:
        return b""
    padded = encoded + "=" * (-len(encoded) % 4)
    try:
        return base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as e:
        raise EncodingError(f"Invalid Base64URL input: {e}") from e


def encode_base64url(text: str) -> str:
    """Encode a text string as Base64URL of its UTF-8 bytes."""
    return buffer_to_base64url(text.encode("utf-8"))


def decode_base64url(encoded: str) -> str:
    """Decode Base64URL into UTF-8 text."""
    raw = base64url_to_buffer(encoded)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise EncodingError(f"Decoded Base64URL is not valid UTF-8: {e}") from e


@dataclass(frozen=True)
class Tag:
    """A name/value metadata pair attached to a transaction."""
    name: str
    value: str

    def to_dict(self) -> dict:
        return {"name": self.name, "value": self.value}

    @classmethod
    def coerce(cls, tag: "Tag | Mapping[str, str]") -> "Tag":
        """Accept a Tag or a `{"name": ..., "value": ...}` mapping."""
        if isinstance(tag, Tag):
            return tag
        try:
            return cls(name=str(tag["name"]), value=str(tag["value"]))
        except (KeyError, TypeError) as e:
            raise ValueError(f"Tag must have 'name' and 'value': {tag!r}") from e


def encode_tags(tags: Iterable["Tag | Mapping[str, str]"]) -> list[Tag]:
    """Base64URL-encode each tag's name and value, preserving order."""
    encoded = []
    for tag in tags:
        tag = Tag.coerce(tag)
        encoded.append(Tag(encode_base64url(tag.name), encode_base64url(tag.value)))
    return encoded


def decode_tags(tags: Iterable["Tag | Mapping[str, str]"]) -> list[Tag]:
    """Decode Base64URL tag names and values back to text, preserving order."""
    decoded = []
    for tag in tags:
        tag = Tag.coerce(tag)
        decoded.append(Tag(decode_base64url(tag.name), decode_base64url(tag.value)))
    return decoded


def merge_tags(*tag_lists: Iterable["Tag | Mapping[str, str]"]) -> list[Tag]:
    """Concatenate tag lists, dropping exact duplicates. First occurrence wins."""
    seen = set()
    merged = []
    for tags in tag_lists:
        for tag in tags:
            tag = Tag.coerce(tag)
            if tag in seen:
                continue
            seen.add(tag)
            merged.append(tag)
    return merged
