"""
Identifier validation.
Transaction ids and wallet addresses share one format: 43 characters of
the Base64URL alphabet (the unpadded encoding of a 32-byte digest).
"""

import re

from weavegate.errors import ValidationError


TX_ID_LENGTH = 43

_ID_RE = re.compile(r"[A-Za-z0-9_-]{43}")
_ALPHABET_RE = re.compile(r"[A-Za-z0-9_-]+")


def is_valid_transaction_id(tx_id) -> bool:
    """True iff tx_id is a 43-character Base64URL string. Never raises."""
    if not tx_id or not isinstance(tx_id, str):
        return False
    return _ID_RE.fullmatch(tx_id) is not None


is_valid_address = is_valid_transaction_id


def transaction_id_issues(tx_id) -> list[str]:
    """List the reasons tx_id is not a valid identifier. Empty when valid."""
    if not tx_id or not isinstance(tx_id, str):
        return ["Transaction ID is empty"]

    issues = []
    if len(tx_id) != TX_ID_LENGTH:
        issues.append(f"Length should be {TX_ID_LENGTH}, got {len(tx_id)}")
    if not _ALPHABET_RE.fullmatch(tx_id):
        issues.append("Contains invalid Base64URL characters")
    return issues


def require_transaction_id(tx_id, label: str = "transaction ID") -> str:
    """Return tx_id unchanged, or raise ValidationError if malformed."""
    if not is_valid_transaction_id(tx_id):
        raise ValidationError(
            f"Invalid {label} format. Must be a {TX_ID_LENGTH}-character Base64URL string."
        )
    return tx_id
