"""
Error types raised by weavegate.

Pure helpers (codec, units) raise ValueError subclasses so plain callers
can keep catching ValueError. Network failures are always GatewayError,
never a raw HTTP client exception.
"""


class WeaveError(Exception):
    """Base class for all weavegate errors."""


class EncodingError(WeaveError, ValueError):
    """Base64URL input could not be decoded."""


class ConversionError(WeaveError, ValueError):
    """Winston/AR amount is non-numeric or negative."""


class ValidationError(WeaveError, ValueError):
    """Caller-supplied parameter failed a boundary check."""


class WalletError(WeaveError):
    """Wallet key material is malformed or cannot perform the operation."""


class UnknownOperationError(WeaveError, KeyError):
    """No handler is registered for the requested operation."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Unknown operation"


class GatewayError(WeaveError):
    """
    A gateway call failed.

    Covers connection failures, timeouts, non-2xx responses and GraphQL
    responses carrying an errors array.

    Attributes:
        message: Gateway-provided message where available.
        status_code: HTTP status, or None when no response was received.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"[{self.status_code}] {self.message}"

    def to_dict(self) -> dict:
        return {"message": self.message, "status_code": self.status_code}
