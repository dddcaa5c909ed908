"""
weavegate: Arweave gateway adapter
Exposes the Arweave permanent-storage gateway (REST + GraphQL) as callable
operations for workflow-automation hosts.

Layers:
1. Codec / units / validation: pure Base64URL, Winston/AR and id helpers
2. Transport: one HTTP/GraphQL call at a time, failures as GatewayError
3. Gateway client + operations: typed calls and a named command table

Usage:
    from weavegate import GatewayConfig, GatewayTransport, GatewayClient
    with GatewayTransport(GatewayConfig()) as transport:
        balance = GatewayClient(transport).get_wallet_balance(address)
"""

from weavegate.codec import (
    Tag,
    encode_base64url,
    decode_base64url,
    buffer_to_base64url,
    base64url_to_buffer,
    encode_tags,
    decode_tags,
    merge_tags,
)
from weavegate.units import winston_to_ar, ar_to_winston, WINSTON_PER_AR
from weavegate.validation import is_valid_transaction_id, is_valid_address
from weavegate.config import GatewayConfig
from weavegate.transport import GatewayTransport, GatewayRequest, GatewayResponse
from weavegate.gateway import GatewayClient
from weavegate.wallet import Wallet, verify_signature
from weavegate.manifest import build_manifest, parse_manifest, resolve_path
from weavegate.operations import Dispatcher, OperationContext, OPERATIONS
from weavegate.errors import (
    WeaveError,
    EncodingError,
    ConversionError,
    ValidationError,
    GatewayError,
    WalletError,
    UnknownOperationError,
)

__version__ = "0.1.0"
__all__ = [
    "Tag",
    "encode_base64url",
    "decode_base64url",
    "buffer_to_base64url",
    "base64url_to_buffer",
    "encode_tags",
    "decode_tags",
    "merge_tags",
    "winston_to_ar",
    "ar_to_winston",
    "WINSTON_PER_AR",
    "is_valid_transaction_id",
    "is_valid_address",
    "GatewayConfig",
    "GatewayTransport",
    "GatewayRequest",
    "GatewayResponse",
    "GatewayClient",
    "Wallet",
    "verify_signature",
    "build_manifest",
    "parse_manifest",
    "resolve_path",
    "Dispatcher",
    "OperationContext",
    "OPERATIONS",
    "WeaveError",
    "EncodingError",
    "ConversionError",
    "ValidationError",
    "GatewayError",
    "WalletError",
    "UnknownOperationError",
]
