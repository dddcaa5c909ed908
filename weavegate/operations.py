"""
Operation dispatcher.
Maps operation names to handlers for the workflow host.

Each operation declares a typed parameter record; host parameters are
validated into that record before the handler runs. Handlers share one
signature, handler(context, params) -> dict, and return plain records.

Usage:
    dispatcher = Dispatcher.from_credentials({"gatewayUrl": "https://arweave.net"})
    dispatcher.execute("winston_to_ar", [{"winston": "1000000000000"}])
"""

import base64
import json
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping

import httpx

from weavegate.codec import Tag, decode_tags, encode_base64url
from weavegate.config import GatewayConfig
from weavegate.errors import (
    GatewayError,
    UnknownOperationError,
    ValidationError,
    WalletError,
    WeaveError,
)
from weavegate.files import create_arweave_url, format_file_size
from weavegate.gateway import GatewayClient
from weavegate.logging_utils import get_logger
from weavegate.manifest import (
    DEFAULT_INDEX_PATH,
    build_manifest,
    index_id,
    manifest_json,
    manifest_tags,
    parse_manifest,
    resolve_path,
)
from weavegate.transport import GatewayTransport
from weavegate.units import WINSTON_PER_AR, ar_to_winston, winston_to_ar
from weavegate.validation import (
    TX_ID_LENGTH,
    is_valid_transaction_id,
    require_transaction_id,
    transaction_id_issues,
)
from weavegate.wallet import DEFAULT_KEY_SIZE, SIGNATURE_ALGORITHM, Wallet, verify_signature

logger = get_logger(__name__)

_MISSING = object()


def _get(params: Mapping, key: str, default=_MISSING):
    value = params.get(key, default)
    if value is _MISSING:
        raise ValidationError(f"Missing required parameter '{key}'")
    return value


def _text(params: Mapping, key: str, default=_MISSING) -> str:
    value = _get(params, key, default)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"Parameter '{key}' must be a string")
    return value.strip()


def _int(params: Mapping, key: str, default=_MISSING) -> int:
    value = _get(params, key, default)
    if isinstance(value, bool):
        raise ValidationError(f"Parameter '{key}' must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Parameter '{key}' must be an integer, got {value!r}") from e


def _bool(params: Mapping, key: str, default: bool) -> bool:
    value = params.get(key, default)
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def _str_list(params: Mapping, key: str) -> list[str]:
    value = params.get(key) or []
    if isinstance(value, str):
        value = value.split(",")
    return [str(v).strip() for v in value if str(v).strip()]


# Parameter records

@dataclass(frozen=True)
class NoParams:
    @classmethod
    def from_params(cls, params: Mapping) -> "NoParams":
        return cls()


@dataclass(frozen=True)
class TransactionIdParams:
    transaction_id: str

    @classmethod
    def from_params(cls, params: Mapping) -> "TransactionIdParams":
        return cls(transaction_id=_text(params, "transaction_id"))


@dataclass(frozen=True)
class TransactionDataParams:
    transaction_id: str
    decode: bool = True

    @classmethod
    def from_params(cls, params: Mapping) -> "TransactionDataParams":
        return cls(
            transaction_id=_text(params, "transaction_id"),
            decode=_bool(params, "decode", True),
        )


@dataclass(frozen=True)
class WinstonParams:
    winston: str

    @classmethod
    def from_params(cls, params: Mapping) -> "WinstonParams":
        return cls(winston=str(_get(params, "winston")).strip())


@dataclass(frozen=True)
class ArParams:
    ar: str

    @classmethod
    def from_params(cls, params: Mapping) -> "ArParams":
        return cls(ar=str(_get(params, "ar")).strip())


@dataclass(frozen=True)
class PriceParams:
    data_size: int
    target_address: str = ""

    @classmethod
    def from_params(cls, params: Mapping) -> "PriceParams":
        size = _int(params, "data_size")
        if size < 0:
            raise ValidationError("Data size must be non-negative")
        return cls(data_size=size, target_address=_text(params, "target_address", ""))


@dataclass(frozen=True)
class UploadCostParams:
    file_sizes: tuple[int, ...]
    include_breakdown: bool = True

    @classmethod
    def from_params(cls, params: Mapping) -> "UploadCostParams":
        sizes = []
        for raw in _str_list(params, "file_sizes"):
            try:
                size = int(raw)
            except ValueError:
                size = -1
            if size < 0:
                raise ValidationError(f"Invalid file size: {raw}")
            sizes.append(size)
        if not sizes:
            raise ValidationError("At least one file size is required")
        return cls(
            file_sizes=tuple(sizes),
            include_breakdown=_bool(params, "include_breakdown", True),
        )


@dataclass(frozen=True)
class AddressParams:
    address: str = ""

    @classmethod
    def from_params(cls, params: Mapping) -> "AddressParams":
        return cls(address=_text(params, "address", ""))


@dataclass(frozen=True)
class BlockParams:
    height: int | None = None
    block_hash: str = ""

    @classmethod
    def from_params(cls, params: Mapping) -> "BlockParams":
        height = params.get("height")
        block_hash = _text(params, "block_hash", "")
        if height is None and not block_hash:
            raise ValidationError("Either 'height' or 'block_hash' is required")
        return cls(
            height=_int(params, "height") if height is not None else None,
            block_hash=block_hash,
        )


@dataclass(frozen=True)
class QueryTransactionsParams:
    first: int = 10
    after: str = ""
    owners: tuple[str, ...] = ()
    recipients: tuple[str, ...] = ()
    tags: tuple[Tag, ...] = ()
    sort: str = "HEIGHT_DESC"
    min_block: int = 0   # 0 means unbounded
    max_block: int = 0

    @classmethod
    def from_params(cls, params: Mapping) -> "QueryTransactionsParams":
        first = _int(params, "first", 10)
        if not 1 <= first <= 100:
            raise ValidationError("'first' must be between 1 and 100")
        min_block = _int(params, "min_block", 0)
        max_block = _int(params, "max_block", 0)
        if min_block < 0 or max_block < 0:
            raise ValidationError("Block heights must be non-negative")
        sort = _text(params, "sort", "HEIGHT_DESC") or "HEIGHT_DESC"
        if sort not in ("HEIGHT_DESC", "HEIGHT_ASC"):
            raise ValidationError(f"Unknown sort order: {sort}")
        try:
            tags = tuple(Tag.coerce(t) for t in params.get("tags") or [])
        except ValueError as e:
            raise ValidationError(str(e)) from e
        return cls(
            first=first,
            after=_text(params, "after", ""),
            owners=tuple(_str_list(params, "owners")),
            recipients=tuple(_str_list(params, "recipients")),
            tags=tags,
            sort=sort,
            min_block=min_block,
            max_block=max_block,
        )

    def to_variables(self) -> dict:
        variables: dict[str, Any] = {"first": self.first, "sort": self.sort}
        if self.after:
            variables["after"] = self.after
        if self.owners:
            variables["owners"] = list(self.owners)
        if self.recipients:
            variables["recipients"] = list(self.recipients)
        if self.tags:
            variables["tags"] = [{"name": t.name, "values": [t.value]} for t in self.tags]
        block = {}
        if self.min_block:
            block["min"] = self.min_block
        if self.max_block:
            block["max"] = self.max_block
        if block:
            variables["block"] = block
        return variables


@dataclass(frozen=True)
class SignMessageParams:
    message: str

    @classmethod
    def from_params(cls, params: Mapping) -> "SignMessageParams":
        message = _text(params, "message", "")
        if not message:
            raise ValidationError("Message is required")
        return cls(message=message)


@dataclass(frozen=True)
class VerifySignatureParams:
    message: str
    signature: str
    public_key: str

    @classmethod
    def from_params(cls, params: Mapping) -> "VerifySignatureParams":
        values = {}
        for f in fields(cls):
            values[f.name] = _text(params, f.name, "")
            if not values[f.name]:
                raise ValidationError(f"{f.name.replace('_', ' ').capitalize()} is required")
        return cls(**values)


@dataclass(frozen=True)
class GenerateWalletParams:
    key_size: int = DEFAULT_KEY_SIZE

    @classmethod
    def from_params(cls, params: Mapping) -> "GenerateWalletParams":
        key_size = _int(params, "key_size", DEFAULT_KEY_SIZE)
        if key_size not in (2048, 3072, 4096):
            raise ValidationError("Key size must be 2048, 3072 or 4096")
        return cls(key_size=key_size)


TRANSACTION_FIELDS = (
    "id", "last_tx", "owner", "target", "quantity", "reward",
    "signature", "data_size", "data_root", "tags",
)


@dataclass(frozen=True)
class TransactionFieldParams:
    transaction_id: str
    field: str

    @classmethod
    def from_params(cls, params: Mapping) -> "TransactionFieldParams":
        field = _text(params, "field")
        if field not in TRANSACTION_FIELDS:
            raise ValidationError(
                f"Unknown transaction field {field!r}; expected one of {', '.join(TRANSACTION_FIELDS)}"
            )
        return cls(transaction_id=_text(params, "transaction_id"), field=field)


@dataclass(frozen=True)
class JsonDataParams:
    transaction_id: str
    include_metadata: bool = True

    @classmethod
    def from_params(cls, params: Mapping) -> "JsonDataParams":
        return cls(
            transaction_id=_text(params, "transaction_id"),
            include_metadata=_bool(params, "include_metadata", True),
        )


@dataclass(frozen=True)
class BlockTransactionsParams:
    height: int
    include_details: bool = False
    limit: int = 100

    @classmethod
    def from_params(cls, params: Mapping) -> "BlockTransactionsParams":
        height = _int(params, "height")
        if height < 0:
            raise ValidationError("Block height must be non-negative")
        limit = _int(params, "limit", 100)
        if limit < 1:
            raise ValidationError("'limit' must be at least 1")
        return cls(
            height=height,
            include_details=_bool(params, "include_details", False),
            limit=limit,
        )


MAX_HASH_LIST_RANGE = 1000


@dataclass(frozen=True)
class HashListParams:
    from_height: int = 0
    to_height: int = 0   # 0 means the current height

    @classmethod
    def from_params(cls, params: Mapping) -> "HashListParams":
        from_height = _int(params, "from_height", 0)
        to_height = _int(params, "to_height", 0)
        if from_height < 0 or to_height < 0:
            raise ValidationError("Heights must be non-negative")
        if to_height and to_height < from_height:
            raise ValidationError("'to_height' must not be below 'from_height'")
        return cls(from_height=from_height, to_height=to_height)


@dataclass(frozen=True)
class HistoryParams:
    address: str = ""
    limit: int = 100
    include_incoming: bool = True
    include_outgoing: bool = True

    @classmethod
    def from_params(cls, params: Mapping) -> "HistoryParams":
        limit = _int(params, "limit", 100)
        if not 1 <= limit <= 100:
            raise ValidationError("'limit' must be between 1 and 100")
        return cls(
            address=_text(params, "address", ""),
            limit=limit,
            include_incoming=_bool(params, "include_incoming", True),
            include_outgoing=_bool(params, "include_outgoing", True),
        )


@dataclass(frozen=True)
class CreateManifestParams:
    paths: Any
    index_path: str = DEFAULT_INDEX_PATH
    fallback_path: str = ""

    @classmethod
    def from_params(cls, params: Mapping) -> "CreateManifestParams":
        paths = _get(params, "paths")
        if isinstance(paths, str):
            try:
                paths = json.loads(paths)
            except ValueError as e:
                raise ValidationError("'paths' must be a JSON list or object") from e
        if not isinstance(paths, (Mapping, list, tuple)):
            raise ValidationError("'paths' must be a list of {path, id} entries or a mapping")
        return cls(
            paths=paths,
            index_path=_text(params, "index_path", DEFAULT_INDEX_PATH) or DEFAULT_INDEX_PATH,
            fallback_path=_text(params, "fallback_path", ""),
        )


@dataclass(frozen=True)
class ResolvePathParams:
    manifest_id: str
    path: str = ""

    @classmethod
    def from_params(cls, params: Mapping) -> "ResolvePathParams":
        return cls(manifest_id=_text(params, "manifest_id"), path=_text(params, "path", ""))


# Context and command table

@dataclass
class OperationContext:
    """What handlers may use: the gateway and, optionally, the host's wallet."""
    gateway: GatewayClient
    wallet: Wallet | None = None

    def require_wallet(self) -> Wallet:
        if self.wallet is None:
            raise WalletError("This operation requires a wallet JWK in the credentials")
        return self.wallet

    def resolve_address(self, address: str) -> str:
        """An explicit address, else the credential wallet's own."""
        if address:
            return require_transaction_id(address, "wallet address")
        return self.require_wallet().address


Handler = Callable[[OperationContext, Any], dict]


@dataclass(frozen=True)
class Operation:
    name: str
    params_type: type
    handler: Handler

    def __call__(self, context: OperationContext, params: Mapping) -> dict:
        return self.handler(context, self.params_type.from_params(params))


OPERATIONS: dict[str, Operation] = {}


def operation(name: str, params_type: type = NoParams):
    """Register a handler in the default command table."""
    def decorator(handler: Handler) -> Handler:
        OPERATIONS[name] = Operation(name, params_type, handler)
        return handler
    return decorator


def _amount(winston: str) -> dict:
    return {"winston": winston, "ar": winston_to_ar(winston)}


# Utility

@operation("validate_transaction_id", TransactionIdParams)
def validate_transaction_id(ctx: OperationContext, params: TransactionIdParams) -> dict:
    issues = transaction_id_issues(params.transaction_id)
    return {
        "success": True,
        "transaction_id": params.transaction_id,
        "is_valid": is_valid_transaction_id(params.transaction_id),
        "length": len(params.transaction_id),
        "expected_length": TX_ID_LENGTH,
        "issues": issues,
    }


@operation("winston_to_ar", WinstonParams)
def convert_winston_to_ar(ctx: OperationContext, params: WinstonParams) -> dict:
    ar = winston_to_ar(params.winston)
    return {
        "success": True,
        "winston": params.winston,
        "ar": ar,
        "formatted": f"{ar} AR",
        "conversion_rate": f"1 AR = {WINSTON_PER_AR} winston",
    }


@operation("ar_to_winston", ArParams)
def convert_ar_to_winston(ctx: OperationContext, params: ArParams) -> dict:
    winston = ar_to_winston(params.ar)
    return {
        "success": True,
        "ar": params.ar,
        "winston": winston,
        "formatted": f"{winston} winston",
        "conversion_rate": f"1 AR = {WINSTON_PER_AR} winston",
    }


@operation("sign_message", SignMessageParams)
def sign_message(ctx: OperationContext, params: SignMessageParams) -> dict:
    wallet = ctx.require_wallet()
    return {
        "success": True,
        "message": params.message,
        "signature": wallet.sign(params.message),
        "signer_address": wallet.address,
        "public_key": wallet.owner,
        "algorithm": SIGNATURE_ALGORITHM,
    }


@operation("verify_signature", VerifySignatureParams)
def check_signature(ctx: OperationContext, params: VerifySignatureParams) -> dict:
    return {
        "success": True,
        "message": params.message,
        "signature_valid": verify_signature(params.message, params.signature, params.public_key),
        "algorithm": SIGNATURE_ALGORITHM,
    }


@operation("get_api_health")
def get_api_health(ctx: OperationContext, params: NoParams) -> dict:
    healthy, info = ctx.gateway.check_health()
    result = {
        "success": True,
        "healthy": healthy,
        "gateway": ctx.gateway.gateway_url,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if info:
        result["network_info"] = info
    return result


# Pricing

@operation("get_price", PriceParams)
def get_price(ctx: OperationContext, params: PriceParams) -> dict:
    return {
        "success": True,
        "data_size": params.data_size,
        "data_size_formatted": format_file_size(params.data_size),
        "price": _amount(ctx.gateway.get_price(params.data_size)),
    }


@operation("get_price_for_target", PriceParams)
def get_price_for_target(ctx: OperationContext, params: PriceParams) -> dict:
    target = require_transaction_id(params.target_address, "target address")
    return {
        "success": True,
        "data_size": params.data_size,
        "data_size_formatted": format_file_size(params.data_size),
        "target_address": target,
        "price": _amount(ctx.gateway.get_price(params.data_size, target)),
    }


@operation("estimate_upload_cost", UploadCostParams)
def estimate_upload_cost(ctx: OperationContext, params: UploadCostParams) -> dict:
    # one price lookup per file, in input order
    total = 0
    breakdown = []
    for size in params.file_sizes:
        price = _amount(ctx.gateway.get_price(size))
        total += int(price["winston"])
        breakdown.append({
            "size": size,
            "size_formatted": format_file_size(size),
            **price,
        })

    total_size = sum(params.file_sizes)
    result = {
        "success": True,
        "file_count": len(params.file_sizes),
        "total_size": total_size,
        "total_size_formatted": format_file_size(total_size),
        "total_cost": _amount(str(total)),
    }
    if params.include_breakdown:
        result["breakdown"] = breakdown
    return result


# Wallet

@operation("get_wallet_balance", AddressParams)
def get_wallet_balance(ctx: OperationContext, params: AddressParams) -> dict:
    address = ctx.resolve_address(params.address)
    return {
        "success": True,
        "address": address,
        "balance": _amount(ctx.gateway.get_wallet_balance(address)),
    }


@operation("get_wallet_address")
def get_wallet_address(ctx: OperationContext, params: NoParams) -> dict:
    wallet = ctx.require_wallet()
    return {"success": True, "address": wallet.address, "public_key": wallet.owner}


@operation("get_last_transaction", AddressParams)
def get_last_transaction(ctx: OperationContext, params: AddressParams) -> dict:
    address = ctx.resolve_address(params.address)
    last_tx = ctx.gateway.get_last_transaction(address)
    return {"success": True, "address": address, "last_transaction_id": last_tx or None}


@operation("generate_wallet", GenerateWalletParams)
def generate_wallet(ctx: OperationContext, params: GenerateWalletParams) -> dict:
    wallet = Wallet.generate(params.key_size)
    return {
        "success": True,
        "address": wallet.address,
        "jwk": wallet.to_jwk(),
    }


# Transactions

@operation("get_transaction", TransactionIdParams)
def get_transaction(ctx: OperationContext, params: TransactionIdParams) -> dict:
    tx = ctx.gateway.get_transaction(params.transaction_id)
    decoded = decode_tags(tx.get("tags") or [])
    return {
        "success": True,
        "transaction": {**tx, "decoded_tags": [t.to_dict() for t in decoded]},
        "url": create_arweave_url(params.transaction_id, ctx.gateway.gateway_url),
    }


@operation("get_transaction_status", TransactionIdParams)
def get_transaction_status(ctx: OperationContext, params: TransactionIdParams) -> dict:
    status = ctx.gateway.get_transaction_status(params.transaction_id)
    confirmations = status.get("number_of_confirmations", 0) if isinstance(status, dict) else 0
    return {
        "success": True,
        "transaction_id": params.transaction_id,
        "status": status,
        "confirmed": confirmations > 0,
    }


@operation("get_transaction_tags", TransactionIdParams)
def get_transaction_tags(ctx: OperationContext, params: TransactionIdParams) -> dict:
    tx = ctx.gateway.get_transaction(params.transaction_id)
    raw_tags = tx.get("tags") or []
    return {
        "success": True,
        "transaction_id": params.transaction_id,
        "tags": [t.to_dict() for t in decode_tags(raw_tags)],
        "raw_tags": raw_tags,
    }


@operation("get_transaction_data", TransactionDataParams)
def get_transaction_data(ctx: OperationContext, params: TransactionDataParams) -> dict:
    data = ctx.gateway.get_transaction_data(params.transaction_id)
    if params.decode:
        payload, encoding = data.decode("utf-8", errors="replace"), "utf-8"
    else:
        payload, encoding = base64.b64encode(data).decode("ascii"), "base64"
    return {
        "success": True,
        "transaction_id": params.transaction_id,
        "data": payload,
        "encoding": encoding,
        "size": len(data),
        "size_formatted": format_file_size(len(data)),
    }


@operation("get_transaction_field", TransactionFieldParams)
def get_transaction_field(ctx: OperationContext, params: TransactionFieldParams) -> dict:
    return {
        "success": True,
        "transaction_id": params.transaction_id,
        "field": params.field,
        "value": ctx.gateway.get_transaction_field(params.transaction_id, params.field),
    }


@operation("get_json_data", JsonDataParams)
def get_json_data(ctx: OperationContext, params: JsonDataParams) -> dict:
    data = ctx.gateway.get_transaction_data(params.transaction_id)
    try:
        parsed = json.loads(data)
    except ValueError as e:
        raise ValidationError("Transaction data is not valid JSON") from e
    result = {"success": True, "transaction_id": params.transaction_id, "data": parsed}
    if params.include_metadata:
        tx = ctx.gateway.get_transaction(params.transaction_id)
        result["metadata"] = {
            "data_size": tx.get("data_size"),
            "owner": tx.get("owner"),
            "tags": [t.to_dict() for t in decode_tags(tx.get("tags") or [])],
        }
    return result


@operation("get_pending_transactions")
def get_pending_transactions(ctx: OperationContext, params: NoParams) -> dict:
    pending = ctx.gateway.get_pending_transactions()
    return {"success": True, "pending_count": len(pending), "transactions": pending}


PENDING_SAMPLE_SIZE = 100


@operation("get_pending_count")
def get_pending_count(ctx: OperationContext, params: NoParams) -> dict:
    pending = ctx.gateway.get_pending_transactions()
    return {
        "success": True,
        "pending_count": len(pending),
        "pending_transactions": pending[:PENDING_SAMPLE_SIZE],
        "has_more": len(pending) > PENDING_SAMPLE_SIZE,
    }


# Network and blocks

@operation("get_network_info")
def get_network_info(ctx: OperationContext, params: NoParams) -> dict:
    return {"success": True, "network_info": ctx.gateway.get_network_info()}


@operation("get_peers")
def get_peers(ctx: OperationContext, params: NoParams) -> dict:
    peers = ctx.gateway.get_peers()
    return {"success": True, "peer_count": len(peers), "peers": peers}


@operation("get_block", BlockParams)
def get_block(ctx: OperationContext, params: BlockParams) -> dict:
    if params.height is not None:
        block = ctx.gateway.get_block_by_height(params.height)
    else:
        block = ctx.gateway.get_block_by_hash(params.block_hash)
    return {"success": True, "block": block}


@operation("get_current_block")
def get_current_block(ctx: OperationContext, params: NoParams) -> dict:
    return {"success": True, "block": ctx.gateway.get_current_block()}


@operation("get_block_transactions", BlockTransactionsParams)
def get_block_transactions(ctx: OperationContext, params: BlockTransactionsParams) -> dict:
    block = ctx.gateway.get_block_by_height(params.height)
    tx_ids = block.get("txs") or []
    transactions = list(tx_ids)
    if params.include_details:
        # one lookup per id, in block order; a failed lookup is recorded, not raised
        transactions = []
        for tx_id in tx_ids[:params.limit]:
            try:
                transactions.append({**ctx.gateway.get_transaction(tx_id), "id": tx_id})
            except WeaveError as e:
                transactions.append({"id": tx_id, "error": str(e)})
    return {
        "success": True,
        "height": params.height,
        "block_hash": block.get("indep_hash"),
        "transaction_count": len(tx_ids),
        "transactions": transactions,
        "fetched_details": params.include_details,
    }


@operation("get_hash_list", HashListParams)
def get_hash_list(ctx: OperationContext, params: HashListParams) -> dict:
    to_height = params.to_height
    if not to_height:
        to_height = ctx.gateway.get_network_info().get("height")
        if isinstance(to_height, bool) or not isinstance(to_height, int):
            raise GatewayError(f"Network info carries no usable height: {to_height!r}")
    to_height = min(to_height, params.from_height + MAX_HASH_LIST_RANGE)
    hashes = ctx.gateway.get_block_hashes(params.from_height, to_height)
    return {
        "success": True,
        "from_height": params.from_height,
        "to_height": to_height,
        "count": len(hashes),
        "hashes": hashes,
    }


@operation("get_reward_address")
def get_reward_address(ctx: OperationContext, params: NoParams) -> dict:
    info = ctx.gateway.get_network_info()
    block = ctx.gateway.get_current_block(info)
    return {
        "success": True,
        "reward_address": block.get("reward_addr"),
        "block_height": info.get("height"),
        "block_hash": info["current"],
    }


# GraphQL

def _transaction_page(ctx: OperationContext, variables: dict) -> dict:
    data = ctx.gateway.query_transactions(variables) or {}
    connection = data.get("transactions") or {}
    edges = connection.get("edges") or []
    return {
        "success": True,
        "count": len(edges),
        "has_next_page": bool((connection.get("pageInfo") or {}).get("hasNextPage")),
        "cursor": edges[-1]["cursor"] if edges else None,
        "transactions": [edge["node"] for edge in edges],
    }


@operation("query_transactions", QueryTransactionsParams)
def query_transactions(ctx: OperationContext, params: QueryTransactionsParams) -> dict:
    return _transaction_page(ctx, params.to_variables())


@operation("query_by_block", QueryTransactionsParams)
def query_by_block(ctx: OperationContext, params: QueryTransactionsParams) -> dict:
    if not params.min_block and not params.max_block:
        raise ValidationError("At least one of 'min_block' or 'max_block' is required")
    if params.min_block and params.max_block and params.max_block < params.min_block:
        raise ValidationError("'max_block' must not be below 'min_block'")
    result = _transaction_page(ctx, params.to_variables())
    result["block_range"] = {"min": params.min_block or None, "max": params.max_block or None}
    return result


@operation("get_transaction_history", HistoryParams)
def get_transaction_history(ctx: OperationContext, params: HistoryParams) -> dict:
    address = ctx.resolve_address(params.address)
    transactions = []
    directions = []
    if params.include_outgoing:
        directions.append(("outgoing", "owners"))
    if params.include_incoming:
        directions.append(("incoming", "recipients"))
    for direction, key in directions:
        data = ctx.gateway.query_transactions(
            {"first": params.limit, key: [address], "sort": "HEIGHT_DESC"}
        ) or {}
        for edge in (data.get("transactions") or {}).get("edges") or []:
            transactions.append({**edge["node"], "direction": direction})

    # pending transactions have no block and sort last
    transactions.sort(key=lambda tx: (tx.get("block") or {}).get("height") or 0, reverse=True)
    return {
        "success": True,
        "address": address,
        "transaction_count": min(len(transactions), params.limit),
        "transactions": transactions[:params.limit],
    }


# Manifests

@operation("create_manifest", CreateManifestParams)
def create_manifest(ctx: OperationContext, params: CreateManifestParams) -> dict:
    manifest = build_manifest(params.paths, params.index_path, params.fallback_path)
    return {
        "success": True,
        "manifest": manifest,
        "manifest_json": manifest_json(manifest, indent=2),
        "manifest_base64": encode_base64url(manifest_json(manifest)),
        "index_path": params.index_path,
        "index_id": index_id(manifest),
        "path_count": len(manifest["paths"]),
        "tags": [t.to_dict() for t in manifest_tags()],
    }


@operation("resolve_path", ResolvePathParams)
def resolve_manifest_path(ctx: OperationContext, params: ResolvePathParams) -> dict:
    manifest_id = require_transaction_id(params.manifest_id, "manifest ID")
    manifest = parse_manifest(ctx.gateway.get_transaction_data(manifest_id))
    resolved_path, tx_id = resolve_path(manifest, params.path)
    clean = params.path[1:] if params.path.startswith("/") else params.path
    return {
        "success": True,
        "manifest_id": manifest_id,
        "requested_path": params.path,
        "resolved_path": resolved_path,
        "transaction_id": tx_id,
        "url": create_arweave_url(tx_id, ctx.gateway.gateway_url),
        "manifest_url": f"{create_arweave_url(manifest_id, ctx.gateway.gateway_url)}/{clean}",
    }


class Dispatcher:
    """
    Runs named operations over a batch of host items.

    Args:
        context: Gateway client and optional wallet shared by all handlers.
        operations: Command table. Defaults to the built-in OPERATIONS.
    """

    def __init__(self, context: OperationContext, operations: Mapping[str, Operation] = None):
        self.context = context
        self.operations = dict(OPERATIONS if operations is None else operations)
        self._announced = False

    @classmethod
    def from_credentials(cls, credentials: Mapping, client: httpx.Client = None) -> "Dispatcher":
        """
        Build a dispatcher from a host credential record.

        A `walletJwk` entry (JSON text or mapping) is optional; "{}" or
        empty means read-only use.
        """
        config = GatewayConfig.from_credentials(credentials)
        transport = GatewayTransport(config, client=client)
        jwk = credentials.get("walletJwk")
        wallet = None
        if jwk and jwk not in ("{}", {}):
            wallet = Wallet.from_jwk(jwk)
        return cls(OperationContext(gateway=GatewayClient(transport), wallet=wallet))

    def __enter__(self) -> "Dispatcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Release the gateway transport (and its HTTP client, if it owns one)."""
        self.context.gateway.transport.close()

    def register(self, name: str, params_type: type, handler: Handler) -> None:
        self.operations[name] = Operation(name, params_type, handler)

    def _announce(self) -> None:
        if self._announced:
            return
        self._announced = True
        logger.info(
            "dispatcher_ready",
            gateway=self.context.gateway.gateway_url,
            operations=len(self.operations),
            wallet=self.context.wallet.address if self.context.wallet else None,
        )

    def lookup(self, name: str) -> Operation:
        try:
            return self.operations[name]
        except KeyError:
            raise UnknownOperationError(f"Unknown operation: {name}") from None

    def run(self, name: str, params: Mapping = None) -> dict:
        """Run one operation on one item's parameters."""
        op = self.lookup(name)
        self._announce()
        return op(self.context, params or {})

    def execute(
        self,
        name: str,
        items: Iterable[Mapping],
        continue_on_fail: bool = False,
    ) -> list[dict]:
        """
        Run one operation for each item, sequentially and in order.

        With continue_on_fail, a failing item yields
        {"success": False, "error": ...} and the batch carries on;
        otherwise the first error propagates.
        """
        op = self.lookup(name)
        self._announce()
        results = []
        for index, params in enumerate(items):
            try:
                results.append(op(self.context, params or {}))
            except WeaveError as e:
                if not continue_on_fail:
                    raise
                logger.warning("operation_failed", operation=name, item=index, error=str(e))
                results.append({"success": False, "error": str(e), "item": index})
        return results
