"""
Gateway client.
Typed calls for the Arweave gateway's REST paths and GraphQL queries,
built on GatewayTransport.

Identifiers are validated before a URL is built, so a malformed id fails
with ValidationError instead of an opaque gateway 400/404.
"""

from typing import Any, Mapping

from weavegate import queries
from weavegate.errors import GatewayError, ValidationError
from weavegate.transport import GatewayTransport
from weavegate.validation import require_transaction_id

BLOCK_PAGE_SIZE = 100


def _as_text(payload: Any) -> str:
    """Gateways answer balance/price/last_tx as bare text; normalise to str."""
    if payload is None:
        return ""
    return str(payload).strip()


class GatewayClient:
    """
    Arweave gateway operations.

    Args:
        transport: Configured transport. The client never closes it.
    """

    def __init__(self, transport: GatewayTransport):
        self.transport = transport

    @property
    def gateway_url(self) -> str:
        return self.transport.config.base_url

    # Network

    def get_network_info(self) -> dict:
        return self.transport.request_record("GET", "/info")

    def get_peers(self) -> list[str]:
        return self.transport.request("GET", "/peers")

    def check_health(self) -> tuple[bool, dict | None]:
        """Fetch /info. Returns (healthy, info); an unreachable gateway is not an error."""
        try:
            return True, self.get_network_info()
        except GatewayError:
            return False, None

    # Transactions

    def get_transaction(self, tx_id: str) -> dict:
        """Transaction header. A pending transaction (202 "Pending") raises GatewayError."""
        require_transaction_id(tx_id)
        return self.transport.request_record("GET", f"/tx/{tx_id}")

    def get_transaction_status(self, tx_id: str) -> dict:
        require_transaction_id(tx_id)
        return self.transport.request("GET", f"/tx/{tx_id}/status")

    def get_transaction_field(self, tx_id: str, field: str) -> Any:
        require_transaction_id(tx_id)
        if not field or "/" in field:
            raise ValidationError(f"Invalid transaction field: {field!r}")
        return self.transport.request("GET", f"/tx/{tx_id}/{field}")

    def get_transaction_data(self, tx_id: str) -> bytes:
        """Fetch the raw data payload served at /{tx_id}."""
        require_transaction_id(tx_id)
        return self.transport.request_bytes(f"/{tx_id}")

    def get_pending_transactions(self) -> list[str]:
        return self.transport.request("GET", "/tx/pending") or []

    # Blocks

    def get_block_by_hash(self, block_hash: str) -> dict:
        if not block_hash:
            raise ValidationError("Block hash is required")
        return self.transport.request_record("GET", f"/block/hash/{block_hash}")

    def get_block_by_height(self, height: int) -> dict:
        if isinstance(height, bool) or not isinstance(height, int) or height < 0:
            raise ValidationError(f"Block height must be a non-negative integer, got {height!r}")
        return self.transport.request_record("GET", f"/block/height/{height}")

    def get_current_block(self, info: dict = None) -> dict:
        """Block named by /info's `current` hash; pass `info` to skip the lookup."""
        info = info or self.get_network_info()
        if not info.get("current"):
            raise GatewayError("Network info does not name a current block")
        return self.get_block_by_hash(info["current"])

    # Wallets

    def get_wallet_balance(self, address: str) -> str:
        """Balance in Winston, as a digit string."""
        require_transaction_id(address, "wallet address")
        return _as_text(self.transport.request("GET", f"/wallet/{address}/balance"))

    def get_last_transaction(self, address: str) -> str:
        """Id of the wallet's last outgoing transaction, or "" if none."""
        require_transaction_id(address, "wallet address")
        return _as_text(self.transport.request("GET", f"/wallet/{address}/last_tx"))

    # Pricing

    def get_price(self, size: int, target: str = None) -> str:
        """Winston cost of storing `size` bytes (optionally with a transfer to target)."""
        if isinstance(size, bool) or not isinstance(size, int) or size < 0:
            raise ValidationError(f"Data size must be a non-negative integer, got {size!r}")
        if target:
            require_transaction_id(target, "target address")
            return _as_text(self.transport.request("GET", f"/price/{size}/{target}"))
        return _as_text(self.transport.request("GET", f"/price/{size}"))

    # GraphQL

    def query_transactions(self, variables: Mapping[str, Any] = None) -> dict:
        return self.transport.graphql_request(queries.TRANSACTIONS, variables)

    def query_blocks(self, variables: Mapping[str, Any] = None) -> dict:
        return self.transport.graphql_request(queries.BLOCKS, variables)

    def get_block_hashes(self, min_height: int, max_height: int) -> list[dict]:
        """
        Independent hashes for every block in [min_height, max_height].

        Pages through the GraphQL blocks query in ascending height order.
        Returns [{"height": ..., "hash": ...}, ...].
        """
        hashes = []
        after = None
        while True:
            variables = {
                "first": BLOCK_PAGE_SIZE,
                "height": {"min": min_height, "max": max_height},
                "sort": "HEIGHT_ASC",
            }
            if after:
                variables["after"] = after
            connection = (self.query_blocks(variables) or {}).get("blocks") or {}
            edges = connection.get("edges") or []
            hashes.extend({"height": e["node"]["height"], "hash": e["node"]["id"]} for e in edges)
            if not edges or not (connection.get("pageInfo") or {}).get("hasNextPage"):
                return hashes
            after = edges[-1]["cursor"]

    def query_transaction(self, tx_id: str) -> dict | None:
        require_transaction_id(tx_id)
        data = self.transport.graphql_request(queries.TRANSACTION_BY_ID, {"id": tx_id})
        return (data or {}).get("transaction")
