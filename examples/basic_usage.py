"""
weavegate: Basic Usage Example

Converts amounts, checks an id, then asks the gateway for a storage price.
Set ARWEAVE_GATEWAY_URL to point at a different gateway.
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from weavegate import (
    GatewayClient,
    GatewayConfig,
    GatewayError,
    GatewayTransport,
    Tag,
    encode_tags,
    is_valid_transaction_id,
    winston_to_ar,
)
from weavegate.files import format_file_size
from weavegate.logging_utils import configure_logging


def main():
    configure_logging("INFO")

    print("=" * 50)
    print("  weavegate: Arweave gateway adapter")
    print("=" * 50)

    tags = [Tag("Content-Type", "application/json"), Tag("App-Name", "weavegate-demo")]
    print("\n  Encoded tags:")
    for tag in encode_tags(tags):
        print(f"    {tag.name} = {tag.value}")

    tx_id = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopq"
    print(f"\n  {tx_id} valid: {is_valid_transaction_id(tx_id)}")

    config = GatewayConfig.from_env()
    size = 1024 * 1024
    with GatewayTransport(config) as transport:
        gateway = GatewayClient(transport)
        try:
            winston = gateway.get_price(size)
        except GatewayError as e:
            print(f"\n  Gateway unavailable: {e}")
            return
    print(f"\n  Storing {format_file_size(size)} costs {winston_to_ar(winston)} AR")


if __name__ == "__main__":
    main()
