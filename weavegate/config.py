"""
Gateway configuration.

A GatewayConfig is resolved by the host from its credential storage and
handed to the transport. It is frozen: share it freely, never mutate it.
"""

import os
from dataclasses import dataclass
from typing import Mapping


DEFAULT_GATEWAY = "https://arweave.net"
DEFAULT_TIMEOUT_MS = 60_000


@dataclass(frozen=True)
class GatewayConfig:
    """Where and how long to talk to an Arweave gateway."""
    base_url: str = DEFAULT_GATEWAY
    graphql_url: str | None = None   # defaults to {base_url}/graphql
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    def __post_init__(self):
        if not self.base_url or not isinstance(self.base_url, str):
            raise ValueError("Gateway base_url is required")
        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError(f"Gateway base_url must be an http(s) URL, got {self.base_url!r}")
        if isinstance(self.timeout_ms, bool) or not isinstance(self.timeout_ms, int):
            raise ValueError(f"timeout_ms must be an integer, got {self.timeout_ms!r}")
        if self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {self.timeout_ms}")

    @property
    def graphql_endpoint(self) -> str:
        return self.graphql_url or f"{self.base_url.rstrip('/')}/graphql"

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    def url_for(self, path: str) -> str:
        """Join a gateway path onto the base URL without altering the path."""
        return f"{self.base_url.rstrip('/')}{path}"

    @classmethod
    def from_credentials(cls, credentials: Mapping) -> "GatewayConfig":
        """
        Build a config from a host credential record.

        Recognised keys: gatewayUrl (or baseUrl), graphqlEndpoint, timeout (ms).
        Missing or empty values fall back to defaults.
        """
        base_url = credentials.get("gatewayUrl") or credentials.get("baseUrl") or DEFAULT_GATEWAY
        timeout = credentials.get("timeout") or DEFAULT_TIMEOUT_MS
        return cls(
            base_url=base_url,
            graphql_url=credentials.get("graphqlEndpoint") or None,
            timeout_ms=int(timeout),
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = None) -> "GatewayConfig":
        """Build a config from ARWEAVE_GATEWAY_URL, ARWEAVE_GRAPHQL_URL, ARWEAVE_TIMEOUT_MS."""
        env = os.environ if environ is None else environ
        timeout = env.get("ARWEAVE_TIMEOUT_MS", "")
        try:
            timeout_ms = int(timeout) if timeout else DEFAULT_TIMEOUT_MS
        except ValueError as e:
            raise ValueError(f"ARWEAVE_TIMEOUT_MS must be an integer, got {timeout!r}") from e
        return cls(
            base_url=env.get("ARWEAVE_GATEWAY_URL") or DEFAULT_GATEWAY,
            graphql_url=env.get("ARWEAVE_GRAPHQL_URL") or None,
            timeout_ms=timeout_ms,
        )
