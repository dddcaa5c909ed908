"""
Gateway transport.
The single boundary through which weavegate touches the network.

Every call is one independent request/response: no retries, no session
state, no payload interpretation beyond JSON-or-text decoding. Any
failure (connection error, timeout, non-2xx status, GraphQL errors)
surfaces as GatewayError.
"""

import json
import time
from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx

from weavegate.config import GatewayConfig
from weavegate.errors import GatewayError
from weavegate.logging_utils import get_logger

logger = get_logger(__name__)

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


@dataclass(frozen=True)
class GatewayRequest:
    """One outbound HTTP call."""
    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    params: Mapping[str, Any] | None = None
    body: Any = None
    timeout: float | None = None


@dataclass(frozen=True)
class GatewayResponse:
    """Raw result of one HTTP call."""
    status_code: int
    content: bytes
    content_type: str = ""
    reason: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def payload(self) -> Any:
        """Parsed JSON when the content type says JSON, else text."""
        if "json" not in self.content_type.lower():
            return self.text
        return self.json()

    def json(self) -> Any:
        """Parse the body as JSON regardless of content type. Empty is None."""
        if not self.content.strip():
            return None
        try:
            return json.loads(self.content)
        except ValueError as e:
            raise GatewayError(
                f"Gateway returned malformed JSON: {self.text[:200]}",
                self.status_code,
            ) from e


class GatewayTransport:
    """
    Issues REST and GraphQL calls against one configured gateway.

    Args:
        config: Gateway URLs and timeout.
        client: The host's httpx.Client. One is created (and owned) if omitted.
    """

    def __init__(self, config: GatewayConfig, client: httpx.Client = None):
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.Client()

    def __enter__(self) -> "GatewayTransport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def send(self, request: GatewayRequest) -> GatewayResponse:
        """
        Issue one HTTP call and return the raw response.

        Raises:
            GatewayError: On connection failure, timeout, or non-2xx status.
        """
        response = self._exchange(request)
        if not response.ok:
            self._raise_for_status(request, response)
        return response

    def _exchange(self, request: GatewayRequest) -> GatewayResponse:
        """Issue one HTTP call; any status code is returned, not raised."""
        kwargs = {
            "headers": dict(request.headers),
            "params": dict(request.params) if request.params else None,
            "timeout": request.timeout,
        }
        if request.body is not None:
            if isinstance(request.body, (bytes, bytearray)):
                kwargs["content"] = bytes(request.body)
            elif isinstance(request.body, str):
                kwargs["content"] = request.body.encode("utf-8")
            else:
                kwargs["json"] = request.body

        started = time.monotonic()
        try:
            resp = self._client.request(request.method, request.url, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("gateway_timeout", method=request.method, url=request.url)
            raise GatewayError(f"Request to {request.url} timed out: {e}") from e
        except httpx.HTTPError as e:
            logger.warning(
                "gateway_unreachable", method=request.method, url=request.url, error=str(e)
            )
            raise GatewayError(f"Request to {request.url} failed: {e}") from e

        response = GatewayResponse(
            status_code=resp.status_code,
            content=resp.content,
            content_type=resp.headers.get("content-type", ""),
            reason=resp.reason_phrase,
        )
        logger.debug(
            "gateway_request",
            method=request.method,
            url=request.url,
            status=response.status_code,
            elapsed_ms=round((time.monotonic() - started) * 1000, 1),
        )
        return response

    def _raise_for_status(
        self, request: GatewayRequest, response: GatewayResponse, message: str = None
    ) -> None:
        logger.warning(
            "gateway_error_status",
            method=request.method,
            url=request.url,
            status=response.status_code,
        )
        if message is None:
            message = response.text.strip() or response.reason or "Gateway request failed"
        raise GatewayError(message, response.status_code)

    def _rest_request(
        self,
        method: str,
        path: str,
        body: Any = None,
        query: Mapping[str, Any] = None,
        headers: Mapping[str, str] = None,
    ) -> GatewayRequest:
        return GatewayRequest(
            method=method.upper(),
            url=self.config.url_for(path),
            headers={**DEFAULT_HEADERS, **(headers or {})},
            params=query or None,
            body=body,
            timeout=self.config.timeout_seconds,
        )

    def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        query: Mapping[str, Any] = None,
        headers: Mapping[str, str] = None,
    ) -> Any:
        """
        Issue one REST call to base_url + path.

        Args:
            method: HTTP method.
            path: Gateway path, passed through unchanged (e.g. "/tx/{id}").
            body: JSON-serialisable object, str, or bytes.
            query: Query-string parameters. Empty mappings are dropped.
            headers: Extra headers, merged over the JSON defaults.

        Returns:
            Decoded payload: parsed JSON or text.
        """
        return self.send(self._rest_request(method, path, body, query, headers)).payload()

    def request_record(self, method: str, path: str, query: Mapping[str, Any] = None) -> dict:
        """
        Like request(), for endpoints whose only useful answer is a JSON object.

        A 2xx answer that is not an object (a 202 "Pending" body, for one)
        raises GatewayError carrying the gateway's text and status.
        """
        response = self.send(self._rest_request(method, path, query=query))
        payload = response.payload()
        if not isinstance(payload, dict):
            raise GatewayError(
                response.text.strip() or "Gateway returned no record",
                response.status_code,
            )
        return payload

    def request_bytes(self, path: str, query: Mapping[str, Any] = None) -> bytes:
        """GET base_url + path and return the undecoded body."""
        gateway_request = GatewayRequest(
            method="GET",
            url=self.config.url_for(path),
            params=query or None,
            timeout=self.config.timeout_seconds,
        )
        return self.send(gateway_request).content

    def graphql_request(self, document: str, variables: Mapping[str, Any] = None) -> Any:
        """
        POST a GraphQL document and return the `data` field.

        The body is read as JSON whatever the content type says. An `errors`
        envelope is honoured on 4xx/5xx answers too.

        Raises:
            GatewayError: On transport failure, or when the response carries
                a non-empty `errors` array (messages joined by ", ").
        """
        gateway_request = GatewayRequest(
            method="POST",
            url=self.config.graphql_endpoint,
            headers=DEFAULT_HEADERS,
            body={"query": document, "variables": dict(variables or {})},
            timeout=self.config.timeout_seconds,
        )
        response = self._exchange(gateway_request)

        if not response.ok:
            try:
                envelope = response.json()
            except GatewayError:
                envelope = None
            errors = envelope.get("errors") if isinstance(envelope, dict) else None
            message = _join_errors(errors) if errors else None
            self._raise_for_status(gateway_request, response, message)

        envelope = response.json()
        if not isinstance(envelope, dict):
            raise GatewayError("GraphQL response is not a JSON object", response.status_code)

        errors = envelope.get("errors")
        if errors:
            raise GatewayError(_join_errors(errors), response.status_code)

        return envelope.get("data")


def _join_errors(errors: Any) -> str:
    if not isinstance(errors, list):
        errors = [errors]
    return ", ".join(
        str(err.get("message", err)) if isinstance(err, dict) else str(err)
        for err in errors
    )
