"""Tests for GatewayConfig and GatewayTransport against a mocked HTTP layer."""

import json
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

import httpx

from weavegate.config import DEFAULT_GATEWAY, DEFAULT_TIMEOUT_MS, GatewayConfig
from weavegate.errors import GatewayError
from weavegate.transport import GatewayRequest, GatewayTransport


GATEWAY = "https://gw.test"


def make_transport(handler, **config) -> GatewayTransport:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return GatewayTransport(GatewayConfig(base_url=GATEWAY, **config), client=client)


def test_config_defaults_and_factories():
    config = GatewayConfig()
    assert config.base_url == DEFAULT_GATEWAY
    assert config.timeout_ms == DEFAULT_TIMEOUT_MS
    assert config.graphql_endpoint == f"{DEFAULT_GATEWAY}/graphql"

    creds = GatewayConfig.from_credentials({
        "gatewayUrl": "https://g.example/",
        "graphqlEndpoint": "https://gql.example/graphql",
        "timeout": 5000,
    })
    assert creds.url_for("/info") == "https://g.example/info"
    assert creds.graphql_endpoint == "https://gql.example/graphql"
    assert creds.timeout_seconds == 5.0

    env = GatewayConfig.from_env({"ARWEAVE_GATEWAY_URL": "http://localhost:1984", "ARWEAVE_TIMEOUT_MS": "250"})
    assert env.base_url == "http://localhost:1984"
    assert env.timeout_ms == 250
    assert env.graphql_url is None
    print("  [PASS] Config defaults and factories")


def test_config_rejects_bad_values():
    for kwargs in [{"base_url": ""}, {"base_url": "ftp://x"}, {"timeout_ms": 0}, {"timeout_ms": -5}]:
        try:
            GatewayConfig(**kwargs)
            assert False, f"GatewayConfig({kwargs}) should raise"
        except ValueError:
            pass

    try:
        GatewayConfig.from_env({"ARWEAVE_TIMEOUT_MS": "soon"})
        assert False, "should raise"
    except ValueError:
        pass

    config = GatewayConfig()
    try:
        config.base_url = "https://other"
        assert False, "GatewayConfig should be frozen"
    except AttributeError:
        pass
    print("  [PASS] Config validation")


def test_request_returns_json_payload():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["method"] = request.method
        seen["accept"] = request.headers.get("accept")
        seen["timeout"] = request.extensions["timeout"]["read"]
        return httpx.Response(200, json={"id": "abc", "tags": []})

    with make_transport(handler, timeout_ms=5000) as transport:
        result = transport.request("get", "/tx/abc")

    assert result == {"id": "abc", "tags": []}
    assert seen["url"] == f"{GATEWAY}/tx/abc"
    assert seen["method"] == "GET"
    assert seen["accept"] == "application/json"
    assert seen["timeout"] == 5.0
    print("  [PASS] REST request decodes JSON")


def test_request_returns_text_payload():
    """Balance and price endpoints answer with bare text; digits stay strings."""
    transport = make_transport(lambda request: httpx.Response(200, text="123456789012345678901"))
    assert transport.request("GET", "/wallet/x/balance") == "123456789012345678901"
    print("  [PASS] REST request keeps text payloads as text")


def test_request_sends_query_and_body():
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        seen["body"] = json.loads(request.content)
        seen["content_type"] = request.headers.get("content-type")
        return httpx.Response(200, text="OK")

    transport = make_transport(handler)
    assert transport.request("POST", "/tx", body={"id": "abc"}, query={"foo": "bar"}) == "OK"
    assert seen["params"] == {"foo": "bar"}
    assert seen["body"] == {"id": "abc"}
    assert seen["content_type"] == "application/json"
    print("  [PASS] REST request sends query and JSON body")


def test_request_bytes_returns_raw_body():
    payload = bytes(range(256))
    transport = make_transport(lambda request: httpx.Response(200, content=payload))
    assert transport.request_bytes("/abc") == payload
    print("  [PASS] Raw byte retrieval")


def test_non_2xx_becomes_gateway_error():
    transport = make_transport(lambda request: httpx.Response(404, text="Not Found."))
    try:
        transport.request("GET", "/tx/missing")
        assert False, "should raise GatewayError"
    except GatewayError as e:
        assert e.status_code == 404
        assert e.message == "Not Found."
        assert "404" in str(e)

    transport = make_transport(lambda request: httpx.Response(500))
    try:
        transport.request("GET", "/info")
        assert False, "should raise GatewayError"
    except GatewayError as e:
        assert e.status_code == 500
        assert e.message == "Internal Server Error"
    print("  [PASS] Non-2xx status mapped to GatewayError")


def test_connection_failure_becomes_gateway_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    transport = make_transport(handler)
    try:
        transport.request("GET", "/info")
        assert False, "should raise GatewayError"
    except GatewayError as e:
        assert e.status_code is None
        assert "connection refused" in e.message
    except httpx.HTTPError:
        assert False, "raw httpx error leaked"
    print("  [PASS] Connection failure mapped to GatewayError")


def test_timeout_becomes_gateway_error():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    transport = make_transport(handler)
    for call in (lambda: transport.request("GET", "/info"),
                 lambda: transport.graphql_request("{ blocks { edges { cursor } } }")):
        try:
            call()
            assert False, "should raise GatewayError"
        except GatewayError as e:
            assert "timed out" in e.message
    print("  [PASS] Timeout mapped to GatewayError")


def test_malformed_json_is_gateway_error():
    transport = make_transport(
        lambda request: httpx.Response(200, content=b"{not json", headers={"content-type": "application/json"})
    )
    try:
        transport.request("GET", "/info")
        assert False, "should raise GatewayError"
    except GatewayError as e:
        assert e.status_code == 200
    print("  [PASS] Malformed JSON mapped to GatewayError")


def test_graphql_returns_data():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"data": {"blocks": {"edges": []}}})

    transport = make_transport(handler)
    data = transport.graphql_request("query { blocks { edges { cursor } } }", {"first": 1})
    assert data == {"blocks": {"edges": []}}
    assert seen["url"] == f"{GATEWAY}/graphql"
    assert seen["method"] == "POST"
    assert seen["body"] == {"query": "query { blocks { edges { cursor } } }", "variables": {"first": 1}}
    print("  [PASS] GraphQL returns data")


def test_graphql_uses_configured_endpoint():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        return httpx.Response(200, json={"data": None})

    transport = make_transport(handler, graphql_url="https://gql.test/graphql")
    assert transport.graphql_request("{ x }") is None
    assert seen["url"] == "https://gql.test/graphql"
    print("  [PASS] GraphQL endpoint override")


def test_graphql_errors_are_joined():
    def handler(request):
        return httpx.Response(200, json={
            "data": None,
            "errors": [{"message": "bad cursor"}, {"message": "limit exceeded"}],
        })

    transport = make_transport(handler)
    try:
        transport.graphql_request("{ x }")
        assert False, "should raise GatewayError"
    except GatewayError as e:
        assert e.message == "bad cursor, limit exceeded"
    print("  [PASS] GraphQL errors joined into GatewayError")


def test_graphql_rejects_non_object_envelope():
    transport = make_transport(lambda request: httpx.Response(200, json=[1, 2]))
    try:
        transport.graphql_request("{ x }")
        assert False, "should raise GatewayError"
    except GatewayError:
        pass
    print("  [PASS] GraphQL envelope must be an object")


def test_send_accepts_bytes_body():
    seen = {}

    def handler(request):
        seen["content"] = request.content
        return httpx.Response(201, text="")

    transport = make_transport(handler)
    response = transport.send(GatewayRequest(method="POST", url=f"{GATEWAY}/chunk", body=b"\x00\x01"))
    assert response.status_code == 201
    assert response.ok
    assert seen["content"] == b"\x00\x01"
    print("  [PASS] Raw send with byte body")


def test_close_only_closes_owned_client():
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    with GatewayTransport(GatewayConfig(), client=client):
        pass
    assert not client.is_closed

    owned = GatewayTransport(GatewayConfig())
    owned.close()
    assert owned._client.is_closed
    print("  [PASS] Transport closes only its own client")


def test_graphql_error_status_uses_envelope_messages():
    transport = make_transport(lambda request: httpx.Response(400, json={
        "errors": [{"message": "bad arg first"}, {"message": "bad sort"}],
    }))
    try:
        transport.graphql_request("{ x }")
        assert False, "should raise GatewayError"
    except GatewayError as e:
        assert e.message == "bad arg first, bad sort"
        assert e.status_code == 400

    transport = make_transport(lambda request: httpx.Response(502, text="Bad Gateway upstream"))
    try:
        transport.graphql_request("{ x }")
        assert False, "should raise GatewayError"
    except GatewayError as e:
        assert e.message == "Bad Gateway upstream"
        assert e.status_code == 502
    print("  [PASS] GraphQL error status reports envelope messages")


def test_graphql_envelope_read_whatever_the_content_type():
    transport = make_transport(lambda request: httpx.Response(
        200, content=b'{"data": {"x": 1}}', headers={"content-type": "text/plain"}
    ))
    assert transport.graphql_request("{ x }") == {"x": 1}
    print("  [PASS] GraphQL envelope parsed regardless of content type")


def test_graphql_scalar_errors_not_split():
    transport = make_transport(lambda request: httpx.Response(200, json={"errors": "rate limited"}))
    try:
        transport.graphql_request("{ x }")
        assert False, "should raise GatewayError"
    except GatewayError as e:
        assert e.message == "rate limited"
    print("  [PASS] Scalar GraphQL errors kept whole")


def test_request_record_rejects_non_object():
    transport = make_transport(lambda request: httpx.Response(202, text="Pending"))
    try:
        transport.request_record("GET", "/tx/abc")
        assert False, "should raise GatewayError"
    except GatewayError as e:
        assert e.status_code == 202
        assert e.message == "Pending"

    transport = make_transport(lambda request: httpx.Response(200, json={"id": "abc"}))
    assert transport.request_record("GET", "/tx/abc") == {"id": "abc"}
    print("  [PASS] Record endpoints require a JSON object")


if __name__ == "__main__":
    print("Testing gateway transport...\n")
    test_config_defaults_and_factories()
    test_config_rejects_bad_values()
    test_request_returns_json_payload()
    test_request_returns_text_payload()
    test_request_sends_query_and_body()
    test_request_bytes_returns_raw_body()
    test_non_2xx_becomes_gateway_error()
    test_connection_failure_becomes_gateway_error()
    test_timeout_becomes_gateway_error()
    test_malformed_json_is_gateway_error()
    test_graphql_returns_data()
    test_graphql_uses_configured_endpoint()
    test_graphql_errors_are_joined()
    test_graphql_rejects_non_object_envelope()
    test_send_accepts_bytes_body()
    test_close_only_closes_owned_client()
    test_graphql_error_status_uses_envelope_messages()
    test_graphql_envelope_read_whatever_the_content_type()
    test_graphql_scalar_errors_not_split()
    test_request_record_rejects_non_object()
    print(f"\n{'='*50}")
    print("All 20 transport tests passed!")
