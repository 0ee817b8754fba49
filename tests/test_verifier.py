import asyncio
import json

import httpx
import pytest

from customfeeds.chains import default_registry
from customfeeds.fdc import (
    InternalError,
    UnsupportedFlareChain,
    UnsupportedSourceChain,
    UpstreamError,
    VerifierClient,
    build_verifier_table,
    resolve_chain_ids,
)


ETH_SOURCE_ID = "0x4554480000000000000000000000000000000000000000000000000000000000"
FLR_SOURCE_ID = "0x464c520000000000000000000000000000000000000000000000000000000000"
MAINNET = "https://fdc-verifiers-mainnet.flare.network/verifier"


@pytest.fixture
def table():
    return build_verifier_table(default_registry())


def test_legacy_chain_id_used_for_both_contexts():
    flare_id, source_id, payload = resolve_chain_ids({"chainId": 14, "requestBody": {"transactionHash": "0x1"}})
    assert (flare_id, source_id) == (14, 14)
    assert payload == {"requestBody": {"transactionHash": "0x1"}}


def test_explicit_ids_take_precedence_over_legacy():
    flare_id, source_id, _ = resolve_chain_ids({"chainId": 114, "flareChainId": 14, "sourceChainId": 1})
    assert (flare_id, source_id) == (14, 1)


def test_missing_ids_default_to_flare_mainnet():
    flare_id, source_id, payload = resolve_chain_ids({"attestationType": "0x45"})
    assert (flare_id, source_id) == (14, 14)
    assert payload == {"attestationType": "0x45"}


def test_null_ids_fall_through():
    flare_id, source_id, _ = resolve_chain_ids({"chainId": 1, "flareChainId": None, "sourceChainId": None})
    assert (flare_id, source_id) == (1, 1)


def test_numeric_strings_are_accepted():
    flare_id, source_id, _ = resolve_chain_ids({"flareChainId": "14", "sourceChainId": "11155111"})
    assert (flare_id, source_id) == (14, 11155111)


def test_input_body_is_not_mutated():
    body = {"chainId": 14, "x": 1}
    resolve_chain_ids(body)
    assert body == {"chainId": 14, "x": 1}


def test_table_sources_cover_direct_chains_and_coston2(table):
    assert sorted(table.sources) == [1, 14, 114, 11155111]
    assert table.sources[114].path == "c2flr"
    assert sorted(table.base_urls) == [14, 114]


def test_resolve_composes_ethereum_url(table):
    endpoint = table.resolve(14, 1)
    assert endpoint.url == f"{MAINNET}/eth/EVMTransaction/prepareRequest"
    assert endpoint.source_id == ETH_SOURCE_ID


def test_resolve_testnet_base(table):
    endpoint = table.resolve(114, 114)
    assert endpoint.url == "https://fdc-verifiers-testnet.flare.network/verifier/c2flr/EVMTransaction/prepareRequest"


def test_unknown_flare_chain(table):
    with pytest.raises(UnsupportedFlareChain) as excinfo:
        table.resolve(1, 1)
    assert excinfo.value.status_code == 400
    assert "Unsupported Flare chain ID: 1" in excinfo.value.detail


def test_unknown_source_chain_names_supported_set(table):
    with pytest.raises(UnsupportedSourceChain) as excinfo:
        table.resolve(14, 9999)
    assert excinfo.value.status_code == 400
    assert "9999" in excinfo.value.detail
    assert "Flare, Ethereum, and testnets" in excinfo.value.detail


def test_relay_chain_is_not_a_source(table):
    with pytest.raises(UnsupportedSourceChain):
        table.resolve(14, 42161)


def test_bool_ids_do_not_alias_chain_one(table):
    with pytest.raises(UnsupportedSourceChain):
        table.resolve(14, True)


def _client(table, handler, **kwargs):
    return VerifierClient(table=table, transport=httpx.MockTransport(handler), **kwargs)


def test_prepare_request_posts_enriched_payload(table):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["api_key"] = request.headers.get("x-api-key")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"status": "VALID", "abiEncodedRequest": "0x00"})

    client = _client(table, handler)
    result = asyncio.run(client.prepare_request({"flareChainId": 14, "sourceChainId": 1, "requestBody": {"a": 1}}))

    assert result == {"status": "VALID", "abiEncodedRequest": "0x00"}
    assert seen["url"] == f"{MAINNET}/eth/EVMTransaction/prepareRequest"
    assert seen["api_key"] == "00000000-0000-0000-0000-000000000000"
    assert seen["body"] == {"requestBody": {"a": 1}, "sourceId": ETH_SOURCE_ID}


def test_resolved_source_id_overrides_client_value(table):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={})

    asyncio.run(_client(table, handler).prepare_request({"chainId": 14, "sourceId": "0xdead"}))
    assert seen["body"]["sourceId"] == FLR_SOURCE_ID


def test_upstream_failure_keeps_status_and_body(table):
    client = _client(table, lambda request: httpx.Response(503, text="down"))
    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(client.prepare_request({"chainId": 14}))
    assert excinfo.value.status_code == 503
    assert excinfo.value.detail == "Verifier error: 503 - down"


def test_transport_failure_is_internal(table):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(InternalError) as excinfo:
        asyncio.run(_client(table, handler).prepare_request({"chainId": 14}))
    assert excinfo.value.status_code == 500
    assert "connection refused" in excinfo.value.detail


def test_non_json_success_is_internal(table):
    client = _client(table, lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(InternalError):
        asyncio.run(client.prepare_request({"chainId": 14}))


def test_unsupported_chain_makes_no_call(table):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    with pytest.raises(UnsupportedSourceChain):
        asyncio.run(_client(table, handler).prepare_request({"sourceChainId": 9999}))
    assert calls == []


def test_custom_api_key_header(table):
    client = VerifierClient(table=table, api_key="custom")
    assert client.headers()["X-API-KEY"] == "custom"
    assert client.headers()["Content-Type"] == "application/json"


@pytest.mark.parametrize("raw", ["²", "٣", "9" * 5000])
def test_unconvertible_digit_strings_stay_unsupported(table, raw):
    _, source_id, _ = resolve_chain_ids({"flareChainId": 14, "sourceChainId": raw})
    with pytest.raises(UnsupportedSourceChain):
        table.resolve(14, source_id)


def test_redirects_are_followed(table):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        if request.url.host == "fdc-verifiers-mainnet.flare.network":
            return httpx.Response(307, headers={"Location": "https://mirror.example/prepareRequest"})
        return httpx.Response(200, json={"status": "VALID"})

    result = asyncio.run(_client(table, handler).prepare_request({"chainId": 14}))
    assert result == {"status": "VALID"}
    assert seen[-1] == "https://mirror.example/prepareRequest"


def test_non_error_status_is_relayed_as_bad_gateway(table):
    client = _client(table, lambda request: httpx.Response(304))
    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(client.prepare_request({"chainId": 14}))
    assert excinfo.value.status_code == 502
    assert excinfo.value.upstream_status == 304
    assert excinfo.value.detail.startswith("Verifier error: 304")
