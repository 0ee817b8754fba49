from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

import httpx

from ..chains import ChainRegistry
from ..settings import PUBLIC_VERIFIER_API_KEY


logger = logging.getLogger("customfeeds.fdc.verifier")

DEFAULT_CHAIN_ID = 14
ATTESTATION_TYPE = "EVMTransaction"

FLARE_VERIFIER_BASE_URLS: Mapping[int, str] = MappingProxyType(
    {
        14: "https://fdc-verifiers-mainnet.flare.network/verifier",
        114: "https://fdc-verifiers-testnet.flare.network/verifier",
    }
)


class VerifierError(Exception):
    """Base exception for prepare-request failures."""

    def __init__(self, detail: str, status_code: int = 400) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class UnsupportedFlareChain(VerifierError):
    def __init__(self, chain_id: Any) -> None:
        super().__init__(f"Unsupported Flare chain ID: {chain_id}", status_code=400)
        self.chain_id = chain_id


class UnsupportedSourceChain(VerifierError):
    def __init__(self, chain_id: Any) -> None:
        super().__init__(
            f"Unsupported source chain ID: {chain_id}. "
            "FDC EVMTransaction only supports Flare, Ethereum, and testnets.",
            status_code=400,
        )
        self.chain_id = chain_id


class UpstreamError(VerifierError):
    """Non-2xx verifier answer.

    Error statuses (4xx/5xx) are relayed as-is; anything else left after
    redirects are followed (1xx, 3xx) cannot carry an error body and is
    reported as 502.
    """

    def __init__(self, status_code: int, body: str) -> None:
        relayed = status_code if 400 <= status_code < 600 else 502
        super().__init__(f"Verifier error: {status_code} - {body}", status_code=relayed)
        self.upstream_status = status_code
        self.body = body


class InternalError(VerifierError):
    def __init__(self, detail: str) -> None:
        super().__init__(detail, status_code=500)


@dataclass(frozen=True)
class SourceConfig:
    path: str
    source_id: str


# Coston2 predates the chain table and is only reachable through the verifier.
LEGACY_SOURCES: Mapping[int, SourceConfig] = MappingProxyType(
    {
        114: SourceConfig(
            path="c2flr",
            source_id="0x7465737443324652000000000000000000000000000000000000000000000000",
        ),
    }
)


@dataclass(frozen=True)
class VerifierEndpoint:
    url: str
    source_id: str
    flare_chain_id: int
    source_chain_id: int


@dataclass(frozen=True)
class VerifierTable:
    base_urls: Mapping[int, str]
    sources: Mapping[int, SourceConfig]

    def resolve(self, flare_chain_id: Any, source_chain_id: Any) -> VerifierEndpoint:
        base_url = _lookup(self.base_urls, flare_chain_id)
        if not base_url:
            raise UnsupportedFlareChain(flare_chain_id)

        source = _lookup(self.sources, source_chain_id)
        if source is None:
            raise UnsupportedSourceChain(source_chain_id)

        url = f"{base_url.rstrip('/')}/{source.path}/{ATTESTATION_TYPE}/prepareRequest"
        return VerifierEndpoint(
            url=url,
            source_id=source.source_id,
            flare_chain_id=flare_chain_id,
            source_chain_id=source_chain_id,
        )


def _lookup(table: Mapping[int, Any], chain_id: Any) -> Any:
    # bools hash like 0/1 and must not alias real chain ids
    if isinstance(chain_id, bool) or not isinstance(chain_id, int):
        return None
    return table.get(chain_id)


def build_verifier_table(
    registry: ChainRegistry,
    base_urls: Optional[Mapping[int, str]] = None,
) -> VerifierTable:
    sources: Dict[int, SourceConfig] = {}
    for chain in registry.direct_chains(include_testnets=True):
        # direct chains always carry both fields; the registry enforces it
        sources[chain.id] = SourceConfig(path=str(chain.verifier_path), source_id=str(chain.source_id))
    for chain_id, config in LEGACY_SOURCES.items():
        sources.setdefault(chain_id, config)
    return VerifierTable(
        base_urls=MappingProxyType(dict(base_urls or FLARE_VERIFIER_BASE_URLS)),
        sources=MappingProxyType(sources),
    )


def _coerce_chain_id(value: Any) -> Any:
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        # isdigit() also accepts non-ASCII digits such as "²" that int() rejects
        if text.isascii() and text.isdigit():
            try:
                return int(text)
            except ValueError:
                # longer than the interpreter's int conversion limit
                return value
    return value


def resolve_chain_ids(body: Mapping[str, Any]) -> Tuple[Any, Any, Dict[str, Any]]:
    """Split a prepare-request body into (flare id, source id, payload).

    A lone legacy `chainId` stands in for both ids; with no ids at all the
    Flare mainnet id is used.
    """
    payload = dict(body)
    chain_id = payload.pop("chainId", None)
    flare_chain_id = payload.pop("flareChainId", None)
    source_chain_id = payload.pop("sourceChainId", None)

    fallback = chain_id if chain_id is not None else DEFAULT_CHAIN_ID
    effective_flare = flare_chain_id if flare_chain_id is not None else fallback
    effective_source = source_chain_id if source_chain_id is not None else fallback
    return _coerce_chain_id(effective_flare), _coerce_chain_id(effective_source), payload


@dataclass
class VerifierClient:
    """Relays EVMTransaction prepare requests to the FDC verifiers.

    One outbound POST per call. The timeout is always passed to httpx
    explicitly; ``None`` disables it.
    """

    table: VerifierTable
    api_key: str = PUBLIC_VERIFIER_API_KEY
    timeout: Optional[float] = 30.0
    transport: Optional[httpx.AsyncBaseTransport] = field(default=None, repr=False)

    def headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-API-KEY": self.api_key,
        }

    def describe_config(self) -> Dict[str, Any]:
        return {
            "base_urls": {str(k): v for k, v in self.table.base_urls.items()},
            "source_chain_ids": sorted(self.table.sources),
            "timeout": self.timeout,
        }

    async def prepare_request(self, body: Mapping[str, Any]) -> Any:
        flare_chain_id, source_chain_id, payload = resolve_chain_ids(body)
        endpoint = self.table.resolve(flare_chain_id, source_chain_id)
        upstream_body = {**payload, "sourceId": endpoint.source_id}

        logger.info(
            "Preparing %s request flare_chain=%s source_chain=%s url=%s",
            ATTESTATION_TYPE,
            endpoint.flare_chain_id,
            endpoint.source_chain_id,
            endpoint.url,
        )
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self.transport,
                follow_redirects=True,
            ) as client:
                response = await client.post(endpoint.url, json=upstream_body, headers=self.headers())
        except httpx.HTTPError as exc:
            raise InternalError(str(exc) or exc.__class__.__name__) from exc

        if not response.is_success:
            raise UpstreamError(response.status_code, response.text)

        try:
            return response.json()
        except ValueError as exc:
            raise InternalError(f"Invalid JSON from verifier: {exc}") from exc


__all__ = [
    "FLARE_VERIFIER_BASE_URLS",
    "InternalError",
    "LEGACY_SOURCES",
    "SourceConfig",
    "UnsupportedFlareChain",
    "UnsupportedSourceChain",
    "UpstreamError",
    "VerifierClient",
    "VerifierEndpoint",
    "VerifierError",
    "VerifierTable",
    "build_verifier_table",
    "resolve_chain_ids",
]
