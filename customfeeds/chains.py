"""Static table of chains the feeds bot knows about.

Direct chains (Flare, Ethereum, Sepolia) are verifiable by the FDC
EVMTransaction verifiers today. Relay chains are declared for the dashboard
but carry no verifier configuration until relay support lands.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Literal, Optional, Tuple


ChainCategory = Literal["direct", "relay"]

EXPLORER_PLACEHOLDER = "#"

_SOURCE_ID_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


@dataclass(frozen=True)
class NativeCurrency:
    name: str
    symbol: str
    decimals: int


@dataclass(frozen=True)
class SupportedChain:
    id: int
    name: str
    category: ChainCategory
    rpc_url: str
    explorer_url: str
    native_currency: NativeCurrency
    verifier_path: Optional[str] = None
    source_id: Optional[str] = None
    testnet: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "source_id": self.source_id,
            "verifier_path": self.verifier_path,
            "rpc_url": self.rpc_url,
            "explorer_url": self.explorer_url,
            "native_currency": {
                "name": self.native_currency.name,
                "symbol": self.native_currency.symbol,
                "decimals": self.native_currency.decimals,
            },
            "testnet": self.testnet,
        }


def _check_chain(chain: SupportedChain) -> None:
    if chain.category == "relay":
        if chain.verifier_path is not None or chain.source_id is not None:
            raise ValueError(f"relay chain {chain.id} must not declare verifier fields")
    elif chain.category == "direct":
        if not chain.verifier_path or not chain.source_id:
            raise ValueError(f"direct chain {chain.id} requires verifier_path and source_id")
        if not _SOURCE_ID_RE.match(chain.source_id):
            raise ValueError(f"chain {chain.id} source_id must be 32 bytes of hex")
    else:
        raise ValueError(f"chain {chain.id} has unknown category {chain.category!r}")


class ChainRegistry:
    """Read-only, ordered lookup over `SupportedChain` records.

    Construction validates the table; after that every query is a pure read,
    so one instance can be shared across requests.
    """

    def __init__(self, chains: Iterable[SupportedChain]) -> None:
        ordered: Tuple[SupportedChain, ...] = tuple(chains)
        by_id: Dict[int, SupportedChain] = {}
        for chain in ordered:
            _check_chain(chain)
            if chain.id in by_id:
                raise ValueError(f"duplicate chain id {chain.id}")
            by_id[chain.id] = chain
        self._chains = ordered
        self._by_id = by_id

    def __iter__(self) -> Iterator[SupportedChain]:
        return iter(self._chains)

    def __len__(self) -> int:
        return len(self._chains)

    def __contains__(self, chain_id: object) -> bool:
        return chain_id in self._by_id

    def lookup(self, chain_id: int) -> Optional[SupportedChain]:
        return self._by_id.get(chain_id)

    def filter(self, category: ChainCategory, include_testnets: bool = True) -> List[SupportedChain]:
        return [
            c for c in self._chains
            if c.category == category and (include_testnets or not c.testnet)
        ]

    def is_category(self, chain_id: int, category: ChainCategory) -> bool:
        chain = self.lookup(chain_id)
        return chain is not None and chain.category == category

    def is_direct(self, chain_id: int) -> bool:
        return self.is_category(chain_id, "direct")

    def is_relay(self, chain_id: int) -> bool:
        return self.is_category(chain_id, "relay")

    def direct_chains(self, include_testnets: bool = True) -> List[SupportedChain]:
        return self.filter("direct", include_testnets)

    def relay_chains(self) -> List[SupportedChain]:
        return self.filter("relay")

    def selectable_chains(self, include_testnets: bool = True) -> List[SupportedChain]:
        # Relay chains become selectable once relay attestation is supported.
        return self.direct_chains(include_testnets)

    def explorer_link(self, chain_id: int, kind: str, tx_or_address: str) -> str:
        chain = self.lookup(chain_id)
        if chain is None or not chain.explorer_url:
            return EXPLORER_PLACEHOLDER
        segment = "address" if kind == "address" else "tx"
        return f"{chain.explorer_url.rstrip('/')}/{segment}/{tx_or_address}"


_ETH = NativeCurrency(name="Ether", symbol="ETH", decimals=18)

DEFAULT_CHAINS: Tuple[SupportedChain, ...] = (
    # Direct, mainnet
    SupportedChain(
        id=14,
        name="Flare",
        category="direct",
        source_id="0x464c520000000000000000000000000000000000000000000000000000000000",
        verifier_path="flr",
        rpc_url="https://flare-api.flare.network/ext/bc/C/rpc",
        explorer_url="https://flare-explorer.flare.network",
        native_currency=NativeCurrency(name="Flare", symbol="FLR", decimals=18),
    ),
    SupportedChain(
        id=1,
        name="Ethereum",
        category="direct",
        source_id="0x4554480000000000000000000000000000000000000000000000000000000000",
        verifier_path="eth",
        rpc_url="https://eth.llamarpc.com",
        explorer_url="https://etherscan.io",
        native_currency=_ETH,
    ),
    # Direct, testnet
    SupportedChain(
        id=11155111,
        name="Sepolia",
        category="direct",
        source_id="0x7465737445544800000000000000000000000000000000000000000000000000",  # testETH
        verifier_path="sepolia",
        rpc_url="https://rpc.sepolia.org",
        explorer_url="https://sepolia.etherscan.io",
        native_currency=NativeCurrency(name="Sepolia ETH", symbol="ETH", decimals=18),
        testnet=True,
    ),
    # Relay
    SupportedChain(
        id=42161,
        name="Arbitrum",
        category="relay",
        rpc_url="https://arb1.arbitrum.io/rpc",
        explorer_url="https://arbiscan.io",
        native_currency=_ETH,
    ),
    SupportedChain(
        id=8453,
        name="Base",
        category="relay",
        rpc_url="https://mainnet.base.org",
        explorer_url="https://basescan.org",
        native_currency=_ETH,
    ),
    SupportedChain(
        id=10,
        name="Optimism",
        category="relay",
        rpc_url="https://mainnet.optimism.io",
        explorer_url="https://optimistic.etherscan.io",
        native_currency=_ETH,
    ),
    SupportedChain(
        id=137,
        name="Polygon",
        category="relay",
        rpc_url="https://polygon-rpc.com",
        explorer_url="https://polygonscan.com",
        native_currency=NativeCurrency(name="MATIC", symbol="MATIC", decimals=18),
    ),
)


_default_registry: Optional[ChainRegistry] = None


def default_registry() -> ChainRegistry:
    """Return the process-wide registry built from `DEFAULT_CHAINS`."""
    global _default_registry
    if _default_registry is None:
        _default_registry = ChainRegistry(DEFAULT_CHAINS)
    return _default_registry


__all__ = [
    "ChainCategory",
    "ChainRegistry",
    "DEFAULT_CHAINS",
    "EXPLORER_PLACEHOLDER",
    "NativeCurrency",
    "SupportedChain",
    "default_registry",
]
