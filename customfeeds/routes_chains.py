from __future__ import annotations

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel

from .chains import ChainCategory, ChainRegistry, SupportedChain


router = APIRouter(prefix="/api/chains", tags=["chains"])


class NativeCurrencyOut(BaseModel):
    name: str
    symbol: str
    decimals: int


class ChainOut(BaseModel):
    id: int
    name: str
    category: Literal["direct", "relay"]
    source_id: Optional[str] = None
    verifier_path: Optional[str] = None
    rpc_url: str
    explorer_url: str
    native_currency: NativeCurrencyOut
    testnet: bool = False


class ExplorerLinkOut(BaseModel):
    url: str


def get_registry(request: Request) -> ChainRegistry:
    return request.app.state.chain_registry


def _out(chain: SupportedChain) -> ChainOut:
    return ChainOut(**chain.to_dict())


@router.get("", response_model=List[ChainOut])
def list_chains(
    category: Optional[ChainCategory] = Query(default=None),
    include_testnets: bool = Query(default=True),
    registry: ChainRegistry = Depends(get_registry),
) -> List[ChainOut]:
    if category is None:
        chains = [c for c in registry if include_testnets or not c.testnet]
    else:
        chains = registry.filter(category, include_testnets)
    return [_out(c) for c in chains]


@router.get("/selectable", response_model=List[ChainOut])
def list_selectable_chains(
    include_testnets: bool = Query(default=True),
    registry: ChainRegistry = Depends(get_registry),
) -> List[ChainOut]:
    return [_out(c) for c in registry.selectable_chains(include_testnets)]


@router.get("/{chain_id}", response_model=ChainOut)
def read_chain(chain_id: int, registry: ChainRegistry = Depends(get_registry)) -> ChainOut:
    chain = registry.lookup(chain_id)
    if chain is None:
        raise HTTPException(status_code=404, detail="chain_not_found")
    return _out(chain)


@router.get("/{chain_id}/explorer", response_model=ExplorerLinkOut)
def read_explorer_link(
    chain_id: int,
    hash: str = Query(..., min_length=1),
    kind: Literal["address", "tx"] = Query(default="tx"),
    registry: ChainRegistry = Depends(get_registry),
) -> ExplorerLinkOut:
    return ExplorerLinkOut(url=registry.explorer_link(chain_id, kind, hash))
