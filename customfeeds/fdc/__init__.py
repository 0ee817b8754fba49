"""FDC verifier resolution and request relay."""

from .verifier import (
    InternalError,
    UnsupportedFlareChain,
    UnsupportedSourceChain,
    UpstreamError,
    VerifierClient,
    VerifierEndpoint,
    VerifierError,
    VerifierTable,
    build_verifier_table,
    resolve_chain_ids,
)

__all__ = [
    "InternalError",
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
