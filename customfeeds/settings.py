"""Environment-driven settings for the console API."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple


# Flare's public FDC verifier key; documented upstream, not a secret.
PUBLIC_VERIFIER_API_KEY = "00000000-0000-0000-0000-000000000000"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_DEFAULT_ORIGINS = "http://localhost:3000"


def _float_env(key: str, default: float) -> float:
    raw = (os.getenv(key) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _int_env(key: str, default: int) -> int:
    raw = (os.getenv(key) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def bool_env(key: str, default: bool = False) -> bool:
    raw = os.getenv(key)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value == "":
        return default
    return value in _TRUE_VALUES


def _parse_origins(raw: str) -> Tuple[str, ...]:
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return tuple(origins) or ("*",)


@dataclass(frozen=True)
class Settings:
    # None means no timeout; set explicitly rather than inherited from httpx.
    verifier_timeout: Optional[float] = 30.0
    verifier_api_key: str = PUBLIC_VERIFIER_API_KEY
    cors_origins: Tuple[str, ...] = field(default_factory=lambda: _parse_origins(_DEFAULT_ORIGINS))
    bot_log_limit: int = 200
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        timeout = _float_env("VERIFIER_TIMEOUT_SEC", 30.0)
        raw_origins = os.getenv("CORS_ALLOW_ORIGINS", os.getenv("WEB_ORIGIN", _DEFAULT_ORIGINS) or "")
        return cls(
            verifier_timeout=timeout if timeout > 0 else None,
            verifier_api_key=(os.getenv("VERIFIER_API_KEY") or "").strip() or PUBLIC_VERIFIER_API_KEY,
            cors_origins=_parse_origins(raw_origins),
            bot_log_limit=max(_int_env("BOT_LOG_LIMIT", 200), 1),
            log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper() or "INFO",
        )


__all__ = ["PUBLIC_VERIFIER_API_KEY", "Settings", "bool_env"]
