from __future__ import annotations

import os

_TRUTHY = {"1", "true", "yes", "on"}


def env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def external_disabled() -> bool:
    """True when every vendor wrapper should skip the network."""
    return env_flag("MNEMOSYNE_DISABLE_EXTERNAL")
