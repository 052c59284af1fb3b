# voting_node/voting_runtime/__init__.py
from __future__ import annotations

"""
Proposal lifecycle runtime (lazy import)

This file does NOT import the service or storage at import time; the
storage package imports the models defined here, so eager imports would
form a cycle. Submodules are exposed lazily via __getattr__ (PEP 562).
"""

from importlib import import_module
from typing import Any

__all__ = [
    "errors",
    "models",
    "eligibility",
    "signatures",
    "vote_ledger",
    "finalization",
    "sweeper",
    "service",
]

_LAZY_MAP = {name: f"voting_node.voting_runtime.{name}" for name in __all__}


def __getattr__(name: str) -> Any:
    mod_path = _LAZY_MAP.get(name)
    if not mod_path:
        raise AttributeError(name)
    return import_module(mod_path)


def __dir__() -> list[str]:
    return sorted(set(globals().keys()) | set(_LAZY_MAP.keys()))
