"""
Engine runtime resolution: providers, the shared module cache and the loader.
"""

from __future__ import annotations

from .loader import EngineFactory, RuntimeLoader, RuntimeModuleCache, shared_cache
from .providers import EngineProvider, ImportEngineProvider, RemoteEngineProvider, default_provider

__all__ = [
    "EngineFactory",
    "EngineProvider",
    "ImportEngineProvider",
    "RemoteEngineProvider",
    "RuntimeLoader",
    "RuntimeModuleCache",
    "default_provider",
    "shared_cache",
]
