"""
Engine providers: the capability that turns an engine locator into a module.

:class:`ImportEngineProvider` resolves an installed engine by import target
and is what a configured ``SCENEHOST_ENGINE`` uses.  :class:`RemoteEngineProvider`
only moves bytes: it downloads a bundle with httpx, checks it, and hands it
to the adapter registered for the bundle's file suffix.  Downloaded content is
never executed by the provider itself.
"""

from __future__ import annotations

import asyncio
import importlib
import logging
from pathlib import PurePosixPath
from typing import Any, Callable, Dict, Mapping, Optional, Protocol

import httpx

from .. import SceneHostConfig
from ..errors import ResolutionFailure

LOG = logging.getLogger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(30.0, connect=10.0)
MAX_BUNDLE_BYTES = 32 * 1024 * 1024
USER_AGENT = "SceneHost/1.0"

BundleAdapter = Callable[[bytes, str], Any]


class EngineProvider(Protocol):
    async def resolve(self, url: str) -> Any: ...


def require_application(module: Any, url: str) -> Any:
    """
    Validate that ``module`` exposes an ``Application`` constructor.

    A module whose ``default`` export carries ``Application`` is unwrapped.
    """

    if callable(getattr(module, "Application", None)):
        return module
    default = getattr(module, "default", None)
    if default is not None and callable(getattr(default, "Application", None)):
        return default
    raise ResolutionFailure(f"Engine module at {url} does not export Application")


def default_provider(config: SceneHostConfig) -> "EngineProvider":
    """Provider matching how ``config`` locates the engine."""

    if config.engine_target:
        return ImportEngineProvider()
    return RemoteEngineProvider()


class RemoteEngineProvider:
    """
    Download engine bundles and pass them to a registered adapter.

    ``adapters`` maps a file suffix (``".js"``, ``".wasm"``) to a callable
    taking ``(payload, url)`` and returning the engine module.
    """

    def __init__(
        self,
        adapters: Optional[Mapping[str, BundleAdapter]] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
        max_bytes: int = MAX_BUNDLE_BYTES,
    ) -> None:
        self._adapters: Dict[str, BundleAdapter] = {}
        for suffix, adapter in (adapters or {}).items():
            self.register_adapter(suffix, adapter)
        self._client = client
        self._timeout = timeout
        self._max_bytes = max_bytes

    def register_adapter(self, suffix: str, adapter: BundleAdapter) -> None:
        if not callable(adapter):
            raise TypeError("adapter must be callable")
        key = suffix.lower() if suffix.startswith(".") else f".{suffix.lower()}"
        self._adapters[key] = adapter

    def adapter_for(self, url: str) -> Optional[BundleAdapter]:
        suffix = PurePosixPath(httpx.URL(url).path).suffix.lower()
        return self._adapters.get(suffix)

    async def resolve(self, url: str) -> Any:
        adapter = self.adapter_for(url)
        if adapter is None:
            raise ResolutionFailure(
                f"No bundle adapter registered for {url}; "
                "set SCENEHOST_ENGINE to an installed engine module"
            )
        payload = await self._fetch(url)
        if not payload:
            raise ResolutionFailure(f"Engine bundle at {url} is empty")
        try:
            module = adapter(payload, url)
        except ResolutionFailure:
            raise
        except Exception as exc:
            raise ResolutionFailure(f"Engine adapter rejected bundle at {url}: {exc}") from exc
        LOG.info("Resolved engine module from %s (%d bytes)", url, len(payload))
        return require_application(module, url)

    async def _fetch(self, url: str) -> bytes:
        headers = {"User-Agent": USER_AGENT}
        try:
            if self._client is not None:
                response = await self._client.get(url, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
                    response = await client.get(url, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ResolutionFailure(
                f"Engine fetch returned {exc.response.status_code} for {url}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ResolutionFailure(f"Engine fetch failed for {url}: {exc}") from exc
        payload = response.content
        if len(payload) > self._max_bytes:
            raise ResolutionFailure(
                f"Engine bundle at {url} is {len(payload)} bytes, limit is {self._max_bytes}"
            )
        return payload


class ImportEngineProvider:
    """
    Resolve ``"package.module"`` or ``"package.module:attribute"`` targets.

    The import runs in a worker thread so slow module initialisation does not
    stall the event loop.
    """

    async def resolve(self, url: str) -> Any:
        module_name, _, attribute = url.partition(":")
        if not module_name or "/" in module_name:
            raise ResolutionFailure(f"Invalid engine import target '{url}'")
        try:
            module = await asyncio.to_thread(importlib.import_module, module_name)
        except ImportError as exc:
            raise ResolutionFailure(f"Unable to import engine module '{module_name}': {exc}") from exc
        if attribute:
            try:
                module = getattr(module, attribute)
            except AttributeError as exc:
                raise ResolutionFailure(f"Engine module '{module_name}' has no '{attribute}'") from exc
        return require_application(module, url)
