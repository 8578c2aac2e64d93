"""
Shared engine runtime loader.

Every scene host needs the same engine entry point.  The loader resolves it
once per version-qualified URL and hands the cached module to later callers;
callers arriving while the first resolution is still in flight await the same
task instead of starting another fetch.  Failed resolutions are evicted so a
later mount can retry.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from .. import SceneHostConfig
from ..errors import ResolutionFailure
from ..surface import Surface
from .engine import apply_pixel_ratio, effective_pixel_ratio
from .providers import EngineProvider, default_provider

LOG = logging.getLogger(__name__)

Resolver = Callable[[str], Awaitable[Any]]


class RuntimeModuleCache:
    """
    Process-wide map of engine URL to resolved module.

    Populated at most once per URL and never invalidated.  Only the resolved
    modules outlive an event loop; pending tasks are dropped once they settle.
    """

    def __init__(self) -> None:
        self._modules: Dict[str, Any] = {}
        self._pending: Dict[str, "asyncio.Task[Any]"] = {}

    def __contains__(self, url: str) -> bool:
        return url in self._modules

    def is_pending(self, url: str) -> bool:
        return url in self._pending

    async def get(self, url: str, resolve: Resolver) -> Any:
        module = self._modules.get(url)
        if module is not None:
            return module
        # A caller giving up must not cancel the fetch other callers share.
        return await asyncio.shield(self.start(url, resolve))

    def start(self, url: str, resolve: Resolver) -> "asyncio.Task[Any]":
        """
        Return the in-flight resolution for ``url``, starting one if needed.

        Requires a running event loop.
        """

        task = self._pending.get(url)
        if task is None:
            LOG.debug("Resolving engine runtime %s", url)
            task = asyncio.ensure_future(self._resolve(url, resolve))
            self._pending[url] = task
        return task

    async def _resolve(self, url: str, resolve: Resolver) -> Any:
        try:
            module = await resolve(url)
        except ResolutionFailure:
            LOG.error("Failed to load engine runtime from %s", url, exc_info=True)
            raise
        except Exception as exc:
            LOG.error("Failed to load engine runtime from %s", url, exc_info=True)
            raise ResolutionFailure(str(exc) or f"Failed to load engine runtime from {url}") from exc
        else:
            self._modules[url] = module
            LOG.info("Engine runtime ready: %s", url)
            return module
        finally:
            self._pending.pop(url, None)


_SHARED_CACHE = RuntimeModuleCache()


def shared_cache() -> RuntimeModuleCache:
    return _SHARED_CACHE


@dataclass(frozen=True)
class EngineFactory:
    """
    Resolved engine module plus the pixel-ratio cap used when none is given.
    """

    module: Any
    url: str
    default_pixel_ratio_cap: float

    def create(self, surface: Surface, max_pixel_ratio: Optional[float] = None) -> Any:
        """
        Construct an engine instance bound to ``surface`` and cap its pixel ratio.

        Construction errors propagate; the cap is applied best-effort because
        older engine builds have no pixel-ratio setter.
        """

        cap = self.default_pixel_ratio_cap if max_pixel_ratio is None else float(max_pixel_ratio)
        engine = self.module.Application(surface)
        apply_pixel_ratio(engine, effective_pixel_ratio(surface.device_pixel_ratio, cap))
        return engine


class RuntimeLoader:
    """
    Obtain engine factories, fetching each runtime version at most once.
    """

    def __init__(
        self,
        provider: Optional[EngineProvider] = None,
        *,
        cache: Optional[RuntimeModuleCache] = None,
        config: Optional[SceneHostConfig] = None,
    ) -> None:
        self.config = config if config is not None else SceneHostConfig.from_env()
        self.provider: EngineProvider = provider if provider is not None else default_provider(self.config)
        self.cache = cache if cache is not None else shared_cache()

    def runtime_url(self, version: Optional[str] = None) -> str:
        return self.config.runtime_url(version)

    async def get_engine(
        self,
        max_pixel_ratio_hint: Optional[float] = None,
        *,
        version: Optional[str] = None,
    ) -> EngineFactory:
        url = self.runtime_url(version)
        module = await self.cache.get(url, self.provider.resolve)
        cap = self.config.pixel_ratio_cap if max_pixel_ratio_hint is None else float(max_pixel_ratio_hint)
        return EngineFactory(module=module, url=url, default_pixel_ratio_cap=cap)

    async def create_engine(
        self,
        surface: Surface,
        max_pixel_ratio: Optional[float] = None,
        *,
        version: Optional[str] = None,
    ) -> Any:
        factory = await self.get_engine(max_pixel_ratio, version=version)
        return factory.create(surface)

    def is_loaded(self, version: Optional[str] = None) -> bool:
        return self.runtime_url(version) in self.cache

    def preload(self, version: Optional[str] = None) -> Optional["asyncio.Task[None]"]:
        """
        Start resolving the runtime in the background.

        Must be called with a running event loop.  Returns ``None`` when the
        runtime is already loaded or loading; failures are logged and dropped.
        """

        url = self.runtime_url(version)
        if url in self.cache or self.cache.is_pending(url):
            return None

        pending = self.cache.start(url, self.provider.resolve)

        async def _preload() -> None:
            try:
                await pending
            except ResolutionFailure:
                LOG.debug("Engine runtime preload failed for %s", url)

        return asyncio.get_running_loop().create_task(_preload())
