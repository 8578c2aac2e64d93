"""Shared fakes for the engine runtime."""

from __future__ import annotations

import asyncio
from typing import Any, List, Optional

import pytest

from scenehost import SceneHostConfig
from scenehost.runtime.loader import RuntimeLoader, RuntimeModuleCache


class FakeEngineModule:
    """
    Stand-in for the remote engine bundle.

    ``load_gate`` holds every ``load()`` until set; ``load_error`` and
    ``construct_error`` make the corresponding step fail.
    """

    def __init__(self) -> None:
        self.instances: List[Any] = []
        self.load_error: Optional[BaseException] = None
        self.construct_error: Optional[BaseException] = None
        self.load_gate: Optional[asyncio.Event] = None
        module = self

        class Application:
            def __init__(self, surface: Any) -> None:
                if module.construct_error is not None:
                    raise module.construct_error
                self.surface = surface
                self.calls: List[tuple] = []
                module.instances.append(self)

            async def load(self, url: str) -> None:
                self.calls.append(("load", url))
                if module.load_gate is not None:
                    await module.load_gate.wait()
                if module.load_error is not None:
                    raise module.load_error

            def set_pixel_ratio(self, ratio: float) -> None:
                self.calls.append(("set_pixel_ratio", ratio))

            def resize(self) -> None:
                self.calls.append(("resize",))

            def pause(self) -> None:
                self.calls.append(("pause",))

            def play(self) -> None:
                self.calls.append(("play",))

            def destroy(self) -> None:
                self.calls.append(("destroy",))

            @property
            def destroy_count(self) -> int:
                return self.calls.count(("destroy",))

        self.Application = Application


class FakeProvider:
    def __init__(self, module: Any) -> None:
        self.module = module
        self.calls: List[str] = []
        self.errors: List[BaseException] = []
        self.gate: Optional[asyncio.Event] = None

    async def resolve(self, url: str) -> Any:
        self.calls.append(url)
        await asyncio.sleep(0)
        if self.gate is not None:
            await self.gate.wait()
        if self.errors:
            raise self.errors.pop(0)
        return self.module


@pytest.fixture
def engine_module() -> FakeEngineModule:
    return FakeEngineModule()


@pytest.fixture
def provider(engine_module: FakeEngineModule) -> FakeProvider:
    return FakeProvider(engine_module)


@pytest.fixture
def loader(provider: FakeProvider) -> RuntimeLoader:
    return RuntimeLoader(
        provider,
        cache=RuntimeModuleCache(),
        config=SceneHostConfig(frame_interval=0.0),
    )
