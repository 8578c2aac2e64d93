"""
Scene host: one surface, one engine instance, one remote scene.

Mounting walks ``IDLE → SIZING_WAIT → ENGINE_LOADING → SCENE_LOADING →
READY``.  Any failure along the way ends in ``ERROR`` with a readable message
published as :class:`LoadState`; nothing is re-raised to the caller.  Each
mount attempt carries its own :class:`~scenehost.cancel.CancelFlag`, checked
every time the attempt resumes from an await, so a slow engine fetch cannot
publish state for a host that has since unmounted or switched scenes.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from . import DEFAULT_PIXEL_RATIO_CAP
from .cancel import CancelFlag
from .errors import LoadFailure
from .lifecycle import Binding, LifecycleBinder
from .runtime.engine import destroy_engine, load_scene
from .runtime.loader import RuntimeLoader
from .size_gate import SizeGate
from .surface import Surface

LOG = logging.getLogger(__name__)

LOADING_TEXT = "Loading 3D scene..."
DEFAULT_ERROR_MESSAGE = "Failed to load 3D scene"


class HostState(str, Enum):
    IDLE = "idle"
    SIZING_WAIT = "sizing_wait"
    ENGINE_LOADING = "engine_loading"
    SCENE_LOADING = "scene_loading"
    READY = "ready"
    ERROR = "error"
    DESTROYED = "destroyed"


class LoadStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class LoadState:
    """
    What the presentation layer shows: a loader, the scene, or an error.
    """

    status: LoadStatus
    message: Optional[str] = None

    @classmethod
    def loading(cls) -> "LoadState":
        return cls(LoadStatus.LOADING)

    @classmethod
    def ready(cls) -> "LoadState":
        return cls(LoadStatus.READY)

    @classmethod
    def error(cls, message: str) -> "LoadState":
        return cls(LoadStatus.ERROR, message or DEFAULT_ERROR_MESSAGE)

    @property
    def is_loading(self) -> bool:
        return self.status is LoadStatus.LOADING

    @property
    def is_ready(self) -> bool:
        return self.status is LoadStatus.READY

    @property
    def is_error(self) -> bool:
        return self.status is LoadStatus.ERROR

    def to_dict(self) -> dict:
        return {"status": self.status.value, "message": self.message}


def overlay_for(load_state: LoadState) -> Optional[dict]:
    """
    Overlay drawn over the surface: neutral loader, inline error, or nothing.
    """

    if load_state.is_loading:
        return {"kind": "loading", "text": LOADING_TEXT}
    if load_state.is_error:
        return {"kind": "error", "text": load_state.message or DEFAULT_ERROR_MESSAGE}
    return None


@dataclass(frozen=True)
class SceneRequest:
    """
    Inputs of one mount.  Changing any field means a new engine instance.

    ``runtime_version`` pins the engine build for this call site; ``None``
    uses the loader's configured default.
    """

    surface: Surface
    scene_url: str
    max_pixel_ratio: float = DEFAULT_PIXEL_RATIO_CAP
    runtime_version: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.scene_url:
            raise ValueError("scene_url is required")


LoadObserver = Callable[[LoadState], None]


class SceneHost:
    """
    Drive one engine instance through its lifecycle on a surface.

    ``mount()``, ``update()`` and ``retry()`` schedule work on the running
    event loop and return the task; ``unmount()`` is synchronous and
    idempotent.
    """

    def __init__(
        self,
        request: SceneRequest,
        *,
        loader: RuntimeLoader,
        size_gate: Optional[SizeGate] = None,
        binder: Optional[LifecycleBinder] = None,
    ) -> None:
        self._request = request
        self._loader = loader
        self._size_gate = size_gate if size_gate is not None else SizeGate(
            frame_interval=loader.config.frame_interval
        )
        self._binder = binder if binder is not None else LifecycleBinder()

        self._state = HostState.IDLE
        self._load_state = LoadState.loading()
        self._engine: Any = None
        self._binding: Optional[Binding] = None
        self._cancel: Optional[CancelFlag] = None
        self._task: Optional["asyncio.Task[None]"] = None

        self._observer_counter = 0
        self._observers: Dict[int, LoadObserver] = {}

    def __repr__(self) -> str:
        return f"SceneHost({self._request.scene_url!r}, state={self._state.value})"

    # ------------------------------------------------------------------ properties

    @property
    def request(self) -> SceneRequest:
        return self._request

    @property
    def state(self) -> HostState:
        return self._state

    @property
    def load_state(self) -> LoadState:
        return self._load_state

    @property
    def engine(self) -> Any:
        return self._engine

    @property
    def binding(self) -> Optional[Binding]:
        return self._binding

    # ------------------------------------------------------------------ public API

    def mount(self) -> "asyncio.Task[None]":
        task = self._task
        if task is not None and self._is_active():
            return task
        return self._start()

    def unmount(self) -> None:
        self._cancel_current("unmount")
        self._teardown()
        self._set_state(HostState.DESTROYED)

    def update(self, **changes: Any) -> Optional["asyncio.Task[None]"]:
        """
        Replace request fields; remounts when an effective input changed.
        """

        request = dataclasses.replace(self._request, **changes)
        if request == self._request:
            return self._task
        mounted = self._task is not None and self._state is not HostState.DESTROYED
        self._cancel_current("input-change")
        self._teardown()
        self._request = request
        if not mounted:
            return None
        LOG.info("Scene inputs changed; remounting %s", request.scene_url)
        return self._start()

    def retry(self) -> Optional["asyncio.Task[None]"]:
        if self._state is not HostState.ERROR:
            return self._task
        return self._start()

    async def wait_settled(self) -> None:
        """Wait for the current mount attempt to finish, whatever its outcome."""

        task = self._task
        if task is not None:
            await asyncio.shield(task)

    def subscribe(self, callback: LoadObserver) -> int:
        if not callable(callback):
            raise TypeError("callback must be callable")
        self._observer_counter += 1
        token = self._observer_counter
        self._observers[token] = callback
        try:
            callback(self._load_state)
        except Exception:
            LOG.exception("Load state observer %s failed during initial delivery.", token)
        return token

    def unsubscribe(self, token: int) -> None:
        self._observers.pop(token, None)

    def describe(self) -> dict:
        width, height = self._request.surface.get_size()
        return {
            "state": self._state.value,
            "load": self._load_state.to_dict(),
            "overlay": overlay_for(self._load_state),
            "sceneUrl": self._request.scene_url,
            "maxPixelRatio": self._request.max_pixel_ratio,
            "runtimeVersion": self._request.runtime_version,
            "surface": {"width": width, "height": height},
        }

    # ------------------------------------------------------------------ mounting

    def _is_active(self) -> bool:
        return (
            self._task is not None
            and self._cancel is not None
            and not self._cancel.canceled
            and self._state not in (HostState.ERROR, HostState.DESTROYED)
        )

    def _start(self) -> "asyncio.Task[None]":
        self._cancel_current("remount")
        self._teardown()
        cancel = CancelFlag()
        self._cancel = cancel
        self._set_state(HostState.IDLE)
        self._publish(LoadState.loading())
        self._task = asyncio.get_running_loop().create_task(self._run(self._request, cancel))
        return self._task

    async def _run(self, request: SceneRequest, cancel: CancelFlag) -> None:
        engine: Any = None
        if cancel.canceled:
            # abandoned before the task first ran
            return
        try:
            self._set_state(HostState.SIZING_WAIT)
            sized = await self._size_gate.wait_for_non_zero_size(request.surface, cancel)
            if cancel.canceled or not sized:
                return

            self._set_state(HostState.ENGINE_LOADING)
            factory = await self._loader.get_engine(
                request.max_pixel_ratio, version=request.runtime_version
            )
            if cancel.canceled:
                return
            engine = factory.create(request.surface, request.max_pixel_ratio)

            self._set_state(HostState.SCENE_LOADING)
            try:
                await load_scene(engine, request.scene_url)
            except Exception as exc:
                raise LoadFailure(str(exc) or f"Failed to load scene {request.scene_url}") from exc
            if cancel.canceled:
                destroy_engine(engine)
                return

            binding = self._binder.bind(engine, request.surface, request.max_pixel_ratio)
            self._engine, self._binding, engine = engine, binding, None
            self._set_state(HostState.READY)
            self._publish(LoadState.ready())
            LOG.info("Scene ready: %s", request.scene_url)
        except asyncio.CancelledError:
            destroy_engine(engine)
            raise
        except Exception as exc:
            destroy_engine(engine)
            if cancel.canceled:
                return
            message = str(exc) or DEFAULT_ERROR_MESSAGE
            LOG.error("Failed to load scene %s: %s", request.scene_url, message)
            self._set_state(HostState.ERROR)
            self._publish(LoadState.error(message))

    # ------------------------------------------------------------------ helpers

    def _cancel_current(self, reason: str) -> None:
        if self._cancel is not None:
            self._cancel.cancel(reason)

    def _teardown(self) -> None:
        binding, self._binding = self._binding, None
        if binding is not None:
            binding.unbind()
        engine, self._engine = self._engine, None
        if engine is not None:
            destroy_engine(engine)

    def _set_state(self, state: HostState) -> None:
        if state is self._state:
            return
        LOG.debug("%s: %s -> %s", self._request.scene_url, self._state.value, state.value)
        self._state = state

    def _publish(self, load_state: LoadState) -> None:
        if load_state == self._load_state:
            return
        self._load_state = load_state
        for token, callback in list(self._observers.items()):
            try:
                callback(load_state)
            except Exception:
                LOG.exception("Load state observer %s failed.", token)
