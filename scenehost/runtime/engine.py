"""
Contract of the external rendering engine and defensive call helpers.

Engine builds differ in what they expose: only ``Application(surface)`` and
``load(url)`` are guaranteed.  Everything else is probed before use and its
failures are swallowed.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Optional, Protocol

LOG = logging.getLogger(__name__)

_MISSING = object()

# Engines ship either the snake_case or the camelCase spelling.
PIXEL_RATIO_METHODS = ("set_pixel_ratio", "setPixelRatio")


class EngineInstance(Protocol):
    def load(self, url: str) -> Any: ...


class EngineModule(Protocol):
    Application: Any


def find_method(engine: Any, *names: str) -> Optional[Any]:
    for name in names:
        method = getattr(engine, name, _MISSING)
        if method is not _MISSING and callable(method):
            return method
    return None


def call_optional(engine: Any, *names: str, args: tuple = ()) -> bool:
    """
    Invoke the first available method in ``names``.

    Returns ``True`` when a method existed and completed, ``False`` when it is
    absent or raised.
    """

    method = find_method(engine, *names)
    if method is None:
        return False
    try:
        method(*args)
    except Exception:
        LOG.debug("Engine call %s%r failed; ignoring.", method, args, exc_info=True)
        return False
    return True


def effective_pixel_ratio(device_pixel_ratio: Optional[float], max_pixel_ratio: float) -> float:
    try:
        device = float(device_pixel_ratio or 0.0)
    except (TypeError, ValueError):
        device = 0.0
    if device <= 0:
        device = 1.0
    return min(device, float(max_pixel_ratio))


def apply_pixel_ratio(engine: Any, ratio: float) -> bool:
    return call_optional(engine, *PIXEL_RATIO_METHODS, args=(ratio,))


async def load_scene(engine: Any, url: str) -> None:
    """Run ``engine.load(url)``, awaiting the result when the engine is async."""

    result = engine.load(url)
    if inspect.isawaitable(result):
        await result


def destroy_engine(engine: Any) -> bool:
    """
    Best-effort teardown.  Failures are logged and never propagate.
    """

    if engine is None:
        return False
    method = find_method(engine, "destroy")
    if method is None:
        return False
    try:
        method()
    except Exception:
        LOG.warning("Error destroying engine instance %r.", engine, exc_info=True)
        return False
    return True
