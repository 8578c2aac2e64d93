"""
Host environment primitives a scene engine is bound to.

A :class:`Surface` is the drawable element with a measurable layout box, the
:class:`HostDocument` carries the page visibility signal, and
:class:`ResizeObserver` delivers box changes.  Windowing adapters drive these
objects (``Surface.resize`` / ``HostDocument.set_hidden``); the core only
observes them.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Tuple

LOG = logging.getLogger(__name__)

VISIBILITY_CHANGE = "visibilitychange"

ResizeCallback = Callable[["Surface"], None]
Listener = Callable[["HostDocument"], None]


class Surface:
    """
    Rectangular drawable element.

    ``device_pixel_ratio`` mirrors the display density of the window the
    surface lives in; ``0`` or ``None`` is treated as ``1``.
    """

    def __init__(
        self,
        width: float = 0.0,
        height: float = 0.0,
        *,
        device_pixel_ratio: Optional[float] = 1.0,
        document: Optional["HostDocument"] = None,
        name: str = "canvas",
    ) -> None:
        self.name = name
        self._width = max(0.0, float(width))
        self._height = max(0.0, float(height))
        self.device_pixel_ratio = device_pixel_ratio
        self.document = document if document is not None else HostDocument()
        self._observers: List["ResizeObserver"] = []

    def __repr__(self) -> str:
        return f"Surface({self.name!r}, {self._width:g}x{self._height:g})"

    def get_size(self) -> Tuple[float, float]:
        return self._width, self._height

    def resize(self, width: float, height: float) -> None:
        """Update the layout box and notify resize observers."""

        width = max(0.0, float(width))
        height = max(0.0, float(height))
        if (width, height) == (self._width, self._height):
            return
        self._width = width
        self._height = height
        for observer in list(self._observers):
            observer._dispatch(self)

    def _attach(self, observer: "ResizeObserver") -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def _detach(self, observer: "ResizeObserver") -> None:
        try:
            self._observers.remove(observer)
        except ValueError:
            pass

    @property
    def observer_count(self) -> int:
        return len(self._observers)


class ResizeObserver:
    """Invoke ``callback`` whenever an observed surface changes size."""

    def __init__(self, callback: ResizeCallback) -> None:
        if not callable(callback):
            raise TypeError("callback must be callable")
        self._callback = callback
        self._targets: List[Surface] = []

    def observe(self, surface: Surface) -> None:
        if surface in self._targets:
            return
        self._targets.append(surface)
        surface._attach(self)

    def disconnect(self) -> None:
        targets, self._targets = self._targets, []
        for surface in targets:
            surface._detach(self)

    @property
    def connected(self) -> bool:
        return bool(self._targets)

    def _dispatch(self, surface: Surface) -> None:
        try:
            self._callback(surface)
        except Exception:
            LOG.exception("Resize observer callback failed for %r.", surface)


class HostDocument:
    """
    Page-level visibility state with ``visibilitychange`` listeners.
    """

    def __init__(self, *, hidden: bool = False) -> None:
        self.hidden = bool(hidden)
        self._listeners: Dict[str, List[Listener]] = {}

    def add_listener(self, event: str, listener: Listener) -> None:
        if not callable(listener):
            raise TypeError("listener must be callable")
        listeners = self._listeners.setdefault(event, [])
        if listener not in listeners:
            listeners.append(listener)

    def remove_listener(self, event: str, listener: Listener) -> None:
        listeners = self._listeners.get(event)
        if not listeners:
            return
        try:
            listeners.remove(listener)
        except ValueError:
            pass

    def listener_count(self, event: str = VISIBILITY_CHANGE) -> int:
        return len(self._listeners.get(event, ()))

    def set_hidden(self, hidden: bool) -> None:
        hidden = bool(hidden)
        if hidden == self.hidden:
            return
        self.hidden = hidden
        self.dispatch(VISIBILITY_CHANGE)

    def dispatch(self, event: str) -> None:
        for listener in list(self._listeners.get(event, ())):
            try:
                listener(self)
            except Exception:
                LOG.exception("Document listener for '%s' failed.", event)
