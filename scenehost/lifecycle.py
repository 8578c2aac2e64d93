"""
Bind a ready engine instance to the host's resize and visibility signals.
"""

from __future__ import annotations

import logging
from typing import Any

from .runtime.engine import apply_pixel_ratio, call_optional, effective_pixel_ratio
from .surface import VISIBILITY_CHANGE, HostDocument, ResizeObserver, Surface

LOG = logging.getLogger(__name__)


class Binding:
    """
    Observers attached for one engine instance.

    ``unbind()`` (or calling the binding) detaches everything; it is safe to
    call repeatedly and on a binding that never attached.
    """

    def __init__(self, engine: Any, surface: Surface, max_pixel_ratio: float) -> None:
        self.engine = engine
        self.surface = surface
        self.max_pixel_ratio = float(max_pixel_ratio)
        self._document: HostDocument = surface.document
        self._on_resize_cb = self._on_resize
        self._on_visibility_cb = self._on_visibility
        self._observer = ResizeObserver(self._on_resize_cb)
        self._bound = False

    @property
    def bound(self) -> bool:
        return self._bound

    def attach(self) -> "Binding":
        if self._bound:
            return self
        self._observer.observe(self.surface)
        try:
            self._document.add_listener(VISIBILITY_CHANGE, self._on_visibility_cb)
        except Exception:
            self._observer.disconnect()
            raise
        self._bound = True
        return self

    def unbind(self) -> None:
        if not self._bound:
            return
        self._bound = False
        self._document.remove_listener(VISIBILITY_CHANGE, self._on_visibility_cb)
        self._observer.disconnect()

    __call__ = unbind

    # ------------------------------------------------------------------ handlers

    def _on_resize(self, surface: Surface) -> None:
        if call_optional(self.engine, "resize"):
            return
        # resize() missing or failing on this engine build
        ratio = effective_pixel_ratio(surface.device_pixel_ratio, self.max_pixel_ratio)
        apply_pixel_ratio(self.engine, ratio)

    def _on_visibility(self, document: HostDocument) -> None:
        if document.hidden:
            call_optional(self.engine, "pause")
        else:
            call_optional(self.engine, "play")


class LifecycleBinder:
    def bind(self, engine: Any, surface: Surface, max_pixel_ratio: float) -> Binding:
        LOG.debug("Binding lifecycle observers for %r.", surface)
        return Binding(engine, surface, max_pixel_ratio).attach()
