"""
Defer engine creation until the surface has a usable layout box.

A renderer created against a zero-sized surface ends up with a degenerate
viewport, so hosts poll the box once per frame first.  There is no timeout:
a surface that never gains size keeps the gate waiting until the mount is
canceled.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from . import DEFAULT_FRAME_INTERVAL
from .cancel import CancelFlag
from .surface import Surface

LOG = logging.getLogger(__name__)

FrameWaiter = Callable[[], Awaitable[None]]


class SizeGate:
    def __init__(
        self,
        *,
        frame_interval: float = DEFAULT_FRAME_INTERVAL,
        next_frame: Optional[FrameWaiter] = None,
    ) -> None:
        self.frame_interval = max(0.0, float(frame_interval))
        self._next_frame = next_frame if next_frame is not None else self._sleep_one_frame

    async def _sleep_one_frame(self) -> None:
        await asyncio.sleep(self.frame_interval)

    async def wait_for_non_zero_size(self, surface: Surface, cancel: CancelFlag) -> bool:
        """
        Return ``True`` once ``surface`` is at least 1x1, ``False`` if canceled first.
        """

        frames = 0
        while True:
            if cancel.canceled:
                LOG.debug("Size wait for %r canceled after %d frames.", surface, frames)
                return False
            width, height = surface.get_size()
            if width > 0 and height > 0:
                if frames:
                    LOG.debug("%r reached %gx%g after %d frames.", surface, width, height, frames)
                return True
            frames += 1
            await self._next_frame()
