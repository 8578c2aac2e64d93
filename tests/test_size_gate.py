"""Tests covering the per-frame size gate."""

from __future__ import annotations

import asyncio

from scenehost.cancel import CancelFlag
from scenehost.size_gate import SizeGate
from scenehost.surface import Surface


class FakeFrames:
    """Frame waiter that resizes the surface once ``resize_at`` frames have passed."""

    def __init__(self, surface: Surface, resize_at: int, size=(300, 200)) -> None:
        self.surface = surface
        self.resize_at = resize_at
        self.size = size
        self.count = 0

    async def __call__(self) -> None:
        self.count += 1
        await asyncio.sleep(0)
        if self.count == self.resize_at:
            self.surface.resize(*self.size)


def test_sized_surface_passes_without_waiting() -> None:
    surface = Surface(300, 200)
    frames = FakeFrames(surface, resize_at=-1)
    gate = SizeGate(next_frame=frames)

    assert asyncio.run(gate.wait_for_non_zero_size(surface, CancelFlag())) is True
    assert frames.count == 0


def test_waits_until_both_dimensions_are_positive() -> None:
    surface = Surface(300, 0)
    frames = FakeFrames(surface, resize_at=3)
    gate = SizeGate(next_frame=frames)

    assert asyncio.run(gate.wait_for_non_zero_size(surface, CancelFlag())) is True
    assert frames.count == 3


def test_cancel_stops_polling() -> None:
    surface = Surface(0, 0)
    cancel = CancelFlag()
    gate = SizeGate(frame_interval=0.0)

    async def scenario():
        waiter = asyncio.ensure_future(gate.wait_for_non_zero_size(surface, cancel))
        for _ in range(5):
            await asyncio.sleep(0)
        assert not waiter.done()
        cancel.cancel()
        return await waiter

    assert asyncio.run(scenario()) is False
    assert cancel.reason == "unmount"


def test_cancel_flag_is_one_way() -> None:
    cancel = CancelFlag()
    assert not cancel

    cancel.cancel("input-change")
    cancel.cancel("unmount")

    assert cancel.canceled
    assert cancel.reason == "input-change"
