"""Tests covering resize/visibility binding of engine instances."""

from __future__ import annotations

import pytest

from scenehost.lifecycle import Binding, LifecycleBinder
from scenehost.surface import VISIBILITY_CHANGE, HostDocument, Surface


class RecordingEngine:
    def __init__(self) -> None:
        self.calls = []

    def resize(self) -> None:
        self.calls.append("resize")

    def set_pixel_ratio(self, ratio: float) -> None:
        self.calls.append(("set_pixel_ratio", ratio))

    def pause(self) -> None:
        self.calls.append("pause")

    def play(self) -> None:
        self.calls.append("play")


class LegacyEngine:
    """Older build: no resize(), camelCase pixel-ratio setter, no pause/play."""

    def __init__(self) -> None:
        self.calls = []

    def setPixelRatio(self, ratio: float) -> None:
        self.calls.append(("setPixelRatio", ratio))


class FlakyEngine(RecordingEngine):
    def resize(self) -> None:
        self.calls.append("resize")
        raise RuntimeError("resize unsupported")

    def pause(self) -> None:
        self.calls.append("pause")
        raise RuntimeError("pause failed")

    def play(self) -> None:
        self.calls.append("play")
        raise RuntimeError("play failed")


def make_surface(dpr: float = 2.0) -> Surface:
    return Surface(300, 200, device_pixel_ratio=dpr, document=HostDocument())


def test_resize_prefers_engine_resize() -> None:
    surface = make_surface()
    engine = RecordingEngine()
    LifecycleBinder().bind(engine, surface, 1.5)

    surface.resize(600, 400)

    assert engine.calls == ["resize"]


def test_resize_falls_back_to_pixel_ratio_when_missing() -> None:
    surface = make_surface(dpr=3.0)
    engine = LegacyEngine()
    LifecycleBinder().bind(engine, surface, 1.75)

    surface.resize(600, 400)

    assert engine.calls == [("setPixelRatio", 1.75)]


def test_resize_falls_back_to_pixel_ratio_when_raising() -> None:
    surface = make_surface(dpr=1.25)
    engine = FlakyEngine()
    LifecycleBinder().bind(engine, surface, 1.75)

    surface.resize(600, 400)

    assert engine.calls == ["resize", ("set_pixel_ratio", 1.25)]


def test_visibility_pauses_then_plays() -> None:
    surface = make_surface()
    engine = RecordingEngine()
    LifecycleBinder().bind(engine, surface, 1.75)

    surface.document.set_hidden(True)
    surface.document.set_hidden(False)

    assert engine.calls == ["pause", "play"]


def test_visibility_ignores_engine_failures_and_missing_methods() -> None:
    flaky_surface = make_surface()
    flaky = FlakyEngine()
    LifecycleBinder().bind(flaky, flaky_surface, 1.75)

    flaky_surface.document.set_hidden(True)
    flaky_surface.document.set_hidden(False)

    assert flaky.calls == ["pause", "play"]

    legacy_surface = make_surface()
    legacy = LegacyEngine()
    LifecycleBinder().bind(legacy, legacy_surface, 1.75)

    legacy_surface.document.set_hidden(True)
    legacy_surface.document.set_hidden(False)

    assert legacy.calls == []


def test_unbind_detaches_and_is_idempotent() -> None:
    surface = make_surface()
    engine = RecordingEngine()
    binding = LifecycleBinder().bind(engine, surface, 1.75)

    assert binding.bound
    assert surface.observer_count == 1
    assert surface.document.listener_count(VISIBILITY_CHANGE) == 1

    binding.unbind()
    binding.unbind()
    binding()

    assert not binding.bound
    assert surface.observer_count == 0
    assert surface.document.listener_count(VISIBILITY_CHANGE) == 0

    surface.resize(10, 10)
    surface.document.set_hidden(True)
    assert engine.calls == []


def test_unbind_without_attach_is_safe() -> None:
    surface = make_surface()
    binding = Binding(RecordingEngine(), surface, 1.75)

    binding.unbind()

    assert not binding.bound
    assert surface.observer_count == 0


def test_unbind_leaves_other_listeners_in_place() -> None:
    surface = make_surface()
    other = LifecycleBinder().bind(RecordingEngine(), surface, 1.75)
    binding = LifecycleBinder().bind(RecordingEngine(), surface, 1.75)

    binding.unbind()
    binding.unbind()

    assert other.bound
    assert surface.observer_count == 1
    assert surface.document.listener_count(VISIBILITY_CHANGE) == 1


class RefusingDocument(HostDocument):
    def add_listener(self, event, callback):
        raise RuntimeError("listener rejected")


def test_failed_attach_leaves_nothing_observed() -> None:
    surface = Surface(300, 200, document=RefusingDocument())
    binding = Binding(RecordingEngine(), surface, 1.75)

    with pytest.raises(RuntimeError, match="listener rejected"):
        binding.attach()

    assert not binding.bound
    assert surface.observer_count == 0
