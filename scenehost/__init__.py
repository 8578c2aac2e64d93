"""
SceneHost package.

Hosts remote 3D scenes inside drawable surfaces: the runtime loader resolves
the external rendering engine once per version, the size gate waits for a
usable viewport, and :class:`scenehost.host.SceneHost` drives the
load → ready → teardown lifecycle while publishing loading/error state.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

__all__ = [
    "DEFAULT_PIXEL_RATIO_CAP",
    "DEFAULT_RUNTIME_VERSION",
    "RUNTIME_URL_TEMPLATE",
    "SceneHostConfig",
]

RUNTIME_URL_TEMPLATE = "https://unpkg.com/@splinetool/runtime@{version}/build/runtime.js"
DEFAULT_RUNTIME_VERSION = "1.10.51"
DEFAULT_PIXEL_RATIO_CAP = 1.75
DEFAULT_FRAME_INTERVAL = 1.0 / 60.0
DEFAULT_SCENES_PATH = Path(__file__).resolve().parent / "configs" / "scenes.yaml"

ENV_RUNTIME_VERSION = "SCENEHOST_RUNTIME_VERSION"
ENV_SCENES_PATH = "SCENEHOST_SCENES"
ENV_ENGINE = "SCENEHOST_ENGINE"


class SceneHostConfig:
    """
    Top level configuration shared by the loader, hosts and control API.

    ``engine_target`` names an installed engine as ``package.module`` or
    ``package.module:attribute`` (``{version}`` is substituted when present).
    When set it takes the place of the versioned bundle URL.
    """

    def __init__(
        self,
        *,
        engine_target: Optional[str] = None,
        runtime_url_template: str = RUNTIME_URL_TEMPLATE,
        runtime_version: str = DEFAULT_RUNTIME_VERSION,
        pixel_ratio_cap: float = DEFAULT_PIXEL_RATIO_CAP,
        frame_interval: float = DEFAULT_FRAME_INTERVAL,
        scenes_path: Optional[Path] = None,
    ) -> None:
        self.engine_target = engine_target or None
        self.runtime_url_template = runtime_url_template
        self.runtime_version = runtime_version
        self.pixel_ratio_cap = float(pixel_ratio_cap)
        self.frame_interval = max(0.0, float(frame_interval))
        self.scenes_path = Path(scenes_path) if scenes_path is not None else DEFAULT_SCENES_PATH

    @classmethod
    def from_env(cls, **overrides) -> "SceneHostConfig":
        """
        Build a configuration honouring ``SCENEHOST_*`` environment overrides.

        Explicit keyword overrides win over the environment.
        """

        values = {}
        engine = os.environ.get(ENV_ENGINE)
        if engine and engine.strip():
            values["engine_target"] = engine.strip()
        version = os.environ.get(ENV_RUNTIME_VERSION)
        if version:
            values["runtime_version"] = version.strip()
        scenes = os.environ.get(ENV_SCENES_PATH)
        if scenes:
            values["scenes_path"] = Path(scenes).expanduser()
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    def runtime_url(self, version: Optional[str] = None) -> str:
        """Locator handed to the engine provider: import target or bundle URL."""

        template = self.engine_target or self.runtime_url_template
        return template.format(version=version or self.runtime_version)
