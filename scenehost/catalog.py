"""
Scene variant table.

Each page placement of a 3D scene (home robot, loader, techfest background,
event showcases, …) is a :class:`SceneVariant`: a scene URL, a pixel-ratio
cap, an optional engine version pin and the container style the page applies
around the canvas.  The table ships as ``configs/scenes.yaml`` and admins can
attach scenes to events at runtime.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, Iterator, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, validator

from . import DEFAULT_PIXEL_RATIO_CAP, DEFAULT_SCENES_PATH
from .errors import InvalidSceneUrl, UnknownScene
from .host import SceneRequest
from .surface import Surface

LOG = logging.getLogger(__name__)

SCENE_URL_MARKERS = ("spline.design", ".splinecode")


def sanitize_name(name: str) -> str:
    """``"Suit Pursuit!"`` → ``"suit-pursuit"``."""

    candidate = re.sub(r"[^a-zA-Z0-9]", "-", str(name or "")).lower()
    candidate = re.sub(r"-+", "-", candidate)
    return candidate.strip("-")


def pascal_case(name: str) -> str:
    words = re.sub(r"[^a-zA-Z0-9]", " ", str(name or "")).split(" ")
    return "".join(word[:1].upper() + word[1:].lower() for word in words if word)


def validate_scene_url(url: Optional[str]) -> str:
    candidate = str(url or "").strip()
    if not candidate:
        raise InvalidSceneUrl("Please enter a valid Spline URL")
    if not any(marker in candidate for marker in SCENE_URL_MARKERS):
        raise InvalidSceneUrl(
            "Please enter a valid Spline URL (should contain spline.design or .splinecode)"
        )
    return candidate


class SceneVariant(BaseModel):
    name: str
    scene_url: str = Field(alias="sceneUrl")
    pixel_ratio_cap: float = Field(default=DEFAULT_PIXEL_RATIO_CAP, alias="pixelRatioCap")
    runtime_version: Optional[str] = Field(default=None, alias="runtimeVersion")
    container_style: Dict[str, str] = Field(default_factory=dict, alias="containerStyle")
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @validator("scene_url", pre=True)
    def _check_url(cls, value: object) -> str:
        return validate_scene_url(value)  # type: ignore[arg-type]

    @validator("pixel_ratio_cap", pre=True)
    def _positive_cap(cls, value: float) -> float:
        numeric = float(value)
        if numeric <= 0:
            raise ValueError("pixelRatioCap must be positive")
        return numeric

    def request_for(self, surface: Surface) -> SceneRequest:
        return SceneRequest(
            surface=surface,
            scene_url=self.scene_url,
            max_pixel_ratio=self.pixel_ratio_cap,
            runtime_version=self.runtime_version,
        )

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


class SceneCatalog:
    def __init__(self, variants: Optional[List[SceneVariant]] = None) -> None:
        self._variants: Dict[str, SceneVariant] = {}
        for variant in variants or []:
            self._variants[variant.name] = variant

    @classmethod
    def from_yaml(cls, path: Optional[Path] = None) -> "SceneCatalog":
        source = Path(path) if path is not None else DEFAULT_SCENES_PATH
        try:
            with source.open("r", encoding="utf-8") as handle:
                payload = yaml.safe_load(handle) or {}
        except FileNotFoundError:
            LOG.warning("Scene table %s not found; starting with an empty catalog.", source)
            payload = {}
        return cls.from_mapping(payload)

    @classmethod
    def from_mapping(cls, payload: dict) -> "SceneCatalog":
        scenes = payload.get("scenes", payload) if isinstance(payload, dict) else {}
        variants: List[SceneVariant] = []
        for name, entry in (scenes or {}).items():
            if not isinstance(entry, dict):
                LOG.warning("Skipping malformed scene entry '%s'.", name)
                continue
            variants.append(SceneVariant(name=str(name), **entry))
        return cls(variants)

    def __contains__(self, name: str) -> bool:
        return name in self._variants

    def __iter__(self) -> Iterator[SceneVariant]:
        return iter(self._variants.values())

    def __len__(self) -> int:
        return len(self._variants)

    def names(self) -> List[str]:
        return sorted(self._variants)

    def get(self, name: str) -> SceneVariant:
        try:
            return self._variants[name]
        except KeyError:
            raise UnknownScene(f"Unknown scene '{name}'") from None

    def exists(self, event_name: str) -> bool:
        return sanitize_name(event_name) in self._variants

    def register(
        self,
        event_name: str,
        scene_url: str,
        *,
        pixel_ratio_cap: float = DEFAULT_PIXEL_RATIO_CAP,
        runtime_version: Optional[str] = None,
    ) -> SceneVariant:
        """
        Attach a scene to an event, replacing any previous one.
        """

        name = sanitize_name(event_name)
        if not name:
            raise ValueError("event name must contain at least one letter or digit")
        variant = SceneVariant(
            name=name,
            scene_url=validate_scene_url(scene_url),
            pixel_ratio_cap=pixel_ratio_cap,
            runtime_version=runtime_version,
        )
        previous = self._variants.get(name)
        self._variants[name] = variant
        if previous is None:
            LOG.info("Registered scene '%s' (%s)", name, pascal_case(event_name))
        else:
            LOG.info("Updated scene '%s': %s -> %s", name, previous.scene_url, variant.scene_url)
        return variant

    def remove(self, event_name: str) -> bool:
        name = sanitize_name(event_name)
        removed = self._variants.pop(name, None)
        if removed is None:
            LOG.warning("Could not remove scene '%s'; not registered.", name)
            return False
        LOG.info("Removed scene '%s'", name)
        return True

    def to_dict(self) -> dict:
        return {name: self._variants[name].to_dict() for name in self.names()}
