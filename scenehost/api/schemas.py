"""
Pydantic schemas for the control API.
"""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, validator

from ..catalog import SceneVariant


class SceneCollection(BaseModel):
    scenes: Dict[str, SceneVariant] = Field(default_factory=dict)


class SplineUrlRequest(BaseModel):
    spline_url: str = Field(
        validation_alias=AliasChoices("splineUrl", "spline_url", "sceneUrl", "url"),
    )
    pixel_ratio_cap: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("pixelRatioCap", "pixel_ratio_cap", "maxDpr"),
    )
    runtime_version: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("runtimeVersion", "runtime_version"),
    )

    model_config = ConfigDict(populate_by_name=True)

    @validator("spline_url", pre=True)
    def _strip(cls, value: object) -> str:
        return str(value or "").strip()


class RuntimeStatusModel(BaseModel):
    url: str
    version: str
    loaded: bool = False
    pending: bool = False
