"""
Exception hierarchy for scene hosting.
"""

from __future__ import annotations


class SceneHostError(RuntimeError):
    """Base class for scene hosting errors."""


class ResolutionFailure(SceneHostError):
    """Raised when the engine module could not be fetched or resolved."""


class LoadFailure(SceneHostError):
    """Raised when a scene asset fails to load into a valid engine instance."""


class InvalidSceneUrl(SceneHostError, ValueError):
    """Raised when a scene URL does not look like a scene asset."""


class UnknownScene(SceneHostError, KeyError):
    """Raised when a scene variant is not present in the catalog."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "unknown scene"
