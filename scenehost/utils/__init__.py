"""Utility helpers for scene hosting."""

from .logging import configure_logging

__all__ = ["configure_logging"]
