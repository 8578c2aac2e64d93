"""Cooperative cancellation for a single mount attempt."""

from __future__ import annotations


class CancelFlag:
    """
    One-way boolean set when the owning mount is abandoned.

    Async steps re-check ``canceled`` each time they resume.
    """

    __slots__ = ("_canceled", "reason")

    def __init__(self) -> None:
        self._canceled = False
        self.reason: str | None = None

    def __bool__(self) -> bool:
        return self._canceled

    @property
    def canceled(self) -> bool:
        return self._canceled

    def cancel(self, reason: str = "unmount") -> None:
        if self._canceled:
            return
        self._canceled = True
        self.reason = reason
