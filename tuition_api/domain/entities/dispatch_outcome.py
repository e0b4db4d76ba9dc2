"""Aggregated result of a single notification dispatch."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ChannelOutcome:
    """Delivery counters for one external channel."""

    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
        }


@dataclass
class DispatchOutcome:
    """Per-channel counters collected for a dispatch; never persisted."""

    in_app_created: int = 0
    channels: dict[str, ChannelOutcome] = field(default_factory=dict)

    def channel(self, name: str) -> ChannelOutcome:
        """Return the counters for ``name``, creating them on first access."""

        return self.channels.setdefault(str(name), ChannelOutcome())

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"in_app": {"created": self.in_app_created}}
        for name, outcome in self.channels.items():
            payload[name] = outcome.as_dict()
        return payload


__all__ = ["ChannelOutcome", "DispatchOutcome"]
