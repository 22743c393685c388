"""Staged target state awaiting device confirmation."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from pyadtsync.models.status import StatusSnapshot, TargetState


@dataclass(slots=True, frozen=True)
class PendingTarget:
    """A target requested by the caller but not yet seen in a poll."""

    target: TargetState
    staged_at: float = field(default_factory=time.monotonic)

    def is_confirmed_by(self, snapshot: StatusSnapshot) -> bool:
        """Whether a fetched snapshot reports this target as applied."""
        return snapshot.target_state == self.target

    @property
    def age(self) -> float:
        return time.monotonic() - self.staged_at
