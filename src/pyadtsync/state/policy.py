"""Arming guard policy.

Pure functions only; the engine applies the verdict.
"""

from __future__ import annotations

from pyadtsync.exceptions import AdtPolicyRejection
from pyadtsync.models.status import ArmingState, FaultStatus, StatusSnapshot, TargetState

#: Observed states in which a faulted panel refuses any new target.
NOT_READY_STATES: frozenset[ArmingState] = frozenset({ArmingState.TRIGGERED})


def is_not_ready(snapshot: StatusSnapshot | None) -> bool:
    """Return ``True`` when *snapshot* shows a faulted panel in a not-ready state.

    An empty cache (``None``) is never "not ready": without a snapshot
    there is nothing to veto and the request is passed through.
    """
    if snapshot is None:
        return False
    return snapshot.arming_state in NOT_READY_STATES and snapshot.fault_status == FaultStatus.FAULT


def check_target_transition(snapshot: StatusSnapshot | None, target: TargetState) -> None:
    """Raise :class:`AdtPolicyRejection` if *target* may not be requested now."""
    if is_not_ready(snapshot):
        raise AdtPolicyRejection("Can't arm system. System is not ready.", target=int(target))
