from __future__ import annotations

import pytest

from pyadtsync.exceptions import AdtPolicyRejection
from pyadtsync.models import ArmingState, FaultStatus, StatusSnapshot, TargetState
from pyadtsync.state.pending import PendingTarget
from pyadtsync.state.policy import check_target_transition, is_not_ready


def _snapshot(arming: ArmingState, fault: FaultStatus, target: TargetState = TargetState.DISARMED) -> StatusSnapshot:
    return StatusSnapshot(arming_state=arming, fault_status=fault, target_state=target)


def test_triggered_and_faulted_is_not_ready() -> None:
    snapshot = _snapshot(ArmingState.TRIGGERED, FaultStatus.FAULT)

    assert is_not_ready(snapshot)
    with pytest.raises(AdtPolicyRejection) as excinfo:
        check_target_transition(snapshot, TargetState.ARMED_AWAY)
    assert excinfo.value.target == TargetState.ARMED_AWAY


@pytest.mark.parametrize(
    ("arming", "fault"),
    [
        (ArmingState.TRIGGERED, FaultStatus.NO_FAULT),
        (ArmingState.DISARMED, FaultStatus.FAULT),
        (ArmingState.ARMED_STAY, FaultStatus.FAULT),
        (ArmingState.DISARMED, FaultStatus.NO_FAULT),
    ],
)
def test_other_combinations_are_allowed(arming: ArmingState, fault: FaultStatus) -> None:
    check_target_transition(_snapshot(arming, fault), TargetState.ARMED_AWAY)


def test_empty_cache_is_allowed() -> None:
    assert not is_not_ready(None)
    check_target_transition(None, TargetState.ARMED_STAY)


def test_pending_target_confirmation() -> None:
    pending = PendingTarget(TargetState.ARMED_AWAY)

    assert not pending.is_confirmed_by(_snapshot(ArmingState.DISARMED, FaultStatus.NO_FAULT))
    assert pending.is_confirmed_by(
        _snapshot(ArmingState.ARMED_AWAY, FaultStatus.NO_FAULT, target=TargetState.ARMED_AWAY)
    )
    assert pending.age >= 0
