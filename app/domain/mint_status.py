from __future__ import annotations

import enum


class MintStatus(enum.Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    REJECTED = "REJECTED"


TERMINAL = {
    MintStatus.SUCCEEDED,
    MintStatus.FAILED,
    MintStatus.REJECTED,
}

ALLOWED = {
    MintStatus.PENDING: {MintStatus.RUNNING, MintStatus.REJECTED, MintStatus.FAILED},
    MintStatus.RUNNING: {MintStatus.SUCCEEDED, MintStatus.FAILED},
    MintStatus.SUCCEEDED: set(),
    MintStatus.FAILED: set(),
    MintStatus.REJECTED: set(),
}


def assert_valid_transition(frm: MintStatus, to: MintStatus) -> None:
    if frm in TERMINAL:
        raise ValueError(f"Cannot transition from terminal status: {frm.value}")

    if to not in ALLOWED.get(frm, set()):
        raise ValueError(f"Invalid status transition: {frm.value} -> {to.value}")
