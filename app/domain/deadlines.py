from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class DeadlineKind(str, Enum):
    NONE = "none"
    AWAITING_PAYMENT = "awaiting_payment"                        # car/tour initial payment window
    AWAITING_BALANCE = "awaiting_balance"                        # confirmed downpayment, balance due
    AWAITING_ADMIN_CONFIRMATION = "awaiting_admin_confirmation"  # transport, staff must confirm


@dataclass(frozen=True)
class Deadline:
    """The single pending deadline a booking can carry.

    A booking holds exactly one of these, so "at most one timer" cannot be
    violated by construction. ``due_at`` is set for every kind except NONE.
    """

    kind: DeadlineKind = DeadlineKind.NONE
    due_at: datetime | None = None

    def __post_init__(self):
        if (self.kind is DeadlineKind.NONE) != (self.due_at is None):
            raise ValueError(f"deadline {self.kind.value} requires due_at to be {'unset' if self.kind is DeadlineKind.NONE else 'set'}")

    @property
    def is_set(self) -> bool:
        return self.kind is not DeadlineKind.NONE

    def has_elapsed(self, now: datetime) -> bool:
        return self.is_set and self.due_at < now

    def due_for(self, kind: DeadlineKind) -> datetime | None:
        return self.due_at if self.kind is kind else None


NO_DEADLINE = Deadline()


def awaiting_payment(due_at: datetime) -> Deadline:
    return Deadline(DeadlineKind.AWAITING_PAYMENT, due_at)


def awaiting_balance(due_at: datetime) -> Deadline:
    return Deadline(DeadlineKind.AWAITING_BALANCE, due_at)


def awaiting_admin_confirmation(due_at: datetime) -> Deadline:
    return Deadline(DeadlineKind.AWAITING_ADMIN_CONFIRMATION, due_at)
