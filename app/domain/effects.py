from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EffectKind(str, Enum):
    EMAIL = "email"
    NOTIFY = "notify"


STAFF = "staff"  # notification recipient meaning every admin/employee


@dataclass(frozen=True)
class Effect:
    """An outward side effect produced by a state change.

    Effects are collected while the change is made and dispatched only after it
    commits, so a failing email never rolls a booking back.
    """

    kind: EffectKind
    payload: dict[str, Any] = field(default_factory=dict)


def email(template: str, entity: Any, note: str | None = None) -> Effect:
    return Effect(EffectKind.EMAIL, {"template": template, "entity": entity, "note": note})


def notify(recipient: str | None, message: str, link: str = "") -> Effect | None:
    if not recipient:
        return None
    return Effect(EffectKind.NOTIFY, {"recipient": recipient, "message": message, "link": link})


def collect(*effects: Effect | None) -> list[Effect]:
    return [e for e in effects if e is not None]
