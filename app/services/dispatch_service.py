import logging
from typing import Iterable

from sqlalchemy.orm import Session

from app.domain.effects import Effect, EffectKind
from app.services.email_service import QueuedEmailSender
from app.services.notification_service import DbNotifier
from app.services.ports import EmailPort, NotificationPort

logger = logging.getLogger(__name__)


class EffectDispatcher:
    """Delivers effects after the state change that produced them has committed.

    Delivery is fire-and-forget: a failing effect is logged and the rest still go out.
    """

    def __init__(self, email: EmailPort, notifier: NotificationPort, on_error=None):
        self.email = email
        self.notifier = notifier
        self.on_error = on_error  # e.g. session rollback after a failed write

    def dispatch(self, effects: Iterable[Effect]) -> int:
        delivered = 0
        for effect in effects:
            try:
                if effect.kind is EffectKind.EMAIL:
                    p = effect.payload
                    self.email.send(p["template"], p["entity"], p.get("note"))
                elif effect.kind is EffectKind.NOTIFY:
                    p = effect.payload
                    self.notifier.notify(p["recipient"], p["message"], p.get("link", ""))
                else:
                    logger.warning("Unknown effect kind %s dropped", effect.kind)
                    continue
                delivered += 1
            except Exception:
                logger.exception("Failed to deliver %s effect %s", effect.kind.value, _describe(effect))
                if self.on_error is not None:
                    self.on_error()
        return delivered


def _describe(effect: Effect) -> str:
    p = effect.payload
    if effect.kind is EffectKind.EMAIL:
        return f"{p.get('template')} for {getattr(p.get('entity'), 'booking_ref', '?')}"
    return f"to {p.get('recipient')}"


def default_dispatcher(db: Session) -> EffectDispatcher:
    return EffectDispatcher(QueuedEmailSender(db), DbNotifier(db), on_error=db.rollback)
