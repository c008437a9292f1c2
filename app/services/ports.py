"""Collaborators the booking core calls out to."""

from typing import Any, Protocol


class EmailPort(Protocol):
    def send(self, template_kind: str, entity: Any, note: str | None = None) -> Any: ...


class NotificationPort(Protocol):
    def notify(self, recipient: str, message: str, link: str = "") -> Any: ...


class ItemCatalog(Protocol):
    def get_availability(self, item_id: str, item_type: str) -> bool: ...
