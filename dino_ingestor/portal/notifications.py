"""Ordered queue of user-facing notifications."""

from __future__ import annotations

import itertools
from collections.abc import Callable, Iterator

from .models import Notification, NotificationSeverity

NotificationListener = Callable[[Notification], None]


class NotificationQueue:
    """Notifications in display order, dismissed by identifier.

    Identifiers come from a per-queue counter and are never reused.
    """

    def __init__(self, on_notify: NotificationListener | None = None) -> None:
        self._items: list[Notification] = []
        self._ids = itertools.count(1)
        self._on_notify = on_notify

    def notify(
        self,
        title: str,
        body: str,
        severity: NotificationSeverity = NotificationSeverity.NORMAL,
    ) -> Notification:
        notification = Notification(
            identifier=next(self._ids),
            title=title,
            body=body,
            severity=NotificationSeverity(severity),
        )
        self._items.append(notification)
        if self._on_notify is not None:
            self._on_notify(notification)
        return notification

    def dismiss(self, identifier: int) -> None:
        """Remove the notification with ``identifier``; unknown ids are ignored."""

        for index, notification in enumerate(self._items):
            if notification.identifier == identifier:
                del self._items[index]
                return

    def clear(self) -> None:
        self._items.clear()

    @property
    def notifications(self) -> tuple[Notification, ...]:
        return tuple(self._items)

    def __iter__(self) -> Iterator[Notification]:
        return iter(tuple(self._items))

    def __len__(self) -> int:
        return len(self._items)
