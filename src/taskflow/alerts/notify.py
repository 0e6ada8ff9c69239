# src/taskflow/alerts/notify.py

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any

from plyer import notification

logger = logging.getLogger(__name__)


class NotificationPermission(StrEnum):
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


class DesktopNotifier:
    """
    Best-effort desktop notifications through plyer.

    Desktop platforms have no permission prompt of their own, so the decision
    comes from settings: request_permission() grants when notifications are
    enabled and denies otherwise. It only decides once.
    """

    def __init__(
        self,
        *,
        enabled: bool = True,
        app_name: str = "TaskFlow",
        timeout: int = 10,
        backend: Any = notification,
    ) -> None:
        self._enabled = enabled
        self._backend = backend
        self._app_name = app_name
        self._timeout = timeout
        self._permission = NotificationPermission.DEFAULT

    @property
    def permission(self) -> NotificationPermission:
        return self._permission

    def request_permission(self) -> NotificationPermission:
        if self._permission == NotificationPermission.DEFAULT:
            self._permission = (
                NotificationPermission.GRANTED if self._enabled else NotificationPermission.DENIED
            )
            logger.info("Desktop notifications permission=%s", self._permission.value)
        return self._permission

    def notify(self, *, title: str, body: str) -> None:
        if self._permission != NotificationPermission.GRANTED:
            return
        try:
            self._backend.notify(
                title=title,
                message=body,
                app_name=self._app_name,
                timeout=self._timeout,
            )
        except Exception:
            # No backend (headless box, missing dbus, ...): the console still shows the alarm.
            logger.warning("Desktop notification failed.", exc_info=True)
