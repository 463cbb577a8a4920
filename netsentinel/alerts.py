"""Alert use cases: searching alerts and notifying the recent ones."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable

from netsentinel.models import Alert

logger = logging.getLogger(__name__)

NOTIFY_WINDOW_SECONDS = 300
SEARCH_WINDOW = timedelta(days=7)
CYBERSECURITY = "Cybersecurity"

_JSON_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


class NoAlertsError(LookupError):
    """Raised when the searcher has no alerts to offer."""


def _to_json(alert: Alert) -> str:
    text = json.dumps(alert.to_dict(), ensure_ascii=False, separators=(",", ":"))
    for char, escaped in _JSON_ESCAPES.items():
        text = text.replace(char, escaped)
    return text


def parse_alerts(alerts: Iterable[Alert]) -> list[str]:
    """Return the cybersecurity alerts as compact JSON messages."""
    return [_to_json(alert) for alert in alerts if alert.category == CYBERSECURITY]


class AlertSearcher:
    """Fetches alerts from an alert service."""

    def __init__(self, service: Any, clock: Callable[[], datetime] = datetime.now) -> None:
        self._service = service
        self._clock = clock
        self._alerts: list[Alert] = []

    def get_all_alerts(self) -> list[Alert]:
        """Return the alerts of the last seven days."""
        now = self._clock()
        epoch_end = int(now.timestamp())
        epoch_begin = int((now - SEARCH_WINDOW).timestamp())
        return self.get_all_alerts_by_time(epoch_begin, epoch_end)

    def get_all_alerts_by_time(self, epoch_begin: int, epoch_end: int) -> list[Alert]:
        alerts = list(self._service.get_all_alerts(epoch_begin, epoch_end) or [])
        self._alerts = alerts
        return alerts


class AlertNotifier:
    """Sends the alerts of the last five minutes through a notifier."""

    def __init__(
        self,
        notifier: Any,
        searcher: Any,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._notifier = notifier
        self._searcher = searcher
        self._clock = clock

    def send_last_alert_messages(self) -> None:
        epoch_end = int(self._clock().timestamp())
        epoch_begin = epoch_end - NOTIFY_WINDOW_SECONDS
        last_alerts = self._searcher.get_all_alerts_by_time(epoch_begin, epoch_end)
        if last_alerts is None:
            raise NoAlertsError("No alerts available")
        for message in parse_alerts(last_alerts):
            try:
                self._notifier.send_message(message)
            except Exception:  # a failed message must not stop the others
                logger.warning("Cannot send message")