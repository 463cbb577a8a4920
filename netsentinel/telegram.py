"""Notification channel that delivers messages through a Telegram bot."""

from __future__ import annotations

import logging
import threading
from typing import Any

import requests

logger = logging.getLogger(__name__)

API_URL = "https://api.telegram.org"
POLL_TIMEOUT = 30
REQUEST_TIMEOUT = 10.0
RETRY_DELAY = 3.0


class Telegram:
    """A Telegram bot that talks to one user.

    Messages can only be sent once the user has written to the bot, which
    tells the bot the chat to answer in; until then they are dropped.
    """

    def __init__(self, api_url: str = API_URL, retry_delay: float = RETRY_DELAY) -> None:
        self.token = ""
        self.username = ""
        self._api_url = api_url.rstrip("/")
        self._retry_delay = retry_delay
        self._chat_id = 0
        self._lock = threading.Lock()
        self._stop = threading.Event()

    @property
    def chat_id(self) -> int:
        with self._lock:
            return self._chat_id

    @chat_id.setter
    def chat_id(self, value: int) -> None:
        with self._lock:
            self._chat_id = value

    def _call(
        self, method: str, params: dict[str, Any] | None = None, timeout: float = REQUEST_TIMEOUT
    ) -> Any:
        response = requests.post(
            f"{self._api_url}/bot{self.token}/{method}", data=params, timeout=timeout
        )
        try:
            body = response.json()
        except ValueError as exc:
            raise RuntimeError(
                f"{method}: unexpected response ({response.status_code})"
            ) from exc
        if not isinstance(body, dict) or not body.get("ok"):
            description = body.get("description") if isinstance(body, dict) else None
            raise RuntimeError(description or f"{method} failed")
        return body.get("result")

    def configure(self, token: str, username: str) -> None:
        """Connect the bot and start waiting for ``username`` to write to it.

        Raises RuntimeError when the token is rejected.
        """
        self._stop.set()
        self.token = token
        self.username = username
        self.chat_id = 0

        self._call("getMe")

        stop = threading.Event()
        self._stop = stop
        listener = threading.Thread(
            target=self._wait_for_chat_id, args=(username, stop), daemon=True
        )
        listener.start()

    def _wait_for_chat_id(self, username: str, stop: threading.Event) -> None:
        offset = 0
        while not stop.is_set():
            try:
                updates = self._call(
                    "getUpdates",
                    {"offset": offset, "timeout": POLL_TIMEOUT},
                    timeout=POLL_TIMEOUT + REQUEST_TIMEOUT,
                )
            except (requests.RequestException, RuntimeError) as exc:
                logger.warning("Failed to get updates: %s", exc)
                stop.wait(self._retry_delay)
                continue
            for update in updates or []:
                offset = max(offset, int(update.get("update_id", 0)) + 1)
                message = update.get("message")
                if not message:
                    continue
                if (message.get("from") or {}).get("username") != username:
                    continue
                with self._lock:
                    if not stop.is_set():
                        self._chat_id = message["chat"]["id"]
                return

    def send_message(self, message: str) -> None:
        """Send ``message`` to the user; do nothing while the chat is unknown."""
        with self._lock:
            if self._chat_id == 0:
                return
            self._call("sendMessage", {"chat_id": self._chat_id, "text": message})