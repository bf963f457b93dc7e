from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class OutboundEmail:
    """
    Plain-text message handed to an :class:`EmailSender`.

    :param to: Recipient address.
    :type to: str
    :param subject: Subject line.
    :type subject: str
    :param body: Plain-text body.
    :type body: str
    :param html: Optional HTML alternative.
    :type html: str | None
    """

    to: str
    subject: str
    body: str
    html: str | None = None


class EmailSender(Protocol):
    """Outbound email transport. Implementations raise on delivery failure."""

    def send(self, message: OutboundEmail) -> None: ...


class InMemoryEmailSender(EmailSender):
    """Collects messages instead of sending them; optionally fails on demand."""

    def __init__(self) -> None:
        self.outbox: list[OutboundEmail] = []
        self.fail_with: Exception | None = None
        self._lock = threading.Lock()

    def send(self, message: OutboundEmail) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        with self._lock:
            self.outbox.append(message)

    def last_to(self, recipient: str) -> OutboundEmail | None:
        for message in reversed(self.outbox):
            if message.to == recipient:
                return message
        return None

    def clear(self) -> None:
        with self._lock:
            self.outbox.clear()
