# tests/unit/services/test_mail.py
from __future__ import annotations

import threading

import pytest

from storefront.services._shared.errors import EmailDispatchError
from storefront.services._shared.mail import confirmation_email, reset_email, send_with_deadline
from storefront.services._shared.ports.email_sender import InMemoryEmailSender
from tests.helpers.mail import token_from

TOKEN = "ab" * 32


class _HangingSender:
    def __init__(self) -> None:
        self.release = threading.Event()

    def send(self, message) -> None:
        self.release.wait(timeout=5)


def test_confirmation_email_carries_link_and_ttl():
    msg = confirmation_email(
        to="a@gmail.com", name="Ana", token=TOKEN, base_url="https://shop.test/", ttl_minutes=5
    )
    assert msg.to == "a@gmail.com"
    assert f"https://shop.test/confirm?token={TOKEN}" in msg.body
    assert "5 minutes" in msg.body
    assert token_from(msg) == TOKEN


def test_reset_email_points_at_reset_page():
    msg = reset_email(to="a@gmail.com", token=TOKEN, base_url="https://shop.test", ttl_minutes=30)
    assert f"https://shop.test/reset-password?token={TOKEN}" in msg.body
    assert msg.html and "Reset password" in msg.html


def test_send_with_deadline_delivers():
    sender = InMemoryEmailSender()
    msg = reset_email(to="a@gmail.com", token=TOKEN, base_url="http://x", ttl_minutes=30)
    send_with_deadline(sender, msg, timeout=1.0)
    assert sender.outbox == [msg]


def test_send_with_deadline_wraps_transport_errors():
    sender = InMemoryEmailSender()
    sender.fail_with = ConnectionRefusedError("smtp down")
    msg = reset_email(to="a@gmail.com", token=TOKEN, base_url="http://x", ttl_minutes=30)

    with pytest.raises(EmailDispatchError) as exc:
        send_with_deadline(sender, msg, timeout=1.0)
    assert exc.value.code == "email_dispatch_failed"
    assert isinstance(exc.value.__cause__, ConnectionRefusedError)


def test_send_with_deadline_times_out():
    sender = _HangingSender()
    msg = reset_email(to="a@gmail.com", token=TOKEN, base_url="http://x", ttl_minutes=30)
    try:
        with pytest.raises(EmailDispatchError):
            send_with_deadline(sender, msg, timeout=0.05)
    finally:
        sender.release.set()
