"""Deadline-bounded email dispatch and the message templates the flows send."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from urllib.parse import urlencode

from markupsafe import escape

from storefront.services._shared.errors import EmailDispatchError
from storefront.services._shared.ports.email_sender import EmailSender, OutboundEmail

logger = logging.getLogger(__name__)

# Shared by all requests; a hung mail API ties up at most these threads.
_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="mail")


def send_with_deadline(sender: EmailSender, message: OutboundEmail, *, timeout: float) -> None:
    """Deliver ``message`` or give up after ``timeout`` seconds.

    :raises EmailDispatchError: On transport failure or when the deadline passes.
    """
    future = _executor.submit(sender.send, message)
    try:
        future.result(timeout=timeout)
    except FutureTimeoutError as exc:
        future.cancel()
        logger.warning("Email dispatch timed out after %.1fs", timeout)
        raise EmailDispatchError() from exc
    except EmailDispatchError:
        raise
    except Exception as exc:
        logger.warning("Email dispatch failed: %s", exc.__class__.__name__)
        raise EmailDispatchError() from exc


def _link(base_url: str, path: str, token: str) -> str:
    return f"{base_url.rstrip('/')}{path}?{urlencode({'token': token})}"


def confirmation_email(*, to: str, name: str, token: str, base_url: str, ttl_minutes: int):
    link = _link(base_url, "/confirm", token)
    body = (
        f"Hi {name},\n\n"
        f"Confirm your account by opening the link below within {ttl_minutes} minutes:\n\n"
        f"{link}\n\n"
        "If you did not sign up, ignore this message."
    )
    html = (
        f"<p>Hi {escape(name)},</p>"
        f"<p>Confirm your account within {ttl_minutes} minutes:</p>"
        f'<p><a href="{escape(link)}">Confirm email</a></p>'
    )
    return OutboundEmail(to=to, subject="Confirm your account", body=body, html=html)


def reset_email(*, to: str, token: str, base_url: str, ttl_minutes: int):
    link = _link(base_url, "/reset-password", token)
    body = (
        "We received a request to reset your password.\n\n"
        f"Open the link below within {ttl_minutes} minutes to choose a new one:\n\n"
        f"{link}\n\n"
        "If you did not ask for this, you can ignore this message."
    )
    html = (
        "<p>We received a request to reset your password.</p>"
        f'<p><a href="{escape(link)}">Reset password</a> (valid for {ttl_minutes} minutes)</p>'
    )
    return OutboundEmail(to=to, subject="Reset your password", body=body, html=html)
