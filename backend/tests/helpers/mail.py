"""Helpers for inspecting captured emails."""

from __future__ import annotations

import re

from storefront.services._shared.ports.email_sender import OutboundEmail

_TOKEN_RE = re.compile(r"[?&]token=([0-9a-f]{64})")


def token_from(message: OutboundEmail | None) -> str:
    """Return the raw token embedded in an emailed link."""
    assert message is not None, "expected an email to have been sent"
    match = _TOKEN_RE.search(message.body)
    assert match, f"no token link in: {message.body!r}"
    return match.group(1)
