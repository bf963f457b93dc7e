"""
storefront.services._shared.ports
=================================

*Ports* (hexagonal interfaces) that keep the service layer independent of
infrastructure.

Modules
-------
- :mod:`denylist_store`:
    :class:`~.SessionDenylist`: revocation list for session tokens.

- :mod:`email_sender`:
    :class:`~.EmailSender` and :class:`~.OutboundEmail`: outbound mail.

Concrete adapters (Redis, Resend) live under ``storefront.infra``; the in-memory
variants here back tests and development.
"""

from __future__ import annotations

from .denylist_store import InMemorySessionDenylist, SessionDenylist
from .email_sender import EmailSender, InMemoryEmailSender, OutboundEmail

__all__ = [
    "EmailSender",
    "InMemoryEmailSender",
    "InMemorySessionDenylist",
    "OutboundEmail",
    "SessionDenylist",
]
