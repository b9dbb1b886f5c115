"""Moderator authorization."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from intro_board.core.errors import Unauthorized

if TYPE_CHECKING:
    from intro_board.services.identity import Identity


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


class AccessGate:
    """Maps an authenticated identity to the moderator role.

    A single flat allow-list of emails, consulted on every privileged call.
    A missing identity and a non-listed identity get the same answer.
    """

    def __init__(self, admin_emails: Iterable[str]) -> None:
        self._admin_emails = frozenset(
            normalize_email(email) for email in admin_emails if normalize_email(email)
        )

    @property
    def admin_emails(self) -> frozenset[str]:
        return self._admin_emails

    def is_authorized(self, identity: Identity | None) -> bool:
        """Return True if `identity` belongs to an allow-listed moderator."""
        if identity is None:
            return False
        email = normalize_email(identity.email)
        return bool(email) and email in self._admin_emails

    def require(self, identity: Identity | None) -> None:
        """Raise `Unauthorized` unless `identity` is a moderator."""
        if not self.is_authorized(identity):
            raise Unauthorized()
