"""Identity collaborator supplying the signed-in renter."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class IdentityProvider(Protocol):
    async def current_email(self) -> str | None:
        """Return the authenticated user's email, or ``None`` when signed out."""


class StaticIdentity:
    """Identity fixed at construction, for scripts and tests."""

    def __init__(self, email: str | None) -> None:
        self._email = email

    async def current_email(self) -> str | None:
        return self._email
