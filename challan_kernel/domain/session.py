"""Explicit operator session passed to the lifecycle and packing services."""

from __future__ import annotations

from challan_kernel.exceptions import NotAuthenticatedError


class SessionContext:
    """Who is operating the tracker, if anyone."""

    def __init__(self, user: str | None = None):
        self._user = user

    @property
    def user(self) -> str | None:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def login(self, user: str) -> None:
        user = user.strip()
        if not user:
            raise ValueError("user must be non-empty")
        self._user = user

    def logout(self) -> None:
        self._user = None

    def require(self, operation: str) -> str:
        """Return the logged-in user or raise NotAuthenticatedError."""
        if self._user is None:
            raise NotAuthenticatedError(operation)
        return self._user
