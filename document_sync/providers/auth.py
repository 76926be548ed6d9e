"""Credential models consumed by the cloud providers.

Acquiring, refreshing and revoking tokens is handled outside this package;
providers only ask whether a valid grant is currently held.
"""

from __future__ import annotations

import datetime

from pydantic import BaseModel

from ..helpers import utc_now


class AccessGrant(BaseModel):
    """An OAuth access token with optional expiry."""

    access_token: str
    refresh_token: str | None = None
    expires_at: datetime.datetime | None = None

    def is_expired(self, leeway: datetime.timedelta = datetime.timedelta(0)) -> bool:
        if self.expires_at is None:
            return False
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=datetime.timezone.utc)
        return expires_at <= utc_now() + leeway


class ProviderCredentials:
    """Client configuration plus the current access grant for one provider.

    Args:
        client_id: App key / OAuth client id. Its presence makes the
            provider "available".
        grant: Current access grant, if the user is signed in.
        leeway: Treat the grant as expired this long before ``expires_at``.
    """

    def __init__(
        self,
        client_id: str | None = None,
        grant: AccessGrant | None = None,
        leeway: datetime.timedelta = datetime.timedelta(0),
    ):
        self.client_id = client_id.strip() if client_id else None
        self.grant = grant
        self.leeway = leeway

    def has_client_id(self) -> bool:
        return bool(self.client_id)

    def is_authenticated(self) -> bool:
        return self.grant is not None and bool(self.grant.access_token) and not self.grant.is_expired(self.leeway)

    def get_access_token(self) -> str | None:
        """Return the access token if the grant is still valid."""
        if not self.is_authenticated():
            return None
        return self.grant.access_token

    def set_grant(self, grant: AccessGrant | None) -> None:
        self.grant = grant

    def sign_out(self) -> None:
        self.grant = None
