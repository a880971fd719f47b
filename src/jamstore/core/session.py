from __future__ import annotations

from typing import Callable, List, Optional

from jamstore.db.auth import AuthEvent, AuthProvider, AuthUser
from jamstore.db.models import Identity
from jamstore.utils.logger import get_logger

_logger = get_logger(__name__)

DEFAULT_NAME = "User"

IdentityCallback = Callable[[Optional[Identity]], None]


def identity_from_user(user: AuthUser) -> Identity:
    """Map provider metadata onto an Identity, filling the defaults."""
    meta = user.metadata or {}
    role = meta.get("role")
    return Identity(
        id=user.id,
        name=meta.get("name") or DEFAULT_NAME,
        email=user.email or "",
        phone=meta.get("phone") or "",
        address=meta.get("address") or "",
        role="admin" if role == "admin" else "shopper",
        created_at=user.created_at,
    )


class SessionManager:
    """
    Keeps the current Identity in step with the auth provider.

    Subscribers are called with the new identity (or None) after every
    provider event, in registration order.
    """

    def __init__(self, provider: AuthProvider) -> None:
        self.provider = provider
        self._identity: Optional[Identity] = None
        self._callbacks: List[IdentityCallback] = []
        self._unsubscribe: Optional[Callable[[], None]] = None

    def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.provider.on_identity_change(self._on_auth_event)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def subscribe(self, callback: IdentityCallback) -> None:
        self._callbacks.append(callback)

    def _on_auth_event(self, event: AuthEvent, user: Optional[AuthUser]) -> None:
        if event == "SIGNED_OUT" or user is None:
            self._identity = None
        else:
            self._identity = identity_from_user(user)
        _logger.debug(f"auth event {event}: identity={self._identity}")
        for cb in list(self._callbacks):
            cb(self._identity)

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None

    @property
    def is_admin(self) -> bool:
        return self._identity is not None and self._identity.role == "admin"

    async def restore(self) -> Optional[Identity]:
        await self.provider.restore_session()
        return self._identity

    async def sign_in(self, email: str, pwd: str) -> Identity:
        user = await self.provider.sign_in(email, pwd)
        return identity_from_user(user)

    async def sign_up(
        self,
        name: str,
        email: str,
        pwd: str,
        phone: str = "",
        address: str = "",
        **extra,
    ) -> Identity:
        """Register a shopper. extra form fields are stored but role is forced by the provider."""
        metadata = dict(extra)
        metadata.update({"name": name, "phone": phone, "address": address})
        user = await self.provider.sign_up(email, pwd, metadata)
        return identity_from_user(user)

    async def sign_out(self) -> None:
        await self.provider.sign_out()

    async def update_profile(self, name: str, phone: str, address: str) -> Identity:
        user = await self.provider.update_user_metadata(
            {"name": name, "phone": phone, "address": address}
        )
        return identity_from_user(user)
