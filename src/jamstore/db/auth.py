from __future__ import annotations

import asyncio
import hashlib
import json
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Literal, Optional

from jamstore.db.database import connect
from jamstore.db.errors import AuthError
from jamstore.utils.local_store import LocalStore
from jamstore.utils.logger import get_logger

_logger = get_logger(__name__)

SESSION_KEY = "jam_session"
_PBKDF2_ROUNDS = 120_000

AuthEvent = Literal["SIGNED_IN", "SIGNED_OUT", "USER_UPDATED"]


@dataclass(frozen=True)
class AuthUser:
    """A user as the provider knows it. Profile fields and role live in metadata."""

    id: str
    email: str
    created_at: datetime
    metadata: Dict[str, Any] = field(default_factory=dict)


IdentityListener = Callable[[AuthEvent, Optional[AuthUser]], None]


def _hash_pwd(pwd: str, salt: str) -> str:
    return hashlib.pbkdf2_hmac(
        "sha256", pwd.encode("utf-8"), bytes.fromhex(salt), _PBKDF2_ROUNDS
    ).hex()


def _row_to_user(row) -> AuthUser:
    created = row["created_at"]
    if not isinstance(created, datetime):
        created = datetime.fromisoformat(str(created))
    return AuthUser(
        id=row["id"],
        email=row["email"],
        created_at=created,
        metadata=json.loads(row["metadata"] or "{}"),
    )


class AuthProvider:
    """
    Email/password identity provider backed by the users table.

    Listeners registered with on_identity_change are called synchronously
    after every sign-in, sign-out and profile update. The signed-in user id
    is kept in the local store so the session survives a restart.
    """

    def __init__(self, store: Optional[LocalStore] = None) -> None:
        self._store = store
        self._current: Optional[AuthUser] = None
        self._listeners: List[IdentityListener] = []

    # ---------------------------
    # Subscriptions
    # ---------------------------

    def on_identity_change(self, callback: IdentityListener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _emit(self, event: AuthEvent, user: Optional[AuthUser]) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, user)
            except Exception:
                _logger.exception(f"Identity listener failed on {event}")

    # ---------------------------
    # Queries
    # ---------------------------

    @property
    def current_user(self) -> Optional[AuthUser]:
        return self._current

    async def get_current_user(self) -> Optional[AuthUser]:
        """The signed-in user, re-read from the database so metadata is fresh."""
        if self._current is None:
            return None
        self._current = await self._get_user(self._current.id)
        return self._current

    async def _get_user(self, user_id: str) -> Optional[AuthUser]:
        async with connect() as conn:
            cur = await conn.execute(
                "SELECT id, email, metadata, created_at FROM users WHERE id = ?;",
                (user_id,),
            )
            row = await cur.fetchone()
            await cur.close()
        return _row_to_user(row) if row else None

    async def email_available(self, email: str) -> bool:
        async with connect() as conn:
            cur = await conn.execute(
                "SELECT 1 FROM users WHERE email = ? LIMIT 1;", (email.lower(),)
            )
            row = await cur.fetchone()
            await cur.close()
        return row is None

    # ---------------------------
    # Sign up / in / out
    # ---------------------------

    async def _create_user(
        self, email: str, pwd: str, metadata: Dict[str, Any]
    ) -> AuthUser:
        email = email.strip().lower()
        if not await self.email_available(email):
            raise AuthError("Email already registered.")
        salt = os.urandom(16).hex()
        pwd_hash = await asyncio.to_thread(_hash_pwd, pwd, salt)
        user = AuthUser(
            id=str(uuid.uuid4()),
            email=email,
            created_at=datetime.now(timezone.utc),
            metadata=metadata,
        )
        async with connect() as conn:
            await conn.execute(
                """
                INSERT INTO users(id, email, pwd_hash, salt, metadata, created_at)
                VALUES (?, ?, ?, ?, ?, ?);
                """,
                (
                    user.id,
                    user.email,
                    pwd_hash,
                    salt,
                    json.dumps(metadata),
                    user.created_at.isoformat(),
                ),
            )
            await conn.commit()
        return user

    async def sign_up(
        self, email: str, pwd: str, metadata: Optional[Dict[str, Any]] = None
    ) -> AuthUser:
        """
        Register a shopper and sign them in.
        Any role in the supplied metadata is overwritten with "shopper".
        """
        metadata = dict(metadata or {})
        metadata["role"] = "shopper"
        user = await self._create_user(email, pwd, metadata)
        _logger.info(f"Registered user {user.id}")
        self._set_session(user)
        self._emit("SIGNED_IN", user)
        return user

    async def ensure_admin(self, email: str, pwd: str, name: str = "Admin") -> AuthUser:
        """Create the back-office account if missing. Does not sign in."""
        async with connect() as conn:
            cur = await conn.execute(
                "SELECT id, email, metadata, created_at FROM users WHERE email = ?;",
                (email.lower(),),
            )
            row = await cur.fetchone()
            await cur.close()
        if row:
            return _row_to_user(row)
        _logger.info(f"Creating admin account {email}")
        return await self._create_user(email, pwd, {"name": name, "role": "admin"})

    async def sign_in(self, email: str, pwd: str) -> AuthUser:
        async with connect() as conn:
            cur = await conn.execute(
                "SELECT id, email, pwd_hash, salt, metadata, created_at FROM users WHERE email = ?;",
                (email.strip().lower(),),
            )
            row = await cur.fetchone()
            await cur.close()
        if not row:
            raise AuthError("Invalid email or password.")
        pwd_hash = await asyncio.to_thread(_hash_pwd, pwd, row["salt"])
        if pwd_hash != row["pwd_hash"]:
            raise AuthError("Invalid email or password.")
        user = _row_to_user(row)
        self._set_session(user)
        self._emit("SIGNED_IN", user)
        return user

    async def sign_out(self) -> None:
        self._current = None
        if self._store is not None:
            self._store.remove(SESSION_KEY)
        self._emit("SIGNED_OUT", None)

    async def restore_session(self) -> Optional[AuthUser]:
        """Sign the persisted user back in, if any. Emits SIGNED_IN when found."""
        if self._store is None:
            return None
        user_id = self._store.get(SESSION_KEY)
        if not user_id:
            return None
        user = await self._get_user(str(user_id))
        if user is None:
            _logger.warning("Stored session points at a missing user, dropping it.")
            self._store.remove(SESSION_KEY)
            return None
        self._current = user
        self._emit("SIGNED_IN", user)
        return user

    def _set_session(self, user: AuthUser) -> None:
        self._current = user
        if self._store is not None:
            self._store.set(SESSION_KEY, user.id)

    # ---------------------------
    # Profile
    # ---------------------------

    async def update_user_metadata(self, updates: Dict[str, Any]) -> AuthUser:
        """Merge profile fields into the signed-in user's metadata. Role is not writable."""
        if self._current is None:
            raise AuthError("Not signed in.")
        user = await self._get_user(self._current.id)
        if user is None:
            raise AuthError("User no longer exists.")
        metadata = dict(user.metadata)
        metadata.update({k: v for k, v in updates.items() if k != "role"})
        async with connect() as conn:
            await conn.execute(
                "UPDATE users SET metadata = ? WHERE id = ?;",
                (json.dumps(metadata), user.id),
            )
            await conn.commit()
        self._current = AuthUser(
            id=user.id, email=user.email, created_at=user.created_at, metadata=metadata
        )
        self._emit("USER_UPDATED", self._current)
        return self._current
