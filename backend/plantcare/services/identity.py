"""
Email/password identity provider and account registration.

Credentials live in the ``credentials`` collection keyed by normalized email,
with passwords hashed by passlib (bcrypt). Sessions are signed JWT bearer
tokens (python-jose) carrying ``sub=user_id``; any process holding the same
``JWT_SECRET_KEY`` accepts them. Signing out records the token's ``jti`` in
the ``revoked_tokens`` collection.
"""
from __future__ import annotations

import logging
import os
import re
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from ..db import DocumentStore
from ..errors import AuthenticationError, InvalidInputError
from ..schemas.user import User
from ..utils.date_time import now_ms
from .households import USERS, HouseholdManager

CREDENTIALS = "credentials"
REVOKED_TOKENS = "revoked_tokens"

ALGORITHM = "HS256"
DEFAULT_TOKEN_TTL_MINUTES = 7 * 24 * 60
MIN_PASSWORD_LENGTH = 6

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _secret_key() -> str:
    return os.getenv("JWT_SECRET_KEY", "dev-secret-change-me")


def _token_ttl() -> timedelta:
    return timedelta(minutes=int(os.getenv("JWT_EXPIRE_MINUTES", str(DEFAULT_TOKEN_TTL_MINUTES))))


def create_access_token(user_id: str, token_id: str) -> str:
    issued = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "jti": token_id,
        "iat": issued,
        "exp": issued + _token_ttl(),
    }
    return jwt.encode(payload, _secret_key(), algorithm=ALGORITHM)


def decode_access_token(token: str | None) -> Optional[dict]:
    """Claims of a valid, unexpired token; ``None`` otherwise."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, _secret_key(), algorithms=[ALGORITHM])
    except JWTError as e:
        logging.warning(f"Rejected bearer token: {e}")
        return None
    if not payload.get("sub") or not payload.get("jti"):
        return None
    return payload


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class IdentityProvider:
    """
    Stateless apart from the store: any instance over the same store can
    verify tokens issued by another one.

    Usage:
      identity = IdentityProvider(store)
      user_id, token = identity.login(email, password)
      identity.current_user_id(token)  # -> user_id
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    def register(self, email: str, password: str) -> str:
        key = _normalize_email(email)
        if self.store.get(CREDENTIALS, key) is not None:
            raise InvalidInputError("The email address is already in use.")
        user_id = self.store.new_id()
        self.store.set(CREDENTIALS, key, {"user_id": user_id, "password_hash": hash_password(password)})
        return user_id

    def login(self, email: str, password: str) -> tuple[str, str]:
        """Return ``(user_id, token)`` for valid credentials."""
        cred = self.store.get(CREDENTIALS, _normalize_email(email))
        if cred is None or not verify_password(password or "", cred["password_hash"]):
            raise AuthenticationError("Invalid email or password")
        return cred["user_id"], create_access_token(cred["user_id"], self.store.new_id())

    def current_user_id(self, token: str | None) -> Optional[str]:
        payload = decode_access_token(token)
        if payload is None:
            return None
        if self.store.get(REVOKED_TOKENS, payload["jti"]) is not None:
            return None
        return payload["sub"]

    def sign_out(self, token: str | None) -> None:
        payload = decode_access_token(token)
        if payload is None:
            return
        self.store.set(
            REVOKED_TOKENS,
            payload["jti"],
            {"user_id": payload["sub"], "expires_at": int(payload["exp"]) * 1000},
        )


class AccountService:
    """Registration flow: credentials, user record, optional household."""

    def __init__(
        self,
        store: DocumentStore,
        identity: IdentityProvider,
        households: HouseholdManager,
        clock: Callable[[], int] = now_ms,
    ):
        self.store = store
        self.identity = identity
        self.households = households
        self.clock = clock

    @staticmethod
    def validate(email: str, password: str, username: str) -> None:
        email = (email or "").strip()
        if not email:
            raise InvalidInputError("Email is required.")
        if not EMAIL_RE.fullmatch(email):
            raise InvalidInputError("Invalid email address.")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise InvalidInputError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        if not (username or "").strip():
            raise InvalidInputError("Username is required.")

    def register(
        self,
        email: str,
        password: str,
        username: str,
        household_name: str | None = None,
    ) -> tuple[User, str]:
        """Create the account and sign it in; returns ``(user, token)``.

        With ``household_name``, joins the household of that name or creates it.
        """
        self.validate(email, password, username)
        user_id = self.identity.register(email, password)
        user = User(
            id=user_id,
            email=email.strip(),
            username=username.strip(),
            join_date=self.clock(),
        )
        self.store.set(USERS, user.id, user.model_dump())

        name = (household_name or "").strip()
        if name:
            existing = self.households.find_by_name(name)
            if existing is not None:
                self.households.join_household(existing.id, user.id)
            else:
                self.households.create_household(name, user.id)
            user = User(**self.store.get(USERS, user.id))

        _, token = self.identity.login(email, password)
        return user, token

    def get_user(self, user_id: str) -> Optional[User]:
        doc = self.store.get(USERS, user_id)
        return User(**doc) if doc is not None else None
