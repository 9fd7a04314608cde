"""Process-wide authentication state.

One :class:`AuthContext` is created when the application starts and kept on
``app.state.auth``. It issues and revokes sign-in sessions and notifies
subscribers of sign-in/sign-out so that interested components react to
changes instead of polling for them.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from jose import JWTError
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from devhub.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from devhub.db.session import transaction
from devhub.db.time import utcnow
from devhub.models import AuthSession, Profile
from devhub.services.errors import AuthenticationRequiredError, ConflictError

logger = logging.getLogger(__name__)


class AuthEventType(StrEnum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


@dataclass(frozen=True)
class AuthEvent:
    type: AuthEventType
    user_id: str
    session_id: str


@dataclass(frozen=True)
class Identity:
    """A verified bearer: the profile and the sign-in session its token belongs to."""

    user_id: str
    session_id: str


@dataclass(frozen=True)
class SignInResult:
    user_id: str
    session_id: str
    access_token: str


class InvalidCredentialsError(AuthenticationRequiredError):
    default_message = "Invalid email or password"


AuthListener = Callable[[AuthEvent], None]


class AuthContext:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: list[AuthListener] = []
        self.closed = False

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """Register ``listener`` and return a function that removes it again."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def _emit(self, event: AuthEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Auth listener failed on %s", event.type)

    def _start_session(self, session: Session, user_id: str) -> SignInResult:
        with transaction(session):
            auth_session = AuthSession(user_id=user_id)
            session.add(auth_session)
            session.flush()
            session_id = auth_session.id
        token = create_access_token(user_id, session_id)
        self._emit(AuthEvent(AuthEventType.SIGNED_IN, user_id, session_id))
        logger.info("User %s signed in (session %s)", user_id, session_id)
        return SignInResult(user_id=user_id, session_id=session_id, access_token=token)

    def sign_up(
        self,
        session: Session,
        email: str,
        password: str,
        *,
        username: str | None = None,
        full_name: str | None = None,
    ) -> SignInResult:
        """Create an account and sign it in."""
        email = email.strip().lower()
        with transaction(session):
            if session.scalar(select(Profile.id).where(Profile.email == email)) is not None:
                raise ConflictError("Email is already registered")
            if username and session.scalar(
                select(Profile.id).where(func.lower(Profile.username) == username.lower())
            ):
                raise ConflictError("Username is already taken")
            profile = Profile(
                email=email,
                password_hash=hash_password(password),
                username=username,
                full_name=full_name,
            )
            session.add(profile)
            session.flush()
            user_id = profile.id
        logger.info("Registered user %s", user_id)
        return self._start_session(session, user_id)

    def sign_in(self, session: Session, email: str, password: str) -> SignInResult:
        profile = session.scalar(select(Profile).where(Profile.email == email.strip().lower()))
        if profile is None or not verify_password(password, profile.password_hash):
            raise InvalidCredentialsError()
        return self._start_session(session, profile.id)

    def sign_out(self, session: Session, identity: Identity) -> bool:
        """Revoke the identity's session. Returns False if it was already revoked."""
        with transaction(session):
            result = session.execute(
                update(AuthSession)
                .where(
                    AuthSession.id == identity.session_id,
                    AuthSession.revoked_at.is_(None),
                )
                .values(revoked_at=utcnow())
                .execution_options(synchronize_session="fetch")
            )
        if result.rowcount == 0:
            return False
        self._emit(AuthEvent(AuthEventType.SIGNED_OUT, identity.user_id, identity.session_id))
        logger.info("User %s signed out (session %s)", identity.user_id, identity.session_id)
        return True

    def resolve(self, session: Session, token: str) -> Identity | None:
        """Return the identity behind a bearer token, or None if it is not valid."""
        try:
            payload = decode_access_token(token)
        except JWTError:
            return None
        user_id = payload.get("sub")
        session_id = payload.get("sid")
        if not user_id or not session_id:
            return None
        row = session.execute(
            select(AuthSession.user_id, AuthSession.revoked_at).where(AuthSession.id == session_id)
        ).first()
        if row is None or row.revoked_at is not None or row.user_id != user_id:
            return None
        return Identity(user_id=user_id, session_id=session_id)

    def close(self) -> None:
        with self._lock:
            self._listeners.clear()
        self.closed = True
