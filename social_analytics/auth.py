"""Email/password accounts and bearer-token sign-in sessions.

Passwords are hashed with scrypt and stored as ``scrypt$<salt>$<hash>``
(both hex). Session tokens are random URL-safe strings handed to the client
once; only their SHA-256 digest is stored, so a leaked database cannot be
replayed as sessions.
"""

import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from sqlalchemy.orm import Session

from social_analytics.config import settings
from social_analytics.models import AuthSession, User

logger = logging.getLogger(__name__)

# scrypt cost parameters (n=2**14, r=8, p=1 is the interactive-login baseline)
_SCRYPT_N = 2**14
_SCRYPT_R = 8
_SCRYPT_P = 1
_KEY_LENGTH = 32
_SALT_BYTES = 16

_TOKEN_BYTES = 32


class AuthError(Exception):
    """Raised for rejected sign-up or sign-in attempts.

    The message is safe to show to the client.
    """


class EmailTakenError(AuthError):
    """Raised when signing up with an email that already has an account."""


@dataclass
class SignedIn:
    """Result of a successful sign-in. ``token`` is only available here."""

    user: User
    token: str
    expires_at: datetime


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def _derive(password: str, salt: bytes) -> bytes:
    kdf = Scrypt(salt=salt, length=_KEY_LENGTH, n=_SCRYPT_N, r=_SCRYPT_R, p=_SCRYPT_P)
    return kdf.derive(password.encode("utf-8"))


def hash_password(password: str) -> str:
    salt = secrets.token_bytes(_SALT_BYTES)
    return f"scrypt${salt.hex()}${_derive(password, salt).hex()}"


def verify_password(password: str, stored: str) -> bool:
    """Check ``password`` against a ``hash_password`` result in constant time."""
    try:
        scheme, salt_hex, hash_hex = stored.split("$")
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(hash_hex)
    except ValueError:
        logger.warning("Stored password hash has an unexpected format")
        return False
    if scheme != "scrypt":
        return False
    return hmac.compare_digest(_derive(password, salt), expected)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _as_utc(moment: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC.
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


# ---------------------------------------------------------------------------
# Accounts and sessions
# ---------------------------------------------------------------------------


def sign_up(db: Session, email: str, password: str) -> User:
    """Create an account.

    Raises:
        AuthError: If the email is malformed or taken, or the password is too short.
    """
    email = _normalize_email(email)
    if not email or "@" not in email:
        raise AuthError("A valid email address is required.")
    if len(password) < settings.min_password_length:
        raise AuthError(
            f"Password must be at least {settings.min_password_length} characters."
        )
    if db.query(User).filter(User.email == email).first() is not None:
        logger.info("Sign-up rejected: email already registered")
        raise EmailTakenError("An account with this email already exists.")

    user = User(email=email, password_hash=hash_password(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user id=%d", user.id)
    return user


def sign_in(db: Session, email: str, password: str) -> SignedIn:
    """Verify credentials and open a session.

    Raises:
        AuthError: If the email is unknown or the password does not match.
    """
    user = db.query(User).filter(User.email == _normalize_email(email)).first()
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Sign-in rejected for %s", _normalize_email(email))
        raise AuthError("Invalid email or password.")

    token = secrets.token_urlsafe(_TOKEN_BYTES)
    expires_at = datetime.now(timezone.utc) + timedelta(hours=settings.session_ttl_hours)
    db.add(AuthSession(user_id=user.id, token_hash=hash_token(token), expires_at=expires_at))
    db.commit()
    logger.info("User id=%d signed in; session expires %s", user.id, expires_at.isoformat())
    return SignedIn(user=user, token=token, expires_at=expires_at)


def get_current_session(db: Session, token: str | None) -> AuthSession | None:
    """The live session for a bearer token, or None.

    Expired sessions are deleted when encountered.
    """
    if not token:
        return None
    auth_session = (
        db.query(AuthSession).filter(AuthSession.token_hash == hash_token(token)).first()
    )
    if auth_session is None:
        return None
    if _as_utc(auth_session.expires_at) <= datetime.now(timezone.utc):
        logger.info("Session id=%d expired; removing", auth_session.id)
        db.delete(auth_session)
        db.commit()
        return None
    return auth_session


def get_current_user(db: Session, token: str | None) -> User | None:
    auth_session = get_current_session(db, token)
    return auth_session.user if auth_session is not None else None


def sign_out(db: Session, token: str | None) -> bool:
    """End the session for ``token``. Returns False if there was none."""
    if not token:
        return False
    deleted = (
        db.query(AuthSession)
        .filter(AuthSession.token_hash == hash_token(token))
        .delete(synchronize_session=False)
    )
    db.commit()
    if deleted:
        logger.info("Session signed out")
    return bool(deleted)
