"""
auth/tokens.py -- Session tokens and password hashing.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry only the subject (user id), the
       issue time and a fixed one-hour expiry. They are self-contained:
       verification needs the signing key and the clock, never a lookup.
       TokenCodec.verify() returns None on any failure -- it runs on every
       request, including anonymous ones, so it must not raise.

  Passwords: bcrypt with a per-call random salt and a configurable work
       factor (BCRYPT_ROUNDS, default 10). The dummy hash used by
       authenticate_user() equalizes timing so response time does not reveal
       whether an email is registered [C1].

  Key material: the codec is constructed with the secret from
       core.config.Settings and holds it by reference. Nothing in this module
       reads configuration at import time.

Layer rule: no imports from api/ or graph/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import TYPE_CHECKING, Optional

import bcrypt
from jose import JWTError, jwt

if TYPE_CHECKING:
    from social.models import User
    from social.store import SocialStore

logger = logging.getLogger("socialgraph.auth")

_ALGORITHM = "HS256"

DEFAULT_ROUNDS = 10

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    Raises ValueError for an empty password; registration treats that as fatal.
    bcrypt itself raises ValueError for passwords longer than 72 bytes.
    """
    if not plain:
        raise ValueError("Password must not be empty.")
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    Malformed hashes and non-string input yield False rather than an error.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError, AttributeError):
        return False


@lru_cache(maxsize=None)
def _dummy_hash(rounds: int) -> str:
    # Computed once per work factor so only the first failed login pays for it.
    return hash_password("socialgraph_timing_dummy", rounds=rounds)


def authenticate_user(
    store: SocialStore, email: str, password: str, rounds: int = DEFAULT_ROUNDS
) -> Optional[User]:
    """Authenticate an email/password pair with timing equalization [C1].

    Always runs bcrypt whether or not the email exists:
    - Unknown email: bcrypt runs against the dummy hash (same cost as a real check)
    - Wrong password: bcrypt runs against the stored hash

    Returns the User on success, None on any failure. Callers must not tell
    the two failure cases apart.
    """
    user = store.users.find_one({"email": email})
    if user is None:
        verify_password(password, _dummy_hash(rounds))
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


class TokenCodec:
    """Mint and verify signed, time-bounded session tokens.

    Usage:
        codec = TokenCodec(settings.secret_key, settings.token_expire_seconds)
        token = codec.mint(user.id)
        codec.verify(token)  # -> user.id, or None once expired or altered
    """

    def __init__(self, secret_key: str, expire_seconds: int = 3600) -> None:
        if not secret_key:
            raise ValueError("TokenCodec requires a signing key.")
        self._secret_key = secret_key
        self.expire_seconds = expire_seconds

    def mint(self, user_id: str, issued_at: Optional[datetime] = None) -> str:
        """Encode a signed JWT binding the caller to user_id for expire_seconds.

        issued_at defaults to now; passing an earlier time lets tests produce
        tokens that are already expired.
        """
        iat = issued_at or datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "iat": iat,
            "exp": iat + timedelta(seconds=self.expire_seconds),
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: Optional[str]) -> Optional[str]:
        """Return the token's subject, or None if it is missing, invalid or expired.

        Any single-bit change to header, payload or signature fails the HMAC
        check. Expiry is enforced by jose against the current clock.
        """
        if not token:
            return None
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except JWTError:
            return None
        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            return None
        return subject

    def bearer_subject(self, header_value: Optional[str]) -> Optional[str]:
        """Verify an Authorization header value.

        Accepts the bare token or the "Bearer <token>" form.
        """
        if not header_value:
            return None
        token = header_value.strip()
        if token[:7].lower() == "bearer ":
            token = token[7:].strip()
        return self.verify(token)
