"""Password hashing utilities using passlib + bcrypt."""

from passlib.context import CryptContext

from practice_authz.config import settings

_ctx = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds)

# bcrypt only looks at the first 72 bytes of a secret
MAX_PASSWORD_BYTES = 72
MIN_PASSWORD_LENGTH = 8


def hash_password(plain: str) -> str:
    return _ctx.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """Credential check for the external session issuer that owns login."""
    return _ctx.verify(plain, hashed)


def password_problem(plain: str) -> str | None:
    """Return why a password is unacceptable, or None if it is fine."""
    if len(plain) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    if len(plain.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return f"Password too long (max {MAX_PASSWORD_BYTES} bytes)"
    return None
