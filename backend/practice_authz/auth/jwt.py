"""
Access tokens for the verified identity.

Credential checks happen in the session layer, which calls
``create_access_token`` after a successful login. This package only reads
tokens back: the subject is the user id and the ``role`` claim is a hint,
since the guards re-read the stored role on every check.
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from practice_authz.config import settings

ALGORITHM = "HS256"
TOKEN_TYPE = "access"

_DECODE_OPTIONS = {"require_exp": True, "require_sub": True}


def create_access_token(
    user_id: str,
    email: str,
    role: str,
    expires_delta: timedelta | None = None,
) -> str:
    now = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "iat": now,
        "exp": now + lifetime,
        "type": TOKEN_TYPE,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature, expiry and token type. Raises JWTError."""
    claims = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM], options=_DECODE_OPTIONS)
    if claims.get("type") != TOKEN_TYPE:
        raise JWTError(f"Expected an {TOKEN_TYPE} token")
    return claims
