"""Issue and verify user access tokens (JWT) for the API and the realtime socket."""

import time

import jwt

from services.errors import InvalidAccessToken

ALGORITHM = "HS256"
IAT_SKEW_SECONDS = 60


def create_access_token(
    secret: str,
    user_id: str,
    expiration_seconds: int = 3600,
) -> str:
    """Create an access JWT for the given user_id.
    Sets iat 60s in the past so tokens are accepted when the verifying
    process's clock is slightly behind the issuer's.
    """
    now = int(time.time())
    payload = {
        "user_id": user_id,
        "iat": now - IAT_SKEW_SECONDS,
        "exp": now + expiration_seconds,
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def verify_access_token(token: str | None, secret: str) -> str:
    """Return the user_id carried by a valid token, else raise InvalidAccessToken."""
    if not token:
        raise InvalidAccessToken("access token required")
    if not secret:
        raise InvalidAccessToken("token verification is not configured (JWT_SECRET)")
    try:
        decoded = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except jwt.PyJWTError as exc:
        raise InvalidAccessToken(f"invalid or expired token: {exc}") from exc
    user_id = decoded.get("user_id")
    if not isinstance(user_id, str) or not user_id:
        raise InvalidAccessToken("token has no user_id")
    return user_id


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an 'Authorization: Bearer <token>' header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
