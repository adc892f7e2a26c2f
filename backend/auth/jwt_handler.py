from datetime import datetime, timedelta, timezone

import jwt

from backend.core import config

TOKEN_TYPE = "access"


def create_access_token(subject: str, expires_minutes: int | None = None) -> str:
    """Issue a signed bearer token whose ``sub`` is the user id."""
    issued_at = datetime.now(timezone.utc)
    lifetime = timedelta(minutes=expires_minutes or config.JWT_EXPIRES_MINUTES)
    payload = {"sub": subject, "type": TOKEN_TYPE, "iat": issued_at, "exp": issued_at + lifetime}
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    payload = jwt.decode(
        token,
        config.JWT_SECRET_KEY,
        algorithms=[config.JWT_ALGORITHM],
        options={"require": ["exp", "sub"]},
    )
    if payload.get("type") != TOKEN_TYPE:
        raise jwt.InvalidTokenError("Unexpected token type")
    return payload
