from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from config import settings


class TokenError(Exception):
    """Token missing a secret, malformed, tampered with or expired"""


def issue_token(user_id, email, secret, expires_in=settings.TOKEN_TTL):
    if not secret:
        raise TokenError("JWT secret is not configured")
    exp = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
    payload = {"userId": str(user_id), "email": email, "exp": exp}
    return jwt.encode(payload, secret, algorithm=settings.TOKEN_ALGORITHM)


def verify_token(token, secret):
    """Returns {"user_id", "email"} of a valid token"""
    if not secret:
        raise TokenError("JWT secret is not configured")
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.TOKEN_ALGORITHM])
    except JWTError as e:
        raise TokenError(str(e)) from e

    user_id = payload.get("userId")
    email = payload.get("email")
    if not user_id or not email:
        raise TokenError("token lacks identity claims")
    return {"user_id": user_id, "email": email}
