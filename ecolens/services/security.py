from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from jwt import ExpiredSignatureError, InvalidTokenError

from ecolens.errors import CredentialExpired, Forbidden, Unauthenticated


@dataclass(frozen=True)
class AuthContext:
    """Identity decoded from a bearer token, handed to protected handlers."""
    user_id: str
    email: str


def create_access_token(user_id: str, email: str, secret: str, expires_days: int = 7,
                        algorithm: str = "HS256", now: datetime = None) -> str:
    now = now or datetime.now(timezone.utc)
    payload = {
        "userId": user_id,
        "email": email,
        "iat": now,
        "exp": now + timedelta(days=expires_days),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_access_token(token: str, secret: str, algorithm: str = "HS256") -> AuthContext:
    if not token:
        raise Unauthenticated("Access token required")
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm], options={"require": ["exp"]})
    except ExpiredSignatureError:
        raise CredentialExpired("Token expired")
    except InvalidTokenError:
        raise Forbidden("Invalid token")

    user_id, email = payload.get("userId"), payload.get("email")
    if not user_id or not email:
        raise Forbidden("Invalid token")
    return AuthContext(user_id=user_id, email=email)


def bearer_token(authorization: str) -> str:
    """Pull the token out of an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        raise Unauthenticated("Access token required")
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthenticated("Access token required")
    return token.strip()
