# Overview: Signed bearer credentials; issue and verify.

"""
Bearer Token Service

WHY: Tokens are stateless signed payloads (itsdangerous, keyed by the app's
SECRET_KEY) so both storage backends authenticate identically without a
session table. A token carries only the user id; everything else is
re-read from the repository on every request.

SECURITY NOTES:
- Signature and age are both verified (TOKEN_MAX_AGE_SECONDS, default 7 days)
- A salt separates auth tokens from any other signed data using the same key
- Logout is client-side: the client discards the token
"""

from __future__ import annotations

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..errors import Unauthenticated

TOKEN_SALT = "marketplace-auth"


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)


def issue_token(user_id: str) -> str:
    return _serializer().dumps({"uid": user_id})


def verify_token(token: str | None) -> str:
    """
    Decode a bearer token and return the user id it names.

    Raises Unauthenticated when the token is missing, malformed, tampered
    with or expired.
    """
    if not token:
        raise Unauthenticated("Not authorized, no token provided")

    max_age = current_app.config.get("TOKEN_MAX_AGE_SECONDS")
    try:
        payload = _serializer().loads(token, max_age=max_age)
    except SignatureExpired:
        raise Unauthenticated("Not authorized, token expired")
    except BadSignature:
        raise Unauthenticated("Not authorized, token failed")

    user_id = payload.get("uid") if isinstance(payload, dict) else None
    if not isinstance(user_id, str) or not user_id:
        raise Unauthenticated("Not authorized, token failed")
    return user_id


def token_from_header(header: str | None) -> str | None:
    """Extract the credential from an `Authorization: Bearer <token>` header."""
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme != "Bearer" or not token.strip():
        return None
    return token.strip()
