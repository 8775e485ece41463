"""
ExtraBeam Backend - Passwords and Tokens
========================================

What:  bcrypt password hashing (passlib) and HS256 JWT signing (PyJWT).
Who:   AuthService (login/register/admin login), the auth dependencies and
       the signed-upload flow.

Token kinds, all signed with settings.jwt_secret:
    access  {sub, email, role, type="access", exp}   user sessions and admin
    upload  {bucket, path, type="upload", exp}        one-shot upload URLs

There are no refresh tokens and no revocation list: logout is client-side.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext

from extrabeam.config import settings
from extrabeam.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN = "access"
UPLOAD_TOKEN = "upload"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        # Malformed hash stored in the database
        logger.warning("Password hash could not be parsed")
        return False


def _encode(payload: Dict[str, Any], expires_in: timedelta) -> str:
    claims = dict(payload)
    claims["exp"] = datetime.now(timezone.utc) + expires_in
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(
    subject: str,
    role: str,
    email: Optional[str] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    """
    Sign a session token.

    Args:
        subject: user id (UUID string), or "admin" for the back-office token
        role: role at issue time; the profile role wins when it exists
        expires_minutes: defaults to settings.jwt_expire_minutes
    """
    minutes = expires_minutes or settings.jwt_expire_minutes
    payload = {"sub": subject, "role": role, "type": ACCESS_TOKEN}
    if email:
        payload["email"] = email
    return _encode(payload, timedelta(minutes=minutes))


def decode_token(token: str, expected_type: str = ACCESS_TOKEN) -> Dict[str, Any]:
    """
    Verify signature, expiry and token kind.

    Raises:
        AuthenticationError for any invalid token (message distinguishes
        expiry so the frontend can redirect to login).
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError(message="Token expiré")
    except jwt.InvalidTokenError as e:
        logger.debug("Rejected token: %s", str(e))
        raise AuthenticationError(message="Token invalide")

    if payload.get("type", ACCESS_TOKEN) != expected_type:
        raise AuthenticationError(message="Token invalide")
    return payload


def create_upload_token(bucket: str, path: str) -> str:
    payload = {"bucket": bucket, "path": path, "type": UPLOAD_TOKEN}
    return _encode(payload, timedelta(seconds=settings.upload_url_expire_seconds))
