"""
ExtraBeam Backend - Authentication Dependencies
===============================================

What:  FastAPI dependencies that turn the `Authorization: Bearer <token>`
       header into an AuthUser.

    get_optional_user   None when no header is sent; 401 when the header
                        carries an invalid or expired token
    get_current_user    401 "Authentification requise" when no header
    require_roles(...)  403 "Rôle non autorisé" for other roles

Usage:
    @router.get("/missions")
    async def list_missions(user: AuthUser = Depends(get_current_user), ...):
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.database import get_db_session
from extrabeam.exceptions import AuthenticationError, PermissionDeniedError
from extrabeam.schemas.auth import ENTREPRISE_ROLES, AuthUser
from extrabeam.services.auth_service import auth_service

# auto_error=False: missing credentials are handled below with our error body
bearer_scheme = HTTPBearer(auto_error=False)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> Optional[AuthUser]:
    if credentials is None or not credentials.credentials:
        return None
    return await auth_service.get_user_from_token(db, credentials.credentials)


async def get_current_user(
    user: Optional[AuthUser] = Depends(get_optional_user),
) -> AuthUser:
    if user is None:
        raise AuthenticationError(message="Authentification requise")
    return user


def require_roles(*roles: str, message: str = "Rôle non autorisé"):
    """Dependency factory restricting an endpoint to the given roles."""

    async def dependency(user: AuthUser = Depends(get_current_user)) -> AuthUser:
        if user.role not in roles:
            raise PermissionDeniedError(message=message)
        return user

    return dependency


require_entreprise_role = require_roles(
    *ENTREPRISE_ROLES, message="Accès réservé aux entreprises"
)
require_client_role = require_roles("client", message="Accès réservé aux clients")
