from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .config import settings
from .schemas.caller import ANONYMOUS, Caller, Role
from .services.moderation_service import ModerationService

bearer_scheme = HTTPBearer(auto_error=False)

_service: Optional[ModerationService] = None


def get_service() -> ModerationService:
    global _service
    if _service is None:
        _service = ModerationService()
    return _service


def caller_from_token(token: str) -> Caller:
    """Decode a bearer token issued by the identity service"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authorized, token failed",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(
            token, settings.secret_key, algorithms=[settings.algorithm]
        )
    except JWTError:
        raise credentials_exception

    user_id = payload.get("sub")
    role = payload.get("role", Role.MEMBER)
    if not user_id or role not in (Role.MEMBER, Role.MODERATOR):
        raise credentials_exception
    return Caller(id=str(user_id), role=role)


def get_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Caller:
    if credentials is None:
        return ANONYMOUS
    return caller_from_token(credentials.credentials)
