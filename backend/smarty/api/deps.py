"""
Shared API dependencies: authentication and storage access.
"""
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from smarty.config import settings
from smarty.core.chat import ChatHandler
from smarty.services import CategoryService, NoteService
from smarty.storage import Storage

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(token: str) -> dict:
    """Verify a bearer token issued by the identity provider."""
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.warning("Rejected bearer token: %s", e)
        raise _unauthorized("Authentication failed")


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """The caller's user id, taken from the token's ``sub`` claim."""
    if credentials is None:
        raise _unauthorized("Unauthorized - No user ID found")

    user_id = decode_token(credentials.credentials).get("sub")
    if not user_id:
        raise _unauthorized("Unauthorized - No user ID found")
    return str(user_id)


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_note_service(
    storage: Storage = Depends(get_storage),
    user_id: str = Depends(get_current_user_id),
) -> NoteService:
    return NoteService(storage.notes, user_id)


def get_category_service(
    storage: Storage = Depends(get_storage),
    user_id: str = Depends(get_current_user_id),
) -> CategoryService:
    return CategoryService(storage, user_id)


def get_chat_handler(
    storage: Storage = Depends(get_storage),
    user_id: str = Depends(get_current_user_id),
) -> ChatHandler:
    return ChatHandler(storage.notes, user_id)
