"""FastAPI dependencies for auth and the services kept on app.state."""

import logging
from typing import Annotated, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from files_manager.auth.sessions import SessionStore
from files_manager.db.session import get_db
from files_manager.errors import UnauthorizedError
from files_manager.files.service import FileService
from files_manager.jobs.queue import JobQueue
from files_manager.users.models import User
from files_manager.users.service import get_user_by_id

log = logging.getLogger(__name__)


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.sessions


def get_file_service(request: Request) -> FileService:
    return request.app.state.files


def get_user_queue(request: Request) -> JobQueue:
    return request.app.state.user_queue


async def get_current_user_id(
    sessions: Annotated[SessionStore, Depends(get_session_store)],
    x_token: Annotated[Optional[str], Header()] = None,
) -> str:
    """Resolve the x-token header to a user id; raise 401 if missing or invalid."""
    if not x_token:
        log.debug("Request missing x-token")
        raise UnauthorizedError()
    user_id = await sessions.resolve(x_token)
    if not user_id:
        log.debug("Invalid or expired token")
        raise UnauthorizedError()
    return user_id


async def get_optional_user_id(
    sessions: Annotated[SessionStore, Depends(get_session_store)],
    x_token: Annotated[Optional[str], Header()] = None,
) -> Optional[str]:
    """Like get_current_user_id, but anonymous (None) instead of 401."""
    return await sessions.resolve(x_token)


async def get_current_user(
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Load the session's user; raise 401 if the user no longer exists."""
    user = await get_user_by_id(session, user_id)
    if not user:
        log.warning("Token valid but user not found: id=%s", user_id)
        raise UnauthorizedError()
    return user
