"""Auth routes: connect (Basic credentials -> token) and disconnect."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from files_manager.auth.dependencies import get_current_user_id, get_session_store
from files_manager.auth.passwords import parse_basic_auth
from files_manager.auth.sessions import SessionStore
from files_manager.config import get_settings
from files_manager.db.session import get_db
from files_manager.errors import UnauthorizedError
from files_manager.limiter import limiter
from files_manager.users.models import TokenResponse
from files_manager.users.service import authenticate

router = APIRouter(tags=["auth"])
log = logging.getLogger(__name__)


@router.get("/connect", response_model=TokenResponse)
@limiter.limit(lambda: get_settings().connect_rate_limit)
async def connect(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_db)],
    sessions: Annotated[SessionStore, Depends(get_session_store)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> TokenResponse:
    """Exchange Basic email:password for a session token."""
    credentials = parse_basic_auth(authorization)
    if not credentials:
        log.warning("Connect rejected: missing or malformed Basic credentials")
        raise UnauthorizedError()
    email, password = credentials
    user = await authenticate(session, email, password)
    if not user:
        log.warning("Connect failed for email=%s", email)
        raise UnauthorizedError()
    token = await sessions.create(user.id)
    log.info("Connect successful for email=%s", user.email)
    return TokenResponse(token=token)


@router.get("/disconnect", status_code=status.HTTP_204_NO_CONTENT)
async def disconnect(
    user_id: Annotated[str, Depends(get_current_user_id)],
    sessions: Annotated[SessionStore, Depends(get_session_store)],
    x_token: Annotated[Optional[str], Header()] = None,
) -> Response:
    """End the session behind x-token."""
    await sessions.destroy(x_token)
    log.info("Disconnect user=%s", user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
