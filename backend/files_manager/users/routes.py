"""User routes: register and me."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from files_manager.auth.dependencies import get_current_user, get_user_queue
from files_manager.config import get_settings
from files_manager.db.session import get_db
from files_manager.jobs.queue import JobQueue
from files_manager.limiter import limiter
from files_manager.users.models import User, UserCreate, UserResponse
from files_manager.users.service import create_user

router = APIRouter(tags=["users"])
log = logging.getLogger(__name__)


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(lambda: get_settings().register_rate_limit)
async def register(
    request: Request,
    payload: UserCreate,
    session: Annotated[AsyncSession, Depends(get_db)],
    user_queue: Annotated[JobQueue, Depends(get_user_queue)],
) -> UserResponse:
    """Create a user from email and password; queue the welcome mail."""
    user = await create_user(session, payload)
    try:
        await user_queue.enqueue({"userId": user.id})
    except RedisError:
        log.exception("Could not enqueue welcome job for user %s", user.id)
    return UserResponse.model_validate(user)


@router.get("/users/me", response_model=UserResponse)
async def me(
    current_user: Annotated[User, Depends(get_current_user)],
) -> UserResponse:
    """Return current authenticated user."""
    return UserResponse.model_validate(current_user)
