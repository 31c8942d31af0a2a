"""User service: registration, lookup, credential check, welcome mail."""

import logging
import uuid
from email.message import EmailMessage
from typing import Optional

import aiosmtplib
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from files_manager.auth.passwords import hash_password, verify_password
from files_manager.config import get_settings
from files_manager.errors import ConflictError, ValidationError
from files_manager.users.models import User, UserCreate

log = logging.getLogger(__name__)


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    """Return user by email or None."""
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user_by_id(session: AsyncSession, user_id: str) -> Optional[User]:
    """Return user by id or None."""
    return await session.get(User, user_id)


async def count_users(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(User))
    return result.scalar_one()


async def create_user(session: AsyncSession, payload: UserCreate) -> User:
    """
    Register a new user. Raises ValidationError for a missing field and
    ConflictError when the email is taken. Commits so the id is final.
    """
    if not payload.email:
        raise ValidationError("Missing email")
    if not payload.password:
        raise ValidationError("Missing password")
    user = User(
        id=uuid.uuid4().hex,
        email=payload.email,
        password_hash=hash_password(payload.password),
    )
    session.add(user)
    try:
        # The unique constraint decides; no racy pre-check
        await session.commit()
    except IntegrityError:
        await session.rollback()
        log.info("Registration rejected, email taken: %s", payload.email)
        raise ConflictError("Already exist")
    log.info("User created id=%s email=%s", user.id, user.email)
    return user


async def authenticate(session: AsyncSession, email: str, password: str) -> Optional[User]:
    """Return the user if email/password match, else None."""
    user = await get_user_by_email(session, email)
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


async def send_welcome_email(to_email: str) -> None:
    """Send the welcome mail. Raises RuntimeError if SMTP is not configured."""
    settings = get_settings()
    if not settings.smtp_host or not settings.smtp_from:
        raise RuntimeError("SMTP not configured (FILES_MANAGER_SMTP_HOST / SMTP_FROM)")
    msg = EmailMessage()
    msg["From"] = settings.smtp_from
    msg["To"] = to_email
    msg["Subject"] = "Welcome to Files Manager"
    msg.set_content(f"""Hello,

Your Files Manager account {to_email} is ready. Connect with your email and password
to start uploading files.

Best regards,
Files Manager
""")
    await aiosmtplib.send(
        msg,
        hostname=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_user or None,
        password=settings.smtp_password or None,
        use_tls=settings.smtp_port == 465,
        start_tls=settings.smtp_port == 587,
    )
