"""Metadata store: file records in the files table."""

import logging
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from files_manager.files.models import ROOT, FileRecord, ParentId

log = logging.getLogger(__name__)


class MetadataStore:
    """Insert, look up, list and toggle visibility of file records.

    Each call runs in its own session and commits before returning, so an
    insert is visible to any later find.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], page_size: int = 20):
        self.session_factory = session_factory
        self.page_size = page_size

    async def insert(self, record: FileRecord) -> str:
        """Persist a new record and return its id."""
        async with self.session_factory() as session:
            session.add(record)
            await session.commit()
            return record.id

    async def find_by_id(self, file_id: str, user_id: Optional[str] = None) -> Optional[FileRecord]:
        """Return the record with this id (and owner, when given) or None."""
        stmt = select(FileRecord).where(FileRecord.id == file_id)
        if user_id is not None:
            stmt = stmt.where(FileRecord.user_id == user_id)
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def find_by_parent(self, user_id: str, parent: ParentId, page: int = 0) -> List[FileRecord]:
        """Records of user_id directly under parent, in insertion order, one page."""
        stmt = select(FileRecord).where(FileRecord.user_id == user_id)
        if parent is ROOT:
            stmt = stmt.where(FileRecord.parent_id.is_(None))
        else:
            stmt = stmt.where(FileRecord.parent_id == parent)
        stmt = stmt.order_by(FileRecord.seq).offset(page * self.page_size).limit(self.page_size)
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def update_visibility(self, file_id: str, is_public: bool) -> None:
        async with self.session_factory() as session:
            await session.execute(
                update(FileRecord).where(FileRecord.id == file_id).values(is_public=is_public)
            )
            await session.commit()
        log.debug("update_visibility id=%s is_public=%s", file_id, is_public)

    async def count(self) -> int:
        async with self.session_factory() as session:
            result = await session.execute(select(func.count()).select_from(FileRecord))
            return result.scalar_one()
