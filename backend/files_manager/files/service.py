"""Upload and retrieval operations on file records and their blobs."""

import base64
import binascii
import logging
import mimetypes
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from redis.exceptions import RedisError

from files_manager.errors import NotFoundError, ValidationError
from files_manager.files.access import can_read, can_write
from files_manager.files.models import ROOT, FileCreate, FileRecord, FileType, ParentId, new_id, parse_parent_id
from files_manager.files.storage import BlobStore
from files_manager.files.store import MetadataStore
from files_manager.jobs.queue import JobQueue

log = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass
class FileContent:
    data: bytes
    content_type: str


def guess_content_type(name: str) -> str:
    content_type, _ = mimetypes.guess_type(name)
    return content_type or DEFAULT_CONTENT_TYPE


def parse_page(value: Any) -> int:
    """Page number from a query value; anything but a non-negative int is page 0."""
    try:
        page = int(value)
    except (TypeError, ValueError):
        return 0
    return max(page, 0)


class FileService:
    """Create, show, list, publish and read files for a resolved requester.

    Callers pass the user id resolved from the session; authentication
    itself happens before these methods are reached.
    """

    def __init__(
        self,
        metadata: MetadataStore,
        blobs: BlobStore,
        thumbnail_queue: Optional[JobQueue] = None,
        thumbnail_widths: Sequence[int] = (500, 250, 100),
    ):
        self.metadata = metadata
        self.blobs = blobs
        self.thumbnail_queue = thumbnail_queue
        self.thumbnail_widths = tuple(thumbnail_widths)

    async def _check_parent(self, parent: ParentId) -> None:
        if parent is ROOT:
            return
        parent_record = await self.metadata.find_by_id(parent)
        if parent_record is None:
            raise ValidationError("Parent not found")
        if not parent_record.is_folder:
            raise ValidationError("Parent is not a folder")

    @staticmethod
    def _decode_data(data: str) -> bytes:
        try:
            # MIME encoders wrap lines
            return base64.b64decode("".join(data.split()), validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError("Invalid data")

    async def create(self, user_id: str, payload: FileCreate) -> FileRecord:
        """Validate, store the blob (if any), then insert the record."""
        if not payload.name:
            raise ValidationError("Missing name")
        if payload.type not in {t.value for t in FileType}:
            raise ValidationError("Missing type")
        if payload.type != FileType.FOLDER.value and not payload.data:
            raise ValidationError("Missing data")
        parent = parse_parent_id(payload.parent_id)
        await self._check_parent(parent)

        record = FileRecord(
            id=new_id(),
            user_id=user_id,
            name=payload.name,
            type=payload.type,
            parent_id=None if parent is ROOT else parent,
            is_public=bool(payload.is_public),
        )
        if payload.type != FileType.FOLDER.value:
            content = self._decode_data(payload.data)
            # Blob first: a failed write never leaves a record without content
            record.local_path = self.blobs.write(content)
        await self.metadata.insert(record)
        log.info("create file user=%s id=%s type=%s parent=%r", user_id, record.id, record.type, parent)

        if payload.type == FileType.IMAGE.value:
            await self._enqueue_thumbnails(record)
        return record

    async def _enqueue_thumbnails(self, record: FileRecord) -> None:
        if self.thumbnail_queue is None:
            return
        try:
            await self.thumbnail_queue.enqueue({"fileId": record.id, "userId": record.user_id})
        except RedisError:
            # The upload already succeeded; thumbnails are best-effort
            log.exception("Could not enqueue thumbnail job for file %s", record.id)

    async def show(self, user_id: str, file_id: str) -> FileRecord:
        """The requester's own record; foreign or absent records are NotFound."""
        record = await self.metadata.find_by_id(file_id, user_id=user_id)
        if record is None:
            raise NotFoundError()
        return record

    async def index(self, user_id: str, parent_id: Any = None, page: Any = 0) -> List[FileRecord]:
        parent = parse_parent_id(parent_id)
        return await self.metadata.find_by_parent(user_id, parent, parse_page(page))

    async def set_visibility(self, user_id: str, file_id: str, is_public: bool) -> FileRecord:
        """Publish or unpublish an owned record."""
        record = await self.metadata.find_by_id(file_id, user_id=user_id)
        if record is None or not can_write(user_id, record):
            raise NotFoundError()
        await self.metadata.update_visibility(record.id, is_public)
        record.is_public = is_public
        log.info("visibility user=%s id=%s is_public=%s", user_id, file_id, is_public)
        return record

    async def get_content(self, requester_id: Optional[str], file_id: str, size: Optional[Any] = None) -> FileContent:
        """Raw bytes of a readable file (or one of its thumbnails when size is given)."""
        record = await self.metadata.find_by_id(file_id)
        if record is None or not can_read(requester_id, record):
            raise NotFoundError()
        if record.is_folder:
            raise ValidationError("A folder doesn't have content")
        local_path = record.local_path
        if not local_path:
            raise NotFoundError()
        if size is not None:
            try:
                width = int(size)
            except (TypeError, ValueError):
                raise ValidationError("Invalid size")
            if width not in self.thumbnail_widths:
                raise ValidationError("Invalid size")
            local_path = f"{local_path}_{width}"
        try:
            data = self.blobs.read(local_path)
        except FileNotFoundError:
            log.warning("Blob missing for file %s at %s", record.id, local_path)
            raise NotFoundError()
        return FileContent(data=data, content_type=guess_content_type(record.name))
