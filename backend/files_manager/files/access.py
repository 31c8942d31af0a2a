"""Read/write authorization decisions for file records. No I/O."""

from typing import Optional

from files_manager.files.models import FileRecord


def can_read(requester_id: Optional[str], record: FileRecord) -> bool:
    """Public records are readable by anyone; private ones only by their owner."""
    if record.is_public:
        return True
    return requester_id is not None and requester_id == record.user_id


def can_write(requester_id: Optional[str], record: FileRecord) -> bool:
    """Only the owner may change a record."""
    return requester_id is not None and requester_id == record.user_id
