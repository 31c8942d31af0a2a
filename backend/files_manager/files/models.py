"""File record SQLAlchemy model, root parent sentinel and Pydantic schemas."""

import enum
import uuid
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from files_manager.db.session import Base


class FileType(str, enum.Enum):
    FOLDER = "folder"
    FILE = "file"
    IMAGE = "image"


class Root:
    """Parent of top-level records. Not an identifier; rendered as 0 on the wire."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ROOT"


ROOT = Root()

ParentId = Union[Root, str]


def parse_parent_id(value: Any) -> ParentId:
    """Map the wire parentId (absent, 0, "0" or an id) to ROOT or an id string."""
    if value is None or value == 0 or value == "0" or value == "":
        return ROOT
    return str(value)


def new_id() -> str:
    return uuid.uuid4().hex


class FileRecord(Base):
    """File or folder metadata. parent_id NULL means the record sits at the root."""

    __tablename__ = "files"

    # Insertion order for pagination
    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(32), unique=True, index=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(32), index=True, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    parent_id: Mapped[Optional[str]] = mapped_column(String(32), index=True, nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # Absent for folders
    local_path: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    @property
    def parent(self) -> ParentId:
        return ROOT if self.parent_id is None else self.parent_id

    @property
    def is_folder(self) -> bool:
        return self.type == FileType.FOLDER.value


# Pydantic schemas for API
class FileCreate(BaseModel):
    """Upload body. Every field optional so missing ones get field-specific errors."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    type: Optional[str] = None
    parent_id: Union[int, str, None] = Field(default=0, alias="parentId")
    is_public: bool = Field(default=False, alias="isPublic")
    data: Optional[str] = None


class FileRecordResponse(BaseModel):
    """Public projection of a file record; local_path is never exposed."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    user_id: str = Field(alias="userId")
    name: str
    type: str
    is_public: bool = Field(alias="isPublic")
    parent_id: Union[str, int] = Field(alias="parentId")

    @classmethod
    def from_record(cls, record: FileRecord) -> "FileRecordResponse":
        return cls(
            id=record.id,
            user_id=record.user_id,
            name=record.name,
            type=record.type,
            is_public=record.is_public,
            parent_id=0 if record.parent_id is None else record.parent_id,
        )
