"""File API routes: upload, show, index, publish/unpublish, data."""

import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from files_manager.auth.dependencies import get_current_user_id, get_file_service, get_optional_user_id
from files_manager.files.models import FileCreate, FileRecordResponse
from files_manager.files.service import FileService

router = APIRouter(prefix="/files", tags=["files"])
log = logging.getLogger(__name__)


@router.post("", response_model=FileRecordResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    payload: FileCreate,
    user_id: Annotated[str, Depends(get_current_user_id)],
    files: Annotated[FileService, Depends(get_file_service)],
) -> FileRecordResponse:
    """
    Create a folder, file or image. Body: name, type, optional parentId and
    isPublic, and base64 data for non-folders.
    """
    record = await files.create(user_id, payload)
    return FileRecordResponse.from_record(record)


@router.get("", response_model=List[FileRecordResponse])
async def list_files(
    user_id: Annotated[str, Depends(get_current_user_id)],
    files: Annotated[FileService, Depends(get_file_service)],
    parent_id: Annotated[Optional[str], Query(alias="parentId")] = None,
    page: Optional[str] = None,
) -> List[FileRecordResponse]:
    """List the requester's records under parentId (root by default), 20 per page."""
    records = await files.index(user_id, parent_id, page)
    log.info("list_files user=%s parent=%s page=%s count=%d", user_id, parent_id, page, len(records))
    return [FileRecordResponse.from_record(r) for r in records]


@router.get("/{file_id}", response_model=FileRecordResponse)
async def show_file(
    file_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    files: Annotated[FileService, Depends(get_file_service)],
) -> FileRecordResponse:
    record = await files.show(user_id, file_id)
    return FileRecordResponse.from_record(record)


@router.put("/{file_id}/publish", response_model=FileRecordResponse)
async def publish_file(
    file_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    files: Annotated[FileService, Depends(get_file_service)],
) -> FileRecordResponse:
    record = await files.set_visibility(user_id, file_id, True)
    return FileRecordResponse.from_record(record)


@router.put("/{file_id}/unpublish", response_model=FileRecordResponse)
async def unpublish_file(
    file_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    files: Annotated[FileService, Depends(get_file_service)],
) -> FileRecordResponse:
    record = await files.set_visibility(user_id, file_id, False)
    return FileRecordResponse.from_record(record)


@router.get("/{file_id}/data")
async def get_file_data(
    file_id: str,
    user_id: Annotated[Optional[str], Depends(get_optional_user_id)],
    files: Annotated[FileService, Depends(get_file_service)],
    size: Optional[str] = None,
) -> Response:
    """
    Raw content. Token optional: public files are readable anonymously.
    Query param size (500, 250, 100) selects a thumbnail of an image.
    """
    content = await files.get_content(user_id, file_id, size)
    return Response(content=content.data, media_type=content.content_type)
