"""
FastAPI router for child record endpoints.

Batch upload from the offline queue, plus stats and lookup.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends

from booklet.dependencies import SessionDep, get_child_record_service
from booklet.pipelines import child as child_pipelines
from booklet.schemas.child import (
    BatchUploadRequest,
    BatchUploadResponse,
    ChildSearchResponse,
    ChildStatsResponse,
)
from booklet.services.child import ChildRecordService

router = APIRouter(prefix="/api/child", tags=["child"])


@router.post("/batch", response_model=BatchUploadResponse, response_model_exclude_none=True)
async def batch_upload(
    session: SessionDep,
    child_records: Annotated[ChildRecordService, Depends(get_child_record_service)],
    body: Optional[BatchUploadRequest] = None,
):
    """
    Upload a batch of records captured offline.

    Records are keyed by healthId; resubmitting a batch never creates
    duplicates.
    """
    body = body or BatchUploadRequest()
    return await child_pipelines.batch_upload_pipeline(
        child_records=child_records,
        session=session,
        records=body.records,
        uploader_name=body.uploaderName,
    )


@router.get("/stats", response_model=ChildStatsResponse, response_model_exclude_unset=True)
async def stats(
    session: SessionDep,
    child_records: Annotated[ChildRecordService, Depends(get_child_record_service)],
):
    return await child_pipelines.stats_pipeline(child_records)


@router.get("/search", response_model=ChildSearchResponse)
async def search(
    session: SessionDep,
    child_records: Annotated[ChildRecordService, Depends(get_child_record_service)],
    q: Optional[str] = None,
):
    """Find a record by healthId or name prefix."""
    return await child_pipelines.search_pipeline(child_records, q)
