"""
Pydantic models for child record uploads.

Records are kept as loose dicts: they are captured offline by older app
versions and normalized by the service, not rejected at the edge.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


# =============================================================================
# Request Schemas
# =============================================================================

class BatchUploadRequest(BaseModel):
    """POST /api/child/batch"""
    records: List[Any] = Field(default_factory=list)
    uploaderName: Optional[str] = None


# =============================================================================
# Response Schemas
# =============================================================================

class RecordResult(BaseModel):
    """Outcome for one uploaded record."""
    healthId: Optional[str] = None
    status: str = Field(..., description="uploaded | skipped | failed")
    created: Optional[bool] = None
    reason: Optional[str] = None


class BatchSummary(BaseModel):
    """Aggregate counts for a batch."""
    total: int
    uploaded: int
    created: int
    failed: int
    skipped: int


class BatchUploadResponse(BaseModel):
    """Response for POST /api/child/batch"""
    summary: BatchSummary
    results: List[RecordResult]


class ChildStatsResponse(BaseModel):
    """Response for GET /api/child/stats"""
    total: int
    recent: List[Dict[str, Any]]
    warning: Optional[str] = Field(None, description="Set when MongoDB could not be read")


class ChildSearchResponse(BaseModel):
    """Response for GET /api/child/search"""
    found: bool
    record: Optional[Dict[str, Any]] = None
