"""
FastAPI router for the mock identity lookup (admin only).
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends

from booklet.dependencies import AdminSessionDep, get_identity_service
from booklet.services.identity import IdentityService

router = APIRouter(prefix="/api/admin/identities", tags=["identities"])


@router.get("")
async def list_identities(
    session: AdminSessionDep,
    identities: Annotated[IdentityService, Depends(get_identity_service)],
    limit: Optional[str] = None,
    offset: Optional[str] = None,
):
    """
    List identity summaries.

    `limit` defaults to 100 and is capped at 500. Unparsable values fall
    back to the defaults.
    """
    return await identities.list_identities(limit=limit, offset=offset)


@router.get("/{individual_id}")
async def get_identity(
    individual_id: str,
    session: AdminSessionDep,
    identities: Annotated[IdentityService, Depends(get_identity_service)],
):
    """Fetch one identity with sensitive fields removed."""
    return await identities.get_identity(individual_id)
