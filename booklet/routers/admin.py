"""
FastAPI router for admin endpoints.

Login, logout and dashboard stats for the admin console.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Request

from common.auth import SessionIssuer
from booklet.dependencies import (
    AdminSessionDep,
    SessionDep,
    get_admin_user_service,
    get_issuer,
    get_optional_child_record_service,
)
from booklet.pipelines import admin as admin_pipelines
from booklet.schemas.admin import AdminLoginRequest, AdminLoginResponse, LogoutResponse
from booklet.services.admin import AdminUserService
from booklet.services.child import ChildRecordService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/login", response_model=AdminLoginResponse)
async def login(
    admin_users: Annotated[AdminUserService, Depends(get_admin_user_service)],
    issuer: Annotated[SessionIssuer, Depends(get_issuer)],
    body: Optional[AdminLoginRequest] = None,
):
    """
    Log an admin in.

    Returns a bearer token for the admin endpoints.
    """
    body = body or AdminLoginRequest()
    return await admin_pipelines.login_pipeline(
        admin_users=admin_users,
        issuer=issuer,
        username=body.username,
        password=body.password,
    )


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    request: Request,
    session: SessionDep,
    issuer: Annotated[SessionIssuer, Depends(get_issuer)],
):
    """Revoke the current session."""
    logger.info(f"Logout for {session.username}")
    return await admin_pipelines.logout_pipeline(issuer, request.state.token)


@router.get("/stats")
async def stats(
    session: AdminSessionDep,
    child_records: Annotated[Optional[ChildRecordService], Depends(get_optional_child_record_service)],
):
    """
    Dashboard stats.

    Total record count and the latest uploads.
    """
    return await admin_pipelines.stats_pipeline(child_records)
