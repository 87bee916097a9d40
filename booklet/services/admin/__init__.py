"""Admin account services."""

from booklet.services.admin.admin_user_service import AdminUserService

__all__ = ["AdminUserService"]
