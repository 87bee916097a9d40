"""
Child booklet services.

All service classes organized by feature.
"""

# Admin services
from booklet.services.admin.admin_user_service import AdminUserService

# Child record services
from booklet.services.child.child_record_service import ChildRecordService

# Identity services
from booklet.services.identity.identity_service import IdentityService

# OIDC services
from booklet.services.oidc.oidc_relay import OIDCRelay
from booklet.services.oidc.code_registry import ProcessedCodeRegistry

__all__ = [
    "AdminUserService",
    "ChildRecordService",
    "IdentityService",
    "OIDCRelay",
    "ProcessedCodeRegistry",
]
