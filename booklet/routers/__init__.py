"""
Child booklet API routers.
"""

from booklet.routers.admin import router as admin_router
from booklet.routers.identities import router as identities_router
from booklet.routers.child import router as child_router
from booklet.routers.oidc import router as esignet_router, exchange_router
from booklet.routers.callback import router as callback_router

__all__ = [
    "admin_router",
    "identities_router",
    "child_router",
    "esignet_router",
    "exchange_router",
    "callback_router",
]
