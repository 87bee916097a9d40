"""
FastAPI dependencies for the child booklet application.

All service handles live in one ServiceContainer attached to
`app.state.services`. It is built by the application lifespan, or injected
directly when the app is created for tests.
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from typing import Annotated, Optional

from fastapi import Depends, Request
from pymongo.errors import PyMongoError

from common.auth import (
    AdminSession,
    SessionIssuer,
    create_auth_dependency,
    create_session_issuer,
    run_sweeper,
)
from common.database import DatabaseUnavailableError, MongoDB, PostgresClient
from common.utils.exceptions import ServiceUnavailableException
from booklet.config import Settings
from booklet.services.admin import AdminUserService
from booklet.services.child import ChildRecordService
from booklet.services.identity import IdentityService
from booklet.services.oidc import OIDCRelay, ProcessedCodeRegistry, load_private_jwk

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Everything a request handler may need, created once per process."""
    settings: Settings
    issuer: Optional[SessionIssuer] = None
    admin_users: Optional[AdminUserService] = None
    processed_codes: ProcessedCodeRegistry = field(default_factory=ProcessedCodeRegistry)
    mongo: Optional[MongoDB] = None
    pg: Optional[PostgresClient] = None
    child_records: Optional[ChildRecordService] = None
    identities: Optional[IdentityService] = None
    oidc: Optional[OIDCRelay] = None
    sweeper: Optional[asyncio.Task] = None

    @property
    def mongo_connected(self) -> bool:
        return self.mongo is not None and self.mongo.is_connected

    @property
    def postgres_connected(self) -> bool:
        return self.pg is not None and self.pg.is_connected


# ─────────────────────────────────────────────────────────────────
# Initialization
# ─────────────────────────────────────────────────────────────────

def build_oidc_relay(settings: Settings) -> Optional[OIDCRelay]:
    """Create the OIDC relay, or None when OIDC is not configured."""
    if not settings.oidc_ready():
        logger.warning("OIDC not configured (issuer, client id, redirect URI); eSignet endpoints disabled")
        return None

    return OIDCRelay(
        issuer=settings.OIDC_ISSUER,
        client_id=settings.OIDC_CLIENT_ID,
        redirect_uri=settings.REDIRECT_URI,
        client_secret=settings.OIDC_CLIENT_SECRET,
        private_jwk=load_private_jwk(settings.OIDC_PRIVATE_KEY_JWK),
        allow_unverified_id_token=settings.OIDC_ALLOW_UNVERIFIED_ID_TOKEN,
        timeout=settings.OIDC_HTTP_TIMEOUT_SECONDS,
    )


async def connect_mongo(settings: Settings) -> Optional[MongoDB]:
    """
    Connect to MongoDB and ensure indexes.

    Returns:
        The connected MongoDB, or None when it is not configured or
        unreachable (requests then degrade)
    """
    uri = settings.get_mongo_uri()
    if not uri:
        logger.warning("MONGO_URI not set; child records will not be persisted")
        return None

    mongo = MongoDB()
    try:
        await mongo.connect(
            uri=uri,
            database_name=settings.MONGO_DB,
            indexes={
                ChildRecordService.COLLECTION: ChildRecordService.INDEXES,
                AdminUserService.COLLECTION: AdminUserService.INDEXES,
            },
        )
    except PyMongoError as e:
        if settings.MONGO_REQUIRED:
            raise
        logger.error(f"MongoDB unavailable, continuing without it: {e}")
        return None

    return mongo


async def build_services(settings: Settings) -> ServiceContainer:
    """
    Connect to the databases and wire up every service.

    Database failures are logged and leave the matching services unset;
    only configuration errors abort startup.
    """
    mongo = await connect_mongo(settings)
    db = mongo.db if mongo is not None else None

    admin_users = AdminUserService(
        db,
        fallback_username=settings.ADMIN_USERNAME,
        fallback_password=settings.ADMIN_DEFAULT_PASSWORD,
        fallback_password_hash=settings.ADMIN_PASSWORD_HASH,
    )
    if db is not None:
        try:
            await admin_users.ensure_default_admin(
                settings.ADMIN_USERNAME, settings.ADMIN_DEFAULT_PASSWORD
            )
        except PyMongoError as e:
            logger.error(f"Failed to seed default admin: {e}")

    pg = PostgresClient(
        host=settings.PG_HOST,
        port=settings.PG_PORT,
        user=settings.PG_USER,
        password=settings.PG_PASSWORD,
        database=settings.PG_DB_IDENTITY,
        connect_attempts=settings.PG_CONNECT_RETRIES,
        backoff_seconds=settings.PG_RETRY_BACKOFF_SECONDS,
    )
    try:
        await pg.connect()
    except DatabaseUnavailableError as e:
        logger.error(f"{e}; identity lookups will retry on demand")

    issuer = create_session_issuer(
        secret=settings.ADMIN_JWT_SECRET,
        ttl_seconds=settings.admin_session_ttl_seconds,
    )
    # Expired memory sessions and expired JWT deny-list entries
    sweeper = asyncio.create_task(
        run_sweeper(issuer, settings.ADMIN_SESSION_SWEEP_SECONDS)
    )

    return ServiceContainer(
        settings=settings,
        issuer=issuer,
        admin_users=admin_users,
        mongo=mongo,
        pg=pg,
        child_records=ChildRecordService(db) if db is not None else None,
        identities=IdentityService(pg),
        oidc=build_oidc_relay(settings),
        sweeper=sweeper,
    )


async def close_services(services: ServiceContainer) -> None:
    """Stop background tasks and close database connections."""
    if services.sweeper is not None:
        services.sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await services.sweeper

    if services.pg is not None:
        await services.pg.disconnect()

    if services.mongo is not None:
        await services.mongo.disconnect()


# ─────────────────────────────────────────────────────────────────
# Getters
# ─────────────────────────────────────────────────────────────────

def get_services(request: Request) -> ServiceContainer:
    """Get the service container for the running app."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Services not initialized.")
    return services


def get_issuer(request: Request) -> SessionIssuer:
    issuer = get_services(request).issuer
    if issuer is None:
        raise RuntimeError("Session issuer not initialized.")
    return issuer


def get_admin_user_service(
    services: ServiceContainer = Depends(get_services),
) -> AdminUserService:
    if services.admin_users is None:
        raise RuntimeError("Admin user service not initialized.")
    return services.admin_users


def get_optional_child_record_service(
    services: ServiceContainer = Depends(get_services),
) -> Optional[ChildRecordService]:
    """Child record service, or None while MongoDB is unavailable."""
    return services.child_records


def get_child_record_service(
    services: ServiceContainer = Depends(get_services),
) -> ChildRecordService:
    """Child record service; 503 while MongoDB is unavailable."""
    if services.child_records is None:
        raise ServiceUnavailableException(
            message="Record storage unavailable",
            code="mongo_unavailable",
        )
    return services.child_records


def get_identity_service(
    services: ServiceContainer = Depends(get_services),
) -> IdentityService:
    if services.identities is None:
        raise ServiceUnavailableException(
            message="Identity database unavailable",
            code="postgres_unavailable",
        )
    return services.identities


def get_oidc_relay(
    services: ServiceContainer = Depends(get_services),
) -> OIDCRelay:
    if services.oidc is None:
        raise ServiceUnavailableException(
            message="eSignet login is not configured",
            code="oidc_not_configured",
        )
    return services.oidc


# ─────────────────────────────────────────────────────────────────
# Auth
# ─────────────────────────────────────────────────────────────────

# Admin dashboard endpoints
require_admin = create_auth_dependency(get_issuer)

# Any signed-in user (admin or eSignet uploader)
require_session = create_auth_dependency(get_issuer, role=None)

AdminSessionDep = Annotated[AdminSession, Depends(require_admin)]
SessionDep = Annotated[AdminSession, Depends(require_session)]
