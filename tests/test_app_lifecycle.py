"""Tests for service wiring and the API lifespan (startup and shutdown)."""

import psycopg2
import pytest
from unittest.mock import AsyncMock, patch
from pymongo.errors import PyMongoError, ServerSelectionTimeoutError

from api import create_app
from common.database import MongoDB
from booklet.dependencies import build_services, close_services, connect_mongo


def _settings(settings, **overrides):
    base = {"PG_CONNECT_RETRIES": 1, "PG_RETRY_BACKOFF_SECONDS": 0.0}
    return settings.model_copy(update={**base, **overrides})


@pytest.fixture
def pg_refused():
    with patch(
        "common.database.postgres.psycopg2.connect",
        side_effect=psycopg2.OperationalError("connection refused"),
    ) as connect:
        yield connect


@pytest.fixture
def mongo_unreachable():
    with patch.object(
        MongoDB, "connect", new=AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))
    ) as connect:
        yield connect


# ─────────────────────────────────────────────────────────────────
# connect_mongo
# ─────────────────────────────────────────────────────────────────


class TestConnectMongo:
    @pytest.mark.asyncio
    async def test_no_uri_returns_none(self, settings):
        assert await connect_mongo(_settings(settings, MONGO_URI=None)) is None

    @pytest.mark.asyncio
    async def test_unreachable_degrades_to_none(self, settings, mongo_unreachable):
        mongo = await connect_mongo(_settings(settings, MONGO_URI="mongodb://db.invalid:27017"))

        assert mongo is None
        mongo_unreachable.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unreachable_raises_when_required(self, settings, mongo_unreachable):
        strict = _settings(settings, MONGO_URI="mongodb://db.invalid:27017", MONGO_REQUIRED=True)

        with pytest.raises(PyMongoError):
            await connect_mongo(strict)


# ─────────────────────────────────────────────────────────────────
# build_services / close_services
# ─────────────────────────────────────────────────────────────────


class TestBuildServices:
    @pytest.mark.asyncio
    async def test_databases_down_leave_services_degraded(self, settings, pg_refused, mongo_unreachable):
        services = await build_services(
            _settings(settings, MONGO_URI="mongodb://db.invalid:27017")
        )
        try:
            assert services.mongo is None
            assert services.child_records is None
            assert services.mongo_connected is False
            assert services.postgres_connected is False
            assert services.identities is not None
            assert services.admin_users is not None
            assert services.oidc is not None
            pg_refused.assert_called_once()
        finally:
            await close_services(services)

    @pytest.mark.asyncio
    async def test_jwt_mode_starts_sweeper(self, settings, pg_refused):
        services = await build_services(_settings(settings, ADMIN_JWT_SECRET="s3cret"))
        sweeper = services.sweeper
        try:
            assert services.issuer.mode == "jwt"
            assert sweeper is not None
            assert not sweeper.done()
        finally:
            await close_services(services)

        assert sweeper.cancelled()

    @pytest.mark.asyncio
    async def test_memory_mode_starts_sweeper(self, settings, pg_refused):
        services = await build_services(_settings(settings, ADMIN_JWT_SECRET=None))
        sweeper = services.sweeper
        try:
            assert services.issuer.mode == "memory"
            assert sweeper is not None
            assert not sweeper.done()
        finally:
            await close_services(services)

        assert sweeper.cancelled()

    @pytest.mark.asyncio
    async def test_no_oidc_config_leaves_relay_unset(self, settings, pg_refused):
        services = await build_services(_settings(settings, OIDC_ISSUER=None))
        try:
            assert services.oidc is None
        finally:
            await close_services(services)


# ─────────────────────────────────────────────────────────────────
# Lifespan
# ─────────────────────────────────────────────────────────────────


class TestLifespan:
    @pytest.mark.asyncio
    async def test_mongo_required_without_uri_exits(self, settings):
        app = create_app(settings=_settings(settings, MONGO_URI=None, MONGO_REQUIRED=True))

        with pytest.raises(SystemExit):
            async with app.router.lifespan_context(app):
                pass

    @pytest.mark.asyncio
    async def test_startup_and_shutdown(self, settings, pg_refused):
        app = create_app(settings=_settings(settings))

        async with app.router.lifespan_context(app):
            services = app.state.services
            assert services.child_records is None
            assert services.issuer.mode == "jwt"
            assert not services.sweeper.done()

        assert services.sweeper.cancelled()

    @pytest.mark.asyncio
    async def test_injected_services_are_not_rebuilt(self, settings):
        services = object()
        app = create_app(settings=settings, services=services)

        with patch("api.build_services", new=AsyncMock()) as build:
            async with app.router.lifespan_context(app):
                assert app.state.services is services

        build.assert_not_awaited()
