"""Unit tests for AdminUserService (bcrypt, legacy password migration, fallback admin)."""

import pytest
from pymongo.errors import DuplicateKeyError

from common.utils.password import hash_password, verify_password
from booklet.services.admin import AdminUserService

FAST_ROUNDS = 4


@pytest.fixture
def service(mock_db):
    return AdminUserService(
        mock_db,
        fallback_username="Admin",
        fallback_password="Admin@123",
        hash_rounds=FAST_ROUNDS,
    )


@pytest.fixture
def offline_service():
    return AdminUserService(
        None,
        fallback_username="Admin",
        fallback_password="Admin@123",
        hash_rounds=FAST_ROUNDS,
    )


class TestEnsureDefaultAdmin:
    @pytest.mark.asyncio
    async def test_seeds_hashed_admin(self, service, mock_collection):
        mock_collection.find_one.return_value = None

        created = await service.ensure_default_admin("Admin", "Admin@123")

        assert created is True
        doc = mock_collection.insert_one.call_args[0][0]
        assert doc["username"] == "Admin"
        assert doc["roles"] == ["admin"]
        assert "password" not in doc
        assert verify_password("Admin@123", doc["passwordHash"])

    @pytest.mark.asyncio
    async def test_existing_admin_left_alone(self, service, mock_collection):
        mock_collection.find_one.return_value = {"username": "Admin"}

        assert await service.ensure_default_admin("Admin", "Admin@123") is False
        mock_collection.insert_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrent_seed_tolerated(self, service, mock_collection):
        mock_collection.find_one.return_value = None
        mock_collection.insert_one.side_effect = DuplicateKeyError("E11000")

        assert await service.ensure_default_admin("Admin", "Admin@123") is False


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_hashed_password_accepted(self, service, mock_collection):
        mock_collection.find_one.return_value = {
            "_id": "id1",
            "username": "Admin",
            "passwordHash": hash_password("Admin@123", FAST_ROUNDS),
            "roles": ["admin"],
        }

        user = await service.authenticate("Admin", "Admin@123")

        assert user == {"username": "Admin", "roles": ["admin"]}

    @pytest.mark.asyncio
    async def test_wrong_password_rejected(self, service, mock_collection):
        mock_collection.find_one.return_value = {
            "_id": "id1",
            "username": "Admin",
            "passwordHash": hash_password("Admin@123", FAST_ROUNDS),
            "roles": ["admin"],
        }

        assert await service.authenticate("Admin", "wrong") is None

    @pytest.mark.asyncio
    async def test_unknown_user_rejected(self, service, mock_collection):
        mock_collection.find_one.return_value = None

        assert await service.authenticate("Nobody", "Admin@123") is None

    @pytest.mark.asyncio
    async def test_user_without_admin_role_rejected(self, service, mock_collection):
        mock_collection.find_one.return_value = {
            "_id": "id1",
            "username": "viewer",
            "passwordHash": hash_password("pw", FAST_ROUNDS),
            "roles": ["viewer"],
        }

        assert await service.authenticate("viewer", "pw") is None

    @pytest.mark.asyncio
    async def test_legacy_plaintext_password_migrated(self, service, mock_collection):
        mock_collection.find_one.return_value = {
            "_id": "id1",
            "username": "Admin",
            "password": "Admin@123",
            "roles": ["admin"],
        }

        user = await service.authenticate("Admin", "Admin@123")

        assert user["username"] == "Admin"
        filter_, update = mock_collection.update_one.call_args[0]
        assert filter_ == {"_id": "id1"}
        assert update["$unset"] == {"password": ""}
        assert verify_password("Admin@123", update["$set"]["passwordHash"])

    @pytest.mark.asyncio
    async def test_legacy_plaintext_mismatch_not_migrated(self, service, mock_collection):
        mock_collection.find_one.return_value = {
            "_id": "id1",
            "username": "Admin",
            "password": "Admin@123",
            "roles": ["admin"],
        }

        assert await service.authenticate("Admin", "nope") is None
        mock_collection.update_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_credentials_rejected(self, service, mock_collection):
        assert await service.authenticate("", "x") is None
        assert await service.authenticate("Admin", "") is None
        mock_collection.find_one.assert_not_called()


class TestFallbackAdmin:
    @pytest.mark.asyncio
    async def test_plain_fallback_password(self, offline_service):
        assert offline_service.uses_database is False
        assert await offline_service.authenticate("Admin", "Admin@123") == {
            "username": "Admin",
            "roles": ["admin"],
        }
        assert await offline_service.authenticate("Admin", "wrong") is None
        assert await offline_service.authenticate("Other", "Admin@123") is None

    @pytest.mark.asyncio
    async def test_fallback_hash_wins_over_plain_password(self):
        service = AdminUserService(
            None,
            fallback_username="Admin",
            fallback_password="Admin@123",
            fallback_password_hash=hash_password("Rotated!9", FAST_ROUNDS),
        )

        assert await service.authenticate("Admin", "Rotated!9") is not None
        assert await service.authenticate("Admin", "Admin@123") is None

    @pytest.mark.asyncio
    async def test_seeding_skipped_without_database(self, offline_service):
        assert await offline_service.ensure_default_admin("Admin", "Admin@123") is False


class TestPasswordHelpers:
    def test_accepts_plain_bcrypt_hashes(self):
        import bcrypt

        legacy = bcrypt.hashpw(b"Admin@123", bcrypt.gensalt(rounds=FAST_ROUNDS)).decode()

        assert verify_password("Admin@123", legacy)
        assert not verify_password("other", legacy)

    def test_non_bcrypt_values_never_match(self):
        assert not verify_password("Admin@123", "Admin@123")
        assert not verify_password("Admin@123", None)
