"""Unit tests for the mock identity lookup and its redaction."""

import json

import pytest
from unittest.mock import AsyncMock, MagicMock

from common.database import DatabaseUnavailableError
from common.utils.exceptions import (
    InternalServerException,
    NotFoundException,
    ServiceUnavailableException,
)
from booklet.services.identity import (
    IdentityService,
    parse_identity_json,
    sanitize_identity,
    summarize_identity,
)
from booklet.services.identity.summarizer import SENSITIVE_FIELDS


@pytest.fixture
def pg():
    client = MagicMock()
    client.fetch_all = AsyncMock(return_value=[])
    return client


@pytest.fixture
def service(pg):
    return IdentityService(pg)


# ─────────────────────────────────────────────────────────────────
# Summaries
# ─────────────────────────────────────────────────────────────────


class TestSummarizeIdentity:
    def test_picks_english_values(self, sample_identity):
        summary = summarize_identity(sample_identity)

        assert summary == {
            "individualId": "8267411571",
            "name": "Siddharth K Mansour",
            "email": "siddharth@example.org",
            "phone": "+919876543210",
            "dateOfBirth": "1987/11/25",
            "country": "Morocco",
            "region": "Rabat",
            "gender": "Male",
            "createdAt": "2024-05-01T10:00:00Z",
        }

    def test_never_exposes_sensitive_fields(self, sample_identity):
        summary = summarize_identity(sample_identity)

        assert not SENSITIVE_FIELDS & set(summary)
        for secret in ("s3cret", "545411", "iVBORw0KGgoAAA"):
            assert secret not in json.dumps(summary)

    def test_secrets_hidden_inside_odd_shapes_do_not_leak(self):
        summary = summarize_identity({
            "individualId": "1",
            "email": {"password": "s3cret"},
            "fullName": [{"language": "eng", "value": {"pin": "1234"}}],
        })

        assert "s3cret" not in json.dumps(summary)
        assert "1234" not in json.dumps(summary)
        assert summary["email"] is None

    def test_name_falls_back_to_given_name_then_id(self):
        assert summarize_identity({"individualId": "9", "givenName": "Ana"})["name"] == "Ana"
        assert summarize_identity({"individualId": "9"})["name"] == "9"

    def test_non_object_has_no_summary(self):
        assert summarize_identity(["not", "a", "dict"]) is None

    def test_sanitize_strips_nested_secrets(self, sample_identity):
        nested = {**sample_identity, "documents": [{"pin": "1", "type": "card"}]}

        cleaned = sanitize_identity(nested)

        assert "password" not in cleaned
        assert "encodedPhoto" not in cleaned
        assert cleaned["documents"] == [{"type": "card"}]
        assert cleaned["email"] == "siddharth@example.org"


class TestParseIdentityJson:
    def test_accepts_text_bytes_and_dict(self):
        assert parse_identity_json('{"a": 1}') == {"a": 1}
        assert parse_identity_json(b'{"a": 1}') == {"a": 1}
        assert parse_identity_json(memoryview(b'{"a": 1}')) == {"a": 1}
        assert parse_identity_json({"a": 1}) == {"a": 1}

    def test_rejects_invalid(self):
        with pytest.raises(ValueError):
            parse_identity_json("{broken")
        with pytest.raises(ValueError):
            parse_identity_json("[1, 2]")
        with pytest.raises(ValueError):
            parse_identity_json(None)


# ─────────────────────────────────────────────────────────────────
# Listing
# ─────────────────────────────────────────────────────────────────


class TestListIdentities:
    @pytest.mark.asyncio
    async def test_defaults_to_100_from_offset_0(self, service, pg):
        await service.list_identities()

        query, params = pg.fetch_all.call_args[0]
        assert "ORDER BY individual_id DESC" in query
        assert params == (0, 100)

    @pytest.mark.asyncio
    async def test_limit_capped_at_500(self, service, pg):
        await service.list_identities(limit="10000", offset="20")

        assert pg.fetch_all.call_args[0][1] == (20, 500)

    @pytest.mark.parametrize(
        "limit, offset, expected",
        [
            ("abc", "-5", (100, 0)),
            (0, None, (100, 0)),
            ("25", "5", (25, 5)),
            (-3, 0, (1, 0)),
        ],
    )
    def test_normalize_page(self, limit, offset, expected):
        assert IdentityService.normalize_page(limit, offset) == expected

    @pytest.mark.asyncio
    async def test_unparsable_rows_dropped(self, service, pg, sample_identity):
        pg.fetch_all.return_value = [
            {"individual_id": "1", "identity_json": json.dumps(sample_identity)},
            {"individual_id": "2", "identity_json": "{not json"},
        ]

        result = await service.list_identities()

        assert result["total"] == 1
        assert result["items"][0]["individualId"] == "8267411571"
        assert "warning" not in result

    @pytest.mark.asyncio
    async def test_postgres_down_degrades(self, service, pg):
        pg.fetch_all.side_effect = DatabaseUnavailableError("down")

        result = await service.list_identities()

        assert result == {"items": [], "total": 0, "warning": "postgres_unavailable"}


class TestGetIdentity:
    @pytest.mark.asyncio
    async def test_returns_summary_and_sanitized_identity(self, service, pg, sample_identity):
        pg.fetch_all.return_value = [{"identity_json": sample_identity}]

        result = await service.get_identity("8267411571")

        assert result["individualId"] == "8267411571"
        assert result["summary"]["name"] == "Siddharth K Mansour"
        assert "pin" not in result["identity"]
        assert pg.fetch_all.call_args[0][1] == ("8267411571",)

    @pytest.mark.asyncio
    async def test_not_found(self, service, pg):
        pg.fetch_all.return_value = []

        with pytest.raises(NotFoundException) as exc_info:
            await service.get_identity("missing")

        assert exc_info.value.code == "not_found"

    @pytest.mark.asyncio
    async def test_postgres_down(self, service, pg):
        pg.fetch_all.side_effect = DatabaseUnavailableError("down")

        with pytest.raises(ServiceUnavailableException) as exc_info:
            await service.get_identity("1")

        assert exc_info.value.status_code == 503
        assert exc_info.value.code == "postgres_unavailable"

    @pytest.mark.asyncio
    async def test_parse_error(self, service, pg):
        pg.fetch_all.return_value = [{"identity_json": "{broken"}]

        with pytest.raises(InternalServerException) as exc_info:
            await service.get_identity("1")

        assert exc_info.value.code == "parse_error"
