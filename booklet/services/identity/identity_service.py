"""
Read-only lookup of the Postgres mock identity system.
"""

import json
import logging
from typing import Any, Dict, Optional

from common.database import DatabaseUnavailableError, PostgresClient
from common.utils import degraded_response
from common.utils.exceptions import (
    InternalServerException,
    NotFoundException,
    ServiceUnavailableException,
)
from booklet.services.identity.summarizer import sanitize_identity, summarize_identity

logger = logging.getLogger(__name__)

LIST_IDENTITIES_SQL = (
    "SELECT individual_id, identity_json "
    "FROM mockidentitysystem.mock_identity "
    "ORDER BY individual_id DESC OFFSET %s LIMIT %s"
)

GET_IDENTITY_SQL = (
    "SELECT identity_json "
    "FROM mockidentitysystem.mock_identity "
    "WHERE individual_id = %s LIMIT 1"
)


def parse_identity_json(raw: Any) -> Dict[str, Any]:
    """
    Decode a stored identity blob (text, bytes or already-decoded jsonb).

    Raises:
        ValueError: the blob is not a JSON object
    """
    if isinstance(raw, memoryview):
        raw = raw.tobytes()
    if isinstance(raw, (str, bytes, bytearray)):
        raw = json.loads(raw)
    if not isinstance(raw, dict):
        raise ValueError("identity_json is not an object")
    return raw


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class IdentityService:
    """
    Paginated listing and single fetch of mock identities.
    """

    DEFAULT_LIMIT = 100
    MAX_LIMIT = 500

    def __init__(self, pg: PostgresClient):
        """
        Initialize IdentityService.

        Args:
            pg: Postgres client for the mock identity database
        """
        self._pg = pg

    @classmethod
    def normalize_page(cls, limit: Any = None, offset: Any = None) -> tuple:
        """Clamp raw query values to a usable (limit, offset) pair."""
        limit_value = _to_int(limit, 0) or cls.DEFAULT_LIMIT
        limit_value = max(1, min(limit_value, cls.MAX_LIMIT))
        offset_value = max(0, _to_int(offset, 0))
        return limit_value, offset_value

    async def list_identities(
        self,
        limit: Optional[Any] = None,
        offset: Optional[Any] = None,
    ) -> Dict[str, Any]:
        """
        List identity summaries, newest individual id first.

        Rows whose JSON cannot be parsed are left out. When Postgres is
        unreachable an empty page is returned with a warning.
        """
        limit_value, offset_value = self.normalize_page(limit, offset)

        try:
            rows = await self._pg.fetch_all(LIST_IDENTITIES_SQL, (offset_value, limit_value))
        except DatabaseUnavailableError as e:
            logger.warning(f"Identity listing degraded: {e}")
            return degraded_response({"items": [], "total": 0}, "postgres_unavailable")

        items = []
        for row in rows:
            try:
                parsed = parse_identity_json(row.get("identity_json"))
            except ValueError:
                logger.debug(f"Skipping unparsable identity {row.get('individual_id')}")
                continue
            items.append(summarize_identity(parsed))

        return {"items": items, "total": len(items)}

    async def get_identity(self, individual_id: str) -> Dict[str, Any]:
        """
        Fetch one identity with its summary and sanitized full document.

        Raises:
            ServiceUnavailableException: Postgres unreachable
            NotFoundException: no such individual
            InternalServerException: stored JSON is unparsable
        """
        try:
            rows = await self._pg.fetch_all(GET_IDENTITY_SQL, (individual_id,))
        except DatabaseUnavailableError as e:
            logger.warning(f"Identity fetch failed: {e}")
            raise ServiceUnavailableException(
                message="Identity database unavailable",
                code="postgres_unavailable",
            )

        if not rows:
            raise NotFoundException(message="Identity not found", code="not_found")

        try:
            parsed = parse_identity_json(rows[0].get("identity_json"))
        except ValueError as e:
            logger.error(f"Identity {individual_id} has unparsable JSON: {e}")
            raise InternalServerException(
                message="Stored identity could not be parsed",
                code="parse_error",
            )

        return {
            "individualId": individual_id,
            "summary": summarize_identity(parsed),
            "identity": sanitize_identity(parsed),
        }
