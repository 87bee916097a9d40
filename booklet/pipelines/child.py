"""
Child record pipeline functions.
"""

import logging
from typing import Any, Dict, List, Optional

from pymongo.errors import PyMongoError

from common.auth import AdminSession
from common.utils import degraded_response
from common.utils.exceptions import BadRequestException, ServiceUnavailableException
from booklet.services.child import ChildRecordService

logger = logging.getLogger(__name__)

RECENT_RECORDS_LIMIT = 5


def uploader_from_session(
    session: AdminSession,
    uploader_name: Optional[str] = None,
) -> Dict[str, Optional[str]]:
    """
    Attribute uploads to the signed-in user.

    eSignet sessions carry name/email claims; admin sessions only have a
    username, which doubles as the name.
    """
    claims = session.claims or {}
    return {
        "name": claims.get("name") or uploader_name or session.username,
        "email": claims.get("email"),
    }


async def batch_upload_pipeline(
    child_records: ChildRecordService,
    session: AdminSession,
    records: List[Any],
    uploader_name: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Upload a batch of offline-captured records.

    Raises:
        BadRequestException: the batch is empty
    """
    if not records:
        raise BadRequestException(message="No records provided", code="no_records")

    uploader = uploader_from_session(session, uploader_name)
    return await child_records.batch_upload(records, uploader)


async def stats_pipeline(child_records: ChildRecordService) -> Dict[str, Any]:
    """Record count and latest uploads; zero/empty with a warning if Mongo fails."""
    try:
        total = await child_records.count()
        recent = await child_records.recent_uploads(
            limit=RECENT_RECORDS_LIMIT,
            fields=("healthId", "name", "uploadedAt", "uploaderName"),
        )
    except PyMongoError as e:
        logger.error(f"Failed to read child record stats: {e}")
        return degraded_response({"total": 0, "recent": []}, "mongo_unavailable")

    return {"total": total, "recent": recent}


async def search_pipeline(child_records: ChildRecordService, query: Optional[str]) -> Dict[str, Any]:
    """
    Look a record up by healthId or name prefix.

    Raises:
        BadRequestException: empty query
        ServiceUnavailableException: MongoDB failed during the lookup
    """
    query = (query or "").strip()
    if not query:
        raise BadRequestException(message="Search query is required", code="missing_query")

    try:
        record = await child_records.search(query)
    except PyMongoError as e:
        logger.error(f"Child record search failed: {e}")
        raise ServiceUnavailableException(
            message="Record storage unavailable",
            code="mongo_unavailable",
        )

    return {"found": record is not None, "record": record}
