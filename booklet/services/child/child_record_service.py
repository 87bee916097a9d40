"""
Child record storage.

Records are captured offline on the device and uploaded in batches. Writes
are insert-if-absent upserts keyed by the client-assigned healthId, so a
batch can be resubmitted any number of times without creating duplicates.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

logger = logging.getLogger(__name__)

STATUS_UPLOADED = "uploaded"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"

# Fields copied verbatim when present; falsy values become None
_TEXT_FIELDS = (
    "name",
    "guardianName",
    "guardianPhone",
    "guardianRelation",
    "idReference",
    "malnutritionSigns",
    "recentIllnesses",
)

# Numeric fields where 0 is a real value
_NUMERIC_FIELDS = ("ageMonths", "heightCm", "weightKg")


class ChildRecordService:
    """
    Manages the child_records collection.
    """

    COLLECTION = "child_records"
    MAX_PHOTO_CHARS = 1_000_000
    RECORD_VERSION = 1

    INDEXES = [
        ([("healthId", 1)], {"unique": True}),
        ([("createdAt", -1)], {}),
    ]

    def __init__(self, db: AsyncIOMotorDatabase):
        """
        Initialize ChildRecordService.

        Args:
            db: MongoDB database connection
        """
        self._db = db
        self._records_collection = db[self.COLLECTION]

    def build_document(
        self,
        record: Dict[str, Any],
        uploader: Dict[str, Optional[str]],
        now_iso: str,
    ) -> Dict[str, Any]:
        """
        Normalize an uploaded record into the stored document shape.

        Oversized or non-string photos are dropped rather than stored.
        """
        doc: Dict[str, Any] = {"healthId": record["healthId"]}

        for field in _TEXT_FIELDS:
            doc[field] = record.get(field) or None

        for field in _NUMERIC_FIELDS:
            doc[field] = record.get(field)

        photo = record.get("facePhoto") or None
        if photo is not None and not isinstance(photo, str):
            logger.warning(f"Dropping non-string facePhoto for {record['healthId']}")
            photo = None
        elif photo is not None and len(photo) > self.MAX_PHOTO_CHARS:
            logger.warning(
                f"Dropping oversized facePhoto for {record['healthId']} ({len(photo)} chars)"
            )
            photo = None
        doc["facePhoto"] = photo

        doc["parentalConsent"] = bool(record.get("parentalConsent"))
        doc["createdAt"] = record.get("createdAt") or now_iso
        doc["uploadedAt"] = now_iso
        doc["uploaderName"] = uploader.get("name")
        doc["uploaderEmail"] = uploader.get("email")
        doc["version"] = record.get("version") or self.RECORD_VERSION
        return doc

    async def upsert_record(
        self,
        record: Dict[str, Any],
        uploader: Dict[str, Optional[str]],
        now_iso: str,
    ) -> Dict[str, Any]:
        """
        Insert a record unless one with the same healthId exists.

        Returns:
            Per-record outcome: {healthId?, status, created?, reason?}
        """
        if not isinstance(record, dict):
            return {"status": STATUS_SKIPPED, "reason": "invalid_record"}

        health_id = record.get("healthId")
        if health_id is None or health_id == "":
            return {"status": STATUS_SKIPPED, "reason": "missing_healthId"}

        # Numbers and objects never reach the filter (operator injection)
        if not isinstance(health_id, str):
            return {"status": STATUS_SKIPPED, "reason": "invalid_healthId"}

        doc = self.build_document(record, uploader, now_iso)

        try:
            result = await self._records_collection.update_one(
                {"healthId": health_id},
                {"$setOnInsert": doc},
                upsert=True,
            )
        except DuplicateKeyError:
            # Lost an insert race against a concurrent upload of the same record
            return {"healthId": health_id, "status": STATUS_UPLOADED, "created": False}
        except PyMongoError as e:
            logger.error(f"Failed to store child record {health_id}: {e}")
            return {"healthId": health_id, "status": STATUS_FAILED, "reason": str(e)}

        return {
            "healthId": health_id,
            "status": STATUS_UPLOADED,
            "created": result.upserted_id is not None,
        }

    async def batch_upload(
        self,
        records: List[Any],
        uploader: Dict[str, Optional[str]],
    ) -> Dict[str, Any]:
        """
        Upsert every record and summarize the outcomes.

        Args:
            records: Raw records from the client
            uploader: {name, email} of the authenticated uploader

        Returns:
            dict with summary counts and per-record results
        """
        now_iso = datetime.now(timezone.utc).isoformat()
        results = []

        for record in records:
            results.append(await self.upsert_record(record, uploader, now_iso))

        summary = {
            "total": len(records),
            "uploaded": sum(1 for r in results if r["status"] == STATUS_UPLOADED),
            "created": sum(1 for r in results if r.get("created")),
            "failed": sum(1 for r in results if r["status"] == STATUS_FAILED),
            "skipped": sum(1 for r in results if r["status"] == STATUS_SKIPPED),
        }

        logger.info(
            f"Batch upload by {uploader.get('email') or uploader.get('name')}: {summary}"
        )
        return {"summary": summary, "results": results}

    async def count(self) -> int:
        """Total number of stored records."""
        return await self._records_collection.count_documents({})

    async def recent_uploads(
        self,
        limit: int = 5,
        fields: tuple = ("healthId", "name", "uploadedAt"),
    ) -> List[Dict[str, Any]]:
        """Most recently uploaded records, projected to `fields`."""
        projection = {"_id": 0, **{f: 1 for f in fields}}
        cursor = (
            self._records_collection.find({}, projection)
            .sort("uploadedAt", -1)
            .limit(limit)
        )
        return await cursor.to_list(length=limit)

    async def search(self, query: str) -> Optional[Dict[str, Any]]:
        """
        Find a record by exact healthId, falling back to a name prefix.

        The name match is case-insensitive; the query is escaped so it is
        matched literally.
        """
        record = await self._records_collection.find_one({"healthId": query})

        if not record:
            record = await self._records_collection.find_one(
                {"name": {"$regex": f"^{re.escape(query)}", "$options": "i"}}
            )

        if record:
            record.pop("_id", None)
        return record
