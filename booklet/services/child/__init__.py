"""Child record services."""

from booklet.services.child.child_record_service import ChildRecordService

__all__ = ["ChildRecordService"]
