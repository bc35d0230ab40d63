"""
AWS boundary modules.

Exports: ObjectStore, JobRecordStore
"""

from .job_record_store import JobRecordStore
from .object_store import ObjectStore

__all__ = ["JobRecordStore", "ObjectStore"]
