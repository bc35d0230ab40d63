"""
DynamoDB-backed job metadata store.

Holds one short-lived record per accepted provider task describing where
its output must be relayed. Records are written at submission, claimed
with a conditional update when the task is first seen as succeeded, and
deleted once the relay is done.

Dependencies: boto3
System role: Job metadata store adapter
"""

import asyncio
import logging
import time
from typing import Callable

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from media_studio.configs.job_store import JobStoreSettings
from media_studio.core.exceptions import JobRecordNotFoundError, JobRecordStoreError
from media_studio.models.job import AssetKind, JobRecord

logger = logging.getLogger(__name__)


class JobRecordStore:
    """Job record table keyed by provider task id."""

    def __init__(
        self,
        table,
        ttl_seconds: int = 86400,
        claim_lease_seconds: int = 300,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize job record store.

        Args:
            table: boto3 DynamoDB Table resource
            ttl_seconds: Lifetime stamped on each record as expires_at
            claim_lease_seconds: Age after which a claim may be taken over
            clock: Epoch-seconds source
        """
        self._table = table
        self._ttl_seconds = ttl_seconds
        self._claim_lease_seconds = claim_lease_seconds
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: JobStoreSettings) -> "JobRecordStore":
        resource = boto3.resource(
            "dynamodb",
            region_name=settings.region,
            endpoint_url=settings.endpoint_url,
        )
        return cls(
            resource.Table(settings.table),
            ttl_seconds=settings.ttl_seconds,
            claim_lease_seconds=settings.claim_lease_seconds,
        )

    async def put(self, task_id: str, record: JobRecord) -> None:
        """
        Register a pending job.

        Args:
            task_id: Provider task id
            record: Destination metadata

        Raises:
            JobRecordStoreError: If the write fails
        """
        now = int(self._clock())
        item = {
            "task_id": task_id,
            "type": record.asset_kind.value,
            "r2_key": record.destination_key,
            "r2_public_url": record.public_base_url,
            "created_at": now,
            "expires_at": now + self._ttl_seconds,
        }
        await self._call("put", self._table.put_item, Item=item)
        logger.info(
            "Job record stored",
            extra={"task_id": task_id, "asset_kind": record.asset_kind.value, "key": record.destination_key},
        )

    async def get(self, task_id: str) -> JobRecord | None:
        """Read a record, or None when absent."""
        response = await self._call(
            "get", self._table.get_item, Key={"task_id": task_id}, ConsistentRead=True
        )
        item = response.get("Item")
        if not item or not item.get("r2_key"):
            return None
        return _to_record(item)

    async def claim(self, task_id: str) -> JobRecord | None:
        """
        Take the exclusive right to reconcile a task.

        Stamps claimed_at when the record exists and is unclaimed, or its
        claim is older than the lease.

        Returns:
            JobRecord | None: The record when claimed, None when another
                reconciliation holds a live claim

        Raises:
            JobRecordNotFoundError: No record exists for the task
            JobRecordStoreError: If the store cannot be reached
        """
        now = int(self._clock())
        try:
            response = await asyncio.to_thread(
                self._table.update_item,
                Key={"task_id": task_id},
                UpdateExpression="SET claimed_at = :now",
                ConditionExpression=(
                    "attribute_exists(task_id) AND "
                    "(attribute_not_exists(claimed_at) OR claimed_at < :stale)"
                ),
                ExpressionAttributeValues={
                    ":now": now,
                    ":stale": now - self._claim_lease_seconds,
                },
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if _error_code(e) != "ConditionalCheckFailedException":
                raise JobRecordStoreError(
                    f"Failed to claim job record for task {task_id}: {e}", operation="claim"
                ) from e
            if await self.get(task_id) is None:
                raise JobRecordNotFoundError(task_id) from e
            logger.info("Job record already claimed", extra={"task_id": task_id})
            return None
        except BotoCoreError as e:
            raise JobRecordStoreError(
                f"Failed to claim job record for task {task_id}: {e}", operation="claim"
            ) from e

        attributes = response.get("Attributes") or {}
        if not attributes.get("r2_key"):
            raise JobRecordNotFoundError(task_id)
        return _to_record(attributes)

    async def release(self, task_id: str) -> None:
        """Drop a claim so a later status check can retry the relay."""
        await self._call(
            "release",
            self._table.update_item,
            Key={"task_id": task_id},
            UpdateExpression="REMOVE claimed_at",
        )

    async def delete(self, task_id: str) -> None:
        """Delete a record. Deleting an absent record is a no-op."""
        await self._call("delete", self._table.delete_item, Key={"task_id": task_id})
        logger.info("Job record deleted", extra={"task_id": task_id})

    async def _call(self, operation: str, fn, **kwargs):
        try:
            return await asyncio.to_thread(fn, **kwargs)
        except (ClientError, BotoCoreError) as e:
            raise JobRecordStoreError(
                f"Job record store {operation} failed: {e}", operation=operation
            ) from e


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


def _to_record(item: dict) -> JobRecord:
    return JobRecord(
        asset_kind=AssetKind(item["type"]),
        destination_key=item["r2_key"],
        public_base_url=item["r2_public_url"],
    )
