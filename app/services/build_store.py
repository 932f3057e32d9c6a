"""
Build Store
===========
Persistence for BuildRecord rows.

The dispatcher treats the store as optional bookkeeping: save() reports
its outcome as a SideEffect instead of raising, so an unavailable table
never blocks a build. get() raises StoreError on backend failure and
leaves the policy to the caller.

Backends:
    DynamoBuildStore: boto3 DynamoDB table (AWS_DYNAMODB_TABLE)
    NoOpBuildStore:   default when no table is configured; nothing is kept,
                       so every status lookup misses
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import Settings
from app.core.errors import StoreError
from app.models.build_record import BuildRecord
from app.models.side_effect import SideEffect

logger = logging.getLogger(__name__)


class BuildStore(ABC):
    """Pluggable persistence layer for build records."""

    @abstractmethod
    def save(self, record: BuildRecord) -> SideEffect:
        """Persist a new record. Never raises."""

    @abstractmethod
    def get(self, build_id: str) -> Optional[BuildRecord]:
        """Return the record for build_id, or None. Raises StoreError on backend failure."""


class NoOpBuildStore(BuildStore):
    """Discards all records; needs no configuration."""

    def save(self, record: BuildRecord) -> SideEffect:
        return SideEffect.degrade("record store not configured")

    def get(self, build_id: str) -> Optional[BuildRecord]:
        return None


class DynamoBuildStore(BuildStore):
    """Stores build records in a DynamoDB table keyed by buildId."""

    def __init__(self, table_name: str, region: str = "us-east-1", table: Any = None) -> None:
        self.table_name = table_name
        self._table = table if table is not None else boto3.resource(
            "dynamodb", region_name=region
        ).Table(table_name)

    def save(self, record: BuildRecord) -> SideEffect:
        try:
            self._table.put_item(Item=record.to_item())
        except (BotoCoreError, ClientError) as exc:
            logger.warning("[BUILD:%s] DynamoDB storage failed: %s", record.build_id, exc)
            return SideEffect.degrade(f"DynamoDB put failed: {exc}")
        logger.info("[BUILD:%s] Metadata stored in %s", record.build_id, self.table_name)
        return SideEffect.success()

    def get(self, build_id: str) -> Optional[BuildRecord]:
        try:
            result = self._table.get_item(Key={"buildId": build_id})
        except (BotoCoreError, ClientError) as exc:
            raise StoreError(f"DynamoDB get failed for {build_id}: {exc}") from exc
        item = result.get("Item")
        return BuildRecord.from_item(item) if item else None


def make_build_store(settings: Settings) -> BuildStore:
    if settings.dynamodb_table:
        return DynamoBuildStore(settings.dynamodb_table, region=settings.aws_region)
    return NoOpBuildStore()
