"""
Direct Transfer Strategy
Copies documents collection by collection over live connections in unordered batches
"""
import logging
import math
import sys
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from tqdm import tqdm

from ..config.manager import SyncConfig
from ..core.database import DatabaseConfig, MongoDatabaseClient, copy_indexes, drop_if_exists
from ..core.models import TransferResult, TransferRole, TransferTask
from .strategies import BaseTransferStrategy

logger = logging.getLogger(__name__)


@dataclass
class CollectionTransferStats:
    """Counters for one collection copy"""
    total: int
    processed: int = 0
    failed: int = 0
    insert_calls: int = 0

    @property
    def percentage(self) -> float:
        return progress_percentage(self.processed, self.total)


def progress_percentage(processed: int, total: int) -> float:
    """processed / total as a percentage truncated to one decimal; an empty source is 100%"""
    if total <= 0:
        return 100.0
    return math.floor(processed * 1000 / total) / 10


async def _insert_batch(target_collection, batch: List[Dict[str, Any]],
                        stats: CollectionTransferStats, collection_name: str):
    from pymongo.errors import BulkWriteError

    stats.insert_calls += 1
    try:
        await target_collection.insert_many(batch, ordered=False)
    except BulkWriteError as e:
        # Unordered inserts keep going past bad documents; count what was rejected
        rejected = len(e.details.get("writeErrors", []))
        stats.failed += rejected
        logger.warning(f"⚠️  {collection_name}: {rejected} of {len(batch)} documents rejected "
                       f"in batch {stats.insert_calls}")
    stats.processed += len(batch)


async def transfer_collection(source_collection, target_collection, collection_name: str,
                              batch_size: int = 1000, position: Optional[int] = None) -> CollectionTransferStats:
    """
    Drop the target, then stream every source document into it in batches

    ``position`` pins the progress bar to its own terminal line when several
    collections are copied at once.
    """
    if not await drop_if_exists(target_collection):
        logger.debug(f"   {collection_name} did not exist in the destination")

    total = await source_collection.count_documents({})
    logger.info(f"   📊 Total documents to transfer: {total:,}")
    stats = CollectionTransferStats(total=total)

    pbar = tqdm(
        total=total,
        desc=f"📦 {collection_name}",
        unit="docs",
        unit_scale=True,
        ncols=120,
        colour='blue',
        leave=True,
        position=position,
        file=sys.stdout
    )
    try:
        batch: List[Dict[str, Any]] = []
        async for document in source_collection.find({}, batch_size=batch_size):
            batch.append(document)
            if len(batch) >= batch_size:
                await _insert_batch(target_collection, batch, stats, collection_name)
                pbar.update(len(batch))
                pbar.set_postfix_str(f"{stats.percentage:.1f}%")
                logger.debug(f"   📊 Progress: {stats.processed:,}/{total:,} ({stats.percentage:.1f}%)")
                batch = []

        if batch:
            await _insert_batch(target_collection, batch, stats, collection_name)
            pbar.update(len(batch))
    finally:
        pbar.close()

    logger.info(f"   ✅ Transferred {stats.processed:,} documents ({stats.percentage:.1f}%)")
    return stats


class DirectTransferStrategy(BaseTransferStrategy):
    """
    Document-by-document copy without an intermediate dump

    Requires the async driver; when it cannot be imported prepare() raises
    FallbackRequired and the orchestrator switches to dump/restore.
    """

    name = "Direct Transfer"
    phases = (TransferRole.DIRECT_COPY,)

    def __init__(self, config: SyncConfig, source_db: str, target_db: str,
                 source_client: Optional[MongoDatabaseClient] = None,
                 target_client: Optional[MongoDatabaseClient] = None):
        super().__init__(config, source_db, target_db)
        self.source_client = source_client or MongoDatabaseClient(
            DatabaseConfig(config.remote_uri, source_db, role="source")
        )
        self.target_client = target_client or MongoDatabaseClient(
            DatabaseConfig(config.local_uri, target_db, role="target")
        )

    async def prepare(self):
        logger.info("🔄 Starting direct database transfer (in-memory)...")
        self.prepared = True
        await self.source_client.connect()
        await self.target_client.connect()

    async def run_task(self, task: TransferTask) -> TransferResult:
        if task.role != TransferRole.DIRECT_COPY:
            raise ValueError(f"{self.name} cannot run {task.role.value} tasks")

        start_time = time.time()
        source_collection = self.source_client.collection(task.collection)
        target_collection = self.target_client.collection(task.collection)

        stats = await transfer_collection(
            source_collection, target_collection, task.collection, self.config.batch_size,
            position=task.index - 1 if self.config.use_parallel else None
        )
        if self.config.copy_indexes:
            index_stats = await copy_indexes(source_collection, target_collection)
            if index_stats["created"] or index_stats["failed"]:
                logger.info(f"   🔧 Indexes for {task.collection}: {index_stats['created']} created, "
                            f"{index_stats['failed']} failed")

        return TransferResult(
            collection=task.collection,
            role=TransferRole.DIRECT_COPY,
            success=True,
            elapsed_ms=int((time.time() - start_time) * 1000),
            documents_processed=stats.processed,
            documents_failed=stats.failed
        )

    async def cleanup(self):
        if not self.prepared:
            return
        for client in (self.source_client, self.target_client):
            try:
                await client.disconnect()
            except Exception as e:
                logger.warning(f"⚠️  Could not close {client.config.role} connection: {e}")
        self.prepared = False
