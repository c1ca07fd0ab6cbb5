"""
Sync Run Report
Aggregates per-collection results and writes the end-of-run summary to the log
"""
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..core.models import TransferResult, TransferRole

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    """Everything a run produced, for logging only"""
    source_db: str = ""
    target_db: str = ""
    method: str = ""
    collections: List[str] = field(default_factory=list)
    results: List[TransferResult] = field(default_factory=list)
    verification: Dict[str, Optional[int]] = field(default_factory=dict)
    fallback_used: bool = False
    success: bool = False
    error: Optional[str] = None
    start_time: float = field(default_factory=time.time)
    end_time: Optional[float] = None

    @property
    def duration(self) -> float:
        end = self.end_time if self.end_time is not None else time.time()
        return end - self.start_time

    def add(self, result: TransferResult):
        self.results.append(result)

    def results_for(self, role: TransferRole) -> List[TransferResult]:
        return [r for r in self.results if r.role == role]

    def finish(self, success: bool, error: Optional[str] = None):
        self.success = success
        self.error = error
        self.end_time = time.time()

    def get_summary(self) -> Dict[str, Any]:
        successful = [r for r in self.results if r.success]
        documents = [r.documents_processed for r in self.results if r.documents_processed is not None]
        return {
            "source_db": self.source_db,
            "target_db": self.target_db,
            "method": self.method,
            "fallback_used": self.fallback_used,
            "collections": len(self.collections),
            "tasks": len(self.results),
            "successful_tasks": len(successful),
            "documents_transferred": sum(documents) if documents else None,
            "documents_failed": sum(r.documents_failed for r in self.results),
            "verified_collections": sum(1 for c in self.verification.values() if c is not None),
            "duration_seconds": round(self.duration, 2),
            "success": self.success,
        }

    def log_summary(self, max_parallel: int, batch_size: int):
        total_ms = int(self.duration * 1000)
        summary = self.get_summary()

        logger.info("🎉 Database synchronization completed successfully!")
        logger.info(f"⏱️  Total execution time: {total_ms}ms ({round(total_ms / 1000)}s)")
        logger.info("📊 Performance Summary:")
        logger.info(f"   - Source: {self.source_db} (remote)")
        logger.info(f"   - Target: {self.target_db} (local)")
        logger.info(f"   - Collections synced: {len(self.collections)}")
        logger.info(f"   - Method: {self.method}{' (fallback)' if self.fallback_used else ''}")
        logger.info(f"   - Max Parallel: {max_parallel}")
        logger.info(f"   - Batch Size: {batch_size:,}")
        for role in TransferRole:
            role_results = self.results_for(role)
            if role_results:
                completed = sum(1 for r in role_results if r.success)
                logger.info(f"   - {role.value.capitalize()}: {completed}/{len(role_results)} collections")
        if summary["documents_transferred"] is not None:
            logger.info(f"   - Documents transferred: {summary['documents_transferred']:,}")
        if summary["documents_failed"]:
            logger.warning(f"   - Documents rejected by unordered inserts: {summary['documents_failed']:,}")
        logger.info(f"   - Collections: {', '.join(self.collections)}")

        for result in self.results:
            logger.debug(f"   • {result.role.value} {result.collection}: {result.elapsed_ms}ms")


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()
