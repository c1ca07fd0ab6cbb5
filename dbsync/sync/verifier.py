"""
Collection Verifier
Counts documents in each destination collection for manual comparison against the source
"""
import logging
from typing import Dict, List, Optional, Sequence

from ..config.manager import SyncConfig
from ..core.exceptions import SyncError, VerificationWarning
from ..core.process import CommandRunner

logger = logging.getLogger(__name__)


class CollectionVerifier:
    """Read-only, fail-open document counts via mongosh"""

    def __init__(self, config: SyncConfig, target_db: str, runner: Optional[CommandRunner] = None):
        self.config = config
        self.target_db = target_db
        self.runner = runner or CommandRunner()
        self.warnings: List[VerificationWarning] = []

    def build_count_command(self, collection: str) -> List[str]:
        expression = (f"db.getSiblingDB('{self.target_db}')"
                      f".getCollection('{collection}').countDocuments()")
        return [self.config.mongosh_path, self.config.local_uri, "--quiet", "--eval", expression]

    async def count_collection(self, collection: str) -> int:
        result = await self.runner.run(
            self.build_count_command(collection),
            f"Counting documents in {collection}",
            timeout_ms=self.config.verify_timeout_ms
        )
        lines = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        if not lines:
            raise ValueError("no output from count command")
        return int(lines[-1])

    async def verify(self, collections: Optional[Sequence[str]] = None) -> Dict[str, Optional[int]]:
        """Count every collection; failures are logged as warnings and yield None"""
        logger.info("🔍 Verifying specific collections...")
        counts: Dict[str, Optional[int]] = {}

        for collection in collections or self.config.collections:
            try:
                count = await self.count_collection(collection)
            except (SyncError, ValueError) as e:
                warning = VerificationWarning(collection, str(e))
                self.warnings.append(warning)
                logger.warning(f"⚠️  {warning}")
                counts[collection] = None
                continue

            counts[collection] = count
            logger.info(f"✅ {collection}: {count:,} documents")

        return counts
