"""
Transfer Strategy Framework
Base class shared by the dump/restore and direct transfer strategies
"""
import logging
import time
from abc import ABC, abstractmethod
from typing import Tuple

from ..config.manager import SyncConfig
from ..core.models import TransferResult, TransferRole, TransferTask

logger = logging.getLogger(__name__)


class BaseTransferStrategy(ABC):
    """
    Abstract base class for transfer strategies

    A strategy declares its ordered phases (one TransferRole each). The
    orchestrator runs every collection through a phase before starting the
    next, either sequentially or through the concurrency limiter. Strategies
    must not raise from cleanup().
    """

    name: str = "base"
    phases: Tuple[TransferRole, ...] = ()

    def __init__(self, config: SyncConfig, source_db: str, target_db: str):
        self.config = config
        self.source_db = source_db
        self.target_db = target_db
        self.prepared = False

    @property
    def method_name(self) -> str:
        return self.name

    async def prepare(self):
        """Provision resources before the first phase"""
        self.prepared = True

    async def cleanup(self):
        """Release resources; errors are logged, never raised"""

    @abstractmethod
    async def run_task(self, task: TransferTask) -> TransferResult:
        """Execute one task; raise on failure"""

    async def execute(self, task: TransferTask) -> TransferResult:
        """Run a task with status logging and timing"""
        logger.info(f"📦 {task.label} Starting {task.role.value}: {task.collection}")
        start_time = time.time()
        try:
            result = await self.run_task(task)
        except Exception as e:
            elapsed = int((time.time() - start_time) * 1000)
            logger.error(f"❌ {task.label} Failed to {task.role.value} {task.collection} after {elapsed}ms: {e}")
            raise
        logger.info(f"✅ {task.label} Successfully completed {task.role.value} of {task.collection} "
                    f"in {result.elapsed_ms}ms")
        return result
