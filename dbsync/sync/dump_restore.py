"""
Dump/Restore Strategy
One mongodump and one mongorestore invocation per collection through a shared working directory
"""
import asyncio
import logging
import shutil
import time
from pathlib import Path
from typing import List, Optional

from ..config.manager import SyncConfig
from ..core.models import TransferResult, TransferRole, TransferTask
from ..core.process import CommandRunner
from .strategies import BaseTransferStrategy

logger = logging.getLogger(__name__)


class DumpRestoreStrategy(BaseTransferStrategy):
    """
    Export every collection with mongodump, then import each with mongorestore --drop

    Restores are destructive: the destination collection is dropped before
    loading, so repeated runs converge to the same state but readers of the
    destination may observe an empty collection mid-run.
    """

    name = "Dump/Restore"
    phases = (TransferRole.EXPORT, TransferRole.IMPORT)

    def __init__(self, config: SyncConfig, source_db: str, target_db: str,
                 runner: Optional[CommandRunner] = None):
        super().__init__(config, source_db, target_db)
        self.runner = runner or CommandRunner()
        self.dump_dir = Path(config.dump_dir)

    @property
    def method_name(self) -> str:
        return "Parallel Dump/Restore" if self.config.use_parallel else "Sequential Dump/Restore"

    def dump_path(self, collection: str) -> Path:
        return self.dump_dir / self.source_db / f"{collection}.bson"

    def build_export_command(self, collection: str) -> List[str]:
        command = [
            self.config.mongodump_path,
            f"--uri={self.config.remote_uri}",
            f"--collection={collection}",
            f"--out={self.dump_dir}",
        ]
        if self.config.use_parallel:
            command.append("--numParallelCollections=1")
        return command

    def build_import_command(self, collection: str) -> List[str]:
        command = [
            self.config.mongorestore_path,
            f"--uri={self.config.local_uri}",
            f"--db={self.target_db}",
            f"--collection={collection}",
            "--drop",
        ]
        if self.config.use_parallel:
            command.extend([
                "--numParallelCollections=4",
                f"--numInsertionWorkersPerCollection={self.config.insertion_workers}",
            ])
        command.append(str(self.dump_path(collection)))
        return command

    async def prepare(self):
        """Create an empty working directory, removing leftovers from earlier runs"""
        logger.info("📁 Setting up temporary directory...")
        loop = asyncio.get_running_loop()
        if self.dump_dir.exists():
            logger.info("🗑️  Removing existing temp directory...")
            await loop.run_in_executor(None, shutil.rmtree, self.dump_dir)
        await loop.run_in_executor(None, lambda: self.dump_dir.mkdir(parents=True, exist_ok=True))
        self.prepared = True
        logger.info(f"✅ Temporary directory prepared: {self.dump_dir}")

    async def run_task(self, task: TransferTask) -> TransferResult:
        if task.role == TransferRole.EXPORT:
            return await self.export_collection(task)
        if task.role == TransferRole.IMPORT:
            return await self.import_collection(task)
        raise ValueError(f"{self.name} cannot run {task.role.value} tasks")

    async def export_collection(self, task: TransferTask) -> TransferResult:
        result = await self.runner.run(
            self.build_export_command(task.collection),
            f"Dumping {task.collection}",
            timeout_ms=self.config.command_timeout_ms,
            stream_progress=True
        )
        return TransferResult(task.collection, TransferRole.EXPORT, True, result.execution_time_ms)

    async def import_collection(self, task: TransferTask) -> TransferResult:
        result = await self.runner.run(
            self.build_import_command(task.collection),
            f"Restoring {task.collection}",
            timeout_ms=self.config.command_timeout_ms,
            stream_progress=True
        )
        return TransferResult(task.collection, TransferRole.IMPORT, True, result.execution_time_ms)

    async def cleanup(self):
        """Remove the working directory if this run created it"""
        if not self.prepared:
            return
        logger.info("🧹 Cleaning up temporary files...")
        start_time = time.time()
        try:
            await asyncio.get_running_loop().run_in_executor(None, shutil.rmtree, self.dump_dir)
            cleanup_time = int((time.time() - start_time) * 1000)
            logger.info(f"✅ Temporary files cleaned up in {cleanup_time}ms")
        except FileNotFoundError:
            logger.info("✅ Temporary directory already removed")
        except OSError as e:
            logger.warning(f"⚠️  Warning: Could not clean up temp directory: {e}")
        finally:
            self.prepared = False
