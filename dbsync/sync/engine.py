"""
Sync Orchestrator
Validates configuration, runs the selected transfer strategy, verifies and always cleans up
"""
import logging
from enum import Enum
from typing import List, Optional

from ..config.manager import SyncConfig, validate_connection_settings
from ..core.exceptions import FallbackRequired
from ..core.limiter import ConcurrencyLimiter
from ..core.models import TransferResult, TransferRole, TransferTask
from ..core.process import CommandRunner
from ..monitoring.report import SyncReport, utc_timestamp
from .direct import DirectTransferStrategy
from .dump_restore import DumpRestoreStrategy
from .strategies import BaseTransferStrategy
from .verifier import CollectionVerifier

logger = logging.getLogger(__name__)

BANNER = "=" * 70

PHASE_TEXT = {
    TransferRole.EXPORT: ("📥", "dumping", "dumped"),
    TransferRole.IMPORT: ("📤", "restoration", "restored"),
    TransferRole.DIRECT_COPY: ("🔄", "transfer", "transferred"),
}


class SyncState(Enum):
    """Orchestrator lifecycle"""
    VALIDATING = "validating"
    DIRECT_TRANSFER = "direct_transfer"
    EXPORT_RESTORE = "export_restore"
    VERIFYING = "verifying"
    CLEANING_UP = "cleaning_up"
    DONE = "done"
    FAILED = "failed"


class SyncOrchestrator:
    """
    Runs one collection sync:

    VALIDATING -> DIRECT_TRANSFER | EXPORT_RESTORE -> VERIFYING -> CLEANING_UP -> DONE

    Any failure moves to CLEANING_UP -> FAILED and is re-raised. The only
    strategy switch after start is DIRECT_TRANSFER -> EXPORT_RESTORE when the
    async driver is unavailable.
    """

    def __init__(self, config: SyncConfig, runner: Optional[CommandRunner] = None):
        self.config = config
        self.runner = runner or CommandRunner()
        self.state: Optional[SyncState] = None
        self.history: List[SyncState] = []
        self.report = SyncReport(method=config.method_name, collections=list(config.collections))
        self._strategies: List[BaseTransferStrategy] = []
        self._step = 0

    def create_direct_strategy(self, source_db: str, target_db: str) -> BaseTransferStrategy:
        return DirectTransferStrategy(self.config, source_db, target_db)

    def create_dump_restore_strategy(self, source_db: str, target_db: str) -> BaseTransferStrategy:
        return DumpRestoreStrategy(self.config, source_db, target_db, runner=self.runner)

    def create_verifier(self, target_db: str) -> CollectionVerifier:
        return CollectionVerifier(self.config, target_db, runner=self.runner)

    def _transition(self, state: SyncState):
        if self.state is not None:
            logger.debug(f"State: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def log_configuration(self):
        config = self.config
        logger.info(f"🔄 Database Sync started at: {utc_timestamp()}")
        logger.info("📋 Configuration:")
        logger.info(f"  - Remote URI: {'✅ Set' if config.remote_uri else '❌ Missing'}")
        logger.info(f"  - Local URI: {'✅ Set' if config.local_uri else '❌ Missing'}")
        logger.info(f"  - Skip Verification: {'✅ Yes' if config.skip_verification else '❌ No'}")
        logger.info(f"  - Parallel Processing: {'✅ Enabled' if config.use_parallel else '❌ Disabled'}")
        logger.info(f"  - Max Parallel Collections: {config.max_parallel}")
        logger.info(f"  - Direct Transfer Mode: {'✅ Enabled' if config.use_direct_transfer else '❌ Disabled'}")
        logger.info(f"  - Batch Size: {config.batch_size:,}")
        logger.info(f"📦 Collections to sync: {', '.join(config.collections)}")

    async def run(self) -> SyncReport:
        """Run the sync; returns the report or re-raises the first unrecovered error"""
        self.log_configuration()
        logger.info("🎯 Starting database synchronization...")
        error: Optional[BaseException] = None

        try:
            self._transition(SyncState.VALIDATING)
            logger.info("🔍 Validating configuration...")
            source_db, target_db = validate_connection_settings(self.config)
            self.report.source_db = source_db
            self.report.target_db = target_db
            logger.info("✅ Configuration validated successfully")
            logger.info(f"📋 Extracted databases: {source_db} → {target_db}")

            use_dump_restore = not self.config.use_direct_transfer

            if self.config.use_direct_transfer:
                self._transition(SyncState.DIRECT_TRANSFER)
                logger.info("🚀 Mode: Direct Database Transfer")
                logger.info(BANNER)
                try:
                    await self._run_strategy(self.create_direct_strategy(source_db, target_db))
                except FallbackRequired as e:
                    logger.warning(f"⚠️  {e}")
                    logger.info("🔄 Falling back to traditional dump/restore method...")
                    self.report.fallback_used = True
                    use_dump_restore = True

            if use_dump_restore:
                self._transition(SyncState.EXPORT_RESTORE)
                mode = "Parallel Processing" if self.config.use_parallel else "Sequential Processing"
                logger.info(f"🚀 Mode: Dump/Restore with {mode}")
                logger.info(BANNER)
                await self._run_strategy(self.create_dump_restore_strategy(source_db, target_db))

            self._step += 1
            if self.config.skip_verification:
                logger.info(f"⏭️  Step {self._step}: Skipping verification (SKIP_VERIFICATION=true)")
            else:
                self._transition(SyncState.VERIFYING)
                logger.info(f"✅ Step {self._step}: Verifying collections")
                logger.info("=" * 50)
                self.report.verification = await self.create_verifier(target_db).verify()

        except BaseException as e:
            error = e
            logger.error(f"💥 Database synchronization failed: {e}")
            logger.error(f"🔍 Error details: {{'name': '{type(e).__name__}', 'message': '{e}'}}")
            raise

        finally:
            self._transition(SyncState.CLEANING_UP)
            await self._cleanup()
            self.report.finish(error is None, str(error) if error is not None else None)
            self._transition(SyncState.DONE if error is None else SyncState.FAILED)
            if error is None:
                self.report.log_summary(self.config.max_parallel, self.config.batch_size)
            logger.info(f"🏁 Sync finished at: {utc_timestamp()}")
            logger.info(f"⏱️  Total runtime: {int(self.report.duration * 1000)}ms "
                        f"({round(self.report.duration)}s)")

        return self.report

    async def _run_strategy(self, strategy: BaseTransferStrategy):
        self._strategies.append(strategy)
        await strategy.prepare()
        self.report.method = strategy.method_name
        for role in strategy.phases:
            await self._run_phase(strategy, role)

    async def _run_phase(self, strategy: BaseTransferStrategy, role: TransferRole):
        collections = self.config.collections
        total = len(collections)
        icon, noun, past = PHASE_TEXT[role]
        tasks = [TransferTask(name, role, index, total) for index, name in enumerate(collections, start=1)]

        self._step += 1
        if self.config.use_parallel:
            logger.info(f"{icon} Step {self._step}: Parallel collection {noun}")
            logger.info(BANNER)
            logger.info(f"{icon} Processing {total} collections in parallel "
                        f"(max {self.config.max_parallel} concurrent)...")
            limiter = ConcurrencyLimiter(self.config.max_parallel)
            await limiter.run([self._deferred(strategy, task) for task in tasks])
        else:
            logger.info(f"{icon} Step {self._step}: Sequential collection {noun}")
            logger.info(BANNER)
            for task in tasks:
                await self._execute(strategy, task)

        logger.info(f"🎉 All {total} collections {past} successfully!")

    def _deferred(self, strategy: BaseTransferStrategy, task: TransferTask):
        return lambda: self._execute(strategy, task)

    async def _execute(self, strategy: BaseTransferStrategy, task: TransferTask) -> TransferResult:
        try:
            result = await strategy.execute(task)
        except Exception as e:
            self.report.add(TransferResult(task.collection, task.role, False, 0, error=str(e)))
            raise
        self.report.add(result)
        return result

    async def _cleanup(self):
        for strategy in self._strategies:
            try:
                await strategy.cleanup()
            except Exception as e:
                logger.warning(f"⚠️  Cleanup of {strategy.name} failed: {e}")
