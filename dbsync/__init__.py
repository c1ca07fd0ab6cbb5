"""
Media Database Sync
Copies the content collections of the streaming platform database between deployments
"""

__version__ = "1.0.0"

# Core components
from .core.exceptions import (
    SyncError,
    ConfigError,
    ProcessTimeout,
    ProcessError,
    FallbackRequired,
    VerificationWarning
)
from .core.process import CommandRunner, CommandResult
from .core.limiter import ConcurrencyLimiter
from .core.models import TransferRole, TransferTask, TransferResult

# Configuration management
from .config.manager import (
    ConfigManager,
    SyncConfig,
    DEFAULT_COLLECTIONS,
    extract_database_name,
    validate_connection_settings
)

# Sync
from .sync.strategies import BaseTransferStrategy
from .sync.dump_restore import DumpRestoreStrategy
from .sync.direct import DirectTransferStrategy, transfer_collection
from .sync.verifier import CollectionVerifier
from .sync.engine import SyncOrchestrator, SyncState

# Monitoring
from .monitoring.report import SyncReport

__all__ = [
    # Core
    "SyncError",
    "ConfigError",
    "ProcessTimeout",
    "ProcessError",
    "FallbackRequired",
    "VerificationWarning",
    "CommandRunner",
    "CommandResult",
    "ConcurrencyLimiter",
    "TransferRole",
    "TransferTask",
    "TransferResult",

    # Configuration
    "ConfigManager",
    "SyncConfig",
    "DEFAULT_COLLECTIONS",
    "extract_database_name",
    "validate_connection_settings",

    # Sync
    "BaseTransferStrategy",
    "DumpRestoreStrategy",
    "DirectTransferStrategy",
    "transfer_collection",
    "CollectionVerifier",
    "SyncOrchestrator",
    "SyncState",

    # Monitoring
    "SyncReport"
]
