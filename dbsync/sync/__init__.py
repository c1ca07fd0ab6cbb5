"""
Sync Framework
"""
from .strategies import BaseTransferStrategy
from .dump_restore import DumpRestoreStrategy
from .direct import DirectTransferStrategy
from .verifier import CollectionVerifier
from .engine import SyncOrchestrator, SyncState
