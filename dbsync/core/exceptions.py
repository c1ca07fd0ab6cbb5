"""
Sync Error Taxonomy
Exceptions raised by the command runner, strategies and orchestrator
"""
from typing import Optional


class SyncError(Exception):
    """Base class for all sync failures"""


class ConfigError(SyncError):
    """Missing or invalid connection settings"""

    def __init__(self, message: str, missing: Optional[list] = None):
        super().__init__(message)
        self.missing = list(missing or [])


class ProcessTimeout(SyncError):
    """An external command did not exit before its timeout"""

    def __init__(self, description: str, timeout_ms: int):
        super().__init__(f"{description} timed out after {timeout_ms / 1000:.0f}s")
        self.description = description
        self.timeout_ms = timeout_ms


class ProcessError(SyncError):
    """An external command exited with a non-zero code"""

    def __init__(self, description: str, returncode: int, stderr: str = ""):
        super().__init__(f"{description} failed with exit code {returncode}")
        self.description = description
        self.returncode = returncode
        self.stderr = stderr


class FallbackRequired(SyncError):
    """The direct-transfer driver is unavailable; use dump/restore instead"""


class VerificationWarning(SyncError):
    """A document count check failed. Logged, never raised to the caller"""

    def __init__(self, collection: str, reason: str):
        super().__init__(f"Could not verify {collection}: {reason}")
        self.collection = collection
        self.reason = reason
