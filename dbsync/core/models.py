"""
Transfer Data Model
Tasks handed to the limiter and the results they produce
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TransferRole(Enum):
    """What a task does with its collection"""
    EXPORT = "export"
    IMPORT = "import"
    DIRECT_COPY = "direct-copy"


@dataclass(frozen=True)
class TransferTask:
    """A deferred unit of work bound to one collection"""
    collection: str
    role: TransferRole
    index: int
    total: int

    @property
    def label(self) -> str:
        return f"[{self.index}/{self.total}]"


@dataclass
class TransferResult:
    """Outcome of one TransferTask"""
    collection: str
    role: TransferRole
    success: bool
    elapsed_ms: int
    documents_processed: Optional[int] = None
    documents_failed: int = 0
    error: Optional[str] = None
