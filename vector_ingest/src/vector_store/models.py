from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def from_epoch(seconds: Optional[int]) -> datetime:
    if not seconds:
        return _utcnow()
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


class BatchStatus(str, Enum):
    """Processing state of a batch or of a single vector-store file."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, raw: Any) -> "BatchStatus":
        """
        Map a vendor status string into the enum. Anything missing or
        unrecognised is reported as still in progress.
        """
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.IN_PROGRESS

    @property
    def is_terminal(self) -> bool:
        return self is not BatchStatus.IN_PROGRESS


class FileUploadStatus(str, Enum):
    UPLOADED = "uploaded"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class WaitOutcome(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    TIMEOUT = "timeout"


class CamelModel(BaseModel):
    """Serialises with camelCase keys for the HTTP layer."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_response(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class FileUpload(BaseModel):
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"
    size: int = 0


class FileRecord(CamelModel):
    id: str = ""
    filename: str
    status: FileUploadStatus
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow, exclude=True)


class UploadBatchResult(CamelModel):
    vector_store_id: str
    batch_id: Optional[str] = None
    files: list[FileRecord] = Field(default_factory=list)
    batch_error: Optional[str] = None

    @property
    def uploaded_ids(self) -> list[str]:
        return [f.id for f in self.files if f.status is not FileUploadStatus.FAILED]

    @property
    def uploaded_count(self) -> int:
        return len(self.uploaded_ids)

    @property
    def failed_count(self) -> int:
        return len(self.files) - self.uploaded_count

    @property
    def success(self) -> bool:
        return self.batch_id is not None and self.batch_error is None


class BatchStatusResult(CamelModel):
    batch_id: str
    status: BatchStatus = BatchStatus.IN_PROGRESS
    completed_count: int = 0
    in_progress_count: int = 0
    failed_count: int = 0
    cancelled_count: int = 0
    total_count: int = 0


class FileStatusResult(CamelModel):
    id: str
    status: BatchStatus
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow, exclude=True)


class WaitResult(BaseModel):
    batch_id: str
    outcome: WaitOutcome
    last_status: Optional[BatchStatusResult] = None
    elapsed: float = 0.0
    polls: int = 0

    @property
    def succeeded(self) -> bool:
        return self.outcome is WaitOutcome.COMPLETED


class VectorStoreFile(CamelModel):
    id: str
    status: BatchStatus
    created_at: datetime
    filename: Optional[str] = None
    size_bytes: Optional[int] = Field(default=None, exclude=True)
    last_error: Optional[str] = None


class DeletionResult(BaseModel):
    file_id: str
    removed_from_vector_store: bool
    removed_from_file_store: bool


class VectorStoreInfo(BaseModel):
    id: str
    name: Optional[str] = None
    status: Optional[str] = None
    file_counts: dict[str, int] = Field(default_factory=lambda: {"total": 0})
