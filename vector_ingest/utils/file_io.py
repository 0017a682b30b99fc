from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Protocol

from vector_ingest.src.vector_store.models import FileUpload
from vector_ingest.utils.config_loader import get_config

DEFAULT_ALLOWED_MIME_TYPES = (
    "text/plain",
    "text/markdown",
    "text/csv",
    "application/pdf",
    "application/json",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)
MAX_FILE_SIZE = 512 * 1024 * 1024
MAX_FILES_PER_BATCH = 20

# extensions the stdlib mimetypes table does not know everywhere
_EXTRA_TYPES = {".md": "text/markdown", ".markdown": "text/markdown"}


class UploadedFileLike(Protocol):
    filename: str
    content_type: Optional[str]
    size: Optional[int]

    async def to_upload(self) -> FileUpload: ...


@dataclass(frozen=True)
class UploadPolicy:
    allowed_mime_types: frozenset = field(
        default_factory=lambda: frozenset(DEFAULT_ALLOWED_MIME_TYPES)
    )
    max_file_size: int = MAX_FILE_SIZE
    max_files: int = MAX_FILES_PER_BATCH

    @classmethod
    def from_config(cls, config: Optional[dict] = None) -> "UploadPolicy":
        section = (config if config is not None else get_config()).get("ingestion", {})
        return cls(
            allowed_mime_types=frozenset(
                section.get("allowed_mime_types", DEFAULT_ALLOWED_MIME_TYPES)
            ),
            max_file_size=int(section.get("max_file_size", MAX_FILE_SIZE)),
            max_files=int(section.get("max_files_per_batch", MAX_FILES_PER_BATCH)),
        )


def _format_size(num_bytes: int) -> str:
    return f"{num_bytes // (1024 * 1024)}MB"


def validate_uploads(files: List[UploadedFileLike], policy: UploadPolicy) -> List[str]:
    """
    Check every file against the allow-list and size cap. Returns one
    message per offending file (all of them, not just the first); an empty
    list means the whole set is acceptable.
    """
    if not files:
        return ["No files uploaded"]

    errors: List[str] = []
    if len(files) > policy.max_files:
        errors.append(
            f"Too many files: {len(files)} submitted, at most {policy.max_files} per batch"
        )

    allowed = ", ".join(sorted(policy.allowed_mime_types))
    for idx, f in enumerate(files, start=1):
        reasons = []
        size = f.size or 0
        if size > policy.max_file_size:
            reasons.append(
                f"File size should be less than {_format_size(policy.max_file_size)}"
            )
        if (f.content_type or "") not in policy.allowed_mime_types:
            reasons.append(f"File type should be one of: {allowed}")
        if reasons:
            errors.append(f"File {idx} ({f.filename}): {', '.join(reasons)}")

    return errors


def guess_content_type(path: Path) -> str:
    extension = path.suffix.lower()
    if extension in _EXTRA_TYPES:
        return _EXTRA_TYPES[extension]
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or "application/octet-stream"


@dataclass
class LocalFile:
    """A file on disk, shaped like an uploaded file for validation."""

    path: Path
    filename: str = ""
    content_type: Optional[str] = None
    size: Optional[int] = None

    def __post_init__(self):
        self.path = Path(self.path)
        self.filename = self.filename or self.path.name
        self.content_type = self.content_type or guess_content_type(self.path)
        if self.size is None:
            self.size = self.path.stat().st_size

    async def to_upload(self) -> FileUpload:
        return FileUpload(
            filename=self.filename,
            content=self.path.read_bytes(),
            content_type=self.content_type,
            size=self.size or 0,
        )


def load_local_files(paths: Iterable[str | Path]) -> List[LocalFile]:
    return [LocalFile(path=Path(p)) for p in paths]
