import sys
import traceback
from typing import Optional


class IngestionException(Exception):
    """
    Base error for the ingestion backend.

    `error_details` may be the original exception or the `sys` module (in
    which case the exception currently being handled is used). The file name
    and line number where that exception was raised are kept so log lines
    point at the real failure rather than the wrapper.
    """

    def __init__(self, error_message: str, error_details: object = None):
        super().__init__(error_message)
        self.error_message = error_message
        self.file_name: Optional[str] = None
        self.lineno: Optional[int] = None
        self.cause: Optional[BaseException] = None

        if error_details is sys:
            _, exc, tb = sys.exc_info()
        elif isinstance(error_details, BaseException):
            exc, tb = error_details, error_details.__traceback__
        else:
            exc, tb = None, None

        self.cause = exc
        if tb is not None:
            last = traceback.extract_tb(tb)[-1]
            self.file_name = last.filename
            self.lineno = last.lineno

    @property
    def details(self) -> Optional[str]:
        return str(self.cause) if self.cause is not None else None

    def __str__(self) -> str:
        if self.file_name is None:
            return self.error_message
        return (
            f"{self.error_message} | file={self.file_name} | line={self.lineno}"
            f" | cause={self.details}"
        )


class ConfigurationError(IngestionException):
    """Missing API keys or unreadable configuration."""


class UploadValidationError(IngestionException):
    """One or more uploaded files failed the allow-list / size checks."""

    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


class VectorStoreGatewayError(IngestionException):
    """The hosted vector-store service rejected or failed a request."""


class PartialDeletionError(IngestionException):
    """
    Raised after both halves of a file deletion were attempted and at least
    one of them failed.
    """

    def __init__(
        self,
        file_id: str,
        removed_from_vector_store: bool,
        removed_from_file_store: bool,
        errors: list[str],
    ):
        super().__init__(f"File {file_id} was only partially deleted")
        self.file_id = file_id
        self.removed_from_vector_store = removed_from_vector_store
        self.removed_from_file_store = removed_from_file_store
        self.errors = errors

    @property
    def details(self) -> Optional[str]:
        return "; ".join(self.errors)
