from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel

from vector_ingest.exception.custom_exception import UploadValidationError
from vector_ingest.logger import GLOBAL_LOGGER as log
from vector_ingest.src.vector_store.client import VectorStoreClient
from vector_ingest.src.vector_store.models import UploadBatchResult
from vector_ingest.utils.file_io import UploadedFileLike, UploadPolicy, validate_uploads


class IngestionResult(BaseModel):
    batch: UploadBatchResult
    message: str

    @property
    def success(self) -> bool:
        return self.batch.success

    @property
    def status_code(self) -> int:
        # files reached the file store but never made it into a batch
        if self.batch.batch_error is not None:
            return 500
        return 200

    def to_response(self) -> dict:
        payload = {
            "success": self.success,
            "files": [f.to_response() for f in self.batch.files],
            "message": self.message,
        }
        if self.batch.uploaded_count:
            payload["vectorStoreId"] = self.batch.vector_store_id
        if self.batch.batch_id:
            payload["batchId"] = self.batch.batch_id
        if self.batch.batch_error:
            payload["error"] = self.batch.batch_error
        return payload


class DataIngestor:
    """
    Runs one ingestion request against the hosted vector store:

    - validate every file (type allow-list, size, batch cap); reject the
      whole request on any failure before anything leaves the process
    - resolve or create the vector store
    - upload the files and submit them as a single batch
    """

    def __init__(self, client: VectorStoreClient, policy: Optional[UploadPolicy] = None):
        self.client = client
        self.policy = policy or UploadPolicy.from_config()

    def validate(self, files: List[UploadedFileLike]) -> None:
        errors = validate_uploads(files, self.policy)
        if errors:
            log.warning("Upload rejected | files=%d | errors=%s", len(files), errors)
            raise UploadValidationError(errors)

    async def ingest(self, files: List[UploadedFileLike]) -> IngestionResult:
        log.info("Starting ingestion | count=%d", len(files))
        self.validate(files)

        # contents are read lazily inside the client; raises
        # VectorStoreGatewayError when no store can be resolved or created
        batch = await self.client.upload_files(files)

        if batch.batch_id:
            message = (
                f"Successfully uploaded {batch.uploaded_count} file(s). "
                "Processing in vector store..."
            )
        elif batch.batch_error:
            message = "Files uploaded but failed to add to vector store"
        else:
            message = "No files were successfully uploaded"

        log.info(
            "Ingestion finished | store_id=%s | batch_id=%s | uploaded=%d | failed=%d",
            batch.vector_store_id,
            batch.batch_id,
            batch.uploaded_count,
            batch.failed_count,
        )
        return IngestionResult(batch=batch, message=message)
