from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import JSONResponse

from api.dependencies import get_data_ingestor, get_ingestion_repository
from api.security import AuthenticatedUser, require_user
from db.database import get_db
from db.ingestion_repository import IngestionRepository
from redis_cache.redis_client import record_upload
from vector_ingest.exception.custom_exception import (
    UploadValidationError,
    VectorStoreGatewayError,
)
from vector_ingest.logger import GLOBAL_LOGGER as log
from vector_ingest.src.document_ingestion.data_ingestion import DataIngestor
from vector_ingest.src.vector_store.models import FileUpload

router = APIRouter()


class FastAPIFileAdapter:
    """
    Adapter to wrap FastAPI UploadFile so that the ingestion
    code can operate over generic uploaded files.
    Provides .filename, .content_type, .size and .to_upload().
    """

    def __init__(self, uf: UploadFile):
        self._uf = uf
        self.filename = uf.filename or "file"
        self.content_type = uf.content_type
        self.size = uf.size if uf.size is not None else self._measure()

    def _measure(self) -> int:
        f = self._uf.file
        f.seek(0, 2)
        size = f.tell()
        f.seek(0)
        return size

    async def to_upload(self) -> FileUpload:
        await self._uf.seek(0)
        content = await self._uf.read()
        return FileUpload(
            filename=self.filename,
            content=content,
            content_type=self.content_type or "application/octet-stream",
            size=len(content),
        )


@router.post("/api/files/upload")
async def upload_files(
    files: Optional[list[UploadFile]] = File(None),
    user: AuthenticatedUser = Depends(require_user),
    ingestor: DataIngestor = Depends(get_data_ingestor),
    repo: IngestionRepository = Depends(get_ingestion_repository),
    db=Depends(get_db),
):
    """
    Upload endpoint:
      - validates every file (type, size, count); any failure rejects all
      - resolves or creates the vector store
      - uploads the files and submits them as one batch
      - returns per-file status plus the batch id for polling
    """
    if not files:
        raise HTTPException(400, "No files uploaded")

    wrapped = [FastAPIFileAdapter(f) for f in files]

    try:
        result = await ingestor.ingest(wrapped)
    except UploadValidationError as e:
        raise HTTPException(400, e.error_message)
    except VectorStoreGatewayError as e:
        log.error("Upload failed | user_id=%s | error=%s", user.user_id, str(e))
        return JSONResponse(
            status_code=500,
            content={"error": e.error_message, "details": e.details},
        )

    sizes = {w.filename: w.size for w in wrapped}
    for record in result.batch.files:
        record_upload(
            user.user_id,
            record.filename,
            status=record.status.value,
            size=sizes.get(record.filename, 0),
            file_id=record.id or None,
        )

    if result.batch.uploaded_count:
        try:
            await repo.record_ingestion(db, result.batch)
        except Exception as e:
            log.warning(
                "Failed to record ingestion | batch_id=%s | error=%s",
                result.batch.batch_id,
                str(e),
            )

    log.info(
        "Upload completed | user_id=%s | batch_id=%s | files=%d",
        user.user_id,
        result.batch.batch_id,
        len(result.batch.files),
    )
    return JSONResponse(status_code=result.status_code, content=result.to_response())
