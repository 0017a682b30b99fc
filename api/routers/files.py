from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import Field

from api.dependencies import get_ingestion_repository, get_vector_store_client
from api.security import AuthenticatedUser, require_user
from db.database import get_db
from db.ingestion_repository import IngestionRepository
from vector_ingest.exception.custom_exception import (
    PartialDeletionError,
    VectorStoreGatewayError,
)
from vector_ingest.logger import GLOBAL_LOGGER as log
from vector_ingest.src.vector_store.client import VectorStoreClient
from vector_ingest.src.vector_store.models import BatchStatus, CamelModel
from vector_ingest.src.vector_store.status import aggregate_file_statuses, count_statuses

router = APIRouter()


class StatusRequest(CamelModel):
    vector_store_id: str
    batch_id: Optional[str] = None
    file_ids: Optional[list[str]] = None


class ListRequest(CamelModel):
    vector_store_id: Optional[str] = None
    limit: int = Field(default=20, ge=1, le=1000)


class DeleteRequest(CamelModel):
    file_id: str
    vector_store_id: Optional[str] = None


def _store_id_or_400(client: VectorStoreClient, requested: Optional[str]) -> str:
    store_id = requested or client.known_store_id()
    if not store_id:
        raise HTTPException(400, "Vector store not configured")
    return store_id


@router.post("/api/files/status")
async def file_status(
    req: StatusRequest,
    user: AuthenticatedUser = Depends(require_user),
    client: VectorStoreClient = Depends(get_vector_store_client),
    repo: IngestionRepository = Depends(get_ingestion_repository),
    db=Depends(get_db),
):
    """
    Processing status for one batch (single round trip) or a set of files
    (one lookup per file, run concurrently).
    """
    if req.batch_id:
        try:
            status = await client.check_batch_status(req.batch_id, req.vector_store_id)
        except VectorStoreGatewayError as e:
            return JSONResponse(
                status_code=500,
                content={"error": e.error_message, "details": e.details},
            )

        if status.status.is_terminal:
            try:
                await repo.set_batch_status(db, req.batch_id, status.status.value)
            except Exception as e:
                log.warning(
                    "Failed to update batch ledger | batch_id=%s | error=%s",
                    req.batch_id,
                    str(e),
                )

        return {
            "success": True,
            "status": status.status.value,
            "completedCount": status.completed_count,
            "inProgressCount": status.in_progress_count,
            "failedCount": status.failed_count,
        }

    if req.file_ids:
        statuses = await client.check_file_status(req.file_ids, req.vector_store_id)
        counts = count_statuses(statuses)
        overall = aggregate_file_statuses(statuses)

        log.info(
            "File status checked | user_id=%s | files=%d | overall=%s",
            user.user_id,
            len(statuses),
            overall.value,
        )
        return {
            "success": True,
            "status": overall.value,
            "files": [s.to_response() for s in statuses],
            "completedCount": counts[BatchStatus.COMPLETED],
            "inProgressCount": counts[BatchStatus.IN_PROGRESS],
            "failedCount": counts[BatchStatus.FAILED],
        }

    raise HTTPException(400, "Either batchId or fileIds must be provided")


@router.post("/api/files/list")
async def list_files(
    req: ListRequest,
    user: AuthenticatedUser = Depends(require_user),
    client: VectorStoreClient = Depends(get_vector_store_client),
):
    store_id = _store_id_or_400(client, req.vector_store_id)

    try:
        files = await client.list_files(limit=req.limit, vector_store_id=store_id)
        files = await client.describe_files(files)
    except VectorStoreGatewayError as e:
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to list files", "details": e.details},
        )

    return {
        "success": True,
        "files": [f.to_response() for f in files],
        "vectorStoreId": store_id,
    }


@router.post("/api/files/delete")
async def delete_file(
    req: DeleteRequest,
    user: AuthenticatedUser = Depends(require_user),
    client: VectorStoreClient = Depends(get_vector_store_client),
):
    store_id = _store_id_or_400(client, req.vector_store_id)

    try:
        await client.delete_file(req.file_id, vector_store_id=store_id)
    except PartialDeletionError as e:
        return JSONResponse(
            status_code=500,
            content={
                "error": "Failed to delete file",
                "details": e.details,
                "removedFromVectorStore": e.removed_from_vector_store,
                "removedFromFileStore": e.removed_from_file_store,
            },
        )

    log.info("File deleted | user_id=%s | file_id=%s", user.user_id, req.file_id)
    return {"success": True, "message": "File deleted successfully"}


@router.get("/api/files/batches")
async def list_batches(
    limit: int = 20,
    user: AuthenticatedUser = Depends(require_user),
    repo: IngestionRepository = Depends(get_ingestion_repository),
    db=Depends(get_db),
):
    batches = await repo.list_batches(db, limit=limit)
    return [
        {
            "id": b.id,
            "vectorStoreId": b.vector_store_id,
            "status": b.status,
            "fileCount": b.file_count,
            "createdAt": str(b.created_at),
        }
        for b in batches
    ]
