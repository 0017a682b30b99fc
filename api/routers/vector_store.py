from typing import Any, Dict, Literal

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from api.dependencies import get_vector_store_client
from api.security import AuthenticatedUser, require_user
from redis_cache.redis_client import (
    get_last_updated,
    get_recent_searches,
    get_recent_uploads,
    record_search,
    record_upload,
)
from vector_ingest.exception.custom_exception import VectorStoreGatewayError
from vector_ingest.logger import GLOBAL_LOGGER as log
from vector_ingest.src.vector_store.client import VectorStoreClient
from vector_ingest.src.vector_store.models import BatchStatus

router = APIRouter()


class ActivityRequest(BaseModel):
    type: Literal["search", "upload"]
    data: Dict[str, Any] = Field(default_factory=dict)


@router.post("/api/vector-store/init")
async def init_vector_store(
    user: AuthenticatedUser = Depends(require_user),
    client: VectorStoreClient = Depends(get_vector_store_client),
):
    """
    Resolve the deployment's vector store, creating it when missing.
    """
    try:
        info = await client.retrieve_vector_store()
    except VectorStoreGatewayError as e:
        log.error("Vector store initialization failed | error=%s", str(e))
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to initialize vector store", "details": e.details},
        )

    return {
        "success": True,
        "vectorStoreId": info.id,
        "status": info.status,
        "fileCount": info.file_counts,
        "message": "Vector store initialized successfully",
    }


@router.get("/api/vector-store/init")
async def describe_vector_store(
    user: AuthenticatedUser = Depends(require_user),
    client: VectorStoreClient = Depends(get_vector_store_client),
):
    """
    Describe the configured store without creating one.
    """
    store_id = client.known_store_id()
    if not store_id:
        return {"success": False, "message": "No vector store configured"}

    try:
        info = await client.describe_vector_store(store_id)
    except VectorStoreGatewayError as e:
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to retrieve vector store", "details": e.details},
        )

    return {
        "success": True,
        "vectorStoreId": info.id,
        "name": info.name,
        "status": info.status,
        "fileCount": info.file_counts,
    }


@router.get("/api/vector-store/stats")
async def vector_store_stats(
    user: AuthenticatedUser = Depends(require_user),
    client: VectorStoreClient = Depends(get_vector_store_client),
):
    """
    Dashboard numbers: per-status file counts over every page of the
    store's file list plus the caller's recent activity.
    """
    recent_searches = get_recent_searches(user.user_id)
    recent_uploads = get_recent_uploads(user.user_id)

    store_id = client.known_store_id()
    if not store_id:
        return {
            "totalDocuments": 0,
            "totalSize": 0,
            "lastUpdated": get_last_updated(),
            "status": "disconnected",
            "processingFiles": 0,
            "completedFiles": 0,
            "failedFiles": 0,
            "recentSearches": recent_searches,
            "recentUploads": recent_uploads,
        }

    connection = "connected"
    counts = {status: 0 for status in BatchStatus}
    total_size = 0

    try:
        files = await client.list_files(vector_store_id=store_id)
        files = await client.describe_files(files)
        for f in files:
            counts[f.status] += 1
            total_size += f.size_bytes or 0
    except VectorStoreGatewayError as e:
        log.error("Error accessing vector store | store_id=%s | error=%s", store_id, str(e))
        connection = "error"

    return {
        "totalDocuments": counts[BatchStatus.COMPLETED],
        "totalSize": total_size,
        "lastUpdated": get_last_updated(),
        "status": connection,
        "processingFiles": counts[BatchStatus.IN_PROGRESS],
        "completedFiles": counts[BatchStatus.COMPLETED],
        "failedFiles": counts[BatchStatus.FAILED],
        "recentSearches": recent_searches,
        "recentUploads": recent_uploads,
    }


@router.post("/api/vector-store/stats")
async def record_activity(
    req: ActivityRequest,
    user: AuthenticatedUser = Depends(require_user),
):
    """
    Record a search or upload for the dashboard. Cache outages are absorbed.
    """
    if req.type == "search":
        record_search(
            user.user_id,
            query=str(req.data.get("query", "")),
            result_count=int(req.data.get("resultCount") or 0),
        )
    else:
        record_upload(
            user.user_id,
            filename=str(req.data.get("filename", "")),
            status=str(req.data.get("status") or "processing"),
            size=int(req.data.get("size") or 0),
            file_id=req.data.get("fileId"),
        )
    return {"success": True}
