from __future__ import annotations

import asyncio
import inspect
import time
from typing import Any, Awaitable, Callable, Iterable, Optional, Union

from openai import NotFoundError

from vector_ingest.exception.custom_exception import (
    PartialDeletionError,
    VectorStoreGatewayError,
)
from vector_ingest.logger import GLOBAL_LOGGER as log
from vector_ingest.src.vector_store.models import (
    BatchStatus,
    BatchStatusResult,
    DeletionResult,
    FileRecord,
    FileStatusResult,
    FileUpload,
    FileUploadStatus,
    UploadBatchResult,
    VectorStoreFile,
    VectorStoreInfo,
    WaitOutcome,
    WaitResult,
    from_epoch,
)
from vector_ingest.src.vector_store.store_id import (
    InMemoryStoreIdStore,
    StoreIdStore,
    VectorStoreConfig,
)
from vector_ingest.utils.file_io import UploadedFileLike

UploadSource = Union[FileUpload, UploadedFileLike]
ProgressCallback = Callable[[BatchStatusResult], Union[None, Awaitable[None]]]


def _counts(obj: Any) -> dict[str, int]:
    raw = getattr(obj, "file_counts", None)
    if raw is None:
        return {}
    if isinstance(raw, dict):
        return {k: int(v or 0) for k, v in raw.items()}
    return {
        k: int(getattr(raw, k, 0) or 0)
        for k in ("completed", "in_progress", "failed", "cancelled", "total")
    }


class VectorStoreClient:
    """
    Single point of contact with the hosted vector-store gateway.

    - resolves "the" vector store (reuse the remembered/configured id, else create)
    - uploads files to the file store and groups them into one batch
    - reports batch / per-file processing state and polls until terminal
    - lists and deletes store files

    `gateway` is an `openai.AsyncOpenAI` instance (or anything exposing the
    same `files` and `vector_stores` resources).
    """

    def __init__(
        self,
        gateway: Any,
        config: Optional[VectorStoreConfig] = None,
        store_id_store: Optional[StoreIdStore] = None,
    ):
        self.gateway = gateway
        self.config = config or VectorStoreConfig()
        self.store_id_store = store_id_store or InMemoryStoreIdStore()
        self._store_id: Optional[str] = None
        # single-flight guard so concurrent ensures in one process create one store
        self._ensure_lock = asyncio.Lock()

        log.info(
            "VectorStoreClient initialized | configured_store_id=%s | concurrency=%d",
            self.config.configured_store_id,
            self.config.upload_concurrency,
        )

    @property
    def vector_store_id(self) -> Optional[str]:
        return self._store_id

    def known_store_id(self) -> Optional[str]:
        """Best id known without a network round trip (may be stale)."""
        return self._store_id or self.config.configured_store_id or self.store_id_store.get()

    def _candidates(self) -> list[str]:
        # resolved id, then the pre-provisioned one, then the one remembered across restarts
        ordered = [self._store_id, self.config.configured_store_id, self.store_id_store.get()]
        return list(dict.fromkeys(c for c in ordered if c))

    # ------------------------------------------------------------------
    # Store lifecycle
    # ------------------------------------------------------------------

    async def ensure_vector_store(self, name: Optional[str] = None) -> str:
        """
        Return the id of a usable vector store. The configured id is tried
        before the remembered one; a store is created only when neither can
        be retrieved.
        """
        async with self._ensure_lock:
            for candidate in self._candidates():
                try:
                    await self.gateway.vector_stores.retrieve(candidate)
                    self._remember(candidate)
                    return candidate
                except Exception as e:
                    log.warning(
                        "Vector store not resolvable | store_id=%s | error=%s",
                        candidate,
                        str(e),
                    )

            display_name = name or self.config.name
            try:
                store = await self.gateway.vector_stores.create(name=display_name)
            except Exception as e:
                log.error("Vector store creation failed | error=%s", str(e))
                raise VectorStoreGatewayError("Failed to create vector store", e) from e

            store_id = getattr(store, "id", None)
            if not store_id:
                raise VectorStoreGatewayError(
                    "Vector store creation returned no ID"
                )

            self._remember(store_id)
            log.info("Vector store created | store_id=%s | name=%s", store_id, display_name)
            return store_id

    def _remember(self, store_id: str) -> None:
        if self._store_id == store_id:
            return
        self._store_id = store_id
        # only self-provisioned stores need remembering across restarts
        if store_id != self.config.configured_store_id:
            self.store_id_store.set(store_id)

    async def retrieve_vector_store(self, name: Optional[str] = None) -> VectorStoreInfo:
        store_id = await self.ensure_vector_store(name)
        return await self.describe_vector_store(store_id)

    async def describe_vector_store(self, store_id: str) -> VectorStoreInfo:
        try:
            store = await self.gateway.vector_stores.retrieve(store_id)
        except Exception as e:
            raise VectorStoreGatewayError("Failed to retrieve vector store", e) from e

        return VectorStoreInfo(
            id=store_id,
            name=getattr(store, "name", None),
            status=getattr(store, "status", None),
            file_counts=_counts(store) or {"total": 0},
        )

    def _resolve(self, vector_store_id: Optional[str]) -> str:
        """Store id for read and delete calls. Never creates a store."""
        store_id = vector_store_id or self.known_store_id()
        if not store_id:
            raise VectorStoreGatewayError("Vector store not configured")
        return store_id

    async def _gather_bounded(
        self, func: Callable[[Any], Awaitable[Any]], items: Iterable[Any]
    ) -> list:
        """Run `func` over `items`, at most `upload_concurrency` at a time, in input order."""
        semaphore = asyncio.Semaphore(max(1, self.config.upload_concurrency))

        async def _bounded(item):
            async with semaphore:
                return await func(item)

        return list(await asyncio.gather(*(_bounded(i) for i in items)))

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------

    async def _upload_to_file_store(self, source: UploadSource) -> FileRecord:
        # contents are read here, under the caller's semaphore, so at most
        # `upload_concurrency` files are held in memory at once
        try:
            upload = source if isinstance(source, FileUpload) else await source.to_upload()
            uploaded = await self.gateway.files.create(
                file=(upload.filename, upload.content, upload.content_type),
                purpose=self.config.file_purpose,
            )
        except Exception as e:
            log.warning(
                "File upload failed | filename=%s | error=%s", source.filename, str(e)
            )
            return FileRecord(
                filename=source.filename,
                status=FileUploadStatus.FAILED,
                error=str(e) or "Upload failed",
            )

        log.debug("File uploaded | filename=%s | file_id=%s", upload.filename, uploaded.id)
        return FileRecord(
            id=uploaded.id, filename=upload.filename, status=FileUploadStatus.UPLOADED
        )

    async def upload_file(self, upload: UploadSource) -> FileRecord:
        """Upload one file and attach it to the vector store directly."""
        try:
            store_id = await self.ensure_vector_store()
        except VectorStoreGatewayError as e:
            return FileRecord(
                filename=upload.filename,
                status=FileUploadStatus.FAILED,
                error=e.details or e.error_message,
            )

        record = await self._upload_to_file_store(upload)
        if record.status is FileUploadStatus.FAILED:
            return record

        try:
            await self.gateway.vector_stores.files.create(
                vector_store_id=store_id, file_id=record.id
            )
        except Exception as e:
            log.warning(
                "Attaching file to vector store failed | file_id=%s | error=%s",
                record.id,
                str(e),
            )
            record.status = FileUploadStatus.FAILED
            record.error = str(e) or "Failed to add file to vector store"
            return record

        record.status = FileUploadStatus.PROCESSING
        return record

    async def upload_files(self, uploads: Iterable[UploadSource]) -> UploadBatchResult:
        """
        Upload every file to the file store (bounded concurrency, input order
        preserved), then submit the successful ones as one batch. Items may be
        ready `FileUpload`s or uploaded-file objects read lazily via `to_upload()`.
        """
        uploads = list(uploads)
        store_id = await self.ensure_vector_store()
        records = await self._gather_bounded(self._upload_to_file_store, uploads)
        result = UploadBatchResult(vector_store_id=store_id, files=records)

        file_ids = result.uploaded_ids
        log.info(
            "File uploads finished | store_id=%s | uploaded=%d | failed=%d",
            store_id,
            len(file_ids),
            result.failed_count,
        )

        if not file_ids:
            return result

        try:
            batch = await self.gateway.vector_stores.file_batches.create(
                vector_store_id=store_id, file_ids=file_ids
            )
        except Exception as e:
            log.error(
                "Batch creation failed | store_id=%s | files=%d | error=%s",
                store_id,
                len(file_ids),
                str(e),
            )
            result.batch_error = str(e) or "Vector store error"
            return result

        result.batch_id = batch.id
        for record in records:
            if record.status is FileUploadStatus.UPLOADED:
                record.status = FileUploadStatus.PROCESSING

        log.info("Batch created | batch_id=%s | files=%d", batch.id, len(file_ids))
        return result

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    async def check_batch_status(
        self, batch_id: str, vector_store_id: Optional[str] = None
    ) -> BatchStatusResult:
        store_id = self._resolve(vector_store_id)
        try:
            batch = await self.gateway.vector_stores.file_batches.retrieve(
                batch_id, vector_store_id=store_id
            )
        except Exception as e:
            log.error(
                "Batch status lookup failed | batch_id=%s | error=%s", batch_id, str(e)
            )
            raise VectorStoreGatewayError("Failed to retrieve batch status", e) from e

        counts = _counts(batch)
        return BatchStatusResult(
            batch_id=batch_id,
            status=BatchStatus.parse(getattr(batch, "status", None)),
            completed_count=counts.get("completed", 0),
            in_progress_count=counts.get("in_progress", 0),
            failed_count=counts.get("failed", 0),
            cancelled_count=counts.get("cancelled", 0),
            total_count=counts.get("total", 0),
        )

    async def _file_status(self, store_id: str, file_id: str) -> FileStatusResult:
        try:
            vs_file = await self.gateway.vector_stores.files.retrieve(
                file_id, vector_store_id=store_id
            )
        except Exception as e:
            log.warning("File status lookup failed | file_id=%s | error=%s", file_id, str(e))
            return FileStatusResult(
                id=file_id,
                status=BatchStatus.FAILED,
                error="File not found or retrieval failed",
            )

        last_error = getattr(vs_file, "last_error", None)
        return FileStatusResult(
            id=file_id,
            status=BatchStatus.parse(getattr(vs_file, "status", None)),
            error=getattr(last_error, "message", None) if last_error else None,
            created_at=from_epoch(getattr(vs_file, "created_at", None)),
        )

    async def check_file_status(
        self, file_ids: list[str], vector_store_id: Optional[str] = None
    ) -> list[FileStatusResult]:
        store_id = self._resolve(vector_store_id)
        return await self._gather_bounded(
            lambda fid: self._file_status(store_id, fid), file_ids
        )

    async def wait_for_processing(
        self,
        batch_id: str,
        *,
        poll_interval: Optional[float] = None,
        max_wait_time: Optional[float] = None,
        on_progress: Optional[ProgressCallback] = None,
        vector_store_id: Optional[str] = None,
    ) -> WaitResult:
        """
        Poll a batch until it reaches a terminal state or `max_wait_time`
        seconds pass. Running out of time yields a TIMEOUT result.
        """
        interval = poll_interval if poll_interval is not None else self.config.poll_interval
        max_wait = max_wait_time if max_wait_time is not None else self.config.max_wait_time
        store_id = self._resolve(vector_store_id)
        started = time.monotonic()
        result = WaitResult(batch_id=batch_id, outcome=WaitOutcome.TIMEOUT)

        async def _poll() -> WaitOutcome:
            while True:
                result.polls += 1
                try:
                    status = await self.check_batch_status(batch_id, store_id)
                except VectorStoreGatewayError as e:
                    log.warning(
                        "Polling error, retrying | batch_id=%s | poll=%d | error=%s",
                        batch_id,
                        result.polls,
                        e.details,
                    )
                else:
                    result.last_status = status
                    if on_progress is not None:
                        maybe = on_progress(status)
                        if inspect.isawaitable(maybe):
                            await maybe
                    if status.status.is_terminal:
                        return WaitOutcome(status.status.value)

                await asyncio.sleep(interval)

        try:
            result.outcome = await asyncio.wait_for(_poll(), timeout=max_wait)
        except asyncio.TimeoutError:
            log.warning(
                "Processing wait timed out | batch_id=%s | max_wait=%.1fs", batch_id, max_wait
            )
            result.outcome = WaitOutcome.TIMEOUT

        result.elapsed = time.monotonic() - started
        log.info(
            "Processing wait finished | batch_id=%s | outcome=%s | polls=%d | elapsed=%.2fs",
            batch_id,
            result.outcome.value,
            result.polls,
            result.elapsed,
        )
        return result

    # ------------------------------------------------------------------
    # Listing / deletion
    # ------------------------------------------------------------------

    async def list_files(
        self, limit: Optional[int] = None, vector_store_id: Optional[str] = None
    ) -> list[VectorStoreFile]:
        """
        Walk the store's file list page by page (cursor = last seen id).
        `limit=None` collects every page.
        """
        store_id = self._resolve(vector_store_id)
        collected: list[VectorStoreFile] = []
        after: Optional[str] = None

        while True:
            page_size = self.config.list_page_size
            if limit is not None:
                page_size = min(page_size, limit - len(collected))
            kwargs = {"limit": page_size}
            if after:
                kwargs["after"] = after

            try:
                page = await self.gateway.vector_stores.files.list(store_id, **kwargs)
            except Exception as e:
                raise VectorStoreGatewayError("Failed to list vector store files", e) from e

            data = list(getattr(page, "data", []) or [])
            for vs_file in data:
                last_error = getattr(vs_file, "last_error", None)
                collected.append(
                    VectorStoreFile(
                        id=vs_file.id,
                        status=BatchStatus.parse(getattr(vs_file, "status", None)),
                        created_at=from_epoch(getattr(vs_file, "created_at", None)),
                        last_error=getattr(last_error, "message", None) if last_error else None,
                    )
                )

            if limit is not None and len(collected) >= limit:
                break
            if not getattr(page, "has_more", False) or not data:
                break
            after = data[-1].id

        log.info("Listed vector store files | store_id=%s | count=%d", store_id, len(collected))
        return collected

    async def describe_files(self, files: list[VectorStoreFile]) -> list[VectorStoreFile]:
        """Fill in filename and size from the file store where available."""

        async def _describe(vs_file: VectorStoreFile) -> VectorStoreFile:
            try:
                details = await self.gateway.files.retrieve(vs_file.id)
            except Exception as e:
                log.debug("File details unavailable | file_id=%s | error=%s", vs_file.id, str(e))
                return vs_file
            return vs_file.model_copy(
                update={
                    "filename": getattr(details, "filename", None) or vs_file.id,
                    "size_bytes": getattr(details, "bytes", None),
                }
            )

        return await self._gather_bounded(_describe, files)

    async def delete_file(
        self, file_id: str, vector_store_id: Optional[str] = None
    ) -> DeletionResult:
        """
        Detach the file from the vector store and delete it from the file
        store. Both calls are always attempted; a missing file on either side
        counts as removed.
        """
        store_id = self._resolve(vector_store_id)
        errors: list[str] = []

        async def _attempt(label: str, call: Callable[[], Awaitable[Any]]) -> bool:
            try:
                await call()
                return True
            except NotFoundError:
                log.info("File already absent | file_id=%s | from=%s", file_id, label)
                return True
            except Exception as e:
                log.error(
                    "File deletion failed | file_id=%s | from=%s | error=%s",
                    file_id,
                    label,
                    str(e),
                )
                errors.append(f"{label}: {e}")
                return False

        from_vector_store = await _attempt(
            "vector_store",
            lambda: self.gateway.vector_stores.files.delete(
                file_id, vector_store_id=store_id
            ),
        )
        from_file_store = await _attempt(
            "file_store", lambda: self.gateway.files.delete(file_id)
        )

        if errors:
            raise PartialDeletionError(file_id, from_vector_store, from_file_store, errors)

        log.info("File deleted | file_id=%s | store_id=%s", file_id, store_id)
        return DeletionResult(
            file_id=file_id,
            removed_from_vector_store=from_vector_store,
            removed_from_file_store=from_file_store,
        )
