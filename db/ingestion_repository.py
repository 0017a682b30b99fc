from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vector_ingest.logger import GLOBAL_LOGGER as log
from vector_ingest.src.vector_store.models import UploadBatchResult

from .models import IngestionBatch, UploadedFile


class IngestionRepository:
    """
    Repository keeping a local ledger of ingestion batches and the files
    submitted with them. The remote gateway stays the source of truth for
    processing state; rows here are observations.
    """

    async def record_ingestion(
        self, db: AsyncSession, result: UploadBatchResult
    ) -> IngestionBatch | None:
        batch = None
        if result.batch_id:
            batch = IngestionBatch(
                id=result.batch_id,
                vector_store_id=result.vector_store_id,
                status="in_progress",
                file_count=result.uploaded_count,
            )
            db.add(batch)

        for f in result.files:
            db.add(
                UploadedFile(
                    batch_id=result.batch_id,
                    remote_file_id=f.id,
                    filename=f.filename,
                    status=f.status.value,
                    error=f.error,
                )
            )
        await db.commit()

        log.info(
            "Ingestion recorded | batch_id=%s | files=%d",
            result.batch_id,
            len(result.files),
        )
        return batch

    async def set_batch_status(self, db: AsyncSession, batch_id: str, status: str):
        batch = await db.get(IngestionBatch, batch_id)
        if not batch:
            return

        if batch.status == status:
            return

        batch.status = status
        await db.commit()

        log.info(
            "Batch status updated | batch_id=%s | status=%s",
            batch_id,
            status,
        )

    async def list_batches(self, db: AsyncSession, limit: int = 20):
        """
        Most recent batches first. Used by the batch history endpoint.
        """
        q = await db.execute(
            select(IngestionBatch).order_by(IngestionBatch.created_at.desc()).limit(limit)
        )
        batches = q.scalars().all()
        log.info("Listing batches | count=%d", len(batches))
        return batches

    async def list_files(self, db: AsyncSession, batch_id: str):
        q = await db.execute(
            select(UploadedFile).where(UploadedFile.batch_id == batch_id)
        )
        files = q.scalars().all()

        log.info(
            "Listed uploaded files | batch_id=%s | count=%d",
            batch_id,
            len(files),
        )
        return files
