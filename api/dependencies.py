from __future__ import annotations

from fastapi import Depends

from db.ingestion_repository import IngestionRepository
from redis_cache.redis_client import RedisStoreIdStore
from vector_ingest.logger import GLOBAL_LOGGER as log
from vector_ingest.src.document_ingestion.data_ingestion import DataIngestor
from vector_ingest.src.vector_store.client import VectorStoreClient
from vector_ingest.src.vector_store.store_id import VectorStoreConfig
from vector_ingest.utils.client_loader import ClientLoader


class VectorStoreClientManager:
    """
    Lazily builds the process-wide VectorStoreClient.

    The client gets its settings as an explicit VectorStoreConfig and
    remembers the resolved store id through Redis, so a restarted process
    reuses the store created by its predecessor.
    """

    def __init__(self):
        self._client: VectorStoreClient | None = None

    def get_client(self) -> VectorStoreClient:
        if self._client is None:
            log.info("Creating VectorStoreClient")
            loader = ClientLoader()
            self._client = VectorStoreClient(
                gateway=loader.load_client(),
                config=VectorStoreConfig.from_config(
                    configured_store_id=loader.configured_store_id,
                    config=loader.config,
                ),
                store_id_store=RedisStoreIdStore(),
            )
        return self._client


client_manager = VectorStoreClientManager()


def get_vector_store_client() -> VectorStoreClient:
    return client_manager.get_client()


def get_ingestion_repository() -> IngestionRepository:
    return IngestionRepository()


def get_data_ingestor(
    client: VectorStoreClient = Depends(get_vector_store_client),
) -> DataIngestor:
    return DataIngestor(client)
