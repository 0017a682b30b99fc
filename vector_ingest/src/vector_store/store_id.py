from dataclasses import dataclass
from typing import Optional, Protocol

from vector_ingest.utils.config_loader import get_config


class StoreIdStore(Protocol):
    """Remembers which remote vector store is "the" store for a deployment."""

    def get(self) -> Optional[str]: ...

    def set(self, store_id: str) -> None: ...


class InMemoryStoreIdStore:
    """Keeps the resolved id for the lifetime of the process only."""

    def __init__(self, store_id: Optional[str] = None):
        self._store_id = store_id

    def get(self) -> Optional[str]:
        return self._store_id

    def set(self, store_id: str) -> None:
        self._store_id = store_id


@dataclass(frozen=True)
class VectorStoreConfig:
    configured_store_id: Optional[str] = None
    name: str = "RAG Chat Vector Store"
    upload_concurrency: int = 4
    poll_interval: float = 2.0
    max_wait_time: float = 300.0
    list_page_size: int = 100
    file_purpose: str = "assistants"

    @classmethod
    def from_config(
        cls, configured_store_id: Optional[str] = None, config: Optional[dict] = None
    ) -> "VectorStoreConfig":
        section = (config if config is not None else get_config()).get(
            "vector_store", {}
        )
        return cls(
            configured_store_id=configured_store_id,
            name=section.get("name", cls.name),
            upload_concurrency=int(
                section.get("upload_concurrency", cls.upload_concurrency)
            ),
            poll_interval=float(section.get("poll_interval", cls.poll_interval)),
            max_wait_time=float(section.get("max_wait_time", cls.max_wait_time)),
            list_page_size=int(section.get("list_page_size", cls.list_page_size)),
            file_purpose=section.get("file_purpose", cls.file_purpose),
        )
