import uuid

from sqlalchemy import TIMESTAMP, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class IngestionBatch(Base):
    __tablename__ = "ingestion_batches"
    id: Mapped[str] = mapped_column(String, primary_key=True)
    vector_store_id: Mapped[str] = mapped_column(String, index=True)
    status: Mapped[str] = mapped_column(String, default="in_progress")
    file_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[str] = mapped_column(TIMESTAMP, server_default=func.now())
    updated_at: Mapped[str] = mapped_column(
        TIMESTAMP, server_default=func.now(), onupdate=func.now()
    )

    files: Mapped[list["UploadedFile"]] = relationship(back_populates="batch")


class UploadedFile(Base):
    __tablename__ = "uploaded_files"
    id: Mapped[str] = mapped_column(
        String, primary_key=True, default=lambda: str(uuid.uuid4())
    )
    batch_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("ingestion_batches.id"), nullable=True
    )
    remote_file_id: Mapped[str] = mapped_column(String, default="")
    filename: Mapped[str] = mapped_column(String)
    status: Mapped[str] = mapped_column(String)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[str] = mapped_column(TIMESTAMP, server_default=func.now())

    batch: Mapped[IngestionBatch | None] = relationship(back_populates="files")
