from typing import Iterable

from vector_ingest.src.vector_store.models import BatchStatus, FileStatusResult


def count_statuses(files: Iterable[FileStatusResult]) -> dict[BatchStatus, int]:
    counts = {status: 0 for status in BatchStatus}
    for f in files:
        counts[f.status] += 1
    return counts


def aggregate_file_statuses(files: list[FileStatusResult]) -> BatchStatus:
    """
    Overall status for a set of per-file lookups:
      - any file still in progress -> in_progress
      - every file failed          -> failed
      - every file completed       -> completed
      - any other mix              -> in_progress
    """
    counts = count_statuses(files)
    total = len(files)

    if counts[BatchStatus.IN_PROGRESS] > 0:
        return BatchStatus.IN_PROGRESS
    if total and counts[BatchStatus.FAILED] == total:
        return BatchStatus.FAILED
    if total and counts[BatchStatus.COMPLETED] == total:
        return BatchStatus.COMPLETED
    return BatchStatus.IN_PROGRESS
