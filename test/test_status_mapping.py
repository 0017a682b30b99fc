import pytest

from vector_ingest.src.vector_store.models import BatchStatus, FileStatusResult
from vector_ingest.src.vector_store.status import aggregate_file_statuses, count_statuses


def _files(*statuses):
    return [FileStatusResult(id=f"file-{i}", status=s) for i, s in enumerate(statuses)]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("completed", BatchStatus.COMPLETED),
        ("failed", BatchStatus.FAILED),
        ("cancelled", BatchStatus.CANCELLED),
        ("in_progress", BatchStatus.IN_PROGRESS),
        (" Completed ", BatchStatus.COMPLETED),
        ("cancelling", BatchStatus.IN_PROGRESS),
        (None, BatchStatus.IN_PROGRESS),
    ],
)
def test_parse_vendor_status(raw, expected):
    assert BatchStatus.parse(raw) is expected


def test_only_in_progress_is_non_terminal():
    assert not BatchStatus.IN_PROGRESS.is_terminal
    assert all(s.is_terminal for s in BatchStatus if s is not BatchStatus.IN_PROGRESS)


def test_all_completed_aggregates_to_completed():
    assert aggregate_file_statuses(_files(BatchStatus.COMPLETED, BatchStatus.COMPLETED)) is BatchStatus.COMPLETED


def test_all_failed_aggregates_to_failed():
    assert aggregate_file_statuses(_files(BatchStatus.FAILED, BatchStatus.FAILED)) is BatchStatus.FAILED


def test_any_in_progress_wins():
    files = _files(BatchStatus.FAILED, BatchStatus.IN_PROGRESS, BatchStatus.COMPLETED)
    assert aggregate_file_statuses(files) is BatchStatus.IN_PROGRESS


def test_mixed_terminal_states_stay_in_progress():
    files = _files(BatchStatus.COMPLETED, BatchStatus.FAILED)
    assert aggregate_file_statuses(files) is BatchStatus.IN_PROGRESS


def test_empty_set_is_in_progress():
    assert aggregate_file_statuses([]) is BatchStatus.IN_PROGRESS


def test_count_statuses_includes_every_status():
    counts = count_statuses(_files(BatchStatus.COMPLETED, BatchStatus.COMPLETED, BatchStatus.FAILED))
    assert counts == {
        BatchStatus.IN_PROGRESS: 0,
        BatchStatus.COMPLETED: 2,
        BatchStatus.FAILED: 1,
        BatchStatus.CANCELLED: 0,
    }
