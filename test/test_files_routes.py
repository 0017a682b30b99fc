from datetime import datetime
from types import SimpleNamespace

from conftest import AUTH_HEADER, not_found


def test_list_files(api_client, gateway):
    gateway.vector_stores.files.list.return_value = SimpleNamespace(
        data=[SimpleNamespace(id="file-1", status="completed", created_at=1700000000, last_error=None)],
        has_more=False,
    )
    gateway.files.retrieve.return_value = SimpleNamespace(filename="a.txt", bytes=42)

    resp = api_client.post("/api/files/list", json={"limit": 5}, headers=AUTH_HEADER)

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["vectorStoreId"] == "vs-1"
    [entry] = body["files"]
    assert entry["id"] == "file-1"
    assert entry["filename"] == "a.txt"
    assert entry["status"] == "completed"
    assert entry["createdAt"].startswith("2023-11-14")
    gateway.vector_stores.files.list.assert_awaited_once_with("vs-1", limit=5)


def test_list_limit_is_bounded(api_client):
    resp = api_client.post("/api/files/list", json={"limit": 0}, headers=AUTH_HEADER)

    assert resp.status_code == 400


def test_list_failure(api_client, gateway):
    gateway.vector_stores.files.list.side_effect = RuntimeError("boom")

    resp = api_client.post("/api/files/list", json={}, headers=AUTH_HEADER)

    assert resp.status_code == 500
    assert resp.json()["error"] == "Failed to list files"


def test_delete_file(api_client, gateway):
    resp = api_client.post("/api/files/delete", json={"fileId": "file-1"}, headers=AUTH_HEADER)

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "File deleted successfully"}
    gateway.files.delete.assert_awaited_once_with("file-1")


def test_delete_already_detached_file(api_client, gateway):
    gateway.vector_stores.files.delete.side_effect = not_found()

    resp = api_client.post("/api/files/delete", json={"fileId": "file-1"}, headers=AUTH_HEADER)

    assert resp.status_code == 200


def test_partial_delete(api_client, gateway):
    gateway.files.delete.side_effect = RuntimeError("timeout")

    resp = api_client.post("/api/files/delete", json={"fileId": "file-1"}, headers=AUTH_HEADER)

    assert resp.status_code == 500
    body = resp.json()
    assert body["removedFromVectorStore"] is True
    assert body["removedFromFileStore"] is False
    assert "timeout" in body["details"]


def test_delete_requires_file_id(api_client):
    resp = api_client.post("/api/files/delete", json={}, headers=AUTH_HEADER)

    assert resp.status_code == 400


def test_list_batches(api_client, ledger):
    ledger.list_batches.return_value = [
        SimpleNamespace(
            id="batch-1",
            vector_store_id="vs-1",
            status="completed",
            file_count=2,
            created_at=datetime(2024, 1, 1),
        )
    ]

    resp = api_client.get("/api/files/batches?limit=5", headers=AUTH_HEADER)

    assert resp.status_code == 200
    assert resp.json() == [
        {
            "id": "batch-1",
            "vectorStoreId": "vs-1",
            "status": "completed",
            "fileCount": 2,
            "createdAt": "2024-01-01 00:00:00",
        }
    ]
    ledger.list_batches.assert_awaited_once_with(None, limit=5)
