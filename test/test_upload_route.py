from conftest import AUTH_HEADER, uploaded


def _files(*specs):
    return [("files", (name, body, mime)) for name, body, mime in specs]


def test_requires_bearer_token(api_client, gateway):
    resp = api_client.post("/api/files/upload", files=_files(("a.txt", b"hi", "text/plain")))

    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}
    gateway.files.create.assert_not_awaited()


def test_unknown_token_is_rejected(api_client):
    resp = api_client.post(
        "/api/files/upload",
        files=_files(("a.txt", b"hi", "text/plain")),
        headers={"Authorization": "Bearer nope"},
    )

    assert resp.status_code == 401


def test_disallowed_type_rejects_whole_request(api_client, gateway, ledger):
    resp = api_client.post(
        "/api/files/upload",
        files=_files(("a.txt", b"hello", "text/plain"), ("b.exe", b"MZ", "application/x-msdownload")),
        headers=AUTH_HEADER,
    )

    assert resp.status_code == 400
    assert "b.exe" in resp.json()["error"]
    gateway.files.create.assert_not_awaited()
    gateway.vector_stores.file_batches.create.assert_not_awaited()
    ledger.record_ingestion.assert_not_awaited()


def test_no_files(api_client):
    resp = api_client.post("/api/files/upload", headers=AUTH_HEADER)

    assert resp.status_code == 400
    assert resp.json() == {"error": "No files uploaded"}


def test_successful_upload(api_client, gateway, ledger, fake_redis):
    gateway.files.create.side_effect = [uploaded("file-1"), uploaded("file-2")]

    resp = api_client.post(
        "/api/files/upload",
        files=_files(("a.txt", b"hello", "text/plain"), ("b.pdf", b"%PDF", "application/pdf")),
        headers=AUTH_HEADER,
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["vectorStoreId"] == "vs-1"
    assert body["batchId"] == "batch-1"
    assert [f["filename"] for f in body["files"]] == ["a.txt", "b.pdf"]
    assert {f["status"] for f in body["files"]} == {"processing"}
    ledger.record_ingestion.assert_awaited_once()
    # one history entry per file
    assert fake_redis.pipeline.return_value.lpush.call_count == 2


def test_batch_failure_returns_500(api_client, gateway, ledger):
    gateway.files.create.return_value = uploaded("file-1")
    gateway.vector_stores.file_batches.create.side_effect = RuntimeError("store full")

    resp = api_client.post(
        "/api/files/upload",
        files=_files(("a.txt", b"hello", "text/plain")),
        headers=AUTH_HEADER,
    )

    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "store full"
    assert body["files"][0]["status"] == "uploaded"


def test_store_creation_failure(api_client, gateway):
    gateway.vector_stores.retrieve.side_effect = RuntimeError("gone")
    gateway.vector_stores.create.side_effect = RuntimeError("quota")

    resp = api_client.post(
        "/api/files/upload",
        files=_files(("a.txt", b"hello", "text/plain")),
        headers=AUTH_HEADER,
    )

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to create vector store", "details": "quota"}


def test_ledger_outage_does_not_fail_upload(api_client, gateway, ledger):
    gateway.files.create.return_value = uploaded("file-1")
    ledger.record_ingestion.side_effect = RuntimeError("db down")

    resp = api_client.post(
        "/api/files/upload",
        files=_files(("a.txt", b"hello", "text/plain")),
        headers=AUTH_HEADER,
    )

    assert resp.status_code == 200
