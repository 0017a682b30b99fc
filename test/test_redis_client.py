import json
from unittest.mock import MagicMock

import redis_cache.redis_client as cache


def test_upload_history_is_capped(fake_redis):
    cache.record_upload("alice", "a.txt", status="processing", size=5, file_id="file-1")

    pipe = fake_redis.pipeline.return_value
    key, raw = pipe.lpush.call_args.args
    assert key == "vector_store:upload_history:alice"
    entry = json.loads(raw)
    assert entry["filename"] == "a.txt"
    assert entry["fileId"] == "file-1"
    pipe.ltrim.assert_called_once_with(key, 0, 49)
    pipe.expire.assert_called_once_with(key, 604800)
    pipe.execute.assert_called_once()
    fake_redis.setex.assert_called_once()


def test_anonymous_activity_is_global(fake_redis):
    cache.record_search(None, "hello")

    key, _ = fake_redis.pipeline.return_value.lpush.call_args.args
    assert key == "vector_store:search_history:global"


def test_writes_fail_open(fake_redis):
    fake_redis.pipeline.side_effect = ConnectionError("redis down")

    cache.record_upload("alice", "a.txt")
    cache.record_search("alice", "q")


def test_recent_entries_skip_corrupt_json(fake_redis):
    fake_redis.lrange.return_value = ['{"query": "a"}', "not-json", '{"query": "b"}']

    assert cache.get_recent_searches("alice", limit=3) == [{"query": "a"}, {"query": "b"}]
    fake_redis.lrange.assert_called_once_with("vector_store:search_history:alice", 0, 2)


def test_reads_fail_open(fake_redis):
    fake_redis.lrange.side_effect = ConnectionError("redis down")

    assert cache.get_recent_uploads("alice") == []


def test_last_updated_seeds_on_miss(fake_redis):
    stamp = cache.get_last_updated()

    assert stamp
    fake_redis.setex.assert_called_once()
    assert fake_redis.setex.call_args.args[0] == cache.STATS_KEY


def test_store_id_store_round_trip():
    client = MagicMock()
    client.get.return_value = "vs-9"
    store = cache.RedisStoreIdStore(key="k", client=client)

    store.set("vs-9")

    client.set.assert_called_once_with("k", "vs-9")
    assert store.get() == "vs-9"


def test_store_id_store_fails_open():
    client = MagicMock()
    client.get.side_effect = ConnectionError("redis down")
    client.set.side_effect = ConnectionError("redis down")
    store = cache.RedisStoreIdStore(key="k", client=client)

    store.set("vs-9")
    assert store.get() is None
