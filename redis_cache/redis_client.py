import json
import os
from datetime import datetime, timezone
from typing import Dict, List, Optional

import redis

from vector_ingest.logger import GLOBAL_LOGGER as log
from vector_ingest.utils.config_loader import get_config

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_DB = int(os.getenv("REDIS_DB", "0"))

redis_client = redis.Redis(
    host=REDIS_HOST,
    port=REDIS_PORT,
    db=REDIS_DB,
    decode_responses=True,
    socket_timeout=2.0,
    socket_connect_timeout=2.0,
)

SEARCH_HISTORY_PREFIX = "vector_store:search_history:"
UPLOAD_HISTORY_PREFIX = "vector_store:upload_history:"
STATS_KEY = "vector_store:stats"


def _cache_settings() -> Dict:
    return get_config().get("activity_cache", {})


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _user_key(prefix: str, user_id: Optional[str]) -> str:
    """
    example : vector_store:upload_history:alice
    Anonymous activity is grouped under "global".
    """
    return f"{prefix}{user_id or 'global'}"


def _push_capped(key: str, entry: Dict) -> None:
    settings = _cache_settings()
    max_entries = int(settings.get("max_entries", 50))
    ttl = int(settings.get("ttl_seconds", 86400 * 7))

    pipe = redis_client.pipeline()
    pipe.lpush(key, json.dumps(entry))
    pipe.ltrim(key, 0, max_entries - 1)
    pipe.expire(key, ttl)
    pipe.execute()


def _read_recent(key: str, limit: Optional[int]) -> List[Dict]:
    if limit is None:
        limit = int(_cache_settings().get("recent_limit", 10))

    raw_entries = redis_client.lrange(key, 0, limit - 1)
    entries = []
    for raw in raw_entries:
        try:
            entries.append(json.loads(raw))
        except (TypeError, ValueError):
            log.debug("Skipping corrupt activity entry | key=%s", key)
    return entries


def record_search(user_id: Optional[str], query: str, result_count: int = 0) -> None:
    """
    Append a search to the user's recent-search list (newest first).
    """
    entry = {
        "query": query,
        "timestamp": _now_iso(),
        "resultCount": result_count,
        "userId": user_id or "global",
    }
    try:
        _push_capped(_user_key(SEARCH_HISTORY_PREFIX, user_id), entry)
        touch_stats()
        log.debug("Recorded search activity | user_id=%s", user_id)
    except Exception as e:
        log.warning("Failed to record search activity | error=%s", str(e))


def record_upload(
    user_id: Optional[str],
    filename: str,
    status: str = "processing",
    size: int = 0,
    file_id: Optional[str] = None,
) -> None:
    """
    Append an upload to the user's recent-upload list (newest first).
    """
    entry = {
        "filename": filename,
        "timestamp": _now_iso(),
        "status": status,
        "size": size,
    }
    if file_id:
        entry["fileId"] = file_id

    try:
        _push_capped(_user_key(UPLOAD_HISTORY_PREFIX, user_id), entry)
        touch_stats()
        log.debug("Recorded upload activity | user_id=%s | filename=%s", user_id, filename)
    except Exception as e:
        log.warning("Failed to record upload activity | error=%s", str(e))


def get_recent_searches(user_id: Optional[str], limit: Optional[int] = None) -> List[Dict]:
    try:
        return _read_recent(_user_key(SEARCH_HISTORY_PREFIX, user_id), limit)
    except Exception as e:
        log.warning("Failed to fetch search history | error=%s", str(e))
        return []


def get_recent_uploads(user_id: Optional[str], limit: Optional[int] = None) -> List[Dict]:
    try:
        return _read_recent(_user_key(UPLOAD_HISTORY_PREFIX, user_id), limit)
    except Exception as e:
        log.warning("Failed to fetch upload history | error=%s", str(e))
        return []


def touch_stats() -> None:
    ttl = int(_cache_settings().get("stats_ttl_seconds", 3600))
    try:
        redis_client.setex(STATS_KEY, ttl, json.dumps({"lastUpdated": _now_iso()}))
    except Exception as e:
        log.warning("Failed to update stats timestamp | error=%s", str(e))


def get_last_updated() -> str:
    """
    Timestamp of the last recorded activity; seeds the key with "now" on a miss.
    """
    try:
        raw = redis_client.get(STATS_KEY)
        if raw:
            return json.loads(raw).get("lastUpdated") or _now_iso()
    except Exception as e:
        log.warning("Failed to read stats timestamp | error=%s", str(e))
        return _now_iso()

    touch_stats()
    return _now_iso()


class RedisStoreIdStore:
    """
    Persists the resolved vector-store id across process restarts.
    Unavailable Redis reads as "nothing remembered".
    """

    def __init__(self, key: Optional[str] = None, client: Optional[redis.Redis] = None):
        self.key = key or _cache_settings().get("store_id_key", "vector_store:active_id")
        self.client = client or redis_client

    def get(self) -> Optional[str]:
        try:
            return self.client.get(self.key)
        except Exception as e:
            log.warning("Failed to read remembered store id | error=%s", str(e))
            return None

    def set(self, store_id: str) -> None:
        try:
            self.client.set(self.key, store_id)
            log.info("Remembered vector store id | store_id=%s", store_id)
        except Exception as e:
            log.warning("Failed to remember store id | error=%s", str(e))
