import time
from typing import Any, Optional, Dict, Tuple

# ---------------------------
# Simple internal TTL cache (in-memory)
# ---------------------------
CacheStore = Dict[str, Tuple[float, Any]]
# value is stored as: key -> (expires_at_epoch, data)


def shop_cache_key(prefix: str, shop: str, **params: Any) -> str:
    """
    Cache keys are namespaced per shop so one shop's writes only clear its own entries:
      summary:<shop>:limit=10
    """
    parts = [f"{prefix}:{shop}"]
    parts.extend(f"{k}={params[k]}" for k in sorted(params))
    return ":".join(parts)


def cache_get(store: CacheStore, key: str) -> Optional[Any]:
    """
    Return cached value if not expired, else None.
    """
    if not store:
        return None
    hit = store.get(key)
    if not hit:
        return None

    expires_at, data = hit
    if time.time() >= expires_at:
        store.pop(key, None)
        return None
    return data


def cache_set(store: CacheStore, key: str, value: Any, ttl_seconds: int) -> None:
    """
    Set cached value with ttl.
    """
    if ttl_seconds <= 0:
        # treat as "no cache"
        store.pop(key, None)
        return
    store[key] = (time.time() + ttl_seconds, value)


def cache_clear_shop(store: CacheStore, shop: str) -> int:
    """
    Remove every cached entry of one shop. Returns number removed.
    """
    if not store:
        return 0
    keys = [k for k in store.keys() if k.split(":", 2)[1:2] == [shop]]
    for k in keys:
        store.pop(k, None)
    return len(keys)
