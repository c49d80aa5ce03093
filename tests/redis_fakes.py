from __future__ import annotations

from typing import Any


class FakeRedisError(Exception):
    pass


class FakeRedis:
    """In-memory stand-in for the subset of redis.asyncio.Redis used by the app."""

    def __init__(self, *, fail_on: set[str] | None = None) -> None:
        self.data: dict[str, Any] = {}
        self.ttls: dict[str, int] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_on = set(fail_on or ())
        self.closed = False

    def _record(self, method: str, key: str) -> None:
        self.calls.append((method, key))
        if method in self.fail_on:
            raise FakeRedisError(f"{method} failed: connection reset")

    @property
    def writes(self) -> list[tuple[str, str]]:
        return [call for call in self.calls if call[0] in {"set", "expire", "delete", "incr", "hset", "zadd"}]

    async def get(self, key: str) -> Any:
        self._record("get", key)
        return self.data.get(key)

    async def set(self, key: str, value: Any, ex: int | None = None) -> bool:
        self._record("set", key)
        self.data[key] = value
        if ex is not None:
            self.ttls[key] = ex
        else:
            self.ttls.pop(key, None)
        return True

    async def exists(self, *keys: str) -> int:
        for key in keys:
            self._record("exists", key)
        return sum(1 for key in keys if key in self.data)

    async def expire(self, key: str, seconds: int) -> bool:
        self._record("expire", key)
        if key not in self.data:
            return False
        self.ttls[key] = seconds
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            self._record("delete", key)
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def incr(self, key: str) -> int:
        self._record("incr", key)
        value = int(self.data.get(key, 0)) + 1
        self.data[key] = str(value)
        return value

    async def hset(self, key: str, mapping: dict[str, Any]) -> int:
        self._record("hset", key)
        bucket = self.data.setdefault(key, {})
        added = sum(1 for field in mapping if field not in bucket)
        bucket.update({field: str(value) for field, value in mapping.items()})
        return added

    async def hgetall(self, key: str) -> dict[str, str]:
        self._record("hgetall", key)
        return dict(self.data.get(key) or {})

    async def zadd(self, key: str, mapping: dict[str, float], *, gt: bool = False, ch: bool = False) -> int:
        self._record("zadd", key)
        scores = self.data.setdefault(key, {})
        added = changed = 0
        for member, score in mapping.items():
            current = scores.get(member)
            if current is None:
                added += 1
            elif gt and float(score) <= current:
                continue
            elif float(score) != current:
                changed += 1
            scores[member] = float(score)
        return added + changed if ch else added

    async def zscore(self, key: str, member: str) -> float | None:
        self._record("zscore", key)
        return (self.data.get(key) or {}).get(member)

    def _ranked(self, key: str) -> list[tuple[str, float]]:
        scores = self.data.get(key) or {}
        return sorted(scores.items(), key=lambda item: (item[1], item[0]), reverse=True)

    async def zrevrange(self, key: str, start: int, end: int, withscores: bool = False) -> list[Any]:
        self._record("zrevrange", key)
        ranked = self._ranked(key)
        stop = len(ranked) if end == -1 else end + 1
        window = ranked[start:stop]
        return window if withscores else [member for member, _ in window]

    async def zrevrank(self, key: str, member: str) -> int | None:
        self._record("zrevrank", key)
        for index, (candidate, _) in enumerate(self._ranked(key)):
            if candidate == member:
                return index
        return None

    async def zcard(self, key: str) -> int:
        self._record("zcard", key)
        return len(self.data.get(key) or {})

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        self.closed = True
