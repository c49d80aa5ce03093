from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import structlog
from redis.asyncio import Redis

from app.core.redis_keys import USER_PLAY_LIMIT_TTL_SECONDS, is_valid_user_id, play_limit_key, utc_date_str
from app.game.sessions.errors import InvalidUserIdError, PlayLimitExceededError
from app.game.sessions.store import store_errors
from app.game.sessions.types import GameSession

logger = structlog.get_logger(__name__)

DEFAULT_MAX_DAILY_ATTEMPTS = 2
LIMIT_REACHED_REASON = "Daily play limit reached"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class UserPlayLimit:
    user_id: str
    date: str
    max_attempts: int
    attempts: int = 0
    best_score: int = 0
    best_attempt: GameSession | None = None

    @property
    def remaining_attempts(self) -> int:
        return max(0, self.max_attempts - self.attempts)

    def to_json(self) -> str:
        return json.dumps(
            {
                "userId": self.user_id,
                "date": self.date,
                "attempts": self.attempts,
                "maxAttempts": self.max_attempts,
                "bestScore": self.best_score,
                "bestAttempt": self.best_attempt.to_dict() if self.best_attempt else None,
            },
            ensure_ascii=False,
            separators=(",", ":"),
        )

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> UserPlayLimit:
        best_attempt = payload.get("bestAttempt")
        return cls(
            user_id=payload["userId"],
            date=payload["date"],
            attempts=payload["attempts"],
            max_attempts=payload["maxAttempts"],
            best_score=payload["bestScore"],
            best_attempt=GameSession.from_dict(best_attempt) if best_attempt else None,
        )


@dataclass(frozen=True, slots=True)
class PlayCheck:
    can_play: bool
    remaining_attempts: int
    max_attempts: int
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class PlayStats:
    attempts: int
    max_attempts: int
    remaining_attempts: int
    best_score: int
    can_play_again: bool
    best_attempt: GameSession | None = None


def validate_play_limit_data(data: object) -> bool:
    if not isinstance(data, dict):
        return False
    if not all(name in data for name in ("userId", "date", "attempts", "maxAttempts", "bestScore")):
        return False
    numbers = (data["attempts"], data["maxAttempts"], data["bestScore"])
    if any(isinstance(value, bool) or not isinstance(value, int) for value in numbers):
        return False
    return (
        isinstance(data["userId"], str)
        and isinstance(data["date"], str)
        and data["attempts"] >= 0
        and data["maxAttempts"] > 0
        and data["bestScore"] >= 0
    )


def _require_user_id(user_id: object) -> None:
    if not is_valid_user_id(user_id):
        raise InvalidUserIdError


class PlayLimitStore:
    """Per-user, per-UTC-day attempt counter with the day's best game.

    Attempts count game starts. The daily completion marker still blocks a
    new session once a game has been finished.
    """

    def __init__(
        self,
        redis: Redis,
        *,
        max_attempts: int = DEFAULT_MAX_DAILY_ATTEMPTS,
        ttl_seconds: int = USER_PLAY_LIMIT_TTL_SECONDS,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._redis = redis
        self._max_attempts = max(1, int(max_attempts))
        self._ttl_seconds = max(1, int(ttl_seconds))
        self._clock = clock

    def _day(self, day: str | None) -> str:
        return day or utc_date_str(self._clock())

    async def _save(self, limit: UserPlayLimit) -> None:
        await self._redis.set(play_limit_key(limit.user_id, limit.date), limit.to_json(), ex=self._ttl_seconds)

    async def get_user_play_limit(self, user_id: str, *, day: str | None = None) -> UserPlayLimit | None:
        _require_user_id(user_id)
        game_day = self._day(day)

        with store_errors("get play limit", user_id=user_id):
            raw = await self._redis.get(play_limit_key(user_id, game_day))
        if raw is None:
            return None

        try:
            payload = json.loads(raw)
        except ValueError:
            payload = None
        if not validate_play_limit_data(payload):
            logger.warning("play_limit_record_invalid", user_id=user_id, date=game_day)
            return None
        return UserPlayLimit.from_dict(payload)

    async def initialize_user_play_limit(self, user_id: str, *, day: str | None = None) -> UserPlayLimit:
        existing = await self.get_user_play_limit(user_id, day=day)
        if existing is not None:
            return existing

        limit = UserPlayLimit(user_id=user_id, date=self._day(day), max_attempts=self._max_attempts)
        with store_errors("initialize play limit", user_id=user_id):
            await self._save(limit)
        return limit

    async def can_user_play(self, user_id: str, *, day: str | None = None) -> PlayCheck:
        limit = await self.initialize_user_play_limit(user_id, day=day)
        remaining = limit.remaining_attempts
        return PlayCheck(
            can_play=remaining > 0,
            remaining_attempts=remaining,
            max_attempts=limit.max_attempts,
            reason=None if remaining > 0 else LIMIT_REACHED_REASON,
        )

    async def increment_user_attempts(self, user_id: str, *, day: str | None = None) -> UserPlayLimit:
        limit = await self.initialize_user_play_limit(user_id, day=day)
        if limit.attempts >= limit.max_attempts:
            logger.info("play_limit_exceeded", user_id=user_id, attempts=limit.attempts)
            raise PlayLimitExceededError

        limit.attempts += 1
        with store_errors("increment attempts", user_id=user_id):
            await self._save(limit)
        return limit

    async def update_best_score(
        self,
        user_id: str,
        session: GameSession,
        *,
        day: str | None = None,
    ) -> UserPlayLimit:
        limit = await self.initialize_user_play_limit(user_id, day=day)
        if session.total_score > limit.best_score:
            limit.best_score = session.total_score
            limit.best_attempt = session
            with store_errors("update best score", user_id=user_id):
                await self._save(limit)
        return limit

    async def get_user_play_stats(self, user_id: str, *, day: str | None = None) -> PlayStats:
        limit = await self.initialize_user_play_limit(user_id, day=day)
        return PlayStats(
            attempts=limit.attempts,
            max_attempts=limit.max_attempts,
            remaining_attempts=limit.remaining_attempts,
            best_score=limit.best_score,
            can_play_again=limit.remaining_attempts > 0,
            best_attempt=limit.best_attempt if limit.best_score > 0 else None,
        )

    async def reset_user_play_limit(self, user_id: str, *, day: str | None = None) -> None:
        _require_user_id(user_id)
        with store_errors("reset play limit", user_id=user_id):
            await self._redis.delete(play_limit_key(user_id, self._day(day)))
