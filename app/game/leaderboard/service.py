from __future__ import annotations

import math
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

import structlog
from redis.asyncio import Redis

from app.core.redis_keys import (
    DAILY_LEADERBOARD_TTL_SECONDS,
    LEADERBOARD_ALL_TIME_KEY,
    USER_DATA_TTL_SECONDS,
    WEEKLY_LEADERBOARD_TTL_SECONDS,
    is_valid_user_id,
    leaderboard_daily_key,
    leaderboard_weekly_key,
    user_data_key,
    utc_date_str,
    utc_week_str,
)
from app.game.badges.rules import LOWEST_BADGE, is_valid_badge_tier
from app.game.badges.types import BadgeTier
from app.game.leaderboard.errors import (
    InvalidLeaderboardQueryError,
    InvalidLeaderboardTypeError,
    InvalidLeaderboardUserError,
    InvalidScoreError,
    LeaderboardError,
    LeaderboardStoreError,
)
from app.game.leaderboard.types import LeaderboardEntry, LeaderboardType, UserRank

logger = structlog.get_logger(__name__)

MAX_PAGE_SIZE = 1000
# All-time entries never expire.
BOARD_TTLS: tuple[tuple[LeaderboardType, int | None], ...] = (
    (LeaderboardType.DAILY, DAILY_LEADERBOARD_TTL_SECONDS),
    (LeaderboardType.WEEKLY, WEEKLY_LEADERBOARD_TTL_SECONDS),
    (LeaderboardType.ALL_TIME, None),
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _resolve_type(board: LeaderboardType | str) -> LeaderboardType:
    try:
        return LeaderboardType(board)
    except ValueError as exc:
        raise InvalidLeaderboardTypeError from exc


def _require_user_id(user_id: object) -> None:
    if not is_valid_user_id(user_id):
        raise InvalidLeaderboardUserError


@contextmanager
def _leaderboard_errors(action: str, **log_fields: object) -> Iterator[None]:
    try:
        yield
    except LeaderboardError:
        raise
    except Exception as exc:
        logger.exception("leaderboard_store_failed", action=action, **log_fields)
        raise LeaderboardStoreError(f"Failed to {action}: {exc}") from exc


def _int_field(data: dict[str, str], name: str) -> int:
    try:
        return int(data.get(name) or 0)
    except ValueError:
        return 0


class LeaderboardStore:
    """Daily, weekly and all-time boards as Redis sorted sets keyed by user id.

    A user appears once per board with their best score. Display data lives
    in a separate ``user_data:{user}`` hash shared by all boards.
    """

    def __init__(self, redis: Redis, *, clock: Callable[[], datetime] = _utc_now) -> None:
        self._redis = redis
        self._clock = clock

    def _board_key(self, board: LeaderboardType) -> str:
        now = self._clock()
        if board is LeaderboardType.DAILY:
            return leaderboard_daily_key(utc_date_str(now))
        if board is LeaderboardType.WEEKLY:
            return leaderboard_weekly_key(utc_week_str(now))
        return LEADERBOARD_ALL_TIME_KEY

    async def add_score(
        self,
        user_id: str,
        *,
        username: str,
        score: int,
        correct_count: int,
        time_bonus: int,
        badge: BadgeTier,
        completed_at: int | None = None,
    ) -> dict[LeaderboardType, bool]:
        """Records a finished game; each board keeps the better of old and new score.

        Returns which boards changed.
        """
        _require_user_id(user_id)
        if isinstance(score, bool) or not isinstance(score, (int, float)) or not math.isfinite(score) or score < 0:
            raise InvalidScoreError

        finished_at = completed_at if completed_at is not None else int(self._clock().timestamp() * 1000)
        updated: dict[LeaderboardType, bool] = {}

        with _leaderboard_errors("add score to leaderboards", user_id=user_id):
            profile_key = user_data_key(user_id)
            await self._redis.hset(
                profile_key,
                mapping={
                    "username": username or user_id,
                    "correctCount": str(correct_count),
                    "timeBonus": str(time_bonus),
                    "completedAt": str(finished_at),
                    "badge": badge.value,
                },
            )
            await self._redis.expire(profile_key, USER_DATA_TTL_SECONDS)

            for board, ttl_seconds in BOARD_TTLS:
                key = self._board_key(board)
                changed = await self._redis.zadd(key, {user_id: score}, gt=True, ch=True)
                updated[board] = bool(changed)
                if changed and ttl_seconds is not None:
                    await self._redis.expire(key, ttl_seconds)

        logger.info(
            "leaderboard_score_recorded",
            user_id=user_id,
            score=score,
            updated=[board.value for board, changed in updated.items() if changed],
        )
        return updated

    async def get_leaderboard(
        self,
        board: LeaderboardType | str,
        *,
        limit: int = 100,
        offset: int = 0,
    ) -> list[LeaderboardEntry]:
        resolved = _resolve_type(board)
        if not 1 <= limit <= MAX_PAGE_SIZE or offset < 0:
            raise InvalidLeaderboardQueryError(
                f"limit must be between 1 and {MAX_PAGE_SIZE} and offset must be 0 or greater"
            )

        with _leaderboard_errors("get leaderboard", board=resolved.value):
            ranked = await self._redis.zrevrange(self._board_key(resolved), offset, offset + limit - 1, withscores=True)
            entries: list[LeaderboardEntry] = []
            for user_id, score in ranked:
                profile = await self._redis.hgetall(user_data_key(user_id))
                badge = profile.get("badge")
                entries.append(
                    LeaderboardEntry(
                        user_id=user_id,
                        username=profile.get("username") or user_id,
                        score=int(score),
                        correct_count=_int_field(profile, "correctCount"),
                        time_bonus=_int_field(profile, "timeBonus"),
                        completed_at=_int_field(profile, "completedAt"),
                        badge=BadgeTier(badge) if is_valid_badge_tier(badge) else LOWEST_BADGE,
                    )
                )
        return entries

    async def get_user_rank(self, user_id: str, board: LeaderboardType | str) -> UserRank | None:
        _require_user_id(user_id)
        resolved = _resolve_type(board)

        with _leaderboard_errors("get user rank", user_id=user_id, board=resolved.value):
            key = self._board_key(resolved)
            score = await self._redis.zscore(key, user_id)
            if score is None:
                return None
            rank = await self._redis.zrevrank(key, user_id)
            if rank is None:
                return None
            total = await self._redis.zcard(key)
        return UserRank(rank=int(rank) + 1, score=int(score), total_participants=int(total))

    async def get_participant_count(self, board: LeaderboardType | str) -> int:
        resolved = _resolve_type(board)
        with _leaderboard_errors("get participant count", board=resolved.value):
            return int(await self._redis.zcard(self._board_key(resolved)))

    async def clear_all_leaderboards(self) -> None:
        with _leaderboard_errors("clear leaderboards"):
            await self._redis.delete(*(self._board_key(board) for board in LeaderboardType))
        logger.info("leaderboards_cleared")
