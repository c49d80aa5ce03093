from __future__ import annotations

import secrets
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone

import structlog
from redis.asyncio import Redis

from app.core.redis_keys import (
    DAILY_COMPLETION_TTL_SECONDS,
    USER_SESSION_TTL_SECONDS,
    daily_completion_key,
    is_valid_session_id,
    is_valid_user_id,
    session_key,
    utc_date_str,
)
from app.game.badges.rules import LOWEST_BADGE, determine_badge
from app.game.sessions.errors import (
    AlreadyPlayedTodayError,
    GameSessionError,
    InvalidSessionIdError,
    InvalidUserIdError,
    SessionExpiredError,
    SessionNotFoundError,
    StoreError,
)
from app.game.sessions.types import DailyCompletion, GameSession

logger = structlog.get_logger(__name__)

SESSION_ID_SEPARATOR = "_"
MAX_SESSION_AGE = timedelta(hours=24)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def generate_session_id(user_id: str, *, now_ms: int | None = None) -> str:
    """Builds "{user_id}_{epoch_ms}_{random}".

    The random token keeps ids generated in the same millisecond distinct.
    """
    timestamp = _epoch_ms(_utc_now()) if now_ms is None else now_ms
    return SESSION_ID_SEPARATOR.join((user_id, str(timestamp), secrets.token_hex(6)))


def parse_session_timestamp(session_id: str) -> int | None:
    parts = session_id.rsplit(SESSION_ID_SEPARATOR, 2)
    if len(parts) != 3 or not parts[1].isdigit():
        return None
    return int(parts[1])


def _require_user_id(user_id: object) -> None:
    if not is_valid_user_id(user_id):
        raise InvalidUserIdError


def _require_session_id(session_id: object) -> None:
    if not is_valid_session_id(session_id):
        raise InvalidSessionIdError


@contextmanager
def store_errors(action: str, **log_fields: object) -> Iterator[None]:
    try:
        yield
    except GameSessionError:
        raise
    except Exception as exc:
        logger.exception("game_session_store_failed", action=action, **log_fields)
        raise StoreError(f"Failed to {action}: {exc}") from exc


class GameSessionStore:
    """Game sessions and daily completion markers kept in Redis.

    Session records live under ``user_session:{user}:{session}``. The daily
    lock is a separate ``user_daily_completion:{user}:{date}`` key so it
    outlives the session record's own expiry.
    """

    def __init__(
        self,
        redis: Redis,
        *,
        session_ttl_seconds: int = USER_SESSION_TTL_SECONDS,
        daily_completion_ttl_seconds: int = DAILY_COMPLETION_TTL_SECONDS,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._redis = redis
        self._session_ttl_seconds = max(1, int(session_ttl_seconds))
        self._daily_completion_ttl_seconds = max(1, int(daily_completion_ttl_seconds))
        self._clock = clock

    def _today(self) -> str:
        return utc_date_str(self._clock())

    async def create_game_session(self, user_id: str) -> GameSession:
        _require_user_id(user_id)

        if await self.has_user_played_today(user_id):
            logger.info("game_session_create_rejected", user_id=user_id, reason="already_played_today")
            raise AlreadyPlayedTodayError

        start_time = _epoch_ms(self._clock())
        session = GameSession(
            user_id=user_id,
            session_id=generate_session_id(user_id, now_ms=start_time),
            start_time=start_time,
            badge=LOWEST_BADGE,
        )

        # Record and TTL go out in one SET so a failure never leaves a partial session.
        with store_errors("create game session", user_id=user_id):
            await self._redis.set(
                session_key(user_id, session.session_id),
                session.to_json(),
                ex=self._session_ttl_seconds,
            )

        logger.info("game_session_created", user_id=user_id, session_id=session.session_id)
        return session

    async def get_game_session(self, user_id: str, session_id: str) -> GameSession | None:
        _require_user_id(user_id)
        _require_session_id(session_id)

        with store_errors("retrieve game session", user_id=user_id, session_id=session_id):
            raw = await self._redis.get(session_key(user_id, session_id))
            if raw is None:
                return None
            return GameSession.from_json(raw)

    async def get_active_game_session(self, user_id: str, session_id: str) -> GameSession:
        session = await self.get_game_session(user_id, session_id)
        if session is None:
            raise SessionNotFoundError
        age_ms = _epoch_ms(self._clock()) - session.start_time
        if age_ms > MAX_SESSION_AGE.total_seconds() * 1000:
            raise SessionExpiredError
        return session

    async def update_game_session(self, session: GameSession) -> None:
        _require_user_id(session.user_id)
        _require_session_id(session.session_id)

        key = session_key(session.user_id, session.session_id)
        session.badge = determine_badge(session.correct_count)

        with store_errors("update game session", user_id=session.user_id, session_id=session.session_id):
            raw = await self._redis.get(key)
            if raw is None:
                raise SessionNotFoundError
            # completed only moves False -> True; a stale copy must not reopen the session.
            if not session.completed and GameSession.from_json(raw).completed:
                logger.warning(
                    "game_session_completed_flag_kept",
                    user_id=session.user_id,
                    session_id=session.session_id,
                )
                session.completed = True
            await self._redis.set(key, session.to_json(), ex=self._session_ttl_seconds)

    async def delete_game_session(self, user_id: str, session_id: str) -> None:
        _require_user_id(user_id)
        _require_session_id(session_id)

        with store_errors("delete game session", user_id=user_id, session_id=session_id):
            await self._redis.delete(session_key(user_id, session_id))

    async def has_user_played_today(self, user_id: str, *, day: str | None = None) -> bool:
        _require_user_id(user_id)

        with store_errors("check daily completion", user_id=user_id):
            exists = await self._redis.exists(daily_completion_key(user_id, day or self._today()))
        return bool(exists)

    async def get_user_daily_completion(self, user_id: str, *, day: str | None = None) -> DailyCompletion | None:
        _require_user_id(user_id)

        with store_errors("get daily completion", user_id=user_id):
            raw = await self._redis.get(daily_completion_key(user_id, day or self._today()))
            if raw is None:
                return None
            return DailyCompletion.from_json(raw)

    async def mark_daily_completed(self, user_id: str, session: GameSession) -> None:
        """Writes the daily lock, then persists the session as completed.

        The two writes are independent; a failure of either surfaces as
        StoreError and the caller must not assume the other one landed.
        """
        _require_user_id(user_id)

        now = self._clock()
        completion = DailyCompletion(
            session_id=session.session_id,
            completed_at=_epoch_ms(now),
            total_score=session.total_score,
            correct_count=session.correct_count,
            badge=determine_badge(session.correct_count),
        )

        try:
            with store_errors("mark daily completion", user_id=user_id, session_id=session.session_id):
                await self._redis.set(
                    daily_completion_key(user_id, utc_date_str(now)),
                    completion.to_json(),
                    ex=self._daily_completion_ttl_seconds,
                )
            session.completed = True
            await self.update_game_session(session)
        except StoreError:
            raise
        except GameSessionError as exc:
            logger.error(
                "daily_completion_session_update_failed",
                user_id=user_id,
                session_id=session.session_id,
                error_code=exc.code.value,
            )
            raise StoreError(f"Failed to mark daily completion: {exc.message}") from exc

        logger.info(
            "daily_completion_marked",
            user_id=user_id,
            session_id=session.session_id,
            correct_count=session.correct_count,
            badge=completion.badge.value,
        )
