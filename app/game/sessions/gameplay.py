from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone

import structlog
from redis.asyncio import Redis

from app.core.config import Settings, get_settings
from app.core.redis_keys import utc_date_str
from app.game.daily.errors import InvalidImageCollectionError
from app.game.daily.images import ImageCollection, load_image_collection
from app.game.daily.participants import increment_participant_count
from app.game.daily.state import initialize_daily_game_state
from app.game.leaderboard.service import LeaderboardStore
from app.game.sessions.errors import GameSessionError, PlayLimitExceededError
from app.game.sessions.play_limits import PlayLimitStore
from app.game.sessions.progress import all_rounds_answered, next_unanswered_round, record_round_answer
from app.game.sessions.store import GameSessionStore
from app.game.sessions.types import (
    AnswerPosition,
    FinalResults,
    GameRound,
    StartGameResult,
    SubmitAnswerResult,
)

logger = structlog.get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class GameplayService:
    """Start and answer flow over the session, play-limit and leaderboard stores."""

    def __init__(
        self,
        redis: Redis,
        *,
        image_collection: ImageCollection,
        store: GameSessionStore | None = None,
        play_limits: PlayLimitStore | None = None,
        leaderboard: LeaderboardStore | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._redis = redis
        self._image_collection = image_collection
        self._clock = clock
        self.store = store or GameSessionStore(redis, clock=clock)
        self.play_limits = play_limits or PlayLimitStore(redis, clock=clock)
        self.leaderboard = leaderboard or LeaderboardStore(redis, clock=clock)

    async def start_game(self, user_id: str) -> StartGameResult:
        check = await self.play_limits.can_user_play(user_id)
        if not check.can_play:
            raise PlayLimitExceededError(check.reason)

        now = self._clock()
        daily_state = await initialize_daily_game_state(self._redis, self._image_collection, day=utc_date_str(now))

        session = await self.store.create_game_session(user_id)
        session.rounds = [replace(game_round) for game_round in daily_state.image_set]
        limit = await self.play_limits.increment_user_attempts(user_id)
        session.attempt_number = limit.attempts
        await self.store.update_game_session(session)

        participants = await increment_participant_count(self._redis, now_utc=now)
        logger.info(
            "game_started",
            user_id=user_id,
            session_id=session.session_id,
            attempt_number=session.attempt_number,
            participants=participants,
        )
        return StartGameResult(
            session=session,
            current_round=session.rounds[0],
            remaining_attempts=limit.remaining_attempts,
        )

    async def get_current_round(self, user_id: str, session_id: str) -> GameRound | None:
        session = await self.store.get_active_game_session(user_id, session_id)
        return next_unanswered_round(session)

    async def submit_answer(
        self,
        user_id: str,
        session_id: str,
        *,
        round_number: int,
        user_answer: AnswerPosition,
        time_remaining_ms: int,
        username: str | None = None,
    ) -> SubmitAnswerResult:
        session = await self.store.get_active_game_session(user_id, session_id)
        round_score = record_round_answer(
            session,
            round_number=round_number,
            user_answer=user_answer,
            time_remaining_ms=time_remaining_ms,
        )
        answered = next(item for item in session.rounds if item.round_number == round_number)

        if not all_rounds_answered(session):
            await self.store.update_game_session(session)
            return SubmitAnswerResult(
                is_correct=bool(answered.is_correct),
                correct_answer=answered.correct_answer,
                ai_image_position=answered.ai_image_position,
                round_score=round_score,
                game_complete=False,
                next_round=next_unanswered_round(session),
            )

        await self.store.mark_daily_completed(user_id, session)
        try:
            await self.play_limits.update_best_score(user_id, session)
        except GameSessionError:
            # The finished game is already recorded; a missing best score is not worth failing it.
            logger.exception("best_score_update_failed", user_id=user_id, session_id=session_id)
        await self.leaderboard.add_score(
            user_id,
            username=username or user_id,
            score=session.total_score,
            correct_count=session.correct_count,
            time_bonus=session.total_time_bonus,
            badge=session.badge,
        )

        logger.info(
            "game_completed",
            user_id=user_id,
            session_id=session_id,
            total_score=session.total_score,
            correct_count=session.correct_count,
            badge=session.badge.value,
        )
        return SubmitAnswerResult(
            is_correct=bool(answered.is_correct),
            correct_answer=answered.correct_answer,
            ai_image_position=answered.ai_image_position,
            round_score=round_score,
            game_complete=True,
            final_results=FinalResults(
                total_score=session.total_score,
                correct_count=session.correct_count,
                time_bonus=session.total_time_bonus,
                badge=session.badge,
            ),
        )


def build_gameplay_service(redis: Redis, *, settings: Settings | None = None) -> GameplayService:
    resolved = settings or get_settings()
    if not resolved.image_manifest_path:
        raise InvalidImageCollectionError("IMAGE_MANIFEST_PATH is not configured")

    return GameplayService(
        redis,
        image_collection=load_image_collection(resolved.image_manifest_path),
        store=GameSessionStore(
            redis,
            session_ttl_seconds=resolved.session_ttl_seconds,
            daily_completion_ttl_seconds=resolved.daily_completion_ttl_seconds,
        ),
        play_limits=PlayLimitStore(redis, max_attempts=resolved.max_daily_attempts),
    )
