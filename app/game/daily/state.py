from __future__ import annotations

import json
from dataclasses import dataclass, field

import structlog
from redis.asyncio import Redis

from app.core.redis_keys import DAILY_GAME_STATE_TTL_SECONDS, daily_game_key, is_valid_date_format, utc_date_str
from app.game.badges.rules import TOTAL_ROUNDS
from app.game.daily.errors import InvalidImageCollectionError
from app.game.daily.images import ImageCategory, ImageCollection, validate_image_collection
from app.game.daily.rounds import daily_round_seed, generate_category_order, generate_daily_game_rounds
from app.game.sessions.types import GameRound

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class DailyGameState:
    date: str
    image_set: list[GameRound] = field(default_factory=list)
    category_order: list[ImageCategory] = field(default_factory=list)

    def to_json(self) -> str:
        return json.dumps(
            {
                "date": self.date,
                "imageSet": [game_round.to_dict() for game_round in self.image_set],
                "categoryOrder": [category.value for category in self.category_order],
            },
            ensure_ascii=False,
            separators=(",", ":"),
        )

    @classmethod
    def from_json(cls, raw: str | bytes) -> DailyGameState:
        payload = json.loads(raw)
        return cls(
            date=str(payload["date"]),
            image_set=[GameRound.from_dict(item) for item in payload.get("imageSet") or []],
            category_order=[ImageCategory(item) for item in payload.get("categoryOrder") or []],
        )


def create_daily_game_state(collection: ImageCollection, *, day: str) -> DailyGameState:
    is_valid, errors = validate_image_collection(collection)
    if not is_valid:
        raise InvalidImageCollectionError(f"Invalid image collection: {', '.join(errors)}")

    seed = daily_round_seed(day)
    category_order = generate_category_order(seed)
    return DailyGameState(
        date=day,
        image_set=generate_daily_game_rounds(collection, seed=seed, category_order=category_order),
        category_order=category_order,
    )


async def get_daily_game_state(redis: Redis, *, day: str | None = None) -> DailyGameState | None:
    raw = await redis.get(daily_game_key(day))
    if raw is None:
        return None
    return DailyGameState.from_json(raw)


async def initialize_daily_game_state(
    redis: Redis,
    collection: ImageCollection,
    *,
    day: str | None = None,
) -> DailyGameState:
    """Returns the stored state for the day, generating and storing it on first use."""
    game_day = day or utc_date_str()
    existing = await get_daily_game_state(redis, day=game_day)
    if existing is not None:
        return existing

    state = create_daily_game_state(collection, day=game_day)
    await redis.set(daily_game_key(game_day), state.to_json(), ex=DAILY_GAME_STATE_TTL_SECONDS)
    logger.info(
        "daily_game_state_initialized",
        date=game_day,
        category_order=[category.value for category in state.category_order],
    )
    return state


async def reset_daily_game_state(redis: Redis, *, day: str) -> bool:
    removed = await redis.delete(daily_game_key(day))
    logger.info("daily_game_state_reset", date=day, removed=bool(removed))
    return bool(removed)


def validate_daily_game_state(state: DailyGameState) -> tuple[bool, list[str]]:
    errors: list[str] = []

    if not is_valid_date_format(state.date):
        errors.append("Invalid date format. Expected YYYY-MM-DD")

    if len(state.image_set) != TOTAL_ROUNDS:
        errors.append(f"Image set must contain exactly {TOTAL_ROUNDS} rounds")
    for index, game_round in enumerate(state.image_set, start=1):
        if game_round.round_number != index:
            errors.append(f"Round {index} has incorrect round number: {game_round.round_number}")
        if not game_round.image_a or not game_round.image_b:
            errors.append(f"Round {index} is missing images")
        if game_round.correct_answer not in {"A", "B"}:
            errors.append(f"Round {index} has invalid correct answer: {game_round.correct_answer}")
        if game_round.ai_image_position not in {"A", "B"}:
            errors.append(f"Round {index} has invalid AI image position: {game_round.ai_image_position}")

    missing = [category.value for category in ImageCategory if category not in state.category_order]
    if len(state.category_order) != len(ImageCategory):
        errors.append("Category order must contain all image categories")
    if missing:
        errors.append(f"Missing categories in category order: {', '.join(missing)}")

    return not errors, errors
