from __future__ import annotations

import json
from dataclasses import replace

import pytest

from app.core.redis_keys import DAILY_GAME_STATE_TTL_SECONDS, daily_game_key
from app.game.daily.errors import InvalidImageCollectionError, RoundGenerationError
from app.game.daily.images import (
    ImageCategory,
    images_by_category,
    load_image_collection,
    validate_image_asset,
    validate_image_collection,
)
from app.game.daily.rounds import (
    daily_round_seed,
    ensure_balanced_ai_placement,
    generate_category_order,
    generate_daily_game_rounds,
    stable_index,
)
from app.game.daily.state import (
    DailyGameState,
    get_daily_game_state,
    initialize_daily_game_state,
    reset_daily_game_state,
    validate_daily_game_state,
)
from app.game.sessions.types import GameRound
from tests.image_fixtures import make_asset, make_collection, manifest_payload
from tests.redis_fakes import FakeRedis

DAY = "2026-03-10"


def test_sample_collection_is_valid() -> None:
    assert validate_image_collection(make_collection()) == (True, [])


def test_validate_image_asset_reports_each_problem() -> None:
    asset = replace(
        make_asset(ImageCategory.FOOD, 0, is_ai=True),
        url="not a url",
        filename="noextension",
        date_added="yesterday",
    )

    assert validate_image_asset(asset) == [
        "Image URL must be a valid URL",
        "Filename should include file extension",
        "Metadata dateAdded must be a valid ISO date string",
    ]


def test_validate_image_collection_needs_both_kinds_in_every_category() -> None:
    collection = make_collection()
    collection[ImageCategory.NATURE] = images_by_category(collection, ImageCategory.NATURE, is_ai=True)
    del collection[ImageCategory.SCIENCE]

    is_valid, errors = validate_image_collection(collection)

    assert is_valid is False
    assert "Category nature must have at least one human image" in errors
    assert "Missing category: science" in errors


def test_load_image_collection_reads_manifest(tmp_path) -> None:
    manifest = tmp_path / "images.json"
    manifest.write_text(json.dumps(manifest_payload(make_collection())), encoding="utf-8")

    collection = load_image_collection(manifest)

    assert set(collection) == set(ImageCategory)
    assert len(images_by_category(collection, ImageCategory.ANIMALS, is_ai=False)) == 2


def test_load_image_collection_rejects_missing_or_invalid_manifest(tmp_path) -> None:
    with pytest.raises(InvalidImageCollectionError):
        load_image_collection(tmp_path / "missing.json")

    payload = manifest_payload(make_collection())
    payload["food"] = [item for item in payload["food"] if item["isAI"]]
    manifest = tmp_path / "images.json"
    manifest.write_text(json.dumps(payload), encoding="utf-8")

    with pytest.raises(InvalidImageCollectionError, match="food must have at least one human image"):
        load_image_collection(manifest)


def test_stable_index_is_deterministic_and_in_range() -> None:
    picks = [stable_index(f"seed:{n}", 5) for n in range(50)]

    assert picks == [stable_index(f"seed:{n}", 5) for n in range(50)]
    assert all(0 <= pick < 5 for pick in picks)


def test_category_order_covers_every_category_once() -> None:
    order = generate_category_order(daily_round_seed(DAY))

    assert sorted(order) == sorted(ImageCategory)
    assert order == generate_category_order(daily_round_seed(DAY))


def test_generate_daily_game_rounds_is_stable_per_day() -> None:
    collection = make_collection()

    rounds = generate_daily_game_rounds(collection, seed=daily_round_seed(DAY))

    assert [game_round.round_number for game_round in rounds] == [1, 2, 3, 4, 5, 6]
    assert len({game_round.category for game_round in rounds}) == 6
    assert rounds == generate_daily_game_rounds(collection, seed=daily_round_seed(DAY))


def test_generated_round_points_correct_answer_at_human_image() -> None:
    for game_round in generate_daily_game_rounds(make_collection(), seed=daily_round_seed(DAY)):
        images = {"A": game_round.image_a, "B": game_round.image_b}
        assert images[game_round.correct_answer]["isAI"] is False
        assert images[game_round.ai_image_position]["isAI"] is True
        assert game_round.correct_answer != game_round.ai_image_position
        assert game_round.user_answer is None


def test_generate_daily_game_rounds_fails_without_enough_categories() -> None:
    collection = make_collection()
    collection[ImageCategory.PRODUCTS] = []

    with pytest.raises(RoundGenerationError, match="Only generated 5 rounds"):
        generate_daily_game_rounds(collection, seed=daily_round_seed(DAY))


def test_ensure_balanced_ai_placement_moves_half_the_excess() -> None:
    rounds = [
        GameRound(
            round_number=n,
            category="animals",
            correct_answer="B",
            ai_image_position="A",
            image_a={"id": f"ai-{n}", "isAI": True},
            image_b={"id": f"human-{n}", "isAI": False},
        )
        for n in range(1, 7)
    ]

    ensure_balanced_ai_placement(rounds)

    assert [game_round.ai_image_position for game_round in rounds] == ["B", "B", "B", "A", "A", "A"]
    assert rounds[0].image_a == {"id": "human-1", "isAI": False}
    assert rounds[0].correct_answer == "A"
    assert rounds[5].correct_answer == "B"


@pytest.mark.asyncio
async def test_initialize_daily_game_state_generates_once_per_day() -> None:
    redis = FakeRedis()
    collection = make_collection()

    first = await initialize_daily_game_state(redis, collection, day=DAY)
    second = await initialize_daily_game_state(redis, collection, day=DAY)

    assert first == second
    assert [call for call in redis.writes if call[0] == "set"] == [("set", daily_game_key(DAY))]
    assert redis.ttls[daily_game_key(DAY)] == DAILY_GAME_STATE_TTL_SECONDS
    assert await get_daily_game_state(redis, day=DAY) == first
    assert validate_daily_game_state(first) == (True, [])


@pytest.mark.asyncio
async def test_initialize_daily_game_state_rejects_invalid_collection() -> None:
    redis = FakeRedis()
    collection = make_collection()
    del collection[ImageCategory.ARCHITECTURE]

    with pytest.raises(InvalidImageCollectionError, match="Missing category: architecture"):
        await initialize_daily_game_state(redis, collection, day=DAY)
    assert redis.writes == []


@pytest.mark.asyncio
async def test_reset_daily_game_state_reports_whether_state_existed() -> None:
    redis = FakeRedis()
    await initialize_daily_game_state(redis, make_collection(), day=DAY)

    assert await reset_daily_game_state(redis, day=DAY) is True
    assert await reset_daily_game_state(redis, day=DAY) is False
    assert await get_daily_game_state(redis, day=DAY) is None


def test_validate_daily_game_state_lists_problems() -> None:
    state = DailyGameState(date="10-03-2026", image_set=[], category_order=[ImageCategory.FOOD])

    is_valid, errors = validate_daily_game_state(state)

    assert is_valid is False
    assert "Invalid date format. Expected YYYY-MM-DD" in errors
    assert "Image set must contain exactly 6 rounds" in errors
    assert "Category order must contain all image categories" in errors
