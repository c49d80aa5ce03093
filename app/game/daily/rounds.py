from __future__ import annotations

import hashlib
from collections.abc import Sequence

from app.game.badges.rules import TOTAL_ROUNDS
from app.game.daily.errors import RoundGenerationError
from app.game.daily.images import ImageAsset, ImageCategory, ImageCollection, images_by_category
from app.game.sessions.types import GameRound

# Rebalance when one side holds the AI image this many rounds more than the other.
MAX_PLACEMENT_IMBALANCE = 3


def stable_index(seed: str, size: int) -> int:
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big") % size


def daily_round_seed(day: str) -> str:
    return f"daily:{day}"


def generate_category_order(seed: str) -> list[ImageCategory]:
    return sorted(
        ImageCategory,
        key=lambda category: hashlib.sha256(f"{seed}:category:{category.value}".encode("utf-8")).digest(),
    )


def select_image_pair(
    collection: ImageCollection,
    category: ImageCategory,
    *,
    seed: str,
) -> tuple[ImageAsset, ImageAsset] | None:
    ai_images = images_by_category(collection, category, is_ai=True)
    human_images = images_by_category(collection, category, is_ai=False)
    if not ai_images or not human_images:
        return None
    ai_image = ai_images[stable_index(f"{seed}:{category.value}:ai", len(ai_images))]
    human_image = human_images[stable_index(f"{seed}:{category.value}:human", len(human_images))]
    return ai_image, human_image


def generate_game_round(
    collection: ImageCollection,
    category: ImageCategory,
    round_number: int,
    *,
    seed: str,
) -> GameRound | None:
    pair = select_image_pair(collection, category, seed=seed)
    if pair is None:
        return None

    ai_image, human_image = pair
    ai_on_left = stable_index(f"{seed}:placement:{round_number}", 2) == 0
    image_a, image_b = (ai_image, human_image) if ai_on_left else (human_image, ai_image)
    return GameRound(
        round_number=round_number,
        category=category.value,
        image_a=image_a.to_image_data(),
        image_b=image_b.to_image_data(),
        # correct_answer points at the human image.
        correct_answer="B" if ai_on_left else "A",
        ai_image_position="A" if ai_on_left else "B",
    )


def ensure_balanced_ai_placement(rounds: list[GameRound]) -> None:
    on_left = sum(1 for game_round in rounds if game_round.ai_image_position == "A")
    on_right = len(rounds) - on_left
    if abs(on_left - on_right) <= MAX_PLACEMENT_IMBALANCE:
        return

    crowded = "A" if on_left > on_right else "B"
    swap_count = abs(on_left - on_right) // 2
    for game_round in [item for item in rounds if item.ai_image_position == crowded][:swap_count]:
        game_round.image_a, game_round.image_b = game_round.image_b, game_round.image_a
        game_round.ai_image_position = "B" if crowded == "A" else "A"
        game_round.correct_answer = crowded


def generate_daily_game_rounds(
    collection: ImageCollection,
    *,
    seed: str,
    category_order: Sequence[ImageCategory] | None = None,
    ensure_balance: bool = True,
) -> list[GameRound]:
    """One round per category, the same set for every player sharing the seed."""
    order = list(category_order) if category_order is not None else generate_category_order(seed)

    rounds: list[GameRound] = []
    for round_number, category in enumerate(order[:TOTAL_ROUNDS], start=1):
        game_round = generate_game_round(collection, category, round_number, seed=seed)
        if game_round is not None:
            rounds.append(game_round)

    if len(rounds) < TOTAL_ROUNDS:
        raise RoundGenerationError(f"Failed to generate {TOTAL_ROUNDS} rounds. Only generated {len(rounds)} rounds.")

    if ensure_balance:
        ensure_balanced_ai_placement(rounds)
    return rounds
