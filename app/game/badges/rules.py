from __future__ import annotations

import math

from app.game.badges.types import BadgeConfig, BadgeDisplayInfo, BadgeProgress, BadgeRarity, BadgeTier

TOTAL_ROUNDS = 6

# Highest threshold first; first match wins.
BADGE_THRESHOLDS: tuple[tuple[int, BadgeTier], ...] = (
    (6, BadgeTier.AI_WHISPERER),
    (5, BadgeTier.AI_DETECTIVE),
    (4, BadgeTier.GOOD_SAMARITAN),
    (3, BadgeTier.JUST_HUMAN),
)
LOWEST_BADGE = BadgeTier.HUMAN_IN_TRAINING

BADGE_CONFIGS: dict[BadgeTier, BadgeConfig] = {
    BadgeTier.AI_WHISPERER: BadgeConfig(
        tier=BadgeTier.AI_WHISPERER,
        name="AI Whisperer",
        description="Perfect score! You can spot AI-generated content with incredible accuracy.",
        min_correct_answers=6,
        max_correct_answers=6,
        icon="🤖",
        color="#FFD700",
        rarity=BadgeRarity.LEGENDARY,
    ),
    BadgeTier.AI_DETECTIVE: BadgeConfig(
        tier=BadgeTier.AI_DETECTIVE,
        name="AI Detective",
        description="Outstanding! You have excellent skills at detecting AI-generated content.",
        min_correct_answers=5,
        max_correct_answers=5,
        icon="🕵️",
        color="#E6E6FA",
        rarity=BadgeRarity.RARE,
    ),
    BadgeTier.GOOD_SAMARITAN: BadgeConfig(
        tier=BadgeTier.GOOD_SAMARITAN,
        name="Good Samaritan",
        description="Excellent work! You have a keen eye for distinguishing real from artificial.",
        min_correct_answers=4,
        max_correct_answers=4,
        icon="👁️",
        color="#C0C0C0",
        rarity=BadgeRarity.RARE,
    ),
    BadgeTier.JUST_HUMAN: BadgeConfig(
        tier=BadgeTier.JUST_HUMAN,
        name="Just Human",
        description="Not bad! You're getting the hang of spotting AI-generated images.",
        min_correct_answers=3,
        max_correct_answers=3,
        icon="👤",
        color="#CD7F32",
        rarity=BadgeRarity.UNCOMMON,
    ),
    BadgeTier.HUMAN_IN_TRAINING: BadgeConfig(
        tier=BadgeTier.HUMAN_IN_TRAINING,
        name="Human in Training",
        description="Keep practicing! AI detection skills take time to develop.",
        min_correct_answers=0,
        max_correct_answers=2,
        icon="🎓",
        color="#808080",
        rarity=BadgeRarity.COMMON,
    ),
}

RARITY_COLORS: dict[BadgeRarity, str] = {
    BadgeRarity.LEGENDARY: "#FFD700",
    BadgeRarity.RARE: "#9932CC",
    BadgeRarity.UNCOMMON: "#1E90FF",
    BadgeRarity.COMMON: "#808080",
}

_ACHIEVEMENT_PREFIXES: dict[BadgeTier, str] = {
    BadgeTier.AI_WHISPERER: "🎉 Perfect!",
    BadgeTier.AI_DETECTIVE: "🕵️ Outstanding!",
    BadgeTier.GOOD_SAMARITAN: "🌟 Great job!",
    BadgeTier.JUST_HUMAN: "👍 Nice work!",
    BadgeTier.HUMAN_IN_TRAINING: "📚 Keep learning!",
}


def determine_badge(correct_count: float) -> BadgeTier:
    """Maps a correct-answer count to its badge tier.

    Total over every real number: negative, fractional and NaN inputs never
    raise and fall through to the lowest tier unless a threshold matches.
    """
    for threshold, tier in BADGE_THRESHOLDS:
        if correct_count >= threshold:
            return tier
    return LOWEST_BADGE


def get_badge_config(tier: BadgeTier) -> BadgeConfig:
    return BADGE_CONFIGS[tier]


def _requirement_label(config: BadgeConfig) -> str:
    if config.min_correct_answers == config.max_correct_answers:
        return f"{config.min_correct_answers} correct"
    return f"{config.min_correct_answers}-{config.max_correct_answers} correct"


def get_badge_display_info(tier: BadgeTier, *, earned: bool = True) -> BadgeDisplayInfo:
    config = get_badge_config(tier)
    return BadgeDisplayInfo(
        tier=config.tier,
        name=config.name,
        description=config.description,
        icon=config.icon,
        color=config.color,
        rarity=config.rarity,
        earned=earned,
        correct_answers_required=_requirement_label(config),
    )


def get_all_badge_display_info(earned_badge: BadgeTier) -> list[BadgeDisplayInfo]:
    return [get_badge_display_info(tier, earned=tier == earned_badge) for tier in BadgeTier]


def is_valid_badge_tier(value: object) -> bool:
    return isinstance(value, str) and value in {tier.value for tier in BadgeTier}


def get_badge_requirements_text(tier: BadgeTier) -> str:
    config = get_badge_config(tier)
    if config.min_correct_answers != config.max_correct_answers:
        return f"Get {config.min_correct_answers}-{config.max_correct_answers} answers correct"
    if config.min_correct_answers == TOTAL_ROUNDS:
        return f"Get all {TOTAL_ROUNDS} answers correct"
    if config.min_correct_answers == 0:
        return "Complete the daily challenge"
    return f"Get exactly {config.min_correct_answers} answers correct"


def get_badge_rarity_color(rarity: BadgeRarity) -> str:
    return RARITY_COLORS.get(rarity, RARITY_COLORS[BadgeRarity.COMMON])


def get_badge_achievement_message(tier: BadgeTier, correct_count: int) -> str:
    config = get_badge_config(tier)
    prefix = _ACHIEVEMENT_PREFIXES[tier]
    return (
        f'{prefix} You earned the "{config.name}" badge with '
        f"{correct_count}/{TOTAL_ROUNDS} correct answers!"
    )


def get_next_badge_info(current_badge: BadgeTier) -> BadgeDisplayInfo | None:
    current_min = get_badge_config(current_badge).min_correct_answers
    higher = [config for config in BADGE_CONFIGS.values() if config.min_correct_answers > current_min]
    if not higher:
        return None
    next_config = min(higher, key=lambda config: config.min_correct_answers)
    return get_badge_display_info(next_config.tier, earned=False)


def calculate_badge_progress(correct_count: float) -> BadgeProgress:
    current_badge = determine_badge(correct_count)
    next_info = get_next_badge_info(current_badge)
    if next_info is None:
        return BadgeProgress(
            current_badge=current_badge,
            next_badge=None,
            progress=100.0,
            progress_text="Maximum badge achieved!",
        )

    required = get_badge_config(next_info.tier).min_correct_answers
    safe_count = max(0, correct_count) if math.isfinite(correct_count) else 0
    progress = max(0.0, min(100.0, safe_count / required * 100))
    remaining = max(1, math.ceil(required - safe_count))
    plural = "" if remaining == 1 else "s"
    return BadgeProgress(
        current_badge=current_badge,
        next_badge=next_info.tier,
        progress=progress,
        progress_text=f"{remaining} more correct answer{plural} needed for {next_info.name}",
    )
