from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class BadgeTier(str, Enum):
    AI_WHISPERER = "ai_whisperer"
    AI_DETECTIVE = "ai_detective"
    GOOD_SAMARITAN = "good_samaritan"
    JUST_HUMAN = "just_human"
    HUMAN_IN_TRAINING = "human_in_training"


class BadgeRarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    LEGENDARY = "legendary"


@dataclass(frozen=True, slots=True)
class BadgeConfig:
    tier: BadgeTier
    name: str
    description: str
    min_correct_answers: int
    max_correct_answers: int
    icon: str
    color: str
    rarity: BadgeRarity


@dataclass(frozen=True, slots=True)
class BadgeDisplayInfo:
    tier: BadgeTier
    name: str
    description: str
    icon: str
    color: str
    rarity: BadgeRarity
    earned: bool
    correct_answers_required: str


@dataclass(frozen=True, slots=True)
class BadgeProgress:
    current_badge: BadgeTier
    next_badge: BadgeTier | None
    progress: float
    progress_text: str
