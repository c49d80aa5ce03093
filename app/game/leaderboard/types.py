from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from app.game.badges.types import BadgeTier


class LeaderboardType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    ALL_TIME = "all-time"


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    user_id: str
    username: str
    score: int
    correct_count: int
    time_bonus: int
    completed_at: int
    badge: BadgeTier

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "username": self.username,
            "score": self.score,
            "correctCount": self.correct_count,
            "timeBonus": self.time_bonus,
            "completedAt": self.completed_at,
            "badge": self.badge.value,
        }


@dataclass(frozen=True, slots=True)
class UserRank:
    rank: int
    score: int
    total_participants: int
