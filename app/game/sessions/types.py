from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Literal

from app.game.badges.types import BadgeTier

AnswerPosition = Literal["A", "B"]


@dataclass(slots=True)
class GameRound:
    round_number: int
    category: str
    correct_answer: AnswerPosition
    ai_image_position: AnswerPosition
    image_a: dict[str, Any] = field(default_factory=dict)
    image_b: dict[str, Any] = field(default_factory=dict)
    user_answer: AnswerPosition | None = None
    time_remaining: int | None = None
    is_correct: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "roundNumber": self.round_number,
            "category": self.category,
            "imageA": self.image_a,
            "imageB": self.image_b,
            "correctAnswer": self.correct_answer,
            "aiImagePosition": self.ai_image_position,
            "userAnswer": self.user_answer,
            "timeRemaining": self.time_remaining,
            "isCorrect": self.is_correct,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> GameRound:
        return cls(
            round_number=int(payload["roundNumber"]),
            category=str(payload["category"]),
            correct_answer=payload["correctAnswer"],
            ai_image_position=payload["aiImagePosition"],
            image_a=dict(payload.get("imageA") or {}),
            image_b=dict(payload.get("imageB") or {}),
            user_answer=payload.get("userAnswer"),
            time_remaining=payload.get("timeRemaining"),
            is_correct=payload.get("isCorrect"),
        )


@dataclass(slots=True)
class GameSession:
    user_id: str
    session_id: str
    start_time: int
    rounds: list[GameRound] = field(default_factory=list)
    total_score: int = 0
    correct_count: int = 0
    total_time_bonus: int = 0
    badge: BadgeTier = BadgeTier.HUMAN_IN_TRAINING
    completed: bool = False
    attempt_number: int = 1
    showed_educational_content: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "sessionId": self.session_id,
            "startTime": self.start_time,
            "rounds": [game_round.to_dict() for game_round in self.rounds],
            "totalScore": self.total_score,
            "correctCount": self.correct_count,
            "totalTimeBonus": self.total_time_bonus,
            "badge": self.badge.value,
            "completed": self.completed,
            "attemptNumber": self.attempt_number,
            "showedEducationalContent": self.showed_educational_content,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> GameSession:
        return cls(
            user_id=str(payload["userId"]),
            session_id=str(payload["sessionId"]),
            start_time=int(payload["startTime"]),
            rounds=[GameRound.from_dict(item) for item in payload.get("rounds") or []],
            total_score=int(payload.get("totalScore", 0)),
            correct_count=int(payload.get("correctCount", 0)),
            total_time_bonus=int(payload.get("totalTimeBonus", 0)),
            badge=BadgeTier(payload.get("badge", BadgeTier.HUMAN_IN_TRAINING.value)),
            completed=bool(payload.get("completed", False)),
            attempt_number=int(payload.get("attemptNumber", 1)),
            showed_educational_content=bool(payload.get("showedEducationalContent", False)),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))

    @classmethod
    def from_json(cls, raw: str | bytes) -> GameSession:
        return cls.from_dict(json.loads(raw))


@dataclass(slots=True)
class DailyCompletion:
    session_id: str
    completed_at: int
    total_score: int
    correct_count: int
    badge: BadgeTier

    def to_json(self) -> str:
        return json.dumps(
            {
                "sessionId": self.session_id,
                "completedAt": self.completed_at,
                "totalScore": self.total_score,
                "correctCount": self.correct_count,
                "badge": self.badge.value,
            },
            separators=(",", ":"),
        )

    @classmethod
    def from_json(cls, raw: str | bytes) -> DailyCompletion:
        payload = json.loads(raw)
        return cls(
            session_id=str(payload["sessionId"]),
            completed_at=int(payload["completedAt"]),
            total_score=int(payload["totalScore"]),
            correct_count=int(payload["correctCount"]),
            badge=BadgeTier(payload["badge"]),
        )


@dataclass(frozen=True, slots=True)
class GameProgress:
    current_round_number: int
    total_rounds: int
    answered_rounds: int
    remaining_rounds: int
    is_complete: bool


@dataclass(frozen=True, slots=True)
class StartGameResult:
    session: GameSession
    current_round: GameRound
    remaining_attempts: int


@dataclass(frozen=True, slots=True)
class FinalResults:
    total_score: int
    correct_count: int
    time_bonus: int
    badge: BadgeTier


@dataclass(frozen=True, slots=True)
class SubmitAnswerResult:
    is_correct: bool
    correct_answer: AnswerPosition
    ai_image_position: AnswerPosition
    round_score: int
    game_complete: bool
    next_round: GameRound | None = None
    final_results: FinalResults | None = None
