from __future__ import annotations

import pytest

from app.game.badges.types import BadgeTier
from app.game.sessions.errors import InvalidAnswerError, SessionCompletedError, SessionErrorCode
from app.game.sessions.progress import (
    all_rounds_answered,
    calculate_round_score,
    get_game_progress,
    is_session_playable,
    next_unanswered_round,
    record_round_answer,
    validate_game_session,
)
from app.game.sessions.types import GameRound, GameSession


def _round(number: int, *, correct: str = "A") -> GameRound:
    return GameRound(
        round_number=number,
        category="animals",
        correct_answer=correct,
        ai_image_position="B" if correct == "A" else "A",
        image_a={"id": f"human-{number}"},
        image_b={"id": f"ai-{number}"},
    )


def _session(rounds: int = 6) -> GameSession:
    return GameSession(
        user_id="alice",
        session_id="alice_1767225600000_abc",
        start_time=1767225600000,
        rounds=[_round(number) for number in range(1, rounds + 1)],
    )


@pytest.mark.parametrize(
    ("is_correct", "time_remaining_ms", "expected"),
    [
        (False, 9000, 0),
        (True, 9999, 15),
        (True, 7000, 15),
        (True, 6999, 13),
        (True, 4000, 13),
        (True, 3999, 11),
        (True, 1000, 11),
        (True, 999, 10),
        (True, -50, 10),
    ],
)
def test_calculate_round_score_time_bonus_tiers(is_correct: bool, time_remaining_ms: int, expected: int) -> None:
    assert calculate_round_score(is_correct, time_remaining_ms) == expected


def test_record_round_answer_updates_accumulators_and_badge() -> None:
    session = _session()

    for number in range(1, 4):
        record_round_answer(session, round_number=number, user_answer="A", time_remaining_ms=8000)
    score = record_round_answer(session, round_number=4, user_answer="B", time_remaining_ms=8000)

    assert score == 0
    assert session.correct_count == 3
    assert session.total_score == 45
    assert session.total_time_bonus == 15
    assert session.badge == BadgeTier.JUST_HUMAN
    assert session.rounds[3].is_correct is False
    assert session.rounds[0].time_remaining == 8000


def test_record_round_answer_rejects_replayed_round() -> None:
    session = _session()
    record_round_answer(session, round_number=1, user_answer="A", time_remaining_ms=5000)

    with pytest.raises(InvalidAnswerError, match="already answered") as exc_info:
        record_round_answer(session, round_number=1, user_answer="A", time_remaining_ms=5000)

    assert exc_info.value.code == SessionErrorCode.INVALID_ANSWER
    assert session.correct_count == 1


@pytest.mark.parametrize(
    ("round_number", "user_answer", "time_remaining_ms", "message"),
    [
        (7, "A", 5000, "does not exist"),
        (1, "C", 5000, "Invalid answer position"),
        (1, "A", -1, "Invalid time remaining"),
        (1, "A", 10_001, "Invalid time remaining"),
    ],
)
def test_record_round_answer_rejects_bad_submissions(
    round_number: int,
    user_answer: str,
    time_remaining_ms: int,
    message: str,
) -> None:
    session = _session()

    with pytest.raises(InvalidAnswerError, match=message):
        record_round_answer(
            session,
            round_number=round_number,
            user_answer=user_answer,
            time_remaining_ms=time_remaining_ms,
        )

    assert session.total_score == 0
    assert all(game_round.user_answer is None for game_round in session.rounds)


def test_record_round_answer_rejects_completed_session() -> None:
    session = _session()
    session.completed = True

    with pytest.raises(SessionCompletedError) as exc_info:
        record_round_answer(session, round_number=1, user_answer="A", time_remaining_ms=5000)

    assert exc_info.value.code == SessionErrorCode.SESSION_COMPLETED


def test_next_unanswered_round_and_all_rounds_answered() -> None:
    session = _session()
    assert next_unanswered_round(session).round_number == 1

    for number in range(1, 7):
        record_round_answer(session, round_number=number, user_answer="A", time_remaining_ms=0)

    assert next_unanswered_round(session) is None
    assert all_rounds_answered(session) is True
    assert all_rounds_answered(_session(rounds=0)) is False


def test_validate_game_session_accepts_well_formed_session() -> None:
    assert validate_game_session(_session()) == (True, [])


def test_validate_game_session_reports_every_problem() -> None:
    session = _session(rounds=5)
    session.rounds[1].round_number = 9
    session.correct_count = 7
    session.total_score = -1

    is_valid, errors = validate_game_session(session)

    assert is_valid is False
    assert "Session must have exactly 6 rounds" in errors
    assert "Round 2 has incorrect round number: 9" in errors
    assert "Invalid correct count" in errors
    assert "Invalid total score" in errors


def test_progress_and_playability() -> None:
    session = _session()
    assert is_session_playable(session) is True

    record_round_answer(session, round_number=1, user_answer="A", time_remaining_ms=5000)
    record_round_answer(session, round_number=2, user_answer="A", time_remaining_ms=5000)
    progress = get_game_progress(session)

    assert progress.current_round_number == 3
    assert progress.answered_rounds == 2
    assert progress.remaining_rounds == 4
    assert progress.is_complete is False

    session.completed = True
    assert is_session_playable(session) is False
    assert get_game_progress(session).is_complete is True


def test_session_json_round_trip_keeps_rounds() -> None:
    session = _session()
    record_round_answer(session, round_number=1, user_answer="B", time_remaining_ms=2000)

    assert GameSession.from_json(session.to_json()) == session
