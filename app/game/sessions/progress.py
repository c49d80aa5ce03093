from __future__ import annotations

from app.game.badges.rules import TOTAL_ROUNDS, determine_badge, is_valid_badge_tier
from app.game.sessions.errors import InvalidAnswerError, SessionCompletedError
from app.game.sessions.types import AnswerPosition, GameProgress, GameRound, GameSession

CORRECT_ANSWER_POINTS = 10
# (min whole seconds remaining, bonus points), highest first.
TIME_BONUS_TIERS: tuple[tuple[int, int], ...] = ((7, 5), (4, 3), (1, 1))
VALID_POSITIONS: frozenset[str] = frozenset({"A", "B"})
ROUND_TIME_LIMIT_MS = 10_000


def calculate_time_bonus(time_remaining_ms: int) -> int:
    seconds_remaining = max(0, int(time_remaining_ms)) // 1000
    for min_seconds, bonus in TIME_BONUS_TIERS:
        if seconds_remaining >= min_seconds:
            return bonus
    return 0


def calculate_round_score(is_correct: bool, time_remaining_ms: int) -> int:
    if not is_correct:
        return 0
    return CORRECT_ANSWER_POINTS + calculate_time_bonus(time_remaining_ms)


def record_round_answer(
    session: GameSession,
    *,
    round_number: int,
    user_answer: AnswerPosition,
    time_remaining_ms: int,
) -> int:
    """Applies an answer to the session in place and returns the round score.

    Accumulators and the badge are updated together so the badge always
    follows correct_count.
    """
    if session.completed:
        raise SessionCompletedError
    if user_answer not in VALID_POSITIONS:
        raise InvalidAnswerError(f"Invalid answer position: {user_answer!r}")
    if not 0 <= time_remaining_ms <= ROUND_TIME_LIMIT_MS:
        raise InvalidAnswerError(f"Invalid time remaining: {time_remaining_ms}")

    game_round = next((item for item in session.rounds if item.round_number == round_number), None)
    if game_round is None:
        raise InvalidAnswerError(f"Round {round_number} does not exist")
    if game_round.user_answer is not None:
        raise InvalidAnswerError(f"Round {round_number} was already answered")

    is_correct = user_answer == game_round.correct_answer
    score = calculate_round_score(is_correct, time_remaining_ms)

    game_round.user_answer = user_answer
    game_round.time_remaining = int(time_remaining_ms)
    game_round.is_correct = is_correct

    session.total_score += score
    if is_correct:
        session.correct_count += 1
        session.total_time_bonus += score - CORRECT_ANSWER_POINTS
    session.badge = determine_badge(session.correct_count)
    return score


def next_unanswered_round(session: GameSession) -> GameRound | None:
    return next((item for item in session.rounds if item.user_answer is None), None)


def all_rounds_answered(session: GameSession) -> bool:
    return len(session.rounds) == TOTAL_ROUNDS and next_unanswered_round(session) is None


def validate_game_session(session: GameSession) -> tuple[bool, list[str]]:
    errors: list[str] = []

    if not session.user_id:
        errors.append("Invalid user ID")
    if not session.session_id:
        errors.append("Invalid session ID")
    if not isinstance(session.start_time, int) or session.start_time <= 0:
        errors.append("Invalid start time")

    if len(session.rounds) != TOTAL_ROUNDS:
        errors.append(f"Session must have exactly {TOTAL_ROUNDS} rounds")
    for index, game_round in enumerate(session.rounds, start=1):
        if game_round.round_number != index:
            errors.append(f"Round {index} has incorrect round number: {game_round.round_number}")
        if not game_round.image_a or not game_round.image_b:
            errors.append(f"Round {index} is missing images")
        if game_round.correct_answer not in VALID_POSITIONS:
            errors.append(f"Round {index} has invalid correct answer: {game_round.correct_answer}")
        if game_round.ai_image_position not in VALID_POSITIONS:
            errors.append(f"Round {index} has invalid AI image position: {game_round.ai_image_position}")

    if session.total_score < 0:
        errors.append("Invalid total score")
    if not 0 <= session.correct_count <= TOTAL_ROUNDS:
        errors.append("Invalid correct count")
    if session.total_time_bonus < 0:
        errors.append("Invalid time bonus")
    if not is_valid_badge_tier(session.badge):
        errors.append("Invalid badge type")

    return not errors, errors


def is_session_playable(session: GameSession) -> bool:
    if session.completed:
        return False
    return any(game_round.user_answer is None for game_round in session.rounds)


def get_game_progress(session: GameSession) -> GameProgress:
    total_rounds = len(session.rounds)
    answered_rounds = sum(1 for game_round in session.rounds if game_round.user_answer is not None)
    remaining_rounds = total_rounds - answered_rounds
    return GameProgress(
        current_round_number=min(answered_rounds + 1, total_rounds),
        total_rounds=total_rounds,
        answered_rounds=answered_rounds,
        remaining_rounds=remaining_rounds,
        is_complete=session.completed or remaining_rounds == 0,
    )
