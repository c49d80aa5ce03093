from __future__ import annotations

import re
from datetime import date, datetime, timezone

KEY_SEPARATOR = ":"

USER_SESSION_PREFIX = "user_session"
USER_DAILY_COMPLETION_PREFIX = "user_daily_completion"
DAILY_PARTICIPANTS_PREFIX = "daily_participants"
SCHEDULER_LAST_RUN_PREFIX = "scheduler_last_run"
DAILY_GAME_PREFIX = "daily_game"
USER_PLAY_LIMIT_PREFIX = "user_play_limit"
USER_DATA_PREFIX = "user_data"
LEADERBOARD_DAILY_PREFIX = "leaderboard_daily"
LEADERBOARD_WEEKLY_PREFIX = "leaderboard_weekly"
LEADERBOARD_ALL_TIME_KEY = "leaderboard_all_time"

USER_SESSION_TTL_SECONDS = 60 * 60
# 25h covers the day boundary for players in any timezone.
DAILY_COMPLETION_TTL_SECONDS = 25 * 60 * 60
DAILY_PARTICIPANT_COUNT_TTL_SECONDS = 25 * 60 * 60
DAILY_GAME_STATE_TTL_SECONDS = 25 * 60 * 60
USER_PLAY_LIMIT_TTL_SECONDS = 25 * 60 * 60
# Daily boards outlive the week they roll up into; weekly ones the month.
DAILY_LEADERBOARD_TTL_SECONDS = 8 * 24 * 60 * 60
WEEKLY_LEADERBOARD_TTL_SECONDS = 32 * 24 * 60 * 60
USER_DATA_TTL_SECONDS = 30 * 24 * 60 * 60

MAX_USER_ID_LENGTH = 100
# user id, epoch ms and random token joined by "_"
MAX_SESSION_ID_LENGTH = MAX_USER_ID_LENGTH + 40

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_WEEK_RE = re.compile(r"^(\d{4})-(\d{2})$")


def utc_date_str(now_utc: datetime | None = None) -> str:
    resolved = now_utc or datetime.now(timezone.utc)
    return resolved.astimezone(timezone.utc).date().isoformat()


def utc_week_str(now_utc: datetime | None = None) -> str:
    """YYYY-WW where week 1 is the first seven days of the UTC year."""
    resolved = (now_utc or datetime.now(timezone.utc)).astimezone(timezone.utc)
    week = (resolved.timetuple().tm_yday - 1) // 7 + 1
    return f"{resolved.year}-{week:02d}"


def is_valid_week_format(value: object) -> bool:
    if not isinstance(value, str):
        return False
    match = _WEEK_RE.match(value)
    if match is None:
        return False
    return int(match.group(1)) >= 2024 and 1 <= int(match.group(2)) <= 53


def is_valid_date_format(value: object) -> bool:
    if not isinstance(value, str) or not _DATE_RE.match(value):
        return False
    try:
        return date.fromisoformat(value).isoformat() == value
    except ValueError:
        return False


def _is_valid_identifier(value: object, *, max_length: int) -> bool:
    return isinstance(value, str) and 0 < len(value) <= max_length


def is_valid_user_id(user_id: object) -> bool:
    return _is_valid_identifier(user_id, max_length=MAX_USER_ID_LENGTH)


def is_valid_session_id(session_id: object) -> bool:
    return _is_valid_identifier(session_id, max_length=MAX_SESSION_ID_LENGTH)


def _join(*parts: str) -> str:
    return KEY_SEPARATOR.join(parts)


def session_key(user_id: str, session_id: str) -> str:
    """user_session:{user_id}:{session_id}"""
    return _join(USER_SESSION_PREFIX, user_id, session_id)


def daily_completion_key(user_id: str, day: str | None = None) -> str:
    """user_daily_completion:{user_id}:{YYYY-MM-DD}, today in UTC by default."""
    return _join(USER_DAILY_COMPLETION_PREFIX, user_id, day or utc_date_str())


def participant_count_key(day: str | None = None) -> str:
    return _join(DAILY_PARTICIPANTS_PREFIX, day or utc_date_str())


def scheduler_last_run_key(job_name: str) -> str:
    return _join(SCHEDULER_LAST_RUN_PREFIX, job_name)


def daily_game_key(day: str | None = None) -> str:
    return _join(DAILY_GAME_PREFIX, day or utc_date_str())


def play_limit_key(user_id: str, day: str | None = None) -> str:
    return _join(USER_PLAY_LIMIT_PREFIX, user_id, day or utc_date_str())


def user_data_key(user_id: str) -> str:
    return _join(USER_DATA_PREFIX, user_id)


def leaderboard_daily_key(day: str | None = None) -> str:
    return _join(LEADERBOARD_DAILY_PREFIX, day or utc_date_str())


def leaderboard_weekly_key(week: str | None = None) -> str:
    return _join(LEADERBOARD_WEEKLY_PREFIX, week or utc_week_str())
