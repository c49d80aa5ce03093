from __future__ import annotations

from enum import Enum


class LeaderboardErrorCode(str, Enum):
    INVALID_USER_ID = "INVALID_USER_ID"
    INVALID_SCORE = "INVALID_SCORE"
    INVALID_LEADERBOARD_TYPE = "INVALID_LEADERBOARD_TYPE"
    INVALID_QUERY = "INVALID_QUERY"
    STORE_ERROR = "STORE_ERROR"


class LeaderboardError(Exception):
    code: LeaderboardErrorCode = LeaderboardErrorCode.STORE_ERROR
    default_message = "Leaderboard error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class InvalidLeaderboardUserError(LeaderboardError):
    code = LeaderboardErrorCode.INVALID_USER_ID
    default_message = "Invalid user ID format"


class InvalidScoreError(LeaderboardError):
    code = LeaderboardErrorCode.INVALID_SCORE
    default_message = "Invalid score value"


class InvalidLeaderboardTypeError(LeaderboardError):
    code = LeaderboardErrorCode.INVALID_LEADERBOARD_TYPE
    default_message = "Invalid leaderboard type"


class InvalidLeaderboardQueryError(LeaderboardError):
    code = LeaderboardErrorCode.INVALID_QUERY
    default_message = "Invalid leaderboard page"


class LeaderboardStoreError(LeaderboardError):
    code = LeaderboardErrorCode.STORE_ERROR
    default_message = "Leaderboard store operation failed"
