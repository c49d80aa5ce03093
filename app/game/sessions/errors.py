from __future__ import annotations

from enum import Enum


class SessionErrorCode(str, Enum):
    INVALID_USER_ID = "INVALID_USER_ID"
    INVALID_SESSION_ID = "INVALID_SESSION_ID"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    ALREADY_PLAYED_TODAY = "ALREADY_PLAYED_TODAY"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    STORE_ERROR = "STORE_ERROR"
    INVALID_ANSWER = "INVALID_ANSWER"
    SESSION_COMPLETED = "SESSION_COMPLETED"
    PLAY_LIMIT_EXCEEDED = "PLAY_LIMIT_EXCEEDED"


class GameSessionError(Exception):
    code: SessionErrorCode = SessionErrorCode.STORE_ERROR
    default_message = "Game session error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class InvalidUserIdError(GameSessionError):
    code = SessionErrorCode.INVALID_USER_ID
    default_message = "Invalid user ID format"


class InvalidSessionIdError(GameSessionError):
    code = SessionErrorCode.INVALID_SESSION_ID
    default_message = "Invalid session ID format"


class SessionNotFoundError(GameSessionError):
    code = SessionErrorCode.SESSION_NOT_FOUND
    default_message = "Session not found"


class AlreadyPlayedTodayError(GameSessionError):
    code = SessionErrorCode.ALREADY_PLAYED_TODAY
    default_message = "User has already completed today's challenge"


class SessionExpiredError(GameSessionError):
    code = SessionErrorCode.SESSION_EXPIRED
    default_message = "Session has expired"


class StoreError(GameSessionError):
    code = SessionErrorCode.STORE_ERROR
    default_message = "Session store operation failed"


class InvalidAnswerError(GameSessionError):
    code = SessionErrorCode.INVALID_ANSWER
    default_message = "Invalid answer submission"


class SessionCompletedError(GameSessionError):
    code = SessionErrorCode.SESSION_COMPLETED
    default_message = "Session is already completed"


class PlayLimitExceededError(GameSessionError):
    code = SessionErrorCode.PLAY_LIMIT_EXCEEDED
    default_message = "Daily play limit reached"
