from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import structlog

logger = structlog.get_logger(__name__)


@runtime_checkable
class AudioControls(Protocol):
    def play_background_music(self) -> None: ...

    def stop_background_music(self) -> None: ...

    def play_click_sound(self) -> None: ...

    def play_success_sound(self) -> None: ...

    def play_failure_sound(self) -> None: ...


@dataclass(slots=True)
class AudioRef:
    """Mount point for the audio backend; ``current`` stays None until one is mounted."""

    current: AudioControls | None = None


def use_audio(ref: object) -> AudioControls | None:
    """Returns the mounted audio controls, or None.

    Callers check for None before playing anything; a missing or malformed
    reference never raises here.
    """
    if ref is None:
        return None
    try:
        current = getattr(ref, "current", None)
    except Exception:
        logger.warning("audio_ref_unreadable", ref_type=type(ref).__name__)
        return None
    if current is None or not isinstance(current, AudioControls):
        return None
    return current
