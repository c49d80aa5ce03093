from __future__ import annotations

from app.audio.controls import AudioControls, AudioRef, use_audio


class _Player:
    def __init__(self) -> None:
        self.played: list[str] = []

    def play_background_music(self) -> None:
        self.played.append("background")

    def stop_background_music(self) -> None:
        self.played.append("stop")

    def play_click_sound(self) -> None:
        self.played.append("click")

    def play_success_sound(self) -> None:
        self.played.append("success")

    def play_failure_sound(self) -> None:
        self.played.append("failure")


class _ExplodingRef:
    @property
    def current(self):
        raise RuntimeError("backend torn down")


def test_use_audio_returns_mounted_controls() -> None:
    player = _Player()

    controls = use_audio(AudioRef(current=player))

    assert controls is player
    assert isinstance(controls, AudioControls)
    controls.play_click_sound()
    assert player.played == ["click"]


def test_use_audio_returns_none_without_backend() -> None:
    assert use_audio(None) is None
    assert use_audio(AudioRef()) is None


def test_use_audio_returns_none_for_malformed_references() -> None:
    assert use_audio(object()) is None
    assert use_audio(AudioRef(current="not a player")) is None
    assert use_audio(_ExplodingRef()) is None
