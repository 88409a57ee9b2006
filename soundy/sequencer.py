"""Advancing every MIDI audio in step with elapsed time."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import timedelta

from soundy.source import MidiAudio


def tick_sequencers(
    audios: Iterable[MidiAudio] | Mapping[object, MidiAudio], delta: float | timedelta
) -> None:
    """Tick each audio by ``delta`` seconds."""
    items = audios.values() if isinstance(audios, Mapping) else audios
    for audio in items:
        audio.tick(delta)