"""Reading MIDI files into a flat, time-ordered list of events."""

from __future__ import annotations

import io
import math
from dataclasses import dataclass
from typing import Union

import mido


class MidiParseError(ValueError):
    """Raised when MIDI data cannot be read."""


@dataclass(frozen=True)
class NoteOn:
    channel: int
    note: int
    velocity: int


@dataclass(frozen=True)
class NoteOff:
    channel: int
    note: int


@dataclass(frozen=True)
class SetTempo:
    """Tempo change, in beats per minute."""

    tempo: float


MidiEvent = Union[NoteOn, NoteOff, SetTempo]


@dataclass(frozen=True)
class MidiTrackAccumulateEvent:
    """An event stamped with its absolute time in ticks."""

    time: int
    inner: MidiEvent


def _convert(message: mido.Message | mido.MetaMessage, track_index: int) -> MidiEvent | None:
    # DAWs often leave every track on channel 0; the track index stands in for it.
    fallback_channel = track_index % 256
    if message.type == "note_on":
        return NoteOn(
            channel=max(message.channel, fallback_channel),
            note=message.note,
            velocity=message.velocity,
        )
    if message.type == "note_off":
        return NoteOff(channel=max(message.channel, fallback_channel), note=message.note)
    if message.type == "set_tempo":
        microseconds_per_beat = message.tempo
        tempo = 60_000_000.0 / microseconds_per_beat if microseconds_per_beat else math.inf
        return SetTempo(tempo=tempo)
    return None


def _track_events(track: mido.MidiTrack, track_index: int) -> list[MidiTrackAccumulateEvent]:
    time = 0
    events = []
    for message in track:
        time += message.time
        inner = _convert(message, track_index)
        if inner is not None:
            events.append(MidiTrackAccumulateEvent(time, inner))
    return events


@dataclass
class MidiTrack:
    """All note and tempo events of a MIDI file, merged and sorted by time."""

    events: list[MidiTrackAccumulateEvent]
    ticks_per_beat: int

    @classmethod
    def from_midi_file(cls, midi_file: mido.MidiFile) -> MidiTrack:
        division = midi_file.ticks_per_beat
        if division is None or division & 0x8000:
            raise MidiParseError("Invalid MIDI file division")
        merged = [
            event
            for index, track in enumerate(midi_file.tracks)
            for event in _track_events(track, index)
        ]
        merged.sort(key=lambda event: event.time)
        return cls(events=merged, ticks_per_beat=division)

    @classmethod
    def from_bytes(cls, data: bytes) -> MidiTrack:
        try:
            midi_file = mido.MidiFile(file=io.BytesIO(data))
        except (OSError, EOFError, ValueError, KeyError, IndexError, TypeError) as exc:
            raise MidiParseError(f"Failed to parse MIDI file: {exc}") from exc
        return cls.from_midi_file(midi_file)