import io
import struct

import mido
import pytest

from soundy.midi import (
    MidiParseError,
    MidiTrack,
    MidiTrackAccumulateEvent,
    NoteOff,
    NoteOn,
    SetTempo,
)


def _to_bytes(midi_file):
    buffer = io.BytesIO()
    midi_file.save(file=buffer)
    return buffer.getvalue()


def _file(*tracks, ticks_per_beat=480):
    midi_file = mido.MidiFile(type=1, ticks_per_beat=ticks_per_beat)
    for messages in tracks:
        track = mido.MidiTrack()
        track.extend(messages)
        midi_file.tracks.append(track)
    return midi_file


def test_note_on_and_off_with_accumulated_time():
    data = _to_bytes(
        _file(
            [
                mido.Message("note_on", channel=0, note=60, velocity=100, time=0),
                mido.Message("note_off", channel=0, note=60, velocity=0, time=480),
            ]
        )
    )
    track = MidiTrack.from_bytes(data)
    assert track.ticks_per_beat == 480
    assert track.events == [
        MidiTrackAccumulateEvent(0, NoteOn(channel=0, note=60, velocity=100)),
        MidiTrackAccumulateEvent(480, NoteOff(channel=0, note=60)),
    ]


def test_tempo_event_converted_to_bpm():
    data = _to_bytes(_file([mido.MetaMessage("set_tempo", tempo=500000, time=0)]))
    track = MidiTrack.from_bytes(data)
    assert len(track.events) == 1
    event = track.events[0].inner
    assert isinstance(event, SetTempo)
    assert event.tempo == pytest.approx(120.0)
    assert event.tempo * 500000 == pytest.approx(60_000_000)


def test_unrelated_messages_are_dropped():
    data = _to_bytes(
        _file(
            [
                mido.Message("control_change", channel=0, control=7, value=100, time=0),
                mido.Message("program_change", channel=0, program=5, time=0),
                mido.Message("note_on", channel=2, note=64, velocity=90, time=0),
            ]
        )
    )
    track = MidiTrack.from_bytes(data)
    assert [e.inner for e in track.events] == [NoteOn(channel=2, note=64, velocity=90)]


def test_track_index_raises_channel():
    data = _to_bytes(
        _file(
            [mido.Message("note_on", channel=0, note=60, velocity=100, time=0)],
            [mido.Message("note_on", channel=0, note=62, velocity=100, time=0)],
            [mido.Message("note_off", channel=5, note=62, velocity=0, time=0)],
        )
    )
    track = MidiTrack.from_bytes(data)
    channels = {e.inner.note: e.inner.channel for e in track.events if isinstance(e.inner, NoteOn)}
    assert channels[60] == 0
    assert channels[62] == 1
    off = [e.inner for e in track.events if isinstance(e.inner, NoteOff)]
    assert off == [NoteOff(channel=5, note=62)]


def test_events_from_tracks_are_merged_in_time_order():
    data = _to_bytes(
        _file(
            [mido.Message("note_on", channel=0, note=60, velocity=100, time=480)],
            [mido.Message("note_on", channel=1, note=62, velocity=100, time=0)],
        )
    )
    track = MidiTrack.from_bytes(data)
    times = [e.time for e in track.events]
    assert times == sorted(times)
    assert [e.inner.note for e in track.events] == [62, 60]


def test_equal_times_keep_track_order():
    data = _to_bytes(
        _file(
            [mido.Message("note_on", channel=0, note=60, velocity=100, time=0)],
            [mido.Message("note_on", channel=1, note=62, velocity=100, time=0)],
        )
    )
    track = MidiTrack.from_bytes(data)
    assert [e.inner.note for e in track.events] == [60, 62]


def test_from_midi_file_accepts_parsed_file():
    midi_file = _file(
        [mido.Message("note_on", channel=0, note=70, velocity=1, time=0)],
        ticks_per_beat=96,
    )
    track = MidiTrack.from_midi_file(midi_file)
    assert track.ticks_per_beat == 96
    assert track.events[0].inner == NoteOn(channel=0, note=70, velocity=1)


def test_garbage_bytes_raise():
    with pytest.raises(MidiParseError):
        MidiTrack.from_bytes(b"definitely not midi")


def test_smpte_division_rejected():
    header = b"MThd" + struct.pack(">IHHH", 6, 0, 1, 0xE250)
    body = b"\x00\xff\x2f\x00"
    chunk = b"MTrk" + struct.pack(">I", len(body)) + body
    with pytest.raises(MidiParseError):
        MidiTrack.from_bytes(header + chunk)