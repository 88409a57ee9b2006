# soundy

A small MIDI sequencer and SoundFont synthesizer. Load a `.sf2` SoundFont,
attach one or more MIDI tracks, advance time, and read back interleaved
16-bit stereo samples at 44.1 kHz, ready to hand to any audio output.

## Installation

```
pip install .
```

Tests need the `test` extra:

```
pip install ".[test]"
pytest
```

## Playing a MIDI file

```python
from datetime import timedelta

from soundy.source import MidiAudio, MidiAudioTrack

with open("instruments.sf2", "rb") as f:
    soundfont_bytes = f.read()
with open("song.mid", "rb") as f:
    midi_bytes = f.read()

audio = MidiAudio.from_bytes(soundfont_bytes).with_track(
    MidiAudioTrack.from_bytes(midi_bytes, 4 / 4)
    .with_channel_patch(0, 0, 46)   # channel 0: bank 0, patch 46
    .with_channel_patch(1, 128, 0)  # channel 1: bank 128, patch 0
)

decoder = audio.decoder()
audio.tick(timedelta(milliseconds=16))  # or audio.tick(0.016)
samples = [next(decoder) for _ in range(64)]
```

`MidiAudio.tick` takes a `timedelta` or a number of seconds. Rendering never
runs more than one second ahead of what the decoder has consumed.

The decoder yields samples forever, producing silence (`0`) once the rendered
buffer runs dry. `decoder.channels()` and `decoder.sample_rate()` report its
format (2 channels, 44100 Hz); `decoder.current_frame_len()` is `1` while the
buffer is empty and `None` otherwise.

Every track starts with channels on bank 0, patch 0, except channel 9, which
uses bank 128. When the last event of a track has played, the track starts
over from the beginning.

Malformed input raises `soundy.midi.MidiParseError` or
`soundy.soundfont.SoundFontError`, both subclasses of `ValueError`.

## Lower-level pieces

- `soundy.midi.MidiTrack.from_bytes(data)` reads a MIDI file (through `mido`)
  into one time-sorted list of `NoteOn`, `NoteOff` and `SetTempo` events,
  with absolute times in ticks. A note event's channel is raised to at least
  the index of the track it came from.
- `soundy.soundfont.SoundFont.from_bytes(data)` reads presets, instruments,
  sample headers and 16-bit wave data from an SF2 file.
- `soundy.source.SoundFontBank(soundfont).get_sample_headers(note, velocity,
  bank, patch)` lists the samples that sound for a note, or returns `None`
  when the bank and patch have no preset.

## Driving several audio sources

`soundy.sequencer.tick_sequencers(audios, delta)` advances every `MidiAudio`
in an iterable (or the values of a mapping) by the same time step, which is
convenient in a game loop.

## Queued changes

Tracks can be started or stopped in step with the music. A queued event fires
when a playing track reaches the start of its loop, a new bar or a new beat:

```python
from soundy.source import (
    MidiQueueEvent, MidiQueueEventType, MidiQueueLooping, MidiQueueTiming,
)

lead = audio.add_track(
    MidiAudioTrack.from_bytes(midi_bytes, 4 / 4).stopped()
)
audio.queue(
    lead,
    MidiQueueEvent(
        event=MidiQueueEventType.PLAY,
        timing=MidiQueueTiming.BAR,
        looping=MidiQueueLooping.ONCE,
    ),
)
```

`MidiQueueLooping.LOOP` keeps the event in the queue so it fires every time.
An event of `QueuedEvent(other_event)` adds `other_event` to the queue when it
fires. Timings come only from tracks that are playing, so queued events wait
while every track is stopped. `audio.is_playing(handle)`,
`audio.beats_per_second(handle)` and `audio.beats_per_bar(handle)` report a
track's state.

## Live notes

```python
from soundy.notes import Note

audio.start_playing_note(Note.C5)
audio.stop_playing_note(Note.C5)
```

Live notes are sent at full velocity to channel 0 of the first track, as the
note number given by `Note.position()`; `NoTracksError` is raised when the
audio has no tracks.

## Notes

`soundy.notes.Note` carries 128 notes from `C-1` to `G9` with their
frequencies, as `Note.NOTES` and as attributes such as `Note.C5`, `Note.CS4`
or `Note.CN1` (C-1). `Note.from_position(n)` looks a note up by its index in
that table and raises `IndexError` outside it; `str(note)` gives names like
`C#4`. `Note.position()` returns `octave * 7 + letter index`, which is not
the note's index in `Note.NOTES`.

## What it does not do

- It does not open an audio device; it only produces samples for something
  else to play.
- Synthesis is plain sample playback with linear interpolation: no envelopes,
  filters, effects or sample loops. A sample falls silent at its end.
- Only note-on, note-off and tempo events are read from MIDI files; program
  changes, controllers and pitch bend are ignored.
- There is no command-line program.