"""A MIDI sequencer that renders tracks through a SoundFont into a sample buffer."""

from __future__ import annotations

import enum
import math
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Iterator, Union

from soundy.midi import MidiEvent, MidiTrack, NoteOff, NoteOn, SetTempo
from soundy.notes import Note
from soundy.soundfont import SampleHeader, SoundFont

_I16_MIN = -32768
_I16_MAX = 32767


class NoTracksError(LookupError):
    """Raised when a live note is played on an audio with no tracks."""


class MidiQueueTiming(enum.Enum):
    LOOP = "loop"
    BAR = "bar"
    BEAT = "beat"


class MidiQueueLooping(enum.Enum):
    LOOP = "loop"
    ONCE = "once"


class MidiQueueEventType(enum.Enum):
    PLAY = "play"
    STOP = "stop"


@dataclass(frozen=True)
class QueuedEvent:
    """Queue another event when this one fires."""

    event: MidiQueueEvent


@dataclass(frozen=True)
class MidiQueueEvent:
    event: Union[MidiQueueEventType, QueuedEvent]
    timing: MidiQueueTiming
    looping: MidiQueueLooping


@dataclass(frozen=True)
class MidiAudioTrackHandle:
    index: int


@dataclass(frozen=True)
class MidiBufferMessage:
    """An audio sample headed for the output buffer."""

    sample: int


@dataclass
class SyncedMidiInfo:
    beat: float = 0.0
    beats_per_second: float = 0.0


class SampleType(enum.IntEnum):
    MONO = 1
    RIGHT = 2
    LEFT = 4


@dataclass
class _VoiceSample:
    speed: float
    current_sample: float
    end_sample: float
    sample_type: SampleType
    volume: float


@dataclass
class _Voice:
    samples: list[_VoiceSample]

    def tick(self) -> None:
        for sample in self.samples:
            sample.current_sample += sample.speed

    def sample(self, wave_data, current_audio_channel: int) -> int:
        wanted = SampleType.LEFT if current_audio_channel == 0 else SampleType.RIGHT
        total = 0
        for sample in self.samples:
            if sample.current_sample >= sample.end_sample:
                continue
            if sample.sample_type not in (SampleType.MONO, wanted):
                continue
            position = sample.current_sample
            floor = float(wave_data[math.floor(position)])
            ceil = float(wave_data[math.ceil(position)])
            fraction = position - math.floor(position)
            total += int((ceil * fraction + floor * (1.0 - fraction)) * sample.volume)
        return total


@dataclass
class _Channel:
    bank_number: int
    patch_number: int
    voices: dict[int, _Voice] = field(default_factory=dict)


class SoundFontBank:
    """A SoundFont with its presets indexed by bank and patch."""

    def __init__(self, soundfont: SoundFont) -> None:
        self.soundfont = soundfont
        self._preset_index = {
            (preset.bank_number % 256, preset.patch_number % 256): index
            for index, preset in enumerate(soundfont.presets)
        }

    def get_sample_headers(
        self, note: int, velocity: int, bank_number: int, patch_number: int
    ) -> list[SampleHeader] | None:
        """Samples that sound for a note, or None when the preset does not exist."""
        index = self._preset_index.get((bank_number, patch_number))
        if index is None:
            return None
        font = self.soundfont
        return [
            font.sample_headers[inst_region.sample_id]
            for region in font.presets[index].regions
            if region.contains(note, velocity)
            for inst_region in font.instruments[region.instrument_id].regions
            if inst_region.contains(note, velocity)
        ]


class MidiAudioTrack:
    """One MIDI track with its channels, tempo, position and event queue."""

    def __init__(self, midi_track: MidiTrack, time_signature: float) -> None:
        self.midi_track = midi_track
        self.samples_per_second = 44100.0
        self.beats_per_second = 120.0 / 60.0
        self.ticks_per_sample = (
            midi_track.ticks_per_beat * self.beats_per_second / self.samples_per_second
        )
        self.beats_per_bar = time_signature * 4.0
        self._channels = {
            i: _Channel(bank_number=128 if i == 9 else 0, patch_number=0) for i in range(16)
        }
        self.tick = 0.0
        self.beat = 0.0
        self.event_index = 0
        self.queue: list[MidiQueueEvent] = []
        self.is_playing = True

    @classmethod
    def from_bytes(cls, track_bytes: bytes, time_signature: float) -> MidiAudioTrack:
        return cls(MidiTrack.from_bytes(track_bytes), time_signature)

    def with_channel_patch(
        self, channel_number: int, bank_number: int, patch_number: int
    ) -> MidiAudioTrack:
        self._channels[channel_number] = _Channel(bank_number, patch_number)
        return self

    def with_queue(self, event: MidiQueueEvent) -> MidiAudioTrack:
        self.queue.append(event)
        return self

    def stopped(self) -> MidiAudioTrack:
        self.is_playing = False
        return self

    def tick_timing(self, timings: set[MidiQueueTiming]) -> None:
        """Advance by one sample, adding any loop, beat or bar boundary reached."""
        self.tick += self.ticks_per_sample
        if self.beat == 0.0:
            timings.add(MidiQueueTiming.LOOP)
        last_beat = math.floor(self.beat)
        last_bar = math.floor(last_beat / self.beats_per_bar)
        self.beat += self.beats_per_second / self.samples_per_second
        current_beat = math.floor(self.beat)
        current_bar = math.floor(current_beat / self.beats_per_bar)
        if last_beat != current_beat:
            timings.add(MidiQueueTiming.BEAT)
            if last_bar != current_bar:
                timings.add(MidiQueueTiming.BAR)

    def tick_midi(self, soundfont: SoundFontBank) -> None:
        """Play every event that is due, restarting the track after its last one."""
        events = self.midi_track.events
        while self.event_index < len(events) and events[self.event_index].time <= int(self.tick):
            self.interpret_event(events[self.event_index].inner, soundfont)
            self.event_index += 1
            if self.event_index >= len(events):
                self.event_index = 0
                self.tick = 0.0
                self.beat = 0.0

    def interpret_event(self, event: MidiEvent, soundfont: SoundFontBank) -> None:
        if isinstance(event, NoteOn):
            voice = self._create_voice(event.channel, event.note, event.velocity, soundfont)
            channel = self._channels.get(event.channel)
            if voice is not None and channel is not None:
                channel.voices[event.note] = voice
        elif isinstance(event, NoteOff):
            channel = self._channels.get(event.channel)
            if channel is not None:
                channel.voices.pop(event.note, None)
        elif isinstance(event, SetTempo):
            self.beats_per_second = event.tempo / 60.0
            self.ticks_per_sample = (
                self.midi_track.ticks_per_beat * self.beats_per_second / self.samples_per_second
            )

    def _apply_queue(self, timings: set[MidiQueueTiming]) -> None:
        kept, added = [], []
        for event in self.queue:
            if event.timing not in timings:
                kept.append(event)
                continue
            if isinstance(event.event, QueuedEvent):
                added.append(event.event.event)
            elif event.event is MidiQueueEventType.PLAY:
                self.is_playing = True
            else:
                self.is_playing = False
            if event.looping is MidiQueueLooping.LOOP:
                kept.append(event)
        self.queue = kept + added

    def _voices(self) -> Iterator[_Voice]:
        for channel in self._channels.values():
            yield from channel.voices.values()

    def _create_voice(
        self, channel_index: int, note: int, velocity: int, soundfont: SoundFontBank
    ) -> _Voice | None:
        channel = self._channels[channel_index]
        headers = soundfont.get_sample_headers(
            note, velocity, channel.bank_number, channel.patch_number
        )
        if not headers:
            return None
        volume = velocity / 127.0
        return _Voice([
            _VoiceSample(
                speed=2.0 ** ((note - h.original_pitch + h.pitch_correction / 100.0) / 12.0),
                current_sample=float(h.start),
                end_sample=float(h.end),
                sample_type=SampleType(h.sample_type),
                volume=volume,
            )
            for h in headers
        ])


class MidiDecoder:
    """An endless iterator of interleaved samples; silence when the buffer is empty."""

    def __init__(self, buffer: deque, lock: threading.Lock, num_audio_channels: int,
                 samples_per_second: int) -> None:
        self._buffer = buffer
        self._lock = lock
        self._num_audio_channels = num_audio_channels
        self._samples_per_second = samples_per_second

    def __iter__(self) -> MidiDecoder:
        return self

    def __next__(self) -> int:
        with self._lock:
            return self._buffer.popleft() if self._buffer else 0

    def current_frame_len(self) -> int | None:
        with self._lock:
            return 1 if not self._buffer else None

    def channels(self) -> int:
        return self._num_audio_channels

    def sample_rate(self) -> int:
        return self._samples_per_second

    def total_duration(self) -> None:
        return None


class MidiAudio:
    """A set of MIDI tracks rendered with one SoundFont into a shared buffer."""

    def __init__(self, soundfont: SoundFont) -> None:
        self._tracks: dict[MidiAudioTrackHandle, MidiAudioTrack] = {}
        self._soundfont = SoundFontBank(soundfont)
        self._num_audio_channels = 2
        self._current_audio_channel = 0
        self._samples_per_second = 44100.0
        self._buffer: deque[int] = deque()
        self._lock = threading.Lock()
        self._buffer_events: list[tuple[float, MidiBufferMessage]] = []
        self._buffer_event_now = time.monotonic()

    @classmethod
    def from_bytes(cls, soundfont_bytes: bytes) -> MidiAudio:
        return cls(SoundFont.from_bytes(soundfont_bytes))

    def add_track(self, midi_track: MidiAudioTrack) -> MidiAudioTrackHandle:
        handle = MidiAudioTrackHandle(len(self._tracks))
        self._tracks[handle] = midi_track
        return handle

    def with_track(self, midi_track: MidiAudioTrack) -> MidiAudio:
        self.add_track(midi_track)
        return self

    def tick(self, delta: float | timedelta) -> None:
        """Render the samples for ``delta`` seconds, up to one second buffered."""
        seconds = delta.total_seconds() if isinstance(delta, timedelta) else float(delta)
        self._buffer_event_now += seconds
        with self._lock:
            buffered = len(self._buffer)
        max_ticks = self._samples_per_second - buffered / self._num_audio_channels
        ticks = max(0, int(min(seconds * self._samples_per_second, max_ticks)))

        samples = []
        for _ in range(ticks * self._num_audio_channels):
            samples.append(self._tick_once())
        with self._lock:
            self._buffer.extend(message.sample for message in samples)
        self._buffer_events = [
            (at, message) for at, message in self._buffer_events if at > self._buffer_event_now
        ]

    def _tick_once(self) -> MidiBufferMessage:
        tracks = list(self._tracks.values())
        if self._current_audio_channel == 0:
            timings: set[MidiQueueTiming] = set()
            for track in tracks:
                if track.is_playing:
                    track.tick_timing(timings)
            for track in tracks:
                track._apply_queue(timings)
            for track in tracks:
                if track.is_playing:
                    track.tick_midi(self._soundfont)

        wave = self._soundfont.soundfont.wave_data
        total = sum(
            voice.sample(wave, self._current_audio_channel)
            for track in tracks
            for voice in track._voices()
        )
        sample = min(max(total, _I16_MIN), _I16_MAX)

        if self._current_audio_channel == 0:
            for track in tracks:
                for voice in track._voices():
                    voice.tick()
        self._current_audio_channel = (self._current_audio_channel + 1) % self._num_audio_channels
        return MidiBufferMessage(sample)

    def queue(self, handle: MidiAudioTrackHandle, event: MidiQueueEvent) -> None:
        track = self._tracks.get(handle)
        if track is not None:
            track.queue.append(event)

    def _first_track(self) -> MidiAudioTrack:
        track = self._tracks.get(MidiAudioTrackHandle(0))
        if track is None:
            raise NoTracksError("no tracks to play notes on")
        return track

    def start_playing_note(self, note: Note) -> None:
        self._first_track().interpret_event(
            NoteOn(channel=0, note=note.position(), velocity=127), self._soundfont
        )

    def stop_playing_note(self, note: Note) -> None:
        self._first_track().interpret_event(
            NoteOff(channel=0, note=note.position()), self._soundfont
        )

    def is_playing(self, handle: MidiAudioTrackHandle) -> bool:
        track = self._tracks.get(handle)
        return track is not None and track.is_playing

    def beats_per_second(self, handle: MidiAudioTrackHandle) -> float | None:
        track = self._tracks.get(handle)
        return None if track is None else track.beats_per_second

    def beats_per_bar(self, handle: MidiAudioTrackHandle) -> float | None:
        track = self._tracks.get(handle)
        return None if track is None else track.beats_per_bar

    def decoder(self) -> MidiDecoder:
        return MidiDecoder(
            self._buffer, self._lock, self._num_audio_channels, int(self._samples_per_second)
        )