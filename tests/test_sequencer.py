import struct
from datetime import timedelta

from soundy.midi import MidiTrack
from soundy.sequencer import tick_sequencers
from soundy.source import MidiAudio, MidiAudioTrack


def _chunk(chunk_id, body):
    return chunk_id + struct.pack("<I", len(body)) + body


def _list(kind, *chunks):
    return _chunk(b"LIST", kind + b"".join(chunks))


def build_sf2():
    phdr = struct.pack("<20sHHHIII", b"EOP", 0, 0, 0, 0, 0, 0)
    inst = struct.pack("<20sH", b"EOI", 0)
    shdr = struct.pack("<20sIIIIIBbHH", b"EOS", 0, 0, 0, 0, 0, 0, 0, 0, 0)
    bag = struct.pack("<HH", 0, 0)
    gen = struct.pack("<HH", 0, 0)
    body = b"sfbk" + _list(b"sdta", _chunk(b"smpl", b"\0\0"))
    body += _list(
        b"pdta",
        _chunk(b"phdr", phdr), _chunk(b"pbag", bag), _chunk(b"pgen", gen),
        _chunk(b"inst", inst), _chunk(b"ibag", bag), _chunk(b"igen", gen),
        _chunk(b"shdr", shdr),
    )
    return b"RIFF" + struct.pack("<I", len(body)) + body


def _audio():
    track = MidiAudioTrack(MidiTrack(events=[], ticks_per_beat=480), 1.0)
    return MidiAudio.from_bytes(build_sf2()).with_track(track)


def _buffered(decoder):
    count = 0
    while decoder.current_frame_len() is None:
        next(decoder)
        count += 1
    return count


def test_ticks_every_audio():
    audios = [_audio(), _audio()]
    decoders = [audio.decoder() for audio in audios]
    tick_sequencers(audios, 0.001)
    assert [_buffered(d) for d in decoders] == [88, 88]


def test_accepts_mapping_and_timedelta():
    audio = _audio()
    decoder = audio.decoder()
    tick_sequencers({"main": audio}, timedelta(milliseconds=1))
    assert _buffered(decoder) == 88


def test_zero_delta_renders_nothing():
    audio = _audio()
    decoder = audio.decoder()
    tick_sequencers([audio], 0.0)
    assert decoder.current_frame_len() == 1