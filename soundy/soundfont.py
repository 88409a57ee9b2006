"""A reader for SoundFont 2 (SF2) files: presets, instruments, samples and wave data."""

from __future__ import annotations

import struct
import sys
from array import array
from dataclasses import dataclass, field

_GEN_INSTRUMENT = 41
_GEN_KEY_RANGE = 43
_GEN_VELOCITY_RANGE = 44
_GEN_SAMPLE_ID = 53

_FULL_RANGE = (0, 127)


class SoundFontError(ValueError):
    """Raised when SoundFont data is malformed."""


@dataclass(frozen=True)
class SampleHeader:
    name: str
    start: int
    end: int
    start_loop: int
    end_loop: int
    sample_rate: int
    original_pitch: int
    pitch_correction: int
    link: int
    sample_type: int


def _range(generators: dict[int, int], operator: int) -> tuple[int, int]:
    amount = generators.get(operator)
    if amount is None:
        return _FULL_RANGE
    return amount & 0xFF, (amount >> 8) & 0xFF


@dataclass(frozen=True)
class InstrumentRegion:
    sample_id: int
    key_range: tuple[int, int] = _FULL_RANGE
    velocity_range: tuple[int, int] = _FULL_RANGE

    def contains(self, note: int, velocity: int) -> bool:
        """Whether the region covers this note and velocity."""
        return (
            self.key_range[0] <= note <= self.key_range[1]
            and self.velocity_range[0] <= velocity <= self.velocity_range[1]
        )


@dataclass(frozen=True)
class Instrument:
    name: str
    regions: list[InstrumentRegion] = field(default_factory=list)


@dataclass(frozen=True)
class PresetRegion:
    instrument_id: int
    key_range: tuple[int, int] = _FULL_RANGE
    velocity_range: tuple[int, int] = _FULL_RANGE

    def contains(self, note: int, velocity: int) -> bool:
        """Whether the region covers this note and velocity."""
        return (
            self.key_range[0] <= note <= self.key_range[1]
            and self.velocity_range[0] <= velocity <= self.velocity_range[1]
        )


@dataclass(frozen=True)
class Preset:
    name: str
    patch_number: int
    bank_number: int
    regions: list[PresetRegion] = field(default_factory=list)


def _name(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("latin-1")


def _records(raw: bytes | None, fmt: str, label: str) -> list[tuple]:
    if raw is None:
        raise SoundFontError(f"missing {label} chunk")
    size = struct.calcsize(fmt)
    if len(raw) % size:
        raise SoundFontError(f"{label} chunk has an invalid length")
    return list(struct.iter_unpack(fmt, raw))


def _chunks(data: bytes, start: int, end: int):
    offset = start
    while offset + 8 <= end:
        chunk_id = data[offset:offset + 4]
        (size,) = struct.unpack_from("<I", data, offset + 4)
        body_start = offset + 8
        body_end = body_start + size
        if body_end > end:
            raise SoundFontError(f"chunk {chunk_id!r} runs past the end of its container")
        yield chunk_id, body_start, body_end
        offset = body_end + (size & 1)


def _zones(
    bag_starts: list[int], bags: list[tuple], gens: list[tuple], label: str
) -> list[list[dict[int, int]]]:
    """Group generators into zones for each item; bag_starts includes the terminal record."""
    result = []
    for first_bag, last_bag in zip(bag_starts, bag_starts[1:]):
        if not 0 <= first_bag <= last_bag < len(bags):
            raise SoundFontError(f"invalid {label} bag index")
        zones = []
        for bag, next_bag in zip(bags[first_bag:last_bag], bags[first_bag + 1:last_bag + 1]):
            first_gen, last_gen = bag[0], next_bag[0]
            if not 0 <= first_gen <= last_gen <= len(gens):
                raise SoundFontError(f"invalid {label} generator index")
            zones.append({operator: amount for operator, amount in gens[first_gen:last_gen]})
        result.append(zones)
    return result


def _merge_global(zones: list[dict[int, int]], terminal: int) -> list[dict[int, int]]:
    global_zone: dict[int, int] = {}
    if zones and terminal not in zones[0]:
        global_zone, zones = zones[0], zones[1:]
    return [{**global_zone, **zone} for zone in zones if terminal in zone]


@dataclass
class SoundFont:
    """A parsed SoundFont with its 16-bit wave data."""

    presets: list[Preset]
    instruments: list[Instrument]
    sample_headers: list[SampleHeader]
    wave_data: array

    @classmethod
    def from_bytes(cls, data: bytes) -> SoundFont:
        data = bytes(data)
        if len(data) < 12 or data[:4] != b"RIFF" or data[8:12] != b"sfbk":
            raise SoundFontError("not a SoundFont file")
        (riff_size,) = struct.unpack_from("<I", data, 4)
        end = min(len(data), 8 + riff_size)

        samples: bytes | None = None
        pdta: dict[bytes, bytes] = {}
        for chunk_id, start, stop in _chunks(data, 12, end):
            if chunk_id != b"LIST" or stop - start < 4:
                continue
            kind = data[start:start + 4]
            for sub_id, sub_start, sub_stop in _chunks(data, start + 4, stop):
                if kind == b"sdta" and sub_id == b"smpl":
                    samples = data[sub_start:sub_stop]
                elif kind == b"pdta":
                    pdta[sub_id] = data[sub_start:sub_stop]
        if samples is None:
            raise SoundFontError("missing smpl chunk")

        wave_data = array("h")
        wave_data.frombytes(samples[: len(samples) - len(samples) % 2])
        if sys.byteorder == "big":
            wave_data.byteswap()

        phdr = _records(pdta.get(b"phdr"), "<20sHHHIII", "phdr")
        pbag = _records(pdta.get(b"pbag"), "<HH", "pbag")
        pgen = _records(pdta.get(b"pgen"), "<HH", "pgen")
        inst = _records(pdta.get(b"inst"), "<20sH", "inst")
        ibag = _records(pdta.get(b"ibag"), "<HH", "ibag")
        igen = _records(pdta.get(b"igen"), "<HH", "igen")
        shdr = _records(pdta.get(b"shdr"), "<20sIIIIIBbHH", "shdr")
        if not phdr or not inst or not shdr:
            raise SoundFontError("missing terminal records")

        sample_headers = [
            SampleHeader(_name(r[0]), *r[1:]) for r in shdr[:-1]
        ]

        instruments = []
        for record, zones in zip(inst, _zones([r[1] for r in inst], ibag, igen, "instrument")):
            regions = []
            for gens in _merge_global(zones, _GEN_SAMPLE_ID):
                sample_id = gens[_GEN_SAMPLE_ID]
                if sample_id >= len(sample_headers):
                    raise SoundFontError(f"sample id {sample_id} is out of range")
                regions.append(InstrumentRegion(
                    sample_id,
                    _range(gens, _GEN_KEY_RANGE),
                    _range(gens, _GEN_VELOCITY_RANGE),
                ))
            instruments.append(Instrument(_name(record[0]), regions))

        presets = []
        for record, zones in zip(phdr, _zones([r[3] for r in phdr], pbag, pgen, "preset")):
            regions = []
            for gens in _merge_global(zones, _GEN_INSTRUMENT):
                instrument_id = gens[_GEN_INSTRUMENT]
                if instrument_id >= len(instruments):
                    raise SoundFontError(f"instrument id {instrument_id} is out of range")
                regions.append(PresetRegion(
                    instrument_id,
                    _range(gens, _GEN_KEY_RANGE),
                    _range(gens, _GEN_VELOCITY_RANGE),
                ))
            presets.append(Preset(_name(record[0]), record[1], record[2], regions))

        return cls(presets, instruments, sample_headers, wave_data)