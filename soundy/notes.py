"""Musical notes covering the full MIDI range, C-1 to G9."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import ClassVar


class NoteLetter(enum.Enum):
    """The seven natural note letters, in scale order."""

    C = 0
    D = 1
    E = 2
    F = 3
    G = 4
    A = 5
    B = 6

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Note:
    """A named pitch with its frequency in Hz."""

    note_letter: NoteLetter
    sharp: bool
    octave: int
    frequency: float

    NOTES: ClassVar[tuple[Note, ...]]

    def __str__(self) -> str:
        return f"{self.note_letter.name}{'#' if self.sharp else ''}{self.octave}"

    def position(self) -> int:
        """Position relative to C-1, the lowest MIDI note."""
        return (self.octave * 7 + self.note_letter.value) % 256

    @staticmethod
    def from_position(position: int) -> Note:
        """Return the note at a MIDI position relative to C-1."""
        if not 0 <= position < len(Note.NOTES):
            raise IndexError(f"note position {position} is out of range")
        return Note.NOTES[position]


_CHROMATIC = (
    (NoteLetter.C, False),
    (NoteLetter.C, True),
    (NoteLetter.D, False),
    (NoteLetter.D, True),
    (NoteLetter.E, False),
    (NoteLetter.F, False),
    (NoteLetter.F, True),
    (NoteLetter.G, False),
    (NoteLetter.G, True),
    (NoteLetter.A, False),
    (NoteLetter.A, True),
    (NoteLetter.B, False),
)

_FREQUENCIES = {
    -1: (8.175, 8.661, 9.176, 9.722, 10.30, 10.91, 11.56, 12.25, 12.98, 13.75, 14.57, 15.43),
    0: (16.35, 17.32, 18.35, 19.45, 20.60, 21.83, 23.12, 24.50, 25.96, 27.50, 29.14, 30.87),
    1: (32.70, 34.65, 36.71, 38.89, 41.20, 43.65, 46.25, 49.00, 51.91, 55.00, 58.27, 61.74),
    2: (65.41, 69.30, 73.42, 77.78, 82.41, 87.31, 92.50, 98.00, 103.83, 110.00, 116.54, 123.47),
    3: (130.81, 138.59, 146.83, 155.56, 164.81, 174.61, 185.00, 196.00, 207.65, 220.00,
        233.08, 246.94),
    4: (261.63, 277.18, 293.66, 311.13, 329.63, 349.23, 369.99, 392.00, 415.30, 440.00,
        466.16, 493.88),
    5: (523.25, 554.37, 587.33, 622.25, 659.25, 698.46, 739.99, 783.99, 830.61, 880.00,
        932.33, 987.77),
    6: (1046.50, 1108.73, 1174.66, 1244.51, 1318.51, 1396.91, 1479.98, 1567.98, 1661.22,
        1760.00, 1864.66, 1975.53),
    7: (2093.00, 2217.46, 2349.83, 2489.02, 2637.02, 2793.83, 2959.96, 3135.96, 3322.44,
        3520.00, 3729.31, 3951.07),
    8: (4186.01, 4434.92, 4698.63, 4978.03, 5274.04, 5587.65, 5919.91, 6271.93, 6644.88,
        7040.00, 7458.62, 7902.13),
    9: (8372.02, 8869.84, 9397.27, 10548.1, 11175.3, 11839.8, 12543.8, 13289.7),
}


def _constant_name(letter: NoteLetter, sharp: bool, octave: int) -> str:
    octave_part = f"N{-octave}" if octave < 0 else str(octave)
    return f"{letter.name}{'S' if sharp else ''}{octave_part}"


def _build_notes() -> tuple[Note, ...]:
    notes = []
    for octave, frequencies in _FREQUENCIES.items():
        for (letter, sharp), frequency in zip(_CHROMATIC, frequencies):
            note = Note(letter, sharp, octave, frequency)
            setattr(Note, _constant_name(letter, sharp, octave), note)
            notes.append(note)
    return tuple(notes)


Note.NOTES = _build_notes()