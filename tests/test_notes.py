import pytest

from soundy.notes import Note, NoteLetter


def test_display_sharp_and_negative_octave():
    assert str(Note.from_position(61)) == "C#4"
    assert str(Note.from_position(0)) == "C-1"


def test_table_has_full_midi_range():
    assert len(Note.NOTES) == 128
    assert Note.from_position(0) == Note.CN1
    assert Note.from_position(127) == Note.G9


def test_a4_frequency():
    note = Note.from_position(69)
    assert note == Note.A4
    assert note.frequency == 440.00
    assert note.note_letter is NoteLetter.A
    assert note.sharp is False
    assert note.octave == 4


def test_source_frequency_values_kept():
    assert Note.from_position(123).frequency == 10548.1
    assert Note.from_position(0).frequency == 8.175


def test_frequencies_increase():
    freqs = [Note.from_position(i).frequency for i in range(128)]
    assert freqs == sorted(freqs)
    assert len(set(freqs)) == len(freqs)


def test_constant_names_match_display():
    for index in range(128):
        note = Note.from_position(index)
        name = str(note).replace("#", "S").replace("-", "N")
        assert getattr(Note, name) == note


def test_from_position_matches_table():
    for index, note in enumerate(Note.NOTES):
        assert Note.from_position(index) == note


@pytest.mark.parametrize("position", [128, 255, -1])
def test_from_position_out_of_range(position):
    with pytest.raises(IndexError):
        Note.from_position(position)


def test_position_ignores_sharp():
    assert Note.CS4.position() == Note.C4.position()
    assert Note.FS2.position() == Note.F2.position()


def test_naturals_in_an_octave_are_consecutive():
    naturals = [Note.C4, Note.D4, Note.E4, Note.F4, Note.G4, Note.A4, Note.B4]
    start = Note.C4.position()
    assert [n.position() for n in naturals] == list(range(start, start + len(NoteLetter)))
    assert Note.C5.position() == start + len(NoteLetter)


def test_negative_octave_position_wraps():
    assert Note.CN1.position() == 249


def test_notes_are_immutable():
    note = Note.from_position(60)
    with pytest.raises(AttributeError):
        note.octave = 5
    assert note.octave == 4
    assert Note.from_position(60).position() == Note.C4.position()