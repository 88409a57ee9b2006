"""MIDI sequencing and SoundFont synthesis to interleaved 16-bit PCM samples."""

__version__ = "0.2.0"

__all__ = ["midi", "notes", "sequencer", "soundfont", "source"]