"""
Builders shared by the test modules.
"""

import os
import wave

from music_radio.metadata import AlbumArt, AudioMetadata
from music_radio.models import LibraryEntry
from music_radio.scanner import generate_id


def make_entry(file_path, **fields):
    """Build a LibraryEntry whose id follows from its file path."""
    fields.setdefault("file_name", file_path.rsplit("/", 1)[-1])
    fields.setdefault("modified_time", 1700000000.0)
    return LibraryEntry(id=generate_id(file_path), file_path=file_path, **fields)


def write_silent_wav(path, seconds=1.0, rate=8000):
    """Write a mono 16-bit WAV file of silence."""
    with wave.open(path, "wb") as w:
        w.setnchannels(1)
        w.setsampwidth(2)
        w.setframerate(rate)
        w.writeframes(b"\x00\x00" * int(rate * seconds))


class FakeExtractor:
    """Metadata extractor driven by file names instead of tags."""

    def __init__(self):
        self.calls = []

    def extract(self, file_path):
        name = os.path.basename(str(file_path))
        self.calls.append(name)
        if name.startswith("broken"):
            return None
        if name.startswith("crash"):
            raise RuntimeError("decoder exploded")
        if name.startswith("bare"):
            return AudioMetadata()
        stem = os.path.splitext(name)[0]
        artist, _, title = stem.partition(" - ")
        return AudioMetadata(
            title=title or stem,
            artist=artist,
            album=f"{artist} Album",
            genre=["Rock", "Indie"],
            year=1997,
            duration=180.0,
        )

    def extract_album_art(self, file_path):
        if os.path.basename(str(file_path)).startswith("Cover"):
            return AlbumArt(data=b"jpegdata", mime_type="image/jpeg")
        return None


def touch(root, relative):
    path = os.path.join(root, relative)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(b"audio")
    return path
