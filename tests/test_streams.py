import io
from pathlib import Path

import pytest

from conftest import MemoryEntry, Unseekable, pattern

from volhttp.storage import LocalFileEntry
from volhttp.streams import ByteStream, openStream, skip


def test_whole_file(volume: Path):
	stream = openStream(LocalFileEntry(volume / "notes.txt"))
	assert stream.read() == b"0123456789"
	assert stream.isClosed


def test_skip_and_limit(volume: Path):
	data = (volume / "video.mp4").read_bytes()
	stream = openStream(LocalFileEntry(volume / "video.mp4"), 100, 100, size=30)
	chunks = list(stream)
	assert [len(_) for _ in chunks] == [30, 30, 30, 10]
	assert b"".join(chunks) == data[100:200]
	assert stream.isClosed


def test_limit_beyond_end_stops_at_end():
	entry = MemoryEntry("a.bin", b"abcdef")
	assert openStream(entry, 4, 100).read() == b"ef"
	assert openStream(entry, 10).read() == b""


def test_unseekable_readers_are_skipped_sequentially():
	data = pattern(10_000)
	entry = MemoryEntry("a.bin", data, seekable=False)
	stream = openStream(entry, 5_000, 10, size=1_000)
	assert stream.read() == data[5_000:5_010]


def test_skip_seeks_when_possible():
	reader = io.BytesIO(b"0123456789")
	assert skip(reader, 4) == 4
	assert reader.read(2) == b"45"
	raw = Unseekable(b"0123456789")
	assert skip(io.BufferedReader(raw), 4, size=1) == 4
	assert skip(io.BufferedReader(Unseekable(b"012")), 10) == 3


def test_stream_is_lazy():
	entry = MemoryEntry("a.bin", b"abc", seekable=False)
	stream = openStream(entry)
	raw = entry.readers[0].raw  # type: ignore[attr-defined]
	assert raw.reads == 0
	assert next(stream) == b"abc"
	assert raw.reads > 0


def test_closing_early_releases_reader():
	entry = MemoryEntry("a.bin", pattern(1_000))
	with openStream(entry, size=10) as stream:
		assert len(next(stream)) == 10
	assert stream.isClosed
	assert entry.readers[0].closed
	# A closed stream yields nothing more
	assert list(stream) == []


def test_read_failure_closes_reader():
	class Failing(io.BytesIO):
		def read(self, size: int | None = -1) -> bytes:
			raise OSError("I/O error")

	reader = Failing(b"abc")
	stream = ByteStream(reader)
	with pytest.raises(OSError):
		next(stream)
	assert stream.isClosed
	assert reader.closed


def test_open_failure():
	with pytest.raises(OSError):
		openStream(MemoryEntry("a.bin", b"abc", failing=True))


# EOF
