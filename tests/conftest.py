import io
from pathlib import Path
from typing import BinaryIO, cast

import pytest

from volhttp.storage import FileEntry

VIDEO_LENGTH: int = 2_000_000


def pattern(length: int) -> bytes:
	"""Returns `length` bytes where each byte is its offset modulo 251, so that
	any span can be checked against its expected position."""
	return (bytes(range(251)) * (length // 251 + 1))[:length]


@pytest.fixture
def volume(tmp_path: Path) -> Path:
	"""A volume with a large video, a small text file and a folder."""
	root = tmp_path / "volume"
	root.mkdir()
	(root / "video.mp4").write_bytes(pattern(VIDEO_LENGTH))
	(root / "notes.txt").write_bytes(b"0123456789")
	(root / "folder").mkdir()
	(root / "folder" / "nested.bin").write_bytes(pattern(1000))
	(root / "émoji 🎬.txt").write_bytes(b"hello")
	return root


@pytest.fixture
def movie(tmp_path: Path) -> Path:
	"""A single file volume."""
	path = tmp_path / "movie.mkv"
	path.write_bytes(pattern(4096))
	return path



class Unseekable(io.RawIOBase):
	"""A reader that can only be read sequentially, like a stream from a
	block device driver."""

	def __init__(self, data: bytes) -> None:
		super().__init__()
		self.data: io.BytesIO = io.BytesIO(data)
		self.reads: int = 0

	def readable(self) -> bool:
		return True

	def seekable(self) -> bool:
		return False

	def readinto(self, buffer) -> int:  # type: ignore[no-untyped-def]
		self.reads += 1
		chunk = self.data.read(len(buffer))
		buffer[: len(chunk)] = chunk
		return len(chunk)


class MemoryEntry(FileEntry):
	"""An in-memory file entry, counting searches and opened readers."""

	def __init__(
		self,
		name: str,
		data: bytes | None = None,
		children: list["MemoryEntry"] | None = None,
		*,
		failing: bool = False,
		seekable: bool = True,
	) -> None:
		self.name: str = name
		self.data: bytes | None = data
		self.children: dict[str, MemoryEntry] = {_.name: _ for _ in children or []}
		self.failing: bool = failing
		self.seekable: bool = seekable
		self.searches: int = 0
		self.readers: list[io.IOBase] = []

	def isDirectory(self) -> bool:
		return self.data is None

	def getName(self) -> str:
		return self.name

	def getLength(self) -> int:
		return len(self.data or b"")

	def search(self, path: str) -> "MemoryEntry | None":
		self.searches += 1
		if self.failing:
			raise OSError("Device not ready")
		current: MemoryEntry | None = self
		for segment in path.split("/"):
			current = current.children.get(segment) if current else None
		return None if current is self else current

	def open(self) -> BinaryIO:
		if self.failing:
			raise OSError("Device not ready")
		reader: io.IOBase = (
			io.BytesIO(self.data or b"")
			if self.seekable
			else io.BufferedReader(Unseekable(self.data or b""))
		)
		self.readers.append(reader)
		return cast(BinaryIO, reader)



class TruncatedEntry(MemoryEntry):
	"""A file whose reported length exceeds its contents, like a file that
	was truncated after it was resolved."""

	def __init__(self, name: str, data: bytes, missing: int) -> None:
		super().__init__(name, data)
		self.missing: int = missing

	def getLength(self) -> int:
		return super().getLength() + self.missing


# EOF
