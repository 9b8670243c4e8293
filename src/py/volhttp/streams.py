from io import UnsupportedOperation
from typing import BinaryIO, Iterator

from .config import CHUNK_SIZE
from .storage import FileEntry
from .utils.logging import debug, logged


def skip(reader: BinaryIO, count: int, size: int = CHUNK_SIZE) -> int:
	"""Moves `reader` forward by `count` bytes, seeking when the reader
	supports it and reading and discarding otherwise. Returns the number
	of bytes actually skipped."""
	if count <= 0:
		return 0
	try:
		seekable: bool = reader.seekable()
	except (AttributeError, UnsupportedOperation):
		seekable = False
	if seekable:
		position = reader.tell()
		reader.seek(count, 1)
		return reader.tell() - position
	skipped: int = 0
	while skipped < count:
		chunk = reader.read(min(size, count - skipped))
		if not chunk:
			break
		skipped += len(chunk)
	return skipped


class ByteStream:
	"""A finite, single-use stream of bytes read sequentially from a reader.
	The stream yields at most `remaining` bytes (or up to the end of the
	reader when `None`) and owns the reader: it is closed when the stream
	is exhausted, fails, or is closed by the consumer, whichever comes
	first."""

	__slots__ = ["name", "reader", "remaining", "size", "isClosed"]

	def __init__(
		self,
		reader: BinaryIO,
		remaining: int | None = None,
		*,
		name: str | None = None,
		size: int = CHUNK_SIZE,
	) -> None:
		self.name: str | None = name
		self.reader: BinaryIO = reader
		self.remaining: int | None = remaining
		self.size: int = size
		self.isClosed: bool = False

	def __iter__(self) -> Iterator[bytes]:
		return self

	def __next__(self) -> bytes:
		if self.isClosed or self.remaining == 0:
			self.close()
			raise StopIteration
		try:
			chunk = self.reader.read(
				self.size if self.remaining is None else min(self.size, self.remaining)
			)
		except BaseException:
			self.close()
			raise
		if not chunk:
			self.close()
			raise StopIteration
		if self.remaining is not None:
			self.remaining -= len(chunk)
		return chunk

	def read(self) -> bytes:
		"""Consumes the whole stream."""
		return b"".join(self)

	def close(self) -> None:
		if not self.isClosed:
			self.isClosed = True
			logged(debug) and debug("Closing stream", Name=self.name)
			self.reader.close()

	def __enter__(self) -> "ByteStream":
		return self

	def __exit__(self, *args: object) -> None:
		self.close()

	def __repr__(self) -> str:
		return f"(ByteStream {self.name!r} remaining={self.remaining}{' :closed' if self.isClosed else ''})"


def openStream(
	entry: FileEntry,
	start: int = 0,
	length: int | None = None,
	*,
	size: int = CHUNK_SIZE,
) -> ByteStream:
	"""Opens a stream over the bytes of `entry`, skipped forward to `start`
	and limited to `length` bytes. Errors raised while opening or skipping
	are raised here, before any byte is delivered, and leave no reader
	open."""
	reader: BinaryIO = entry.open()
	try:
		if start > 0:
			skip(reader, start, size)
	except BaseException:
		reader.close()
		raise
	return ByteStream(reader, length, name=entry.getName(), size=size)


# EOF
