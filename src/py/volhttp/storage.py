from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO

from mypy_extensions import mypyc_attr

# -----------------------------------------------------------------------------
#
# FILE ENTRY
#
# -----------------------------------------------------------------------------
# --
# The storage driver exposes the volume as a hierarchy of file entries. The
# server only needs to know if an entry is a directory, its name and length,
# how to find a descendant by path, and how to read its bytes sequentially.


@mypyc_attr(allow_interpreted_subclasses=True)
class FileEntry(ABC):
	"""A file or directory of the served volume."""

	@abstractmethod
	def isDirectory(self) -> bool: ...

	@abstractmethod
	def getName(self) -> str: ...

	@abstractmethod
	def getLength(self) -> int: ...

	@abstractmethod
	def search(self, path: str) -> "FileEntry | None":
		"""Returns the descendant entry at the given `/`-separated path,
		or `None` when there is no such entry."""

	@abstractmethod
	def open(self) -> BinaryIO:
		"""Returns a binary reader over the contents of the entry. The reader
		may or may not be seekable."""

	def __repr__(self) -> str:
		return f"({self.__class__.__name__} {self.getName()!r}{'/' if self.isDirectory() else ''})"


# -----------------------------------------------------------------------------
#
# LOCAL FILE ENTRY
#
# -----------------------------------------------------------------------------


class LocalFileEntry(FileEntry):
	"""A file entry backed by a path of the local filesystem, typically the
	mount point of a removable drive."""

	__slots__ = ["path"]

	def __init__(self, path: str | Path) -> None:
		self.path: Path = (path if isinstance(path, Path) else Path(path)).absolute()

	def isDirectory(self) -> bool:
		return self.path.is_dir()

	def getName(self) -> str:
		return self.path.name

	def getLength(self) -> int:
		return 0 if self.path.is_dir() else self.path.stat().st_size

	def search(self, path: str) -> "LocalFileEntry | None":
		if not self.path.is_dir():
			return None
		segments: list[str] = [_ for _ in path.split("/") if _]
		if not segments:
			return None
		current: Path = self.path
		for segment in segments:
			# We walk the hierarchy one entry at a time, so that we never
			# leave the root.
			if segment in (".", "..") or "\\" in segment or not current.is_dir():
				return None
			current = current / segment
			if not current.exists():
				return None
		return LocalFileEntry(current)

	def open(self) -> BinaryIO:
		return open(self.path, "rb")

	def __eq__(self, other: object) -> bool:
		return isinstance(other, LocalFileEntry) and other.path == self.path

	def __hash__(self) -> int:
		return hash(self.path)


# EOF
