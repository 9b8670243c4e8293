from urllib.parse import unquote

from .config import CACHE_CAPACITY
from .errors import ErrorKind, Failure
from .storage import FileEntry
from .utils.cache import LRUCache
from .utils.logging import debug, logged, warning


def decodeURI(uri: str) -> str | Failure:
	"""Decodes the percent-encoded `uri` as UTF-8."""
	try:
		return unquote(uri, encoding="utf8", errors="strict")
	except UnicodeDecodeError:
		return Failure(ErrorKind.Decode, "Unable to decode URL")


class FileResolver:
	"""Maps decoded URIs to the file entries of the served root, keeping
	the most recently resolved ones in a bounded cache. Directories
	are never resolved, and therefore never cached."""

	__slots__ = ["root", "cache"]

	def __init__(self, root: FileEntry, capacity: int = CACHE_CAPACITY) -> None:
		self.root: FileEntry = root
		self.cache: LRUCache[str, FileEntry] = LRUCache(capacity)

	def resolve(self, uri: str) -> FileEntry | Failure:
		entry: FileEntry | None = self.cache.get(uri)
		if entry is not None:
			logged(debug) and debug("Using cached entry", URI=uri)
		else:
			logged(debug) and debug("Searching entry", URI=uri)
			try:
				entry = self.lookup(uri)
			except OSError as e:
				warning("Could not search volume", URI=uri, Error=str(e))
				return Failure(ErrorKind.IO, str(e))
		if entry is None:
			return Failure(ErrorKind.NotFound, uri)
		try:
			is_directory: bool = entry.isDirectory()
		except OSError as e:
			return Failure(ErrorKind.IO, str(e))
		if is_directory:
			return Failure(ErrorKind.NotAFile, f"Not a file: {uri}")
		self.cache.put(uri, entry)
		return entry

	def lookup(self, uri: str) -> FileEntry | None:
		"""Finds the entry for `uri` in the hierarchy, bypassing the cache."""
		if not self.root.isDirectory():
			# A single file root is only available as `/` or `/<name>`
			if uri == "/" or uri == f"/{self.root.getName()}":
				return self.root
			else:
				return None
		else:
			return self.root.search(uri[1:] if uri.startswith("/") else uri)

	def shutdown(self) -> int:
		"""Invalidates the cache, no entry will be cached until `restart()`."""
		return self.cache.evictAll()

	def restart(self) -> "FileResolver":
		self.cache.reopen()
		return self

	def __repr__(self) -> str:
		return f"(FileResolver {self.root} {self.cache})"


# EOF
