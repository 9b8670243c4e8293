from pathlib import Path
from typing import Any

from .config import CACHE_CAPACITY, HOST, PORT
from .errors import ErrorKind, Failure
from .http.model import HTTPRequest, HTTPResponse
from .model import Service
from .ranges import parseRange
from .resolver import FileResolver, decodeURI
from .responses import buildError, buildFull, buildPartial
from .server import Server
from .storage import FileEntry, LocalFileEntry
from .utils.logging import debug, logged, warning

# Methods that retrieve a file, any other method is rejected
METHODS: tuple[str, ...] = ("GET", "HEAD")


class VolumeService(Service):
	"""Serves the files of a volume, supporting single byte range requests so
	that clients can seek through large media files.

	The root may be a directory, in which case any file below it is available
	at its path, or a single file, which is then only available as `/` and
	`/<name>`. Directories are never served."""

	def __init__(
		self,
		root: FileEntry | str | Path,
		*,
		capacity: int = CACHE_CAPACITY,
		name: str | None = None,
	) -> None:
		self.root: FileEntry = (
			root if isinstance(root, FileEntry) else LocalFileEntry(root)
		)
		self.resolver: FileResolver = FileResolver(self.root, capacity)
		super().__init__(name)

	async def start(self) -> None:
		self.resolver.restart()

	async def stop(self) -> None:
		self.resolver.shutdown()

	def shutdown(self) -> None:
		evicted = self.resolver.shutdown()
		logged(debug) and debug("File cache cleared", Evicted=evicted)

	def process(self, request: HTTPRequest) -> HTTPResponse:
		return self.serve(request)

	def serve(self, request: HTTPRequest) -> HTTPResponse:
		if request.method not in METHODS:
			return self.fail(
				request,
				Failure(
					ErrorKind.MethodNotAllowed, f"Method not allowed: {request.method}"
				),
			).setHeader("Allow", ", ".join(METHODS))
		uri = decodeURI(request.path)
		if isinstance(uri, Failure):
			return self.fail(request, uri)
		logged(debug) and debug("Request", URI=uri)
		entry = self.resolver.resolve(uri)
		if isinstance(entry, Failure):
			return self.fail(request, entry)
		range_header: str | None = request.header("Range")
		try:
			if range_header is None:
				logged(debug) and debug("Serving complete file", URI=uri)
				return buildFull(request, entry)
			total: int = entry.getLength()
			spec = parseRange(range_header, total)
			if isinstance(spec, Failure):
				return self.fail(request, spec)
			elif not spec.satisfiable:
				return self.fail(
					request,
					Failure(ErrorKind.Unsatisfiable, "Start < 0 or end >= actual length"),
				)
			logged(debug) and debug(
				"Serving range of file",
				URI=uri,
				Start=spec.start,
				End=spec.end,
				Length=spec.contentLength,
			)
			return buildPartial(request, entry, spec)
		except OSError as e:
			return self.fail(request, Failure(ErrorKind.IO, str(e)))

	def fail(self, request: HTTPRequest, failure: Failure) -> HTTPResponse:
		warning(
			"Request failed",
			Method=request.method,
			Path=request.path,
			Status=failure.status,
			Reason=failure.message,
		)
		return buildError(request, failure)


class VolumeServer(Server):
	"""An HTTP server exposing a volume to local clients. The server
	listens on `port` (8000 by default) and, when a `host` is given,
	advertises it in `baseUrl`."""

	def __init__(
		self,
		root: FileEntry | str | Path,
		*,
		host: str | None = HOST,
		port: int = PORT,
		capacity: int = CACHE_CAPACITY,
		**options: Any,
	) -> None:
		self.service: VolumeService = VolumeService(root, capacity=capacity)
		super().__init__(self.service, host=host, port=port, **options)

	@property
	def resolver(self) -> FileResolver:
		return self.service.resolver


# EOF
