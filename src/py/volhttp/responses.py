from .errors import Failure
from .http.model import HTTPRequest, HTTPResponse
from .ranges import RangeSpec
from .storage import FileEntry
from .streams import openStream
from .utils.files import contentType

# Content type of error responses
ERROR_CONTENT_TYPE: str = "text/html"


def buildFull(request: HTTPRequest, entry: FileEntry) -> HTTPResponse:
	"""Responds with the whole contents of `entry`. This opens the entry,
	and raises `OSError` if it can't be opened."""
	length: int = entry.getLength()
	return request.respond(
		openStream(entry, 0, length),
		contentType=contentType(entry.getName()),
		contentLength=length,
		headers={"Accept-Ranges": "bytes"},
	)


def buildPartial(
	request: HTTPRequest, entry: FileEntry, spec: RangeSpec
) -> HTTPResponse:
	"""Responds with the bytes of `entry` covered by `spec`, which must be
	satisfiable. This opens the entry and skips to the start of the range,
	raising `OSError` if it fails."""
	total: int = entry.getLength()
	length: int = spec.contentLength
	return request.respond(
		openStream(entry, spec.start, length),
		contentType=contentType(entry.getName()),
		contentLength=length,
		status=206,
		headers={
			"Accept-Ranges": "bytes",
			"Content-Range": spec.contentRange(total),
		},
	)


def buildError(request: HTTPRequest, failure: Failure) -> HTTPResponse:
	return request.error(
		failure.status,
		failure.message,
		contentType=ERROR_CONTENT_TYPE,
	)


# EOF
