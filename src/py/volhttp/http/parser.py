from typing import Iterator, Literal, TypeAlias

from ..utils.io import LineParser
from .model import (
	HTTPHeaders,
	HTTPProcessingStatus,
	HTTPRequest,
	HTTPRequestLine,
	headername,
)

# What the parser produces
HTTPAtom: TypeAlias = HTTPRequestLine | HTTPHeaders | HTTPProcessingStatus | HTTPRequest


class RequestLineParser:
	"""Parses an HTTP request line."""

	__slots__ = ["line", "value"]

	def __init__(self) -> None:
		self.line: LineParser = LineParser()
		self.value: HTTPRequestLine | None = None

	def flush(self) -> HTTPRequestLine | None:
		res = self.value
		self.reset()
		return res

	def reset(self) -> "RequestLineParser":
		self.line.reset()
		self.value = None
		return self

	def feed(self, chunk: bytes, start: int = 0) -> tuple[bool | None, int]:
		"""Returns `True` when a request line was parsed, `False` when
		the line is malformed and `None` when more data is needed."""
		line, read = self.line.feed(chunk, start)
		if line is None:
			return None, read
		elif not line:
			# Clients may send empty lines between requests, we skip them.
			return None, read
		try:
			ln = line.decode("ascii")
		except UnicodeDecodeError:
			return False, read
		i = ln.find(" ")
		j = ln.rfind(" ")
		if i <= 0 or j == i:
			return False, read
		p: list[str] = ln[i + 1 : j].split("?", 1)
		self.value = HTTPRequestLine(
			ln[0:i].upper(), p[0], p[1] if len(p) > 1 else "", ln[j + 1 :]
		)
		return True, read

	def __str__(self) -> str:
		return f"RequestLineParser({self.value})"


class HeadersParser:
	__slots__ = ["headers", "contentType", "contentLength", "line"]

	def __init__(self) -> None:
		self.line: LineParser = LineParser()
		self.headers: dict[str, str] = {}
		self.contentType: str | None = None
		self.contentLength: int | None = None

	def flush(self) -> HTTPHeaders:
		res = HTTPHeaders(self.headers, self.contentType, self.contentLength)
		self.reset()
		return res

	def reset(self) -> "HeadersParser":
		self.line.reset()
		self.headers = {}
		self.contentType = None
		self.contentLength = None
		return self

	def feed(
		self, chunk: bytes, start: int = 0
	) -> tuple[str | Literal[False] | None, int]:
		"""Feeds data from chunk, starting at `start` offset. Returns
		a value and the number of bytes read. When the value is `None`, no
		header has been extracted, when the value is `False` it's an empty
		line, and otherwise it is the name of the parsed header."""
		line, read = self.line.feed(chunk, start)
		if line is None:
			return None, read
		elif not line:
			# An empty line denotes the end of headers
			return False, read
		# Headers are expected to be in ASCII, but we tolerate Latin-1
		ln: str = line.decode("latin1")
		i = ln.find(":")
		if i == -1:
			return None, read
		h = ln[:i].lower().strip()
		v = ln[i + 1 :].strip()
		if h == "content-length":
			try:
				length = int(v)
			except ValueError:
				length = -1
			self.contentLength = length if length >= 0 else None
		elif h == "content-type":
			self.contentType = v
		n: str = headername(h)
		self.headers[n] = v
		return n, read

	def __str__(self) -> str:
		return f"HeadersParser({self.headers})"


class BodySkipper:
	"""Discards a request body of a known length. Requests bodies are never
	used by the server, but need to be consumed to find the next request."""

	__slots__ = ["remaining"]

	def __init__(self) -> None:
		self.remaining: int = 0

	def reset(self, length: int = 0) -> "BodySkipper":
		self.remaining = max(0, length)
		return self

	def feed(self, chunk: bytes, start: int = 0) -> tuple[bool, int]:
		read: int = min(len(chunk) - start, self.remaining)
		self.remaining -= read
		return self.remaining == 0, read


class HTTPParser:
	"""A stateful, incremental HTTP request parser. Feeding it bytes yields
	the atoms parsed so far, each complete request being yielded as an
	`HTTPRequest`."""

	def __init__(self) -> None:
		self.requestLine: RequestLineParser = RequestLineParser()
		self.headers: HeadersParser = HeadersParser()
		self.body: BodySkipper = BodySkipper()
		self.parser: RequestLineParser | HeadersParser | BodySkipper = self.requestLine
		self.line: HTTPRequestLine | None = None
		self.pending: HTTPRequest | None = None

	def reset(self) -> "HTTPParser":
		self.requestLine.reset()
		self.headers.reset()
		self.body.reset()
		self.parser = self.requestLine
		self.line = None
		self.pending = None
		return self

	def feed(self, chunk: bytes) -> Iterator[HTTPAtom]:
		size: int = len(chunk)
		offset: int = 0
		while offset < size:
			if self.parser is self.requestLine:
				parsed, read = self.requestLine.feed(chunk, offset)
				offset += read
				if parsed is False:
					self.reset()
					yield HTTPProcessingStatus.BadFormat
					return
				elif parsed:
					self.line = self.requestLine.flush()
					if self.line:
						yield self.line
					self.parser = self.headers
			elif self.parser is self.headers:
				header, read = self.headers.feed(chunk, offset)
				offset += read
				if header is False:
					headers = self.headers.flush()
					yield headers
					line = self.line
					if line is None:
						self.reset()
						yield HTTPProcessingStatus.BadFormat
						return
					request = HTTPRequest(
						method=line.method,
						path=line.path,
						query=parseQuery(line.query),
						headers=headers,
						protocol=line.protocol,
					)
					if headers.contentLength and headers.contentLength > 0:
						# The request is complete once its body is skipped
						self.pending = request
						self.parser = self.body.reset(headers.contentLength)
						yield HTTPProcessingStatus.Body
					else:
						self.line = None
						self.parser = self.requestLine
						yield request
			else:
				done, read = self.body.feed(chunk, offset)
				offset += read
				if done:
					request = self.pending
					self.pending = None
					self.line = None
					self.parser = self.requestLine
					if request:
						yield request


def parseQuery(text: str) -> dict[str, str]:
	res: dict[str, str] = {}
	if not text:
		return res
	for item in text.split("&"):
		kv = item.split("=", 1)
		if len(kv) == 1:
			res[item] = ""
		else:
			res[kv[0]] = kv[1]
	return res


# EOF
