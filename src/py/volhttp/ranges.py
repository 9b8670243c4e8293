import re
from typing import NamedTuple, Pattern

from mypy_extensions import i64

from .errors import ErrorKind, Failure

# -----------------------------------------------------------------------------
#
# RANGE SPEC
#
# -----------------------------------------------------------------------------

RANGE_PREFIX: str = "bytes="

# Integers are parsed as signed 64-bit values: an optional sign followed by
# ASCII digits, anything else is a parsing failure.
RE_LONG: Pattern[str] = re.compile(r"^[+-]?[0-9]+$")
LONG_MIN: int = -(2**63)
LONG_MAX: int = 2**63 - 1

# Sentinel for an `end` that was not given
EOF: int = -1


class RangeSpec(NamedTuple):
	"""A byte span requested through a `Range` header. An `end` of `-1`
	means the end of the resource."""

	start: i64 = 0
	end: i64 = -1
	satisfiable: bool = True

	@property
	def contentLength(self) -> int:
		return max(0, self.end - self.start + 1)

	def contentRange(self, total: int) -> str:
		return f"bytes {self.start}-{self.end}/{total}"


def parseLong(text: str) -> int | None:
	if not RE_LONG.match(text):
		return None
	value = int(text)
	return value if LONG_MIN <= value <= LONG_MAX else None


def parseRange(header: str, total: int) -> RangeSpec | Failure:
	"""Parses the value of a `Range` header for a resource of `total` bytes.

	Only the `bytes=<start>-<end>` form is supported. A missing `bytes=`
	prefix is a format failure, but malformed numbers are not: parsing stops
	at the first number that can't be read, keeping the defaults (`0` and
	the end of the resource) for what was not parsed. This means that
	`bytes=500-` starts at 500 and `bytes=abc-xyz` covers the whole file.

	The satisfiability check is done on the raw `end` value, before the end
	of resource default is substituted."""
	if not header.startswith(RANGE_PREFIX):
		return Failure(ErrorKind.Format, "Range header invalid")
	text: str = header[len(RANGE_PREFIX) :]
	start: int = 0
	end: int = EOF
	minus: int = text.find("-")
	if minus > 0:
		if (parsed_start := parseLong(text[:minus])) is not None:
			start = parsed_start
			if (parsed_end := parseLong(text[minus + 1 :])) is not None:
				end = parsed_end
	if start < 0 or end >= total:
		return RangeSpec(start, end, False)
	if end < 0:
		end = total - 1
	return RangeSpec(start, end, True)


# EOF
