import pytest

from volhttp.errors import ErrorKind, Failure
from volhttp.ranges import RangeSpec, parseRange


def test_bounded_range():
	spec = parseRange("bytes=0-99", 1000)
	assert spec == RangeSpec(0, 99, True)
	assert spec.contentLength == 100
	assert spec.contentRange(1000) == "bytes 0-99/1000"


def test_open_ended_range():
	spec = parseRange("bytes=500-", 1000)
	assert isinstance(spec, RangeSpec)
	assert (spec.start, spec.end, spec.satisfiable) == (500, 999, True)
	assert spec.contentLength == 500


def test_malformed_numbers_cover_the_whole_file():
	spec = parseRange("bytes=abc-xyz", 1000)
	assert spec == RangeSpec(0, 999, True)
	assert spec.contentLength == 1000


@pytest.mark.parametrize(
	"header,expected",
	[
		# The start is kept when only the end can't be parsed
		("bytes=100-abc", RangeSpec(100, 999, True)),
		# Suffix ranges are not supported, they fall back to the whole file
		("bytes=-500", RangeSpec(0, 999, True)),
		("bytes=", RangeSpec(0, 999, True)),
		("bytes=42", RangeSpec(0, 999, True)),
		# Only the first range of a list is considered, and it's malformed
		("bytes=0-10,20-30", RangeSpec(0, 999, True)),
		("bytes= 5-10", RangeSpec(0, 999, True)),
		("bytes=1_0-20", RangeSpec(0, 999, True)),
		("bytes=+5-10", RangeSpec(5, 10, True)),
		# A negative end is the end of the file
		("bytes=5--3", RangeSpec(5, 999, True)),
	],
)
def test_lenient_parsing(header: str, expected: RangeSpec):
	assert parseRange(header, 1000) == expected


def test_end_beyond_length_is_unsatisfiable():
	spec = parseRange("bytes=0-999999", 1000)
	assert isinstance(spec, RangeSpec)
	assert not spec.satisfiable
	assert parseRange("bytes=0-1000", 1000).satisfiable is False
	assert parseRange("bytes=0-999", 1000).satisfiable is True


def test_out_of_range_numbers_are_malformed():
	assert parseRange("bytes=0-99999999999999999999", 1000) == RangeSpec(0, 999, True)


def test_start_after_end_yields_empty_content():
	spec = parseRange("bytes=5000-", 1000)
	assert spec == RangeSpec(5000, 999, True)
	assert spec.contentLength == 0
	assert spec.contentRange(1000) == "bytes 5000-999/1000"
	assert parseRange("bytes=50-10", 1000).contentLength == 0


def test_empty_resource():
	spec = parseRange("bytes=0-", 0)
	assert spec == RangeSpec(0, -1, True)
	assert spec.contentLength == 0
	assert parseRange("bytes=0-0", 0).satisfiable is False


@pytest.mark.parametrize("header", ["items=0-10", "0-10", "Bytes=0-10", ""])
def test_missing_prefix_is_a_format_failure(header: str):
	res = parseRange(header, 1000)
	assert isinstance(res, Failure)
	assert res.kind is ErrorKind.Format
	assert res.status == 400


# EOF
