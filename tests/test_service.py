from pathlib import Path

import pytest

from conftest import MemoryEntry, VIDEO_LENGTH, pattern

from volhttp.http.model import HTTPBodyStream, HTTPRequest, HTTPResponse
from volhttp.service import VolumeService


def get(service: VolumeService, path: str, **headers: str) -> HTTPResponse:
	return service.serve(
		HTTPRequest("GET", path, headers={k.replace("_", "-"): v for k, v in headers.items()})
	)


def test_full_response(volume: Path):
	res = get(VolumeService(volume), "/video.mp4")
	assert res.status == 200
	assert res.getHeader("Accept-Ranges") == "bytes"
	assert res.getHeader("Content-Type") == "video/mp4"
	assert res.contentLength == VIDEO_LENGTH
	assert isinstance(res.body, HTTPBodyStream)
	assert res.read() == pattern(VIDEO_LENGTH)


def test_partial_response(volume: Path):
	res = get(VolumeService(volume), "/video.mp4", Range="bytes=100-199")
	assert res.status == 206
	assert res.getHeader("Content-Range") == "bytes 100-199/2000000"
	assert res.getHeader("Content-Length") == "100"
	assert res.getHeader("Accept-Ranges") == "bytes"
	assert res.read() == pattern(VIDEO_LENGTH)[100:200]


def test_range_header_name_is_case_insensitive(volume: Path):
	res = get(VolumeService(volume), "/notes.txt", range="bytes=2-4")
	assert res.status == 206
	assert res.read() == b"234"


def test_open_ended_range(volume: Path):
	res = get(VolumeService(volume), "/video.mp4", Range="bytes=1999990-")
	assert res.status == 206
	assert res.getHeader("Content-Range") == "bytes 1999990-1999999/2000000"
	assert res.contentLength == 10
	assert res.read() == pattern(VIDEO_LENGTH)[1999990:]


def test_malformed_range_serves_whole_file(volume: Path):
	res = get(VolumeService(volume), "/notes.txt", Range="bytes=abc-xyz")
	assert res.status == 206
	assert res.getHeader("Content-Range") == "bytes 0-9/10"
	assert res.read() == b"0123456789"


def test_unsatisfiable_range(volume: Path):
	res = get(VolumeService(volume), "/video.mp4", Range="bytes=1999999-2000000")
	assert res.status == 416
	assert res.getHeader("Content-Range") is None
	assert res.read() == b"Start < 0 or end >= actual length"


def test_invalid_range_header(volume: Path):
	res = get(VolumeService(volume), "/video.mp4", Range="items=0-10")
	assert res.status == 400
	assert res.getHeader("Content-Type") == "text/html"
	assert res.read() == b"Range header invalid"


def test_missing_file(volume: Path):
	res = get(VolumeService(volume), "/missing.txt")
	assert res.status == 404
	assert res.read() == b"/missing.txt"


def test_directory(volume: Path):
	res = get(VolumeService(volume), "/folder")
	assert res.status == 400
	assert res.getHeader("Content-Type") == "text/html"


def test_undecodable_uri(volume: Path):
	res = get(VolumeService(volume), "/%FF.txt")
	assert res.status == 400
	assert res.read() == b"Unable to decode URL"


def test_encoded_names(volume: Path):
	res = get(VolumeService(volume), "/%C3%A9moji%20%F0%9F%8E%AC.txt")
	assert res.status == 200
	assert res.read() == b"hello"


def test_single_file_root(movie: Path):
	service = VolumeService(movie)
	res = get(service, "/movie.mkv")
	assert res.status == 200
	assert res.getHeader("Content-Type") == "video/x-matroska"
	assert res.read() == pattern(4096)
	assert get(service, "/").status == 200
	assert get(service, "/other").status == 404


@pytest.mark.parametrize("method", ["POST", "PUT", "DELETE"])
def test_write_methods_are_rejected(volume: Path, method: str):
	res = VolumeService(volume).serve(HTTPRequest(method, "/notes.txt"))
	assert res.status == 405
	assert res.getHeader("Allow") == "GET, HEAD"


def test_storage_failure_when_opening():
	root = MemoryEntry("", children=[MemoryEntry("a.bin", b"abc", failing=True)])
	res = get(VolumeService(root), "/a.bin")
	assert res.status == 500
	assert res.read() == b"Device not ready"
	res = get(VolumeService(root), "/a.bin", Range="bytes=0-1")
	assert res.status == 500


def test_unseekable_storage():
	data = pattern(10_000)
	root = MemoryEntry("", children=[MemoryEntry("a.bin", data, seekable=False)])
	res = get(VolumeService(root), "/a.bin", Range="bytes=9000-9099")
	assert res.status == 206
	assert res.read() == data[9000:9100]


def test_shutdown_clears_cache(volume: Path):
	service = VolumeService(volume)
	get(service, "/notes.txt").close()
	assert "/notes.txt" in service.resolver.cache
	service.shutdown()
	assert len(service.resolver.cache) == 0
	res = get(service, "/notes.txt")
	assert res.status == 200
	res.close()
	assert "/notes.txt" not in service.resolver.cache


# EOF
