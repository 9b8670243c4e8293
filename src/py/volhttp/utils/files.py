import mimetypes

mimetypes.init()

# Media types that are commonly found on removable drives but are missing
# from some platform databases.
MIME_TYPES: dict[str, str] = dict(
	mkv="video/x-matroska",
	flac="audio/flac",
	m4v="video/x-m4v",
	bz2="application/x-bzip",
	gz="application/x-gzip",
)

DEFAULT_CONTENT_TYPE: str = "application/octet-stream"


def contentType(name: str) -> str:
	"""Guesses the content type from the given file name"""
	return (
		res
		if (res := MIME_TYPES.get(name.rsplit(".", 1)[-1].lower()))
		else mimetypes.guess_type(name)[0] or DEFAULT_CONTENT_TYPE
	)


# EOF
