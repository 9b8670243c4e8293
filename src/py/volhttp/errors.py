from enum import Enum
from typing import NamedTuple

# -----------------------------------------------------------------------------
#
# ERRORS
#
# -----------------------------------------------------------------------------
# Request processing does not raise: each step returns either its value or
# a `Failure`, which the service turns into the terminal response.


class ErrorKind(Enum):
	Decode = "decode"
	Format = "format"
	NotFound = "not-found"
	NotAFile = "not-a-file"
	Unsatisfiable = "unsatisfiable"
	IO = "io"
	MethodNotAllowed = "method-not-allowed"


ERROR_STATUS: dict[ErrorKind, int] = {
	ErrorKind.Decode: 400,
	ErrorKind.Format: 400,
	ErrorKind.NotFound: 404,
	ErrorKind.NotAFile: 400,
	ErrorKind.Unsatisfiable: 416,
	ErrorKind.IO: 500,
	ErrorKind.MethodNotAllowed: 405,
}


class Failure(NamedTuple):
	"""The outcome of a request processing step that did not succeed."""

	kind: ErrorKind
	message: str

	@property
	def status(self) -> int:
		return ERROR_STATUS[self.kind]

	def __str__(self) -> str:
		return f"Failure({self.kind.name} {self.status}: {self.message})"


# EOF
