from .http.model import HTTPRequest, HTTPResponse  # NOQA: F401
from .errors import ErrorKind, Failure  # NOQA: F401
from .storage import FileEntry, LocalFileEntry  # NOQA: F401
from .ranges import RangeSpec, parseRange  # NOQA: F401
from .resolver import FileResolver, decodeURI  # NOQA: F401
from .streams import ByteStream, openStream  # NOQA: F401
from .model import Application, Service  # NOQA: F401
from .server import Server, run  # NOQA: F401
from .service import VolumeServer, VolumeService  # NOQA: F401


# EOF
