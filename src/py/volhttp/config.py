from os import getenv

DEFAULT_ENCODING: str = "utf8"

# When unset, the listener binds to the loopback interface and the base URL
# uses `localhost`.
HOST: str | None = getenv("VOLHTTP_HOST") or None

PORT: int = int(getenv("VOLHTTP_PORT", 8000))

# Number of resolved URIs kept by the file resolver
CACHE_CAPACITY: int = 100

CHUNK_SIZE: int = int(getenv("VOLHTTP_CHUNK_SIZE", 64_000))

LOG_REQUESTS: bool = getenv("VOLHTTP_LOG_REQUESTS", "1") == "1"

LOG_LEVEL: str = getenv("VOLHTTP_LOG_LEVEL", "info")

# EOF
