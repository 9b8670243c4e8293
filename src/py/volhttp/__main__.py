import argparse
from pathlib import Path

from .config import HOST, PORT
from .server import run
from .service import VolumeService
from .utils.logging import info


def main(args: list[str] | None = None) -> None:
	parser = argparse.ArgumentParser(
		prog="volhttp",
		description="Serves the files of a volume over HTTP, with range requests",
	)
	parser.add_argument(
		"root", nargs="?", default=".", help="Directory or file to serve"
	)
	parser.add_argument("--host", default=HOST, help="Hostname to listen on")
	parser.add_argument("--port", type=int, default=PORT, help="Port to listen on")
	options = parser.parse_args(args)
	root = Path(options.root)
	if not root.exists():
		parser.error(f"Path does not exist: {root}")
	info("Serving volume", Root=str(root.absolute()))
	run(VolumeService(root), host=options.host, port=options.port)


if __name__ == "__main__":
	main()

# EOF
