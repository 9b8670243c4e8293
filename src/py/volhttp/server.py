import asyncio
import socket
import threading
from dataclasses import dataclass, field
from signal import SIGINT, SIGTERM
from typing import Any, Iterator, NamedTuple

from .config import HOST, LOG_REQUESTS, PORT
from .http.model import (
	HTTPBodyWriter,
	HTTPProcessingStatus,
	HTTPRequest,
	HTTPResponse,
)
from .http.parser import HTTPParser
from .model import Application, Service, mount
from .utils.logging import debug, error, event, exception, info, logged, warning

# Interface the listener binds to when no host is configured
LOOPBACK: str = "127.0.0.1"


@dataclass(slots=True)
class ServerState:
	isRunning: bool = True
	port: int | None = None
	error: BaseException | None = None
	ready: threading.Event = field(default_factory=threading.Event)

	def stop(self) -> None:
		if self.isRunning:
			info("Server stopping…")
		self.isRunning = False

	def onException(
		self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]
	) -> None:
		e = context.get("exception")
		if e:
			exception(e)


class ServerOptions(NamedTuple):
	host: str = LOOPBACK
	port: int = 8000
	backlog: int = 1_000
	# This is the polling timeout for accepting new requests, and the upper
	# bound of the time it takes for the server to notice it was stopped.
	polling: float = 0.25
	readsize: int = 4_096
	keepalive: float = 300.0
	logRequests: bool = LOG_REQUESTS
	stopSignals: bool = False


SERVER_NOCONTENT: bytes = b"HTTP/1.1 204 No Content\r\nConnection: close\r\n\r\n"
SERVER_BADREQUEST: bytes = (
	b"HTTP/1.1 400 Bad Request\r\n"
	b"Content-Type: text/plain\r\n"
	b"Content-Length: 11\r\n"
	b"Connection: close\r\n"
	b"\r\n"
	b"Bad Request"
)
SERVER_ERROR: bytes = (
	b"HTTP/1.1 500 Internal Server Error\r\n"
	b"Content-Type: text/plain\r\n"
	b"Content-Length: 21\r\n"
	b"Connection: close\r\n"
	b"\r\n"
	b"Internal Server Error"
)


class AIOSocketBodyWriter(HTTPBodyWriter):
	"""Specialized body writer to work with AIO sockets. Stream chunks are
	read in a worker thread, as reading from the storage is blocking."""

	__slots__ = ["client", "loop"]

	def __init__(
		self,
		client: "socket.socket",
		loop: asyncio.AbstractEventLoop,
	) -> None:
		super().__init__()
		self.client: socket.socket = client
		self.loop: asyncio.AbstractEventLoop = loop

	async def _pull(self, stream: Iterator[bytes]) -> bytes | None:
		return await asyncio.to_thread(next, stream, None)

	async def _writeBytes(self, chunk: bytes, more: bool = False) -> bool:
		if chunk:
			await self.loop.sock_sendall(self.client, chunk)
		return True


class AIOSocketServer:
	"""AsyncIO backend using sockets directly."""

	@classmethod
	async def OnRequest(
		cls,
		app: Application,
		client: socket.socket,
		*,
		loop: asyncio.AbstractEventLoop,
		options: ServerOptions,
	) -> None:
		"""Asynchronous worker, processing the requests sent over a client
		connection until it is closed or times out."""
		size: int = options.readsize
		buffer = bytearray(size)
		keep_alive: bool = True
		status: HTTPProcessingStatus = HTTPProcessingStatus.Processing
		req_count: int = 0
		res_count: int = 0
		try:
			parser: HTTPParser = HTTPParser()
			writer: AIOSocketBodyWriter = AIOSocketBodyWriter(client, loop)
			while keep_alive and not writer.shouldClose:
				try:
					n = await asyncio.wait_for(
						loop.sock_recv_into(client, buffer),
						timeout=options.keepalive,
					)
				except (TimeoutError, asyncio.TimeoutError):
					status = HTTPProcessingStatus.Timeout
					break
				if not n:
					# A no-data means a close
					status = HTTPProcessingStatus.NoData
					break
				# NOTE: With HTTP Pipelining, we may receive more than one
				# request in the same payload, so we need to be prepared
				# to answer more than one request.
				for atom in parser.feed(bytes(buffer[:n])):
					if atom is HTTPProcessingStatus.BadFormat:
						warning("Malformed request", Client=f"{id(client):x}")
						await writer.write(SERVER_BADREQUEST)
						keep_alive = False
						break
					elif isinstance(atom, HTTPRequest):
						req = atom
						if options.logRequests:
							event(req.method, req.path)
						req_count += 1
						if (
							req.protocol == "HTTP/1.0"
							or (req.header("Connection") or "").lower() == "close"
						):
							keep_alive = False
						res = await cls.SendResponse(req, app, writer)
						if res:
							res_count += 1
							if res.shouldClose:
								keep_alive = False
						if writer.shouldClose or not keep_alive:
							break
			if status is HTTPProcessingStatus.Timeout and req_count != res_count:
				warning("Client timed out", Requests=req_count, Responses=res_count)
			elif res_count != req_count:
				warning("Incomplete responses", Requests=req_count, Responses=res_count)
		except (BrokenPipeError, ConnectionResetError):
			logged(debug) and debug("Client disconnected", Client=f"{id(client):x}")
		except Exception as e:
			exception(e)
		finally:
			client.close()

	@staticmethod
	async def SendResponse(
		request: HTTPRequest,
		app: Application,
		writer: HTTPBodyWriter,
	) -> HTTPResponse | None:
		"""Processes the request within the application and sends a response
		using the given writer. The response body is always released, even
		when the client went away."""
		res: HTTPResponse | None = None
		# Resolution may hit the storage, so it's done in a worker thread
		processing = asyncio.ensure_future(asyncio.to_thread(app.process, request))
		try:
			res = await asyncio.shield(processing)
		except asyncio.CancelledError:
			# The worker thread can't be interrupted, the response it
			# produces still holds an open reader.
			processing.add_done_callback(AIOSocketServer.OnProcessedAfterCancel)
			raise
		except Exception as e:
			exception(e, f"Could not process {request.method} {request.path}")
			await writer.write(SERVER_ERROR)
			writer.shouldClose = True
			return None
		if res is None:
			warning(
				"Application did not return a response",
				Method=request.method,
				Path=request.path,
			)
			await writer.write(SERVER_NOCONTENT)
			writer.shouldClose = True
			return None
		try:
			await writer.write(res.head())
			if request.isHead:
				res.close()
			else:
				await writer.write(res.body)
		except (BrokenPipeError, ConnectionResetError):
			# Client did an early close
			logged(debug) and debug(
				"Client closed connection", Method=request.method, Path=request.path
			)
			writer.shouldClose = True
		except OSError as e:
			# The storage failed after the head was sent
			exception(e, f"Could not send {request.path}")
			writer.shouldClose = True
		finally:
			res.close()
		return res

	@staticmethod
	def OnProcessedAfterCancel(processing: "asyncio.Future[HTTPResponse]") -> None:
		"""Releases the response of a request whose connection was cancelled
		while it was being processed."""
		if processing.cancelled():
			return
		if (e := processing.exception()) is not None:
			exception(e, "Could not process request of a cancelled connection")
		elif (res := processing.result()) is not None:
			res.close()

	@classmethod
	async def Serve(
		cls,
		app: Application,
		options: ServerOptions = ServerOptions(),
		state: ServerState | None = None,
	) -> None:
		"""Main server coroutine."""
		state = state or ServerState()
		server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
		server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
		server.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
		try:
			server.bind((options.host, options.port))
		except OSError as e:
			warning(
				f"Could not bind to {options.host}:{options.port}, trying other ports."
			)
			bound: bool = False
			for p in range(options.port + 1, options.port + 5):
				try:
					server.bind((options.host, p))
					bound = True
					info(f"Found alternate available port: {p}")
					break
				except OSError:
					pass
			if not bound:
				error(
					f"Unable to bind to {options.host}:{options.port}, aborting.",
					"HOSTPORTERR",
				)
				server.close()
				state.error = e
				state.ready.set()
				raise e from e

		server.listen(options.backlog)
		# This is what we need to use it with asyncio
		server.setblocking(False)
		state.port = server.getsockname()[1]

		loop = asyncio.get_running_loop()
		tasks: set[asyncio.Task[None]] = set()
		if options.stopSignals and threading.current_thread() is threading.main_thread():
			loop.add_signal_handler(SIGINT, lambda: state.stop())
			loop.add_signal_handler(SIGTERM, lambda: state.stop())
		loop.set_exception_handler(state.onException)

		try:
			await app.start()
		except BaseException as e:
			server.close()
			state.error = e
			state.ready.set()
			raise

		info("Server listening", Host=options.host, Port=state.port)
		state.ready.set()

		try:
			while state.isRunning:
				try:
					client, _ = await asyncio.wait_for(
						loop.sock_accept(server), timeout=options.polling
					)
				except (TimeoutError, asyncio.TimeoutError):
					continue
				except OSError as e:
					# This can be: [OSError] [Errno 24] Too many open files
					if e.errno == 24:
						await asyncio.sleep(0.1)
					else:
						exception(e)
					continue
				task = loop.create_task(
					cls.OnRequest(app, client, loop=loop, options=options)
				)
				tasks.add(task)
				task.add_done_callback(tasks.discard)
		finally:
			server.close()
			for task in tasks:
				task.cancel()
			await asyncio.gather(*tasks, return_exceptions=True)
			await app.stop()
			info("Server stopped", Port=state.port)


# -----------------------------------------------------------------------------
#
# LIFECYCLE
#
# -----------------------------------------------------------------------------


class Server:
	"""Runs an application on a listening socket, either in the background
	with `start()`/`stop()` or in the foreground with `serve()`."""

	def __init__(
		self,
		*components: Application | Service,
		host: str | None = HOST,
		port: int = PORT,
		**options: Any,
	) -> None:
		self.app: Application = mount(*components)
		self.hostname: str | None = host
		self.options: ServerOptions = ServerOptions(
			host=host or LOOPBACK, port=port, **options
		)
		self.state: ServerState = ServerState(isRunning=False)
		self.thread: threading.Thread | None = None

	@property
	def isAlive(self) -> bool:
		return bool(self.thread and self.thread.is_alive())

	@property
	def listeningPort(self) -> int:
		"""The port the server is bound to, which may differ from the
		configured one when it was not available or was `0`."""
		return self.state.port if self.state.port is not None else self.options.port

	@property
	def baseUrl(self) -> str:
		return f"http://{self.hostname or 'localhost'}:{self.listeningPort}/"

	def start(self, timeout: float = 5.0) -> "Server":
		"""Starts serving in a background thread, returning once the socket
		is listening. Raises the error that prevented the server from
		starting, if any."""
		if self.isAlive:
			raise RuntimeError(f"Server is already running: {self}")
		self.state = ServerState()
		self.thread = threading.Thread(
			target=self._run, name=f"volhttp:{self.options.port}", daemon=True
		)
		self.thread.start()
		if not self.state.ready.wait(timeout):
			self.stop()
			raise TimeoutError(f"Server did not start within {timeout}s")
		if self.state.error is not None:
			self.thread.join()
			raise self.state.error
		return self

	def _run(self) -> None:
		try:
			asyncio.run(AIOSocketServer.Serve(self.app, self.options, self.state))
		except BaseException as e:
			if not self.state.ready.is_set():
				self.state.error = e
				self.state.ready.set()
			else:
				exception(e)

	def stop(self, timeout: float | None = None) -> "Server":
		"""Stops the server. Services are shut down first and synchronously,
		so that requests still in flight don't alter their state, then the
		listener is stopped and its thread joined."""
		self.app.shutdown()
		self.state.stop()
		if self.thread and self.thread is not threading.current_thread():
			self.thread.join(timeout)
		self.thread = None
		return self

	def serve(self) -> None:
		"""Serves in the current thread until interrupted."""
		self.state = ServerState()
		try:
			asyncio.run(
				AIOSocketServer.Serve(
					self.app, self.options._replace(stopSignals=True), self.state
				)
			)
		finally:
			self.app.shutdown()

	def __repr__(self) -> str:
		return f"(Server {self.baseUrl}{' :alive' if self.isAlive else ''})"


def run(
	*components: Application | Service,
	host: str | None = HOST,
	port: int = PORT,
) -> None:
	"""High level function to run the server."""
	try:
		Server(*components, host=host, port=port).serve()
	except KeyboardInterrupt:
		event("ManualShutdown")
	event("EOK")


# EOF
