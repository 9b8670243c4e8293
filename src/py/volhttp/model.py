from typing import Iterable, NamedTuple, Optional

from .http.model import HTTPRequest, HTTPResponse
from .utils.logging import exception, warning

# -----------------------------------------------------------------------------
#
# SERVICE
#
# -----------------------------------------------------------------------------


class Service:
	"""A service processes requests and may hold state that needs to be
	set up and torn down with the server."""

	def __init__(self, name: Optional[str] = None) -> None:
		self.name: str = name or self.__class__.__name__
		self.app: Optional[Application] = None
		self.init()

	def init(self) -> None:
		pass

	async def start(self) -> None:
		"""Can be overridden to do asynchronous pre-start work"""
		pass

	async def stop(self) -> None:
		"""Can be overridden to do asynchronous post-stop work"""
		pass

	def shutdown(self) -> None:
		"""Can be overridden to release state synchronously when the server
		stops. This is called before the server stops listening."""
		pass

	def process(self, request: HTTPRequest) -> HTTPResponse | None:
		"""Returns a response for the request, or `None` if the service
		does not handle it."""
		return None

	@property
	def isMounted(self) -> bool:
		return self.app is not None

	def __repr__(self) -> str:
		return f"(Service {self.name}{' :mounted' if self.isMounted else ''})"


# -----------------------------------------------------------------------------
#
# APPLICATION
#
# -----------------------------------------------------------------------------


class Application:
	def __init__(self, services: list[Service] | None = None) -> None:
		self.services: list[Service] = []
		for service in services or []:
			self.mount(service)

	async def start(self) -> "Application":
		for srv in self.services:
			await srv.start()
		return self

	async def stop(self) -> "Application":
		for srv in self.services:
			try:
				await srv.stop()
			except Exception as e:
				exception(e, f"Exception occurred when stopping service {srv}")
		return self

	def shutdown(self) -> "Application":
		for srv in self.services:
			srv.shutdown()
		return self

	def process(self, request: HTTPRequest) -> HTTPResponse:
		for service in self.services:
			response = service.process(request)
			if response is not None:
				return response
		warning("No service for request", Method=request.method, Path=request.path)
		return request.error(404, f"No service for path: {request.path}")

	def mount(self, service: Service) -> Service:
		if service.isMounted:
			raise RuntimeError(
				f"Cannot mount service, it is already mounted: {service}"
			)
		service.app = self
		self.services.append(service)
		return service

	def __repr__(self) -> str:
		return f"(Application {' '.join(repr(_) for _ in self.services)})"


class Components(NamedTuple):
	"""Groups Application and Service objects together"""

	app: Application
	services: list[Service]

	@staticmethod
	def Make(components: Iterable[Application | Service]) -> "Components":
		"""Makes a Component value given the applications and services."""
		apps: list[Application] = []
		services: list[Service] = []
		for item in components:
			if isinstance(item, Application):
				apps.append(item)
			elif isinstance(item, Service):
				services.append(item)
			else:
				raise RuntimeError(f"Unsupported component type {type(item)}: {item}")
		return Components(apps[0] if apps else Application(), services)


def mount(*components: Application | Service) -> Application:
	"""Mounts the given components into an application"""
	c = Components.Make(components)
	app: Application = c.app
	for service in c.services:
		app.mount(service)
	return app


# EOF
