from collections import OrderedDict
from threading import Lock
from typing import Generic, Hashable, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class LRUCache(Generic[K, V]):
	"""A bounded key/value store that evicts the least recently used entry
	when its capacity is exceeded. All operations are guarded by a single
	lock, so the cache can be shared by concurrent requests.

	Once `evictAll()` is called the cache is *sealed*: it stays empty and
	`put()` is a no-op until `reopen()` is called. This is what prevents a
	resolution that is still running during a shutdown from repopulating the
	cache after it was cleared."""

	__slots__ = ["capacity", "entries", "lock", "sealed"]

	def __init__(self, capacity: int) -> None:
		if capacity <= 0:
			raise ValueError(f"Cache capacity must be positive, got: {capacity}")
		self.capacity: int = capacity
		self.entries: OrderedDict[K, V] = OrderedDict()
		self.lock: Lock = Lock()
		self.sealed: bool = False

	@property
	def isSealed(self) -> bool:
		return self.sealed

	def get(self, key: K) -> V | None:
		with self.lock:
			value = self.entries.get(key)
			if value is not None:
				self.entries.move_to_end(key)
			return value

	def put(self, key: K, value: V) -> bool:
		"""Inserts or refreshes `key`, returning `False` when the cache is
		sealed and nothing was stored."""
		with self.lock:
			if self.sealed:
				return False
			self.entries[key] = value
			self.entries.move_to_end(key)
			while len(self.entries) > self.capacity:
				self.entries.popitem(last=False)
			return True

	def evictAll(self) -> int:
		"""Clears and seals the cache, returning the number of evicted entries."""
		with self.lock:
			count = len(self.entries)
			self.entries.clear()
			self.sealed = True
			return count

	def reopen(self) -> "LRUCache[K, V]":
		with self.lock:
			self.sealed = False
		return self

	def __contains__(self, key: object) -> bool:
		with self.lock:
			return key in self.entries

	def __len__(self) -> int:
		with self.lock:
			return len(self.entries)

	def __repr__(self) -> str:
		return f"(LRUCache {len(self)}/{self.capacity}{' :sealed' if self.sealed else ''})"


# EOF
