import threading

import pytest

from volhttp.utils.cache import LRUCache


def test_get_and_put():
	cache: LRUCache[str, int] = LRUCache(3)
	assert cache.get("a") is None
	assert cache.put("a", 1)
	assert cache.get("a") == 1
	assert "a" in cache
	assert len(cache) == 1


def test_never_exceeds_capacity():
	cache: LRUCache[str, int] = LRUCache(100)
	for i in range(101):
		cache.put(f"/file-{i}", i)
	assert len(cache) == 100
	# The first inserted entry is the least recently used one
	assert cache.get("/file-0") is None
	assert cache.get("/file-1") == 1
	assert cache.get("/file-100") == 100


def test_eviction_follows_usage():
	cache: LRUCache[str, int] = LRUCache(2)
	cache.put("a", 1)
	cache.put("b", 2)
	# Reading `a` makes `b` the least recently used entry
	assert cache.get("a") == 1
	cache.put("c", 3)
	assert "b" not in cache
	assert cache.get("a") == 1
	assert cache.get("c") == 3


def test_put_refreshes_existing_key():
	cache: LRUCache[str, int] = LRUCache(2)
	cache.put("a", 1)
	cache.put("b", 2)
	cache.put("a", 10)
	cache.put("c", 3)
	assert cache.get("a") == 10
	assert "b" not in cache


def test_evict_all_seals_the_cache():
	cache: LRUCache[str, int] = LRUCache(10)
	cache.put("a", 1)
	cache.put("b", 2)
	assert cache.evictAll() == 2
	assert len(cache) == 0
	assert cache.isSealed
	assert cache.put("c", 3) is False
	assert cache.get("c") is None
	cache.reopen()
	assert cache.put("c", 3) is True
	assert cache.get("c") == 3


def test_invalid_capacity():
	with pytest.raises(ValueError):
		LRUCache(0)


def test_concurrent_access():
	cache: LRUCache[int, int] = LRUCache(50)
	errors: list[Exception] = []

	def worker(offset: int) -> None:
		try:
			for i in range(2_000):
				key = (offset * 7 + i) % 200
				cache.put(key, key)
				value = cache.get(key)
				assert value is None or value == key
		except Exception as e:
			errors.append(e)

	threads = [threading.Thread(target=worker, args=(_,)) for _ in range(8)]
	for t in threads:
		t.start()
	for t in threads:
		t.join()
	assert not errors
	assert len(cache) <= 50


def test_no_entry_is_cached_once_evicted_during_writes():
	cache: LRUCache[int, int] = LRUCache(1_000)
	started = threading.Event()

	def writer() -> None:
		i = 0
		while i < 20_000:
			cache.put(i, i)
			if i == 100:
				started.set()
			i += 1

	thread = threading.Thread(target=writer)
	thread.start()
	started.wait()
	cache.evictAll()
	thread.join()
	assert len(cache) == 0


# EOF
