from pathlib import Path
import re, json, time, base64

from . import utils as u, types as t


class MemoryStore:
	'Key-value store kept in a dict, for tests and one-off queries.'

	def __init__(self, items=None): self.items = dict(items or dict())
	def get(self, key): return self.items.get(key)
	def set(self, key, value): self.items[key] = value
	def remove(self, key): self.items.pop(key, None)
	def __contains__(self, key): return key in self.items
	def __len__(self): return len(self.items)


class FileStore:
	'''Key-value store with one file per key in a directory.
		Values are replaced atomically, so partial writes are never seen by readers.'''

	name_fmt = '{}.json'

	def __init__(self, path):
		self.path = Path(path)
		self.path.mkdir(parents=True, exist_ok=True)

	def key_path(self, key):
		if re.search(r'^[\w.-]+$', key) and not key.startswith('.'): name = key
		else: name = '_' + base64.urlsafe_b64encode(key.encode()).decode()
		return self.path / self.name_fmt.format(name)

	def get(self, key):
		try:
			with self.key_path(key).open(encoding='utf-8') as src: return src.read()
		except FileNotFoundError: return None

	def set(self, key, value):
		with u.safe_replacement(self.key_path(key), 'w', encoding='utf-8') as dst: dst.write(value)

	def remove(self, key):
		try: self.key_path(key).unlink()
		except FileNotFoundError: pass

	def __contains__(self, key): return self.key_path(key).exists()


class CacheCondition(Exception): pass
class CacheMissing(CacheCondition): pass
class CacheExpired(CacheCondition): pass

@u.attr_struct(frozen=True)
class CachedRoute:
	start = u.attr_init()
	end = u.attr_init()
	itinerary = u.attr_init()
	created_at = u.attr_init()

	def dumps(self):
		return json.dumps(dict( steps=self.itinerary.to_records(),
			timestamp=self.created_at, start=self.start, end=self.end ))

	@classmethod
	def loads(cls, value):
		data = json.loads(value)
		return cls( data['start'], data['end'],
			t.public.Itinerary.from_records(data['steps']), data['timestamp'] )


class RouteCache:
	'''Advisory TTL-bounded cache of found routes, keyed by (start, end).
		Store failures are logged and treated as cache misses,
			so it never prevents a route from being calculated and returned.'''

	key_fmt = 'route_{}_{}'

	def __init__(self, store, ttl=3600, clock=time.time):
		self.store, self.ttl, self.clock = store, ttl, clock
		self.log = u.get_logger('sr.cache')

	def key(self, start, end): return self.key_fmt.format(start, end)

	def get(self, start, end):
		'Return cached Itinerary or None, removing stale entry if it is there.'
		key = self.key(start, end)
		try:
			value = self.store.get(key)
			if value is None: raise CacheMissing
			route = CachedRoute.loads(value)
			if self.clock() - route.created_at > self.ttl: raise CacheExpired
		except CacheMissing: return
		except CacheExpired:
			self.log.debug('[{}] Removing expired cache entry', key)
			self.remove(start, end)
			return
		except Exception as err:
			self.log.exception( '[{}] Failed to read cached'
				' route, ignoring it: [{}] {}', key, err.__class__.__name__, err )
			return
		self.log.debug('[{}] Returning cached route', key)
		return route.itinerary

	def put(self, start, end, itinerary):
		'Store Itinerary for (start, end), replacing any existing entry.'
		key = self.key(start, end)
		try: self.store.set(key, CachedRoute(start, end, itinerary, self.clock()).dumps())
		except Exception as err:
			self.log.exception( '[{}] Failed to store cached'
				' route, skipping it: [{}] {}', key, err.__class__.__name__, err )
		else: self.log.debug('[{}] Stored route in cache', key)

	def remove(self, start, end):
		key = self.key(start, end)
		try: self.store.remove(key)
		except Exception as err:
			self.log.exception( '[{}] Failed to remove cached'
				' route: [{}] {}', key, err.__class__.__name__, err )
