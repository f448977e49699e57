import json, time

from . import utils as u


class Favorites:
	'''User-facing lists of saved items and recently-used ones,
			kept as JSON lists in the same key-value store as route cache.
		Item is a dict like {id, title, type, routeData: {start, end}}.
		Reads return empty list if store fails, writes raise errors as they are.'''

	key_favorites, key_recent = 'favorites', 'recentItems'

	def __init__(self, store, recent_max=10, clock=time.time):
		self.store, self.recent_max, self.clock = store, recent_max, clock
		self.log = u.get_logger('sr.favorites')

	@staticmethod
	def route_item(start, end, title=None):
		return dict( id='route_{}_{}'.format(start, end),
			title=title or '{} -> {}'.format(start, end),
			type='route', routeData=dict(start=start, end=end) )

	def _read(self, key):
		value = self.store.get(key)
		return json.loads(value) if value else list()

	def _read_safe(self, key):
		try: return self._read(key)
		except Exception as err:
			self.log.exception( 'Failed to read {!r} list'
				' from store: [{}] {}', key, err.__class__.__name__, err )
			return list()

	def _write(self, key, items): self.store.set(key, json.dumps(items))

	def add_favorite(self, item):
		items = self._read(self.key_favorites)
		if any(fav['id'] == item['id'] for fav in items): return False
		items.append(dict(item))
		self._write(self.key_favorites, items)
		return True

	def remove_favorite(self, item_id):
		items = self._read(self.key_favorites)
		if not items: return
		self._write(self.key_favorites, list(i for i in items if i['id'] != item_id))

	def favorites(self): return self._read_safe(self.key_favorites)

	def add_recent(self, item):
		'Put item to the front of the recent list with current timestamp (ms), trimming the tail.'
		items = list(i for i in self._read(self.key_recent) if i['id'] != item['id'])
		item = dict(item, timestamp=int(self.clock() * 1000))
		items.insert(0, item)
		self._write(self.key_recent, items[:self.recent_max])

	def recent(self): return self._read_safe(self.key_recent)

	def clear(self):
		for key in self.key_favorites, self.key_recent: self.store.remove(key)
