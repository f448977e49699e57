### Network dataset records

# Static input feed, loaded once: stops, routes (lines),
#  directions (stop sequences), trips and their stop-times.

import itertools as it, operator as op, functools as ft

from .. import utils as u


transport_types = 'metro', 'tram', 'trolley', 'bus'
transport_aliases = dict(trolleybus='trolley')


class DataRowError(Exception): pass


@u.attr_struct(frozen=True, repr=False)
class Stop:
	code = u.attr_init()
	name = u.attr_init()
	lat = u.attr_init(None)
	lon = u.attr_init(None)
	lines = u.attr_init(tuple)

	@property
	def has_coords(self): return self.lat is not None and self.lon is not None

	def __repr__(self): return '<Stop {} [{}]>'.format(self.name, self.code)

@u.attr_struct(frozen=True)
class Route: keys = 'route_index route_ref type'

@u.attr_struct(frozen=True)
class Direction:
	code = u.attr_init()
	stops = u.attr_init(tuple)

	def index(self, stop_code):
		'First position of stop in this direction or None.'
		try: return self.stops.index(stop_code)
		except ValueError: return None

	def __len__(self): return len(self.stops)
	def __iter__(self): return iter(self.stops)

@u.attr_struct(frozen=True)
class Trip:
	id = u.attr_init()
	route_index = u.attr_init()
	direction = u.attr_init()
	weekend = u.attr_init(False)

@u.attr_struct(frozen=True)
class StopTime:
	'Scheduled minutes for one trip, aligned with its direction stops, None for skipped slots.'
	trip = u.attr_init()
	times = u.attr_init(tuple)


class Records:
	'Insertion-ordered mapping of records by their key attribute.'

	def __init__(self, key_attr):
		self.key_func, self.set_idx = op.attrgetter(key_attr), dict()

	def add(self, rec):
		'Add record, returning False if there is already one with the same key.'
		k = self.key_func(rec)
		if k in self.set_idx: return False
		self.set_idx[k] = rec
		return True

	def get(self, k, default=None): return self.set_idx.get(k, default)
	def __getitem__(self, k): return self.set_idx[k]
	def __contains__(self, k): return k in self.set_idx
	def __len__(self): return len(self.set_idx)
	def __iter__(self): return iter(self.set_idx.values())


class Dataset:
	'''Immutable network dataset with lookup indexes, built once and
		passed by reference to everything that needs stop/line info.'''

	def __init__(self, stops, routes, directions, trips, stop_times):
		self.stops, self.routes, self.directions = stops, routes, directions
		self.trips, self.stop_times = trips, tuple(stop_times)
		self._direction_routes = dict()
		for trip in sorted(trips, key=op.attrgetter('id')):
			self._direction_routes.setdefault(trip.direction, routes[trip.route_index])

	@classmethod
	def empty(cls):
		return cls(*(Records(k) for k in
			['code', 'route_index', 'code', 'id']), list())

	def stop_name(self, stop_code):
		stop = self.stops.get(stop_code)
		return stop.name if stop else 'Stop {}'.format(stop_code)

	def route_for_direction(self, direction_code):
		'Route (line) that owns direction, resolved through the earliest trip using it.'
		return self._direction_routes.get(direction_code)

	def route_ref_for_direction(self, direction_code):
		route = self.route_for_direction(direction_code)
		return route.route_ref if route else str(direction_code)

	def transport_type_for_direction(self, direction_code, default='bus'):
		route = self.route_for_direction(direction_code)
		return route.type if route else default

	def __repr__(self):
		return ( '<Dataset stops={} routes={} directions={}'
			' trips={} stop_times={}>' ).format( len(self.stops),
				len(self.routes), len(self.directions), len(self.trips), len(self.stop_times) )
