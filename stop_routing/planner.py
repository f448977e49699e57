import itertools as it, operator as op, functools as ft

import pytz

from . import utils as u, itinerary as itin, favorites as fav


@u.attr_struct(vals_to_attrs=True)
class PlannerConf:
	timezone = 'Europe/Sofia' # for current time and weekday/weekend day type
	cache_ttl = 3600 # seconds
	recent_max = 10


@u.attr_struct
class RoutePlan:
	itinerary = u.attr_init()
	instructions = u.attr_init(list)
	total_minutes = u.attr_init(0)
	cached = u.attr_init(False)

	@property
	def lines(self): return list(map(str, self.instructions))


class RoutePlanner:
	'''Request-level route planning: validate query,
			check route cache, run search, store result, compose instructions.
		Engine can be replaced at any time with a new one (e.g. built from new snapshot),
			and each plan() call only uses engine that was set when it started.'''

	def __init__(self, engine, cache=None, favorites=None, conf=None, clock=None):
		self.engine, self.cache, self.favorites = engine, cache, favorites
		self.conf, self.log = conf or PlannerConf(), u.get_logger('sr.planner')
		self.tz = pytz.timezone(self.conf.timezone)
		self.clock = clock or ft.partial(u.dts_now, self.tz)

	def swap_engine(self, engine):
		self.log.debug('Replacing routing engine: {} -> {}', self.engine, engine)
		self.engine = engine

	def now(self):
		'Returns (minute-of-day, is_weekend) tuple for current time.'
		return self.clock()

	def plan(self, start, end, dts_start=None, use_cache=True):
		'''Returns RoutePlan for start -> end query or None if there is no route.
			Raises QueryError for stops that are not in the dataset.'''
		engine = self.engine
		for stop, kind in [(start, 'start'), (end, 'end')]: engine.check_stop(stop, kind)
		if dts_start is None: dts_start = self.now()[0]

		itinerary, cached = None, False
		if self.cache is not None and use_cache:
			itinerary = self.cache.get(start, end)
			cached = itinerary is not None
		if itinerary is None:
			itinerary = engine.find_route(start, end, dts_start)
			if itinerary is None:
				self.log.info('No route found: {} -> {} (departure: {})', start, end, u.dts_format(dts_start))
				return None
			if self.cache is not None: self.cache.put(start, end, itinerary)

		if self.favorites is not None: self.record_recent(start, end)
		instructions, total = itin.compose_instructions(engine.dataset, itinerary)
		return RoutePlan(itinerary, instructions, total, cached)

	def record_recent(self, start, end):
		names = self.engine.dataset.stop_name
		item = fav.Favorites.route_item(start, end, '{} -> {}'.format(names(start), names(end)))
		try: self.favorites.add_recent(item)
		except Exception as err:
			self.log.exception( 'Failed to update recent routes'
				' list: [{}] {}', err.__class__.__name__, err )
