import itertools as it, operator as op, functools as ft
from collections import Counter
import math

from . import utils as u, types as t


@u.attr_struct(vals_to_attrs=True)
class EngineConf:
	walk_m_per_minute = 100
	walk_buffer = 2 # minutes added to each walk, for boarding/transfer
	heuristic_fallback = 1000 # when neither walk-link nor common neighbor exists
	stay_on_board = True # no new schedule lookup to continue on the same direction


def timer(self_or_func, func=None, *args, **kws):
	'Calculation call wrapper for timer/progress logging.'
	if not func: return lambda s,*a,**k: s.timer_wrapper(self_or_func, s, *a, **k)
	return self_or_func.timer_wrapper(func, *args, **kws)


class QueryError(ValueError): pass

class RoutingEngine:
	'''Time-dependent A* search over stops of a NetworkSnapshot.
		Snapshot, dataset and schedule are only read from here, never modified,
			so same engine can be used for any number of queries.'''

	def __init__(self, dataset, snapshot, schedule, conf=None, timer_func=None):
		self.conf, self.log = conf or EngineConf(), u.get_logger('sr.engine')
		self.timer_wrapper = timer_func if timer_func else lambda f,*a,**k: f(*a,**k)
		self.dataset, self.snapshot, self.schedule = dataset, snapshot, schedule
		self.log.debug(
			'Routing engine: ride-edges={:,}, walk-edges={:,}, schedule={}',
			snapshot.adjacency.edge_count(), snapshot.proximity.edge_count(), schedule )

	def heuristic(self, stop, stop_dst):
		'''Remaining-cost estimate for the search.
			Mixes walk-link meters with minutes and is not a true lower bound,
				but changing it changes which paths get explored first.'''
		proximity = self.snapshot.proximity
		if proximity.connected(stop, stop_dst): return 0
		dst_dist = dict((edge.stop_to, edge.distance) for edge in proximity.get(stop_dst))
		return u.min(
			( edge.distance + dst_dist[edge.stop_to]
				for edge in proximity.get(stop) if edge.stop_to in dst_dist ),
			default=self.conf.heuristic_fallback )

	def walk_time(self, distance):
		return math.ceil(distance / self.conf.walk_m_per_minute) + self.conf.walk_buffer

	def check_stop(self, stop, kind):
		if stop not in self.dataset.stops:
			raise QueryError('Unknown {} stop: {!r}'.format(kind, stop))

	@timer
	def find_route(self, stop_src, stop_dst, dts_start, expand_hook=None):
		'''Find Itinerary from stop_src to stop_dst, leaving at or after dts_start.
			Returns None if stop_dst can't be reached at all.
			Search states are (stop, direction) tuples, with direction of the forward
				ride-edge that stop was reached by (if stay_on_board is set) or None,
				so being aboard some line there is not mixed-up with arriving there otherwise.
			expand_hook(state) gets called for each state as it gets finalized.'''
		for stop, kind in [(stop_src, 'start'), (stop_dst, 'end')]: self.check_stop(stop, kind)
		if not isinstance(dts_start, (int, float)) or isinstance(dts_start, bool):
			raise QueryError('Invalid departure time: {!r}'.format(dts_start))
		if stop_src == stop_dst: return t.public.Itinerary([t.public.Step.origin(stop_src, dts_start)])

		adjacency, proximity = self.snapshot.adjacency, self.snapshot.proximity
		heuristic, schedule = ft.partial(self.heuristic, stop_dst=stop_dst), self.schedule
		stay_on_board = self.conf.stay_on_board

		state_src = stop_src, None
		g_score, steps, came_from = {state_src: 0}, dict(), dict()
		steps[state_src] = t.public.Step.origin(stop_src, dts_start)
		discovered, visited, counts = {state_src: 0}, set(), Counter()
		queue = t.base.PrioQueue()
		queue.push(heuristic(stop_src), 0, state_src)

		def relax(state, state_next, step):
			g = step.dts_arr - dts_start
			if g >= g_score.get(state_next, u.inf): return
			g_score[state_next], steps[state_next], came_from[state_next] = g, step, state
			seq = discovered.setdefault(state_next, len(discovered))
			queue.push(g + heuristic(state_next[0]), seq, state_next)
			counts['relaxed'] += 1

		while queue:
			state = queue.pop()
			if state in visited: continue # stale entry with worse f-score
			stop, aboard = state
			if stop == stop_dst: break
			visited.add(state)
			if expand_hook: expand_hook(state)
			dts = steps[state].dts_arr

			for edge in adjacency.get(stop):
				state_next = edge.stop_to, (edge.direction if stay_on_board and edge.forward else None)
				if state_next in visited: continue
				if stay_on_board and edge.forward and aboard == edge.direction: dts_dep = dts
				else:
					dts_dep = schedule(edge.direction, stop, dts)
					if dts_dep is None:
						counts['unscheduled'] += 1
						continue
				step = t.public.Step( edge.stop_to, edge.direction, False,
					dts_dep, dts_dep + edge.time, self.dataset.route_ref_for_direction(edge.direction) )
				relax(state, state_next, step)

			for edge in proximity.get(stop):
				state_next = edge.stop_to, None
				if state_next in visited: continue
				step = t.public.Step( edge.stop_to,
					walking=True, dts_dep=dts, dts_arr=dts + self.walk_time(edge.distance) )
				relax(state, state_next, step)

		else:
			self.log.debug( 'No route found: {} -> {} (expanded={:,}, relaxed={:,},'
				' unscheduled={:,})', stop_src, stop_dst, len(visited),
				counts['relaxed'], counts['unscheduled'] )
			return None

		route = [state]
		while route[-1] != state_src: route.append(came_from[route[-1]])
		itinerary = t.public.Itinerary(list(steps[state] for state in reversed(route)))
		self.log.debug( 'Found route (expanded={:,}, relaxed={:,}): {}',
			len(visited), counts['relaxed'], itinerary )
		return itinerary
