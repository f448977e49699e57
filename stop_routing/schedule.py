import itertools as it, operator as op, functools as ft
from collections import defaultdict
import bisect

from . import utils as u


class ScheduleIndex:
	'''Next-departure lookup for (direction, stop) pairs,
			built once from dataset trips and their stop-times.
		Returned values are minutes since start of the first service day,
			so they never go back in time unless wrap_next_day=False is used,
			in which case the earliest departure of the same day is returned instead.'''

	day_types = None, 'weekday', 'weekend'

	def __init__(self, dataset, day_type=None, wrap_next_day=True):
		if day_type not in self.day_types:
			raise ValueError('Unknown day type: {!r}'.format(day_type))
		self.day_type, self.wrap_next_day = day_type, wrap_next_day
		self.set_idx = self._build_index(dataset, day_type)

	@staticmethod
	def _build_index(dataset, day_type):
		positions, times = dict(), defaultdict(set)
		for direction in dataset.directions:
			direction_pos = positions[direction.code] = defaultdict(list)
			for n, stop in enumerate(direction): direction_pos[stop].append(n)
		for st in dataset.stop_times:
			trip = dataset.trips.get(st.trip)
			if not trip or trip.direction not in positions: continue
			if day_type and trip.weekend != (day_type == 'weekend'): continue
			for stop, stop_pos in positions[trip.direction].items():
				for n in stop_pos:
					dts = st.times[n] if n < len(st.times) else None
					if dts is None: continue # trip doesn't serve this slot
					times[trip.direction, stop].add(dts % u.day_minutes)
		return dict((k, sorted(v)) for k, v in times.items())

	def departures(self, direction, stop):
		return tuple(self.set_idx.get((direction, stop), ()))

	def next_departure(self, direction, stop, dts_min):
		'''Earliest departure at or after dts_min for stop in direction,
			or None if no trip of that direction ever serves this stop.'''
		dts_list = self.set_idx.get((direction, stop))
		if not dts_list: return None
		if not self.wrap_next_day:
			n = bisect.bisect_left(dts_list, dts_min)
			return dts_list[n] if n < len(dts_list) else dts_list[0]
		dts_day, dts_min = divmod(dts_min, u.day_minutes)
		dts_day *= u.day_minutes
		n = bisect.bisect_left(dts_list, dts_min)
		if n < len(dts_list): return dts_day + dts_list[n]
		return dts_day + u.day_minutes + dts_list[0]

	__call__ = next_departure

	def __contains__(self, k): return k in self.set_idx
	def __len__(self): return len(self.set_idx)

	def __repr__(self):
		return '<ScheduleIndex day_type={} pairs={:,} departures={:,}>'.format(
			self.day_type or 'any', len(self), sum(map(len, self.set_idx.values())) )
