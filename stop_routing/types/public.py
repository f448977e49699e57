### Route query results

import itertools as it, operator as op, functools as ft

from .. import utils as u


@u.attr_struct(frozen=True)
class Step:
	'''One hop of a found route, arriving at "stop".
		Ride steps have direction/route_ref set, walking steps have walking=True,
			and the first step of any route is an origin marker with neither.
		dts_dep/dts_arr are minutes since start of the service day.'''
	stop = u.attr_init()
	direction = u.attr_init(None)
	walking = u.attr_init(False)
	dts_dep = u.attr_init(0)
	dts_arr = u.attr_init(0)
	route_ref = u.attr_init(None)

	@classmethod
	def origin(cls, stop, dts): return cls(stop, dts_dep=dts, dts_arr=dts)

	@property
	def ride(self): return self.direction is not None

	def to_record(self):
		rec = dict(stop=self.stop, line=self.direction)
		if self.walking: rec['isWalking'] = True
		rec.update(departureTime=self.dts_dep, arrivalTime=self.dts_arr)
		if self.route_ref is not None: rec['routeRef'] = self.route_ref
		return rec

	@classmethod
	def from_record(cls, rec):
		return cls( rec['stop'], rec.get('line'), bool(rec.get('isWalking')),
			rec.get('departureTime', 0), rec.get('arrivalTime', 0), rec.get('routeRef') )


@u.attr_struct(repr=False)
class Itinerary:
	steps = u.attr_init(list)

	@property
	def stop_src(self): return self.steps[0].stop
	@property
	def stop_dst(self): return self.steps[-1].stop
	@property
	def dts_dep(self): return self.steps[0].dts_dep
	@property
	def dts_arr(self): return self.steps[-1].dts_arr

	def to_records(self):
		'Flat list of dicts, used as a wire-format for caching and map rendering.'
		return list(step.to_record() for step in self.steps)

	@classmethod
	def from_records(cls, records):
		return cls(list(map(Step.from_record, records)))

	def __len__(self): return len(self.steps)
	def __iter__(self): return iter(self.steps)
	def __getitem__(self, n): return self.steps[n]

	def __repr__(self):
		points = list()
		for step in self.steps:
			if step.walking: mode = 'walk'
			elif step.ride: mode = 'line={}'.format(step.route_ref or step.direction)
			else: mode = 'start'
			points.append('{}:{} [{}]'.format(mode, step.stop, u.dts_format(step.dts_arr)))
		return '<Itinerary[ {} ]>'.format(' - '.join(points))


@u.attr_struct
class Instruction:
	'Human-readable itinerary step, after merging rides and dropping no-op walks.'
	n = u.attr_init()
	kind = u.attr_init() # walk or ride
	stop_from = u.attr_init()
	stop_to = u.attr_init()
	dts_dep = u.attr_init()
	dts_arr = u.attr_init()
	route_ref = u.attr_init(None)
	transport = u.attr_init(None)
	stop_count = u.attr_init(None)
	text = u.attr_init('')

	def __str__(self): return self.text
