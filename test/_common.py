import itertools as it, operator as op, functools as ft
from collections import ChainMap, OrderedDict
from collections.abc import Mapping
from pathlib import Path
import os, sys, types, re, json

import yaml # PyYAML module is required for tests

path_test = Path(__file__).parent
path_project = path_test.parent
sys.path.insert(1, str(path_project))
import stop_routing as sr

verbose = os.environ.get('SR_DEBUG')
if verbose:
	sr.u.logging.basicConfig(
		format='%(asctime)s :: %(name)s %(levelname)s :: %(message)s',
		datefmt='%Y-%m-%d %H:%M:%S', level=sr.u.logging.DEBUG )



class dmap(ChainMap):

	def __init__(self, *maps, **map0):
		maps = list((v if not isinstance( v,
			(types.GeneratorType, list, tuple) ) else OrderedDict(v)) for v in maps)
		if map0 or not maps: maps = [map0] + maps
		super(dmap, self).__init__(*maps)

	def __repr__(self):
		return '<{} {:x} {}>'.format(
			self.__class__.__name__, id(self), repr(self._asdict()) )

	def _asdict(self):
		items = dict()
		for k, v in self.items():
			if isinstance(v, self.__class__): v = v._asdict()
			items[k] = v
		return items

	def __iter__(self):
		key_set = dict.fromkeys(set().union(*self.maps), True)
		return filter(lambda k: key_set.pop(k, False), it.chain.from_iterable(self.maps))

	def __getitem__(self, k):
		k_maps = list()
		for m in self.maps:
			if k in m:
				if isinstance(m[k], Mapping): k_maps.append(m[k])
				elif not (m[k] is None and k_maps): return m[k]
		if not k_maps: raise KeyError(k)
		return self.__class__(*k_maps)

	def __getattr__(self, k):
		try: return self[k]
		except KeyError: raise AttributeError(k)


def yaml_load(stream, dict_cls=OrderedDict, loader_cls=yaml.SafeLoader):
	if not hasattr(yaml_load, '_cls'):
		class CustomLoader(loader_cls): pass
		def construct_mapping(loader, node):
			loader.flatten_mapping(node)
			return dict_cls(loader.construct_pairs(node))
		CustomLoader.add_constructor(
			yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, construct_mapping )
		# Do not auto-resolve dates/timestamps, as PyYAML does that badly
		res_map = CustomLoader.yaml_implicit_resolvers = CustomLoader.yaml_implicit_resolvers.copy()
		res_int = list('-+0123456789')
		for c in res_int: del res_map[c]
		CustomLoader.add_implicit_resolver(
			'tag:yaml.org,2002:int',
			re.compile(r'''^(?:[-+]?0b[0-1_]+
				|[-+]?0[0-7_]+
				|[-+]?(?:0|[1-9][0-9_]*)
				|[-+]?0x[0-9a-fA-F_]+)$''', re.X), res_int )
		CustomLoader.add_implicit_resolver(
			'tag:yaml.org,2002:float',
			re.compile(r'^[-+]?(?:[0-9][0-9_]*)\.[0-9_]*$'), list('-+0123456789') )
		yaml_load._cls = CustomLoader
	return yaml.load(stream, yaml_load._cls)

def load_test_data(path_dir, path_stem, name):
	'Load test data from specified YAML file and return as dmap object.'
	with (path_dir / '{}.test.{}.yaml'.format(path_stem, name)).open(encoding='utf-8') as src:
		return dmap(yaml_load(src))

def load_network(name):
	'Load network test data from test/networks.test.<name>.yaml file.'
	return load_test_data(path_test, 'networks', name)


def plain(val):
	'Convert dmap/OrderedDict structures into plain dicts/lists, as if loaded from JSON.'
	if isinstance(val, dmap): val = val._asdict()
	if isinstance(val, Mapping): return dict((k, plain(v)) for k, v in val.items())
	if isinstance(val, (list, tuple)): return list(map(plain, val))
	return val

def dataset_from_tables(tables, conf=None):
	return sr.dataset.parse_dataset(plain(tables), conf)

def init_engine( tables, conf_builder=None, conf_engine=None,
		day_type=None, wrap_next_day=True, generated_at=0.0 ):
	'Returns (dataset, engine) tuple for dataset tables, same as init_router() but in-memory.'
	net = dataset_from_tables(tables)
	snapshot = sr.builder.build_snapshot(net, conf_builder, generated_at=generated_at)
	schedule = sr.schedule.ScheduleIndex(net, day_type=day_type, wrap_next_day=wrap_next_day)
	return net, sr.engine.RoutingEngine(net, snapshot, schedule, conf=conf_engine)

def write_dataset(path, tables):
	'Write dataset tables as JSON files into path directory.'
	path = Path(path)
	path.mkdir(parents=True, exist_ok=True)
	tables = plain(tables)
	for name in sr.dataset.table_names:
		with (path / '{}.json'.format(name)).open('w', encoding='utf-8') as dst:
			json.dump(tables.get(name, list()), dst, ensure_ascii=False)
	return path


def brute_force_arrival(engine, stop_src, stop_dst, dts_start):
	'''Earliest arrival to stop_dst over all paths from stop_src,
			using same per-edge time rules as the engine, or None if unreachable.
		Paths are enumerated depth-first, including ones passing same stop
			more than once (e.g. to get aboard some line there), and only cut short
			when same (stop, aboard-direction) was already reached at same or earlier time.
		Only usable on tiny networks.'''
	snapshot, schedule, conf = engine.snapshot, engine.schedule, engine.conf
	reached = dict()

	def walk(stop, dts, aboard):
		if dts >= reached.get((stop, aboard), sr.u.inf): return
		reached[stop, aboard] = dts
		if stop == stop_dst: return
		for edge in snapshot.adjacency.get(stop):
			if conf.stay_on_board and edge.forward and aboard == edge.direction: dts_dep = dts
			else:
				dts_dep = schedule(edge.direction, stop, dts)
				if dts_dep is None: continue
			walk( edge.stop_to, dts_dep + edge.time,
				edge.direction if conf.stay_on_board and edge.forward else None )
		for edge in snapshot.proximity.get(stop):
			walk(edge.stop_to, dts + engine.walk_time(edge.distance), None)

	walk(stop_src, dts_start, None)
	return sr.u.min((dts for (stop, aboard), dts in reached.items() if stop == stop_dst), default=None)


def ride_time(net, stop_a, stop_b, speed_kmh):
	a, b = net.stops[stop_a], net.stops[stop_b]
	return sr.u.distance_m(a.lat, a.lon, b.lat, b.lon) / 1000 / speed_kmh * 60
