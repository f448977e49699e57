import itertools as it, operator as op, functools as ft
from collections import Counter
import bisect, time

from . import utils as u, types as t, names


log = u.get_logger('sr.build')


@u.attr_struct(vals_to_attrs=True)
class BuilderConf:
	walk_radius_m = 400 # stop pairs further apart are never walk-connected
	walk_neighbors_max = 5 # nearest walk-edges to keep for each stop
	speed_kmh = dict(metro=40, tram=25, trolley=25, bus=30)
	speed_default_type = 'bus'
	name_stopwords = names.name_stopwords_default
	name_token_min = 4


def ride_time(distance_m, transport_type, conf):
	speed = conf.speed_kmh.get(transport_type) or conf.speed_kmh[conf.speed_default_type]
	return (distance_m / 1000 / speed) * 60

def build_adjacency(dataset, conf):
	'''Ride-edges for each pair of consecutive stops in every direction,
		both as-scheduled (forward) and reversed, with same time/distance.'''
	adjacency, counts = t.base.Adjacency(), Counter()
	for direction in dataset.directions:
		if len(direction) < 2:
			counts['short-directions'] += 1
			log.debug('Skipping direction with <2 stops: {}', direction)
			continue
		transport_type = dataset.transport_type_for_direction(
			direction.code, conf.speed_default_type )
		for code_a, code_b in zip(direction.stops, direction.stops[1:]):
			stop_a, stop_b = dataset.stops.get(code_a), dataset.stops.get(code_b)
			if not (stop_a and stop_b and stop_a.has_coords and stop_b.has_coords):
				counts['no-coords-hops'] += 1
				if counts['no-coords-hops'] <= 20:
					log.warning( 'Skipping direction {} hop with'
						' missing/coordless stop(s): {} -> {}', direction.code, code_a, code_b )
				continue
			distance = u.distance_m(stop_a.lat, stop_a.lon, stop_b.lat, stop_b.lon)
			dt = ride_time(distance, transport_type, conf)
			adjacency.add(t.base.RideEdge(code_a, code_b, direction.code, dt, distance, True))
			adjacency.add(t.base.RideEdge(code_b, code_a, direction.code, dt, distance, False))
	if counts:
		log.info( 'Adjacency build skipped: {}',
			', '.join('{}={:,}'.format(k, v) for k, v in sorted(counts.items())) )
	return adjacency

def build_proximity(dataset, conf):
	'''Walk-edges to up to N nearest stops within walking radius, for each stop.
		Stops are sorted by latitude to only check ones within radius-wide band.'''
	proximity = t.base.Proximity()
	stops, coordless = list(), 0
	for stop in dataset.stops:
		if stop.has_coords: stops.append(stop)
		else:
			coordless += 1
			log.debug('Skipping stop without coordinates: {}', stop)
	if coordless: log.info('Skipped stops without coordinates: {:,}', coordless)

	band = conf.walk_radius_m / 111_000 # lat degrees, with some slack (1 deg ~ 111.2km)
	lat_idx = sorted((stop.lat, n) for n, stop in enumerate(stops))
	lat_keys = list(map(op.itemgetter(0), lat_idx))
	similar = ft.lru_cache(maxsize=None)(ft.partial( names.names_similar,
		stopwords=conf.name_stopwords, token_min=conf.name_token_min ))

	for stop in stops:
		n0 = bisect.bisect_left(lat_keys, stop.lat - band)
		n1 = bisect.bisect_right(lat_keys, stop.lat + band)
		edges = list()
		for lat, n in lat_idx[n0:n1]:
			stop_b = stops[n]
			if stop_b.code == stop.code: continue
			distance = u.distance_m(stop.lat, stop.lon, stop_b.lat, stop_b.lon)
			if distance > conf.walk_radius_m: continue
			edges.append(t.base.WalkEdge(
				stop.code, stop_b.code, distance, similar(stop.name, stop_b.name) ))
		edges.sort(key=lambda e: (e.distance, e.stop_to))
		proximity.set(stop.code, edges[:conf.walk_neighbors_max])
	return proximity


def build_snapshot(dataset, conf=None, generated_at=None):
	'''Build NetworkSnapshot with adjacency (ride-edges) and proximity (walk-edges) indexes.
		Output is fully determined by dataset contents (and generated_at value).'''
	conf = conf or BuilderConf()
	if generated_at is None: generated_at = time.time()
	snapshot = t.base.NetworkSnapshot(
		build_adjacency(dataset, conf), build_proximity(dataset, conf), generated_at )
	log_snapshot_stats(snapshot)
	return snapshot

def log_snapshot_stats(snapshot, log=log):
	adjacency, proximity, generated_at = snapshot
	log.debug(
		'Network snapshot: ride-edges={:,} (stops={:,}, mean-edges={:,.1f}),'
			' walk-edges={:,} (stops={:,}, mean-edges={:,.1f}, name-similar={:,})',
		adjacency.edge_count(), len(adjacency), adjacency.stat_mean_edges(),
		proximity.edge_count(), len(proximity), proximity.stat_mean_edges(),
		sum(1 for edge in proximity.edges() if edge.similar) )
