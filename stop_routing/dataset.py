import itertools as it, operator as op, functools as ft
from collections import Counter
from pathlib import Path
import json

from . import utils as u, types as t


log = u.get_logger('sr.dataset')


@u.attr_struct(vals_to_attrs=True)
class DatasetConf:
	name_lang = 'bg' # key in stop "names" mapping to use for display names
	log_errors_max = 20 # per-table limit on individually-logged data errors


class DatasetError(Exception): pass

table_names = 'stops', 'routes', 'directions', 'trips', 'stop_times'


def _int(v, k):
	if isinstance(v, bool) or not isinstance(v, (int, float)) or int(v) != v:
		raise t.input.DataRowError('Non-integer value for {!r}: {!r}'.format(k, v))
	return int(v)

def _opt_minutes(v):
	if v is None: return None
	if isinstance(v, bool) or not isinstance(v, (int, float)):
		raise t.input.DataRowError('Bad stop-time value: {!r}'.format(v))
	return v

def parse_stop(row, conf, n=None):
	code = _int(row['code'], 'code')
	names = row.get('names') or dict()
	if not isinstance(names, dict): raise t.input.DataRowError('Bad names: {!r}'.format(names))
	name = names.get(conf.name_lang) or row.get('name')\
		or next(iter(names.values()), None) or 'Stop {}'.format(code)
	lat = lon = None
	coords = row.get('coords')
	if coords:
		if len(coords) != 2: raise t.input.DataRowError('Bad coords: {!r}'.format(coords))
		if not any(v is None for v in coords): lat, lon = (float(v) for v in coords)
	lines = tuple(_int(v, 'lines') for v in (row.get('lines') or list()))
	return t.input.Stop(code, str(name), lat, lon, lines)

def parse_route(row, conf, n=None):
	route_type = str(row.get('type') or 'bus').strip().lower()
	route_type = t.input.transport_aliases.get(route_type, route_type)
	return t.input.Route(_int(row['route_index'], 'route_index'), str(row['route_ref']), route_type)

def parse_direction(row, conf, n=None):
	stops = row['stops']
	if not isinstance(stops, list): raise t.input.DataRowError('Bad stops list: {!r}'.format(stops))
	return t.input.Direction(_int(row['code'], 'code'), tuple(_int(v, 'stops') for v in stops))

def parse_trip(row, conf, n=None):
	trip_id = _int(row['id'], 'id') if row.get('id') is not None else n
	return t.input.Trip( trip_id, _int(row['route_index'], 'route_index'),
		_int(row['direction'], 'direction'), bool(row.get('weekend', False)) )

def parse_stop_time(row, conf, n=None):
	times = row['times']
	if not isinstance(times, list): raise t.input.DataRowError('Bad times list: {!r}'.format(times))
	return t.input.StopTime(_int(row['trip'], 'trip'), tuple(map(_opt_minutes, times)))


def iter_table_records(name, rows, parse_func, conf, errors):
	'Yield parsed records from table rows, logging and skipping invalid ones.'
	if not isinstance(rows, list):
		raise DatasetError('Table {!r} must be a list of objects, not {}'.format(name, type(rows).__name__))
	for n, row in enumerate(rows):
		try:
			if not isinstance(row, dict): raise t.input.DataRowError('Not an object')
			rec = parse_func(row, conf, n)
		except (t.input.DataRowError, KeyError, TypeError, ValueError) as err:
			errors[name] += 1
			if errors[name] <= conf.log_errors_max:
				log.warning( 'Skipping invalid {} row #{}: [{}] {}',
					name, n, err.__class__.__name__, err )
			continue
		yield rec

def parse_dataset(tables, conf=None):
	'''Build Dataset from mapping of table name to list of row objects.
		Invalid or dangling rows are skipped, and never fail the whole thing.'''
	conf = conf or DatasetConf()
	errors, skipped = Counter(), Counter()
	records = dict(
		stops=t.input.Records('code'), routes=t.input.Records('route_index'),
		directions=t.input.Records('code'), trips=t.input.Records('id') )
	parsers = dict( stops=parse_stop, routes=parse_route,
		directions=parse_direction, trips=parse_trip, stop_times=parse_stop_time )

	for name in ['stops', 'routes', 'directions']:
		for rec in iter_table_records(name, tables.get(name) or list(), parsers[name], conf, errors):
			if not records[name].add(rec):
				skipped['{}-duplicate'.format(name)] += 1
				log.debug('Skipping duplicate {} entry: {}', name, rec)

	for trip in iter_table_records('trips', tables.get('trips') or list(), parse_trip, conf, errors):
		if trip.route_index not in records['routes'] or trip.direction not in records['directions']:
			skipped['trips-dangling'] += 1
			log.debug('Skipping trip with unknown route/direction: {}', trip)
			continue
		if not records['trips'].add(trip): skipped['trips-duplicate'] += 1

	stop_times = list()
	for st in iter_table_records(
			'stop_times', tables.get('stop_times') or list(), parse_stop_time, conf, errors ):
		if st.trip not in records['trips']:
			skipped['stop_times-dangling'] += 1
			continue
		stop_times.append(st)

	if errors or skipped:
		log.info( 'Dataset issues - invalid rows: {}, skipped: {}',
			', '.join('{}={:,}'.format(k, v) for k, v in sorted(errors.items())) or 'none',
			', '.join('{}={:,}'.format(k, v) for k, v in sorted(skipped.items())) or 'none' )

	dataset = t.input.Dataset( records['stops'],
		records['routes'], records['directions'], records['trips'], stop_times )
	log.debug('Parsed dataset: {}', dataset)
	return dataset


def load_dataset(path, conf=None):
	'''Load Dataset from a directory with JSON table files.
		Raises DatasetError if directory or any of the files can't be read.'''
	path = Path(path)
	if not path.is_dir(): raise DatasetError('Dataset directory not found: {}'.format(path))
	tables = dict()
	for name in table_names:
		p = path / '{}.json'.format(name)
		log.debug('Processing dataset file: {}', p.name)
		try:
			with p.open(encoding='utf-8-sig') as src: tables[name] = json.load(src)
		except (OSError, ValueError) as err:
			raise DatasetError( 'Failed to read dataset'
				' file {}: [{}] {}'.format(p, err.__class__.__name__, err) ) from err
	return parse_dataset(tables, conf)
