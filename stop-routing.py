#!/usr/bin/env python3

import itertools as it, operator as op, functools as ft
import sys, json

import yaml, pytz

import stop_routing as sr


def main(args=None):
	conf_dataset, conf_builder = sr.dataset.DatasetConf(), sr.builder.BuilderConf()
	conf_engine, conf_planner = sr.engine.EngineConf(), sr.planner.PlannerConf()

	import argparse
	parser = argparse.ArgumentParser(
		description='Transit trip planner over stops/lines/timetables dataset.')
	parser.add_argument('dataset_dir',
		help='Path to dataset directory with stops.json,'
			' routes.json, directions.json, trips.json and stop_times.json files.')

	group = parser.add_argument_group('Network snapshot options')
	group.add_argument('-c', '--snapshot', metavar='path',
		help='Network snapshot file to load (if exists)'
				' or save (if missing) precomputed ride/walk graph from/to.'
			' Must be removed or rebuilt when dataset changes.')
	group.add_argument('--dataset-conf', metavar='yaml-data',
		help='Override values for DatasetConf as a YAML mapping. Example: {name_lang: en}')
	group.add_argument('--builder-conf', metavar='yaml-data',
		help='Override values for BuilderConf as a YAML mapping.'
			' Example: {walk_radius_m: 300, walk_neighbors_max: 3}')
	group.add_argument('--engine-conf', metavar='yaml-data',
		help='Override values for EngineConf as a YAML mapping.'
			' Example: {walk_m_per_minute: 80, stay_on_board: false}')
	group.add_argument('--planner-conf', metavar='yaml-data',
		help='Override values for PlannerConf as a YAML mapping.'
			' Example: {timezone: UTC, cache_ttl: 600}')

	group = parser.add_argument_group('Misc/debug options')
	group.add_argument('--debug', action='store_true', help='Verbose operation mode.')

	cmds = parser.add_subparsers(title='Commands', dest='call')


	cmd = cmds.add_parser('build',
		help='Build/load network snapshot, store it (with -c/--snapshot) and print stats.')


	cmd = cmds.add_parser('query',
		help='Find route between two stops and print instructions for it.')

	group = cmd.add_argument_group('Query parameters')
	group.add_argument('stop_from', type=int, help='Stop code to start route at. Example: 1')
	group.add_argument('stop_to', type=int, help='Stop code to find route to. Example: 3')
	group.add_argument('day_time', nargs='?',
		help='Day time to start route at, as HH:MM, HH:MM:SS or minutes.'
			' Default is current time in a timezone from PlannerConf.')
	group.add_argument('--weekend', dest='day_type',
		action='store_const', const='weekend', help='Only use weekend trips.')
	group.add_argument('--weekday', dest='day_type',
		action='store_const', const='weekday', help='Only use weekday trips.')
	group.add_argument('--any-day', dest='day_type', action='store_const', const='any',
		help='Use all trips, regardless of weekday/weekend tags.'
			' Default is to use day type of current day in a timezone from PlannerConf.')

	group = cmd.add_argument_group('Cache options')
	group.add_argument('--route-cache', metavar='dir',
		help='Directory to cache found routes in, and store recent routes list.')
	group.add_argument('--no-cache', action='store_true',
		help='Do not use cached route, if any, but store newly-found one.')

	group = cmd.add_argument_group('Output options')
	group.add_argument('--json', action='store_true',
		help='Print itinerary as a JSON list of step records instead of instructions.')
	group.add_argument('--geometry', action='store_true',
		help='Print map segments for the route as JSON, after instructions.')
	group.add_argument('--no-osrm', action='store_true',
		help='Only use straight lines between stops for --geometry output.')
	group.add_argument('--osrm-url', metavar='url',
		help='Base URL of OSRM-compatible routing API for --geometry.'
			' Default: {}'.format(sr.geometry.OSRMGeometry.base_url_default))


	opts = parser.parse_args(sys.argv[1:] if args is None else args)

	sr.u.logging.basicConfig(
		format='%(asctime)s :: %(name)s %(levelname)s :: %(message)s',
		datefmt='%Y-%m-%d %H:%M:%S',
		level=sr.u.logging.DEBUG if opts.debug else sr.u.logging.WARNING )

	for conf, conf_opt in [
			(conf_dataset, opts.dataset_conf), (conf_builder, opts.builder_conf),
			(conf_engine, opts.engine_conf), (conf_planner, opts.planner_conf) ]:
		if not conf_opt: continue
		try: conf_values = yaml.safe_load(conf_opt)
		except yaml.YAMLError as err: parser.error('Failed to parse YAML conf: {}'.format(err))
		if not isinstance(conf_values, dict):
			parser.error('YAML conf must be a mapping, not: {!r}'.format(conf_opt))
		sr.u.attr_conf_update(conf, conf_values, parser.error)

	if not opts.call: parser.error('Command must be specified')

	day_type = None
	if opts.call == 'query':
		planner_tz = pytz.timezone(conf_planner.timezone)
		dts_now, weekend_now = sr.u.dts_now(planner_tz)
		day_type = opts.day_type or ('weekend' if weekend_now else 'weekday')
		if day_type == 'any': day_type = None
		dts_start = sr.u.dts_parse(opts.day_time) if opts.day_time else dts_now

	try:
		net, router = sr.init_router(
			opts.dataset_dir, opts.snapshot, conf_dataset=conf_dataset,
			conf_builder=conf_builder, conf_engine=conf_engine,
			day_type=day_type, timer_func=sr.calc_timer )
	except sr.dataset.DatasetError as err:
		print('ERROR: {}'.format(err), file=sys.stderr)
		return 1

	if opts.call == 'build':
		adjacency, proximity, generated_at = router.snapshot
		print('Dataset: {}'.format(net))
		print('Ride-edges: {:,} (stops={:,}, mean-edges={:,.1f})'.format(
			adjacency.edge_count(), len(adjacency), adjacency.stat_mean_edges() ))
		print('Walk-edges: {:,} (stops={:,}, mean-edges={:,.1f})'.format(
			proximity.edge_count(), len(proximity), proximity.stat_mean_edges() ))
		print('Schedule: {}'.format(router.schedule))

	elif opts.call == 'query':
		cache = favorites = None
		if opts.route_cache:
			store = sr.cache.FileStore(opts.route_cache)
			cache = sr.cache.RouteCache(store, ttl=conf_planner.cache_ttl)
			favorites = sr.favorites.Favorites(store, recent_max=conf_planner.recent_max)
		planner = sr.planner.RoutePlanner(router, cache, favorites, conf=conf_planner)

		try: plan = planner.plan(opts.stop_from, opts.stop_to, dts_start, use_cache=not opts.no_cache)
		except sr.engine.QueryError as err: parser.error(str(err))
		if plan is None:
			print('No route found from {} to {} (departure: {})'.format(
				net.stop_name(opts.stop_from), net.stop_name(opts.stop_to), sr.u.dts_format(dts_start) ))
			return 2

		if opts.json: print(json.dumps(plan.itinerary.to_records(), indent=2, ensure_ascii=False))
		else:
			if plan.cached: print('(cached route)')
			for line in plan.lines: print(line)
			print('Total travel time: {} min'.format(plan.total_minutes))

		if opts.geometry:
			service = None
			if not opts.no_osrm: service = sr.geometry.OSRMGeometry(opts.osrm_url)
			segments = sr.geometry.route_geometry(net, plan.itinerary, service)
			print(json.dumps(segments, indent=2, ensure_ascii=False))

	else: parser.error('Action not implemented: {}'.format(opts.call))

if __name__ == '__main__': sys.exit(main())
