import itertools as it, operator as op, functools as ft
from pathlib import Path
import time

from . import dataset, builder, schedule, engine, itinerary, cache,\
	favorites, geometry, planner, names, utils as u, types as t


def calc_timer(func, *args, log=u.get_logger('sr.timer'), timer_name=None, **kws):
	if not timer_name:
		func_base = func if not isinstance(func, ft.partial) else func.func
		timer_name = '.'.join([func_base.__module__.strip('__'), func_base.__qualname__])
	log.debug('[{}] Starting...', timer_name)
	td = time.monotonic()
	data = func(*args, **kws)
	td = time.monotonic() - td
	log.debug('[{}] Finished in: {:.1f}s', timer_name, td)
	return data


def load_snapshot(path, timer_func=None):
	snapshot_load = t.base.NetworkSnapshot.load
	if timer_func: snapshot_load = ft.partial(timer_func, snapshot_load, timer_name='snapshot_load')
	with open(str(path), 'rb') as src: return snapshot_load(src)

def init_router(
		dataset_path, snapshot_path=None, conf_dataset=None, conf_builder=None,
		conf_engine=None, day_type=None, wrap_next_day=True,
		timer_func=None, log=u.get_logger('sr.init') ):
	'''Load dataset, load or build network snapshot and return (dataset, engine) tuple.
		Snapshot is built and stored to snapshot_path (if specified) when it's missing or unusable.
		Raises dataset.DatasetError if dataset can't be loaded.'''
	dataset_func, snapshot_func, schedule_func = dataset.load_dataset,\
		builder.build_snapshot, schedule.ScheduleIndex
	if timer_func:
		dataset_func, snapshot_func, schedule_func = ( ft.partial(timer_func, func)
			for func in [dataset_func, snapshot_func, schedule_func] )

	net = dataset_func(dataset_path, conf_dataset)

	snapshot = None
	if snapshot_path: snapshot_path = Path(snapshot_path)
	if snapshot_path and snapshot_path.exists():
		try: snapshot = load_snapshot(snapshot_path, timer_func)
		except t.base.SnapshotFormatError as err:
			log.warning('Unusable snapshot file {}, rebuilding it: {}', snapshot_path, err)
		else: builder.log_snapshot_stats(snapshot, log)
	if snapshot is None:
		snapshot = snapshot_func(net, conf_builder)
		if snapshot_path:
			snapshot_dump = snapshot.dump
			if timer_func: snapshot_dump = ft.partial(timer_func, snapshot_dump, timer_name='snapshot_dump')
			with u.safe_replacement(snapshot_path, 'wb') as dst: snapshot_dump(dst)

	schedule_index = schedule_func(net, day_type=day_type, wrap_next_day=wrap_next_day)
	router = engine.RoutingEngine(net, snapshot, schedule_index, conf=conf_engine, timer_func=timer_func)
	return net, router
