import itertools as it, operator as op, functools as ft
import os, logging, math, datetime
import contextlib, tempfile, stat

import attr


class LogMessage:
	def __init__(self, fmt, a, k): self.fmt, self.a, self.k = fmt, a, k
	def __str__(self): return self.fmt.format(*self.a, **self.k) if self.a or self.k else self.fmt

class LogStyleAdapter(logging.LoggerAdapter):
	def __init__(self, logger, extra=None):
		super(LogStyleAdapter, self).__init__(logger, extra or {})
	def log(self, level, msg, *args, **kws):
		if not self.isEnabledFor(level): return
		log_kws = {} if 'exc_info' not in kws else dict(exc_info=kws.pop('exc_info'))
		msg, kws = self.process(msg, kws)
		self.logger._log(level, LogMessage(msg, args, kws), (), log_kws)

get_logger = lambda name: LogStyleAdapter(logging.getLogger(name))


def attr_struct(cls=None, vals_to_attrs=False, defaults=..., **kws):
	'''Turns class into attrs struct, with fields either listed
			in "keys" string/list attribute or (with vals_to_attrs=True)
			taken from all non-callable class-level values as defaults.
		Mutable defaults (dict/list/set) get copied for each instance.'''
	if not cls:
		return ft.partial( attr_struct,
			vals_to_attrs=vals_to_attrs, defaults=defaults, **kws )
	try:
		keys = cls.keys
		del cls.keys
	except AttributeError: keys = list()
	else:
		attr_kws = dict()
		if defaults is not ...: attr_kws['default'] = defaults
		if isinstance(keys, str): keys = keys.split()
		for k in keys: setattr(cls, k, attr.ib(**attr_kws))
	if vals_to_attrs:
		for k, v in list(vars(cls).items()):
			if k.startswith('_') or k in keys or callable(v): continue
			if isinstance(v, (dict, list, set)): v = attr.Factory(ft.partial(type(v), v))
			setattr(cls, k, attr.ib(default=v))
	kws.setdefault('slots', True)
	return attr.s(cls, **kws)

def attr_init(factory_or_default=attr.NOTHING, **attr_kws):
	if callable(factory_or_default): factory_or_default = attr.Factory(factory_or_default)
	return attr.ib(default=factory_or_default, **attr_kws)

def attr_conf_update(conf, values, error_func=None):
	'Update attrs conf object from a mapping, reporting unknown keys via error_func.'
	fields = set(f.name for f in attr.fields(conf.__class__))
	for k, v in (values or dict()).items():
		if k not in fields:
			msg = 'Unrecognized {} option: {!r} (value: {!r})'.format(conf.__class__.__name__, k, v)
			if not error_func: raise KeyError(msg)
			error_func(msg)
		setattr(conf, k, v)
	return conf


inf = float('inf')

def min(iterable, default=..., _min=min, **kws):
	try: return _min(iterable, **kws)
	except ValueError:
		if default is ...: raise
		return default

def round_half_up(v):
	return int(math.floor(v + 0.5))


@contextlib.contextmanager
def safe_replacement(path, *open_args, mode=None, **open_kws):
	path = str(path)
	if mode is None:
		try: mode = stat.S_IMODE(os.lstat(path).st_mode)
		except OSError: pass
	open_kws.update( delete=False,
		dir=os.path.dirname(path) or '.', prefix=os.path.basename(path)+'.' )
	if not open_args: open_kws['mode'] = 'w'
	with tempfile.NamedTemporaryFile(*open_args, **open_kws) as tmp:
		try:
			if mode is not None: os.fchmod(tmp.fileno(), mode)
			yield tmp
			if not tmp.closed: tmp.flush()
			os.rename(tmp.name, path)
		finally:
			try: os.unlink(tmp.name)
			except OSError: pass


def distance_m(lat1, lon1, lat2, lon2, math=math):
	'Great-circle distance in meters between two lat/lon points (Haversine Formula).'
	phi1, phi2 = math.radians(lat1), math.radians(lat2)
	d_phi, d_lambda = math.radians(lat2 - lat1), math.radians(lon2 - lon1)
	a = math.sin(d_phi/2)**2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda/2)**2
	return 6371e3 * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


day_minutes = 24 * 60

def dts_parse(dts_str):
	'Parse HH:MM string (or plain number) into minutes since start of the service day.'
	dts_str = str(dts_str).strip()
	if ':' not in dts_str: return float(dts_str)
	dts_vals = dts_str.split(':')
	assert len(dts_vals) in [2, 3], dts_vals
	return sum(int(n)*k for k, n in zip([60, 1, 1/60], dts_vals))

def dts_format(dts):
	'Format minutes since start of the service day as HH:MM, prefixed by "N+" for next days.'
	if dts is None: return ''
	dts_days, dts = divmod(int(dts), day_minutes)
	dts = '{:02d}:{:02d}'.format(dts // 60, dts % 60)
	if dts_days: dts = '{}+{}'.format(dts_days, dts)
	return dts

def dts_now(tz=None):
	'Return (minute-of-day, is_weekend) tuple for current time in a specified pytz timezone.'
	dt = datetime.datetime.now(tz)
	return dt.hour * 60 + dt.minute, dt.weekday() >= 5
