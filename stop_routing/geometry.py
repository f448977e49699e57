import itertools as it, operator as op, functools as ft

import requests

from . import utils as u


log = u.get_logger('sr.geometry')


class GeometryError(Exception): pass

class OSRMGeometry:
	'''Client for OSRM-compatible road routing API,
		used to get denser path geometry between two points for map rendering.'''

	base_url_default = 'https://router.project-osrm.org'

	def __init__(self, base_url=None, profile='driving', timeout=10, session=None):
		self.base_url = (base_url or self.base_url_default).rstrip('/')
		self.profile, self.timeout = profile, timeout
		self.session = session or requests.Session()

	def path(self, coords):
		'Return list of (lat, lon) tuples along the road between (lat, lon) points.'
		if len(coords) < 2: raise GeometryError('Need at least two points, got {}'.format(len(coords)))
		url = '{}/route/v1/{}/{}'.format( self.base_url, self.profile,
			';'.join('{},{}'.format(lon, lat) for lat, lon in coords) )
		try:
			res = self.session.get( url, timeout=self.timeout,
				params=dict(overview='full', geometries='geojson') )
			res.raise_for_status()
			data = res.json()
		except (requests.RequestException, ValueError) as err:
			raise GeometryError('OSRM request failed: [{}] {}'.format(err.__class__.__name__, err)) from err
		try: path = data['routes'][0]['geometry']['coordinates']
		except (KeyError, IndexError, TypeError):
			raise GeometryError('No route geometry in OSRM response (code={!r})'.format(
				data.get('code') if isinstance(data, dict) else None )) from None
		if not path: raise GeometryError('Empty route geometry in OSRM response')
		return list((lat, lon) for lon, lat in path)


def line_color(step):
	'Map color for hop, derived from direction code, spread by golden angle.'
	if step.walking: return '#FF0000'
	if not step.ride: return '#4CAF50'
	return 'hsl({:g}, 70%, 50%)'.format((step.direction * 137.5) % 360)

def route_geometry(dataset, itinerary, service=None):
	'''List of map segments, one per itinerary hop between stops with coordinates.
		Uses geometry service for ride hops, if any, with straight-line fallback.'''
	segments, errors = list(), 0
	for step_prev, step in zip(itinerary, list(itinerary)[1:]):
		stop_a, stop_b = (dataset.stops.get(s.stop) for s in [step_prev, step])
		if not (stop_a and stop_b and stop_a.has_coords and stop_b.has_coords): continue
		coords = [(stop_a.lat, stop_a.lon), (stop_b.lat, stop_b.lon)]
		if service and not step.walking and stop_a.code != stop_b.code:
			try: coords = service.path(coords)
			except GeometryError as err:
				errors += 1
				log.warning( 'Using straight line for {} -> {}'
					' segment: {}', stop_a.code, stop_b.code, err )
			except Exception as err:
				errors += 1
				log.exception( 'Geometry service failure for {} -> {}, using straight'
					' line: [{}] {}', stop_a.code, stop_b.code, err.__class__.__name__, err )
		segments.append(dict( stop_from=stop_a.code, stop_to=stop_b.code,
			walking=step.walking, line=step.direction, color=line_color(step), coords=coords ))
	if errors: log.info('Geometry service failed for {:,} / {:,} segment(s)', errors, len(segments))
	return segments
