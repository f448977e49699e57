import itertools as it, operator as op, functools as ft
import unittest

import requests

from . import _common as c


class FakeResponse:
	def __init__(self, data, status=200): self.data, self.status_code = data, status
	def raise_for_status(self):
		if self.status_code >= 400:
			raise requests.HTTPError('{} Error'.format(self.status_code), response=self)
	def json(self):
		if isinstance(self.data, Exception): raise self.data
		return self.data

class FakeSession:
	def __init__(self, *responses): self.responses, self.requests = list(responses), list()
	def get(self, url, **kws):
		self.requests.append((url, kws))
		res = self.responses.pop(0)
		if isinstance(res, Exception): raise res
		return res

class FailingService:
	def __init__(self, err): self.err, self.calls = err, 0
	def path(self, coords):
		self.calls += 1
		raise self.err


def osrm_data(*lon_lat):
	return dict(code='Ok', routes=[dict(geometry=dict(type='LineString', coordinates=list(lon_lat)))])


class OSRMTests(unittest.TestCase):

	def test_request(self):
		session = FakeSession(FakeResponse(osrm_data([23.3, 42.6], [23.31, 42.61], [23.32, 42.62])))
		osrm = c.sr.geometry.OSRMGeometry('http://osrm.local/', session=session, timeout=5)
		path = osrm.path([(42.6, 23.3), (42.62, 23.32)])
		self.assertEqual(path, [(42.6, 23.3), (42.61, 23.31), (42.62, 23.32)])
		(url, kws), = session.requests
		self.assertEqual(url, 'http://osrm.local/route/v1/driving/23.3,42.6;23.32,42.62')
		self.assertEqual(kws['params'], dict(overview='full', geometries='geojson'))
		self.assertEqual(kws['timeout'], 5)

	def test_errors(self):
		coords = [(42.6, 23.3), (42.62, 23.32)]
		for res in [
				requests.ConnectionError('Connection refused'),
				requests.Timeout('Read timed out'),
				FakeResponse(dict(message='Too Many Requests'), status=429),
				FakeResponse(ValueError('Expecting value')),
				FakeResponse(dict(code='NoRoute', routes=[])),
				FakeResponse(osrm_data()) ]:
			with self.subTest(res=res):
				osrm = c.sr.geometry.OSRMGeometry(session=FakeSession(res))
				with self.assertRaises(c.sr.geometry.GeometryError): osrm.path(coords)
		with self.assertRaises(c.sr.geometry.GeometryError):
			c.sr.geometry.OSRMGeometry(session=FakeSession()).path(coords[:1])


class RouteGeometryTests(unittest.TestCase):

	def setUp(self):
		test_data = c.load_network('transfer')
		self.net, router = c.init_engine(test_data.dataset)
		q = test_data.query
		self.route = router.find_route(q.src, q.dst, q.dts_start)

	def straight(self, a, b):
		a, b = self.net.stops[a], self.net.stops[b]
		return [(a.lat, a.lon), (b.lat, b.lon)]

	def test_straight_lines(self):
		segments = c.sr.geometry.route_geometry(self.net, self.route)
		self.assertEqual(list((s['stop_from'], s['stop_to']) for s in segments), [(1, 2), (2, 3), (3, 4)])
		self.assertEqual(list(map(op.itemgetter('walking'), segments)), [False, True, False])
		self.assertEqual(list(map(op.itemgetter('line'), segments)), [20, None, 30])
		self.assertEqual(segments[1]['color'], '#FF0000')
		self.assertEqual(segments[0]['color'], 'hsl(230, 70%, 50%)') # 20 * 137.5 % 360
		for seg in segments:
			self.assertEqual(seg['coords'], self.straight(seg['stop_from'], seg['stop_to']))

	def test_service(self):
		session = FakeSession(*(FakeResponse(osrm_data([23.3, 42.69], [23.31, 42.695])) for n in range(2)))
		service = c.sr.geometry.OSRMGeometry(session=session)
		segments = c.sr.geometry.route_geometry(self.net, self.route, service)
		self.assertEqual(len(session.requests), 2) # walking segment is not requested
		self.assertEqual(segments[0]['coords'], [(42.69, 23.3), (42.695, 23.31)])
		self.assertEqual(segments[1]['coords'], self.straight(2, 3))

	def test_service_failure(self):
		for err in [c.sr.geometry.GeometryError('No route'), RuntimeError('Unexpected')]:
			with self.subTest(err=err):
				service = FailingService(err)
				segments = c.sr.geometry.route_geometry(self.net, self.route, service)
				self.assertEqual(service.calls, 2)
				for seg in segments:
					self.assertEqual(seg['coords'], self.straight(seg['stop_from'], seg['stop_to']))

	def test_coordless_stops(self):
		Step = c.sr.t.public.Step
		route = c.sr.t.public.Itinerary([
			Step.origin(8, 600), Step(1, walking=True, dts_dep=600, dts_arr=610), Step(2, 20, False, 610, 612) ])
		segments = c.sr.geometry.route_geometry(self.net, route)
		self.assertEqual(list((s['stop_from'], s['stop_to']) for s in segments), [(1, 2)])


if __name__ == '__main__': unittest.main()
