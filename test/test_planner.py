import itertools as it, operator as op, functools as ft
import unittest

from . import _common as c


class Clock:
	def __init__(self, ts=1_700_000_000.0): self.ts = ts
	def __call__(self): return self.ts


class PlannerTests(unittest.TestCase):

	def setUp(self):
		self.test_data = c.load_network('transfer')
		self.net, self.router = c.init_engine(self.test_data.dataset)
		self.clock, self.store = Clock(), c.sr.cache.MemoryStore()
		self.cache = c.sr.cache.RouteCache(self.store, clock=self.clock)
		self.favs = c.sr.favorites.Favorites(self.store, clock=self.clock)
		self.planner = c.sr.planner.RoutePlanner(
			self.router, self.cache, self.favs, clock=lambda: (590, False) )

	def test_plan(self):
		plan = self.planner.plan(1, 4, 590)
		self.assertFalse(plan.cached)
		self.assertEqual(len(plan.instructions), 3)
		self.assertEqual(plan.total_minutes, 8)
		self.assertEqual(plan.lines[1], '2. Walk from "Bravo" to "Charlie" (10:01 - 10:05)')
		self.assertEqual(list(map(op.attrgetter('stop'), plan.itinerary)), [1, 2, 3, 4])

		plan_cached = self.planner.plan(1, 4, 590)
		self.assertTrue(plan_cached.cached)
		self.assertEqual(plan_cached.itinerary, plan.itinerary)
		self.assertEqual(plan_cached.lines, plan.lines)

		recent = self.favs.recent()
		self.assertEqual(len(recent), 1)
		self.assertEqual(recent[0]['title'], 'Alpha -> Delta')
		self.assertEqual(recent[0]['routeData'], dict(start=1, end=4))

	def test_bypass_cache(self):
		self.planner.plan(1, 4, 590)
		plan = self.planner.plan(3, 4, 620)
		self.assertEqual(plan.itinerary[1].dts_dep, 640)
		plan = self.planner.plan(1, 4, 300, use_cache=False)
		self.assertFalse(plan.cached)
		self.assertEqual(plan.itinerary.dts_dep, 300)
		self.assertEqual(self.cache.get(1, 4).dts_dep, 300) # overwritten

	def test_default_time(self):
		plan = self.planner.plan(1, 4)
		self.assertEqual(plan.itinerary.dts_dep, 590)

	def test_expired_cache(self):
		self.planner.plan(1, 4, 590)
		self.clock.ts += 3601
		self.assertFalse(self.planner.plan(1, 4, 590).cached)

	def test_errors(self):
		with self.assertRaises(c.sr.engine.QueryError): self.planner.plan(1, 99, 590)
		self.assertIsNone(self.planner.plan(1, 6, 590))
		self.assertIsNone(self.cache.get(1, 6))
		self.assertEqual(self.favs.recent(), [])

	def test_no_collaborators(self):
		planner = c.sr.planner.RoutePlanner(self.router)
		self.assertEqual(planner.tz.zone, 'Europe/Sofia')
		dts, weekend = planner.now()
		self.assertTrue(0 <= dts < 1440)
		self.assertIn(weekend, [True, False])
		plan = planner.plan(2, 2, 600)
		self.assertEqual(len(plan.itinerary), 1)
		self.assertEqual((plan.instructions, plan.total_minutes), ([], 0))

	def test_swap_engine(self):
		self.planner.plan(1, 4, 590, use_cache=False)
		data = c.plain(self.test_data.dataset)
		data['stop_times'][0]['times'] = [700, 703]
		net, router = c.init_engine(data)
		self.planner.swap_engine(router)
		self.assertIs(self.planner.engine, router)
		plan = self.planner.plan(1, 4, 590, use_cache=False)
		self.assertEqual(plan.itinerary[1].dts_dep, 700)
		self.assertEqual(plan.itinerary[3].dts_dep, 1440 + 610)

	def test_broken_favorites(self):
		class BrokenFavorites:
			def add_recent(self, item): raise OSError('Storage unavailable')
		planner = c.sr.planner.RoutePlanner(self.router, favorites=BrokenFavorites())
		self.assertIsNotNone(planner.plan(1, 4, 590))


if __name__ == '__main__': unittest.main()
