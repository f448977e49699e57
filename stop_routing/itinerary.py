import itertools as it, operator as op, functools as ft

from . import utils as u, types as t, names


transport_names = dict(metro='metro', tram='tram', trolley='trolleybus', bus='bus')


def ride_stop_count(dataset, direction_code, stop_from, stop_to, hops):
	'''Number of stops between two stops in the owning direction,
		or number of merged hops if either of these is not found there.'''
	direction = dataset.directions.get(direction_code)
	n0, n1 = (direction.index(s) for s in [stop_from, stop_to]) if direction else (None, None)
	if n0 is None or n1 is None: return hops
	count = abs(n1 - n0)
	if count == 0 and stop_from != stop_to: count = 1
	return count

def walk_is_noop(dataset, stop_from, stop_to, stopwords):
	if stop_from == stop_to: return True
	name_from, name_to = (
		names.normalize_name(dataset.stop_name(s), stopwords) for s in [stop_from, stop_to] )
	return bool(name_from) and name_from == name_to


def compose_instructions(dataset, itinerary, stopwords=names.name_stopwords_default):
	'''Group raw itinerary steps into list of numbered Instruction objects.
		Consecutive ride steps on the same direction get merged into one,
			and walks between same-named (or same) stops are dropped.
		Returns (instructions, total_minutes) tuple, with total
			being sum of walk durations and ride-segment spans, rounded at the end.'''
	steps, instructions, total = list(itinerary), list(), 0
	n, n_max = 1, len(steps)

	while n < n_max:
		step, stop_from = steps[n], steps[n-1].stop

		if step.walking:
			n += 1
			if walk_is_noop(dataset, stop_from, step.stop, stopwords): continue
			name_from, name_to = map(dataset.stop_name, [stop_from, step.stop])
			total += step.dts_arr - step.dts_dep
			instructions.append(t.public.Instruction(
				len(instructions) + 1, 'walk', stop_from, step.stop, step.dts_dep, step.dts_arr,
				text='Walk from "{}" to "{}" ({} - {})'.format(
					name_from, name_to, u.dts_format(step.dts_dep), u.dts_format(step.dts_arr) ) ))
			continue

		if not step.ride: # stray origin-like step, nothing to say about it
			n += 1
			continue

		n_end = n
		while n_end + 1 < n_max and steps[n_end + 1].direction == step.direction: n_end += 1
		step_end, hops = steps[n_end], n_end - n + 1
		n = n_end + 1
		total += step_end.dts_arr - step.dts_dep

		stop_count = ride_stop_count(dataset, step.direction, stop_from, step_end.stop, hops)
		if stop_count == 0 and stop_from == step_end.stop: continue
		route_ref = step.route_ref or dataset.route_ref_for_direction(step.direction)
		transport = dataset.transport_type_for_direction(step.direction)
		instructions.append(t.public.Instruction(
			len(instructions) + 1, 'ride', stop_from, step_end.stop,
			step.dts_dep, step_end.dts_arr, route_ref, transport, stop_count,
			text='Take {} {} at {} and ride {} stop{} to "{}" (arrival at {})'.format(
				transport_names.get(transport, transport), route_ref,
				u.dts_format(step.dts_dep), stop_count, 's' if stop_count != 1 else '',
				dataset.stop_name(step_end.stop), u.dts_format(step_end.dts_arr) ) ))

	for inst in instructions: inst.text = '{}. {}'.format(inst.n, inst.text)
	return instructions, u.round_half_up(total)

def compose(dataset, itinerary, **compose_kws):
	'Returns (list of instruction strings, total_minutes) for itinerary.'
	instructions, total = compose_instructions(dataset, itinerary, **compose_kws)
	return list(map(str, instructions)), total
