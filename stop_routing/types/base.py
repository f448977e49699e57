### Derived network graph: ride/walk edges, their indexes and snapshot

import itertools as it, operator as op, functools as ft
import struct, heapq

from .. import utils as u


struct_dump_header_fmt = '>I'

def struct_dumps(chunk_fmt, chunks, chunk_count=None):
	header_t = struct.Struct(struct_dump_header_fmt)
	if chunk_count is None: chunk_count = len(chunks)
	chunk_t = struct.Struct(chunk_fmt)
	buff_len = header_t.size + chunk_t.size * chunk_count
	buff = bytearray(buff_len)
	header_t.pack_into(buff, 0, chunk_count)
	n = -1
	for n, (buff_n, chunk) in enumerate(zip(
			range(header_t.size, buff_len, chunk_t.size), chunks )):
		chunk_t.pack_into(buff, buff_n, *chunk)
	assert n == chunk_count-1, [n, chunk_count]
	return buff

def struct_load_iter(chunk_fmt, stream):
	header_t = struct.Struct(struct_dump_header_fmt)
	header = stream.read(header_t.size)
	if len(header) != header_t.size: raise SnapshotFormatError('Truncated block header')
	chunk_count, = header_t.unpack(header)
	chunk_t = struct.Struct(chunk_fmt)
	chunk_buff_len = chunk_t.size * chunk_count
	chunk_buff = stream.read(chunk_buff_len)
	if len(chunk_buff) != chunk_buff_len: raise SnapshotFormatError('Truncated block data')
	for buff_n in range(0, chunk_buff_len, chunk_t.size):
		yield chunk_t.unpack_from(chunk_buff, buff_n)


class SnapshotFormatError(Exception): pass


@u.attr_struct(frozen=True)
class RideEdge:
	'''Scheduled-ride hop between two consecutive stops of a direction.
		forward=False for the constructed reverse (child -> parent) entry.'''
	stop_from = u.attr_init()
	stop_to = u.attr_init()
	direction = u.attr_init()
	time = u.attr_init() # minutes
	distance = u.attr_init() # meters
	forward = u.attr_init(True)

	_dump_fmt = '>IIIdd?'
	def astuple(self): return u.attr.astuple(self, recurse=False)

@u.attr_struct(frozen=True)
class WalkEdge:
	stop_from = u.attr_init()
	stop_to = u.attr_init()
	distance = u.attr_init() # meters
	similar = u.attr_init(False) # normalized display names overlap

	_dump_fmt = '>IId?'
	def astuple(self): return u.attr.astuple(self, recurse=False)


class EdgeIndex:
	'Insertion-ordered mapping of stop code -> ordered list of edges from it.'

	edge_cls = None

	def __init__(self): self.set_idx = dict()

	def add_stop(self, stop): return self.set_idx.setdefault(stop, list())

	def get(self, stop):
		return tuple(self.set_idx.get(stop, ()))

	def edges(self):
		for stop, edges in self.set_idx.items(): yield from edges

	def stat_mean_edges(self):
		return (self.edge_count() / len(self)) if self.set_idx else 0
	def edge_count(self): return sum(map(len, self.set_idx.values()))

	def dump(self, stream):
		stream.write(struct_dumps('>I', ((stop,) for stop in self.set_idx), len(self.set_idx)))
		stream.write(struct_dumps( self.edge_cls._dump_fmt,
			(edge.astuple() for edge in self.edges()), self.edge_count() ))

	@classmethod
	def load(cls, stream):
		self = cls()
		for stop, in struct_load_iter('>I', stream): self.add_stop(stop)
		for edge_tuple in struct_load_iter(cls.edge_cls._dump_fmt, stream):
			edge = cls.edge_cls(*edge_tuple)
			self.add_stop(edge.stop_from).append(edge)
		return self

	def __eq__(self, index):
		return ( type(self) is type(index)
			and list(self.set_idx.items()) == list(index.set_idx.items()) )
	__hash__ = None

	def __contains__(self, stop): return stop in self.set_idx
	def __getitem__(self, stop): return self.get(stop)
	def __len__(self): return len(self.set_idx)
	def __iter__(self): return iter(self.set_idx)


class Adjacency(EdgeIndex):

	edge_cls = RideEdge

	def add(self, edge):
		'Add RideEdge, unless same stop -> stop hop on the same direction is already there.'
		edges = self.add_stop(edge.stop_from)
		for chk in edges:
			if (chk.stop_to, chk.direction, chk.forward) == (edge.stop_to, edge.direction, edge.forward):
				return False
		edges.append(edge)
		return True


class Proximity(EdgeIndex):

	edge_cls = WalkEdge

	def set(self, stop, edges):
		self.set_idx[stop] = sorted(edges, key=lambda e: (e.distance, e.stop_to))

	def connected(self, stop_a, stop_b):
		'Whether stop_b is among walking-distance neighbors of stop_a.'
		return any(edge.stop_to == stop_b for edge in self.set_idx.get(stop_a, ()))


@u.attr_struct(frozen=True)
class NetworkSnapshot:
	'''Precomputed searchable network - adjacency index of ride-edges
			and proximity index of walk-edges, never modified after it was built.
		Rebuilding always produces a new object, which replaces old one as a whole.'''
	adjacency = u.attr_init(Adjacency)
	proximity = u.attr_init(Proximity)
	generated_at = u.attr_init(0.0)

	_dump_magic, _dump_version = b'SRNS', 1
	_dump_header_fmt = '>4sHd'

	def dump(self, stream):
		stream.write(struct.pack(
			self._dump_header_fmt, self._dump_magic, self._dump_version, self.generated_at ))
		self.adjacency.dump(stream)
		self.proximity.dump(stream)

	@classmethod
	def load(cls, stream):
		header_t = struct.Struct(cls._dump_header_fmt)
		header = stream.read(header_t.size)
		if len(header) != header_t.size:
			raise SnapshotFormatError('Snapshot header is truncated')
		magic, version, generated_at = header_t.unpack(header)
		if magic != cls._dump_magic or version != cls._dump_version:
			raise SnapshotFormatError(
				'Unrecognized snapshot format: {!r} v{}'.format(magic, version) )
		return cls(Adjacency.load(stream), Proximity.load(stream), generated_at)

	def __iter__(self): return iter(u.attr.astuple(self, recurse=False))


@u.attr_struct(eq=False)
class PrioItem:
	prio = u.attr_init()
	value = u.attr_init()
	def __lt__(self, item): return self.prio < item.prio

class PrioQueue:
	'''Binary-heap priority queue, where items with equal priority
		value are popped in order of the seq value passed with them.'''
	def __init__(self): self.items = list()
	def __len__(self): return len(self.items)
	def push(self, prio, seq, value): heapq.heappush(self.items, PrioItem((prio, seq), value))
	def pop(self): return heapq.heappop(self.items).value
