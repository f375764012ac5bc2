"""
Loop Weaver — Cycle Entity and Algebra.

A :class:`Cycle` is one simple closed walk of an interaction graph,
stored as an ordered edge list from which the vertex list is derived:

    vertex[i] = the single vertex shared by edge[i − 1] and edge[i]

so ``edge[i]`` joins ``vertex[i]`` and ``vertex[i + 1]`` and the last
edge closes the walk back to ``vertex[0]``.

Cycles are immutable values. Equality and hashing ignore rotation and
orientation, so a cycle, any re-anchoring of it and its inversion all
compare equal and collapse to one entry in a set.
"""

from __future__ import annotations

import math
from collections import Counter
from typing import Dict, FrozenSet, Hashable, Iterable, List, Optional, Sequence, Tuple

from loop_weaver.exceptions import (
    CycleConstructionError,
    CycleRotationError,
    CycleSubListError,
    InvalidGraphError,
)
from loop_weaver.graph import opposite_vertex

MIN_CYCLE_EDGES: int = 3
"""Smallest closed walk in a simple graph."""


def _shared_vertex(graph, a: Hashable, b: Hashable) -> Hashable:
    """The single vertex common to edges *a* and *b*."""
    try:
        common = set(graph.endpoints_of(a)) & set(graph.endpoints_of(b))
    except InvalidGraphError as exc:
        raise CycleConstructionError(str(exc)) from exc
    if len(common) != 1:
        raise CycleConstructionError(
            f"Consecutive edges {a!r} and {b!r} share {len(common)} vertices, expected 1"
        )
    return common.pop()


class Cycle:
    """A simple closed walk in a graph.

    Parameters
    ----------
    graph
        Graph the edges belong to.
    start, end : Hashable
        Declared start and end vertices; both must lie on the walk.
    edges : Sequence
        Ordered edges of the walk, at least three.
    weight : float, optional
        Cycle weight. Defaults to the sum of the edge weights.

    Raises
    ------
    CycleConstructionError
        If fewer than three edges are given, two consecutive edges do not
        share exactly one vertex, the walk revisits a vertex, or the start
        or end vertex is not on it.
    """

    def __init__(
        self,
        graph,
        start: Hashable,
        end: Hashable,
        edges: Sequence[Hashable],
        weight: Optional[float] = None,
    ):
        edges = tuple(edges)
        if len(edges) < MIN_CYCLE_EDGES:
            raise CycleConstructionError(
                f"A cycle needs at least {MIN_CYCLE_EDGES} edges, got {len(edges)}"
            )

        vertices = tuple(_shared_vertex(graph, edges[i - 1], edges[i]) for i in range(len(edges)))
        positions = {v: i for i, v in enumerate(vertices)}
        if len(positions) != len(vertices):
            raise CycleConstructionError(f"Edges {list(edges)!r} revisit a vertex")
        for label, v in (("start", start), ("end", end)):
            if v not in positions:
                raise CycleConstructionError(f"{label} vertex {v!r} is not on the cycle")

        if weight is None:
            weight = math.fsum(graph.weight_of(e) for e in edges)

        self._graph = graph
        self._start = start
        self._end = end
        self._edges: Tuple[Hashable, ...] = edges
        self._vertices: Tuple[Hashable, ...] = vertices
        self._weight = float(weight)
        self._positions: Dict[Hashable, int] = positions
        self._edge_positions: Dict[Hashable, int] = {e: i for i, e in enumerate(edges)}
        self._vertex_set: FrozenSet[Hashable] = frozenset(vertices)
        self._edge_counts = Counter(edges)

    # ── accessors ──

    @property
    def graph(self):
        return self._graph

    @property
    def start(self) -> Hashable:
        return self._start

    @property
    def end(self) -> Hashable:
        return self._end

    @property
    def edges(self) -> Tuple[Hashable, ...]:
        return self._edges

    @property
    def vertices(self) -> Tuple[Hashable, ...]:
        return self._vertices

    @property
    def weight(self) -> float:
        return self._weight

    @property
    def vertex_set(self) -> FrozenSet[Hashable]:
        return self._vertex_set

    @property
    def first_vertex(self) -> Hashable:
        return self._vertices[0]

    @property
    def last_vertex(self) -> Hashable:
        return self._vertices[-1]

    def size(self) -> int:
        """Number of edges, equal to the number of vertices."""
        return len(self._edges)

    def __len__(self) -> int:
        return len(self._edges)

    # ── membership and neighbourhood ──

    def contains_vertex(self, v: Hashable) -> bool:
        return v in self._positions

    def contains_edge(self, e: Hashable) -> bool:
        return e in self._edge_positions

    def position_of(self, v: Hashable) -> Optional[int]:
        return self._positions.get(v)

    def incoming_edge(self, v: Hashable) -> Optional[Hashable]:
        """Edge entering *v* in traversal order; wraps to the last edge."""
        i = self._positions.get(v)
        if i is None:
            return None
        return self._edges[i - 1]

    def outgoing_edge(self, v: Hashable) -> Optional[Hashable]:
        """Edge leaving *v* in traversal order."""
        i = self._positions.get(v)
        if i is None:
            return None
        return self._edges[i]

    def next_vertex(self, v: Hashable) -> Optional[Hashable]:
        i = self._positions.get(v)
        if i is None:
            return None
        return self._vertices[(i + 1) % len(self._vertices)]

    def previous_vertex(self, v: Hashable) -> Optional[Hashable]:
        i = self._positions.get(v)
        if i is None:
            return None
        return self._vertices[i - 1]

    # ── transforms ──

    def invert(self) -> "Cycle":
        """Same cycle traversed the other way, start and end swapped.

        The closing edge stays last; the derived vertex list comes out
        reversed.
        """
        edges = self._edges[-2::-1] + (self._edges[-1],)
        return Cycle(self._graph, self._end, self._start, edges, weight=self._weight)

    def rotate(self, new_start: Hashable, new_end: Hashable) -> "Cycle":
        """Re-anchor the cycle to run from *new_start* round to *new_end*.

        The two vertices must be cyclically adjacent; the closing edge of
        the result joins them.

        Parameters
        ----------
        new_start, new_end : Hashable
            Adjacent vertices of this cycle.

        Returns
        -------
        Cycle
            A cycle equal to this one whose vertex list begins at
            *new_start* and ends at *new_end*.

        Raises
        ------
        CycleRotationError
            If the vertices are equal, absent or not adjacent.
        """
        if new_start == new_end:
            raise CycleRotationError(f"Rotation start and end are both {new_start!r}")
        i = self._positions.get(new_start)
        j = self._positions.get(new_end)
        if i is None or j is None:
            missing = new_start if i is None else new_end
            raise CycleRotationError(f"Vertex {missing!r} is not on the cycle")

        n = len(self._edges)
        if j == (i - 1) % n:
            if (new_start, new_end) == (self._start, self._end) and i == 0:
                return self
            # Run from new_start to the old last vertex, wrap edge included,
            # then the run from the old first vertex up to new_end.
            edges = self._edges[i:] + self._edges[:i]
        elif j == (i + 1) % n:
            if (new_start, new_end) == (self._end, self._start) and i == n - 1:
                return self.invert()
            edges = tuple(self._edges[(i - 1 - k) % n] for k in range(n))
        else:
            raise CycleRotationError(
                f"Vertices {new_start!r} and {new_end!r} are not adjacent on the cycle"
            )
        return Cycle(self._graph, new_start, new_end, edges, weight=self._weight)

    def edge_sublist(self, start_v: Hashable, end_v: Hashable) -> List[Hashable]:
        """Contiguous edges walking forward from *start_v* through *end_v*.

        The run starts with the edge leaving *start_v* and ends with the
        edge leaving *end_v*, wrapping round the cycle when needed.

        Raises
        ------
        CycleSubListError
            If the vertices are equal or not on the cycle.
        """
        if start_v == end_v:
            raise CycleSubListError(f"Sub-list start and end are both {start_v!r}")
        i = self._positions.get(start_v)
        j = self._positions.get(end_v)
        if i is None or j is None:
            missing = start_v if i is None else end_v
            raise CycleSubListError(f"Vertex {missing!r} is not on the cycle")
        n = len(self._edges)
        length = (j - i) % n + 1
        return [self._edges[(i + k) % n] for k in range(length)]

    # ── identity ──

    def __eq__(self, other) -> bool:
        if not isinstance(other, Cycle):
            return NotImplemented
        if (
            len(self._edges) != len(other._edges)
            or self._weight != other._weight
            or self._vertex_set != other._vertex_set
        ):
            return False
        return (
            other._start in self._vertex_set
            and other._end in self._vertex_set
            and self._edge_counts == other._edge_counts
        )

    def __hash__(self) -> int:
        return hash(self._vertex_set)

    def __repr__(self) -> str:
        return (
            f"Cycle(start={self._start!r}, end={self._end!r}, "
            f"vertices={list(self._vertices)!r}, weight={self._weight:g})"
        )


# ═══════════════════════════════════════════════════════════════════════
# Alternative constructors
# ═══════════════════════════════════════════════════════════════════════


def cycle_from_vertices(
    graph,
    vertices: Sequence[Hashable],
    weight: Optional[float] = None,
) -> Cycle:
    """Build a cycle from an ordered vertex sequence.

    Start is the first vertex, end the last; the closing edge joins them.

    Raises
    ------
    CycleConstructionError
        If two consecutive vertices (cyclically) are not joined by an edge.
    """
    vertices = list(vertices)
    if len(vertices) < MIN_CYCLE_EDGES:
        raise CycleConstructionError(
            f"A cycle needs at least {MIN_CYCLE_EDGES} vertices, got {len(vertices)}"
        )
    edges = []
    for k, u in enumerate(vertices):
        v = vertices[(k + 1) % len(vertices)]
        edge = graph.edge_between(u, v)
        if edge is None:
            raise CycleConstructionError(f"No edge between {u!r} and {v!r}")
        edges.append(edge)
    return Cycle(graph, vertices[0], vertices[-1], edges, weight=weight)


def cycle_from_edges(
    graph,
    edges: Iterable[Hashable],
    weight: Optional[float] = None,
) -> Cycle:
    """Order an unordered collection of edges into one closed walk.

    The walk begins with the first edge given, leaving the endpoint that
    :meth:`endpoints_of` lists second.

    Raises
    ------
    CycleConstructionError
        If an edge repeats, a vertex is touched by other than two edges,
        or the edges form more than one closed walk.
    """
    edges = list(edges)
    if len(set(edges)) != len(edges):
        raise CycleConstructionError("Edge collection contains a repeated edge")
    if len(edges) < MIN_CYCLE_EDGES:
        raise CycleConstructionError(
            f"A cycle needs at least {MIN_CYCLE_EDGES} edges, got {len(edges)}"
        )

    touching: Dict[Hashable, List[Hashable]] = {}
    for e in edges:
        try:
            ends = graph.endpoints_of(e)
        except InvalidGraphError as exc:
            raise CycleConstructionError(str(exc)) from exc
        for v in ends:
            touching.setdefault(v, []).append(e)
    for v, es in touching.items():
        if len(es) != 2:
            raise CycleConstructionError(f"Vertex {v!r} is touched by {len(es)} edges, expected 2")

    first = edges[0]
    start, current = graph.endpoints_of(first)
    ordered = [first]
    edge = first
    while current != start:
        a, b = touching[current]
        edge = b if a == edge else a
        ordered.append(edge)
        current = opposite_vertex(graph, edge, current)

    if len(ordered) != len(edges):
        raise CycleConstructionError(
            f"Edges form more than one closed walk ({len(ordered)} of {len(edges)} reached)"
        )
    end = opposite_vertex(graph, ordered[-1], start)
    return Cycle(graph, start, end, ordered, weight=weight)
