"""
Loop Weaver — Chordless Cycle Basis.

Enumerates every induced cycle of a graph by extending vertex paths.
A path is a list whose first element is the anchor being extended and
whose last element is the seed it started from:

    seed edge (s, t) → [t, s] and [s, t]
    extend:  [x, anchor, …, seed] for every neighbour x of the anchor
    close:   anchor adjacent to seed → candidate cycle
    prune:   x adjacent to an interior path vertex, or below the seed edge
             in vertex order (each cycle is found from its lowest vertex)

Partial paths live on an explicit stack, so search depth is not bounded
by the interpreter recursion limit. Worst case is exponential; nucleotide
interaction graphs have bounded degree.
"""

from __future__ import annotations

import logging
from typing import Hashable, List, Sequence, Set

from loop_weaver.basis import CycleBasis
from loop_weaver.cycle import Cycle, cycle_from_vertices
from loop_weaver.exceptions import ChordTestError
from loop_weaver.graph import opposite_vertex, validate_graph

logger = logging.getLogger(__name__)

CHORDLESS: str = "chordless"
"""Method name recorded on bases built by this module."""


def has_chord(graph, path: Sequence[Hashable]) -> bool:
    """Whether an edge joins two non-adjacent vertices of a closed path.

    Parameters
    ----------
    graph
        Graph exposing the builder contract.
    path : Sequence
        Vertices of a closed walk; the first and last must be joined.

    Returns
    -------
    bool

    Raises
    ------
    ChordTestError
        If the path has fewer than three vertices or its ends are not
        joined by an edge.
    """
    n = len(path)
    if n < 3:
        raise ChordTestError(f"Chord test needs at least 3 vertices, got {n}")
    if graph.edge_between(path[0], path[-1]) is None:
        raise ChordTestError(f"Path ends {path[0]!r} and {path[-1]!r} are not joined")

    for i in range(n):
        for j in range(i + 2, n):
            if i == 0 and j == n - 1:
                continue
            if graph.edge_between(path[i], path[j]) is not None:
                return True
    return False


def is_chordless(graph, cycle: Cycle) -> bool:
    return not has_chord(graph, cycle.vertices)


class ChordlessCycleBasisBuilder:
    """Collects every chordless cycle of a graph."""

    def __init__(self, graph):
        validate_graph(graph)
        self.graph = graph
        self._order = {v: i for i, v in enumerate(graph.vertices())}
        self._neighbours = {
            v: [opposite_vertex(graph, e, v) for e in graph.incident_edges(v)]
            for v in graph.vertices()
        }
        self._cycles: List[Cycle] = []
        self._seen: Set[Cycle] = set()

    def build(self) -> CycleBasis:
        for edge in self.graph.edges():
            s, t = self.graph.endpoints_of(edge)
            self._search([t, s])
            self._search([s, t])
        logger.info("Chordless basis: %d cycles", len(self._cycles))
        return CycleBasis(graph=self.graph, cycles=self._cycles, method=CHORDLESS)

    def _search(self, seed_path: List[Hashable]) -> None:
        graph = self.graph
        # Each cycle is rooted at its lowest vertex: no extension may go below the seed edge.
        floor = min(self._order[seed_path[0]], self._order[seed_path[-1]])
        stack = [(seed_path, frozenset(seed_path))]
        while stack:
            path, members = stack.pop()
            anchor, seed = path[0], path[-1]
            # Once the anchor touches the seed any longer path carries a chord.
            closing = len(path) > 2 and graph.edge_between(anchor, seed) is not None

            for x in self._neighbours[anchor]:
                if x == seed:
                    if len(path) > 2:
                        self._accept(path)
                    continue
                if closing or x in members or self._order[x] < floor:
                    continue
                if any(
                    w in members and w != anchor and w != seed
                    for w in self._neighbours[x]
                ):
                    continue
                stack.append(([x] + path, members | {x}))

    def _accept(self, path: List[Hashable]) -> None:
        if has_chord(self.graph, path):
            return
        cycle = cycle_from_vertices(self.graph, path)
        # Inversions and rotations compare equal, so one membership test covers both.
        if cycle in self._seen:
            return
        self._seen.add(cycle)
        self._cycles.append(cycle)
        logger.debug("Chordless %d-cycle through %r", cycle.size(), cycle.vertices)


def chordless_cycle_basis(graph) -> CycleBasis:
    """Compute every chordless cycle of *graph*.

    Parameters
    ----------
    graph
        Graph exposing the builder contract.

    Returns
    -------
    CycleBasis
        Each induced cycle once, in discovery order.

    Raises
    ------
    InvalidGraphError
        If the graph fails validation.
    """
    return ChordlessCycleBasisBuilder(graph).build()
