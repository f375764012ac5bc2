"""
Loop Weaver — Fundamental Cycle Basis.

Pipeline:
    graph
        → spanning forest (Prim, edge weights, encounter-order ties)
        → non-tree edges, in graph edge order
        → per edge: split an already-known cycle through both endpoints,
          or close the tree path between them into a new cycle
        → deduplicated union of the incidence index

Each non-tree edge adds exactly one cycle (a fresh one, or a split that
turns one cycle into two), so the basis has |E| − |V| + c cycles.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Hashable, List, Tuple

import numpy as np
from numpy.typing import NDArray
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import breadth_first_order

from loop_weaver.basis import CycleBasis
from loop_weaver.cycle import Cycle
from loop_weaver.exceptions import CycleRotationError, CycleSplitError, InvalidGraphError
from loop_weaver.graph import opposite_vertex, validate_graph

logger = logging.getLogger(__name__)

FUNDAMENTAL: str = "fundamental"
"""Method name recorded on bases built by this module."""

_NO_PREDECESSOR: int = -9999
"""Sentinel used by scipy.sparse.csgraph for unreachable vertices."""


# ═══════════════════════════════════════════════════════════════════════
# Spanning tree
# ═══════════════════════════════════════════════════════════════════════


@dataclass
class SpanningTree:
    """Minimum spanning forest of a graph.

    Attributes
    ----------
    graph
        The spanned graph.
    edges : List
        Tree edges in the order Prim's algorithm accepted them.
    edge_set : FrozenSet
        Same edges, for membership tests.
    matrix : csr_matrix
        (N, N) unit adjacency matrix of the tree, in graph vertex order.
    """
    graph: object
    edges: List[Hashable]
    edge_set: FrozenSet[Hashable]
    matrix: csr_matrix
    _index: Dict[Hashable, int] = field(default_factory=dict, repr=False)
    _tree_edge: Dict[Tuple[int, int], Hashable] = field(default_factory=dict, repr=False)
    _predecessors: Dict[int, NDArray] = field(default_factory=dict, repr=False)

    def contains_edge(self, edge: Hashable) -> bool:
        return edge in self.edge_set

    def path(self, u: Hashable, v: Hashable) -> List[Hashable]:
        """Tree edges on the unique path from *u* to *v*, in walking order.

        Raises
        ------
        InvalidGraphError
            If *u* and *v* lie in different components.
        """
        iu, iv = self._index[u], self._index[v]
        if iu not in self._predecessors:
            _, predecessors = breadth_first_order(
                self.matrix, iu, directed=False, return_predecessors=True,
            )
            self._predecessors[iu] = predecessors
        predecessors = self._predecessors[iu]

        if iv != iu and predecessors[iv] == _NO_PREDECESSOR:
            raise InvalidGraphError(f"No tree path between {u!r} and {v!r}")

        reversed_path = []
        node = iv
        while node != iu:
            parent = int(predecessors[node])
            reversed_path.append(self._tree_edge[(parent, node)])
            node = parent
        return reversed_path[::-1]


def _push_incident(graph, v, reached, heap, counter) -> None:
    for edge in graph.incident_edges(v):
        target = opposite_vertex(graph, edge, v)
        if target not in reached:
            heapq.heappush(heap, (graph.weight_of(edge), next(counter), edge, target))


def spanning_tree(graph) -> SpanningTree:
    """Compute a minimum spanning forest with Prim's algorithm.

    Each component is grown from its first vertex in graph order. Edges
    of equal weight are taken in the order they were pushed, which makes
    the tree deterministic for a given graph.

    Parameters
    ----------
    graph
        Graph exposing the builder contract.

    Returns
    -------
    SpanningTree
    """
    vertices = list(graph.vertices())
    index = {v: i for i, v in enumerate(vertices)}
    reached = set()
    tree_edges: List[Hashable] = []
    counter = itertools.count()

    for root in vertices:
        if root in reached:
            continue
        reached.add(root)
        heap: list = []
        _push_incident(graph, root, reached, heap, counter)
        while heap:
            _, _, edge, target = heapq.heappop(heap)
            if target in reached:
                continue
            reached.add(target)
            tree_edges.append(edge)
            _push_incident(graph, target, reached, heap, counter)

    rows, cols = [], []
    tree_edge: Dict[Tuple[int, int], Hashable] = {}
    for edge in tree_edges:
        a, b = graph.endpoints_of(edge)
        ia, ib = index[a], index[b]
        rows.extend((ia, ib))
        cols.extend((ib, ia))
        tree_edge[(ia, ib)] = edge
        tree_edge[(ib, ia)] = edge

    n = len(vertices)
    matrix = csr_matrix(
        (np.ones(len(rows), dtype=np.int8), (np.array(rows, dtype=np.int64), np.array(cols, dtype=np.int64))),
        shape=(n, n),
    )
    logger.debug("Spanning forest of %d edges over %d vertices", len(tree_edges), n)
    return SpanningTree(
        graph=graph,
        edges=tree_edges,
        edge_set=frozenset(tree_edges),
        matrix=matrix,
        _index=index,
        _tree_edge=tree_edge,
    )


# ═══════════════════════════════════════════════════════════════════════
# Cycle splitting
# ═══════════════════════════════════════════════════════════════════════


def split_cycle(graph, cycle: Cycle, edge: Hashable) -> Tuple[Cycle, Cycle]:
    """Split *cycle* in two along *edge*, which joins two of its vertices.

    The cycle is rotated to start at the source ``u`` of *edge* and walked
    to its target ``v``. The first run ``u … v`` and the second run
    ``v … u`` are each closed by *edge*.

    Parameters
    ----------
    graph
        Graph owning *cycle* and *edge*.
    cycle : Cycle
        Cycle through both endpoints of *edge*, not containing it.
    edge : Hashable
        The splitting edge.

    Returns
    -------
    Tuple[Cycle, Cycle]
        (cycle from u to v, cycle from v to u).

    Raises
    ------
    CycleSplitError
        If an endpoint is not on the cycle or either run has fewer than
        two edges.
    """
    u, v = graph.endpoints_of(edge)
    if not (cycle.contains_vertex(u) and cycle.contains_vertex(v)):
        raise CycleSplitError(f"Edge {edge!r} does not join two vertices of {cycle!r}")
    if cycle.contains_edge(edge):
        raise CycleSplitError(f"Edge {edge!r} already lies on {cycle!r}")

    try:
        rotated = cycle.rotate(u, cycle.previous_vertex(u))
    except CycleRotationError as exc:
        raise CycleSplitError(str(exc)) from exc

    m = rotated.position_of(v)
    first_run = list(rotated.edges[:m])
    second_run = list(rotated.edges[m:])
    if len(first_run) < 2 or len(second_run) < 2:
        raise CycleSplitError(
            f"Edge {edge!r} splits {cycle!r} into runs of "
            f"{len(first_run)} and {len(second_run)} edges"
        )

    return (
        Cycle(graph, u, v, first_run + [edge]),
        Cycle(graph, v, u, second_run + [edge]),
    )


# ═══════════════════════════════════════════════════════════════════════
# Builder
# ═══════════════════════════════════════════════════════════════════════


class FundamentalCycleBasisBuilder:
    """Builds one fundamental cycle basis of a graph.

    The vertex → cycles incidence index lives on the builder and is
    discarded with it; create one builder per graph.
    """

    def __init__(self, graph):
        validate_graph(graph)
        self.graph = graph
        self._index: Dict[Hashable, List[Cycle]] = {v: [] for v in graph.vertices()}

    def build(self) -> CycleBasis:
        tree = spanning_tree(self.graph)
        non_tree = [e for e in self.graph.edges() if not tree.contains_edge(e)]

        for edge in non_tree:
            u, v = self.graph.endpoints_of(edge)
            at_v = {id(c) for c in self._index[v]}
            shared = [c for c in self._index[u] if id(c) in at_v]
            if not shared:
                cycle = Cycle(self.graph, u, v, tree.path(u, v) + [edge])
                logger.debug("Edge %r closes new %d-cycle", edge, cycle.size())
                self._register(cycle)
                continue

            if len(shared) > 1:
                logger.debug("Edge %r crosses %d known cycles; splitting the first", edge, len(shared))
            parent = shared[0]
            children = split_cycle(self.graph, parent, edge)
            logger.debug(
                "Edge %r splits %d-cycle into %d and %d",
                edge, parent.size(), children[0].size(), children[1].size(),
            )
            self._unregister(parent)
            for child in children:
                self._register(child)

        cycles: List[Cycle] = []
        seen = set()
        for v in self.graph.vertices():
            for cycle in self._index[v]:
                if id(cycle) not in seen:
                    seen.add(id(cycle))
                    cycles.append(cycle)

        expected = len(non_tree)
        if len(cycles) != expected:
            logger.warning(
                "Fundamental basis has %d cycles, expected %d non-tree edges",
                len(cycles), expected,
            )
        logger.info("Fundamental basis: %d cycles", len(cycles))
        return CycleBasis(graph=self.graph, cycles=cycles, method=FUNDAMENTAL)

    # The index holds each cycle object once; lookups go by identity.

    def _register(self, cycle: Cycle) -> None:
        for v in cycle.vertices:
            if not any(c is cycle for c in self._index[v]):
                self._index[v].append(cycle)

    def _unregister(self, cycle: Cycle) -> None:
        for v in cycle.vertices:
            self._index[v] = [c for c in self._index[v] if c is not cycle]


def fundamental_cycle_basis(graph) -> CycleBasis:
    """Compute a fundamental cycle basis of *graph*.

    Parameters
    ----------
    graph
        Graph exposing the builder contract.

    Returns
    -------
    CycleBasis
        |E| − |V| + c cycles.

    Raises
    ------
    InvalidGraphError
        If the graph fails validation.
    """
    return FundamentalCycleBasisBuilder(graph).build()
