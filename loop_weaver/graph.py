"""
Loop Weaver — Interaction Graph.

Immutable, simple, undirected, edge-weighted graph snapshot consumed by
the cycle-basis builders, plus synthetic nucleic-acid graph builders.

Graph contract used by the builders:
    vertices()            → vertices in encounter order
    edges()               → edges in encounter order
    edge_between(u, v)    → edge or None
    endpoints_of(edge)    → (u, v)
    weight_of(edge)       → non-negative float
    incident_edges(v)     → edges touching v, in encounter order

Any object exposing these six methods can be passed to a builder;
:class:`InteractionGraph` is the reference implementation and adds
sparse-matrix views (degree, adjacency, connected components).

Synthetic builders:
    dot-bracket string
        → nucleotides (chain, position) as vertices
        → backbone edges between sequence neighbours
        → pair edges between matched brackets
        → weights by chain distance
"""

from __future__ import annotations

import logging
import math
import string
from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import connected_components as _sparse_components

from loop_weaver.exceptions import InvalidGraphError

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════
# Constants
# ═══════════════════════════════════════════════════════════════════════

DEFAULT_EDGE_WEIGHT: float = 1.0
"""Weight assigned to an edge entry that does not carry one."""

INTERACTION_KINDS: Tuple[str, ...] = ("backbone", "pair", "stack")
"""Interaction classes a synthetic :class:`InteractionEdge` may carry."""

DOT_BRACKET_PAIRS: Dict[str, str] = {
    "(": ")",
    "[": "]",
    "{": "}",
    "<": ">",
}
"""Opening → closing bracket for each pseudoknot order."""

UNPAIRED_SYMBOL: str = "."
"""Dot-bracket symbol of a nucleotide without a pairing partner."""

CHAIN_SEPARATOR: str = "&"
"""Separates the strands of a multi-chain dot-bracket string."""

CHAIN_IDS: str = string.ascii_uppercase
"""Chain identifiers assigned in order to the strands of a dot-bracket."""


# ═══════════════════════════════════════════════════════════════════════
# Data classes
# ═══════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class InteractionEdge:
    """A single nucleotide–nucleotide interaction.

    Attributes
    ----------
    source : Hashable
        First nucleotide, usually a ``(chain, position)`` tuple.
    target : Hashable
        Second nucleotide.
    kind : str
        One of :data:`INTERACTION_KINDS`.
    """
    source: Hashable
    target: Hashable
    kind: str = "backbone"

    def __post_init__(self):
        if self.kind not in INTERACTION_KINDS:
            raise InvalidGraphError(
                f"Unknown interaction kind {self.kind!r}; "
                f"expected one of {INTERACTION_KINDS}"
            )

    def __str__(self) -> str:
        return f"{self.kind}:{self.source}-{self.target}"


class InteractionGraph:
    """Immutable undirected interaction graph.

    Parameters
    ----------
    edges : Iterable[tuple]
        Entries ``(u, v, edge)`` or ``(u, v, edge, weight)``. The edge
        value is an opaque hashable label; weights default to
        :data:`DEFAULT_EDGE_WEIGHT`.
    vertices : Iterable, optional
        Explicit vertex order; may add isolated vertices. Endpoints not
        listed are appended in encounter order.
    name : str
        Graph name used in summaries.

    Raises
    ------
    InvalidGraphError
        On a self loop, a repeated edge value, a second edge between the
        same vertex pair, a negative or non-finite weight, or a malformed
        entry.
    """

    def __init__(
        self,
        edges: Iterable[tuple],
        vertices: Optional[Iterable[Hashable]] = None,
        name: str = "",
    ):
        self.name = name
        self._vertices: List[Hashable] = []
        self._index: Dict[Hashable, int] = {}
        self._edges: List[Hashable] = []
        self._endpoints: Dict[Hashable, Tuple[Hashable, Hashable]] = {}
        self._weights: Dict[Hashable, float] = {}
        self._incident: Dict[Hashable, List[Hashable]] = {}
        self._pairs: Dict[frozenset, Hashable] = {}

        if vertices is not None:
            for v in vertices:
                if v in self._index:
                    raise InvalidGraphError(f"Vertex {v!r} listed twice")
                self._add_vertex(v)

        for entry in edges:
            self._add_edge(entry)

        self._edge_tuple = tuple(self._edges)
        self._vertex_tuple = tuple(self._vertices)
        self._incident_tuples = {v: tuple(es) for v, es in self._incident.items()}

        logger.debug(
            "Built graph %r with %d vertices and %d edges",
            self.name, self.n_vertices, self.n_edges,
        )

    # ── construction helpers ──

    def _add_vertex(self, v: Hashable) -> None:
        try:
            hash(v)
        except TypeError as exc:
            raise InvalidGraphError(f"Vertex {v!r} is not hashable") from exc
        self._index[v] = len(self._vertices)
        self._vertices.append(v)
        self._incident[v] = []

    def _add_edge(self, entry: tuple) -> None:
        if not isinstance(entry, (tuple, list)) or len(entry) not in (3, 4):
            raise InvalidGraphError(
                f"Edge entry must be (u, v, edge) or (u, v, edge, weight), got {entry!r}"
            )
        u, v, edge = entry[0], entry[1], entry[2]
        weight = entry[3] if len(entry) == 4 else DEFAULT_EDGE_WEIGHT

        if u == v:
            raise InvalidGraphError(f"Edge {edge!r} is a self loop on {u!r}")
        try:
            known = edge in self._endpoints
        except TypeError as exc:
            raise InvalidGraphError(f"Edge {edge!r} is not hashable") from exc
        if known:
            raise InvalidGraphError(f"Edge {edge!r} added twice")

        try:
            weight = float(weight)
        except (TypeError, ValueError) as exc:
            raise InvalidGraphError(f"Edge {edge!r} has non-numeric weight {weight!r}") from exc
        if not math.isfinite(weight) or weight < 0:
            raise InvalidGraphError(f"Edge {edge!r} has invalid weight {weight!r}")

        for w in (u, v):
            if w not in self._index:
                self._add_vertex(w)

        pair = frozenset((u, v))
        if pair in self._pairs:
            raise InvalidGraphError(
                f"Edges {self._pairs[pair]!r} and {edge!r} both join {u!r} and {v!r}"
            )

        self._pairs[pair] = edge
        self._edges.append(edge)
        self._endpoints[edge] = (u, v)
        self._weights[edge] = weight
        self._incident[u].append(edge)
        self._incident[v].append(edge)

    # ── read-only contract ──

    def vertices(self) -> Tuple[Hashable, ...]:
        return self._vertex_tuple

    def edges(self) -> Tuple[Hashable, ...]:
        return self._edge_tuple

    def edge_between(self, u: Hashable, v: Hashable) -> Optional[Hashable]:
        """Return the edge joining *u* and *v*, or None."""
        if u == v:
            return None
        return self._pairs.get(frozenset((u, v)))

    def endpoints_of(self, edge: Hashable) -> Tuple[Hashable, Hashable]:
        try:
            return self._endpoints[edge]
        except KeyError:
            raise InvalidGraphError(f"Edge {edge!r} is not in graph {self.name!r}") from None

    def weight_of(self, edge: Hashable) -> float:
        try:
            return self._weights[edge]
        except KeyError:
            raise InvalidGraphError(f"Edge {edge!r} is not in graph {self.name!r}") from None

    def incident_edges(self, v: Hashable) -> Tuple[Hashable, ...]:
        try:
            return self._incident_tuples[v]
        except KeyError:
            raise InvalidGraphError(f"Vertex {v!r} is not in graph {self.name!r}") from None

    # ── conveniences ──

    def opposite(self, edge: Hashable, v: Hashable) -> Hashable:
        return opposite_vertex(self, edge, v)

    def contains_vertex(self, v: Hashable) -> bool:
        return v in self._index

    def contains_edge(self, edge: Hashable) -> bool:
        return edge in self._endpoints

    def vertex_index(self, v: Hashable) -> int:
        """Position of *v* in :meth:`vertices`."""
        try:
            return self._index[v]
        except KeyError:
            raise InvalidGraphError(f"Vertex {v!r} is not in graph {self.name!r}") from None

    @property
    def n_vertices(self) -> int:
        return len(self._vertex_tuple)

    @property
    def n_edges(self) -> int:
        return len(self._edge_tuple)

    def degree(self) -> NDArray:
        """(N,) degree of each vertex, in vertex order."""
        return np.array(
            [len(self._incident_tuples[v]) for v in self._vertex_tuple],
            dtype=np.int64,
        )

    def adjacency_matrix(self, weighted: bool = False) -> csr_matrix:
        """Symmetric (N, N) sparse adjacency matrix.

        Parameters
        ----------
        weighted : bool
            Store edge weights instead of 1. Zero-weight edges are then
            indistinguishable from missing entries.

        Returns
        -------
        csr_matrix
        """
        n = self.n_vertices
        rows: List[int] = []
        cols: List[int] = []
        data: List[float] = []
        for edge in self._edge_tuple:
            u, v = self._endpoints[edge]
            iu, iv = self._index[u], self._index[v]
            value = self._weights[edge] if weighted else 1.0
            rows.extend((iu, iv))
            cols.extend((iv, iu))
            data.extend((value, value))
        return csr_matrix(
            (np.array(data, dtype=np.float64), (np.array(rows, dtype=np.int64), np.array(cols, dtype=np.int64))),
            shape=(n, n),
        )

    def connected_components(self) -> Tuple[int, NDArray]:
        """Return (number of components, (N,) component label per vertex)."""
        if self.n_vertices == 0:
            return 0, np.zeros(0, dtype=np.int32)
        n_components, labels = _sparse_components(self.adjacency_matrix(), directed=False)
        return int(n_components), labels

    @property
    def cyclomatic_number(self) -> int:
        """Dimension of the cycle space, |E| − |V| + c."""
        n_components, _ = self.connected_components()
        return self.n_edges - self.n_vertices + n_components

    def __repr__(self) -> str:
        return (
            f"InteractionGraph(name={self.name!r}, "
            f"n_vertices={self.n_vertices}, n_edges={self.n_edges})"
        )


# ═══════════════════════════════════════════════════════════════════════
# Contract helpers
# ═══════════════════════════════════════════════════════════════════════


def opposite_vertex(graph, edge: Hashable, v: Hashable) -> Hashable:
    """Return the endpoint of *edge* that is not *v*."""
    a, b = graph.endpoints_of(edge)
    if v == a:
        return b
    if v == b:
        return a
    raise InvalidGraphError(f"Vertex {v!r} is not an endpoint of edge {edge!r}")


def validate_graph(graph) -> None:
    """Check a graph against the builder contract before any computation.

    Parameters
    ----------
    graph
        Any object exposing the six-method graph contract.

    Raises
    ------
    InvalidGraphError
        On a self loop, an endpoint outside the vertex set, an edge
        lookup that disagrees with the edge endpoints, or a negative or
        non-finite weight.
    """
    vertex_set = set(graph.vertices())
    for edge in graph.edges():
        u, v = graph.endpoints_of(edge)
        if u == v:
            raise InvalidGraphError(f"Edge {edge!r} is a self loop on {u!r}")
        if u not in vertex_set or v not in vertex_set:
            raise InvalidGraphError(f"Edge {edge!r} has an endpoint outside the vertex set")
        if graph.edge_between(u, v) != edge:
            raise InvalidGraphError(
                f"Edge lookup between {u!r} and {v!r} does not return {edge!r}"
            )
        weight = graph.weight_of(edge)
        if not math.isfinite(weight) or weight < 0:
            raise InvalidGraphError(f"Edge {edge!r} has invalid weight {weight!r}")


# ═══════════════════════════════════════════════════════════════════════
# Synthetic nucleic-acid builders
# ═══════════════════════════════════════════════════════════════════════


def graph_from_dot_bracket(
    structure: str,
    name: str = "structure",
) -> InteractionGraph:
    """Build an interaction graph from dot-bracket notation.

    One vertex per nucleotide, named ``(chain, position)`` with 1-based
    positions. Consecutive nucleotides of a chain are joined by backbone
    edges; matched brackets by pair edges, ordered by their 5' partner.
    ``&`` separates chains.

    Edge weights follow chain distance: ``|i − j|`` for two nucleotides
    of the same chain, the sum of both chain lengths across chains.

    Parameters
    ----------
    structure : str
        Dot-bracket string, e.g. ``"((((....))))"`` or ``"(((&)))"``.
    name : str
        Graph name.

    Returns
    -------
    InteractionGraph

    Raises
    ------
    InvalidGraphError
        On unbalanced brackets, unknown symbols, empty chains or a pair
        between sequence neighbours.
    """
    chains = structure.split(CHAIN_SEPARATOR)
    if len(chains) > len(CHAIN_IDS):
        raise InvalidGraphError(f"At most {len(CHAIN_IDS)} chains are supported")

    closing_to_opening = {close: open_ for open_, close in DOT_BRACKET_PAIRS.items()}
    stacks: Dict[str, List[Tuple[str, int]]] = {open_: [] for open_ in DOT_BRACKET_PAIRS}
    chain_lengths: Dict[str, int] = {}
    vertices: List[Tuple[str, int]] = []
    pairs: List[Tuple[Tuple[str, int], Tuple[str, int]]] = []

    for chain_id, chain in zip(CHAIN_IDS, chains):
        if not chain:
            raise InvalidGraphError(f"Chain {chain_id} of {name!r} is empty")
        chain_lengths[chain_id] = len(chain)
        for pos, symbol in enumerate(chain, start=1):
            vertex = (chain_id, pos)
            vertices.append(vertex)
            if symbol == UNPAIRED_SYMBOL:
                continue
            if symbol in DOT_BRACKET_PAIRS:
                stacks[symbol].append(vertex)
            elif symbol in closing_to_opening:
                stack = stacks[closing_to_opening[symbol]]
                if not stack:
                    raise InvalidGraphError(
                        f"Unmatched {symbol!r} at chain {chain_id} position {pos}"
                    )
                pairs.append((stack.pop(), vertex))
            else:
                raise InvalidGraphError(f"Unknown dot-bracket symbol {symbol!r}")

    for open_, stack in stacks.items():
        if stack:
            chain_id, pos = stack[-1]
            raise InvalidGraphError(f"Unmatched {open_!r} at chain {chain_id} position {pos}")

    def _weight(a: Tuple[str, int], b: Tuple[str, int]) -> float:
        if a[0] == b[0]:
            return float(abs(a[1] - b[1]))
        return float(chain_lengths[a[0]] + chain_lengths[b[0]])

    entries = []
    for a, b in zip(vertices, vertices[1:]):
        if a[0] == b[0]:
            entries.append((a, b, InteractionEdge(a, b, "backbone"), _weight(a, b)))

    order = {v: i for i, v in enumerate(vertices)}
    for a, b in sorted(pairs, key=lambda p: order[p[0]]):
        if a[0] == b[0] and abs(a[1] - b[1]) == 1:
            raise InvalidGraphError(f"Pair {a}-{b} joins sequence neighbours")
        entries.append((a, b, InteractionEdge(a, b, "pair"), _weight(a, b)))

    return InteractionGraph(entries, vertices=vertices, name=name)


def build_ring(
    n_nucleotides: int = 8,
    name: str = "Circular RNA",
) -> InteractionGraph:
    """Build a circular single strand: one ring of backbone edges.

    Parameters
    ----------
    n_nucleotides : int
        Ring length (at least 3).
    name : str
        Graph name.

    Returns
    -------
    InteractionGraph
    """
    if n_nucleotides < 3:
        raise InvalidGraphError("A ring needs at least 3 nucleotides")
    vertices = [("A", i) for i in range(1, n_nucleotides + 1)]
    entries = []
    for i, a in enumerate(vertices):
        b = vertices[(i + 1) % n_nucleotides]
        entries.append((a, b, InteractionEdge(a, b, "backbone"), DEFAULT_EDGE_WEIGHT))
    return InteractionGraph(entries, vertices=vertices, name=name)


def build_hairpin(
    stem_pairs: int = 4,
    loop_size: int = 4,
    name: str = "Hairpin",
) -> InteractionGraph:
    """Build a stem-loop: *stem_pairs* stacked pairs closing a loop.

    Yields ``stem_pairs − 1`` four-membered stem cycles plus one loop
    cycle of ``loop_size + 2`` nucleotides.
    """
    structure = "(" * stem_pairs + UNPAIRED_SYMBOL * loop_size + ")" * stem_pairs
    return graph_from_dot_bracket(structure, name=name)


def build_duplex(
    n_pairs: int = 6,
    name: str = "Duplex",
) -> InteractionGraph:
    """Build two complementary strands paired end to end."""
    structure = "(" * n_pairs + CHAIN_SEPARATOR + ")" * n_pairs
    return graph_from_dot_bracket(structure, name=name)


def build_multiloop(
    n_branches: int = 3,
    stem_pairs: int = 3,
    loop_size: int = 4,
    name: str = "Multi-Branch Junction",
) -> InteractionGraph:
    """Build a closing stem that opens into *n_branches* hairpins.

    Parameters
    ----------
    n_branches : int
        Number of hairpins leaving the junction.
    stem_pairs : int
        Pairs in every stem, including the closing one.
    loop_size : int
        Unpaired nucleotides in each hairpin loop.
    name : str
        Graph name.

    Returns
    -------
    InteractionGraph
    """
    hairpin = "(" * stem_pairs + UNPAIRED_SYMBOL * loop_size + ")" * stem_pairs
    junction = UNPAIRED_SYMBOL + UNPAIRED_SYMBOL.join([hairpin] * n_branches) + UNPAIRED_SYMBOL
    structure = "(" * stem_pairs + junction + ")" * stem_pairs
    return graph_from_dot_bracket(structure, name=name)


def get_preset_graphs() -> Dict[str, InteractionGraph]:
    """Return all preset synthetic interaction graphs.

    Returns
    -------
    Dict[str, InteractionGraph]
        Mapping name → InteractionGraph.
    """
    return {
        "Circular RNA": build_ring(),
        "Hairpin": build_hairpin(),
        "Duplex": build_duplex(),
        "Three-Way Junction": build_multiloop(name="Three-Way Junction"),
        "H-Type Pseudoknot": graph_from_dot_bracket(
            "((((..[[[[...))))...]]]]", name="H-Type Pseudoknot",
        ),
    }
