"""
Loop Weaver — Cycle Canonicalization.

Structurally identical motifs found from different starting vertices
collapse to one canonical form:

    cycle
        → every one-step rotation (and those of the inverted cycle)
        → encoding per rotation: [vertex label,] outgoing edge label, …
        → minimal encoding under tuple order, first rotation on ties

Label functions are supplied by the caller; labels produced by one call
must be mutually comparable (all strings, or all numbers, ...).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Tuple

from loop_weaver.cycle import Cycle

EdgeLabel = Callable[[Hashable], Any]
VertexLabel = Callable[[Hashable], Any]

CANONICAL_KEY_PREFIX: str = "#"
"""Leading character of every canonical key string."""

CANONICAL_KEY_SEPARATOR: str = "-"
"""Joins encoding elements inside a canonical key."""


@dataclass(frozen=True)
class CanonicalForm:
    """Minimal rotation of a cycle under a label encoding.

    Attributes
    ----------
    cycle : Cycle
        The rotation achieving the minimal encoding.
    encoding : Tuple
        Its encoding.
    rotation : int
        Number of one-step rotations from the source cycle (or from its
        inversion when ``inverted``).
    inverted : bool
        Whether the minimum was found on the inverted cycle.
    """
    cycle: Cycle
    encoding: Tuple[Any, ...]
    rotation: int
    inverted: bool

    @property
    def key(self) -> str:
        """Printable tag, e.g. ``#backbone-pair-backbone-pair``."""
        return CANONICAL_KEY_PREFIX + CANONICAL_KEY_SEPARATOR.join(str(x) for x in self.encoding)


def all_rotations(cycle: Cycle, both_orientations: bool = False) -> List[Cycle]:
    """Every re-anchoring of *cycle*, rotation 0 first.

    Parameters
    ----------
    cycle : Cycle
        Source cycle.
    both_orientations : bool
        Append the rotations of ``cycle.invert()``.

    Returns
    -------
    List[Cycle]
        ``n`` or ``2n`` cycles, all equal to *cycle*.
    """
    rotations = _rotations(cycle)
    if both_orientations:
        rotations.extend(_rotations(cycle.invert()))
    return rotations


def _rotations(cycle: Cycle) -> List[Cycle]:
    vs = cycle.vertices
    return [cycle.rotate(vs[k], vs[k - 1]) for k in range(len(vs))]


def encode_cycle(
    cycle: Cycle,
    edge_label: EdgeLabel,
    vertex_label: Optional[VertexLabel] = None,
) -> Tuple[Any, ...]:
    """Encode a cycle in traversal order.

    Each vertex contributes its label (when *vertex_label* is given)
    followed by the label of the edge leaving it.
    """
    code: List[Any] = []
    for v in cycle.vertices:
        if vertex_label is not None:
            code.append(vertex_label(v))
        code.append(edge_label(cycle.outgoing_edge(v)))
    return tuple(code)


def canonicalize(
    cycle: Cycle,
    edge_label: EdgeLabel,
    vertex_label: Optional[VertexLabel] = None,
    both_orientations: bool = True,
) -> CanonicalForm:
    """Find the minimal rotation of *cycle*.

    Forward rotations are tried before inverted ones; on equal encodings
    the first candidate is kept.

    Parameters
    ----------
    cycle : Cycle
        Source cycle.
    edge_label : Callable
        Edge → comparable label.
    vertex_label : Callable, optional
        Vertex → comparable label.
    both_orientations : bool
        Also consider the inverted traversal direction.

    Returns
    -------
    CanonicalForm
    """
    n = cycle.size()
    best: Optional[CanonicalForm] = None
    for i, candidate in enumerate(all_rotations(cycle, both_orientations)):
        encoding = encode_cycle(candidate, edge_label, vertex_label)
        if best is None or encoding < best.encoding:
            best = CanonicalForm(
                cycle=candidate,
                encoding=encoding,
                rotation=i % n,
                inverted=i >= n,
            )
    return best


def canonical_key(
    cycle: Cycle,
    edge_label: EdgeLabel,
    vertex_label: Optional[VertexLabel] = None,
    both_orientations: bool = True,
) -> str:
    return canonicalize(cycle, edge_label, vertex_label, both_orientations).key


def group_by_canonical_form(
    cycles: Iterable[Cycle],
    edge_label: EdgeLabel,
    vertex_label: Optional[VertexLabel] = None,
    both_orientations: bool = True,
) -> Dict[str, List[Cycle]]:
    """Group cycles sharing a canonical key, keys in first-seen order."""
    groups: Dict[str, List[Cycle]] = {}
    for cycle in cycles:
        key = canonical_key(cycle, edge_label, vertex_label, both_orientations)
        groups.setdefault(key, []).append(cycle)
    return groups
