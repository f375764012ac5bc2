"""
Loop Weaver — Cycle Basis container.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Hashable, Iterator, List, Tuple

import numpy as np
from numpy.typing import NDArray

from loop_weaver.cycle import Cycle


@dataclass(frozen=True)
class CycleBasis:
    """Cycles computed over one graph by one builder.

    Attributes
    ----------
    graph
        The graph the cycles were computed over.
    cycles : Tuple[Cycle, ...]
        Basis cycles, in the order the builder produced them.
    method : str
        Name of the builder, ``"fundamental"`` or ``"chordless"``.
    """
    graph: object
    cycles: Tuple[Cycle, ...] = field(default_factory=tuple)
    method: str = ""

    def __post_init__(self):
        object.__setattr__(self, "cycles", tuple(self.cycles))

    def __len__(self) -> int:
        return len(self.cycles)

    def __iter__(self) -> Iterator[Cycle]:
        return iter(self.cycles)

    def __getitem__(self, i: int) -> Cycle:
        return self.cycles[i]

    def __contains__(self, cycle: object) -> bool:
        return cycle in self.cycles

    @property
    def sizes(self) -> NDArray:
        """(C,) number of edges of each cycle."""
        return np.array([c.size() for c in self.cycles], dtype=np.int64)

    def size_counts(self) -> Dict[int, int]:
        """Number of cycles of each length, shortest first."""
        return dict(sorted(Counter(c.size() for c in self.cycles).items()))

    def cycles_containing(self, vertex: Hashable) -> List[Cycle]:
        return [c for c in self.cycles if c.contains_vertex(vertex)]

    def cycles_through_edge(self, edge: Hashable) -> List[Cycle]:
        return [c for c in self.cycles if c.contains_edge(edge)]
