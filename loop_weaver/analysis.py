"""
Loop Weaver — Analysis Pipelines.

High-level functions that wrap the basis builders and the canonicalizer
to produce annotated, in-memory results: per-graph cycle statistics,
motif counts, basis comparisons and one row per cycle for external
serializers.
"""

from __future__ import annotations

import logging
import textwrap
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import numpy as np
from numpy.typing import NDArray

from loop_weaver.basis import CycleBasis
from loop_weaver.canonical import EdgeLabel, VertexLabel, canonical_key
from loop_weaver.chordless import CHORDLESS, chordless_cycle_basis
from loop_weaver.cycle import Cycle
from loop_weaver.fundamental import FUNDAMENTAL, fundamental_cycle_basis
from loop_weaver.graph import InteractionGraph, get_preset_graphs

logger = logging.getLogger(__name__)


BASIS_BUILDERS: Dict[str, Callable[..., CycleBasis]] = {
    FUNDAMENTAL: fundamental_cycle_basis,
    CHORDLESS: chordless_cycle_basis,
}

BASIS_METHODS = tuple(BASIS_BUILDERS)
"""Names accepted by :func:`compute_cycle_basis`."""

SUMMARY_SEPARATOR: str = ","
"""Joins edge and vertex labels inside one cycle-table cell."""


# ═══════════════════════════════════════════════════════════════════════
# Analysis dataclasses
# ═══════════════════════════════════════════════════════════════════════


@dataclass
class CycleBasisAnalysis:
    """Complete analysis of one cycle basis.

    Attributes
    ----------
    graph : InteractionGraph
        Input graph.
    basis : CycleBasis
        Computed basis.
    method : str
        Builder name.
    n_vertices, n_edges, n_components : int
        Graph size.
    cyclomatic_number : int
        |E| − |V| + c.
    n_cycles : int
        Basis size.
    cycle_sizes : NDArray
        (C,) length of each cycle.
    size_counts : Dict[int, int]
        Number of cycles per length.
    mean_size, min_size, max_size : float, int, int
        Length statistics (0 for an acyclic graph).
    motif_counts : Dict[str, int]
        Cycles per canonical key; empty without an edge label.
    explanation : str
        Human-readable summary.
    """
    graph: InteractionGraph
    basis: CycleBasis
    method: str
    n_vertices: int
    n_edges: int
    n_components: int
    cyclomatic_number: int
    n_cycles: int
    cycle_sizes: NDArray
    size_counts: Dict[int, int]
    mean_size: float
    min_size: int
    max_size: int
    motif_counts: Dict[str, int]
    explanation: str


@dataclass
class BasisComparison:
    """Fundamental and chordless bases of one graph side by side.

    Attributes
    ----------
    fundamental : CycleBasisAnalysis
    chordless : CycleBasisAnalysis
    shared : List[Cycle]
        Cycles present in both bases.
    fundamental_only : List[Cycle]
    chordless_only : List[Cycle]
    explanation : str
    """
    fundamental: CycleBasisAnalysis
    chordless: CycleBasisAnalysis
    shared: List[Cycle]
    fundamental_only: List[Cycle]
    chordless_only: List[Cycle]
    explanation: str


@dataclass
class PresetComparisonResult:
    """Analyses of all preset graphs.

    Attributes
    ----------
    analyses : Dict[str, CycleBasisAnalysis]
        Analysis per preset.
    summary_table : List[Dict]
        Tabular summary for display.
    """
    analyses: Dict[str, CycleBasisAnalysis]
    summary_table: List[Dict]


# ═══════════════════════════════════════════════════════════════════════
# Analysis functions
# ═══════════════════════════════════════════════════════════════════════


def compute_cycle_basis(graph, method: str = FUNDAMENTAL) -> CycleBasis:
    """Run the named basis builder.

    Raises
    ------
    ValueError
        For a method not in :data:`BASIS_METHODS`.
    """
    try:
        builder = BASIS_BUILDERS[method]
    except KeyError:
        raise ValueError(f"Unknown basis method {method!r}; expected one of {BASIS_METHODS}") from None
    return builder(graph)


def analyze_cycle_basis(
    graph: InteractionGraph,
    method: str = FUNDAMENTAL,
    edge_label: Optional[EdgeLabel] = None,
    vertex_label: Optional[VertexLabel] = None,
) -> CycleBasisAnalysis:
    """Compute a basis and summarise its cycles.

    Parameters
    ----------
    graph : InteractionGraph
        Input graph.
    method : str
        ``"fundamental"`` or ``"chordless"``.
    edge_label : Callable, optional
        Edge → label; enables motif counting by canonical key.
    vertex_label : Callable, optional
        Vertex → label, folded into the canonical key.

    Returns
    -------
    CycleBasisAnalysis
    """
    basis = compute_cycle_basis(graph, method)
    n_components, _ = graph.connected_components()
    sizes = basis.sizes

    motif_counts: Dict[str, int] = {}
    if edge_label is not None:
        for cycle in basis:
            key = canonical_key(cycle, edge_label, vertex_label)
            motif_counts[key] = motif_counts.get(key, 0) + 1

    if len(sizes) > 0:
        mean_size = float(np.mean(sizes))
        min_size, max_size = int(np.min(sizes)), int(np.max(sizes))
    else:
        mean_size, min_size, max_size = 0.0, 0, 0

    explanation = textwrap.dedent(f"""\
        {method.capitalize()} cycle basis for "{graph.name}":
        • {graph.n_vertices} vertices, {graph.n_edges} edges, {n_components} component(s)
        • Cyclomatic number |E| − |V| + c = {graph.cyclomatic_number}
        • {len(basis)} cycles, lengths {min_size}–{max_size} (mean {mean_size:.2f})
        • {len(motif_counts)} distinct motif(s)
    """)

    return CycleBasisAnalysis(
        graph=graph,
        basis=basis,
        method=method,
        n_vertices=graph.n_vertices,
        n_edges=graph.n_edges,
        n_components=n_components,
        cyclomatic_number=graph.cyclomatic_number,
        n_cycles=len(basis),
        cycle_sizes=sizes,
        size_counts=basis.size_counts(),
        mean_size=mean_size,
        min_size=min_size,
        max_size=max_size,
        motif_counts=motif_counts,
        explanation=explanation,
    )


def compare_bases(
    graph: InteractionGraph,
    edge_label: Optional[EdgeLabel] = None,
    vertex_label: Optional[VertexLabel] = None,
) -> BasisComparison:
    """Compute both bases of *graph* and report their overlap.

    Parameters
    ----------
    graph : InteractionGraph
        Input graph.
    edge_label, vertex_label : Callable, optional
        Passed to :func:`analyze_cycle_basis`.

    Returns
    -------
    BasisComparison
    """
    fundamental = analyze_cycle_basis(graph, FUNDAMENTAL, edge_label, vertex_label)
    chordless = analyze_cycle_basis(graph, CHORDLESS, edge_label, vertex_label)

    chordless_set = set(chordless.basis)
    fundamental_set = set(fundamental.basis)
    shared = [c for c in fundamental.basis if c in chordless_set]
    fundamental_only = [c for c in fundamental.basis if c not in chordless_set]
    chordless_only = [c for c in chordless.basis if c not in fundamental_set]

    explanation = textwrap.dedent(f"""\
        Basis comparison for "{graph.name}":
        • Fundamental: {fundamental.n_cycles} cycles (mean length {fundamental.mean_size:.2f})
        • Chordless:   {chordless.n_cycles} cycles (mean length {chordless.mean_size:.2f})
        • Shared: {len(shared)}, fundamental only: {len(fundamental_only)}, chordless only: {len(chordless_only)}
    """)

    return BasisComparison(
        fundamental=fundamental,
        chordless=chordless,
        shared=shared,
        fundamental_only=fundamental_only,
        chordless_only=chordless_only,
        explanation=explanation,
    )


def cycle_table(
    basis: CycleBasis,
    edge_label: Optional[EdgeLabel] = None,
    vertex_label: Optional[VertexLabel] = None,
) -> List[Dict]:
    """One row per cycle, ready for a delimited-text or RDF serializer.

    Parameters
    ----------
    basis : CycleBasis
        Cycles to tabulate.
    edge_label : Callable, optional
        Edge → label for the edge summary and canonical key; ``str`` if
        omitted, in which case the canonical key is left empty.
    vertex_label : Callable, optional
        Vertex → label for the vertex summary and canonical key.

    Returns
    -------
    List[Dict]
        Keys: id, length, start, end, edges, vertices, canonical.
    """
    show_edge = edge_label if edge_label is not None else str
    show_vertex = vertex_label if vertex_label is not None else str

    rows = []
    for i, cycle in enumerate(basis, start=1):
        rows.append({
            "id": i,
            "length": cycle.size(),
            "start": show_vertex(cycle.start),
            "end": show_vertex(cycle.end),
            "edges": SUMMARY_SEPARATOR.join(str(show_edge(e)) for e in cycle.edges),
            "vertices": SUMMARY_SEPARATOR.join(str(show_vertex(v)) for v in cycle.vertices),
            "canonical": canonical_key(cycle, edge_label, vertex_label) if edge_label is not None else "",
        })
    return rows


def compare_preset_graphs(
    method: str = CHORDLESS,
    edge_label: Optional[EdgeLabel] = None,
) -> PresetComparisonResult:
    """Analyse every preset graph with one builder.

    Parameters
    ----------
    method : str
        Builder name.
    edge_label : Callable, optional
        Edge → label for motif counting.

    Returns
    -------
    PresetComparisonResult
    """
    analyses: Dict[str, CycleBasisAnalysis] = {}
    for name, graph in get_preset_graphs().items():
        logger.debug("Analysing preset %r", name)
        analyses[name] = analyze_cycle_basis(graph, method, edge_label)

    summary_table = []
    for name, analysis in analyses.items():
        summary_table.append({
            "Structure": name,
            "Nucleotides": analysis.n_vertices,
            "Interactions": analysis.n_edges,
            "Cyclomatic": analysis.cyclomatic_number,
            "Cycles": analysis.n_cycles,
            "Mean Length": f"{analysis.mean_size:.2f}",
            "Motifs": len(analysis.motif_counts),
        })

    return PresetComparisonResult(
        analyses=analyses,
        summary_table=summary_table,
    )


def basis_summary(analysis: CycleBasisAnalysis) -> str:
    """Human-readable text summary of a basis analysis.

    Parameters
    ----------
    analysis : CycleBasisAnalysis
        The analysis result.

    Returns
    -------
    str
        Multi-line summary string.
    """
    lines = [
        f"═══ Cycle Basis Summary: {analysis.graph.name} ({analysis.method}) ═══",
        "",
        f"  Vertices:          {analysis.n_vertices}",
        f"  Edges:             {analysis.n_edges}",
        f"  Components:        {analysis.n_components}",
        f"  Cyclomatic number: {analysis.cyclomatic_number}",
        f"  Cycles:            {analysis.n_cycles}",
        "",
        f"  Mean length:       {analysis.mean_size:.2f}",
        f"  Length range:      [{analysis.min_size}, {analysis.max_size}]",
        "",
        "  Cycles by length:",
    ]
    for size, count in analysis.size_counts.items():
        lines.append(f"    {size:3d}: {count}")

    if analysis.motif_counts:
        lines.extend(["", "  Motifs (top 5):"])
        ranked = sorted(analysis.motif_counts.items(), key=lambda x: x[1], reverse=True)[:5]
        for key, count in ranked:
            lines.append(f"    {key}: {count}")

    return "\n".join(lines)
