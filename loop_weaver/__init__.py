"""
Loop Weaver — Cycle Bases of Nucleic-Acid Interaction Graphs.

Decomposes the interaction graph of a nucleic-acid structure
(nucleotides as vertices, backbone / base-pair / stacking interactions
as weighted edges) into cycles that map onto structural motifs: stems,
hairpin loops, internal loops and multi-branch junctions.

Modules
-------
graph
    Immutable interaction graph, validation, sparse-matrix views and
    synthetic dot-bracket builders.
cycle
    The ``Cycle`` value and its algebra: rotate, invert, sub-paths.
fundamental
    Spanning-tree fundamental basis with cycle splitting.
chordless
    Exhaustive enumeration of induced (chordless) cycles.
canonical
    Minimal-rotation canonical forms for motif deduplication.
analysis
    Basis statistics, comparisons and per-cycle tables.
exceptions
    Error taxonomy rooted at ``LoopWeaverError``.
"""

# ── Errors ──
from loop_weaver.exceptions import (
    LoopWeaverError,
    CycleError,
    CycleConstructionError,
    CycleRotationError,
    CycleSplitError,
    CycleSubListError,
    CycleBasisError,
    ChordTestError,
    InvalidGraphError,
)

# ── Graph ──
from loop_weaver.graph import (
    DEFAULT_EDGE_WEIGHT,
    INTERACTION_KINDS,
    DOT_BRACKET_PAIRS,
    InteractionEdge,
    InteractionGraph,
    opposite_vertex,
    validate_graph,
    graph_from_dot_bracket,
    build_ring,
    build_hairpin,
    build_duplex,
    build_multiloop,
    get_preset_graphs,
)

# ── Cycle algebra ──
from loop_weaver.cycle import (
    MIN_CYCLE_EDGES,
    Cycle,
    cycle_from_vertices,
    cycle_from_edges,
)
from loop_weaver.basis import CycleBasis

# ── Builders ──
from loop_weaver.fundamental import (
    SpanningTree,
    spanning_tree,
    split_cycle,
    FundamentalCycleBasisBuilder,
    fundamental_cycle_basis,
)
from loop_weaver.chordless import (
    has_chord,
    is_chordless,
    ChordlessCycleBasisBuilder,
    chordless_cycle_basis,
)

# ── Canonicalization ──
from loop_weaver.canonical import (
    CanonicalForm,
    all_rotations,
    encode_cycle,
    canonicalize,
    canonical_key,
    group_by_canonical_form,
)

# ── Analysis pipelines ──
from loop_weaver.analysis import (
    BASIS_METHODS,
    CycleBasisAnalysis,
    BasisComparison,
    PresetComparisonResult,
    compute_cycle_basis,
    analyze_cycle_basis,
    compare_bases,
    cycle_table,
    compare_preset_graphs,
    basis_summary,
)
