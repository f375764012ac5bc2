"""
Loop Weaver — Error Taxonomy.

Every failure raised by the cycle engine derives from
:class:`LoopWeaverError`, so callers processing many structures can
isolate one bad graph with a single ``except`` clause.

Hierarchy
---------
LoopWeaverError
    CycleError
        CycleConstructionError   malformed edge/vertex input to ``Cycle``
        CycleRotationError       non-adjacent or degenerate rotation target
        CycleSplitError          degenerate split of a shared cycle
        CycleSubListError        degenerate sub-path request
    CycleBasisError
        ChordTestError           chord test called on an open path
    InvalidGraphError            malformed input graph (also a ValueError)
"""

from __future__ import annotations


class LoopWeaverError(Exception):
    """Base class for all cycle-engine errors."""


# ═══════════════════════════════════════════════════════════════════════
# Cycle algebra
# ═══════════════════════════════════════════════════════════════════════


class CycleError(LoopWeaverError):
    """Precondition violation inside the cycle algebra."""


class CycleConstructionError(CycleError):
    """Raised when an edge list does not describe a simple closed walk."""


class CycleRotationError(CycleError):
    """Raised when a rotation target is absent, repeated or non-adjacent."""


class CycleSplitError(CycleError):
    """Raised when a cycle cannot be split in two by an edge."""


class CycleSubListError(CycleError):
    """Raised when a sub-path request names equal or absent vertices."""


# ═══════════════════════════════════════════════════════════════════════
# Basis builders and input graphs
# ═══════════════════════════════════════════════════════════════════════


class CycleBasisError(LoopWeaverError):
    """Internal invariant violation during a basis computation."""


class ChordTestError(CycleBasisError):
    """Raised when the chord test receives a path that is not closed."""


class InvalidGraphError(LoopWeaverError, ValueError):
    """Raised for a malformed input graph (self loop, unknown item, ...)."""
