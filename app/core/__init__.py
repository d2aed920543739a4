"""Core module - category hierarchy engine.

Pure, synchronous computations over flat category records: tree building,
aggregate rollup, write validation and search filtering.
"""

from app.core.aggregates import compute_aggregates
from app.core.filter_engine import FilterResult, filter_tree, visible_forest
from app.core.hierarchy import CategoryHierarchy
from app.core.mutation_validator import (
    DeactivationAdvisory,
    MutationResult,
    MutationValidator,
    Rejection,
    RejectionKind,
)
from app.core.tree_builder import (
    MAX_DEPTH,
    BuildResult,
    HierarchyWarning,
    WarningKind,
    build_tree,
)

__all__ = [
    "MAX_DEPTH",
    "BuildResult",
    "CategoryHierarchy",
    "DeactivationAdvisory",
    "FilterResult",
    "HierarchyWarning",
    "MutationResult",
    "MutationValidator",
    "Rejection",
    "RejectionKind",
    "WarningKind",
    "build_tree",
    "compute_aggregates",
    "filter_tree",
    "visible_forest",
]
