"""
Services for contentgraph.

High-level business logic services:
- ContentGraph: Unified interface for all graph operations
- AssociationReconciler: Content <-> Feature edge reconciliation
- ContentBlockReconciler: Block reconciliation and image back-references
- CascadeController: Removal hooks for contents, images and features
- IntegrityChecker: Invariant validation and repair
"""

from contentgraph.services.association_reconciler import (
    AssociationReconciler,
    FeatureDiff,
    diff_features,
)
from contentgraph.services.block_reconciler import (
    BlockDiff,
    ContentBlockReconciler,
    diff_image_blocks,
)
from contentgraph.services.cascade_controller import CascadeController
from contentgraph.services.content_graph import ContentGraph
from contentgraph.services.integrity import IntegrityChecker, IntegrityReport

__all__ = [
    "ContentGraph",
    "AssociationReconciler",
    "FeatureDiff",
    "diff_features",
    "ContentBlockReconciler",
    "BlockDiff",
    "diff_image_blocks",
    "CascadeController",
    "IntegrityChecker",
    "IntegrityReport",
]
