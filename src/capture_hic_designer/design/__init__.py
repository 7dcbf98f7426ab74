"""Viewpoint design: fragments, baits, selection policies and scoring."""

from .bait import Bait
from .segment import Segment, SegmentStatus
from .segment_factory import SegmentFactory
from .viewpoint import ViewPoint, create_viewpoint
from .creation import ViewPointCreationTask, create_viewpoints, estimate_mean_fragment_length
from .summary import BaitedFragmentEvaluation, DesignSummary

__all__ = [
    "Bait",
    "Segment",
    "SegmentStatus",
    "SegmentFactory",
    "ViewPoint",
    "create_viewpoint",
    "ViewPointCreationTask",
    "create_viewpoints",
    "estimate_mean_fragment_length",
    "BaitedFragmentEvaluation",
    "DesignSummary",
]
