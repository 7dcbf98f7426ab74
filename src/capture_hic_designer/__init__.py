"""Capture Hi-C Designer.

Designs Capture Hi-C viewpoints around genomic anchors such as transcription
start sites: restriction fragments are chosen around each anchor, probes
(baits) are placed on fragment margins under GC content and alignability
constraints, and every viewpoint is scored.
"""

__version__ = "1.0.0"

from .config import ViewPointConfig
from .models import Anchor, Approach, RestrictionEnzyme, Strand, TargetGene
from .core import (
    AlignabilityMap, AlignabilityMapReader, iter_alignability_maps, parse_chrom_info,
    InMemoryGenome, IndexedFastaGenome,
    AnchorParser, parse_enzyme_list
)
from .design import (
    Bait, Segment, SegmentStatus, SegmentFactory,
    ViewPoint, create_viewpoint,
    ViewPointCreationTask, create_viewpoints, estimate_mean_fragment_length,
    DesignSummary
)
from .main import run_pipeline

__all__ = [
    "__version__",
    "ViewPointConfig",
    "Anchor",
    "Approach",
    "RestrictionEnzyme",
    "Strand",
    "TargetGene",
    "AlignabilityMap",
    "AlignabilityMapReader",
    "iter_alignability_maps",
    "parse_chrom_info",
    "InMemoryGenome",
    "IndexedFastaGenome",
    "AnchorParser",
    "parse_enzyme_list",
    "Bait",
    "Segment",
    "SegmentStatus",
    "SegmentFactory",
    "ViewPoint",
    "create_viewpoint",
    "ViewPointCreationTask",
    "create_viewpoints",
    "estimate_mean_fragment_length",
    "DesignSummary",
    "run_pipeline",
]
