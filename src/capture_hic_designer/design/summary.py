"""Statistics of a complete probe design."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Sequence, Set

from ..models import Approach
from .segment import Segment
from .viewpoint import ViewPoint


@dataclass(frozen=True)
class BaitedFragmentEvaluation:
    """Bait placement quality of one selected fragment.

    A bait is shifted if it does not sit flush with the fragment end it
    belongs to (start for upstream baits, end for downstream baits).
    """

    n_baits: int
    n_baits_up: int
    n_baits_down: int
    n_up_shifted: int
    n_down_shifted: int

    @classmethod
    def from_segment(cls, segment: Segment) -> "BaitedFragmentEvaluation":
        return cls(
            n_baits=segment.n_baits,
            n_baits_up=segment.n_baits_up,
            n_baits_down=segment.n_baits_down,
            n_up_shifted=sum(1 for b in segment.baits_up if b.start != segment.start),
            n_down_shifted=sum(1 for b in segment.baits_down if b.end != segment.end),
        )

    @property
    def is_bilateral(self) -> bool:
        return self.n_baits_up > 0 and self.n_baits_down > 0

    @property
    def is_unilateral(self) -> bool:
        return not self.is_bilateral

    @property
    def has_zero_baits(self) -> bool:
        return self.n_baits == 0

    @property
    def is_shifted(self) -> bool:
        """Bilateral, but one side has no bait flush with the fragment end."""
        unshifted_up = self.n_up_shifted < self.n_baits_up
        unshifted_down = self.n_down_shifted < self.n_baits_down
        return self.is_bilateral and not (unshifted_up and unshifted_down)

    @property
    def is_well_placed(self) -> bool:
        return self.is_bilateral and not self.is_shifted


def unique_active_segments(viewpoints: Sequence[ViewPoint]) -> List[Segment]:
    """Selected fragments, counting fragments shared by viewpoints once."""
    seen: Set[Segment] = set()
    unique: List[Segment] = []
    for vp in viewpoints:
        for segment in vp.active_segments:
            if segment not in seen:
                seen.add(segment)
                unique.append(segment)
    return unique


@dataclass
class DesignSummary:
    """Aggregate numbers over all viewpoints of a design."""

    n_genes: int = 0
    n_resolved_genes: int = 0
    n_viewpoints: int = 0
    n_resolved_viewpoints: int = 0
    n_patched_viewpoints: int = 0
    n_unique_fragments: int = 0
    n_balanced_fragments: int = 0
    n_unbalanced_fragments: int = 0
    mean_fragments_per_viewpoint: float = 0.0
    mean_viewpoint_size: float = 0.0
    mean_viewpoint_score: float = 0.0
    n_unique_baits: int = 0
    capture_size: int = 0
    margin_nucleotides: int = 0
    estimated_probe_count: int = 0
    n_well_placed_fragments: int = 0
    n_unilateral_fragments: int = 0
    n_shifted_fragments: int = 0
    n_zero_bait_fragments: int = 0
    n_high_repeat_fragments: int = 0

    @classmethod
    def from_viewpoints(cls, viewpoints: Sequence[ViewPoint], probe_length: int,
                        max_repeat_content: float = 1.0) -> "DesignSummary":
        """Compute the summary of a list of viewpoints.

        Fragments with a margin above ``max_repeat_content`` are counted separately.
        """
        summary = cls()
        if not viewpoints:
            return summary

        genes = {vp.target_name for vp in viewpoints}
        resolved = [vp for vp in viewpoints if vp.has_valid_digest]
        segments = unique_active_segments(viewpoints)

        summary.n_genes = len(genes)
        summary.n_viewpoints = len(viewpoints)
        summary.n_resolved_viewpoints = len(resolved)
        summary.n_resolved_genes = len({vp.target_name for vp in resolved})
        summary.n_patched_viewpoints = sum(
            1 for vp in viewpoints
            if vp.approach == Approach.SIMPLE and vp.n_selected_fragments > 1
        )

        summary.n_unique_fragments = len(segments)
        summary.n_balanced_fragments = sum(1 for s in segments if s.is_balanced)
        summary.n_unbalanced_fragments = sum(1 for s in segments if s.is_unbalanced)
        summary.mean_fragments_per_viewpoint = len(segments) / len(viewpoints)
        summary.mean_viewpoint_size = sum(vp.total_length_of_viewpoint for vp in viewpoints) / len(viewpoints)
        summary.mean_viewpoint_score = sum(vp.score for vp in viewpoints) / len(viewpoints)

        summary.n_unique_baits = sum(s.n_baits for s in segments)
        summary.capture_size = sum(_covered_positions(s) for s in segments)
        summary.margin_nucleotides = sum(s.total_margin_size for s in segments)
        summary.estimated_probe_count = _estimate_probe_count(segments, probe_length)

        evaluations = [BaitedFragmentEvaluation.from_segment(s) for s in segments]
        summary.n_well_placed_fragments = sum(1 for e in evaluations if e.is_well_placed)
        summary.n_unilateral_fragments = sum(1 for e in evaluations if e.is_unilateral)
        summary.n_shifted_fragments = sum(1 for e in evaluations if e.is_shifted)
        summary.n_zero_bait_fragments = sum(1 for e in evaluations if e.has_zero_baits)
        summary.n_high_repeat_fragments = sum(
            1 for s in segments if s.has_high_margin_repeat_content(max_repeat_content)
        )
        return summary

    def as_dict(self) -> Dict[str, float]:
        """Report lines in display order."""
        return {
            "Genes": self.n_genes,
            "Resolved genes": self.n_resolved_genes,
            "Viewpoints": self.n_viewpoints,
            "Resolved viewpoints": self.n_resolved_viewpoints,
            "Patched viewpoints": self.n_patched_viewpoints,
            "Unique fragments": self.n_unique_fragments,
            "Balanced fragments": self.n_balanced_fragments,
            "Unbalanced fragments": self.n_unbalanced_fragments,
            "Mean fragments per viewpoint": round(self.mean_fragments_per_viewpoint, 2),
            "Mean viewpoint size (bp)": round(self.mean_viewpoint_size, 1),
            "Mean viewpoint score": round(self.mean_viewpoint_score, 4),
            "Unique baits": self.n_unique_baits,
            "Capture size (bp)": self.capture_size,
            "Margin nucleotides": self.margin_nucleotides,
            "Estimated probe count": self.estimated_probe_count,
            "Well-placed baited fragments": self.n_well_placed_fragments,
            "Unilateral baited fragments": self.n_unilateral_fragments,
            "Shifted baited fragments": self.n_shifted_fragments,
            "Fragments without baits": self.n_zero_bait_fragments,
            "Fragments with repetitive margins": self.n_high_repeat_fragments,
        }


def _covered_positions(segment: Segment) -> int:
    covered: Set[int] = set()
    for bait in segment.baits:
        covered.update(range(bait.start, bait.end + 1))
    return len(covered)


def _estimate_probe_count(segments: Sequence[Segment], probe_length: int) -> int:
    """Probes needed to tile the non-repetitive part of all margins."""
    if not segments:
        return 0
    repeats = [s.mean_margin_repeat_content for s in segments]
    repeats = [r for r in repeats if not math.isnan(r)]
    mean_repeat = sum(repeats) / len(repeats) if repeats else 0.0
    margin_nucleotides = sum(s.total_margin_size for s in segments)
    return int(margin_nucleotides * (1 - mean_repeat)) // probe_length
