"""Restriction fragments (segments), their composition and bait placement."""

from __future__ import annotations

import math
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Tuple

from loguru import logger

from ..core.alignability import AlignabilityMap
from ..core.genome import GenomeSequenceAccess
from .bait import Bait, gc_content, repeat_content

if TYPE_CHECKING:
    from ..config import ViewPointConfig


class SegmentStatus(Enum):
    """Classification of a fragment after bait placement."""
    UNSELECTABLE = "unselectable"
    BALANCED = "balanced"
    UNBALANCED = "unbalanced"


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else math.nan


class Segment:
    """A restriction fragment ``[start, end]`` (1-based, inclusive).

    Whole-fragment and margin composition is computed on construction.
    Baits are placed later by :meth:`set_usable_baits`, which also sets
    :attr:`status`. Until then the fragment is unselectable.
    """

    def __init__(self, ref_id: str, start: int, end: int, genome: GenomeSequenceAccess,
                 margin_size: int, overlaps_tss: bool = False):
        if end < start:
            raise ValueError(f"Segment end ({end}) is before start ({start})")

        self.ref_id = ref_id
        self.start = start
        self.end = end
        self.margin_size = margin_size
        self.overlaps_tss = overlaps_tss
        self.selected = False
        self.originally_selected = False
        self.status = SegmentStatus.UNSELECTABLE
        self.baits_up: List[Bait] = []
        self.baits_down: List[Bait] = []
        self._genome = genome

        sequence = genome.subsequence(ref_id, start, end)
        self.gc_content = gc_content(sequence)
        self.repeat_content = repeat_content(sequence)
        self._calculate_margin_content()

    def _calculate_margin_content(self) -> None:
        margins = self.margins()
        if len(margins) == 1:
            # too short for two margins
            self.gc_content_up = self.gc_content_down = self.gc_content
            self.repeat_content_up = self.repeat_content_down = self.repeat_content
            return

        (up_start, up_end), (down_start, down_end) = margins
        up = self._genome.subsequence(self.ref_id, up_start, up_end)
        down = self._genome.subsequence(self.ref_id, down_start, down_end)
        self.gc_content_up = gc_content(up)
        self.gc_content_down = gc_content(down)
        self.repeat_content_up = repeat_content(up)
        self.repeat_content_down = repeat_content(down)

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def margins(self) -> List[Tuple[int, int]]:
        """Two disjoint margins, or the whole fragment if it is too short."""
        if 2 * self.margin_size < self.length:
            return [
                (self.start, self.start + self.margin_size - 1),
                (self.end - self.margin_size + 1, self.end),
            ]
        return [(self.start, self.end)]

    @property
    def total_margin_size(self) -> int:
        return min(2 * self.margin_size, self.length)

    @property
    def mean_margin_repeat_content(self) -> float:
        return 0.5 * (self.repeat_content_up + self.repeat_content_down)

    def has_high_margin_repeat_content(self, max_repeat_content: float) -> bool:
        """True if either margin exceeds ``max_repeat_content`` or has no letters to judge."""
        return any(
            math.isnan(repeat) or repeat > max_repeat_content
            for repeat in (self.repeat_content_up, self.repeat_content_down)
        )

    # Selection state

    def set_selected(self, selected: bool, update_original: bool = False) -> None:
        """Set the selection; ``update_original`` also records it as the initial state."""
        self.selected = selected
        if update_original:
            self.originally_selected = selected

    def reset_selection(self) -> None:
        self.selected = self.originally_selected

    @property
    def was_modified(self) -> bool:
        return self.selected != self.originally_selected

    # Classification

    @property
    def is_balanced(self) -> bool:
        return self.status == SegmentStatus.BALANCED

    @property
    def is_unbalanced(self) -> bool:
        return self.status == SegmentStatus.UNBALANCED

    @property
    def is_unselectable(self) -> bool:
        return self.status == SegmentStatus.UNSELECTABLE

    # Baits

    @property
    def n_baits_up(self) -> int:
        return len(self.baits_up)

    @property
    def n_baits_down(self) -> int:
        return len(self.baits_down)

    @property
    def n_baits(self) -> int:
        return len(self.baits_up) + len(self.baits_down)

    @property
    def baits(self) -> List[Bait]:
        return self.baits_up + self.baits_down

    def set_usable_baits(self, config: "ViewPointConfig", alignability_map: AlignabilityMap,
                         max_alignability: Optional[float] = None) -> SegmentStatus:
        """Place up to ``min_bait_count`` baits per margin and classify the fragment.

        Args:
            config: Design parameters (probe length, bait count, GC bounds)
            alignability_map: Alignability of the fragment's chromosome
            max_alignability: Overrides ``config.max_mean_kmer_alignability``

        Returns:
            The resulting status
        """
        if max_alignability is None:
            max_alignability = config.max_mean_kmer_alignability
        bmin = config.min_bait_count
        probe = config.probe_length
        thresholds = (config.min_gc_content, config.max_gc_content, max_alignability)

        self.baits_up = []
        self.baits_down = []

        if self.length < probe:
            self.status = SegmentStatus.UNSELECTABLE
            return self.status

        self._place_upstream(bmin, probe, alignability_map, *thresholds)
        self._place_downstream(bmin, probe, alignability_map, *thresholds)
        self.remove_redundant_baits()

        if self.n_baits_up >= bmin and self.n_baits_down >= bmin:
            self.status = SegmentStatus.BALANCED
        elif self.n_baits_up < bmin and self.n_baits_down < bmin:
            self.status = SegmentStatus.UNSELECTABLE
        else:
            # rescue: ask the deficient margin's partner for the missing baits
            if self.n_baits_up < bmin:
                missing = 2 * bmin - self.n_baits_up
                self._place_downstream(missing, probe, alignability_map, *thresholds)
            else:
                missing = 2 * bmin - self.n_baits_down
                self._place_upstream(missing, probe, alignability_map, *thresholds)
            self.remove_redundant_baits()

            if self.n_baits == 2 * bmin:
                self.status = SegmentStatus.UNBALANCED
            else:
                self.status = SegmentStatus.UNSELECTABLE

        logger.trace(f"{self.location_string}: {self.status.value} "
                     f"({self.n_baits_up} up, {self.n_baits_down} down)")
        return self.status

    def _place_upstream(self, n: int, probe: int, alignability_map: AlignabilityMap,
                        min_gc: float, max_gc: float, max_alignability: float) -> None:
        """Scan left to right from the fragment start."""
        self.baits_up = []
        margin_end = min(self.start + self.margin_size - 1, self.end)
        for i in range(self.start, margin_end - probe + 2):
            bait = Bait(self.ref_id, i, i + probe - 1, self._genome, alignability_map)
            if bait.is_usable(min_gc, max_gc, max_alignability):
                self.baits_up.append(bait)
            if len(self.baits_up) == n:
                break

    def _place_downstream(self, n: int, probe: int, alignability_map: AlignabilityMap,
                          min_gc: float, max_gc: float, max_alignability: float) -> None:
        """Scan right to left from the fragment end."""
        self.baits_down = []
        margin_start = max(self.end - self.margin_size + 1, self.start)
        for i in range(self.end - probe + 1, margin_start - 1, -1):
            bait = Bait(self.ref_id, i, i + probe - 1, self._genome, alignability_map)
            if bait.is_usable(min_gc, max_gc, max_alignability):
                self.baits_down.append(bait)
            if len(self.baits_down) == n:
                break

    def remove_redundant_baits(self) -> int:
        """Drop downstream baits that start where an upstream bait starts.

        Returns:
            Number of baits removed
        """
        upstream_keys = {b.key for b in self.baits_up}
        kept = [b for b in self.baits_down if b.key not in upstream_keys]
        removed = len(self.baits_down) - len(kept)
        self.baits_down = kept
        return removed

    @property
    def mean_bait_gc_content(self) -> float:
        return _mean([b.gc_content for b in self.baits])

    @property
    def mean_bait_alignability(self) -> float:
        return _mean([b.alignability_score for b in self.baits])

    @property
    def mean_bait_repeat_content(self) -> float:
        return _mean([b.repeat_content for b in self.baits])

    # Geometry

    def contains(self, pos: int) -> bool:
        return self.start <= pos <= self.end

    def overlaps(self, start: int, end: int) -> bool:
        """True if the fragment shares at least one base with ``[start, end]``."""
        return self.start <= end and start <= self.end

    def distances_to(self, anchor: int) -> Tuple[int, int]:
        """Start and end relative to ``anchor`` (negative means upstream in genome order)."""
        return self.start - anchor, self.end - anchor

    @property
    def location_string(self) -> str:
        location = f"{self.ref_id}:{self.start:,}-{self.end:,}"
        return f"{location} (*)" if self.overlaps_tss else location

    def __eq__(self, other) -> bool:
        if not isinstance(other, Segment):
            return NotImplemented
        return (self.ref_id, self.start, self.end) == (other.ref_id, other.start, other.end)

    def __hash__(self) -> int:
        return hash((self.ref_id, self.start, self.end))

    def __repr__(self) -> str:
        state = "selected" if self.selected else "not selected"
        return f"Segment({self.ref_id}:{self.start}-{self.end}, {self.status.value}, {state})"
