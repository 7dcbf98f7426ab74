"""Viewpoints: the set of restriction fragments targeted around one anchor."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from loguru import logger

from ..core.alignability import AlignabilityMap
from ..core.genome import GenomeSequenceAccess
from ..exceptions import ViewPointError
from ..models import Anchor, Approach
from .scoring import extended_score, simple_score
from .segment import Segment
from .segment_factory import SegmentFactory

if TYPE_CHECKING:
    from ..config import ViewPointConfig

# Simple viewpoints scoring below this are extended by a neighbour if patching is allowed
PATCHING_THRESHOLD = 0.6
SIMPLE_INITIAL_INCREMENT = 1000


class ViewPoint:
    """Fragments, selection and score of the design for one anchor.

    ``upstream_length`` and ``downstream_length`` are the search half-windows
    in genome orientation (left and right of the anchor); for minus-strand
    anchors they are swapped with respect to the configured values.
    """

    def __init__(self, chromosome: str, genomic_pos: int, config: "ViewPointConfig",
                 target_name: str = "", accession: str = "", is_positive_strand: bool = True,
                 upstream_length: Optional[int] = None, downstream_length: Optional[int] = None,
                 mean_fragment_length: Optional[float] = None,
                 promoter_number: int = 1, total_promoters: int = 1):
        self.chromosome = chromosome
        self.genomic_pos = genomic_pos
        self.config = config
        self.target_name = target_name
        self.accession = accession
        self.is_positive_strand = is_positive_strand
        self.mean_fragment_length = mean_fragment_length
        self.promoter_number = promoter_number
        self.total_promoters = total_promoters
        self.approach = config.approach

        up = config.size_up if upstream_length is None else upstream_length
        down = config.size_down if downstream_length is None else downstream_length
        if is_positive_strand:
            self.upstream_length, self.downstream_length = up, down
        else:
            self.upstream_length, self.downstream_length = down, up

        self.start = max(1, genomic_pos - self.upstream_length)
        self.end = genomic_pos + self.downstream_length
        self.chrom_length: Optional[int] = None
        self.segments: List[Segment] = []
        self.center_index: Optional[int] = None
        self._score = 0.0

    # Construction

    def build_segments(self, genome: GenomeSequenceAccess, chrom_length: int,
                       alignability_map: AlignabilityMap) -> None:
        """Find cut sites with adaptive window growth, trim and place baits.

        Raises:
            ViewPointError: If the anchor lies outside the chromosome
        """
        if not 1 <= self.genomic_pos <= chrom_length:
            raise ViewPointError(f"{self.target_name} at {self.genomic_location_string} lies outside "
                                 f"{self.chromosome} (length {chrom_length:,})")
        self.chrom_length = chrom_length
        self.end = min(self.end, chrom_length)

        factory = self._grow_window(genome, chrom_length)

        segments = [
            Segment(self.chromosome, start, end, genome, self.config.margin_size)
            for start, end in factory.fragment_bounds()
        ]
        self.segments = self._trim(segments)
        self.center_index = None

        for segment in self.segments:
            segment.set_usable_baits(self.config, alignability_map)

    def _grow_window(self, genome: GenomeSequenceAccess, chrom_length: int) -> SegmentFactory:
        """Enlarge the search window until both sides have two cuts or hit the chromosome end."""
        up, down = self.upstream_length, self.downstream_length
        if self.approach == Approach.SIMPLE:
            increment = SIMPLE_INITIAL_INCREMENT
            up_ref = down_ref = self.genomic_pos
        else:
            increment = max(1, int(2 * self._mean_fragment_length_or(self.upstream_length)))
            up_ref = self.genomic_pos - self.upstream_length
            down_ref = self.genomic_pos + self.downstream_length

        iteration = 0
        while True:
            factory = SegmentFactory(self.chromosome, self.genomic_pos, genome, chrom_length,
                                     up, down, self.config.enzymes)
            iteration += 1
            grown = False
            if factory.n_cuts_upstream_of(up_ref) < 2 and not factory.reached_upstream_boundary:
                up += increment
                grown = True
            if factory.n_cuts_downstream_of(down_ref) < 2 and not factory.reached_downstream_boundary:
                down += increment
                grown = True
            if not grown:
                break
            increment *= 2

        logger.trace(f"{self.target_name}: cut search took {iteration} iteration(s), "
                     f"window {factory.window_start}-{factory.window_end}")
        return factory

    def _mean_fragment_length_or(self, default: float) -> float:
        return self.mean_fragment_length if self.mean_fragment_length else default

    def _trim(self, segments: List[Segment]) -> List[Segment]:
        """Keep fragments overlapping the requested window plus one neighbour per side."""
        lower = self.genomic_pos - self.upstream_length
        upper = self.genomic_pos + self.downstream_length
        overlapping = [i for i, s in enumerate(segments) if s.overlaps(lower, upper)]
        if not overlapping:
            logger.warning(f"No fragment of {self.target_name} overlaps {self.chromosome}:"
                           f"{lower}-{upper}, keeping all {len(segments)} fragments")
            return segments
        first, last = overlapping[0], overlapping[-1]
        return segments[max(0, first - 1):min(len(segments), last + 2)]

    def _find_center(self) -> Optional[int]:
        for i, segment in enumerate(self.segments):
            if segment.contains(self.genomic_pos):
                segment.overlaps_tss = True
                return i
        logger.warning(f"No fragment contains {self.target_name} ({self.genomic_location_string})")
        return None

    def is_segment_valid(self, segment: Segment) -> bool:
        """Long enough and balanced (or unbalanced where allowed)."""
        if segment.length < self.config.min_fragment_size:
            return False
        if segment.is_balanced:
            return True
        return self.config.allow_unbalanced_margins and segment.is_unbalanced

    def is_segment_margin_valid(self, segment: Segment, direction: str) -> bool:
        """Check GC and repeat content of the ``"up"`` or ``"down"`` margin of a fragment."""
        if direction == "up":
            gc, repeat = segment.gc_content_up, segment.repeat_content_up
        elif direction == "down":
            gc, repeat = segment.gc_content_down, segment.repeat_content_down
        else:
            raise ValueError(f"Margin direction must be 'up' or 'down', got {direction!r}")
        return (self.config.min_gc_content <= gc <= self.config.max_gc_content
                and repeat <= self.config.max_repeat_content)

    # Selection policies

    def select_simple(self) -> None:
        """Select the fragment containing the anchor, optionally patched with a neighbour.

        Only the centre fragment and its immediate neighbours are kept.
        """
        self.approach = Approach.SIMPLE
        center = self._find_center()
        self.center_index = center
        if center is None:
            return

        center_seg = self.segments[center]
        up_seg = self.segments[center - 1] if center > 0 else None
        down_seg = self.segments[center + 1] if center < len(self.segments) - 1 else None

        if self.is_segment_valid(center_seg):
            center_seg.set_selected(True, update_original=True)
            self.start, self.end = center_seg.start, center_seg.end
            self._score = self.calculate_simple_score(self.start, self.end)

            if self.config.allow_patching and self._score < PATCHING_THRESHOLD:
                self.start, self.end = self._patch(center_seg, up_seg, down_seg)
                self._score = self.calculate_simple_score(self.start, self.end)

        self.segments = [s for s in (up_seg, center_seg, down_seg) if s is not None]
        self.center_index = 0 if up_seg is None else 1

    def _patch(self, center_seg: Segment, up_seg: Optional[Segment],
               down_seg: Optional[Segment]) -> Tuple[int, int]:
        """Add the neighbour on the side with more uncovered distance if it is valid."""
        pos = self.genomic_pos
        if center_seg.end - pos < pos - center_seg.start and down_seg is not None:
            if self.is_segment_valid(down_seg):
                down_seg.set_selected(True, update_original=True)
                logger.debug(f"Patched {self.target_name} with downstream fragment {down_seg.location_string}")
                return center_seg.start, down_seg.end
        elif up_seg is not None:
            if self.is_segment_valid(up_seg):
                up_seg.set_selected(True, update_original=True)
                logger.debug(f"Patched {self.target_name} with upstream fragment {up_seg.location_string}")
                return up_seg.start, center_seg.end
        return center_seg.start, center_seg.end

    def select_extended(self) -> None:
        """Select all valid fragments within the strand-aware half-windows."""
        self.approach = Approach.EXTENDED
        self.center_index = self._find_center()
        lower = self.genomic_pos - self.upstream_length
        upper = self.genomic_pos + self.downstream_length
        self._select_in_range(lower, upper, update_original=True)
        self.refresh_start_and_end_pos()
        self._score = self.calculate_extended_score()

    def _select_in_range(self, lower: int, upper: int, update_original: bool) -> None:
        for segment in self.segments:
            selected = (
                segment.length >= self.config.min_fragment_size
                and not (segment.end < lower or upper < segment.start)
                and not segment.is_unselectable
                and (self.config.allow_unbalanced_margins or not segment.is_unbalanced)
            )
            segment.set_selected(selected, update_original)

    # Scores

    def calculate_simple_score(self, start: int, end: int) -> float:
        return simple_score(start, self.genomic_pos, end,
                            self._mean_fragment_length_or(self.upstream_length))

    def calculate_extended_score(self) -> float:
        if self.is_positive_strand:
            size_up, size_down = self.upstream_length, self.downstream_length
        else:
            size_up, size_down = self.downstream_length, self.upstream_length
        spans = [(s.start, s.end) for s in self.active_segments]
        return extended_score(spans, self.genomic_pos, size_up, size_down, self.is_positive_strand)

    def update_score(self) -> float:
        """Recompute bounds and score after the selection was edited."""
        self.refresh_start_and_end_pos()
        if self.approach == Approach.SIMPLE:
            self._score = self.calculate_simple_score(self.start, self.end)
        else:
            self._score = self.calculate_extended_score()
        return self.score

    @property
    def score(self) -> float:
        if not self.active_segments:
            return 0.0
        return self._score

    # Mutation

    def refresh_start_and_end_pos(self) -> None:
        """Set bounds to the selected fragments; unchanged if none is selected."""
        selected = self.active_segments
        if not selected:
            return
        self.start = min(s.start for s in selected)
        self.end = max(s.end for s in selected)

    def reset_segments_to_original_state(self) -> None:
        for segment in self.segments:
            segment.reset_selection()

    def was_modified(self) -> bool:
        return any(segment.was_modified for segment in self.segments)

    def zoom(self, factor: float) -> None:
        """Scale the half-windows.

        Extended viewpoints re-select valid fragments in the new window
        without touching the recorded original selection; Simple viewpoints
        keep their selection.
        """
        self.upstream_length = int(self.upstream_length * factor)
        self.downstream_length = int(self.downstream_length * factor)
        self.start = max(1, self.genomic_pos - self.upstream_length)
        self.end = self.genomic_pos + self.downstream_length
        if self.chrom_length is not None:
            self.end = min(self.end, self.chrom_length)
        if self.approach == Approach.EXTENDED:
            self._select_in_range(self.start, self.end, update_original=False)
            self.refresh_start_and_end_pos()
            self._score = self.calculate_extended_score()

    # Reporting

    @property
    def active_segments(self) -> List[Segment]:
        return [s for s in self.segments if s.selected]

    @property
    def center_segment(self) -> Optional[Segment]:
        if self.center_index is None:
            return None
        return self.segments[self.center_index]

    @property
    def n_selected_fragments(self) -> int:
        return len(self.active_segments)

    @property
    def has_valid_digest(self) -> bool:
        return self.n_selected_fragments > 0

    @property
    def is_center_segment_selected(self) -> bool:
        center = self.center_segment
        return center is not None and center.selected

    @property
    def n_baits_up_down(self) -> Tuple[int, int]:
        active = self.active_segments
        return sum(s.n_baits_up for s in active), sum(s.n_baits_down for s in active)

    @property
    def n_high_repeat_fragments(self) -> int:
        """Selected fragments with a margin above the repeat content limit."""
        limit = self.config.max_repeat_content
        return sum(1 for s in self.active_segments if s.has_high_margin_repeat_content(limit))

    @property
    def total_length_of_active_segments(self) -> int:
        return sum(s.length for s in self.active_segments)

    @property
    def total_length_of_viewpoint(self) -> int:
        """Distance from the first selected base to the last one (0 if none)."""
        active = self.active_segments
        if not active:
            return 0
        return max(s.end for s in active) - min(s.start for s in active) + 1

    @property
    def total_margin_size(self) -> int:
        return sum(s.total_margin_size for s in self.active_segments)

    def _min_selected_pos(self) -> int:
        return min((s.start for s in self.active_segments), default=self.genomic_pos - self.upstream_length)

    def _max_selected_pos(self) -> int:
        return max((s.end for s in self.active_segments), default=self.genomic_pos + self.downstream_length)

    @property
    def display_start(self) -> int:
        return min(self._min_selected_pos(), self.genomic_pos - self.upstream_length)

    @property
    def display_end(self) -> int:
        return max(self._max_selected_pos(), self.genomic_pos + self.downstream_length)

    @property
    def upstream_span(self) -> int:
        """Selected distance 5' of the anchor, relative to the strand."""
        if not self.active_segments:
            return 0
        if self.is_positive_strand:
            return self.genomic_pos - self._min_selected_pos()
        return self._max_selected_pos() - self.genomic_pos

    @property
    def downstream_span(self) -> int:
        """Selected distance 3' of the anchor, relative to the strand."""
        if not self.active_segments:
            return 0
        if self.is_positive_strand:
            return self._max_selected_pos() - self.genomic_pos
        return self.genomic_pos - self._min_selected_pos()

    @property
    def genomic_location_string(self) -> str:
        return f"{self.chromosome}:{self.genomic_pos:,}"

    def to_dict(self) -> Dict:
        """Summary row for reports."""
        up, down = self.n_baits_up_down
        return {
            "target": self.target_name,
            "accession": self.accession,
            "chromosome": self.chromosome,
            "position": self.genomic_pos,
            "strand": "+" if self.is_positive_strand else "-",
            "promoter": f"{self.promoter_number}/{self.total_promoters}",
            "approach": self.approach.value,
            "start": self.start,
            "end": self.end,
            "score": round(self.score, 4),
            "selected_fragments": self.n_selected_fragments,
            "active_length": self.total_length_of_active_segments,
            "baits_up": up,
            "baits_down": down,
            "high_repeat_fragments": self.n_high_repeat_fragments,
            "center_selected": self.is_center_segment_selected,
            "modified": self.was_modified(),
        }

    def __eq__(self, other) -> bool:
        if not isinstance(other, ViewPoint):
            return NotImplemented
        return ((self.target_name, self.genomic_pos, self.chromosome)
                == (other.target_name, other.genomic_pos, other.chromosome))

    def __hash__(self) -> int:
        return hash((self.target_name, self.genomic_pos, self.chromosome))

    def __repr__(self) -> str:
        return f"ViewPoint({self.target_name} [{self.chromosome}:{self.start}-{self.end}])"


def create_viewpoint(anchor: Anchor, config: "ViewPointConfig", genome: GenomeSequenceAccess,
                     alignability_map: AlignabilityMap, mean_fragment_length: float,
                     chrom_length: Optional[int] = None) -> ViewPoint:
    """Build one viewpoint and apply the configured selection policy.

    Args:
        anchor: Anchor to design around
        config: Design parameters; ``config.approach`` picks the policy
        genome: Reference sequence access
        alignability_map: Alignability of the anchor's chromosome
        mean_fragment_length: Estimated mean restriction fragment length of the genome
        chrom_length: Chromosome length, read from ``genome`` if omitted

    Returns:
        The designed viewpoint
    """
    if chrom_length is None:
        chrom_length = genome.length(anchor.contig)

    if config.approach == Approach.SIMPLE:
        half_window = int(mean_fragment_length)
        up, down = half_window, half_window
    else:
        up, down = config.size_up, config.size_down

    viewpoint = ViewPoint(
        anchor.contig, anchor.position, config,
        target_name=anchor.name,
        accession=anchor.accession,
        is_positive_strand=anchor.is_positive_strand,
        upstream_length=up,
        downstream_length=down,
        mean_fragment_length=mean_fragment_length,
        promoter_number=anchor.promoter_number,
        total_promoters=anchor.total_promoters,
    )
    viewpoint.build_segments(genome, chrom_length, alignability_map)

    if config.approach == Approach.SIMPLE:
        viewpoint.select_simple()
    else:
        viewpoint.select_extended()
    return viewpoint
