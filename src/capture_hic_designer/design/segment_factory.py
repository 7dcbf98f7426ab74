"""Restriction cut sites around an anchor."""

from __future__ import annotations

import bisect
import re
from typing import Dict, List, Sequence

from loguru import logger

from ..core.genome import GenomeSequenceAccess
from ..models import RestrictionEnzyme

ALL_ENZYMES = "ALL"


class SegmentFactory:
    """Cut positions of the chosen enzymes in a window around an anchor.

    A cut position is the first base (1-based) after the enzyme cuts, so
    fragment ``j`` spans ``[cuts[j], cuts[j + 1] - 1]``. The window
    ``[anchor - max_up, anchor + max_down]`` is clamped to the chromosome.
    """

    def __init__(self, contig: str, anchor: int, genome: GenomeSequenceAccess,
                 chrom_length: int, max_up: int, max_down: int,
                 enzymes: Sequence[RestrictionEnzyme]):
        self.contig = contig
        self.anchor = anchor
        self.chrom_length = chrom_length

        self.window_start = max(1, anchor - max_up)
        self.window_end = min(chrom_length, anchor + max_down)
        if self.window_start != anchor - max_up or self.window_end != anchor + max_down:
            logger.trace(f"Clamped window of {contig}:{anchor} to {self.window_start}-{self.window_end}")

        sequence = genome.subsequence(contig, self.window_start, self.window_end)

        self.cuts_by_enzyme: Dict[str, List[int]] = {}
        all_positions = set()
        for enzyme in enzymes:
            # lookahead so that overlapping motif occurrences are all found
            pattern = re.compile(f"(?=({enzyme.regex}))", re.IGNORECASE)
            positions = []
            for match in pattern.finditer(sequence):
                pos = self.window_start + match.start() + enzyme.cut_offset
                if 1 <= pos <= chrom_length:
                    positions.append(pos)
            self.cuts_by_enzyme[enzyme.name] = positions
            all_positions.update(positions)

        self.cuts_by_enzyme[ALL_ENZYMES] = sorted(all_positions)

    @property
    def max_dist_up(self) -> int:
        return self.anchor - self.window_start

    @property
    def max_dist_down(self) -> int:
        return self.window_end - self.anchor

    @property
    def reached_upstream_boundary(self) -> bool:
        """True if the window starts at the first base of the chromosome."""
        return self.window_start <= 1

    @property
    def reached_downstream_boundary(self) -> bool:
        """True if the window ends at the last base of the chromosome."""
        return self.window_end >= self.chrom_length

    def all_cuts(self) -> List[int]:
        return self.cuts_by_enzyme[ALL_ENZYMES]

    def upstream_cut(self, j: int) -> int:
        """Start of fragment ``j``."""
        return self.all_cuts()[j]

    def downstream_cut(self, j: int) -> int:
        """Start of the fragment after fragment ``j``."""
        return self.all_cuts()[j + 1]

    def n_cuts_upstream_of(self, pos: int) -> int:
        """Number of cuts strictly before ``pos``."""
        return bisect.bisect_left(self.all_cuts(), pos)

    def n_cuts_downstream_of(self, pos: int) -> int:
        """Number of cuts strictly after ``pos``."""
        cuts = self.all_cuts()
        return len(cuts) - bisect.bisect_right(cuts, pos)

    def fragment_bounds(self) -> List[tuple]:
        """``(start, end)`` of every fragment between consecutive cuts."""
        cuts = self.all_cuts()
        return [(cuts[j], cuts[j + 1] - 1) for j in range(len(cuts) - 1)]
