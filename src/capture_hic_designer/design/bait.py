"""Capture probes (baits) and their sequence composition."""

from __future__ import annotations

import math
from typing import Tuple

from ..core.alignability import NO_DATA, AlignabilityMap
from ..core.genome import GenomeSequenceAccess


def gc_content(sequence: str) -> float:
    """Fraction of G/C bases (either case); NaN for an empty sequence."""
    if not sequence:
        return math.nan
    upper = sequence.upper()
    return (upper.count("G") + upper.count("C")) / len(sequence)


def repeat_content(sequence: str) -> float:
    """Fraction of soft-masked (lowercase) letters among all letters."""
    lower = sum(1 for c in sequence if c.islower())
    upper = sum(1 for c in sequence if c.isupper())
    if lower + upper == 0:
        return math.nan
    return lower / (lower + upper)


class Bait:
    """A probe window ``[start, end]`` with GC, repeat and alignability values.

    The alignability score is the mean alignability of all k-mers starting
    inside the probe, or -1 if any of them lies on unscored sequence.
    """

    def __init__(self, ref_id: str, start: int, end: int,
                 genome: GenomeSequenceAccess, alignability_map: AlignabilityMap):
        self.ref_id = ref_id
        self.start = start
        self.end = end

        sequence = genome.subsequence(ref_id, start, end)
        self.gc_content = gc_content(sequence)
        self.repeat_content = repeat_content(sequence)
        self.alignability_score = self._mean_alignability(alignability_map)

    def _mean_alignability(self, alignability_map: AlignabilityMap) -> float:
        last_kmer_start = self.end - alignability_map.kmer_size + 1
        scores = alignability_map.score_over_range(self.start, last_kmer_start)
        if NO_DATA in scores:
            return float(NO_DATA)
        return sum(scores) / len(scores)

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def key(self) -> Tuple[str, int]:
        return self.ref_id, self.start

    @property
    def has_unscored_kmers(self) -> bool:
        return self.alignability_score == NO_DATA

    def is_usable(self, min_gc: float, max_gc: float, max_alignability: float) -> bool:
        """Check GC content and mean alignability against the thresholds.

        Repeat content is reported but does not gate usability.
        """
        if self.has_unscored_kmers:
            return False
        return min_gc <= self.gc_content <= max_gc and self.alignability_score <= max_alignability

    def __repr__(self) -> str:
        return (f"Bait({self.ref_id}:{self.start}-{self.end}, GC={self.gc_content:.2f}, "
                f"align={self.alignability_score:.2f}, rep={self.repeat_content:.2f})")
