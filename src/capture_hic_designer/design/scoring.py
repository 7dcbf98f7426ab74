"""Viewpoint quality scores.

Coverage preference around the anchor is modelled with normal distributions
centred on the anchor whose standard deviation is a sixth of the relevant
window, so three standard deviations span the window on each side.
"""

from __future__ import annotations

from statistics import NormalDist
from typing import Iterable, Tuple

SD_FRACTION = 6.0


def _distribution(window: float) -> NormalDist:
    return NormalDist(mu=0.0, sigma=window / SD_FRACTION)


def simple_score(start: int, anchor: int, end: int, mean_fragment_length: float) -> float:
    """Probability mass of ``[start, end]`` under N(anchor, meanFragLen/6)."""
    dist = _distribution(mean_fragment_length)
    return dist.cdf(end - anchor) - dist.cdf(start - anchor)


def upstream_probability(from_dist: int, to_dist: int, dist: NormalDist) -> float:
    """Mass of the part of ``[from_dist, to_dist]`` that lies left of the anchor."""
    if from_dist >= to_dist:
        return 0.0
    return dist.cdf(min(to_dist, 0)) - dist.cdf(min(from_dist, 0))


def downstream_probability(from_dist: int, to_dist: int, dist: NormalDist) -> float:
    """Mass of the part of ``[from_dist, to_dist]`` that lies right of the anchor."""
    if from_dist >= to_dist:
        return 0.0
    return dist.cdf(max(to_dist, 0)) - dist.cdf(max(from_dist, 0))


def extended_score(spans: Iterable[Tuple[int, int]], anchor: int, size_up: int,
                   size_down: int, is_positive_strand: bool = True) -> float:
    """Sum of the probability mass of the selected fragments.

    Args:
        spans: ``(start, end)`` of each selected fragment
        anchor: Anchor position
        size_up: Upstream half-window relative to the strand
        size_down: Downstream half-window relative to the strand
        is_positive_strand: Strand of the anchor; on the minus strand the
            upstream window lies to the right of the anchor

    Returns:
        Unnormalised score, can exceed 1
    """
    left, right = (size_up, size_down) if is_positive_strand else (size_down, size_up)
    dist_left = _distribution(left)
    dist_right = _distribution(right)

    total = 0.0
    for start, end in spans:
        from_dist, to_dist = start - anchor, end - anchor
        total += upstream_probability(from_dist, to_dist, dist_left)
        total += downstream_probability(from_dist, to_dist, dist_right)
    return total
