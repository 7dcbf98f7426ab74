#!/usr/bin/env python3
"""
Tests for simple and extended viewpoint scores.
"""

import math
from statistics import NormalDist

import pytest

from capture_hic_designer.design.scoring import (
    downstream_probability, extended_score, simple_score, upstream_probability
)


def test_simple_score_of_centred_fragment():
    # fragment as long as the mean fragment length covers +-3 SD
    score = simple_score(1000, 1300, 1600, 600)
    assert score == pytest.approx(math.erf(3 / math.sqrt(2)), rel=1e-6)


def test_simple_score_is_higher_when_centred():
    centred = simple_score(900, 1000, 1100, 400)
    shifted = simple_score(1000, 1000, 1200, 400)
    assert centred > shifted


def test_partial_probabilities():
    dist = NormalDist(0, 10)
    assert upstream_probability(-20, 20, dist) == pytest.approx(dist.cdf(0) - dist.cdf(-20))
    assert downstream_probability(-20, 20, dist) == pytest.approx(dist.cdf(20) - dist.cdf(0))
    assert upstream_probability(5, 20, dist) == 0.0
    assert downstream_probability(-20, -5, dist) == 0.0
    assert upstream_probability(10, 10, dist) == 0.0


def test_extended_score_sums_fragments():
    one = extended_score([(900, 1100)], 1000, 600, 600)
    two = extended_score([(900, 1000), (1001, 1100)], 1000, 600, 600)
    assert one == pytest.approx(two, abs=0.01)
    assert 0.0 < one < 1.0


def test_extended_score_full_window():
    score = extended_score([(1, 20000)], 10000, 5000, 1500)
    assert score == pytest.approx(1.0, abs=1e-6)


def test_extended_score_respects_strand():
    # upstream half-window is wide, so the same distance scores less there
    spans = [(1000, 1300)]
    plus = extended_score(spans, 1000, 6000, 600, is_positive_strand=True)
    minus = extended_score(spans, 1000, 6000, 600, is_positive_strand=False)
    assert minus < plus


def test_empty_selection():
    assert extended_score([], 1000, 5000, 1500) == 0.0
