#!/usr/bin/env python3
"""
Tests for design statistics.
"""

import pytest

from capture_hic_designer.design.summary import (
    BaitedFragmentEvaluation, DesignSummary, unique_active_segments
)
from capture_hic_designer.design.viewpoint import create_viewpoint
from capture_hic_designer.models import Anchor


@pytest.fixture
def shared_fragment_viewpoints(small_config, gatc_genome, flat_alignability):
    """Two anchors of different genes in the same fragment."""
    anchors = [
        Anchor(contig="chrT", position=125, name="GENE1"),
        Anchor(contig="chrT", position=130, name="GENE2"),
    ]
    return [create_viewpoint(a, small_config, gatc_genome, flat_alignability, 115) for a in anchors]


def test_shared_fragments_are_counted_once(shared_fragment_viewpoints):
    segments = unique_active_segments(shared_fragment_viewpoints)
    assert [(s.start, s.end) for s in segments] == [(113, 136)]


def test_summary(shared_fragment_viewpoints):
    summary = DesignSummary.from_viewpoints(shared_fragment_viewpoints, probe_length=10)

    assert summary.n_genes == 2
    assert summary.n_resolved_genes == 2
    assert summary.n_viewpoints == 2
    assert summary.n_resolved_viewpoints == 2
    assert summary.n_patched_viewpoints == 0
    assert summary.n_unique_fragments == 1
    assert summary.n_balanced_fragments == 1
    assert summary.n_unbalanced_fragments == 0
    assert summary.mean_fragments_per_viewpoint == 0.5
    assert summary.mean_viewpoint_size == 24
    assert summary.n_unique_baits == 2
    assert summary.capture_size == 20
    assert summary.margin_nucleotides == 24
    assert summary.estimated_probe_count == 2
    assert summary.n_well_placed_fragments == 1
    assert summary.n_shifted_fragments == 0
    assert summary.n_zero_bait_fragments == 0


def test_fragments_with_repetitive_margins(small_config, gatc_sequence, flat_alignability):
    from capture_hic_designer.core.genome import InMemoryGenome

    genome = InMemoryGenome({"chrT": gatc_sequence.lower()})
    anchor = Anchor(contig="chrT", position=125, name="MASKED")
    viewpoints = [create_viewpoint(anchor, small_config, genome, flat_alignability, 115)]

    strict = DesignSummary.from_viewpoints(viewpoints, probe_length=10, max_repeat_content=0.6)
    assert strict.n_unique_fragments == 1
    assert strict.n_high_repeat_fragments == 1
    assert strict.as_dict()["Fragments with repetitive margins"] == 1

    lenient = DesignSummary.from_viewpoints(viewpoints, probe_length=10)
    assert lenient.n_high_repeat_fragments == 0


def test_empty_summary():
    summary = DesignSummary.from_viewpoints([], probe_length=120)
    report = summary.as_dict()

    assert report["Viewpoints"] == 0
    assert report["Capture size (bp)"] == 0
    assert list(report)[0] == "Genes"


class TestBaitedFragmentEvaluation:

    def test_shifted(self):
        evaluation = BaitedFragmentEvaluation(n_baits=2, n_baits_up=1, n_baits_down=1,
                                              n_up_shifted=1, n_down_shifted=0)
        assert evaluation.is_bilateral
        assert evaluation.is_shifted
        assert not evaluation.is_well_placed

    def test_unilateral(self):
        evaluation = BaitedFragmentEvaluation(n_baits=2, n_baits_up=2, n_baits_down=0,
                                              n_up_shifted=1, n_down_shifted=0)
        assert evaluation.is_unilateral
        assert not evaluation.is_shifted
        assert not evaluation.has_zero_baits

    def test_zero_baits(self):
        evaluation = BaitedFragmentEvaluation(0, 0, 0, 0, 0)
        assert evaluation.has_zero_baits
        assert evaluation.is_unilateral
