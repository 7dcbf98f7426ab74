#!/usr/bin/env python3
"""
Tests for cut site discovery around an anchor.
"""

from capture_hic_designer.core.genome import InMemoryGenome
from capture_hic_designer.design.segment_factory import ALL_ENZYMES, SegmentFactory
from capture_hic_designer.models import RestrictionEnzyme

from conftest import CHROM_LENGTH, GATC_POSITIONS


def test_cuts_in_window(gatc_genome, dpnii):
    factory = SegmentFactory("chrT", 125, gatc_genome, CHROM_LENGTH, 115, 115, [dpnii])

    assert (factory.window_start, factory.window_end) == (10, 240)
    assert factory.all_cuts() == [21, 45, 69, 93, 113, 137, 161, 185, 209, 229]
    assert factory.cuts_by_enzyme["DpnII"] == factory.all_cuts()
    assert factory.n_cuts_upstream_of(125) == 5
    assert factory.n_cuts_downstream_of(125) == 5
    assert factory.max_dist_up == 115
    assert factory.max_dist_down == 115
    assert not factory.reached_upstream_boundary
    assert not factory.reached_downstream_boundary


def test_fragment_bounds(gatc_genome, dpnii):
    factory = SegmentFactory("chrT", 125, gatc_genome, CHROM_LENGTH, 115, 115, [dpnii])
    bounds = factory.fragment_bounds()

    assert len(bounds) == 9
    assert (113, 136) in bounds
    assert factory.upstream_cut(4) == 113
    assert factory.downstream_cut(4) == 137


def test_window_clamped_to_chromosome(gatc_genome, dpnii):
    factory = SegmentFactory("chrT", 295, gatc_genome, CHROM_LENGTH, 10_000, 10_000, [dpnii])

    assert factory.window_start == 1
    assert factory.window_end == CHROM_LENGTH
    assert factory.reached_upstream_boundary
    assert factory.reached_downstream_boundary
    assert factory.all_cuts() == GATC_POSITIONS


def test_cut_offset_is_applied(gatc_genome):
    enzyme = RestrictionEnzyme.from_site("Mid", "GA^TC")
    factory = SegmentFactory("chrT", 150, gatc_genome, CHROM_LENGTH, 1000, 1000, [enzyme])
    assert factory.all_cuts() == [p + 2 for p in GATC_POSITIONS]


def test_isoschizomers_are_merged(gatc_genome, dpnii):
    mboi = RestrictionEnzyme.from_string("MboI")
    factory = SegmentFactory("chrT", 150, gatc_genome, CHROM_LENGTH, 1000, 1000, [dpnii, mboi])

    assert factory.cuts_by_enzyme["MboI"] == GATC_POSITIONS
    assert factory.cuts_by_enzyme[ALL_ENZYMES] == GATC_POSITIONS


def test_overlapping_and_lowercase_sites():
    genome = InMemoryGenome({"chr1": "TTaaaaTT"})
    enzyme = RestrictionEnzyme.from_site("AA", "A^A")
    factory = SegmentFactory("chr1", 4, genome, 8, 10, 10, [enzyme])
    assert factory.all_cuts() == [4, 5, 6]


def test_no_cuts():
    genome = InMemoryGenome({"chr1": "A" * 50})
    enzyme = RestrictionEnzyme.from_string("DpnII")
    factory = SegmentFactory("chr1", 25, genome, 50, 10, 10, [enzyme])
    assert factory.all_cuts() == []
    assert factory.fragment_bounds() == []
    assert factory.n_cuts_upstream_of(25) == 0
