#!/usr/bin/env python3
"""
Shared fixtures for viewpoint design tests.
"""

import pytest

from capture_hic_designer.config import ViewPointConfig
from capture_hic_designer.core.alignability import AlignabilityMap
from capture_hic_designer.core.genome import InMemoryGenome
from capture_hic_designer.models import RestrictionEnzyme

# one-based positions of GATC in the synthetic test chromosome
GATC_POSITIONS = [21, 45, 69, 93, 113, 137, 161, 185, 209, 229, 259, 279]
CHROM_LENGTH = 300


def make_gatc_chromosome(length=CHROM_LENGTH, positions=GATC_POSITIONS, filler="A"):
    """Build a sequence of ``filler`` with GATC starting at the given positions."""
    seq = [filler] * length
    for pos in positions:
        seq[pos - 1:pos + 3] = list("GATC")
    return "".join(seq)


@pytest.fixture
def gatc_sequence():
    return make_gatc_chromosome()


@pytest.fixture
def gatc_genome(gatc_sequence):
    """Genome with one 300 bp chromosome ``chrT``."""
    return InMemoryGenome({"chrT": gatc_sequence})


@pytest.fixture
def dpnii():
    return RestrictionEnzyme.from_site("DpnII", "^GATC")


@pytest.fixture
def flat_alignability():
    """Every k-mer of chrT is unique."""
    return AlignabilityMap("chrT", CHROM_LENGTH, 5, [1], [1])


@pytest.fixture
def small_config(dpnii):
    """Parameters scaled to fragments of a few dozen bases."""
    return ViewPointConfig(
        enzymes=[dpnii],
        size_up=115,
        size_down=115,
        min_fragment_size=10,
        probe_length=10,
        min_bait_count=1,
        min_gc_content=0.0,
        max_gc_content=1.0,
        max_mean_kmer_alignability=10,
        margin_size=12,
        kmer_size=5,
        mean_fragment_length=115,
    )
