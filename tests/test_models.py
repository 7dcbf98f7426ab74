#!/usr/bin/env python3
"""
Tests for restriction enzymes, anchors and target genes.
"""

import pytest

from capture_hic_designer.exceptions import ConfigurationError
from capture_hic_designer.models import (
    KNOWN_ENZYMES, Anchor, RestrictionEnzyme, Strand, TargetGene
)


class TestRestrictionEnzyme:

    def test_cut_offset_and_plain_site(self):
        enzyme = RestrictionEnzyme.from_site("HindIII", "a^agctt")
        assert enzyme.site == "A^AGCTT"
        assert enzyme.plain_site == "AAGCTT"
        assert enzyme.cut_offset == 1

    def test_cut_after_motif(self):
        enzyme = RestrictionEnzyme.from_site("NlaIII", "CATG^")
        assert enzyme.cut_offset == 4

    def test_degenerate_base_becomes_wildcard(self):
        enzyme = RestrictionEnzyme.from_site("Hinf", "G^ANTC")
        assert enzyme.regex == "GA.TC"

    @pytest.mark.parametrize("site", ["GATC", "^GA^TC", "^"])
    def test_invalid_site(self, site):
        with pytest.raises(ConfigurationError):
            RestrictionEnzyme.from_site("Bad", site)

    def test_known_enzyme_lookup_is_case_insensitive(self):
        enzyme = RestrictionEnzyme.from_string("dpnii")
        assert enzyme.name == "DpnII"
        assert enzyme.site == KNOWN_ENZYMES["DpnII"]

    def test_name_and_site_string(self):
        enzyme = RestrictionEnzyme.from_string("MyEnz:GC^GGCCGC")
        assert enzyme.name == "MyEnz"
        assert enzyme.cut_offset == 2

    def test_unknown_enzyme(self):
        with pytest.raises(ConfigurationError):
            RestrictionEnzyme.from_string("NoSuchEnzyme")

    def test_dict_round_trip(self):
        enzyme = RestrictionEnzyme.from_string("HindIII")
        assert RestrictionEnzyme.from_dict(enzyme.to_dict()) == enzyme


class TestStrand:

    @pytest.mark.parametrize("text,expected", [
        ("+", Strand.PLUS), ("plus", Strand.PLUS), ("-", Strand.MINUS), (" Minus ", Strand.MINUS),
    ])
    def test_parse(self, text, expected):
        assert Strand.parse(text) == expected

    def test_parse_invalid(self):
        with pytest.raises(ValueError):
            Strand.parse("?")


class TestTargetGene:

    def test_positions_sorted_and_unique(self):
        gene = TargetGene(symbol="G", contig="chr1", positions=[300, 100, 300])
        gene.add_position(200)
        gene.add_position(100)
        assert gene.positions == [100, 200, 300]
        assert gene.n_anchors == 3

    def test_plus_strand_anchor_numbering(self):
        gene = TargetGene(symbol="G", contig="chr1", strand=Strand.PLUS,
                          accession="NM_1", positions=[500, 100])
        anchors = gene.anchors()
        assert [a.position for a in anchors] == [100, 500]
        assert [a.promoter_number for a in anchors] == [1, 2]
        assert all(a.total_promoters == 2 for a in anchors)
        assert all(a.accession == "NM_1" for a in anchors)

    def test_minus_strand_numbers_from_the_right(self):
        gene = TargetGene(symbol="G", contig="chr1", strand=Strand.MINUS, positions=[500, 100])
        anchors = gene.anchors()
        assert [a.position for a in anchors] == [500, 100]
        assert anchors[0].promoter_number == 1
        assert not anchors[0].is_positive_strand

    def test_dict_round_trip(self):
        gene = TargetGene(symbol="G", contig="chr2", strand=Strand.MINUS, positions=[7, 3])
        data = gene.to_dict()
        assert data["strand"] == "-"
        assert TargetGene.from_dict(data) == gene


def test_anchor_defaults():
    anchor = Anchor(contig="chr1", position=10, name="A")
    assert anchor.strand == Strand.PLUS
    assert anchor.promoter_number == 1
    assert anchor.total_promoters == 1
