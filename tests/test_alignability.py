#!/usr/bin/env python3
"""
Tests for alignability maps and bedGraph streaming.
"""

import gzip

import pytest

from capture_hic_designer.core.alignability import (
    NO_DATA, AlignabilityMap, AlignabilityMapReader, iter_alignability_maps,
    parse_chrom_info, raw_to_alignability
)
from capture_hic_designer.exceptions import ParseError, RangeError

BEDGRAPH = [
    "track type=bedGraph\n",
    "chrA\t0\t5\t1.0\n",
    "chrA\t5\t10\t0.5\n",
    "chrA\t12\t20\t0.25\n",
    "chrB\t3\t10\t0.333333\n",
]
SIZES = {"chrA": 30, "chrB": 10}


@pytest.mark.parametrize("raw,expected", [
    (1.0, 1), (0.5, 2), (0.333333, 3), (0.4, 3), (0.0, NO_DATA), (-1.0, NO_DATA),
])
def test_raw_to_alignability(raw, expected):
    assert raw_to_alignability(raw) == expected


class TestAlignabilityMap:

    def test_rejects_unsorted_breakpoints(self):
        with pytest.raises(ValueError):
            AlignabilityMap("chr1", 100, 5, [1, 10, 10], [1, 2, 3])

    def test_rejects_mismatched_arrays(self):
        with pytest.raises(ValueError):
            AlignabilityMap("chr1", 100, 5, [1, 10], [1])

    def test_score_at(self):
        amap = AlignabilityMap("chr1", 100, 5, [5, 10], [2, 4])
        assert amap.score_at(1) == NO_DATA
        assert amap.score_at(5) == 2
        assert amap.score_at(9) == 2
        assert amap.score_at(10) == 4
        assert amap.score_at(100) == 4

    def test_score_over_range_before_first_breakpoint(self):
        amap = AlignabilityMap("chr1", 100, 5, [5], [1])
        assert amap.score_over_range(3, 6) == [NO_DATA, NO_DATA, 1, 1]

    def test_single_position(self):
        amap = AlignabilityMap("chr1", 100, 5, [1], [7])
        assert amap.score_over_range(50, 50) == [7]

    def test_inverted_range(self):
        amap = AlignabilityMap("chr1", 100, 5, [1], [1])
        with pytest.raises(RangeError):
            amap.score_over_range(10, 9)


class TestBedGraphStream:

    def test_breakpoints_with_gaps_and_trailing_region(self):
        maps = list(iter_alignability_maps(BEDGRAPH, SIZES, 5))
        assert [m.chrom_name for m in maps] == ["chrA", "chrB"]

        chr_a = maps[0]
        assert chr_a.coords == (1, 6, 11, 13, 21)
        assert chr_a.scores == (1, 2, NO_DATA, 4, NO_DATA)
        assert chr_a.chrom_length == 30
        assert chr_a.kmer_size == 5
        assert chr_a.score_over_range(4, 14) == [1, 1, 2, 2, 2, 2, 2, NO_DATA, NO_DATA, 4, 4]

    def test_leading_gap(self):
        chr_b = list(iter_alignability_maps(BEDGRAPH, SIZES, 5))[1]
        assert chr_b.coords == (1, 4)
        assert chr_b.scores == (NO_DATA, 3)

    def test_equal_runs_are_merged(self):
        lines = ["chrA\t0\t5\t0.5\n", "chrA\t5\t30\t0.5\n"]
        amap = next(iter_alignability_maps(lines, SIZES, 5))
        assert amap.coords == (1,)
        assert amap.scores == (2,)

    def test_unknown_length_uses_last_record(self):
        lines = ["chrZ\t0\t40\t1\n"]
        amap = next(iter_alignability_maps(lines, {}, 5))
        assert amap.chrom_length == 40

    def test_overlapping_records(self):
        lines = ["chrA\t0\t10\t1\n", "chrA\t5\t15\t1\n"]
        with pytest.raises(ParseError):
            list(iter_alignability_maps(lines, SIZES, 5))

    def test_chromosome_seen_twice(self):
        lines = ["chrA\t0\t5\t1\n", "chrB\t0\t5\t1\n", "chrA\t10\t15\t1\n"]
        with pytest.raises(ParseError):
            list(iter_alignability_maps(lines, SIZES, 5))

    def test_malformed_record(self):
        with pytest.raises(ParseError):
            list(iter_alignability_maps(["chrA\t0\tfive\t1\n"], SIZES, 5))


def test_reader_reopens_gzipped_file(tmp_path):
    bedgraph = tmp_path / "align.bedgraph.gz"
    with gzip.open(bedgraph, "wt") as f:
        f.writelines(BEDGRAPH)
    chrom_info = tmp_path / "chromInfo.txt"
    chrom_info.write_text("chrA\t30\nchrB\t10\n")

    reader = AlignabilityMapReader(bedgraph, chrom_info, 5)
    first = [m.chrom_name for m in reader]
    second = [m.chrom_name for m in reader]
    assert first == second == ["chrA", "chrB"]


def test_parse_chrom_info_errors(tmp_path):
    with pytest.raises(ParseError):
        parse_chrom_info(tmp_path / "missing.txt")

    path = tmp_path / "chromInfo.txt"
    path.write_text("chr1\tlong\n")
    with pytest.raises(ParseError):
        parse_chrom_info(path)


def test_reader_missing_bedgraph(tmp_path):
    chrom_info = tmp_path / "chromInfo.txt"
    chrom_info.write_text("chrA\t30\n")
    with pytest.raises(ParseError):
        AlignabilityMapReader(tmp_path / "missing.bedgraph", chrom_info, 5)
