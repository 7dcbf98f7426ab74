"""Per-chromosome k-mer alignability maps built from a sorted bedGraph stream.

A raw bedGraph value is the fraction ``1/n`` where ``n`` is the number of
places a k-mer starting at that position aligns to. It is stored as the
integer ``n``; ``-1`` marks positions without data.
"""

from __future__ import annotations

import bisect
import gzip
import math
from pathlib import Path
from typing import Dict, IO, Iterable, Iterator, List, Optional, Sequence

from loguru import logger

from ..exceptions import ParseError, RangeError

NO_DATA = -1


def open_text(path: Path) -> IO[str]:
    """Open a plain or gzip-compressed text file for reading."""
    path = Path(path)
    if path.suffix == ".gz":
        return gzip.open(path, 'rt')
    return open(path, 'r')


def raw_to_alignability(raw: float) -> int:
    """Convert a bedGraph fraction to an integer alignability (half-up rounding)."""
    if raw <= 0:
        return NO_DATA
    return int(math.floor(1.0 / raw + 0.5))


class AlignabilityMap:
    """Breakpoint representation of the alignability of one chromosome.

    ``coords[i]`` is the first position (1-based) at which ``scores[i]`` is in
    effect; it stays in effect until ``coords[i + 1] - 1`` or the chromosome end.
    """

    def __init__(self, chrom_name: str, chrom_length: int, kmer_size: int,
                 coords: Sequence[int], scores: Sequence[int]):
        if len(coords) != len(scores):
            raise ValueError("Coordinate and score arrays differ in length")
        if any(b <= a for a, b in zip(coords, coords[1:])):
            raise ValueError(f"Breakpoints of {chrom_name} are not strictly increasing")

        self.chrom_name = chrom_name
        self.chrom_length = chrom_length
        self.kmer_size = kmer_size
        self.coords = tuple(coords)
        self.scores = tuple(scores)

    def __len__(self) -> int:
        return len(self.coords)

    def __repr__(self) -> str:
        return (f"AlignabilityMap({self.chrom_name!r}, length={self.chrom_length}, "
                f"k={self.kmer_size}, breakpoints={len(self.coords)})")

    def _index_at(self, pos: int) -> int:
        """Index of the breakpoint at or before ``pos`` (-1 if none)."""
        return bisect.bisect_right(self.coords, pos) - 1

    def score_at(self, pos: int) -> int:
        idx = self._index_at(pos)
        return self.scores[idx] if idx >= 0 else NO_DATA

    def score_over_range(self, from_pos: int, to_pos: int) -> List[int]:
        """Scores of every position in ``[from_pos, to_pos]``.

        Raises:
            RangeError: If ``to_pos < from_pos``
        """
        if to_pos < from_pos:
            raise RangeError(from_pos, to_pos)

        result: List[int] = []
        idx = self._index_at(from_pos)
        pos = from_pos
        while pos <= to_pos:
            if idx + 1 < len(self.coords):
                run_end = min(to_pos, self.coords[idx + 1] - 1)
            else:
                run_end = to_pos
            score = self.scores[idx] if idx >= 0 else NO_DATA
            result.extend([score] * (run_end - pos + 1))
            pos = run_end + 1
            idx += 1
        return result


def parse_chrom_info(path: Path) -> Dict[str, int]:
    """Read a ``chromInfo`` table (``name<TAB>length``), optionally gzipped."""
    sizes: Dict[str, int] = {}
    path = Path(path)
    if not path.exists():
        raise ParseError(f"Chromosome info file not found: {path}")

    with open_text(path) as f:
        for line_number, line in enumerate(f, 1):
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            fields = line.split('\t')
            if len(fields) < 2:
                raise ParseError("Expected name and length", line_number=line_number, line_content=line)
            try:
                sizes[fields[0]] = int(fields[1])
            except ValueError:
                raise ParseError("Chromosome length is not an integer",
                                 line_number=line_number, line_content=line)

    logger.debug(f"Read lengths of {len(sizes)} chromosomes from {path}")
    return sizes


class _MapBuilder:
    """Accumulates breakpoints of one chromosome."""

    def __init__(self, chrom: str, chrom_length: Optional[int], kmer_size: int):
        self.chrom = chrom
        self.chrom_length = chrom_length
        self.kmer_size = kmer_size
        self.coords: List[int] = []
        self.scores: List[int] = []
        self.prev_end = 0

    def add(self, start: int, end: int, score: int, line_number: int) -> None:
        if start <= self.prev_end:
            raise ParseError(f"bedGraph records of {self.chrom} are not sorted or overlap",
                             line_number=line_number)
        if start > self.prev_end + 1:
            # leading bases or a gap without data
            self._append(self.prev_end + 1, NO_DATA)
        self._append(start, score)
        self.prev_end = end

    def _append(self, pos: int, score: int) -> None:
        # merge runs with equal scores
        if self.scores and self.scores[-1] == score:
            return
        self.coords.append(pos)
        self.scores.append(score)

    def finish(self) -> AlignabilityMap:
        if self.chrom_length is None:
            logger.warning(f"No length known for {self.chrom}, using the last bedGraph position")
            length = self.prev_end
        else:
            length = self.chrom_length
            if self.prev_end < length:
                self._append(self.prev_end + 1, NO_DATA)
        return AlignabilityMap(self.chrom, length, self.kmer_size, self.coords, self.scores)


def iter_alignability_maps(lines: Iterable[str], chrom_sizes: Dict[str, int],
                           kmer_size: int) -> Iterator[AlignabilityMap]:
    """Stream one AlignabilityMap per chromosome from sorted bedGraph lines.

    The iterator is single pass; re-open the input for another pass.

    Args:
        lines: bedGraph lines ``chrom start0 end value`` sorted by chromosome and start
        chrom_sizes: Chromosome lengths, used to mark unscored trailing bases
        kmer_size: k-mer length the bedGraph values were computed for

    Yields:
        AlignabilityMap objects in input order

    Raises:
        ParseError: On malformed or unsorted records
    """
    builder: Optional[_MapBuilder] = None
    seen = set()

    for line_number, line in enumerate(lines, 1):
        line = line.strip()
        if not line or line.startswith(('#', 'track', 'browser')):
            continue

        fields = line.split()
        if len(fields) < 4:
            raise ParseError("Expected 4 bedGraph columns", line_number=line_number, line_content=line)
        chrom = fields[0]
        try:
            start = int(fields[1]) + 1
            end = int(fields[2])
            score = raw_to_alignability(float(fields[3]))
        except ValueError:
            raise ParseError("Invalid bedGraph record", line_number=line_number, line_content=line)

        if builder is None or chrom != builder.chrom:
            if builder is not None:
                yield builder.finish()
            if chrom in seen:
                raise ParseError(f"bedGraph is not sorted by chromosome ({chrom} seen twice)",
                                 line_number=line_number)
            seen.add(chrom)
            builder = _MapBuilder(chrom, chrom_sizes.get(chrom), kmer_size)

        builder.add(start, end, score, line_number)

    if builder is not None:
        yield builder.finish()


class AlignabilityMapReader:
    """Re-iterable source of AlignabilityMaps backed by files.

    Every iteration re-opens the bedGraph, so a new pass starts from the
    first chromosome.
    """

    def __init__(self, bedgraph_path: Path, chrom_info_path: Path, kmer_size: int):
        self.bedgraph_path = Path(bedgraph_path)
        self.chrom_info_path = Path(chrom_info_path)
        self.kmer_size = kmer_size

        if not self.bedgraph_path.exists():
            raise ParseError(f"Alignability file not found: {self.bedgraph_path}")
        self.chrom_sizes = parse_chrom_info(self.chrom_info_path)

    def __iter__(self) -> Iterator[AlignabilityMap]:
        logger.info(f"Reading alignability map: {self.bedgraph_path}")
        with open_text(self.bedgraph_path) as f:
            yield from iter_alignability_maps(f, self.chrom_sizes, self.kmer_size)
