"""Random access to reference sequences.

Coordinates are 1-based and inclusive on both ends. The case of the returned
bases is preserved, since lowercase encodes soft-masked repeats.
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Protocol, Tuple

from loguru import logger

from ..exceptions import GenomeAccessError


class GenomeSequenceAccess(Protocol):
    """Read-only view of a reference genome."""

    def subsequence(self, contig: str, start: int, end: int) -> str:
        ...

    def length(self, contig: str) -> int:
        ...

    def contigs(self) -> List[str]:
        ...


def _check_range(contig: str, start: int, end: int) -> None:
    if start < 1 or end < start:
        raise GenomeAccessError(f"Invalid range {start}-{end}", contig=contig)


class InMemoryGenome:
    """Genome held in a dict of contig name to sequence."""

    def __init__(self, sequences: Dict[str, str]):
        self.sequences = dict(sequences)

    def subsequence(self, contig: str, start: int, end: int) -> str:
        _check_range(contig, start, end)
        try:
            return self.sequences[contig][start - 1:end]
        except KeyError:
            raise GenomeAccessError("Unknown contig", contig=contig)

    def length(self, contig: str) -> int:
        try:
            return len(self.sequences[contig])
        except KeyError:
            raise GenomeAccessError("Unknown contig", contig=contig)

    def contigs(self) -> List[str]:
        return list(self.sequences)


@dataclass
class FaiEntry:
    """One line of a samtools ``.fai`` index."""

    name: str
    length: int       # number of bases
    offset: int       # byte offset of the first base
    line_bases: int   # bases per data line
    line_bytes: int   # bytes per data line including newline

    def to_line(self) -> str:
        return f"{self.name}\t{self.length}\t{self.offset}\t{self.line_bases}\t{self.line_bytes}\n"


def read_fai(fai_path: Path) -> Dict[str, FaiEntry]:
    """Read a ``.fai`` index file."""
    entries: Dict[str, FaiEntry] = {}
    with open(fai_path, 'r') as f:
        for line in f:
            if not line.strip():
                continue
            fields = line.rstrip("\n").split("\t")
            if len(fields) < 5:
                raise GenomeAccessError(f"Malformed index line in {fai_path}: {line.strip()}")
            name, length, offset, line_bases, line_bytes = fields[:5]
            entries[name] = FaiEntry(name, int(length), int(offset), int(line_bases), int(line_bytes))
    return entries


def build_fai(fasta_path: Path) -> Dict[str, FaiEntry]:
    """Scan a FASTA file and build its ``.fai`` entries.

    Every sequence line except the last of a record must have the same width,
    as samtools requires.
    """
    entries: Dict[str, FaiEntry] = {}
    current = None

    with open(fasta_path, 'rb') as f:
        pos = 0
        for raw in f:
            pos += len(raw)
            if raw.startswith(b">"):
                header = raw[1:].strip().decode("utf-8", errors="ignore")
                name = header.split()[0] if header else ""
                current = FaiEntry(name=name, length=0, offset=pos, line_bases=0, line_bytes=0)
                entries[name] = current
                continue
            if current is None:
                continue
            bases = len(raw.rstrip(b"\r\n"))
            if current.line_bases == 0:
                current.line_bases = bases
                current.line_bytes = len(raw)
            current.length += bases

    return entries


def _calc_slice(entry: FaiEntry, start: int, end: int) -> Iterable[Tuple[int, int]]:
    """Yield ``(byte_offset, n_bases)`` chunks covering 1-based ``[start, end]``."""
    lb, lB = entry.line_bases, entry.line_bytes
    if lb == 0:
        return
    cur, last = start - 1, end - 1
    while cur <= last:
        in_line = cur % lb
        take = min(lb - in_line, last - cur + 1)
        yield entry.offset + (cur // lb) * lB + in_line, take
        cur += take


class IndexedFastaGenome:
    """FASTA reader backed by a samtools-style ``.fai`` index.

    The index is read from ``<fasta>.fai`` if present, otherwise it is built
    and written next to the FASTA file (when the directory is writable).
    Reads share one file handle guarded by a lock, so an instance can be
    used from several worker threads.
    """

    def __init__(self, fasta_path: Path):
        self.fasta_path = Path(fasta_path)
        if not self.fasta_path.exists():
            raise GenomeAccessError(f"FASTA file not found: {self.fasta_path}")

        self.fai_path = Path(str(self.fasta_path) + ".fai")
        if self.fai_path.exists():
            self._fai = read_fai(self.fai_path)
        else:
            logger.info(f"Indexing FASTA file: {self.fasta_path}")
            self._fai = build_fai(self.fasta_path)
            self._write_fai()

        self._lock = threading.Lock()
        self._handle = open(self.fasta_path, 'rb')

    def _write_fai(self) -> None:
        if not os.access(self.fasta_path.parent, os.W_OK):
            logger.warning(f"Cannot write index {self.fai_path}, keeping it in memory")
            return
        with open(self.fai_path, 'w') as f:
            for entry in self._fai.values():
                f.write(entry.to_line())

    def _entry(self, contig: str) -> FaiEntry:
        try:
            return self._fai[contig]
        except KeyError:
            raise GenomeAccessError("Unknown contig", contig=contig)

    def subsequence(self, contig: str, start: int, end: int) -> str:
        _check_range(contig, start, end)
        entry = self._entry(contig)
        end = min(end, entry.length)
        if start > end:
            return ""

        parts = []
        with self._lock:
            for offset, n_bases in _calc_slice(entry, start, end):
                self._handle.seek(offset)
                parts.append(self._handle.read(n_bases).decode("ascii"))
        return "".join(parts)

    def length(self, contig: str) -> int:
        return self._entry(contig).length

    def contigs(self) -> List[str]:
        return list(self._fai)

    def close(self) -> None:
        self._handle.close()

    def __enter__(self) -> "IndexedFastaGenome":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
