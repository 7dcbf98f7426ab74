"""Input handling: reference sequence, alignability maps and anchor files."""

from .alignability import AlignabilityMap, AlignabilityMapReader, iter_alignability_maps, parse_chrom_info
from .genome import GenomeSequenceAccess, InMemoryGenome, IndexedFastaGenome
from .parser import AnchorParser, parse_enzyme_list

__all__ = [
    "AlignabilityMap",
    "AlignabilityMapReader",
    "iter_alignability_maps",
    "parse_chrom_info",
    "GenomeSequenceAccess",
    "InMemoryGenome",
    "IndexedFastaGenome",
    "AnchorParser",
    "parse_enzyme_list",
]
