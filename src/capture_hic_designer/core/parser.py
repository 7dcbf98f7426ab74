"""Anchor and restriction enzyme file parsers."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Tuple

from loguru import logger

from ..exceptions import ConfigurationError, ParseError
from ..models import Anchor, RestrictionEnzyme, Strand, TargetGene


class AnchorParser:
    """Parser for tab-separated anchor files.

    Columns: ``contig  position  name  strand  [accession]``, with one-based
    positions. Rows sharing name and contig are grouped into one TargetGene,
    so alternative TSSs of a gene become several anchors.
    """

    def __init__(self, input_file: Path):
        """Initialize parser with input file path."""
        self.input_file = Path(input_file)
        self.genes: List[TargetGene] = []

        if not self.input_file.exists():
            raise ParseError(f"Anchor file not found: {self.input_file}")

    def parse(self) -> List[TargetGene]:
        """Parse the input file and return genes in order of first appearance."""
        genes: Dict[Tuple[str, str], TargetGene] = {}
        line_number = 0
        n_rows = 0

        logger.info(f"Parsing anchor file: {self.input_file}")

        try:
            with open(self.input_file, 'r', encoding='utf-8') as f:
                for line in f:
                    line_number += 1
                    line = line.strip()

                    if not line or line.startswith('#'):
                        continue

                    try:
                        contig, position, name, strand, accession = self._parse_line(line, line_number)
                    except ParseError as e:
                        logger.warning(f"Skipping invalid line {line_number}: {e}")
                        continue

                    key = (name, contig)
                    gene = genes.get(key)
                    if gene is None:
                        genes[key] = TargetGene(symbol=name, contig=contig, strand=strand,
                                                accession=accession, positions=[position])
                    elif gene.strand != strand:
                        logger.warning(
                            f"Skipping line {line_number}: strand of {name} conflicts with earlier rows"
                        )
                        continue
                    else:
                        gene.add_position(position)
                    n_rows += 1

        except IOError as e:
            raise ParseError(f"Failed to read anchor file: {e}")

        self.genes = list(genes.values())
        logger.info(f"Parsed {n_rows} anchors in {len(self.genes)} genes")
        return self.genes

    def _parse_line(self, line: str, line_number: int) -> Tuple[str, int, str, Strand, str]:
        """Parse a single line of the anchor file."""
        parts = line.split('\t')
        if len(parts) < 4:
            raise ParseError(
                f"Expected at least 4 tab-separated fields, got {len(parts)}",
                line_number=line_number,
                line_content=line
            )

        contig, position, name, strand = (p.strip() for p in parts[:4])
        accession = parts[4].strip() if len(parts) > 4 else ""

        if not contig:
            raise ParseError("Empty contig", line_number=line_number, line_content=line)
        if not name:
            raise ParseError("Empty name", line_number=line_number, line_content=line)

        try:
            position = int(position)
        except ValueError:
            raise ParseError(f"Position is not an integer: {position}",
                             line_number=line_number, line_content=line)
        if position < 1:
            raise ParseError(f"Position must be >= 1: {position}",
                             line_number=line_number, line_content=line)

        try:
            strand = Strand.parse(strand)
        except ValueError as e:
            raise ParseError(str(e), line_number=line_number, line_content=line)

        return contig, position, name, strand, accession

    def anchors(self) -> List[Anchor]:
        """All anchors of the parsed genes."""
        return [anchor for gene in self.genes for anchor in gene.anchors()]


def parse_enzyme_list(enzyme_file: Path) -> List[RestrictionEnzyme]:
    """Read whitespace-separated ``name  site`` rows (site with a caret)."""
    enzyme_file = Path(enzyme_file)
    if not enzyme_file.exists():
        raise ConfigurationError(f"Enzyme file not found: {enzyme_file}")

    enzymes = []
    with open(enzyme_file, 'r') as f:
        for line_number, line in enumerate(f, 1):
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            fields = line.split()
            if len(fields) < 2:
                raise ParseError("Expected enzyme name and site", line_number=line_number, line_content=line)
            enzymes.append(RestrictionEnzyme.from_site(fields[0], fields[1]))

    logger.debug(f"Loaded {len(enzymes)} restriction enzymes from {enzyme_file}")
    return enzymes
