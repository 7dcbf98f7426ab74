"""Data models for Capture Hi-C viewpoint design."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, List

from .exceptions import ConfigurationError


class Strand(Enum):
    """DNA strand orientation."""
    PLUS = "+"
    MINUS = "-"

    @classmethod
    def parse(cls, value: str) -> "Strand":
        """Accept '+', '-', 'plus' or 'minus'."""
        value = value.strip().lower()
        if value in ("+", "plus"):
            return cls.PLUS
        if value in ("-", "minus"):
            return cls.MINUS
        raise ValueError(f"Unknown strand: {value}")


class Approach(Enum):
    """Fragment selection policy of a viewpoint."""
    SIMPLE = "simple"
    EXTENDED = "extended"


@dataclass(frozen=True)
class RestrictionEnzyme:
    """Restriction enzyme with its cut site marked by a caret, e.g. ``A^AGCTT``."""

    name: str
    site: str

    def __post_init__(self):
        if self.site.count("^") != 1:
            raise ConfigurationError(
                f"Restriction site must contain exactly one '^': {self.site}",
                parameter=self.name
            )
        if not self.plain_site:
            raise ConfigurationError("Empty restriction site", parameter=self.name)

    @classmethod
    def from_site(cls, name: str, site: str) -> "RestrictionEnzyme":
        """Create an enzyme from a caret-annotated site."""
        return cls(name=name, site=site.strip().upper())

    @classmethod
    def from_string(cls, text: str) -> "RestrictionEnzyme":
        """Parse ``DpnII`` (known enzyme) or ``Name:SITE``."""
        text = text.strip()
        if ":" in text:
            name, site = text.split(":", 1)
            return cls.from_site(name.strip(), site)

        for known_name, site in KNOWN_ENZYMES.items():
            if known_name.lower() == text.lower():
                return cls(name=known_name, site=site)

        raise ConfigurationError(f"Unknown restriction enzyme: {text}", parameter="enzymes")

    @property
    def plain_site(self) -> str:
        """Recognition motif without the caret."""
        return self.site.replace("^", "")

    @property
    def cut_offset(self) -> int:
        """Offset of the cut relative to the first base of the motif."""
        return self.site.index("^")

    @property
    def regex(self) -> str:
        """Motif as a regular expression; ``N`` matches any base."""
        return self.plain_site.replace("N", ".")

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> "RestrictionEnzyme":
        """Create from dictionary."""
        return cls(**data)


# Frequently used Capture Hi-C enzymes
KNOWN_ENZYMES: Dict[str, str] = {
    "DpnII": "^GATC",
    "MboI": "^GATC",
    "Sau3AI": "^GATC",
    "NlaIII": "CATG^",
    "Csp6I": "G^TAC",
    "MseI": "T^TAA",
    "HindIII": "A^AGCTT",
    "EcoRI": "G^AATTC",
    "BamHI": "G^GATCC",
    "BglII": "A^GATCT",
    "NcoI": "C^CATGG",
    "XbaI": "T^CTAGA",
}


@dataclass
class Anchor:
    """A single anchor point (e.g. one TSS) for which a viewpoint is designed."""

    contig: str
    position: int  # 1-based
    name: str
    strand: Strand = Strand.PLUS
    accession: str = ""
    promoter_number: int = 1
    total_promoters: int = 1

    @property
    def is_positive_strand(self) -> bool:
        return self.strand == Strand.PLUS

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        data = asdict(self)
        data["strand"] = self.strand.value
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "Anchor":
        """Create from dictionary."""
        data = dict(data)
        data["strand"] = Strand.parse(data.get("strand", "+"))
        return cls(**data)


@dataclass
class TargetGene:
    """A target gene with one or more anchor positions (alternative TSSs)."""

    symbol: str
    contig: str
    strand: Strand = Strand.PLUS
    accession: str = ""
    positions: List[int] = field(default_factory=list)

    def __post_init__(self):
        self.positions = sorted(set(self.positions))

    def add_position(self, position: int) -> None:
        """Add an anchor position, keeping positions unique and sorted."""
        if position not in self.positions:
            self.positions.append(position)
            self.positions.sort()

    @property
    def n_anchors(self) -> int:
        return len(self.positions)

    def anchors(self) -> List[Anchor]:
        """Anchors of this gene, numbered 5' to 3' with respect to the strand."""
        ordered = self.positions if self.strand == Strand.PLUS else self.positions[::-1]
        total = len(ordered)
        return [
            Anchor(
                contig=self.contig,
                position=pos,
                name=self.symbol,
                strand=self.strand,
                accession=self.accession,
                promoter_number=i + 1,
                total_promoters=total
            )
            for i, pos in enumerate(ordered)
        ]

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        data = asdict(self)
        data["strand"] = self.strand.value
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "TargetGene":
        """Create from dictionary."""
        data = dict(data)
        data["strand"] = Strand.parse(data.get("strand", "+"))
        return cls(**data)
