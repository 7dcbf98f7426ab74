"""Batch creation of viewpoints for many anchors."""

from __future__ import annotations

import re
import threading
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional, Sequence, Union

from loguru import logger

from ..core.alignability import AlignabilityMap
from ..core.genome import GenomeSequenceAccess
from ..exceptions import ConfigurationError, GenomeAccessError, ParseError, ViewPointError
from ..models import Anchor, RestrictionEnzyme, TargetGene
from .viewpoint import ViewPoint, create_viewpoint

if TYPE_CHECKING:
    from ..config import ViewPointConfig

ProgressCallback = Callable[[float, str], None]

# Stop scanning the genome once this many cuts were counted
MAX_CUTS_FOR_ESTIMATE = 100_000


def estimate_mean_fragment_length(genome: GenomeSequenceAccess,
                                  enzymes: Sequence[RestrictionEnzyme],
                                  max_cuts: int = MAX_CUTS_FOR_ESTIMATE) -> float:
    """Estimate the mean restriction fragment length from the reference.

    Alternative haplotypes, unplaced contigs (names containing ``_``) and the
    mitochondrial genome are skipped.

    Raises:
        ConfigurationError: If no enzymes are given or no cut site is found
    """
    if not enzymes:
        raise ConfigurationError("At least one restriction enzyme is required", parameter="enzymes")

    pattern = re.compile("(?=(?:" + "|".join(e.regex for e in enzymes) + "))", re.IGNORECASE)
    total_length = 0
    n_cuts = 0

    for contig in genome.contigs():
        if "_" in contig or "chrM" in contig:
            continue
        length = genome.length(contig)
        if length == 0:
            continue
        sequence = genome.subsequence(contig, 1, length)
        n_cuts += sum(1 for _ in pattern.finditer(sequence))
        total_length += length
        logger.debug(f"Counted cuts on {contig}: total {n_cuts} in {total_length:,} bp")
        if n_cuts > max_cuts:
            break

    if n_cuts == 0:
        raise ConfigurationError("No restriction sites found in the reference", parameter="enzymes")

    mean_length = total_length / n_cuts
    logger.info(f"Estimated mean restriction fragment length: {mean_length:.1f} bp")
    return mean_length


def _to_anchors(targets: Iterable[Union[Anchor, TargetGene]]) -> List[Anchor]:
    anchors: List[Anchor] = []
    for target in targets:
        if isinstance(target, TargetGene):
            anchors.extend(target.anchors())
        else:
            anchors.append(target)
    return anchors


class ViewPointCreationTask:
    """Create viewpoints chromosome by chromosome.

    Alignability maps are consumed in stream order; anchors of the current
    chromosome are designed in parallel on a thread pool. A failure for one
    anchor is logged and the anchor is reported as unresolved, while
    failures to read reference data abort the batch.
    """

    def __init__(self, targets: Iterable[Union[Anchor, TargetGene]], config: "ViewPointConfig",
                 genome: GenomeSequenceAccess, alignability_maps: Iterable[AlignabilityMap],
                 progress_callback: Optional[ProgressCallback] = None):
        self.anchors = _to_anchors(targets)
        self.config = config
        self.genome = genome
        self.alignability_maps = alignability_maps
        self.progress_callback = progress_callback

        self.viewpoints: List[ViewPoint] = []
        self.unresolved: List[Anchor] = []
        self.mean_fragment_length: Optional[float] = config.mean_fragment_length

        self._cancel_event = threading.Event()
        self._lock = threading.Lock()
        self._n_done = 0

    def cancel(self) -> None:
        """Stop before the next anchor; already finished viewpoints are kept."""
        self._cancel_event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def _group_by_chromosome(self) -> Dict[str, List[Anchor]]:
        groups: Dict[str, List[Anchor]] = OrderedDict()
        for anchor in self.anchors:
            groups.setdefault(anchor.contig, []).append(anchor)
        return groups

    def run(self) -> List[ViewPoint]:
        """Create all viewpoints.

        Returns:
            Viewpoints in chromosome stream order, input order within a chromosome

        Raises:
            ConfigurationError: If the enzymes are missing or yield no cuts
            ViewPointError: If the alignability or sequence data cannot be read
        """
        if not self.config.enzymes:
            raise ConfigurationError("At least one restriction enzyme is required", parameter="enzymes")

        if self.mean_fragment_length is None:
            self.mean_fragment_length = estimate_mean_fragment_length(self.genome, self.config.enzymes)

        groups = self._group_by_chromosome()
        logger.info(f"Creating {self.config.approach.value} viewpoints for {len(self.anchors)} anchors "
                    f"on {len(groups)} chromosomes")

        self.viewpoints = []
        self.unresolved = []
        self._n_done = 0
        seen = set()

        try:
            for alignability_map in self.alignability_maps:
                if self.is_cancelled:
                    break
                chrom = alignability_map.chrom_name
                anchors = groups.get(chrom)
                if not anchors:
                    continue
                seen.add(chrom)
                self._run_chromosome(chrom, anchors, alignability_map)
        except (OSError, ParseError) as e:
            raise ViewPointError(f"Failed to read reference data: {e}") from e

        for chrom, anchors in groups.items():
            if chrom not in seen and not self.is_cancelled:
                logger.warning(f"No alignability data for {chrom}, skipping {len(anchors)} anchors")
                self.unresolved.extend(anchors)
                for anchor in anchors:
                    self._report_progress(anchor)

        if self.is_cancelled:
            logger.warning(f"Viewpoint creation cancelled after {len(self.viewpoints)} viewpoints")
        logger.info(f"Created {len(self.viewpoints)} viewpoints, {len(self.unresolved)} anchors unresolved")
        return self.viewpoints

    def _run_chromosome(self, chrom: str, anchors: List[Anchor],
                        alignability_map: AlignabilityMap) -> None:
        chrom_length = self.genome.length(chrom)
        logger.info(f"Designing {len(anchors)} viewpoints on {chrom}")

        with ThreadPoolExecutor(max_workers=self.config.threads) as executor:
            futures = [
                executor.submit(self._design_anchor, anchor, alignability_map, chrom_length)
                for anchor in anchors
            ]
            for anchor, future in zip(anchors, futures):
                viewpoint = future.result()
                if viewpoint is None:
                    if not self.is_cancelled:
                        self.unresolved.append(anchor)
                else:
                    self.viewpoints.append(viewpoint)

    def _design_anchor(self, anchor: Anchor, alignability_map: AlignabilityMap,
                       chrom_length: int) -> Optional[ViewPoint]:
        if self.is_cancelled:
            return None

        try:
            viewpoint = create_viewpoint(anchor, self.config, self.genome, alignability_map,
                                         self.mean_fragment_length, chrom_length)
        except (OSError, GenomeAccessError):
            raise
        except Exception as e:
            logger.warning(f"Could not design viewpoint for {anchor.name} "
                           f"({anchor.contig}:{anchor.position}): {e}")
            viewpoint = None
        else:
            if not viewpoint.has_valid_digest:
                logger.debug(f"No fragment selected for {anchor.name} ({viewpoint.genomic_location_string})")
        finally:
            self._report_progress(anchor)

        return viewpoint

    def _report_progress(self, anchor: Anchor) -> None:
        with self._lock:
            self._n_done += 1
            fraction = self._n_done / len(self.anchors) if self.anchors else 1.0
        if self.progress_callback is not None:
            self.progress_callback(fraction, anchor.name)


def create_viewpoints(targets: Iterable[Union[Anchor, TargetGene]], config: "ViewPointConfig",
                      genome: GenomeSequenceAccess, alignability_maps: Iterable[AlignabilityMap],
                      progress_callback: Optional[ProgressCallback] = None) -> List[ViewPoint]:
    """Create viewpoints for all anchors; see :class:`ViewPointCreationTask`."""
    task = ViewPointCreationTask(targets, config, genome, alignability_maps, progress_callback)
    return task.run()
