#!/usr/bin/env python3
"""
Main module for Capture Hi-C viewpoint design.

This module provides the command line entry point and runs a complete
design: anchors in, viewpoint table and design summary out.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger
from tqdm import tqdm

from .config import ViewPointConfig
from .core.alignability import AlignabilityMapReader
from .core.genome import IndexedFastaGenome
from .core.parser import AnchorParser, parse_enzyme_list
from .design.creation import ViewPointCreationTask
from .design.summary import DesignSummary
from .design.viewpoint import ViewPoint
from .exceptions import DesignError

VIEWPOINT_COLUMNS = [
    "target", "accession", "chromosome", "position", "strand", "promoter", "approach",
    "start", "end", "score", "selected_fragments", "active_length", "baits_up",
    "baits_down", "high_repeat_fragments", "center_selected", "modified",
]


def setup_logging(log_level: str = "INFO") -> None:
    """Setup logging configuration."""
    logger.remove()
    logger.add(
        lambda msg: tqdm.write(msg, end=""),
        level=log_level.upper(),
        format="{time:YYYY-MM-DD HH:mm:ss} - {name} - {level} - {message}",
        colorize=False,
    )


def write_viewpoint_table(viewpoints: List[ViewPoint], output_file: Path) -> Path:
    """Write one tab-separated row per viewpoint."""
    output_file = Path(output_file)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Writing viewpoint table: {output_file}")
    with open(output_file, 'w') as f:
        f.write("\t".join(VIEWPOINT_COLUMNS) + "\n")
        for vp in viewpoints:
            row = vp.to_dict()
            f.write("\t".join(str(row[column]) for column in VIEWPOINT_COLUMNS) + "\n")
    return output_file


def run_pipeline(config: ViewPointConfig, anchor_file: Path, fasta_file: Path,
                 alignability_file: Path, chrom_info_file: Path,
                 output_file: Optional[Path] = None, show_progress: bool = True) -> DesignSummary:
    """
    Run the complete viewpoint design.

    Args:
        config: Design configuration
        anchor_file: Tab-separated anchor file
        fasta_file: Reference genome FASTA (indexed on first use)
        alignability_file: Sorted k-mer alignability bedGraph (optionally gzipped)
        chrom_info_file: Chromosome length table
        output_file: Viewpoint table to write
        show_progress: Display a progress bar

    Returns:
        Summary of the design
    """
    logger.info("Starting Capture Hi-C viewpoint design")
    logger.info(f"Anchors: {anchor_file}")
    logger.info(f"Reference: {fasta_file}")
    logger.info(f"Alignability: {alignability_file}")
    logger.info(f"Enzymes: {', '.join(f'{e.name} ({e.site})' for e in config.enzymes)}")

    genes = AnchorParser(anchor_file).parse()
    if not genes:
        logger.warning("No valid anchors found in input file")
        return DesignSummary()

    alignability = AlignabilityMapReader(alignability_file, chrom_info_file, config.kmer_size)

    with IndexedFastaGenome(fasta_file) as genome:
        task = ViewPointCreationTask(genes, config, genome, alignability)
        progress = tqdm(total=len(task.anchors), unit="anchor", disable=not show_progress)

        def report(fraction: float, label: str) -> None:
            progress.update(1)
            progress.set_postfix_str(label)

        task.progress_callback = report
        try:
            viewpoints = task.run()
        except KeyboardInterrupt:
            task.cancel()
            raise
        finally:
            progress.close()

    if output_file is not None:
        write_viewpoint_table(viewpoints, output_file)

    summary = DesignSummary.from_viewpoints(viewpoints, config.probe_length, config.max_repeat_content)
    for name, value in summary.as_dict().items():
        logger.info(f"{name}: {value}")
    return summary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Capture Hi-C designer - design viewpoints, fragments and baits around anchors"
    )

    parser.add_argument("anchors", type=Path, help="Anchor file (contig, position, name, strand, accession)")
    parser.add_argument("genome", type=Path, help="Reference genome FASTA file")
    parser.add_argument("alignability", type=Path, help="k-mer alignability bedGraph (.gz allowed)")
    parser.add_argument("chrom_info", type=Path, help="Chromosome length table (.gz allowed)")

    parser.add_argument("-c", "--config", type=Path, help="YAML configuration file")
    parser.add_argument("-o", "--output", type=Path, default=Path("viewpoints.tsv"),
                        help="Viewpoint table (default: viewpoints.tsv)")
    parser.add_argument("--approach", choices=["simple", "extended"], help="Selection approach (default: simple)")
    parser.add_argument("-e", "--enzyme", action="append",
                        help="Enzyme name (e.g. DpnII) or NAME:SITE with caret; repeatable")
    parser.add_argument("--enzyme-file", type=Path, help="File with 'name site' rows")
    parser.add_argument("--size-up", type=int, help="Upstream half-window for extended (default: 5000)")
    parser.add_argument("--size-down", type=int, help="Downstream half-window for extended (default: 1500)")
    parser.add_argument("--min-fragment-size", type=int, help="Minimum fragment size (default: 120)")
    parser.add_argument("--probe-length", type=int, help="Probe length (default: 120)")
    parser.add_argument("--min-baits", type=int, help="Minimum baits per margin (default: 1)")
    parser.add_argument("--min-gc", type=float, help="Minimum bait GC content (default: 0.35)")
    parser.add_argument("--max-gc", type=float, help="Maximum bait GC content (default: 0.65)")
    parser.add_argument("--max-repeat", type=float, help="Maximum repeat content (default: 0.6)")
    parser.add_argument("--max-alignability", type=int, help="Maximum mean k-mer alignability (default: 10)")
    parser.add_argument("--margin-size", type=int, help="Margin size (default: 250)")
    parser.add_argument("--no-unbalanced", action="store_true",
                        help="Do not select fragments with baits in one margin only")
    parser.add_argument("--allow-patching", action="store_true", default=None,
                        help="Patch simple viewpoints with a neighbouring fragment")
    parser.add_argument("--kmer-size", type=int, help="k-mer size of the alignability map (default: 50)")
    parser.add_argument("--mean-fragment-length", type=float,
                        help="Mean restriction fragment length (default: estimated from the genome)")
    parser.add_argument("--threads", type=int, help="Number of worker threads (default: 1)")
    parser.add_argument("--no-progress", action="store_true", help="Hide the progress bar")
    parser.add_argument(
        "--log-level",
        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO, or log_level from the config file)"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for command line interface."""
    args = build_parser().parse_args(argv)

    # Setup logging
    setup_logging(args.log_level or "INFO")

    try:
        base = {}
        if args.config is not None:
            base = ViewPointConfig.read_yaml(args.config)
            if args.log_level is None and "log_level" in base:
                setup_logging(str(base["log_level"]))

        arguments = vars(args).copy()
        if args.no_unbalanced:
            arguments["allow_unbalanced"] = False
        if args.enzyme_file is not None:
            arguments["enzyme"] = (args.enzyme or []) + parse_enzyme_list(args.enzyme_file)

        config = ViewPointConfig.from_args(arguments, base=base)

        run_pipeline(
            config,
            args.anchors,
            args.genome,
            args.alignability,
            args.chrom_info,
            output_file=args.output,
            show_progress=not args.no_progress,
        )
    except DesignError as e:
        logger.error(f"Design failed: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Design interrupted by user")
        sys.exit(1)


if __name__ == "__main__":
    main()
