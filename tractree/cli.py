#!/usr/bin/env python3
"""Command-line interface for tractree."""

import sys
import argparse
import logging
from typing import List, Optional

from tractree import __version__
from tractree.core.utils import setup_logging, LINEAGE_DELIMITER, ROOT_LABEL
from tractree.models.config import TracConfig
from tractree.models.errors import TracError

logger = logging.getLogger(__name__)

def add_table_arguments(parser: argparse.ArgumentParser) -> None:
    """Add the taxonomy-table options shared by every command."""
    parser.add_argument(
        'table',
        type=str,
        help='taxonomy table (.tsv or .csv), one row per feature'
    )
    parser.add_argument(
        '--id-column',
        type=str,
        default=None,
        help='column with feature identifiers (default: first column)'
    )
    parser.add_argument(
        '--rank-columns',
        type=str,
        default=None,
        help='comma-separated rank columns, kingdom to species'
    )
    parser.add_argument(
        '--delimiter',
        type=str,
        default=None,
        help=f'lineage segment separator (default: $TRACTREE_DELIMITER or "{LINEAGE_DELIMITER}")'
    )
    parser.add_argument(
        '--root-label',
        type=str,
        default=None,
        help=f'label of the tree root (default: $TRACTREE_ROOT_LABEL or "{ROOT_LABEL}")'
    )

def create_parser() -> argparse.ArgumentParser:
    """
    Create and return the main argument parser for tractree.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        description="tractree: taxonomic trees and A matrices for tree-aggregated regression",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument(
        '--version', '-v',
        action='version',
        version=f'%(prog)s v{__version__}'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help='tractree commands',
        required=True
    )

    # Lineages command
    lineages_parser = subparsers.add_parser(
        "lineages",
        help="Print normalized lineage strings",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    add_table_arguments(lineages_parser)
    lineages_parser.add_argument(
        '--output',
        type=str,
        default=None,
        help='write lineages to this TSV instead of stdout'
    )

    # A-matrix command
    a_matrix_parser = subparsers.add_parser(
        "a-matrix",
        help="Build the node x feature incidence matrix",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    add_table_arguments(a_matrix_parser)
    a_matrix_parser.add_argument(
        '--output', '-o',
        type=str,
        required=True,
        help='output path; .npz for sparse, anything else for dense TSV'
    )
    a_matrix_parser.add_argument(
        '--collapse',
        action='store_true',
        help='collapse single-child chains before emitting'
    )
    a_matrix_parser.add_argument(
        '--include-root',
        action='store_true',
        help='include a row for the root'
    )
    a_matrix_parser.add_argument(
        '--feature-major',
        action='store_true',
        help='write features as rows'
    )

    # Tree command
    tree_parser = subparsers.add_parser(
        "tree",
        help="Write the taxonomy tree in Newick format",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    add_table_arguments(tree_parser)
    tree_parser.add_argument(
        '--output', '-o',
        type=str,
        required=True,
        help='output Newick file'
    )
    tree_parser.add_argument(
        '--collapse',
        action='store_true',
        help='collapse single-child chains'
    )

    # Aggregate command
    aggregate_parser = subparsers.add_parser(
        "aggregate",
        help="Aggregate log counts onto tree nodes",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    add_table_arguments(aggregate_parser)
    aggregate_parser.add_argument(
        'counts',
        type=str,
        help='count table (.tsv or .csv), features as rows'
    )
    aggregate_parser.add_argument(
        '--output', '-o',
        type=str,
        required=True,
        help='output TSV, samples x nodes'
    )
    aggregate_parser.add_argument(
        '--pseudo-count',
        type=float,
        default=1.0,
        help='pseudo-count added before the log transform'
    )
    aggregate_parser.add_argument(
        '--samples-as-rows',
        action='store_true',
        help='count table has samples as rows'
    )
    aggregate_parser.add_argument(
        '--collapse',
        action='store_true',
        help='collapse single-child chains before aggregating'
    )
    aggregate_parser.add_argument(
        '--include-root',
        action='store_true',
        help='include the root node'
    )

    return parser

def run_lineages(config: TracConfig) -> None:
    """
    Run the lineages command.

    Args:
        config: Configuration for the lineages command
    """
    from tractree.io.parsers import parse_taxonomy_file
    from tractree.io.writers import write_lineages
    from tractree.core.taxonomy import lineage_table

    df = parse_taxonomy_file(config.table, config.id_column)
    lineages = lineage_table(df, config.rank_columns, config.id_column, config.delimiter)
    if config.output:
        write_lineages(lineages, config.output)
    else:
        for feature_id, lineage in lineages.items():
            print(f"{feature_id}\t{lineage}")

def run_a_matrix(config: TracConfig) -> None:
    """
    Run the a-matrix command.

    Args:
        config: Configuration for the a-matrix command
    """
    from tractree.io.parsers import parse_taxonomy_file
    from tractree.io.writers import write_incidence_matrix
    from tractree.core.incidence import taxonomy_to_a_matrix

    df = parse_taxonomy_file(config.table, config.id_column)
    _, a_matrix = taxonomy_to_a_matrix(
        df,
        rank_columns=config.rank_columns,
        id_column=config.id_column,
        delimiter=config.delimiter,
        root_label=config.root_label,
        collapse=config.collapse,
        include_root=config.include_root
    )
    write_incidence_matrix(a_matrix, config.output, config.feature_major)

def run_tree(config: TracConfig) -> None:
    """
    Run the tree command.

    Args:
        config: Configuration for the tree command
    """
    from tractree.io.parsers import parse_taxonomy_file
    from tractree.io.writers import write_newick
    from tractree.core.taxonomy import features_from_table, normalize_lineages
    from tractree.core.tree import build_tree, collapse_single_child_chains

    df = parse_taxonomy_file(config.table, config.id_column)
    features = features_from_table(df, config.rank_columns, config.id_column)
    tree = build_tree(normalize_lineages(features, config.delimiter), config.delimiter, config.root_label)
    if config.collapse:
        tree = collapse_single_child_chains(tree)
    write_newick(tree, config.output)

def run_aggregate(config: TracConfig) -> None:
    """
    Run the aggregate command.

    Args:
        config: Configuration for the aggregate command
    """
    from tractree.io.parsers import parse_taxonomy_file, parse_count_file
    from tractree.io.writers import write_aggregated_features
    from tractree.core.incidence import taxonomy_to_a_matrix
    from tractree.core.matrix_ops import log_pseudo, aggregate_log_features

    df = parse_taxonomy_file(config.table, config.id_column)
    _, a_matrix = taxonomy_to_a_matrix(
        df,
        rank_columns=config.rank_columns,
        id_column=config.id_column,
        delimiter=config.delimiter,
        root_label=config.root_label,
        collapse=config.collapse,
        include_root=config.include_root
    )
    counts = parse_count_file(config.counts, config.samples_as_rows)
    aggregated = aggregate_log_features(log_pseudo(counts, config.pseudo_count), a_matrix)
    write_aggregated_features(aggregated, config.output)

def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the tractree command-line interface.

    Args:
        argv: Argument list; sys.argv[1:] if None

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Setup logging
    logger = setup_logging(args.verbose)

    try:
        # Create configuration
        config = TracConfig(args)

        # Dispatch to appropriate command handler
        if config.command == 'lineages':
            run_lineages(config)
        elif config.command == 'a-matrix':
            run_a_matrix(config)
        elif config.command == 'tree':
            run_tree(config)
        elif config.command == 'aggregate':
            run_aggregate(config)
        else:
            logger.error(f"Unknown command: {config.command}")
            return 1

        return 0

    except TracError as e:
        logger.error(f"Error: {str(e)}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {str(e)}")
        return 1

if __name__ == "__main__":
    sys.exit(main())
