"""Utility functions and shared constants for tractree."""

import logging

# Static global variables
TAXONOMY_RANKS = ['kingdom', 'phylum', 'class', 'order', 'family', 'genus', 'species']
RANK_PREFIXES = {
    'kingdom': 'k__',
    'phylum': 'p__',
    'class': 'c__',
    'order': 'o__',
    'family': 'f__',
    'genus': 'g__',
    'species': 's__',
}
DEFAULT_PLACEHOLDER_WIDTH = 3
LINEAGE_DELIMITER = '::'
ROOT_LABEL = 'Life'

def setup_logging(verbose: bool = False) -> logging.Logger:
    """
    Configure logging for the tractree application.

    Args:
        verbose: Whether to enable verbose (DEBUG) logging

    Returns:
        Logger instance
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    return logging.getLogger('tractree')

def placeholder_width(rank: str) -> int:
    """Width of the bare prefix code that marks an unassigned label at `rank`."""
    prefix = RANK_PREFIXES.get(rank)
    return len(prefix) if prefix else DEFAULT_PLACEHOLDER_WIDTH
