"""File writers for tractree."""

import logging
from pathlib import Path
from typing import Dict

import pandas as pd
from Bio import Phylo
from scipy import sparse

from tractree.models.errors import InputError
from tractree.core.matrix_ops import to_sparse
from tractree.core.tree import TaxonomyTree, to_phylo

logger = logging.getLogger(__name__)

def write_lineages(lineages: pd.Series, path: Path) -> Path:
    """
    Write feature lineages as a two-column TSV (feature_id, lineage).

    Raises:
        InputError: If the file cannot be written
    """
    path = Path(path)
    try:
        lineages.rename('lineage').to_frame().to_csv(path, sep='\t', index_label='feature_id')
    except OSError as e:
        raise InputError(f"Error writing lineages to {path}: {str(e)}")
    logger.info(f"Wrote {len(lineages)} lineages to {path}")
    return path

def write_incidence_matrix(
    a_matrix: pd.DataFrame,
    path: Path,
    feature_major: bool = False
) -> Dict[str, Path]:
    """
    Write an A matrix to disk.

    A ``.npz`` path stores the matrix in scipy sparse format, with the row and
    column labels in companion ``<stem>.rows.txt`` and ``<stem>.cols.txt``
    files. Any other path gets a dense tab-separated table.

    Args:
        a_matrix: A matrix, nodes x features
        path: Output path
        feature_major: Write features as rows (the transposed layout)

    Returns:
        Dict of written file paths keyed by 'matrix', and for .npz also
        'rows' and 'cols'

    Raises:
        InputError: If the files cannot be written
    """
    path = Path(path)
    table = a_matrix.T if feature_major else a_matrix
    written = {'matrix': path}
    try:
        if path.suffix.lower() == '.npz':
            sparse.save_npz(path, to_sparse(table))
            written['rows'] = path.with_suffix('.rows.txt')
            written['cols'] = path.with_suffix('.cols.txt')
            written['rows'].write_text('\n'.join(map(str, table.index)) + '\n', encoding='utf8')
            written['cols'].write_text('\n'.join(map(str, table.columns)) + '\n', encoding='utf8')
        else:
            table.to_csv(path, sep='\t')
    except OSError as e:
        raise InputError(f"Error writing A matrix to {path}: {str(e)}")

    logger.info(f"Wrote {table.shape[0]} x {table.shape[1]} A matrix to {path}")
    return written

def write_newick(tree: TaxonomyTree, path: Path) -> Path:
    """
    Write a taxonomy tree in Newick format.

    Raises:
        InputError: If the file cannot be written
    """
    path = Path(path)
    try:
        with open(path, 'w', encoding='utf8') as handle:
            Phylo.write(to_phylo(tree), handle, 'newick')
    except OSError as e:
        raise InputError(f"Error writing tree to {path}: {str(e)}")
    logger.info(f"Wrote tree with {tree.n_leaves} leaves to {path}")
    return path

def write_aggregated_features(aggregated: pd.DataFrame, path: Path) -> Path:
    """
    Write a samples x nodes aggregated feature table as TSV.

    Raises:
        InputError: If the file cannot be written
    """
    path = Path(path)
    try:
        aggregated.to_csv(path, sep='\t', index_label='sample')
    except OSError as e:
        raise InputError(f"Error writing aggregated features to {path}: {str(e)}")
    logger.info(f"Wrote aggregated features for {aggregated.shape[0]} samples to {path}")
    return path
