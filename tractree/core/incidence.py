"""Incidence ("A") matrix emission from a taxonomy tree."""

import logging
from typing import List, Dict, Tuple, Optional, Sequence

import numpy as np
import pandas as pd
from scipy import sparse

from tractree.models.errors import TreeConsistencyError
from tractree.core.taxonomy import features_from_table, normalize_lineages
from tractree.core.tree import TaxonomyTree, build_tree, collapse_single_child_chains
from tractree.core.utils import LINEAGE_DELIMITER, ROOT_LABEL

logger = logging.getLogger(__name__)

def build_incidence_matrix(
    tree: TaxonomyTree,
    feature_order: Optional[Sequence[str]] = None,
    include_root: bool = False
) -> pd.DataFrame:
    """
    Emit the binary node x feature incidence matrix of a taxonomy tree.

    Descendant sets are accumulated in a single post-order pass, each node
    taking the union of its children's column indices.

    Args:
        tree: Built taxonomy tree
        feature_order: Column order as feature ids; defaults to the order of
            the table the tree was built from
        include_root: Whether to emit a row for the root

    Returns:
        DataFrame of int8 indexed by node key (pre-order) with one column
        per feature

    Raises:
        TreeConsistencyError: If leaves and columns do not match one-to-one
    """
    columns = list(feature_order) if feature_order is not None else list(tree.feature_ids)
    column_index = {fid: pos for pos, fid in enumerate(columns)}
    if len(column_index) != len(columns):
        raise TreeConsistencyError("Feature order contains duplicate feature ids")

    descendants: Dict[str, List[int]] = {}
    for node in tree.postorder():
        if node.is_leaf and not node.is_root:
            if node.feature_id not in column_index:
                raise TreeConsistencyError(
                    f"Leaf for feature {node.feature_id} has no column in the feature order"
                )
            descendants[node.key] = [column_index[node.feature_id]]
        else:
            descendants[node.key] = [col for child in node.sorted_children()
                                     for col in descendants[child.key]]

    covered = descendants[tree.root.key]
    if sorted(covered) != list(range(len(columns))):
        unreached = sorted(set(columns) - {columns[col] for col in covered})
        raise TreeConsistencyError(f"Features {unreached} are not reachable from the root")

    row_keys = [node.key for node in tree.preorder() if include_root or not node.is_root]
    rows, cols = [], []
    for row, key in enumerate(row_keys):
        rows.extend([row] * len(descendants[key]))
        cols.extend(descendants[key])

    matrix = sparse.coo_matrix(
        (np.ones(len(rows), dtype=np.int8), (rows, cols)),
        shape=(len(row_keys), len(columns))
    )
    a_matrix = pd.DataFrame(
        matrix.toarray(),
        index=pd.Index(row_keys, name='node'),
        columns=pd.Index(columns, name='feature_id')
    )
    logger.info(f"Emitted A matrix with {a_matrix.shape[0]} nodes x {a_matrix.shape[1]} features")
    return a_matrix

def taxonomy_to_a_matrix(
    df: pd.DataFrame,
    rank_columns: Optional[Sequence[str]] = None,
    id_column: Optional[str] = None,
    delimiter: str = LINEAGE_DELIMITER,
    root_label: str = ROOT_LABEL,
    collapse: bool = False,
    include_root: bool = False
) -> Tuple[TaxonomyTree, pd.DataFrame]:
    """
    Run the whole pipeline from taxonomy table to A matrix.

    Args:
        df: Taxonomy table, one row per feature
        rank_columns: Rank columns in kingdom..species order (inferred if None)
        id_column: Column holding feature identifiers; the index is used if None
        delimiter: Lineage segment separator
        root_label: Display label for the tree root
        collapse: Whether to collapse single-child chains before emitting
        include_root: Whether the A matrix gets a root row

    Returns:
        Tuple of (tree, A matrix); columns follow the table's row order
    """
    features = features_from_table(df, rank_columns, id_column)
    lineages = normalize_lineages(features, delimiter)
    tree = build_tree(lineages, delimiter, root_label)
    if collapse:
        tree = collapse_single_child_chains(tree)
    a_matrix = build_incidence_matrix(
        tree, [f.feature_id for f in features], include_root=include_root
    )
    return tree, a_matrix
