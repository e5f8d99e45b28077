"""Taxonomy-related functionality: turning rank tables into lineage strings."""

import logging
from collections import defaultdict
from typing import List, Dict, Tuple, Optional, Sequence, Any

import pandas as pd

from tractree.models.errors import InputError, LineageCollisionError
from tractree.models.taxonomic import Feature
from tractree.core.utils import (
    TAXONOMY_RANKS, RANK_PREFIXES, LINEAGE_DELIMITER, placeholder_width
)

logger = logging.getLogger(__name__)

def is_placeholder_label(rank: str, label: Any) -> bool:
    """
    Decide whether a rank label stands for "unassigned at this rank".

    A label is a placeholder when it is missing, blank, or no longer than the
    bare prefix code of its rank (``"g__"`` for genus, so ``"g__"`` and ``"g_"``
    are placeholders while ``"g__Bacillus"`` is not). Ranks without a known
    prefix code use a width of 3.

    Args:
        rank: Canonical rank name (one of TAXONOMY_RANKS)
        label: Rank label as read from the taxonomy table

    Returns:
        True if the label must be disambiguated before use as a node key
    """
    if label is None:
        return True
    if not isinstance(label, str):
        if pd.isna(label):
            return True
        label = str(label)
    label = label.strip()
    return len(label) <= placeholder_width(rank)

def resolve_rank_columns(
    df: pd.DataFrame,
    rank_columns: Optional[Sequence[str]] = None,
    id_column: Optional[str] = None
) -> List[str]:
    """
    Pick the seven rank columns of a taxonomy table, kingdom first.

    Args:
        df: Taxonomy table, one row per feature
        rank_columns: Explicit column names, used as given
        id_column: Feature identifier column, never treated as a rank

    Returns:
        List of seven column names in rank order

    Raises:
        InputError: If fewer than seven rank columns are available
    """
    n_ranks = len(TAXONOMY_RANKS)
    if rank_columns is not None:
        rank_columns = list(rank_columns)
        missing = [col for col in rank_columns if col not in df.columns]
        if missing:
            raise InputError(f"Rank columns not found in taxonomy table: {missing}")
        if len(rank_columns) != n_ranks:
            raise InputError(
                f"Exactly {n_ranks} rank columns are required, got {len(rank_columns)}: {rank_columns}"
            )
        return rank_columns

    lowered = {str(col).lower(): col for col in df.columns}
    if all(rank in lowered for rank in TAXONOMY_RANKS):
        return [lowered[rank] for rank in TAXONOMY_RANKS]

    candidates = [col for col in df.columns if col != id_column]
    if len(candidates) < n_ranks:
        raise InputError(
            f"Taxonomy table needs {n_ranks} rank columns, found {len(candidates)}: {candidates}"
        )
    return candidates[:n_ranks]

def features_from_table(
    df: pd.DataFrame,
    rank_columns: Optional[Sequence[str]] = None,
    id_column: Optional[str] = None
) -> List[Feature]:
    """
    Load features from a taxonomy table.

    Args:
        df: Taxonomy table, one row per feature
        rank_columns: Rank columns in kingdom..species order (inferred if None)
        id_column: Column holding feature identifiers; the index is used if None

    Returns:
        Features in table order

    Raises:
        InputError: On missing rank columns, empty or duplicate identifiers
    """
    if id_column is not None and id_column not in df.columns:
        raise InputError(f"Identifier column '{id_column}' not found in taxonomy table")
    columns = resolve_rank_columns(df, rank_columns, id_column)

    ids = df[id_column] if id_column is not None else pd.Series(df.index, index=df.index)
    empty = [pos for pos, fid in enumerate(ids) if fid is None or pd.isna(fid) or not str(fid).strip()]
    if empty:
        raise InputError(f"Taxonomy table rows {empty} have an empty feature identifier")

    ids = [str(fid).strip() for fid in ids]
    id_series = pd.Series(ids)
    duplicated = sorted(id_series[id_series.duplicated()].unique())
    if duplicated:
        raise InputError(f"Duplicate feature identifiers in taxonomy table: {duplicated}")

    features = [
        Feature(feature_id=fid, ranks=tuple(row))
        for fid, row in zip(ids, df[columns].itertuples(index=False, name=None))
    ]
    logger.debug(f"Loaded {len(features)} features using rank columns {columns}")
    return features

def disambiguate_placeholders(features: Sequence[Feature]) -> List[Tuple[str, ...]]:
    """
    Number placeholder labels so unknown taxa never share a label by accident.

    Numbering runs per rank over the whole table in row order: the first
    placeholder genus becomes ``g__1``, the next ``g__2`` and so on. Missing or
    blank labels use the rank's prefix code as the stem. Other labels pass
    through unchanged.

    Args:
        features: Features in table order

    Returns:
        One tuple of labels per feature
    """
    counters: Dict[str, int] = defaultdict(int)
    labelled = []
    for feature in features:
        labels = []
        for rank, label in zip(TAXONOMY_RANKS, feature.ranks):
            if is_placeholder_label(rank, label):
                counters[rank] += 1
                stem = label.strip() if isinstance(label, str) and label.strip() else RANK_PREFIXES[rank]
                labels.append(f"{stem}{counters[rank]}")
            else:
                labels.append(str(label).strip())
        labelled.append(tuple(labels))

    for rank in TAXONOMY_RANKS:
        if counters[rank]:
            logger.debug(f"Numbered {counters[rank]} placeholder labels at rank '{rank}'")
    return labelled

def normalize_lineages(
    features: Sequence[Feature],
    delimiter: str = LINEAGE_DELIMITER
) -> List[str]:
    """
    Build the fully qualified lineage string of every feature.

    Each rank label is qualified by its ancestors (``ancestor(k-1) :: label(k)``)
    and the feature identifier is appended as the leaf-level segment.

    Args:
        features: Features in table order
        delimiter: Segment separator

    Returns:
        Lineage strings in the same order as `features`

    Raises:
        InputError: If a label or identifier contains the delimiter, or
            ends with part of it so the lineage would split differently
        LineageCollisionError: If two features end up with the same lineage
    """
    lineages = []
    for feature, labels in zip(features, disambiguate_placeholders(features)):
        segments = list(labels) + [feature.feature_id]
        bad = [seg for seg in segments if delimiter in seg]
        if bad:
            raise InputError(
                f"Feature {feature.feature_id} has labels containing the delimiter '{delimiter}': {bad}"
            )
        lineage = segments[0]
        for segment in segments[1:]:
            lineage = f"{lineage}{delimiter}{segment}"
        # a label ending with part of the delimiter shifts the split
        if lineage.split(delimiter) != segments:
            raise InputError(
                f"Feature {feature.feature_id} has labels that run into the delimiter "
                f"'{delimiter}': {lineage!r} does not split back into {segments}"
            )
        lineages.append(lineage)

    owners: Dict[str, List[str]] = defaultdict(list)
    for feature, lineage in zip(features, lineages):
        owners[lineage].append(feature.feature_id)
    collisions = {lineage: ids for lineage, ids in owners.items() if len(ids) > 1}
    if collisions:
        colliding = [fid for ids in collisions.values() for fid in ids]
        raise LineageCollisionError(
            f"Features {colliding} share a lineage after normalization: {sorted(collisions)}",
            feature_ids=colliding
        )

    logger.info(f"Normalized {len(lineages)} lineages")
    return lineages

def lineage_table(
    df: pd.DataFrame,
    rank_columns: Optional[Sequence[str]] = None,
    id_column: Optional[str] = None,
    delimiter: str = LINEAGE_DELIMITER
) -> pd.Series:
    """
    Normalize a taxonomy table straight into lineage strings.

    Returns:
        Series of lineage strings indexed by feature id, in table order
    """
    features = features_from_table(df, rank_columns, id_column)
    lineages = normalize_lineages(features, delimiter)
    return pd.Series(
        lineages,
        index=pd.Index([f.feature_id for f in features], name='feature_id'),
        name='lineage'
    )
