"""Data models for taxonomy."""

from typing import Tuple
from dataclasses import dataclass

from tractree.core.utils import TAXONOMY_RANKS
from tractree.models.errors import InputError

@dataclass(frozen=True)
class Feature:
    """One observed taxonomic unit (OTU/ASV) and its rank labels, kingdom to species."""
    feature_id: str
    ranks: Tuple[str, ...]

    def __post_init__(self):
        if len(self.ranks) != len(TAXONOMY_RANKS):
            raise InputError(
                f"Feature {self.feature_id} has {len(self.ranks)} rank labels, "
                f"expected {len(TAXONOMY_RANKS)}"
            )

    def label(self, rank: str) -> str:
        """Return the label stored for a named rank."""
        return self.ranks[TAXONOMY_RANKS.index(rank)]

    def as_tuple(self) -> Tuple:
        """Convert to a flat tuple: feature id followed by the rank labels."""
        return (self.feature_id,) + tuple(self.ranks)

    @classmethod
    def from_tuple(cls, data: Tuple) -> 'Feature':
        """Create from a flat tuple as produced by `as_tuple`."""
        return cls(feature_id=data[0], ranks=tuple(data[1:]))
