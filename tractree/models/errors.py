"""Error classes for tractree."""

class TracError(Exception):
    """Base class for tractree exceptions."""
    pass

class InputError(TracError):
    """Raised when there's an issue with input tables or files."""
    pass

class TaxonomyError(TracError):
    """Raised when there's an issue with taxonomy."""
    pass

class LineageCollisionError(TaxonomyError):
    """Raised when two features normalize to the same lineage string."""

    def __init__(self, message: str, feature_ids=None):
        super().__init__(message)
        self.feature_ids = list(feature_ids or [])

class TreeConsistencyError(TaxonomyError):
    """Raised when a built taxonomy tree violates its structural invariants."""
    pass

class CalculationError(TracError):
    """Raised when there's an issue with calculations."""
    pass
