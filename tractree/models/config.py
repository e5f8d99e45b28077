"""Configuration management for tractree."""

import os
from pathlib import Path
from typing import Optional, Any

from tractree.core.utils import LINEAGE_DELIMITER, ROOT_LABEL
from tractree.models.errors import TracError

class ConfigError(TracError):
    """Raised when there's an issue with configuration."""
    pass

class TracConfig:
    """Centralized configuration for tractree."""

    def __init__(self, args: Optional[Any] = None):
        """
        Initialize configuration from args and environment.

        Args:
            args: Arguments from argparse

        Raises:
            ConfigError: If configuration values are invalid
        """
        self.command = getattr(args, 'command', None)
        self.verbose = getattr(args, 'verbose', False)

        # Taxonomy table layout, shared by every command
        table = getattr(args, 'table', None)
        self.table = Path(table) if table else None
        self.id_column = getattr(args, 'id_column', None)
        rank_columns = getattr(args, 'rank_columns', None)
        if isinstance(rank_columns, str):
            rank_columns = [col.strip() for col in rank_columns.split(',') if col.strip()]
        self.rank_columns = rank_columns or None

        self.delimiter = (
            getattr(args, 'delimiter', None)
            or os.environ.get("TRACTREE_DELIMITER")
            or LINEAGE_DELIMITER
        )
        self.root_label = (
            getattr(args, 'root_label', None)
            or os.environ.get("TRACTREE_ROOT_LABEL")
            or ROOT_LABEL
        )
        if not self.delimiter.strip():
            raise ConfigError("Lineage delimiter must contain at least one non-whitespace character.")

        output = getattr(args, 'output', None)
        self.output = Path(output) if output else None
        self.collapse = getattr(args, 'collapse', False)

        if self.command in ['a-matrix', 'tree', 'aggregate'] and self.output is None:
            raise ConfigError(f"Command '{self.command}' requires an output path (--output).")

        # A-matrix command configuration
        if self.command == 'a-matrix':
            self.include_root = getattr(args, 'include_root', False)
            self.feature_major = getattr(args, 'feature_major', False)

        # Aggregate command configuration
        elif self.command == 'aggregate':
            self.counts = Path(getattr(args, 'counts', ''))
            self.pseudo_count = getattr(args, 'pseudo_count', 1.0)
            self.samples_as_rows = getattr(args, 'samples_as_rows', False)
            self.include_root = getattr(args, 'include_root', False)
            if self.pseudo_count <= 0:
                raise ConfigError(f"Pseudo-count must be positive, got {self.pseudo_count}.")
