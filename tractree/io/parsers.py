"""File format parsers for tractree."""

import logging
from pathlib import Path
from typing import Optional
from abc import ABC, abstractmethod

import pandas as pd

from tractree.models.errors import InputError

logger = logging.getLogger(__name__)

def _separator(path: Path) -> str:
    """Tab for .tsv/.txt (optionally gzipped), comma otherwise."""
    suffixes = [s.lower() for s in Path(path).suffixes if s.lower() != '.gz']
    return ',' if suffixes and suffixes[-1] == '.csv' else '\t'

class Parser(ABC):
    """Base parser class for different table formats."""

    @abstractmethod
    def parse(self, path: Path):
        """Parse file at the given path.

        Args:
            path: Path to file

        Returns:
            Parsed data
        """
        pass

class FeatureTableParser(Parser):
    """Parser for feature taxonomy tables (one row per feature)."""

    def parse(self, path: Path, id_column: Optional[str] = None) -> pd.DataFrame:
        """Parse a taxonomy table into a DataFrame of strings.

        Args:
            path: Path to a .tsv or .csv taxonomy table
            id_column: Column holding feature identifiers. If None, the
                first column becomes the index.

        Returns:
            DataFrame with every cell read as str (missing cells stay NaN)

        Raises:
            InputError: If the file cannot be read
        """
        path = Path(path)
        try:
            df = pd.read_csv(
                path,
                sep=_separator(path),
                index_col=None if id_column else 0,
                dtype=str,
                keep_default_na=False,
                na_values=['']
            )
        except (OSError, ValueError, pd.errors.ParserError) as e:
            raise InputError(f"Error parsing taxonomy table {path}: {str(e)}")
        if id_column and id_column not in df.columns:
            raise InputError(f"Identifier column '{id_column}' not found in {path}")
        logger.info(f"Read {len(df)} features from {path}")
        return df

class CountTableParser(Parser):
    """Parser for count tables."""

    def parse(self, path: Path, samples_as_rows: bool = False) -> pd.DataFrame:
        """Parse a count table into a samples x features DataFrame.

        Args:
            path: Path to a .tsv or .csv table with row and column labels
            samples_as_rows: Whether rows are samples; by default rows are
                features, as in OTU tables

        Returns:
            Numeric DataFrame, samples x features, labels as str

        Raises:
            InputError: If the file cannot be read or is not numeric
        """
        path = Path(path)
        try:
            # identifiers stay strings so zero-padded ids match the taxonomy table
            df = pd.read_csv(path, sep=_separator(path), index_col=0, dtype=str)
            df = df.apply(pd.to_numeric)
        except (OSError, ValueError, pd.errors.ParserError) as e:
            raise InputError(f"Error parsing count table {path}: {str(e)}")
        if not samples_as_rows:
            df = df.T
        df.index = df.index.map(str)
        df.columns = df.columns.map(str)
        logger.info(f"Read counts for {df.shape[0]} samples x {df.shape[1]} features from {path}")
        return df

# Factory function to get appropriate parser
def get_parser(file_type: str) -> Parser:
    """Get appropriate parser for file type.

    Args:
        file_type: 'taxonomy' or 'counts'

    Returns:
        Parser object

    Raises:
        InputError: If the file type is unknown
    """
    parsers = {
        'taxonomy': FeatureTableParser,
        'counts': CountTableParser,
    }
    try:
        return parsers[file_type]()
    except KeyError:
        raise InputError(f"Unknown file type '{file_type}', expected one of {sorted(parsers)}")

def parse_taxonomy_file(path: Path, id_column: Optional[str] = None) -> pd.DataFrame:
    """Parse a taxonomy table; wrapper for FeatureTableParser."""
    return FeatureTableParser().parse(path, id_column)

def parse_count_file(path: Path, samples_as_rows: bool = False) -> pd.DataFrame:
    """Parse a count table; wrapper for CountTableParser."""
    return CountTableParser().parse(path, samples_as_rows)
