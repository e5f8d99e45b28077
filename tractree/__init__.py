"""tractree: taxonomic trees and A matrices for tree-aggregated regression."""

__version__ = "0.2.0"
