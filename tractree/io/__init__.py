"""File input and output for tractree."""
