"""Core tree and matrix construction for tractree."""
