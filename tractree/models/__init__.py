"""Data models, configuration and errors for tractree."""
