"""Shared helpers: text normalization, dates and logging."""
