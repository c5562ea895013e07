"""Shared building blocks: configuration, logging, errors, models and persistence."""
