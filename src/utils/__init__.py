"""Shared helpers: configuration, logging, errors, dates."""
