"""Thin HTTP API handlers and the single Lambda router."""
