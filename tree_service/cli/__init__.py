"""Command line interface for tree-service."""
